from collections.abc import Sequence
from typing import Any, overload

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from github_testgen.clients.github import GitHubTestGenClient
from github_testgen.clients.models.github import Identity
from github_testgen.settings import Settings
from github_testgen.web.app import create_app
from github_testgen.web.sessions import SessionStore
from tests.fakes import FakeGitHubKit, FakeOAuthClient, StaticTextGenerator, dir_item, file_item

FRONTEND_URL = "http://localhost:5173"

RAW_CONTENT_URL = "https://raw.githubusercontent.com/octocat/hello-world/main/src/large.py"

HELLO_PY = 'def hello(name):\n    return f"Hello, {name}!"\n'
LARGE_PY = "def add(a, b):\n    return a + b\n"

SUMMARY_REPLY = """\
Here are the test cases:

* **Test Case 1:** Greets a name
  Calls `hello("World")` and expects `Hello, World!`.
* **Test Case 2:** Greets an empty name
  Calls `hello("")` and expects `Hello, !`.
* **Test Case 3:** Greets a non-string name
  Calls `hello(42)` and expects `Hello, 42!`.
"""

CODE_REPLY = """\
Here is the test code:

```python
# Test Case 1: Greets a name
from src.hello import hello


def test_hello():
    assert hello("World") == "Hello, World!"
```

Let me know if you need more tests.
"""


@pytest.fixture
def settings() -> Settings:
    return Settings(
        github_client_id="client-id",
        github_client_secret="client-secret",
        github_callback_url="http://localhost:5000/auth/github/callback",
        frontend_url=FRONTEND_URL + "/",
        session_secret="test-secret",
    )


@pytest.fixture
def identity() -> Identity:
    return Identity(
        id=583231,
        login="octocat",
        name="The Octocat",
        avatar_url="https://avatars.githubusercontent.com/u/583231",
        html_url="https://github.com/octocat",
        access_token="gho_test_token",
    )


@pytest.fixture
def fake_githubkit() -> FakeGitHubKit:
    return FakeGitHubKit(
        repositories=["octocat/hello-world", "octocat/spoon-knife"],
        contents={
            "": [file_item("README.md", content="# Hello"), dir_item("src")],
            "src": [file_item("src/hello.py", content=HELLO_PY), file_item("src/large.py", download_url=RAW_CONTENT_URL)],
            "src/hello.py": file_item("src/hello.py", content=HELLO_PY),
            "src/large.py": file_item("src/large.py", download_url=RAW_CONTENT_URL),
        },
    )


def raw_content_handler(request: httpx.Request) -> httpx.Response:
    if str(request.url) == RAW_CONTENT_URL:
        return httpx.Response(200, text=LARGE_PY)

    return httpx.Response(404, text="404: Not Found")


@pytest.fixture
def raw_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(raw_content_handler))


@pytest.fixture
def github_client(fake_githubkit: FakeGitHubKit, raw_http_client: httpx.AsyncClient) -> GitHubTestGenClient:
    return GitHubTestGenClient(access_token="gho_test_token", githubkit_client=fake_githubkit, http_client=raw_http_client)  # pyright: ignore[reportArgumentType]


@pytest.fixture
def text_generator() -> StaticTextGenerator:
    return StaticTextGenerator(replies=[SUMMARY_REPLY, CODE_REPLY])


@pytest.fixture
def oauth_client(identity: Identity) -> FakeOAuthClient:
    return FakeOAuthClient(identity=identity)


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


class GitHubClientFactoryRecorder:
    """Hands out the test GitHub client and remembers who asked for one."""

    def __init__(self, github_client: GitHubTestGenClient):
        self.github_client: GitHubTestGenClient = github_client
        self.identities: list[Identity] = []

    def __call__(self, identity: Identity) -> GitHubTestGenClient:
        self.identities.append(identity)
        return self.github_client


@pytest.fixture
def github_client_factory(github_client: GitHubTestGenClient) -> GitHubClientFactoryRecorder:
    return GitHubClientFactoryRecorder(github_client=github_client)


@pytest.fixture
def app(
    settings: Settings,
    session_store: SessionStore,
    text_generator: StaticTextGenerator,
    github_client_factory: GitHubClientFactoryRecorder,
    oauth_client: FakeOAuthClient,
) -> FastAPI:
    return create_app(
        settings=settings,
        session_store=session_store,
        text_generator=text_generator,
        github_client_factory=github_client_factory,
        oauth_client=oauth_client,
    )


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, follow_redirects=False)


def log_in(client: TestClient, code: str = "valid-code") -> httpx.Response:
    """Run the OAuth web flow against the app, returning the callback response."""

    login_response = client.get("/auth/login")
    state: str = httpx.URL(login_response.headers["location"]).params["state"]

    return client.get("/auth/callback", params={"code": code, "state": state})


@pytest.fixture
def authenticated_client(client: TestClient) -> TestClient:
    _ = log_in(client)
    return client


def handle_exclude_keys(dictionary: dict[str, Any], exclude_keys: list[str] | None = None) -> dict[str, Any]:
    if exclude_keys is None:
        return dictionary
    return {key: value for key, value in dictionary.items() if key not in exclude_keys}


@overload
def dump_for_snapshot(
    basemodel: None,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> None: ...


@overload
def dump_for_snapshot(
    basemodel: BaseModel,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> dict[str, Any]: ...


def dump_for_snapshot(
    basemodel: None | BaseModel,
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> dict[str, Any] | None:
    if basemodel is None:
        return None

    return handle_exclude_keys(basemodel.model_dump(exclude_none=exclude_none, **dump_kwargs), exclude_keys)


def dump_list_for_snapshot(
    basemodel: None | Sequence[BaseModel],
    /,
    exclude_keys: list[str] | None = None,
    exclude_none: bool = True,
    **dump_kwargs: Any,
) -> list[dict[str, Any]] | None:
    if basemodel is None:
        return []

    return [dump_for_snapshot(item, exclude_keys, exclude_none, **dump_kwargs) for item in basemodel]