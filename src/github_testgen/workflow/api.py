"""An HTTP client for the GitHub TestGen API, holding the session cookie between calls."""

from collections.abc import Sequence
from logging import Logger, getLogger
from typing import Any

import httpx

from github_testgen.clients.models.github import DirectoryListing, RepositorySummary
from github_testgen.servers.models.testcases import CodeRequest, CodeResult, PullRequestRequest, SourceFile, SummariesRequest, SummaryResult
from github_testgen.workflow.errors import ApiError
from github_testgen.workflow.state import UserProfile

DEFAULT_API_URL = "http://localhost:5000"


def error_message(response: httpx.Response, fallback: str) -> str:
    """The `error` field of a JSON error reply, or the fallback when the reply has none."""

    try:
        body: Any = response.json()  # pyright: ignore[reportAny]
    except ValueError:
        return fallback

    if isinstance(body, dict) and isinstance(error := body.get("error"), str) and error:  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
        return error

    return fallback


class ApiClient:
    http_client: httpx.AsyncClient
    logger: Logger

    def __init__(self, base_url: str = DEFAULT_API_URL, http_client: httpx.AsyncClient | None = None, logger: Logger | None = None):
        self.http_client = http_client or httpx.AsyncClient(base_url=base_url)
        self.logger = logger or getLogger(__name__)

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def _request(self, method: str, path: str, fallback: str, **kwargs: Any) -> httpx.Response:  # pyright: ignore[reportAny]
        response: httpx.Response = await self.http_client.request(method, path, **kwargs)  # pyright: ignore[reportAny]

        if response.is_error:
            message: str = error_message(response, fallback=fallback)
            self.logger.warning(f"{method} {path} failed with {response.status_code}: {message}")
            raise ApiError(status_code=response.status_code, message=message, path=path)

        return response

    async def whoami(self) -> UserProfile | None:
        """The signed-in user, or None when there is no valid session."""

        response: httpx.Response = await self.http_client.get("/auth/user")

        if response.status_code == httpx.codes.UNAUTHORIZED:
            return None

        if response.is_error:
            raise ApiError(status_code=response.status_code, message=error_message(response, "Failed to load user"), path="/auth/user")

        return UserProfile.model_validate(response.json()["user"])

    async def logout(self) -> None:
        _ = await self._request("GET", "/auth/logout", fallback="Failed to log out")

    async def list_repositories(self) -> list[RepositorySummary]:
        response: httpx.Response = await self._request("GET", "/api/repos", fallback="Failed to load repositories")

        return [RepositorySummary.model_validate(repository) for repository in response.json()]  # pyright: ignore[reportAny]

    async def list_directory(self, repo: str, path: str = "") -> DirectoryListing:
        response: httpx.Response = await self._request(
            "GET", "/api/files", fallback="Failed to load files", params={"repo": repo, "path": path}
        )

        return DirectoryListing.model_validate(response.json())

    async def read_file(self, repo: str, path: str, branch: str | None = None) -> str:
        params: dict[str, str] = {"repo": repo, "path": path}

        if branch:
            params["branch"] = branch

        response: httpx.Response = await self._request("GET", "/api/content", fallback="Failed to load file content", params=params)

        return response.json()["content"]  # pyright: ignore[reportAny]

    async def generate_summaries(self, files: Sequence[SourceFile]) -> SummaryResult:
        body = SummariesRequest(files=list(files))

        response: httpx.Response = await self._request(
            "POST", "/api/testcases/summaries", fallback="Failed to generate test summaries", json=body.model_dump()
        )

        return SummaryResult.model_validate(response.json())

    async def generate_code(self, summary: str, files: Sequence[SourceFile]) -> CodeResult:
        body = CodeRequest(summary=summary, files=list(files))

        response: httpx.Response = await self._request(
            "POST", "/api/testcases/code", fallback="Failed to generate test code", json=body.model_dump()
        )

        return CodeResult.model_validate(response.json())

    async def create_pull_request(self, repo: str, test_code: str, language: str | None) -> str:
        body = PullRequestRequest(repo=repo, test_code=test_code, language=language)

        response: httpx.Response = await self._request(
            "POST", "/api/create-pr", fallback="Failed to create pull request", json=body.model_dump(by_alias=True, exclude_none=True)
        )

        return response.json()["url"]  # pyright: ignore[reportAny]
