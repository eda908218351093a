from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
from fastapi import FastAPI

from github_testgen.clients.models.github import DirectoryFile
from github_testgen.workflow.api import ApiClient
from github_testgen.workflow.controller import (
    NO_FILES_SELECTED,
    NO_SUMMARIES_RETURNED,
    NO_TEST_CODE_RETURNED,
    NO_TEST_CODE_TO_SUBMIT,
    WorkflowController,
)
from github_testgen.workflow.errors import WorkflowBusyError
from github_testgen.workflow.state import RequestStarted, WorkflowState
from tests.conftest import HELLO_PY, LARGE_PY
from tests.fakes import FakeGitHubKit, StaticTextGenerator, request_failed

HELLO_FILE = DirectoryFile(name="hello.py", path="src/hello.py", size=10, extension="py")
LARGE_FILE = DirectoryFile(name="large.py", path="src/large.py", size=10, extension="py")


@pytest.fixture
async def api_http_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, Any]:
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as http_client:
        yield http_client


async def sign_in(http_client: httpx.AsyncClient) -> None:
    login_response = await http_client.get("/auth/login")
    state: str = httpx.URL(login_response.headers["location"]).params["state"]

    _ = await http_client.get("/auth/callback", params={"code": "valid-code", "state": state})


@pytest.fixture
def controller(api_http_client: httpx.AsyncClient) -> WorkflowController:
    return WorkflowController(api_client=ApiClient(http_client=api_http_client))


@pytest.fixture
async def signed_in_controller(api_http_client: httpx.AsyncClient, controller: WorkflowController) -> WorkflowController:
    await sign_in(api_http_client)
    _ = await controller.check_auth()
    return controller


@pytest.fixture
async def files_selected_controller(signed_in_controller: WorkflowController) -> WorkflowController:
    _ = await signed_in_controller.select_repository("octocat/hello-world")
    _ = await signed_in_controller.enter_folder("src")
    _ = await signed_in_controller.toggle_file(HELLO_FILE)
    return signed_in_controller


class TestAuth:
    async def test_check_auth_without_session(self, controller: WorkflowController):
        state: WorkflowState = await controller.check_auth()

        assert state.phase == "unauthenticated"
        assert state.error is None
        assert state.busy is False

    async def test_check_auth(self, signed_in_controller: WorkflowController):
        assert signed_in_controller.state.phase == "authenticated-no-repo"
        assert signed_in_controller.state.user is not None
        assert signed_in_controller.state.user.login == "octocat"

    async def test_logout(self, files_selected_controller: WorkflowController):
        state: WorkflowState = await files_selected_controller.logout()

        assert state == WorkflowState()
        assert (await files_selected_controller.check_auth()).phase == "unauthenticated"


class TestBrowsing:
    async def test_load_repositories(self, signed_in_controller: WorkflowController):
        state: WorkflowState = await signed_in_controller.load_repositories()

        assert [repository.full_name for repository in state.repositories] == ["octocat/hello-world", "octocat/spoon-knife"]

    async def test_select_repository(self, signed_in_controller: WorkflowController):
        state: WorkflowState = await signed_in_controller.select_repository("octocat/hello-world")

        assert state.phase == "repo-selected"
        assert state.listing is not None
        assert [file.name for file in state.listing.files] == ["README.md"]
        assert [folder.path for folder in state.listing.folders] == ["src"]

    async def test_enter_and_leave_folder(self, signed_in_controller: WorkflowController):
        _ = await signed_in_controller.select_repository("octocat/hello-world")

        state: WorkflowState = await signed_in_controller.enter_folder("src")
        assert state.path_stack == ("", "src")
        assert state.listing is not None
        assert [file.name for file in state.listing.files] == ["hello.py", "large.py"]

        state = await signed_in_controller.leave_folder()
        assert state.path_stack == ("",)
        assert state.listing is not None
        assert [file.name for file in state.listing.files] == ["README.md"]

    async def test_missing_folder_sets_error(self, signed_in_controller: WorkflowController):
        _ = await signed_in_controller.select_repository("octocat/hello-world")

        state: WorkflowState = await signed_in_controller.enter_folder("missing")

        assert state.error == "The resource could not be found."
        assert state.busy is False

    async def test_toggle_files(self, files_selected_controller: WorkflowController):
        state: WorkflowState = await files_selected_controller.toggle_file(LARGE_FILE)

        assert [(file.name, file.content) for file in state.selected_files] == [("hello.py", HELLO_PY), ("large.py", LARGE_PY)]

        state = await files_selected_controller.toggle_file(HELLO_FILE)
        state = await files_selected_controller.toggle_file(LARGE_FILE)

        assert state.selected_files == ()
        assert state.phase == "repo-selected"

    async def test_changing_repository_clears_selection(self, files_selected_controller: WorkflowController):
        _ = await files_selected_controller.generate_summaries()

        state: WorkflowState = await files_selected_controller.select_repository("octocat/spoon-knife")

        assert state.selected_files == ()
        assert state.summaries == ()
        assert state.path_stack == ("",)


class TestGeneration:
    async def test_full_workflow(self, files_selected_controller: WorkflowController, fake_githubkit: FakeGitHubKit):
        state: WorkflowState = await files_selected_controller.generate_summaries()
        assert state.phase == "summaries-ready"
        assert len(state.summaries) == 3

        state = await files_selected_controller.generate_code(state.summaries[0])
        assert state.phase == "code-ready"
        assert state.test_code.startswith("# Test Case 1: Greets a name")

        state = await files_selected_controller.create_pull_request()
        assert state.phase == "pr-created"
        assert state.pr_url == "https://github.com/octocat/hello-world/pull/7"

        (commit,) = fake_githubkit.called("create_or_update_file_contents")
        assert commit["path"] == "tests/generated_tests_test.py"

    async def test_generate_code_for_all_summaries(self, files_selected_controller: WorkflowController, text_generator: StaticTextGenerator):
        _ = await files_selected_controller.generate_summaries()

        state: WorkflowState = await files_selected_controller.generate_code()

        assert state.phase == "code-ready"
        assert state.raw_summary_text in text_generator.prompts[-1]

    async def test_summaries_without_files(self, signed_in_controller: WorkflowController, text_generator: StaticTextGenerator):
        _ = await signed_in_controller.select_repository("octocat/hello-world")

        state: WorkflowState = await signed_in_controller.generate_summaries()

        assert state.error == NO_FILES_SELECTED
        assert text_generator.prompts == []

    async def test_no_summaries_returned(self, files_selected_controller: WorkflowController, text_generator: StaticTextGenerator):
        text_generator.replies = [""]

        state: WorkflowState = await files_selected_controller.generate_summaries()

        assert state.error == NO_SUMMARIES_RETURNED
        assert state.phase == "files-selected"
        assert state.busy is False

    async def test_no_test_code_returned(self, files_selected_controller: WorkflowController, text_generator: StaticTextGenerator):
        _ = await files_selected_controller.generate_summaries()
        text_generator.replies = ["   "]

        state: WorkflowState = await files_selected_controller.generate_code()

        assert state.error == NO_TEST_CODE_RETURNED
        assert state.phase == "summaries-ready"

    async def test_model_failure_sets_error(self, files_selected_controller: WorkflowController, text_generator: StaticTextGenerator):
        text_generator.error = RuntimeError("quota exceeded")

        state: WorkflowState = await files_selected_controller.generate_summaries()

        assert state.error == "Failed to generate test summaries"
        assert state.busy is False

    async def test_pull_request_without_code(self, files_selected_controller: WorkflowController):
        state: WorkflowState = await files_selected_controller.create_pull_request()

        assert state.error == NO_TEST_CODE_TO_SUBMIT

    async def test_pull_request_failure(self, files_selected_controller: WorkflowController, fake_githubkit: FakeGitHubKit):
        _ = await files_selected_controller.generate_summaries()
        _ = await files_selected_controller.generate_code()

        fake_githubkit.failures["create_pull"] = request_failed(422, "/repos/octocat/hello-world/pulls")

        state: WorkflowState = await files_selected_controller.create_pull_request()

        assert state.phase == "code-ready"
        assert state.error == "Failed to create pull request"
        assert state.busy is False

    async def test_busy_controller_refuses_requests(self, files_selected_controller: WorkflowController):
        _ = files_selected_controller.dispatch(RequestStarted(action="generate test summaries"))

        with pytest.raises(WorkflowBusyError):
            _ = await files_selected_controller.generate_summaries()

        with pytest.raises(WorkflowBusyError):
            _ = await files_selected_controller.create_pull_request()

    async def test_dismiss_error(self, files_selected_controller: WorkflowController):
        _ = await files_selected_controller.create_pull_request()

        assert files_selected_controller.dismiss_error().error is None
