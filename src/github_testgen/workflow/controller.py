"""Drives the workflow state machine against the HTTP API."""

from collections.abc import Awaitable, Callable
from logging import Logger, getLogger

import httpx

from github_testgen.clients.models.github import DirectoryFile, DirectoryListing, RepositorySummary
from github_testgen.servers.models.testcases import CodeResult, SummaryResult
from github_testgen.workflow.api import ApiClient
from github_testgen.workflow.errors import ApiError, InvalidTransitionError, WorkflowBusyError
from github_testgen.workflow.state import (
    Action,
    CodeReady,
    DirectoryLoaded,
    ErrorDismissed,
    FileToggled,
    FolderEntered,
    FolderLeft,
    LoggedIn,
    LoggedOut,
    PullRequestCreated,
    RepositoriesLoaded,
    RepositorySelected,
    RequestFailed,
    RequestStarted,
    SummariesReady,
    UserProfile,
    WorkflowState,
    primary_language,
    reduce,
)

NO_FILES_SELECTED = "Please select at least one file"
NO_SUMMARIES_RETURNED = "No summaries returned. Try different files."
NO_TEST_CODE_RETURNED = "No test code returned. Try another summary or file."
NO_TEST_CODE_TO_SUBMIT = "No test code to submit"


class WorkflowController:
    """Runs one request at a time. Failed requests end up in `state.error` rather than raising."""

    api_client: ApiClient
    logger: Logger

    def __init__(self, api_client: ApiClient, state: WorkflowState | None = None, logger: Logger | None = None):
        self.api_client = api_client
        self.logger = logger or getLogger(__name__)
        self._state: WorkflowState = state or WorkflowState()

    @property
    def state(self) -> WorkflowState:
        return self._state

    def dispatch(self, action: Action) -> WorkflowState:
        self._state = reduce(self._state, action)
        return self._state

    def _complete(self, action: Action) -> WorkflowState:
        try:
            return self.dispatch(action)
        except InvalidTransitionError as e:
            _ = self.dispatch(RequestFailed(message=e.message))
            raise

    def _ensure_idle(self, action: str) -> None:
        if self._state.busy:
            raise WorkflowBusyError(action=action)

    async def _run[T](self, action: str, call: Callable[[], Awaitable[T]]) -> T | None:
        """Run an API call with the busy flag raised. Returns None when the call failed."""

        self._ensure_idle(action)

        _ = self.dispatch(RequestStarted(action=action))

        try:
            return await call()
        except ApiError as e:
            _ = self.dispatch(RequestFailed(message=e.message))
        except httpx.HTTPError as e:
            self.logger.warning(f"Failed to {action}: {e}")
            _ = self.dispatch(RequestFailed(message=f"Failed to {action}"))

        return None

    def dismiss_error(self) -> WorkflowState:
        return self.dispatch(ErrorDismissed())

    async def check_auth(self) -> WorkflowState:
        user: UserProfile | None = await self._run("load user", self.api_client.whoami)

        if user is None:
            if self._state.error is not None:
                return self._state
            return self.dispatch(LoggedOut())

        return self._complete(LoggedIn(user=user))

    async def logout(self) -> WorkflowState:
        self._ensure_idle("log out")

        try:
            await self.api_client.logout()
        except (ApiError, httpx.HTTPError) as e:
            self.logger.warning(f"Logout request failed, clearing local state anyway: {e}")

        return self.dispatch(LoggedOut())

    async def load_repositories(self) -> WorkflowState:
        repositories: list[RepositorySummary] | None = await self._run("load repositories", self.api_client.list_repositories)

        if repositories is None:
            return self._state

        return self._complete(RepositoriesLoaded(repositories=repositories))

    async def _load_directory(self) -> WorkflowState:
        repo: str | None = self._state.selected_repo
        path: str = self._state.current_path

        if repo is None:
            return self._state

        listing: DirectoryListing | None = await self._run("load files", lambda: self.api_client.list_directory(repo=repo, path=path))

        if listing is None:
            return self._state

        return self._complete(DirectoryLoaded(listing=listing))

    async def select_repository(self, full_name: str) -> WorkflowState:
        self._ensure_idle("select repository")

        _ = self.dispatch(RepositorySelected(full_name=full_name))

        return await self._load_directory()

    async def enter_folder(self, path: str) -> WorkflowState:
        self._ensure_idle("open folder")

        _ = self.dispatch(FolderEntered(path=path))

        return await self._load_directory()

    async def leave_folder(self) -> WorkflowState:
        self._ensure_idle("leave folder")

        if len(self._state.path_stack) <= 1:
            return self._state

        _ = self.dispatch(FolderLeft())

        return await self._load_directory()

    async def toggle_file(self, file: DirectoryFile) -> WorkflowState:
        """Deselect a selected file, or fetch its content and select it."""

        self._ensure_idle("select file")

        if self._state.is_selected(file.path):
            return self.dispatch(FileToggled(file=file))

        repo: str | None = self._state.selected_repo

        if repo is None:
            return self.dispatch(FileToggled(file=file))

        branch: str | None = self._state.default_branch

        content: str | None = await self._run(
            "load file content", lambda: self.api_client.read_file(repo=repo, path=file.path, branch=branch)
        )

        if content is None:
            return self._state

        return self._complete(FileToggled(file=file, content=content))

    async def generate_summaries(self) -> WorkflowState:
        self._ensure_idle("generate test summaries")

        if not self._state.selected_files:
            return self.dispatch(RequestFailed(message=NO_FILES_SELECTED))

        files = self._state.source_files()

        result: SummaryResult | None = await self._run("generate test summaries", lambda: self.api_client.generate_summaries(files=files))

        if result is None:
            return self._state

        if not result.summaries:
            return self.dispatch(RequestFailed(message=NO_SUMMARIES_RETURNED))

        return self._complete(SummariesReady(summaries=result.summaries, raw_text=result.raw_text))

    async def generate_code(self, summary: str | None = None) -> WorkflowState:
        """Generate test code for one summary, or for all of them when no summary is given."""

        self._ensure_idle("generate test code")

        summary = summary if summary is not None else self._state.raw_summary_text

        if not summary.strip() or not self._state.selected_files:
            return self._state

        files = self._state.source_files()

        result: CodeResult | None = await self._run("generate test code", lambda: self.api_client.generate_code(summary=summary, files=files))

        if result is None:
            return self._state

        if not result.test_code.strip():
            return self.dispatch(RequestFailed(message=NO_TEST_CODE_RETURNED))

        return self._complete(CodeReady(test_code=result.test_code))

    async def create_pull_request(self) -> WorkflowState:
        self._ensure_idle("create pull request")

        repo: str | None = self._state.selected_repo
        test_code: str = self._state.test_code

        if repo is None or not test_code.strip() or not self._state.selected_files:
            return self.dispatch(RequestFailed(message=NO_TEST_CODE_TO_SUBMIT))

        language: str | None = primary_language(self._state.selected_files)

        url: str | None = await self._run(
            "create pull request", lambda: self.api_client.create_pull_request(repo=repo, test_code=test_code, language=language)
        )

        if url is None:
            return self._state

        return self._complete(PullRequestCreated(url=url))
