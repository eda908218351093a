"""The workflow as a typed state and a reducer over user and API actions.

The state is immutable. Every change goes through `reduce`, which either returns the next state or raises
`InvalidTransitionError` when the action is not allowed in the current phase.
"""

from collections import Counter
from collections.abc import Sequence
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field

from github_testgen.clients.models.github import DirectoryFile, DirectoryListing, RepositorySummary
from github_testgen.servers.models.testcases import SourceFile
from github_testgen.workflow.errors import InvalidTransitionError

Phase = Literal[
    "unauthenticated",
    "authenticated-no-repo",
    "repo-selected",
    "files-selected",
    "summaries-ready",
    "code-ready",
    "pr-created",
]

ROOT_PATH = ""


class UserProfile(BaseModel):
    """The signed-in user, as reported by the API."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="The id of the user.")
    login: str = Field(description="The login of the user.")
    name: str | None = Field(default=None, description="The display name of the user.")
    avatar_url: str | None = Field(default=None, description="The avatar URL of the user.")
    html_url: str | None = Field(default=None, description="The profile URL of the user.")


class SelectedFile(BaseModel):
    """A directory listing file with its fetched content. Its language is the file extension."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="The name of the file.")
    path: str = Field(description="The path of the file.")
    language: str = Field(description="The language tag of the file.")
    content: str = Field(description="The text content of the file.")

    @classmethod
    def from_directory_file(cls, file: DirectoryFile, content: str) -> Self:
        return cls(name=file.name, path=file.path, language=file.extension, content=content)

    def to_source_file(self) -> SourceFile:
        return SourceFile(filename=self.name, language=self.language, content=self.content)


def primary_language(selected_files: Sequence[SelectedFile]) -> str | None:
    """The most frequent language among the files. Ties go to the language seen first."""

    if not selected_files:
        return None

    counts: Counter[str] = Counter(file.language for file in selected_files)

    language, _ = counts.most_common(1)[0]

    return language


class WorkflowState(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserProfile | None = None
    repositories: tuple[RepositorySummary, ...] = ()

    selected_repo: str | None = None
    listing: DirectoryListing | None = None
    path_stack: tuple[str, ...] = (ROOT_PATH,)
    selected_files: tuple[SelectedFile, ...] = ()

    summaries: tuple[str, ...] = ()
    raw_summary_text: str = ""
    test_code: str = ""
    pr_url: str | None = None

    busy: bool = False
    error: str | None = None

    @property
    def phase(self) -> Phase:  # noqa: PLR0911
        if self.user is None:
            return "unauthenticated"
        if self.pr_url:
            return "pr-created"
        if self.test_code:
            return "code-ready"
        if self.summaries:
            return "summaries-ready"
        if self.selected_files:
            return "files-selected"
        if self.selected_repo:
            return "repo-selected"
        return "authenticated-no-repo"

    @property
    def current_path(self) -> str:
        return self.path_stack[-1]

    @property
    def default_branch(self) -> str | None:
        return self.listing.default_branch if self.listing else None

    def is_selected(self, path: str) -> bool:
        return any(file.path == path for file in self.selected_files)

    def source_files(self) -> list[SourceFile]:
        return [file.to_source_file() for file in self.selected_files]


class LoggedIn(BaseModel):
    user: UserProfile


class LoggedOut(BaseModel):
    pass


class RepositoriesLoaded(BaseModel):
    repositories: list[RepositorySummary]


class RepositorySelected(BaseModel):
    full_name: str


class DirectoryLoaded(BaseModel):
    listing: DirectoryListing


class FolderEntered(BaseModel):
    path: str


class FolderLeft(BaseModel):
    pass


class FileToggled(BaseModel):
    """Select a file with its content, or deselect it when it is already selected."""

    file: DirectoryFile
    content: str | None = None


class SummariesReady(BaseModel):
    summaries: list[str]
    raw_text: str


class CodeReady(BaseModel):
    test_code: str


class PullRequestCreated(BaseModel):
    url: str


class RequestStarted(BaseModel):
    action: str


class RequestFailed(BaseModel):
    message: str


class ErrorDismissed(BaseModel):
    pass


Action = (
    LoggedIn
    | LoggedOut
    | RepositoriesLoaded
    | RepositorySelected
    | DirectoryLoaded
    | FolderEntered
    | FolderLeft
    | FileToggled
    | SummariesReady
    | CodeReady
    | PullRequestCreated
    | RequestStarted
    | RequestFailed
    | ErrorDismissed
)


_GENERATED_RESET: dict[str, Any] = {"summaries": (), "raw_summary_text": "", "test_code": "", "pr_url": None}


def _require(state: WorkflowState, action: Action, condition: bool, reason: str) -> None:
    if not condition:
        raise InvalidTransitionError(action=type(action).__name__, phase=state.phase, reason=reason)


def reduce(state: WorkflowState, action: Action) -> WorkflowState:  # noqa: PLR0911, PLR0912
    """Apply an action to the state and return the next state."""

    match action:
        case LoggedIn(user=user):
            return state.model_copy(update={"user": user, "busy": False})

        case LoggedOut():
            return WorkflowState()

        case RequestStarted():
            _require(state, action, not state.busy, "a request is already in progress")
            return state.model_copy(update={"busy": True, "error": None})

        case RequestFailed(message=message):
            return state.model_copy(update={"busy": False, "error": message})

        case ErrorDismissed():
            return state.model_copy(update={"error": None})

    _require(state, action, state.user is not None, "not signed in")

    match action:
        case RepositoriesLoaded(repositories=repositories):
            return state.model_copy(update={"repositories": tuple(repositories), "busy": False})

        case RepositorySelected(full_name=full_name):
            return state.model_copy(
                update={
                    "selected_repo": full_name,
                    "listing": None,
                    "path_stack": (ROOT_PATH,),
                    "selected_files": (),
                    **_GENERATED_RESET,
                    "error": None,
                }
            )

    _require(state, action, state.selected_repo is not None, "no repository selected")

    match action:
        case DirectoryLoaded(listing=listing):
            return state.model_copy(update={"listing": listing, "busy": False})

        case FolderEntered(path=path):
            return state.model_copy(update={"path_stack": (*state.path_stack, path)})

        case FolderLeft():
            if len(state.path_stack) <= 1:
                return state
            return state.model_copy(update={"path_stack": state.path_stack[:-1]})

        case FileToggled(file=file, content=content):
            if state.is_selected(file.path):
                remaining = tuple(selected for selected in state.selected_files if selected.path != file.path)
                if not remaining:
                    # Results for an empty selection are stale.
                    return state.model_copy(update={"selected_files": remaining, **_GENERATED_RESET, "busy": False})
                return state.model_copy(update={"selected_files": remaining, "busy": False})

            _require(state, action, content is not None, "file content is required to select a file")

            selected = SelectedFile.from_directory_file(file=file, content=content or "")
            return state.model_copy(update={"selected_files": (*state.selected_files, selected), "busy": False})

        case SummariesReady(summaries=summaries, raw_text=raw_text):
            _require(state, action, bool(state.selected_files), "select at least one file")
            _require(state, action, bool(summaries), "no summaries were extracted")
            return state.model_copy(
                update={
                    "summaries": tuple(summaries),
                    "raw_summary_text": raw_text,
                    "test_code": "",
                    "pr_url": None,
                    "busy": False,
                }
            )

        case CodeReady(test_code=test_code):
            _require(state, action, bool(state.summaries), "generate summaries first")
            _require(state, action, bool(state.selected_files), "select at least one file")
            _require(state, action, bool(test_code.strip()), "no test code was extracted")
            return state.model_copy(update={"test_code": test_code, "pr_url": None, "busy": False})

        case PullRequestCreated(url=url):
            _require(state, action, bool(state.test_code.strip()), "no test code to submit")
            _require(state, action, bool(state.selected_files), "select at least one file")
            return state.model_copy(update={"pr_url": url, "busy": False})

    msg = f"Unknown workflow action: {type(action).__name__}"
    raise TypeError(msg)
