import time
from collections.abc import Awaitable, Callable, Sequence
from logging import Logger, getLogger
from typing import TYPE_CHECKING, Any, Literal, overload

import httpx
from githubkit import GitHub as GitHubKit
from githubkit.auth.token import TokenAuthStrategy
from githubkit.exception import GitHubException as GitHubKitGitHubException
from githubkit.exception import RequestFailed as GitHubKitRequestFailed
from githubkit.response import Response as GitHubKitResponse

from github_testgen.clients.errors.github import (
    ClientError,
    PathIsDirectoryError,
    PullRequestCreationError,
    RequestError,
    ResourceNotFoundError,
    ResourceTypeMismatchError,
)
from github_testgen.clients.models.github import (
    DirectoryListing,
    GitReference,
    Identity,
    PullRequestResult,
    RepositoryRef,
    RepositorySummary,
    build_test_file_path,
)
from github_testgen.servers.shared.utility import GITHUBKIT_RESPONSE_TYPE, decode_content, encode_content, extract_response

if TYPE_CHECKING:
    from githubkit.versions.v2022_11_28.models import FullRepository as GitHubKitFullRepository

NOT_FOUND_ERROR = 404

DEFAULT_BRANCH = "main"
DEFAULT_PER_PAGE = 100

BRANCH_PREFIX = "add-tests-"
COMMIT_MESSAGE = "Add generated test cases"
PULL_REQUEST_TITLE = "Auto-generated test cases"
PULL_REQUEST_BODY = "This PR adds automatically generated test cases"


def get_githubkit_client(access_token: str) -> GitHubKit[TokenAuthStrategy]:
    # Failures surface to the user, who re-triggers the action.
    return GitHubKit[TokenAuthStrategy](auth=TokenAuthStrategy(token=access_token), auto_retry=False)


def new_branch_name(now: float | None = None) -> str:
    """Build a branch name that is unique per millisecond."""

    timestamp = now if now is not None else time.time()

    return f"{BRANCH_PREFIX}{int(timestamp * 1000)}"


class GitHubTestGenClient:
    """Repository content gateway for one authenticated identity."""

    access_token: str
    githubkit_client: GitHubKit[Any]
    http_client: httpx.AsyncClient | None
    logger: Logger

    log_requests: bool
    log_responses: bool
    log_on_error: bool

    def __init__(
        self,
        access_token: str,
        githubkit_client: GitHubKit[Any] | None = None,
        http_client: httpx.AsyncClient | None = None,
        logger: Logger | None = None,
        log_requests: bool = True,
        log_responses: bool = False,
        log_on_error: bool = True,
    ):
        self.access_token = access_token
        self.githubkit_client = githubkit_client or get_githubkit_client(access_token=access_token)
        self.http_client = http_client
        self.logger = logger or getLogger(__name__)
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.log_on_error = log_on_error

    @classmethod
    def for_identity(cls, identity: Identity, http_client: httpx.AsyncClient | None = None) -> "GitHubTestGenClient":
        return cls(access_token=identity.access_token, http_client=http_client)

    def _get_loggers(
        self, log_request: bool | None = None, log_response: bool | None = None, log_on_error: bool | None = None
    ) -> tuple[Callable[[str], Any], Callable[[str], Any], Callable[[BaseException | str], Any]]:
        request_logger = self.logger.info if log_request or self.log_requests else self.logger.debug
        response_logger = self.logger.info if log_response or self.log_responses else self.logger.debug
        error_logger = self.logger.exception if log_on_error or self.log_on_error else self.logger.debug
        return request_logger, response_logger, error_logger

    @overload
    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: Literal[False] = False,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None: ...

    @overload
    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: Literal[True] = True,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T: ...

    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        log_request: bool | None = None,
        log_response: bool | None = None,
        log_on_error: bool | None = None,
        error_on_not_found: bool | None = None,
        *,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T | None:
        """Perform a request and extract the response.

        Args:
            action: The action being performed.
            log_request: Whether to log the request.
            log_response: Whether to log the response.
            log_on_error: Whether to log on error.
            error_on_not_found: Whether to raise an error if the resource is not found.

        Raises:
            ResourceNotFoundError: If the resource is not found and error_on_not_found is True.
            RequestError: If the request fails.
        """

        request_logger, response_logger, error_logger = self._get_loggers(
            log_request=log_request, log_response=log_response, log_on_error=log_on_error
        )

        request_logger(f"Performing {action} using {method.__name__} with kwargs {request_args}")

        try:
            response: GitHubKitResponse[T] = await method(**request_args)
        except GitHubKitRequestFailed as e:
            if e.response.status_code == NOT_FOUND_ERROR:
                if error_on_not_found:
                    raise ResourceNotFoundError(action=action, resource=e.request.url.path) from e

                return None

            error_logger(f"RequestFailed error performing {action} using {method.__name__} with kwargs {request_args}: {e}")

            raise RequestError(action=action, message=str(e)) from e
        except GitHubKitGitHubException as e:
            error_logger(f"Error performing {action} using {method.__name__} with kwargs {request_args}: {e}")

            raise RequestError(action=action, message=str(e)) from e

        extracted_response = extract_response(response)

        response_logger(f"Extracted response for {action} using {method.__name__} with kwargs {request_args}: {extracted_response}")

        return extracted_response

    async def get_identity(self) -> Identity:
        """Get the authenticated user behind the access token."""

        user = await self._perform_rest_request(
            action="Get authenticated user",
            error_on_not_found=True,
            method=self.githubkit_client.rest.users.async_get_authenticated,
        )

        return Identity.from_user(user=user, access_token=self.access_token)

    async def list_repositories(self, per_page: int = DEFAULT_PER_PAGE) -> list[RepositorySummary]:
        """List every repository the authenticated user can access, following pagination to the last page."""

        repositories: dict[str, RepositorySummary] = {}
        page: int = 1

        while True:
            results: Sequence[Any] = await self._perform_rest_request(
                action="List repositories",
                error_on_not_found=True,
                method=self.githubkit_client.rest.repos.async_list_for_authenticated_user,
                per_page=per_page,
                page=page,
            )

            for result in results:
                repository = RepositorySummary.from_repository(repository=result)
                _ = repositories.setdefault(repository.full_name, repository)

            if len(results) < per_page:
                break

            page += 1

        self.logger.info(f"Listed {len(repositories)} repositories across {page} pages.")

        return list(repositories.values())

    async def get_default_branch(self, repository: RepositoryRef) -> str:
        """Get the default branch of a repository."""

        full_repository: GitHubKitFullRepository = await self._perform_rest_request(
            action="Get repository",
            error_on_not_found=True,
            method=self.githubkit_client.rest.repos.async_get,
            owner=repository.owner,
            repo=repository.name,
        )

        return full_repository.default_branch or DEFAULT_BRANCH

    async def list_directory(self, repository: RepositoryRef, path: str = "") -> DirectoryListing:
        """List the files and folders at a path on the default branch of a repository.

        Args:
            repository: The repository to list.
            path: The path of the directory. The root directory is the empty string.
        """

        default_branch: str = await self.get_default_branch(repository=repository)

        contents = await self._perform_rest_request(
            action="List directory",
            error_on_not_found=True,
            method=self.githubkit_client.rest.repos.async_get_content,
            owner=repository.owner,
            repo=repository.name,
            path=path,
            ref=default_branch,
        )

        content_items: list[Any] = list(contents) if isinstance(contents, list) else [contents]

        return DirectoryListing.from_content_items(content_items=content_items, default_branch=default_branch)

    async def read_file(self, repository: RepositoryRef, path: str, branch: str | None = None) -> str:
        """Read the decoded text content of a single file.

        Args:
            repository: The repository holding the file.
            path: The path of the file.
            branch: The branch to read the file from. Defaults to `main`.
        """

        action = "Get file"

        contents = await self._perform_rest_request(
            action=action,
            error_on_not_found=True,
            method=self.githubkit_client.rest.repos.async_get_content,
            owner=repository.owner,
            repo=repository.name,
            path=path,
            ref=branch or DEFAULT_BRANCH,
        )

        if isinstance(contents, list):
            raise PathIsDirectoryError(action=action, resource=path)

        if contents.type != "file":
            raise ResourceTypeMismatchError(action=action, resource=path, expected_type="file", actual_type=contents.type)

        if contents.encoding == "base64" and contents.content:
            return decode_content(contents.content)

        if contents.download_url:
            return await self._download(action=action, url=contents.download_url, resource=path)

        raise ResourceNotFoundError(action=action, resource=path, extra_info={"reason": "File content not available"})

    async def _download(self, action: str, url: str, resource: str) -> str:
        """Fetch raw file content from a download URL."""

        headers = {"Authorization": f"token {self.access_token}"}

        self.logger.info(f"Downloading raw content for {resource} from {url}")

        try:
            if self.http_client is not None:
                response = await self.http_client.get(url, headers=headers)
            else:
                async with httpx.AsyncClient() as http_client:
                    response = await http_client.get(url, headers=headers)

            _ = response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == NOT_FOUND_ERROR:
                raise ResourceNotFoundError(action=action, resource=resource) from e

            raise RequestError(action=action, message=str(e)) from e
        except httpx.HTTPError as e:
            raise RequestError(action=action, message=str(e)) from e

        return response.text

    async def get_git_ref(self, repository: RepositoryRef, ref: str) -> GitReference:
        """Get details about a git ref, for example `heads/main`."""

        git_ref = await self._perform_rest_request(
            action="Get git ref",
            error_on_not_found=True,
            method=self.githubkit_client.rest.git.async_get_ref,
            owner=repository.owner,
            repo=repository.name,
            ref=ref,
        )

        return GitReference.from_git_ref(git_ref=git_ref)

    async def open_test_pull_request(
        self,
        repository: RepositoryRef,
        test_code: str,
        language: str | None,
        file_name_hint: str | None = None,
    ) -> PullRequestResult:
        """Commit generated test code to a new branch and open a pull request against the default branch.

        The new branch is not deleted when a later step fails.

        Raises:
            PullRequestCreationError: If any step fails.
        """

        branch: str = new_branch_name()
        path: str = build_test_file_path(language=language, file_name_hint=file_name_hint)
        owner_repo: dict[str, str] = {"owner": repository.owner, "repo": repository.name}

        step: str = "Get default branch"
        branch_created: bool = False

        try:
            default_branch: str = await self.get_default_branch(repository=repository)

            step = "Get base ref"
            base_ref: GitReference = await self.get_git_ref(repository=repository, ref=f"heads/{default_branch}")

            step = "Create branch"
            _ = await self._perform_rest_request(
                action=step,
                error_on_not_found=True,
                method=self.githubkit_client.rest.git.async_create_ref,
                **owner_repo,
                ref=f"refs/heads/{branch}",
                sha=base_ref.sha,
            )
            branch_created = True

            step = "Commit test file"
            _ = await self._perform_rest_request(
                action=step,
                error_on_not_found=True,
                method=self.githubkit_client.rest.repos.async_create_or_update_file_contents,
                **owner_repo,
                path=path,
                message=COMMIT_MESSAGE,
                content=encode_content(test_code),
                branch=branch,
            )

            step = "Create pull request"
            pull_request = await self._perform_rest_request(
                action=step,
                error_on_not_found=True,
                method=self.githubkit_client.rest.pulls.async_create,
                **owner_repo,
                title=PULL_REQUEST_TITLE,
                head=branch,
                base=default_branch,
                body=PULL_REQUEST_BODY,
            )
        except ClientError as e:
            if branch_created:
                self.logger.warning(f"Branch {branch} on {repository} was left in place after {step} failed.")

            raise PullRequestCreationError(repository=repository.full_name, branch=branch, step=step, cause=e) from e

        self.logger.info(f"Opened pull request {pull_request.html_url} from {branch} on {repository}")

        return PullRequestResult(url=pull_request.html_url, branch=branch, path=path)
