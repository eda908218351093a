"""Repository browsing, file content and pull request endpoints."""

from fastapi import APIRouter

from github_testgen.clients.models.github import DirectoryListing, PullRequestResult, RepositoryRef, RepositorySummary
from github_testgen.servers.models.testcases import PullRequestRequest, PullRequestResponse
from github_testgen.servers.shared.errors import MissingRequiredDataError
from github_testgen.web.deps import RequestContextDep
from github_testgen.web.errors import InvalidRequestError

router = APIRouter(tags=["repositories"])


@router.get("/repos")
async def list_repositories(context: RequestContextDep) -> list[RepositorySummary]:
    return await context.github_client.list_repositories()


@router.get("/files")
async def list_directory(context: RequestContextDep, repo: str | None = None, path: str = "") -> DirectoryListing:
    repository: RepositoryRef = RepositoryRef.parse(repo)

    return await context.github_client.list_directory(repository=repository, path=path)


@router.get("/content")
async def read_file(context: RequestContextDep, repo: str | None = None, path: str | None = None, branch: str | None = None) -> dict[str, str]:
    repository: RepositoryRef = RepositoryRef.parse(repo)

    if not path:
        raise InvalidRequestError("Missing path parameter")

    content: str = await context.github_client.read_file(repository=repository, path=path, branch=branch)

    return {"content": content}


@router.post("/create-pr")
async def open_test_pull_request(context: RequestContextDep, body: PullRequestRequest) -> PullRequestResponse:
    repository: RepositoryRef = RepositoryRef.parse(body.repo)

    if not body.test_code or not body.test_code.strip():
        raise MissingRequiredDataError(missing=["testCode"])

    result: PullRequestResult = await context.github_client.open_test_pull_request(
        repository=repository,
        test_code=body.test_code,
        language=body.language,
        file_name_hint=body.test_file_name_hint,
    )

    return PullRequestResponse(url=result.url)
