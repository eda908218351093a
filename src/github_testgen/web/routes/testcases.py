"""Test case summary and test code generation endpoints."""

from fastapi import APIRouter

from github_testgen.servers.models.testcases import CodeRequest, CodeResult, SummariesRequest, SummaryResult
from github_testgen.web.deps import SessionDep, TestCaseServerDep

router = APIRouter(prefix="/testcases", tags=["testcases"])


@router.post("/summaries")
async def generate_summaries(session: SessionDep, testcase_server: TestCaseServerDep, body: SummariesRequest) -> SummaryResult:
    """An empty `summaries` list means the reply held nothing usable; the caller should retry with other files."""

    return await testcase_server.summarize(files=body.files)


@router.post("/code")
async def generate_code(session: SessionDep, testcase_server: TestCaseServerDep, body: CodeRequest) -> CodeResult:
    return await testcase_server.generate_code(summary=body.summary, files=body.files)
