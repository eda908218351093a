"""Dependency helpers for API endpoints."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request
from pydantic import BaseModel, ConfigDict

from github_testgen.clients.github import GitHubTestGenClient
from github_testgen.clients.models.github import Identity
from github_testgen.servers.testcases import TestCaseServer
from github_testgen.web.errors import AuthenticationRequiredError
from github_testgen.web.sessions import Session, SessionStore

SESSION_ID_KEY = "session_id"
OAUTH_STATE_KEY = "oauth_state"

GitHubClientFactory = Callable[[Identity], GitHubTestGenClient]


class RequestContext(BaseModel):
    """Everything a gated handler needs about the caller, resolved once per request."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    session: Session
    github_client: GitHubTestGenClient

    @property
    def identity(self) -> Identity:
        return self.session.identity


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_testcase_server(request: Request) -> TestCaseServer:
    return request.app.state.testcase_server


async def require_session(request: Request) -> Session:
    """Resolve the session behind the session cookie, or fail with 401."""

    session_store: SessionStore = get_session_store(request)

    session: Session | None = session_store.get(request.session.get(SESSION_ID_KEY))

    if session is None:
        request.session.pop(SESSION_ID_KEY, None)
        raise AuthenticationRequiredError

    return session


async def get_request_context(request: Request, session: Annotated[Session, Depends(require_session)]) -> RequestContext:
    github_client_factory: GitHubClientFactory = request.app.state.github_client_factory

    return RequestContext(session=session, github_client=github_client_factory(session.identity))


SessionDep = Annotated[Session, Depends(require_session)]
RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]
TestCaseServerDep = Annotated[TestCaseServer, Depends(get_testcase_server)]
