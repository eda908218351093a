"""GitHub OAuth login, callback, logout and current-user endpoints."""

from logging import getLogger
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from github_testgen.clients.errors.github import ClientError
from github_testgen.clients.models.github import Identity
from github_testgen.clients.oauth import GitHubOAuthClient, new_oauth_state
from github_testgen.settings import Settings
from github_testgen.web.deps import OAUTH_STATE_KEY, SESSION_ID_KEY, SessionDep, get_session_store
from github_testgen.web.sessions import Session, SessionStore

logger = getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=302)


@router.get("/login")
@router.get("/github")
async def begin_auth(request: Request) -> RedirectResponse:
    oauth_client: GitHubOAuthClient = request.app.state.oauth_client

    state: str = new_oauth_state()
    request.session[OAUTH_STATE_KEY] = state

    return _redirect(oauth_client.authorize_url(state=state))


@router.get("/callback")
@router.get("/github/callback")
async def complete_auth(request: Request, code: str | None = None, state: str | None = None) -> RedirectResponse:
    settings: Settings = request.app.state.settings
    oauth_client: GitHubOAuthClient = request.app.state.oauth_client
    session_store: SessionStore = get_session_store(request)

    failure_redirect: RedirectResponse = _redirect(f"{settings.frontend_origin}/")

    expected_state: str | None = request.session.pop(OAUTH_STATE_KEY, None)

    if not code:
        logger.warning("OAuth callback without an authorization code")
        return failure_redirect

    if not state or state != expected_state:
        logger.warning("OAuth callback with a missing or mismatched state")
        return failure_redirect

    try:
        identity: Identity = await oauth_client.authenticate(code=code)
    except ClientError as e:
        logger.warning(f"OAuth callback failed: {e}")
        return failure_redirect

    _ = session_store.delete(request.session.get(SESSION_ID_KEY))

    session: Session = session_store.create(identity=identity)
    request.session[SESSION_ID_KEY] = session.id

    return _redirect(f"{settings.frontend_origin}/dashboard")


@router.get("/logout")
async def end_session(request: Request) -> dict[str, bool]:
    session_store: SessionStore = get_session_store(request)

    _ = session_store.delete(request.session.get(SESSION_ID_KEY))

    request.session.clear()

    return {"success": True}


@router.get("/whoami")
@router.get("/user")
async def current_user(session: SessionDep) -> dict[str, Any]:
    return {"user": session.identity.model_dump(mode="json")}
