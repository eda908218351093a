"""FastAPI application factory."""

import time
from logging import Logger, getLogger

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from github_testgen.clients.github import GitHubTestGenClient
from github_testgen.clients.oauth import GitHubOAuthClient
from github_testgen.sampling.generator import TextGenerator, get_text_generator
from github_testgen.servers.testcases import TestCaseServer
from github_testgen.settings import Settings
from github_testgen.web.deps import GitHubClientFactory
from github_testgen.web.errors import register_exception_handlers
from github_testgen.web.routes.auth import router as auth_router
from github_testgen.web.routes.health import router as health_router
from github_testgen.web.routes.repositories import router as repositories_router
from github_testgen.web.routes.testcases import router as testcases_router
from github_testgen.web.sessions import SessionStore

SESSION_COOKIE_NAME = "testgen.sid"

logger: Logger = getLogger(__name__)


def api_router() -> APIRouter:
    router = APIRouter(prefix="/api")
    router.include_router(repositories_router)
    router.include_router(testcases_router)
    return router


def create_app(
    settings: Settings,
    session_store: SessionStore | None = None,
    text_generator: TextGenerator | None = None,
    github_client_factory: GitHubClientFactory | None = None,
    oauth_client: GitHubOAuthClient | None = None,
) -> FastAPI:
    app = FastAPI(title="GitHub TestGen")

    app.state.settings = settings
    app.state.session_store = session_store or SessionStore(ttl_seconds=settings.session_ttl_seconds)
    app.state.testcase_server = TestCaseServer(
        text_generator=text_generator or get_text_generator(api_key=settings.google_api_key, model=settings.google_model)
    )
    app.state.github_client_factory = github_client_factory or GitHubTestGenClient.for_identity
    app.state.oauth_client = oauth_client or GitHubOAuthClient(
        client_id=settings.github_client_id,
        client_secret=settings.github_client_secret,
        callback_url=settings.github_callback_url,
    )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next) -> Response:  # pyright: ignore[reportMissingParameterType, reportUnknownParameterType]
        start_time = time.monotonic()
        response: Response = await call_next(request)
        duration_ms = (time.monotonic() - start_time) * 1000
        logger.info(f"{request.method} {request.url.path} completed with {response.status_code} in {duration_ms:.2f}ms")
        return response

    # Outermost first: CORS, sessions, request logging.
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=SESSION_COOKIE_NAME,
        max_age=settings.session_ttl_seconds,
        same_site="lax",
        https_only=settings.is_production,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _ = register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(api_router())

    return app
