"""GitHub OAuth App web flow: authorize redirect and code exchange."""

import secrets
from logging import Logger, getLogger
from typing import Any
from urllib.parse import urlencode

from githubkit import GitHub as GitHubKit
from githubkit.auth import OAuthAppAuthStrategy, OAuthTokenAuthStrategy, OAuthWebAuthStrategy
from githubkit.exception import GitHubException as GitHubKitGitHubException

from github_testgen.clients.errors.github import ClientError
from github_testgen.clients.github import GitHubTestGenClient
from github_testgen.clients.models.github import Identity

AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
REPOSITORY_SCOPE = "repo"


class OAuthExchangeError(ClientError):
    """The authorization code could not be exchanged for an access token."""

    status_code: int = 401

    def __init__(self, message: str | None = None):
        super().__init__(message="Failed to complete GitHub authentication", extra_info={"message": message})


def new_oauth_state() -> str:
    return secrets.token_urlsafe(32)


class GitHubOAuthClient:
    client_id: str
    client_secret: str
    callback_url: str | None
    scope: str
    logger: Logger

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        callback_url: str | None = None,
        scope: str = REPOSITORY_SCOPE,
        logger: Logger | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self.scope = scope
        self.logger = logger or getLogger(__name__)

    def authorize_url(self, state: str) -> str:
        """Build the URL the user is redirected to in order to grant repository access."""

        params: dict[str, str] = {"client_id": self.client_id, "scope": self.scope, "state": state}

        if self.callback_url:
            params["redirect_uri"] = self.callback_url

        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for an access token."""

        web_auth: OAuthWebAuthStrategy = OAuthAppAuthStrategy(self.client_id, self.client_secret).as_web_user(
            code=code, redirect_uri=self.callback_url
        )

        github: GitHubKit[Any] = GitHubKit(web_auth)

        try:
            token_auth: OAuthTokenAuthStrategy = await web_auth.async_exchange_token(github)
        except GitHubKitGitHubException as e:
            self.logger.exception(f"Failed to exchange OAuth code: {e}")
            raise OAuthExchangeError(message=str(e)) from e

        if not token_auth.token:
            raise OAuthExchangeError(message="No access token in exchange response")

        return token_auth.token

    async def authenticate(self, code: str) -> Identity:
        """Complete the web flow and resolve the identity of the user who granted access."""

        access_token: str = await self.exchange_code(code=code)

        identity: Identity = await GitHubTestGenClient(access_token=access_token, logger=self.logger).get_identity()

        self.logger.info(f"Authenticated GitHub user {identity.login}")

        return identity
