"""In-memory, server-side session store keyed by an opaque session id."""

import secrets
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from logging import Logger, getLogger

from pydantic import BaseModel, Field

from github_testgen.clients.models.github import Identity
from github_testgen.settings import ONE_DAY_IN_SECONDS


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class Session(BaseModel):
    """An authenticated session. Owns exactly one identity for its whole lifetime."""

    id: str = Field(repr=False, description="The opaque id of the session.")
    identity: Identity = Field(description="The identity bound to the session.")
    created_at: datetime = Field(description="When the session was created.")
    expires_at: datetime = Field(description="When the session expires.")

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class SessionStore:
    ttl: timedelta
    clock: Callable[[], datetime]
    logger: Logger

    def __init__(
        self,
        ttl_seconds: int = ONE_DAY_IN_SECONDS,
        clock: Callable[[], datetime] = utc_now,
        logger: Logger | None = None,
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock
        self.logger = logger or getLogger(__name__)
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, identity: Identity) -> Session:
        """Create a session for the identity. Abandoned sessions that have expired are dropped first."""

        if purged := self.purge_expired():
            self.logger.info(f"Purged {purged} expired sessions")

        now: datetime = self.clock()

        session = Session(id=secrets.token_urlsafe(32), identity=identity, created_at=now, expires_at=now + self.ttl)

        with self._lock:
            self._sessions[session.id] = session

        self.logger.info(f"Created session for {identity.login} expiring at {session.expires_at.isoformat()}")

        return session

    def get(self, session_id: str | None) -> Session | None:
        """Get a live session. Expired sessions are removed and reported as missing."""

        if not session_id:
            return None

        with self._lock:
            session: Session | None = self._sessions.get(session_id)

            if session is None:
                return None

            if session.is_expired(now=self.clock()):
                del self._sessions[session_id]
                self.logger.info(f"Session for {session.identity.login} expired")
                return None

            return session

    def delete(self, session_id: str | None) -> bool:
        if not session_id:
            return False

        with self._lock:
            session: Session | None = self._sessions.pop(session_id, None)

        if session is not None:
            self.logger.info(f"Ended session for {session.identity.login}")

        return session is not None

    def purge_expired(self) -> int:
        now: datetime = self.clock()

        with self._lock:
            expired: list[str] = [session_id for session_id, session in self._sessions.items() if session.is_expired(now=now)]
            for session_id in expired:
                del self._sessions[session_id]

        return len(expired)
