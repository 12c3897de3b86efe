"""Login sessions for the Web API.

A login session maps an opaque session ID (sent as the `session_id` cookie
or the `X-Session-Id` header) to a student. Sessions expire after the
configured login timeout without activity.
"""

from __future__ import annotations

import asyncio
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from fastapi import Cookie, Header, HTTPException, status

from precalc.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

SESSION_COOKIE = "session_id"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LoginSession:
    """A logged-in student."""

    session_id: str
    student_id: str
    created_at: datetime = field(default_factory=_now)
    last_seen: datetime = field(default_factory=_now)
    timeout_minutes: int = 480

    @property
    def expires_at(self) -> datetime:
        return self.last_seen + timedelta(minutes=self.timeout_minutes)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or _now()) > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "student_id": self.student_id,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }


class LoginSessionManager:
    """Active login sessions, guarded by an asyncio lock."""

    def __init__(self):
        self._sessions: dict[str, LoginSession] = {}
        self._lock = asyncio.Lock()

    async def create_session(self, student_id: str) -> LoginSession:
        session = LoginSession(
            session_id=secrets.token_hex(16),
            student_id=student_id,
            timeout_minutes=load_app_config().sessions.login_timeout_minutes,
        )
        async with self._lock:
            self._sessions[session.session_id] = session

        logger.info("login_session_created", student_id=student_id)
        return session

    async def get_session(self, session_id: str, now: datetime | None = None) -> LoginSession | None:
        """Get a live session and refresh its activity time."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.is_expired(now):
                del self._sessions[session_id]
                logger.info("login_session_expired", student_id=session.student_id)
                return None
            session.last_seen = now or _now()
            return session

    async def end_session(self, session_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return False
        logger.info("login_session_ended", student_id=session.student_id)
        return True

    async def get_session_count(self) -> int:
        async with self._lock:
            return len(self._sessions)


# Global login session manager instance
_login_manager: LoginSessionManager | None = None


def get_login_manager() -> LoginSessionManager:
    """Get the global login session manager instance."""
    global _login_manager
    if _login_manager is None:
        _login_manager = LoginSessionManager()
    return _login_manager


def reset_login_manager() -> None:
    """Reset the login session manager (for testing)."""
    global _login_manager
    _login_manager = None


def not_logged_in() -> HTTPException:
    """401 that sends the client back to the home page."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not logged in",
        headers={"Location": "/"},
    )


async def require_login(
    session_id: str | None = Cookie(default=None),
    x_session_id: str | None = Header(default=None),
) -> LoginSession:
    """FastAPI dependency: the caller's login session, or 401."""
    token = x_session_id or session_id
    if not token:
        raise not_logged_in()

    session = await get_login_manager().get_session(token)
    if session is None:
        raise not_logged_in()
    return session
