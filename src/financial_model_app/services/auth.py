"""Thin wrapper around the hosted Supabase auth service.

The engine only needs the current session, change notifications and sign-out;
sign-in and sign-up are exposed for the API's auth routes. Failures are
re-raised as ``AuthServiceError`` with the provider's message so they can be
classified for the user.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from pydantic import BaseModel
from supabase import Client, create_client

from ..core.config import Settings, get_settings
from ..core.logging import get_logger
from .errors import AuthServiceError, DataAccessError

logger = get_logger(__name__)


def create_supabase_client(settings: Settings | None = None) -> Client:
    settings = settings or get_settings()
    if not settings.SUPABASE_URL or not settings.SUPABASE_ANON_KEY:
        raise DataAccessError("Supabase is not configured: set SUPABASE_URL and SUPABASE_ANON_KEY")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)


class SessionInfo(BaseModel):
    user_id: str
    email: Optional[str] = None
    access_token: str
    expires_at: Optional[int] = None


def _to_session_info(session: Any) -> Optional[SessionInfo]:
    if session is None or getattr(session, "user", None) is None:
        return None
    return SessionInfo(
        user_id=str(session.user.id),
        email=getattr(session.user, "email", None),
        access_token=session.access_token,
        expires_at=getattr(session, "expires_at", None),
    )


class AuthService:
    def __init__(self, client: Optional[Client] = None):
        self._client = client or create_supabase_client()

    def get_current_session(self) -> Optional[SessionInfo]:
        try:
            session = self._client.auth.get_session()
        except Exception as e:
            logger.error("Session check failed: %s", e)
            raise AuthServiceError(f"Failed to check authentication status: {e}") from e
        return _to_session_info(session)

    def subscribe(self, callback: Callable[[str, Optional[SessionInfo]], None]) -> Callable[[], None]:
        """
        Register ``callback(event, session)`` for session changes.

        Returns a function that removes the subscription.
        """

        def _listener(event: Any, session: Any) -> None:
            event_name = getattr(event, "value", event)
            logger.info("Auth event: %s (session exists: %s)", event_name, session is not None)
            callback(str(event_name), _to_session_info(session))

        subscription = self._client.auth.on_auth_state_change(_listener)
        return subscription.unsubscribe

    def sign_in(self, email: str, password: str) -> SessionInfo:
        try:
            response = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.warning("Sign in failed for %s: %s", email, e)
            raise AuthServiceError(str(e)) from e
        session = _to_session_info(response.session)
        if session is None:
            raise AuthServiceError("Email not confirmed")
        return session

    def sign_up(self, email: str, password: str) -> Optional[SessionInfo]:
        """Register a user; returns ``None`` while email confirmation is pending."""
        try:
            response = self._client.auth.sign_up({"email": email, "password": password})
        except Exception as e:
            logger.warning("Sign up failed for %s: %s", email, e)
            raise AuthServiceError(str(e), status_code=400) from e
        return _to_session_info(response.session)

    def sign_out(self) -> None:
        try:
            self._client.auth.sign_out()
        except Exception as e:
            logger.error("Sign out failed: %s", e)
            raise AuthServiceError(f"Failed to sign out: {e}", status_code=500) from e
        logger.info("Signed out")
