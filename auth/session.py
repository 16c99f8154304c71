"""
Current-session providers for the admin area.

Each admin signs in with a Supabase Auth account (email and password)
through a Supabase client of their own, kept apart from the store client
that serves public booking traffic. The rest of the bot only asks a
provider whether a valid session exists and may subscribe to
sign-in/sign-out changes; the auth implementation stays inside Supabase.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from supabase import create_client

from config import settings
from utils.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

SessionListener = Callable[[str, Optional["AdminSession"]], None]


@dataclass(frozen=True)
class AdminSession:
    """The signed-in admin as seen by the bot."""

    user_id: str
    email: Optional[str]
    access_token: str
    expires_at: Optional[int] = None


class SessionProvider(Protocol):
    """What the admin area needs from an auth backend."""

    def get_session(self) -> Optional[AdminSession]:
        ...

    def sign_in(self, email: str, password: str) -> AdminSession:
        ...

    def sign_out(self) -> None:
        ...

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        ...


def _to_admin_session(session: Any) -> Optional[AdminSession]:
    if session is None or getattr(session, "user", None) is None:
        return None
    return AdminSession(
        user_id=str(session.user.id),
        email=getattr(session.user, "email", None),
        access_token=session.access_token,
        expires_at=getattr(session, "expires_at", None),
    )


class SupabaseSessionProvider:
    """SessionProvider backed by supabase-py's auth client."""

    def __init__(self, client):
        """
        Args:
            client: A supabase Client (its `.auth` is used)
        """
        self.client = client
        self._subscriptions: List[Any] = []

    def get_session(self) -> Optional[AdminSession]:
        """
        Current session, or None.

        A stored session only counts when the auth server still returns
        its user; expired or revoked tokens read as signed out.
        """
        try:
            session = self.client.auth.get_session()
            if session is None:
                return None
            user_response = self.client.auth.get_user()
        except Exception as e:
            logger.warning(f"Session check failed: {e}")
            return None

        if not user_response or not getattr(user_response, "user", None):
            return None
        return _to_admin_session(session)

    def sign_in(self, email: str, password: str) -> AdminSession:
        """
        Sign in with email and password.

        Raises:
            AuthenticationError: Invalid credentials or auth server failure
        """
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            logger.info(f"Admin sign-in rejected for {email}: {e}")
            raise AuthenticationError("Email ou senha inválidos.") from e

        admin_session = _to_admin_session(getattr(response, "session", None))
        if admin_session is None:
            raise AuthenticationError("Email ou senha inválidos.")
        logger.info(f"Admin signed in: {admin_session.email}")
        return admin_session

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            logger.error(f"Sign-out failed: {e}", exc_info=True)
            raise AuthenticationError("Falha ao sair.") from e

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Call `listener(event_name, session_or_none)` on every auth change.

        Returns:
            A function that removes the listener
        """

        def _on_change(event, session) -> None:
            name = getattr(event, "value", str(event))
            listener(name, _to_admin_session(session))

        subscription = self.client.auth.on_auth_state_change(_on_change)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            subscription.unsubscribe()
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe


_session_providers: Dict[int, SupabaseSessionProvider] = {}
_listeners: List[SessionListener] = []


def _provider_for(telegram_id: int) -> SupabaseSessionProvider:
    provider = _session_providers.get(telegram_id)
    if provider is None:
        provider = SupabaseSessionProvider(
            create_client(settings.supabase_url, settings.supabase_key)
        )
        for listener in _listeners:
            provider.subscribe(listener)
        _session_providers[telegram_id] = provider
    return provider


def get_session_provider(telegram_id: int) -> SessionProvider:
    """
    Session provider for one admin Telegram account.

    Every admin gets a Supabase client of their own, never the one public
    traffic goes through: signing in switches that client's requests to
    the admin's token, and one admin's sign-in must not open the panel
    for another.
    """
    return _provider_for(telegram_id)


def get_admin_client(telegram_id: int):
    """The Supabase client carrying this admin's session, for admin-only queries."""
    return _provider_for(telegram_id).client


def add_session_listener(listener: SessionListener) -> None:
    """Subscribe `listener` to every admin's session, current and future."""
    _listeners.append(listener)
    for provider in _session_providers.values():
        provider.subscribe(listener)
