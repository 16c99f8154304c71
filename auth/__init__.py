"""Admin authentication: per-admin session providers."""

from .session import (
    AdminSession,
    SessionProvider,
    SupabaseSessionProvider,
    add_session_listener,
    get_admin_client,
    get_session_provider,
)

__all__ = [
    "AdminSession",
    "SessionProvider",
    "SupabaseSessionProvider",
    "add_session_listener",
    "get_admin_client",
    "get_session_provider",
]
