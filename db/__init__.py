"""Database client and operations."""

from .supabase_client import SupabaseClient, get_admin_db_client, get_db_client

__all__ = ["SupabaseClient", "get_admin_db_client", "get_db_client"]
