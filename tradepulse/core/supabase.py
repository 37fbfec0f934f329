"""Supabase client singleton for database, storage and auth operations."""

from functools import lru_cache
from typing import Any

from supabase import Client, create_client
from supabase.lib.client_options import SyncClientOptions
from supabase_auth import SyncMemoryStorage

from tradepulse.core.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client singleton for database and storage operations.

    Uses the secret key, which bypasses RLS at the PostgREST level. Callers
    must have resolved the acting user before touching user-owned rows.

    Do NOT use this client for auth operations that call set_session() or
    sign_in_*(); use create_auth_client() instead.

    Returns:
        Client: Supabase client instance.
    """
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )


def create_auth_client() -> Client:
    """Create a fresh Supabase client for auth operations.

    Each call creates an isolated client with in-memory session storage so
    that signing a user in never leaks into the shared data client.

    Returns:
        Client: Fresh Supabase client instance.
    """
    settings = get_settings()
    options = SyncClientOptions(
        storage=SyncMemoryStorage(),
        auto_refresh_token=False,
        persist_session=False,
    )
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
        options=options,
    )


async def check_database_connection() -> dict[str, Any]:
    """Probe the profile store with a one-row read.

    Returns:
        dict: 'healthy' boolean and, on failure, an 'error' message.
    """
    try:
        client = get_supabase_client()
        client.table("profiles").select("id").limit(1).execute()
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}


async def check_storage_buckets() -> dict[str, Any]:
    """Check that the avatar and attachment buckets exist."""
    settings = get_settings()
    try:
        client = get_supabase_client()
        for bucket in (settings.avatar_bucket, settings.attachment_bucket):
            client.storage.get_bucket(bucket)
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
