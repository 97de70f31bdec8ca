# backend/dumpdo/adapters/supabase_client.py
from __future__ import annotations

import threading
from typing import Optional

from supabase import Client, ClientOptions, create_client

from dumpdo.core.config import get_settings

__all__ = ["supa", "supa_reset", "supa_ping", "SupabaseNotConfigured"]

# --- singleton + lock ---------------------------------------------------------
_client_lock = threading.Lock()
_client: Optional[Client] = None

CLIENT_INFO = "dumpdo-backend"
PING_TABLE = "sessions"


class SupabaseNotConfigured(RuntimeError):
    pass


def _build_client(url: str, key: str, *, timeout_s: float, schema: str) -> Client:
    opts = ClientOptions(
        postgrest_client_timeout=timeout_s,
        storage_client_timeout=int(timeout_s),
        headers={"X-Client-Info": CLIENT_INFO},
        schema=schema or "public",
    )
    return create_client(url, key, options=opts)


def supa() -> Client:
    """
    Thread-safe singleton Supabase client using the service-role key (server-side writes).
    """
    global _client
    if _client is not None:
        return _client
    with _client_lock:
        if _client is None:
            s = get_settings()
            if not s.SUPABASE_URL or not s.SUPABASE_SERVICE_ROLE:
                raise SupabaseNotConfigured("Missing SUPABASE_URL/SUPABASE_SERVICE_ROLE")
            _client = _build_client(
                str(s.SUPABASE_URL).rstrip("/"),
                s.SUPABASE_SERVICE_ROLE,
                timeout_s=s.STORAGE_TIMEOUT_S,
                schema=s.SUPABASE_SCHEMA,
            )
    return _client


def supa_reset() -> None:
    """
    Reset the cached client (tests, key rotation).
    """
    global _client
    with _client_lock:
        _client = None


def supa_ping() -> bool:
    """
    Lightweight health check: zero-row select on the sessions table.
    """
    try:
        supa().table(PING_TABLE).select("id").limit(0).execute()
        return True
    except Exception:
        return False
