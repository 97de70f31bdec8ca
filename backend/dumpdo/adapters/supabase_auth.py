from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from dumpdo.core.config import get_settings


class SupabaseAuthError(Exception):
    pass


def verify_supabase_token(token: str, *, transport: Optional[httpx.BaseTransport] = None) -> Dict[str, Any]:
    """
    Verify a Supabase (GoTrue) access token by calling the user endpoint.

    Uses the project's anon key plus the user's bearer token. On success returns
    the user payload with at least {"sub": <user_id>}.
    """
    s = get_settings()
    url = str(s.SUPABASE_URL or "").rstrip("/")
    anon = s.SUPABASE_ANON_KEY
    if not url or not anon:
        raise SupabaseAuthError("Missing SUPABASE_URL or SUPABASE_ANON_KEY")

    headers = {
        "Authorization": f"Bearer {token}",
        "apikey": anon,
        "accept": "application/json",
    }

    try:
        with httpx.Client(timeout=httpx.Timeout(5.0), transport=transport) as client:
            resp = client.get(f"{url}/auth/v1/user", headers=headers)
    except httpx.HTTPError as e:
        raise SupabaseAuthError(f"Auth verification failed: {e}") from e

    if resp.status_code != 200:
        raise SupabaseAuthError("Invalid token")
    data = resp.json() or {}
    user_id = data.get("id") or data.get("sub")
    if not user_id:
        raise SupabaseAuthError("Token verified but user id missing")
    data.setdefault("sub", user_id)
    return data


__all__ = ["SupabaseAuthError", "verify_supabase_token"]
