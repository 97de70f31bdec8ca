# backend/dumpdo/interfaces/http/deps/auth.py
from __future__ import annotations

from typing import Annotated, Any, Dict, Optional

from fastapi import Header, HTTPException

from dumpdo.adapters.supabase_auth import SupabaseAuthError, verify_supabase_token
from dumpdo.core.config import get_settings

# NOTE: Put *no* default inside Header(); use alias to bind "Authorization".
# The default (None) lives on the function parameter.
AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]

DEV_USER = {"id": "dev-user", "claims": {"dev": True}}


def _claims_to_user(claims: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": claims.get("sub"), "claims": claims}


def _extract_bearer(auth: Optional[str]) -> str:
    """
    Extract the bearer token from the Authorization header.
    Raises HTTP 401 on any format error.
    """
    if not auth:
        raise HTTPException(status_code=401, detail="Cabeçalho Authorization ausente")
    parts = auth.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Esperado 'Bearer <token>'")
    return parts[1]


def get_current_user(authorization: AuthHeader = None) -> Dict[str, Any]:
    """
    Strict auth dependency. In dev, can be bypassed with DEV_BYPASS_AUTH=1.
    """
    if get_settings().DEV_BYPASS_AUTH:
        return dict(DEV_USER)

    token = _extract_bearer(authorization)
    try:
        claims = verify_supabase_token(token)
    except SupabaseAuthError:
        # Keep errors terse; avoid leaking internals
        raise HTTPException(status_code=401, detail="Token inválido ou expirado")
    return _claims_to_user(claims)


def get_optional_user(authorization: AuthHeader = None) -> Optional[Dict[str, Any]]:
    """
    None when there is no header or the token does not verify.
    """
    if get_settings().DEV_BYPASS_AUTH:
        return dict(DEV_USER)
    if not authorization:
        return None
    try:
        return _claims_to_user(verify_supabase_token(_extract_bearer(authorization)))
    except (HTTPException, SupabaseAuthError):
        return None


__all__ = ["AuthHeader", "get_current_user", "get_optional_user"]
