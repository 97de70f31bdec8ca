# backend/dumpdo/domain/chat/repo.py
"""
Supabase persistence for sessions, messages and risk_events.

The supabase client is synchronous; every call runs in the default executor
under STORAGE_TIMEOUT_S. Any failure surfaces as StorageError.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

from dumpdo.domain.safety.risk_events import RiskEventRecord

log = logging.getLogger("dumpdo.storage")

T = TypeVar("T")


class StorageError(Exception):
    pass


class ChatRepo:
    def __init__(self, client_factory: Optional[Callable[[], Any]] = None, timeout_s: float = 30.0):
        if client_factory is None:
            from dumpdo.adapters.supabase_client import supa

            client_factory = supa
        self._client_factory = client_factory
        self.timeout_s = timeout_s

    async def _run(self, what: str, fn: Callable[[Any], T]) -> T:
        loop = asyncio.get_running_loop()
        try:
            client = self._client_factory()
            return await asyncio.wait_for(loop.run_in_executor(None, lambda: fn(client)), self.timeout_s)
        except asyncio.TimeoutError as e:
            raise StorageError(f"{what}: timed out after {self.timeout_s:g}s") from e
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"{what}: {e}") from e

    # ---- sessions ----
    async def create_session(self, user_id: str, mode: str) -> str:
        def _do(c: Any) -> str:
            res = c.table("sessions").insert({"user_id": user_id, "mode": mode, "status": "active"}).execute()
            rows = res.data or []
            if not rows or not rows[0].get("id"):
                raise StorageError("create_session: no id returned")
            return str(rows[0]["id"])

        return await self._run("create_session", _do)

    async def get_session(self, session_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        def _do(c: Any) -> Optional[Dict[str, Any]]:
            res = (
                c.table("sessions")
                .select("id, mode, created_at")
                .eq("id", session_id)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
            rows = res.data or []
            return rows[0] if rows else None

        return await self._run("get_session", _do)

    async def update_mode(self, session_id: str, user_id: str, mode: str) -> None:
        await self._run(
            "update_mode",
            lambda c: c.table("sessions").update({"mode": mode}).eq("id", session_id).eq("user_id", user_id).execute(),
        )

    async def flag_emergency(self, session_id: str) -> None:
        await self._run(
            "flag_emergency",
            lambda c: c.table("sessions").update({"emergency_triggered": True}).eq("id", session_id).execute(),
        )

    # ---- messages ----
    async def save_message(
        self,
        *,
        session_id: str,
        user_id: str,
        role: str,
        content: str,
        mode: str,
        risk_level: str = "none",
        risk_indicators: Optional[List[str]] = None,
        is_emergency_response: bool = False,
        tokens_input: Optional[int] = None,
        tokens_output: Optional[int] = None,
        model_used: Optional[str] = None,
        response_time_ms: Optional[int] = None,
    ) -> Optional[str]:
        row = {
            "session_id": session_id,
            "user_id": user_id,
            "role": role,
            "content": content,
            "mode": mode,
            "risk_level": risk_level,
            "risk_indicators": list(risk_indicators or []),
            "is_emergency_response": is_emergency_response,
            "tokens_input": tokens_input,
            "tokens_output": tokens_output,
            "model_used": model_used,
            "response_time_ms": response_time_ms,
        }

        def _do(c: Any) -> Optional[str]:
            res = c.table("messages").insert(row).execute()
            rows = res.data or []
            return str(rows[0]["id"]) if rows and rows[0].get("id") else None

        return await self._run("save_message", _do)

    async def recent_context(self, session_id: str, limit: int = 10) -> List[Dict[str, str]]:
        """Last `limit` messages, oldest first."""

        def _do(c: Any) -> List[Dict[str, str]]:
            res = (
                c.table("messages")
                .select("role, content")
                .eq("session_id", session_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
            rows = list(reversed(res.data or []))
            return [{"role": r["role"], "content": r["content"]} for r in rows if r.get("content")]

        return await self._run("recent_context", _do)

    # ---- risk events ----
    async def log_risk_event(
        self,
        *,
        user_id: str,
        session_id: str,
        record: RiskEventRecord,
        message_id: Optional[str] = None,
    ) -> None:
        row = {"user_id": user_id, "session_id": session_id, "message_id": message_id, **record.to_row()}
        await self._run("log_risk_event", lambda c: c.table("risk_events").insert(row).execute())


__all__ = ["ChatRepo", "StorageError"]
