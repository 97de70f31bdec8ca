from __future__ import annotations

import logging
from typing import Literal, cast

from fastapi import FastAPI

from dumpdo.core.config import get_settings
from dumpdo.core.logging import setup_logging
from dumpdo.adapters.supabase_client import supa_ping

log = logging.getLogger("dumpdo.core")


def _startup_health() -> None:
    """
    Best-effort “are the basics alive” checks.
    Never raises; logs warnings so the app still boots in dev.
    """
    settings = get_settings()
    provider = settings.LLM_PROVIDER
    if not settings.api_key_for(provider):
        log.warning("LLM provider %s has no API key (chat will fail, emergency path still works)", provider)

    if not settings.SUPABASE_URL:
        log.warning("SUPABASE_URL not set; sessions and risk events will not be persisted")
        return
    if not supa_ping():
        log.warning("supabase ping failed")


def register_lifecycle(app: FastAPI) -> None:
    """
    Registers startup/shutdown hooks on the FastAPI app.
    """
    settings = get_settings()
    fmt: Literal["console", "json"] = cast(Literal["console", "json"], settings.LOG_FORMAT)
    setup_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO, fmt=fmt)

    @app.on_event("startup")
    async def _on_startup() -> None:  # noqa: D401
        log.info("starting %s (env=%s, provider=%s)", settings.APP_NAME, settings.ENV, settings.LLM_PROVIDER)
        _startup_health()

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:  # noqa: D401
        log.info("shutting down %s", settings.APP_NAME)
