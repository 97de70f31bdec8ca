from __future__ import annotations
from fastapi import APIRouter

from . import chat, dump_core, health, safety

api = APIRouter()
api.include_router(health.router,    prefix="/health", tags=["health"])
api.include_router(safety.router,    prefix="/safety", tags=["safety"])
api.include_router(chat.router,      prefix="/chat", tags=["chat"])
api.include_router(dump_core.router, prefix="/dump-core", tags=["dump-core"])
