# backend/dumpdo/interfaces/http/main.py
from __future__ import annotations

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from dumpdo.adapters.rate_limit import RateLimitExceeded
from dumpdo.core.config import get_settings
from dumpdo.core.events import register_lifecycle
from dumpdo.domain.chat.pipeline import ChatInputError, GenerationFailed

logger = logging.getLogger("dumpdo.http")

MSG_BAD_REQUEST = "Requisição inválida."
MSG_RATE_LIMITED = "Muitas mensagens em pouco tempo. Aguarde um momento."
MSG_INTERNAL = "Erro interno. Tente novamente em instantes."


def _error(status: int, message: str, req_id: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message, "request_id": req_id, **extra})


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.APP_NAME, version="0.1.0")
    register_lifecycle(app)

    origins = settings.cors_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins if settings.ENV == "production" and origins else ["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # simple liveness
    @app.get("/_/ping")
    def _ping():
        return {"ok": True}

    # Every error body is {"error": ...} plus a request_id for log correlation.

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        req_id = str(uuid.uuid4())
        logger.warning("HTTPException %s %s %s", req_id, exc.status_code, exc.detail)
        return _error(exc.status_code, str(exc.detail), req_id)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        req_id = str(uuid.uuid4())
        logger.warning("ValidationError %s %s", req_id, exc.errors())
        return _error(400, MSG_BAD_REQUEST, req_id, details=jsonable_encoder(exc.errors()))

    @app.exception_handler(ChatInputError)
    async def chat_input_handler(request: Request, exc: ChatInputError):
        req_id = str(uuid.uuid4())
        logger.info("ChatInputError %s %s", req_id, exc)
        return _error(400, str(exc), req_id)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        req_id = str(uuid.uuid4())
        logger.warning("RateLimited %s %s", req_id, request.url.path)
        resp = _error(429, MSG_RATE_LIMITED, req_id)
        resp.headers["Retry-After"] = str(max(1, int(exc.retry_after_s + 0.999)))
        return resp

    @app.exception_handler(GenerationFailed)
    async def generation_failed_handler(request: Request, exc: GenerationFailed):
        req_id = str(uuid.uuid4())
        logger.error("GenerationFailed %s code=%s", req_id, exc.code)
        return _error(500, exc.user_message, req_id, code=exc.code)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        req_id = str(uuid.uuid4())
        logger.exception("Unhandled exception %s %s", req_id, exc)
        return _error(500, MSG_INTERNAL, req_id)

    from dumpdo.interfaces.http.routers import api

    app.include_router(api)
    return app


app = create_app()
