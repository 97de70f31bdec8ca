"""
HTTP surface: routes, status codes and the {"error": ...} envelope.

Run with: pytest backend/tests/test_http_api.py -v
"""

from __future__ import annotations

import os
import sys

THIS_DIR = os.path.dirname(__file__)
PKG_ROOT = os.path.abspath(os.path.join(THIS_DIR, ".."))
if PKG_ROOT not in sys.path:
    sys.path.insert(0, PKG_ROOT)

import pytest
from fastapi.testclient import TestClient

from dumpdo.adapters.llm import errors
from dumpdo.adapters.llm.base import LLMConfig, LLMResponse
from dumpdo.adapters.llm.errors import ProviderError
from dumpdo.adapters.llm.retry import RetryPolicy
from dumpdo.adapters.rate_limit import RateLimiter
from dumpdo.domain.chat.pipeline import MSG_EMPTY, MSG_FAILED, MindSafePipeline
from dumpdo.interfaces.http.deps.auth import get_current_user, get_optional_user
from dumpdo.interfaces.http.deps.services import get_chat_repo, get_chat_service, get_limiter, get_pipeline
from dumpdo.interfaces.http.main import MSG_BAD_REQUEST, MSG_INTERNAL, MSG_RATE_LIMITED, create_app

from test_chat_service import FakeRepo


class ScriptedProvider:
    name = "fake"

    def __init__(self, reply):
        self.reply = reply
        self.calls = 0

    async def chat(self, messages, config):
        self.calls += 1
        if isinstance(self.reply, BaseException):
            raise self.reply
        return LLMResponse(content=self.reply, tokens_input=11, tokens_output=4, model="fake-model")


def _pipeline(reply) -> MindSafePipeline:
    return MindSafePipeline(
        ScriptedProvider(reply),
        lambda: LLMConfig(provider="gemini", model="fake-model", api_key="k"),
        retry_policy=RetryPolicy(max_attempts=1),
    )


def _client(
    reply='{"validation": "Isso pesa.", "question": "O que mais pesa?"}',
    *,
    user=True,
    limiter=None,
    raise_server_exceptions=True,
) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_pipeline] = lambda: _pipeline(reply)
    app.dependency_overrides[get_chat_repo] = lambda: FakeRepo()
    app.dependency_overrides[get_limiter] = lambda: limiter or RateLimiter(max_requests=100, window_s=60)
    if user:
        app.dependency_overrides[get_current_user] = lambda: {"id": "u1", "claims": {}}
        app.dependency_overrides[get_optional_user] = lambda: {"id": "u1", "claims": {}}
    return TestClient(app, raise_server_exceptions=raise_server_exceptions)


class TestMeta:
    def test_ping(self):
        resp = _client().get("/_/ping")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}

    def test_healthz(self):
        body = _client().get("/health/healthz").json()
        assert "ok" in body
        assert body["provider"] in ("gemini", "openai", "anthropic")

    def test_unknown_route_uses_error_envelope(self):
        resp = _client().get("/nope")
        assert resp.status_code == 404
        body = resp.json()
        assert "error" in body
        assert body["request_id"]


class TestSafetyRoutes:
    def test_assess(self):
        body = _client().post("/safety/assess", json={"message": "quero morrer"}).json()
        assert body["risk_level"] == "critical"
        assert body["risk_label"] == "Crítico"
        assert body["requires_emergency_response"] is True
        assert "188" in body["emergency_response"]

    def test_emergency_script(self):
        resp = _client().get("/safety/emergency/panic_attack")
        assert resp.status_code == 200
        assert resp.json()["risk_type"] == "panic_attack"

    def test_unknown_emergency_script(self):
        resp = _client().get("/safety/emergency/bogus")
        assert resp.status_code == 404
        assert "bogus" in resp.json()["error"]


class TestChatRoute:
    def test_requires_auth(self):
        resp = _client(user=False).post("/chat", json={"message": "oi"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Cabeçalho Authorization ausente"

    def test_bad_scheme(self):
        resp = _client(user=False).post("/chat", json={"message": "oi"}, headers={"Authorization": "Token abc"})
        assert resp.status_code == 401

    def test_normal_reply(self):
        resp = _client().post("/chat", json={"message": "dia difícil hoje"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Isso pesa. O que mais pesa?"
        assert body["sessionId"]
        assert body["mode"] == "dump"
        assert body["riskLevel"] == "low"
        assert body["isEmergencyResponse"] is False
        assert body["tokensUsed"] == {"input": 11, "output": 4}

    def test_emergency_reply(self):
        resp = _client(reply=ProviderError("should not be called", errors.UNKNOWN)).post(
            "/chat", json={"message": "quero me matar"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["isEmergencyResponse"] is True
        assert body["riskLevel"] == "critical"
        assert "188" in body["message"]
        assert "tokensUsed" not in body

    def test_empty_message(self):
        resp = _client().post("/chat", json={"message": "  "})
        assert resp.status_code == 400
        assert resp.json()["error"] == MSG_EMPTY

    def test_missing_field(self):
        resp = _client().post("/chat", json={})
        assert resp.status_code == 400
        assert resp.json()["error"] == MSG_BAD_REQUEST

    def test_invalid_mode(self):
        resp = _client().post("/chat", json={"message": "oi", "mode": "roleplay"})
        assert resp.status_code == 400

    def test_rate_limited(self):
        client = _client(limiter=RateLimiter(max_requests=1, window_s=60))
        assert client.post("/chat", json={"message": "oi"}).status_code == 200
        resp = client.post("/chat", json={"message": "oi"})
        assert resp.status_code == 429
        assert resp.json()["error"] == MSG_RATE_LIMITED
        assert int(resp.headers["Retry-After"]) >= 1

    def test_generation_failure(self):
        resp = _client(reply=ProviderError("503", errors.SERVICE_UNAVAILABLE)).post("/chat", json={"message": "oi"})
        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == MSG_FAILED
        assert body["code"] == errors.SERVICE_UNAVAILABLE

    def test_unhandled_error(self):
        class Broken:
            async def handle(self, **kw):
                raise RuntimeError("boom")

        client = _client(raise_server_exceptions=False)
        client.app.dependency_overrides[get_chat_service] = lambda: Broken()
        resp = client.post("/chat", json={"message": "oi"})
        assert resp.status_code == 500
        assert resp.json()["error"] == MSG_INTERNAL


class TestModesRoutes:
    def test_modes(self):
        body = _client().get("/chat/modes").json()
        assert [m["id"] for m in body] == ["dump", "processar"]

    def test_welcome(self):
        body = _client().get("/chat/welcome", params={"mode": "dump", "name": "Ana"}).json()
        assert body["mode"] == "dump"
        assert body["message"].startswith("E aí, Ana.")

    def test_welcome_invalid_mode(self):
        assert _client().get("/chat/welcome", params={"mode": "x"}).status_code == 400


class TestDumpCoreRoute:
    def test_reply(self):
        reply = '{"response": "Faz sentido.", "detected_emotions": ["culpa"], "micro_action": null, "should_end": false}'
        resp = _client(reply=reply, user=False).post(
            "/dump-core",
            json={
                "message": "me sinto culpado",
                "history": [
                    {"role": "user", "content": "oi"},
                    {"role": "assistant", "content": "{}", "ai_response": {"response": "E aí."}},
                ],
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert body["response"] == "Faz sentido."
        assert body["detected_emotions"] == ["culpa"]
        assert body["should_end"] is False

    def test_emergency(self):
        resp = _client(user=False).post("/dump-core", json={"message": "quero me matar"})
        assert resp.status_code == 200
        assert "188" in resp.json()["response"]

    def test_rate_limited_by_ip(self):
        client = _client(user=False, limiter=RateLimiter(max_requests=1, window_s=60))
        assert client.post("/dump-core", json={"message": "oi"}).status_code == 200
        assert client.post("/dump-core", json={"message": "oi"}).status_code == 429

    def test_bad_history_role(self):
        resp = _client().post("/dump-core", json={"message": "oi", "history": [{"role": "system", "content": "x"}]})
        assert resp.status_code == 400
