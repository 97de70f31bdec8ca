"""
Auth, storage client, settings, logging and mode registry.

Run with: pytest backend/tests/test_adapters.py -v
"""

from __future__ import annotations

import os
import sys

THIS_DIR = os.path.dirname(__file__)
PKG_ROOT = os.path.abspath(os.path.join(THIS_DIR, ".."))
if PKG_ROOT not in sys.path:
    sys.path.insert(0, PKG_ROOT)

import json
import logging
from types import SimpleNamespace

import httpx
import pytest
from fastapi import HTTPException

from dumpdo import modes
from dumpdo.adapters import supabase_auth, supabase_client
from dumpdo.adapters.supabase_auth import SupabaseAuthError, verify_supabase_token
from dumpdo.core.config import Settings
from dumpdo.core.logging import _json_formatter
from dumpdo.interfaces.http.deps import auth


class TestSupabaseAuth:
    @pytest.fixture(autouse=True)
    def _settings(self, monkeypatch):
        monkeypatch.setattr(
            supabase_auth,
            "get_settings",
            lambda: SimpleNamespace(SUPABASE_URL="https://proj.supabase.co/", SUPABASE_ANON_KEY="anon-key"),
        )

    def test_valid_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            return httpx.Response(200, json={"id": "user-1", "email": "a@b.c"})

        user = verify_supabase_token("tok", transport=httpx.MockTransport(handler))
        assert user["sub"] == "user-1"
        assert seen["url"] == "https://proj.supabase.co/auth/v1/user"
        assert seen["headers"]["authorization"] == "Bearer tok"
        assert seen["headers"]["apikey"] == "anon-key"

    def test_rejected_token(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"msg": "bad jwt"}))
        with pytest.raises(SupabaseAuthError):
            verify_supabase_token("tok", transport=transport)

    def test_missing_user_id(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"email": "a@b.c"}))
        with pytest.raises(SupabaseAuthError):
            verify_supabase_token("tok", transport=transport)

    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(
            supabase_auth, "get_settings", lambda: SimpleNamespace(SUPABASE_URL=None, SUPABASE_ANON_KEY=None)
        )
        with pytest.raises(SupabaseAuthError):
            verify_supabase_token("tok")


class TestAuthDependency:
    @pytest.fixture(autouse=True)
    def _settings(self, monkeypatch):
        monkeypatch.setattr(auth, "get_settings", lambda: SimpleNamespace(DEV_BYPASS_AUTH=False))

    def test_valid_bearer(self, monkeypatch):
        monkeypatch.setattr(auth, "verify_supabase_token", lambda token: {"sub": f"id-{token}"})
        assert auth.get_current_user("Bearer abc")["id"] == "id-abc"

    @pytest.mark.parametrize("header", [None, "", "abc", "Basic abc", "Bearer a b"])
    def test_malformed_header(self, header):
        with pytest.raises(HTTPException) as ei:
            auth.get_current_user(header)
        assert ei.value.status_code == 401

    def test_invalid_token(self, monkeypatch):
        def reject(token):
            raise SupabaseAuthError("nope")

        monkeypatch.setattr(auth, "verify_supabase_token", reject)
        with pytest.raises(HTTPException) as ei:
            auth.get_current_user("Bearer abc")
        assert ei.value.detail == "Token inválido ou expirado"
        assert auth.get_optional_user("Bearer abc") is None

    def test_optional_without_header(self):
        assert auth.get_optional_user(None) is None

    def test_dev_bypass(self, monkeypatch):
        monkeypatch.setattr(auth, "get_settings", lambda: SimpleNamespace(DEV_BYPASS_AUTH=True))
        assert auth.get_current_user(None)["id"] == "dev-user"
        assert auth.get_optional_user(None)["id"] == "dev-user"


class TestSupabaseClient:
    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(
            supabase_client,
            "get_settings",
            lambda: SimpleNamespace(SUPABASE_URL=None, SUPABASE_SERVICE_ROLE=None),
        )
        supabase_client.supa_reset()
        try:
            with pytest.raises(supabase_client.SupabaseNotConfigured):
                supabase_client.supa()
            assert supabase_client.supa_ping() is False
        finally:
            supabase_client.supa_reset()


class TestSettings:
    def test_cors_and_provider_lookup(self):
        s = Settings(
            _env_file=None,
            ALLOWED_ORIGINS="https://dump.do, https://app.dump.do,",
            GEMINI_API_KEY="g-key",
            OPENAI_MODEL="gpt-test",
        )
        assert s.cors_origins() == ["https://dump.do", "https://app.dump.do"]
        assert s.api_key_for("gemini") == "g-key"
        assert s.api_key_for("nope") is None
        assert s.model_for("openai") == "gpt-test"


class TestJsonLogging:
    def test_event_extra_is_nested(self):
        record = logging.LogRecord("dumpdo.safety", logging.INFO, __file__, 1, "risk assessed", None, None)
        record.event = {"risk_level": "high"}
        payload = json.loads(_json_formatter(record))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "dumpdo.safety"
        assert payload["msg"] == "risk assessed"
        assert payload["event"] == {"risk_level": "high"}


class TestModes:
    def test_registry(self):
        assert modes.get_ids() == ["dump", "processar"]
        assert modes.get_default() == modes.DEFAULT_MODE == "dump"
        assert modes.is_valid("processar")
        assert not modes.is_valid("roleplay")
        assert modes.config("roleplay") == modes.config(modes.DEFAULT_MODE)

    def test_structured_output_only_in_dump(self):
        assert modes.uses_structured_output("dump") is True
        assert modes.uses_structured_output("processar") is False

    def test_system_prompt_sections(self):
        bare = modes.build_system_prompt("dump")
        assert bare.count(modes.SECTION_SEPARATOR) == 1
        assert modes.CORE_IDENTITY in bare

        with_context = modes.build_system_prompt("processar", user_name="Ana", previous_messages=4)
        assert with_context.count(modes.SECTION_SEPARATOR) == 2
        assert "Ana" in with_context
        assert modes.MODE_PROCESSAR_PROMPT in with_context

    def test_transitions(self):
        assert modes.transition_message("dump", "processar")
        assert modes.transition_message("processar", "dump")
        assert modes.transition_message("dump", "dump") == ""

    def test_welcome(self):
        assert modes.welcome_message("dump").startswith("E aí.")
        assert modes.welcome_message("processar", "Ana").startswith("E aí, Ana.")
