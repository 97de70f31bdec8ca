"""
ChatService: sessions, mode switches, persistence and risk events.

Run with: pytest backend/tests/test_chat_service.py -v
"""

from __future__ import annotations

import os
import sys

THIS_DIR = os.path.dirname(__file__)
PKG_ROOT = os.path.abspath(os.path.join(THIS_DIR, ".."))
if PKG_ROOT not in sys.path:
    sys.path.insert(0, PKG_ROOT)

import asyncio
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from dumpdo import modes
from dumpdo.adapters.llm.base import LLMConfig, LLMResponse
from dumpdo.adapters.llm.retry import RetryPolicy
from dumpdo.domain.chat.pipeline import ChatInputError, MindSafePipeline
from dumpdo.domain.chat.repo import ChatRepo, StorageError
from dumpdo.domain.chat.service import ChatService


class FakeProvider:
    name = "fake"

    def __init__(self, content: str = '{"validation": "Isso pesa.", "question": "O que mais pesa?"}'):
        self.content = content
        self.calls: List[Any] = []

    async def chat(self, messages, config):
        self.calls.append((list(messages), config))
        return LLMResponse(content=self.content, tokens_input=11, tokens_output=4, model="fake-model", response_time_ms=9)


class FakeRepo:
    """In-memory stand-in with the ChatRepo surface."""

    def __init__(self, fail: Optional[set] = None):
        self.fail = fail or set()
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.messages: List[Dict[str, Any]] = []
        self.risk_events: List[Dict[str, Any]] = []
        self.flagged: List[str] = []

    def _check(self, what: str) -> None:
        if what in self.fail:
            raise StorageError(f"{what}: boom")

    async def create_session(self, user_id, mode):
        self._check("create_session")
        sid = f"s{len(self.sessions) + 1}"
        self.sessions[sid] = {"id": sid, "user_id": user_id, "mode": mode, "created_at": "2026-03-15T22:00:00Z"}
        return sid

    async def get_session(self, session_id, user_id):
        self._check("get_session")
        row = self.sessions.get(session_id)
        return row if row and row["user_id"] == user_id else None

    async def update_mode(self, session_id, user_id, mode):
        self._check("update_mode")
        self.sessions[session_id]["mode"] = mode

    async def flag_emergency(self, session_id):
        self._check("flag_emergency")
        self.flagged.append(session_id)

    async def save_message(self, **row):
        self._check("save_message")
        row["id"] = f"m{len(self.messages) + 1}"
        self.messages.append(row)
        return row["id"]

    async def recent_context(self, session_id, limit=10):
        self._check("recent_context")
        rows = [m for m in self.messages if m["session_id"] == session_id]
        return [{"role": m["role"], "content": m["content"]} for m in rows[-limit:]]

    async def log_risk_event(self, *, user_id, session_id, record, message_id=None):
        self._check("log_risk_event")
        self.risk_events.append({"user_id": user_id, "session_id": session_id, "message_id": message_id, **record.to_row()})


def _service(repo=None, provider=None):
    provider = provider or FakeProvider()
    pipeline = MindSafePipeline(
        provider,
        lambda: LLMConfig(provider="gemini", model="fake-model", api_key="k"),
        retry_policy=RetryPolicy(max_attempts=1),
    )
    return ChatService(repo if repo is not None else FakeRepo(), pipeline, max_context_messages=10), provider


def _handle(service, **kw):
    kw.setdefault("user_id", "u1")
    return asyncio.run(service.handle(**kw))


class TestNormalTurn:
    def test_new_session_dump_mode(self):
        repo = FakeRepo()
        service, provider = _service(repo)
        result = _handle(service, message="dia difícil hoje")

        assert result.session_id == "s1"
        assert result.mode == modes.DEFAULT_MODE
        assert result.message == "Isso pesa. O que mais pesa?"
        assert result.risk_level == "low"
        assert result.is_emergency_response is False
        assert result.tokens_used == {"input": 11, "output": 4}

        roles = [m["role"] for m in repo.messages]
        assert roles == ["user", "assistant"]
        assert repo.messages[0]["risk_level"] == "low"
        assert repo.messages[1]["model_used"] == "fake-model"
        assert repo.risk_events == []

        _messages, cfg = provider.calls[0]
        assert cfg.json_mode is True

    def test_processar_is_plain_text(self):
        service, provider = _service(provider=FakeProvider("Vamos por partes. O que é mais urgente?"))
        result = _handle(service, message="tenho três prazos", mode="processar")
        assert result.message == "Vamos por partes. O que é mais urgente?"
        _messages, cfg = provider.calls[0]
        assert cfg.json_mode is False

    def test_history_is_snapshot_before_user_message(self):
        repo = FakeRepo()
        service, provider = _service(repo)
        first = _handle(service, message="oi")
        _handle(service, message="segunda mensagem", session_id=first.session_id)

        messages, _cfg = provider.calls[1]
        contents = [m.content for m in messages[1:]]
        assert contents.count("segunda mensagem") == 1
        assert contents[-1] == "segunda mensagem"
        assert contents[0] == "oi"

    def test_prompt_counts_history_sent(self):
        service, provider = _service(FakeRepo())
        first = _handle(service, message="oi")
        _handle(service, message="e agora", session_id=first.session_id)

        first_system = provider.calls[0][0][0].content
        second_system = provider.calls[1][0][0].content
        assert "Mensagens anteriores" not in first_system
        assert "Mensagens anteriores nesta sessão: 2" in second_system

    def test_unknown_session_creates_new(self):
        repo = FakeRepo()
        service, _ = _service(repo)
        result = _handle(service, message="oi", session_id="does-not-exist")
        assert result.session_id == "s1"

    def test_invalid_mode(self):
        service, _ = _service()
        with pytest.raises(ChatInputError):
            _handle(service, message="oi", mode="roleplay")

    def test_empty_message(self):
        service, provider = _service()
        with pytest.raises(ChatInputError):
            _handle(service, message="   ")
        assert provider.calls == []


class TestModeSwitch:
    def test_switch_persists_transition(self):
        repo = FakeRepo()
        service, _ = _service(repo)
        first = _handle(service, message="oi")
        result = _handle(service, message="quero organizar", session_id=first.session_id, mode="processar", switch_mode=True)

        assert result.mode == "processar"
        assert repo.sessions[first.session_id]["mode"] == "processar"
        transition = modes.transition_message("dump", "processar")
        assert transition
        assert any(m["content"] == transition for m in repo.messages)

    def test_stored_mode_wins_without_switch(self):
        repo = FakeRepo()
        service, _ = _service(repo)
        first = _handle(service, message="oi", mode="processar")
        result = _handle(service, message="e agora", session_id=first.session_id, mode="dump")
        assert result.mode == "processar"


class TestEmergencyTurn:
    def test_emergency_is_persisted_and_flagged(self):
        repo = FakeRepo()
        service, provider = _service(repo)
        result = _handle(service, message="quero me matar")

        assert result.is_emergency_response is True
        assert result.risk_level == "critical"
        assert result.tokens_used is None
        assert "188" in result.message
        assert provider.calls == []

        assert repo.flagged == [result.session_id]
        user_row, reply_row = repo.messages
        assert user_row["is_emergency_response"] is True
        assert reply_row["role"] == "assistant"
        assert reply_row["is_emergency_response"] is True

        (event,) = repo.risk_events
        assert event["risk_type"] == "suicidal_ideation"
        assert event["response_type"] == "cvv_referral"
        assert event["message_id"] == user_row["id"]
        assert event["message_count_at_event"] == 1
        assert "quero me matar" not in str(event)

    def test_medium_risk_logged_without_emergency(self):
        repo = FakeRepo()
        service, provider = _service(repo)
        result = _handle(service, message="não sei o que fazer")
        assert result.is_emergency_response is False
        assert provider.calls
        (event,) = repo.risk_events
        assert event["risk_level"] == "medium"
        assert event["emergency_response_sent"] is False


class TestStorageFailures:
    def test_session_creation_failure_uses_ephemeral_session(self):
        repo = FakeRepo(fail={"create_session"})
        service, _ = _service(repo)
        result = _handle(service, message="oi")
        assert result.session_id
        assert result.message
        assert repo.messages == []

    def test_message_save_failure_still_replies(self):
        repo = FakeRepo(fail={"save_message", "log_risk_event"})
        service, _ = _service(repo)
        result = _handle(service, message="quero me matar")
        assert result.is_emergency_response is True

    def test_context_failure_runs_without_history(self):
        repo = FakeRepo(fail={"recent_context"})
        service, provider = _service(repo)
        _handle(service, message="oi")
        messages, _cfg = provider.calls[0]
        assert [m.role for m in messages] == ["system", "user"]


class TestChatRepo:
    """ChatRepo against a recording stand-in for the supabase query builder."""

    class Query:
        def __init__(self, log, data=None, count=None):
            self.log = log
            self.data = data if data is not None else []
            self.count = count

        def __getattr__(self, name):
            def _call(*args, **kwargs):
                self.log.append((name, args, kwargs))
                return self

            return _call

        def execute(self):
            return SimpleNamespace(data=self.data, count=self.count)

    class Client:
        def __init__(self, query):
            self.query = query
            self.tables: List[str] = []

        def table(self, name):
            self.tables.append(name)
            return self.query

    def _client(self, data=None, count=None):
        log: List[Any] = []
        return self.Client(self.Query(log, data, count)), log

    def test_save_message_returns_id(self):
        client, log = self._client(data=[{"id": 42}])
        repo = ChatRepo(client_factory=lambda: client)
        msg_id = asyncio.run(
            repo.save_message(session_id="s1", user_id="u1", role="user", content="oi", mode="dump")
        )
        assert msg_id == "42"
        assert client.tables == ["messages"]
        assert log[0][0] == "insert"
        assert log[0][1][0]["risk_level"] == "none"

    def test_recent_context_is_chronological(self):
        rows = [{"role": "assistant", "content": "b"}, {"role": "user", "content": "a"}]
        client, _log = self._client(data=rows)
        repo = ChatRepo(client_factory=lambda: client)
        out = asyncio.run(repo.recent_context("s1", limit=2))
        assert [r["content"] for r in out] == ["a", "b"]

    def test_create_session_without_id_fails(self):
        client, _log = self._client(data=[])
        repo = ChatRepo(client_factory=lambda: client)
        with pytest.raises(StorageError):
            asyncio.run(repo.create_session("u1", "dump"))

    def test_client_errors_become_storage_error(self):
        def broken():
            raise RuntimeError("no supabase")

        repo = ChatRepo(client_factory=broken)
        with pytest.raises(StorageError):
            asyncio.run(repo.recent_context("s1"))
