from __future__ import annotations

import importlib
import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from gemini_fakes import FakeGemini

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))


@pytest.fixture
def backend_module(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    monkeypatch.delenv("GEMINI_API_BASE_URL", raising=False)
    monkeypatch.delenv("GEMINI_STREAM_MAX_OUTPUT_TOKENS", raising=False)
    monkeypatch.delenv("GEMINI_FALLBACK_MAX_OUTPUT_TOKENS", raising=False)

    if "main" in sys.modules:
        module = importlib.reload(sys.modules["main"])
    else:
        module = importlib.import_module("main")
    return module


@pytest.fixture
def gemini(backend_module, monkeypatch) -> FakeGemini:
    fake = FakeGemini()
    monkeypatch.setattr(backend_module.relay, "transport", httpx.MockTransport(fake.handler))
    return fake


@pytest.fixture
def client(backend_module):
    with TestClient(backend_module.app) as test_client:
        yield test_client


@pytest.fixture
def conversation() -> Callable[..., dict[str, Any]]:
    def _make(*turns: tuple[str, str]) -> dict[str, Any]:
        if not turns:
            turns = (("user", "How much water should I drink a day?"),)
        return {"messages": [{"role": role, "content": content} for role, content in turns]}

    return _make
