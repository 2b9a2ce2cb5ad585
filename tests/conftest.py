"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import json
import random
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import httpx
import pytest

# Ensure src/ is on the import path (for local imports without installing as package)
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from viper_server.llm import DemoClient, LiveClient  # noqa: E402


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the root directory of the project."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Ensure tests run with a clean environment (no leftover vars, no stray .env)."""
    monkeypatch.chdir(tmp_path)
    for var in [
        "VIPER_CONFIG",
        "DEEPSEEK_API_KEY",
        "DEEPSEEK_BASE_URL",
        "DEEPSEEK_MODEL",
        "APP_URL",
        "HOST",
        "PORT",
        "LOG_LEVEL",
    ]:
        # setenv first so the original state is restored even if a .env sets it later
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)
    yield


@pytest.fixture
def missing_config(tmp_path: Path) -> str:
    """Path to a config file that does not exist, so built-in defaults apply."""
    return str(tmp_path / "absent.yaml")


@pytest.fixture
def demo_client() -> DemoClient:
    return DemoClient(random.Random(7))


class UpstreamRecorder:
    """Fake completion service: records request bodies and answers from a handler."""

    def __init__(self, respond: Callable[[Dict[str, Any]], httpx.Response]) -> None:
        self.respond = respond
        self.requests: List[Dict[str, Any]] = []
        self.headers: List[httpx.Headers] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content.decode("utf-8"))
        self.requests.append(body)
        self.headers.append(request.headers)
        return self.respond(body)


def completion(content: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "id": "cmpl-1",
            "object": "chat.completion",
            "model": "deepseek-coder",
            "choices": [
                {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
            ],
        },
    )


@pytest.fixture
def make_live_client():
    """Build a LiveClient wired to an in-process fake upstream."""

    def _make(respond: Callable[[Dict[str, Any]], httpx.Response]):
        recorder = UpstreamRecorder(respond)
        client = LiveClient(
            "sk-test",
            "https://deepseek.test",
            transport=httpx.MockTransport(recorder),
        )
        return client, recorder

    return _make
