from __future__ import annotations

import asyncio
import random

import httpx
import pytest

from conftest import completion
from viper_server.config import AssistantSettings
from viper_server.errors import ConfigurationError, UpstreamError
from viper_server.llm import DemoClient, LiveClient, _first_choice_content, create_client
from viper_server.prompts import ANALYZE_FALLBACK, DEMO_CHAT_RESPONSES, GENERATE_FALLBACK, GENERATE_SYSTEM_PROMPT


@pytest.mark.parametrize("key", [None, "", "   ", "your-deepseek-api-key"])
def test_live_client_refuses_unusable_key(key):
    with pytest.raises(ConfigurationError, match="DEEPSEEK_API_KEY"):
        LiveClient(key)


def test_create_client_picks_variant_once():
    assert isinstance(create_client(AssistantSettings()), DemoClient)
    assert isinstance(create_client(AssistantSettings(api_key="your-deepseek-api-key")), DemoClient)

    live = create_client(AssistantSettings(api_key="sk-real", base_url="https://example.test/"))
    try:
        assert isinstance(live, LiveClient)
        assert live.is_demo is False
        assert live.base_url == "https://example.test"
    finally:
        asyncio.run(live.aclose())


def test_demo_chat_is_seeded_and_canned():
    a = DemoClient(random.Random(3))
    b = DemoClient(random.Random(3))
    replies_a = [asyncio.run(a.chat("hi")).text for _ in range(5)]
    replies_b = [asyncio.run(b.chat("hi")).text for _ in range(5)]
    assert replies_a == replies_b
    assert all(r in DEMO_CHAT_RESPONSES for r in replies_a)


def test_demo_templates_embed_input_verbatim():
    client = DemoClient()
    reply = asyncio.run(client.generate_code("a retry decorator", "rust"))
    assert reply.is_demo
    assert reply.text.startswith("# 🐍 Generated Rust Code (Demo Mode)")
    assert reply.text.count("a retry decorator") == 2


def test_generate_uses_generator_prompt_and_temperature(make_live_client):
    live, upstream = make_live_client(lambda body: completion("def f(): ..."))
    reply = asyncio.run(live.generate_code("a function", "python"))
    assert reply.text == "def f(): ..."
    assert reply.is_demo is False

    sent = upstream.requests[0]
    assert sent["model"] == "deepseek-coder"
    assert sent["messages"][0]["content"] == GENERATE_SYSTEM_PROMPT
    assert sent["messages"][1] == {"role": "user", "content": "Please generate python code for: a function"}
    assert sent["temperature"] == 0.4
    assert sent["max_tokens"] == 1500


def test_missing_content_uses_task_fallback(make_live_client):
    live, _ = make_live_client(lambda body: httpx.Response(200, json={"choices": [{"message": {}}]}))
    assert asyncio.run(live.analyze_code("x")).text == ANALYZE_FALLBACK
    assert asyncio.run(live.generate_code("x")).text == GENERATE_FALLBACK


def test_non_json_body_is_upstream_error(make_live_client):
    live, _ = make_live_client(lambda body: httpx.Response(200, text="<html>gateway</html>"))
    with pytest.raises(UpstreamError, match="malformed"):
        asyncio.run(live.chat("hi"))


def test_error_status_carries_code_and_body(make_live_client):
    live, _ = make_live_client(lambda body: httpx.Response(401, text="bad key"))
    with pytest.raises(UpstreamError) as info:
        asyncio.run(live.chat("hi"))
    assert info.value.status_code == 401
    assert info.value.body == "bad key"
    assert str(info.value) == "DeepSeek API error: 401 bad key"


@pytest.mark.parametrize(
    "body",
    [None, [], {}, {"choices": None}, {"choices": []}, {"choices": ["x"]}, {"choices": [{"message": {"content": ""}}]}],
)
def test_first_choice_content_tolerates_bad_shapes(body):
    assert _first_choice_content(body) is None
