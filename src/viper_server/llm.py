"""Completion clients for the Viper assistant: a live DeepSeek client and a demo stand-in."""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import httpx

from . import prompts
from .config import DEFAULT_BASE_URL, DEFAULT_MODEL, AssistantSettings, is_usable_key
from .errors import ConfigurationError, UpstreamError
from .messages import Message, build_messages

logger = logging.getLogger(__name__)


# -----------------------------
# Types & defaults
# -----------------------------

@dataclass(frozen=True)
class GenerationConfig:
    temperature: float = 0.7
    max_tokens: int = 2048


CHAT_GENERATION = GenerationConfig(temperature=0.8, max_tokens=1000)
ANALYZE_GENERATION = GenerationConfig(temperature=0.3, max_tokens=1500)
GENERATE_GENERATION = GenerationConfig(temperature=0.4, max_tokens=1500)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class AssistantReply:
    text: str
    is_demo: bool = False
    timestamp: str = field(default_factory=_utc_now)


class AssistantClient(ABC):
    """Capability the request handlers depend on.

    Two variants exist: :class:`LiveClient` talks to the completion service,
    :class:`DemoClient` answers locally. The app picks one at startup so
    handlers never branch on configuration.
    """

    is_demo: bool = False

    @abstractmethod
    async def chat(self, message: str, history: Sequence[Message] = ()) -> AssistantReply:
        ...

    @abstractmethod
    async def analyze_code(self, code: str, language: str = "python") -> AssistantReply:
        ...

    @abstractmethod
    async def generate_code(self, description: str, language: str = "python") -> AssistantReply:
        ...

    async def aclose(self) -> None:
        """Release any network resources."""


# -----------------------------
# Demo client
# -----------------------------

class DemoClient(AssistantClient):
    """Canned replies used when no API credential is configured. Never raises."""

    is_demo = True

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    async def chat(self, message: str, history: Sequence[Message] = ()) -> AssistantReply:
        return AssistantReply(self._rng.choice(prompts.DEMO_CHAT_RESPONSES), is_demo=True)

    async def analyze_code(self, code: str, language: str = "python") -> AssistantReply:
        return AssistantReply(prompts.build_demo_analysis(code, language), is_demo=True)

    async def generate_code(self, description: str, language: str = "python") -> AssistantReply:
        return AssistantReply(prompts.build_demo_code(description, language), is_demo=True)


# -----------------------------
# Live client
# -----------------------------

def _first_choice_content(body: Any) -> Optional[str]:
    """Pull ``choices[0].message.content`` out of a completion envelope, or None."""
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str) or not content:
        return None
    return content


class LiveClient(AssistantClient):
    """Thin async wrapper around the OpenAI-compatible DeepSeek chat endpoint.

    Parameters
    ----------
    api_key : str
        DeepSeek API key. A missing or placeholder key fails construction.
    base_url : str
        Service root; requests go to ``{base_url}/v1/chat/completions``.
    model : str
        Model name sent with every request.
    timeout : float | None
        Request timeout in seconds. ``None`` waits indefinitely.
    transport : httpx.AsyncBaseTransport | None
        Optional transport override (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not is_usable_key(api_key):
            raise ConfigurationError(
                "DeepSeek API key not configured. Please add DEEPSEEK_API_KEY "
                "to your environment variables."
            )
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    # -------------------------
    # Low-level completion
    # -------------------------
    async def complete(self, messages: List[Message], cfg: GenerationConfig) -> Optional[str]:
        """Issue one completion request and return the first choice's text.

        Returns None when the envelope carries no usable choice; raises
        :class:`UpstreamError` on transport failure, non-2xx status or a body
        that is not JSON.
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_payload() for m in messages],
            "temperature": cfg.temperature,
            "max_tokens": cfg.max_tokens,
            "stream": False,
        }
        try:
            response = await self._http.post("/v1/chat/completions", json=payload)
        except httpx.HTTPError as e:
            logger.error("DeepSeek request failed: %s", e)
            raise UpstreamError(f"DeepSeek API request failed: {e}") from e

        if not response.is_success:
            text = response.text
            logger.error("DeepSeek API error %s: %s", response.status_code, text)
            raise UpstreamError(
                f"DeepSeek API error: {response.status_code} {text}",
                status_code=response.status_code,
                body=text,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(
                f"DeepSeek API returned a malformed body: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e
        return _first_choice_content(body)

    # -------------------------
    # Task helpers
    # -------------------------
    async def chat(self, message: str, history: Sequence[Message] = ()) -> AssistantReply:
        msgs = build_messages(prompts.CHAT_SYSTEM_PROMPT, message, history)
        text = await self.complete(msgs, CHAT_GENERATION)
        return AssistantReply(text or prompts.CHAT_FALLBACK)

    async def analyze_code(self, code: str, language: str = "python") -> AssistantReply:
        msgs = build_messages(prompts.ANALYZE_SYSTEM_PROMPT, prompts.build_analyze_prompt(code, language))
        text = await self.complete(msgs, ANALYZE_GENERATION)
        return AssistantReply(text or prompts.ANALYZE_FALLBACK)

    async def generate_code(self, description: str, language: str = "python") -> AssistantReply:
        msgs = build_messages(prompts.GENERATE_SYSTEM_PROMPT, prompts.build_generate_prompt(description, language))
        text = await self.complete(msgs, GENERATE_GENERATION)
        return AssistantReply(text or prompts.GENERATE_FALLBACK)

    async def aclose(self) -> None:
        await self._http.aclose()


# -----------------------------
# Convenience factory
# -----------------------------

def create_client(
    settings: AssistantSettings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AssistantClient:
    """Pick the client variant once, from the resolved settings."""
    if not settings.is_configured:
        logger.warning(
            "DEEPSEEK_API_KEY is not set; Viper runs in demo mode until the server restarts."
        )
        rng = random.Random(settings.demo_seed) if settings.demo_seed is not None else None
        return DemoClient(rng)
    logger.info("Viper using %s at %s", settings.model, settings.base_url)
    return LiveClient(
        settings.api_key or "",
        settings.base_url,
        settings.model,
        timeout=settings.timeout,
        transport=transport,
    )
