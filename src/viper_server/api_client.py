"""Async HTTP client used by front-ends to reach the assistant endpoints."""
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import httpx

from .errors import ViperError
from .llm import AssistantReply
from .messages import Message


class AssistantAPIError(ViperError):
    """The assistant server answered with a non-2xx status."""

    def __init__(self, status_code: int, error: str, detail: Optional[str] = None) -> None:
        text = f"{status_code} {error}" + (f": {detail}" if detail else "")
        super().__init__(text)
        self.status_code = status_code
        self.error = error
        self.detail = detail


class AssistantAPI:
    """Client for ``/api/ai/*``.

    Usage:
        async with AssistantAPI("http://localhost:3001") as api:
            reply = await api.chat("What is a generator?")
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def _post(self, path: str, body: Dict[str, Any], field: str) -> AssistantReply:
        response = await self._http.post(path, json=body)
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        if not response.is_success:
            raise AssistantAPIError(
                response.status_code,
                str(data.get("error") or response.reason_phrase),
                data.get("message"),
            )
        return AssistantReply(
            text=str(data.get(field, "")),
            is_demo=bool(data.get("isDemo", False)),
            timestamp=str(data.get("timestamp", "")),
        )

    async def chat(self, message: str, history: Sequence[Message] = ()) -> AssistantReply:
        body = {
            "message": message,
            "conversationHistory": [m.to_payload() for m in history],
        }
        return await self._post("/api/ai/chat", body, "response")

    async def analyze_code(self, code: str, language: str = "python") -> AssistantReply:
        return await self._post("/api/ai/analyze-code", {"code": code, "language": language}, "analysis")

    async def generate_code(self, description: str, language: str = "python") -> AssistantReply:
        return await self._post(
            "/api/ai/generate-code", {"description": description, "language": language}, "code"
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AssistantAPI":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
