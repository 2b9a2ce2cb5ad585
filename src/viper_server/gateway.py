"""Request validation and delegation for the three assistant tasks."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from .errors import RequestValidationFailed
from .llm import AssistantClient, AssistantReply
from .messages import HistoryTurn, Message

logger = logging.getLogger(__name__)


# -----------------------------
# Field checks
# -----------------------------
def _require_text(payload: Mapping[str, Any], key: str, label: str) -> str:
    # Only absence, wrong type and "" are rejected; any other string is forwarded as-is.
    value = payload.get(key)
    if not isinstance(value, str) or value == "":
        raise RequestValidationFailed(f"{label} is required and must be a string")
    return value


def _language(payload: Mapping[str, Any]) -> str:
    value = payload.get("language")
    if value is None or value == "":
        return "python"
    if not isinstance(value, str):
        raise RequestValidationFailed("Language must be a string")
    return value


def _history(payload: Mapping[str, Any]) -> List[Message]:
    raw = payload.get("conversationHistory")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise RequestValidationFailed("Conversation history must be a list")
    try:
        return [HistoryTurn.model_validate(item).to_message() for item in raw]
    except ValidationError as e:
        raise RequestValidationFailed(
            "Conversation history entries need a user/assistant role and string content"
        ) from e


# -----------------------------
# Gateway
# -----------------------------
class AssistantGateway:
    """Validate a decoded request body, then hand it to the configured client.

    The gateway does not know whether the client is live or a demo; errors from
    the client propagate to the caller untouched.
    """

    def __init__(self, client: AssistantClient) -> None:
        self.client = client

    @property
    def is_demo(self) -> bool:
        return self.client.is_demo

    async def chat(self, payload: Dict[str, Any]) -> AssistantReply:
        message = _require_text(payload, "message", "Message")
        history = _history(payload)
        logger.debug("chat: %d chars, %d history entries", len(message), len(history))
        return await self.client.chat(message, history)

    async def analyze_code(self, payload: Dict[str, Any]) -> AssistantReply:
        code = _require_text(payload, "code", "Code")
        return await self.client.analyze_code(code, _language(payload))

    async def generate_code(self, payload: Dict[str, Any]) -> AssistantReply:
        description = _require_text(payload, "description", "Description")
        return await self.client.generate_code(description, _language(payload))
