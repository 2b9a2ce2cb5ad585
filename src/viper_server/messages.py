"""Role-tagged chat messages and the bounded conversation history buffer."""
from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, Iterable, Iterator, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict

Role = Literal["system", "user", "assistant"]

DEFAULT_HISTORY_LIMIT = 50


class Message(BaseModel):
    """A single role-tagged message sent to the completion service."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class HistoryTurn(BaseModel):
    """One wire entry of ``conversationHistory``; system prompts are not accepted."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    role: Literal["user", "assistant"]
    content: str

    def to_message(self) -> Message:
        return Message(role=self.role, content=self.content)


def build_messages(
    system_prompt: str,
    user_content: str,
    history: Optional[Sequence[Message]] = None,
) -> List[Message]:
    """Assemble ``[system, *history, user]`` in that order."""
    msgs: List[Message] = [Message(role="system", content=system_prompt)]
    for m in history or ():
        if m.role == "system":
            continue
        msgs.append(m)
    msgs.append(Message(role="user", content=user_content))
    return msgs


# -----------------------------
# ConversationHistory
# -----------------------------
class ConversationHistory:
    """Client-held ordered history of user/assistant messages.

    The buffer keeps at most ``limit`` entries; once full, the oldest entries
    are dropped first. It lives only as long as the owning panel.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT, items: Iterable[Message] = ()) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        self.limit = limit
        self._items: Deque[Message] = deque(maxlen=limit)
        for m in items:
            self.append(m)

    def append(self, message: Message) -> None:
        if message.role == "system":
            raise ValueError("system prompts are never stored in history")
        self._items.append(message)

    def add_turn(self, user: str, assistant: str) -> None:
        self.append(Message(role="user", content=user))
        self.append(Message(role="assistant", content=assistant))

    def clear(self) -> None:
        self._items.clear()

    def snapshot(self) -> List[Message]:
        return list(self._items)

    def to_payload(self) -> List[Dict[str, Any]]:
        return [m.to_payload() for m in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._items))
