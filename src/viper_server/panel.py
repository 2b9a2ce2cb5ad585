"""Chat panel state: display messages, pending placeholders and sign-in gating.

The panel is front-end agnostic. It owns the list of :class:`ChatDisplayMessage`
shown to the user and the :class:`ConversationHistory` sent back with each chat
turn. Rendering, notifications and scrolling are delegated to callbacks so the
same state machine can sit behind a terminal UI or a web view.

Turn lifecycle::

    IDLE -> USER_APPENDED -> PENDING -> RESOLVED | FAILED

Several turns may be pending at once. Each one owns its placeholder id, so a
late resolution only ever touches its own slot. ``clear()`` and
``switch_flavor()`` start a new epoch; replies for turns from an older epoch
are dropped instead of being written into the new view. Chat turns enter the
history in the order they were sent, even when their replies arrive out of
order: a resolved turn waits until every earlier chat turn has settled.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Protocol, Sequence, Tuple

from .llm import AssistantReply
from .messages import DEFAULT_HISTORY_LIMIT, ConversationHistory, Message

logger = logging.getLogger(__name__)

ASSISTANT_NAME = "Viper"
USER_LABEL = "You"
THINKING_TEXT = "Viper is thinking..."
FAILURE_TEXT = "Sorry, I encountered an error. Please try again."
GREETING = (
    "Hello! I'm Viper, your AI assistant. I'm here to help with your Python "
    "questions. What are you working on today?"
)


class Flavor(str, Enum):
    CHAT = "chat"
    ANALYZE = "analyze"
    GENERATE = "generate"


class TurnState(str, Enum):
    IDLE = "idle"
    USER_APPENDED = "user_appended"
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class ChatDisplayMessage:
    id: str
    sender: str
    content: str
    time: str
    is_assistant: bool = False
    is_pending: bool = False


@dataclass
class Turn:
    number: int
    epoch: int
    flavor: Flavor
    text: str
    state: TurnState = TurnState.IDLE
    placeholder_id: Optional[str] = None
    discarded: bool = False


@dataclass(frozen=True)
class Session:
    user_id: str
    name: str = ""


class AssistantBackend(Protocol):
    async def chat(self, message: str, history: Sequence[Message] = ()) -> AssistantReply: ...

    async def analyze_code(self, code: str, language: str = "python") -> AssistantReply: ...

    async def generate_code(self, description: str, language: str = "python") -> AssistantReply: ...


class Notifier(Protocol):
    def info(self, title: str, description: str) -> None: ...

    def error(self, title: str, description: str) -> None: ...


# -----------------------------
# Panel
# -----------------------------
class ChatPanel:
    """Stateful chat panel driving one assistant conversation.

    Parameters
    ----------
    backend : AssistantBackend
        Anything exposing ``chat`` / ``analyze_code`` / ``generate_code``
        coroutines, normally :class:`viper_server.api_client.AssistantAPI`.
    session : Callable[[], Session | None]
        Returns the signed-in session, or None when signed out.
    notifier : Notifier
        Receives toast-style info and error notifications.
    on_scroll : Callable[[str], None] | None
        Called with the newest message id after every change to the list.
    auth_required : Iterable[Flavor]
        Flavors that refuse to send while signed out (all of them by default).
    """

    def __init__(
        self,
        backend: AssistantBackend,
        session: Callable[[], Optional[Session]],
        notifier: Notifier,
        *,
        on_scroll: Optional[Callable[[str], None]] = None,
        auth_required: Iterable[Flavor] = tuple(Flavor),
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        language: str = "python",
        clock: Callable[[], datetime] = datetime.now,
        greeting: Optional[str] = GREETING,
    ) -> None:
        self.backend = backend
        self.notifier = notifier
        self.language = language
        self.history = ConversationHistory(history_limit)
        self.auth_required: FrozenSet[Flavor] = frozenset(auth_required)
        self._session = session
        self._on_scroll = on_scroll
        self._clock = clock
        self._greeting = greeting
        self._ids = itertools.count(1)
        self._turns = itertools.count(1)
        self._epoch = 0
        self._flavor = Flavor.CHAT
        self._messages: List[ChatDisplayMessage] = []
        # Chat turns of the current epoch in send order, and the outcomes not yet
        # written to history (None for a turn that produced nothing to record).
        self._chat_order: List[int] = []
        self._chat_outcomes: Dict[int, Optional[Tuple[str, str]]] = {}
        self._reset_view()

    # --------- read-only views ----------
    @property
    def messages(self) -> List[ChatDisplayMessage]:
        return list(self._messages)

    @property
    def flavor(self) -> Flavor:
        return self._flavor

    @property
    def epoch(self) -> int:
        return self._epoch

    def pending(self) -> List[ChatDisplayMessage]:
        return [m for m in self._messages if m.is_pending]

    # --------- actions ----------
    def switch_flavor(self, flavor: Flavor) -> None:
        if flavor == self._flavor:
            return
        self._flavor = Flavor(flavor)
        self._epoch += 1
        self._reset_view()

    def clear(self) -> None:
        """Drop the visible conversation and its history; in-flight replies are ignored."""
        self._epoch += 1
        self.history.clear()
        self._reset_view()

    async def send(self, text: str) -> Optional[Turn]:
        """Run one turn. Returns None when nothing was sent."""
        text = (text or "").strip()
        if not text:
            return None

        flavor = self._flavor
        if flavor in self.auth_required and self._session() is None:
            self.notifier.error("Authentication required", "Please sign in to chat with Viper.")
            return None

        turn = Turn(number=next(self._turns), epoch=self._epoch, flavor=flavor, text=text)
        self._append(self._new_message(USER_LABEL, text))
        turn.state = TurnState.USER_APPENDED

        placeholder = self._new_message(ASSISTANT_NAME, THINKING_TEXT, is_assistant=True, is_pending=True)
        turn.placeholder_id = placeholder.id
        self._append(placeholder)
        turn.state = TurnState.PENDING
        if flavor is Flavor.CHAT:
            self._chat_order.append(turn.number)

        history = self.history.snapshot()
        try:
            reply = await self._dispatch(flavor, text, history)
        except Exception as e:
            logger.warning("Turn %d failed: %s", turn.number, e)
            turn.state = TurnState.FAILED
            settled = self._settle(turn, FAILURE_TEXT)
            self._record(turn, None)
            if settled:
                self.notifier.error("Error", "Failed to get a response from Viper. Please try again.")
            return turn

        turn.state = TurnState.RESOLVED
        settled = self._settle(turn, reply.text)
        self._record(turn, (text, reply.text) if settled else None)
        if settled and reply.is_demo:
            self.notifier.info(
                "Demo Mode",
                "Viper is running in demo mode. Configure DEEPSEEK_API_KEY for real AI responses.",
            )
        return turn

    # --------- internals ----------
    async def _dispatch(self, flavor: Flavor, text: str, history: List[Message]) -> AssistantReply:
        if flavor is Flavor.ANALYZE:
            return await self.backend.analyze_code(text, self.language)
        if flavor is Flavor.GENERATE:
            return await self.backend.generate_code(text, self.language)
        return await self.backend.chat(text, history)

    def _settle(self, turn: Turn, content: str) -> bool:
        """Swap the turn's placeholder for its final message. False if the turn is stale."""
        if turn.epoch != self._epoch:
            turn.discarded = True
            logger.debug("Ignoring reply for turn %d from epoch %d", turn.number, turn.epoch)
            return False
        for i, m in enumerate(self._messages):
            if m.id == turn.placeholder_id:
                final = replace(
                    m,
                    id=self._next_id(),
                    content=content,
                    time=self._now(),
                    is_pending=False,
                )
                self._messages[i] = final
                self._scroll()
                return True
        turn.discarded = True
        return False

    def _record(self, turn: Turn, outcome: Optional[Tuple[str, str]]) -> None:
        """Store a chat turn's outcome, then flush every leading settled turn to history."""
        if turn.flavor is not Flavor.CHAT or turn.epoch != self._epoch:
            return
        self._chat_outcomes[turn.number] = outcome
        while self._chat_order and self._chat_order[0] in self._chat_outcomes:
            done = self._chat_outcomes.pop(self._chat_order.pop(0))
            if done is not None:
                self.history.add_turn(*done)

    def _reset_view(self) -> None:
        self._chat_order = []
        self._chat_outcomes = {}
        self._messages = []
        if self._greeting and self._flavor is Flavor.CHAT:
            self._append(self._new_message(ASSISTANT_NAME, self._greeting, is_assistant=True))

    def _append(self, message: ChatDisplayMessage) -> None:
        self._messages.append(message)
        self._scroll()

    def _scroll(self) -> None:
        if self._on_scroll and self._messages:
            self._on_scroll(self._messages[-1].id)

    def _new_message(
        self, sender: str, content: str, *, is_assistant: bool = False, is_pending: bool = False
    ) -> ChatDisplayMessage:
        return ChatDisplayMessage(
            id=self._next_id(),
            sender=sender,
            content=content,
            time=self._now(),
            is_assistant=is_assistant,
            is_pending=is_pending,
        )

    def _next_id(self) -> str:
        return f"msg-{next(self._ids)}"

    def _now(self) -> str:
        return self._clock().strftime("%I:%M %p")


def summarize(messages: Sequence[ChatDisplayMessage]) -> Dict[str, int]:
    """Counts by kind, handy for status lines."""
    return {
        "total": len(messages),
        "pending": sum(1 for m in messages if m.is_pending),
        "assistant": sum(1 for m in messages if m.is_assistant and not m.is_pending),
        "user": sum(1 for m in messages if not m.is_assistant),
    }
