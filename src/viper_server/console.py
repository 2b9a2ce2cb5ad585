"""Terminal front-end for the chat panel.

Commands: ``/chat``, ``/analyze``, ``/generate`` switch flavor; ``/clear`` resets
the conversation; ``/quit`` exits. Multi-line code can be pasted after
``/analyze`` by ending the block with a single ``.`` line.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
from typing import List, Optional, Set

import httpx

from .api_client import AssistantAPI
from .config import configure_logging
from .panel import ChatDisplayMessage, ChatPanel, Flavor, Session, summarize

logger = logging.getLogger(__name__)

_FLAVOR_COMMANDS = {"/chat": Flavor.CHAT, "/analyze": Flavor.ANALYZE, "/generate": Flavor.GENERATE}


class ConsoleNotifier:
    def info(self, title: str, description: str) -> None:
        print(f"[i] {title}: {description}")

    def error(self, title: str, description: str) -> None:
        print(f"[!] {title}: {description}")


class ConsoleView:
    """Prints each settled message once."""

    def __init__(self) -> None:
        self._shown: Set[str] = set()

    def render(self, messages: List[ChatDisplayMessage]) -> None:
        for m in messages:
            if m.is_pending or m.id in self._shown:
                continue
            self._shown.add(m.id)
            if m.is_assistant:
                print(f"{m.sender} ({m.time}):\n{m.content}\n")


async def _read(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


async def _read_block(first: str) -> str:
    lines = [first] if first else []
    while True:
        line = await _read("... ")
        if line.strip() == ".":
            return "\n".join(lines)
        lines.append(line)


async def run_console(
    base_url: str,
    user: Optional[str],
    language: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    session = Session(user_id=user, name=user) if user else None
    view = ConsoleView()
    async with AssistantAPI(base_url, transport=transport) as api:
        panel = ChatPanel(api, lambda: session, ConsoleNotifier(), language=language)
        view.render(panel.messages)
        while True:
            try:
                line = await _read(f"[{panel.flavor.value}] > ")
            except EOFError:
                break
            cmd = line.strip()
            if cmd == "/quit":
                break
            if cmd == "/clear":
                panel.clear()
                view.render(panel.messages)
                continue
            if cmd in _FLAVOR_COMMANDS:
                panel.switch_flavor(_FLAVOR_COMMANDS[cmd])
                view.render(panel.messages)
                continue
            if panel.flavor is Flavor.ANALYZE:
                line = await _read_block(line)
            await panel.send(line)
            view.render(panel.messages)
            logger.debug("panel: %s", summarize(panel.messages))


def main() -> None:
    parser = argparse.ArgumentParser(description="Chat with Viper from the terminal.")
    parser.add_argument(
        "--url",
        default=os.environ.get("VIPER_URL", "http://localhost:3001"),
        help="Assistant server base URL (default: http://localhost:3001)",
    )
    parser.add_argument(
        "--user",
        default=os.environ.get("VIPER_USER"),
        help="Signed-in user name; without it every send is refused.",
    )
    parser.add_argument("--language", default="python", help="Language for analyze/generate.")
    parser.add_argument("--log-level", default=os.environ.get("LOG_LEVEL", "WARNING"))
    args = parser.parse_args()

    configure_logging(args.log_level)
    asyncio.run(run_console(args.url, args.user, args.language))


if __name__ == "__main__":
    main()
