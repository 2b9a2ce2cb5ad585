from __future__ import annotations

import pytest
from pydantic import ValidationError

from viper_server.messages import ConversationHistory, Message, build_messages


def test_message_is_immutable():
    m = Message(role="user", content="hi")
    with pytest.raises(ValidationError):
        m.content = "changed"  # type: ignore[misc]


def test_build_messages_orders_system_history_user():
    history = [Message(role="user", content="a"), Message(role="assistant", content="b")]
    msgs = build_messages("sys", "c", history)
    assert [(m.role, m.content) for m in msgs] == [
        ("system", "sys"),
        ("user", "a"),
        ("assistant", "b"),
        ("user", "c"),
    ]


def test_history_drops_oldest_past_cap():
    history = ConversationHistory(limit=4)
    for i in range(3):
        history.add_turn(f"u{i}", f"a{i}")

    assert len(history) == 4
    assert [m.content for m in history] == ["u1", "a1", "u2", "a2"]


def test_history_default_cap_is_fifty():
    history = ConversationHistory()
    for i in range(30):
        history.add_turn(f"u{i}", f"a{i}")
    assert len(history) == 50
    assert history.snapshot()[0].content == "u5"


def test_history_rejects_system_prompts():
    history = ConversationHistory()
    with pytest.raises(ValueError):
        history.append(Message(role="system", content="be evil"))


def test_history_payload_round_trips_to_wire_shape():
    history = ConversationHistory(items=[Message(role="user", content="hi")])
    assert history.to_payload() == [{"role": "user", "content": "hi"}]
    history.clear()
    assert history.to_payload() == []
