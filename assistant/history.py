"""Conversation history → chat messages for the model call."""
from __future__ import annotations

from typing import Any, Iterable, List, Literal, TypedDict

Role = Literal["system", "user", "assistant"]


class ChatTurn(TypedDict):
    role: Role
    content: str


def _field(row: Any, name: str) -> Any:
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def format_history(history: Iterable[Any]) -> List[ChatTurn]:
    """Map stored messages to role/content pairs, keeping their order.

    ``sender == "user"`` becomes ``user``; every other sender is the bot and
    becomes ``assistant``. Rows may be ORM entities, DTOs or plain dicts.
    """
    turns: List[ChatTurn] = []
    for row in history:
        sender = _field(row, "sender")
        role: Role = "user" if sender == "user" else "assistant"
        turns.append({"role": role, "content": str(_field(row, "text") or "")})
    return turns
