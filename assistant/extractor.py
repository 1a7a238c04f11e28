"""Text extraction from OpenAI response payloads.

The Responses API does not always populate its ``output_text`` convenience
field: depending on the SDK version and the model, the answer may only be
present inside ``output[].content[]`` or not at all (e.g. reasoning-only
output). Payloads are classified into one of the known shapes first and the
text is then taken from the first shape that carries it.

Both SDK model objects and plain mappings are accepted; malformed payloads
classify as :class:`NoText` instead of raising.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union


@dataclass(frozen=True)
class DirectText:
    """``output_text`` is present and non-blank."""

    text: str


@dataclass(frozen=True)
class StructuredOutput:
    """No usable ``output_text``; ``output`` items carry content parts.

    ``parts`` holds the candidate strings of every content entry in
    item-then-content order, ``text`` before ``value`` within one entry.
    """

    parts: Tuple[Tuple[str, ...], ...]


@dataclass(frozen=True)
class NoText:
    pass


ResponseShape = Union[DirectText, StructuredOutput, NoText]


def _get(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    try:
        return getattr(obj, name, None)
    except Exception:
        return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value).strip()
    return ""


def _as_sequence(value: Any) -> Sequence[Any]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    return ()


def classify_response(response: Any) -> ResponseShape:
    direct = _as_text(_get(response, "output_text"))
    if direct:
        return DirectText(text=direct)

    parts = []
    for item in _as_sequence(_get(response, "output")):
        for entry in _as_sequence(_get(item, "content")):
            parts.append((_as_text(_get(entry, "text")), _as_text(_get(entry, "value"))))
    if parts:
        return StructuredOutput(parts=tuple(parts))
    return NoText()


def extract_response_text(response: Any) -> str:
    """Return the best-effort answer text of a Responses API payload, or ``""``."""
    shape = classify_response(response)
    if isinstance(shape, DirectText):
        return shape.text
    if isinstance(shape, StructuredOutput):
        for candidates in shape.parts:
            for text in candidates:
                if text:
                    return text
    return ""


def response_id(response: Any) -> Optional[str]:
    """Provider id of a Responses API payload, for log correlation."""
    value = _get(response, "id")
    return value if isinstance(value, str) and value else None


def extract_completion_text(completion: Any) -> str:
    """Return the trimmed content of the first Chat Completions choice, or ``""``."""
    choices = _as_sequence(_get(completion, "choices"))
    if not choices:
        return ""
    message = _get(choices[0], "message")
    return _as_text(_get(message, "content"))
