"""
Transform outcomes.

Every execution produces exactly one of:
- TextOutcome: Plain text result
- ErrorOutcome: Script failed, timed out, or returned an error record
- AlternativeOutcome: Tagged non-text result (image, color, diff, ...)

Callers discriminate on the ``type`` tag or with isinstance; the
executor never raises.
"""

import json
from dataclasses import dataclass, field
from typing import Any

ALTERNATIVE_TAGS = frozenset(
    {"image", "image-result", "color", "diff", "download", "json-visual"}
)


@dataclass(frozen=True)
class TextOutcome:
    text: str
    type: str = field(default="text", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class ErrorOutcome:
    message: str
    type: str = field(default="error", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message}


@dataclass(frozen=True)
class AlternativeOutcome:
    """
    A tagged result rendered by something other than a text box.

    Attributes:
        type: One of ALTERNATIVE_TAGS
        payload: The record returned by the script, tag included
    """

    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return dict(self.payload, type=self.type)


TransformOutcome = TextOutcome | ErrorOutcome | AlternativeOutcome


def normalize_result(value: Any) -> TransformOutcome:
    """
    Convert whatever a transform returned into a TransformOutcome.

    Args:
        value: Raw return value of the transform function

    Returns:
        None as empty text, strings as text, tagged dicts as error or
        alternative records, containers as indented JSON, anything else
        through str()
    """
    if value is None:
        return TextOutcome("")

    if isinstance(value, str):
        return TextOutcome(value)

    if isinstance(value, (bytes, bytearray)):
        try:
            return TextOutcome(bytes(value).decode("utf-8"))
        except UnicodeDecodeError:
            return ErrorOutcome("Transform returned bytes that are not valid UTF-8")

    if isinstance(value, dict):
        tag = value.get("type")
        if tag == "error" and isinstance(value.get("message"), str):
            return ErrorOutcome(value["message"])
        if tag == "image":
            if isinstance(value.get("data"), str):
                return AlternativeOutcome(type=tag, payload=dict(value))
        elif isinstance(tag, str) and tag in ALTERNATIVE_TAGS:
            return AlternativeOutcome(type=tag, payload=dict(value))

    if isinstance(value, (dict, list, tuple)):
        return TextOutcome(json.dumps(value, indent=2, ensure_ascii=False, default=str))

    return TextOutcome(str(value))
