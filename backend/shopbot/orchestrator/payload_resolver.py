from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PayloadShape(str, Enum):
    DIRECT = "direct"
    MESSAGE = "message"
    SESSION = "session"
    DATA = "data"
    PAYLOAD = "payload"
    GENERIC = "generic"


@dataclass
class Visitor:
    email: str | None = None
    platform_id: str | None = None
    name: str | None = None


@dataclass
class InboundMessage:
    text: str
    shape: PayloadShape
    visitor: Visitor = field(default_factory=Visitor)


TEXT_KEYS = ("message", "text", "question", "query", "content", "input", "msg")
NESTED_SHAPES = (
    (PayloadShape.MESSAGE, "message"),
    (PayloadShape.SESSION, "session"),
    (PayloadShape.DATA, "data"),
    (PayloadShape.PAYLOAD, "payload"),
)
# Keys whose values identify the caller rather than carry what they typed.
IGNORED_SCAN_KEYS = frozenset(
    {
        "visitor",
        "user",
        "email",
        "name",
        "id",
        "visitor_id",
        "visitorId",
        "user_id",
        "userId",
        "shop",
        "handler",
        "operation",
        "timestamp",
        "time",
        "type",
        "language",
        "channel",
        "action",
        "context_id",
        "source",
    }
)


def resolve_inbound(payload: Any) -> InboundMessage | None:
    """Finds the visitor's text in a loosely structured webhook body.

    Shapes are tried in a fixed priority order: a text field at the top
    level, then nested under ``message``, ``session``, ``data`` and
    ``payload``, then a scan of every remaining top-level value. The first
    non-empty string wins. Returns ``None`` when no text is found.
    """
    if not isinstance(payload, dict):
        return None
    visitor = resolve_visitor(payload)

    text = _text_from(payload)
    if text:
        return InboundMessage(text=text, shape=PayloadShape.DIRECT, visitor=visitor)

    for shape, key in NESTED_SHAPES:
        nested = payload.get(key)
        if isinstance(nested, dict):
            text = _text_from(nested)
            if text:
                return InboundMessage(text=text, shape=shape, visitor=visitor)

    text = _scan(payload)
    if text:
        return InboundMessage(text=text, shape=PayloadShape.GENERIC, visitor=visitor)
    return None


def resolve_visitor(payload: dict[str, Any]) -> Visitor:
    sources: list[dict[str, Any]] = []
    for key in ("visitor", "user"):
        candidate = payload.get(key)
        if isinstance(candidate, dict):
            sources.append(candidate)
    session = payload.get("session")
    if isinstance(session, dict):
        sources.append(session)
        nested = session.get("visitor")
        if isinstance(nested, dict):
            sources.append(nested)
    sources.append(payload)

    return Visitor(
        email=_first(sources, ("email",)),
        platform_id=_first(sources, ("id", "visitor_id", "visitorId", "user_id", "userId")),
        name=_first(sources, ("name", "display_name", "displayName")),
    )


def _unwrap(value: Any) -> Any:
    # SalesIQ wraps session fields as {"value": ...}.
    if isinstance(value, dict) and "value" in value:
        return value["value"]
    return value


def _as_text(value: Any) -> str | None:
    value = _unwrap(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _text_from(container: dict[str, Any]) -> str | None:
    for key in TEXT_KEYS:
        text = _as_text(container.get(key))
        if text:
            return text
    return None


def _scan(payload: dict[str, Any]) -> str | None:
    for key, value in payload.items():
        if key in IGNORED_SCAN_KEYS:
            continue
        text = _as_text(value)
        if text:
            return text
        if isinstance(value, dict):
            text = _text_from(value)
            if text:
                return text
    return None


def _first(sources: list[dict[str, Any]], keys: tuple[str, ...]) -> str | None:
    for source in sources:
        for key in keys:
            value = _unwrap(source.get(key))
            if isinstance(value, (str, int)) and not isinstance(value, bool) and str(value).strip():
                return str(value).strip()
    return None
