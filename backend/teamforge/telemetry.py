"""In-process telemetry for exam and team-matching activity.

Every event name is declared in ``EventName``. Listeners may subscribe to all
events or to a subset; each delivered event is also written to the
``teamforge.telemetry`` logger as a single ``TELEMETRY {...}`` JSON line.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Literal, Optional, Tuple, get_args

logger = logging.getLogger("teamforge.telemetry")

EventName = Literal[
    "exam_attempt_started",
    "exam_submitted",
    "team_match_generated",
    "team_layout_saved",
    "team_member_moved",
    "admin_login",
]
KNOWN_EVENTS: FrozenSet[str] = frozenset(get_args(EventName))


@dataclass(frozen=True)
class TelemetryEvent:
    name: EventName
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[TelemetryEvent], None]

# (listener, subscribed names or None for every event)
_listeners: List[Tuple[Listener, Optional[FrozenSet[str]]]] = []
_lock = RLock()


def _check_names(names: Iterable[str]) -> FrozenSet[str]:
    resolved = frozenset(names)
    unknown = resolved - KNOWN_EVENTS
    if unknown:
        raise ValueError(f"Unknown telemetry event(s): {', '.join(sorted(unknown))}")
    return resolved


def register_listener(listener: Listener, events: Optional[Iterable[EventName]] = None) -> None:
    """Register an in-process listener, optionally limited to ``events``."""
    subscribed = _check_names(events) if events is not None else None
    with _lock:
        _listeners.append((listener, subscribed))


def clear_listeners() -> None:
    with _lock:
        _listeners.clear()


def emit_event(name: EventName, **fields: Any) -> None:
    if name not in KNOWN_EVENTS:
        raise ValueError(f"Unknown telemetry event: {name}")
    event = TelemetryEvent(name=name, payload=_sanitize(fields))

    with _lock:
        listeners = [listener for listener, subscribed in _listeners if subscribed is None or name in subscribed]

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    structured = {"event": name, **event.payload}
    logger.info("TELEMETRY %s", json.dumps(structured, default=str, sort_keys=True))


def _sanitize(fields: Dict[str, Any]) -> Dict[str, Any]:
    sanitized: Dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, datetime):
            sanitized[key] = value.isoformat()
        elif isinstance(value, Enum):
            sanitized[key] = value.value
        else:
            sanitized[key] = value
    return sanitized


__all__ = [
    "EventName",
    "KNOWN_EVENTS",
    "TelemetryEvent",
    "clear_listeners",
    "emit_event",
    "register_listener",
]
