"""Events panel geometry and row text, no UI dependencies."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Sequence, TypeVar

if TYPE_CHECKING:
    from event_source import EventSummary

HEADER_HEIGHT = 32
ROW_HEIGHT = 22
BOTTOM_PADDING = 8
MIN_HEIGHT = 60
MAX_HEIGHT = 400

T = TypeVar("T")


def panel_height(event_count: int) -> int:
    """Return the events panel height for ``event_count`` rows."""
    height = HEADER_HEIGHT + event_count * ROW_HEIGHT + BOTTOM_PADDING
    return max(MIN_HEIGHT, min(MAX_HEIGHT, height))


def visible_events(events: Sequence[T], max_events: int) -> list[T]:
    """Return at most ``max_events`` leading entries (at least one slot)."""
    return list(events[:max(1, max_events)])


def event_time_label(event: EventSummary) -> str:
    if event.is_all_day:
        return "All day"
    return event.start.strftime("%H:%M")


def heading_text(d: date, today: date) -> str:
    label = f"{d.strftime('%A')}, {d.day} {d.strftime('%B')} {d.year}"
    if d == today:
        return f"Today · {label}"
    return label
