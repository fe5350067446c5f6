"""Same-day events read from a folder of .ics calendars."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable

import recurring_ical_events
from icalendar import Calendar

from settings import SettingsStore

logger = logging.getLogger(__name__)

# Fallback colours, assigned by calendar position
PALETTE = ["#1BADF8", "#63DA38", "#FF9500", "#CC73E1", "#FFCC00", "#FF2968", "#A2845E"]


@dataclass(frozen=True)
class CalendarInfo:
    identifier: str
    title: str
    color: str
    path: str


@dataclass(frozen=True)
class EventSummary:
    start: datetime
    is_all_day: bool
    title: str
    color: str
    calendar_id: str = ""


def _local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _hex_color(raw) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    if text.startswith("#") and len(text) in (7, 9):
        # Apple stores #RRGGBBAA
        return text[:7].upper()
    return None


class IcsEventSource:
    """Event source over ``*.ics`` files; one file is one calendar.

    Access is granted when the folder exists and is readable. Parsed
    files are cached until their modification time changes.
    """

    def __init__(self, settings: SettingsStore, calendar_dir: str | None = None) -> None:
        self._settings = settings
        self._calendar_dir = calendar_dir
        self._cache: dict[str, tuple[float, Calendar, str | None]] = {}

    @property
    def calendar_dir(self) -> str:
        return self._calendar_dir or self._settings.calendar_dir

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    @property
    def is_authorized(self) -> bool:
        return os.path.isdir(self.calendar_dir) and os.access(self.calendar_dir, os.R_OK)

    def request_access(self, completion: Callable[[bool], None]) -> None:
        """Create the calendar folder if needed and report access.

        ``completion`` is called synchronously; GUI callers marshal it
        onto their own thread.
        """
        try:
            os.makedirs(self.calendar_dir, exist_ok=True)
        except OSError as exc:
            logger.error("Cannot create calendar folder %s: %s", self.calendar_dir, exc)
        granted = self.is_authorized
        logger.info("Calendar access %s for %s",
                    "granted" if granted else "denied", self.calendar_dir)
        completion(granted)

    # ------------------------------------------------------------------
    # Calendars
    # ------------------------------------------------------------------
    def _load(self, path: str) -> tuple[Calendar, str | None] | None:
        """Return the parsed calendar and its own colour, if it sets one."""
        try:
            mtime = os.path.getmtime(path)
        except OSError as exc:
            logger.warning("Skipping calendar %s: %s", path, exc)
            return None
        cached = self._cache.get(path)
        if cached is not None and cached[0] == mtime:
            return cached[1], cached[2]

        try:
            with open(path, "rb") as f:
                cal = Calendar.from_ical(f.read())
        except (ValueError, OSError) as exc:
            logger.warning("Skipping unparsable calendar %s: %s", path, exc)
            self._cache.pop(path, None)
            return None

        color = (_hex_color(cal.get("X-APPLE-CALENDAR-COLOR"))
                 or _hex_color(cal.get("COLOR")))
        self._cache[path] = (mtime, cal, color)
        logger.debug("Loaded calendar %s", path)
        return cal, color

    def _loaded(self) -> list[tuple[CalendarInfo, Calendar]]:
        if not self.is_authorized:
            return []
        names = sorted(n for n in os.listdir(self.calendar_dir) if n.lower().endswith(".ics"))
        paths = [os.path.join(self.calendar_dir, name) for name in names]
        for stale in set(self._cache) - set(paths):
            del self._cache[stale]

        loaded = []
        for index, path in enumerate(paths):
            entry = self._load(path)
            if entry is None:
                continue
            cal, color = entry
            # Palette slots follow the current folder listing
            stem = os.path.splitext(os.path.basename(path))[0]
            info = CalendarInfo(
                identifier=stem,
                title=str(cal.get("X-WR-CALNAME") or stem),
                color=color or PALETTE[index % len(PALETTE)],
                path=path,
            )
            loaded.append((info, cal))
        return loaded

    def calendars(self) -> list[CalendarInfo]:
        """Return every readable calendar, regardless of preferences."""
        return [info for info, _cal in self._loaded()]

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def fetch_events(self, day: date) -> list[EventSummary]:
        """Return the events of ``day`` from enabled calendars, by start time."""
        enabled = self._settings.enabled_calendar_ids
        show_all_day = self._settings.show_all_day_events

        events: list[EventSummary] = []
        for info, cal in self._loaded():
            if enabled and info.identifier not in enabled:
                continue
            try:
                components = recurring_ical_events.of(cal).at(day)
            except ValueError as exc:
                logger.warning("Cannot expand events of %s: %s", info.path, exc)
                continue
            for component in components:
                summary = self._summarize(component, day, info)
                if summary is None:
                    continue
                if summary.is_all_day and not show_all_day:
                    continue
                events.append(summary)

        events.sort(key=lambda e: (e.start, e.title))
        return events

    @staticmethod
    def _summarize(component, day: date, info: CalendarInfo) -> EventSummary | None:
        dtstart = component.get("dtstart")
        if dtstart is None:
            return None
        start = dtstart.dt
        title = str(component.get("summary") or "Untitled")
        if isinstance(start, datetime):
            return EventSummary(_local_naive(start), False, title, info.color, info.identifier)
        # All-day events may span several days; anchor on the requested one
        return EventSummary(datetime.combine(day, time.min), True, title,
                            info.color, info.identifier)
