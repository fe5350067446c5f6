import logging
import os
from datetime import date, datetime, timedelta, timezone

import pytest

import event_source
from event_source import PALETTE, IcsEventSource
from settings import SettingsStore

DAY = date(2024, 1, 15)

WORK_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//mini-year-calendar//tests//EN
X-WR-CALNAME:Work
X-APPLE-CALENDAR-COLOR:#FF2968FF
BEGIN:VEVENT
UID:review@example.com
DTSTAMP:20240101T000000Z
DTSTART:20240115T140000
DTEND:20240115T150000
SUMMARY:Review
END:VEVENT
BEGIN:VEVENT
UID:standup@example.com
DTSTAMP:20240101T000000Z
DTSTART:20240115T090000
DTEND:20240115T093000
SUMMARY:Standup
END:VEVENT
BEGIN:VEVENT
UID:holiday@example.com
DTSTAMP:20240101T000000Z
DTSTART;VALUE=DATE:20240115
DTEND;VALUE=DATE:20240116
SUMMARY:Holiday
END:VEVENT
BEGIN:VEVENT
UID:sync@example.com
DTSTAMP:20240101T000000Z
DTSTART:20240108T100000
DTEND:20240108T110000
RRULE:FREQ=WEEKLY;COUNT=4
SUMMARY:Weekly sync
END:VEVENT
BEGIN:VEVENT
UID:other-day@example.com
DTSTAMP:20240101T000000Z
DTSTART:20240116T090000
DTEND:20240116T100000
SUMMARY:Tomorrow
END:VEVENT
END:VCALENDAR
"""

PERSONAL_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//mini-year-calendar//tests//EN
BEGIN:VEVENT
UID:lunch@example.com
DTSTAMP:20240101T000000Z
DTSTART:20240115T120000
DTEND:20240115T130000
SUMMARY:Lunch
END:VEVENT
END:VCALENDAR
"""


def _write(folder, name, text):
    path = folder / name
    path.write_bytes(text.replace("\n", "\r\n").encode("utf-8"))
    return path


@pytest.fixture
def store(tmp_path):
    return SettingsStore(str(tmp_path / "settings.json"))


@pytest.fixture
def folder(tmp_path):
    cals = tmp_path / "cals"
    cals.mkdir()
    _write(cals, "work.ics", WORK_ICS)
    _write(cals, "personal.ics", PERSONAL_ICS)
    return cals


@pytest.fixture
def source(store, folder):
    return IcsEventSource(store, calendar_dir=str(folder))


def test_missing_folder_is_not_authorized(store, tmp_path):
    missing = tmp_path / "nowhere"
    src = IcsEventSource(store, calendar_dir=str(missing))
    assert not src.is_authorized
    assert src.fetch_events(DAY) == []
    assert src.calendars() == []


def test_request_access_creates_folder(store, tmp_path):
    target = tmp_path / "new" / "cals"
    src = IcsEventSource(store, calendar_dir=str(target))
    results = []
    src.request_access(results.append)
    assert results == [True]
    assert target.is_dir()
    assert src.is_authorized


def test_calendar_dir_defaults_to_settings(store):
    assert IcsEventSource(store).calendar_dir == store.calendar_dir


def test_calendars_metadata(source):
    cals = source.calendars()
    assert [c.identifier for c in cals] == ["personal", "work"]
    assert [c.title for c in cals] == ["personal", "Work"]
    assert cals[0].color == PALETTE[0]
    assert cals[1].color == "#FF2968"


def test_fetch_events_sorted_by_start(source):
    events = source.fetch_events(DAY)
    assert [e.title for e in events] == ["Holiday", "Standup", "Weekly sync", "Lunch", "Review"]
    assert [e.is_all_day for e in events] == [True, False, False, False, False]
    assert events[0].start == datetime(2024, 1, 15)
    assert events[1].start == datetime(2024, 1, 15, 9, 0)
    assert events[3].color == PALETTE[0]
    assert events[4].calendar_id == "work"


def test_hide_all_day_events(source, store):
    store.show_all_day_events = False
    assert "Holiday" not in [e.title for e in source.fetch_events(DAY)]


def test_enabled_calendars_filter(source, store):
    store.enabled_calendar_ids = {"personal"}
    assert [e.title for e in source.fetch_events(DAY)] == ["Lunch"]


def test_multi_day_all_day_event_anchors_on_requested_day(store, folder):
    _write(folder, "trip.ics", """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//mini-year-calendar//tests//EN
BEGIN:VEVENT
UID:trip@example.com
DTSTAMP:20240101T000000Z
DTSTART;VALUE=DATE:20240220
DTEND;VALUE=DATE:20240223
SUMMARY:Trip
END:VEVENT
END:VCALENDAR
""")
    src = IcsEventSource(store, calendar_dir=str(folder))
    events = src.fetch_events(date(2024, 2, 21))
    assert [(e.title, e.start) for e in events] == [("Trip", datetime(2024, 2, 21))]


def test_unparsable_file_is_skipped(source, folder, caplog):
    _write(folder, "broken.ics", "this is not a calendar\n")
    with caplog.at_level(logging.WARNING, logger="event_source"):
        titles = [e.title for e in source.fetch_events(DAY)]
    assert "Lunch" in titles and "Review" in titles
    assert "broken.ics" in caplog.text
    assert [c.identifier for c in source.calendars()] == ["personal", "work"]


def test_changed_file_is_reloaded(source, folder):
    assert [e.title for e in source.fetch_events(DAY) if e.calendar_id == "personal"] == ["Lunch"]

    path = _write(folder, "personal.ics", PERSONAL_ICS.replace("Lunch", "Dentist"))
    stat = os.stat(path)
    os.utime(path, (stat.st_atime, stat.st_mtime + 10))

    assert [e.title for e in source.fetch_events(DAY) if e.calendar_id == "personal"] == ["Dentist"]


def test_aware_times_become_local():
    aware = datetime(2024, 1, 15, 8, 0, tzinfo=timezone(timedelta(hours=2)))
    local = event_source._local_naive(aware)
    assert local.tzinfo is None
    assert local == aware.astimezone().replace(tzinfo=None)
    naive = datetime(2024, 1, 15, 8, 0)
    assert event_source._local_naive(naive) is naive


def test_palette_follows_the_current_listing(store, tmp_path):
    cals = tmp_path / "palette"
    cals.mkdir()
    _write(cals, "m.ics", PERSONAL_ICS)
    src = IcsEventSource(store, calendar_dir=str(cals))
    assert [(c.identifier, c.color) for c in src.calendars()] == [("m", PALETTE[0])]

    _write(cals, "a.ics", PERSONAL_ICS)
    expected = [("a", PALETTE[0]), ("m", PALETTE[1])]
    assert [(c.identifier, c.color) for c in src.calendars()] == expected
    fresh = IcsEventSource(store, calendar_dir=str(cals))
    assert [(c.identifier, c.color) for c in fresh.calendars()] == expected


def test_explicit_colour_survives_listing_changes(source, folder):
    _write(folder, "aaa.ics", PERSONAL_ICS)
    colors = {c.identifier: c.color for c in source.calendars()}
    assert colors["work"] == "#FF2968"
    assert colors["aaa"] == PALETTE[0]
    assert colors["personal"] == PALETTE[1]


def test_deleted_file_leaves_the_cache(source, folder):
    source.calendars()
    assert str(folder / "personal.ics") in source._cache

    (folder / "personal.ics").unlink()

    assert [c.identifier for c in source.calendars()] == ["work"]
    assert list(source._cache) == [str(folder / "work.ics")]
