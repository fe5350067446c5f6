"""JSON-based settings persistence for the mini year calendar."""

from __future__ import annotations

import json
import logging
import os
import sys

logger = logging.getLogger(__name__)

APP_DIR = os.path.join(os.path.expanduser("~"), ".mini-year-calendar")
SETTINGS_PATH = os.path.join(os.path.expanduser("~"), ".mini-year-calendar.json")
DEFAULT_CALENDAR_DIR = os.path.join(APP_DIR, "calendars")

MAX_EVENTS_LIMIT = 15

_DEFAULTS = {
    "enabled_calendar_ids": [],
    "max_events_to_show": 5,
    "show_all_day_events": True,
    "launch_at_login": False,
    "calendar_dir": None,
    "log_level": "INFO",
}


def load_settings(path: str = SETTINGS_PATH) -> dict:
    """Load settings from disk, returning defaults for missing keys."""
    settings = dict(_DEFAULTS)
    settings["enabled_calendar_ids"] = []
    try:
        with open(path, "r", encoding="utf-8") as f:
            stored = json.load(f)
    except FileNotFoundError:
        return settings
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return settings
    if not isinstance(stored, dict):
        logger.warning("Ignoring settings file %s: not a JSON object", path)
        return settings

    ids = stored.get("enabled_calendar_ids")
    if isinstance(ids, list):
        settings["enabled_calendar_ids"] = [k for k in ids if isinstance(k, str)]
    # bool is a subclass of int, keep it out of the int slot
    value = stored.get("max_events_to_show")
    if isinstance(value, int) and not isinstance(value, bool):
        settings["max_events_to_show"] = value
    for key in ("show_all_day_events", "launch_at_login"):
        if isinstance(stored.get(key), bool):
            settings[key] = stored[key]
    for key in ("calendar_dir", "log_level"):
        if isinstance(stored.get(key), str):
            settings[key] = stored[key]
    return settings


def save_settings(settings: dict, path: str = SETTINGS_PATH) -> None:
    """Persist settings to disk."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)


class SettingsStore:
    """User preferences backed by one JSON file.

    Setters write through to disk immediately.
    """

    def __init__(self, path: str = SETTINGS_PATH) -> None:
        self.path = path
        self._data = load_settings(path)

    def reload(self) -> None:
        self._data = load_settings(self.path)

    def _set(self, key: str, value) -> None:
        self._data[key] = value
        save_settings(self._data, self.path)

    # --- calendar selection ---------------------------------------------

    @property
    def enabled_calendar_ids(self) -> set[str]:
        """Enabled calendar identifiers; empty means every calendar."""
        return set(self._data["enabled_calendar_ids"])

    @enabled_calendar_ids.setter
    def enabled_calendar_ids(self, ids: set[str]) -> None:
        self._set("enabled_calendar_ids", sorted(ids))

    # --- event display --------------------------------------------------

    @property
    def max_events_to_show(self) -> int:
        value = self._data["max_events_to_show"]
        if value <= 0:
            return _DEFAULTS["max_events_to_show"]
        return min(value, MAX_EVENTS_LIMIT)

    @max_events_to_show.setter
    def max_events_to_show(self, value: int) -> None:
        self._set("max_events_to_show", max(1, min(MAX_EVENTS_LIMIT, int(value))))

    @property
    def show_all_day_events(self) -> bool:
        return self._data["show_all_day_events"]

    @show_all_day_events.setter
    def show_all_day_events(self, value: bool) -> None:
        self._set("show_all_day_events", bool(value))

    # --- general --------------------------------------------------------

    @property
    def launch_at_login(self) -> bool:
        return self._data["launch_at_login"]

    @launch_at_login.setter
    def launch_at_login(self, enable: bool) -> None:
        self._set("launch_at_login", bool(enable))
        try:
            registered = set_autostart(bool(enable))
        except OSError as exc:
            logger.error("Failed to update launch at login: %s", exc)
            return
        if not registered:
            logger.warning("Launch at login is not supported on %s", sys.platform)

    @property
    def calendar_dir(self) -> str:
        return os.path.expanduser(self._data["calendar_dir"] or DEFAULT_CALENDAR_DIR)

    @property
    def log_level(self) -> str:
        return self._data["log_level"]


# ------------------------------------------------------------------
# Windows autostart (registry-based)
# ------------------------------------------------------------------
_RUN_KEY = r"Software\Microsoft\Windows\CurrentVersion\Run"
_APP_NAME = "MiniYearCalendar"


def _autostart_command() -> str:
    if getattr(sys, "frozen", False):
        # Running as PyInstaller .exe
        return f'"{sys.executable}"'
    main_script = os.path.abspath(os.path.join(os.path.dirname(__file__), "main.py"))
    pythonw = os.path.join(os.path.dirname(sys.executable), "pythonw.exe")
    if not os.path.exists(pythonw):
        pythonw = sys.executable
    return f'"{pythonw}" "{main_script}"'


def get_autostart() -> bool:
    """Return True if the autostart registry entry exists."""
    if sys.platform != "win32":
        return False
    import winreg
    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, _RUN_KEY, 0, winreg.KEY_READ) as key:
            winreg.QueryValueEx(key, _APP_NAME)
            return True
    except OSError:
        return False


def set_autostart(enable: bool) -> bool:
    """Create or remove the autostart registry entry.

    Returns False where launch at login is not supported.
    """
    if sys.platform != "win32":
        return False
    import winreg
    if enable:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, _RUN_KEY, 0, winreg.KEY_SET_VALUE) as key:
            winreg.SetValueEx(key, _APP_NAME, 0, winreg.REG_SZ, _autostart_command())
    else:
        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, _RUN_KEY, 0, winreg.KEY_SET_VALUE) as key:
                winreg.DeleteValue(key, _APP_NAME)
        except FileNotFoundError:
            pass
    logger.info("Launch at login %s", "enabled" if enable else "disabled")
    return True
