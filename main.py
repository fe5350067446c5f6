"""Entry point: glues pystray (daemon thread) with tkinter (main thread)."""

import ctypes
import logging
import sys
import threading
from datetime import date

from calendar_window import CalendarWindow
from event_source import IcsEventSource
from icon_gen import create_icon_image
from logging_setup import configure_logging
from settings import SettingsStore
from tray_icon import create_tray, refresh_tray

logger = logging.getLogger(__name__)


def main() -> None:
    if sys.platform == "win32":
        # DPI awareness so positions / fonts are crisp on Hi-DPI monitors
        try:
            ctypes.windll.shcore.SetProcessDpiAwareness(1)
        except (AttributeError, OSError):
            pass

    settings = SettingsStore()
    configure_logging(settings.log_level)
    logger.info("Starting Mini Year Calendar (settings: %s)", settings.path)

    events = IcsEventSource(settings)
    tray = None

    def on_today_changed(today: date) -> None:
        if tray is not None:
            refresh_tray(tray, today)

    cal_win = CalendarWindow(settings, events, clock=date.today,
                             on_today_changed=on_today_changed)

    # Callbacks marshalled onto the tkinter main thread
    def on_show() -> None:
        cal_win.root.after(0, cal_win.toggle)

    def on_exit() -> None:
        def _quit() -> None:
            logger.info("Quitting")
            tray.stop()
            cal_win.root.destroy()
        cal_win.root.after(0, _quit)

    def on_settings() -> None:
        cal_win.root.after(0, cal_win.open_settings)

    today = date.today()
    tray = create_tray(create_icon_image(today), on_show, on_exit,
                       on_settings=on_settings, today=today)

    # Run pystray in a daemon thread so it doesn't block tkinter
    tray_thread = threading.Thread(target=tray.run, daemon=True)
    tray_thread.start()

    # tkinter main loop on the main thread
    cal_win.root.mainloop()


if __name__ == "__main__":
    main()
