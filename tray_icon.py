"""System-tray icon setup via pystray."""

from datetime import date
from typing import Callable

import pystray
from PIL import Image
from pystray import MenuItem, Menu

from icon_gen import create_icon_image


def tray_title(today: date) -> str:
    return f"Mini Year Calendar – {today.strftime('%A')}, {today.day} {today.strftime('%B %Y')}"


def create_tray(
    icon_image: Image.Image,
    on_show: Callable[[], None],
    on_exit: Callable[[], None],
    on_settings: Callable[[], None] | None = None,
    today: date | None = None,
) -> pystray.Icon:
    """Build and return a pystray Icon (not yet started)."""
    items: list[MenuItem | Menu] = [
        MenuItem("Show Calendar", lambda _icon, _item: on_show(), default=True),
    ]
    if on_settings is not None:
        items.append(MenuItem("Settings", lambda _icon, _item: on_settings()))
    items.append(Menu.SEPARATOR)
    items.append(MenuItem("Quit Calendar", lambda _icon, _item: on_exit()))
    menu = Menu(*items)
    return pystray.Icon("mini-year-calendar", icon_image,
                        tray_title(today or date.today()), menu)


def refresh_tray(icon: pystray.Icon, today: date) -> None:
    """Redraw the day number and tooltip, e.g. after midnight."""
    icon.icon = create_icon_image(today)
    icon.title = tray_title(today)
