"""Year view state: display year, selected date and the 12 month grids."""

from __future__ import annotations

import enum
import logging
from datetime import date
from typing import Callable

from calendar_logic import MonthGridModel, build_month_grid

logger = logging.getLogger(__name__)


class Change(enum.Enum):
    YEAR = "year"  # only the displayed year moved
    DATE = "date"  # selected date (or today) changed, events need refetching


Listener = Callable[["YearLayout", Change], None]


class YearLayout:
    """Navigation state for one popover session.

    The layout is passive: it never draws. Listeners registered with
    :meth:`add_listener` are called after every mutation and the grids are
    rebuilt on each :meth:`month_grids` call.
    """

    def __init__(self, today: date) -> None:
        self.today = today
        self.display_year = today.year
        self.selected_date = today
        self._listeners: list[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _notify(self, change: Change) -> None:
        for listener in list(self._listeners):
            listener(self, change)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def change_year(self, delta: int) -> None:
        self.display_year += delta
        self._notify(Change.YEAR)

    def go_to_today(self) -> None:
        """Show the current year and select today."""
        self.display_year = self.today.year
        self.selected_date = self.today
        self._notify(Change.DATE)

    def reset(self, today: date) -> None:
        """Start a fresh session on ``today`` with a single notification."""
        self.today = today
        self.go_to_today()

    def select_date(self, d: date) -> None:
        """Select ``d`` without moving the displayed year.

        A leading or trailing cell may belong to the neighbouring year
        (e.g. a January cell shown under December); the view stays put.
        """
        self.selected_date = d
        self._notify(Change.DATE)

    def set_today(self, today: date) -> None:
        """Update the clock's date, e.g. after midnight."""
        if today == self.today:
            return
        logger.debug("Today changed from %s to %s", self.today, today)
        self.today = today
        self._notify(Change.DATE)

    # ------------------------------------------------------------------
    # Grid access
    # ------------------------------------------------------------------
    def month_grid(self, month: int) -> MonthGridModel:
        return build_month_grid(self.display_year, month, self.today, self.selected_date)

    def month_grids(self) -> list[MonthGridModel]:
        return [self.month_grid(m) for m in range(1, 13)]

    def is_current_month(self, month: int) -> bool:
        return (self.display_year, month) == (self.today.year, self.today.month)
