"""Pure calendar calculations, no UI dependencies."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

MONTH_NAMES = [
    "JANUARY", "FEBRUARY", "MARCH",
    "APRIL", "MAY", "JUNE",
    "JULY", "AUGUST", "SEPTEMBER",
    "OCTOBER", "NOVEMBER", "DECEMBER",
]

GRID_ROWS = 6
GRID_COLS = 7
GRID_CELLS = GRID_ROWS * GRID_COLS

_MONTH_LENGTHS = [31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def weekday_of_first(year: int, month: int) -> int:
    """Return the weekday of day 1 of the month, 0 = Sunday."""
    # calendar.weekday() counts from Monday
    return (calendar.weekday(year, month, 1) + 1) % 7


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in the month (proleptic Gregorian)."""
    if month == 2 and calendar.isleap(year):
        return 29
    return _MONTH_LENGTHS[month - 1]


def prev_month(year: int, month: int) -> tuple[int, int]:
    """Return (year, month) for one month earlier."""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> tuple[int, int]:
    """Return (year, month) for one month later."""
    if month == 12:
        return year + 1, 1
    return year, month + 1


@dataclass(frozen=True)
class DayCell:
    """One cell of a month grid.

    ``year``/``month``/``day`` are the cell's absolute date, which for
    leading and trailing cells lies in the neighbouring month.
    """

    day: int
    year: int
    month: int
    in_month: bool
    is_today: bool = False
    is_selected: bool = False

    @property
    def muted(self) -> bool:
        return not self.in_month

    @property
    def date(self) -> date:
        """The cell as a ``date``; raises ValueError outside 1..9999."""
        return date(self.year, self.month, self.day)


@dataclass(frozen=True)
class MonthGridModel:
    month: int
    year: int
    weekday_of_first: int
    days_in_month: int
    cells: tuple[DayCell, ...]

    def rows(self) -> list[tuple[DayCell, ...]]:
        """Return the cells as 6 weeks of 7, first week first."""
        return [self.cells[r * GRID_COLS:(r + 1) * GRID_COLS] for r in range(GRID_ROWS)]


def _same_day(d: date | None, year: int, month: int, day: int) -> bool:
    return d is not None and (d.year, d.month, d.day) == (year, month, day)


def build_month_grid(display_year: int, month: int,
                     today: date | None, selected: date | None) -> MonthGridModel:
    """Return the 6×7 grid for ``month`` of ``display_year``.

    Always 42 cells so every month panel has the same height. Leading
    cells are the tail of the previous month and trailing cells run into
    the next month. Only cells of the displayed month can be "today".
    """
    first = weekday_of_first(display_year, month)
    n_days = days_in_month(display_year, month)
    py, pm = prev_month(display_year, month)
    ny, nm = next_month(display_year, month)
    days_in_prev = days_in_month(py, pm)

    cells: list[DayCell] = []
    for index in range(GRID_CELLS):
        if index < first:
            y, m, d = py, pm, days_in_prev - first + index + 1
            in_month = False
        elif index < first + n_days:
            y, m, d = display_year, month, index - first + 1
            in_month = True
        else:
            y, m, d = ny, nm, index - first - n_days + 1
            in_month = False
        cells.append(DayCell(
            day=d, year=y, month=m, in_month=in_month,
            is_today=in_month and _same_day(today, y, m, d),
            is_selected=_same_day(selected, y, m, d),
        ))

    return MonthGridModel(
        month=month,
        year=display_year,
        weekday_of_first=first,
        days_in_month=n_days,
        cells=tuple(cells),
    )
