from datetime import date

import pytest

from calendar_logic import (
    GRID_CELLS,
    build_month_grid,
    days_in_month,
    next_month,
    prev_month,
    weekday_of_first,
)

_COMMON_YEAR = [31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def _run_lengths(grid):
    """Return the in-month cells as (start index, length) of each contiguous run."""
    runs = []
    for i, cell in enumerate(grid.cells):
        if cell.in_month:
            if runs and runs[-1][0] + runs[-1][1] == i:
                runs[-1] = (runs[-1][0], runs[-1][1] + 1)
            else:
                runs.append((i, 1))
    return runs


@pytest.mark.parametrize("year", [1900, 2001, 2023, 2100])
def test_days_in_month_common_years(year):
    assert [days_in_month(year, m) for m in range(1, 13)] == _COMMON_YEAR


@pytest.mark.parametrize("year, leap", [
    (1600, True), (1900, False), (2000, True), (2023, False),
    (2024, True), (2100, False), (2400, True),
])
def test_february_length_follows_leap_rule(year, leap):
    assert days_in_month(year, 2) == (29 if leap else 28)


def test_weekday_of_first_matches_datetime():
    for year in range(1995, 2035):
        for month in range(1, 13):
            # isoweekday: Monday=1 .. Sunday=7
            assert weekday_of_first(year, month) == date(year, month, 1).isoweekday() % 7


def test_weekday_of_first_known_dates():
    assert weekday_of_first(2024, 1) == 1  # Monday
    assert weekday_of_first(2024, 12) == 0  # Sunday
    assert weekday_of_first(2026, 2) == 0  # Sunday


def test_month_wrapping():
    assert prev_month(2024, 1) == (2023, 12)
    assert prev_month(2024, 7) == (2024, 6)
    assert next_month(2024, 12) == (2025, 1)
    assert next_month(2024, 7) == (2024, 8)


def test_grid_always_has_42_cells_and_one_run():
    for year in (2023, 2024, 2025):
        for month in range(1, 13):
            grid = build_month_grid(year, month, None, None)
            assert len(grid.cells) == GRID_CELLS
            runs = _run_lengths(grid)
            assert runs == [(grid.weekday_of_first, days_in_month(year, month))]
            assert [c.day for c in grid.cells if c.in_month] == \
                list(range(1, grid.days_in_month + 1))


def test_leading_cells_end_on_last_day_of_previous_month():
    for year in (2023, 2024):
        for month in range(1, 13):
            grid = build_month_grid(year, month, None, None)
            py, pm = prev_month(year, month)
            leading = grid.cells[:grid.weekday_of_first]
            assert all(c.muted and (c.year, c.month) == (py, pm) for c in leading)
            if leading:
                assert leading[-1].day == days_in_month(py, pm)
                assert [c.day for c in leading] == list(
                    range(leading[0].day, leading[0].day + len(leading)))


def test_trailing_cells_start_at_one_in_next_month():
    grid = build_month_grid(2024, 2, None, None)
    trailing = grid.cells[grid.weekday_of_first + grid.days_in_month:]
    assert [c.day for c in trailing] == list(range(1, len(trailing) + 1))
    assert all(c.muted and (c.year, c.month) == (2024, 3) for c in trailing)


def test_february_leap_year():
    grid = build_month_grid(2024, 2, None, None)
    assert grid.days_in_month == 29
    assert _run_lengths(grid)[0][1] == 29


def test_january_2024_starts_with_december_31():
    grid = build_month_grid(2024, 1, None, None)
    assert grid.weekday_of_first == 1
    first = grid.cells[0]
    assert (first.year, first.month, first.day) == (2023, 12, 31)
    assert first.muted
    assert first.date == date(2023, 12, 31)


def test_rows_are_six_weeks_of_seven():
    rows = build_month_grid(2024, 9, None, None).rows()
    assert len(rows) == 6
    assert all(len(week) == 7 for week in rows)
    assert rows[0][0].day == 1  # September 2024 starts on a Sunday


def test_today_only_marked_in_the_real_month():
    today = date(2024, 3, 2)
    march = build_month_grid(2024, 3, today, None)
    assert [c.day for c in march.cells if c.is_today] == [2]

    # Feb 2024 shows 2 March as a trailing cell, which is never "today"
    february = build_month_grid(2024, 2, today, None)
    assert not any(c.is_today for c in february.cells)

    # Same month and day in another year
    assert not any(c.is_today for c in build_month_grid(2025, 3, today, None).cells)


def test_selection_marks_muted_cells_too():
    selected = date(2024, 3, 2)
    february = build_month_grid(2024, 2, None, selected)
    marked = [c for c in february.cells if c.is_selected]
    assert len(marked) == 1
    assert marked[0].muted
    assert marked[0].date == selected


def test_today_and_selected_can_coincide():
    today = date(2024, 5, 20)
    cells = build_month_grid(2024, 5, today, today).cells
    hit = [c for c in cells if c.is_today]
    assert len(hit) == 1 and hit[0].is_selected


def test_year_one_leading_cells_outside_date_range():
    grid = build_month_grid(1, 1, None, None)
    assert grid.weekday_of_first == 1
    first = grid.cells[0]
    assert (first.year, first.month, first.day) == (0, 12, 31)
    with pytest.raises(ValueError):
        first.date
