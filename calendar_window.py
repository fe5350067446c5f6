"""Year calendar popover (tkinter): 12-month grid plus same-day events."""

from __future__ import annotations

import ctypes
import logging
import sys
import tkinter as tk
from datetime import date, datetime, timedelta
from tkinter import font as tkfont
from typing import Callable

from calendar_logic import GRID_COLS, GRID_ROWS, MONTH_NAMES, DayCell, MonthGridModel
from event_source import EventSummary, IcsEventSource
from events_panel import (
    HEADER_HEIGHT,
    ROW_HEIGHT,
    event_time_label,
    heading_text,
    panel_height,
    visible_events,
)
from settings import MAX_EVENTS_LIMIT, SettingsStore, get_autostart
from year_layout import Change, YearLayout

logger = logging.getLogger(__name__)

# Colours
BG = "#2E2E2E"
TEXT = "white"
MUTED = "#737373"
ACCENT = "#BF3838"
DIVIDER = "#454545"

_MONTH_COLS = 3


class _MonthPanel:
    """Pre-allocated widget pool for a single month (header + 6×7 cells)."""

    __slots__ = ("frame", "header", "day_cells")

    def __init__(self, parent: tk.Frame, fonts: dict, on_click) -> None:
        self.frame = tk.Frame(parent, bg=BG)

        self.header = tk.Label(
            self.frame, font=fonts["month"], bg=BG, fg=TEXT, anchor="w",
        )
        self.header.grid(row=0, column=0, columnspan=GRID_COLS, sticky="we", pady=(0, 2))

        self.day_cells: list[list[tk.Canvas]] = []
        for r in range(GRID_ROWS):
            row_cells: list[tk.Canvas] = []
            for c in range(GRID_COLS):
                cell = tk.Canvas(
                    self.frame, width=fonts["cell_w"], height=fonts["cell_h"],
                    bg=BG, highlightthickness=0, borderwidth=0, cursor="hand2",
                )
                cell.grid(row=r + 1, column=c)
                cell.bind("<ButtonPress-1>", on_click)
                row_cells.append(cell)
            self.day_cells.append(row_cells)


class _EventRow:
    """One line of the events panel: colour dot, time, title."""

    __slots__ = ("frame", "dot", "time", "title")

    def __init__(self, parent: tk.Frame, fonts: dict) -> None:
        self.frame = tk.Frame(parent, bg=BG, height=ROW_HEIGHT)
        self.frame.pack_propagate(False)

        self.dot = tk.Canvas(self.frame, width=10, height=10, bg=BG,
                             highlightthickness=0, borderwidth=0)
        self.dot.pack(side="left", padx=(0, 6))
        self.time = tk.Label(self.frame, font=fonts["event_time"], bg=BG, fg=MUTED,
                             width=7, anchor="w")
        self.time.pack(side="left")
        self.title = tk.Label(self.frame, font=fonts["event"], bg=BG, fg=TEXT, anchor="w")
        self.title.pack(side="left", fill="x", expand=True)

    def show(self, event: EventSummary) -> None:
        self.dot.delete("all")
        self.dot.create_oval(1, 1, 9, 9, fill=event.color, outline="")
        self.time.configure(text=event_time_label(event))
        self.title.configure(text=event.title)
        self.frame.pack(fill="x")


class CalendarWindow:
    """Year calendar popover anchored next to the tray."""

    def __init__(self, settings: SettingsStore, events: IcsEventSource,
                 clock: Callable[[], date] = date.today,
                 on_today_changed: Callable[[date], None] | None = None) -> None:
        self._settings = settings
        self._events = events
        self._clock = clock
        self._on_today_changed = on_today_changed
        self._authorized = events.is_authorized

        self.root = tk.Tk()
        self.root.title("Mini Year Calendar")
        self.root.resizable(False, False)
        self.root.configure(bg=BG)
        if sys.platform == "win32":
            self.root.attributes("-toolwindow", True)
        self.root.attributes("-topmost", True)

        self._setup_fonts()

        self.layout = YearLayout(self._clock())
        self.layout.add_listener(self._on_layout_change)

        # Widget-to-cell mapping (filled during _redraw_grid)
        self._widget_cells: dict[int, DayCell] = {}
        self._settings_dialog: tk.Toplevel | None = None

        self._build_shell()
        self._redraw_grid()
        self._refresh_events()

        self.root.bind("<Escape>", lambda _e: self.hide())
        self.root.bind("<FocusOut>", self._on_focus_out)
        self.root.protocol("WM_DELETE_WINDOW", self.hide)
        self.root.withdraw()

        if not self._authorized:
            self._events.request_access(
                lambda granted: self.root.after(0, self._on_access, granted))
        self._schedule_midnight()

    # ------------------------------------------------------------------
    # Fonts
    # ------------------------------------------------------------------
    def _setup_fonts(self) -> None:
        families = tkfont.families(self.root)
        base = "Segoe UI" if "Segoe UI" in families else "TkDefaultFont"
        self.font_nav = tkfont.Font(family=base, size=12, weight="bold")
        self.font_year = tkfont.Font(family=base, size=16, weight="bold")
        self.font_month = tkfont.Font(family=base, size=9, weight="bold")
        self.font_day = tkfont.Font(family=base, size=8)
        self.font_day_bold = tkfont.Font(family=base, size=8, weight="bold")
        self.font_event = tkfont.Font(family=base, size=9)
        self.font_heading = tkfont.Font(family=base, size=10, weight="bold")

        _tmp = tk.Label(self.root, text="00", font=self.font_day, width=2)
        _tmp.update_idletasks()
        self._fonts = {
            "month": self.font_month,
            "event": self.font_event,
            "event_time": self.font_event,
            "cell_w": _tmp.winfo_reqwidth() + 4,
            "cell_h": _tmp.winfo_reqheight(),
        }
        _tmp.destroy()

    # ------------------------------------------------------------------
    # Build shell (once): top bar, 12 month panels, events panel
    # ------------------------------------------------------------------
    def _build_shell(self) -> None:
        self._outer = tk.Frame(self.root, bg=BG)
        self._outer.pack(padx=12, pady=(4, 12))

        # Top bar:  ‹ Today ›      2026      ⚙
        bar = tk.Frame(self._outer, bg=BG, height=HEADER_HEIGHT)
        bar.pack(fill="x")
        bar.pack_propagate(False)

        btn_prev = tk.Label(bar, text="‹", font=self.font_nav, bg=BG, fg=TEXT,
                            cursor="hand2")
        btn_prev.pack(side="left")
        btn_prev.bind("<Button-1>", lambda _e: self.layout.change_year(-1))

        btn_today = tk.Label(bar, text="Today", font=self.font_event, bg=BG, fg=TEXT,
                             cursor="hand2")
        btn_today.pack(side="left", padx=4)
        btn_today.bind("<Button-1>", lambda _e: self.layout.go_to_today())

        btn_next = tk.Label(bar, text="›", font=self.font_nav, bg=BG, fg=TEXT,
                            cursor="hand2")
        btn_next.pack(side="left")
        btn_next.bind("<Button-1>", lambda _e: self.layout.change_year(1))

        btn_settings = tk.Label(bar, text="⚙", font=self.font_nav, bg=BG, fg=TEXT,
                                cursor="hand2")
        btn_settings.pack(side="right")
        btn_settings.bind("<Button-1>", lambda _e: self.open_settings())

        self._year_label = tk.Label(bar, font=self.font_year, bg=BG, fg=TEXT)
        self._year_label.place(relx=0.5, rely=0.5, anchor="center")

        # Months: 4 rows × 3 columns
        months = tk.Frame(self._outer, bg=BG)
        months.pack()
        self._panels: list[_MonthPanel] = []
        for i in range(12):
            panel = _MonthPanel(months, self._fonts, self._on_cell_click)
            panel.frame.grid(row=i // _MONTH_COLS, column=i % _MONTH_COLS,
                             padx=4, pady=2, sticky="n")
            self._panels.append(panel)

        tk.Frame(self._outer, bg=DIVIDER, height=1).pack(fill="x", pady=(8, 0))

        # Events panel; height driven by panel_height()
        self._events_frame = tk.Frame(self._outer, bg=BG)
        self._events_frame.pack(fill="x")
        self._events_frame.pack_propagate(False)

        self._heading = tk.Label(self._events_frame, font=self.font_heading, bg=BG,
                                 fg=TEXT, anchor="w", height=1)
        self._heading.pack(fill="x", pady=(6, 4))
        self._message = tk.Label(self._events_frame, font=self.font_event, bg=BG,
                                 fg=MUTED, anchor="w")
        self._rows = [_EventRow(self._events_frame, self._fonts)
                      for _ in range(MAX_EVENTS_LIMIT)]

    # ------------------------------------------------------------------
    # Year grid
    # ------------------------------------------------------------------
    def _redraw_grid(self) -> None:
        self._widget_cells.clear()
        self._year_label.configure(text=str(self.layout.display_year))
        for panel, grid in zip(self._panels, self.layout.month_grids()):
            self._fill_panel(panel, grid)

    def _fill_panel(self, panel: _MonthPanel, grid: MonthGridModel) -> None:
        """Reconfigure an existing panel, no widget creation."""
        current = self.layout.is_current_month(grid.month)
        panel.header.configure(text=MONTH_NAMES[grid.month - 1],
                               fg=ACCENT if current else TEXT)
        for r, week in enumerate(grid.rows()):
            for c, day_cell in enumerate(week):
                canvas = panel.day_cells[r][c]
                self._draw_cell(canvas, day_cell)
                self._widget_cells[id(canvas)] = day_cell

    def _draw_cell(self, canvas: tk.Canvas, cell: DayCell) -> None:
        canvas.delete("all")
        w = int(canvas["width"])
        h = int(canvas["height"])
        size = min(w, h) - 1
        x0 = (w - size) // 2
        y0 = (h - size) // 2

        # Today wins over selected
        if cell.is_today:
            canvas.create_oval(x0, y0, x0 + size, y0 + size, fill=ACCENT, outline="")
            fg, font = TEXT, self.font_day_bold
        else:
            if cell.is_selected:
                canvas.create_oval(x0, y0, x0 + size, y0 + size, outline=MUTED, width=1)
            fg, font = (MUTED if cell.muted else TEXT), self.font_day
        canvas.create_text(w // 2, h // 2, text=str(cell.day), fill=fg, font=font)

    def _on_cell_click(self, event: tk.Event) -> None:
        cell = self._widget_cells.get(id(event.widget))
        if cell is None:
            return
        try:
            d = cell.date
        except ValueError:
            # Outside the years a date can represent
            return
        self.layout.select_date(d)

    def _on_layout_change(self, _layout: YearLayout, change: Change) -> None:
        self._redraw_grid()
        if change is Change.DATE:
            self._refresh_events()

    # ------------------------------------------------------------------
    # Events panel
    # ------------------------------------------------------------------
    def _refresh_events(self) -> None:
        selected = self.layout.selected_date
        self._heading.configure(text=heading_text(selected, self.layout.today))

        for row in self._rows:
            row.frame.pack_forget()
        self._message.pack_forget()

        shown: list[EventSummary] = []
        if not self._authorized:
            self._message.configure(
                text=f"No access to calendar folder {self._events.calendar_dir}")
            self._message.pack(fill="x")
        else:
            shown = visible_events(self._events.fetch_events(selected),
                                   self._settings.max_events_to_show)
            if not shown:
                self._message.configure(text="No events")
                self._message.pack(fill="x")
            for row, event in zip(self._rows, shown):
                row.show(event)

        self._events_frame.configure(height=panel_height(len(shown)))
        logger.debug("Showing %d event(s) for %s", len(shown), selected)
        if self.root.state() != "withdrawn":
            self._position_window()

    def _on_access(self, granted: bool) -> None:
        self._authorized = granted
        self._refresh_events()

    # ------------------------------------------------------------------
    # Settings dialog
    # ------------------------------------------------------------------
    def open_settings(self) -> None:
        if self._settings_dialog is not None:
            self._settings_dialog.lift()
            return
        dlg = tk.Toplevel(self.root)
        dlg.title("Settings")
        dlg.resizable(False, False)
        dlg.attributes("-topmost", True)
        dlg.configure(bg=BG)
        self._settings_dialog = dlg

        frame = tk.Frame(dlg, bg=BG, padx=20, pady=12)
        frame.pack()
        label_opts = {"bg": BG, "fg": TEXT, "anchor": "w"}
        check_opts = {"bg": BG, "fg": TEXT, "selectcolor": BG, "activebackground": BG,
                      "activeforeground": TEXT, "font": self.font_event, "anchor": "w"}

        tk.Label(frame, text="Settings", font=self.font_year, **label_opts).pack(fill="x")

        # --- Calendars ---
        tk.Label(frame, text="Calendars", font=self.font_heading,
                 **label_opts).pack(fill="x", pady=(10, 2))
        enabled = self._settings.enabled_calendar_ids
        check_vars: dict[str, tk.BooleanVar] = {}
        calendars = self._events.calendars()
        if not calendars:
            tk.Label(frame, text="No calendars found", font=self.font_event,
                     bg=BG, fg=MUTED, anchor="w").pack(fill="x", padx=10)
        for info in calendars:
            row = tk.Frame(frame, bg=BG)
            row.pack(fill="x", padx=10)
            swatch = tk.Canvas(row, width=10, height=10, bg=BG,
                               highlightthickness=0, borderwidth=0)
            swatch.create_oval(0, 0, 10, 10, fill=info.color, outline="")
            swatch.pack(side="left", padx=(0, 4))
            # No stored selection means every calendar is enabled
            var = tk.BooleanVar(value=not enabled or info.identifier in enabled)
            check_vars[info.identifier] = var
            tk.Checkbutton(row, text=info.title, variable=var,
                           **check_opts).pack(side="left", fill="x")

        tk.Frame(frame, bg=DIVIDER, height=1).pack(fill="x", pady=10)

        # --- Event display ---
        tk.Label(frame, text="Event Display", font=self.font_heading,
                 **label_opts).pack(fill="x")
        max_row = tk.Frame(frame, bg=BG)
        max_row.pack(fill="x", pady=(4, 0))
        tk.Label(max_row, text="Max events to show:", font=self.font_event,
                 bg=BG, fg=TEXT).pack(side="left")
        max_var = tk.IntVar(value=self._settings.max_events_to_show)
        tk.Scale(max_row, from_=1, to=MAX_EVENTS_LIMIT, orient="horizontal",
                 variable=max_var, length=120, bg=BG, fg=TEXT, troughcolor=DIVIDER,
                 highlightthickness=0, font=self.font_event).pack(side="left", padx=8)

        all_day_var = tk.BooleanVar(value=self._settings.show_all_day_events)
        tk.Checkbutton(frame, text="Show all-day events", variable=all_day_var,
                       **check_opts).pack(fill="x", pady=(4, 0))

        tk.Frame(frame, bg=DIVIDER, height=1).pack(fill="x", pady=10)

        # --- General ---
        tk.Label(frame, text="General", font=self.font_heading,
                 **label_opts).pack(fill="x")
        login_initial = self._settings.launch_at_login or get_autostart()
        login_var = tk.BooleanVar(value=login_initial)
        tk.Checkbutton(frame, text="Launch at login", variable=login_var,
                       **check_opts).pack(fill="x", pady=(4, 0))

        # --- Buttons ---
        btn_frame = tk.Frame(frame, bg=BG)
        btn_frame.pack(pady=(12, 0))

        def close() -> None:
            self._settings_dialog = None
            dlg.destroy()

        def on_ok() -> None:
            if check_vars:
                self._settings.enabled_calendar_ids = {
                    k for k, v in check_vars.items() if v.get()}
            self._settings.max_events_to_show = max_var.get()
            self._settings.show_all_day_events = all_day_var.get()
            if login_var.get() != login_initial:
                self._settings.launch_at_login = login_var.get()
            logger.info("Settings saved to %s", self._settings.path)
            close()
            self._refresh_events()

        tk.Button(btn_frame, text="OK", width=8, command=on_ok).pack(side="left", padx=4)
        tk.Button(btn_frame, text="Cancel", width=8, command=close).pack(side="left", padx=4)
        dlg.protocol("WM_DELETE_WINDOW", close)

    # ------------------------------------------------------------------
    # Midnight refresh
    # ------------------------------------------------------------------
    def _schedule_midnight(self) -> None:
        now = datetime.now()
        midnight = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
        delay_ms = int((midnight - now).total_seconds() * 1000) + 1000
        self.root.after(delay_ms, self._on_midnight)

    def _on_midnight(self) -> None:
        today = self._clock()
        logger.info("Date changed to %s", today)
        self.layout.set_today(today)
        if self._on_today_changed is not None:
            self._on_today_changed(today)
        self._schedule_midnight()

    # ------------------------------------------------------------------
    # Show / Hide / Toggle
    # ------------------------------------------------------------------
    def toggle(self) -> None:
        if self.root.state() == "withdrawn" or not self.root.winfo_viewable():
            self.show()
        else:
            self.hide()

    def show(self) -> None:
        # Every opening is a fresh session
        self.layout.reset(self._clock())
        self.root.deiconify()
        self._position_window()
        self.root.lift()
        self.root.focus_force()

    def hide(self) -> None:
        self.root.withdraw()

    def _on_focus_out(self, event: tk.Event) -> None:
        if event.widget is self.root:
            self.root.after(100, self._hide_if_unfocused)

    def _hide_if_unfocused(self) -> None:
        # Click outside the application; the settings dialog keeps us open
        if self._settings_dialog is None and self.root.focus_get() is None:
            self.hide()

    # ------------------------------------------------------------------
    # Position next to the tray
    # ------------------------------------------------------------------
    def _position_window(self) -> None:
        self.root.update_idletasks()
        win_w = self.root.winfo_reqwidth()
        win_h = self.root.winfo_reqheight()

        if sys.platform == "win32":
            # Bottom-right above the taskbar
            import ctypes.wintypes
            rect = ctypes.wintypes.RECT()
            ctypes.windll.user32.SystemParametersInfoW(0x0030, 0, ctypes.byref(rect), 0)
            x = rect.right - win_w - 12
            y = rect.bottom - win_h - 12
        else:
            # Top-right below the menu bar / panel
            x = self.root.winfo_screenwidth() - win_w - 12
            y = 32
        self.root.geometry(f"{win_w}x{win_h}+{x}+{y}")
