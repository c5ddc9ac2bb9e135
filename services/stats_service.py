# -*- coding: utf-8 -*-
"""
Reporting over session history.

Everything below StatsService is a pure function of (sessions, window, now):
no function reads the wall clock, so a fixed input always yields the same
report.
"""

import datetime as dt
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from domain.models import Session
from services.session_service import SessionService
from storage.db import COLLECTIONS, PREFS, Database
from storage.repos import CollectionStore


class Window(enum.Enum):
    TODAY = "today"
    LAST_7_DAYS = "7days"
    LAST_30_DAYS = "30days"
    ALL_TIME = "all"
    CUSTOM = "custom"


@dataclass(frozen=True)
class DayBar:
    day: dt.date
    label: str
    seconds: int

    @property
    def hours(self) -> float:
        return round(self.seconds / 3600, 1)


@dataclass(frozen=True)
class Report:
    window: Window
    start: Optional[dt.datetime]
    end: Optional[dt.datetime]
    session_count: int
    total_seconds: int
    average_seconds: float
    range_days: int
    top_tag: Optional[str]
    tag_breakdown: List[Tuple[str, int]] = field(default_factory=list)
    day_bars: List[DayBar] = field(default_factory=list)


def start_of_day(d: dt.date) -> dt.datetime:
    return dt.datetime.combine(d, dt.time.min).astimezone()


def end_of_day(d: dt.date) -> dt.datetime:
    return dt.datetime.combine(d, dt.time.max).astimezone()


def resolve_window(
    window: Window,
    now: dt.datetime,
    custom_start: Optional[dt.date] = None,
    custom_end: Optional[dt.date] = None,
) -> Tuple[Optional[dt.datetime], Optional[dt.datetime]]:
    """Inclusive bounds; (None, None) means unbounded."""
    today = now.astimezone().date()
    if window is Window.TODAY:
        return start_of_day(today), end_of_day(today)
    if window is Window.LAST_7_DAYS:
        return start_of_day(today - dt.timedelta(days=6)), end_of_day(today)
    if window is Window.LAST_30_DAYS:
        return start_of_day(today - dt.timedelta(days=29)), end_of_day(today)
    if window is Window.CUSTOM:
        if custom_start is None or custom_end is None:
            raise ValueError("Custom window needs both start and end dates.")
        return start_of_day(custom_start), end_of_day(custom_end)
    return None, None


def filter_sessions(
    sessions: Sequence[Session],
    start: Optional[dt.datetime],
    end: Optional[dt.datetime],
) -> List[Session]:
    out = []
    for s in sessions:
        ts = s.timestamp
        if ts is None:
            continue
        if start is not None and ts < start:
            continue
        if end is not None and ts > end:
            continue
        out.append(s)
    out.sort(key=lambda s: s.timestamp, reverse=True)
    return out


def total_seconds(sessions: Sequence[Session]) -> int:
    return sum(s.duration for s in sessions)


def per_tag_seconds(sessions: Sequence[Session]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for s in sessions:
        counts[s.tag] = counts.get(s.tag, 0) + s.duration
    return counts


def top_tag(sessions: Sequence[Session]) -> Optional[str]:
    best: Optional[str] = None
    best_sec = -1
    for tag, sec in per_tag_seconds(sessions).items():
        # strict ">" keeps the first tag seen on a tie
        if sec > best_sec:
            best, best_sec = tag, sec
    return best


def tag_breakdown(sessions: Sequence[Session]) -> List[Tuple[str, int]]:
    return sorted(per_tag_seconds(sessions).items(), key=lambda kv: kv[1], reverse=True)


def range_days(
    window: Window,
    sessions: Sequence[Session],
    custom_start: Optional[dt.date] = None,
    custom_end: Optional[dt.date] = None,
) -> int:
    days = 1
    if window is Window.LAST_7_DAYS:
        days = 7
    elif window is Window.LAST_30_DAYS:
        days = 30
    elif window is Window.CUSTOM and custom_start and custom_end:
        days = (custom_end - custom_start).days + 1
    elif window is Window.ALL_TIME:
        stamps = [s.timestamp for s in sessions if s.timestamp is not None]
        if stamps:
            # whole 24h periods between the oldest and newest entry
            days = (max(stamps) - min(stamps)).days + 1
    return max(days, 1)


def average_per_day(
    window: Window,
    sessions: Sequence[Session],
    custom_start: Optional[dt.date] = None,
    custom_end: Optional[dt.date] = None,
) -> float:
    return total_seconds(sessions) / range_days(window, sessions, custom_start, custom_end)


def per_day_bars(
    sessions: Sequence[Session], window: Window, now: dt.datetime
) -> List[DayBar]:
    """Oldest day first; one bar for the today window, seven otherwise."""
    today = now.astimezone().date()
    count = 1 if window is Window.TODAY else 7
    bars = []
    for i in range(count - 1, -1, -1):
        day = today - dt.timedelta(days=i)
        sec = sum(
            s.duration
            for s in sessions
            if s.timestamp is not None and s.timestamp.astimezone().date() == day
        )
        label = "Today" if window is Window.TODAY else day.strftime("%a")
        bars.append(DayBar(day=day, label=label, seconds=sec))
    return bars


def build_report(
    sessions: Sequence[Session],
    window: Window,
    now: dt.datetime,
    custom_start: Optional[dt.date] = None,
    custom_end: Optional[dt.date] = None,
) -> Report:
    start, end = resolve_window(window, now, custom_start, custom_end)
    picked = filter_sessions(sessions, start, end)
    return Report(
        window=window,
        start=start,
        end=end,
        session_count=len(picked),
        total_seconds=total_seconds(picked),
        average_seconds=average_per_day(window, picked, custom_start, custom_end),
        range_days=range_days(window, picked, custom_start, custom_end),
        top_tag=top_tag(picked),
        tag_breakdown=tag_breakdown(picked),
        day_bars=per_day_bars(picked, window, now),
    )


def format_duration(seconds: float) -> str:
    seconds = int(seconds)
    h = seconds // 3600
    m = (seconds % 3600) // 60
    return f"{h}h {m}m" if h > 0 else f"{m}m"


class StatsService:
    def __init__(self, db: Database, sessions: SessionService):
        self.db = db
        self.sessions = sessions

    def get_db_info(self) -> Dict[str, Any]:
        store = CollectionStore(self.db)
        out: Dict[str, Any] = {
            "db_path": self.db.db_path,
            "schema_version": self.db.schema_version(),
        }
        for name in COLLECTIONS:
            if name == PREFS:
                out["prefs_keys"] = len(store.read_record(name))
            else:
                out[f"{name}_count"] = len(store.read(name))
        return out

    def sessions_in(
        self,
        window: Window,
        now: Optional[dt.datetime] = None,
        custom_start: Optional[dt.date] = None,
        custom_end: Optional[dt.date] = None,
    ) -> List[Session]:
        now = now or self.sessions.clock()
        start, end = resolve_window(window, now, custom_start, custom_end)
        return filter_sessions(self.sessions.list_sessions(), start, end)

    def report(
        self,
        window: Window,
        now: Optional[dt.datetime] = None,
        custom_start: Optional[dt.date] = None,
        custom_end: Optional[dt.date] = None,
    ) -> Report:
        now = now or self.sessions.clock()
        return build_report(
            self.sessions.list_sessions(), window, now, custom_start, custom_end
        )
