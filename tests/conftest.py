"""
Shared fixtures: a throwaway SQLite file per test, services wired to a fixed
clock, and a manual scheduler standing in for Tk's after()/after_cancel().
"""

import datetime as dt
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import core.*, services.*, storage.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from services.preference_service import PreferenceService  # noqa: E402
from services.session_service import SessionService  # noqa: E402
from services.stats_service import StatsService  # noqa: E402
from services.task_service import TaskService  # noqa: E402
from storage.db import Database  # noqa: E402
from storage.repos import (  # noqa: E402
    CollectionStore,
    PrefsRepo,
    ProjectRepo,
    SessionRepo,
    TagRepo,
    TaskRepo,
)

NOW = dt.datetime(2026, 10, 19, 12, 0, 0).astimezone()


class Clock:
    """Settable clock; call it to read the current time."""

    def __init__(self, now: dt.datetime = NOW):
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + dt.timedelta(**kwargs)


class ManualScheduler:
    """after()/after_cancel() with time moved by hand in whole milliseconds."""

    def __init__(self):
        self.now_ms = 0
        self._jobs = {}
        self._next_id = 0

    def after(self, ms, fn):
        self._next_id += 1
        self._jobs[self._next_id] = (self.now_ms + ms, fn)
        return self._next_id

    def after_cancel(self, job):
        self._jobs.pop(job, None)

    def pending(self) -> int:
        return len(self._jobs)

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [(t, jid) for jid, (t, _) in self._jobs.items() if t <= target]
            if not due:
                break
            t, jid = min(due)
            _, fn = self._jobs.pop(jid)
            self.now_ms = t
            fn()
        self.now_ms = target

    def advance_seconds(self, seconds: int) -> None:
        self.advance(seconds * 1000)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def db(tmp_path):
    database = Database(db_path=str(tmp_path / "focus_test.db"))
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def store(db):
    return CollectionStore(db)


@pytest.fixture
def sessions(store, clock):
    return SessionService(SessionRepo(store), clock=clock)


@pytest.fixture
def prefs(store):
    return PreferenceService(TagRepo(store), PrefsRepo(store))


@pytest.fixture
def tasks(store, sessions, prefs, clock):
    return TaskService(TaskRepo(store), ProjectRepo(store), sessions, prefs, clock=clock)


@pytest.fixture
def stats(db, sessions):
    return StatsService(db, sessions)


@pytest.fixture
def scheduler():
    return ManualScheduler()
