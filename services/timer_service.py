# -*- coding: utf-8 -*-

import logging
from typing import Any, Callable, Optional

from core.timer_engine import EXTEND_MINUTES, EngineSnapshot, TimerEngine
from domain.models import Task
from services.preference_service import PreferenceService
from services.session_service import UNTITLED_TASK, SessionService

logger = logging.getLogger(__name__)

TICK_MS = 1000
ALARM_REPEATS = 3
ALARM_SPACING_MS = 1000


class TimerService:
    """
    Orchestrates:
    - TimerEngine state
    - the one-second tick job on the host scheduler
    - the 3-beep alarm when the goal is reached
    - writing the finished Session on stop

    `scheduler` is anything with Tk-style after(ms, fn) / after_cancel(job):
    a Tk root widget or core.event_loop.EventLoop.
    """

    def __init__(
        self,
        sessions: SessionService,
        prefs: PreferenceService,
        scheduler: Any,
        play_sound: Optional[Callable[[str], None]] = None,
    ):
        self.sessions = sessions
        self.prefs = prefs
        self.scheduler = scheduler
        self.play_sound = play_sound

        self.engine = TimerEngine(goal_minutes=prefs.default_goal_minutes())

        self._tick_job = None
        self._alarm_job = None
        self._alarm_count = 0

        self._on_tick: Optional[Callable[[EngineSnapshot], None]] = None
        self._on_state_change: Optional[Callable[[EngineSnapshot], None]] = None
        self._on_goal_reached: Optional[Callable[[EngineSnapshot], None]] = None

    # ----- Callbacks -----
    def set_on_tick(self, fn: Callable[[EngineSnapshot], None]) -> None:
        self._on_tick = fn

    def set_on_state_change(self, fn: Callable[[EngineSnapshot], None]) -> None:
        self._on_state_change = fn

    def set_on_goal_reached(self, fn: Callable[[EngineSnapshot], None]) -> None:
        self._on_goal_reached = fn

    def _emit_tick(self) -> None:
        if self._on_tick:
            self._on_tick(self.engine.snapshot())

    def _emit_state_change(self) -> None:
        if self._on_state_change:
            self._on_state_change(self.engine.snapshot())

    def _emit_goal_reached(self) -> None:
        if self._on_goal_reached:
            self._on_goal_reached(self.engine.snapshot())

    # ----- Public API -----
    def get_snapshot(self) -> EngineSnapshot:
        return self.engine.snapshot()

    def set_task_name(self, name: str) -> None:
        self.engine.set_task_name(name)

    def set_goal(self, minutes: int) -> None:
        self.engine.set_goal(minutes)
        self._emit_state_change()

    def sync_default_goal(self) -> None:
        # prefs may have changed; only an idle timer picks it up
        self.engine.set_default_goal(self.prefs.default_goal_minutes())

    def toggle(self) -> None:
        """Start when idle/paused, pause when running."""
        snap = self.engine.snapshot()
        if snap.is_goal_reached:
            return
        self.engine.toggle()
        if self.engine.snapshot().is_running:
            self._schedule_tick()
        else:
            self._cancel_tick()
        self._emit_state_change()

    def start_task(self, task: Task) -> None:
        self.engine.set_task_name(task.title)
        if task.tag in self.prefs.list_tags():
            self.prefs.set_active_tag(task.tag)
        if not self.engine.snapshot().is_running:
            self.toggle()

    def extend(self, minutes: int = EXTEND_MINUTES) -> None:
        self._cancel_alarm()
        was_goal = self.engine.snapshot().is_goal_reached
        self.engine.extend(minutes)
        if was_goal:
            self._schedule_tick()
        self._emit_state_change()

    def stop(self) -> None:
        """The only path that turns a live timer into a Session."""
        self._cancel_tick()
        self._cancel_alarm()
        run = self.engine.stop()
        if run is None:
            return
        if run.elapsed_sec == 0:
            # zero elapsed: no session
            self.sync_default_goal()
            self._emit_state_change()
            return
        self.sessions.create_or_update_session(
            task_name=run.task_name or UNTITLED_TASK,
            tag=self.prefs.active_tag(),
            duration=run.elapsed_sec,
            goal_duration=run.goal_sec,
        )
        self.sync_default_goal()
        logger.info("Stopped %r after %ss", run.task_name or UNTITLED_TASK, run.elapsed_sec)
        self._emit_state_change()
        self._emit_tick()

    def tick(self) -> None:
        """
        Advance one second. Normally driven by the scheduled tick job; safe to
        call directly in tests.
        """
        reached = self.engine.tick()
        self._emit_tick()
        if reached:
            self._cancel_tick()
            self._start_alarm()
            self._emit_state_change()
            self._emit_goal_reached()

    # ----- Tick job internals -----
    def _schedule_tick(self) -> None:
        self._cancel_tick()
        self._tick_job = self.scheduler.after(TICK_MS, self._on_tick_job)

    def _cancel_tick(self) -> None:
        if self._tick_job is not None:
            self.scheduler.after_cancel(self._tick_job)
            self._tick_job = None

    def _on_tick_job(self) -> None:
        self._tick_job = None
        self.tick()
        if self.engine.snapshot().is_running:
            self._tick_job = self.scheduler.after(TICK_MS, self._on_tick_job)

    # ----- Alarm internals -----
    def _start_alarm(self) -> None:
        self._cancel_alarm()
        self._alarm_count = 0
        self._alarm_job = self.scheduler.after(ALARM_SPACING_MS, self._on_alarm_job)

    def _cancel_alarm(self) -> None:
        if self._alarm_job is not None:
            self.scheduler.after_cancel(self._alarm_job)
            self._alarm_job = None

    def _on_alarm_job(self) -> None:
        self._alarm_job = None
        self._beep()
        self._alarm_count += 1
        if self._alarm_count < ALARM_REPEATS:
            self._alarm_job = self.scheduler.after(ALARM_SPACING_MS, self._on_alarm_job)

    def _beep(self) -> None:
        if not self.play_sound:
            return
        try:
            self.play_sound(self.prefs.alarm_sound())
        except Exception:
            # a failed beep must never break the timer
            logger.warning("Alarm playback failed", exc_info=True)

    @property
    def alarm_active(self) -> bool:
        return self._alarm_job is not None
