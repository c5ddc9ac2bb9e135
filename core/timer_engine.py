# -*- coding: utf-8 -*-

from dataclasses import dataclass
from typing import Optional

IDLE = "idle"
RUNNING = "running"
PAUSED = "paused"
GOAL_REACHED = "goal_reached"

EXTEND_MINUTES = 10


@dataclass
class EngineSnapshot:
    state: str  # idle | running | paused | goal_reached
    elapsed_sec: int
    goal_minutes: int
    task_name: str

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING

    @property
    def is_idle(self) -> bool:
        return self.state == IDLE

    @property
    def is_goal_reached(self) -> bool:
        return self.state == GOAL_REACHED


@dataclass(frozen=True)
class CompletedRun:
    task_name: str
    elapsed_sec: int
    goal_minutes: int

    @property
    def goal_sec(self) -> int:
        return self.goal_minutes * 60


class TimerEngine:
    """
    Pure elapsed-time engine (no Tkinter, no clock).
    The host calls tick() once per second while the engine is running.
    """

    def __init__(self, goal_minutes: int = 30):
        self.default_goal_minutes = int(goal_minutes)
        self.goal_minutes = self.default_goal_minutes
        self.elapsed_sec = 0
        self.task_name = ""
        self.state = IDLE

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            state=self.state,
            elapsed_sec=self.elapsed_sec,
            goal_minutes=self.goal_minutes,
            task_name=self.task_name,
        )

    def toggle(self) -> None:
        # start/pause share one button
        if self.state == RUNNING:
            self.state = PAUSED
        elif self.state in (IDLE, PAUSED):
            self.state = RUNNING

    def set_task_name(self, name: str) -> None:
        self.task_name = name or ""

    def set_goal(self, minutes: int) -> None:
        self.goal_minutes = max(0, int(minutes))

    def set_default_goal(self, minutes: int) -> None:
        self.default_goal_minutes = int(minutes)
        if self.state == IDLE:
            self.goal_minutes = self.default_goal_minutes

    def tick(self) -> bool:
        """
        Returns True if the goal was reached on this tick.
        Equality, not >=: a goal moved below the elapsed time never fires.
        """
        if self.state != RUNNING:
            return False

        self.elapsed_sec += 1

        if self.goal_minutes > 0 and self.elapsed_sec == self.goal_minutes * 60:
            self.state = GOAL_REACHED
            return True

        return False

    def extend(self, minutes: int = EXTEND_MINUTES) -> None:
        self.goal_minutes += int(minutes)
        if self.state == GOAL_REACHED:
            self.state = RUNNING

    def stop(self) -> Optional[CompletedRun]:
        if self.state == IDLE:
            return None

        run = CompletedRun(
            task_name=self.task_name,
            elapsed_sec=self.elapsed_sec,
            goal_minutes=self.goal_minutes,
        )
        self.reset()
        return run

    def reset(self) -> None:
        self.state = IDLE
        self.elapsed_sec = 0
        self.task_name = ""
        self.goal_minutes = self.default_goal_minutes
