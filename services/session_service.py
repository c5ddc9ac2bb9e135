# -*- coding: utf-8 -*-

import dataclasses
import datetime as dt
import logging
import uuid
from typing import Any, Callable, List, Optional

from domain.models import Session, Task, now_local, parse_ts
from storage.repos import SessionRepo

logger = logging.getLogger(__name__)

UNTITLED_TASK = "Untitled Task"


class SessionService:
    """
    Session history, newest first.
    Field validation (blank names, future manual logs) belongs to the caller.
    """

    def __init__(
        self,
        repo: SessionRepo,
        clock: Callable[[], dt.datetime] = now_local,
    ):
        self.repo = repo
        self.clock = clock

    def list_sessions(self) -> List[Session]:
        return self.repo.list()

    def get(self, session_id: Any) -> Optional[Session]:
        for s in self.repo.list():
            if s.id == session_id:
                return s
        return None

    def create_or_update_session(
        self,
        id: Any = None,
        task_name: str = "",
        tag: str = "",
        duration: int = 0,
        goal_duration: int = 0,
        note: str = "",
        start_time: Optional[dt.datetime] = None,
        end_time: Optional[dt.datetime] = None,
    ) -> List[Session]:
        history = self.repo.list()
        duration = int(duration)

        if id is None:
            end = parse_ts(end_time) or self.clock()
            start = parse_ts(start_time) or end - dt.timedelta(seconds=duration)
            session = Session(
                id=str(uuid.uuid4()),
                task_name=task_name,
                tag=tag,
                start_time=start,
                end_time=end,
                duration=duration,
                goal_duration=int(goal_duration),
                note=note or "",
            )
            updated = [session] + history
            self.repo.save_all(updated)
            logger.debug("Logged session %s (%ss, %s)", session.id, duration, tag)
            return updated

        index = next((i for i, s in enumerate(history) if s.id == id), None)
        if index is None:
            logger.debug("Session %r not found, history unchanged", id)
            return history

        # full replace; the caller passes every field it wants to keep
        end = parse_ts(end_time)
        start = parse_ts(start_time)
        if end is not None and start is None:
            start = end - dt.timedelta(seconds=duration)
        history[index] = Session(
            id=id,
            task_name=task_name,
            tag=tag,
            start_time=start,
            end_time=end,
            duration=duration,
            goal_duration=int(goal_duration),
            note=note or "",
        )
        self.repo.save_all(history)
        return history

    def edit_session(self, session_id: Any, **changes: Any) -> List[Session]:
        """Replace a session with a copy of itself carrying `changes`."""
        current = self.get(session_id)
        if current is None:
            return self.repo.list()
        merged = dataclasses.replace(current, **changes)
        if "duration" in changes and "start_time" not in changes and merged.end_time:
            merged = dataclasses.replace(
                merged,
                start_time=merged.end_time - dt.timedelta(seconds=merged.duration),
            )
        fields = dataclasses.asdict(merged)
        return self.create_or_update_session(**fields)

    def delete_session(self, session_id: Any) -> List[Session]:
        updated = [s for s in self.repo.list() if s.id != session_id]
        self.repo.save_all(updated)
        return updated

    def log_completion(self, task: Task) -> List[Session]:
        """A zero-length, note-less session marks a finished task in history."""
        return self.create_or_update_session(
            task_name=task.title,
            tag=task.tag,
            duration=0,
            goal_duration=0,
            note="",
        )
