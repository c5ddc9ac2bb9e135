# -*- coding: utf-8 -*-

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_TAG = "Deep Work"
DEFAULT_PRIORITY = 3
DEFAULT_GOAL_MINUTES = 30
DEFAULT_ALARM_SOUND = "beep"


def now_local() -> dt.datetime:
    return dt.datetime.now().astimezone()


def parse_ts(value: Any) -> Optional[dt.datetime]:
    """
    ISO-8601 -> aware datetime.
    Accepts legacy "...Z" values; naive values are read as local time.
    """
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        ts = value
    else:
        try:
            ts = dt.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if ts.tzinfo is None:
        ts = ts.astimezone()
    return ts


def format_ts(value: Optional[dt.datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.astimezone()
    return value.isoformat()


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Session:
    id: Any
    task_name: str
    tag: str
    start_time: Optional[dt.datetime]
    end_time: Optional[dt.datetime]
    duration: int  # seconds
    goal_duration: int = 0  # seconds, 0 = no goal
    note: str = ""

    @property
    def is_completion_log(self) -> bool:
        return self.duration == 0 and not self.note

    @property
    def timestamp(self) -> Optional[dt.datetime]:
        return self.end_time

    @classmethod
    def from_record(cls, r: Dict[str, Any]) -> "Session":
        # older records only carry "timestamp" (= end time)
        end = parse_ts(r.get("endTime")) or parse_ts(r.get("timestamp"))
        return cls(
            id=r.get("id"),
            task_name=r.get("taskName") or "",
            tag=r.get("tag") or "",
            start_time=parse_ts(r.get("startTime")),
            end_time=end,
            duration=_int(r.get("duration")),
            goal_duration=_int(r.get("goalDuration")),
            note=r.get("note") or "",
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "taskName": self.task_name,
            "tag": self.tag,
            "startTime": format_ts(self.start_time),
            "endTime": format_ts(self.end_time),
            "duration": self.duration,
            "goalDuration": self.goal_duration,
            "note": self.note,
        }


@dataclass(frozen=True)
class Task:
    id: Any
    created_at: dt.datetime
    title: str = ""
    note: str = ""
    priority: int = DEFAULT_PRIORITY  # 1 low .. 5 emergency
    deadline: Optional[dt.date] = None
    tag: str = DEFAULT_TAG
    project_id: Any = None
    completed: bool = False
    deferred_until: Optional[dt.datetime] = None

    @classmethod
    def from_record(cls, r: Dict[str, Any]) -> "Task":
        deadline = None
        if r.get("deadline"):
            try:
                deadline = dt.date.fromisoformat(str(r["deadline"])[:10])
            except ValueError:
                deadline = None
        return cls(
            id=r.get("id"),
            created_at=parse_ts(r.get("createdAt")) or now_local(),
            title=r.get("title") or "",
            note=r.get("note") or "",
            priority=_int(r.get("priority"), DEFAULT_PRIORITY),
            deadline=deadline,
            tag=r.get("tag") or DEFAULT_TAG,
            # "" came from an unselected project dropdown
            project_id=r.get("projectId") if r.get("projectId") not in ("", None) else None,
            completed=bool(r.get("completed")),
            deferred_until=parse_ts(r.get("deferredUntil")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": format_ts(self.created_at),
            "title": self.title,
            "note": self.note,
            "priority": self.priority,
            "deadline": self.deadline.isoformat() if self.deadline else "",
            "tag": self.tag,
            "projectId": self.project_id,
            "completed": self.completed,
            "deferredUntil": format_ts(self.deferred_until),
        }


@dataclass(frozen=True)
class Project:
    id: Any
    title: str = ""
    note: str = ""

    @classmethod
    def from_record(cls, r: Dict[str, Any]) -> "Project":
        return cls(id=r.get("id"), title=r.get("title") or "", note=r.get("note") or "")

    def to_record(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "note": self.note}


@dataclass(frozen=True)
class Preferences:
    active_tag: str = ""
    default_goal_minutes: int = DEFAULT_GOAL_MINUTES
    alarm_sound: str = DEFAULT_ALARM_SOUND
    tag_colors: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_record(cls, r: Dict[str, Any]) -> "Preferences":
        goal = _int(r.get("defaultGoalMinutes"), DEFAULT_GOAL_MINUTES)
        colors = r.get("tagColors")
        return cls(
            active_tag=r.get("activeTag") or "",
            default_goal_minutes=goal if goal > 0 else DEFAULT_GOAL_MINUTES,
            alarm_sound=r.get("alarmSound") or DEFAULT_ALARM_SOUND,
            tag_colors=dict(colors) if isinstance(colors, dict) else {},
        )


@dataclass(frozen=True)
class ActionItem:
    task: Task
    project_name: Optional[str]
    deferred: bool = False
