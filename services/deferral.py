# -*- coding: utf-8 -*-
"""
Deferral rules. A task is deferred while its deferred_until lies strictly in
the future; nothing else is stored, so the state changes on its own as time
passes and is recomputed on every read.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Optional

from domain.models import Task


def is_deferred(task: Task, now: dt.datetime) -> bool:
    return task.deferred_until is not None and task.deferred_until > now


def is_active(task: Task, now: dt.datetime) -> bool:
    return not is_deferred(task, now)


def next_defer_until(now: dt.datetime) -> dt.datetime:
    """Local midnight starting the next calendar day."""
    local = now.astimezone()
    tomorrow = local.date() + dt.timedelta(days=1)
    return dt.datetime.combine(tomorrow, dt.time.min).astimezone()


def toggle_defer(task: Task, now: dt.datetime) -> Task:
    if is_deferred(task, now):
        return dataclasses.replace(task, deferred_until=None)
    return dataclasses.replace(task, deferred_until=next_defer_until(now))


def deadline_status(task: Task, today: dt.date) -> Optional[str]:
    if task.deadline is None:
        return None
    if task.deadline == today:
        return "today"
    if task.deadline < today:
        return "overdue"
    return "upcoming"
