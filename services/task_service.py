# services/task_service.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import dataclasses
import datetime as dt
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from domain.models import DEFAULT_TAG, ActionItem, Project, Task, now_local, parse_ts
from services import deferral
from services.preference_service import PreferenceService
from services.session_service import SessionService
from storage.repos import ProjectRepo, TaskRepo

logger = logging.getLogger(__name__)

PRIORITY_LABELS = {1: "Low", 2: "Medium", 3: "High", 4: "Urgent", 5: "Emergency"}


def _coerce_task_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Accept stored-format strings for dates, as Task.from_record does."""
    out = dict(fields)
    deadline = out.get("deadline")
    if isinstance(deadline, str):
        out["deadline"] = dt.date.fromisoformat(deadline) if deadline else None
    for key in ("created_at", "deferred_until"):
        if isinstance(out.get(key), str):
            out[key] = parse_ts(out[key])
    return out


class TaskService:
    def __init__(
        self,
        tasks: TaskRepo,
        projects: ProjectRepo,
        sessions: SessionService,
        prefs: PreferenceService,
        clock: Callable[[], dt.datetime] = now_local,
    ):
        self.tasks = tasks
        self.projects = projects
        self.sessions = sessions
        self.prefs = prefs
        self.clock = clock

    # ---- tasks ----
    def list_tasks(self) -> List[Task]:
        return self.tasks.list()

    def get_task(self, task_id: Any) -> Optional[Task]:
        return next((t for t in self.tasks.list() if t.id == task_id), None)

    def create_or_update_task(self, id: Any = None, **fields: Any) -> List[Task]:
        """
        Without id: new task with defaults, newest first.
        With id: the given fields are merged into the stored task; an id that
        is not stored yet is inserted as a new task carrying that id.
        """
        fields = _coerce_task_fields(fields)
        all_tasks = self.tasks.list()
        index = next((i for i, t in enumerate(all_tasks) if t.id == id), None)

        if id is not None and index is not None:
            all_tasks[index] = dataclasses.replace(all_tasks[index], **fields)
            self.tasks.save_all(all_tasks)
            return all_tasks

        if "tag" not in fields:
            tags = self.prefs.list_tags()
            fields["tag"] = tags[0] if tags else DEFAULT_TAG
        fields.setdefault("created_at", self.clock())
        task = Task(id=id if id is not None else str(uuid.uuid4()), **fields)
        updated = [task] + all_tasks
        self.tasks.save_all(updated)
        logger.debug("Created task %s", task.id)
        return updated

    def delete_task(self, task_id: Any) -> List[Task]:
        updated = [t for t in self.tasks.list() if t.id != task_id]
        self.tasks.save_all(updated)
        return updated

    def complete_task(self, task_id: Any) -> List[Task]:
        task = self.get_task(task_id)
        if task is None:
            logger.debug("Task %r not found, nothing to complete", task_id)
            return self.tasks.list()
        if task.completed:
            return self.tasks.list()
        updated = self.create_or_update_task(id=task.id, completed=True)
        self.sessions.log_completion(task)
        return updated

    def toggle_defer(self, task_id: Any) -> List[Task]:
        task = self.get_task(task_id)
        if task is None:
            return self.tasks.list()
        toggled = deferral.toggle_defer(task, self.clock())
        return self.create_or_update_task(
            id=task.id, deferred_until=toggled.deferred_until
        )

    # ---- projects ----
    def list_projects(self) -> List[Project]:
        return self.projects.list()

    def create_or_update_project(self, id: Any = None, **fields: Any) -> List[Project]:
        all_projects = self.projects.list()
        index = next((i for i, p in enumerate(all_projects) if p.id == id), None)

        if id is not None and index is not None:
            all_projects[index] = dataclasses.replace(all_projects[index], **fields)
            self.projects.save_all(all_projects)
            return all_projects

        project = Project(id=id if id is not None else str(uuid.uuid4()), **fields)
        updated = [project] + all_projects
        self.projects.save_all(updated)
        return updated

    def delete_project(self, project_id: Any) -> List[Project]:
        # tasks survive, they just lose their project
        all_tasks = self.tasks.list()
        orphaned = [
            dataclasses.replace(t, project_id=None) if t.project_id == project_id else t
            for t in all_tasks
        ]
        self.tasks.save_all(orphaned)

        updated = [p for p in self.projects.list() if p.id != project_id]
        self.projects.save_all(updated)
        return updated

    # ---- action items ----
    def list_action_items(self, include_deferred: bool = False) -> List[ActionItem]:
        now = self.clock()
        names: Dict[Any, str] = {p.id: p.title for p in self.projects.list()}

        items: List[ActionItem] = []
        for t in self.tasks.list():
            if t.completed:
                continue
            deferred = deferral.is_deferred(t, now)
            if deferred and not include_deferred:
                continue
            items.append(
                ActionItem(task=t, project_name=names.get(t.project_id), deferred=deferred)
            )

        # oldest first among equal priorities
        items.sort(key=lambda i: i.task.created_at)
        items.sort(key=lambda i: i.task.priority, reverse=True)
        return items
