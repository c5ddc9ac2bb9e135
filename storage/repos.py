# storage/repos.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import json
import logging
import time
from typing import Any, Dict, List, Optional

from domain.models import Project, Session, Task
from storage.db import PREFS, PROJECTS, SESSIONS, TAGS, TASKS, Database
from storage.migrations import migrate_session_records

logger = logging.getLogger(__name__)


def _now_ts() -> int:
    return int(time.time())


class CollectionStore:
    """
    Key-value persistence of whole collections (JSON documents).
    Reads never raise on bad data; writes replace the collection in one commit.
    """

    def __init__(self, db: Database):
        self.db = db

    def _load(self, name: str) -> Optional[Any]:
        row = self.db.conn.execute(
            "SELECT value FROM collections WHERE name=?",
            (name,),
        ).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except (TypeError, ValueError):
            logger.warning("Collection %r holds malformed JSON, reading as empty", name)
            return None

    def has(self, name: str) -> bool:
        row = self.db.conn.execute(
            "SELECT 1 FROM collections WHERE name=?",
            (name,),
        ).fetchone()
        return row is not None

    def read(self, name: str) -> List[Any]:
        data = self._load(name)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Collection %r is not a list, reading as empty", name)
            return []
        return data

    def read_record(self, name: str) -> Dict[str, Any]:
        data = self._load(name)
        if not isinstance(data, dict):
            return {}
        return data

    def write_all(self, name: str, value: Any) -> None:
        self.db.conn.execute(
            """
            INSERT INTO collections(name, value, updated_at) VALUES(?, ?, ?)
            ON CONFLICT(name) DO UPDATE SET
                value=excluded.value,
                updated_at=excluded.updated_at
            """,
            (name, json.dumps(value), _now_ts()),
        )
        self.db.conn.commit()

    def merge_record(self, name: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        current = self.read_record(name)
        current.update(changes)
        self.write_all(name, current)
        return current


class SessionRepo:
    def __init__(self, store: CollectionStore):
        self.store = store

    def records(self) -> List[Dict[str, Any]]:
        raw = [r for r in self.store.read(SESSIONS) if isinstance(r, dict)]
        migrated, changed = migrate_session_records(raw)
        if changed:
            logger.info("Migrated session history to start/end format")
            self.store.write_all(SESSIONS, migrated)
        return migrated

    def list(self) -> List[Session]:
        return [Session.from_record(r) for r in self.records()]

    def save_all(self, sessions: List[Session]) -> None:
        self.store.write_all(SESSIONS, [s.to_record() for s in sessions])


class TaskRepo:
    def __init__(self, store: CollectionStore):
        self.store = store

    def list(self) -> List[Task]:
        return [
            Task.from_record(r) for r in self.store.read(TASKS) if isinstance(r, dict)
        ]

    def save_all(self, tasks: List[Task]) -> None:
        self.store.write_all(TASKS, [t.to_record() for t in tasks])


class ProjectRepo:
    def __init__(self, store: CollectionStore):
        self.store = store

    def list(self) -> List[Project]:
        return [
            Project.from_record(r)
            for r in self.store.read(PROJECTS)
            if isinstance(r, dict)
        ]

    def save_all(self, projects: List[Project]) -> None:
        self.store.write_all(PROJECTS, [p.to_record() for p in projects])


class TagRepo:
    def __init__(self, store: CollectionStore):
        self.store = store

    def exists(self) -> bool:
        return self.store.has(TAGS)

    def list(self) -> List[str]:
        return [t for t in self.store.read(TAGS) if isinstance(t, str)]

    def save_all(self, tags: List[str]) -> None:
        self.store.write_all(TAGS, list(tags))


class PrefsRepo:
    def __init__(self, store: CollectionStore):
        self.store = store

    def get(self) -> Dict[str, Any]:
        return self.store.read_record(PREFS)

    def merge(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self.store.merge_record(PREFS, changes)
