#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import sqlite3

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "2"

SESSIONS = "sessions"
TAGS = "tags"
PREFS = "prefs"
TASKS = "tasks"
PROJECTS = "projects"

COLLECTIONS = (SESSIONS, TAGS, PREFS, TASKS, PROJECTS)


class Database:
    def __init__(self, db_path: str = "focus_logger.db"):
        self.db_path = db_path
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row

    def init_schema(self):
        cur = self.conn.cursor()

        cur.execute("""
            CREATE TABLE IF NOT EXISTS schema_meta (
                key TEXT PRIMARY KEY,
                value TEXT
            );
        """)

        # one row per collection, value = JSON document
        cur.execute("""
            CREATE TABLE IF NOT EXISTS collections (
                name TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at INTEGER NOT NULL DEFAULT 0
            );
        """)

        cur.execute(
            """
            INSERT INTO schema_meta(key, value) VALUES('schema_version', ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (SCHEMA_VERSION,),
        )
        self.conn.commit()

    def schema_version(self) -> str:
        v = self.conn.execute(
            "SELECT value FROM schema_meta WHERE key='schema_version'"
        ).fetchone()
        return v["value"] if v else "unknown"

    def close(self):
        try:
            self.conn.close()
        except sqlite3.Error:
            logger.warning("Failed to close database %s", self.db_path, exc_info=True)
