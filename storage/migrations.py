# -*- coding: utf-8 -*-

import datetime as dt
import logging
from typing import Any, Dict, List, Tuple

from domain.models import format_ts, parse_ts

logger = logging.getLogger(__name__)


def _needs_start_end(record: Dict[str, Any]) -> bool:
    return bool(record.get("timestamp")) and not record.get("startTime")


def migrate_session_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Legacy session records only carry "timestamp", which was written when the
    session stopped, so it is the end time. Returns the record unchanged when
    it already has a start time.
    """
    if not _needs_start_end(record):
        return record

    end = parse_ts(record["timestamp"])
    if end is None:
        logger.warning("Skipping session %r: unreadable timestamp", record.get("id"))
        return record

    try:
        duration = int(record.get("duration") or 0)
    except (TypeError, ValueError):
        duration = 0

    out = dict(record)
    out["endTime"] = record["timestamp"]
    out["startTime"] = format_ts(end - dt.timedelta(seconds=duration))
    return out


def migrate_session_records(
    records: List[Dict[str, Any]],
) -> Tuple[List[Dict[str, Any]], bool]:
    """
    Returns (records, changed). Idempotent: a second pass reports no change.
    """
    changed = False
    out: List[Dict[str, Any]] = []
    for r in records:
        if not isinstance(r, dict):
            out.append(r)
            continue
        m = migrate_session_record(r)
        if m is not r:
            changed = True
        out.append(m)
    return out, changed
