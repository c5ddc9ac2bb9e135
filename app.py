#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import argparse
import datetime as dt
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from config import load_config, setup_logging
from core.event_loop import EventLoop
from core.timer_engine import EngineSnapshot
from domain.models import now_local
from services import deferral
from services.preference_service import PreferenceService
from services.report_renderer import ReportRenderer
from services.session_service import SessionService
from services.stats_service import StatsService, Window, format_duration
from services.task_service import PRIORITY_LABELS, TaskService
from services.timer_service import TimerService
from storage.db import Database
from storage.repos import (
    CollectionStore,
    PrefsRepo,
    ProjectRepo,
    SessionRepo,
    TagRepo,
    TaskRepo,
)

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    db: Database
    sessions: SessionService
    prefs: PreferenceService
    tasks: TaskService
    stats: StatsService


def build_services(db: Database) -> AppServices:
    store = CollectionStore(db)
    sessions = SessionService(SessionRepo(store))
    prefs = PreferenceService(TagRepo(store), PrefsRepo(store))
    tasks = TaskService(TaskRepo(store), ProjectRepo(store), sessions, prefs)
    stats = StatsService(db, sessions)
    return AppServices(db=db, sessions=sessions, prefs=prefs, tasks=tasks, stats=stats)


# ---------- helpers ----------
def _fail(msg: str) -> None:
    print(f"error: {msg}", file=sys.stderr)
    raise SystemExit(2)


def _resolve_id(ids: Iterable[Any], prefix: str) -> Any:
    """Full id or an unambiguous prefix of one."""
    matches = [i for i in ids if str(i) == prefix]
    if not matches:
        matches = [i for i in ids if str(i).startswith(prefix)]
    if len(matches) != 1:
        _fail(f"no unique match for id {prefix!r}")
    return matches[0]


def _short(id_: Any) -> str:
    return str(id_)[:8]


def _parse_date(value: Optional[str]) -> Optional[dt.date]:
    if not value:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        _fail(f"invalid date {value!r}, use YYYY-MM-DD")


def format_clock(seconds: int) -> str:
    m = max(0, seconds) // 60
    s = max(0, seconds) % 60
    return f"{m:02d}:{s:02d}"


def _terminal_bell(sound_id: str) -> None:
    sys.stdout.write("\a")
    sys.stdout.flush()


# ---------- timer ----------
def cmd_focus(app: AppServices, args) -> None:
    if args.tag:
        if args.tag not in app.prefs.list_tags():
            _fail(f"unknown tag {args.tag!r}")
        app.prefs.set_active_tag(args.tag)

    loop = EventLoop()
    timer = TimerService(app.sessions, app.prefs, loop, play_sound=_terminal_bell)
    if args.goal is not None:
        timer.set_goal(args.goal)
    timer.set_task_name(args.name)

    def show(snap: EngineSnapshot) -> None:
        goal = f" / {snap.goal_minutes:02d}:00" if snap.goal_minutes else ""
        sys.stdout.write(f"\r{format_clock(snap.elapsed_sec)}{goal}  ")
        sys.stdout.flush()

    timer.set_on_tick(show)
    print(f"Focusing on {args.name or 'Untitled Task'} [{app.prefs.active_tag()}], Ctrl+C to stop")
    timer.toggle()
    try:
        while True:
            loop.run()
            if not timer.get_snapshot().is_goal_reached:
                break
            answer = input("\nTime's up! [e]xtend +10m or [s]top? ").strip().lower()
            if not answer.startswith("e"):
                break
            timer.extend()
    except KeyboardInterrupt:
        pass
    print()
    elapsed = timer.get_snapshot().elapsed_sec
    timer.stop()
    print("Session saved." if elapsed else "Nothing timed, no session saved.")


# ---------- sessions ----------
def cmd_log(app: AppServices, args) -> None:
    name = (args.name or "").strip()
    if not name:
        _fail("task name required")
    if args.minutes <= 0:
        _fail("minutes must be positive")
    end = now_local()
    if args.at:
        try:
            end = dt.datetime.fromisoformat(args.at).astimezone()
        except ValueError:
            _fail(f"invalid time {args.at!r}, use YYYY-MM-DDTHH:MM")
        if end > now_local():
            _fail("cannot log future tasks")
    app.sessions.create_or_update_session(
        task_name=name,
        tag=args.tag or app.prefs.active_tag(),
        duration=args.minutes * 60,
        note=args.note or "",
        end_time=end,
    )
    print(f"Logged {args.minutes}m of {name}.")


def cmd_history(app: AppServices, args) -> None:
    window = Window(args.window)
    sessions = app.stats.sessions_in(
        window, custom_start=_parse_date(args.start), custom_end=_parse_date(args.end)
    )
    if not sessions:
        print("No entries.")
        return
    for s in sessions:
        when = s.timestamp.strftime("%b %d, %H:%M") if s.timestamp else "?"
        length = "COMPLETED" if s.is_completion_log else format_duration(s.duration)
        note = f"  {s.note}" if s.note else ""
        print(f"{_short(s.id)}  {when}  {length:>9}  [{s.tag}] {s.task_name}{note}")


def cmd_delete_session(app: AppServices, args) -> None:
    sid = _resolve_id([s.id for s in app.sessions.list_sessions()], args.id)
    app.sessions.delete_session(sid)
    print("Deleted.")


def cmd_report(app: AppServices, args) -> None:
    window = Window(args.window)
    start, end = _parse_date(args.start), _parse_date(args.end)
    if window is Window.CUSTOM and (start is None or end is None):
        _fail("custom window needs --from and --to")
    report = app.stats.report(window, custom_start=start, custom_end=end)
    renderer = ReportRenderer()

    if args.format == "html":
        out = renderer.to_html(report)
    elif args.format == "markdown":
        out = renderer.to_markdown(report)
    else:
        lines = [
            f"Total:   {format_duration(report.total_seconds)}",
            f"Average: {format_duration(report.average_seconds)} / day",
            f"Top tag: {report.top_tag or '-'}",
        ]
        for bar in report.day_bars:
            lines.append(f"  {bar.label:<5} {bar.hours:>5.1f}h")
        out = "\n".join(lines) + "\n"

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(out)
        print(f"Wrote {args.output}")
    else:
        sys.stdout.write(out)


# ---------- tags & prefs ----------
def cmd_tags(app: AppServices, args) -> None:
    active = app.prefs.active_tag()
    for t in app.prefs.list_tags():
        mark = "*" if t == active else " "
        print(f"{mark} {t}  {app.prefs.tag_color(t)}")


def cmd_tag_add(app: AppServices, args) -> None:
    app.prefs.add_tag(args.name)
    cmd_tags(app, args)


def cmd_tag_delete(app: AppServices, args) -> None:
    app.prefs.delete_tag(args.name)
    cmd_tags(app, args)


def cmd_tag_color(app: AppServices, args) -> None:
    app.prefs.set_tag_color(args.name, args.color)


def cmd_prefs(app: AppServices, args) -> None:
    changes = {}
    if args.goal is not None:
        if args.goal <= 0:
            _fail("goal must be positive")
        changes["default_goal_minutes"] = args.goal
    if args.sound:
        changes["alarm_sound"] = args.sound
    prefs = app.prefs.update_prefs(**changes) if changes else app.prefs.get_prefs()
    print(f"default goal: {prefs.default_goal_minutes}m")
    print(f"alarm sound:  {prefs.alarm_sound}")
    print(f"active tag:   {app.prefs.active_tag()}")


# ---------- tasks & projects ----------
def cmd_tasks(app: AppServices, args) -> None:
    items = app.tasks.list_action_items(include_deferred=args.all)
    if not items:
        print("All caught up!")
        return
    today = now_local().date()
    for item in items:
        t = item.task
        bits = [PRIORITY_LABELS.get(t.priority, str(t.priority)), t.tag]
        if item.project_name:
            bits.append(f"project: {item.project_name}")
        status = deferral.deadline_status(t, today)
        if status == "overdue":
            bits.append(f"OVERDUE {t.deadline.isoformat()}")
        elif status:
            bits.append(f"due {t.deadline.isoformat()}")
        if item.deferred:
            bits.append("deferred")
        print(f"{_short(t.id)}  {t.title}  ({', '.join(bits)})")


def cmd_task_add(app: AppServices, args) -> None:
    title = (args.title or "").strip()
    if not title:
        _fail("title required")
    if args.priority not in PRIORITY_LABELS:
        _fail("priority must be 1..5")
    fields = {"title": title, "priority": args.priority, "note": args.note or ""}
    if args.tag:
        fields["tag"] = args.tag
    if args.deadline:
        fields["deadline"] = _parse_date(args.deadline)
    if args.project:
        fields["project_id"] = _resolve_id(
            [p.id for p in app.tasks.list_projects()], args.project
        )
    app.tasks.create_or_update_task(**fields)
    print(f"Added {title}.")


def _task_id(app: AppServices, prefix: str) -> Any:
    return _resolve_id([t.id for t in app.tasks.list_tasks()], prefix)


def cmd_task_done(app: AppServices, args) -> None:
    app.tasks.complete_task(_task_id(app, args.id))
    print("Completed.")


def cmd_task_defer(app: AppServices, args) -> None:
    tid = _task_id(app, args.id)
    app.tasks.toggle_defer(tid)
    task = app.tasks.get_task(tid)
    if task is not None and task.deferred_until:
        print(f"Deferred until {task.deferred_until.strftime('%Y-%m-%d %H:%M')}.")
    else:
        print("Back in the list.")


def cmd_task_delete(app: AppServices, args) -> None:
    app.tasks.delete_task(_task_id(app, args.id))
    print("Deleted.")


def cmd_projects(app: AppServices, args) -> None:
    projects = app.tasks.list_projects()
    if not projects:
        print("No projects.")
    for p in projects:
        print(f"{_short(p.id)}  {p.title}  {p.note or 'No description'}")


def cmd_project_add(app: AppServices, args) -> None:
    title = (args.title or "").strip()
    if not title:
        _fail("title required")
    app.tasks.create_or_update_project(title=title, note=args.note or "")
    print(f"Added project {title}.")


def cmd_project_delete(app: AppServices, args) -> None:
    pid = _resolve_id([p.id for p in app.tasks.list_projects()], args.id)
    app.tasks.delete_project(pid)
    print("Deleted project; its tasks were kept.")


def cmd_info(app: AppServices, args) -> None:
    print(json.dumps(app.stats.get_db_info(), indent=2))


# ---------- parser ----------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="focus-logger", description="Focus timer and task tracker")
    parser.add_argument("--db", help="SQLite file (default: $FOCUS_DB_PATH or focus_logger.db)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    sub = parser.add_subparsers(dest="command", required=True)

    windows = [w.value for w in Window]

    p = sub.add_parser("focus", help="run the timer in the terminal")
    p.add_argument("name", nargs="?", default="")
    p.add_argument("--tag")
    p.add_argument("--goal", type=int, help="goal in minutes, 0 = none")
    p.set_defaults(func=cmd_focus)

    p = sub.add_parser("log", help="add a past session by hand")
    p.add_argument("name")
    p.add_argument("--minutes", type=int, default=30)
    p.add_argument("--tag")
    p.add_argument("--at", help="end time, YYYY-MM-DDTHH:MM (default: now)")
    p.add_argument("--note")
    p.set_defaults(func=cmd_log)

    p = sub.add_parser("history", help="list logged sessions")
    p.add_argument("--window", choices=windows, default="7days")
    p.add_argument("--from", dest="start")
    p.add_argument("--to", dest="end")
    p.set_defaults(func=cmd_history)

    p = sub.add_parser("delete-session")
    p.add_argument("id")
    p.set_defaults(func=cmd_delete_session)

    p = sub.add_parser("report", help="totals, average and top tag")
    p.add_argument("--window", choices=windows, default="7days")
    p.add_argument("--from", dest="start")
    p.add_argument("--to", dest="end")
    p.add_argument("--format", choices=["text", "markdown", "html"], default="text")
    p.add_argument("--output", "-o")
    p.set_defaults(func=cmd_report)

    p = sub.add_parser("tags")
    p.set_defaults(func=cmd_tags)
    p = sub.add_parser("tag-add")
    p.add_argument("name")
    p.set_defaults(func=cmd_tag_add)
    p = sub.add_parser("tag-delete")
    p.add_argument("name")
    p.set_defaults(func=cmd_tag_delete)
    p = sub.add_parser("tag-color")
    p.add_argument("name")
    p.add_argument("color")
    p.set_defaults(func=cmd_tag_color)

    p = sub.add_parser("prefs")
    p.add_argument("--goal", type=int, help="default goal in minutes")
    p.add_argument("--sound", help="alarm sound id")
    p.set_defaults(func=cmd_prefs)

    p = sub.add_parser("tasks", help="action items")
    p.add_argument("--all", action="store_true", help="include deferred tasks")
    p.set_defaults(func=cmd_tasks)
    p = sub.add_parser("task-add")
    p.add_argument("title")
    p.add_argument("--priority", type=int, default=3)
    p.add_argument("--tag")
    p.add_argument("--deadline")
    p.add_argument("--project")
    p.add_argument("--note")
    p.set_defaults(func=cmd_task_add)
    for name, func in (
        ("task-done", cmd_task_done),
        ("task-defer", cmd_task_defer),
        ("task-delete", cmd_task_delete),
    ):
        p = sub.add_parser(name)
        p.add_argument("id")
        p.set_defaults(func=func)

    p = sub.add_parser("projects")
    p.set_defaults(func=cmd_projects)
    p = sub.add_parser("project-add")
    p.add_argument("title")
    p.add_argument("--note")
    p.set_defaults(func=cmd_project_add)
    p = sub.add_parser("project-delete")
    p.add_argument("id")
    p.set_defaults(func=cmd_project_delete)

    p = sub.add_parser("info", help="database summary")
    p.set_defaults(func=cmd_info)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = load_config(db_path=args.db, log_level=args.log_level)
    except ValueError as e:
        _fail(str(e))
    setup_logging(cfg)
    logger.debug("Using database %s", cfg.db_path)

    db = Database(db_path=cfg.db_path)
    db.init_schema()
    try:
        args.func(build_services(db), args)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
