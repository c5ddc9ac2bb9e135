"""
Tests for tasks, projects and the action-item list.
"""

import datetime as dt

from domain.models import DEFAULT_TAG
from services.deferral import next_defer_until


class TestTaskUpsert:
    def test_create_applies_defaults(self, tasks, clock):
        t = tasks.create_or_update_task(title="Read paper")[0]
        assert t.id
        assert t.created_at == clock.now
        assert t.priority == 3
        assert t.note == ""
        assert t.deadline is None
        assert t.project_id is None
        assert t.completed is False
        assert t.deferred_until is None

    def test_default_tag_is_first_tag(self, tasks, prefs):
        prefs.delete_tag("Deep Work")
        t = tasks.create_or_update_task(title="x")[0]
        assert t.tag == "Meeting"

    def test_default_tag_without_any_tags(self, tasks, prefs):
        for tag in prefs.list_tags():
            prefs.delete_tag(tag)
        assert tasks.create_or_update_task(title="x")[0].tag == DEFAULT_TAG

    def test_create_prepends(self, tasks):
        tasks.create_or_update_task(title="old")
        assert [t.title for t in tasks.create_or_update_task(title="new")] == ["new", "old"]

    def test_update_merges_and_keeps_length(self, tasks):
        t = tasks.create_or_update_task(title="a", note="keep me", priority=2)[0]
        updated = tasks.create_or_update_task(id=t.id, priority=5)
        assert len(updated) == 1
        assert updated[0].priority == 5
        assert updated[0].note == "keep me"
        assert updated[0].created_at == t.created_at

    def test_unknown_id_is_inserted_with_that_id(self, tasks):
        tasks.create_or_update_task(title="a")
        updated = tasks.create_or_update_task(id="imported-1", title="b")
        assert len(updated) == 2
        assert updated[0].id == "imported-1"

    def test_deadline_survives_storage(self, tasks):
        t = tasks.create_or_update_task(title="a", deadline=dt.date(2026, 11, 1))[0]
        assert tasks.get_task(t.id).deadline == dt.date(2026, 11, 1)

    def test_string_dates_are_accepted(self, tasks):
        t = tasks.create_or_update_task(
            title="a",
            deadline="2026-10-25",
            created_at="2026-10-01T09:00:00Z",
        )[0]
        stored = tasks.get_task(t.id)
        assert stored.deadline == dt.date(2026, 10, 25)
        assert stored.created_at == dt.datetime(2026, 10, 1, 9, tzinfo=dt.timezone.utc)

    def test_update_with_string_dates(self, tasks):
        t = tasks.create_or_update_task(title="a")[0]
        tasks.create_or_update_task(
            id=t.id, deadline="2026-11-02", deferred_until="2026-10-20T00:00:00"
        )
        stored = tasks.get_task(t.id)
        assert stored.deadline == dt.date(2026, 11, 2)
        assert stored.deferred_until.date() == dt.date(2026, 10, 20)

    def test_blank_deadline_clears_it(self, tasks):
        t = tasks.create_or_update_task(title="a", deadline=dt.date(2026, 11, 1))[0]
        tasks.create_or_update_task(id=t.id, deadline="")
        assert tasks.get_task(t.id).deadline is None

    def test_delete_task(self, tasks):
        t = tasks.create_or_update_task(title="a")[0]
        tasks.create_or_update_task(title="b")
        assert [x.title for x in tasks.delete_task(t.id)] == ["b"]


class TestComplete:
    def test_complete_marks_task_and_logs_session(self, tasks, sessions):
        t = tasks.create_or_update_task(title="Ship", tag="Admin")[0]
        tasks.complete_task(t.id)

        assert tasks.get_task(t.id).completed is True
        log = sessions.list_sessions()
        assert len(log) == 1
        assert log[0].is_completion_log
        assert log[0].task_name == "Ship"

    def test_complete_twice_logs_once(self, tasks, sessions):
        t = tasks.create_or_update_task(title="Ship")[0]
        tasks.complete_task(t.id)
        tasks.complete_task(t.id)
        assert len(sessions.list_sessions()) == 1

    def test_completed_task_leaves_action_items(self, tasks):
        t = tasks.create_or_update_task(title="Ship")[0]
        tasks.complete_task(t.id)
        assert tasks.list_action_items() == []
        assert tasks.list_action_items(include_deferred=True) == []


class TestDefer:
    def test_toggle_defer_hides_task(self, tasks, clock):
        t = tasks.create_or_update_task(title="Later")[0]
        tasks.toggle_defer(t.id)
        assert tasks.get_task(t.id).deferred_until == next_defer_until(clock.now)
        assert tasks.list_action_items() == []

    def test_deferred_task_returns_when_time_passes(self, tasks, clock):
        t = tasks.create_or_update_task(title="Later")[0]
        tasks.toggle_defer(t.id)
        clock.advance(days=1)
        assert [i.task.id for i in tasks.list_action_items()] == [t.id]

    def test_toggle_twice_round_trips(self, tasks):
        t = tasks.create_or_update_task(title="Later")[0]
        tasks.toggle_defer(t.id)
        tasks.toggle_defer(t.id)
        assert tasks.get_task(t.id).deferred_until is None
        assert len(tasks.list_action_items()) == 1

    def test_include_deferred_flags_snoozed(self, tasks):
        t = tasks.create_or_update_task(title="Later")[0]
        tasks.toggle_defer(t.id)
        items = tasks.list_action_items(include_deferred=True)
        assert len(items) == 1
        assert items[0].deferred is True


class TestProjects:
    def test_project_defaults(self, tasks):
        p = tasks.create_or_update_project()[0]
        assert p.title == ""
        assert p.note == ""

    def test_update_project_keeps_length(self, tasks):
        p = tasks.create_or_update_project(title="Thesis")[0]
        updated = tasks.create_or_update_project(id=p.id, note="chapter 2")
        assert len(updated) == 1
        assert updated[0].title == "Thesis"
        assert updated[0].note == "chapter 2"

    def test_delete_project_orphans_tasks(self, tasks):
        p = tasks.create_or_update_project(title="Thesis")[0]
        other = tasks.create_or_update_project(title="Other")[0]
        for i in range(3):
            tasks.create_or_update_task(title=f"linked {i}", project_id=p.id)
        tasks.create_or_update_task(title="elsewhere", project_id=other.id)

        remaining = tasks.delete_project(p.id)

        assert [x.id for x in remaining] == [other.id]
        all_tasks = tasks.list_tasks()
        assert len(all_tasks) == 4
        linked = [t for t in all_tasks if t.title.startswith("linked")]
        assert all(t.project_id is None for t in linked)
        assert [t.project_id for t in all_tasks if t.title == "elsewhere"] == [other.id]


class TestActionItems:
    def test_priority_desc_then_oldest_first(self, tasks, clock):
        first = tasks.create_or_update_task(title="t1", priority=3)[0]
        clock.advance(minutes=5)
        second = tasks.create_or_update_task(title="t2", priority=3)[0]
        clock.advance(minutes=5)
        urgent = tasks.create_or_update_task(title="urgent", priority=5)[0]
        low = tasks.create_or_update_task(title="low", priority=1)[0]

        order = [i.task.id for i in tasks.list_action_items()]

        assert order == [urgent.id, first.id, second.id, low.id]

    def test_project_name_joined(self, tasks):
        p = tasks.create_or_update_project(title="Thesis")[0]
        tasks.create_or_update_task(title="linked", project_id=p.id)
        tasks.create_or_update_task(title="loose")
        names = {i.task.title: i.project_name for i in tasks.list_action_items()}
        assert names == {"linked": "Thesis", "loose": None}

    def test_deferred_until_now_counts_as_active(self, tasks, clock):
        tasks.create_or_update_task(title="due now", deferred_until=clock.now)
        assert len(tasks.list_action_items()) == 1
