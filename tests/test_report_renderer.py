"""
Tests for the Markdown/HTML report output.
"""

import datetime as dt

from domain.models import Session
from services.report_renderer import ReportRenderer, ReportTheme
from services.stats_service import Window, build_report

NOW = dt.datetime(2026, 10, 19, 18, 0).astimezone()


def _session(tag: str, duration: int, hours_ago: int = 1) -> Session:
    end = NOW - dt.timedelta(hours=hours_ago)
    return Session(
        id=f"{tag}-{hours_ago}",
        task_name="t",
        tag=tag,
        start_time=end - dt.timedelta(seconds=duration),
        end_time=end,
        duration=duration,
    )


def _report():
    sessions = [_session("Deep Work", 3900, 1), _session("Reading", 900, 2)]
    return build_report(sessions, Window.TODAY, NOW)


def test_markdown_summary():
    md = ReportRenderer().to_markdown(_report())

    assert md.startswith("# Focus report: Today")
    assert "_2026-10-19 to 2026-10-19_" in md
    assert "- **Total:** 1h 20m" in md
    assert "- **Top tag:** Deep Work" in md
    assert "- **Entries:** 2" in md
    assert "| Deep Work | 1h 5m |" in md
    assert "| Reading | 15m |" in md
    assert "| Today 2026-10-19 | 1.3 |" in md


def test_top_tags_limit():
    md = ReportRenderer().to_markdown(_report(), top_tags=1)
    assert "| Deep Work |" in md
    assert "| Reading |" not in md


def test_empty_report():
    report = build_report([], Window.LAST_7_DAYS, NOW)
    md = ReportRenderer().to_markdown(report)
    assert "No sessions logged in this period." in md
    assert "## Tags" not in md


def test_all_time_has_no_date_line():
    report = build_report([], Window.ALL_TIME, NOW)
    md = ReportRenderer().to_markdown(report)
    lines = md.splitlines()
    assert lines[0] == "# Focus report: All time"
    assert not any(line.startswith("_") for line in lines)


def test_html_uses_tables_and_theme():
    renderer = ReportRenderer(theme=ReportTheme(text="#111111"))
    html = renderer.to_html(_report())
    assert "<table>" in html
    assert "<h1>Focus report: Today</h1>" in html
    assert "color: #111111;" in html


def test_preprocess_task_lists():
    out = ReportRenderer().preprocess("- [ ] draft\n- [x] outline\nplain")
    assert out.splitlines() == ["- ☐ draft", "- ☑ outline", "plain"]


def test_notes_render():
    html = ReportRenderer().md_to_html("**bold**")
    assert "<strong>bold</strong>" in html
    assert ReportRenderer().preprocess("") == ""
