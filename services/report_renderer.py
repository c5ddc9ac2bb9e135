# services/report_renderer.py
# -*- coding: utf-8 -*-

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from markdown import markdown

from services.stats_service import Report, Window, format_duration

WINDOW_TITLES = {
    Window.TODAY: "Today",
    Window.LAST_7_DAYS: "Last 7 days",
    Window.LAST_30_DAYS: "Last 30 days",
    Window.ALL_TIME: "All time",
    Window.CUSTOM: "Custom range",
}


@dataclass(frozen=True)
class ReportTheme:
    text: str = "#0f172a"
    muted: str = "#64748b"
    border: str = "#E5E7EB"
    panel: str = "#FFFFFF"


class ReportRenderer:
    """
    Single responsibility:
    - Report -> Markdown summary
    - Markdown (reports, task/project notes) -> standalone HTML page
    """

    def __init__(self, theme: Optional[ReportTheme] = None):
        self.theme = theme or ReportTheme()

    # ---------- markdown ----------
    def to_markdown(self, report: Report, top_tags: int = 4) -> str:
        title = WINDOW_TITLES.get(report.window, report.window.value)
        lines: List[str] = [f"# Focus report: {title}", ""]

        if report.start is not None and report.end is not None:
            lines.append(
                f"_{report.start.date().isoformat()} to {report.end.date().isoformat()}_"
            )
            lines.append("")

        if report.session_count == 0:
            lines.append("No sessions logged in this period.")
            return "\n".join(lines) + "\n"

        lines += [
            f"- **Total:** {format_duration(report.total_seconds)}",
            f"- **Daily average:** {format_duration(report.average_seconds)}"
            f" over {report.range_days} day(s)",
            f"- **Top tag:** {report.top_tag}",
            f"- **Entries:** {report.session_count}",
            "",
            "## Tags",
            "",
            "| Tag | Time |",
            "| --- | --- |",
        ]
        for tag, sec in report.tag_breakdown[:top_tags]:
            lines.append(f"| {tag} | {format_duration(sec)} |")

        lines += ["", "## Per day", "", "| Day | Hours |", "| --- | --- |"]
        for bar in report.day_bars:
            lines.append(f"| {bar.label} {bar.day.isoformat()} | {bar.hours:.1f} |")

        return "\n".join(lines) + "\n"

    # ---------- notes ----------
    def preprocess(self, md_text: str) -> str:
        """Task lists -> unicode checkboxes so they survive plain renderers."""
        if not md_text:
            return ""
        task_unchecked = re.compile(r"^(\s*[-*+]\s+)\[ \]\s+")
        task_checked = re.compile(r"^(\s*[-*+]\s+)\[(x|X)\]\s+")
        out = []
        for line in md_text.splitlines():
            line = task_checked.sub(r"\1☑ ", line)
            line = task_unchecked.sub(r"\1☐ ", line)
            out.append(line)
        return "\n".join(out)

    # ---------- CSS ----------
    def css(self) -> str:
        t = self.theme
        return f"""
        body {{
          font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Arial, sans-serif;
          margin: 14px;
          color: {t.text};
          background: {t.panel};
          font-size: 14px;
          line-height: 1.55;
        }}
        em {{ color: {t.muted}; }}
        table {{ border-collapse: collapse; margin: 0.8em 0; }}
        th, td {{ border: 1px solid {t.border}; padding: 6px 10px; }}
        """

    # ---------- render ----------
    def md_to_html(self, md_text: str) -> str:
        body = markdown(
            self.preprocess(md_text or ""),
            extensions=["extra", "sane_lists", "nl2br"],
            output_format="html5",
        )
        return f"""<html>
  <head>
    <meta charset="utf-8"/>
    <style>{self.css()}</style>
  </head>
  <body>{body}</body>
</html>
"""

    def to_html(self, report: Report) -> str:
        return self.md_to_html(self.to_markdown(report))
