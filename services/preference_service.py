# -*- coding: utf-8 -*-

import logging
from typing import Any, Dict, List

from domain.models import Preferences
from storage.repos import PrefsRepo, TagRepo

logger = logging.getLogger(__name__)

DEFAULT_TAGS = ["Deep Work", "Meeting", "Reading", "Thinking", "Admin"]
DEFAULT_TAG_COLOR = "#94a3b8"

# python name -> stored key
_PREF_KEYS = {
    "active_tag": "activeTag",
    "default_goal_minutes": "defaultGoalMinutes",
    "alarm_sound": "alarmSound",
    "tag_colors": "tagColors",
}


class PreferenceService:
    """
    Tags + preferences. One instance is shared by the timer, task and report
    code so every view sees the same active tag, goal and colors.
    """

    def __init__(self, tag_repo: TagRepo, prefs_repo: PrefsRepo):
        self.tag_repo = tag_repo
        self.prefs_repo = prefs_repo

    # ---- tags ----
    def list_tags(self) -> List[str]:
        if not self.tag_repo.exists():
            return list(DEFAULT_TAGS)
        return self.tag_repo.list()

    def add_tag(self, name: str) -> List[str]:
        name = (name or "").strip()
        tags = self.list_tags()
        if not name or name in tags:
            return tags
        tags.append(name)
        self.tag_repo.save_all(tags)
        self.set_active_tag(name)
        return tags

    def delete_tag(self, name: str) -> List[str]:
        active = self.active_tag()
        tags = [t for t in self.list_tags() if t != name]
        self.tag_repo.save_all(tags)
        if active == name:
            self.set_active_tag(tags[0] if tags else "")
        return tags

    def active_tag(self) -> str:
        tags = self.list_tags()
        stored = self.get_prefs().active_tag
        if stored and stored in tags:
            return stored
        return tags[0] if tags else ""

    def set_active_tag(self, tag: str) -> None:
        self.update_prefs(active_tag=tag)

    def tag_color(self, tag: str) -> str:
        # deleted or never-colored tags fall back to the neutral color
        return self.get_prefs().tag_colors.get(tag, DEFAULT_TAG_COLOR)

    def set_tag_color(self, tag: str, color: str) -> None:
        colors = dict(self.get_prefs().tag_colors)
        colors[tag] = color
        self.update_prefs(tag_colors=colors)

    # ---- prefs ----
    def get_prefs(self) -> Preferences:
        return Preferences.from_record(self.prefs_repo.get())

    def update_prefs(self, **changes: Any) -> Preferences:
        record: Dict[str, Any] = {}
        for key, value in changes.items():
            if key not in _PREF_KEYS:
                raise TypeError(f"Unknown preference: {key}")
            record[_PREF_KEYS[key]] = value
        return Preferences.from_record(self.prefs_repo.merge(record))

    def default_goal_minutes(self) -> int:
        return self.get_prefs().default_goal_minutes

    def alarm_sound(self) -> str:
        return self.get_prefs().alarm_sound
