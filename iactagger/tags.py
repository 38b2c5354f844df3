"""Tag model shared by every tag group."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, ClassVar

YOR_TRACE_TAG_KEY = "yor_trace"
GIT_FILE_TAG_KEY = "git_file"
GIT_MODIFIERS_TAG_KEY = "git_modifiers"
GIT_LAST_MODIFIED_AT_TAG_KEY = "git_last_modified_at"
GIT_LAST_MODIFIED_BY_TAG_KEY = "git_last_modified_by"
GIT_REPO_TAG_KEY = "git_repo"
YOR_NAME_TAG_KEY = "yor_name"


@dataclass
class Tag:
    """A key/value tag. Subclasses compute their value from some input."""

    key: str = ""
    value: str = ""

    priority: ClassVar[int] = 0
    default_key: ClassVar[str] = ""

    def init(self) -> None:
        """Set the tag's own key, if its class defines one; otherwise keep the given key."""
        if self.default_key:
            self.key = self.default_key

    def set_tag_prefix(self, tag_prefix: str) -> None:
        """Prepend ``tag_prefix`` to the key."""
        self.key = f"{tag_prefix}{self.key}"

    def calculate_value(self, data: Any) -> Tag:
        """Return a new tag carrying this tag's key and value."""
        return Tag(key=self.key, value=self.value)

    @property
    def description(self) -> str:
        return "Abstract tag class"


@dataclass
class TagDiff:
    """A change of value for one tag key."""

    key: str
    prev_value: str
    new_value: str


def is_tag_key_match(tag: Tag, key_name: str) -> bool:
    """Whether the tag's key contains ``key_name``, possibly quoted, as a word."""
    pattern = rf'\b"?{re.escape(key_name)}"?\b'
    return re.search(pattern, tag.key) is not None