"""Base tag group: a set of tags applied to resource blocks."""

from __future__ import annotations

import logging
import re
from typing import Any

from iactagger.structure import Block
from iactagger.tags import Tag

logger = logging.getLogger(__name__)

IGNORED_DIRS = [".git", ".DS_Store", ".idea"]


class TagGroup:
    """A named collection of tags, filtered by skip patterns and explicit choice."""

    def __init__(
        self,
        skipped_tags: list[str] | None = None,
        specified_tags: list[str] | None = None,
        tag_prefix: str = "",
        dir: str = "",
    ) -> None:
        self.skipped_tags: list[str] = list(skipped_tags or [])
        self.specified_tags: list[str] = list(specified_tags or [])
        self.tag_prefix = tag_prefix
        self.dir = dir
        self._tags: list[Tag] = []

    @property
    def skipped_dirs(self) -> list[str]:
        return IGNORED_DIRS

    @property
    def tags(self) -> list[Tag]:
        return self._tags

    def init_tag_group(
        self,
        path: str,
        skipped_tags: list[str] | None,
        specified_tags: list[str] | None,
        tag_prefix: str = "",
    ) -> None:
        """Configure the group and load its default tags."""
        self.dir = path
        self.skipped_tags = list(skipped_tags or [])
        self.specified_tags = list(specified_tags or [])
        self.tag_prefix = tag_prefix
        self.set_tags(self.default_tags())

    def default_tags(self) -> list[Tag]:
        """The tags this group offers; none for the base group."""
        return []

    def create_tags_for_block(self, block: Block) -> None:
        """Compute this group's tags for ``block`` and add them to it."""
        self.update_block_tags(block, block)

    def set_tags(self, tags: list[Tag]) -> None:
        """Initialise, prefix and add every tag that is neither skipped nor unwanted."""
        for tag in tags:
            tag.init()
            tag.set_tag_prefix(self.tag_prefix)
            bare_key = tag.key.removeprefix(self.tag_prefix)
            if self.is_tag_skipped(tag):
                continue
            if not self.specified_tags or bare_key in self.specified_tags:
                self._tags.append(tag)

    def is_tag_skipped(self, tag: Tag) -> bool:
        """Whether the tag's key matches a skip pattern, where ``*`` is a wildcard."""
        for skipped in self.skipped_tags:
            pattern = skipped.replace("*", ".*")
            try:
                matched = re.search(pattern, tag.key) is not None
            except re.error:
                matched = True
            if matched:
                logger.info("Skipping %s due to skip-tag constraint %s", tag.key, skipped)
                return True
        return False

    def update_block_tags(self, block: Block, data: Any) -> None:
        """Calculate every tag from ``data`` and add the non-empty ones to ``block``.

        Tags that fail are logged and left out; if the last tag failed, its
        error is raised once the others have been added.
        """
        new_tags: list[Tag] = []
        last_error: Exception | None = None
        for tag in self._tags:
            try:
                value = tag.calculate_value(data)
            except (TypeError, ValueError) as error:
                logger.error("Failed to create %s tag for block %s", tag.key, block.resource_id)
                last_error = error
                continue
            last_error = None
            if value is not None and value.value != "":
                new_tags.append(value)
        block.add_new_tags(new_tags)
        if last_error is not None:
            raise last_error