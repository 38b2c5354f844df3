"""Tags that link a cloud resource back to its definition in code."""

from __future__ import annotations

import uuid
from typing import Any

from iactagger.structure import Block
from iactagger.tag_group import TagGroup
from iactagger.tags import YOR_NAME_TAG_KEY, YOR_TRACE_TAG_KEY, Tag


class YorTraceTag(Tag):
    """A random UUID that identifies the resource's definition."""

    def init(self) -> None:
        self.key = YOR_TRACE_TAG_KEY

    def calculate_value(self, data: Any) -> Tag:
        """Return a tag holding a fresh version-4 UUID."""
        return Tag(key=self.key, value=str(uuid.uuid4()))

    @property
    def description(self) -> str:
        return "A UUID tag that allows easily finding the root IaC config of the resource"


class YorNameTag(Tag):
    """The resource's name as written in the configuration file."""

    def init(self) -> None:
        self.key = YOR_NAME_TAG_KEY

    def calculate_value(self, data: Any) -> Tag:
        """Return a tag holding the block's resource name.

        Raises TypeError when ``data`` is not a block.
        """
        if not isinstance(data, Block):
            raise TypeError(
                "failed to convert data to Block, which is required to calculate tag value. "
                f"Type of data: {type(data).__name__}"
            )
        return Tag(key=self.key, value=data.resource_name)

    @property
    def description(self) -> str:
        return "A tag that states the resource name in the IaC config file"


class Code2CloudTagGroup(TagGroup):
    """The trace and name tags."""

    def init_tag_group(
        self,
        path: str,
        skipped_tags: list[str] | None,
        specified_tags: list[str] | None,
        tag_prefix: str = "",
    ) -> None:
        """Configure the group and load the trace and name tags."""
        self.tag_prefix = tag_prefix
        self.skipped_tags = list(skipped_tags or [])
        self.specified_tags = list(specified_tags or [])
        self.set_tags([YorTraceTag(), YorNameTag()])

    def default_tags(self) -> list[Tag]:
        return [YorTraceTag(), YorNameTag()]

    def create_tags_for_block(self, block: Block) -> None:
        """Compute the trace and name tags for ``block`` and add them to it."""
        self.update_block_tags(block, block)