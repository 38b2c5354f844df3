"""Fixed key/value tags supplied by the user."""

from __future__ import annotations

import json
import logging
import os

from iactagger.structure import Block
from iactagger.tag_group import TagGroup
from iactagger.tags import Tag

logger = logging.getLogger(__name__)

SIMPLE_TAGS_ENV_KEY = "YOR_SIMPLE_TAGS"


def _parse_env_tags(raw: str) -> dict[str, str]:
    if raw.startswith("'"):
        raw = raw[1:-1]
    if raw.startswith('"'):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as error:
            logger.info("failed to parse extra tags from env: %s", error)
        else:
            if isinstance(decoded, str):
                raw = decoded
            else:
                logger.info("failed to parse extra tags from env: expected a string")
    parsed = json.loads(raw)
    if not isinstance(parsed, dict) or not all(isinstance(v, str) for v in parsed.values()):
        raise ValueError("expected a JSON object of string values")
    return parsed


class SimpleTagGroup(TagGroup):
    """Tags with constant values, given directly or through YOR_SIMPLE_TAGS."""

    def init_tag_group(
        self,
        path: str,
        skipped_tags: list[str] | None,
        specified_tags: list[str] | None,
        tag_prefix: str = "",
    ) -> None:
        """Configure the group and add the tags found in YOR_SIMPLE_TAGS.

        The prefix is not applied to simple tags.
        """
        self.skipped_tags = list(skipped_tags or [])
        self.specified_tags = list(specified_tags or [])
        raw = os.environ.get(SIMPLE_TAGS_ENV_KEY, "")
        if raw == "":
            return
        logger.debug("Simple tags from env: %s", raw)
        try:
            extra = _parse_env_tags(raw)
        except (ValueError, json.JSONDecodeError) as error:
            logger.info("failed to parse extra tags from env: %s", error)
            return
        self.set_tags([Tag(key=key, value=value) for key, value in extra.items()])

    def default_tags(self) -> list[Tag]:
        return []

    def create_tags_for_block(self, block: Block) -> None:
        """Add the group's tags to ``block``."""
        self.update_block_tags(block, None)