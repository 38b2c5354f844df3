"""Resource blocks and the serverless template model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from iactagger.tags import YOR_TRACE_TAG_KEY, Tag, TagDiff, is_tag_key_match

SPECIAL_RESOURCE_TYPES: dict[str, int] = {
    "aws_db_proxy": 10,
    "AWS::RDS::DBProxy": 10,
}


@dataclass
class Lines:
    """An inclusive range of zero-based line numbers."""

    start: int = 0
    end: int = 0


@dataclass
class BlockTagsDiff:
    """Tags added to a block and tags whose value changed."""

    added: list[Tag] = field(default_factory=list)
    updated: list[TagDiff] = field(default_factory=list)


@dataclass
class Block:
    """A taggable resource found in an infrastructure file."""

    file_path: str = ""
    existing_tags: list[Tag] = field(default_factory=list)
    new_tags: list[Tag] = field(default_factory=list)
    raw_block: Any = None
    is_taggable: bool = False
    tags_attribute_name: str = ""
    lines: Lines = field(default_factory=Lines)
    tag_lines: Lines = field(default_factory=Lines)
    name: str = ""
    resource_type: str = ""

    @property
    def resource_id(self) -> str:
        return self.name

    @property
    def resource_name(self) -> str:
        return self.resource_id

    @property
    def is_gcp_block(self) -> bool:
        return False

    def add_new_tags(self, new_tags: list[Tag] | None) -> None:
        """Add tags, keeping an existing trace tag and any per-type tag limit."""
        if new_tags is None:
            return
        incoming = list(new_tags)
        if any(is_tag_key_match(tag, YOR_TRACE_TAG_KEY) for tag in self.existing_tags):
            trace_positions = [
                index for index, tag in enumerate(incoming) if is_tag_key_match(tag, YOR_TRACE_TAG_KEY)
            ]
            if trace_positions:
                del incoming[trace_positions[-1]]
        self.new_tags = sorted([*self.new_tags, *incoming], key=lambda tag: tag.key, reverse=True)
        limit = SPECIAL_RESOURCE_TYPES.get(self.resource_type)
        if limit is not None and len(self.new_tags) + len(self.existing_tags) > limit:
            self.new_tags = self.new_tags[: max(limit - len(self.existing_tags), 0)]

    def merge_tags(self) -> list[Tag]:
        """Return existing tags overridden by new ones, followed by the new tags left."""
        new_by_key = {tag.key: tag for tag in self.new_tags}
        merged: list[Tag] = []
        for existing in self.existing_tags:
            replacement = new_by_key.pop(existing.key, None)
            if replacement is None or is_tag_key_match(existing, YOR_TRACE_TAG_KEY):
                merged.append(existing)
            else:
                merged.append(replacement)
        merged.extend(new_by_key.values())
        return merged

    def calculate_tags_diff(self) -> BlockTagsDiff:
        """Describe which new tags are additions and which change a value."""
        diff = BlockTagsDiff()
        for new_tag in self.new_tags:
            found = False
            for existing in self.existing_tags:
                if new_tag.key != existing.key:
                    continue
                found = True
                if new_tag.value != existing.value:
                    diff.updated.append(
                        TagDiff(key=new_tag.key, prev_value=existing.value, new_value=new_tag.value)
                    )
                    break
            if not found:
                diff.added.append(new_tag)
        return diff

    @property
    def trace_id(self) -> str:
        """The value of the trace tag after merging, or an empty string."""
        return next((tag.value for tag in self.merge_tags() if tag.key == YOR_TRACE_TAG_KEY), "")


def _expect(value: Any, kind: type, what: str) -> Any:
    if value is not None and not isinstance(value, kind):
        raise ValueError(f"{what} must be a {kind.__name__}, got {type(value).__name__}")
    return value


@dataclass
class Function:
    """A serverless function; only the fields that matter for tagging."""

    name: str = ""
    tags: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Function:
        data = _expect(data, dict, "function") or {}
        name = _expect(data.get("name"), str, "function name") or ""
        tags = _expect(data.get("tags"), dict, "function tags")
        return cls(name=name, tags=tags)

    def to_dict(self) -> dict[str, Any]:
        """Serialisable form, leaving out empty fields."""
        result: dict[str, Any] = {}
        if self.name:
            result["name"] = self.name
        if self.tags:
            result["tags"] = dict(self.tags)
        return result


@dataclass
class Template:
    """A serverless template; only the fields that matter for tagging."""

    framework_version: str = ""
    functions: dict[str, Function] | None = None
    resources: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Template:
        data = _expect(data, dict, "template") or {}
        version = _expect(data.get("frameworkVersion"), str, "frameworkVersion") or ""
        raw_functions = _expect(data.get("functions"), dict, "functions")
        functions = (
            None
            if raw_functions is None
            else {name: Function.from_dict(body) for name, body in raw_functions.items()}
        )
        resources = _expect(data.get("resources"), dict, "resources")
        return cls(framework_version=version, functions=functions, resources=resources)