"""Write tags back into YAML infrastructure files, editing only the lines that change."""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

import yaml

from iactagger.structure import BlockTagsDiff, Lines
from iactagger.tags import Tag, TagDiff
from iactagger.utils import get_lines_from_bytes

logger = logging.getLogger(__name__)

SINGLE_INDENT = "  "
CLOUDFORMATION_FRAMEWORK = "Cloudformation"

_VALUE_PATTERN = re.compile(r"\bValue\s*:\s*.*")


class _YamlBlock(Protocol):
    """What the writer needs from a block: its lines, tags and framework."""

    file_path: str
    raw_block: Any
    is_taggable: bool
    lines: Lines
    tag_lines: Lines
    new_tags: list[Tag]

    @property
    def framework(self) -> str: ...

    def calculate_tags_diff(self) -> BlockTagsDiff: ...


def write_yaml_file(
    read_file_path: str,
    blocks: Sequence[_YamlBlock],
    write_file_path: str,
    tags_attribute_name: str,
    resources_start_token: str,
) -> None:
    """Rewrite ``read_file_path`` into ``write_file_path`` with the blocks' tags.

    Blocks must all come from the same framework; CloudFormation tags are
    written as ``Key``/``Value`` pairs, serverless tags as a mapping.
    """
    if not blocks:
        raise ValueError("no blocks to write")
    try:
        origin_source = Path(read_file_path).read_bytes()
    except OSError as error:
        raise OSError(f"failed to read file {read_file_path} because {error}") from error

    is_cfn = blocks[0].framework == CLOUDFORMATION_FRAMEWORK
    origin_lines = get_lines_from_bytes(origin_source)
    old_resources_range = _compute_resources_line_range(origin_lines, blocks, is_cfn)
    if old_resources_range.start < 0:
        raise ValueError(f"could not find the {resources_start_token} section in {read_file_path}")

    lines_per_tag = 2 if is_cfn else 1
    resources_lines: list[str] = []
    for block in sorted(blocks, key=lambda b: b.lines.start):
        new_resource_lines = _yaml_lines(block.raw_block)
        new_tags_range, _ = find_tags_lines_yaml(new_resource_lines, tags_attribute_name)
        new_tag_body = new_resource_lines[new_tags_range.start + 1 : new_tags_range.end + 1]
        block_range = block.lines
        old_resource_lines = origin_lines[block_range.start : block_range.end + 1]

        if not block.is_taggable:
            resources_lines.extend(old_resource_lines)
            continue

        old_tags_range = block.tag_lines
        if old_tags_range.start == -1 or old_tags_range.end == -1:
            resources_lines.extend(
                _insert_tags_attribute(old_resource_lines, new_tag_body, tags_attribute_name, is_cfn)
            )
            continue

        tags_offset = old_tags_range.start - block_range.start
        tags_end_offset = old_tags_range.end - block_range.start + 1
        old_tags_indent = extract_indentation_of_line(old_resource_lines[tags_offset])
        if is_cfn:
            old_tags_value_indent = 0
            old_tags_indent += SINGLE_INDENT
        else:
            old_tags_value_indent = len(
                extract_indentation_of_line(old_resource_lines[tags_offset + 1])
            ) - len(old_tags_indent)

        resources_lines.extend(old_resource_lines[:tags_offset])
        tag_lines = old_resource_lines[tags_offset:tags_end_offset]
        diff = block.calculate_tags_diff()
        if is_cfn:
            update_existing_cfn_tags(tag_lines, diff.updated)
        else:
            update_existing_sls_tags(tag_lines, diff.updated)

        all_new_tag_lines = indent_lines(new_tag_body, old_tags_indent, old_tags_value_indent)
        added_keys = {tag.key for tag in diff.added}
        net_new_lines: list[str] = []
        for chunk in (
            all_new_tag_lines[i : i + lines_per_tag]
            for i in range(0, len(all_new_tag_lines), lines_per_tag)
        ):
            key = _key_from_line(chunk[0], is_cfn)
            if key and key in added_keys:
                net_new_lines.extend(chunk)

        resources_lines.extend(tag_lines)
        resources_lines.extend(net_new_lines)
        resources_lines.extend(old_resource_lines[tags_end_offset:])

    all_lines = origin_lines[: old_resources_range.start]
    if not is_cfn:
        all_lines.append(resources_start_token + ":")
    all_lines.extend(resources_lines)
    all_lines.extend(origin_lines[old_resources_range.end + 1 :])
    _write_private(write_file_path, "\n".join(all_lines))


def _insert_tags_attribute(
    old_resource_lines: list[str], new_tag_body: list[str], tags_attribute_name: str, is_cfn: bool
) -> list[str]:
    attribute_indent = extract_indentation_of_line(old_resource_lines[1])
    if is_cfn:
        attribute_indent += SINGLE_INDENT
    last_index = -1
    for index, line in enumerate(old_resource_lines):
        if len(extract_indentation_of_line(line)) >= len(attribute_indent):
            last_index = index
    tag_indent = attribute_indent + SINGLE_INDENT if is_cfn else attribute_indent
    return [
        *old_resource_lines[: last_index + 1],
        f"{attribute_indent}{tags_attribute_name}:",
        *indent_lines(new_tag_body, tag_indent, 0),
        *old_resource_lines[last_index + 1 :],
    ]


def _write_private(path: str, text: str) -> None:
    descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(descriptor, "w", encoding="utf-8", newline="") as handle:
        handle.write(text)


def _key_from_line(line: str, is_cfn: bool) -> str:
    compact = line.replace(" ", "")
    if is_cfn:
        if " Key:" in line:
            return compact.replace("-Key:", "")
        return ""
    return compact.replace("-", "").split(":")[0]


def update_existing_cfn_tags(tag_lines: list[str], diff: Sequence[TagDiff]) -> list[str]:
    """Set new values on ``Key``/``Value`` tag lines in place; return the list."""
    current_value_line = -1
    value_to_set = ""
    for index, tag_line in enumerate(tag_lines):
        if " Key:" in tag_line:
            for tag in diff:
                if re.search(rf"\b{re.escape(tag.key)}\b", tag_line):
                    if current_value_line > -1:
                        tag_lines[current_value_line] = replace_tag_value(
                            tag_lines[current_value_line], tag.new_value
                        )
                        current_value_line = -1
                    else:
                        value_to_set = tag.new_value
        if " Value:" in tag_line:
            if value_to_set:
                tag_lines[index] = replace_tag_value(tag_line, value_to_set)
                value_to_set = ""
            else:
                current_value_line = index
    return tag_lines


def replace_tag_value(line: str, value: str) -> str:
    """Replace whatever follows ``Value:`` on the line with ``value``."""
    replacement = f"Value: {value}"
    return _VALUE_PATTERN.sub(lambda _match: replacement, line)


def update_existing_sls_tags(tag_lines: list[str], diff: Sequence[TagDiff]) -> list[str]:
    """Set new values on ``key: value`` tag lines in place; return the list."""
    for index, line in enumerate(tag_lines):
        key = line.replace(" ", "").split(":")[0]
        for tag in diff:
            if key == tag.key:
                tag_lines[index] = f"{line.split(':')[0]}: {tag.new_value}"
    return tag_lines


def _compute_resources_line_range(
    origin_lines: list[str], blocks: Sequence[_YamlBlock], is_cfn: bool
) -> Lines:
    start = min(block.lines.start for block in blocks)
    end = max(-1, *(block.lines.end for block in blocks))
    if not is_cfn:
        functions_line = next(
            (index for index, line in enumerate(origin_lines) if "functions:" in line), -1
        )
        start = min(start, functions_line)
    return Lines(start=start, end=end)


def _plain(raw_block: Any) -> Any:
    if hasattr(raw_block, "to_dict"):
        raw_block = raw_block.to_dict()
    elif dataclasses.is_dataclass(raw_block) and not isinstance(raw_block, type):
        raw_block = dataclasses.asdict(raw_block)
    return json.loads(json.dumps(raw_block, default=str))


def _yaml_lines(raw_block: Any) -> list[str]:
    try:
        text = yaml.safe_dump(
            _plain(raw_block), default_flow_style=False, sort_keys=True, allow_unicode=True
        )
    except (yaml.YAMLError, TypeError, ValueError) as error:
        logger.warning("failed to marshal resource to yaml: %s", error)
        text = ""
    return get_lines_from_bytes(text)


def find_tags_lines_yaml(text_lines: Sequence[str], tags_attribute_name: str) -> tuple[Lines, bool]:
    """Locate the tags attribute in YAML lines; return its range and whether it exists."""
    tags_lines = Lines(start=-1, end=-1)
    tags_exist = False
    tags_indent = ""
    last_index = len(text_lines) - 1
    for index, line in enumerate(text_lines):
        line_indent = extract_indentation_of_line(line)
        if line.strip().startswith(tags_attribute_name + ":"):
            tags_lines.start = index
            tags_indent = line_indent
            tags_exist = True
        elif line_indent <= tags_indent and (tags_lines.start >= 0 or index == last_index):
            tags_lines.end = _find_last_non_empty_line(text_lines, index - 1)
            return tags_lines, tags_exist
        elif index == last_index and not tags_exist:
            return tags_lines, tags_exist
    if not tags_exist:
        tags_lines.start = tags_lines.end
    elif tags_lines.end == -1:
        tags_lines.end = _find_last_non_empty_line(text_lines, last_index)
    return tags_lines, tags_exist


def map_resources_line_yaml(
    file_path: str, resource_names: Sequence[str], resources_start_token: str
) -> tuple[dict[str, Lines], list[str]]:
    """Find each named resource's line range under the resources section.

    Also returns the resources marked by ``#yor:skip`` (the next resource) or
    ``#yor:skipAll`` (all of them, placed just above the section).
    """
    resource_to_lines = {name: Lines(start=-1, end=-1) for name in resource_names}
    skipped_by_comment: list[str] = []
    try:
        content = Path(file_path).read_bytes()
    except OSError:
        logger.warning("failed to read file %s", file_path)
        return {}, skipped_by_comment

    name_patterns = [(name, re.compile(rf"^ {{1,5}}{re.escape(name)}:")) for name in resource_names]
    file_lines = get_lines_from_bytes(content)
    read_resources = False
    latest_resource = ""
    resources_indent = 0
    for index, line in enumerate(file_lines):
        previous = file_lines[index - 1].strip().upper() if index > 0 else ""
        if line.strip().startswith(resources_start_token + ":"):
            if previous == "#YOR:SKIPALL":
                skipped_by_comment.extend(resource_names)
            read_resources = True
            resources_indent = _count_leading_spaces(line)
            continue
        if not read_resources:
            continue
        if previous == "#YOR:SKIP":
            skipped_by_comment.append(line.strip().strip(":"))
        if _count_leading_spaces(line) <= resources_indent and line.strip() and "#" not in line:
            if latest_resource:
                resource_to_lines[latest_resource].end = _find_last_non_empty_line(file_lines, index - 1)
            break
        for name, pattern in name_patterns:
            if pattern.match(line):
                if latest_resource:
                    resource_to_lines[latest_resource].end = _find_last_non_empty_line(
                        file_lines, index - 1
                    )
                latest_resource = name
                resource_to_lines[name].start = index
                break
        if (
            not line.startswith(" ")
            and line.strip()
            and latest_resource
            and not line.startswith("#")
        ):
            resource_to_lines[latest_resource].end = _find_last_non_empty_line(file_lines, index - 1)
            break
    if latest_resource and resource_to_lines[latest_resource].end == -1:
        resource_to_lines[latest_resource].end = _find_last_non_empty_line(
            file_lines, len(file_lines) - 1
        )
    return resource_to_lines, skipped_by_comment


def _count_leading_spaces(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _find_last_non_empty_line(file_lines: Sequence[str], max_index: int) -> int:
    for index in range(min(max_index, len(file_lines) - 1), -1, -1):
        if file_lines[index].strip():
            return index
    return 0


def indent_lines(text_lines: Sequence[str], indent: str, value_indent: int) -> list[str]:
    """Re-indent lines under ``indent``; non ``- Key`` lines get an extra value indent."""
    blank_spaces = SINGLE_INDENT if value_indent == 0 else " " * value_indent
    result = []
    for line in text_lines:
        bare = line.lstrip("\t \n")
        if "- Key" in line:
            result.append(indent + bare)
        else:
            result.append(indent + blank_spaces + bare)
    return result


def extract_indentation_of_line(text_line: str) -> str:
    """Spaces as wide as the line's leading spaces and dashes."""
    return " " * (len(text_line) - len(text_line.lstrip(" -")))