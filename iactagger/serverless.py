"""Serverless framework templates: parsing functions into blocks and writing their tags."""

from __future__ import annotations

import dataclasses
import logging
import os
import tempfile
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from iactagger.structure import Block, Function, Lines, Template
from iactagger.tags import Tag
from iactagger.utils import (
    YAML_EXTENSION,
    YAML_FILE_FORMAT,
    YML_EXTENSION,
    YML_FILE_FORMAT,
    get_file_format,
    get_lines_from_bytes,
)
from iactagger.yaml_writer import (
    extract_indentation_of_line,
    map_resources_line_yaml,
    write_yaml_file,
)

logger = logging.getLogger(__name__)

FUNCTION_TAGS_ATTRIBUTE_NAME = "tags"
FUNCTIONS_SECTION_NAME = "functions"
FUNCTION_TYPE = "function"
SERVERLESS_FRAMEWORK = "Serverless"

_YAML_FORMATS = (YAML_FILE_FORMAT, YML_FILE_FORMAT)
_INITIAL_MIN_LINE = 127

_parse_lock = threading.Lock()


class _IntrinsicLoader(yaml.SafeLoader):
    """Safe YAML loader that understands short-form intrinsic functions such as ``!Ref``."""


def _construct_intrinsic(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        value: Any = loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_mapping(node, deep=True)
    if tag_suffix == "Ref":
        return {"Ref": value}
    if tag_suffix == "GetAtt" and isinstance(value, str):
        return {"Fn::GetAtt": value.split(".", 1)}
    return {f"Fn::{tag_suffix}": value}


_IntrinsicLoader.add_multi_constructor("!", _construct_intrinsic)


def _format_value(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Mapping):
        items = " ".join(f"{key}:{_format_value(value[key])}" for key in sorted(value, key=str))
        return f"map[{items}]"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(item) for item in value) + "]"
    return str(value)


def open_template(filename: str) -> Template:
    """Read and parse a serverless YAML template.

    Raises OSError when the file cannot be read and ValueError when it is not
    a valid template.
    """
    data = Path(filename).read_bytes()
    try:
        content = yaml.load(data, Loader=_IntrinsicLoader)  # noqa: S506 - safe loader subclass
    except yaml.YAMLError as error:
        raise ValueError(f"failed to parse sls file {filename}: {error}") from error
    return Template.from_dict(content)


def _serverless_parse(file: str) -> Template:
    with _parse_lock:
        return open_template(file)


class ServerlessBlock(Block):
    """A serverless function whose tags live under its ``tags`` mapping."""

    @property
    def framework(self) -> str:
        return SERVERLESS_FRAMEWORK

    @property
    def separator(self) -> str:
        return "/n"

    def update_tags(self) -> None:
        """Write the merged tags into the raw function definition."""
        if not self.is_taggable:
            return
        raw = self.raw_block
        if not isinstance(raw, Function):
            raise TypeError(f"raw block must be a Function, got {type(raw).__name__}")
        function_tags = dict(raw.tags) if raw.tags is not None else {}
        for tag in self.merge_tags():
            function_tags[tag.key] = tag.value
        self.raw_block = dataclasses.replace(raw, tags=function_tags)


class ServerlessParser:
    """Finds the functions of ``serverless.yml``/``config.yml`` files and tags them."""

    def __init__(self, root_dir: str = "") -> None:
        self.root_dir = root_dir
        self.file_to_resources_lines: dict[str, Lines] = {}
        self._skipped_by_comment: list[str] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return SERVERLESS_FRAMEWORK

    @property
    def skipped_dirs(self) -> list[str]:
        return []

    @property
    def supported_file_extensions(self) -> list[str]:
        return [YAML_EXTENSION, YML_EXTENSION]

    @property
    def skip_resources_by_comment(self) -> list[str]:
        """Functions marked with a ``#yor:skip`` or ``#yor:skipAll`` comment."""
        return self._skipped_by_comment

    def init(self, root_dir: str, options: Mapping[str, str] | None) -> None:
        """Set the root directory; options are not used by this parser."""
        self.root_dir = root_dir

    def close(self) -> None:
        """Drop the cached line ranges of the files parsed so far."""
        with self._lock:
            self.file_to_resources_lines.clear()

    def valid_file(self, file: str) -> bool:
        """Whether ``file`` parses as a serverless template."""
        try:
            _serverless_parse(file)
        except (OSError, ValueError) as error:
            logger.warning("Failed to parse serverless yaml at %s due to: %s", file, error)
            return False
        return True

    def parse_file(self, file_path: str) -> list[ServerlessBlock] | None:
        """Return a block for each function, or None if the file is not a serverless file.

        Raises ValueError when the template is malformed, has no functions, or
        is not YAML.
        """
        file_format = get_file_format(file_path)
        file_name = os.path.basename(file_path)
        if file_name not in (f"serverless.{file_format}", f"config.{file_format}"):
            return None
        try:
            template = _serverless_parse(file_path)
        except ValueError as error:
            logger.warning("There was an error processing the serverless template: %s", error)
            raise
        if template.functions is None:
            raise ValueError(f"failed to parse file {file_path}")

        resource_names = list(template.functions)
        if file_format not in _YAML_FORMATS:
            raise ValueError(f"unsupported file type {file_format}")
        names_to_lines, skipped = map_resources_line_yaml(
            file_path, resource_names, FUNCTIONS_SECTION_NAME
        )
        with self._lock:
            self._skipped_by_comment.extend(skipped)

        blocks: list[ServerlessBlock] = []
        min_line = _INITIAL_MIN_LINE
        max_line = 0
        for func_name in resource_names:
            function = template.functions[func_name]
            lines = names_to_lines[func_name]
            min_line = min(min_line, lines.start)
            max_line = max(max_line, lines.end)
            existing_tags: list[Tag] = []
            tag_lines = Lines(start=-1, end=-1)
            if function.tags is not None:
                tag_lines = self._tags_lines(file_path, lines)
                existing_tags = [
                    Tag(key=key, value=_format_value(value)) for key, value in function.tags.items()
                ]
            blocks.append(
                ServerlessBlock(
                    file_path=file_path,
                    existing_tags=existing_tags,
                    raw_block=function,
                    is_taggable=True,
                    tags_attribute_name=FUNCTION_TAGS_ATTRIBUTE_NAME,
                    lines=Lines(start=lines.start, end=lines.end),
                    tag_lines=tag_lines,
                    name=func_name,
                    resource_type=FUNCTION_TYPE,
                )
            )
            with self._lock:
                self.file_to_resources_lines[file_path] = Lines(start=min_line, end=max_line)
        return blocks

    def write_file(
        self, read_file_path: str, blocks: Sequence[ServerlessBlock], write_file_path: str
    ) -> None:
        """Write the blocks' tags into ``write_file_path``, checking the result first."""
        for block in blocks:
            block.update_tags()
        descriptor, temp_path = tempfile.mkstemp(
            prefix="temp.", suffix=".yaml", dir=os.path.dirname(read_file_path) or None
        )
        os.close(descriptor)
        try:
            write_yaml_file(
                read_file_path,
                blocks,
                temp_path,
                FUNCTION_TAGS_ATTRIBUTE_NAME,
                FUNCTIONS_SECTION_NAME,
            )
            try:
                self.parse_file(temp_path)
            except (OSError, ValueError) as error:
                raise ValueError(
                    f"editing file {read_file_path} resulted in a malformed template, "
                    "please open an issue with the relevant details"
                ) from error
        finally:
            os.remove(temp_path)
        write_yaml_file(
            read_file_path,
            blocks,
            write_file_path,
            FUNCTION_TAGS_ATTRIBUTE_NAME,
            FUNCTIONS_SECTION_NAME,
        )

    def _tags_lines(self, file_path: str, resource_range: Lines) -> Lines:
        tags_lines = Lines(start=-1, end=-1)
        counter = 0
        if get_file_format(file_path) in _YAML_FORMATS:
            file_lines = get_lines_from_bytes(Path(file_path).read_bytes())
            if file_lines and file_lines[-1] == "":
                file_lines.pop()
            tags_indent = 0
            for raw_line in file_lines:
                line = raw_line.removesuffix("\r")
                line_indent = len(extract_indentation_of_line(line))
                if counter < resource_range.start + 1:
                    counter += 1
                    continue
                if counter > resource_range.end or (tags_indent > 0 and line_indent <= tags_indent):
                    tags_lines.end = counter - 1
                    break
                if line.strip() == FUNCTION_TAGS_ATTRIBUTE_NAME + ":":
                    tags_indent = line_indent
                    tags_lines.start = counter
                counter += 1
        if tags_lines.start >= 0 and tags_lines.end == -1:
            tags_lines.end = counter - 1
        return tags_lines