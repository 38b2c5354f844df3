"""General helpers used across the package."""

from __future__ import annotations

import os
import re
import unicodedata
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

CFT_EXTENSION = ".template"
YAML_EXTENSION = ".yaml"
YML_EXTENSION = ".yml"
JSON_EXTENSION = ".json"
YAML_FILE_FORMAT = "yaml"
YML_FILE_FORMAT = "yml"
JSON_FILE_FORMAT = "json"


def slice_in_slices(elems: Iterable[Sequence[Any]], v_slice: Sequence[Any]) -> bool:
    """Whether any sequence in ``elems`` equals ``v_slice`` element by element."""
    target = list(v_slice)
    return any(list(elem) == target for elem in elems)


def all_nil(*args: Any) -> bool:
    """True if every value is None or an empty string."""
    return all(value is None or (isinstance(value, str) and value == "") for value in args)


def get_file_format(file_path: str) -> str:
    """Return the format of a file, judged by its extension.

    CloudFormation ``.template`` files are sniffed: JSON if they start with ``{``,
    YAML otherwise.
    """
    parts = file_path.split(".")
    if len(parts) < 2:
        return ""
    if file_path.endswith(CFT_EXTENSION):
        try:
            content = Path(file_path).resolve().read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            content = ""
        return JSON_FILE_FORMAT if content.startswith("{") else YAML_FILE_FORMAT
    return parts[-1]


def get_lines_from_bytes(data: bytes | str) -> list[str]:
    """Split file content into lines on newline characters."""
    text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
    return text.split("\n")


def is_char_whitespace(c: str | int) -> bool:
    """Whether a single character (or byte value) is white space."""
    char = chr(c) if isinstance(c, int) else c
    return char.isspace()


def split_string_by_comma(values: Iterable[str]) -> list[str]:
    """Flatten a list of strings, splitting each on commas."""
    return [part for value in values for part in value.split(",")]


def find_submatch_by_group(pattern: str | re.Pattern[str], text: str) -> dict[str, str] | None:
    """Map each group name of the first match to its text; None if nothing matches.

    Unnamed groups are stored under the empty name, the last one winning.
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    match = regex.search(text)
    if match is None:
        return None
    names = {index: name for name, index in regex.groupindex.items()}
    return {
        names.get(index, ""): match.group(index) or ""
        for index in range(1, regex.groups + 1)
    }


def get_env(key: str, fallback: str) -> str:
    """Return an environment variable, or ``fallback`` when it is unset."""
    return os.environ.get(key, fallback)


def max_map_count_key(counts: Mapping[str, int]) -> str:
    """Return the key with the highest count, or an empty string."""
    max_key = ""
    max_count = -1
    for key, count in counts.items():
        if count > max_count:
            max_key, max_count = key, count
    return max_key


def _is_gcp_label_char(char: str) -> bool:
    category = unicodedata.category(char)
    return category in ("Ll", "Lo") or category.startswith("N") or char in "_-"


def remove_gcp_invalid_chars(text: str) -> str:
    """Drop every character not allowed in a GCP label value."""
    return "".join(char for char in text if _is_gcp_label_char(char))