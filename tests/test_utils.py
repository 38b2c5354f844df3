import re

import pytest

from iactagger.utils import (
    all_nil,
    find_submatch_by_group,
    get_env,
    get_file_format,
    get_lines_from_bytes,
    is_char_whitespace,
    max_map_count_key,
    remove_gcp_invalid_chars,
    slice_in_slices,
    split_string_by_comma,
)


@pytest.mark.parametrize(
    "file_path, expected",
    [
        ("dir/file.yaml", "yaml"),
        ("dir/file.yml", "yml"),
        ("dir/file.json", "json"),
        ("dir/file", ""),
        ("", ""),
    ],
)
def test_get_file_format(file_path, expected):
    assert get_file_format(file_path) == expected


def test_get_file_format_template_yaml(tmp_path):
    path = tmp_path / "ebs.template"
    path.write_text("Resources:\n  NewVolume:\n    Type: AWS::EC2::Volume\n")
    assert get_file_format(str(path)) == "yaml"


def test_get_file_format_template_json(tmp_path):
    path = tmp_path / "ebs2.template"
    path.write_text('{"Resources": {}}')
    assert get_file_format(str(path)) == "json"


def test_get_file_format_missing_template_is_yaml(tmp_path):
    assert get_file_format(str(tmp_path / "missing.template")) == "yaml"


@pytest.mark.parametrize(
    "values, expected",
    [
        (["Hello"], 1),
        (["Hello", "World"], 2),
        (["tests,.git,node_modules"], 3),
        (["tests,.git,node_modules", ".github"], 4),
    ],
)
def test_split_string_by_comma_lengths(values, expected):
    assert len(split_string_by_comma(values)) == expected


def test_split_string_by_comma_content():
    assert split_string_by_comma(["tests,.git", ".github"]) == ["tests", ".git", ".github"]


def test_get_env_existing(monkeypatch):
    monkeypatch.setenv("test", "20")
    assert get_env("test", "1") == "20"


def test_get_env_fallback(monkeypatch):
    monkeypatch.delenv("test", raising=False)
    monkeypatch.setenv("test2", "20")
    assert get_env("test", "1") == "1"


def test_all_nil_with_list():
    assert all_nil(["bla"]) is False


def test_all_nil_with_none():
    assert all_nil(None) is True


def test_all_nil_with_strings():
    assert all_nil("", None) is True
    assert all_nil("", "x") is False


@pytest.mark.parametrize(
    "v_slice, expected",
    [([5, 6], True), ([5, 7], False)],
)
def test_slice_in_slices(v_slice, expected):
    elems = [[1, 2, 3, 4], [5, 6], [7]]
    assert slice_in_slices(elems, v_slice) is expected


def test_get_lines_from_bytes():
    assert get_lines_from_bytes(b"a\nb\n") == ["a", "b", ""]
    assert get_lines_from_bytes("x") == ["x"]


@pytest.mark.parametrize("char, expected", [(" ", True), ("\t", True), ("a", False), (ord("\n"), True), (ord("z"), False)])
def test_is_char_whitespace(char, expected):
    assert is_char_whitespace(char) is expected


def test_find_submatch_by_group():
    pattern = re.compile(r"(?P<num>\d+)-(?P<word>\w+)")
    assert find_submatch_by_group(pattern, "id 12-ab") == {"num": "12", "word": "ab"}


def test_find_submatch_by_group_no_match():
    assert find_submatch_by_group(r"(?P<num>\d+)", "none here") is None


def test_max_map_count_key():
    assert max_map_count_key({"a": 1, "b": 3, "c": 2}) == "b"
    assert max_map_count_key({}) == ""


def test_remove_gcp_invalid_chars():
    assert remove_gcp_invalid_chars("bana_shati-1") == "bana_shati-1"
    assert remove_gcp_invalid_chars("Bana.shati") == "anashati"