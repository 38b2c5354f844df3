import pytest

from iactagger.tags import (
    YOR_TRACE_TAG_KEY,
    Tag,
    TagDiff,
    is_tag_key_match,
)


def test_set_tag_prefix_prepends_prefix():
    tag = Tag(key="git_repo", value="repo")
    tag.set_tag_prefix("prefix_")
    assert tag.key == "prefix_git_repo"
    assert tag.value == "repo"


def test_empty_prefix_keeps_key():
    tag = Tag(key="git_repo")
    tag.set_tag_prefix("")
    assert tag.key == "git_repo"


def test_init_keeps_plain_tag_key():
    tag = Tag(key="custom", value="v")
    tag.init()
    assert (tag.key, tag.value) == ("custom", "v")


def test_calculate_value_returns_independent_copy():
    tag = Tag(key="k", value="v")
    result = tag.calculate_value(object())
    assert result == Tag(key="k", value="v")
    assert result is not tag
    result.value = "changed"
    assert tag.value == "v"


def test_default_description():
    assert Tag().description == "Abstract tag class"


def test_tag_diff_fields():
    diff = TagDiff(key="git_modifiers", prev_value="bana", new_value="bana/shati")
    assert diff.key == "git_modifiers"
    assert diff.prev_value == "bana"
    assert diff.new_value == "bana/shati"


@pytest.mark.parametrize(
    "key, expected",
    [
        ("yor_trace", True),
        ('"yor_trace"', True),
        ("prefix_yor_trace", False),
        ("prefix-yor_trace", True),
        ("yor_trace_id", False),
        ("git_repo", False),
    ],
)
def test_is_tag_key_match(key, expected):
    assert is_tag_key_match(Tag(key=key), YOR_TRACE_TAG_KEY) is expected


def test_is_tag_key_match_escapes_metacharacters():
    assert is_tag_key_match(Tag(key="a.b"), "a.b") is True
    assert is_tag_key_match(Tag(key="axb"), "a.b") is False