import pytest

from iactagger.structure import Block, Function, Lines, Template
from iactagger.tags import YOR_TRACE_TAG_KEY, Tag


def _existing():
    return [Tag(key="git_modifiers", value="bana"), Tag(key="git_repo", value="hatulik")]


@pytest.fixture
def traced_block():
    return Block(
        file_path="/mock.tf",
        existing_tags=_existing() + [Tag(key="yor_trace", value="123456789")],
        tags_attribute_name="tags",
    )


@pytest.fixture
def new_block():
    return Block(file_path="/mock.tf", existing_tags=_existing(), tags_attribute_name="tags")


def _incoming():
    return [Tag(key="yor_trace", value="987654321"), Tag(key="git_modifiers", value="bana/shati")]


def test_updated_resource_skips_trace_tag(traced_block):
    traced_block.add_new_tags(_incoming())
    assert len(traced_block.new_tags) == 1
    assert traced_block.trace_id == "123456789"


def test_updated_resource_merge_keeps_existing_trace(traced_block):
    traced_block.add_new_tags(_incoming())
    merged = traced_block.merge_tags()
    traces = [tag.value for tag in merged if tag.key == YOR_TRACE_TAG_KEY]
    assert traces == ["123456789"]


def test_updated_resource_diff(traced_block):
    traced_block.add_new_tags(_incoming())
    diff = traced_block.calculate_tags_diff()
    assert len(diff.added) == 0
    assert len(diff.updated) == 1
    assert diff.updated[0].key == "git_modifiers"
    assert diff.updated[0].prev_value == "bana"
    assert diff.updated[0].new_value == "bana/shati"


def test_new_resource_adds_trace_tag(new_block):
    new_block.add_new_tags(_incoming())
    assert len(new_block.new_tags) == 2
    assert new_block.trace_id == "987654321"


def test_new_resource_merge(new_block):
    new_block.add_new_tags(_incoming())
    merged = new_block.merge_tags()
    traces = [tag.value for tag in merged if tag.key == YOR_TRACE_TAG_KEY]
    assert traces == ["987654321"]


def test_new_resource_diff(new_block):
    new_block.add_new_tags(_incoming())
    diff = new_block.calculate_tags_diff()
    assert len(diff.added) == 1
    assert len(diff.updated) == 1
    assert diff.added[0].key == "yor_trace"
    assert diff.added[0].value == "987654321"
    assert diff.updated[0].key == "git_modifiers"
    assert diff.updated[0].prev_value == "bana"
    assert diff.updated[0].new_value == "bana/shati"


def _git_tags():
    return [
        Tag(key="yor_trace", value="yor_trace_val"),
        Tag(key="git_repo", value="repo_val"),
        Tag(key="git_org", value="org_val"),
        Tag(key="git_commit", value="commit_val"),
        Tag(key="git_file", value="file_val"),
        Tag(key="git_last_modified_at", value="modified_at_val"),
        Tag(key="git_last_modified_by", value="modified_by_val"),
        Tag(key="git_modifiers", value="modifiers_val"),
    ]


@pytest.mark.parametrize(
    "existing, expected_count",
    [
        (
            [
                Tag(key="Name", value="NameVal"),
                Tag(key="stack", value="acount"),
                Tag(key="team", value="unknown"),
            ],
            10,
        ),
        ([Tag(key="Name", value="NameVal")], 9),
    ],
)
def test_db_proxy_tag_limit(existing, expected_count):
    block = Block(
        existing_tags=existing,
        is_taggable=True,
        tags_attribute_name="tags",
        name="db_proxy",
        resource_type="aws_db_proxy",
    )
    block.add_new_tags(_git_tags())
    merged = block.merge_tags()
    assert len(merged) == expected_count
    assert any(tag.key == "yor_trace" for tag in merged)


def test_add_new_tags_none_is_ignored(new_block):
    new_block.add_new_tags(None)
    assert new_block.new_tags == []


def test_add_new_tags_sorted_descending(new_block):
    new_block.add_new_tags([Tag(key="a", value="1"), Tag(key="c", value="3"), Tag(key="b", value="2")])
    assert [tag.key for tag in new_block.new_tags] == ["c", "b", "a"]


def test_merge_keeps_existing_order():
    block = Block(
        existing_tags=[
            Tag(key="sls_tag_1", value="1"),
            Tag(key="sls_tag_2", value="2"),
            Tag(key="yor_trace", value="should not change"),
            Tag(key="git_last_modified_at", value="1"),
        ],
        new_tags=[Tag(key="yor_trace", value="2"), Tag(key="git_last_modified_at", value="2")],
    )
    merged = block.merge_tags()
    assert [(tag.key, tag.value) for tag in merged] == [
        ("sls_tag_1", "1"),
        ("sls_tag_2", "2"),
        ("yor_trace", "should not change"),
        ("git_last_modified_at", "2"),
    ]


def test_trace_id_empty_without_trace():
    assert Block(existing_tags=_existing()).trace_id == ""


def test_block_identity_properties():
    block = Block(name="myFunction", resource_type="function", lines=Lines(start=13, end=18))
    assert block.resource_id == "myFunction"
    assert block.resource_name == "myFunction"
    assert block.is_gcp_block is False
    assert block.lines == Lines(start=13, end=18)


def test_template_from_dict():
    template = Template.from_dict(
        {
            "frameworkVersion": "2",
            "functions": {
                "myFunction": {"handler": "h", "tags": {"TAG1_FUNC": "Func1 Tag Value"}},
                "myFunction2": None,
            },
        }
    )
    assert template.framework_version == "2"
    assert template.functions["myFunction"].tags == {"TAG1_FUNC": "Func1 Tag Value"}
    assert template.functions["myFunction2"] == Function()
    assert template.resources is None


def test_template_without_functions():
    assert Template.from_dict({"service": "x"}).functions is None


@pytest.mark.parametrize(
    "data",
    [
        {"frameworkVersion": 2},
        {"functions": ["a"]},
        {"functions": {"f": {"tags": ["x"]}}},
        {"functions": {"f": "text"}},
    ],
)
def test_template_from_dict_rejects_bad_types(data):
    with pytest.raises(ValueError):
        Template.from_dict(data)


def test_function_round_trip():
    function = Function(name="myFunction", tags={"new_tag": "new_value"})
    assert Function.from_dict(function.to_dict()) == function
    assert Function().to_dict() == {}