# iactagger

A library that adds traceability tags to the functions declared in Serverless
Framework templates. Only the tag lines that are new or changed are edited.
Everything else in the file, including formatting, comments and ordering, is
left as it was written.

## Installation

```
pip install iactagger
```

To install the test dependencies as well:

```
pip install "iactagger[test]"
```

## How it works

`iactagger.serverless.ServerlessParser` reads files named `serverless.yml`,
`serverless.yaml`, `config.yml` or `config.yaml`. Files with any other name
make `parse_file` return `None`.

For each entry under `functions:`, the parser builds one
`ServerlessBlock`. The block records:

- the function's line range;
- the line range of its `tags:` section, if it has one;
- the tags it already carries.

Short-form intrinsic functions such as `!Ref` are accepted when the template
is loaded. A template without a `functions` section raises `ValueError`, and
so does a template that is not valid YAML.

Tag groups then add new tags to each block. Finally,
`ServerlessParser.write_file` does three things:

1. It merges the tags into each function.
2. It writes the result to a temporary file next to the source and checks
   that this file still parses. If it does not, `write_file` raises
   `ValueError`.
3. It writes the final file.

## Tag groups

Every group derives from `iactagger.tag_group.TagGroup`. A group is configured
with `init_tag_group(path, skipped_tags, specified_tags, tag_prefix)`:

- **Skipped tags** are patterns matched against each tag key. A `*` in a
  pattern matches any run of characters, so `git*` skips every key that
  contains `git`.
- **Specified tags**, when the list is not empty, restrict the group to those
  keys. Keys are compared without the prefix.
- **The prefix** is put in front of every tag key.

The available groups are:

- `iactagger.code2cloud.Code2CloudTagGroup` adds two tags:
  - `yor_trace` (`YorTraceTag`), a random version-4 UUID;
  - `yor_name` (`YorNameTag`), the block's resource name.
- `iactagger.simple.SimpleTagGroup` adds fixed key/value tags. They are read
  from the `YOR_SIMPLE_TAGS` environment variable as a JSON object of string
  values, for example `{"team": "platform", "env": "dev"}`. The value may also
  be wrapped in single quotes, or be a JSON string that holds such an object.
  Tags can also be added directly with `set_tags`. This group ignores the tag
  prefix.

## Example

```python
from iactagger.serverless import ServerlessParser
from iactagger.code2cloud import Code2CloudTagGroup
from iactagger.simple import SimpleTagGroup
from iactagger.tags import Tag

parser = ServerlessParser()
parser.init("project", {})

code2cloud = Code2CloudTagGroup()
code2cloud.init_tag_group("project", [], [], "")

simple = SimpleTagGroup()
simple.init_tag_group("project", [], [], "")
simple.set_tags([Tag(key="team", value="platform")])

path = "project/serverless.yml"
blocks = parser.parse_file(path)
for block in blocks:
    code2cloud.create_tags_for_block(block)
    simple.create_tags_for_block(block)

parser.write_file(path, blocks, path)
```

## Merging rules

These rules are implemented by `iactagger.structure.Block`:

- If a block already has a `yor_trace` tag, that value is kept and no new
  trace is added. `Block.trace_id` returns the trace that results.
- New tags replace existing tags that have the same key.
- `calculate_tags_diff` separates added tags from updated ones. Updated values
  are rewritten on their existing lines. Added tags are appended to the
  existing `tags:` section, or a new `tags:` section is created for them.
- Resources of type `aws_db_proxy` or `AWS::RDS::DBProxy` are limited to 10
  tags in total.

## Skipping resources

To skip a single resource, put a `#yor:skip` comment on the line above it. To
skip every resource in a section, put `#yor:skipAll` on the line above the
section.

The names found this way are collected in the parser's
`skip_resources_by_comment` property. The parser only reports these names; it
is up to the caller to leave those blocks alone.

## Lower-level helpers

`iactagger.yaml_writer` provides the line-oriented functions that the parser
is built on:

- `map_resources_line_yaml`
- `find_tags_lines_yaml`
- `update_existing_cfn_tags`
- `update_existing_sls_tags`
- `replace_tag_value`
- `indent_lines`
- `extract_indentation_of_line`
- `write_yaml_file`

`write_yaml_file` can write both kinds of tag layout:

- CloudFormation-style `Key`/`Value` lists, for blocks whose `framework` is
  `"Cloudformation"`;
- serverless-style mappings.

`iactagger.utils` holds small helpers, such as `get_file_format`,
`split_string_by_comma` and `remove_gcp_invalid_chars`.

## What it does not do

- There is no command-line tool.
- It does not walk directories.
- It does not parse Terraform or CloudFormation templates.
- It computes no git-based tags, such as commit, author or modification time.

Callers parse files one at a time with `ServerlessParser` and apply the tag
groups themselves.