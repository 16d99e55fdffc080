from datetime import timedelta

import pytest
import yaml

from hyperconsole.ast.decode import TaskfileDecodeError
from hyperconsole.ast.include import Include
from hyperconsole.ast.tasks import task_name_with_namespace
from hyperconsole.ast.taskfile import (
    V3,
    Taskfile,
    TaskfileMergeError,
    decode_taskfile,
    parse_taskfile,
    parse_version,
)

DOC = """
version: '3'
output: prefixed
includes:
  docs: ./docs
vars:
  A: 1
env:
  B: two
interval: 5s
tasks:
  default:
    cmds:
      - echo hi
"""


def test_parse_version_short_forms():
    assert parse_version("3") == parse_version("3.0.0")
    assert parse_version("3") == V3
    assert str(parse_version("3")) == "3.0.0"
    assert parse_version("3.1") != V3


def test_parse_version_ignores_metadata_in_equality():
    assert parse_version("3.0.0+build") == V3


def test_parse_version_rejects_garbage():
    with pytest.raises(ValueError):
        parse_version("three")


def test_parse_taskfile_fields():
    tf = parse_taskfile(DOC)
    assert tf.version == V3
    assert tf.output.name == "prefixed"
    assert list(tf.includes.keys()) == ["docs"]
    assert tf.includes.get("docs").taskfile == "./docs"
    assert tf.includes.get("docs").namespace == "docs"
    assert tf.vars.get("A").value == 1
    assert tf.env.get("B").value == "two"
    assert tf.interval == timedelta(seconds=5)
    assert tf.tasks.get("default").cmds[0].cmd == "echo hi"


def test_parse_compound_interval():
    tf = parse_taskfile("version: '3'\ninterval: 1m30s")
    assert tf.interval == timedelta(seconds=90)


def test_parse_invalid_interval():
    with pytest.raises(TaskfileDecodeError):
        parse_taskfile("version: '3'\ninterval: soon")


def test_parse_empty_document():
    tf = parse_taskfile("")
    assert tf.version is None
    assert len(tf.tasks) == 0


def test_decode_rejects_non_mapping():
    with pytest.raises(TaskfileDecodeError) as info:
        decode_taskfile(yaml.compose("- a"))
    assert "into taskfile" in str(info.value)


def test_merge_combines_tasks_and_vars():
    parent = parse_taskfile("version: '3'\ntasks:\n  a: echo a")
    child = parse_taskfile("version: '3'\noutput: group\nvars:\n  X: 1\ntasks:\n  b: echo b")
    parent.merge(child, Include(namespace="sub"))
    assert list(parent.tasks.keys()) == ["a", task_name_with_namespace("b", "sub")]
    assert parent.vars.get("X").value == 1
    assert parent.output.name == "group"


def test_merge_rejects_version_mismatch():
    parent = parse_taskfile("version: '3'")
    child = parse_taskfile("version: '2'")
    with pytest.raises(TaskfileMergeError) as info:
        parent.merge(child, Include(namespace="sub"))
    assert "versions should match" in str(info.value)


def test_merge_rejects_dotenv():
    parent = parse_taskfile("version: '3'")
    child = parse_taskfile("version: '3'\ndotenv: ['.env']")
    with pytest.raises(TaskfileMergeError) as info:
        parent.merge(child, Include(namespace="sub"))
    assert "dotenv" in str(info.value)


def test_merge_keeps_output_when_unset():
    parent = Taskfile(version=V3)
    parent.output.name = "interleaved"
    parent.merge(Taskfile(version=V3), Include(namespace="sub"))
    assert parent.output.name == "interleaved"