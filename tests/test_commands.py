import pytest
import yaml

from hyperconsole.ast.commands import decode_cmd, decode_dep
from hyperconsole.ast.decode import TaskfileDecodeError
from hyperconsole.ast.platforms import Platform


def test_scalar_command():
    c = decode_cmd(yaml.compose("echo hello"))
    assert c.cmd == "echo hello"
    assert c.task == ""
    assert c.defer is False


def test_task_call():
    c = decode_cmd(yaml.compose("task: build\nvars:\n  A: 1\nsilent: true"))
    assert c.task == "build"
    assert c.vars.get("A").value == 1
    assert c.silent is True
    assert c.cmd == ""


def test_command_with_options():
    c = decode_cmd(yaml.compose(
        "cmd: make\nset: [errexit]\nshopt: [globstar]\nignore_error: true\n"
        "platforms: [linux/amd64]\nfor: [a, b]"
    ))
    assert c.cmd == "make"
    assert c.set == ["errexit"]
    assert c.shopt == ["globstar"]
    assert c.ignore_error is True
    assert c.platforms == [Platform(os="linux", arch="amd64")]
    assert c.for_.list == ["a", "b"]


def test_deferred_command_uses_outer_silent():
    c = decode_cmd(yaml.compose("defer: rm -f tmp\nsilent: true"))
    assert c.defer is True
    assert c.cmd == "rm -f tmp"
    assert c.silent is True


def test_deferred_task_uses_inner_fields():
    c = decode_cmd(yaml.compose("defer:\n  task: cleanup\n  silent: true\n  vars:\n    X: y"))
    assert c.defer is True
    assert c.task == "cleanup"
    assert c.silent is True
    assert c.vars.get("X").value == "y"


def test_mapping_without_cmd_or_task_is_rejected():
    with pytest.raises(TaskfileDecodeError) as info:
        decode_cmd(yaml.compose("silent: true"))
    assert "invalid keys in command" in str(info.value)


def test_sequence_command_is_rejected():
    with pytest.raises(TaskfileDecodeError) as info:
        decode_cmd(yaml.compose("[a, b]"))
    assert "into command" in str(info.value)


def test_bad_platform_is_rejected():
    with pytest.raises(TaskfileDecodeError):
        decode_cmd(yaml.compose("cmd: x\nplatforms: [nosuchos]"))


def test_cmd_deep_copy_is_independent():
    original = decode_cmd(yaml.compose("cmd: make\nset: [errexit]\nplatforms: [linux]"))
    duplicate = original.deep_copy()
    duplicate.set.append("nounset")
    duplicate.platforms[0].arch = "arm64"
    assert original.set == ["errexit"]
    assert original.platforms[0].arch == ""
    assert duplicate.cmd == original.cmd


def test_dep_scalar_and_mapping():
    assert decode_dep(yaml.compose("lint")).task == "lint"
    d = decode_dep(yaml.compose("task: test\nsilent: true\nvars:\n  V: w"))
    assert d.task == "test"
    assert d.silent is True
    assert d.vars.get("V").value == "w"


def test_dep_sequence_is_rejected():
    with pytest.raises(TaskfileDecodeError) as info:
        decode_dep(yaml.compose("[x]"))
    assert "into dependency" in str(info.value)


def test_dep_deep_copy_is_independent():
    original = decode_dep(yaml.compose("task: test\nvars:\n  V: w"))
    duplicate = original.deep_copy()
    duplicate.task = "other"
    duplicate.vars.get("V").value = "changed"
    assert original.task == "test"
    assert original.vars.get("V").value == "w"