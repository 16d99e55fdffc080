import pytest
import yaml

from hyperconsole.ast.decode import TaskfileDecodeError
from hyperconsole.ast.include import Include, Includes, decode_include, decode_includes


def test_scalar_include_is_simple():
    inc = decode_include(yaml.compose("./docs/Taskfile.yml"))
    assert inc.taskfile == "./docs/Taskfile.yml"
    assert inc.advanced_import is False
    assert inc.dir == ""


def test_mapping_include_is_advanced():
    inc = decode_include(yaml.compose(
        "taskfile: ./lib\ndir: ./lib\noptional: true\ninternal: true\nflatten: true\n"
        "aliases: [l]\nexcludes: [skip]\nvars:\n  A: b"
    ))
    assert inc.taskfile == "./lib"
    assert inc.dir == "./lib"
    assert inc.optional is True
    assert inc.internal is True
    assert inc.flatten is True
    assert inc.aliases == ["l"]
    assert inc.excludes == ["skip"]
    assert inc.vars.get("A").value == "b"
    assert inc.advanced_import is True


def test_sequence_include_is_rejected():
    with pytest.raises(TaskfileDecodeError) as info:
        decode_include(yaml.compose("[a]"))
    assert "into include" in str(info.value)


def test_includes_keep_order_and_namespace():
    incs = decode_includes(yaml.compose("docs: ./docs\nlib:\n  taskfile: ./lib"))
    assert list(incs.keys()) == ["docs", "lib"]
    assert [i.namespace for i in incs.values()] == ["docs", "lib"]
    assert incs.get("lib").advanced_import is True
    assert len(incs) == 2


def test_includes_reject_non_mapping():
    with pytest.raises(TaskfileDecodeError) as info:
        decode_includes(yaml.compose("[a, b]"))
    assert "into includes" in str(info.value)


def test_includes_set_get():
    incs = Includes()
    assert incs.set("a", Include(taskfile="x")) is True
    assert incs.set("a", Include(taskfile="y")) is False
    assert incs.get("a").taskfile == "y"
    assert incs.get("missing") is None
    assert list(incs.items()) == [("a", Include(taskfile="y"))]


def test_deep_copy_is_independent():
    original = decode_include(yaml.compose("taskfile: t\nexcludes: [e]\nvars:\n  A: b"))
    duplicate = original.deep_copy()
    duplicate.excludes.append("f")
    duplicate.vars.get("A").value = "changed"
    assert original.excludes == ["e"]
    assert original.vars.get("A").value == "b"
    assert duplicate.taskfile == original.taskfile
    assert duplicate.advanced_import == original.advanced_import