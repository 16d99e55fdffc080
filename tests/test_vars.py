import copy
from types import SimpleNamespace

import pytest
import yaml

from hyperconsole.ast.decode import TaskfileDecodeError, Var
from hyperconsole.ast.vars import Vars, decode_vars


def test_insertion_order_is_kept():
    v = Vars()
    for key in ("c", "a", "b"):
        v.set(key, Var(value=key))
    assert list(v.keys()) == ["c", "a", "b"]
    assert [x.value for x in v.values()] == ["c", "a", "b"]


def test_set_reports_new_keys():
    v = Vars()
    assert v.set("A", Var(value=1)) is True
    assert v.set("A", Var(value=2)) is False
    assert len(v) == 1
    assert v.get("A").value == 2


def test_get_missing_is_none():
    assert Vars().get("nope") is None


def test_to_cache_map_skips_dynamic_and_prefers_live():
    v = Vars([
        ("STATIC", Var(value="s")),
        ("DYN", Var(sh="echo hi")),
        ("LIVE", Var(value="old", live="new")),
        ("EMPTY_SH", Var(value="kept", sh="")),
    ])
    assert v.to_cache_map() == {"STATIC": "s", "LIVE": "new", "EMPTY_SH": "kept"}


def test_merge_overrides_and_appends():
    base = Vars([("A", Var(value=1)), ("B", Var(value=2))])
    other = Vars([("B", Var(value=20)), ("C", Var(value=30))])
    base.merge(other, None)
    assert list(base.keys()) == ["A", "B", "C"]
    assert base.get("B").value == 20


def test_merge_advanced_include_sets_dir():
    base = Vars()
    base.merge(Vars([("A", Var(value=1))]), SimpleNamespace(advanced_import=True, dir="sub"))
    assert base.get("A").dir == "sub"


def test_merge_plain_include_keeps_dir():
    base = Vars()
    base.merge(Vars([("A", Var(value=1))]), SimpleNamespace(advanced_import=False, dir="sub"))
    assert base.get("A").dir == ""


def test_merge_none_is_noop():
    base = Vars([("A", Var(value=1))])
    base.merge(None)
    assert list(base.items()) == [("A", Var(value=1))]


def test_deep_copy_is_independent():
    original = Vars([("L", Var(value=["x"]))])
    duplicate = original.deep_copy()
    duplicate.get("L").value.append("y")
    duplicate.set("N", Var(value=1))
    assert original.get("L").value == ["x"]
    assert "N" not in original
    assert copy.deepcopy(duplicate.get("L")).value == ["x", "y"]


def test_decode_vars_mapping():
    v = decode_vars(yaml.compose("A: 1\nB: {sh: echo}\nC: x"))
    assert list(v.keys()) == ["A", "B", "C"]
    assert v.get("A").value == 1
    assert v.get("B").sh == "echo"


def test_decode_vars_rejects_scalar():
    with pytest.raises(TaskfileDecodeError) as info:
        decode_vars(yaml.compose("just text"))
    assert "into vars" in str(info.value)


def test_decode_vars_propagates_inner_error():
    with pytest.raises(TaskfileDecodeError) as info:
        decode_vars(yaml.compose("A:\n  foo: bar"))
    assert "maps cannot be assigned to variables" in str(info.value)