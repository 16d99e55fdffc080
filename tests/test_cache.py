import os

import pytest

from hyperconsole.taskfile.cache import Cache, checksum
from hyperconsole.taskfile.nodes import FileNode, HTTPNode, StdinNode


@pytest.fixture
def cache(tmp_path):
    return Cache(str(tmp_path))


def test_cache_creates_remote_dir(tmp_path):
    cache = Cache(str(tmp_path))
    assert cache.dir == os.path.join(str(tmp_path), "remote")
    assert os.path.isdir(cache.dir)


def test_checksum_of_empty_input():
    assert checksum(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_key_is_checksum_of_location(cache, tmp_path):
    node = StdinNode(str(tmp_path))
    assert cache.key(node) == checksum(b"__stdin__")


def test_write_and_read_round_trip(cache, tmp_path):
    node = StdinNode(str(tmp_path))
    cache.write(node, b"version: '3'\n")
    assert cache.read(node) == b"version: '3'\n"


def test_read_missing_raises(cache, tmp_path):
    with pytest.raises(FileNotFoundError):
        cache.read(StdinNode(str(tmp_path)))


def test_checksum_round_trip(cache, tmp_path):
    node = StdinNode(str(tmp_path))
    assert cache.read_checksum(node) == ""
    cache.write_checksum(node, checksum(b"data"))
    assert cache.read_checksum(node) == checksum(b"data")


def test_file_path_for_stdin(cache, tmp_path):
    node = StdinNode(str(tmp_path))
    path = cache.file_path(node, "yaml")
    assert os.path.dirname(path) == cache.dir
    assert os.path.basename(path) == f"__stdin__.{checksum(b'__stdin__')}.yaml"


def test_file_path_for_http_includes_last_dir(cache):
    entry = "https://example.com/a/Taskfile.yml"
    node = HTTPNode(entry, "", False, 10.0)
    name = os.path.basename(cache.file_path(node, "checksum"))
    assert name == f"a-Taskfile.yml.{checksum(entry.encode())}.checksum"


def test_distinct_locations_use_distinct_files(cache, tmp_path):
    first = tmp_path / "one"
    second = tmp_path / "two"
    for folder in (first, second):
        folder.mkdir()
        (folder / "Taskfile.yml").write_text("")
    a = FileNode("", str(first))
    b = FileNode("", str(second))
    assert cache.file_path(a, "yaml") != cache.file_path(b, "yaml")
    cache.write(a, b"A")
    cache.write(b, b"B")
    assert (cache.read(a), cache.read(b)) == (b"A", b"B")


def test_clear_removes_everything(cache, tmp_path):
    node = StdinNode(str(tmp_path))
    cache.write(node, b"x")
    cache.write_checksum(node, checksum(b"x"))
    assert cache.read(node) == b"x"
    cache.clear()
    with pytest.raises(FileNotFoundError):
        cache.read(node)
    assert cache.read_checksum(node) == ""
    assert not os.path.exists(cache.dir)
    cache.clear()
    assert not os.path.exists(cache.dir)