import os
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from hyperconsole.taskfile.locate import (
    TaskfileFetchFailedError,
    TaskfileNetworkTimeoutError,
    TaskfileNotFoundError,
    exists,
    exists_walk,
    remote_exists,
)


class _Handler(BaseHTTPRequestHandler):
    def _respond(self, with_body):
        if self.path == "/slow":
            time.sleep(1.0)
        status, content_type, body = self.server.routes.get(
            self.path, (404, "text/plain", b"missing")
        )
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if with_body:
            self.wfile.write(body)

    def do_HEAD(self):
        self._respond(False)

    def do_GET(self):
        self._respond(True)

    def log_message(self, *args):
        pass


@pytest.fixture
def server(monkeypatch):
    monkeypatch.setenv("no_proxy", "*")
    monkeypatch.setenv("NO_PROXY", "*")
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    httpd.daemon_threads = True
    httpd.routes = {}
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd
    httpd.shutdown()
    httpd.server_close()


def _url(server, path):
    return f"http://127.0.0.1:{server.server_address[1]}{path}"


def test_exists_returns_absolute_file_path(tmp_path):
    target = tmp_path / "custom.yml"
    target.write_text("version: '3'\n")
    assert exists(str(target)) == str(target.resolve())


def test_exists_finds_default_name_in_directory(tmp_path):
    (tmp_path / "Taskfile.yml").write_text("version: '3'\n")
    assert exists(str(tmp_path)) == os.path.join(str(tmp_path), "Taskfile.yml")


def test_exists_prefers_earlier_default_names(tmp_path):
    (tmp_path / "Taskfile.dist.yml").write_text("")
    (tmp_path / "Taskfile.yaml").write_text("")
    assert os.path.basename(exists(str(tmp_path))) == "Taskfile.yaml"


def test_exists_directory_without_taskfile(tmp_path):
    with pytest.raises(TaskfileNotFoundError) as info:
        exists(str(tmp_path))
    assert info.value.uri == str(tmp_path)
    assert str(tmp_path) in str(info.value)


def test_exists_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        exists(str(tmp_path / "nope"))


def test_exists_walk_finds_parent(tmp_path):
    (tmp_path / "Taskfile.yml").write_text("")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert exists_walk(str(nested)) == os.path.join(str(tmp_path), "Taskfile.yml")


def test_exists_walk_prefers_nearest(tmp_path):
    (tmp_path / "Taskfile.yml").write_text("")
    nested = tmp_path / "a"
    nested.mkdir()
    (nested / "Taskfile.yml").write_text("")
    assert exists_walk(str(nested)) == os.path.join(str(nested), "Taskfile.yml")


def test_exists_walk_not_found_reports_original(tmp_path):
    nested = tmp_path / "deep" / "er"
    nested.mkdir(parents=True)
    with pytest.raises(TaskfileNotFoundError) as info:
        exists_walk(str(nested))
    assert info.value.uri == str(nested)


def test_remote_exists_direct_yaml(server):
    server.routes["/tf.yml"] = (200, "text/yaml; charset=utf-8", b"version: '3'\n")
    url = _url(server, "/tf.yml")
    assert remote_exists(url, 5.0) == url


def test_remote_exists_tries_default_names(server):
    server.routes["/dir"] = (200, "text/html", b"<html></html>")
    server.routes["/dir/Taskfile.yml"] = (200, "text/yaml", b"")
    assert remote_exists(_url(server, "/dir"), 5.0) == _url(server, "/dir/Taskfile.yml")


def test_remote_exists_default_name_order(server):
    server.routes["/d/Taskfile.dist.yml"] = (200, "text/yaml", b"")
    server.routes["/d/taskfile.yml"] = (200, "text/yaml", b"")
    assert remote_exists(_url(server, "/d/"), 5.0) == _url(server, "/d/taskfile.yml")


def test_remote_exists_empty_path(server):
    server.routes["/Taskfile.yml"] = (200, "text/yaml", b"")
    assert remote_exists(_url(server, ""), 5.0) == _url(server, "/Taskfile.yml")


def test_remote_exists_not_found(server):
    with pytest.raises(TaskfileNotFoundError) as info:
        remote_exists(_url(server, "/none"), 5.0)
    assert info.value.uri == _url(server, "/none")


def test_remote_exists_timeout(server):
    with pytest.raises(TaskfileNetworkTimeoutError) as info:
        remote_exists(_url(server, "/slow"), 0.2)
    assert info.value.uri == _url(server, "/slow")
    assert info.value.checked_cache is False


def test_remote_exists_connection_refused(monkeypatch):
    monkeypatch.setenv("no_proxy", "*")
    monkeypatch.setenv("NO_PROXY", "*")
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    url = f"http://127.0.0.1:{port}/Taskfile.yml"
    with pytest.raises(TaskfileFetchFailedError) as info:
        remote_exists(url, 2.0)
    assert info.value.uri == url