import json
import threading
import urllib.error
import urllib.request

import pytest

from hostlogs.config.settings import Settings
from hostlogs.core import aggregator
from hostlogs.exporter import main_http


@pytest.fixture
def server(tmp_path, monkeypatch, static_source, make_entry):
    """Servidor HTTP real em porta efémera com origens em memória."""
    entries = [
        make_entry("2024-01-01T00:00:00", level="error", message="boom", source="x"),
        make_entry("2024-01-01T00:00:01", level="info", message="ok", source="y"),
    ]
    monkeypatch.setattr(aggregator, "default_sources", lambda settings: [static_source(entries)])
    settings = Settings(app_root=str(tmp_path), export_dir="exports", parallel_sources=False)
    srv = main_http.make_server("127.0.0.1", 0, settings)
    t = threading.Thread(target=srv.serve_forever, daemon=True)
    t.start()
    yield f"http://127.0.0.1:{srv.server_address[1]}", settings
    srv.shutdown()
    srv.server_close()


def _get(url):
    try:
        with urllib.request.urlopen(url, timeout=5) as resp:
            return resp.status, resp.read()
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read()


def _post(url, body: bytes):
    req = urllib.request.Request(url, data=body, method="POST", headers={"Content-Type": "application/json"})
    return _get(req)


def test_get_logs_paginated(server):
    base, _ = server
    status, raw = _get(f"{base}/api/logs?level=all&limit=1&offset=0")
    assert status == 200
    body = json.loads(raw)
    assert body["success"] is True
    assert body["total"] == 2
    assert [e["message"] for e in body["entries"]] == ["ok"]


def test_get_logs_invalid_params_fall_back(server):
    base, _ = server
    status, raw = _get(f"{base}/api/logs?level=loud&limit=abc&offset=-4")
    body = json.loads(raw)
    assert status == 200
    assert (body["level"], body["limit"], body["offset"]) == ("all", 100, 0)


def test_post_unknown_action_is_400(server):
    base, _ = server
    status, raw = _post(f"{base}/api/logs", json.dumps({"action": "reboot"}).encode())
    assert status == 400
    assert json.loads(raw) == {"success": False, "error": "Unknown action"}


def test_post_bad_bodies(server):
    base, _ = server
    assert _post(f"{base}/api/logs", b"{not json")[0] == 400
    status, raw = _post(f"{base}/api/logs", json.dumps({"level": "info"}).encode())
    assert status == 400
    assert json.loads(raw)["error"] == "Missing action"


def test_export_then_download(server):
    base, settings = server
    status, raw = _post(f"{base}/api/logs", json.dumps({"action": "export_logs", "format": "json"}).encode())
    assert status == 200
    result = json.loads(raw)
    assert result["success"] is True
    assert result["filePath"].startswith(str(settings.export_path))

    status, data = _get(base + result["downloadUrl"])
    assert status == 200
    assert [e["message"] for e in json.loads(data)] == ["ok", "boom"]


def test_download_rejects_traversal_and_missing(server):
    base, _ = server
    assert _get(f"{base}/api/logs/download?filename=../../etc/passwd")[0] == 404
    assert _get(f"{base}/api/logs/download?filename=nope.json")[0] == 404
    assert _get(f"{base}/api/logs/download")[0] == 404


def test_health_and_unknown_route(server):
    base, _ = server
    status, raw = _get(f"{base}/health")
    body = json.loads(raw)
    assert status == 200
    assert body["status"] == "ok"
    assert "process_memory_rss_bytes" in body["process"]
    assert _get(f"{base}/nope")[0] == 404


def test_get_process_metrics_prefix():
    m = main_http.get_process_metrics(prefix="p_")
    assert "p_cpu_percent" in m and "p_num_threads" in m


def test_post_export_with_non_string_format(server):
    base, _ = server
    status, raw = _post(f"{base}/api/logs", json.dumps({"action": "export_logs", "format": 1}).encode())
    body = json.loads(raw)
    assert status == 500
    assert body["success"] is False
    assert body["error"].startswith("Unsupported export format")
