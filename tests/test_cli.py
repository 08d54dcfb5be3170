import json

import cli


class _Resp:
    def __init__(self, payload, ok=True):
        self._payload = payload
        self.ok = ok

    def json(self):
        return self._payload


def test_reconcile_posts_payload(monkeypatch, capsys):
    sent = {}

    def fake_post(url, json=None, timeout=None):
        sent["url"] = url
        sent["json"] = json
        return _Resp({"identities": ["a", "b"]})

    monkeypatch.setattr(cli.requests, "post", fake_post)

    rc = cli.main(["--api", "http://mdr:8000/", "reconcile", "--namespace", "storage", "--replicas", "2", "--dashboard", "--identity-pool", "a, b"])

    assert rc == 0
    assert sent["url"] == "http://mdr:8000/reconcile"
    assert sent["json"]["namespace"] == "storage"
    assert sent["json"]["replicas"] == 2
    assert sent["json"]["dashboard_enabled"] is True
    assert sent["json"]["identity_pool"] == ["a", "b"]
    assert json.loads(capsys.readouterr().out) == {"identities": ["a", "b"]}


def test_reconcile_failure_exit_code(monkeypatch):
    monkeypatch.setattr(cli.requests, "post", lambda url, json=None, timeout=None: _Resp({"detail": {}}, ok=False))
    assert cli.main(["reconcile"]) == 1


def test_dashboard_defaults_to_disabled(monkeypatch):
    sent = {}

    def fake_post(url, json=None, timeout=None):
        sent.update(json)
        return _Resp({})

    monkeypatch.setattr(cli.requests, "post", fake_post)
    cli.main(["reconcile", "--no-dashboard"])
    assert sent["dashboard_enabled"] is False
    assert "identity_pool" not in sent


def test_passes_queries_api(monkeypatch, capsys):
    seen = {}

    def fake_get(url, params=None, timeout=None):
        seen["url"] = url
        seen["params"] = params
        return _Resp([{"id": 1, "outcome": "ok"}])

    monkeypatch.setattr(cli.requests, "get", fake_get)
    assert cli.main(["passes", "--limit", "5"]) == 0
    assert seen == {"url": "http://localhost:8000/passes", "params": {"limit": 5}}


def test_serve_runs_uvicorn(monkeypatch):
    seen = {}

    def fake_run(app, host=None, port=None, log_level=None):
        seen.update(app=app, host=host, port=port)

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    assert cli.main(["serve", "--host", "127.0.0.1", "--port", "9000"]) == 0
    assert seen == {"app": "main:app", "host": "127.0.0.1", "port": 9000}
