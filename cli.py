from __future__ import annotations

import argparse
import json
import sys

import requests
import uvicorn

from mdr.api_models import ReconcileRequest
from mdr.settings import settings


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _payload(args: argparse.Namespace) -> dict:
    payload = {
        "namespace": args.namespace,
        "replicas": args.replicas,
        "dashboard_enabled": args.dashboard,
        "ceph_image": args.ceph_image,
        "rook_version": args.rook_version,
        "host_network": args.host_network,
    }
    if args.identity_pool:
        payload["identity_pool"] = [x.strip() for x in args.identity_pool.split(",") if x.strip()]
    return payload


def _run_local(payload: dict) -> int:
    # Imported here so API-only commands work without cluster libraries configured.
    from mdr.ceph import CephClient
    from mdr.errors import ReconcileError
    from mdr.journal import Journal
    from mdr.logging_config import setup_logging
    from mdr.reconciler import ReconciliationDriver
    from mdr.store import KubeStore

    setup_logging("mdr", settings.log_level)
    try:
        config = ReconcileRequest(**payload).to_config()
    except ValueError as e:
        _print({"error": str(e)})
        return 1

    journal = Journal(settings.db_path)
    journal.init_db()
    driver = ReconciliationDriver(config, KubeStore(), CephClient(cluster=config.namespace), journal=journal)
    try:
        report = driver.run()
    except ReconcileError as e:
        _print({"detail": e.to_dict()})
        return 1
    _print(report.to_dict())
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Manager Daemon Reconciler CLI")
    p.add_argument("--api", default="http://localhost:8000", help="API base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_ev = sub.add_parser("events", help="Show events")
    s_ev.add_argument("--limit", type=int, default=20)
    s_ev.add_argument("--pass-id", type=int, default=None)

    s_pass = sub.add_parser("passes", help="Show recent passes")
    s_pass.add_argument("--limit", type=int, default=20)

    s_serve = sub.add_parser("serve", help="Run the HTTP API")
    s_serve.add_argument("--host", default="0.0.0.0")
    s_serve.add_argument("--port", type=int, default=8000)

    for name, help_text in (
        ("reconcile", "Run one pass through the API"),
        ("run", "Run one pass locally against the current kube context"),
    ):
        s = sub.add_parser(name, help=help_text)
        s.add_argument("--namespace", default=settings.namespace)
        s.add_argument("--replicas", type=int, default=1)
        s.add_argument("--ceph-image", default="ceph/ceph:v13")
        s.add_argument("--rook-version", default="v0.8.0")
        s.add_argument("--host-network", action="store_true")
        s.add_argument("--identity-pool", default=None, help="Comma separated, e.g. a,b")
        dash = s.add_mutually_exclusive_group()
        dash.add_argument("--dashboard", dest="dashboard", action="store_true", help="Enable the dashboard")
        dash.add_argument("--no-dashboard", dest="dashboard", action="store_false", help="Disable the dashboard (default)")
        s.set_defaults(dashboard=False)

    args = p.parse_args(argv)

    if args.cmd == "serve":
        uvicorn.run("main:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
        return 0

    base = args.api.rstrip("/")

    if args.cmd == "events":
        params = {"limit": args.limit}
        if args.pass_id is not None:
            params["pass_id"] = args.pass_id
        _print(requests.get(f"{base}/events", params=params, timeout=10).json())
        return 0

    if args.cmd == "passes":
        _print(requests.get(f"{base}/passes", params={"limit": args.limit}, timeout=10).json())
        return 0

    if args.cmd == "reconcile":
        r = requests.post(f"{base}/reconcile", json=_payload(args), timeout=300)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "run":
        return _run_local(_payload(args))

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
