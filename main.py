from __future__ import annotations

from typing import Callable

from fastapi import Depends, FastAPI, HTTPException, Query

from mdr.api_models import ReconcileRequest
from mdr.ceph import CephClient
from mdr.errors import ReconcileError
from mdr.journal import Journal
from mdr.logging_config import setup_logging
from mdr.reconciler import ReconciliationDriver
from mdr.settings import settings
from mdr.store import KubeStore, ResourceStore

app = FastAPI(title="Manager Daemon Reconciler")

_journal: Journal | None = None
_store: ResourceStore | None = None


def get_journal() -> Journal:
    global _journal
    if _journal is None:
        _journal = Journal(settings.db_path)
        _journal.init_db()
    return _journal


def get_store() -> ResourceStore:
    # Built lazily so the app can start without cluster credentials.
    global _store
    if _store is None:
        _store = KubeStore()
    return _store


def get_ceph_factory() -> Callable[[str], CephClient]:
    return lambda namespace: CephClient(cluster=namespace)


@app.on_event("startup")
def startup() -> None:
    setup_logging("mdr", settings.log_level)
    get_journal()


@app.get("/health")
def health() -> dict:
    return {"status": "healthy"}


@app.post("/reconcile")
def reconcile(
    req: ReconcileRequest,
    journal: Journal = Depends(get_journal),
    store: ResourceStore = Depends(get_store),
    ceph_factory: Callable[[str], CephClient] = Depends(get_ceph_factory),
) -> dict:
    try:
        config = req.to_config()
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    driver = ReconciliationDriver(config, store, ceph_factory(config.namespace), journal=journal)
    try:
        report = driver.run()
    except ReconcileError as e:
        raise HTTPException(status_code=500, detail=e.to_dict())
    return report.to_dict()


@app.get("/passes")
def passes(limit: int = Query(20, ge=1, le=500), journal: Journal = Depends(get_journal)) -> list[dict]:
    return journal.latest_passes(limit)


@app.get("/events")
def events(
    limit: int = Query(100, ge=1, le=1000),
    pass_id: int | None = None,
    journal: Journal = Depends(get_journal),
) -> list[dict]:
    return journal.latest_events(limit, pass_id=pass_id)
