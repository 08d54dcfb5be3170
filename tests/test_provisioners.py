import pytest

from mdr.errors import AlreadyExistsError, CephCommandError, ReconcileError, Step
from mdr.provisioners import (
    Action,
    CredentialProvisioner,
    EndpointProvisioner,
    FeatureToggle,
    WorkloadProvisioner,
)
from mdr.resources import make_metrics_service
from mdr.store import ResourceKind


def test_keyring_created_when_missing(config, store, ceph):
    out = CredentialProvisioner(config, store, ceph).ensure_keyring("a")

    assert out.action is Action.CREATED
    assert out.name == "rook-ceph-mgr-a"
    assert ceph.calls == [("auth", "mgr.a", ("mon", "allow *"))]
    secret = store.records[("Secret", "rook-ceph", "rook-ceph-mgr-a")]
    assert secret["stringData"] == {"keyring": ceph.keys["mgr.a"]}
    assert secret["type"] == "kubernetes.io/rook"


def test_existing_keyring_is_not_reissued(config, store, ceph):
    prov = CredentialProvisioner(config, store, ceph)
    prov.ensure_keyring("a")
    stored = store.records[("Secret", "rook-ceph", "rook-ceph-mgr-a")]["stringData"]["keyring"]

    out = prov.ensure_keyring("a")

    assert out.action is Action.EXISTS
    assert len([c for c in ceph.calls if c[0] == "auth"]) == 1
    assert store.records[("Secret", "rook-ceph", "rook-ceph-mgr-a")]["stringData"]["keyring"] == stored


def test_keyring_create_race_is_success(config, store, ceph):
    store.fail[("create", "Secret", "rook-ceph-mgr-a")] = AlreadyExistsError("raced")
    out = CredentialProvisioner(config, store, ceph).ensure_keyring("a")
    assert out.action is Action.EXISTS


def test_keyring_lookup_error_is_fatal(config, store, ceph):
    store.fail[("get", "Secret", "rook-ceph-mgr-a")] = RuntimeError("api down")

    with pytest.raises(ReconcileError) as ei:
        CredentialProvisioner(config, store, ceph).ensure_keyring("a")

    err = ei.value
    assert err.step is Step.KEYRING
    assert err.kind == "Secret"
    assert err.name == "rook-ceph-mgr-a"
    assert isinstance(err.__cause__, RuntimeError)
    assert ceph.calls == []


def test_key_issue_failure_is_fatal(config, store, ceph):
    ceph.fail["auth"] = CephCommandError(["ceph", "auth"], 1, "EACCES")

    with pytest.raises(ReconcileError) as ei:
        CredentialProvisioner(config, store, ceph).ensure_keyring("a")

    assert isinstance(ei.value.cause, CephCommandError)
    assert store.names("Secret") == []


def test_keyring_save_failure_is_fatal(config, store, ceph):
    store.fail[("create", "Secret", "rook-ceph-mgr-a")] = RuntimeError("quota")
    with pytest.raises(ReconcileError, match="keyring rook-ceph-mgr-a failed: quota"):
        CredentialProvisioner(config, store, ceph).ensure_keyring("a")


def test_workload_create_and_already_exists(config, store):
    prov = WorkloadProvisioner(config, store)
    assert prov.ensure_workload("a").action is Action.CREATED
    assert prov.ensure_workload("a").action is Action.EXISTS
    assert store.names("Deployment") == ["rook-ceph-mgr-a"]


def test_workload_error_is_fatal(config, store):
    store.fail[("create", "Deployment", "rook-ceph-mgr-b")] = RuntimeError("forbidden")
    with pytest.raises(ReconcileError) as ei:
        WorkloadProvisioner(config, store).ensure_workload("b")
    assert ei.value.step is Step.WORKLOAD
    assert ei.value.name == "rook-ceph-mgr-b"


def test_endpoint_ensure_and_remove(config, store):
    prov = EndpointProvisioner(config, store)
    svc = make_metrics_service(config)

    assert prov.ensure_service(svc, Step.METRICS_ENDPOINT).action is Action.CREATED
    assert prov.ensure_service(svc, Step.METRICS_ENDPOINT).action is Action.EXISTS
    assert prov.remove_service("rook-ceph-mgr", Step.METRICS_ENDPOINT).action is Action.DELETED
    assert prov.remove_service("rook-ceph-mgr", Step.METRICS_ENDPOINT).action is Action.ABSENT


def test_endpoint_delete_error_is_fatal(config, store):
    store.fail[("delete", "Service", "rook-ceph-mgr-dashboard")] = RuntimeError("boom")
    with pytest.raises(ReconcileError) as ei:
        EndpointProvisioner(config, store).remove_service("rook-ceph-mgr-dashboard", Step.DASHBOARD_ENDPOINT)
    assert ei.value.kind == ResourceKind.SERVICE.value
    assert ei.value.step is Step.DASHBOARD_ENDPOINT


def test_feature_toggle_is_unconditional(ceph):
    toggle = FeatureToggle(ceph)
    toggle.set_module("prometheus", True, Step.METRICS_MODULE)
    toggle.set_module("prometheus", True, Step.METRICS_MODULE)
    out = toggle.set_module("dashboard", False, Step.DASHBOARD_MODULE)

    assert ceph.calls == [("enable", "prometheus"), ("enable", "prometheus"), ("disable", "dashboard")]
    assert out.action is Action.DISABLED
    assert out.kind == "MgrModule"


def test_feature_toggle_failure_is_fatal(ceph):
    ceph.fail[("enable", "prometheus")] = CephCommandError(["ceph"], 22, "EINVAL")
    with pytest.raises(ReconcileError) as ei:
        FeatureToggle(ceph).set_module("prometheus", True, Step.METRICS_MODULE)
    assert ei.value.to_dict()["step"] == "metrics-module"
    assert ei.value.to_dict()["error"].startswith("CephCommandError:")
