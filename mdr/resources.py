from __future__ import annotations

from typing import Any

from .config import (
    APP_NAME,
    DASHBOARD_PORT,
    KEYRING_SECRET_KEY,
    METRICS_PORT,
    MGR_PORT,
    ClusterConfig,
    OwnerRef,
    app_labels,
    dashboard_service_name,
    resource_name,
)


ROOK_SECRET_TYPE = "kubernetes.io/rook"
KEYRING_MOUNT_PATH = "/etc/ceph/keyring-store/"


def set_owner_ref(meta: dict[str, Any], owner_ref: OwnerRef | None) -> None:
    """Stamp an owner reference onto object metadata (no-op without an owner)."""
    if owner_ref is None:
        return
    meta["ownerReferences"] = [owner_ref.to_manifest()]


def _meta(name: str, config: ClusterConfig, labels: dict[str, str] | None = None) -> dict[str, Any]:
    meta: dict[str, Any] = {"name": name, "namespace": config.namespace}
    if labels:
        meta["labels"] = dict(labels)
    set_owner_ref(meta, config.owner_ref)
    return meta


def make_keyring_secret(identity: str, keyring: str, config: ClusterConfig) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": _meta(resource_name(identity), config),
        "type": ROOK_SECRET_TYPE,
        "stringData": {KEYRING_SECRET_KEY: keyring},
    }


def daemon_labels(identity: str, config: ClusterConfig) -> dict[str, str]:
    labels = app_labels(config.namespace)
    labels.update(
        {
            "mgr": identity,
            "ceph_daemon_id": identity,
            "rook-version": config.rook_version,
        }
    )
    return labels


def _mgr_container(identity: str, config: ClusterConfig) -> dict[str, Any]:
    container: dict[str, Any] = {
        "name": "mgr",
        "image": config.ceph_image,
        "command": ["ceph-mgr"],
        "args": [
            "--foreground",
            f"--id={identity}",
            f"--cluster={config.namespace}",
            f"--keyring={KEYRING_MOUNT_PATH}{KEYRING_SECRET_KEY}",
            f"--mgr-data=/var/lib/ceph/mgr/{config.namespace}-{identity}",
        ],
        "ports": [
            {"name": "mgr", "containerPort": MGR_PORT, "protocol": "TCP"},
            {"name": "http-metrics", "containerPort": METRICS_PORT, "protocol": "TCP"},
            {"name": "dashboard", "containerPort": DASHBOARD_PORT, "protocol": "TCP"},
        ],
        "env": [
            {"name": "POD_NAME", "valueFrom": {"fieldRef": {"fieldPath": "metadata.name"}}},
            {"name": "POD_NAMESPACE", "valueFrom": {"fieldRef": {"fieldPath": "metadata.namespace"}}},
            {"name": "NODE_NAME", "valueFrom": {"fieldRef": {"fieldPath": "spec.nodeName"}}},
        ],
        "volumeMounts": [
            {"name": "rook-data", "mountPath": "/var/lib/ceph"},
            {"name": "mgr-keyring", "mountPath": KEYRING_MOUNT_PATH, "readOnly": True},
        ],
    }
    if config.resources:
        container["resources"] = dict(config.resources)
    return container


def make_deployment(identity: str, config: ClusterConfig) -> dict[str, Any]:
    """Assemble the Deployment for one mgr daemon.

    Pure data assembly: no I/O, same output for the same inputs.
    """
    name = resource_name(identity)
    labels = daemon_labels(identity, config)

    pod_spec: dict[str, Any] = {
        "serviceAccountName": APP_NAME,
        "containers": [_mgr_container(identity, config)],
        "restartPolicy": "Always",
        "volumes": [
            {"name": "rook-data", "hostPath": {"path": f"{config.data_dir}/{name}"}},
            {"name": "mgr-keyring", "secret": {"secretName": name}},
        ],
    }
    if config.host_network:
        pod_spec["hostNetwork"] = True
        pod_spec["dnsPolicy"] = "ClusterFirstWithHostNet"
    placement = config.placement
    if placement.node_selector:
        pod_spec["nodeSelector"] = dict(placement.node_selector)
    if placement.tolerations:
        pod_spec["tolerations"] = list(placement.tolerations)
    if placement.affinity:
        pod_spec["affinity"] = dict(placement.affinity)

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _meta(name, config, labels),
        "spec": {
            "replicas": 1,
            "selector": {"matchLabels": {**app_labels(config.namespace), "mgr": identity}},
            "strategy": {"type": "Recreate"},
            "template": {
                "metadata": {"name": name, "labels": labels},
                "spec": pod_spec,
            },
        },
    }


def _service(name: str, port_name: str, port: int, config: ClusterConfig) -> dict[str, Any]:
    labels = app_labels(config.namespace)
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": _meta(name, config, labels),
        "spec": {
            "type": "ClusterIP",
            "selector": labels,
            "ports": [{"name": port_name, "port": port, "protocol": "TCP"}],
        },
    }


def make_metrics_service(config: ClusterConfig) -> dict[str, Any]:
    return _service(APP_NAME, "http-metrics", METRICS_PORT, config)


def make_dashboard_service(config: ClusterConfig) -> dict[str, Any]:
    return _service(dashboard_service_name(), "http-dashboard", DASHBOARD_PORT, config)
