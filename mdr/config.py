from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any


APP_NAME = "rook-ceph-mgr"
KEYRING_SECRET_KEY = "keyring"
PROMETHEUS_MODULE = "prometheus"
DASHBOARD_MODULE = "dashboard"
MGR_PORT = 6800
METRICS_PORT = 9283
DASHBOARD_PORT = 7000
DEFAULT_IDENTITY_POOL = ("a", "b")

NAMESPACE_RE = re.compile(r"^[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?$")
IDENTITY_RE = re.compile(r"^[a-z0-9]{1,16}$")


def validate_namespace(namespace: str) -> None:
    if not NAMESPACE_RE.match(namespace):
        raise ValueError(
            "Invalid namespace. Use lowercase letters/numbers and hyphen, starting and ending with an alphanumeric (max 63 chars)."
        )


def validate_identity_pool(pool: tuple[str, ...]) -> None:
    if not pool:
        raise ValueError("identity_pool must name at least one identity.")
    if len(set(pool)) != len(pool):
        raise ValueError("identity_pool entries must be unique.")
    for name in pool:
        if not IDENTITY_RE.match(name):
            raise ValueError(f"Invalid identity {name!r}. Use 1-16 lowercase letters/numbers.")


@dataclass(frozen=True)
class Placement:
    node_selector: dict[str, str] = field(default_factory=dict)
    tolerations: list[dict[str, Any]] = field(default_factory=list)
    affinity: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OwnerRef:
    api_version: str
    kind: str
    name: str
    uid: str
    block_owner_deletion: bool = True
    controller: bool = True

    def to_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "uid": self.uid,
            "blockOwnerDeletion": self.block_owner_deletion,
            "controller": self.controller,
        }


@dataclass(frozen=True)
class ClusterConfig:
    """Desired state of the mgr daemons for one pass. Never mutated once built."""

    namespace: str
    replicas: int = 1
    placement: Placement = field(default_factory=Placement)
    resources: dict[str, Any] = field(default_factory=dict)
    dashboard_enabled: bool = False
    owner_ref: OwnerRef | None = None
    ceph_image: str = "ceph/ceph:v13"
    rook_version: str = "v0.8.0"
    host_network: bool = False
    data_dir: str = "/var/lib/rook"
    identity_pool: tuple[str, ...] = DEFAULT_IDENTITY_POOL

    def __post_init__(self) -> None:
        validate_namespace(self.namespace)
        # lists from JSON callers are normalized to a tuple
        object.__setattr__(self, "identity_pool", tuple(self.identity_pool))
        validate_identity_pool(self.identity_pool)


def resource_name(identity: str) -> str:
    return f"{APP_NAME}-{identity}"


def dashboard_service_name() -> str:
    return f"{APP_NAME}-dashboard"


def keyring_principal(identity: str) -> str:
    return f"mgr.{identity}"


def keyring_caps() -> list[str]:
    # Fixed grant: full access to the monitors.
    return ["mon", "allow *"]


def app_labels(namespace: str) -> dict[str, str]:
    return {"app": APP_NAME, "rook_cluster": namespace}
