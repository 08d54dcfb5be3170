from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Core
    db_path: str = os.getenv("MDR_DB_PATH", "mdr.db")
    namespace: str = os.getenv("MDR_NAMESPACE", "rook-ceph")
    log_level: str = os.getenv("MDR_LOG_LEVEL", "INFO")

    # Orchestrator access. Empty kubeconfig + in_cluster=False means "default kubeconfig".
    in_cluster: bool = _env_bool("MDR_IN_CLUSTER", False)
    kubeconfig: str | None = os.getenv("MDR_KUBECONFIG")
    kube_context: str | None = os.getenv("MDR_KUBE_CONTEXT")

    # Storage cluster CLI
    ceph_bin: str = os.getenv("MDR_CEPH_BIN", "ceph")
    ceph_conf: str | None = os.getenv("MDR_CEPH_CONF")
    ceph_keyring: str | None = os.getenv("MDR_CEPH_KEYRING")
    ceph_user: str = os.getenv("MDR_CEPH_USER", "client.admin")
    # 0 disables the timeout.
    ceph_timeout_s: int = _env_int("MDR_CEPH_TIMEOUT_S", 30)


settings = Settings()
