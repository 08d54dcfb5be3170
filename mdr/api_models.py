from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .config import DEFAULT_IDENTITY_POOL, ClusterConfig, OwnerRef, Placement
from .settings import settings


class PlacementModel(BaseModel):
    node_selector: dict[str, str] = Field(default_factory=dict)
    tolerations: list[dict[str, Any]] = Field(default_factory=list)
    affinity: dict[str, Any] = Field(default_factory=dict)


class OwnerRefModel(BaseModel):
    api_version: str = Field("ceph.rook.io/v1beta1", description="apiVersion of the owning object")
    kind: str = Field("Cluster", description="Kind of the owning object")
    name: str
    uid: str
    block_owner_deletion: bool = True
    controller: bool = True


class ReconcileRequest(BaseModel):
    namespace: str = Field(settings.namespace, description="Namespace of the storage cluster (dns-safe)")
    replicas: int = Field(1, ge=0, description="Desired mgr daemons; counts above the identity pool size are dropped with a warning")
    dashboard_enabled: bool = False
    placement: PlacementModel = Field(default_factory=PlacementModel)
    resources: dict[str, Any] = Field(default_factory=dict, description="Kubernetes resource requirements")
    owner_ref: OwnerRefModel | None = None
    ceph_image: str = "ceph/ceph:v13"
    rook_version: str = "v0.8.0"
    host_network: bool = False
    data_dir: str = "/var/lib/rook"
    identity_pool: list[str] = Field(default_factory=lambda: list(DEFAULT_IDENTITY_POOL))

    def to_config(self) -> ClusterConfig:
        """Build the immutable per-pass config. Raises ValueError on invalid values."""
        owner = None
        if self.owner_ref is not None:
            owner = OwnerRef(**self.owner_ref.model_dump())
        return ClusterConfig(
            namespace=self.namespace,
            replicas=self.replicas,
            placement=Placement(**self.placement.model_dump()),
            resources=dict(self.resources),
            dashboard_enabled=self.dashboard_enabled,
            owner_ref=owner,
            ceph_image=self.ceph_image,
            rook_version=self.rook_version,
            host_network=self.host_network,
            data_dir=self.data_dir,
            identity_pool=tuple(self.identity_pool),
        )
