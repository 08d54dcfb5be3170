from __future__ import annotations

from enum import Enum
from typing import Any, Protocol

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from .errors import AlreadyExistsError, NotFoundError
from .settings import settings


class ResourceKind(str, Enum):
    SECRET = "Secret"
    DEPLOYMENT = "Deployment"
    SERVICE = "Service"


class ResourceStore(Protocol):
    """Orchestrator resource store.

    ``get`` and ``delete`` raise NotFoundError, ``create`` raises
    AlreadyExistsError. Any other exception is a real failure.
    """

    def get(self, kind: ResourceKind, namespace: str, name: str) -> dict[str, Any]: ...

    def create(self, kind: ResourceKind, record: dict[str, Any]) -> dict[str, Any]: ...

    def delete(self, kind: ResourceKind, namespace: str, name: str) -> None: ...


def load_kube_config() -> None:
    if settings.in_cluster:
        config.load_incluster_config()
        return
    config.load_kube_config(config_file=settings.kubeconfig, context=settings.kube_context)


class KubeStore:
    """ResourceStore backed by the Kubernetes API."""

    def __init__(self, api_client: client.ApiClient | None = None):
        if api_client is None:
            load_kube_config()
            api_client = client.ApiClient()
        self.api_client = api_client
        self.core_v1 = client.CoreV1Api(api_client)
        self.apps_v1 = client.AppsV1Api(api_client)

    def _classify(self, exc: ApiException, kind: ResourceKind, name: str) -> Exception | None:
        if exc.status == 404:
            return NotFoundError(f"{kind.value} {name} not found")
        if exc.status == 409:
            return AlreadyExistsError(f"{kind.value} {name} already exists")
        return None

    def get(self, kind: ResourceKind, namespace: str, name: str) -> dict[str, Any]:
        read = {
            ResourceKind.SECRET: self.core_v1.read_namespaced_secret,
            ResourceKind.DEPLOYMENT: self.apps_v1.read_namespaced_deployment,
            ResourceKind.SERVICE: self.core_v1.read_namespaced_service,
        }[kind]
        try:
            obj = read(name, namespace)
        except ApiException as e:
            err = self._classify(e, kind, name)
            if err is None:
                raise
            raise err from e
        return self.api_client.sanitize_for_serialization(obj)

    def create(self, kind: ResourceKind, record: dict[str, Any]) -> dict[str, Any]:
        create = {
            ResourceKind.SECRET: self.core_v1.create_namespaced_secret,
            ResourceKind.DEPLOYMENT: self.apps_v1.create_namespaced_deployment,
            ResourceKind.SERVICE: self.core_v1.create_namespaced_service,
        }[kind]
        meta = record["metadata"]
        try:
            obj = create(meta["namespace"], record)
        except ApiException as e:
            err = self._classify(e, kind, meta["name"])
            if err is None:
                raise
            raise err from e
        return self.api_client.sanitize_for_serialization(obj)

    def delete(self, kind: ResourceKind, namespace: str, name: str) -> None:
        delete = {
            ResourceKind.SECRET: self.core_v1.delete_namespaced_secret,
            ResourceKind.DEPLOYMENT: self.apps_v1.delete_namespaced_deployment,
            ResourceKind.SERVICE: self.core_v1.delete_namespaced_service,
        }[kind]
        try:
            delete(name, namespace)
        except ApiException as e:
            err = self._classify(e, kind, name)
            if err is None:
                raise
            raise err from e
