from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .ceph import CephClient
from .config import ClusterConfig, keyring_caps, keyring_principal, resource_name
from .errors import AlreadyExistsError, NotFoundError, ReconcileError, Step
from .resources import make_deployment, make_keyring_secret
from .store import ResourceKind, ResourceStore


logger = logging.getLogger(__name__)

MODULE_KIND = "MgrModule"


class Action(str, Enum):
    CREATED = "created"
    EXISTS = "exists"
    DELETED = "deleted"
    ABSENT = "absent"
    ENABLED = "enabled"
    DISABLED = "disabled"


@dataclass(frozen=True)
class Outcome:
    step: Step
    kind: str
    name: str
    action: Action

    def to_dict(self) -> dict[str, str]:
        return {"step": self.step.value, "kind": self.kind, "name": self.name, "action": self.action.value}


class CredentialProvisioner:
    """Get-or-create of the per-daemon keyring Secret.

    An existing Secret is never re-issued, so the stored key stays stable across
    passes even if the cluster would hand out a different one.
    """

    def __init__(self, config: ClusterConfig, store: ResourceStore, ceph: CephClient):
        self.config = config
        self.store = store
        self.ceph = ceph

    def ensure_keyring(self, identity: str) -> Outcome:
        name = resource_name(identity)
        kind = ResourceKind.SECRET

        def fail(e: Exception) -> ReconcileError:
            return ReconcileError(Step.KEYRING, kind.value, name, e)

        try:
            self.store.get(kind, self.config.namespace, name)
            logger.info("the mgr keyring %s was already generated", name)
            return Outcome(Step.KEYRING, kind.value, name, Action.EXISTS)
        except NotFoundError:
            pass
        except Exception as e:
            raise fail(e) from e

        try:
            key = self.ceph.auth_get_or_create_key(keyring_principal(identity), keyring_caps())
        except Exception as e:
            raise fail(e) from e

        secret = make_keyring_secret(identity, key, self.config)
        try:
            self.store.create(kind, secret)
        except AlreadyExistsError:
            logger.info("mgr keyring %s was created concurrently", name)
            return Outcome(Step.KEYRING, kind.value, name, Action.EXISTS)
        except Exception as e:
            raise fail(e) from e
        logger.info("created mgr keyring %s", name)
        return Outcome(Step.KEYRING, kind.value, name, Action.CREATED)


class WorkloadProvisioner:
    def __init__(self, config: ClusterConfig, store: ResourceStore):
        self.config = config
        self.store = store

    def ensure_workload(self, identity: str) -> Outcome:
        name = resource_name(identity)
        kind = ResourceKind.DEPLOYMENT
        deployment = make_deployment(identity, self.config)
        try:
            self.store.create(kind, deployment)
        except AlreadyExistsError:
            # Existing workloads are left as they are, even if the config changed.
            logger.info("%s deployment already exists", name)
            return Outcome(Step.WORKLOAD, kind.value, name, Action.EXISTS)
        except Exception as e:
            raise ReconcileError(Step.WORKLOAD, kind.value, name, e) from e
        logger.info("%s deployment started", name)
        return Outcome(Step.WORKLOAD, kind.value, name, Action.CREATED)


class EndpointProvisioner:
    """Create-if-absent / delete-if-present for Service records."""

    def __init__(self, config: ClusterConfig, store: ResourceStore):
        self.config = config
        self.store = store

    def ensure_service(self, service: dict[str, Any], step: Step) -> Outcome:
        name = service["metadata"]["name"]
        kind = ResourceKind.SERVICE
        try:
            self.store.create(kind, service)
        except AlreadyExistsError:
            logger.info("%s service already exists", name)
            return Outcome(step, kind.value, name, Action.EXISTS)
        except Exception as e:
            raise ReconcileError(step, kind.value, name, e) from e
        logger.info("%s service started", name)
        return Outcome(step, kind.value, name, Action.CREATED)

    def remove_service(self, name: str, step: Step) -> Outcome:
        kind = ResourceKind.SERVICE
        try:
            self.store.delete(kind, self.config.namespace, name)
        except NotFoundError:
            return Outcome(step, kind.value, name, Action.ABSENT)
        except Exception as e:
            raise ReconcileError(step, kind.value, name, e) from e
        logger.info("%s service deleted", name)
        return Outcome(step, kind.value, name, Action.DELETED)


class FeatureToggle:
    """Unconditional enable/disable of a mgr module. No local state is consulted."""

    def __init__(self, ceph: CephClient):
        self.ceph = ceph

    def set_module(self, name: str, enabled: bool, step: Step) -> Outcome:
        try:
            if enabled:
                self.ceph.mgr_module_enable(name, force=True)
            else:
                self.ceph.mgr_module_disable(name)
        except Exception as e:
            raise ReconcileError(step, MODULE_KIND, name, e) from e
        logger.info("mgr module %s %s", name, "enabled" if enabled else "disabled")
        return Outcome(step, MODULE_KIND, name, Action.ENABLED if enabled else Action.DISABLED)
