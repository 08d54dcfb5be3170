from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .config import DASHBOARD_MODULE, ClusterConfig, dashboard_service_name
from .errors import Step
from .provisioners import EndpointProvisioner, FeatureToggle, Outcome
from .resources import make_dashboard_service


class DashboardState(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def from_flag(cls, enabled: bool) -> "DashboardState":
        return cls.ENABLED if enabled else cls.DISABLED


class EndpointAction(str, Enum):
    ENSURE = "ensure"
    REMOVE = "remove"


@dataclass(frozen=True)
class DashboardPlan:
    module_enabled: bool
    endpoint_action: EndpointAction


def transition(state: DashboardState) -> DashboardPlan:
    """Map the desired dashboard state to the module call and endpoint action.

    Both halves are derived from the same state, so after a successful apply the
    endpoint exists exactly when the module is enabled.
    """
    if state is DashboardState.ENABLED:
        return DashboardPlan(module_enabled=True, endpoint_action=EndpointAction.ENSURE)
    return DashboardPlan(module_enabled=False, endpoint_action=EndpointAction.REMOVE)


class DashboardReconciler:
    def __init__(self, config: ClusterConfig, toggle: FeatureToggle, endpoints: EndpointProvisioner):
        self.config = config
        self.toggle = toggle
        self.endpoints = endpoints

    @property
    def desired(self) -> DashboardState:
        return DashboardState.from_flag(self.config.dashboard_enabled)

    def reconcile(self) -> list[Outcome]:
        plan = transition(self.desired)
        # A failed toggle raises here and the endpoint is left untouched.
        outcomes = [self.toggle.set_module(DASHBOARD_MODULE, plan.module_enabled, Step.DASHBOARD_MODULE)]
        if plan.endpoint_action is EndpointAction.ENSURE:
            service = make_dashboard_service(self.config)
            outcomes.append(self.endpoints.ensure_service(service, Step.DASHBOARD_ENDPOINT))
        else:
            outcomes.append(self.endpoints.remove_service(dashboard_service_name(), Step.DASHBOARD_ENDPOINT))
        return outcomes
