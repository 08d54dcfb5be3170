from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .ceph import CephClient
from .config import PROMETHEUS_MODULE, ClusterConfig
from .dashboard import DashboardReconciler
from .errors import ReconcileError, Step
from .journal import Journal
from .planner import IdentityPlanner
from .provisioners import CredentialProvisioner, EndpointProvisioner, FeatureToggle, Outcome, WorkloadProvisioner
from .resources import make_metrics_service
from .store import ResourceStore


logger = logging.getLogger(__name__)


@dataclass
class PassReport:
    namespace: str
    identities: list[str] = field(default_factory=list)
    outcomes: list[Outcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    pass_id: int | None = None

    def to_dict(self) -> dict:
        return {
            "namespace": self.namespace,
            "pass_id": self.pass_id,
            "identities": list(self.identities),
            "outcomes": [o.to_dict() for o in self.outcomes],
            "warnings": list(self.warnings),
        }


class ReconciliationDriver:
    """Runs one reconciliation pass for the mgr daemons.

    Order: keyring then workload for each identity, the prometheus module, the
    metrics Service, then the dashboard module and Service. The first fatal
    error ends the pass; nothing created before it is rolled back. Callers
    re-invoke ``run`` until it succeeds.
    """

    def __init__(
        self,
        config: ClusterConfig,
        store: ResourceStore,
        ceph: CephClient,
        journal: Journal | None = None,
    ):
        self.config = config
        self.store = store
        self.ceph = ceph
        self.journal = journal
        self.planner = IdentityPlanner(config.identity_pool)
        self.credentials = CredentialProvisioner(config, store, ceph)
        self.workloads = WorkloadProvisioner(config, store)
        self.endpoints = EndpointProvisioner(config, store)
        self.modules = FeatureToggle(ceph)
        self.dashboard = DashboardReconciler(config, self.modules, self.endpoints)

    def run(self) -> PassReport:
        report = PassReport(namespace=self.config.namespace)
        if self.journal:
            report.pass_id = self._journal_call(self.journal.begin_pass, self.config.namespace)
        logger.info("start running mgr in namespace %s", self.config.namespace)

        try:
            self._run(report)
        except ReconcileError as e:
            logger.error("mgr reconcile failed: %s", e)
            self._close_failed(report, str(e), e.step.value, e.name)
            raise
        except Exception as e:
            logger.exception("mgr reconcile failed unexpectedly")
            self._close_failed(report, f"{type(e).__name__}: {e}")
            raise

        if self.journal and report.pass_id is not None:
            self._journal_call(self.journal.finish_pass, report.pass_id)
        logger.info("mgr reconcile completed (%d steps)", len(report.outcomes))
        return report

    def _run(self, report: PassReport) -> None:
        plan = self.planner.plan(self.config.replicas)
        report.identities = plan.identities
        for msg in plan.warnings:
            report.warnings.append(msg)
            self._event(report, "WARN", msg)

        for identity in plan.identities:
            self._record(report, self.credentials.ensure_keyring(identity))
            self._record(report, self.workloads.ensure_workload(identity))

        self._record(report, self.modules.set_module(PROMETHEUS_MODULE, True, Step.METRICS_MODULE))
        self._record(report, self.endpoints.ensure_service(make_metrics_service(self.config), Step.METRICS_ENDPOINT))

        for outcome in self.dashboard.reconcile():
            self._record(report, outcome)

    def _record(self, report: PassReport, outcome: Outcome) -> None:
        report.outcomes.append(outcome)
        self._event(report, "INFO", f"{outcome.kind} {outcome.name} {outcome.action.value}", outcome.step.value, outcome.name)

    def _journal_call(self, fn, *args, **kwargs):
        """Call the journal, turning its failures into a ReconcileError of the journal step."""
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            raise ReconcileError(Step.JOURNAL, "Journal", self.journal.db_path, e) from e

    def _event(self, report: PassReport, level: str, message: str, step: str | None = None, resource: str | None = None) -> None:
        if not self.journal:
            return
        self._journal_call(
            self.journal.log_event,
            level,
            message,
            namespace=self.config.namespace,
            step=step,
            resource=resource,
            pass_id=report.pass_id,
        )

    def _close_failed(self, report: PassReport, error: str, step: str | None = None, resource: str | None = None) -> None:
        """Record the failure and close the pass row.

        The pass failure is already propagating, so journal errors here are
        logged instead of raised.
        """
        if not self.journal or report.pass_id is None:
            return
        try:
            self._event(report, "ERROR", error, step, resource)
        except ReconcileError as e:
            logger.error("could not record failure of pass %s: %s", report.pass_id, e)
        try:
            self.journal.finish_pass(report.pass_id, failed_step=step, error=error)
        except Exception:
            logger.exception("could not close pass %s", report.pass_id)
