from __future__ import annotations

from enum import Enum


class Step(str, Enum):
    KEYRING = "keyring"
    WORKLOAD = "workload"
    METRICS_MODULE = "metrics-module"
    METRICS_ENDPOINT = "metrics-endpoint"
    DASHBOARD_MODULE = "dashboard-module"
    DASHBOARD_ENDPOINT = "dashboard-endpoint"
    JOURNAL = "journal"


class NotFoundError(Exception):
    """The store has no record with the requested kind/name."""


class AlreadyExistsError(Exception):
    """A create collided with an existing record of the same kind/name."""


class CephCommandError(Exception):
    def __init__(self, command: list[str], returncode: int | None, stderr: str):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{' '.join(command)} exited with {returncode}: {stderr.strip()}")


class ReconcileError(Exception):
    """Fatal failure of one step of a pass.

    Carries the failing step, the kind and name of the resource it was working
    on and the underlying cause (also chained as ``__cause__``).
    """

    def __init__(self, step: Step, kind: str, name: str, cause: BaseException):
        self.step = step
        self.kind = kind
        self.name = name
        self.cause = cause
        super().__init__(f"{step.value} {name} failed: {cause}")

    def to_dict(self) -> dict[str, str]:
        return {
            "step": self.step.value,
            "kind": self.kind,
            "name": self.name,
            "error": f"{type(self.cause).__name__}: {self.cause}",
        }
