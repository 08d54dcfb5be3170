from __future__ import annotations

import logging
from dataclasses import dataclass, field


logger = logging.getLogger(__name__)


@dataclass
class IdentityPlan:
    identities: list[str]
    warnings: list[str] = field(default_factory=list)


class IdentityPlanner:
    """Assigns daemon identities from an ordered pool to the desired replicas."""

    def __init__(self, pool: tuple[str, ...] | list[str]):
        self.pool = tuple(pool)

    def plan(self, replicas: int) -> IdentityPlan:
        wanted = max(0, int(replicas))
        plan = IdentityPlan(identities=list(self.pool[:wanted]))
        if wanted > len(self.pool):
            # Degrade rather than abort: the remaining steps still run.
            msg = f"cannot have more than {len(self.pool)} mgrs (requested {wanted})"
            logger.error(msg)
            plan.warnings.append(msg)
        return plan
