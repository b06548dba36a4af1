"""
Grace-Period State Machine

Evaluated once per run for every holder of the privileged role who did
not qualify:

    NotTracked ──► STARTED(1) ──► CONTINUING(k) ──► EXPIRED (role removed)
         ▲              │                │
         └─── REQUALIFIED (record deleted when the user qualifies again)

- Protected holders are exempt: nothing is created or advanced.
- grace_periods == 0 disables grace: disqualification removes at once.
- weeks_out > grace_periods expires the record and removes the role.

Each call advances a user by exactly one step. The machine never looks at
a clock; one call per period is the caller's scheduling contract.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..models import GraceRecord, GraceTransition
from ..store import GraceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraceStep:
    """Result of advancing one holder by one run."""
    user_id: str
    display_name: str
    transition: GraceTransition
    weeks_out: Optional[int] = None
    weeks_remaining: Optional[int] = None

    @property
    def removes_role(self) -> bool:
        return self.transition in {GraceTransition.EXPIRED, GraceTransition.REMOVED}

    @property
    def in_grace(self) -> bool:
        return self.transition in {GraceTransition.STARTED, GraceTransition.CONTINUING}


@dataclass(frozen=True)
class GraceStateMachine:
    """
    Usage:
        machine = GraceStateMachine(grace_periods=2)
        machine.requalify("123", store)
        step = machine.advance("456", "Ada", is_protected=False, store=store, now=now)
    """
    grace_periods: int = 0

    def __post_init__(self) -> None:
        if self.grace_periods < 0:
            raise ValueError(f"grace_periods must be >= 0, got {self.grace_periods}")

    def requalify(self, user_id: str, store: GraceStore) -> bool:
        """Clear grace for a user who qualified. Returns True if a record was cleared."""
        record = store.get(user_id)
        if record is None:
            return False
        store.delete(user_id)
        logger.info(
            "Grace cleared for %s after %d %s out",
            record.display_name, record.weeks_out, "run" if record.weeks_out == 1 else "runs",
            extra={"user_id": user_id},
        )
        return True

    def advance(
        self,
        user_id: str,
        display_name: str,
        is_protected: bool,
        store: GraceStore,
        now: datetime,
    ) -> GraceStep:
        """Advance a disqualified holder by one step."""
        if is_protected:
            # A record from before the user became protected is dropped
            store.delete(user_id)
            logger.info("Skipping protected user: %s", display_name, extra={"user_id": user_id})
            return GraceStep(user_id, display_name, GraceTransition.PROTECTED)

        if self.grace_periods == 0:
            if store.delete(user_id):
                logger.info("Dropped grace record for %s: grace disabled", display_name,
                            extra={"user_id": user_id})
            return GraceStep(user_id, display_name, GraceTransition.REMOVED)

        existing = store.get(user_id)
        if existing is None:
            store.put(GraceRecord(
                user_id=user_id,
                display_name=display_name,
                weeks_out=1,
                first_week_out=now,
            ))
            logger.info(
                "Grace period started for: %s (1/%d)", display_name, self.grace_periods,
                extra={"user_id": user_id},
            )
            return GraceStep(
                user_id, display_name, GraceTransition.STARTED,
                weeks_out=1, weeks_remaining=self.grace_periods - 1,
            )

        record = existing.advanced(display_name)
        if record.weeks_out > self.grace_periods:
            store.delete(user_id)
            logger.info(
                "Grace period expired for: %s (%d/%d)",
                display_name, record.weeks_out, self.grace_periods,
                extra={"user_id": user_id},
            )
            return GraceStep(
                user_id, display_name, GraceTransition.EXPIRED,
                weeks_out=record.weeks_out, weeks_remaining=0,
            )

        store.put(record)
        logger.info(
            "Grace period continues for: %s (%d/%d)",
            display_name, record.weeks_out, self.grace_periods,
            extra={"user_id": user_id},
        )
        return GraceStep(
            user_id, display_name, GraceTransition.CONTINUING,
            weeks_out=record.weeks_out,
            weeks_remaining=self.grace_periods - record.weeks_out,
        )
