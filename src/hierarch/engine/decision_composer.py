"""
Decision Composer

Combines a QualificationResult with the current holders of the
privileged role and the grace state machine:

- added: qualified users who do not hold the role
- removed: holders whose grace expired, or who are disqualified while
  grace is disabled
- grace_active: holders starting or continuing grace
- protected_skipped: protected holders that did not qualify

Every qualified user has their grace record cleared. Grace records of
users who no longer hold the role at all are pruned. Holders whose
profile could not be looked up are left untouched this run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from ..config import EngineConfig
from ..models import (
    DecisionRecord,
    GraceEntry,
    GraceTransition,
    MemberProfile,
    QualificationResult,
    RemovalReason,
    RemovedEntry,
    SkippedEntry,
)
from ..store import GraceStore
from .grace_machine import GraceStateMachine, GraceStep
from .tier_classifier import TierClassifier

logger = logging.getLogger(__name__)


_REMOVAL_REASONS = {
    GraceTransition.EXPIRED: RemovalReason.GRACE_EXPIRED,
    GraceTransition.REMOVED: RemovalReason.NOT_QUALIFIED,
}


@dataclass(frozen=True)
class DecisionComposer:
    """
    Usage:
        composer = DecisionComposer.from_config(config)
        record = composer.compose(
            qualification=result,
            holder_ids={"1", "2"},
            holder_profiles={"2": profile},
            store=store,
        )
    """
    config: EngineConfig
    classifier: TierClassifier
    machine: GraceStateMachine

    @classmethod
    def from_config(cls, config: EngineConfig) -> DecisionComposer:
        return cls(
            config=config,
            classifier=TierClassifier.from_config(config),
            machine=GraceStateMachine(config.grace_periods),
        )

    def compose(
        self,
        qualification: QualificationResult,
        holder_ids: Iterable[str],
        holder_profiles: Mapping[str, MemberProfile],
        store: GraceStore,
        now: Optional[datetime] = None,
        period: Optional[str] = None,
        run_id: Optional[str] = None,
        dry_run: bool = False,
    ) -> DecisionRecord:
        """
        Produce the decisions for one run, mutating ``store`` in place.

        Args:
            qualification: This run's ranking
            holder_ids: Everyone currently holding the privileged role
            holder_profiles: Directory profiles for disqualified holders;
                holders missing here are skipped this run
            store: Working grace store
            now: Run timestamp (recorded on new grace records)
            period: Caller's period label, recorded on the decision
            run_id: Identifier for this run
            dry_run: Recorded on the decision

        Returns:
            DecisionRecord
        """
        if now is None:
            now = datetime.now(timezone.utc)
        holders = frozenset(holder_ids)
        qualified_ids = qualification.qualified_ids

        # Qualified users: clear grace, grant the role where missing
        requalified: list[str] = []
        added = []
        for record in qualification.all_qualified:
            if self.machine.requalify(record.user_id, store):
                requalified.append(record.user_id)
            if not record.holds_privileged_role and record.user_id not in holders:
                logger.debug("Qualified without the role: %s", record.display_name,
                             extra={"user_id": record.user_id})
                added.append(record)

        # Disqualified holders: one grace step each
        removed: list[RemovedEntry] = []
        grace_active: list[GraceEntry] = []
        skipped: list[SkippedEntry] = []
        for user_id in sorted(holders - qualified_ids):
            profile = holder_profiles.get(user_id)
            if profile is None:
                logger.warning("No profile for role holder %s; leaving unchanged this run",
                               user_id, extra={"user_id": user_id})
                continue

            step = self.machine.advance(
                user_id=user_id,
                display_name=profile.display_name,
                is_protected=self.classifier.is_protected(profile),
                store=store,
                now=now,
            )
            self._collect(step, removed, grace_active, skipped)

        # Stale grace records: not a holder, not qualified
        pruned = [uid for uid in store.user_ids() if uid not in holders and uid not in qualified_ids]
        for user_id in pruned:
            store.delete(user_id)
            logger.info("Pruned grace record for %s: no longer holds the role", user_id,
                        extra={"user_id": user_id})

        extra_fields = {"run_id": run_id} if run_id else {}
        return DecisionRecord(
            added=tuple(added),
            removed=tuple(removed),
            grace_active=tuple(grace_active),
            protected_skipped=tuple(skipped),
            qualified=qualification,
            requalified=tuple(requalified),
            pruned=tuple(pruned),
            run_at=now,
            period=period,
            top_n=self.config.top_n,
            grace_periods=self.config.grace_periods,
            window_days=self.config.window_days,
            period_name=self.config.period_name,
            dry_run=dry_run,
            **extra_fields,
        )

    @staticmethod
    def _collect(
        step: GraceStep,
        removed: list[RemovedEntry],
        grace_active: list[GraceEntry],
        skipped: list[SkippedEntry],
    ) -> None:
        if step.transition == GraceTransition.PROTECTED:
            skipped.append(SkippedEntry(step.user_id, step.display_name))
        elif step.removes_role:
            removed.append(RemovedEntry(
                user_id=step.user_id,
                display_name=step.display_name,
                reason=_REMOVAL_REASONS[step.transition],
                weeks_out=step.weeks_out,
            ))
        elif step.in_grace:
            grace_active.append(GraceEntry(
                user_id=step.user_id,
                display_name=step.display_name,
                weeks_out=step.weeks_out or 0,
                weeks_remaining=step.weeks_remaining or 0,
                transition=step.transition,
            ))
