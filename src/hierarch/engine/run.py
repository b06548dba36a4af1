"""
Role Update Run

One periodic run of the engine, end to end:

1. Open the grace store (run lock + load)           fatal on failure
2. Read holders of the privileged role              fatal if the role is missing
3. Collect mention counts                           fatal on any failure
4. Build and classify activity records              per-user failures skipped
5. Rank and compute the qualification result
6. Look up disqualified holders, compose decisions  per-user failures skipped
7. Commit the grace store                           skipped on dry run
8. Apply grants/revokes through the RoleMutator     per-user failures recorded
9. Hand the DecisionRecord to every Reporter        reporter failures logged

A fatal failure raises RunAbortedError and leaves the persisted grace
store exactly as it was.

Scheduling: runs must be spaced one period apart and never overlap. The
store lock rejects an overlapping run; spacing is the scheduler's job.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence
from uuid import uuid4

from ..collaborators import ActivitySource, MembershipDirectory, Reporter, RoleMutator
from ..config import EngineConfig
from ..exceptions import (
    ActivitySourceError,
    DirectoryError,
    GraceStoreError,
    RunAbortedError,
)
from ..models import DecisionRecord, MemberProfile, MutationFailure
from ..store import GraceStoreBackend
from .decision_composer import DecisionComposer
from .evidence import collect_evidence
from .ranking import RankingCalculator

logger = logging.getLogger(__name__)


@dataclass
class RoleUpdateRun:
    """
    Wires configuration, collaborators and the grace store together.

    Usage:
        run = RoleUpdateRun(
            config=config,
            activity=JsonActivitySource("activity.json"),
            directory=JsonMembershipDirectory("directory.json"),
            store=JsonGraceStore(config.state_path),
            mutator=JsonRoleMutator("journal.jsonl"),
            reporters=[FileReporter(config.logs_dir)],
        )
        record = run.execute(period="2026-W42")
    """
    config: EngineConfig
    activity: ActivitySource
    directory: MembershipDirectory
    store: GraceStoreBackend
    mutator: Optional[RoleMutator] = None
    reporters: Sequence[Reporter] = field(default_factory=list)

    def execute(
        self,
        period: Optional[str] = None,
        dry_run: bool = False,
        now: Optional[datetime] = None,
    ) -> DecisionRecord:
        """
        Run once.

        Args:
            period: Caller's label for this period (e.g. "2026-W42");
                re-running a committed period replays it instead of advancing
            dry_run: Compute and report only; no commit, no mutations
            now: Run timestamp, defaults to the current UTC time

        Raises:
            RunAbortedError: On any fatal condition
        """
        run_id = str(uuid4())
        if now is None:
            now = datetime.now(timezone.utc)
        log_extra = {"run_id": run_id, "period": period}
        logger.info("Starting role update run %s", self.config.summary(), extra=log_extra)

        with self.store:
            try:
                working = self.store.open(period)
            except GraceStoreError as e:
                raise self._abort("state", e, log_extra) from e

            try:
                holder_ids = frozenset(
                    self.directory.privileged_role_holders(self.config.privileged_role_id)
                )
            except DirectoryError as e:
                raise self._abort("directory", e, log_extra) from e

            try:
                counts = self.activity.mention_counts()
            except ActivitySourceError as e:
                raise self._abort("activity", e, log_extra) from e
            except Exception as e:
                error = ActivitySourceError(message=f"Activity source failed: {e}")
                raise self._abort("activity", error, log_extra) from e

            evidence = collect_evidence(counts, self.directory, self.config)
            qualification = RankingCalculator.from_config(self.config).qualify(evidence.records)
            profiles = self._holder_profiles(holder_ids - qualification.qualified_ids)

            record = DecisionComposer.from_config(self.config).compose(
                qualification=qualification,
                holder_ids=holder_ids,
                holder_profiles=profiles,
                store=working,
                now=now,
                period=period,
                run_id=run_id,
                dry_run=dry_run,
            )

            if not dry_run:
                try:
                    self.store.commit(working)
                except GraceStoreError as e:
                    raise self._abort("state", e, log_extra) from e

        if not dry_run and self.mutator is not None:
            record = self._apply(record, self.mutator)

        logger.info(
            "Run finished: %d added, %d removed, %d in grace, %d protected skipped",
            len(record.added), len(record.removed),
            len(record.grace_active), len(record.protected_skipped),
            extra=log_extra,
        )
        self._report(record)
        return record

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _holder_profiles(self, user_ids: Iterable[str]) -> dict[str, MemberProfile]:
        profiles: dict[str, MemberProfile] = {}
        for user_id in sorted(user_ids):
            try:
                profiles[user_id] = self.directory.lookup(user_id)
            except DirectoryError as e:
                logger.warning("Could not fetch member %s: %s", user_id, e,
                               extra={"user_id": user_id})
            except Exception as e:
                logger.error("Lookup of member %s failed: %s", user_id, e,
                             extra={"user_id": user_id})
        return profiles

    def _apply(self, record: DecisionRecord, mutator: RoleMutator) -> DecisionRecord:
        role_id = self.config.privileged_role_id
        failures: list[MutationFailure] = []

        for added in record.added:
            try:
                mutator.grant(added.user_id, role_id)
                logger.info("Added role to: %s", added.display_name,
                            extra={"user_id": added.user_id})
            except Exception as e:
                logger.error("Failed to add role to %s: %s", added.display_name, e,
                             extra={"user_id": added.user_id})
                failures.append(MutationFailure(added.user_id, "grant", str(e)))

        for removed in record.removed:
            try:
                mutator.revoke(removed.user_id, role_id, removed.reason.value)
                logger.info("Removed role from: %s (%s)", removed.display_name,
                            removed.reason.value, extra={"user_id": removed.user_id})
            except Exception as e:
                logger.error("Failed to remove role from %s: %s", removed.display_name, e,
                             extra={"user_id": removed.user_id})
                failures.append(MutationFailure(removed.user_id, "revoke", str(e)))

        if failures:
            record = replace(record, mutation_failures=tuple(failures))
        return record

    def _report(self, record: DecisionRecord) -> None:
        for reporter in self.reporters:
            try:
                reporter.report(record)
            except Exception as e:
                logger.error("Reporter %s failed: %s", type(reporter).__name__, e,
                             extra={"run_id": record.run_id})

    @staticmethod
    def _abort(phase: str, error: Exception, log_extra: dict) -> RunAbortedError:
        logger.error("Run aborted during %s: %s", phase, error, extra={**log_extra, "phase": phase})
        details = error.to_dict() if hasattr(error, "to_dict") else {"error": str(error)}
        return RunAbortedError(
            message=f"Run aborted during {phase}: {error}",
            details=details,
            phase=phase,
        )
