"""
Ranking & Threshold Calculator

Turns classified activity records into a QualificationResult:

1. Regular records sorted by mentions, descending. Equal counts are
   ordered by user_id ascending so the cut is reproducible.
2. The first top_n regular records qualify (all of them if fewer).
3. threshold = mentions of the last qualified regular record, 0 if none.
4. Special records qualify with mentions strictly above the threshold.
   With no regular evidence the threshold is 0, so any special member
   with a mention qualifies.
5. Every protected record in the evidence qualifies.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ..config import DEFAULT_TOP_N, EngineConfig
from ..models import ActivityRecord, QualificationResult, Tier

logger = logging.getLogger(__name__)


def ranking_key(record: ActivityRecord) -> tuple[int, str]:
    """Mentions descending, then user_id ascending."""
    return (-record.mention_count, record.user_id)


def rank_records(records: Iterable[ActivityRecord]) -> list[ActivityRecord]:
    return sorted(records, key=ranking_key)


def compute_threshold(qualified_regular: Iterable[ActivityRecord]) -> int:
    ranked = list(qualified_regular)
    return ranked[-1].mention_count if ranked else 0


def qualify(
    records: Iterable[ActivityRecord],
    top_n: int = DEFAULT_TOP_N,
) -> QualificationResult:
    """
    Compute who qualifies this run.

    Args:
        records: Classified activity records (any order)
        top_n: Number of regular members that qualify

    Returns:
        QualificationResult; empty input yields an empty result with threshold 0
    """
    if top_n < 1:
        raise ValueError(f"top_n must be >= 1, got {top_n}")

    by_tier: dict[Tier, list[ActivityRecord]] = {tier: [] for tier in Tier}
    for record in records:
        by_tier[record.tier].append(record)

    regular = rank_records(by_tier[Tier.REGULAR])
    qualified_regular = tuple(regular[:top_n])
    threshold = compute_threshold(qualified_regular)

    qualified_special = tuple(
        r for r in rank_records(by_tier[Tier.SPECIAL]) if r.mention_count > threshold
    )
    qualified_protected = tuple(rank_records(by_tier[Tier.PROTECTED]))

    return QualificationResult(
        qualified_regular=qualified_regular,
        qualified_special=qualified_special,
        qualified_protected=qualified_protected,
        threshold=threshold,
    )


@dataclass(frozen=True)
class RankingCalculator:
    """
    Qualification bound to a configured cutoff.

    Usage:
        calculator = RankingCalculator.from_config(config)
        result = calculator.qualify(records)
    """
    top_n: int = DEFAULT_TOP_N

    @classmethod
    def from_config(cls, config: EngineConfig) -> RankingCalculator:
        return cls(top_n=config.top_n)

    def qualify(self, records: Iterable[ActivityRecord]) -> QualificationResult:
        result = qualify(records, self.top_n)
        logger.info(
            "Top %d threshold: %d mentions (regular=%d, special=%d, protected=%d)",
            self.top_n,
            result.threshold,
            len(result.qualified_regular),
            len(result.qualified_special),
            len(result.qualified_protected),
        )
        return result
