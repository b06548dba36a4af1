"""
Hierarch Engine

Core services for one qualification run.

Services:
- TierClassifier: Protected > Special > Regular precedence
- RankingCalculator: Top-N ranking, threshold, special qualification
- GraceStateMachine: Grace-period transitions for disqualified holders
- DecisionComposer: Add / remove / grace / skip decisions
- RoleUpdateRun: End-to-end orchestration with collaborators

Usage:
    from hierarch.engine import RoleUpdateRun

    record = RoleUpdateRun(config, activity, directory, store).execute()
"""
from __future__ import annotations

from .decision_composer import DecisionComposer
from .evidence import EvidenceResult, collect_evidence
from .grace_machine import GraceStateMachine, GraceStep
from .ranking import (
    RankingCalculator,
    compute_threshold,
    qualify,
    rank_records,
    ranking_key,
)
from .run import RoleUpdateRun
from .tier_classifier import TierClassifier, classify_tier

__all__ = [
    # Tier Classifier
    "TierClassifier",
    "classify_tier",
    # Ranking
    "RankingCalculator",
    "qualify",
    "rank_records",
    "ranking_key",
    "compute_threshold",
    # Evidence
    "EvidenceResult",
    "collect_evidence",
    # Grace
    "GraceStateMachine",
    "GraceStep",
    # Composition
    "DecisionComposer",
    "RoleUpdateRun",
]
