"""
Hierarch Models

    from hierarch.models import (
        # Enums
        Tier, GraceTransition, RemovalReason,
        # Inputs
        MemberProfile, ActivityRecord,
        # Outputs
        QualificationResult, GraceRecord, DecisionRecord,
    )
"""
from __future__ import annotations

from .activity import ActivityRecord, MemberProfile
from .decision import (
    DecisionRecord,
    GraceEntry,
    MutationFailure,
    RemovedEntry,
    SkippedEntry,
)
from .enums import GraceTransition, RemovalReason, Tier
from .grace import GraceRecord
from .qualification import QualificationResult

__all__ = [
    # Enums
    "Tier",
    "GraceTransition",
    "RemovalReason",
    # Activity
    "MemberProfile",
    "ActivityRecord",
    # Qualification
    "QualificationResult",
    # Grace
    "GraceRecord",
    # Decision
    "DecisionRecord",
    "RemovedEntry",
    "GraceEntry",
    "SkippedEntry",
    "MutationFailure",
]
