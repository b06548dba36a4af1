"""
Hierarch - Role Qualification and Grace-Period Engine

Decides, once per period, which community members hold the "Hierarch"
role. Members are ranked by how often they were mentioned in tracked
channels over a trailing window; the top N regular members qualify,
special-role members qualify by beating the cut-off, and protected
members are never removed. Holders who drop out keep the role through a
grace period before it is revoked.

Core Principle: "The engine decides. Collaborators fetch and apply."

Quick Start:
    from hierarch import (
        load_config, RoleUpdateRun, JsonGraceStore,
        JsonActivitySource, JsonMembershipDirectory,
    )

    config = load_config("hierarch.yaml")
    run = RoleUpdateRun(
        config=config,
        activity=JsonActivitySource("activity.json"),
        directory=JsonMembershipDirectory("directory.json"),
        store=JsonGraceStore(config.state_path),
    )
    record = run.execute(period="2026-W42")

Version: 0.1.0
"""
from __future__ import annotations

__version__ = "0.1.0"

# =============================================================================
# Core Models (Re-exported for convenience)
# =============================================================================
from .models import (
    ActivityRecord,
    DecisionRecord,
    GraceEntry,
    GraceRecord,
    GraceTransition,
    MemberProfile,
    QualificationResult,
    RemovalReason,
    RemovedEntry,
    SkippedEntry,
    Tier,
)

# =============================================================================
# Configuration, Store, Collaborators
# =============================================================================
from .config import EngineConfig, config_from_env, config_from_mapping, load_config
from .store import GraceStore, GraceStoreBackend, JsonGraceStore, MemoryGraceStoreBackend
from .collaborators import (
    ActivitySource,
    JsonActivitySource,
    JsonMembershipDirectory,
    JsonRoleMutator,
    MembershipDirectory,
    Reporter,
    RoleMutator,
    SummaryPublisher,
)
from .activity import MentionScanner, Message, MessageFeed

# =============================================================================
# Engine and Reporting
# =============================================================================
from .engine import (
    DecisionComposer,
    GraceStateMachine,
    RankingCalculator,
    RoleUpdateRun,
    TierClassifier,
    qualify,
)
from .report import AnnouncementReporter, FileReporter, render_announcement, render_summary

from .exceptions import HierarchError, RunAbortedError

__all__ = [
    "__version__",
    # Models
    "ActivityRecord",
    "DecisionRecord",
    "GraceEntry",
    "GraceRecord",
    "GraceTransition",
    "MemberProfile",
    "QualificationResult",
    "RemovalReason",
    "RemovedEntry",
    "SkippedEntry",
    "Tier",
    # Configuration
    "EngineConfig",
    "config_from_env",
    "config_from_mapping",
    "load_config",
    # Store
    "GraceStore",
    "GraceStoreBackend",
    "JsonGraceStore",
    "MemoryGraceStoreBackend",
    # Collaborators
    "ActivitySource",
    "MembershipDirectory",
    "RoleMutator",
    "Reporter",
    "SummaryPublisher",
    "JsonActivitySource",
    "JsonMembershipDirectory",
    "JsonRoleMutator",
    "MentionScanner",
    "Message",
    "MessageFeed",
    # Engine
    "TierClassifier",
    "RankingCalculator",
    "qualify",
    "GraceStateMachine",
    "DecisionComposer",
    "RoleUpdateRun",
    # Reporting
    "render_summary",
    "render_announcement",
    "FileReporter",
    "AnnouncementReporter",
    # Errors
    "HierarchError",
    "RunAbortedError",
]
