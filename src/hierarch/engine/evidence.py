"""
Evidence Collection

Turns raw mention counts into classified ActivityRecords:

1. Users with zero mentions are not evidence.
2. Each user is looked up in the membership directory; lookup failures
   exclude only that user.
3. Users without the baseline membership role are excluded.
4. The rest are classified into exactly one tier.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping

from ..collaborators import MembershipDirectory
from ..config import EngineConfig
from ..exceptions import DirectoryError
from ..models import ActivityRecord, Tier
from .tier_classifier import TierClassifier

logger = logging.getLogger(__name__)


@dataclass
class EvidenceResult:
    records: list[ActivityRecord] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    not_members: list[str] = field(default_factory=list)

    def count(self, tier: Tier) -> int:
        return sum(1 for r in self.records if r.tier == tier)


def collect_evidence(
    mention_counts: Mapping[str, int],
    directory: MembershipDirectory,
    config: EngineConfig,
    classifier: TierClassifier | None = None,
) -> EvidenceResult:
    """
    Build this run's ActivityRecords.

    Args:
        mention_counts: user_id → mentions in the window
        directory: Membership directory
        config: Engine configuration
        classifier: Tier classifier (built from config if omitted)

    Returns:
        EvidenceResult with records sorted by user_id
    """
    if classifier is None:
        classifier = TierClassifier.from_config(config)

    result = EvidenceResult()
    for user_id in sorted(mention_counts):
        count = mention_counts[user_id]
        if count < 1:
            continue

        try:
            profile = directory.lookup(user_id)
        except DirectoryError as e:
            logger.warning("Could not fetch user %s: %s", user_id, e, extra={"user_id": user_id})
            result.not_found.append(user_id)
            continue
        except Exception as e:
            logger.error("Lookup of user %s failed: %s", user_id, e, extra={"user_id": user_id})
            result.not_found.append(user_id)
            continue

        if not profile.has_role(config.member_role_id):
            result.not_members.append(user_id)
            continue

        result.records.append(ActivityRecord(
            user_id=user_id,
            display_name=profile.display_name,
            mention_count=count,
            tier=classifier.classify(profile),
            holds_privileged_role=profile.has_role(config.privileged_role_id),
        ))

    logger.info(
        "Regular members: %d, special role members: %d, protected members: %d",
        result.count(Tier.REGULAR), result.count(Tier.SPECIAL), result.count(Tier.PROTECTED),
    )
    return result
