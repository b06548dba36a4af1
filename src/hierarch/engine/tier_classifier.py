"""
Tier Classifier

Assigns every evidenced user exactly one tier by precedence:

    PROTECTED > SPECIAL > REGULAR

A member holding both a protected and a special role is PROTECTED.
Members without the baseline membership role never reach the classifier;
that pre-filter lives in hierarch.engine.evidence.

Pure functions, no side effects.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..config import EngineConfig
from ..models import MemberProfile, Tier


def classify_tier(
    role_ids: Iterable[str],
    protected_role_ids: frozenset[str],
    special_role_ids: frozenset[str],
) -> Tier:
    """
    Classify a role set.

    Example:
        >>> classify_tier({"mod", "vip"}, frozenset({"mod"}), frozenset({"vip"}))
        <Tier.PROTECTED: 'protected'>
    """
    roles = frozenset(role_ids)
    if not roles.isdisjoint(protected_role_ids):
        return Tier.PROTECTED
    if not roles.isdisjoint(special_role_ids):
        return Tier.SPECIAL
    return Tier.REGULAR


@dataclass(frozen=True)
class TierClassifier:
    """
    Tier classification bound to the configured role identifiers.

    Usage:
        classifier = TierClassifier.from_config(config)
        tier = classifier.classify(profile)
    """
    protected_role_ids: frozenset[str] = field(default_factory=frozenset)
    special_role_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_config(cls, config: EngineConfig) -> TierClassifier:
        return cls(
            protected_role_ids=config.protected_role_ids,
            special_role_ids=config.special_role_ids,
        )

    def classify(self, profile: MemberProfile) -> Tier:
        return classify_tier(
            profile.role_ids, self.protected_role_ids, self.special_role_ids
        )

    def is_protected(self, profile: MemberProfile) -> bool:
        return profile.has_any_role(self.protected_role_ids)
