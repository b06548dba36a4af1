"""
Hierarch Enumerations

All enums inherit from (str, Enum) for JSON serialization compatibility.
"""
from __future__ import annotations

from enum import Enum


# =============================================================================
# Tiers
# =============================================================================

class Tier(str, Enum):
    """
    Membership tier of an evidenced user.

    Precedence when a user holds roles of several tiers:
    PROTECTED > SPECIAL > REGULAR.
    """
    PROTECTED = "protected"    # Standing exemption, never removed
    SPECIAL = "special"        # Qualifies by beating the top-N threshold
    REGULAR = "regular"        # Competes for the top-N slots


# =============================================================================
# Grace Period
# =============================================================================

class GraceTransition(str, Enum):
    """
    One step of the grace-period state machine for a role holder.

    State transitions:
    NotTracked → STARTED(1) → CONTINUING(k) → EXPIRED (role removed)
         ↑___________ REQUALIFIED ___________|
    """
    REQUALIFIED = "requalified"
    STARTED = "grace_started"
    CONTINUING = "grace_continues"
    EXPIRED = "grace_expired"
    REMOVED = "removed"            # Grace disabled, immediate removal
    PROTECTED = "protected"        # Exempt, nothing tracked


class RemovalReason(str, Enum):
    """Why the privileged role is revoked."""
    GRACE_EXPIRED = "grace period expired"
    NOT_QUALIFIED = "not qualified"
