"""
Collaborator Interfaces

The engine talks to the outside world only through these protocols, so
each one can be replaced by a fake in tests or by a platform adapter in
production:

- ActivitySource: mention counts for the trailing window
- MembershipDirectory: member profiles and current role holders
- RoleMutator: applies grants and revokes
- Reporter: consumes the finished DecisionRecord
- SummaryPublisher: posts rendered text to a channel
"""
from __future__ import annotations

from typing import Mapping, Optional, Protocol, runtime_checkable

from ..models import DecisionRecord, MemberProfile


@runtime_checkable
class ActivitySource(Protocol):
    def mention_counts(self) -> Mapping[str, int]:
        """
        Mentions per user over the whole window.

        Must raise ActivitySourceError rather than return partial counts.
        """
        ...


@runtime_checkable
class MembershipDirectory(Protocol):
    def lookup(self, user_id: str) -> MemberProfile:
        """Raises MemberNotFoundError for unknown users."""
        ...

    def privileged_role_holders(self, role_id: str) -> list[str]:
        """Raises PrivilegedRoleNotFoundError when the role does not exist."""
        ...


@runtime_checkable
class RoleMutator(Protocol):
    def grant(self, user_id: str, role_id: str) -> None: ...

    def revoke(self, user_id: str, role_id: str, reason: str) -> None: ...


@runtime_checkable
class Reporter(Protocol):
    def report(self, record: DecisionRecord) -> None: ...


@runtime_checkable
class SummaryPublisher(Protocol):
    def post(self, channel_id: Optional[str], content: str) -> None: ...
