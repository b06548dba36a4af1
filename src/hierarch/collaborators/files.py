"""
File-backed Collaborators

Snapshot files let the engine run end to end without a platform client,
e.g. from a scheduled export:

activity.json:
    {"<user_id>": <mentions>, ...}      (or {"mentions": {...}})

directory.json:
    {
      "roles": ["<role_id>", ...],
      "members": {"<user_id>": {"display_name": "...", "roles": ["..."]}}
    }

journal.jsonl (written by JsonRoleMutator), one action per line:
    {"action": "grant", "user_id": "...", "role_id": "...", "at": "..."}
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from ..canon import canonical_json, format_timestamp
from ..exceptions import (
    ActivitySourceError,
    DirectoryError,
    MemberNotFoundError,
    PrivilegedRoleNotFoundError,
    RoleMutationError,
)
from ..models import MemberProfile

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


class JsonActivitySource:
    """Mention counts from a JSON snapshot."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def mention_counts(self) -> dict[str, int]:
        try:
            data = _read_json(self.path)
        except (OSError, json.JSONDecodeError) as e:
            raise ActivitySourceError(
                message=f"Cannot read activity snapshot {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e

        if isinstance(data, dict) and isinstance(data.get("mentions"), dict):
            data = data["mentions"]
        if not isinstance(data, dict):
            raise ActivitySourceError(
                message="Activity snapshot must map user ids to mention counts",
                details={"path": str(self.path)},
            )

        counts: dict[str, int] = {}
        for user_id, count in data.items():
            if not isinstance(count, int) or isinstance(count, bool) or count < 0:
                raise ActivitySourceError(
                    message=f"Invalid mention count {count!r}",
                    details={"path": str(self.path)},
                    user_id=str(user_id),
                )
            counts[str(user_id)] = count
        logger.info("Loaded mention counts for %d users from %s", len(counts), self.path)
        return counts


class JsonMembershipDirectory:
    """Member profiles and role holders from a JSON snapshot."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._roles: Optional[frozenset[str]] = None
        self._members: dict[str, MemberProfile] = {}

    def _load(self) -> None:
        if self._roles is not None:
            return
        try:
            data = _read_json(self.path)
            roles = frozenset(str(r) for r in data.get("roles", []))
            members: dict[str, MemberProfile] = {}
            for user_id, raw in data.get("members", {}).items():
                members[str(user_id)] = MemberProfile(
                    user_id=str(user_id),
                    display_name=raw.get("display_name") or str(user_id),
                    role_ids=frozenset(str(r) for r in raw.get("roles", [])),
                )
        except (OSError, json.JSONDecodeError, AttributeError, TypeError) as e:
            raise DirectoryError(
                message=f"Cannot read directory snapshot {self.path}: {e}",
                details={"path": str(self.path)},
            ) from e
        self._roles = roles
        self._members = members

    def lookup(self, user_id: str) -> MemberProfile:
        self._load()
        profile = self._members.get(user_id)
        if profile is None:
            raise MemberNotFoundError(message="Member not found", user_id=user_id)
        return profile

    def privileged_role_holders(self, role_id: str) -> list[str]:
        self._load()
        if role_id not in (self._roles or frozenset()):
            raise PrivilegedRoleNotFoundError(
                message=f"Role {role_id} does not exist",
                details={"role_id": role_id},
            )
        return sorted(uid for uid, p in self._members.items() if p.has_role(role_id))


class JsonRoleMutator:
    """Appends grant/revoke actions to a JSONL journal for a later applier."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _append(self, entry: dict[str, Any]) -> None:
        entry["at"] = format_timestamp(datetime.now(timezone.utc))
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(canonical_json(entry) + "\n")
        except OSError as e:
            raise RoleMutationError(
                message=f"Cannot write journal {self.path}: {e}",
                user_id=entry.get("user_id"),
            ) from e

    def grant(self, user_id: str, role_id: str) -> None:
        self._append({"action": "grant", "user_id": user_id, "role_id": role_id})

    def revoke(self, user_id: str, role_id: str, reason: str) -> None:
        self._append({
            "action": "revoke", "user_id": user_id, "role_id": role_id, "reason": reason,
        })
