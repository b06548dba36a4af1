"""
Hierarch Exception Hierarchy

Domain-specific exceptions for the role qualification engine.
All exceptions include error codes for tracking and logging.

Exception codes follow the pattern: HR_<CATEGORY>_<SPECIFIC>

Fatal vs. per-user:
- Fatal errors abort the run before the grace store is written
  (ActivitySourceError, PrivilegedRoleNotFoundError, GraceStore*).
- Per-user errors are logged and only skip that user
  (MemberNotFoundError, RoleMutationError).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class HierarchError(Exception):
    """
    Base exception for all Hierarch errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (HR_*)
        details: Additional context about the error
        user_id: Associated user ID if applicable
    """
    message: str
    code: str = "HR_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    user_id: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.user_id:
            parts.append(f"(user: {self.user_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/reports."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.user_id:
            result["user_id"] = self.user_id
        return result


# =============================================================================
# Configuration Errors
# =============================================================================

@dataclass
class ConfigError(HierarchError):
    """Base for every configuration failure."""
    code: str = "HR_CONFIG_ERROR"


@dataclass
class ConfigLoadError(ConfigError):
    """Failed to read or parse a configuration file."""
    code: str = "HR_CONFIG_LOAD_ERROR"


@dataclass
class ConfigValidationError(ConfigError):
    """Configuration schema validation failed."""
    code: str = "HR_CONFIG_VALIDATION_ERROR"


@dataclass
class ConfigVersionMismatch(ConfigError):
    """Configuration schema version is not supported."""
    code: str = "HR_CONFIG_VERSION_MISMATCH"


# =============================================================================
# Collaborator Errors
# =============================================================================

@dataclass
class ActivitySourceError(HierarchError):
    """Activity evidence could not be collected completely."""
    code: str = "HR_ACTIVITY_SOURCE_ERROR"


@dataclass
class DirectoryError(HierarchError):
    """Membership directory failed."""
    code: str = "HR_DIRECTORY_ERROR"


@dataclass
class MemberNotFoundError(DirectoryError):
    """A user could not be found in the membership directory."""
    code: str = "HR_MEMBER_NOT_FOUND"


@dataclass
class PrivilegedRoleNotFoundError(DirectoryError):
    """The privileged role does not exist in the directory."""
    code: str = "HR_PRIVILEGED_ROLE_NOT_FOUND"


@dataclass
class RoleMutationError(HierarchError):
    """Granting or revoking the privileged role failed for one user."""
    code: str = "HR_ROLE_MUTATION_ERROR"


# =============================================================================
# Grace Store Errors
# =============================================================================

@dataclass
class GraceStoreError(HierarchError):
    """Grace store could not be used."""
    code: str = "HR_GRACE_STORE_ERROR"


@dataclass
class GraceStoreCorruptError(GraceStoreError):
    """Persisted grace data exists but cannot be trusted."""
    code: str = "HR_GRACE_STORE_CORRUPT"


@dataclass
class GraceStoreLockedError(GraceStoreError):
    """Another run currently holds the grace store."""
    code: str = "HR_GRACE_STORE_LOCKED"


@dataclass
class GraceStoreWriteError(GraceStoreError):
    """Writing the grace store back to durable storage failed."""
    code: str = "HR_GRACE_STORE_WRITE_ERROR"


# =============================================================================
# Run Control
# =============================================================================

@dataclass
class RunAbortedError(HierarchError):
    """
    A fatal condition stopped the run.

    phase is one of "state", "directory", "activity". The grace store is
    never written when this is raised.
    """
    code: str = "HR_RUN_ABORTED"
    phase: str = ""

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["phase"] = self.phase
        return result
