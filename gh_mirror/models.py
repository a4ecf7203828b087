"""
Mirror Models — Repository descriptors and per-repository sync results.

Descriptors are built by the lister from API payloads and never mutated.
Results are produced once per repository and aggregated into a report.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SyncStatus = Literal["cloned", "updated", "failed", "planned-clone", "planned-update"]


class RepositoryDescriptor(BaseModel):
    """A remote repository as seen by the mirror."""

    model_config = ConfigDict(frozen=True)

    name: str
    clone_url: str
    description: Optional[str] = None
    fork: bool = False
    private: bool = False

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], url_field: str = "clone_url") -> "RepositoryDescriptor":
        """Create a descriptor from a GitHub API repository object."""
        return cls(
            name=payload.get("name") or "",
            clone_url=payload[url_field],
            description=payload.get("description"),
            fork=bool(payload.get("fork")),
            private=bool(payload.get("private")),
        )


class SyncResult(BaseModel):
    """Outcome of synchronizing one repository."""

    clone_url: str
    status: SyncStatus
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status != "failed"

    @classmethod
    def success(cls, clone_url: str, status: SyncStatus, duration_seconds: float = 0.0) -> "SyncResult":
        return cls(clone_url=clone_url, status=status, duration_seconds=duration_seconds)

    @classmethod
    def failure(cls, clone_url: str, error: str, duration_seconds: float = 0.0) -> "SyncResult":
        return cls(
            clone_url=clone_url,
            status="failed",
            error=error,
            duration_seconds=duration_seconds,
        )


class SyncReport(BaseModel):
    """Aggregate of every result from one mirror run."""

    results: List[SyncResult] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)
