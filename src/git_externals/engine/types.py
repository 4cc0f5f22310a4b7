"""Engine types (probed state, classifications, operation results)."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

DETACHED_HEAD = "HEAD"


class Status(str, Enum):
    OK = "ok"
    BROKEN = "broken"
    UNINITIALIZED = "uninitialized"


class Outcome(str, Enum):
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class ProbedState(BaseModel):
    """On-disk state of an external, computed fresh on every query.

    ``ahead`` and ``behind`` are ``None`` when no upstream data is available
    (no tracking branch, detached HEAD, never fetched).
    """

    exists: bool
    current_branch: str | None = None
    current_revision: str = ""
    dirty: bool = False
    untracked: bool = False
    remote_url: str = ""
    ahead: int | None = None
    behind: int | None = None


class ExternalStatus(BaseModel):
    name: str
    path: str
    status: Status
    reason: str = ""
    actual: str | None = None
    expected: str | None = None
    dirty: bool = False
    untracked: bool = False
    ahead: int | None = None
    behind: int | None = None

    @property
    def diverged(self) -> bool:
        """True when upstream data exists and either count is non-zero."""
        return bool(self.ahead or self.behind)


class StatusReport(BaseModel):
    entries: list[ExternalStatus] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def summary(self) -> dict[str, int]:
        counts = {s.value: 0 for s in Status}
        for e in self.entries:
            counts[e.status.value] += 1
        return counts

    @property
    def healthy(self) -> bool:
        return all(e.status != Status.BROKEN for e in self.entries)


class OperationResult(BaseModel):
    name: str
    action: str
    outcome: Outcome
    message: str = ""
    output: str = ""

    @property
    def failed(self) -> bool:
        return self.outcome == Outcome.FAILED
