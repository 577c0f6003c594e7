"""
Terminal outcomes of an admission session.

Every run of the orchestrator ends in exactly one of these records. Each
carries a `kind` tag so callers can dispatch without isinstance checks,
and `to_dict` for JSON output.
"""

from dataclasses import dataclass, field
from typing import Any

from toolsmith.scripts.outcomes import TransformOutcome
from toolsmith.types import CandidateToolDefinition


@dataclass(frozen=True)
class RedirectOutcome:
    """An existing catalog entry already does what was asked."""

    slug: str
    reason: str
    kind: str = field(default="redirect", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "slug": self.slug, "reason": self.reason}


@dataclass(frozen=True)
class ReadyOutcome:
    """
    A candidate passed analysis and its smoke test.

    Attributes:
        definition: The admitted definition, ready for the caller to store
        attempts: Generation attempts the session took
        security_concerns_seen: Concerns raised by earlier attempts
        preview: What the smoke test produced
    """

    definition: CandidateToolDefinition
    attempts: int
    security_concerns_seen: list[str] = field(default_factory=list)
    preview: TransformOutcome | None = None
    kind: str = field(default="ready", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "definition": self.definition.model_dump(mode="json"),
            "attempts": self.attempts,
            "security_concerns_seen": list(self.security_concerns_seen),
            "preview": self.preview.to_dict() if self.preview else None,
        }


@dataclass(frozen=True)
class FailedOutcome:
    """
    The attempt ceiling was reached without an admissible candidate.

    Attributes:
        issues: Issues of the last verdict
        security_concerns: Concerns of the last verdict
        runtime_error: Last smoke-test error in the session, if any
        attempts: Generation attempts the session took
    """

    issues: list[str]
    security_concerns: list[str]
    runtime_error: str | None
    attempts: int
    kind: str = field(default="failed", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "issues": list(self.issues),
            "security_concerns": list(self.security_concerns),
            "runtime_error": self.runtime_error,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class RejectedOutcome:
    """The request failed the gate; nothing was generated."""

    reason: str
    kind: str = field(default="rejected", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "reason": self.reason}


@dataclass(frozen=True)
class TimeoutOutcome:
    """The session deadline expired."""

    attempts: int
    kind: str = field(default="timeout", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "attempts": self.attempts}


SessionOutcome = (
    RedirectOutcome | ReadyOutcome | FailedOutcome | RejectedOutcome | TimeoutOutcome
)
