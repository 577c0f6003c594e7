"""
Session state for one admission run.

SessionState is owned by a single AdmissionOrchestrator run and only
changes through `advance` plus the counters the orchestrator updates
alongside it. Illegal transitions raise ValueError: they are bugs in the
orchestrator, not session outcomes.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from toolsmith.types import CandidateToolDefinition, ValidationVerdict

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    """Phases of the admission state machine."""

    IDLE = "idle"
    GATEKEEPING = "gatekeeping"
    SEARCHING = "searching"
    REDIRECTED = "redirected"
    GENERATING = "generating"
    VALIDATING = "validating"
    RETRYING = "retrying"
    TESTING = "testing"
    TEST_RETRY = "test_retry"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"


TERMINAL_PHASES = frozenset(
    {
        SessionPhase.REDIRECTED,
        SessionPhase.SUCCEEDED,
        SessionPhase.FAILED,
        SessionPhase.REJECTED,
        SessionPhase.TIMED_OUT,
    }
)

ALLOWED_TRANSITIONS: dict[SessionPhase, frozenset[SessionPhase]] = {
    SessionPhase.IDLE: frozenset({SessionPhase.GATEKEEPING}),
    SessionPhase.GATEKEEPING: frozenset({SessionPhase.SEARCHING, SessionPhase.REJECTED}),
    # A refined search re-enters searching
    SessionPhase.SEARCHING: frozenset(
        {SessionPhase.SEARCHING, SessionPhase.REDIRECTED, SessionPhase.GENERATING}
    ),
    SessionPhase.GENERATING: frozenset({SessionPhase.VALIDATING}),
    SessionPhase.VALIDATING: frozenset(
        {SessionPhase.RETRYING, SessionPhase.TESTING, SessionPhase.FAILED}
    ),
    SessionPhase.RETRYING: frozenset({SessionPhase.GENERATING}),
    SessionPhase.TESTING: frozenset(
        {SessionPhase.TEST_RETRY, SessionPhase.SUCCEEDED, SessionPhase.FAILED}
    ),
    SessionPhase.TEST_RETRY: frozenset({SessionPhase.GENERATING}),
}


@dataclass
class SessionState:
    """
    Mutable state of one admission session.

    Attributes:
        candidate: Last candidate definition, or None
        verdict: Last verdict, or None
        runtime_test_passed: Whether the last smoke test succeeded
        attempts: Generation attempts taken (never decreases)
        redirect_suggested: Whether the session ended in a redirect
        redirect_slug: Canonical slug of the redirect target
        phase: Current phase
        runtime_error: Last smoke-test error message, or None
        security_concerns_seen: Every distinct concern raised, first-seen order
        transitions: (from, to) pairs in the order they were taken
    """

    candidate: CandidateToolDefinition | None = None
    verdict: ValidationVerdict | None = None
    runtime_test_passed: bool = False
    attempts: int = 0
    redirect_suggested: bool = False
    redirect_slug: str | None = None
    phase: SessionPhase = SessionPhase.IDLE
    runtime_error: str | None = None
    security_concerns_seen: list[str] = field(default_factory=list)
    transitions: list[tuple[SessionPhase, SessionPhase]] = field(default_factory=list)

    @property
    def finished(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def advance(self, phase: SessionPhase) -> None:
        """
        Move to a new phase.

        Any non-terminal phase may move to TIMED_OUT; everything else
        must follow ALLOWED_TRANSITIONS.

        Raises:
            ValueError: If the transition is not allowed
        """
        allowed = ALLOWED_TRANSITIONS.get(self.phase, frozenset())
        timing_out = phase is SessionPhase.TIMED_OUT and not self.finished
        if phase not in allowed and not timing_out:
            raise ValueError(
                f"Illegal session transition {self.phase.value} -> {phase.value}"
            )

        logger.debug("Session %s -> %s", self.phase.value, phase.value)
        self.transitions.append((self.phase, phase))
        self.phase = phase

    def record_concerns(self, concerns: list[str] | None) -> None:
        for concern in concerns or []:
            if concern not in self.security_concerns_seen:
                self.security_concerns_seen.append(concern)

    def visited(self, phase: SessionPhase) -> bool:
        return any(target is phase for _, target in self.transitions)
