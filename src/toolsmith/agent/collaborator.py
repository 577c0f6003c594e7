"""
Contract between the orchestrator and the generative collaborator.

The collaborator is an external, non-deterministic model. The orchestrator
talks to it through one call, `respond`, and treats every reply as
untrusted: a tool definition arrives as a raw mapping and is validated by
the orchestrator before anything else looks at it.

This module contains:
- CollaboratorAction / CollaboratorPhase: closed vocabularies
- ChatTurn: One prior conversation turn
- BandedMatch: Catalog match with its reuse band
- Feedback: Remediation context from the previous attempt
- CollaboratorRequest: Everything the collaborator sees for one call
- CollaboratorReply: What the collaborator answers
- Collaborator: Protocol implemented by collaborator adapters
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from toolsmith.types import MatchBand, ScoredMatch, ValidationVerdict


class CollaboratorAction(str, Enum):
    """What the collaborator chose to do."""

    SEARCH = "search"
    REDIRECT = "redirect"
    GENERATE = "generate"
    TEST = "test"


class CollaboratorPhase(str, Enum):
    """Which question the orchestrator is asking."""

    DECIDE = "decide"
    """Reuse an existing tool, search again, or start generating."""

    GENERATE = "generate"
    """Produce a complete tool definition."""


class ChatTurn(BaseModel):
    """One prior turn of the conversation with the requester."""

    role: Literal["user", "assistant"]
    content: str


@dataclass(frozen=True)
class BandedMatch:
    """A scored catalog match with its reuse band attached."""

    match: ScoredMatch
    band: MatchBand

    def to_dict(self) -> dict[str, Any]:
        return dict(self.match.to_dict(), band=self.band.value)


@dataclass(frozen=True)
class Feedback:
    """
    Remediation context carried into the next generation request.

    Attributes:
        verdict: Verdict of the previous candidate, suggestions included
        runtime_error: Smoke-test error of the previous candidate, if it ran
    """

    verdict: ValidationVerdict | None = None
    runtime_error: str | None = None


@dataclass(frozen=True)
class CollaboratorRequest:
    """
    One request to the collaborator.

    Attributes:
        instructions: Instruction preamble (system prompt)
        history: Prior conversation turns, oldest first
        user_request: The gated request text
        matches: Catalog matches for the latest query, best first
        phase: DECIDE or GENERATE
        feedback: What went wrong last time, if anything
        attempt: Number of the generation attempt this request feeds
        max_attempts: Attempt ceiling for the session
        search_query: Query the matches were computed for
    """

    instructions: str
    history: tuple[ChatTurn, ...]
    user_request: str
    matches: tuple[BandedMatch, ...]
    phase: CollaboratorPhase
    feedback: Feedback | None = None
    attempt: int = 0
    max_attempts: int = 5
    search_query: str | None = None


class CollaboratorReply(BaseModel):
    """
    A collaborator's answer.

    tool_definition stays a plain mapping here; the orchestrator decides
    whether it is a usable CandidateToolDefinition.
    """

    action: CollaboratorAction = Field(..., description="search | redirect | generate | test")
    reasoning: str = Field(default="", description="Why this action was chosen")
    tool_definition: dict[str, Any] | None = Field(
        default=None, description="Complete tool definition for generate/test"
    )
    redirect_slug: str | None = Field(
        default=None, description="Catalog slug to send the user to"
    )
    reason: str | None = Field(default=None, description="Explanation shown to the user")
    search_query: str | None = Field(default=None, description="Refined catalog query")
    test_input: str | None = Field(
        default=None, description="Sample input for the smoke test"
    )


@runtime_checkable
class Collaborator(Protocol):
    """
    Protocol for generative collaborators.

    Implementations raise CollaboratorProtocolError for API failures,
    refusals, and replies that do not fit CollaboratorReply.
    """

    async def respond(self, request: CollaboratorRequest) -> CollaboratorReply:
        """Answer one orchestrator request."""
        ...
