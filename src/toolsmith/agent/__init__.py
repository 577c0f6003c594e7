"""
Agent module for collaborator-driven tool admission.

This module contains:
- gate.py: Request gate (length ceiling, injection phrases)
- collaborator.py: Collaborator protocol, request and reply shapes
- prompt.py: System prompt and request rendering
- claude.py: Claude-backed collaborator (AnthropicCollaborator)
- session.py: Session phases and state
- outcomes.py: Terminal session outcomes
- orchestrator.py: The generate, validate, test loop
"""

from toolsmith.agent.claude import AnthropicCollaborator
from toolsmith.agent.collaborator import (
    BandedMatch,
    ChatTurn,
    Collaborator,
    CollaboratorAction,
    CollaboratorPhase,
    CollaboratorReply,
    CollaboratorRequest,
    Feedback,
)
from toolsmith.agent.gate import gate_request
from toolsmith.agent.orchestrator import AdmissionOrchestrator
from toolsmith.agent.outcomes import (
    FailedOutcome,
    ReadyOutcome,
    RedirectOutcome,
    RejectedOutcome,
    SessionOutcome,
    TimeoutOutcome,
)
from toolsmith.agent.prompt import SYSTEM_PROMPT, render_request
from toolsmith.agent.session import SessionPhase, SessionState

__all__ = [
    # Collaborator contract
    "BandedMatch",
    "ChatTurn",
    "Collaborator",
    "CollaboratorAction",
    "CollaboratorPhase",
    "CollaboratorReply",
    "CollaboratorRequest",
    "Feedback",
    "AnthropicCollaborator",
    # Prompt building
    "SYSTEM_PROMPT",
    "render_request",
    # Session
    "gate_request",
    "SessionPhase",
    "SessionState",
    "AdmissionOrchestrator",
    # Outcomes
    "FailedOutcome",
    "ReadyOutcome",
    "RedirectOutcome",
    "RejectedOutcome",
    "SessionOutcome",
    "TimeoutOutcome",
]
