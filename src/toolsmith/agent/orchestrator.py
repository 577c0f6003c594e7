"""
Admission orchestrator: the generate, validate, test loop.

This module implements the orchestrator that:
- Gates the inbound request (length and injection phrases)
- Scores the request against the catalog and bands the matches
- Lets the collaborator redirect, refine the search, or generate
- Validates every candidate with the StaticAnalyzer
- Smoke-tests valid candidates with the ScriptExecutor
- Feeds verdicts and runtime errors back until the attempt ceiling

Per project patterns:
- The whole session runs under asyncio.wait_for with the session deadline
- Collaborator failures never escape: they become invalid verdicts
- Every run ends in exactly one SessionOutcome
"""

import asyncio
import dataclasses
import logging
from collections.abc import Sequence

from pydantic import ValidationError

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
from toolsmith.agent.outcomes import (
    FailedOutcome,
    ReadyOutcome,
    RedirectOutcome,
    RejectedOutcome,
    SessionOutcome,
    TimeoutOutcome,
)
from toolsmith.agent.prompt import SYSTEM_PROMPT
from toolsmith.agent.session import SessionPhase, SessionState
from toolsmith.catalog.loader import Catalog
from toolsmith.catalog.matcher import classify_band, score
from toolsmith.config import Settings, get_settings
from toolsmith.exceptions import CollaboratorProtocolError, RequestRejectedError
from toolsmith.scripts.executor import ScriptExecutor, representative_input
from toolsmith.scripts.outcomes import ErrorOutcome
from toolsmith.scripts.validation import StaticAnalyzer
from toolsmith.types import CandidateToolDefinition, ValidationVerdict

logger = logging.getLogger(__name__)

SUGGEST_SECURITY = "Review the FORBIDDEN capabilities list and remove any violations"
SUGGEST_SYNTAX = "Fix the syntax error in the transform code"
SUGGEST_STRUCTURE = "Ensure all required fields are present and valid"

DEFAULT_REDIRECT_REASON = "An existing tool already covers this request"


def add_suggestions(verdict: ValidationVerdict) -> ValidationVerdict:
    """
    Attach remediation hints to an invalid verdict.

    Args:
        verdict: Verdict from the analyzer (or a protocol failure)

    Returns:
        The same verdict for valid input, otherwise a copy with suggestions
    """
    if verdict.valid:
        return verdict

    suggestions = []
    if verdict.security_concerns:
        suggestions.append(SUGGEST_SECURITY)
    if any("syntax error" in issue for issue in verdict.issues):
        suggestions.append(SUGGEST_SYNTAX)
    if any("syntax error" not in issue for issue in verdict.issues):
        suggestions.append(SUGGEST_STRUCTURE)
    return dataclasses.replace(verdict, suggestions=suggestions or None)


def _summarize_validation_error(error: ValidationError) -> str:
    parts = []
    for detail in error.errors()[:5]:
        location = ".".join(str(part) for part in detail["loc"]) or "definition"
        parts.append(f"{location}: {detail['msg']}")
    if error.error_count() > 5:
        parts.append(f"and {error.error_count() - 5} more")
    return "; ".join(parts)


class AdmissionOrchestrator:
    """
    Drives one admission session at a time.

    The orchestrator owns a fresh SessionState per run and exposes it as
    `state` so callers and tests can inspect the path taken. Running two
    sessions concurrently on one instance is refused.

    Example:
        orchestrator = AdmissionOrchestrator(
            collaborator=AnthropicCollaborator(),
            catalog=load_catalog(),
        )
        outcome = await orchestrator.run("convert hex colors to rgb")
        if outcome.kind == "ready":
            save(outcome.definition)
    """

    def __init__(
        self,
        collaborator: Collaborator,
        catalog: Catalog,
        analyzer: StaticAnalyzer | None = None,
        executor: ScriptExecutor | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            collaborator: Generative collaborator to consult
            catalog: Loaded tool catalog (read-only)
            analyzer: Optional StaticAnalyzer (default rules if None)
            executor: Optional ScriptExecutor (created from settings if None)
            settings: Optional Settings (process settings if None)
        """
        self.settings = settings or get_settings()
        self.collaborator = collaborator
        self.catalog = catalog
        self.analyzer = analyzer or StaticAnalyzer()
        self.executor = executor or ScriptExecutor(
            timeout=self.settings.execution_timeout_seconds
        )
        self.state = SessionState()
        self._running = False

    async def run(
        self, request: str, history: Sequence[ChatTurn] = ()
    ) -> SessionOutcome:
        """
        Run one admission session.

        Args:
            request: Free-text tool request
            history: Prior conversation turns, oldest first

        Returns:
            The session's terminal outcome

        Raises:
            RuntimeError: If a session is already running on this instance
        """
        if self._running:
            raise RuntimeError("An admission session is already running")

        self._running = True
        self.state = SessionState()
        try:
            self.state.advance(SessionPhase.GATEKEEPING)
            try:
                text = gate_request(request, self.settings.max_request_chars)
            except RequestRejectedError as e:
                logger.info("Request rejected: %s", e.reason)
                self.state.advance(SessionPhase.REJECTED)
                return RejectedOutcome(reason=e.reason)

            try:
                return await asyncio.wait_for(
                    self._drive(text, tuple(history)),
                    timeout=self.settings.session_deadline_seconds,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Session deadline of %ss expired after %d attempt(s)",
                    self.settings.session_deadline_seconds,
                    self.state.attempts,
                )
                self.state.advance(SessionPhase.TIMED_OUT)
                return TimeoutOutcome(attempts=self.state.attempts)
        finally:
            self._running = False

    async def _drive(
        self, text: str, history: tuple[ChatTurn, ...]
    ) -> SessionOutcome:
        """Searching phase, then the bounded generation loop."""
        state = self.state
        state.advance(SessionPhase.SEARCHING)

        reply, query, matches = await self._decide(
            text, history, text, self._search(text)
        )

        if reply is not None and reply.action is CollaboratorAction.REDIRECT:
            target = (
                self.catalog.resolve_canonical(reply.redirect_slug)
                if reply.redirect_slug
                else None
            )
            if target is not None:
                state.redirect_suggested = True
                state.redirect_slug = target.slug
                state.advance(SessionPhase.REDIRECTED)
                logger.info("Redirecting to existing tool '%s'", target.slug)
                return RedirectOutcome(
                    slug=target.slug, reason=reply.reason or DEFAULT_REDIRECT_REASON
                )
            logger.warning(
                "Collaborator redirected to unknown slug %r; generating instead",
                reply.redirect_slug,
            )

        # A decide-phase reply that already carries a definition is attempt 1
        pending = None
        if (
            reply is not None
            and reply.action is not CollaboratorAction.SEARCH
            and reply.tool_definition is not None
        ):
            pending = reply

        feedback: Feedback | None = None
        max_attempts = self.settings.max_attempts

        while True:
            state.advance(SessionPhase.GENERATING)
            state.attempts += 1

            try:
                if pending is not None:
                    candidate_reply, pending = pending, None
                else:
                    candidate_reply = await self._ask(
                        self._request(
                            CollaboratorPhase.GENERATE,
                            text,
                            history,
                            query,
                            matches,
                            feedback,
                        )
                    )
                candidate, test_input = self._accept(candidate_reply)
            except CollaboratorProtocolError as e:
                logger.warning("Attempt %d: %s", state.attempts, e)
                candidate, test_input = None, None
                verdict = ValidationVerdict.from_findings([str(e)], [])
            else:
                state.candidate = candidate
                verdict = self.analyzer.analyze(candidate)

            state.advance(SessionPhase.VALIDATING)
            verdict = add_suggestions(verdict)
            state.verdict = verdict
            state.record_concerns(verdict.security_concerns)
            logger.info(
                "Attempt %d/%d verdict: valid=%s issues=%d concerns=%d",
                state.attempts,
                max_attempts,
                verdict.valid,
                len(verdict.issues),
                len(verdict.security_concerns or []),
            )

            if not verdict.valid:
                if state.attempts >= max_attempts:
                    state.advance(SessionPhase.FAILED)
                    return self._failed(verdict)
                state.advance(SessionPhase.RETRYING)
                feedback = Feedback(verdict=verdict)
                continue

            state.advance(SessionPhase.TESTING)
            outcome = await self.executor.execute(
                candidate.transform_code,
                representative_input(candidate, test_input),
                candidate.option_defaults(),
                time_limit=self.settings.execution_timeout_seconds,
            )

            if isinstance(outcome, ErrorOutcome):
                state.runtime_test_passed = False
                state.runtime_error = outcome.message
                logger.info("Attempt %d smoke test failed: %s", state.attempts, outcome.message)
                if state.attempts >= max_attempts:
                    state.advance(SessionPhase.FAILED)
                    return self._failed(verdict)
                state.advance(SessionPhase.TEST_RETRY)
                feedback = Feedback(verdict=verdict, runtime_error=outcome.message)
                continue

            state.runtime_test_passed = True
            state.advance(SessionPhase.SUCCEEDED)
            logger.info(
                "Tool '%s' admitted after %d attempt(s)", candidate.slug, state.attempts
            )
            return ReadyOutcome(
                definition=candidate,
                attempts=state.attempts,
                security_concerns_seen=list(state.security_concerns_seen),
                preview=outcome,
            )

    async def _decide(
        self,
        text: str,
        history: tuple[ChatTurn, ...],
        query: str,
        matches: list[BandedMatch],
    ) -> tuple[CollaboratorReply | None, str, list[BandedMatch]]:
        """
        Ask the collaborator whether to reuse, search again, or generate.

        Refined searches are honoured up to max_searches. A protocol
        failure here is not fatal: the session goes on to generation.

        Returns:
            (reply, query, matches) where reply is None if the collaborator
            failed, and query and matches are from the latest search
        """
        searches = 0
        while True:
            try:
                reply = await self._ask(
                    self._request(
                        CollaboratorPhase.DECIDE, text, history, query, matches, None
                    )
                )
            except CollaboratorProtocolError as e:
                logger.warning("Decide phase failed, generating instead: %s", e)
                return None, query, matches

            wants_search = (
                reply.action is CollaboratorAction.SEARCH
                and bool(reply.search_query)
                and searches < self.settings.max_searches
            )
            if not wants_search:
                return reply, query, matches

            searches += 1
            query = reply.search_query
            logger.info("Refined catalog search %d: %r", searches, query)
            self.state.advance(SessionPhase.SEARCHING)
            matches = self._search(query)

    def _search(self, query: str) -> list[BandedMatch]:
        matches = [
            BandedMatch(
                match=match,
                band=classify_band(
                    match.match_score,
                    self.settings.redirect_threshold,
                    self.settings.reference_threshold,
                ),
            )
            for match in score(query, self.catalog, limit=self.settings.match_limit)
        ]
        logger.debug("Catalog search %r -> %s", query, [m.match.slug for m in matches])
        return matches

    def _request(
        self,
        phase: CollaboratorPhase,
        text: str,
        history: tuple[ChatTurn, ...],
        query: str,
        matches: list[BandedMatch],
        feedback: Feedback | None,
    ) -> CollaboratorRequest:
        return CollaboratorRequest(
            instructions=SYSTEM_PROMPT,
            history=history,
            user_request=text,
            matches=tuple(matches),
            phase=phase,
            feedback=feedback,
            attempt=self.state.attempts,
            max_attempts=self.settings.max_attempts,
            search_query=query if query != text else None,
        )

    async def _ask(self, request: CollaboratorRequest) -> CollaboratorReply:
        """Call the collaborator; any failure becomes CollaboratorProtocolError."""
        try:
            reply = await self.collaborator.respond(request)
        except CollaboratorProtocolError:
            raise
        except Exception as e:
            raise CollaboratorProtocolError(f"{type(e).__name__}: {e}") from e

        if isinstance(reply, CollaboratorReply):
            return reply
        try:
            return CollaboratorReply.model_validate(reply)
        except ValidationError as e:
            raise CollaboratorProtocolError(_summarize_validation_error(e)) from e

    def _accept(
        self, reply: CollaboratorReply
    ) -> tuple[CandidateToolDefinition, str | None]:
        """
        Turn a generation reply into a candidate.

        Raises:
            CollaboratorProtocolError: If the reply has no definition or the
                definition does not fit CandidateToolDefinition
        """
        if reply.tool_definition is None:
            raise CollaboratorProtocolError(
                f"expected a tool definition, got action '{reply.action.value}' without one"
            )
        try:
            candidate = CandidateToolDefinition.model_validate(reply.tool_definition)
        except ValidationError as e:
            raise CollaboratorProtocolError(_summarize_validation_error(e)) from e
        return candidate, reply.test_input

    def _failed(self, verdict: ValidationVerdict) -> FailedOutcome:
        logger.info("Attempt ceiling reached after %d attempt(s)", self.state.attempts)
        return FailedOutcome(
            issues=list(verdict.issues),
            security_concerns=list(verdict.security_concerns or []),
            runtime_error=self.state.runtime_error,
            attempts=self.state.attempts,
        )
