"""
Claude-backed collaborator.

Per project patterns:
- Uses AsyncAnthropic for non-blocking API calls
- Uses beta structured outputs with a pydantic output format
- Checks stop_reason for refusal/max_tokens
- Converts API errors into CollaboratorProtocolError; the orchestrator
  decides whether to retry

The structured-output schema (ReplyFormat) is deliberately loose and
separate from CandidateToolDefinition: the model is asked for a shape,
and the orchestrator validates whatever comes back.
"""

import logging

import anthropic
from anthropic import AsyncAnthropic
from pydantic import BaseModel, Field, ValidationError

from toolsmith.agent.collaborator import (
    CollaboratorAction,
    CollaboratorReply,
    CollaboratorRequest,
)
from toolsmith.agent.prompt import render_request
from toolsmith.exceptions import CollaboratorProtocolError

logger = logging.getLogger(__name__)

STRUCTURED_OUTPUTS_BETA = "structured-outputs-2025-11-13"


class ChoiceFormat(BaseModel):
    value: str
    label: str


class OptionFormat(BaseModel):
    """Tool option as the model writes it."""

    id: str
    label: str
    type: str = Field(description="toggle | select | number | text")
    default: str | float | bool | None = None
    options: list[ChoiceFormat] | None = Field(
        default=None, description="Choices, required for select options"
    )
    min: float | None = None
    max: float | None = None
    step: float | None = None


class ExampleFormat(BaseModel):
    name: str | None = None
    input: str
    output: str | None = None


class DefinitionFormat(BaseModel):
    """Tool definition as the model writes it."""

    slug: str = Field(description="URL-friendly identifier (lowercase, hyphens)")
    name: str
    description: str
    section: str = "custom"
    aliases: list[str] = Field(default_factory=list)
    input_type: str = Field(description="text | file | dual | none")
    output_type: str = Field(
        description="text | image | download | preview | table | image-result | color | diff"
    )
    options: list[OptionFormat] = Field(default_factory=list)
    transform_code: str = Field(
        description="Python function body receiving (input, options)"
    )
    examples: list[ExampleFormat] | None = None
    allow_swap: bool | None = None
    input_placeholder: str | None = None
    output_placeholder: str | None = None


class ReplyFormat(BaseModel):
    """Structured output requested from Claude."""

    action: CollaboratorAction
    reasoning: str = Field(description="Brief explanation of the choice")
    tool_definition: DefinitionFormat | None = None
    redirect_slug: str | None = None
    reason: str | None = None
    search_query: str | None = None
    test_input: str | None = None


class AnthropicCollaborator:
    """
    Collaborator that asks Claude through the Messages API.

    Example:
        collaborator = AnthropicCollaborator(model="claude-sonnet-4-5")
        orchestrator = AdmissionOrchestrator(collaborator, catalog)
        outcome = await orchestrator.run("convert epoch seconds to ISO dates")
    """

    def __init__(
        self,
        client: AsyncAnthropic | None = None,
        model: str = "claude-sonnet-4-5",
        max_tokens: int = 8192,
    ) -> None:
        """
        Initialize collaborator.

        Args:
            client: Optional AsyncAnthropic client (created if None)
            model: Claude model to use (default claude-sonnet-4-5)
            max_tokens: Response token ceiling
        """
        self.client = client or AsyncAnthropic()
        self.model = model
        self.max_tokens = max_tokens

    async def respond(self, request: CollaboratorRequest) -> CollaboratorReply:
        """
        Ask Claude for the next step.

        Args:
            request: Orchestrator request

        Returns:
            CollaboratorReply with tool_definition as a plain mapping

        Raises:
            CollaboratorProtocolError: On API errors, refusals, or a
                missing structured result
        """
        messages = [
            {"role": turn.role, "content": turn.content} for turn in request.history
        ]
        messages.append({"role": "user", "content": render_request(request)})

        try:
            response = await self.client.beta.messages.parse(
                model=self.model,
                max_tokens=self.max_tokens,
                betas=[STRUCTURED_OUTPUTS_BETA],
                system=request.instructions,
                messages=messages,
                output_format=ReplyFormat,
            )
        except anthropic.APIConnectionError as e:
            logger.warning("API connection error: %s", e)
            raise CollaboratorProtocolError(f"API connection error: {e}") from e
        except anthropic.APIError as e:
            logger.warning("API error: %s", e)
            raise CollaboratorProtocolError(f"API error: {e}") from e
        except ValidationError as e:
            raise CollaboratorProtocolError(
                f"structured output did not match schema ({e.error_count()} errors)"
            ) from e

        if response.stop_reason == "refusal":
            raise CollaboratorProtocolError("Claude refused to answer")

        if response.stop_reason == "max_tokens":
            logger.warning("Collaborator response truncated at %d tokens", self.max_tokens)

        parsed = response.parsed_output
        if parsed is None:
            raise CollaboratorProtocolError("no structured output in response")

        return CollaboratorReply(
            action=parsed.action,
            reasoning=parsed.reasoning,
            tool_definition=(
                parsed.tool_definition.model_dump(exclude_none=True)
                if parsed.tool_definition
                else None
            ),
            redirect_slug=parsed.redirect_slug,
            reason=parsed.reason,
            search_query=parsed.search_query,
            test_input=parsed.test_input,
        )
