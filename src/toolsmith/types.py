"""
Core data types for the tool admission pipeline.

This module defines the data structures shared by every stage:
- InputKind / OutputKind / OptionType: closed vocabularies for tool shape
- ToolDescriptor: Immutable catalog entry
- ToolOption / SelectChoice / ToolExample: Building blocks of a definition
- CandidateToolDefinition: Generated tool awaiting admission
- ValidationVerdict: Structured judgment from the static analyzer
- ScoredMatch: Catalog entry scored against a query

Per project patterns:
- Use str enum for JSON serialization compatibility
- Pydantic BaseModel for anything exchanged with the collaborator
- Dataclasses for results produced locally
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class InputKind(str, Enum):
    """How a tool receives its input."""

    TEXT = "text"
    FILE = "file"
    DUAL = "dual"
    NONE = "none"


class OutputKind(str, Enum):
    """How a tool's output is presented."""

    TEXT = "text"
    IMAGE = "image"
    DOWNLOAD = "download"
    PREVIEW = "preview"
    TABLE = "table"
    IMAGE_RESULT = "image-result"
    COLOR = "color"
    DIFF = "diff"


class OptionType(str, Enum):
    """Control type for a tool option."""

    TOGGLE = "toggle"
    SELECT = "select"
    NUMBER = "number"
    TEXT = "text"


VALID_INPUT_TYPES = frozenset(kind.value for kind in InputKind)
VALID_OUTPUT_TYPES = frozenset(kind.value for kind in OutputKind)
VALID_OPTION_TYPES = frozenset(kind.value for kind in OptionType)


class ToolDescriptor(BaseModel):
    """
    A catalog entry describing an existing tool.

    Loaded once at process start and never mutated afterwards.

    Attributes:
        slug: Unique identifier (lowercase, hyphens)
        name: Display name
        description: One-line summary
        aliases: Alternative search terms
        input_type: How the tool receives input
        output_type: How the tool presents output
        section: Catalog grouping
        canonical_slug: Slug of the entry this one is an alias of, if any
    """

    model_config = ConfigDict(frozen=True)

    slug: str = Field(..., description="Unique identifier (lowercase, hyphens)")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="One-line summary")
    aliases: tuple[str, ...] = Field(default=(), description="Alternative search terms")
    input_type: InputKind = Field(default=InputKind.TEXT)
    output_type: OutputKind = Field(default=OutputKind.TEXT)
    section: str = Field(default="custom", description="Catalog grouping")
    canonical_slug: str | None = Field(
        default=None, description="Slug of the entry this one is an alias of"
    )


class SelectChoice(BaseModel):
    """One choice of a select option."""

    value: str
    label: str


class ToolOption(BaseModel):
    """
    A configurable option exposed by a tool.

    The type is kept as a plain string so that an unknown value produced
    by the collaborator is reported by the analyzer rather than rejected
    during parsing.
    """

    id: str = Field(..., description="Option key passed to the transform")
    label: str = Field(default="", description="Display label")
    type: str = Field(..., description="toggle | select | number | text")
    default: Any = Field(default=None, description="Value used when unset")
    options: list[SelectChoice] | None = Field(
        default=None, description="Choices for select options"
    )
    min: float | None = Field(default=None, description="Lower bound for numbers")
    max: float | None = Field(default=None, description="Upper bound for numbers")
    step: float | None = Field(default=None, description="Increment for numbers")


class ToolExample(BaseModel):
    """An example input (and optionally expected output) for a tool."""

    name: str | None = None
    input: str
    output: str | None = None


class CandidateToolDefinition(BaseModel):
    """
    A generated tool definition awaiting admission.

    Same shape as ToolDescriptor plus the transform script and its
    presentation details. A new attempt always produces a whole new
    value; definitions are never patched in place.
    """

    model_config = ConfigDict(frozen=True)

    slug: str = Field(..., description="URL-friendly identifier (lowercase, hyphens)")
    name: str = Field(..., description="Clear, concise name")
    description: str = Field(default="", description="What the tool does")
    section: str = Field(default="custom")
    aliases: list[str] = Field(default_factory=list, description="Search terms")
    input_type: str = Field(..., description="text | file | dual | none")
    output_type: str = Field(
        ...,
        description="text | image | download | preview | table | image-result | color | diff",
    )
    canonical_slug: str | None = None
    options: list[ToolOption] = Field(default_factory=list)
    transform_code: str = Field(
        ..., description="Python function body receiving (input, options)"
    )
    examples: list[ToolExample] | None = None
    allow_swap: bool | None = None
    input_placeholder: str | None = None
    output_placeholder: str | None = None

    def option_defaults(self) -> dict[str, Any]:
        """Map each option id to its default value."""
        return {opt.id: opt.default for opt in self.options}


@dataclass(frozen=True)
class ValidationVerdict:
    """
    Result of static analysis of a candidate definition.

    Attributes:
        valid: True only when there are no issues and no security concerns
        issues: Structural or correctness problems, in discovery order
        security_concerns: Forbidden-capability findings, or None
        suggestions: Remediation hints (filled in by the orchestrator), or None
    """

    valid: bool
    issues: list[str] = field(default_factory=list)
    security_concerns: list[str] | None = None
    suggestions: list[str] | None = None

    @classmethod
    def from_findings(
        cls,
        issues: list[str],
        security_concerns: list[str],
        suggestions: list[str] | None = None,
    ) -> "ValidationVerdict":
        """Build a verdict whose validity follows from its findings."""
        return cls(
            valid=not issues and not security_concerns,
            issues=list(issues),
            security_concerns=list(security_concerns) if security_concerns else None,
            suggestions=list(suggestions) if suggestions else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "issues": list(self.issues),
            "security_concerns": (
                list(self.security_concerns) if self.security_concerns else None
            ),
            "suggestions": list(self.suggestions) if self.suggestions else None,
        }


class MatchBand(str, Enum):
    """How close a catalog match is to a request."""

    CLOSE = "close"
    """Very close match; reuse is likely appropriate."""

    SIMILAR = "similar"
    """Related tool; useful as a style reference."""

    UNRELATED = "unrelated"
    """No meaningful relation."""


@dataclass(frozen=True)
class ScoredMatch:
    """A catalog entry scored against a query. Never persisted."""

    tool: ToolDescriptor
    match_score: int

    @property
    def slug(self) -> str:
        return self.tool.slug

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.tool.slug,
            "name": self.tool.name,
            "description": self.tool.description,
            "match_score": self.match_score,
        }
