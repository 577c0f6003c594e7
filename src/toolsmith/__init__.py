"""
Toolsmith

Admission pipeline for generated data-transformation tools. A request is
matched against the tool catalog, and when nothing fits a collaborator
writes a new tool that must pass static analysis and a sandboxed smoke
test before it is offered back:

- Catalog: bundled tool descriptors and keyword matching
- Scripts: static analyzer and transform executor
- Agent: collaborator contract and the admission orchestrator
- CLI infrastructure: Typer-based command structure
"""

__version__ = "0.1.0"

from toolsmith.config import Settings, get_settings
from toolsmith.exceptions import (
    CatalogError,
    CollaboratorProtocolError,
    RequestRejectedError,
)
from toolsmith.types import (
    CandidateToolDefinition,
    InputKind,
    MatchBand,
    OptionType,
    OutputKind,
    ScoredMatch,
    ToolDescriptor,
    ToolExample,
    ToolOption,
    ValidationVerdict,
)

__all__ = [
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Errors
    "CatalogError",
    "CollaboratorProtocolError",
    "RequestRejectedError",
    # Data types
    "CandidateToolDefinition",
    "InputKind",
    "MatchBand",
    "OptionType",
    "OutputKind",
    "ScoredMatch",
    "ToolDescriptor",
    "ToolExample",
    "ToolOption",
    "ValidationVerdict",
]
