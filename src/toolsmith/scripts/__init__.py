"""Transform script admission and execution.

This module judges generated transform bodies before they run and then
runs the accepted ones against a curated capability surface. Analysis is
purely static: bodies are parsed, never compiled, until the executor gets
them. Execution happens on a worker thread under a wall-clock budget.

Public exports:
    StaticAnalyzer: Judge of candidate definitions
    ScanRules: Immutable scanning tables
    DEFAULT_RULES: ScanRules built from the bundled pattern tables
    ScriptExecutor: Transform runner
    ExampleResult: Result of running one definition example
    representative_input: Smoke-test input for a definition
    TransformOutcome: Union of the outcome records below
    TextOutcome: Plain text result
    ErrorOutcome: Failure result
    AlternativeOutcome: Tagged non-text result
    normalize_result: Raw return value to TransformOutcome
"""

from toolsmith.scripts.executor import (
    ExampleResult,
    ScriptExecutor,
    representative_input,
)
from toolsmith.scripts.outcomes import (
    AlternativeOutcome,
    ErrorOutcome,
    TextOutcome,
    TransformOutcome,
    normalize_result,
)
from toolsmith.scripts.validation import DEFAULT_RULES, ScanRules, StaticAnalyzer

__all__ = [
    "StaticAnalyzer",
    "ScanRules",
    "DEFAULT_RULES",
    "ScriptExecutor",
    "ExampleResult",
    "representative_input",
    "TransformOutcome",
    "TextOutcome",
    "ErrorOutcome",
    "AlternativeOutcome",
    "normalize_result",
]
