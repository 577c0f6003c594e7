"""Static analysis of candidate tool definitions.

This module provides the StaticAnalyzer class which judges a generated
definition without running any of it:
  1. Forbidden capability scan - every capability pattern is checked
  2. Restricted topic scan - one aggregate concern for policy topics
  3. Slug format
  4. Input and output kind membership
  5. Option schema (type, select choices, number bounds, duplicate ids)
  6. Syntax - the body is compiled as a two-parameter function, never run,
     and must return rather than yield
  7. Size and brace caps
  8. Obfuscation heuristics
  9. Unbounded loop heuristic

Unlike a fail-fast validator, every layer runs so that the collaborator
sees all problems in one round. Scanning tables come from a ScanRules
value given at construction.
"""

import re
from dataclasses import dataclass, field

from toolsmith.scripts import patterns, source
from toolsmith.types import (
    VALID_INPUT_TYPES,
    VALID_OPTION_TYPES,
    VALID_OUTPUT_TYPES,
    CandidateToolDefinition,
    OptionType,
    ValidationVerdict,
)

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


@dataclass(frozen=True)
class ScanRules:
    """Immutable scanning tables for the analyzer.

    Attributes:
        forbidden: (compiled pattern, capability label) pairs
        restricted_topics: Lowercase substrings that mark a restricted topic
        obfuscation: Patterns whose presence suggests evasion
        unbounded_loops: Patterns for loops without an exit condition
        max_chars: Transform body character ceiling
        max_open_braces: Ceiling on ``{`` tokens in the body
    """

    forbidden: tuple[tuple[re.Pattern[str], str], ...] = ()
    restricted_topics: tuple[str, ...] = ()
    obfuscation: tuple[re.Pattern[str], ...] = ()
    unbounded_loops: tuple[re.Pattern[str], ...] = ()
    max_chars: int = patterns.MAX_TRANSFORM_CHARS
    max_open_braces: int = patterns.MAX_OPEN_BRACES
    restricted_topic_concern: str = field(default=patterns.RESTRICTED_TOPIC_CONCERN)

    @classmethod
    def from_tables(
        cls,
        forbidden: list[tuple[str, str]],
        restricted_topics: list[str],
        obfuscation: list[str],
        unbounded_loops: list[str],
        **caps: int,
    ) -> "ScanRules":
        """Compile raw pattern tables into a ScanRules value."""
        return cls(
            forbidden=tuple((re.compile(regex), label) for regex, label in forbidden),
            restricted_topics=tuple(topic.lower() for topic in restricted_topics),
            obfuscation=tuple(re.compile(regex) for regex in obfuscation),
            unbounded_loops=tuple(re.compile(regex) for regex in unbounded_loops),
            **caps,
        )


DEFAULT_RULES = ScanRules.from_tables(
    forbidden=patterns.FORBIDDEN_PATTERNS,
    restricted_topics=patterns.RESTRICTED_TOPICS,
    obfuscation=patterns.OBFUSCATION_PATTERNS,
    unbounded_loops=patterns.UNBOUNDED_LOOP_PATTERNS,
)


class StaticAnalyzer:
    """Pure judge of candidate definitions.

    The analyzer has no state besides its rules, so one instance can be
    shared freely. Suggestions are left to the caller.
    """

    def __init__(self, rules: ScanRules = DEFAULT_RULES):
        self.rules = rules

    def analyze(self, definition: CandidateToolDefinition) -> ValidationVerdict:
        """Run every check against a candidate definition.

        Args:
            definition: Candidate produced by the collaborator

        Returns:
            ValidationVerdict with issues and concerns in check order
        """
        issues: list[str] = []
        concerns: list[str] = []
        code = definition.transform_code

        concerns.extend(self._scan_forbidden(code))
        concerns.extend(self._scan_topics(definition))

        issues.extend(self._check_identity(definition))
        issues.extend(self._check_options(definition))
        issues.extend(self._check_syntax(code))
        issues.extend(self._check_caps(code))

        if any(pattern.search(code) for pattern in self.rules.obfuscation):
            concerns.append(patterns.OBFUSCATION_CONCERN)
        if any(pattern.search(code) for pattern in self.rules.unbounded_loops):
            concerns.append(patterns.UNBOUNDED_LOOP_CONCERN)

        return ValidationVerdict.from_findings(issues, concerns)

    def _scan_forbidden(self, code: str) -> list[str]:
        return [
            f"Forbidden pattern detected: {label}"
            for pattern, label in self.rules.forbidden
            if pattern.search(code)
        ]

    def _scan_topics(self, definition: CandidateToolDefinition) -> list[str]:
        haystack = " ".join(
            (definition.name, definition.description, definition.transform_code)
        ).lower()
        if any(topic in haystack for topic in self.rules.restricted_topics):
            return [self.rules.restricted_topic_concern]
        return []

    def _check_identity(self, definition: CandidateToolDefinition) -> list[str]:
        issues = []
        if not SLUG_PATTERN.match(definition.slug):
            issues.append("Slug must be lowercase alphanumeric with hyphens only")
        if definition.input_type not in VALID_INPUT_TYPES:
            issues.append(f"Invalid input_type: {definition.input_type}")
        if definition.output_type not in VALID_OUTPUT_TYPES:
            issues.append(f"Invalid output_type: {definition.output_type}")
        return issues

    def _check_options(self, definition: CandidateToolDefinition) -> list[str]:
        """Validate each option against its declared type.

        Args:
            definition: Candidate whose options are checked

        Returns:
            Issues in option order
        """
        issues = []
        seen: set[str] = set()

        for opt in definition.options:
            if opt.id in seen:
                issues.append(f'Duplicate option id "{opt.id}"')
            seen.add(opt.id)

            if opt.type not in VALID_OPTION_TYPES:
                issues.append(f'Invalid option type for "{opt.id}": {opt.type}')

            if opt.type == OptionType.SELECT.value and not opt.options:
                issues.append(f'Select option "{opt.id}" must have options array')

            if opt.type == OptionType.NUMBER.value:
                if opt.min is not None and opt.max is not None and opt.min > opt.max:
                    issues.append(f'Option "{opt.id}" has min > max')

        return issues

    def _check_syntax(self, code: str) -> list[str]:
        # Compile only; the body must never run during analysis
        try:
            statements = source.parse_body(code)
            module = source.build(statements, is_async=source.uses_await(statements))
            compile(module, source.TRANSFORM_FILENAME, "exec")
        except SyntaxError as e:
            return [
                f"Transform code has syntax error: {source.describe_syntax_error(e)}"
            ]
        except ValueError as e:
            # Older interpreters report null bytes this way
            return [f"Transform code has syntax error: {e}"]

        yielded = source.find_yield(statements)
        if yielded is not None:
            return [source.describe_yield(yielded)]
        return []

    def _check_caps(self, code: str) -> list[str]:
        issues = []
        if len(code) > self.rules.max_chars:
            issues.append(
                f"Transform code is too long (max {self.rules.max_chars} characters)"
            )
        if code.count("{") > self.rules.max_open_braces:
            issues.append("Code is too complex (excessive nesting)")
        return issues
