"""Shared fixtures for toolsmith tests."""

import pytest

from toolsmith.catalog.loader import Catalog
from toolsmith.types import CandidateToolDefinition, ToolDescriptor


def definition_data(**overrides) -> dict:
    """Raw definition mapping for a small, valid uppercase tool."""
    data = {
        "slug": "shout",
        "name": "Shout",
        "description": "Uppercase the input text",
        "section": "custom",
        "aliases": ["uppercase"],
        "input_type": "text",
        "output_type": "text",
        "options": [],
        "transform_code": "return input.upper()",
        "examples": [{"input": "hi", "output": "HI"}],
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_definition():
    """Factory for CandidateToolDefinition with overridable fields."""

    def _make(**overrides) -> CandidateToolDefinition:
        return CandidateToolDefinition.model_validate(definition_data(**overrides))

    return _make


@pytest.fixture
def small_catalog() -> Catalog:
    """Catalog with a few entries, including an alias entry."""
    return Catalog(
        (
            ToolDescriptor(
                slug="base64-text",
                name="Base64 Encode / Decode",
                description="Encode text to Base64 or decode it back",
                aliases=("base64", "btoa", "atob"),
            ),
            ToolDescriptor(
                slug="hex-encode",
                name="Hex Encode / Decode",
                description="Convert text to/from hexadecimal representation",
                aliases=("hex",),
            ),
            ToolDescriptor(
                slug="uuid-generator",
                name="UUID Generator",
                description="Generate random identifiers",
                aliases=("uuid", "guid"),
                input_type="none",
            ),
            ToolDescriptor(
                slug="guid-generator",
                name="GUID Generator",
                description="Generate random identifiers",
                aliases=("guid",),
                input_type="none",
                canonical_slug="uuid-generator",
            ),
        )
    )
