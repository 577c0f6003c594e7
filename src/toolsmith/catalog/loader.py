"""
Catalog loading and lookup.

The catalog is a JSON list of descriptor objects. The bundled catalog
ships as package data; a different file can be supplied through
settings or the CLI. Loading validates every entry and fails with a
CatalogError listing all problems found.
"""

import json
import logging
from importlib import resources
from pathlib import Path

from pydantic import ValidationError

from toolsmith.exceptions import CatalogError
from toolsmith.types import ToolDescriptor

logger = logging.getLogger(__name__)

BUILTIN_CATALOG = "builtin_catalog.json"


class Catalog:
    """
    Immutable, ordered collection of tool descriptors.

    Iteration order is the source order, which the matcher relies on
    for tie-breaking.
    """

    def __init__(self, tools: tuple[ToolDescriptor, ...]) -> None:
        self._tools = tools
        self._by_slug = {tool.slug: tool for tool in tools}

    def __iter__(self):
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, slug: object) -> bool:
        return slug in self._by_slug

    @property
    def tools(self) -> tuple[ToolDescriptor, ...]:
        return self._tools

    def get(self, slug: str) -> ToolDescriptor | None:
        return self._by_slug.get(slug)

    def resolve_canonical(self, slug: str) -> ToolDescriptor | None:
        """
        Follow canonical back-references to the entry users should land on.

        Returns None for unknown slugs. Cycles stop at the first repeat.
        """
        tool = self._by_slug.get(slug)
        seen: set[str] = set()
        while tool is not None and tool.canonical_slug and tool.slug not in seen:
            seen.add(tool.slug)
            target = self._by_slug.get(tool.canonical_slug)
            if target is None:
                break
            tool = target
        return tool


def parse_catalog(entries: object, source: str) -> Catalog:
    """
    Validate raw catalog entries.

    Args:
        entries: Decoded JSON (expected: list of objects)
        source: Description of where entries came from, for errors

    Returns:
        Catalog of validated descriptors

    Raises:
        CatalogError: If any entry is invalid, slugs repeat, or a
            canonical_slug points at an unknown entry
    """
    if not isinstance(entries, list):
        raise CatalogError(source, ["top-level value must be a list"])

    problems: list[str] = []
    tools: list[ToolDescriptor] = []
    seen: set[str] = set()

    for index, entry in enumerate(entries):
        try:
            tool = ToolDescriptor.model_validate(entry)
        except ValidationError as e:
            problems.append(f"entry {index}: {e.error_count()} validation error(s)")
            continue
        if tool.slug in seen:
            problems.append(f"duplicate slug '{tool.slug}'")
            continue
        seen.add(tool.slug)
        tools.append(tool)

    for tool in tools:
        if tool.canonical_slug and tool.canonical_slug not in seen:
            problems.append(
                f"'{tool.slug}' references unknown canonical slug '{tool.canonical_slug}'"
            )

    if problems:
        raise CatalogError(source, problems)

    return Catalog(tuple(tools))


def load_catalog(path: Path | None = None) -> Catalog:
    """
    Load the catalog from a JSON file, or the bundled catalog.

    Args:
        path: Optional JSON file; None loads the bundled catalog

    Raises:
        CatalogError: If the file cannot be read or is invalid
    """
    if path is None:
        source = f"<bundled {BUILTIN_CATALOG}>"
        text = resources.files("toolsmith.catalog").joinpath(BUILTIN_CATALOG).read_text(
            encoding="utf-8"
        )
    else:
        source = str(path)
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise CatalogError(source, [f"cannot read file: {e}"]) from e

    try:
        entries = json.loads(text)
    except json.JSONDecodeError as e:
        raise CatalogError(source, [f"invalid JSON: {e}"]) from e

    catalog = parse_catalog(entries, source)
    logger.debug("Loaded %d catalog entries from %s", len(catalog), source)
    return catalog
