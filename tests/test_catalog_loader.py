"""Tests for catalog loading and lookup."""

import json

import pytest

from toolsmith.catalog import load_catalog, parse_catalog
from toolsmith.exceptions import CatalogError
from toolsmith.types import InputKind


def entry(slug, **fields):
    return {"slug": slug, "name": slug.replace("-", " ").title(), **fields}


class TestBundledCatalog:
    """Tests for the catalog shipped with the package."""

    def test_loads(self):
        catalog = load_catalog()

        assert len(catalog) > 20
        assert "base64-text" in catalog
        assert "no-such-tool" not in catalog

    def test_slugs_are_unique(self):
        slugs = [tool.slug for tool in load_catalog()]
        assert len(slugs) == len(set(slugs))

    def test_alias_entry_resolves_to_canonical(self):
        catalog = load_catalog()

        assert catalog.get("guid-generator").canonical_slug == "uuid-generator"
        assert catalog.resolve_canonical("guid-generator").slug == "uuid-generator"

    def test_input_less_tool(self):
        assert load_catalog().get("password-generator").input_type is InputKind.NONE


class TestParseCatalog:
    """Tests for validating raw entries."""

    def test_valid_entries_keep_order(self):
        catalog = parse_catalog([entry("b"), entry("a")], "test")
        assert [tool.slug for tool in catalog] == ["b", "a"]

    def test_top_level_must_be_list(self):
        with pytest.raises(CatalogError) as exc_info:
            parse_catalog({"slug": "a"}, "test")
        assert exc_info.value.problems == ["top-level value must be a list"]

    def test_duplicate_slug(self):
        with pytest.raises(CatalogError) as exc_info:
            parse_catalog([entry("a"), entry("a")], "test")
        assert "duplicate slug 'a'" in exc_info.value.problems

    def test_unknown_canonical_slug(self):
        with pytest.raises(CatalogError) as exc_info:
            parse_catalog([entry("a", canonical_slug="missing")], "test")
        assert exc_info.value.problems == [
            "'a' references unknown canonical slug 'missing'"
        ]

    def test_invalid_entry_reports_index(self):
        with pytest.raises(CatalogError) as exc_info:
            parse_catalog([entry("a"), entry("b", input_type="video")], "test")
        assert exc_info.value.problems[0].startswith("entry 1:")

    def test_all_problems_reported(self):
        with pytest.raises(CatalogError) as exc_info:
            parse_catalog([{"name": "no slug"}, entry("a"), entry("a")], "test")
        assert len(exc_info.value.problems) == 2
        assert exc_info.value.source == "test"


class TestResolveCanonical:
    """Tests for following canonical back-references."""

    def test_unknown_slug(self):
        catalog = parse_catalog([entry("a")], "test")
        assert catalog.resolve_canonical("zzz") is None

    def test_entry_without_canonical_is_itself(self):
        catalog = parse_catalog([entry("a")], "test")
        assert catalog.resolve_canonical("a").slug == "a"

    def test_chain(self):
        catalog = parse_catalog(
            [entry("a", canonical_slug="b"), entry("b", canonical_slug="c"), entry("c")],
            "test",
        )
        assert catalog.resolve_canonical("a").slug == "c"

    def test_cycle_terminates(self):
        catalog = parse_catalog(
            [entry("a", canonical_slug="b"), entry("b", canonical_slug="a")], "test"
        )
        assert catalog.resolve_canonical("a") is not None


class TestLoadCatalogFile:
    """Tests for loading catalogs from disk."""

    def test_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([entry("a"), entry("b")]), encoding="utf-8")

        assert [tool.slug for tool in load_catalog(path)] == ["a", "b"]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("[{", encoding="utf-8")

        with pytest.raises(CatalogError) as exc_info:
            load_catalog(path)
        assert exc_info.value.problems[0].startswith("invalid JSON")

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError) as exc_info:
            load_catalog(tmp_path / "missing.json")
        assert exc_info.value.problems[0].startswith("cannot read file")
