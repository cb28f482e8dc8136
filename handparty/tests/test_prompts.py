"""
Tests for the prompt catalog and selector.

Tests:
- No repeats until the catalog is exhausted
- Catalog loading and validation
"""

import json
import random

import pytest

from ..errors import CatalogError
from ..prompts.catalog import DEFAULT_PROMPTS, HandShape, PromptItem, load_catalog
from ..prompts.selector import PromptSelector


class TestPromptSelector:
    """Tests for PromptSelector."""

    def test_no_repeat_until_exhausted(self):
        """Five picks from five prompts are all distinct; the sixth repeats."""
        selector = PromptSelector(DEFAULT_PROMPTS, rng=random.Random(3))

        ids = [selector.next().id for _ in range(6)]

        assert len(set(ids[:5])) == 5
        assert ids[5] in ids[:5]

    def test_every_window_of_five_is_distinct_within_a_cycle(self):
        """Each full pass over the catalog shows every prompt once."""
        selector = PromptSelector(DEFAULT_PROMPTS, rng=random.Random(11))

        for _ in range(4):
            cycle = {selector.next().id for _ in range(5)}
            assert cycle == {p.id for p in DEFAULT_PROMPTS}

    def test_used_tracks_shown_prompts(self):
        """The used-set grows with each pick and resets when exhausted."""
        selector = PromptSelector(DEFAULT_PROMPTS[:2], rng=random.Random(0))

        first = selector.next()
        assert selector.used == {first.id}

        selector.next()
        assert len(selector.used) == 2

        selector.next()
        assert len(selector.used) == 1

    def test_single_prompt_catalog(self):
        """A one-prompt catalog always returns that prompt."""
        selector = PromptSelector(DEFAULT_PROMPTS[:1])
        assert [selector.next().id for _ in range(3)] == ["p1", "p1", "p1"]

    def test_empty_catalog_rejected(self):
        """An empty catalog is a configuration error."""
        with pytest.raises(CatalogError):
            PromptSelector([])


class TestCatalog:
    """Tests for catalog loading."""

    def test_default_catalog_ids_unique(self):
        ids = [p.id for p in DEFAULT_PROMPTS]
        assert len(ids) == len(set(ids)) == 5

    def test_hand_shape_wire_values(self):
        """Hand shapes serialize as their Japanese names."""
        assert HandShape("グー") is HandShape.GUU
        assert HandShape.CHOKI.value == "チョキ"
        assert HandShape.PAA.value == "パー"

    def test_load_catalog(self, tmp_path):
        """Loads camelCase entries from a JSON file."""
        path = tmp_path / "prompts.json"
        path.write_text(json.dumps([
            {
                "id": "x1",
                "shape1": "パー",
                "shape2": "グー",
                "objectToMake": "おにぎり",
                "objectToMakeEn": "rice ball",
                "fullText": "パーとグーで「おにぎり」を作ってね！",
            }
        ]), encoding="utf-8")

        catalog = load_catalog(path)

        assert catalog == (
            PromptItem(
                id="x1",
                shape1=HandShape.PAA,
                shape2=HandShape.GUU,
                object_to_make="おにぎり",
                object_to_make_en="rice ball",
                full_text="パーとグーで「おにぎり」を作ってね！",
            ),
        )

    def test_load_empty_catalog(self, tmp_path):
        path = tmp_path / "prompts.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(CatalogError, match="non-empty"):
            load_catalog(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(CatalogError, match="Cannot read"):
            load_catalog(tmp_path / "missing.json")

    def test_load_invalid_shape(self, tmp_path):
        """Unknown hand shapes are rejected with the entry index."""
        path = tmp_path / "prompts.json"
        path.write_text(json.dumps([
            {"id": "x", "shape1": "rock", "shape2": "グー",
             "objectToMake": "a", "objectToMakeEn": "a", "fullText": "a"}
        ]), encoding="utf-8")
        with pytest.raises(CatalogError, match="index 0"):
            load_catalog(path)

    def test_load_duplicate_ids(self, tmp_path):
        entry = {"id": "dup", "shape1": "グー", "shape2": "グー",
                 "objectToMake": "a", "objectToMakeEn": "a", "fullText": "a"}
        path = tmp_path / "prompts.json"
        path.write_text(json.dumps([entry, entry]), encoding="utf-8")
        with pytest.raises(CatalogError, match="dup"):
            load_catalog(path)
