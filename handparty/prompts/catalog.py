"""
Prompt Catalog - Hand shapes and the challenges built from them.

Each prompt asks the player to combine two hand shapes into an object
("make a crab with rock and scissors"). Identifiers are stable so the
selector can track which prompts a session has already shown.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import json

from ..errors import CatalogError


class HandShape(str, Enum):
    """Janken hand shapes. Values are the strings used on the wire."""
    GUU = "グー"  # Rock
    CHOKI = "チョキ"  # Scissors
    PAA = "パー"  # Paper


@dataclass(frozen=True)
class PromptItem:
    """A single challenge."""
    id: str
    shape1: HandShape
    shape2: HandShape
    object_to_make: str
    object_to_make_en: str
    full_text: str

    @classmethod
    def from_dict(cls, data: dict) -> PromptItem:
        """Build from a camelCase catalog entry."""
        return cls(
            id=str(data["id"]),
            shape1=HandShape(data["shape1"]),
            shape2=HandShape(data["shape2"]),
            object_to_make=data["objectToMake"],
            object_to_make_en=data["objectToMakeEn"],
            full_text=data["fullText"],
        )


DEFAULT_PROMPTS: tuple[PromptItem, ...] = (
    PromptItem(
        id="p1",
        shape1=HandShape.GUU,
        shape2=HandShape.CHOKI,
        object_to_make="カニ",
        object_to_make_en="crab",
        full_text="グーとチョキで「カニ」を作ってね！",
    ),
    PromptItem(
        id="p2",
        shape1=HandShape.PAA,
        shape2=HandShape.PAA,
        object_to_make="ちょうちょ",
        object_to_make_en="butterfly",
        full_text="パーとパーで「ちょうちょ」を作ってね！",
    ),
    PromptItem(
        id="p3",
        shape1=HandShape.GUU,
        shape2=HandShape.PAA,
        object_to_make="かたつむり",
        object_to_make_en="snail",
        full_text="グーとパーで「かたつむり」を作ってね！",
    ),
    PromptItem(
        id="p4",
        shape1=HandShape.CHOKI,
        shape2=HandShape.PAA,
        object_to_make="キツネ",
        object_to_make_en="fox",
        full_text="チョキとパーで「キツネ」を作ってね！",
    ),
    PromptItem(
        id="p5",
        shape1=HandShape.GUU,
        shape2=HandShape.GUU,
        object_to_make="双眼鏡",
        object_to_make_en="binoculars",
        full_text="グーとグーで「双眼鏡」を作ってね！",
    ),
)


def load_catalog(path: str | Path) -> tuple[PromptItem, ...]:
    """
    Load a prompt catalog from a JSON file.

    The file holds a list of objects with the keys
    id, shape1, shape2, objectToMake, objectToMakeEn, fullText.

    Raises:
        CatalogError: unreadable file, bad entries, empty list or duplicate ids
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Cannot read prompt catalog {path}: {e}") from e

    if not isinstance(raw, list) or not raw:
        raise CatalogError(f"Prompt catalog {path} must be a non-empty list")

    prompts = []
    for index, entry in enumerate(raw):
        try:
            prompts.append(PromptItem.from_dict(entry))
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Invalid prompt at index {index}: {e}") from e

    ids = [p.id for p in prompts]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise CatalogError(f"Duplicate prompt ids: {', '.join(duplicates)}")

    return tuple(prompts)
