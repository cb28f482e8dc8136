"""
Prompt Selector - Random selection without immediate repetition.

The selector is owned by a session and lives exactly as long as it:
a fresh session starts with an empty used-set.
"""

from __future__ import annotations
from typing import Sequence
import random

from ..errors import CatalogError
from .catalog import PromptItem


class PromptSelector:
    """
    Picks prompts uniformly at random, never repeating one until every
    prompt in the catalog has been shown.

    Usage:
        selector = PromptSelector(DEFAULT_PROMPTS)
        prompt = selector.next()
    """

    def __init__(self, catalog: Sequence[PromptItem], rng: random.Random | None = None):
        if not catalog:
            raise CatalogError("Prompt catalog is empty")
        self._catalog = tuple(catalog)
        self._rng = rng or random.Random()
        self._used: set[str] = set()

    @property
    def catalog(self) -> tuple[PromptItem, ...]:
        return self._catalog

    @property
    def used(self) -> frozenset[str]:
        """Ids shown since the catalog last cycled."""
        return frozenset(self._used)

    def next(self) -> PromptItem:
        """Pick the next prompt and mark it used."""
        candidates = [p for p in self._catalog if p.id not in self._used]
        if not candidates:
            # Exhausted: start over with the whole catalog
            self._used.clear()
            candidates = list(self._catalog)

        prompt = self._rng.choice(candidates)
        self._used.add(prompt.id)
        return prompt
