"""
Prompts Module - Challenge catalog and selection policy.

The catalog is static data (built-in or loaded from JSON).
The selector picks prompts at random without repetition until the
catalog is exhausted, then starts over.
"""

from .catalog import HandShape, PromptItem, DEFAULT_PROMPTS, load_catalog
from .selector import PromptSelector

__all__ = [
    "HandShape",
    "PromptItem",
    "DEFAULT_PROMPTS",
    "load_catalog",
    "PromptSelector",
]
