"""Whitespace tokenization and focal-point splitting."""

import math
import re

from . import config

_WHITESPACE = re.compile(r'\s+')


def tokenize(text: str | None) -> list[str]:
    """
    Split text into word tokens on runs of whitespace.

    Punctuation and case are left untouched; empty pieces are dropped, so
    empty or whitespace-only text gives an empty list.
    """
    if not text:
        return []
    return [token for token in _WHITESPACE.split(text) if token]


def focal_index(word: str) -> int:
    """Index of the optimal recognition point within a word."""
    return math.floor(len(word) * config.ORP_RATIO)


def focal_split(word: str) -> tuple[str, str, str]:
    """
    Split a word around its optimal recognition point.

    Returns:
        tuple: (prefix, focal character, suffix). The focal character is
        an empty string for an empty word.
    """
    idx = focal_index(word)
    return word[:idx], word[idx:idx + 1], word[idx + 1:]
