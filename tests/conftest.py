"""Shared fixtures: a tiny CLIP-style merge list and vocabulary."""

import pytest

from cliptok import BOS, EOS, CLIPTokenizer

MERGES = [
    "l o",
    "lo w</w>",
    "c a",
    "ca t</w>",
    "d o",
    "do g",
    "dog s</w>",
    "' s</w>",
    "x y",
    "xy z</w>",
]

VOCAB = {
    "low</w>": 0,
    "cat</w>": 1,
    "dogs</w>": 2,
    "'s</w>": 3,
    "3</w>": 4,
    "!</w>": 5,
    "a</w>": 6,
    "lo": 7,
    "w</w>": 8,
    "l": 9,
    "o": 10,
    BOS: 100,
    EOS: 101,
}


@pytest.fixture
def merges() -> list[str]:
    """Return the toy merge rules in rank order."""
    return list(MERGES)


@pytest.fixture
def vocab() -> dict[str, int]:
    """Return the toy vocabulary, special tokens included."""
    return dict(VOCAB)


@pytest.fixture
def tokenizer(merges, vocab) -> CLIPTokenizer:
    """Return a tokenizer built from the toy tables."""
    return CLIPTokenizer(merges, vocab)
