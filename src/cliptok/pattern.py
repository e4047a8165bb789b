"""Text normalization and regex pre-tokenization for CLIP."""

from collections.abc import Iterator
from typing import Final
import logging

import regex as re

from .errors import PatternError
from .types import Piece

log = logging.getLogger(__name__)


# Source: https://github.com/openai/CLIP/blob/main/clip/simple_tokenizer.py
# Digits are matched one at a time, unlike the GPT-2 family.
CLIP_PATTERN: Final[str] = (
    r"<\|startoftext\|>|"
    r"<\|endoftext\|>|"
    r"'s|'t|'re|'ve|'m|'ll|'d|"
    r"[\p{L}]+|"
    r"[\p{N}]|"
    r"[^\s\p{L}\p{N}]+"
)

_WHITESPACE: Final[re.Pattern] = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lower-case ``text`` and collapse every whitespace run to a single space."""
    return _WHITESPACE.sub(" ", text.lower())


def compile_pattern(pattern: str) -> re.Pattern:
    """
    Compile and validate a regex pattern.

    :param pattern: Regex pattern string to compile.
    :return: Compiled regex pattern.
    :raises PatternError: If pattern is invalid.
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternError("invalid regex pattern", pattern=pattern, regex_err=e)


class PreTokenizer:
    """
    Splits normalized text into coarse units ahead of BPE merging.

    A pattern that fails to compile or to match never raises out of
    :meth:`split`; the failure is logged and no units are produced.
    """

    def __init__(self, pattern: str = CLIP_PATTERN) -> None:
        self.pat = pattern
        self.compiled_pat: re.Pattern | None
        try:
            self.compiled_pat = compile_pattern(pattern)
        except PatternError as e:
            log.error(f"pre-tokenizer disabled: {e}")
            self.compiled_pat = None

    def iter_units(self, text: str) -> Iterator[Piece]:
        """Lazily yield units of ``text`` in left-to-right order."""
        if self.compiled_pat is None:
            return
        for m in self.compiled_pat.finditer(text):
            yield m.group(0)

    def split(self, text: str) -> list[Piece]:
        """Return all units of ``text``; empty if the pattern cannot be applied."""
        try:
            return list(self.iter_units(text))
        except re.error as e:
            log.error(f"pre-tokenizer failed to match (pattern: {self.pat!r}) (reason: {e})")
            return []


_default_pretokenizer: PreTokenizer | None = None


def pretokenize(text: str) -> list[Piece]:
    """Split ``text`` with the standard CLIP pattern."""
    global _default_pretokenizer
    if _default_pretokenizer is None:
        _default_pretokenizer = PreTokenizer()
    return _default_pretokenizer.split(text)
