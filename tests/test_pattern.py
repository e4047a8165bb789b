"""Unit tests for text normalization and CLIP pre-tokenization."""

import pytest
import regex as re

from cliptok import BOS, EOS, PreTokenizer, normalize, pretokenize
from cliptok.errors import PatternError
from cliptok.pattern import compile_pattern


# Normalization
# ---------------------------------------------------------------------------


def test_normalize_lowercases_and_collapses_whitespace():
    """Upper-case letters are lowered and whitespace runs become one space."""
    assert normalize("  Hello\t\n  WORLD  ") == " hello world "


def test_normalize_empty():
    """Empty text stays empty."""
    assert normalize("") == ""


# Splitting
# ---------------------------------------------------------------------------


def test_split_contraction_digits_punctuation():
    """Contractions isolate, digits never group, punctuation groups by run."""
    assert pretokenize(normalize("Cat's 3 Dogs!")) == ["cat", "'s", "3", "dogs", "!"]


@pytest.mark.parametrize(
    "text, expected",
    [
        ("123", ["1", "2", "3"]),
        ("don't", ["don", "'t"]),
        ("we're i'm you'll i'd we've", ["we", "'re", "i", "'m", "you", "'ll", "i", "'d", "we", "'ve"]),
        ("hello!!! world", ["hello", "!!!", "world"]),
        ("abc123def", ["abc", "1", "2", "3", "def"]),
        ("café naïve", ["café", "naïve"]),
        ("a-b", ["a", "-", "b"]),
    ],
)
def test_split_cases(text, expected):
    """Letter runs, single digits and symbol runs split as CLIP does."""
    assert pretokenize(text) == expected


def test_special_tokens_are_single_units():
    """Special token literals are matched whole, before punctuation runs."""
    assert pretokenize(f"{BOS}hi there{EOS}") == [BOS, "hi", "there", EOS]


def test_whitespace_produces_no_units():
    """Whitespace-only text yields nothing."""
    assert pretokenize("   ") == []
    assert pretokenize("") == []


def test_iter_units_is_lazy_and_restartable():
    """Each call to iter_units starts a fresh pass over the text."""
    pre = PreTokenizer()
    units = pre.iter_units("a b")
    assert next(units) == "a"
    assert list(pre.iter_units("a b")) == ["a", "b"]


# Pattern failures
# ---------------------------------------------------------------------------


def test_compile_pattern_invalid_raises():
    """An invalid pattern raises PatternError carrying the regex error."""
    with pytest.raises(PatternError) as exc_info:
        compile_pattern("[unclosed")
    assert exc_info.value.pattern == "[unclosed"
    assert exc_info.value.regex_err is not None


def test_uncompilable_pattern_splits_to_nothing():
    """A pre-tokenizer with a broken pattern returns no units instead of raising."""
    pre = PreTokenizer("[unclosed")
    assert pre.compiled_pat is None
    assert pre.split("hello world") == []


def test_matching_failure_splits_to_nothing():
    """A regex error raised while matching is swallowed into an empty split."""

    class FailingPattern:
        def finditer(self, text):
            raise re.error("matching failed")

    pre = PreTokenizer()
    pre.compiled_pat = FailingPattern()
    assert pre.split("hello") == []
