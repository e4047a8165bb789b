"""cliptok: CLIP byte-pair-encoding tokenization library."""

from ._bpe import END_OF_WORD, MergeEngine, SymbolPair, build_rank_table
from .errors import (
    CLIPTokError,
    MergeRuleError,
    ParallelModeError,
    PatternError,
    TokenizationError,
    VocabularyError,
)
from .parallel import ParallelMode, list_parallel_modes
from .pattern import CLIP_PATTERN, PreTokenizer, normalize, pretokenize
from .tokenizer import BOS, CONTEXT_LENGTH, EOS, CLIPTokenizer

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cliptok")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "CLIPTokenizer",
    "MergeEngine",
    "PreTokenizer",
    "SymbolPair",
    "ParallelMode",
    "BOS",
    "EOS",
    "END_OF_WORD",
    "CONTEXT_LENGTH",
    "CLIP_PATTERN",
    "CLIPTokError",
    "MergeRuleError",
    "VocabularyError",
    "TokenizationError",
    "PatternError",
    "ParallelModeError",
    "build_rank_table",
    "normalize",
    "pretokenize",
    "list_parallel_modes",
]
