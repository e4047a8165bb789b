"""
Core Byte Pair Encoding (BPE) operations for CLIP sub-word merging.
"""

from collections.abc import Iterable
from math import inf
from typing import Final, NamedTuple, Self
import logging
import threading

from ._decorators import measure_time
from .errors import MergeRuleError, TokenizationError
from .types import Piece, RankTable

log = logging.getLogger(__name__)

END_OF_WORD: Final[str] = "</w>"


class SymbolPair(NamedTuple):
    """Two adjacent symbols; the key of the rank table."""

    a: Piece
    b: Piece

    @classmethod
    def parse(cls, line: str, line_no: int | None = None) -> Self:
        """Build a pair from a merge rule of exactly two whitespace-separated fields."""
        pieces = line.split()
        if len(pieces) != 2:
            raise MergeRuleError(
                "merge rule must have exactly two fields", line=line, line_no=line_no
            )
        return cls(pieces[0], pieces[1])


@measure_time
def build_rank_table(merges: Iterable[str]) -> RankTable:
    """
    Rank merge rules by their position in ``merges``.

    Rank 0 is the rule applied first.

    :param merges: Ordered merge rules such as ``"t h"``.
    :return: Mapping from symbol pair to rank.
    :raises MergeRuleError: If a rule is malformed or repeats an earlier pair.
    """
    ranks: RankTable = {}
    for rank, line in enumerate(merges):
        pair = SymbolPair.parse(line, line_no=rank)
        if pair in ranks:
            raise MergeRuleError("duplicate merge rule", line=line, line_no=rank)
        ranks[pair] = rank

    log.debug(f"built rank table with {len(ranks)} merge rules")
    return ranks


def get_pairs(symbols: list[Piece]) -> set[SymbolPair]:
    """Return the distinct adjacent pairs of ``symbols``."""
    return {SymbolPair(a, b) for a, b in zip(symbols, symbols[1:])}


def merge_pair(symbols: list[Piece], target: SymbolPair) -> list[Piece]:
    """
    Merge all occurrences of a target pair into a single symbol.

    The scan runs left to right and a match consumes both of its symbols, so
    ``["a", "a", "a"]`` merged on ``("a", "a")`` gives ``["aa", "a"]``.
    """
    merged: list[Piece] = []

    i = 0
    n = len(symbols)
    while i < n:
        if i < n - 1 and symbols[i] == target.a and symbols[i + 1] == target.b:
            merged.append(symbols[i] + symbols[i + 1])
            i += 2
        else:
            merged.append(symbols[i])
            i += 1

    return merged


class MergeEngine:
    """
    Greedy lowest-rank BPE merging with a per-instance result cache.

    The cache maps each unit to an immutable tuple of its merged pieces,
    starts out holding the special tokens mapped to themselves and is never
    evicted. Lookups and
    inserts are serialized by a lock so one engine can serve many threads.
    """

    def __init__(self, ranks: RankTable, special_toks: Iterable[str] = ()) -> None:
        self.ranks = ranks
        self._cache: dict[str, tuple[Piece, ...]] = {seq: (seq,) for seq in special_toks}
        self._lock = threading.Lock()

    @property
    def cache_size(self) -> int:
        """Number of units currently cached, special tokens included."""
        with self._lock:
            return len(self._cache)

    def cached(self, unit: str) -> bool:
        """Return whether ``unit`` already has a cached result."""
        with self._lock:
            return unit in self._cache

    def bpe(self, unit: str) -> tuple[Piece, ...]:
        """
        Split a pre-tokenized unit into vocabulary pieces.

        :param unit: A non-empty unit produced by the pre-tokenizer.
        :return: Merged pieces; the last one carries the ``</w>`` marker.
        :raises TokenizationError: If ``unit`` is empty.
        """
        with self._lock:
            result = self._cache.get(unit)
        if result is not None:
            return result

        if not unit:
            raise TokenizationError("bpe() called with an empty unit", unit=unit)

        pieces = tuple(self._merge_unit(unit))
        with self._lock:
            # a concurrent miss on the same unit may have stored first
            return self._cache.setdefault(unit, pieces)

    def _merge_unit(self, unit: str) -> list[Piece]:
        """Apply every ranked merge to ``unit`` in rank order."""
        symbols = list(unit[:-1]) + [unit[-1] + END_OF_WORD]
        pairs = get_pairs(symbols)

        while pairs:
            # unranked pairs sort last; ranks are unique so the minimum is too
            best = min(pairs, key=lambda pair: self.ranks.get(pair, inf))
            if best not in self.ranks:
                break
            symbols = merge_pair(symbols, best)
            pairs = get_pairs(symbols)

        log.debug(f"cache miss: {unit!r} -> {symbols}")
        return symbols
