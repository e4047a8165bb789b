"""
Core types for CLIP tokenization.
"""

from collections.abc import Mapping
from typing import TypeAlias

TokenId: TypeAlias = int
Piece: TypeAlias = str
RankTable: TypeAlias = dict[tuple[Piece, Piece], int]
Vocabulary: TypeAlias = Mapping[Piece, TokenId]
