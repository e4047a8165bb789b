"""CLIP byte-pair-encoding tokenizer."""

from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Final
import logging

from ._bpe import END_OF_WORD, MergeEngine, build_rank_table
from .errors import TokenizationError, VocabularyError
from .parallel import ParallelMode, ParallelStrategy, resolve_num_workers
from .pattern import CLIP_PATTERN, PreTokenizer, normalize
from .types import Piece, RankTable, TokenId, Vocabulary

log = logging.getLogger(__name__)

BOS: Final[str] = "<|startoftext|>"
EOS: Final[str] = "<|endoftext|>"
# fixed text-encoder context of the CLIP models
CONTEXT_LENGTH: Final[int] = 77
INT32_MAX: Final[int] = 2**31 - 1

# below this many characters in total a thread pool costs more than it saves
_AUTO_BATCH_MIN_CHARS: Final[int] = 1_000_000


class CLIPTokenizer:
    """
    Tokenizer reproducing the CLIP text pipeline.

    Text is lower-cased, whitespace-collapsed, split with the CLIP pattern,
    merged into sub-word pieces with BPE, mapped to IDs and wrapped in
    ``<|startoftext|>`` / ``<|endoftext|>``.

    Example:
       >>> tok = CLIPTokenizer(merges, vocab)
       >>> tok.tokenize("a photo of a cat")
       [49406, 320, 1125, 539, 320, 2368, 49407]
    """

    def __init__(
        self,
        merges: Iterable[str],
        vocab: Mapping[Piece, TokenId],
        pattern: str = CLIP_PATTERN,
    ) -> None:
        """
        Build the rank table, vocabulary and merge cache.

        :param merges: Ordered merge rules, two whitespace-separated symbols each.
        :param vocab: Mapping from piece to token ID; must hold both special tokens.
        :param pattern: Pre-tokenization pattern.
        :raises MergeRuleError: If a merge rule is malformed or duplicated.
        :raises VocabularyError: If a special token is missing or an ID is out of range.
        """
        self.bpe_ranks: RankTable = build_rank_table(merges)
        self.vocab: Vocabulary = MappingProxyType(_validate_vocab(vocab))
        self.bos = BOS
        self.eos = EOS
        self.bos_token: TokenId = self._special_token_id(BOS)
        self.eos_token: TokenId = self._special_token_id(EOS)
        self.inverted_vocab: dict[TokenId, Piece] = {
            tok: piece for piece, tok in self.vocab.items()
        }
        self.pretokenizer = PreTokenizer(pattern)
        self.engine = MergeEngine(self.bpe_ranks, special_toks=(BOS, EOS))

        log.info(
            f"tokenizer ready: {len(self.bpe_ranks)} merge rules, {len(self.vocab)} vocabulary entries"
        )

    def _special_token_id(self, seq: str) -> TokenId:
        """Resolve a special token's ID, which must be present in the vocabulary."""
        try:
            return self.vocab[seq]
        except KeyError:
            raise VocabularyError("special token missing from vocabulary", token=seq)

    def vocab_size(self) -> int:
        """Return the number of entries in the vocabulary."""
        return len(self.vocab)

    def bpe(self, unit: str) -> list[Piece]:
        """Return the merged pieces for a single pre-tokenized unit."""
        return list(self.engine.bpe(unit))

    def tokenize(self, text: str) -> list[TokenId]:
        """
        Convert text into CLIP token IDs.

        Pieces missing from the vocabulary are dropped without error.

        :param text: Arbitrary text, possibly empty.
        :returns: IDs starting with ``bos_token`` and ending with ``eos_token``.
        """
        units = self.pretokenizer.split(normalize(text))

        pieces: list[Piece] = []
        for unit in units:
            pieces.extend(self.engine.bpe(unit))

        tokens: list[TokenId] = [self.bos_token]
        for piece in pieces:
            tok = self.vocab.get(piece)
            if tok is not None:
                tokens.append(tok)
        tokens.append(self.eos_token)

        n_dropped = len(pieces) - (len(tokens) - 2)
        if n_dropped:
            log.debug(f"dropped {n_dropped} out-of-vocabulary pieces")

        return tokens

    def tokenize_batch(
        self,
        texts: list[str],
        num_workers: int | None = None,
        parallel_mode: ParallelStrategy | ParallelMode = "auto",
    ) -> list[list[TokenId]]:
        """
        Tokenize many texts using the requested parallelization mode.

        ``off`` tokenizes serially. ``batch`` spreads groups of texts over a
        thread pool that shares this tokenizer's merge cache. ``auto`` stays
        serial for a single text or small batches and uses batch mode
        otherwise.

        :param texts: Texts to tokenize.
        :param num_workers: Worker count for batch mode.
        :param parallel_mode: Parallelization policy.
        :returns: Token sequences in input order.
        :raises ParallelModeError: If ``parallel_mode`` is unknown.
        """
        mode = ParallelMode.get(parallel_mode)

        if not texts:
            return []

        workers = resolve_num_workers(num_workers)

        def process_batch() -> list[list[TokenId]]:
            """Tokenize texts on a thread pool sharing this tokenizer's merge cache."""
            if workers == 1 or len(texts) <= 1:
                return [self.tokenize(text) for text in texts]
            with ThreadPoolExecutor(max_workers=workers) as pool:
                return list(pool.map(self.tokenize, texts))

        match mode:
            case ParallelMode.OFF:
                return [self.tokenize(text) for text in texts]
            case ParallelMode.BATCH:
                return process_batch()
            case ParallelMode.AUTO:
                total_chars = sum(len(text) for text in texts)
                if len(texts) == 1 or total_chars < _AUTO_BATCH_MIN_CHARS:
                    return [self.tokenize(text) for text in texts]
                return process_batch()

    def pad(
        self,
        tokens: list[TokenId],
        context_length: int = CONTEXT_LENGTH,
        pad_token: TokenId | None = None,
    ) -> list[TokenId]:
        """
        Fit a token sequence to the text encoder's fixed context length.

        Longer sequences are cut to ``context_length`` and still end with
        ``eos_token``. Shorter ones are right-padded with ``pad_token``,
        which defaults to ``eos_token``.

        :raises TokenizationError: If ``context_length`` cannot hold both delimiters.
        """
        if context_length < 2:
            raise TokenizationError(
                f"context length must be at least 2 (got {context_length})"
            )

        if len(tokens) > context_length:
            log.warning(
                f"truncating {len(tokens)} tokens to context length {context_length}"
            )
            return tokens[: context_length - 1] + [self.eos_token]

        fill = self.eos_token if pad_token is None else pad_token
        return tokens + [fill] * (context_length - len(tokens))

    def decode(self, tokens: list[TokenId], skip_special_tokens: bool = True) -> str:
        """
        Turn token IDs back into normalized text.

        The result is lower-cased with single spaces, since normalization
        is not reversible.

        :param tokens: Token sequence to decode.
        :param skip_special_tokens: Omit ``bos_token`` and ``eos_token`` when ``True``.
        :raises VocabularyError: If any ID is unknown to the vocabulary.
        """
        pieces: list[Piece] = []
        for tok in tokens:
            if skip_special_tokens and tok in (self.bos_token, self.eos_token):
                continue
            piece = self.inverted_vocab.get(tok)
            if piece is None:
                raise VocabularyError("token id not found in vocabulary", token_id=tok)
            pieces.append(piece)

        return "".join(pieces).replace(END_OF_WORD, " ").strip()


def _validate_vocab(vocab: Mapping[Piece, TokenId]) -> dict[Piece, TokenId]:
    """Copy ``vocab`` after checking that every ID fits in a signed 32-bit integer."""
    checked: dict[Piece, TokenId] = {}
    for piece, tok in vocab.items():
        if isinstance(tok, bool) or not isinstance(tok, int) or not 0 <= tok <= INT32_MAX:
            raise VocabularyError(
                "token id must be an integer in [0, 2**31 - 1]", token=piece
            )
        checked[piece] = tok
    return checked
