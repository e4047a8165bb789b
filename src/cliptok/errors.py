"""Custom exception hierarchy for cliptok tokenization errors."""

import regex as re


class CLIPTokError(Exception):
    """Base exception for all cliptok errors."""


class MergeRuleError(CLIPTokError):
    """Raised when a merge rule cannot be turned into a rank table entry."""

    def __init__(
        self,
        message: str,
        *,
        line: str | None = None,
        line_no: int | None = None,
    ) -> None:
        """Initialize with the offending rule and its position appended to the message."""
        extra = " "
        if line_no is not None:
            extra += f"(rule: {line_no}) "
        if line is not None:
            extra += f"(line: {line!r}) "
        super().__init__(message + extra)
        self.line = line
        self.line_no = line_no


class VocabularyError(CLIPTokError):
    """Raised when vocabulary operations fail."""

    def __init__(
        self,
        message: str,
        *,
        token: str | None = None,
        token_id: int | None = None,
    ) -> None:
        extra = " "
        if token is not None:
            extra += f"(token: {token!r}) "
        if token_id is not None:
            extra += f"(token id: {token_id}) "
        super().__init__(message + extra)
        self.token = token
        self.token_id = token_id


class TokenizationError(CLIPTokError):
    """Raised when a tokenizer operation is called with invalid input."""

    def __init__(self, message: str, *, unit: str | None = None) -> None:
        super().__init__(message)
        self.unit = unit


class PatternError(CLIPTokError):
    """Raised when compiling a split pattern fails."""

    def __init__(
        self,
        message: str,
        *,
        pattern: str | None = None,
        regex_err: re.error | None = None,
    ) -> None:
        """
        Initialize PatternError with pattern details.

        :param message: Error message.
        :param pattern: The regex pattern that failed.
        :param regex_err: The underlying error from the regex library.
        """
        extra = " "
        if pattern:
            extra += f"(pattern: {pattern!r}) "
        if regex_err:
            extra += f"(reason: {regex_err}) "
        super().__init__(message + extra)
        self.pattern = pattern
        self.regex_err = regex_err


class ParallelModeError(CLIPTokError):
    """Raised when an unknown parallel mode is requested."""

    def __init__(
        self,
        message: str,
        *,
        invalid_name: str | None = None,
        available_modes: list[str] | None = None,
    ) -> None:
        extra = " "
        if invalid_name:
            extra += f"(available: {available_modes}) (got {invalid_name}) "
        super().__init__(message + extra)
        self.invalid_name = invalid_name
        self.available_modes = available_modes
