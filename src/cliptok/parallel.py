"""Parallel processing mode helpers for batch tokenization."""

from enum import Enum
from typing import Final, Literal
import os

from .errors import ParallelModeError

ParallelStrategy = Literal["auto", "batch", "off"]

NUM_WORKERS_ENV: Final[str] = "CLIPTOK_NUM_WORKERS"


class ParallelMode(str, Enum):
    """Named parallelization modes for batch tokenization."""

    AUTO = "auto"
    BATCH = "batch"
    OFF = "off"

    @classmethod
    def get(cls, name: "str | ParallelMode") -> "ParallelMode":
        """Get parallel mode by name (case-insensitive)."""
        if isinstance(name, ParallelMode):
            return name
        try:
            return cls[name.upper()]
        except KeyError:
            raise ParallelModeError(
                "unknown mode",
                invalid_name=name,
                available_modes=[mode.value for mode in cls],
            )


def list_parallel_modes() -> list[str]:
    """Return available parallel mode names."""
    return [mode.value for mode in ParallelMode]


def resolve_num_workers(num_workers: int | None = None) -> int:
    """
    Resolve the worker count for batch tokenization.

    An explicit ``num_workers`` wins, then the ``CLIPTOK_NUM_WORKERS``
    environment variable, then the CPU count. Anything below 1 means 1.
    """
    if num_workers is None:
        env = os.environ.get(NUM_WORKERS_ENV, "").strip()
        if env:
            try:
                num_workers = int(env)
            except ValueError:
                raise ParallelModeError(
                    f"{NUM_WORKERS_ENV} must be an integer (got {env!r})"
                )
        else:
            num_workers = os.cpu_count() or 1
    return max(1, num_workers)


__all__ = [
    "ParallelStrategy",
    "ParallelMode",
    "NUM_WORKERS_ENV",
    "list_parallel_modes",
    "resolve_num_workers",
]
