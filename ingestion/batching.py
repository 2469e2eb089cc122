"""
Positional batching of ordered item lists.
"""
from typing import Iterator, List, Sequence, TypeVar

from domain.errors import ConfigurationError

T = TypeVar("T")


def iter_batches(items: Sequence[T], batch_size: int) -> Iterator[List[T]]:
    """
    Split items into consecutive batches of at most batch_size.

    Order is preserved inside and across batches, so concatenating the
    batches gives back the original sequence.

    Raises:
        ConfigurationError: If batch_size is not positive
    """
    if batch_size <= 0:
        raise ConfigurationError(f"batch_size must be greater than 0, got {batch_size}")
    for start in range(0, len(items), batch_size):
        yield list(items[start:start + batch_size])


def batch_count(total: int, batch_size: int) -> int:
    """Number of batches iter_batches produces for total items."""
    if batch_size <= 0:
        raise ConfigurationError(f"batch_size must be greater than 0, got {batch_size}")
    return -(-total // batch_size)
