"""Exception hierarchy for the embedding store."""

from __future__ import annotations

from typing import Sequence


class EmbeddingStoreError(RuntimeError):
    """Base class for every error raised by :mod:`embedding_store`."""


class ConfigurationError(EmbeddingStoreError):
    """Connection settings are missing or were rejected by the service."""


class VectorIndexError(EmbeddingStoreError):
    """A remote call against the vector index failed."""


class StoreClosedError(EmbeddingStoreError):
    """The store was used after :meth:`EmbeddingStore.close`."""


class PartialPersistError(EmbeddingStoreError):
    """Some records of a persist batch were not acknowledged."""

    def __init__(self, failed_ids: Sequence[str]) -> None:
        self.failed_ids = list(failed_ids)
        super().__init__(f"{len(self.failed_ids)} record(s) failed to persist")


class EmbeddingDimensionError(ValueError):
    """A vector does not match the configured index dimension."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected embedding of dim {expected}, got {actual}")


__all__ = [
    "EmbeddingStoreError",
    "ConfigurationError",
    "VectorIndexError",
    "StoreClosedError",
    "PartialPersistError",
    "EmbeddingDimensionError",
]
