"""
Public façade for the embedding store
=====================================

Import from here::

    from embedding_store import Embedding, EmbeddingStore, PersistResult
"""

from .model import Embedding, PersistResult, RecordMetadata, ScoredEmbedding, StoredRecord
from .exceptions import (
    ConfigurationError,
    EmbeddingDimensionError,
    EmbeddingStoreError,
    PartialPersistError,
    StoreClosedError,
    VectorIndexError,
)
from .store import EmbeddingStore

__all__ = [
    "Embedding",
    "EmbeddingStore",
    "PersistResult",
    "RecordMetadata",
    "ScoredEmbedding",
    "StoredRecord",
    "EmbeddingStoreError",
    "ConfigurationError",
    "VectorIndexError",
    "StoreClosedError",
    "PartialPersistError",
    "EmbeddingDimensionError",
]
