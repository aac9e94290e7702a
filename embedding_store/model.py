"""Value types shared between the store and its callers.

Record schema (one row of the Milvus collection, see :mod:`.vector.codec`):

```
{"id": "<uuid hex>", "embedding": [0.12, -0.03, ...], "text": "original text"}
```

``id`` is generated at persist time and never handed back to callers. The
namespace a record belongs to is the partition it was written into.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from .exceptions import PartialPersistError


@dataclass(frozen=True, slots=True)
class Embedding:
    """Original text plus the vector derived from it."""

    contents: str
    vector: Tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "vector", tuple(float(x) for x in self.vector))

    @property
    def dim(self) -> int:
        return len(self.vector)


@dataclass(frozen=True, slots=True)
class RecordMetadata:
    """Metadata stored beside each vector. ``text`` round-trips the contents."""

    text: str


@dataclass(frozen=True, slots=True)
class StoredRecord:
    """Remote-side representation of an :class:`Embedding`."""

    id: str
    values: List[float]
    metadata: RecordMetadata


@dataclass(frozen=True, slots=True)
class ScoredEmbedding:
    """An :class:`Embedding` together with its similarity score."""

    embedding: Embedding
    score: float


@dataclass(slots=True)
class PersistResult:
    """Outcome of one persist batch.

    ``ids`` lists every id that was sent; ``failed_ids`` the subset the
    service did not acknowledge.
    """

    ids: List[str] = field(default_factory=list)
    failed_ids: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_ids

    @property
    def stored_ids(self) -> List[str]:
        failed = set(self.failed_ids)
        return [i for i in self.ids if i not in failed]

    def raise_for_failures(self) -> None:
        """Raise :class:`PartialPersistError` when any record failed."""
        if self.failed_ids:
            raise PartialPersistError(self.failed_ids)

    @classmethod
    def empty(cls) -> "PersistResult":
        return cls()


def as_embeddings(items: Embedding | Iterable[Embedding]) -> List[Embedding]:
    """Normalize a single embedding or an iterable of them into a list."""
    if isinstance(items, Embedding):
        return [items]
    out = list(items)
    for item in out:
        if not isinstance(item, Embedding):
            raise TypeError(f"Expected Embedding, got {type(item).__name__}")
    return out


__all__ = [
    "Embedding",
    "RecordMetadata",
    "StoredRecord",
    "ScoredEmbedding",
    "PersistResult",
    "as_embeddings",
]
