"""
Record codec
============

Translates between :class:`Embedding` values and the rows stored in the
Milvus collection. Vectors travel as float32 and come back widened to
float64, so a round trip is exact up to float32 precision.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence
import logging
import uuid

import numpy as np

from ..exceptions import EmbeddingDimensionError
from ..model import Embedding, RecordMetadata, StoredRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecordFields:
    """Names of the collection fields this codec reads and writes."""

    id: str = "id"
    vector: str = "embedding"
    text: str = "text"


DEFAULT_FIELDS = RecordFields()


def new_record_id() -> str:
    """Return a fresh random record id."""
    return uuid.uuid4().hex


def narrow(vector: Sequence[float]) -> list[float]:
    """Return ``vector`` as a flat list of float32-representable values."""
    v = np.array(vector, dtype=np.float32, copy=True).reshape(-1)
    return v.tolist()


def widen(values: Sequence[float]) -> tuple[float, ...]:
    """Return stored float32 ``values`` as a tuple of float64."""
    v = np.asarray(values, dtype=np.float32).reshape(-1).astype(np.float64)
    return tuple(v.tolist())


def check_dim(vector: Sequence[float], dim: int) -> None:
    """Raise :class:`EmbeddingDimensionError` unless ``len(vector) == dim``.

    A ``dim`` of zero or less disables the check.
    """
    if dim > 0 and len(vector) != dim:
        raise EmbeddingDimensionError(dim, len(vector))


def encode(embedding: Embedding, record_id: Optional[str] = None) -> StoredRecord:
    """Build the :class:`StoredRecord` for ``embedding`` under a new id."""
    return StoredRecord(
        id=record_id or new_record_id(),
        values=narrow(embedding.vector),
        metadata=RecordMetadata(text=embedding.contents),
    )


def to_row(record: StoredRecord, fields: RecordFields = DEFAULT_FIELDS) -> dict[str, Any]:
    """Flatten ``record`` into the row dict accepted by ``Collection.upsert``."""
    return {
        fields.id: record.id,
        fields.vector: record.values,
        fields.text: record.metadata.text,
    }


def decode(row: Mapping[str, Any], fields: RecordFields = DEFAULT_FIELDS) -> Optional[Embedding]:
    """Rebuild an :class:`Embedding` from a fetched row.

    :returns: ``None`` when the row lacks its text or vector, so callers can
        drop it.
    """
    text = row.get(fields.text)
    values = row.get(fields.vector)
    if text is None or values is None:
        logger.warning(
            "Dropping record %s: missing %s",
            row.get(fields.id),
            fields.text if text is None else fields.vector,
        )
        return None
    return Embedding(contents=str(text), vector=widen(values))


__all__ = [
    "RecordFields",
    "DEFAULT_FIELDS",
    "new_record_id",
    "narrow",
    "widen",
    "check_dim",
    "encode",
    "to_row",
    "decode",
]
