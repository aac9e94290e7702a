"""
Embedding store
===============

Persists :class:`Embedding` values into a Milvus collection and finds the
ones most similar to a query embedding. Import from the package root::

    from embedding_store import Embedding, EmbeddingStore

    async with EmbeddingStore.connect(collection="docs", namespace="notes") as store:
        await store.persist(Embedding("hello", vec))
        related = await store.find_related(Embedding("hi", qvec), 5)
"""

from __future__ import annotations
from typing import Iterable, List, Optional
import asyncio
import logging

from .config import Milvus, milvus as default_settings
from .config.milvus import DEFAULT_NAMESPACE
from .exceptions import StoreClosedError
from .model import Embedding, PersistResult, ScoredEmbedding, as_embeddings
from .vector.codec import RecordFields, check_dim, encode, to_row
from .vector.index import MilvusIndex
from .vector.search import two_phase_search

logger = logging.getLogger(__name__)


class EmbeddingStore:
    """Adapter between :class:`Embedding` values and one namespace of a vector index.

    :param index: Connected :class:`MilvusIndex`; the store takes ownership
        and closes it in :meth:`close`.
    :param namespace: Partition every read and write is scoped to.
    :param dim: Expected vector dimension; ``0`` skips the local check.
    """

    def __init__(
        self,
        index: MilvusIndex,
        *,
        namespace: Optional[str] = None,
        dim: int = 0,
    ) -> None:
        self._index = index
        self.namespace = namespace or DEFAULT_NAMESPACE
        self.dim = int(dim or 0)

    @classmethod
    def connect(
        cls,
        *,
        uri: Optional[str] = None,
        token: Optional[str] = None,
        db_name: Optional[str] = None,
        collection: Optional[str] = None,
        namespace: Optional[str] = None,
        dim: Optional[int] = None,
        settings: Optional[Milvus] = None,
    ) -> "EmbeddingStore":
        """Open a connection using ``settings`` with any explicit overrides applied."""
        cfg = settings or default_settings
        index = MilvusIndex(
            uri=uri or cfg.MILVUS_URI,
            token=cfg.MILVUS_TOKEN if token is None else token,
            db_name=db_name or cfg.MILVUS_DB_NAME,
            collection_name=collection or cfg.MILVUS_COLLECTION,
            fields=RecordFields(
                id=cfg.MILVUS_ID_FIELD,
                vector=cfg.MILVUS_VECTOR_FIELD,
                text=cfg.MILVUS_TEXT_FIELD,
            ),
            metric=cfg.MILVUS_METRIC,
            nprobe=cfg.MILVUS_NPROBE,
            fetch_chunk=cfg.MILVUS_FETCH_CHUNK,
        )
        return cls(
            index,
            namespace=namespace or cfg.MILVUS_NAMESPACE,
            dim=cfg.EMB_DIM if dim is None else dim,
        )

    # --- Writes ------------------------------------------------------------

    async def persist(self, embeddings: Embedding | Iterable[Embedding]) -> PersistResult:
        """Store one embedding or a batch of them in a single upsert.

        :param embeddings: An :class:`Embedding` or an iterable of them. An
            empty batch makes no remote call.
        :returns: :class:`PersistResult` naming the ids sent and any the
            service did not acknowledge.
        :raises VectorIndexError: The upsert failed as a whole.
        """
        self._check_open()
        items = as_embeddings(embeddings)
        if not items:
            return PersistResult.empty()

        for emb in items:
            check_dim(emb.vector, self.dim)

        records = [encode(emb) for emb in items]
        rows = [to_row(r, self._index.fields) for r in records]
        failed = await asyncio.to_thread(self._index.upsert, self.namespace, rows)

        result = PersistResult(
            ids=[r.id for r in records],
            failed_ids=[records[i].id for i in failed if 0 <= i < len(records)],
        )
        if not result.ok:
            logger.warning(
                "%d of %d record(s) not acknowledged (namespace=%s)",
                len(result.failed_ids), len(records), self.namespace,
            )
        return result

    # --- Reads -------------------------------------------------------------

    async def find_related_with_scores(
        self, embedding: Embedding, max_results: int
    ) -> List[ScoredEmbedding]:
        """Like :meth:`find_related` but keeps each match's similarity score."""
        self._check_open()
        if max_results <= 0:
            raise ValueError(f"max_results must be positive, got {max_results}")
        check_dim(embedding.vector, self.dim)

        return await two_phase_search(
            index=self._index,
            namespace=self.namespace,
            vector=embedding.vector,
            k=max_results,
        )

    async def find_related(self, embedding: Embedding, max_results: int) -> List[Embedding]:
        """Return up to ``max_results`` stored embeddings closest to ``embedding``.

        Results are ordered closest first. Matches whose record could not be
        fetched are left out rather than failing the call.

        :raises ValueError: ``max_results`` is not positive or the vector has
            the wrong dimension.
        :raises VectorIndexError: Either remote phase failed.
        """
        scored = await self.find_related_with_scores(embedding, max_results)
        return [s.embedding for s in scored]

    # --- Lifecycle ---------------------------------------------------------

    async def ping(self) -> str:
        """Return the server version of the backing index."""
        self._check_open()
        return await asyncio.to_thread(self._index.ping)

    async def has_namespace(self) -> bool:
        """Return True once anything has been written to this namespace."""
        self._check_open()
        return await asyncio.to_thread(self._index.has_partition, self.namespace)

    @property
    def closed(self) -> bool:
        return self._index.closed

    def _check_open(self) -> None:
        if self._index.closed:
            raise StoreClosedError("EmbeddingStore is closed")

    def close(self) -> None:
        self._index.close()

    def __enter__(self) -> "EmbeddingStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    async def __aenter__(self) -> "EmbeddingStore":
        return self

    async def __aexit__(self, *exc) -> None:
        await asyncio.to_thread(self.close)


__all__ = ["EmbeddingStore"]
