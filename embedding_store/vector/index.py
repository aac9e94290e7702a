"""Blocking client for the Milvus collection that backs the embedding store."""

from __future__ import annotations
import json
import threading
import uuid
from typing import Any, Dict, List, Sequence, Tuple

from pymilvus import Collection, MilvusException, connections, utility

from ..exceptions import ConfigurationError, StoreClosedError, VectorIndexError
from .codec import DEFAULT_FIELDS, RecordFields
import logging

logger = logging.getLogger(__name__)


class MilvusIndex:
    """Owns one connection alias and the collection handle bound to it.

    Every remote call takes the instance lock, so one index may be shared by
    concurrent callers even though pymilvus handles make no thread-safety
    promise.

    :param collection: Pre-built collection handle. When given no connection
        is opened and :meth:`close` leaves the handle alone.
    """

    def __init__(
        self,
        *,
        uri: str,
        collection_name: str,
        token: str = "",
        db_name: str = "default",
        fields: RecordFields = DEFAULT_FIELDS,
        metric: str = "COSINE",
        nprobe: int = 32,
        fetch_chunk: int = 800,
        collection: Any = None,
    ) -> None:
        if not collection_name and collection is None:
            raise ConfigurationError("A collection name is required")

        self.fields = fields
        self.metric = metric
        self.nprobe = nprobe
        self.fetch_chunk = max(1, int(fetch_chunk))
        self._lock = threading.Lock()
        self._closed = False

        if collection is not None:
            self._alias: str | None = None
            self._collection = collection
            return

        self._alias = f"embedding_store-{uuid.uuid4().hex[:8]}"
        try:
            connections.connect(alias=self._alias, uri=uri, token=token, db_name=db_name)
            self._collection = Collection(collection_name, using=self._alias)
            self._collection.load()
        except MilvusException as e:
            connections.disconnect(self._alias)
            raise ConfigurationError(
                f"Could not open collection '{collection_name}' at {uri}: {e}"
            ) from e
        logger.info("Connected to Milvus collection %s at %s", collection_name, uri)

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError("Vector index connection is closed")

    # --- Remote operations ---------------------------------------------------

    def has_partition(self, namespace: str) -> bool:
        with self._lock:
            self._check_open()
            try:
                return bool(self._collection.has_partition(namespace))
            except MilvusException as e:
                raise VectorIndexError(f"Partition lookup failed: {e}") from e

    def upsert(self, namespace: str, rows: Sequence[Dict[str, Any]]) -> List[int]:
        """Write ``rows`` into ``namespace`` in one call.

        :returns: Positions within ``rows`` the service did not acknowledge.
        """
        with self._lock:
            self._check_open()
            try:
                if not self._collection.has_partition(namespace):
                    logger.info("Creating partition for namespace %s", namespace)
                    self._collection.create_partition(namespace)
                res = self._collection.upsert(list(rows), partition_name=namespace)
            except MilvusException as e:
                raise VectorIndexError(f"Upsert of {len(rows)} record(s) failed: {e}") from e

        failed = sorted({int(i) for i in (getattr(res, "err_index", None) or [])})
        count = getattr(res, "upsert_count", None)
        if not failed and count is not None and int(count) < len(rows):
            # Unacknowledged tail with no per-row detail
            failed = list(range(int(count), len(rows)))
        logger.debug("Upserted %d row(s) into %s", len(rows) - len(failed), namespace)
        return failed

    def query(self, namespace: str, vector: Sequence[float], top_k: int) -> List[Tuple[str, float]]:
        """Return up to ``top_k`` ``(id, score)`` pairs, closest first."""
        with self._lock:
            self._check_open()
            try:
                if not self._collection.has_partition(namespace):
                    logger.info("Namespace %s has no partition; nothing to search", namespace)
                    return []
                res = self._collection.search(
                    data=[list(vector)],
                    anns_field=self.fields.vector,
                    param={"metric_type": self.metric, "params": {"nprobe": self.nprobe}},
                    limit=top_k,
                    partition_names=[namespace],
                    consistency_level="Strong",
                )
            except MilvusException as e:
                raise VectorIndexError(f"Similarity query failed: {e}") from e

        # One query vector per call, so only result set 0 exists
        hits = res[0] if res else []
        return [(str(h.id), float(h.score)) for h in hits]

    def fetch(self, namespace: str, ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        """Return full rows for ``ids`` keyed by id. Missing ids are absent."""
        if not ids:
            return {}

        output_fields = [self.fields.id, self.fields.vector, self.fields.text]
        rows: Dict[str, Dict[str, Any]] = {}
        with self._lock:
            self._check_open()
            for i in range(0, len(ids), self.fetch_chunk):
                chunk = [str(x) for x in ids[i : i + self.fetch_chunk]]
                expr = f"{self.fields.id} in {json.dumps(chunk)}"
                try:
                    found = self._collection.query(
                        expr=expr,
                        output_fields=output_fields,
                        partition_names=[namespace],
                        consistency_level="Strong",
                    )
                except MilvusException as e:
                    raise VectorIndexError(f"Fetch of {len(chunk)} record(s) failed: {e}") from e
                for row in found:
                    rows[str(row[self.fields.id])] = dict(row)
        return rows

    def ping(self) -> str:
        """Return the server version, proving the connection is alive."""
        with self._lock:
            self._check_open()
            if self._alias is None:
                return "unknown"
            try:
                return str(utility.get_server_version(using=self._alias))
            except MilvusException as e:
                raise VectorIndexError(f"Milvus is unreachable: {e}") from e

    def close(self) -> None:
        """Release the connection alias. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._alias is not None:
                connections.disconnect(self._alias)
                logger.info("Disconnected Milvus alias %s", self._alias)


__all__ = ["MilvusIndex"]
