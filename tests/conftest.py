import json
import sys
from pathlib import Path
from types import SimpleNamespace

import numpy as np
import pytest
from pymilvus import MilvusException

# Add project root to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from embedding_store.store import EmbeddingStore
from embedding_store.vector.index import MilvusIndex


class FakeCollection:
    """In-memory stand-in for ``pymilvus.Collection``.

    Partitions map to dicts of ``id -> row``. ``scripted_hits`` overrides the
    search ranking, ``missing_on_fetch`` hides ids from ``query`` and
    ``fail_on`` makes the named methods raise ``MilvusException``.
    """

    def __init__(self):
        self.partitions: dict[str, dict[str, dict]] = {}
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()
        self.scripted_hits: list[tuple[str, float]] | None = None
        self.missing_on_fetch: set[str] = set()
        self.reverse_fetch = False
        self.upsert_result = None

    def _maybe_fail(self, name):
        if name in self.fail_on:
            raise MilvusException(message=f"{name} failed")

    def load(self):
        pass

    def has_partition(self, name):
        return name in self.partitions

    def create_partition(self, name):
        self.calls.append(("create_partition", name))
        self.partitions.setdefault(name, {})

    def upsert(self, data, partition_name=None):
        self.calls.append(("upsert", partition_name, len(data)))
        self._maybe_fail("upsert")
        part = self.partitions[partition_name]
        for row in data:
            stored = dict(row)
            stored["embedding"] = np.asarray(row["embedding"], dtype=np.float32).tolist()
            part[row["id"]] = stored
        if self.upsert_result is not None:
            return self.upsert_result
        return SimpleNamespace(upsert_count=len(data), err_index=[])

    def search(self, data, anns_field=None, param=None, limit=10, partition_names=None, consistency_level=None):
        self.calls.append(("search", tuple(partition_names or ()), limit))
        self._maybe_fail("search")
        if self.scripted_hits is not None:
            ranked = list(self.scripted_hits)
        else:
            vec = np.asarray(data[0], dtype=np.float32)
            ranked = []
            for name in partition_names or self.partitions:
                for rid, row in self.partitions.get(name, {}).items():
                    emb = np.asarray(row[anns_field], dtype=np.float32)
                    ranked.append((rid, float(np.dot(vec, emb))))
            ranked.sort(key=lambda h: h[1], reverse=True)
        return [[SimpleNamespace(id=rid, score=score) for rid, score in ranked[:limit]]]

    def query(self, expr, output_fields=None, partition_names=None, consistency_level=None):
        self.calls.append(("query", tuple(partition_names or ()), expr))
        self._maybe_fail("query")
        ids = json.loads(expr.split(" in ", 1)[1])
        out = []
        for name in partition_names or self.partitions:
            part = self.partitions.get(name, {})
            for rid in ids:
                if rid in part and rid not in self.missing_on_fetch:
                    row = part[rid]
                    out.append({f: row[f] for f in (output_fields or row) if f in row})
        if self.reverse_fetch:
            out.reverse()
        return out

    def count(self, method):
        return sum(1 for c in self.calls if c[0] == method)


@pytest.fixture
def fake_collection():
    return FakeCollection()


@pytest.fixture
def make_store(fake_collection):
    """Build stores that share ``fake_collection``."""

    def _make(namespace=None, dim=0, **index_kwargs):
        index = MilvusIndex(uri="", collection_name="test", collection=fake_collection, **index_kwargs)
        return EmbeddingStore(index, namespace=namespace, dim=dim)

    return _make
