from types import SimpleNamespace

import pytest
from pymilvus import MilvusException

from embedding_store.exceptions import ConfigurationError, StoreClosedError, VectorIndexError
from embedding_store.vector import index as index_mod
from embedding_store.vector.index import MilvusIndex


def _row(rid, text="t", vec=(1.0, 0.0)):
    return {"id": rid, "embedding": list(vec), "text": text}


def test_upsert_creates_partition_once(fake_collection):
    idx = MilvusIndex(uri="", collection_name="c", collection=fake_collection)
    assert idx.upsert("ns", [_row("a")]) == []
    assert idx.upsert("ns", [_row("b")]) == []
    assert fake_collection.count("create_partition") == 1
    assert set(fake_collection.partitions["ns"]) == {"a", "b"}


def test_upsert_reports_error_indices(fake_collection):
    fake_collection.upsert_result = SimpleNamespace(upsert_count=1, err_index=[2, 1])
    idx = MilvusIndex(uri="", collection_name="c", collection=fake_collection)
    assert idx.upsert("ns", [_row("a"), _row("b"), _row("c")]) == [1, 2]


def test_upsert_treats_unacknowledged_tail_as_failed(fake_collection):
    fake_collection.upsert_result = SimpleNamespace(upsert_count=2, err_index=[])
    idx = MilvusIndex(uri="", collection_name="c", collection=fake_collection)
    assert idx.upsert("ns", [_row("a"), _row("b"), _row("c"), _row("d")]) == [2, 3]


def test_upsert_failure_raises_vector_index_error(fake_collection):
    fake_collection.fail_on.add("upsert")
    idx = MilvusIndex(uri="", collection_name="c", collection=fake_collection)
    with pytest.raises(VectorIndexError) as exc:
        idx.upsert("ns", [_row("a")])
    assert isinstance(exc.value.__cause__, MilvusException)


def test_query_skips_search_for_unknown_namespace(fake_collection):
    idx = MilvusIndex(uri="", collection_name="c", collection=fake_collection)
    assert idx.query("nowhere", [1.0, 0.0], 5) == []
    assert fake_collection.count("search") == 0


def test_query_returns_ranked_ids(fake_collection):
    idx = MilvusIndex(uri="", collection_name="c", collection=fake_collection)
    idx.upsert("ns", [_row("far", vec=(0.1, 0.9)), _row("near", vec=(0.9, 0.1))])
    hits = idx.query("ns", [1.0, 0.0], 2)
    assert [rid for rid, _ in hits] == ["near", "far"]
    assert hits[0][1] > hits[1][1]


def test_fetch_splits_long_id_lists(fake_collection):
    idx = MilvusIndex(uri="", collection_name="c", collection=fake_collection, fetch_chunk=2)
    idx.upsert("ns", [_row(str(i)) for i in range(5)])
    rows = idx.fetch("ns", [str(i) for i in range(5)] + ["missing"])
    assert set(rows) == {"0", "1", "2", "3", "4"}
    assert fake_collection.count("query") == 3


def test_fetch_of_no_ids_makes_no_call(fake_collection):
    idx = MilvusIndex(uri="", collection_name="c", collection=fake_collection)
    assert idx.fetch("ns", []) == {}
    assert fake_collection.count("query") == 0


def test_closed_index_refuses_calls(fake_collection):
    idx = MilvusIndex(uri="", collection_name="c", collection=fake_collection)
    idx.close()
    idx.close()
    assert idx.closed
    with pytest.raises(StoreClosedError):
        idx.query("ns", [1.0], 1)


def test_missing_collection_name_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        MilvusIndex(uri="http://x", collection_name="")


def test_owned_connection_is_released_on_close(monkeypatch, fake_collection):
    events = []
    monkeypatch.setattr(
        index_mod,
        "connections",
        SimpleNamespace(
            connect=lambda **kw: events.append(("connect", kw["alias"], kw["uri"])),
            disconnect=lambda alias: events.append(("disconnect", alias)),
        ),
    )
    monkeypatch.setattr(index_mod, "Collection", lambda name, using=None: fake_collection)
    monkeypatch.setattr(
        index_mod, "utility", SimpleNamespace(get_server_version=lambda using=None: "v2.4.0")
    )

    idx = MilvusIndex(uri="http://milvus:19530", collection_name="docs", token="k")
    assert idx.ping() == "v2.4.0"
    idx.close()

    assert events[0][0] == "connect" and events[0][2] == "http://milvus:19530"
    assert events[-1] == ("disconnect", events[0][1])


def test_rejected_connection_is_a_configuration_error(monkeypatch):
    disconnected = []

    def _refuse(name, using=None):
        raise MilvusException(message="collection not found")

    monkeypatch.setattr(
        index_mod,
        "connections",
        SimpleNamespace(connect=lambda **kw: None, disconnect=disconnected.append),
    )
    monkeypatch.setattr(index_mod, "Collection", _refuse)

    with pytest.raises(ConfigurationError):
        MilvusIndex(uri="http://milvus:19530", collection_name="missing")
    assert len(disconnected) == 1
