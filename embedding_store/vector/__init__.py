"""Vector index layer.

Codec, Milvus client and the two-phase search used by
:class:`embedding_store.store.EmbeddingStore`.
"""
