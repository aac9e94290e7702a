import os

from .loader import section


DEFAULT_NAMESPACE = "default"


class Milvus:
    """Connection and layout settings for the Milvus-backed vector index.

    Values come from the ``[embedding_store.milvus]`` table of ``config.toml``
    when present, falling back to environment variables.
    """

    def __init__(self, config: dict | None = None) -> None:
        milvus_cfg = section(config or {}, "embedding_store", "milvus")
        self.MILVUS_URI: str = str(milvus_cfg.get("uri", os.getenv("MILVUS_URI", "http://127.0.0.1:19530")))
        self.MILVUS_TOKEN: str = str(milvus_cfg.get("token", os.getenv("MILVUS_TOKEN", "")))
        self.MILVUS_DB_NAME: str = str(milvus_cfg.get("db_name", os.getenv("MILVUS_DB_NAME", "default")))
        self.MILVUS_COLLECTION: str = str(milvus_cfg.get("collection", os.getenv("MILVUS_COLLECTION", "embeddings")))
        self.MILVUS_NAMESPACE: str = str(milvus_cfg.get("namespace", os.getenv("MILVUS_NAMESPACE", DEFAULT_NAMESPACE)))

        # 0 disables the local dimension check
        self.EMB_DIM: int = int(milvus_cfg.get("dim", os.getenv("EMB_DIM", "0")))

        self.MILVUS_METRIC: str = str(milvus_cfg.get("metric", os.getenv("MILVUS_METRIC", "COSINE")))
        self.MILVUS_NPROBE: int = int(milvus_cfg.get("nprobe", os.getenv("MILVUS_NPROBE", "32")))

        # Maximum number of ids in a single "id in [...]" fetch expression
        self.MILVUS_FETCH_CHUNK: int = int(milvus_cfg.get("fetch_chunk", os.getenv("MILVUS_FETCH_CHUNK", "800")))

        self.MILVUS_ID_FIELD: str = str(milvus_cfg.get("id_field", os.getenv("MILVUS_ID_FIELD", "id")))
        self.MILVUS_VECTOR_FIELD: str = str(milvus_cfg.get("vector_field", os.getenv("MILVUS_VECTOR_FIELD", "embedding")))
        self.MILVUS_TEXT_FIELD: str = str(milvus_cfg.get("text_field", os.getenv("MILVUS_TEXT_FIELD", "text")))
