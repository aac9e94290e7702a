import asyncio
import logging
from typing import List, Sequence

from ..model import ScoredEmbedding
from .codec import decode, narrow
from .index import MilvusIndex

logger = logging.getLogger(__name__)


async def two_phase_search(
    *,
    index: MilvusIndex,
    namespace: str,
    vector: Sequence[float],
    k: int,
) -> List[ScoredEmbedding]:
    """Search ``namespace`` for the ``k`` nearest records and fetch their contents.

    Phase one returns ranked ids only; phase two fetches the full rows. The
    fetched rows are put back into phase-one rank order, and ids the fetch did
    not return are dropped.
    """

    qvec = narrow(vector)
    id_scores = await asyncio.to_thread(index.query, namespace, qvec, k)
    if not id_scores:
        logger.info("Vector search returned no results (namespace=%s)", namespace)
        return []

    ids = [rid for rid, _ in id_scores]
    rows = await asyncio.to_thread(index.fetch, namespace, ids)

    ordered: List[ScoredEmbedding] = []
    for rid, score in id_scores:
        row = rows.get(rid)
        if row is None:
            logger.warning("Matched id %s missing from fetch (namespace=%s)", rid, namespace)
            continue
        emb = decode(row, index.fields)
        if emb is None:
            continue
        ordered.append(ScoredEmbedding(embedding=emb, score=score))
    return ordered
