"""
Streaming exact search over an external object store.

Records are pulled through the store cursor and fed into a TopK aggregator,
so peak memory is bounded by ``top_k`` plus one read batch regardless of
how many records the store holds.
"""

import time
from contextlib import closing
from typing import List

from ..core import config
from ..core.config import debug_enabled
from ..core.errors import StorageOperationError, StorageUnavailableError
from ..util.logging import logger
from .heap import TopK
from .similarity import cosine_similarity
from .types import EMBEDDING_FIELD, Filter, ScoredResult, matches_filter, resolve_top_k, sort_results


def search_store(store, query_embedding, top_k: int = None, filter: Filter = None,
                 batch_size: int = None) -> List[ScoredResult]:
    """
    Rank every stored record passing ``filter`` by cosine similarity to the query.

    Args:
        store: Object store exposing ``iter_records``
        query_embedding: Query vector
        top_k: Number of results to return (default 3)
        filter: Optional equality filter, compared in the store's stored form
        batch_size: Rows read per cursor step

    Returns:
        Up to ``top_k`` results sorted by descending similarity. Order among
        equal similarities is unspecified.

    Raises:
        ValidationError: If ``top_k`` is negative
        StorageUnavailableError: If no store is given or it does not exist
        StorageOperationError: If the scan fails; partial results are discarded
    """
    if store is None:
        raise StorageUnavailableError("No object store available for search")

    top_k = resolve_top_k(top_k)
    if filter:
        filter = store.normalize_filter(filter)
    batch_size = batch_size or config.STORE_BATCH_SIZE
    start_time = time.time()

    heap: TopK[ScoredResult] = TopK(top_k, key=lambda r: r.similarity)
    scanned = 0
    try:
        with closing(store.iter_records(batch_size, filter=filter)) as records:
            for record in records:
                scanned += 1
                if not matches_filter(record, filter):
                    continue
                heap.push(ScoredResult(
                    similarity=cosine_similarity(query_embedding, record[EMBEDDING_FIELD], config.SIMILARITY_PRECISION),
                    object=record,
                ))
    except (StorageOperationError, StorageUnavailableError):
        logger.log_store_operation("search", store.store_name, {"scanned": scanned}, status="failed")
        raise

    results = sort_results(heap.results())

    if debug_enabled():
        logger.log_search("store", top_k, scanned, len(results), start_time, time.time())
    return results


class StoreSearch:
    """Streaming search bound to one object store."""

    def __init__(self, store, batch_size: int = None):
        self.store = store
        self.batch_size = batch_size or config.STORE_BATCH_SIZE

    def search(self, query_embedding, top_k: int = None, filter: Filter = None) -> List[ScoredResult]:
        return search_store(self.store, query_embedding, top_k=top_k, filter=filter, batch_size=self.batch_size)
