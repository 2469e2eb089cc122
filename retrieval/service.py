"""
Search service for indexed files.
Runs a query against a collection and flattens the grouped results.
"""
from typing import Any, List, Optional
import logging

from domain.errors import ConfigurationError
from domain.models import QueryResult
from vectorstore.base import BaseCollection, RawQueryResult

logger = logging.getLogger(__name__)

DEFAULT_N_RESULTS = 5


def _first_group(raw: RawQueryResult, key: str) -> List[Any]:
    groups = raw.get(key) or []
    if not groups or groups[0] is None:
        return []
    return list(groups[0])


def map_query_results(raw: RawQueryResult) -> List[QueryResult]:
    """
    Flatten the store's grouped result into QueryResults.

    Only the first group is read (one query text per call). Order is kept
    as returned by the store; metadata fields that are missing on a result
    become empty strings.

    Args:
        raw: {"documents": [[...]], "metadatas": [[...]], ...}

    Returns:
        List of QueryResult, empty when nothing matched
    """
    documents = _first_group(raw, "documents")
    metadatas = _first_group(raw, "metadatas")

    results: List[QueryResult] = []
    for i, document in enumerate(documents):
        metadata = metadatas[i] if i < len(metadatas) and metadatas[i] else {}
        results.append(
            QueryResult(
                filename=str(metadata.get("filename") or ""),
                path=str(metadata.get("path") or ""),
                content="" if document is None else str(document),
            )
        )
    return results


class SearchService:
    """
    Free-text search over one collection.
    """

    def __init__(self, collection: BaseCollection, default_n: int = DEFAULT_N_RESULTS):
        if default_n <= 0:
            raise ConfigurationError(f"default_n must be greater than 0, got {default_n}")
        self.collection = collection
        self.default_n = default_n

    def search(self, query_text: str, n: Optional[int] = None) -> List[QueryResult]:
        """
        Return up to n results, most relevant first.

        Raises:
            ConfigurationError: If n is not positive or the query is empty
            VectorStoreException: If the query fails
            BoundaryUnavailableError: If the store or embedding service is unreachable
        """
        n = n if n is not None else self.default_n
        if n <= 0:
            raise ConfigurationError(f"n must be greater than 0, got {n}")
        if not query_text or not query_text.strip():
            raise ConfigurationError("query_text cannot be empty")

        query_text = query_text.strip()
        logger.info(f"Querying '{self.collection.name}' for '{query_text[:50]}' (n={n})")

        raw = self.collection.query(query_text, n)
        results = map_query_results(raw)

        logger.info(f"Query returned {len(results)} results")
        return results
