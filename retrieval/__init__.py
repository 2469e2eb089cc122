"""
Retrieval module for searching indexed files.
"""
from retrieval.service import (
    DEFAULT_N_RESULTS,
    SearchService,
    map_query_results,
)

__all__ = [
    "DEFAULT_N_RESULTS",
    "SearchService",
    "map_query_results",
]
