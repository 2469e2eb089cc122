"""
Vector store module: the boundary between ingestion/retrieval and the store.
"""
# Import factory first
from vectorstore.factory import (
    create_store_client,
    list_store_clients,
    register_store_client,
    is_provider_available
)

# Import base classes and utilities
from vectorstore.base import (
    BaseCollection,
    BaseStoreClient,
    InMemoryCollection,
    InMemoryStoreClient,
    RawQueryResult,
    VectorStoreException,
    cosine_similarity,
    validate_collection_name,
)

# Register InMemoryStoreClient (now factory is available)
register_store_client("memory")(InMemoryStoreClient)

# Import implementations to trigger registration
from vectorstore.implementations.chroma import (  # noqa: E402
    ChromaCollection,
    ChromaStoreClient,
    CHROMADB_AVAILABLE,
)
CHROMA_AVAILABLE = CHROMADB_AVAILABLE
if CHROMA_AVAILABLE:
    # Register ChromaDB only if chromadb package is available
    register_store_client("chroma")(ChromaStoreClient)

__all__ = [
    # Factory
    "create_store_client",
    "list_store_clients",
    "register_store_client",
    "is_provider_available",
    # Base classes
    "BaseCollection",
    "BaseStoreClient",
    "InMemoryCollection",
    "InMemoryStoreClient",
    "ChromaCollection",
    "ChromaStoreClient",
    "RawQueryResult",
    "VectorStoreException",
    # Utilities
    "cosine_similarity",
    "validate_collection_name",
    "CHROMA_AVAILABLE",
]
