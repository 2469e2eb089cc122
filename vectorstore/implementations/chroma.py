"""
ChromaDB implementation of the store client.
Talks to a Chroma server over HTTP, or to a local persistent database
when no URL is configured.
"""
import logging
from typing import List, Optional, Dict, Any
from urllib.parse import urlparse

import httpx

try:
    import chromadb
    CHROMADB_AVAILABLE = True
except ImportError:
    CHROMADB_AVAILABLE = False
    chromadb = None  # type: ignore

from domain.errors import (
    BoundaryUnavailableError,
    CollectionNotFoundError,
    StoreUnavailableError,
)
from embeddings.base import BaseEmbedding, EmbeddingException
from vectorstore.base import (
    BaseCollection,
    BaseStoreClient,
    RawQueryResult,
    VectorStoreException,
    validate_collection_name,
)

logger = logging.getLogger(__name__)

_QUERY_INCLUDE = ["documents", "metadatas", "distances"]


def _is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (httpx.TransportError, ConnectionError)):
        return True
    return "could not connect" in str(exc).lower()


def _is_not_found(exc: Exception) -> bool:
    if type(exc).__name__ in ("NotFoundError", "InvalidCollectionException"):
        return True
    return "does not exist" in str(exc).lower()


def _translate_error(exc: Exception, action: str, name: Optional[str] = None) -> Exception:
    """Map a chromadb/httpx exception onto the store error taxonomy."""
    if _is_connection_error(exc):
        return StoreUnavailableError(f"Chroma server unreachable while trying to {action}: {exc}")
    if name is not None and _is_not_found(exc):
        return CollectionNotFoundError(name)
    return VectorStoreException(f"Failed to {action}: {exc}")


class ChromaCollection(BaseCollection):
    """
    Wrapper around a chromadb collection.
    Embeddings are computed by the configured embedder and passed explicitly.
    """

    def __init__(self, collection: Any, embedder: BaseEmbedding):
        super().__init__(collection.name)
        self.collection = collection
        self.embedder = embedder

    def add(
        self,
        ids: List[str],
        texts: List[str],
        metadatas: List[Dict[str, Any]],
    ) -> None:
        """
        Add a batch to ChromaDB in one call.

        Raises:
            VectorStoreException: If the batch is rejected or embedding fails
            BoundaryUnavailableError: If Chroma or the embedding service is unreachable
        """
        try:
            embeddings = self.embedder.embed_texts(texts)
        except EmbeddingException as e:
            raise VectorStoreException(f"Error embedding batch: {e}") from e

        try:
            self.collection.add(
                ids=ids,
                embeddings=embeddings,
                documents=texts,
                metadatas=metadatas
            )
        except Exception as e:
            error = _translate_error(e, "add documents to collection")
            logger.error(str(error))
            raise error from e

        logger.debug(f"Added {len(ids)} documents to ChromaDB collection '{self.name}'")

    def query(self, text: str, n: int) -> RawQueryResult:
        """
        Query ChromaDB for the n closest documents.

        Returns:
            Chroma's grouped result (ids/documents/metadatas/distances)

        Raises:
            VectorStoreException: If the query fails
            BoundaryUnavailableError: If Chroma or the embedding service is unreachable
        """
        try:
            query_embedding = self.embedder.embed_text(text)
        except EmbeddingException as e:
            raise VectorStoreException(f"Error embedding query: {e}") from e

        try:
            results = self.collection.query(
                query_embeddings=[query_embedding],
                n_results=n,
                include=_QUERY_INCLUDE,
            )
        except Exception as e:
            error = _translate_error(e, "query collection")
            logger.error(str(error))
            raise error from e

        return dict(results)

    def delete(self, ids: List[str]) -> None:
        if not ids:
            return
        try:
            self.collection.delete(ids=ids)
        except Exception as e:
            raise _translate_error(e, "delete documents") from e

    def count(self) -> int:
        try:
            return self.collection.count()
        except Exception as e:
            raise _translate_error(e, "count documents") from e


class ChromaStoreClient(BaseStoreClient):
    """
    Store client for ChromaDB.

    With a url (e.g. "http://localhost:8000") an HTTP client is used;
    otherwise data is persisted under persist_directory.
    """

    def __init__(
        self,
        embedder: BaseEmbedding,
        url: Optional[str] = None,
        persist_directory: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize the ChromaDB client.

        Args:
            embedder: Embedding provider for documents and queries
            url: Chroma server URL. If None, uses a local persistent client.
            persist_directory: Directory for the local client (default: data/chroma)

        Raises:
            VectorStoreException: If ChromaDB is not installed or the client fails
            StoreUnavailableError: If the server cannot be reached
        """
        if not CHROMADB_AVAILABLE:
            raise VectorStoreException(
                "ChromaDB is not installed. Install with: pip install chromadb"
            )

        self.embedder = embedder
        self.url = url
        self.persist_directory = persist_directory or "data/chroma"

        try:
            if url:
                parsed = urlparse(url)
                if not parsed.hostname:
                    raise VectorStoreException(f"Invalid Chroma URL: {url}")
                ssl = parsed.scheme == "https"
                self.client = chromadb.HttpClient(  # type: ignore[union-attr]
                    host=parsed.hostname,
                    port=parsed.port or (443 if ssl else 8000),
                    ssl=ssl,
                )
                target = url
            else:
                self.client = chromadb.PersistentClient(  # type: ignore[union-attr]
                    path=self.persist_directory
                )
                target = self.persist_directory
        except (VectorStoreException, BoundaryUnavailableError):
            raise
        except Exception as e:
            error = _translate_error(e, "create ChromaDB client")
            logger.error(str(error))
            raise error from e

        logger.info(f"ChromaStoreClient initialized: target='{target}'")

    def get_or_create_collection(self, name: str) -> BaseCollection:
        validate_collection_name(name)
        try:
            collection = self.client.get_or_create_collection(
                name=name,
                embedding_function=None,
                metadata={"hnsw:space": "cosine"},
            )
        except Exception as e:
            raise _translate_error(e, f"get/create collection '{name}'") from e
        return ChromaCollection(collection, self.embedder)

    def get_collection(self, name: str) -> BaseCollection:
        validate_collection_name(name)
        try:
            collection = self.client.get_collection(name=name, embedding_function=None)
        except Exception as e:
            raise _translate_error(e, f"get collection '{name}'", name=name) from e
        return ChromaCollection(collection, self.embedder)

    def delete_collection(self, name: str) -> None:
        validate_collection_name(name)
        try:
            self.client.delete_collection(name=name)
        except Exception as e:
            raise _translate_error(e, f"delete collection '{name}'", name=name) from e
        logger.info(f"Deleted ChromaDB collection '{name}'")
