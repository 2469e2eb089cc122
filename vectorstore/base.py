"""
Base module for vector store clients.
Defines the boundary used by ingestion and retrieval, plus an in-memory
implementation for tests and offline runs.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any, Tuple
import ipaddress
import logging
import math
import re
import threading

from domain.errors import CollectionNotFoundError, ConfigurationError
from embeddings.base import BaseEmbedding

logger = logging.getLogger(__name__)

# Raw grouped result, one inner list per query text:
#   {"ids": [[...]], "documents": [[...]], "metadatas": [[...]], "distances": [[...]]}
RawQueryResult = Dict[str, Any]

_COLLECTION_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{1,61}[A-Za-z0-9]$")


class VectorStoreException(Exception):
    """Exception raised for vector store errors"""
    pass


def validate_collection_name(name: str) -> str:
    """
    Check a collection name against the store's naming rules.

    Names are 3-63 characters of [A-Za-z0-9._-], start and end with an
    alphanumeric character, contain no "..", and are not IPv4 addresses.

    Raises:
        ConfigurationError: If the name is invalid
    """
    if not isinstance(name, str) or not _COLLECTION_NAME_RE.match(name):
        raise ConfigurationError(
            f"Invalid collection name {name!r}: expected 3-63 characters of "
            f"[A-Za-z0-9._-], starting and ending with a letter or digit"
        )
    if ".." in name:
        raise ConfigurationError(f"Invalid collection name {name!r}: contains '..'")
    try:
        ipaddress.IPv4Address(name)
    except ValueError:
        return name
    raise ConfigurationError(f"Invalid collection name {name!r}: looks like an IPv4 address")


def cosine_similarity(vec1: List[float], vec2: List[float]) -> float:
    """
    Cosine similarity between two vectors.

    Returns:
        Value between -1 and 1 (1 = identical direction)

    Raises:
        ValueError: If the vectors differ in dimension or are empty
    """
    if len(vec1) != len(vec2):
        raise ValueError(
            f"Vector dimension mismatch: {len(vec1)} vs {len(vec2)}"
        )

    if not vec1 or not vec2:
        raise ValueError("Vectors cannot be empty")

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    magnitude1 = math.sqrt(sum(a * a for a in vec1))
    magnitude2 = math.sqrt(sum(b * b for b in vec2))

    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0

    return dot_product / (magnitude1 * magnitude2)


class BaseCollection(ABC):
    """
    A named set of documents in the store.
    Implementations must be safe for concurrent add() calls.
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def add(
        self,
        ids: List[str],
        texts: List[str],
        metadatas: List[Dict[str, Any]],
    ) -> None:
        """
        Add a batch of documents in a single call.

        Raises:
            VectorStoreException: If the store rejects the batch
            BoundaryUnavailableError: If the store or embedding service is unreachable
        """
        pass

    @abstractmethod
    def query(self, text: str, n: int) -> RawQueryResult:
        """
        Return up to n documents ranked by relevance to text.

        Raises:
            VectorStoreException: If the query fails
        """
        pass

    @abstractmethod
    def delete(self, ids: List[str]) -> None:
        """Remove documents by id; unknown ids are ignored."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of documents in the collection."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class BaseStoreClient(ABC):
    """
    Clase base abstracta para clientes de vector store.
    Gives access to collections by name.
    """

    @abstractmethod
    def get_or_create_collection(self, name: str) -> BaseCollection:
        """
        Raises:
            ConfigurationError: If the name is invalid
            VectorStoreException: If the store fails
        """
        pass

    @abstractmethod
    def get_collection(self, name: str) -> BaseCollection:
        """
        Raises:
            CollectionNotFoundError: If the collection does not exist
        """
        pass

    @abstractmethod
    def delete_collection(self, name: str) -> None:
        """
        Raises:
            CollectionNotFoundError: If the collection does not exist
        """
        pass

    def close(self) -> None:
        """Release client resources. No-op by default."""
        pass

    def __enter__(self) -> "BaseStoreClient":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class InMemoryCollection(BaseCollection):
    """
    Collection kept in process memory.
    Ranks by cosine similarity of the embedder's vectors.
    """

    def __init__(self, name: str, embedder: BaseEmbedding):
        super().__init__(name)
        self.embedder = embedder
        self._records: Dict[str, Tuple[str, Dict[str, Any], List[float]]] = {}
        self._lock = threading.Lock()

    def add(
        self,
        ids: List[str],
        texts: List[str],
        metadatas: List[Dict[str, Any]],
    ) -> None:
        if not (len(ids) == len(texts) == len(metadatas)):
            raise VectorStoreException(
                f"Length mismatch: {len(ids)} ids, {len(texts)} texts, "
                f"{len(metadatas)} metadatas"
            )
        if not ids:
            raise VectorStoreException("Cannot add an empty batch")

        embeddings = self.embedder.embed_texts(texts)

        with self._lock:
            for doc_id, text, metadata, embedding in zip(ids, texts, metadatas, embeddings):
                if doc_id in self._records:
                    logger.debug(f"Document {doc_id} already exists, ignoring")
                    continue
                self._records[doc_id] = (text, dict(metadata), embedding)

        logger.debug(f"Added {len(ids)} documents to collection '{self.name}'")

    def query(self, text: str, n: int) -> RawQueryResult:
        query_embedding = self.embedder.embed_text(text)

        with self._lock:
            records = list(self._records.items())

        scored = [
            (doc_id, record, cosine_similarity(query_embedding, record[2]))
            for doc_id, record in records
        ]
        scored.sort(key=lambda x: x[2], reverse=True)
        scored = scored[:n]

        return {
            "ids": [[doc_id for doc_id, _, _ in scored]],
            "documents": [[record[0] for _, record, _ in scored]],
            "metadatas": [[dict(record[1]) for _, record, _ in scored]],
            "distances": [[1.0 - score for _, _, score in scored]],
        }

    def delete(self, ids: List[str]) -> None:
        with self._lock:
            for doc_id in ids:
                self._records.pop(doc_id, None)

    def count(self) -> int:
        with self._lock:
            return len(self._records)


class InMemoryStoreClient(BaseStoreClient):
    """
    Store client backed by process memory.
    Útil para desarrollo, testing y prototipos.
    No persistente - los datos se pierden al terminar el proceso.
    """

    def __init__(self, embedder: BaseEmbedding, **kwargs):
        self.embedder = embedder
        self._collections: Dict[str, InMemoryCollection] = {}
        self._lock = threading.Lock()
        logger.info("InMemoryStoreClient initialized")

    def get_or_create_collection(self, name: str) -> BaseCollection:
        validate_collection_name(name)
        with self._lock:
            if name not in self._collections:
                self._collections[name] = InMemoryCollection(name, self.embedder)
                logger.info(f"Created collection '{name}'")
            return self._collections[name]

    def get_collection(self, name: str) -> BaseCollection:
        validate_collection_name(name)
        with self._lock:
            collection = self._collections.get(name)
        if collection is None:
            raise CollectionNotFoundError(name)
        return collection

    def delete_collection(self, name: str) -> None:
        validate_collection_name(name)
        with self._lock:
            if name not in self._collections:
                raise CollectionNotFoundError(name)
            del self._collections[name]
        logger.info(f"Deleted collection '{name}'")

    def list_collections(self) -> List[str]:
        with self._lock:
            return sorted(self._collections.keys())
