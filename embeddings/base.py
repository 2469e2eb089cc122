"""
Embedding provider interface.

The store boundary calls embed_texts() once per batch it adds and
embed_text() once per query. Batch workers share a single provider, so
implementations must be thread-safe.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence
import hashlib
import logging
import random

logger = logging.getLogger(__name__)

Vector = List[float]


class EmbeddingException(Exception):
    """The provider could not turn text into vectors"""
    pass


@dataclass
class EmbeddingConfig:
    """Configuration for embedding generation"""
    model_name: str = "nomic-embed-text"
    dimension: int = 768  # Dimensión del vector de embedding
    batch_size: int = 32  # Textos por request al proveedor
    timeout: int = 30  # Segundos
    normalize: bool = True  # Normalización L2 (dummy)

    def validate(self):
        """Valida la configuración"""
        if not self.model_name:
            raise ValueError("model_name cannot be empty")
        for name in ("dimension", "batch_size", "timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be greater than 0, got {value}")


class BaseEmbedding(ABC):
    """
    Turns texts into fixed-size vectors.

    Subclasses implement _embed_batch(); splitting by config.batch_size
    happens here.
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None):
        self.config = config or EmbeddingConfig()
        self.config.validate()
        logger.info(
            f"{type(self).__name__} ready: model={self.config.model_name}, "
            f"batch_size={self.config.batch_size}"
        )

    @abstractmethod
    def _embed_batch(self, texts: List[str]) -> List[Vector]:
        """Embed at most config.batch_size texts in one provider call."""
        pass

    def embed_text(self, text: str) -> Vector:
        return self.embed_texts([text])[0]

    def embed_texts(self, texts: Sequence[str]) -> List[Vector]:
        """
        Embed texts, in order, one provider call per config.batch_size texts.

        Raises:
            EmbeddingException: If generation fails
            EmbeddingUnavailableError: If the embedding service is unreachable
        """
        vectors: List[Vector] = []
        step = self.config.batch_size
        for start in range(0, len(texts), step):
            vectors.extend(self._embed_batch(list(texts[start:start + step])))
        return vectors

    def get_dimension(self) -> int:
        return self.config.dimension

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.config.model_name!r})"


class DummyEmbedding(BaseEmbedding):
    """
    Implementación dummy para testing.
    Vectors are pseudo-random but stable for a given text across processes.
    """

    def _embed_batch(self, texts: List[str]) -> List[Vector]:
        return [self._vector(text) for text in texts]

    def _vector(self, text: str) -> Vector:
        rng = random.Random(hashlib.md5(text.encode("utf-8")).digest())
        vector = [rng.uniform(-1.0, 1.0) for _ in range(self.config.dimension)]
        if not self.config.normalize:
            return vector

        norm = sum(x * x for x in vector) ** 0.5
        return [x / norm for x in vector] if norm else vector
