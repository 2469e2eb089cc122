"""Ollama embedding provider."""
import logging
from typing import Any, Dict, List, Optional

import requests

from domain.errors import EmbeddingUnavailableError
from embeddings.base import BaseEmbedding, EmbeddingConfig, EmbeddingException
from embeddings.factory import register_provider

logger = logging.getLogger(__name__)


@register_provider("ollama")
class OllamaEmbedding(BaseEmbedding):
    """Embedding provider backed by a local Ollama server.

    Uses the batch endpoint POST /api/embed, one request per
    config.batch_size texts.

    Example usage:
        config = EmbeddingConfig(model_name="nomic-embed-text", dimension=768)
        embedder = OllamaEmbedding(config, base_url="http://127.0.0.1:11434")
        vectors = embedder.embed_texts(["hello", "world"])
    """

    def __init__(
        self,
        config: Optional[EmbeddingConfig] = None,
        base_url: str = "http://127.0.0.1:11434",
    ):
        """Initialize Ollama embedding provider.

        Args:
            config: Embedding configuration
            base_url: Base URL for Ollama API
        """
        super().__init__(config)
        self.base_url = base_url.rstrip('/')
        self.embed_endpoint = f"{self.base_url}/api/embed"

    def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Call /api/embed for a list of texts.

        Raises:
            EmbeddingUnavailableError: If Ollama cannot be reached
            EmbeddingException: If Ollama returns an error or a malformed body
        """
        payload: Dict[str, Any] = {
            "model": self.config.model_name,
            "input": texts,
        }

        try:
            response = requests.post(
                self.embed_endpoint,
                json=payload,
                timeout=self.config.timeout
            )
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.ConnectionError as e:
            raise EmbeddingUnavailableError(
                f"Failed to connect to Ollama at {self.base_url}. "
                f"Ensure Ollama is running. Error: {e}"
            ) from e
        except requests.exceptions.Timeout as e:
            raise EmbeddingUnavailableError(
                f"Request to Ollama timed out after {self.config.timeout}s. "
                f"Error: {e}"
            ) from e
        except requests.exceptions.HTTPError as e:
            body = e.response.text if e.response is not None else 'N/A'
            raise EmbeddingException(
                f"Ollama API returned error: {e}. Response: {body}"
            ) from e
        except ValueError as e:
            raise EmbeddingException(f"Invalid JSON from Ollama: {e}") from e

        embeddings = result.get("embeddings")
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise EmbeddingException(
                f"Unexpected response format from Ollama: expected "
                f"{len(texts)} embeddings, got {result!r:.200}"
            )

        logger.debug(f"Ollama returned {len(embeddings)} embeddings")
        return embeddings

    def is_available(self) -> bool:
        """Check if Ollama is running and responsive."""
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False
