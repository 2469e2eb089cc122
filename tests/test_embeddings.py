"""
Unit tests for the embeddings module.
"""
import math
from unittest.mock import Mock, patch

import pytest
import requests

from domain.errors import EmbeddingUnavailableError
from embeddings import create_embedder, list_providers
from embeddings.base import DummyEmbedding, EmbeddingConfig, EmbeddingException
from embeddings.providers.ollama_embedding import OllamaEmbedding


class TestEmbeddingConfig:
    """Tests para EmbeddingConfig"""

    def test_defaults(self):
        config = EmbeddingConfig()
        config.validate()
        assert config.model_name == "nomic-embed-text"
        assert config.dimension == 768

    @pytest.mark.parametrize("field", ["dimension", "batch_size", "timeout"])
    def test_non_positive_values(self, field):
        config = EmbeddingConfig(**{field: 0})
        with pytest.raises(ValueError, match=field):
            config.validate()


class TestDummyEmbedding:
    """Tests para DummyEmbedding"""

    @pytest.fixture
    def embedder(self):
        return DummyEmbedding(EmbeddingConfig(dimension=16))

    def test_dimension(self, embedder):
        assert len(embedder.embed_text("hello")) == 16
        assert embedder.get_dimension() == 16

    def test_deterministic(self, embedder):
        assert embedder.embed_text("hello") == embedder.embed_text("hello")

    def test_different_texts_differ(self, embedder):
        assert embedder.embed_text("hello") != embedder.embed_text("world")

    def test_normalized(self, embedder):
        vector = embedder.embed_text("hello")
        assert math.isclose(math.sqrt(sum(x * x for x in vector)), 1.0, rel_tol=1e-6)

    def test_blank_text_is_deterministic(self, embedder):
        vector = embedder.embed_text("   ")

        assert len(vector) == embedder.get_dimension()
        assert vector == embedder.embed_text("   ")
        assert len(embedder.embed_text("")) == embedder.get_dimension()

    def test_embed_texts(self, embedder):
        vectors = embedder.embed_texts(["a", "b", "c"])
        assert len(vectors) == 3
        assert vectors[1] == embedder.embed_text("b")

    def test_embed_texts_empty(self, embedder):
        assert embedder.embed_texts([]) == []


class TestEmbeddingFactory:
    """Tests para la factory de embeddings"""

    def test_registered_providers(self):
        assert list_providers() == sorted(list_providers())
        assert {"dummy", "ollama"} <= set(list_providers())

    def test_create_dummy(self):
        embedder = create_embedder("dummy", EmbeddingConfig(dimension=4))
        assert isinstance(embedder, DummyEmbedding)

    def test_create_ollama_with_kwargs(self):
        embedder = create_embedder("ollama", EmbeddingConfig(), base_url="http://ollama:11434/")
        assert isinstance(embedder, OllamaEmbedding)
        assert embedder.base_url == "http://ollama:11434"

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown embedding provider"):
            create_embedder("nonexistent", EmbeddingConfig())


class TestOllamaEmbedding:
    """Tests for OllamaEmbedding."""

    @pytest.fixture
    def embedder(self):
        return OllamaEmbedding(EmbeddingConfig(dimension=3, batch_size=2))

    def _response(self, embeddings):
        response = Mock()
        response.status_code = 200
        response.json.return_value = {"embeddings": embeddings}
        return response

    def test_initialization(self, embedder):
        assert embedder.base_url == "http://127.0.0.1:11434"
        assert embedder.embed_endpoint == "http://127.0.0.1:11434/api/embed"

    @patch("embeddings.providers.ollama_embedding.requests.post")
    def test_embed_text(self, mock_post, embedder):
        mock_post.return_value = self._response([[0.1, 0.2, 0.3]])

        assert embedder.embed_text("hello") == [0.1, 0.2, 0.3]

        call_args = mock_post.call_args
        assert call_args[0][0] == "http://127.0.0.1:11434/api/embed"
        assert call_args[1]["json"] == {"model": "nomic-embed-text", "input": ["hello"]}

    @patch("embeddings.providers.ollama_embedding.requests.post")
    def test_embed_texts_batches_requests(self, mock_post, embedder):
        mock_post.side_effect = [
            self._response([[1.0, 0, 0], [0, 1.0, 0]]),
            self._response([[0, 0, 1.0]]),
        ]

        vectors = embedder.embed_texts(["a", "b", "c"])

        assert vectors == [[1.0, 0, 0], [0, 1.0, 0], [0, 0, 1.0]]
        assert mock_post.call_count == 2

    @patch("embeddings.providers.ollama_embedding.requests.post")
    def test_connection_error(self, mock_post, embedder):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(EmbeddingUnavailableError, match="Failed to connect"):
            embedder.embed_text("hello")

    @patch("embeddings.providers.ollama_embedding.requests.post")
    def test_timeout(self, mock_post, embedder):
        mock_post.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(EmbeddingUnavailableError, match="timed out"):
            embedder.embed_text("hello")

    @patch("embeddings.providers.ollama_embedding.requests.post")
    def test_http_error(self, mock_post, embedder):
        response = Mock()
        response.text = "model not found"
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            "404", response=response
        )
        mock_post.return_value = response

        with pytest.raises(EmbeddingException, match="model not found"):
            embedder.embed_text("hello")

    @patch("embeddings.providers.ollama_embedding.requests.post")
    def test_malformed_response(self, mock_post, embedder):
        response = Mock()
        response.json.return_value = {"embedding": [0.1]}
        mock_post.return_value = response

        with pytest.raises(EmbeddingException, match="Unexpected response format"):
            embedder.embed_text("hello")

    @patch("embeddings.providers.ollama_embedding.requests.get")
    def test_is_available(self, mock_get, embedder):
        mock_get.return_value = Mock(status_code=200)
        assert embedder.is_available() is True

    @patch("embeddings.providers.ollama_embedding.requests.get")
    def test_is_not_available(self, mock_get, embedder):
        mock_get.side_effect = requests.exceptions.ConnectionError()
        assert embedder.is_available() is False
