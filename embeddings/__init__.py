"""
Text embedding providers used by the vector store boundary.

    embedder = create_embedder("ollama", EmbeddingConfig(), base_url="http://127.0.0.1:11434")
    vectors = embedder.embed_texts(["first file", "second file"])
"""
from embeddings.base import (
    BaseEmbedding,
    DummyEmbedding,
    EmbeddingConfig,
    EmbeddingException,
)
from embeddings.factory import create_embedder, list_providers, register_provider
from embeddings.providers import OllamaEmbedding

register_provider("dummy")(DummyEmbedding)

__all__ = [
    "BaseEmbedding",
    "DummyEmbedding",
    "EmbeddingConfig",
    "EmbeddingException",
    "OllamaEmbedding",
    "create_embedder",
    "list_providers",
    "register_provider",
]
