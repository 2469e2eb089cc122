"""
Embedding providers.
Auto-imports all providers to register them with the factory.
"""
from embeddings.providers.ollama_embedding import OllamaEmbedding

__all__ = [
    "OllamaEmbedding",
]
