"""
Embedding provider registry.

Providers register under a name with @register_provider and are built by
name from the CLI configuration. Names are case-insensitive.
"""
from typing import Any, Callable, Dict, List, Optional, Type
import logging

from embeddings.base import BaseEmbedding, EmbeddingConfig

logger = logging.getLogger(__name__)

_PROVIDERS: Dict[str, Type[BaseEmbedding]] = {}


def register_provider(name: str) -> Callable[[Type[BaseEmbedding]], Type[BaseEmbedding]]:
    """
    Class decorator adding an embedding provider to the registry.

        @register_provider("ollama")
        class OllamaEmbedding(BaseEmbedding):
            ...
    """
    key = name.strip().lower()

    def decorator(cls: Type[BaseEmbedding]) -> Type[BaseEmbedding]:
        previous = _PROVIDERS.get(key)
        if previous is not None and previous is not cls:
            logger.warning(
                f"Embedding provider '{key}' re-registered: "
                f"{cls.__name__} replaces {previous.__name__}"
            )
        _PROVIDERS[key] = cls
        return cls

    return decorator


def create_embedder(
    provider: str,
    config: Optional[EmbeddingConfig] = None,
    **kwargs: Any,
) -> BaseEmbedding:
    """
    Build the provider registered as `provider`.

    Extra keyword arguments go straight to the provider's constructor, so
    only pass the ones it accepts (base_url for ollama).

    Raises:
        ValueError: If no provider is registered under that name
    """
    cls = _PROVIDERS.get(provider.strip().lower())
    if cls is None:
        raise ValueError(
            f"Unknown embedding provider: '{provider}'. "
            f"Available providers: {', '.join(list_providers())}"
        )

    embedder = cls(config, **kwargs)
    logger.debug(f"Created embedder {embedder!r}")
    return embedder


def list_providers() -> List[str]:
    return sorted(_PROVIDERS)
