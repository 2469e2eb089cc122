"""
Store client registry.

Clients register under a provider name and the CLI builds them by name.
Registration happens in vectorstore/__init__.py: "memory" always, "chroma"
only when the chromadb package can be imported.
"""
from typing import Any, Callable, Dict, List, Type
import logging

from embeddings.base import BaseEmbedding
from vectorstore.base import BaseStoreClient

logger = logging.getLogger(__name__)

_STORE_CLIENTS: Dict[str, Type[BaseStoreClient]] = {}


def register_store_client(name: str) -> Callable[[Type[BaseStoreClient]], Type[BaseStoreClient]]:
    """
    Class decorator making a store client available under `name`.

    Registering an existing name replaces the previous client.
    """
    def decorator(cls: Type[BaseStoreClient]) -> Type[BaseStoreClient]:
        previous = _STORE_CLIENTS.get(name)
        if previous is not None and previous is not cls:
            logger.warning(f"Store client '{name}': {cls.__name__} replaces {previous.__name__}")
        _STORE_CLIENTS[name] = cls
        return cls

    return decorator


def create_store_client(provider: str, embedder: BaseEmbedding, **kwargs: Any) -> BaseStoreClient:
    """
    Build the store client registered as `provider`.

    Args:
        provider: "chroma" or "memory"
        embedder: Provider used for both documents and queries
        **kwargs: Client options, e.g. url / persist_directory for chroma

    Raises:
        ValueError: If the provider is not registered
        StoreUnavailableError: If the client cannot reach its server
    """
    cls = _STORE_CLIENTS.get(provider)
    if cls is None:
        raise ValueError(
            f"Vector store provider '{provider}' not found. "
            f"Available providers: {list_store_clients()}"
        )

    client = cls(embedder=embedder, **kwargs)
    logger.info(f"Store client '{provider}' ready ({cls.__name__})")
    return client


def list_store_clients() -> List[str]:
    return sorted(_STORE_CLIENTS)


def is_provider_available(provider: str) -> bool:
    return provider in _STORE_CLIENTS
