"""
Settings and configuration management using Pydantic BaseSettings.
All configuration values can be overridden via environment variables.
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden by creating a .env file in the project root
    or by setting environment variables with the same names.
    """

    # ========================================================================
    # VECTOR STORE CONFIGURATION
    # ========================================================================
    VECTOR_STORE_TYPE: str = "chroma"  # Available: "chroma", "memory"
    CHROMA_URL: Optional[str] = "http://localhost:8000"  # None → local persistent client
    CHROMA_PERSIST_DIRECTORY: str = "data/chroma"
    CHROMA_COLLECTION_NAME: str = "files"

    # ========================================================================
    # EMBEDDING CONFIGURATION
    # ========================================================================
    EMBEDDING_PROVIDER: str = "ollama"  # Available: "ollama", "dummy"
    EMBEDDING_MODEL: str = "nomic-embed-text"
    EMBEDDING_DIMENSION: int = 768
    EMBEDDING_BATCH_SIZE: int = 32
    OLLAMA_BASE_URL: str = "http://127.0.0.1:11434"
    OLLAMA_TIMEOUT: int = 120

    # ========================================================================
    # INGESTION CONFIGURATION
    # ========================================================================
    INGEST_BATCH_SIZE: int = 100
    INGEST_MAX_CONCURRENCY: int = 50
    INGEST_FAIL_FAST: bool = True  # Stop dispatching once the store is unreachable

    # ========================================================================
    # FILE DISCOVERY
    # ========================================================================
    INDEX_EXTENSIONS: List[str] = [
        ".txt", ".md", ".go", ".py", ".js", ".ts", ".json", ".yaml", ".yml",
        ".xml", ".html", ".css", ".sh", ".rs", ".java", ".c", ".cpp", ".h",
        ".hpp", ".sql", ".dockerfile", ".gitignore", ".toml", ".ini", ".cfg",
        ".conf", ".nix",
    ]
    IGNORE_HIDDEN: bool = True
    IGNORE_PATTERNS: List[str] = []
    USE_GITIGNORE: bool = True

    # ========================================================================
    # QUERY / WATCHER / LOGGING
    # ========================================================================
    QUERY_N_RESULTS: int = 5
    WATCH_DEBOUNCE_SECONDS: float = 2.0
    LOG_LEVEL: str = "WARNING"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Singleton instance
settings = Settings()
