"""
Domain models for local file search.
Defines the entities shared by discovery, ingestion and retrieval.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any, FrozenSet
import hashlib
import os

from domain.errors import ConfigurationError


class FilterDecision(Enum):
    """Outcome of a filter for one filesystem entry"""
    ACCEPT = "accept"
    SKIP_FILE = "skip_file"
    SKIP_SUBTREE = "skip_subtree"


@dataclass(frozen=True)
class Candidate:
    """A filesystem entry met during traversal"""
    path: str  # Absolute path
    rel_path: str  # Path relative to the walk root, "/"-separated
    is_dir: bool

    @property
    def name(self) -> str:
        return os.path.basename(self.path)


@dataclass
class ExtractorConfig:
    """Filter options for directory traversal"""
    extensions: Optional[FrozenSet[str]] = None  # None → every extension
    ignore_hidden: bool = True
    ignore_patterns: List[str] = field(default_factory=list)
    use_gitignore: bool = False

    def __post_init__(self):
        if self.extensions is not None:
            self.extensions = frozenset(
                normalize_extension(ext) for ext in self.extensions
            )

    def validate(self):
        """Valida la configuración"""
        if self.extensions is not None and any(not ext for ext in self.extensions):
            raise ConfigurationError("extensions cannot contain empty values")
        for pattern in self.ignore_patterns:
            if not isinstance(pattern, str):
                raise ConfigurationError(
                    f"ignore pattern must be a string, got {type(pattern).__name__}"
                )


def normalize_extension(ext: str) -> str:
    """Lower-case an extension and make sure it starts with a dot."""
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = f".{ext}"
    return ext


def document_id_for(path: str) -> str:
    """Deterministic document id for a file path."""
    normalized = os.path.normcase(os.path.abspath(path))
    digest = hashlib.md5(normalized.encode("utf-8")).hexdigest()
    return f"doc_{digest}"


@dataclass
class FileDocument:
    """A file's content ready to be sent to the store"""
    id: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return str(self.metadata.get("path", ""))


@dataclass
class IngestionResult:
    """Aggregate outcome of a batched submission"""
    ingested: int = 0
    error: Optional[Exception] = None
    total_batches: int = 0
    completed_batches: int = 0
    failed_batches: int = 0
    skipped_batches: int = 0  # Never dispatched (cancelled or fail-fast)
    skipped_items: int = 0  # Unreadable entries dropped from their batch

    @property
    def success(self) -> bool:
        return self.error is None and self.skipped_batches == 0


@dataclass
class QueryResult:
    """A single search hit"""
    filename: str
    path: str
    content: str


@dataclass
class IndexingReport:
    """Result of indexing a directory tree"""
    root: str
    files_found: int = 0
    files_read: int = 0
    files_skipped: List[str] = field(default_factory=list)
    ingestion: IngestionResult = field(default_factory=IngestionResult)

    @property
    def ingested(self) -> int:
        return self.ingestion.ingested

    @property
    def error(self) -> Optional[Exception]:
        return self.ingestion.error
