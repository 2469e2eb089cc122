"""
Error taxonomy shared by discovery, ingestion and the store boundary.
"""


class ConfigurationError(ValueError):
    """Invalid configuration: bad regex, mismatched lists, invalid names or sizes"""
    pass


class TraversalError(Exception):
    """A directory could not be read while walking the tree"""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Error walking {path}: {cause}")


class FileReadError(Exception):
    """A single file could not be read; callers skip it and continue"""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not read file {path}: {reason}")


class BatchSubmissionError(Exception):
    """The store rejected one batch; its documents are not counted as ingested"""

    def __init__(self, batch_index: int, batch_size: int, cause: Exception):
        self.batch_index = batch_index
        self.batch_size = batch_size
        self.cause = cause
        super().__init__(
            f"Failed to add batch {batch_index} ({batch_size} documents): {cause}"
        )


class BoundaryUnavailableError(Exception):
    """The store or the embedding service cannot be reached"""
    pass


class StoreUnavailableError(BoundaryUnavailableError):
    """The vector store server cannot be reached"""
    pass


class EmbeddingUnavailableError(BoundaryUnavailableError):
    """The embedding service cannot be reached"""
    pass


class CollectionNotFoundError(LookupError):
    """The requested collection does not exist"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Collection '{name}' does not exist")
