"""
Directory extractor.
Walks a directory tree and yields the absolute paths that survive a FilterChain.
"""
from pathlib import Path
from typing import Iterable, Iterator, Optional
import logging
import os

from domain.errors import TraversalError
from domain.models import Candidate, ExtractorConfig, FilterDecision
from extraction.filters import Filter, FilterChain

logger = logging.getLogger(__name__)


class DirectoryExtractor:
    """
    Lazy file discovery over a directory tree.

    The extractor holds no traversal state: every call to files() starts a
    new walk from the root. Directories that receive SKIP_SUBTREE are never
    opened, so nothing beneath them is evaluated.

    Example:
        extractor = DirectoryExtractor.build(
            "~/notes",
            ExtractorConfig(extensions={".md", ".txt"}, ignore_hidden=True),
        )
        for path in extractor.files():
            ...
    """

    def __init__(self, root: str | Path, chain: FilterChain):
        self.root = os.path.abspath(os.path.expanduser(str(root)))
        self.chain = chain

    @classmethod
    def build(
        cls,
        root: str | Path,
        config: Optional[ExtractorConfig] = None,
        extra_filters: Iterable[Filter] = (),
    ) -> "DirectoryExtractor":
        """
        Create an extractor for root.

        Args:
            root: Directory (or single file) to walk
            config: Filter options. If None, uses defaults.
            extra_filters: Additional filters appended after the configured ones

        Returns:
            DirectoryExtractor ready to produce paths

        Raises:
            ConfigurationError: If the configuration or an ignore pattern is invalid
        """
        config = config or ExtractorConfig()
        absolute_root = os.path.abspath(os.path.expanduser(str(root)))
        chain = FilterChain.from_config(
            config, root=absolute_root, extra_filters=extra_filters
        )
        logger.info(f"DirectoryExtractor for {absolute_root} with {chain}")
        return cls(absolute_root, chain)

    def files(self) -> Iterator[str]:
        """
        Yield the absolute path of every accepted file.

        Raises:
            TraversalError: If the root or any directory below it cannot be read
        """
        if os.path.isfile(self.root):
            candidate = self._candidate(self.root, is_dir=False)
            if self.chain.evaluate(candidate) is FilterDecision.ACCEPT:
                yield self.root
            return

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=_raise_walk_error):
            kept = []
            for dirname in sorted(dirnames):
                candidate = self._candidate(os.path.join(dirpath, dirname), is_dir=True)
                if self.chain.evaluate(candidate) is FilterDecision.SKIP_SUBTREE:
                    logger.debug(f"Pruned directory {candidate.path}")
                    continue
                kept.append(dirname)
            # os.walk only descends into what is left in dirnames
            dirnames[:] = kept

            for filename in sorted(filenames):
                candidate = self._candidate(os.path.join(dirpath, filename), is_dir=False)
                if self.chain.evaluate(candidate) is FilterDecision.ACCEPT:
                    yield candidate.path

    def is_accepted(self, path: str | Path) -> bool:
        """
        Check a single file against the chain, ancestors included.

        Used for paths reported by the watcher, which never went through a walk.
        """
        absolute = os.path.abspath(str(path))
        rel = os.path.relpath(absolute, self.root)
        if rel == os.curdir:
            return self.chain.evaluate(self._candidate(absolute, is_dir=False)) is FilterDecision.ACCEPT
        if rel.startswith(os.pardir):
            return False

        parts = rel.split(os.sep)
        current = self.root
        for part in parts[:-1]:
            current = os.path.join(current, part)
            if self.chain.evaluate(self._candidate(current, is_dir=True)) is FilterDecision.SKIP_SUBTREE:
                return False
        return self.chain.evaluate(self._candidate(absolute, is_dir=False)) is FilterDecision.ACCEPT

    def _candidate(self, path: str, is_dir: bool) -> Candidate:
        rel = os.path.relpath(path, self.root)
        if rel == os.curdir:
            rel = os.path.basename(path)
        return Candidate(path=path, rel_path=rel.replace(os.sep, "/"), is_dir=is_dir)

    def __repr__(self) -> str:
        return f"DirectoryExtractor(root={self.root!r}, filters={len(self.chain)})"


def _raise_walk_error(error: OSError) -> None:
    raise TraversalError(error.filename or "<unknown>", error) from error
