"""
Filter predicates for directory traversal.

Each filter maps a Candidate to a FilterDecision. A FilterChain runs them in
registration order and stops at the first decision other than ACCEPT.
"""
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
import logging
import re

from domain.errors import ConfigurationError
from domain.models import Candidate, ExtractorConfig, FilterDecision

logger = logging.getLogger(__name__)

Filter = Callable[[Candidate], FilterDecision]

# Directories that are never worth walking
PRUNED_DIRECTORIES = frozenset({".git", "node_modules"})


def file_extension(name: str) -> str:
    """
    Lower-cased suffix starting at the last dot of a basename.

    Unlike Path.suffix, a dotfile keeps its name as extension
    (".gitignore" → ".gitignore").
    """
    index = name.rfind(".")
    if index < 0:
        return ""
    return name[index:].lower()


def structural_prune(candidate: Candidate) -> FilterDecision:
    if candidate.is_dir and candidate.name in PRUNED_DIRECTORIES:
        return FilterDecision.SKIP_SUBTREE
    return FilterDecision.ACCEPT


class ExtensionFilter:
    """Accept only files whose extension is in the allow-set"""

    def __init__(self, extensions: Iterable[str]):
        self.extensions = frozenset(ext.lower() for ext in extensions)

    def __call__(self, candidate: Candidate) -> FilterDecision:
        if candidate.is_dir:
            return FilterDecision.ACCEPT
        if file_extension(candidate.name) in self.extensions:
            return FilterDecision.ACCEPT
        return FilterDecision.SKIP_FILE

    def __repr__(self) -> str:
        return f"ExtensionFilter({sorted(self.extensions)})"


class HiddenFilter:
    """
    Skip dot-entries below the walk root.

    Hidden directories are pruned; hidden files are skipped. The root itself
    is not considered, so walking a hidden directory explicitly still works.
    """

    def __call__(self, candidate: Candidate) -> FilterDecision:
        components = candidate.rel_path.split("/")
        for component in components[:-1]:
            if component.startswith("."):
                return FilterDecision.SKIP_SUBTREE
        if components[-1].startswith("."):
            if candidate.is_dir:
                return FilterDecision.SKIP_SUBTREE
            return FilterDecision.SKIP_FILE
        return FilterDecision.ACCEPT

    def __repr__(self) -> str:
        return "HiddenFilter()"


class RegexIgnoreFilter:
    """Skip any entry whose absolute path matches one of the patterns"""

    def __init__(self, patterns: Sequence[str]):
        self.patterns: List[re.Pattern] = []
        for pattern in patterns:
            try:
                self.patterns.append(re.compile(pattern))
            except re.error as e:
                raise ConfigurationError(
                    f"Invalid ignore pattern {pattern!r}: {e}"
                ) from e

    def __call__(self, candidate: Candidate) -> FilterDecision:
        for pattern in self.patterns:
            if pattern.search(candidate.path):
                return FilterDecision.SKIP_FILE
        return FilterDecision.ACCEPT

    def __repr__(self) -> str:
        return f"RegexIgnoreFilter({[p.pattern for p in self.patterns]})"


class GitignoreFilter:
    """
    Subset of .gitignore semantics, matched against root-relative paths.

    Supported pattern forms:
        dir/        → that directory and everything below it
        prefix*suffix → a single wildcard
        name        → the exact path or anything below it
    """

    def __init__(self, patterns: Sequence[str]):
        self.patterns = list(patterns)

    @classmethod
    def from_root(cls, root: str | Path) -> "GitignoreFilter":
        return cls(read_gitignore(root))

    def matches(self, rel_path: str) -> bool:
        return any(_match_gitignore_pattern(rel_path, p) for p in self.patterns)

    def __call__(self, candidate: Candidate) -> FilterDecision:
        if not self.matches(candidate.rel_path):
            return FilterDecision.ACCEPT
        if candidate.is_dir:
            return FilterDecision.SKIP_SUBTREE
        return FilterDecision.SKIP_FILE

    def __repr__(self) -> str:
        return f"GitignoreFilter({self.patterns})"


def read_gitignore(root: str | Path) -> List[str]:
    """Patterns from <root>/.gitignore, or an empty list if there is none."""
    gitignore = Path(root) / ".gitignore"
    try:
        content = gitignore.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []

    patterns = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    return patterns


def _match_gitignore_pattern(path: str, pattern: str) -> bool:
    if pattern.endswith("/"):
        pattern = pattern.rstrip("/")
        return path == pattern or path.startswith(pattern + "/")
    if pattern.count("*") == 1:
        prefix, suffix = pattern.split("*")
        return (
            len(path) >= len(prefix) + len(suffix)
            and path.startswith(prefix)
            and path.endswith(suffix)
        )
    return path == pattern or path.startswith(pattern + "/")


class FilterChain:
    """Ordered, immutable sequence of filters"""

    def __init__(self, filters: Iterable[Filter] = ()):
        self._filters: Tuple[Filter, ...] = tuple(filters)

    @property
    def filters(self) -> Tuple[Filter, ...]:
        return self._filters

    def evaluate(self, candidate: Candidate) -> FilterDecision:
        for f in self._filters:
            decision = f(candidate)
            if decision is not FilterDecision.ACCEPT:
                return decision
        return FilterDecision.ACCEPT

    def __len__(self) -> int:
        return len(self._filters)

    def __repr__(self) -> str:
        return f"FilterChain({list(self._filters)})"

    @classmethod
    def from_config(
        cls,
        config: ExtractorConfig,
        root: Optional[str | Path] = None,
        extra_filters: Iterable[Filter] = (),
    ) -> "FilterChain":
        """
        Build the chain for a configuration.

        The structural prune always runs first, then hidden entries,
        .gitignore, extensions, ignore patterns and finally any extra filters.

        Raises:
            ConfigurationError: If the configuration or a pattern is invalid
        """
        config.validate()

        filters: List[Filter] = [structural_prune]
        if config.ignore_hidden:
            filters.append(HiddenFilter())
        if config.use_gitignore and root is not None:
            gitignore = GitignoreFilter.from_root(root)
            if gitignore.patterns:
                logger.debug(f"Loaded {len(gitignore.patterns)} .gitignore patterns")
                filters.append(gitignore)
        if config.extensions is not None:
            filters.append(ExtensionFilter(config.extensions))
        if config.ignore_patterns:
            filters.append(RegexIgnoreFilter(config.ignore_patterns))
        filters.extend(extra_filters)

        return cls(filters)
