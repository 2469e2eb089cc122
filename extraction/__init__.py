"""
Extraction module.

File discovery over a directory tree:

  extraction.filters    — filter predicates and the FilterChain
  extraction.extractor  — DirectoryExtractor (lazy walk + pruning)
"""
from extraction.filters import (
    PRUNED_DIRECTORIES,
    ExtensionFilter,
    FilterChain,
    GitignoreFilter,
    HiddenFilter,
    RegexIgnoreFilter,
    file_extension,
    read_gitignore,
)
from extraction.extractor import DirectoryExtractor

__all__ = [
    "PRUNED_DIRECTORIES",
    "ExtensionFilter",
    "FilterChain",
    "GitignoreFilter",
    "HiddenFilter",
    "RegexIgnoreFilter",
    "file_extension",
    "read_gitignore",
    "DirectoryExtractor",
]
