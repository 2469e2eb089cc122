"""
ETL module: keeps the index in sync with the filesystem.
"""
from etl.watcher import FileWatcher, reindex_file

__all__ = ["FileWatcher", "reindex_file"]
