"""
Local file search: index text files into a vector store and query them.

Uso:
    python main.py index ~/notes
    python main.py query "how do I rotate the logs"
    python main.py delete
    python main.py watch ~/notes

Progress lines go to stdout; log records go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from config.settings import settings
from domain.errors import (
    BoundaryUnavailableError,
    CollectionNotFoundError,
    ConfigurationError,
    TraversalError,
)
from domain.models import ExtractorConfig, FileDocument
from embeddings import EmbeddingConfig, create_embedder
from embeddings.base import BaseEmbedding
from etl.watcher import FileWatcher
from extraction.extractor import DirectoryExtractor
from ingestion.pipeline import IndexingPipeline
from ingestion.scheduler import BatchIngestor
from retrieval.service import SearchService
from vectorstore import BaseStoreClient, VectorStoreException, create_store_client

logger = logging.getLogger("main")

SEPARATOR = "-" * 50


# ─────────────────────────────────────────────────────────────────────────────
#  Component construction
# ─────────────────────────────────────────────────────────────────────────────

def build_embedder(provider: str) -> BaseEmbedding:
    config = EmbeddingConfig(
        model_name=settings.EMBEDDING_MODEL,
        dimension=settings.EMBEDDING_DIMENSION,
        batch_size=settings.EMBEDDING_BATCH_SIZE,
        timeout=settings.OLLAMA_TIMEOUT,
    )
    if provider == "ollama":
        return create_embedder(provider, config, base_url=settings.OLLAMA_BASE_URL)
    return create_embedder(provider, config)


def build_client(args: argparse.Namespace) -> BaseStoreClient:
    """Create the store client selected on the command line."""
    embedder = build_embedder(args.embedder)
    if args.store == "chroma":
        return create_store_client(
            provider="chroma",
            embedder=embedder,
            url=args.url or None,
            persist_directory=args.persist_dir,
        )
    return create_store_client(provider=args.store, embedder=embedder)


def build_extractor_config(args: argparse.Namespace) -> ExtractorConfig:
    extensions = args.ext if args.ext else settings.INDEX_EXTENSIONS
    return ExtractorConfig(
        extensions=frozenset(extensions),
        ignore_hidden=settings.IGNORE_HIDDEN and not args.include_hidden,
        ignore_patterns=list(settings.IGNORE_PATTERNS) + list(args.ignore or []),
        use_gitignore=settings.USE_GITIGNORE and not args.no_gitignore,
    )


def build_pipeline(args: argparse.Namespace, collection) -> IndexingPipeline:
    ingestor = BatchIngestor(
        collection,
        batch_size=args.batch_size,
        max_concurrency=args.concurrency,
        fail_fast=settings.INGEST_FAIL_FAST,
    )
    return IndexingPipeline(ingestor, config=build_extractor_config(args))


# ─────────────────────────────────────────────────────────────────────────────
#  Commands
# ─────────────────────────────────────────────────────────────────────────────

def _print_indexing(document: FileDocument) -> None:
    print(f"Indexing: {document.path}")


def cmd_index(args: argparse.Namespace) -> int:
    with build_client(args) as client:
        collection = client.get_or_create_collection(args.collection)
        pipeline = build_pipeline(args, collection)
        report = pipeline.index_path(args.path, on_document=_print_indexing)

    if report.files_found == 0:
        print("No files found to index")
        return 0

    error = report.error
    if isinstance(error, BoundaryUnavailableError):
        logger.error("Store unavailable, indexing aborted: %s", error)
        print(f"Indexed {report.ingested} of {report.files_found} files before the store became unavailable")
        return 1

    if report.ingested == 0:
        logger.error("No documents were indexed: %s", error or "no readable files")
        return 1

    if error is not None:
        logger.warning(
            "%d batches failed, first error: %s",
            report.ingestion.failed_batches,
            error,
        )
        print(f"Indexed {report.ingested} of {report.files_found} files")
        return 0

    print(f"Successfully indexed {report.ingested} files")
    return 0


def cmd_query(args: argparse.Namespace) -> int:
    with build_client(args) as client:
        collection = client.get_collection(args.collection)
        results = SearchService(collection).search(args.text, args.n)

    if not results:
        print("No results found")
        return 0

    print(f"Found {len(results)} results:\n")
    # Best match printed last, next to the prompt
    for result in reversed(results):
        print(f"File: {result.filename}")
        print(f"Path: {result.path}")
        print(f"Content:\n{result.content}")
        print(SEPARATOR)
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    with build_client(args) as client:
        client.delete_collection(args.collection)
    print(f"Collection '{args.collection}' deleted successfully")
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    with build_client(args) as client:
        collection = client.get_or_create_collection(args.collection)
        pipeline = build_pipeline(args, collection)

        report = pipeline.index_path(args.path, on_document=_print_indexing)
        print(f"Indexed {report.ingested} files")

        extractor = DirectoryExtractor.build(args.path, pipeline.config)
        watcher = FileWatcher(
            extractor,
            pipeline,
            collection,
            debounce_seconds=settings.WATCH_DEBOUNCE_SECONDS,
        )
        print(f"Watching {extractor.root} (Ctrl+C to exit)")
        watcher.run_forever()
    return 0


# ─────────────────────────────────────────────────────────────────────────────
#  Argument parsing
# ─────────────────────────────────────────────────────────────────────────────

def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", help="File or directory to index")
    parser.add_argument(
        "--ext",
        action="append",
        metavar="EXT",
        help="Extension to include, repeatable (default: INDEX_EXTENSIONS)",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        metavar="REGEX",
        help="Skip files whose absolute path matches REGEX, repeatable",
    )
    parser.add_argument(
        "--include-hidden",
        action="store_true",
        help="Also index dot-files and dot-directories",
    )
    parser.add_argument(
        "--no-gitignore",
        action="store_true",
        help="Do not honour the root .gitignore",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=settings.INGEST_BATCH_SIZE,
        help="Documents per store call (default: %(default)s)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.INGEST_MAX_CONCURRENCY,
        help="Maximum batches in flight (default: %(default)s)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Index local text files into a vector store and search them"
    )
    parser.add_argument(
        "--url",
        default=settings.CHROMA_URL,
        help="Chroma server URL; empty for a local database (default: %(default)s)",
    )
    parser.add_argument(
        "--persist-dir",
        default=settings.CHROMA_PERSIST_DIRECTORY,
        help="Local database directory when --url is empty (default: %(default)s)",
    )
    parser.add_argument(
        "--collection",
        default=settings.CHROMA_COLLECTION_NAME,
        help="Collection name (default: %(default)s)",
    )
    parser.add_argument(
        "--store",
        default=settings.VECTOR_STORE_TYPE,
        help=(
            "Store provider: chroma or memory; memory lives only for one command "
            "and does not persist between runs (default: %(default)s)"
        ),
    )
    parser.add_argument(
        "--embedder",
        default=settings.EMBEDDING_PROVIDER,
        help="Embedding provider: ollama or dummy (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        help="Logging level (default: %(default)s)",
    )

    commands = parser.add_subparsers(dest="command", required=True, metavar="command")

    index = commands.add_parser("index", help="Index a file or directory")
    _add_filter_arguments(index)
    index.set_defaults(handler=cmd_index)

    query = commands.add_parser("query", help="Query the indexed content")
    query.add_argument("text", help="Search text")
    query.add_argument(
        "-n",
        type=int,
        default=settings.QUERY_N_RESULTS,
        help="Number of results (default: %(default)s)",
    )
    query.set_defaults(handler=cmd_query)

    delete = commands.add_parser("delete", help="Delete the collection")
    delete.set_defaults(handler=cmd_delete)

    watch = commands.add_parser("watch", help="Index a directory and keep it in sync")
    _add_filter_arguments(watch)
    watch.set_defaults(handler=cmd_watch)

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        return args.handler(args)
    except CollectionNotFoundError as exc:
        logger.error("Collection not found: %s", exc)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
    except TraversalError as exc:
        logger.error("Failed to collect files: %s", exc)
    except BoundaryUnavailableError as exc:
        logger.error("Service unavailable: %s", exc)
    except (VectorStoreException, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
    return 1


if __name__ == "__main__":
    sys.exit(main())
