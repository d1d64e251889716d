"""Command-line entry point.

Load PDFs::

    pdf-vectorstore load docs/Reporting_Guide.pdf docs/Release_Notes.pdf --table pdf_chunks

Search them::

    pdf-vectorstore search --table pdf_chunks "How do I schedule a report?"
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from pdf_vectorstore.config import Settings, settings
from pdf_vectorstore.errors import PdfVectorStoreError
from pdf_vectorstore.ingestion.pipeline import PdfVectorLoader
from pdf_vectorstore.retrieval.models import SearchMatch
from pdf_vectorstore.retrieval.searcher import SearchService

logger = logging.getLogger("pdf_vectorstore")


def build_parser(config: Settings = settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pdf-vectorstore", description="PDF → vector store ingestion and search")
    sub = parser.add_subparsers(dest="command", required=True)

    load = sub.add_parser("load", help="Chunk, embed and store PDF files")
    load.add_argument("paths", nargs="+", help="PDF files to ingest")
    load.add_argument("--table", required=True, help="Destination table name")
    load.add_argument("--chunk-size", type=int, default=config.chunk_size)
    load.add_argument("--chunk-overlap", type=int, default=config.chunk_overlap)
    load.add_argument("--test-query", help="Run this search after loading to check the table")

    search = sub.add_parser("search", help="Semantic search over a loaded table")
    search.add_argument("queries", nargs="+", help="One or more questions")
    search.add_argument("--table", required=True, help="Table to search")
    search.add_argument("--limit", type=int, default=config.search_limit)
    search.add_argument("--threshold", type=float, default=config.search_threshold)

    return parser


def print_matches(query: str, matches: list[SearchMatch]) -> None:
    print(f"\nResults for: {query}")
    if not matches:
        print("No matches above the similarity threshold.")
    for index, match in enumerate(matches, 1):
        print(f"\n[Result {index}] Similarity: {match.similarity * 100:.2f}%")
        print(f"Content: {match.content}")
        print(f"Source: {match.source_file}")
        print(f"Page: {match.page_number}")


def _run_load(args: argparse.Namespace, config: Settings) -> None:
    loader = PdfVectorLoader.from_settings(config)
    loader.load_documents(args.paths, args.table, args.chunk_size, args.chunk_overlap)
    if args.test_query:
        logger.info("Testing search functionality...")
        service = SearchService.from_settings(config)
        print_matches(
            args.test_query,
            service.search(args.table, args.test_query, config.search_limit, config.search_threshold),
        )


def _run_search(args: argparse.Namespace, config: Settings) -> None:
    service = SearchService.from_settings(config)
    for query in args.queries:
        print_matches(query, service.search(args.table, query, args.limit, args.threshold))
        if len(args.queries) > 1:
            print("\n" + "-" * 80)


def main(argv: Sequence[str] | None = None, config: Settings = settings) -> int:
    """Run the CLI and return the process exit status."""
    args = build_parser(config).parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "load":
            _run_load(args, config)
        else:
            _run_search(args, config)
    except PdfVectorStoreError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
