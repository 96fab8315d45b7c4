# =============================================================================
# src/cli/ingest.py -- CLI for the benefits document pipeline
# =============================================================================
#
# Operator tool for the same stores, index and pipeline the API serves.
# Components are assembled by src.main._build_all, so the CLI always uses the
# embedding model and ChromaDB collection the deployed app uses.
#
# Supported subcommands:
#
#   init-db          -- Create the SQLite document and chunk tables
#   register         -- Register an uploaded document (status "uploaded")
#   process          -- Run one document through fetch/extract/chunk/index
#   process-company  -- Run every pending, uploaded or failed document of a company
#   search           -- Search a company's indexed chunks
#
# Usage examples:
#   python -m src.cli.ingest init-db
#   python -m src.cli.ingest register --document-id doc1 --company-id comp1 \
#       --title "2026 Medical Plan" --file-url https://files.example.com/doc1.pdf
#   python -m src.cli.ingest process --document-id doc1
#   python -m src.cli.ingest process-company --company-id comp1
#   python -m src.cli.ingest search --company-id comp1 --query "dental coverage"
# =============================================================================

"""Standalone CLI for processing and searching tenant documents.

Usage::

    python -m src.cli.ingest init-db
    python -m src.cli.ingest process --document-id doc1
    python -m src.cli.ingest search --company-id comp1 --query "vision plan"
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from src.config.settings import Settings
from src.utils.errors import BenefitsRAGError


async def _with_components(handler, args: argparse.Namespace, app_settings: Settings) -> int:  # noqa: ANN001
    """Build and initialise components, run *handler*, then release resources."""
    # Deferred so ``--help`` does not open ChromaDB.
    from src.main import _build_all, _close_components, _initialize_stores

    components = _build_all(app_settings)
    try:
        await _initialize_stores(components)
        return await handler(args, components)
    finally:
        await _close_components(components)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_init_db(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Schemas are created by ``_initialize_stores``; report where."""
    app_settings: Settings = components["settings"]
    print("Database initialised:")
    print(f"  SQLite:   {app_settings.database_path}")
    print(f"  ChromaDB: {app_settings.chromadb_persist_dir} ({app_settings.chromadb_collection})")
    return 0


async def _handle_register(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from src.models.rag import Document, DocumentStatus

    document = Document(
        id=args.document_id,
        company_id=args.company_id,
        title=args.title,
        file_url=args.file_url,
        file_type=args.file_type,
        status=DocumentStatus.UPLOADED,
        category=args.category,
        tags=args.tags or [],
        created_by=args.created_by,
    )
    await components["document_store"].add_document(document)
    print(f"Registered document {document.id} for company {document.company_id}")
    return 0


async def _handle_process(args: argparse.Namespace, components: dict[str, Any]) -> int:
    print(f"Processing document: {args.document_id}")
    try:
        result = await components["document_pipeline"].process_document(args.document_id)
    except BenefitsRAGError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print("\nProcessing complete:")
    print(f"  Chunks processed: {result.chunks_processed}")
    print(f"  Vectors stored:   {result.vectors_stored}")
    return 0


async def _handle_process_company(args: argparse.Namespace, components: dict[str, Any]) -> int:
    print(f"Processing documents for company: {args.company_id}")
    results = await components["document_pipeline"].process_company_documents(args.company_id)

    if not results:
        print("No pending, uploaded or failed documents.")
        return 0

    failed = 0
    for result in results:
        if result.success:
            print(f"  OK    {result.document_id}  chunks={result.chunks_processed}")
        else:
            failed += 1
            print(f"  FAIL  {result.document_id}  {result.error}")

    print(f"\n{len(results) - failed} succeeded, {failed} failed")
    return 1 if failed else 0


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    rag_service = components["rag_service"]
    app_settings: Settings = components["settings"]
    limit = args.limit or app_settings.search_default_limit

    results = await rag_service.search(args.query, args.company_id, limit)
    if results:
        mode = results[0].mode
    else:
        mode = "vector" if rag_service.embedding_available else "keyword"
    print(f"Search ({mode}) for {args.query!r} in {args.company_id}: {len(results)} result(s)")

    for i, result in enumerate(results, start=1):
        title = result.chunk.metadata.get("title") or result.chunk.document_id
        section = result.chunk.metadata.get("section", "")
        preview = result.chunk.content[:200].replace("\n", " ")
        print(f"\n{i}. [{title} - {section}] score={result.score:.4f} ({result.mode})")
        print(f"   {preview}")

    if args.context and results:
        print("\nContext:\n")
        print(rag_service.generate_context(results, max_chars=app_settings.context_max_chars))
    return 0


_HANDLERS = {
    "init-db": _handle_init_db,
    "register": _handle_register,
    "process": _handle_process,
    "process-company": _handle_process_company,
    "search": _handle_search,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Process and search tenant benefits documents.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Pipeline commands")

    # -- init-db --
    subparsers.add_parser("init-db", help="Create the document and chunk tables")

    # -- register --
    register_parser = subparsers.add_parser("register", help="Register an uploaded document")
    register_parser.add_argument("--document-id", required=True, dest="document_id")
    register_parser.add_argument("--company-id", required=True, dest="company_id")
    register_parser.add_argument("--title", required=True, help="Document title")
    register_parser.add_argument("--file-url", required=True, dest="file_url")
    register_parser.add_argument(
        "--file-type",
        default="application/pdf",
        dest="file_type",
        help="Media type (default: application/pdf)",
    )
    register_parser.add_argument("--category", default=None)
    register_parser.add_argument(
        "--tag", action="append", dest="tags", help="Tag (repeatable)"
    )
    register_parser.add_argument("--created-by", default=None, dest="created_by")

    # -- process --
    process_parser = subparsers.add_parser("process", help="Process one document")
    process_parser.add_argument("--document-id", required=True, dest="document_id")

    # -- process-company --
    company_parser = subparsers.add_parser(
        "process-company", help="Process a company's pending, uploaded and failed documents"
    )
    company_parser.add_argument("--company-id", required=True, dest="company_id")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Search a company's documents")
    search_parser.add_argument("--company-id", required=True, dest="company_id")
    search_parser.add_argument("--query", required=True)
    search_parser.add_argument("--limit", type=int, default=None)
    search_parser.add_argument(
        "--context", action="store_true", help="Also print the formatted prompt context"
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run(argv: list[str] | None = None, app_settings: Settings | None = None) -> int:
    """Parse *argv*, dispatch to the subcommand handler and return its exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    handler = _HANDLERS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return asyncio.run(_with_components(handler, args, app_settings or Settings()))


def main() -> None:
    """CLI entry point for the ingestion tool."""
    sys.exit(run())


if __name__ == "__main__":
    main()
