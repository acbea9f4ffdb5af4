"""Command-line entry point: ``groundline <command> ...``."""

from __future__ import annotations

# Phase 1: logging before anything imports litellm
from groundline.config import Settings
from groundline.logging_config import setup_logging

setup_logging(Settings().log_level)

import argparse  # noqa: E402
import asyncio  # noqa: E402
import json  # noqa: E402
import sys  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any  # noqa: E402

from groundline import __version__  # noqa: E402
from groundline.citations import (  # noqa: E402
    CitationMonitor,
    citation_to_dict,
    parse_citations,
    validate_and_clean_citations,
)
from groundline.constants import EntityKind  # noqa: E402
from groundline.embedding import embed_query, index_source  # noqa: E402
from groundline.ingestion import (  # noqa: E402
    ChunkOptions,
    build_chunks,
)
from groundline.knowledge import open_knowledge_store  # noqa: E402
from groundline.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
)
from groundline.registry import (  # noqa: E402
    Entity,
    EntityTree,
    IdMapping,
    build_registry,
)

# Phase 2: Clear litellm's duplicate handlers after all imports
cleanup_third_party_handlers()


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"groundline {__version__}")
        return

    handlers = {
        "chunk": _run_chunk,
        "parse": _run_parse,
        "validate": _run_validate,
        "registry": _run_registry,
        "index": _run_index,
        "search": _run_search,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return
    handler(args)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    settings = Settings()
    parser = argparse.ArgumentParser(
        prog="groundline",
        description=(
            "Chunk and index user content, and parse the citations "
            "an assistant writes against it."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    chunk = sub.add_parser("chunk", help="Split a text file into chunks")
    chunk.add_argument("file", help="Text file to chunk")
    chunk.add_argument(
        "--chunk-size",
        type=int,
        default=settings.chunk_size,
        help=f"Chunk size in characters (default: {settings.chunk_size})",
    )
    chunk.add_argument(
        "--overlap",
        type=int,
        default=settings.chunk_overlap,
        help=f"Window overlap (default: {settings.chunk_overlap})",
    )
    chunk.add_argument(
        "--keep-whitespace",
        action="store_true",
        help="Do not collapse whitespace runs",
    )
    _add_source_args(chunk)

    parse = sub.add_parser("parse", help="Parse citations in a text file")
    parse.add_argument("file", help="Assistant output to parse")
    parse.add_argument(
        "--mapping",
        default=None,
        help="JSON file with the id mapping ({forward, reverse})",
    )
    parse.add_argument(
        "--partial",
        action="store_true",
        help="Hold back a trailing unfinished citation",
    )

    validate = sub.add_parser(
        "validate", help="Validate citations in a text file"
    )
    validate.add_argument("file", help="Assistant output to validate")
    validate.add_argument(
        "--mapping",
        default=None,
        help="JSON file with the id mapping ({forward, reverse})",
    )

    registry = sub.add_parser(
        "registry", help="Assign short ids to an entity tree"
    )
    registry.add_argument("file", help="JSON entity tree snapshot")

    index = sub.add_parser(
        "index", help="Embed a text file into the knowledge store"
    )
    index.add_argument("file", help="Text file to index")
    index.add_argument("--scope", required=True, help="Content tree id")
    _add_source_args(index)

    search = sub.add_parser("search", help="Search the knowledge store")
    search.add_argument("query", help="Search query")
    search.add_argument("--scope", required=True, help="Content tree id")
    search.add_argument(
        "--limit",
        type=int,
        default=settings.search_default_limit,
        help="Maximum results",
    )
    search.add_argument(
        "--source-type",
        action="append",
        choices=[k.value for k in EntityKind],
        dest="source_types",
        help="Restrict to a source type (repeatable)",
    )

    return parser


def _add_source_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source-type",
        default=EntityKind.DOCUMENT.value,
        choices=[k.value for k in EntityKind],
        help="Entity kind of the source (default: document)",
    )
    parser.add_argument(
        "--source-id",
        default=None,
        help="Source entity id (default: file name)",
    )


def _read_text(path_str: str) -> str:
    path = Path(path_str)
    if not path.is_file():
        print(f"Error: {path} does not exist", file=sys.stderr)
        sys.exit(1)
    return path.read_text(encoding="utf-8")


def _load_mapping(path_str: str | None) -> IdMapping | None:
    if path_str is None:
        return None
    return IdMapping.model_validate_json(_read_text(path_str))


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _run_chunk(args: argparse.Namespace) -> None:
    """Execute the chunk command."""
    options = ChunkOptions(
        chunk_size=args.chunk_size,
        overlap=args.overlap,
        normalize_whitespace=not args.keep_whitespace,
    )
    try:
        chunks = build_chunks(
            _read_text(args.file),
            EntityKind(args.source_type),
            args.source_id or Path(args.file).name,
            options,
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    _print_json([c.model_dump(mode="json") for c in chunks])


def _run_parse(args: argparse.Namespace) -> None:
    """Execute the parse command."""
    result = parse_citations(
        _read_text(args.file),
        _load_mapping(args.mapping),
        partial=args.partial,
    )
    _print_json(
        {
            "normalized_text": result.normalized_text,
            "citations": [citation_to_dict(c) for c in result.citations],
            "pending": result.pending,
        }
    )


def _run_validate(args: argparse.Namespace) -> None:
    """Execute the validate command."""
    text = _read_text(args.file)
    mapping = _load_mapping(args.mapping)
    monitor = CitationMonitor()
    issues = monitor.process_chunk(text, mapping)
    snapshot = monitor.snapshot()
    _print_json(
        {
            "valid": not issues,
            "issues": [
                {
                    "kind": i.kind.value,
                    "span": i.span,
                    "id": i.citation_id,
                    "start": i.start,
                }
                for i in issues
            ],
            "cleaned": validate_and_clean_citations(
                text, mapping, log_errors=False
            ),
            "metrics": {
                "total": snapshot.total,
                "valid": snapshot.valid,
                "invalid": snapshot.invalid,
                "accuracy": snapshot.accuracy,
                "histogram": snapshot.histogram,
            },
        }
    )


def _run_registry(args: argparse.Namespace) -> None:
    """Execute the registry command."""
    raw = json.loads(_read_text(args.file))
    if isinstance(raw, list):
        tree = EntityTree.from_entities(
            [Entity.model_validate(e) for e in raw]
        )
    else:
        tree = EntityTree.model_validate(raw)
    state = build_registry(tree)
    _print_json(
        {
            "forward": state.mapping.forward,
            "reverse": state.mapping.reverse,
            "counts": {k.value: v for k, v in state.counts.items()},
        }
    )


def _run_index(args: argparse.Namespace) -> None:
    """Execute the index command."""
    text = _read_text(args.file)
    settings = Settings()

    async def _index() -> dict[str, int]:
        async with open_knowledge_store(settings) as store:
            report = await index_source(
                store,
                args.scope,
                EntityKind(args.source_type),
                args.source_id or Path(args.file).name,
                text,
                settings=settings,
            )
        return report.model_dump()

    _print_json(asyncio.run(_index()))


def _run_search(args: argparse.Namespace) -> None:
    """Execute the search command."""
    settings = Settings()

    async def _search() -> list[dict[str, Any]]:
        vector = await embed_query(args.query, settings=settings)
        async with open_knowledge_store(settings) as store:
            results = await store.search(
                args.scope,
                args.query,
                vector,
                settings.litellm_embedding_model,
                limit=args.limit,
                source_types=args.source_types,
            )
        return [
            {
                "chunk_id": r.chunk_id,
                "source_type": r.source_type,
                "source_id": r.source_id,
                "chunk_index": r.chunk_index,
                "score": round(r.score, 4),
                "text": r.text,
            }
            for r in results
        ]

    _print_json(asyncio.run(_search()))
