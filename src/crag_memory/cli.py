"""
Command-line interface for crag-memory.

Actions
-------
--add TEXT      – Store a conversation.
--search QUERY  – Show the most relevant conversations for a query.
--get ID        – Show one conversation.
--stats         – Show corpus statistics.

With no action the tool drops into an interactive loop accepting
``search <query>``, ``add <content>``, ``stats`` and ``quit``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Callable, TextIO

from .config import DEFAULT_TOP_K, CragConfig
from .corpus import CorpusStats, Record
from .errors import StorageError
from .memory import ConversationMemory
from .search import SearchResult

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_STORAGE = 2

INTERACTIVE_RESULTS = 3


def _build_parser(defaults: CragConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crag-memory",
        description="CRAG - local conversational history search.",
    )
    parser.add_argument(
        "--data-dir",
        default=defaults.data_dir,
        metavar="PATH",
        help=f"Directory holding the conversation snapshot (default: {defaults.data_dir}).",
    )
    parser.add_argument(
        "--max-features",
        type=int,
        default=defaults.max_features,
        metavar="N",
        help=f"Vocabulary feature cap (default: {defaults.max_features}).",
    )
    parser.add_argument(
        "--min-similarity",
        type=float,
        default=defaults.min_similarity,
        metavar="SCORE",
        help=f"Drop results scoring at or below this (default: {defaults.min_similarity}).",
    )
    parser.add_argument("--json", action="store_true", dest="as_json", help="Output as JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    action = parser.add_mutually_exclusive_group()
    action.add_argument("--search", "-s", metavar="QUERY", help="Search query.")
    action.add_argument("--add", "-a", metavar="TEXT", help="Add conversation content.")
    action.add_argument("--get", type=int, metavar="ID", help="Show one conversation by ID.")
    action.add_argument("--stats", action="store_true", help="Show system statistics.")

    parser.add_argument(
        "--top-k",
        "-k",
        type=int,
        default=DEFAULT_TOP_K,
        metavar="N",
        help=f"Number of results to return (default: {DEFAULT_TOP_K}).",
    )
    return parser


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _print_results(results: list[SearchResult], as_json: bool) -> None:
    if as_json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return
    if not results:
        print("No relevant conversations found.")
        return
    print(f"Found {len(results)} relevant conversations:")
    print("=" * 50)
    for result in results:
        print(f"Rank: {result.rank}")
        print(f"Similarity: {result.score:.3f}")
        print(f"Date: {result.record.timestamp.isoformat()}")
        print(f"Content: {_preview(result.record.content, 200)}")
        print("-" * 30)


def _print_record(record: Record, as_json: bool) -> None:
    if as_json:
        print(json.dumps(record.to_dict(), indent=2))
        return
    print(f"ID: {record.id}")
    print(f"Date: {record.timestamp.isoformat()}")
    if record.metadata:
        print(f"Metadata: {json.dumps(dict(record.metadata), sort_keys=True)}")
    print(f"Content: {record.content}")


def _print_stats(stats: CorpusStats, as_json: bool) -> None:
    if as_json:
        print(json.dumps(stats.to_dict(), indent=2))
        return
    print("CRAG System Statistics:")
    print("=" * 30)
    print(f"Total conversations: {stats.total_records}")
    print(f"Total words: {stats.total_words}")
    print(f"Average words per conversation: {stats.average_words}")
    print(f"Latest conversation: {stats.latest_timestamp or 'None'}")


def _preview(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


# ---------------------------------------------------------------------------
# Interactive mode
# ---------------------------------------------------------------------------


def interactive(
    memory: ConversationMemory,
    read_line: Callable[[str], str] = input,
    out: TextIO | None = None,
) -> int:
    """Run the line-command loop until ``quit``, EOF or Ctrl-C."""
    out = out or sys.stdout

    def say(text: str) -> None:
        print(text, file=out)

    say("CRAG Interactive Mode")
    say("Commands: search <query>, add <content>, stats, quit")

    while True:
        try:
            command = read_line("> ").strip()
        except (EOFError, KeyboardInterrupt):
            break

        if command.lower() in ("quit", "exit", "q"):
            break
        if command.startswith("search "):
            results = memory.search(command[len("search "):])
            if not results:
                say("No results found.")
            for result in results[:INTERACTIVE_RESULTS]:
                say(f"[{result.score:.3f}] {_preview(result.record.content, 100)}")
        elif command.startswith("add "):
            try:
                record_id = memory.add(command[len("add "):])
            except StorageError as exc:
                say(f"Error: {exc}")
            else:
                say(f"Added conversation {record_id}")
        elif command == "stats":
            stats = memory.stats()
            say(f"Conversations: {stats.total_records}, Words: {stats.total_words}")
        elif command:
            say("Unknown command. Use: search <query>, add <content>, stats, quit")

    return EXIT_OK


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    try:
        defaults = CragConfig.from_env()
    except ValueError as exc:
        print(f"Error: invalid CRAG_MEMORY_* setting: {exc}", file=sys.stderr)
        return EXIT_USAGE

    parser = _build_parser(defaults)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = CragConfig(
            data_dir=args.data_dir,
            max_features=args.max_features,
            min_similarity=args.min_similarity,
            autosave=defaults.autosave,
        )
    except ValueError as exc:
        parser.error(str(exc))

    if args.add is not None and not args.add.strip():
        print("Error: no text provided.", file=sys.stderr)
        return EXIT_USAGE

    try:
        memory = ConversationMemory.open(config)
    except StorageError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_STORAGE

    if args.search is not None:
        _print_results(memory.search(args.search, top_k=args.top_k), args.as_json)

    elif args.add is not None:
        try:
            record_id = memory.add(args.add)
        except StorageError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_STORAGE
        if args.as_json:
            print(json.dumps({"id": record_id}))
        else:
            print(f"Added conversation with ID: {record_id}")

    elif args.get is not None:
        record = memory.get(args.get)
        if record is None:
            print(f"No conversation with ID {args.get}.", file=sys.stderr)
            return EXIT_USAGE
        _print_record(record, args.as_json)

    elif args.stats:
        _print_stats(memory.stats(), args.as_json)

    else:
        return interactive(memory)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
