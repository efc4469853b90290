#!/usr/bin/env python3
"""
Memory CLI - Command-line interface for memory management.

Commands:
  store     - Store text in memory
  recall    - Search memories closest to a query
  load-docs - Load text/markdown documents from a directory
  stats     - Show memory statistics
  clear     - Clear all memories

Examples:
  # Store text
  python memory_cli.py store "Python was created by Guido van Rossum"

  # Recall memories
  python memory_cli.py recall "Who created Python?"

  # Load documents
  python memory_cli.py load-docs ./docs --pattern "*.md"

  # Clear memory
  python memory_cli.py clear --force

  # Show stats
  python memory_cli.py stats
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path to import mnemo package
sys.path.insert(0, str(Path(__file__).parent.parent))

from mnemo.app import create_embedder, open_memory
from mnemo.core.config import Config
from mnemo.core.ui import console, print_error, print_recollections, print_section
from mnemo.errors import MnemoError
from mnemo.tools.memory.documents import iter_documents


def setup_logging(verbose: bool = False, level_name: str = "INFO"):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(message)s' if not verbose else '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # Suppress noisy loggers
    logging.getLogger('sentence_transformers').setLevel(logging.WARNING)
    logging.getLogger('chromadb').setLevel(logging.WARNING)


async def cmd_store(memory, args):
    """Store text in memory."""
    stored = await memory.ingest(args.text, {"source": args.source})
    console.print(f"\nStored: {stored} chunk(s)")
    console.print(f"  Total records in memory: {await memory.count()}")
    return 0


async def cmd_recall(memory, args):
    """Recall memories."""
    console.print(f"\nSearching for: '{args.query}'")
    results = await memory.recall(args.query, limit=args.limit)
    print_recollections(results)
    return 0


async def cmd_load_docs(memory, args):
    """Load documents from a directory."""
    print_section("LOADING DOCUMENTS INTO MEMORY")
    console.print(f"Docs directory: {args.docs_dir}")
    console.print(f"File pattern: {args.pattern}")

    documents = list(iter_documents(args.docs_dir, args.pattern))
    if not documents:
        print_error(f"No non-empty files matching '{args.pattern}' found")
        return 1

    console.print(f"\nFound {len(documents)} file(s)")

    total_chunks = 0
    failed = 0
    for i, document in enumerate(documents, 1):
        console.print(f"\n[{i}/{len(documents)}] {document.display_name}")
        try:
            stored = await memory.ingest_document(document.text, document.display_name)
        except MnemoError as e:
            console.print(f"   Error: {e}", style="red")
            failed += 1
            continue
        console.print(f"   Stored {stored} chunks")
        total_chunks += stored

    print_section("SUMMARY")
    console.print(f"Files processed: {len(documents)}")
    console.print(f"  Successful: {len(documents) - failed}")
    console.print(f"  Failed: {failed}")
    console.print(f"Chunks stored: {total_chunks}")

    return 0 if failed == 0 else 1


async def cmd_stats(memory, args):
    """Show memory statistics."""
    store = memory.store
    print_section("MEMORY STATISTICS")
    console.print(f"Store: {store.name}")
    console.print(f"Directory: {store.storage_dir}")
    console.print(f"Dimension: {store.dimension}")
    console.print(f"Metric: {store.metric}")
    console.print(f"Records: {await memory.count()}")
    return 0


async def cmd_clear(memory, args):
    """Clear all memories."""
    if not args.force:
        response = console.input(
            "\nWARNING: This will delete all stored memories! Continue? (yes/no): "
        ).strip().lower()
        if response not in ['yes', 'y']:
            console.print("Cancelled.")
            return 0

    await memory.clear()
    console.print("Memory cleared")
    return 0


COMMANDS = {
    'store': cmd_store,
    'recall': cmd_recall,
    'load-docs': cmd_load_docs,
    'stats': cmd_stats,
    'clear': cmd_clear,
}


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Memory CLI - Manage memory storage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    # Global options
    parser.add_argument("--config", type=str, default="config.env", help="Configuration file (default: config.env)")
    parser.add_argument("--memory-dir", type=str, help="Memory storage directory (overrides MEMORY_DIR)")
    parser.add_argument("--store", type=str, help="Store name (overrides MEMORY_STORE_NAME)")
    parser.add_argument(
        "--device",
        type=str,
        default=None,
        choices=["cuda", "mps", "cpu"],
        help="Device for embedding model (default: auto-detect - cuda > mps > cpu)"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    # Subcommands
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    store_parser = subparsers.add_parser('store', help='Store text in memory')
    store_parser.add_argument('text', help='Text to store')
    store_parser.add_argument('--source', default='cli', help='Source identifier (default: cli)')

    recall_parser = subparsers.add_parser('recall', help='Search memories')
    recall_parser.add_argument('query', help='Search query')
    recall_parser.add_argument('--limit', type=int, default=5, help='Number of results (default: 5)')

    load_parser = subparsers.add_parser('load-docs', help='Load text/markdown documents')
    load_parser.add_argument('docs_dir', help='Directory containing documents')
    load_parser.add_argument('--pattern', default='*.md', help='File pattern (default: *.md)')

    subparsers.add_parser('stats', help='Show memory statistics')

    clear_parser = subparsers.add_parser('clear', help='Clear all memories')
    clear_parser.add_argument('--force', action='store_true', help='Skip confirmation')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    config = Config(args.config)
    setup_logging(verbose=args.verbose, level_name=config["LOG_LEVEL"])

    overrides = {"MEMORY_DIR": args.memory_dir, "MEMORY_STORE_NAME": args.store, "DEVICE": args.device}
    config.config.update({key: value for key, value in overrides.items() if value is not None})

    memory = None
    try:
        memory = open_memory(config, create_embedder(config))
        return asyncio.run(COMMANDS[args.command](memory, args))
    except KeyboardInterrupt:
        console.print("\n\nInterrupted by user")
        return 130
    except (MnemoError, ValueError, OSError) as e:
        print_error(str(e))
        if args.verbose:
            console.print_exception()
        return 1
    finally:
        if memory is not None:
            memory.store.close()


if __name__ == "__main__":
    sys.exit(main())
