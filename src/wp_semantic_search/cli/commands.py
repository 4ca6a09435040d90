"""
CLI commands - entry points for indexing, searching and cleanup.

Each command follows a consistent pattern:
1. Parse arguments
2. Load settings (fail fast on missing configuration)
3. Delegate to the library
4. Print results to stdout
5. Return exit code

Fatal errors are printed to stderr and return 1. Logging also goes to
stderr; stdout carries only command output.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

import openai
from dotenv import load_dotenv

from wp_semantic_search.config import get_settings, health_report, reset_settings
from wp_semantic_search.core.errors import SemanticSearchError


def _load_env() -> None:
    """Load environment variables from .env and drop cached settings."""
    load_dotenv()
    reset_settings()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _fetch_documents(settings):
    from wp_semantic_search.ingest import WordPressClient, normalize_posts

    client = WordPressClient(settings.require_wordpress())
    try:
        posts = client.fetch_all()
    finally:
        client.close()
    if not posts:
        return posts, []
    return posts, normalize_posts(posts, fallback_link_base=settings.fallback_link_base)


# ---------------------------------------------------------------------------
# INDEXING
# ---------------------------------------------------------------------------


def run_build_index_cli(argv: list[str] | None = None) -> int:
    """Fetch posts, embed them locally and write the snapshot."""
    from wp_semantic_search.embeddings import get_embedding_provider
    from wp_semantic_search.retrieval import EmbeddingIndexBuilder, get_snapshot_store

    parser = argparse.ArgumentParser(prog="wp-search build-index", description="Build the local embeddings index")
    parser.add_argument("--batch-size", type=int, default=100, help="Documents per embeddings request")
    args = parser.parse_args(argv)

    settings = get_settings()
    settings.require_openai()
    settings.require_wordpress()

    print("=" * 60)
    print("BUILD LOCAL INDEX")
    print("=" * 60)
    print(f"Embedding model: {settings.embedding_model}")
    print(f"Output file: {settings.embeddings_file}")

    posts, documents = _fetch_documents(settings)
    if not posts:
        print("No posts found. Exiting.")
        return 0
    if not documents:
        print("No valid documents to index. Exiting.")
        return 0

    builder = EmbeddingIndexBuilder(
        embeddings=get_embedding_provider(model=settings.embedding_model),
        store=get_snapshot_store(settings.embeddings_file),
        batch_size=args.batch_size,
    )
    snapshot = builder.build(documents)

    print(f"\nIndexed {snapshot.total_documents} documents from {len(posts)} WordPress posts")
    print(f"Embeddings saved to {settings.embeddings_file}")
    return 0


def run_build_index_vs_cli(argv: list[str] | None = None) -> int:
    """Fetch posts and ingest them into the managed vector store."""
    from wp_semantic_search.managed import ManagedIndexBuilder

    parser = argparse.ArgumentParser(prog="wp-search build-index-vs", description="Build the managed vector store index")
    parser.add_argument("--timeout", type=float, default=15 * 60, help="Seconds to wait for the file batch")
    args = parser.parse_args(argv)

    settings = get_settings()
    vector_store_id = settings.require_vector_store()
    settings.require_wordpress()

    print("=" * 60)
    print("BUILD VECTOR STORE INDEX")
    print("=" * 60)
    print(f"Using Vector Store: {vector_store_id}")

    posts, documents = _fetch_documents(settings)
    if not documents:
        print("No valid documents to upload. Exiting.")
        return 0

    builder = ManagedIndexBuilder(
        client=settings.make_openai_client(),
        vector_store_id=vector_store_id,
        upload_dir=settings.upload_dir,
        poll_timeout_s=args.timeout,
    )
    report = builder.build(documents)

    counts = report.job.file_counts
    print(f"\nBatch {report.job.id}: {report.job.status.value}")
    print(f"Files submitted: {report.files_submitted}, completed: {counts.completed}/{counts.total}")
    return 0


# ---------------------------------------------------------------------------
# SEARCH
# ---------------------------------------------------------------------------


def _search_parser(prog: str, default_top_k: int) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog)
    parser.add_argument("query", nargs="*", help="Search query")
    parser.add_argument("--topk", "--top_k", dest="top_k", type=int, default=default_top_k,
                        help=f"Number of results (default: {default_top_k})")
    return parser


def run_search_cli(argv: list[str] | None = None) -> int:
    """Local embeddings search."""
    from wp_semantic_search.retrieval import format_search_results, get_retriever

    parser = _search_parser("wp-search search", 10)
    output = parser.add_mutually_exclusive_group()
    output.add_argument("--json", dest="format", action="store_const", const="json", help="Raw JSON (default)")
    output.add_argument("--text", dest="format", action="store_const", const="text", help="Human-readable text")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.set_defaults(format="json")
    args = parser.parse_args(argv)

    query = " ".join(args.query).strip()
    if not query:
        parser.print_usage(sys.stderr)
        return 1

    response = get_retriever("local").search(query, top_k=args.top_k)
    if args.format == "text":
        print(format_search_results(response))
    else:
        print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2 if args.pretty else None))
    return 0


def run_vs_search_cli(argv: list[str] | None = None) -> int:
    """Managed vector store search."""
    from wp_semantic_search.retrieval import get_retriever

    parser = _search_parser("wp-search vs-search", 5)
    args = parser.parse_args(argv)

    query = " ".join(args.query).strip()
    if not query:
        parser.print_usage(sys.stderr)
        return 1

    response = get_retriever("managed").search(query, top_k=args.top_k)
    print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))
    return 0


# ---------------------------------------------------------------------------
# MAINTENANCE
# ---------------------------------------------------------------------------


def run_cleanup_cli(argv: list[str] | None = None) -> int:
    """Delete uploaded artifacts from OpenAI storage."""
    from wp_semantic_search.managed import StorageCleaner

    parser = argparse.ArgumentParser(prog="wp-search cleanup", description="Clean up OpenAI storage")
    parser.add_argument("--vs-txt-only", "--vector-txt-only", dest="vs_txt_only", action="store_true",
                        help="Delete only .txt files from the Vector Store (server-side)")
    parser.add_argument("--delete-txt", "--rm-txt", dest="delete_txt", action="store_true",
                        help="Delete all local .txt files (default dir: UPLOAD_DIR)")
    parser.add_argument("--txt-dir", default=None, help="Override the directory to search for local .txt files")
    args = parser.parse_args(argv)

    settings = get_settings()
    cleaner = StorageCleaner(settings.make_openai_client(), settings.vector_store_id)

    print("Starting OpenAI storage cleanup...")
    report = cleaner.run(
        delete_txt=args.delete_txt,
        txt_dir=args.txt_dir or settings.upload_dir,
        vs_txt_only=args.vs_txt_only,
    )

    print()
    print("\n".join(report.summary_lines()))
    if report.anything_deleted:
        print("\nCleanup completed successfully!")
    else:
        print("\nNo files found to delete.")
    return 0


def run_health_cli(argv: list[str] | None = None) -> int:
    """Report configuration and index status."""
    argparse.ArgumentParser(prog="wp-search health").parse_args(argv)

    text, healthy = health_report(get_settings())
    print(text)
    return 0 if healthy else 1


def run_serve_cli(argv: list[str] | None = None) -> int:
    """Serve the search tools and resources over MCP stdio."""
    argparse.ArgumentParser(prog="wp-search serve").parse_args(argv)

    from wp_semantic_search.server import build_server

    build_server().run()
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point with subcommands.

    Usage:
        wp-search build-index               # Embed posts into data/embeddings.json
        wp-search build-index-vs            # Upload posts to the vector store
        wp-search search "query" --topk 5   # Local cosine-similarity search
        wp-search vs-search "query"         # Managed file_search
        wp-search cleanup --vs-txt-only     # Remove uploaded artifacts
        wp-search health                    # Configuration check
        wp-search serve                     # MCP stdio server
    """
    _load_env()

    commands = {
        "build-index": run_build_index_cli,
        "build-index-vs": run_build_index_vs_cli,
        "search": run_search_cli,
        "vs-search": run_vs_search_cli,
        "cleanup": run_cleanup_cli,
        "health": run_health_cli,
        "serve": run_serve_cli,
    }

    parser = argparse.ArgumentParser(
        prog="wp-search",
        description="WordPress semantic search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  build-index     Fetch posts and build the local embeddings index
  build-index-vs  Fetch posts and ingest them into the OpenAI vector store
  search          Search the local index
  vs-search       Search the OpenAI vector store
  cleanup         Delete uploaded files from OpenAI storage
  health          Show configuration and index status
  serve           Run the MCP stdio server (search tools and resources)
        """,
    )
    parser.add_argument("command", choices=list(commands), help="Command to run")

    argv = sys.argv[1:] if argv is None else argv
    args, remaining = parser.parse_known_args(argv[:1])
    remaining = remaining + argv[1:]

    settings = get_settings()
    _configure_logging(settings.log_level)

    from wp_semantic_search.observability import init_phoenix, shutdown_phoenix

    init_phoenix()
    try:
        return commands[args.command](remaining)
    except (SemanticSearchError, openai.OpenAIError, OSError) as e:
        print(f"{args.command} failed: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    finally:
        shutdown_phoenix()


if __name__ == "__main__":
    sys.exit(main())
