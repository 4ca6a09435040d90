"""
CLI module - unified command-line interface.

Provides entry points for:
- Building the local and managed indexes
- Searching either backend
- Cleaning up uploaded artifacts
"""

from wp_semantic_search.cli.commands import (
    main,
    run_build_index_cli,
    run_build_index_vs_cli,
    run_search_cli,
    run_vs_search_cli,
    run_cleanup_cli,
    run_health_cli,
)

__all__ = [
    "main",
    "run_build_index_cli",
    "run_build_index_vs_cli",
    "run_search_cli",
    "run_vs_search_cli",
    "run_cleanup_cli",
    "run_health_cli",
]
