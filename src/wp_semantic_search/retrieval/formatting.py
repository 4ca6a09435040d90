"""Human-readable rendering of a SearchResponse."""

from __future__ import annotations

from wp_semantic_search.core.protocols import SearchResponse

SNIPPET_CHARS = 200


def format_search_results(response: SearchResponse) -> str:
    if not response.results:
        return response.message or f'No results found for query: "{response.query}"'

    header = f"Search completed in {response.search_time_ms:.0f}ms"
    if response.min_similarity is not None:
        header += f" (min similarity: {response.min_similarity})"

    lines = [
        f'Found {response.total_results} result(s) for: "{response.query}"',
        header,
        "",
    ]
    for index, result in enumerate(response.results, start=1):
        score = f"{result.score:.3f}" if result.score is not None else "N/A"
        lines.append(f"#{index} [{score}] {result.title}")
        lines.append(result.link)
        lines.append(f"{result.snippet[:SNIPPET_CHARS]}...")
        lines.append("")

    return "\n".join(lines)
