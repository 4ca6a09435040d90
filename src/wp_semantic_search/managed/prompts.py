"""
Managed search prompts - externalized so they can be reviewed and tested
without API calls.
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# SEARCH INSTRUCTIONS
# ---------------------------------------------------------------------------

SEARCH_INSTRUCTIONS_TEMPLATE = "\n".join([
    "You are a precise search assistant. Use only the attached vector store to retrieve the most relevant passages.",
    "Return up to {top_k} results as strict JSON of the form {{\"results\": [...]}}.",
    "Each item must include: title (string, optional), link (string, optional), snippet (string), "
    "and source (string, optional file name or URL).",
    "Do not fabricate links. Prefer the link field from documents when available.",
    "Do not output duplicate items. Consolidate items that point to the same link into one entry.",
])


def build_instructions(top_k: int) -> str:
    """System instructions for one managed search call."""
    return SEARCH_INSTRUCTIONS_TEMPLATE.format(top_k=top_k)


def build_input(query: str, top_k: int) -> list[dict[str, str]]:
    """Responses API `input` messages for a query."""
    return [
        {"role": "system", "content": build_instructions(top_k)},
        {"role": "user", "content": f"Query: {query}"},
    ]
