"""
MCP (Model Context Protocol) server for crag-memory.

Exposes a ConversationMemory as a set of tools so an assistant can file
conversations away and search them later.

Run as a stdio server:
    python -m crag_memory.mcp_server

Or via the installed entry-point:
    crag-memory-mcp

Configuration comes from the ``CRAG_MEMORY_*`` environment variables read by
``CragConfig.from_env`` (data directory, feature cap, similarity floor).
"""

from __future__ import annotations

import json
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import CragConfig
from .memory import ConversationMemory

# Lazily created on first tool call.
_memory: ConversationMemory | None = None


def _get_memory() -> ConversationMemory:
    global _memory
    if _memory is None:
        _memory = ConversationMemory.open(CragConfig.from_env())
    return _memory


# ---------------------------------------------------------------------------
# FastMCP server
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "crag-memory",
    instructions=(
        "Searchable history of past conversations. "
        "Use `add_conversation` to store a conversation or summary worth recalling. "
        "Use `search_conversations` to find past conversations relevant to a topic. "
        "Use `get_conversation` to fetch one conversation by ID. "
        "Use `conversation_stats` to see how much history is stored."
    ),
)


@mcp.tool()
def add_conversation(content: str, metadata: dict[str, Any] | None = None) -> str:
    """
    Store a conversation for later retrieval.

    Args:
        content:  The conversation text.
        metadata: Optional flat mapping of string keys to string, number or
                  boolean values (e.g. source, session).

    Returns:
        A confirmation message with the new conversation ID.
    """
    if not content.strip():
        return "Nothing stored: content is empty."
    record_id = _get_memory().add(content, metadata)
    return f"Stored conversation {record_id}."


@mcp.tool()
def search_conversations(query: str, top_k: int = 5) -> str:
    """
    Find the stored conversations most relevant to *query*.

    Args:
        query: Free-text topic or question.
        top_k: Maximum number of conversations to return (default 5).

    Returns:
        JSON array ordered by rank, each entry with fields:
        rank, similarity, id, content, timestamp, metadata.
    """
    results = _get_memory().search(query, top_k=top_k)
    if not results:
        return "No relevant conversations found."

    simplified = [
        {
            "rank": r.rank,
            "similarity": round(r.score, 4),
            "id": r.record.id,
            "content": r.record.content,
            "timestamp": r.record.timestamp.isoformat(),
            "metadata": dict(r.record.metadata),
        }
        for r in results
    ]
    return json.dumps(simplified, indent=2)


@mcp.tool()
def get_conversation(conversation_id: int) -> str:
    """
    Fetch a stored conversation by its ID.

    Returns:
        JSON object with id, content, timestamp and metadata.
    """
    record = _get_memory().get(conversation_id)
    if record is None:
        return f"No conversation with ID {conversation_id}."
    return json.dumps(record.to_dict(), indent=2)


@mcp.tool()
def conversation_stats() -> str:
    """
    Summarise the stored history.

    Returns:
        JSON object with total_records, total_words, average_words and
        latest_timestamp.
    """
    return json.dumps(_get_memory().stats().to_dict(), indent=2)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the MCP server over stdio."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
