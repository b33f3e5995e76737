"""MCP server exposing the topic tree and highlights as tools."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from highlight_index.config import resolve_db_path
from highlight_index.core.topics.graph import build_graph, collect_subtree, index_by_id, path_lookup, topic_label
from highlight_index.core.topics.layout import compute_layout
from highlight_index.core.database.store import SqliteStore
from highlight_index.errors import HighlightIndexError
from highlight_index.index import HighlightIndex
from highlight_index.models.records import Highlight, Topic


def _highlight_entry(
    highlight: Highlight,
    topics_by_id: dict[str, Topic],
    titles: dict[str, str],
) -> dict[str, Any]:
    entry = highlight.to_dict()
    # Dangling references show the raw id.
    entry["document"] = titles.get(highlight.pdf_id, highlight.pdf_id)
    entry["topics"] = [topic_label(topics_by_id, t) for t in highlight.topic_ids]
    return entry


# --- Core functions (testable without MCP context) ---


def highlight_list_topics(index: HighlightIndex) -> dict[str, Any]:
    """List every topic with its breadcrumb path."""
    topics = index.topics.list()
    paths = path_lookup(topics)
    results = [{**t.to_dict(), "path": paths[t.id]} for t in topics]
    results.sort(key=lambda r: r["path"].casefold())
    return {"topics": results, "count": len(results)}


def highlight_topic_tree(index: HighlightIndex, *, focus_topic: str | None = None) -> dict[str, Any]:
    """Return graph nodes with canvas positions and parent -> child edges.

    Args:
        focus_topic: Restrict to this topic and its descendants.
    """
    topics = index.topics.list()
    if focus_topic:
        topics = collect_subtree(topics, focus_topic)
    graph = build_graph(topics)
    positions = {p.topic.id: (p.x, p.y) for p in compute_layout(topics)}
    nodes = [
        {**asdict(node), "x": positions[node.id][0], "y": positions[node.id][1]}
        for node in graph.nodes
    ]
    edges = [asdict(e) for e in graph.edges if e.source in positions]
    return {"nodes": nodes, "edges": edges}


def highlight_find_by_topic(index: HighlightIndex, *, topic_id: str) -> dict[str, Any]:
    """List highlights filed under a topic, with document titles and topic names."""
    topics_by_id = index_by_id(index.topics.list())
    if topic_id not in topics_by_id:
        return {"error": f"Topic '{topic_id}' not found.", "results": [], "count": 0}
    titles = {d.id: d.title for d in index.pdfs.get_all()}
    found = index.highlights.get_by_topic(topic_id)
    results = [_highlight_entry(h, topics_by_id, titles) for h in found]
    return {"topic": topics_by_id[topic_id].name, "results": results, "count": len(results)}


def highlight_find_by_document(index: HighlightIndex, *, pdf_id: str, page: int | None = None) -> dict[str, Any]:
    """List highlights of a document, optionally on one page."""
    document = index.pdfs.get(pdf_id)
    if document is None:
        return {"error": f"Document '{pdf_id}' not found.", "results": [], "count": 0}
    found = index.highlights.get_by_pdf(pdf_id)
    if page is not None:
        found = [h for h in found if h.page == page]
    found.sort(key=lambda h: (h.page, h.top, h.left))
    topics_by_id = index_by_id(index.topics.list())
    results = [_highlight_entry(h, topics_by_id, {document.id: document.title}) for h in found]
    return {"document": document.title, "results": results, "count": len(results)}


def highlight_add_topic(index: HighlightIndex, *, name: str, parent_id: str | None = None) -> dict[str, Any]:
    """Create a topic under ``parent_id`` (or at the root)."""
    try:
        topic = index.topics.add(name, parent_id)
    except HighlightIndexError as e:
        return {"success": False, "error": str(e)}
    return {"success": True, "topic": topic.to_dict()}


def highlight_move_topic(index: HighlightIndex, *, topic_id: str, parent_id: str | None = None) -> dict[str, Any]:
    """Re-parent a topic; cycles are refused."""
    try:
        topic = index.topics.move(topic_id, parent_id)
    except HighlightIndexError as e:
        return {"success": False, "error": str(e)}
    return {"success": True, "topic": topic.to_dict()}


def highlight_delete_impact(index: HighlightIndex, *, topic_id: str) -> dict[str, Any]:
    """Report children and affected highlights for a prospective topic deletion."""
    return asdict(index.topics.analyze_delete_impact(topic_id))


def highlight_delete_topic(index: HighlightIndex, *, topic_id: str) -> dict[str, Any]:
    """Delete a leaf topic and cascade to its highlights."""
    try:
        impact = index.topics.delete(topic_id)
    except HighlightIndexError as e:
        return {"success": False, "error": str(e)}
    return {"success": True, **asdict(impact)}


# --- MCP Server Setup ---

# Database served by the lifespan; None means the configured default.
_db_path: Path | None = None


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    index: HighlightIndex


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Open the index on startup, close it on shutdown."""
    db_path = _db_path or resolve_db_path()
    store = SqliteStore(db_path)
    logger.info("Serving highlight index at {}", db_path)
    try:
        yield ServerContext(index=HighlightIndex(store))
    finally:
        store.close()


mcp_server = FastMCP(
    "highlight-index",
    instructions="""\
The highlight index files rectangular PDF highlights under a tree of topics.
A highlight may belong to several topics.

1. Call highlight_list_topics_tool to discover topic ids and their paths.
2. Call highlight_find_by_topic_tool to read the highlights filed under a topic.
3. Before deleting a topic call highlight_delete_impact_tool; topics with
   children cannot be deleted, and highlights filed only under the topic are
   deleted with it.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def highlight_list_topics_tool(ctx: Context) -> dict[str, Any]:
    """List every topic with its id, parent and breadcrumb path."""
    return highlight_list_topics(_ctx(ctx).index)


@mcp_server.tool()
async def highlight_topic_tree_tool(ctx: Context, focus_topic: str | None = None) -> dict[str, Any]:
    """Return the topic tree as positioned nodes and edges.

    Args:
        focus_topic: Only this topic and its descendants.
    """
    return highlight_topic_tree(_ctx(ctx).index, focus_topic=focus_topic)


@mcp_server.tool()
async def highlight_find_by_topic_tool(ctx: Context, topic_id: str) -> dict[str, Any]:
    """List highlights filed under a topic.

    Args:
        topic_id: Topic id from highlight_list_topics_tool.
    """
    return highlight_find_by_topic(_ctx(ctx).index, topic_id=topic_id)


@mcp_server.tool()
async def highlight_find_by_document_tool(
    ctx: Context,
    pdf_id: str,
    page: int | None = None,
) -> dict[str, Any]:
    """List highlights of a document.

    Args:
        pdf_id: Document id.
        page: Only this 1-based page.
    """
    return highlight_find_by_document(_ctx(ctx).index, pdf_id=pdf_id, page=page)


@mcp_server.tool()
async def highlight_add_topic_tool(ctx: Context, name: str, parent_id: str | None = None) -> dict[str, Any]:
    """Create a topic.

    Args:
        name: Topic name.
        parent_id: Parent topic id; omit for a root topic.
    """
    return highlight_add_topic(_ctx(ctx).index, name=name, parent_id=parent_id)


@mcp_server.tool()
async def highlight_move_topic_tool(ctx: Context, topic_id: str, parent_id: str | None = None) -> dict[str, Any]:
    """Move a topic under a new parent (omit parent_id for the root).

    Args:
        topic_id: Topic to move.
        parent_id: New parent id.
    """
    return highlight_move_topic(_ctx(ctx).index, topic_id=topic_id, parent_id=parent_id)


@mcp_server.tool()
async def highlight_delete_impact_tool(ctx: Context, topic_id: str) -> dict[str, Any]:
    """Show what deleting a topic would do."""
    return highlight_delete_impact(_ctx(ctx).index, topic_id=topic_id)


@mcp_server.tool()
async def highlight_delete_topic_tool(ctx: Context, topic_id: str) -> dict[str, Any]:
    """Delete a leaf topic. Highlights filed only under it are deleted too."""
    return highlight_delete_topic(_ctx(ctx).index, topic_id=topic_id)


def run_mcp_server(db_path: Path | None = None) -> None:
    """Run the MCP server with stdio transport over ``db_path``."""
    global _db_path
    from highlight_index.logging_config import configure_logging

    configure_logging(verbose=False)
    _db_path = db_path
    mcp_server.run(transport="stdio")
