"""CLI for the highlight index (documents, topics, highlights, backups, MCP server)."""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, replace
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from highlight_index.config import resolve_db_path
from highlight_index.core.backup.codec import dumps, export_backup, import_backup, read_backup, write_backup
from highlight_index.core.topics.graph import build_path, format_path, index_by_id, path_lookup, topic_label
from highlight_index.core.topics.layout import compute_layout
from highlight_index.errors import HighlightIndexError
from highlight_index.index import HighlightIndex, default_resolver, open_index
from highlight_index.logging_config import configure_logging
from highlight_index.models.records import Highlight, is_drawable_box, parse_tags

app = typer.Typer(help="Highlight index: organise PDF highlights under a topic tree.")
pdf_app = typer.Typer(help="Registered PDF documents.")
topic_app = typer.Typer(help="The topic hierarchy.")
highlight_app = typer.Typer(help="Highlights on document pages.")
app.add_typer(pdf_app, name="pdf")
app.add_typer(topic_app, name="topic")
app.add_typer(highlight_app, name="highlight")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", "-d", help="Directory holding the index database"),
    ] = None,
) -> None:
    configure_logging(verbose=verbose)
    db_path = resolve_db_path(data_dir)
    ctx.meta["db_path"] = db_path
    ctx.obj = open_index(db_path)


def _index(ctx: typer.Context) -> HighlightIndex:
    return ctx.obj  # type: ignore[no-any-return]


@contextmanager
def _reported() -> Iterator[None]:
    """Turn index errors into a logged message and exit status 1."""
    try:
        yield
    except HighlightIndexError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e


# --- Documents ---


@pdf_app.command("open")
def pdf_open(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Absolute document path, e.g. /books/a.pdf"),
    title: str | None = typer.Option(None, "--title", "-t", help="Display title"),
) -> None:
    """Register a document (or reuse the one at the same path) and mark it last opened."""
    with _reported():
        document = _index(ctx).pdfs.open_path(path, title)
    typer.echo(document.id)


@pdf_app.command("list")
def pdf_list(
    ctx: typer.Context,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List registered documents."""
    index = _index(ctx)
    with _reported():
        documents = index.pdfs.get_all()
        last_id = index.pdfs.get_last_opened()
    if output_json:
        typer.echo(json.dumps([d.to_dict() for d in documents], indent=2, ensure_ascii=False))
        return
    for doc in documents:
        marker = "*" if doc.id == last_id else " "
        typer.echo(f"{marker} {doc.id}\t{doc.title}\t{doc.path}")


@pdf_app.command("remove")
def pdf_remove(
    ctx: typer.Context,
    pdf_id: str = typer.Argument(..., help="Document id"),
) -> None:
    """Remove a document together with its highlights and bookmarks."""
    with _reported():
        _index(ctx).pdfs.remove(pdf_id)
    typer.echo(f"Removed {pdf_id}")


@pdf_app.command("last")
def pdf_last(ctx: typer.Context) -> None:
    """Show the last opened document, clearing the pointer if it no longer resolves."""
    index = _index(ctx)
    resolver = default_resolver()
    with _reported():
        if resolver is not None:
            document = index.pdfs.restore_last_opened(resolver)
        else:
            last_id = index.pdfs.get_last_opened()
            document = index.pdfs.get(last_id) if last_id else None
    if document is None:
        typer.echo("No document opened.")
        raise typer.Exit(1)
    typer.echo(f"{document.id}\t{document.title}\t{document.path}")


# --- Topics ---


@topic_app.command("add")
def topic_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Topic name"),
    parent: str | None = typer.Option(None, "--parent", "-p", help="Parent topic id"),
) -> None:
    """Create a topic, at the root or under a parent."""
    with _reported():
        topic = _index(ctx).topics.add(name, parent)
    typer.echo(topic.id)


@topic_app.command("rename")
def topic_rename(
    ctx: typer.Context,
    topic_id: str = typer.Argument(..., help="Topic id"),
    name: str = typer.Argument(..., help="New name"),
) -> None:
    """Rename a topic."""
    with _reported():
        _index(ctx).topics.rename(topic_id, name)


@topic_app.command("move")
def topic_move(
    ctx: typer.Context,
    topic_id: str = typer.Argument(..., help="Topic id"),
    parent: str | None = typer.Option(None, "--parent", "-p", help="New parent id (omit for root)"),
) -> None:
    """Move a topic under another parent, or to the root."""
    with _reported():
        _index(ctx).topics.move(topic_id, parent)


@topic_app.command("impact")
def topic_impact(
    ctx: typer.Context,
    topic_id: str = typer.Argument(..., help="Topic id"),
) -> None:
    """Show what deleting a topic would do."""
    with _reported():
        impact = _index(ctx).topics.analyze_delete_impact(topic_id)
    typer.echo(json.dumps(asdict(impact), indent=2))


@topic_app.command("delete")
def topic_delete(
    ctx: typer.Context,
    topic_id: str = typer.Argument(..., help="Topic id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete a leaf topic; highlights only filed under it are deleted too."""
    topics = _index(ctx).topics
    with _reported():
        impact = topics.analyze_delete_impact(topic_id)
        if impact.has_children:
            typer.echo(f"Topic has {impact.children_count} child topic(s); move or delete them first.")
            raise typer.Exit(1)
        if not yes:
            typer.confirm(
                f"Delete topic? {impact.highlights_affected_sole_topic} highlight(s) will be deleted, "
                f"{impact.highlights_affected_multi_topic} will lose this topic.",
                abort=True,
            )
        topics.delete(topic_id)
    typer.echo(f"Deleted {topic_id}")


@topic_app.command("list")
def topic_list(
    ctx: typer.Context,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List topics with their full paths."""
    with _reported():
        topics = _index(ctx).topics.list()
    paths = path_lookup(topics)
    if output_json:
        data = [{**t.to_dict(), "path": paths[t.id]} for t in topics]
        typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return
    for topic in sorted(topics, key=lambda t: paths[t.id].casefold()):
        typer.echo(f"{topic.id}\t{paths[topic.id]}")


@topic_app.command("path")
def topic_path(
    ctx: typer.Context,
    topic_id: str = typer.Argument(..., help="Topic id"),
) -> None:
    """Print the breadcrumb of a topic."""
    with _reported():
        path = build_path(_index(ctx).topics.list(), topic_id)
    if not path:
        typer.echo(f"Topic '{topic_id}' not found.")
        raise typer.Exit(1)
    typer.echo(format_path(path))


@topic_app.command("layout")
def topic_layout(ctx: typer.Context) -> None:
    """Print canvas coordinates of every topic as JSON."""
    with _reported():
        positioned = compute_layout(_index(ctx).topics.list())
    data = [{"id": p.topic.id, "name": p.topic.name, "x": p.x, "y": p.y} for p in positioned]
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


# --- Highlights ---


@highlight_app.command("add")
def highlight_add(
    ctx: typer.Context,
    pdf_id: str = typer.Argument(..., help="Owning document id"),
    page: int = typer.Option(..., "--page", help="1-based page number"),
    top: float = typer.Option(..., "--top"),
    left: float = typer.Option(..., "--left"),
    width: float = typer.Option(..., "--width"),
    height: float = typer.Option(..., "--height"),
    topic: Annotated[list[str] | None, typer.Option("--topic", "-T", help="Topic id (repeatable)")] = None,
    book: str | None = typer.Option(None, "--book"),
    volume: str | None = typer.Option(None, "--volume"),
    chapter: str | None = typer.Option(None, "--chapter"),
    tags: str = typer.Option("", "--tags", help="Comma separated tags"),
    description: str | None = typer.Option(None, "--description"),
) -> None:
    """Save a highlight box on a document page."""
    if page < 1:
        typer.echo("Page must be 1 or greater.")
        raise typer.Exit(1)
    if not is_drawable_box(width, height):
        typer.echo("Box is too small to save.")
        raise typer.Exit(1)
    highlight = Highlight.create(
        pdf_id=pdf_id,
        page=page,
        top=top,
        left=left,
        width=width,
        height=height,
        topic_ids=topic or [],
        book=book,
        volume=volume,
        chapter=chapter,
        tags=parse_tags(tags),
        description=description,
    )
    with _reported():
        _index(ctx).highlights.add(highlight)
    typer.echo(highlight.id)


@highlight_app.command("topics")
def highlight_topics(
    ctx: typer.Context,
    highlight_id: str = typer.Argument(..., help="Highlight id"),
    topic_ids: list[str] = typer.Argument(None, help="New topic ids (none clears)"),
) -> None:
    """Replace the topics a highlight is filed under."""
    highlights = _index(ctx).highlights
    with _reported():
        highlight = highlights.get(highlight_id)
        if highlight is None:
            typer.echo(f"Highlight '{highlight_id}' not found.")
            raise typer.Exit(1)
        highlights.update(replace(highlight, topic_ids=tuple(dict.fromkeys(topic_ids or []))))


@highlight_app.command("list")
def highlight_list(
    ctx: typer.Context,
    pdf: str | None = typer.Option(None, "--pdf", help="Only highlights of this document"),
    topic: str | None = typer.Option(None, "--topic", "-T", help="Only highlights filed under this topic"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List highlights by document and/or topic."""
    index = _index(ctx)
    with _reported():
        if pdf is not None:
            found = index.highlights.get_by_pdf(pdf)
            if topic is not None:
                found = [h for h in found if topic in h.topic_ids]
        elif topic is not None:
            found = index.highlights.get_by_topic(topic)
        else:
            found = index.highlights.get_all()
        topics_by_id = index_by_id(index.topics.list())

    if output_json:
        typer.echo(json.dumps([h.to_dict() for h in found], indent=2, ensure_ascii=False))
        return
    for h in sorted(found, key=lambda h: (h.pdf_id, h.page, h.created_at)):
        labels = ", ".join(topic_label(topics_by_id, t) for t in h.topic_ids) or "-"
        typer.echo(f"{h.id}\t{h.pdf_id}\tp.{h.page}\t{labels}")


@highlight_app.command("delete")
def highlight_delete(
    ctx: typer.Context,
    highlight_id: str = typer.Argument(..., help="Highlight id"),
) -> None:
    """Delete a highlight."""
    with _reported():
        _index(ctx).highlights.delete(highlight_id)


# --- Backups ---


@app.command(name="export")
def export_cmd(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the backup here instead of stdout"),
    ] = None,
) -> None:
    """Export documents, highlights and topics as a JSON backup."""
    with _reported():
        backup = export_backup(_index(ctx).store)
    if output is None:
        typer.echo(dumps(backup))
        return
    write_backup(output, backup)
    typer.echo(
        f"Exported {len(backup.pdfs)} documents, {len(backup.highlights)} highlights, "
        f"{len(backup.topics)} topics to {output}"
    )


@app.command(name="import")
def import_cmd(
    ctx: typer.Context,
    source: Path = typer.Argument(..., help="Backup JSON file"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Replace all documents, highlights and topics with a backup's contents."""
    if not source.exists():
        logger.error("Backup file not found: {}", source)
        raise typer.Exit(1)
    with _reported():
        backup = read_backup(source)
        if not yes:
            typer.confirm("This replaces every document, highlight and topic. Continue?", abort=True)
        import_backup(_index(ctx).store, backup)
    typer.echo(
        f"Imported {len(backup.pdfs)} documents, {len(backup.highlights)} highlights, "
        f"{len(backup.topics)} topics"
    )


@app.command(name="mcp")
def mcp_cmd(ctx: typer.Context) -> None:
    """Run the MCP server over stdio."""
    from highlight_index.mcp.server import run_mcp_server

    run_mcp_server(ctx.meta["db_path"])
