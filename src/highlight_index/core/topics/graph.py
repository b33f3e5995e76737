"""Pure helpers over a topic list: paths, ancestor chains, graph projection."""

from collections.abc import Iterable, Sequence

from highlight_index.models.records import GraphEdge, GraphNode, Topic, TopicGraph

PATH_SEPARATOR = " > "


def index_by_id(topics: Iterable[Topic]) -> dict[str, Topic]:
    return {t.id: t for t in topics}


def ancestor_ids(topics_by_id: dict[str, Topic], start_id: str | None) -> list[str]:
    """Walk ``parent_id`` pointers from ``start_id`` (inclusive) upwards.

    Stops at a root, at an id missing from ``topics_by_id`` (kept as the last
    entry), or on the first revisited id.
    """
    chain: list[str] = []
    current = start_id
    while current is not None and current not in chain:
        chain.append(current)
        node = topics_by_id.get(current)
        if node is None:
            break
        current = node.parent_id
    return chain


def build_path(topics: Sequence[Topic], topic_id: str) -> list[Topic]:
    """Return the chain of topics from the root down to ``topic_id``.

    A topic whose parent is missing yields a one-element path. Unknown ids
    yield an empty path.
    """
    by_id = index_by_id(topics)
    path: list[Topic] = []
    seen: set[str] = set()
    current = by_id.get(topic_id)
    while current is not None and current.id not in seen:
        seen.add(current.id)
        path.append(current)
        current = by_id.get(current.parent_id) if current.parent_id else None
    path.reverse()
    return path


def format_path(path: Sequence[Topic], separator: str = PATH_SEPARATOR) -> str:
    return separator.join(t.name for t in path)


def path_lookup(topics: Sequence[Topic], separator: str = PATH_SEPARATOR) -> dict[str, str]:
    """Map every topic id to its formatted breadcrumb."""
    return {t.id: format_path(build_path(topics, t.id), separator) for t in topics}


def topic_label(topics_by_id: dict[str, Topic], topic_id: str) -> str:
    """Name of a topic, or the raw id when the reference dangles."""
    topic = topics_by_id.get(topic_id)
    return topic.name if topic else topic_id


def build_graph(topics: Sequence[Topic]) -> TopicGraph:
    """Project topics to nodes and parent -> child edges (``edge-<childId>``)."""
    nodes = tuple(GraphNode(id=t.id, name=t.name, parent_id=t.parent_id) for t in topics)
    edges = tuple(
        GraphEdge(id=f"edge-{t.id}", source=t.parent_id, target=t.id)
        for t in topics
        if t.parent_id
    )
    return TopicGraph(nodes=nodes, edges=edges)


def collect_subtree(topics: Sequence[Topic], root_id: str) -> list[Topic]:
    """Return ``root_id`` followed by all its descendants, depth first.

    When ``root_id`` is unknown the whole list is returned unchanged.
    """
    by_id = index_by_id(topics)
    root = by_id.get(root_id)
    if root is None:
        return list(topics)

    by_parent: dict[str | None, list[Topic]] = {}
    for t in topics:
        by_parent.setdefault(t.parent_id, []).append(t)

    result: list[Topic] = []
    seen: set[str] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.id in seen:
            continue
        seen.add(node.id)
        result.append(node)
        stack.extend(reversed(by_parent.get(node.id, [])))
    return result
