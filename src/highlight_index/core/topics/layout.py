"""Tree layout for the topic canvas."""

from collections.abc import Sequence

from highlight_index.config import LAYOUT_SPACING_X, LAYOUT_SPACING_Y
from highlight_index.models.records import PositionedTopic, Topic


def compute_layout(
    topics: Sequence[Topic],
    *,
    spacing_x: float = LAYOUT_SPACING_X,
    spacing_y: float = LAYOUT_SPACING_Y,
) -> list[PositionedTopic]:
    """Assign every topic an (x, y) position, post-order.

    Depth maps to y. Leaves take successive cursor slots left to right and
    each parent sits at the mean x of its direct children. Root trees are
    separated by one empty column. Topics whose parent is missing are laid
    out afterwards as extra roots, as is anything only reachable through a
    parent cycle. Output order follows the traversal and is stable for a
    given input order.
    """
    ids = {t.id for t in topics}
    children: dict[str | None, list[Topic]] = {}
    for t in topics:
        children.setdefault(t.parent_id, []).append(t)

    positioned: list[PositionedTopic] = []
    placed: set[str] = set()
    cursor_x = 0.0

    def walk(topic: Topic, depth: int) -> float:
        nonlocal cursor_x
        placed.add(topic.id)
        centers = [
            walk(kid, depth + 1) for kid in children.get(topic.id, []) if kid.id not in placed
        ]
        if centers:
            x = sum(centers) / len(centers)
        else:
            x = cursor_x
            cursor_x += spacing_x
        positioned.append(PositionedTopic(topic=topic, x=x, y=depth * spacing_y))
        return x

    for root in children.get(None, []):
        walk(root, 0)
        cursor_x += spacing_x

    orphans = [t for t in topics if t.parent_id is not None and t.parent_id not in ids]
    cyclic = [t for t in topics if t.parent_id in ids]
    for topic in orphans + cyclic:
        if topic.id not in placed:
            walk(topic, 0)

    return positioned
