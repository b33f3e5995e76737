"""Topic hierarchy: CRUD, cycle-safe moves and cascading deletion."""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

from highlight_index.core.database.schema import TOPICS
from highlight_index.core.highlights.repository import HighlightRepository
from highlight_index.core.topics.graph import ancestor_ids, index_by_id
from highlight_index.errors import CycleError, HasChildrenError, TopicNotFoundError, ValidationError
from highlight_index.models.records import DeleteImpact, Topic
from highlight_index.protocols import StoreProtocol


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        msg = "Topic name must not be empty"
        raise ValidationError(msg)
    return cleaned


def _other_topics(topic_ids: tuple[str, ...], topic_id: str) -> tuple[str, ...]:
    return tuple(t for t in topic_ids if t != topic_id)


class TopicEngine:
    """Maintains the topic forest and its links to highlights.

    The parent relation stays acyclic: every ``move`` walks the ancestor chain
    of the proposed parent first. Deleting a topic is only allowed for leaves
    and rewrites or removes the highlights that reference it in the same
    transaction as the topic itself.
    """

    def __init__(self, store: StoreProtocol, highlights: HighlightRepository | None = None) -> None:
        self.store = store
        self.highlights = highlights or HighlightRepository(store)

    def list(self) -> list[Topic]:
        return [Topic.from_dict(raw) for raw in self.store.get_all(TOPICS)]

    def get(self, topic_id: str) -> Topic | None:
        raw = self.store.get(TOPICS, topic_id)
        return Topic.from_dict(raw) if raw else None

    def _require(self, topic_id: str) -> Topic:
        topic = self.get(topic_id)
        if topic is None:
            raise TopicNotFoundError(topic_id)
        return topic

    def add(self, name: str, parent_id: str | None = None, *, topic_id: str | None = None) -> Topic:
        """Create a topic. The parent is not required to exist.

        An explicit ``topic_id`` must be unused, and it must not already be an
        ancestor of ``parent_id`` through dangling parent references.
        """
        topic = Topic.create(_clean_name(name), parent_id or None)
        if topic_id is not None:
            if self.get(topic_id) is not None:
                msg = f"Topic {topic_id!r} already exists"
                raise ValidationError(msg)
            topic = replace(topic, id=topic_id)
        if topic.parent_id is not None:
            if topic.id in ancestor_ids(index_by_id(self.list()), topic.parent_id):
                raise CycleError(topic.id, topic.parent_id)
        self.store.put(TOPICS, topic.to_dict())
        logger.debug("Added topic {} ({!r}) under {}", topic.id, topic.name, topic.parent_id)
        return topic

    def rename(self, topic_id: str, name: str) -> Topic:
        topic = replace(self._require(topic_id), name=_clean_name(name))
        self.store.put(TOPICS, topic.to_dict())
        return topic

    def move(self, topic_id: str, new_parent_id: str | None) -> Topic:
        """Re-parent a topic, refusing any move that would create a cycle."""
        topic = self._require(topic_id)
        new_parent_id = new_parent_id or None
        if new_parent_id is not None:
            chain = ancestor_ids(index_by_id(self.list()), new_parent_id)
            if topic_id in chain:
                raise CycleError(topic_id, new_parent_id)
        moved = replace(topic, parent_id=new_parent_id)
        self.store.put(TOPICS, moved.to_dict())
        logger.debug("Moved topic {} under {}", topic_id, new_parent_id)
        return moved

    def children(self, topic_id: str) -> list[Topic]:
        return [t for t in self.list() if t.parent_id == topic_id]

    def analyze_delete_impact(self, topic_id: str) -> DeleteImpact:
        """Describe what ``delete(topic_id)`` would do to children and highlights."""
        children_count = len(self.children(topic_id))
        multi = sole = 0
        for highlight in self.highlights.get_by_topic(topic_id):
            if _other_topics(highlight.topic_ids, topic_id):
                multi += 1
            else:
                sole += 1
        return DeleteImpact(
            has_children=children_count > 0,
            children_count=children_count,
            highlights_affected_multi_topic=multi,
            highlights_affected_sole_topic=sole,
        )

    def delete(self, topic_id: str) -> DeleteImpact:
        """Delete a leaf topic and cascade to its highlights.

        Highlights that keep other topics lose this membership; highlights
        for which this was the only topic are deleted. All writes share one
        transaction, so a failure leaves the store unchanged.
        """
        self._require(topic_id)
        with self.store.transaction():
            impact = self.analyze_delete_impact(topic_id)
            if impact.has_children:
                raise HasChildrenError(topic_id, impact.children_count)
            for highlight in self.highlights.get_by_topic(topic_id):
                remaining = _other_topics(highlight.topic_ids, topic_id)
                if remaining:
                    self.highlights.update(replace(highlight, topic_ids=remaining))
                else:
                    self.highlights.delete(highlight.id)
            self.store.delete(TOPICS, topic_id)
        logger.info(
            "Deleted topic {}: {} highlights updated, {} deleted",
            topic_id,
            impact.highlights_affected_multi_topic,
            impact.highlights_affected_sole_topic,
        )
        return impact
