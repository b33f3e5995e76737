"""Tests for the topic engine: moves, delete impact and cascading deletion."""

import pytest

from highlight_index.core.topics.engine import TopicEngine
from highlight_index.core.topics.graph import ancestor_ids, index_by_id
from highlight_index.errors import (
    CycleError,
    HasChildrenError,
    NotFoundError,
    TopicNotFoundError,
    ValidationError,
)
from highlight_index.index import HighlightIndex
from highlight_index.models.records import DeleteImpact
from tests.unit.fakes import FakeStore, make_highlight


def test_add_creates_root_topic(index: HighlightIndex) -> None:
    topic = index.topics.add("  Science ")
    assert topic.name == "Science"
    assert topic.parent_id is None
    assert index.topics.get(topic.id) == topic


def test_add_under_missing_parent_is_allowed(index: HighlightIndex) -> None:
    topic = index.topics.add("Orphan", "no-such-parent")
    assert index.topics.get(topic.id).parent_id == "no-such-parent"  # type: ignore[union-attr]


def test_add_rejects_blank_name(index: HighlightIndex) -> None:
    with pytest.raises(ValidationError):
        index.topics.add("   ")
    assert index.topics.list() == []


def test_add_with_own_id_as_parent_raises_cycle(index: HighlightIndex) -> None:
    with pytest.raises(CycleError):
        index.topics.add("Self", "self", topic_id="self")
    assert index.topics.get("self") is None


def test_add_existing_id_is_rejected(index: HighlightIndex) -> None:
    index.topics.add("A", topic_id="a")
    index.topics.add("B", "a", topic_id="b")
    index.topics.add("C", "b", topic_id="c")
    with pytest.raises(ValidationError):
        index.topics.add("A again", "c", topic_id="a")
    assert index.topics.get("a").parent_id is None  # type: ignore[union-attr]


def test_add_under_descendant_of_dangling_reference_raises_cycle(index: HighlightIndex) -> None:
    index.topics.add("Child", "future", topic_id="child")
    with pytest.raises(CycleError):
        index.topics.add("Future", "child", topic_id="future")
    by_id = index_by_id(index.topics.list())
    assert ancestor_ids(by_id, "child") == ["child", "future"]


def test_rename_keeps_parent(populated_index: HighlightIndex) -> None:
    renamed = populated_index.topics.rename("physics", "Physik")
    assert renamed.name == "Physik"
    assert renamed.parent_id == "science"


def test_rename_unknown_topic_raises(index: HighlightIndex) -> None:
    with pytest.raises(TopicNotFoundError):
        index.topics.rename("missing", "Name")


def test_move_to_new_parent(populated_index: HighlightIndex) -> None:
    moved = populated_index.topics.move("quantum", "history")
    assert moved.parent_id == "history"
    assert populated_index.topics.get("quantum").parent_id == "history"  # type: ignore[union-attr]


def test_move_to_root(populated_index: HighlightIndex) -> None:
    assert populated_index.topics.move("physics", None).parent_id is None


@pytest.mark.parametrize("new_parent", ["science", "physics", "quantum"])
def test_move_under_self_or_descendant_raises_cycle(
    populated_index: HighlightIndex, new_parent: str
) -> None:
    with pytest.raises(CycleError) as exc_info:
        populated_index.topics.move("science", new_parent)
    assert exc_info.value.topic_id == "science"
    assert populated_index.topics.get("science").parent_id is None  # type: ignore[union-attr]


def test_moves_never_create_cycles(populated_index: HighlightIndex) -> None:
    topics = populated_index.topics
    ids = [t.id for t in topics.list()]
    for topic_id in ids:
        for parent_id in ids:
            try:
                topics.move(topic_id, parent_id)
            except CycleError:
                pass
    by_id = index_by_id(topics.list())
    for topic_id in ids:
        chain = ancestor_ids(by_id, topic_id)
        assert by_id[chain[-1]].parent_id is None


def test_move_unknown_topic_raises(index: HighlightIndex) -> None:
    with pytest.raises(NotFoundError):
        index.topics.move("missing", None)


def test_children(populated_index: HighlightIndex) -> None:
    assert [t.id for t in populated_index.topics.children("science")] == ["physics"]
    assert populated_index.topics.children("quantum") == []


def test_analyze_delete_impact_splits_multi_and_sole(populated_index: HighlightIndex) -> None:
    impact = populated_index.topics.analyze_delete_impact("quantum")
    assert impact == DeleteImpact(
        has_children=False,
        children_count=0,
        highlights_affected_multi_topic=1,
        highlights_affected_sole_topic=1,
    )


def test_analyze_delete_impact_counts_children(populated_index: HighlightIndex) -> None:
    impact = populated_index.topics.analyze_delete_impact("science")
    assert impact.has_children
    assert impact.children_count == 1


def test_analyze_delete_impact_on_unknown_topic_is_empty(index: HighlightIndex) -> None:
    assert index.topics.analyze_delete_impact("missing") == DeleteImpact(False, 0, 0, 0)


def test_delete_cascades_to_highlights(populated_index: HighlightIndex) -> None:
    impact = populated_index.topics.delete("quantum")

    assert impact.highlights_affected_multi_topic == 1
    assert impact.highlights_affected_sole_topic == 1
    assert populated_index.topics.get("quantum") is None
    assert populated_index.highlights.get("h-sole") is None
    multi = populated_index.highlights.get("h-multi")
    assert multi is not None
    assert multi.topic_ids == ("history",)
    assert populated_index.highlights.get("h-physics") is not None


def test_delete_leaves_no_dangling_references(populated_index: HighlightIndex) -> None:
    populated_index.topics.delete("quantum")
    populated_index.topics.delete("physics")
    for highlight in populated_index.highlights.get_all():
        assert "quantum" not in highlight.topic_ids
        assert "physics" not in highlight.topic_ids


def test_delete_with_children_raises_and_changes_nothing(populated_index: HighlightIndex) -> None:
    before = populated_index.highlights.get_all()
    with pytest.raises(HasChildrenError) as exc_info:
        populated_index.topics.delete("physics")
    assert exc_info.value.children_count == 1
    assert populated_index.topics.get("physics") is not None
    assert populated_index.highlights.get_all() == before


def test_delete_unknown_topic_raises(index: HighlightIndex) -> None:
    with pytest.raises(TopicNotFoundError):
        index.topics.delete("missing")


def test_delete_counts_duplicate_membership_as_sole() -> None:
    engine = TopicEngine(FakeStore())
    engine.add("Only", topic_id="only")
    engine.highlights.add(make_highlight("dup", topic_ids=("only", "only")))
    impact = engine.delete("only")
    assert impact.highlights_affected_sole_topic == 1
    assert engine.highlights.get("dup") is None


def test_failed_delete_is_rolled_back(monkeypatch: pytest.MonkeyPatch) -> None:
    store = FakeStore()
    engine = TopicEngine(store)
    engine.add("Topic", topic_id="t")
    engine.highlights.add(make_highlight("h1", topic_ids=("t", "other")))
    engine.highlights.add(make_highlight("h2", topic_ids=("t",)))

    def fail(partition: str, key: str) -> None:
        raise RuntimeError("disk full")

    monkeypatch.setattr(store, "delete", fail)
    with pytest.raises(RuntimeError):
        engine.delete("t")

    assert engine.get("t") is not None
    assert engine.highlights.get("h1").topic_ids == ("t", "other")  # type: ignore[union-attr]
    assert engine.highlights.get("h2") is not None
