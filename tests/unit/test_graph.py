"""Tests for topic path and graph helpers."""

from highlight_index.core.topics.graph import (
    ancestor_ids,
    build_graph,
    build_path,
    collect_subtree,
    format_path,
    index_by_id,
    path_lookup,
    topic_label,
)
from highlight_index.models.records import GraphEdge, Topic

TOPICS = [
    Topic("science", "Science"),
    Topic("physics", "Physics", "science"),
    Topic("quantum", "Quantum", "physics"),
    Topic("chemistry", "Chemistry", "science"),
    Topic("history", "History"),
]


def test_build_path_runs_root_to_node() -> None:
    path = build_path(TOPICS, "quantum")
    assert [t.id for t in path] == ["science", "physics", "quantum"]
    assert format_path(path) == "Science > Physics > Quantum"


def test_build_path_unknown_topic_is_empty() -> None:
    assert build_path(TOPICS, "missing") == []


def test_build_path_with_dangling_parent_is_just_the_topic() -> None:
    topics = [Topic("orphan", "Orphan", "gone")]
    assert [t.id for t in build_path(topics, "orphan")] == ["orphan"]


def test_build_path_terminates_on_cycle() -> None:
    topics = [Topic("a", "A", "b"), Topic("b", "B", "a")]
    assert {t.id for t in build_path(topics, "a")} == {"a", "b"}


def test_format_path_custom_separator() -> None:
    assert format_path(build_path(TOPICS, "physics"), "/") == "Science/Physics"


def test_path_lookup_covers_every_topic() -> None:
    paths = path_lookup(TOPICS)
    assert paths["history"] == "History"
    assert paths["chemistry"] == "Science > Chemistry"
    assert len(paths) == len(TOPICS)


def test_ancestor_ids_is_inclusive_and_stops_at_root() -> None:
    assert ancestor_ids(index_by_id(TOPICS), "quantum") == ["quantum", "physics", "science"]
    assert ancestor_ids(index_by_id(TOPICS), None) == []


def test_ancestor_ids_keeps_missing_id_and_stops() -> None:
    by_id = index_by_id([Topic("a", "A", "gone")])
    assert ancestor_ids(by_id, "a") == ["a", "gone"]


def test_ancestor_ids_stops_on_revisit() -> None:
    by_id = index_by_id([Topic("a", "A", "b"), Topic("b", "B", "a")])
    assert ancestor_ids(by_id, "a") == ["a", "b"]


def test_topic_label_falls_back_to_raw_id() -> None:
    by_id = index_by_id(TOPICS)
    assert topic_label(by_id, "physics") == "Physics"
    assert topic_label(by_id, "deleted-topic") == "deleted-topic"


def test_build_graph_has_one_edge_per_child() -> None:
    graph = build_graph(TOPICS)
    assert len(graph.nodes) == 5
    assert set(graph.edges) == {
        GraphEdge("edge-physics", "science", "physics"),
        GraphEdge("edge-quantum", "physics", "quantum"),
        GraphEdge("edge-chemistry", "science", "chemistry"),
    }


def test_build_graph_empty() -> None:
    graph = build_graph([])
    assert graph.nodes == ()
    assert graph.edges == ()


def test_collect_subtree_returns_root_and_descendants() -> None:
    ids = [t.id for t in collect_subtree(TOPICS, "science")]
    assert ids[0] == "science"
    assert set(ids) == {"science", "physics", "quantum", "chemistry"}


def test_collect_subtree_unknown_root_returns_everything() -> None:
    assert collect_subtree(TOPICS, "missing") == TOPICS
