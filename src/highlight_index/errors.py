"""Error taxonomy for the highlight index."""


class HighlightIndexError(Exception):
    """Base class for all errors raised by the index."""


class StorageUnavailable(HighlightIndexError):
    """The persistent store cannot be opened or accessed."""


class ValidationError(HighlightIndexError):
    """Caller-supplied data fails a precondition. Nothing was written."""


class CycleError(HighlightIndexError):
    """A topic re-parent would make the topic its own ancestor."""

    def __init__(self, topic_id: str, new_parent_id: str) -> None:
        self.topic_id = topic_id
        self.new_parent_id = new_parent_id
        super().__init__(
            f"Cannot move topic {topic_id!r} under {new_parent_id!r}: "
            "it is the topic itself or one of its descendants"
        )


class HasChildrenError(HighlightIndexError):
    """A topic deletion was attempted while the topic still has children."""

    def __init__(self, topic_id: str, children_count: int) -> None:
        self.topic_id = topic_id
        self.children_count = children_count
        super().__init__(
            f"Topic {topic_id!r} has {children_count} "
            f"{'child' if children_count == 1 else 'children'}; move or delete them first"
        )


class NotFoundError(HighlightIndexError):
    """An operation was addressed to an unknown id."""


class TopicNotFoundError(NotFoundError):
    def __init__(self, topic_id: str) -> None:
        self.topic_id = topic_id
        super().__init__(f"Topic {topic_id!r} not found")
