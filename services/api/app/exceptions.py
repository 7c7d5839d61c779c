"""
Domain errors raised by the graph service and repositories.

Routers translate these into HTTP responses; nothing here knows about HTTP.
"""
from typing import Optional


class GraphError(Exception):
    """Base class for social graph errors."""


class EntityNotFoundError(GraphError):
    """An account or profile referenced by a mutation does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.capitalize()} {entity_id} not found")


class SelfRelationshipError(GraphError):
    """An account tried to follow itself."""


class InvalidReviewError(GraphError):
    """A review payload failed validation (rating range, unknown target)."""


class DuplicateEdgeError(GraphError):
    """The unique (source, target) constraint rejected an edge insert.

    Only raised inside a unit of work; the service resolves it to the edge
    that won the race.
    """

    def __init__(self, source_id: str, target_id: str, cause: Optional[Exception] = None) -> None:
        self.source_id = source_id
        self.target_id = target_id
        self.cause = cause
        super().__init__(f"Edge {source_id} -> {target_id} already exists")


class DuplicateEntityError(GraphError):
    """A username or slug is already taken."""
