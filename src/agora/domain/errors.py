"""Domain-layer error definitions.

Every rule violation inside the core surfaces as one of the exceptions below,
carrying the human-readable message callers show to users. The core never
catches these itself; mapping them to transport-level codes is the job of
whatever sits in front of the service layer.
"""

# ============================================================================
#                           General domain errors
# ============================================================================


class DomainError(Exception):
    """Base class for domain-layer errors."""


class ValidationError(DomainError):
    """Raised when a field violates its invariant on construction or update."""


class InvalidTransitionError(DomainError):
    """Raised when an aggregate is in an invalid state for the attempted action."""


# ============================================================================
#                           Lifecycle errors
# ============================================================================


class ArchivedEntityError(InvalidTransitionError):
    """Raised when a mutator is invoked on an archived (soft-deleted) aggregate."""

    def __init__(self, entity_name: str, aggregate_id: str) -> None:
        super().__init__(f"Cannot modify archived {entity_name.lower()}")
        self.entity_name = entity_name
        self.aggregate_id = aggregate_id


class AlreadyArchivedError(InvalidTransitionError):
    """Raised when archiving an aggregate that is already archived."""

    def __init__(self, entity_name: str, aggregate_id: str) -> None:
        super().__init__(f"{entity_name} is already archived")
        self.entity_name = entity_name
        self.aggregate_id = aggregate_id


class NotArchivedError(InvalidTransitionError):
    """Raised when restoring an aggregate that is not archived."""

    def __init__(self, entity_name: str, aggregate_id: str) -> None:
        super().__init__(f"{entity_name} is not archived")
        self.entity_name = entity_name
        self.aggregate_id = aggregate_id
