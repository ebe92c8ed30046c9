"""In-memory shared data store for the in-memory repositories."""

from dataclasses import dataclass, field, fields
from typing import Any


@dataclass(slots=True)
class InMemoryData:
    """Shared backing store for the in-memory repositories.

    Each mapping is keyed by aggregate ID and holds the aggregate's frozen
    persistence record. A single shared instance should be handed to all
    repositories of one unit of work so cross-repository lookups agree.
    """

    communities: dict[str, Any] = field(default_factory=dict)
    posts: dict[str, Any] = field(default_factory=dict)
    comments: dict[str, Any] = field(default_factory=dict)
    likes: dict[str, Any] = field(default_factory=dict)
    post_drafts: dict[str, Any] = field(default_factory=dict)
    content_versions: dict[str, Any] = field(default_factory=dict)
    courses: dict[str, Any] = field(default_factory=dict)
    lessons: dict[str, Any] = field(default_factory=dict)
    course_progress: dict[str, Any] = field(default_factory=dict)
    certificates: dict[str, Any] = field(default_factory=dict)
    spaces: dict[str, Any] = field(default_factory=dict)
    channels: dict[str, Any] = field(default_factory=dict)
    payment_tiers: dict[str, Any] = field(default_factory=dict)
    coupons: dict[str, Any] = field(default_factory=dict)
    subscriptions: dict[str, Any] = field(default_factory=dict)
    notifications: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "InMemoryData":
        """Return a copy whose mappings can change without touching this one.

        Records are immutable, so copying the mappings is enough.
        """
        return InMemoryData(
            **{f.name: dict(getattr(self, f.name)) for f in fields(self)}
        )

    def overwrite_with(self, other: "InMemoryData") -> None:
        """Replace every mapping's content with *other*'s."""
        for f in fields(self):
            mapping = getattr(self, f.name)
            mapping.clear()
            mapping.update(getattr(other, f.name))
