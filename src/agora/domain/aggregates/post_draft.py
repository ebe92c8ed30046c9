"""Aggregate representing an autosaved post draft."""

import copy
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from agora.domain import errors, events
from agora.domain.utils import utc_now

from .base import Aggregate

# pylint: disable=too-many-arguments

DRAFT_LIFETIME = timedelta(days=7)


@dataclass(frozen=True, slots=True)
class PostDraftRecord:
    """Persisted state of a post draft."""

    id: str
    post_id: str | None
    user_id: str
    content: Mapping[str, Any]
    saved_at: datetime
    expires_at: datetime
    created_at: datetime
    version: int = 0


class PostDraft(Aggregate):
    """Editor state autosaved while a user writes a post.

    A draft belongs to a user and, when editing an existing post, to that
    post. It expires seven days after it was last saved; expired drafts are
    purged rather than archived.
    """

    RECORD_TYPE = PostDraftRecord
    ENTITY_NAME = "Post draft"

    def __init__(
        self,
        aggregate_id: str,
        post_id: str | None,
        user_id: str,
        content: Mapping[str, Any],
        saved_at: datetime,
        expires_at: datetime,
        created_at: datetime,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, version)
        if not user_id:
            raise errors.ValidationError("User ID is required")
        _validate_content(content)
        self._post_id = post_id
        self._user_id = user_id
        self._content = copy.deepcopy(dict(content))
        self._saved_at = saved_at
        self._expires_at = expires_at

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        user_id: str,
        content: Mapping[str, Any],
        post_id: str | None = None,
    ) -> "PostDraft":
        now = utc_now()
        draft = cls(
            aggregate_id,
            post_id=post_id,
            user_id=user_id,
            content=content,
            saved_at=now,
            expires_at=now + DRAFT_LIFETIME,
            created_at=now,
        )
        draft._record_saved()
        return draft

    # --- Properties ---

    @property
    def post_id(self) -> str | None:
        return self._post_id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def content(self) -> dict[str, Any]:
        """A copy of the editor content; changing it does not touch the draft."""
        return copy.deepcopy(self._content)

    @property
    def saved_at(self) -> datetime:
        return self._saved_at

    @property
    def expires_at(self) -> datetime:
        return self._expires_at

    @property
    def has_post(self) -> bool:
        return self._post_id is not None

    # --- State Transitions ---

    def update_content(self, content: Mapping[str, Any]) -> None:
        """Replace the content and push the expiry seven days past now."""
        _validate_content(content)
        self._content = copy.deepcopy(dict(content))
        self._saved_at = utc_now()
        self._expires_at = self._saved_at + DRAFT_LIFETIME
        self._record_saved()

    # --- Queries ---

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utc_now()) > self._expires_at

    def days_until_expiration(self, now: datetime | None = None) -> int:
        """Whole days left before expiry, rounded up; negative once expired."""
        remaining = self._expires_at - (now or utc_now())
        return math.ceil(remaining / timedelta(days=1))

    def _record_saved(self) -> None:
        self._record(
            events.PostDraftSaved(
                draft_id=self.id,
                user_id=self._user_id,
                post_id=self._post_id,
                expires_at=self._expires_at,
            )
        )


def _validate_content(content: Any) -> None:
    if isinstance(content, (list, tuple)):
        raise errors.ValidationError("Draft content must be an object, not an array")
    if not isinstance(content, Mapping):
        raise errors.ValidationError("Draft content must be a valid JSON object")
