"""Aggregate representing a paid (or free) membership tier."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from agora.domain import errors, events
from agora.domain.utils import check_text_length, is_int, utc_now

from .base import ArchivableAggregate

# pylint: disable=too-many-arguments,too-many-instance-attributes


@dataclass(frozen=True, slots=True)
class PaymentTierRecord:
    """Persisted state of a payment tier. Prices are in cents."""

    id: str
    community_id: str
    name: str
    description: str
    price_monthly: int
    price_annual: int
    features: tuple[str, ...]
    is_active: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


class PaymentTier(ArchivableAggregate):
    """A membership tier with monthly and annual prices in cents.

    A tier priced at zero for both intervals is the free tier. Active tiers
    must be deactivated before they can be archived.
    """

    RECORD_TYPE = PaymentTierRecord
    ENTITY_NAME = "Payment tier"

    def __init__(
        self,
        aggregate_id: str,
        community_id: str,
        name: str,
        description: str,
        price_monthly: int,
        price_annual: int,
        features: Iterable[str],
        is_active: bool,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, updated_at, deleted_at, version)
        features = list(features)
        _validate_name(name)
        _validate_description(description)
        _validate_price(price_monthly, "monthly")
        _validate_price(price_annual, "annual")
        _validate_features(features)
        self._community_id = community_id
        self._name = name
        self._description = description
        self._price_monthly = price_monthly
        self._price_annual = price_annual
        self._features = features
        self._is_active = is_active

    # --- Construction Paths ---

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        community_id: str,
        name: str,
        description: str,
        price_monthly: int,
        price_annual: int,
        features: Iterable[str] = (),
        is_active: bool = True,
    ) -> "PaymentTier":
        """Create a new payment tier, active unless told otherwise.

        Raises:
            ValidationError: If any field is invalid.
        """
        now = utc_now()
        tier = cls(
            aggregate_id,
            community_id=community_id,
            name=name,
            description=description,
            price_monthly=price_monthly,
            price_annual=price_annual,
            features=features,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        tier._record(
            events.PaymentTierCreated(
                tier_id=aggregate_id,
                community_id=community_id,
                tier_name=name,
                price_monthly=price_monthly,
                price_annual=price_annual,
            )
        )
        return tier

    # --- Properties ---

    @property
    def community_id(self) -> str:
        return self._community_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def price_monthly(self) -> int:
        return self._price_monthly

    @property
    def price_annual(self) -> int:
        return self._price_annual

    @property
    def features(self) -> tuple[str, ...]:
        return tuple(self._features)

    @property
    def is_active(self) -> bool:
        return self._is_active

    def is_free(self) -> bool:
        return self._price_monthly == 0 and self._price_annual == 0

    # --- State Transitions ---

    def update(
        self,
        *,
        name: str | None = None,
        description: str | None = None,
        price_monthly: int | None = None,
        price_annual: int | None = None,
    ) -> None:
        self.ensure_not_archived()
        changes: dict[str, Any] = {}
        if name is not None:
            _validate_name(name)
            changes["name"] = name
        if description is not None:
            _validate_description(description)
            changes["description"] = description
        if price_monthly is not None:
            _validate_price(price_monthly, "monthly")
            changes["price_monthly"] = price_monthly
        if price_annual is not None:
            _validate_price(price_annual, "annual")
            changes["price_annual"] = price_annual
        self._name = changes.get("name", self._name)
        self._description = changes.get("description", self._description)
        self._price_monthly = changes.get("price_monthly", self._price_monthly)
        self._price_annual = changes.get("price_annual", self._price_annual)
        self._changed(changes)

    def activate(self) -> None:
        self.ensure_not_archived()
        if self._is_active:
            raise errors.InvalidTransitionError("Payment tier is already active")
        self._is_active = True
        self._touch()
        self._record(events.PaymentTierActivated(tier_id=self.id))

    def deactivate(self) -> None:
        self.ensure_not_archived()
        if not self._is_active:
            raise errors.InvalidTransitionError("Payment tier is already inactive")
        self._is_active = False
        self._touch()
        self._record(events.PaymentTierDeactivated(tier_id=self.id))

    def add_feature(self, feature: str) -> None:
        """Append a feature (trimmed) to the tier.

        Raises:
            ArchivedEntityError: If the tier is archived.
            ValidationError: If the feature is blank.
            InvalidTransitionError: If the tier already lists the feature.
        """
        self.ensure_not_archived()
        trimmed = feature.strip()
        if not trimmed:
            raise errors.ValidationError("Feature cannot be empty")
        if trimmed in self._features:
            raise errors.InvalidTransitionError("Feature already exists in tier")
        self._features.append(trimmed)
        self._changed({"features": self.features})

    def remove_feature(self, feature: str) -> None:
        self.ensure_not_archived()
        if feature not in self._features:
            raise errors.InvalidTransitionError("Feature not found in tier")
        self._features.remove(feature)
        self._changed({"features": self.features})

    # --- Lifecycle Events ---

    def _check_can_archive(self) -> None:
        if self._is_active:
            raise errors.InvalidTransitionError(
                "Cannot archive active tier. Deactivate first"
            )

    def _archived_event(self) -> events.DomainEvent:
        return events.PaymentTierArchived(tier_id=self.id)

    def _restored_event(self) -> events.DomainEvent:
        return events.PaymentTierRestored(tier_id=self.id)

    def _changed(self, changes: dict[str, Any]) -> None:
        self._touch()
        self._record(events.PaymentTierUpdated(tier_id=self.id, changes=changes))


def _validate_name(name: str) -> None:
    check_text_length(name, "Payment tier name", minimum=3, maximum=50)


def _validate_description(description: str) -> None:
    check_text_length(
        description, "Payment tier description", minimum=10, maximum=500
    )


def _validate_price(price: int, interval: str) -> None:
    if price < 0:
        raise errors.ValidationError(f"{interval} price cannot be negative")
    if not is_int(price):
        raise errors.ValidationError(f"{interval} price must be an integer (cents)")


def _validate_features(features: list[str]) -> None:
    for feature in features:
        if not isinstance(feature, str) or not feature.strip():
            raise errors.ValidationError("Each feature must be a non-empty string")
    if len(set(features)) != len(features):
        raise errors.ValidationError("Features must not contain duplicates")
