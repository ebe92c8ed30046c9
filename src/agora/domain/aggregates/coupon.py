"""Aggregate representing a discount coupon."""

import re
from dataclasses import dataclass
from datetime import datetime

from agora.domain import errors, events
from agora.domain.utils import check_text_length, is_int, utc_now
from agora.domain.value_objects import DiscountType

from .base import ArchivableAggregate

# pylint: disable=too-many-arguments,too-many-instance-attributes

_CODE_PATTERN = re.compile(r"[A-Z0-9]+")


@dataclass(frozen=True, slots=True)
class CouponRecord:
    """Persisted state of a coupon."""

    id: str
    community_id: str
    code: str
    discount_type: DiscountType
    discount_value: int
    expires_at: datetime | None
    max_uses: int | None
    used_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


class Coupon(ArchivableAggregate):
    """A discount code redeemable at checkout.

    A coupon is available while it is active, not archived, not expired and
    below its usage cap. :meth:`use` re-checks all of that before counting a
    redemption. Two processes redeeming the last use at the same time are told
    apart by the repository's version check, not here.
    """

    RECORD_TYPE = CouponRecord
    ENTITY_NAME = "Coupon"

    def __init__(
        self,
        aggregate_id: str,
        community_id: str,
        code: str,
        discount_type: DiscountType,
        discount_value: int,
        expires_at: datetime | None,
        max_uses: int | None,
        used_count: int,
        is_active: bool,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, updated_at, deleted_at, version)
        _validate_code(code)
        _validate_discount(discount_type, discount_value)
        self._community_id = community_id
        self._code = code
        self._discount_type = discount_type
        self._discount_value = discount_value
        self._expires_at = expires_at
        self._max_uses = max_uses
        self._used_count = used_count
        self._is_active = is_active

    # --- Construction Paths ---

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        community_id: str,
        code: str,
        discount_type: DiscountType,
        discount_value: int,
        *,
        expires_at: datetime | None = None,
        max_uses: int | None = None,
    ) -> "Coupon":
        """Create a new, active coupon.

        Args:
            aggregate_id (str): The unique identifier for the coupon.
            community_id (str): The community the coupon belongs to.
            code (str): 4 to 20 letters or digits; stored upper-cased.
            discount_type (DiscountType): Percentage or fixed amount.
            discount_value (int): Percent (at most 100) or cents.
            expires_at (datetime | None): When the coupon stops working.
            max_uses (int | None): Redemption cap, None for unlimited.

        Returns:
            Coupon: The newly created coupon.
        """
        now = utc_now()
        normalized = code.strip().upper()
        coupon = cls(
            aggregate_id,
            community_id=community_id,
            code=normalized,
            discount_type=discount_type,
            discount_value=discount_value,
            expires_at=expires_at,
            max_uses=max_uses,
            used_count=0,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        coupon._record(
            events.CouponCreated(
                coupon_id=aggregate_id,
                community_id=community_id,
                code=normalized,
                discount_type=discount_type,
                discount_value=discount_value,
            )
        )
        return coupon

    # --- Properties ---

    @property
    def community_id(self) -> str:
        return self._community_id

    @property
    def code(self) -> str:
        return self._code

    @property
    def discount_type(self) -> DiscountType:
        return self._discount_type

    @property
    def discount_value(self) -> int:
        return self._discount_value

    @property
    def expires_at(self) -> datetime | None:
        return self._expires_at

    @property
    def max_uses(self) -> int | None:
        return self._max_uses

    @property
    def used_count(self) -> int:
        return self._used_count

    @property
    def is_active(self) -> bool:
        return self._is_active

    # --- State Transitions ---

    def use(self, at: datetime | None = None) -> None:
        """Redeem the coupon once.

        Raises:
            ArchivedEntityError: If the coupon is archived.
            InvalidTransitionError: If the coupon is inactive, expired or has
                reached its maximum number of uses.
        """
        self.ensure_not_archived()
        if not self._is_active:
            raise errors.InvalidTransitionError("Coupon is not active")
        if self.is_expired(at):
            raise errors.InvalidTransitionError("Coupon has expired")
        if self._is_exhausted():
            raise errors.InvalidTransitionError("Coupon has reached maximum uses")
        self._used_count += 1
        self._touch()
        self._record(
            events.CouponRedeemed(
                coupon_id=self.id, code=self._code, used_count=self._used_count
            )
        )

    def activate(self) -> None:
        self.ensure_not_archived()
        if self._is_active:
            raise errors.InvalidTransitionError("Coupon is already active")
        self._is_active = True
        self._touch()
        self._record(events.CouponActivated(coupon_id=self.id))

    def deactivate(self) -> None:
        self.ensure_not_archived()
        if not self._is_active:
            raise errors.InvalidTransitionError("Coupon is already inactive")
        self._is_active = False
        self._touch()
        self._record(events.CouponDeactivated(coupon_id=self.id))

    # --- Queries ---

    def is_expired(self, at: datetime | None = None) -> bool:
        if self._expires_at is None:
            return False
        return (at or utc_now()) > self._expires_at

    def is_available(self, at: datetime | None = None) -> bool:
        return (
            self._is_active
            and not self.is_archived
            and not self.is_expired(at)
            and not self._is_exhausted()
        )

    def calculate_discount(self, price: int) -> int:
        """Return *price* (in cents) after applying the coupon.

        Percentage discounts are floored to whole cents. The result is never
        negative.

        Examples:
            A 20% coupon turns 1000 into 800; a 500 cent coupon turns 300 into 0.

        Raises:
            InvalidTransitionError: If the coupon is not available.
            ValidationError: If *price* is negative.
        """
        if not self.is_available():
            raise errors.InvalidTransitionError("Coupon is not available")
        if price < 0:
            raise errors.ValidationError("Price cannot be negative")
        if self._discount_type is DiscountType.PERCENTAGE:
            discount = price * self._discount_value // 100
            return max(0, price - discount)
        return max(0, price - self._discount_value)

    def discount_amount(self, price: int) -> int:
        """How many cents the coupon takes off *price*."""
        return price - self.calculate_discount(price)

    # --- Lifecycle Events ---

    def _check_can_archive(self) -> None:
        if self._is_active:
            raise errors.InvalidTransitionError(
                "Cannot archive active coupon. Deactivate first"
            )

    def _archived_event(self) -> events.DomainEvent:
        return events.CouponArchived(coupon_id=self.id)

    def _restored_event(self) -> events.DomainEvent:
        return events.CouponRestored(coupon_id=self.id)

    def _is_exhausted(self) -> bool:
        return self._max_uses is not None and self._used_count >= self._max_uses


def _validate_code(code: str) -> None:
    check_text_length(code, "Coupon code", minimum=4, maximum=20)
    if not _CODE_PATTERN.fullmatch(code.strip()):
        raise errors.ValidationError(
            "Coupon code must be uppercase alphanumeric characters only"
        )


def _validate_discount(discount_type: DiscountType, value: int) -> None:
    if value < 0:
        raise errors.ValidationError("Discount value cannot be negative")
    if not is_int(value):
        raise errors.ValidationError("Discount value must be an integer")
    if discount_type is DiscountType.PERCENTAGE and value > 100:
        raise errors.ValidationError("Percentage discount cannot exceed 100")
