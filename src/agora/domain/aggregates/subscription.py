"""Aggregate representing a member's subscription to a community tier."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import ClassVar

from agora.domain import errors, events
from agora.domain.utils import utc_now
from agora.domain.value_objects import BillingInterval, SubscriptionStatus

from .base import ArchivableAggregate

# pylint: disable=too-many-arguments,too-many-instance-attributes,too-many-locals


@dataclass(frozen=True, slots=True)
class SubscriptionRecord:
    """Persisted state of a subscription."""

    id: str
    user_id: str
    community_id: str
    payment_tier_id: str
    stripe_subscription_id: str | None
    stripe_customer_id: str | None
    status: SubscriptionStatus
    interval: BillingInterval
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool
    trial_ends_at: datetime | None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


class Subscription(ArchivableAggregate):
    """A user's paid membership of a community.

    Status moves TRIALING -> ACTIVE -> PAST_DUE -> ACTIVE as payments succeed
    and fail. Any status can end in CANCELLED through :meth:`cancel_immediately`,
    which also archives the subscription. :meth:`cancel` only schedules the
    cancellation for the end of the current period.
    """

    RECORD_TYPE = SubscriptionRecord
    ENTITY_NAME = "Subscription"

    TRIAL_PERIOD: ClassVar[timedelta] = timedelta(days=7)

    def __init__(
        self,
        aggregate_id: str,
        user_id: str,
        community_id: str,
        payment_tier_id: str,
        stripe_subscription_id: str | None,
        stripe_customer_id: str | None,
        status: SubscriptionStatus,
        interval: BillingInterval,
        current_period_start: datetime,
        current_period_end: datetime,
        cancel_at_period_end: bool,
        trial_ends_at: datetime | None,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, updated_at, deleted_at, version)
        _validate_period(current_period_start, current_period_end)
        if trial_ends_at is not None:
            _validate_trial_end(trial_ends_at, current_period_start)
        self._user_id = user_id
        self._community_id = community_id
        self._payment_tier_id = payment_tier_id
        self._stripe_subscription_id = stripe_subscription_id
        self._stripe_customer_id = stripe_customer_id
        self._status = status
        self._interval = interval
        self._current_period_start = current_period_start
        self._current_period_end = current_period_end
        self._cancel_at_period_end = cancel_at_period_end
        self._trial_ends_at = trial_ends_at

    # --- Construction Paths ---

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        user_id: str,
        community_id: str,
        payment_tier_id: str,
        interval: BillingInterval,
        current_period_start: datetime,
        current_period_end: datetime,
        *,
        status: SubscriptionStatus = SubscriptionStatus.TRIALING,
        trial_ends_at: datetime | None = None,
        stripe_subscription_id: str | None = None,
        stripe_customer_id: str | None = None,
    ) -> "Subscription":
        """Create a new subscription, trialing unless another status is given.

        Raises:
            ValidationError: If the period ends before it starts, or the trial
                ends before the period starts.
        """
        now = utc_now()
        subscription = cls(
            aggregate_id,
            user_id=user_id,
            community_id=community_id,
            payment_tier_id=payment_tier_id,
            stripe_subscription_id=stripe_subscription_id,
            stripe_customer_id=stripe_customer_id,
            status=status,
            interval=interval,
            current_period_start=current_period_start,
            current_period_end=current_period_end,
            cancel_at_period_end=False,
            trial_ends_at=trial_ends_at,
            created_at=now,
            updated_at=now,
        )
        subscription._record(
            events.SubscriptionCreated(
                subscription_id=aggregate_id,
                user_id=user_id,
                community_id=community_id,
                payment_tier_id=payment_tier_id,
                status=status,
                trial_ends_at=trial_ends_at,
            )
        )
        return subscription

    # --- Properties ---

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def community_id(self) -> str:
        return self._community_id

    @property
    def payment_tier_id(self) -> str:
        return self._payment_tier_id

    @property
    def stripe_subscription_id(self) -> str | None:
        return self._stripe_subscription_id

    @property
    def stripe_customer_id(self) -> str | None:
        return self._stripe_customer_id

    @property
    def status(self) -> SubscriptionStatus:
        return self._status

    @property
    def interval(self) -> BillingInterval:
        return self._interval

    @property
    def current_period_start(self) -> datetime:
        return self._current_period_start

    @property
    def current_period_end(self) -> datetime:
        return self._current_period_end

    @property
    def cancel_at_period_end(self) -> bool:
        return self._cancel_at_period_end

    @property
    def trial_ends_at(self) -> datetime | None:
        return self._trial_ends_at

    @property
    def is_active(self) -> bool:
        return self._status is SubscriptionStatus.ACTIVE

    @property
    def is_trialing(self) -> bool:
        return self._status is SubscriptionStatus.TRIALING

    @property
    def is_past_due(self) -> bool:
        return self._status is SubscriptionStatus.PAST_DUE

    @property
    def is_cancelled(self) -> bool:
        return self._status is SubscriptionStatus.CANCELLED

    @property
    def has_access(self) -> bool:
        """True while the member may use what the tier grants."""
        return self.is_active or self.is_trialing

    # --- State Transitions ---

    def update_stripe_ids(self, subscription_id: str, customer_id: str) -> None:
        """Link the subscription to its payment gateway records."""
        self.ensure_not_archived()
        self._stripe_subscription_id = subscription_id
        self._stripe_customer_id = customer_id
        self._touch()

    def update_status(self, status: SubscriptionStatus) -> None:
        """Set the status reported by the payment gateway, without transition checks."""
        self.ensure_not_archived()
        self._set_status(status)

    def activate(self) -> None:
        self.ensure_not_archived()
        if self.is_active:
            raise errors.InvalidTransitionError("Subscription is already active")
        self._set_status(SubscriptionStatus.ACTIVE)

    def cancel(self) -> None:
        """Schedule cancellation at the end of the current period.

        Raises:
            ArchivedEntityError: If the subscription is archived.
            InvalidTransitionError: If it is cancelled or already scheduled
                for cancellation.
        """
        self.ensure_not_archived()
        if self.is_cancelled:
            raise errors.InvalidTransitionError("Subscription is already cancelled")
        if self._cancel_at_period_end:
            raise errors.InvalidTransitionError(
                "Subscription is already scheduled for cancellation"
            )
        self._cancel_at_period_end = True
        self._touch()
        self._record(self._cancelled_event())

    def cancel_immediately(self) -> None:
        """Cancel now. The subscription is archived in the same step."""
        self.ensure_not_archived()
        if self.is_cancelled:
            raise errors.InvalidTransitionError("Subscription is already cancelled")
        old_status = self._status
        self._status = SubscriptionStatus.CANCELLED
        self._cancel_at_period_end = False
        self._deleted_at = utc_now()
        self._updated_at = self._deleted_at
        self._record(
            events.SubscriptionStatusUpdated(
                subscription_id=self.id,
                old_status=old_status,
                new_status=SubscriptionStatus.CANCELLED,
            )
        )
        self._record(self._cancelled_event())

    def mark_past_due(self) -> None:
        self.ensure_not_archived()
        if self.is_cancelled:
            raise errors.InvalidTransitionError(
                "Cannot mark cancelled subscription as past due"
            )
        self._set_status(SubscriptionStatus.PAST_DUE)
        self._record(
            events.SubscriptionPaymentFailed(
                subscription_id=self.id,
                user_id=self._user_id,
                community_id=self._community_id,
            )
        )

    def start_trial(self) -> None:
        """Put the subscription on a trial of exactly :attr:`TRIAL_PERIOD`."""
        self.ensure_not_archived()
        if self.is_trialing:
            raise errors.InvalidTransitionError(
                "Subscription is already in trial period"
            )
        if self.is_cancelled:
            raise errors.InvalidTransitionError(
                "Cannot start trial for cancelled subscription"
            )
        self._trial_ends_at = utc_now() + self.TRIAL_PERIOD
        self._set_status(SubscriptionStatus.TRIALING)
        self._record(
            events.SubscriptionTrialStarted(
                subscription_id=self.id, trial_ends_at=self._trial_ends_at
            )
        )

    def renew_period(self, new_period_end: datetime) -> None:
        """Advance the billing period to end at *new_period_end*.

        The new period starts where the old one ended. A scheduled cancellation
        is dropped, and a trialing subscription becomes active.

        Raises:
            ArchivedEntityError: If the subscription is archived.
            InvalidTransitionError: If the subscription is cancelled.
            ValidationError: If *new_period_end* is not after the current end.
        """
        self.ensure_not_archived()
        if self.is_cancelled:
            raise errors.InvalidTransitionError("Cannot renew cancelled subscription")
        new_period_start = self._current_period_end
        _validate_period(new_period_start, new_period_end)

        self._current_period_start = new_period_start
        self._current_period_end = new_period_end
        self._cancel_at_period_end = False
        if self.is_trialing:
            self._trial_ends_at = None
            self._set_status(SubscriptionStatus.ACTIVE)
        else:
            self._touch()
        self._record(
            events.SubscriptionRenewed(
                subscription_id=self.id,
                user_id=self._user_id,
                new_period_end=new_period_end,
            )
        )

    # --- Lifecycle Events ---

    def _archived_event(self) -> events.DomainEvent:
        return events.SubscriptionArchived(subscription_id=self.id)

    def _restored_event(self) -> events.DomainEvent:
        return events.SubscriptionRestored(subscription_id=self.id)

    # --- Internal Helpers ---

    def _set_status(self, status: SubscriptionStatus) -> None:
        old_status = self._status
        self._status = status
        self._touch()
        if old_status is not status:
            self._record(
                events.SubscriptionStatusUpdated(
                    subscription_id=self.id, old_status=old_status, new_status=status
                )
            )

    def _cancelled_event(self) -> events.SubscriptionCancelled:
        return events.SubscriptionCancelled(
            subscription_id=self.id,
            user_id=self._user_id,
            community_id=self._community_id,
            cancel_at_period_end=self._cancel_at_period_end,
        )


def _validate_period(start: datetime, end: datetime) -> None:
    if end <= start:
        raise errors.ValidationError("Period end must be after period start")


def _validate_trial_end(trial_end: datetime, period_start: datetime) -> None:
    if trial_end <= period_start:
        raise errors.ValidationError("Trial end must be after period start")
