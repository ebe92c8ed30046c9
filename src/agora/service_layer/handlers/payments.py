"""Handlers for payment tiers, coupons, checkout and subscriptions.

Gateway-driven handlers (``complete_checkout``, ``sync_subscription`` and
friends) take already-parsed gateway data. Events for unknown gateway
subscriptions are logged and ignored, since gateways retry and replay them.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from agora.domain.aggregates import Coupon, PaymentTier, Subscription
from agora.domain.utils import utc_now
from agora.domain.value_objects import BillingInterval, SubscriptionStatus
from agora.interfaces.errors import DuplicateEntityError
from agora.interfaces.id_generator import IdGenerator
from agora.interfaces.unit_of_work import AbstractUnitOfWork
from agora.service_layer import commands
from agora.service_layer.errors import (
    AccessDeniedError,
    AlreadySubscribedError,
    CouponUnavailableError,
    TierNotActiveError,
)

logger = logging.getLogger(__name__)

TRIAL_DAYS = Subscription.TRIAL_PERIOD.days


@dataclass(frozen=True)
class CheckoutQuote:
    """Prices (in cents) shown to a user before checkout."""

    tier_name: str
    interval: BillingInterval
    subtotal: int
    discount: int
    total: int
    coupon_code: str | None
    trial_days: int = TRIAL_DAYS

    @property
    def coupon_applied(self) -> bool:
        return self.coupon_code is not None


# ============================================================================
#                               Payment tiers
# ============================================================================


def create_payment_tier(
    cmd: commands.CreatePaymentTier,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> str:
    tier = PaymentTier.create(
        aggregate_id=id_generator.new_id(),
        community_id=cmd.community_id,
        name=cmd.name,
        description=cmd.description,
        price_monthly=cmd.price_monthly,
        price_annual=cmd.price_annual,
        features=cmd.features,
        is_active=cmd.is_active,
    )
    with uow:
        uow.communities.require(cmd.community_id)
        uow.payment_tiers.add(tier)
        uow.commit()
    return tier.id


def _change_tier(
    tier_id: str, uow: AbstractUnitOfWork, change: Callable[[PaymentTier], None]
) -> None:
    with uow:
        tier = uow.payment_tiers.require(tier_id)
        change(tier)
        uow.payment_tiers.update(tier)
        uow.commit()


def update_payment_tier(
    cmd: commands.UpdatePaymentTier, uow: AbstractUnitOfWork
) -> None:
    _change_tier(
        cmd.tier_id,
        uow,
        lambda tier: tier.update(
            name=cmd.name,
            description=cmd.description,
            price_monthly=cmd.price_monthly,
            price_annual=cmd.price_annual,
        ),
    )


def activate_payment_tier(
    cmd: commands.ActivatePaymentTier, uow: AbstractUnitOfWork
) -> None:
    _change_tier(cmd.tier_id, uow, PaymentTier.activate)


def deactivate_payment_tier(
    cmd: commands.DeactivatePaymentTier, uow: AbstractUnitOfWork
) -> None:
    _change_tier(cmd.tier_id, uow, PaymentTier.deactivate)


def add_tier_feature(cmd: commands.AddTierFeature, uow: AbstractUnitOfWork) -> None:
    _change_tier(cmd.tier_id, uow, lambda tier: tier.add_feature(cmd.feature))


def remove_tier_feature(
    cmd: commands.RemoveTierFeature, uow: AbstractUnitOfWork
) -> None:
    _change_tier(cmd.tier_id, uow, lambda tier: tier.remove_feature(cmd.feature))


# ============================================================================
#                               Coupons & checkout
# ============================================================================


def create_coupon(
    cmd: commands.CreateCoupon, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> str:
    """Create a coupon and return its ID.

    Raises:
        DuplicateEntityError: If the community already has a coupon with the code.
    """

    coupon = Coupon.create(
        aggregate_id=id_generator.new_id(),
        community_id=cmd.community_id,
        code=cmd.code,
        discount_type=cmd.discount_type,
        discount_value=cmd.discount_value,
        expires_at=cmd.expires_at,
        max_uses=cmd.max_uses,
    )
    with uow:
        uow.communities.require(cmd.community_id)
        if uow.coupons.find_by_code(coupon.code, cmd.community_id) is not None:
            raise DuplicateEntityError("Coupon", coupon.code)
        uow.coupons.add(coupon)
        uow.commit()
    return coupon.id


def deactivate_coupon(cmd: commands.DeactivateCoupon, uow: AbstractUnitOfWork) -> None:
    with uow:
        coupon = uow.coupons.require(cmd.coupon_id)
        coupon.deactivate()
        uow.coupons.update(coupon)
        uow.commit()


def redeem_coupon(cmd: commands.RedeemCoupon, uow: AbstractUnitOfWork) -> int:
    """Use a coupon once and return its new use count.

    Concurrent redemptions of the last use are settled by the repository's
    version check: the loser gets ``ConcurrencyConflictError``.
    """

    with uow:
        coupon = _require_available_coupon(uow, cmd.code, cmd.community_id)
        coupon.use()
        uow.coupons.update(coupon)
        uow.commit()
    return coupon.used_count


def calculate_checkout(
    cmd: commands.CalculateCheckout, uow: AbstractUnitOfWork
) -> CheckoutQuote:
    """Price a tier for one billing interval, applying an optional coupon.

    Raises:
        EntityNotFoundError: If the tier does not exist.
        TierNotActiveError: If the tier is inactive.
        CouponUnavailableError: If the coupon is unknown or unavailable.
    """

    with uow:
        tier = uow.payment_tiers.require(cmd.tier_id)
        if not tier.is_active:
            raise TierNotActiveError(tier.id)

        subtotal = (
            tier.price_monthly
            if cmd.interval is BillingInterval.MONTHLY
            else tier.price_annual
        )
        discount = 0
        coupon_code = None
        if cmd.coupon_code:
            coupon = _require_available_coupon(uow, cmd.coupon_code, tier.community_id)
            discount = coupon.discount_amount(subtotal)
            coupon_code = coupon.code

    return CheckoutQuote(
        tier_name=tier.name,
        interval=cmd.interval,
        subtotal=subtotal,
        discount=discount,
        total=max(0, subtotal - discount),
        coupon_code=coupon_code,
    )


def _require_available_coupon(
    uow: AbstractUnitOfWork, code: str, community_id: str
) -> Coupon:
    coupon = uow.coupons.find_by_code(code, community_id)
    if coupon is None:
        raise CouponUnavailableError(code.strip().upper(), "does not exist")
    if not coupon.is_available():
        raise CouponUnavailableError(coupon.code)
    return coupon


# ============================================================================
#                               Subscriptions
# ============================================================================


def start_subscription(
    cmd: commands.StartSubscription,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> str:
    """Subscribe a user to a tier. The subscription starts in its trial period.

    Raises:
        TierNotActiveError: If the tier is inactive.
        AlreadySubscribedError: If the user holds an ACTIVE or TRIALING
            subscription to the community.
    """

    with uow:
        tier = uow.payment_tiers.require(cmd.tier_id)
        if not tier.is_active:
            raise TierNotActiveError(tier.id)
        existing = uow.subscriptions.find_by_user_and_community(
            cmd.user_id, cmd.community_id
        )
        if existing is not None and existing.has_access:
            raise AlreadySubscribedError(cmd.user_id, cmd.community_id)

        start = utc_now()
        trial_end = start + Subscription.TRIAL_PERIOD
        subscription = Subscription.create(
            aggregate_id=id_generator.new_id(),
            user_id=cmd.user_id,
            community_id=cmd.community_id,
            payment_tier_id=tier.id,
            interval=cmd.interval,
            current_period_start=start,
            current_period_end=trial_end,
            status=SubscriptionStatus.TRIALING,
            trial_ends_at=trial_end,
        )
        uow.subscriptions.add(subscription)
        uow.commit()
    return subscription.id


def cancel_subscription(
    cmd: commands.CancelSubscription, uow: AbstractUnitOfWork
) -> None:
    with uow:
        subscription = uow.subscriptions.require(cmd.subscription_id)
        if subscription.user_id != cmd.requested_by:
            raise AccessDeniedError(
                cmd.requested_by, f"cancel subscription {subscription.id}"
            )
        subscription.cancel()
        uow.subscriptions.update(subscription)
        uow.commit()


def complete_checkout(
    cmd: commands.CompleteCheckout,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> str:
    """Link a completed gateway checkout to a subscription, creating it if needed."""

    with uow:
        subscription = uow.subscriptions.find_by_user_and_community(
            cmd.user_id, cmd.community_id
        )
        if subscription is None:
            subscription = Subscription.create(
                aggregate_id=id_generator.new_id(),
                user_id=cmd.user_id,
                community_id=cmd.community_id,
                payment_tier_id=cmd.tier_id,
                interval=cmd.interval,
                current_period_start=cmd.current_period_start,
                current_period_end=cmd.current_period_end,
                status=SubscriptionStatus.TRIALING,
                trial_ends_at=cmd.trial_ends_at,
                stripe_subscription_id=cmd.stripe_subscription_id,
                stripe_customer_id=cmd.stripe_customer_id,
            )
            uow.subscriptions.add(subscription)
        else:
            subscription.update_stripe_ids(
                cmd.stripe_subscription_id, cmd.stripe_customer_id
            )
            uow.subscriptions.update(subscription)
        uow.commit()
    return subscription.id


def sync_subscription(cmd: commands.SyncSubscription, uow: AbstractUnitOfWork) -> None:
    """Apply a gateway subscription update: status, renewal, scheduled cancel."""

    with uow:
        subscription = _find_gateway_subscription(uow, cmd.stripe_subscription_id)
        if subscription is None:
            return

        if cmd.status is not None:
            subscription.update_status(cmd.status)
        if (
            not subscription.is_cancelled
            and cmd.current_period_end > subscription.current_period_end
        ):
            subscription.renew_period(cmd.current_period_end)
        if (
            cmd.cancel_at_period_end
            and not subscription.cancel_at_period_end
            and not subscription.is_cancelled
        ):
            subscription.cancel()

        uow.subscriptions.update(subscription)
        uow.commit()


def delete_subscription(
    cmd: commands.DeleteSubscription, uow: AbstractUnitOfWork
) -> None:
    with uow:
        subscription = _find_gateway_subscription(uow, cmd.stripe_subscription_id)
        if subscription is None:
            return
        subscription.cancel_immediately()
        uow.subscriptions.update(subscription)
        uow.commit()


def record_payment_succeeded(
    cmd: commands.RecordPaymentSucceeded, uow: AbstractUnitOfWork
) -> None:
    """Bring a past-due subscription back to ACTIVE."""

    with uow:
        subscription = _find_gateway_subscription(uow, cmd.stripe_subscription_id)
        if subscription is None:
            return
        if not subscription.is_past_due:
            logger.debug(
                "RecordPaymentSucceeded %s: not past due; noop", subscription.id
            )
            return
        subscription.activate()
        uow.subscriptions.update(subscription)
        uow.commit()


def record_payment_failed(
    cmd: commands.RecordPaymentFailed, uow: AbstractUnitOfWork
) -> None:
    with uow:
        subscription = _find_gateway_subscription(uow, cmd.stripe_subscription_id)
        if subscription is None:
            return
        subscription.mark_past_due()
        uow.subscriptions.update(subscription)
        uow.commit()


def _find_gateway_subscription(
    uow: AbstractUnitOfWork, stripe_subscription_id: str
) -> Subscription | None:
    subscription = uow.subscriptions.find_by_stripe_subscription_id(
        stripe_subscription_id
    )
    if subscription is None:
        logger.warning("Gateway subscription %s not found", stripe_subscription_id)
    return subscription


COMMAND_HANDLERS: dict[type, Callable[..., object]] = {
    commands.CreatePaymentTier: create_payment_tier,
    commands.UpdatePaymentTier: update_payment_tier,
    commands.ActivatePaymentTier: activate_payment_tier,
    commands.DeactivatePaymentTier: deactivate_payment_tier,
    commands.AddTierFeature: add_tier_feature,
    commands.RemoveTierFeature: remove_tier_feature,
    commands.CreateCoupon: create_coupon,
    commands.DeactivateCoupon: deactivate_coupon,
    commands.RedeemCoupon: redeem_coupon,
    commands.CalculateCheckout: calculate_checkout,
    commands.StartSubscription: start_subscription,
    commands.CancelSubscription: cancel_subscription,
    commands.CompleteCheckout: complete_checkout,
    commands.SyncSubscription: sync_subscription,
    commands.DeleteSubscription: delete_subscription,
    commands.RecordPaymentSucceeded: record_payment_succeeded,
    commands.RecordPaymentFailed: record_payment_failed,
}
