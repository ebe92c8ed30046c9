"""Dashboard metrics.

Derived, read-only figures shown on a community dashboard. Nothing here is
persisted; the values are rebuilt from period counts on every request.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from agora.domain.errors import ValidationError
from agora.domain.utils import utc_now


class MetricChangeType(Enum):
    """Direction of a metric compared with the previous period."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


# pylint: disable=too-many-instance-attributes


@dataclass(frozen=True)
class Metric:
    """A single dashboard figure with its change against the previous period."""

    id: str
    label: str
    icon: str
    value: float
    formatted_value: str
    change: float
    change_type: MetricChangeType
    change_description: str
    comparison_period: str

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValidationError("Metric value cannot be negative")
        required = (
            self.id,
            self.label,
            self.icon,
            self.formatted_value,
            self.change_description,
            self.comparison_period,
        )
        if not all(required):
            raise ValidationError("All metric fields are required")

    @classmethod
    def from_comparison(
        cls,
        *,
        metric_id: str,
        label: str,
        icon: str,
        current_value: float,
        previous_value: float,
        comparison_period: str,
        formatter: Callable[[float], str] = str,
    ) -> "Metric":
        """Build a metric from the current and previous period values.

        ``change`` is the percentage change. A previous value of zero counts as
        +100% when the current value is positive and 0% otherwise.
        """
        delta = current_value - previous_value
        if previous_value == 0:
            percentage = 100.0 if current_value > 0 else 0.0
        else:
            percentage = delta / previous_value * 100

        if delta > 0:
            change_type = MetricChangeType.POSITIVE
        elif delta < 0:
            change_type = MetricChangeType.NEGATIVE
        else:
            change_type = MetricChangeType.NEUTRAL

        sign = "+" if delta >= 0 else ""
        return cls(
            id=metric_id,
            label=label,
            icon=icon,
            value=current_value,
            formatted_value=formatter(current_value),
            change=percentage,
            change_type=change_type,
            change_description=f"{sign}{percentage:.1f}% from previous period",
            comparison_period=comparison_period,
        )


@dataclass(frozen=True)
class PeriodCounts:
    """Raw counts for one reporting period. ``mrr`` is in cents."""

    member_count: int
    post_count: int
    comment_count: int
    mrr: int


def format_cents(value: float) -> str:
    return f"${value / 100:.2f}"


@dataclass(frozen=True)
class DashboardMetrics:
    """The four headline metrics of a community dashboard."""

    members: Metric
    posts: Metric
    comments: Metric
    monthly_recurring_revenue: Metric
    generated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_counts(
        cls, current: PeriodCounts, previous: PeriodCounts, comparison_period: str
    ) -> "DashboardMetrics":
        return cls(
            members=Metric.from_comparison(
                metric_id="members",
                label="Total Members",
                icon="Users",
                current_value=current.member_count,
                previous_value=previous.member_count,
                comparison_period=comparison_period,
            ),
            posts=Metric.from_comparison(
                metric_id="posts",
                label="Total Posts",
                icon="FileText",
                current_value=current.post_count,
                previous_value=previous.post_count,
                comparison_period=comparison_period,
            ),
            comments=Metric.from_comparison(
                metric_id="comments",
                label="Total Comments",
                icon="MessageSquare",
                current_value=current.comment_count,
                previous_value=previous.comment_count,
                comparison_period=comparison_period,
            ),
            monthly_recurring_revenue=Metric.from_comparison(
                metric_id="mrr",
                label="Monthly Recurring Revenue",
                icon="DollarSign",
                current_value=current.mrr,
                previous_value=previous.mrr,
                comparison_period=comparison_period,
                formatter=format_cents,
            ),
        )

    def all(self) -> tuple[Metric, ...]:
        return (self.members, self.posts, self.comments, self.monthly_recurring_revenue)

    def has_healthy_growth(self) -> bool:
        """True when either membership or posting is growing."""
        return MetricChangeType.POSITIVE in (
            self.members.change_type,
            self.posts.change_type,
        )

    def needs_attention(self) -> bool:
        """True when two or more metrics are shrinking."""
        negatives = [
            m for m in self.all() if m.change_type is MetricChangeType.NEGATIVE
        ]
        return len(negatives) >= 2
