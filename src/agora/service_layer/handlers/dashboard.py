"""Handler computing the dashboard's headline metrics."""

from collections.abc import Callable

from agora.domain.metrics import DashboardMetrics
from agora.service_layer import commands


def build_dashboard_metrics(cmd: commands.BuildDashboardMetrics) -> DashboardMetrics:
    return DashboardMetrics.from_counts(
        cmd.current, cmd.previous, comparison_period=cmd.comparison_period
    )


COMMAND_HANDLERS: dict[type, Callable[..., object]] = {
    commands.BuildDashboardMetrics: build_dashboard_metrics,
}
