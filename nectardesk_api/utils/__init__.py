# Utility exports
from .period_utils import PeriodInfo, PERIOD_TYPES, calculate_period_info, format_period_label
from .metrics_utils import MetricTotals, AggregateMetrics, MetricSample, compute_aggregate

__all__ = [
    "PeriodInfo",
    "PERIOD_TYPES",
    "calculate_period_info",
    "format_period_label",
    "MetricTotals",
    "AggregateMetrics",
    "MetricSample",
    "compute_aggregate",
]
