"""Domain layer package."""

from .models import AggregateResult, FilterOptions, FunnelStage, GroupBy, RawRecord, UnknownKeyPolicy, WeeklyBucket
from .trend_policy import compare

__all__ = [
    "AggregateResult",
    "FilterOptions",
    "FunnelStage",
    "GroupBy",
    "RawRecord",
    "UnknownKeyPolicy",
    "WeeklyBucket",
    "compare",
]
