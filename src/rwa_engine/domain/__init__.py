"""Domain types for the RWA engine."""

from rwa_engine.domain.enums import (
    AdjustmentKind,
    DistributionMethod,
    ErrorCategory,
    ErrorSeverity,
    MaturityAdjustmentMethod,
    PortfolioAdjustmentKind,
    PriorityDirection,
)

__all__ = [
    "AdjustmentKind",
    "DistributionMethod",
    "ErrorCategory",
    "ErrorSeverity",
    "MaturityAdjustmentMethod",
    "PortfolioAdjustmentKind",
    "PriorityDirection",
]
