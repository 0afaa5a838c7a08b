"""
Domain enums for the RWA engine.

Defines the enumerations shared by the calculation and overlay layers:
- AdjustmentKind: Shape of an RWA overlay (none, multiplicative, additive)
- PortfolioAdjustmentKind: How an analyst expresses a portfolio adjustment
- DistributionMethod: How a portfolio adjustment is split across counterparties
- MaturityAdjustmentMethod: Canonical vs legacy maturity adjustment
- PriorityDirection: Ranking direction for the target RWA optimizer
- ErrorSeverity / ErrorCategory: Classification of calculation diagnostics
"""

from enum import Enum


class AdjustmentKind(Enum):
    """
    Shape of an RWA overlay attached to a counterparty.

    MULTIPLICATIVE overlays scale RWA by a factor; ADDITIVE overlays add
    a fixed currency amount. NONE marks the absence of an overlay.
    """

    NONE = "none"
    MULTIPLICATIVE = "multiplicative"
    ADDITIVE = "additive"


class PortfolioAdjustmentKind(Enum):
    """
    Analyst input for a portfolio-level adjustment.

    PERCENTAGE: value is a percent change applied to every selected
                counterparty (becomes a multiplicative overlay)
    ABSOLUTE: value is a currency amount split across the selection
              (becomes an additive overlay per counterparty)
    """

    PERCENTAGE = "percentage"
    ABSOLUTE = "absolute"


class DistributionMethod(Enum):
    """
    Rule used to split a portfolio adjustment across counterparties.

    RISK_WEIGHTED currently weights by baseline RWA, the same as
    PROPORTIONAL. It is kept as its own label so reports can tell the
    two apart.
    """

    PROPORTIONAL = "proportional"
    EQUAL = "equal"
    RISK_WEIGHTED = "risk-weighted"


class MaturityAdjustmentMethod(Enum):
    """
    Maturity adjustment variant.

    PD_DEPENDENT: b(PD) = (0.11852 - 0.05478 × ln(PD))², CRE31.7
    LEGACY_CONSTANT: b = 0.05 regardless of PD (legacy simplification)
    """

    PD_DEPENDENT = "pd_dependent"
    LEGACY_CONSTANT = "legacy_constant"


class PriorityDirection(Enum):
    """Ranking direction for optimizer priority keys."""

    ASC = "asc"
    DESC = "desc"


class ErrorSeverity(Enum):
    """
    Severity levels for calculation errors.

    Used to classify issues encountered during RWA calculation.
    """

    # Informational, the calculation proceeds with a fallback
    WARNING = "warning"

    # The affected item could not be processed as requested
    ERROR = "error"

    # The whole request is unusable
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of calculation errors for filtering and reporting."""

    DATA_QUALITY = "data_quality"
    BUSINESS_RULE = "business_rule"
    CONFIGURATION = "configuration"
    CALCULATION = "calculation"
    ADJUSTMENT = "adjustment"
    OPTIMIZATION = "optimization"
