"""
Risk parameter derivation for the IRB capital formula.

Key formulas:
- Asset correlation R(PD) = 0.12 × f(PD) + 0.24 × (1 - f(PD)),
  f(PD) = (1 - e^(-50·PD)) / (1 - e^(-50))
- Maturity slope b(PD) = (0.11852 - 0.05478 × ln(PD))²
- Maturity adjustment MA = (1 + (M - 2.5) × b) / (1 - 1.5 × b)
- TTC PD = PIT PD × (1 + (0.5 - macro) × cyclicality × 2) × 0.7
           + long-term average × 0.3, clamped to [0.0001, 1]

Each formula is available as a Polars expression (for portfolio frames)
and as a scalar wrapper running the same expression.

References:
- CRE31.5: Asset correlation and the AVC multiplier for financials
- CRE31.7: Maturity adjustment
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import polars as pl

from rwa_engine.contracts.config import TtcPdAssumptions
from rwa_engine.contracts.records import Counterparty, finite_or_none
from rwa_engine.data.tables.industry_profiles import (
    get_industry_cyclicality,
    get_industry_long_term_average,
)
from rwa_engine.domain.enums import MaturityAdjustmentMethod
from rwa_engine.engine.stats import evaluate_scalar


# =============================================================================
# CONSTANTS
# =============================================================================

R_MIN = 0.12
R_MAX = 0.24
CORRELATION_DECAY = 50.0
_CORRELATION_DENOMINATOR = 1.0 - math.exp(-CORRELATION_DECAY)

# Asset value correlation multiplier for large/unregulated financials
AVC_MULTIPLIER = 1.25

# Constant maturity slope used by the legacy calculator
LEGACY_B = 0.05

# Keeps ln(PD) finite in b(PD)
_PD_LOG_FLOOR = 1e-10


def _as_expr(value: pl.Expr | float) -> pl.Expr:
    return value if isinstance(value, pl.Expr) else pl.lit(float(value))


# =============================================================================
# CORRELATION
# =============================================================================


def correlation_expr(
    pd: pl.Expr,
    avc_multiplier: pl.Expr | float = 1.0,
) -> pl.Expr:
    """
    Asset correlation as a Polars expression.

    The base correlation falls from 0.24 at PD → 0 to 0.12 at high PD.
    The AVC multiplier is applied on top and the result clamped to [0, 1].

    Args:
        pd: Expression with the PD used for capital
        avc_multiplier: 1.25 for large or unregulated financials, else 1.0
    """
    weight = (1.0 - (-CORRELATION_DECAY * pd).exp()) / _CORRELATION_DENOMINATOR
    base = R_MIN * weight + R_MAX * (1.0 - weight)
    return (base * _as_expr(avc_multiplier)).clip(0.0, 1.0)


def calculate_correlation(pd: float, avc_multiplier: float = 1.0) -> float:
    """Scalar asset correlation.

    Wrapper around correlation_expr().
    """
    return evaluate_scalar(
        correlation_expr(pl.col("pd"), pl.col("avc_multiplier")),
        pd=pd,
        avc_multiplier=avc_multiplier,
    )


def avc_multiplier(counterparty: Counterparty) -> float:
    """
    Asset value correlation multiplier for a counterparty.

    Financial institutions that are large or unregulated get 1.25,
    everyone else 1.0.
    """
    if counterparty.is_financial and (
        counterparty.is_large_financial or not counterparty.is_regulated
    ):
        return AVC_MULTIPLIER
    return 1.0


# =============================================================================
# MATURITY ADJUSTMENT
# =============================================================================


def maturity_b_expr(pd: pl.Expr) -> pl.Expr:
    """Maturity slope b(PD) = (0.11852 - 0.05478 × ln(PD))²."""
    pd_safe = pd.clip(lower_bound=_PD_LOG_FLOOR)
    return (0.11852 - 0.05478 * pd_safe.log()) ** 2


def maturity_adjustment_expr(
    pd: pl.Expr,
    maturity: pl.Expr,
    method: MaturityAdjustmentMethod = MaturityAdjustmentMethod.PD_DEPENDENT,
) -> pl.Expr:
    """
    Maturity adjustment MA = (1 + (M - 2.5) × b) / (1 - 1.5 × b).

    Args:
        pd: Expression with the PD used for capital
        maturity: Expression with effective maturity in years
        method: PD_DEPENDENT uses b(PD); LEGACY_CONSTANT uses b = 0.05
    """
    if method == MaturityAdjustmentMethod.LEGACY_CONSTANT:
        b = pl.lit(LEGACY_B)
    else:
        b = maturity_b_expr(pd)
    return (1.0 + (maturity - 2.5) * b) / (1.0 - 1.5 * b)


def calculate_maturity_b(pd: float) -> float:
    """Scalar maturity slope b(PD)."""
    return evaluate_scalar(maturity_b_expr(pl.col("pd")), pd=pd)


def calculate_maturity_adjustment(
    pd: float,
    maturity: float,
    method: MaturityAdjustmentMethod = MaturityAdjustmentMethod.PD_DEPENDENT,
) -> float:
    """Scalar maturity adjustment.

    Wrapper around maturity_adjustment_expr().
    """
    return evaluate_scalar(
        maturity_adjustment_expr(pl.col("pd"), pl.col("maturity"), method),
        pd=pd,
        maturity=maturity,
    )


# =============================================================================
# THROUGH-THE-CYCLE PD
# =============================================================================


@dataclass(frozen=True)
class TtcPdInputs:
    """
    Structured inputs for TTC PD derivation.

    Attributes:
        point_in_time_pd: Current PD estimate
        macroeconomic_index: 0 = recession, 1 = strong economy
        long_term_average: Industry long-run default rate
        cyclicality: Industry sensitivity to the cycle, 0-1
    """

    point_in_time_pd: float
    macroeconomic_index: float
    long_term_average: float
    cyclicality: float


def ttc_pd_expr(
    point_in_time_pd: pl.Expr,
    macroeconomic_index: pl.Expr | float,
    long_term_average: pl.Expr | float,
    cyclicality: pl.Expr | float,
    assumptions: TtcPdAssumptions | None = None,
) -> pl.Expr:
    """
    TTC PD as a Polars expression.

    In a strong economy (index above 0.5) PIT PD understates the long-run
    level less than in a weak one; the cycle adjustment scales PIT PD by
    1 + (0.5 - index) × cyclicality × 2 before blending with the
    long-term average.
    """
    assumptions = assumptions or TtcPdAssumptions()
    deviation = 0.5 - _as_expr(macroeconomic_index)
    cycle_adjusted = point_in_time_pd * (1.0 + deviation * _as_expr(cyclicality) * 2.0)
    blended = (
        cycle_adjusted * assumptions.pit_weight
        + _as_expr(long_term_average) * assumptions.average_weight
    )
    return blended.clip(assumptions.floor, assumptions.cap)


def derive_ttc_pd_from_inputs(
    inputs: TtcPdInputs,
    assumptions: TtcPdAssumptions | None = None,
) -> float:
    """
    Derive TTC PD from fully specified structured inputs.

    Args:
        inputs: PIT PD, macro index, long-term average and cyclicality
        assumptions: Blend weights and bounds (defaults if omitted)

    Returns:
        TTC PD clamped to [floor, cap]
    """
    return evaluate_scalar(
        ttc_pd_expr(
            pl.col("pit"),
            pl.col("macro"),
            pl.col("average"),
            pl.col("cyclicality"),
            assumptions,
        ),
        pit=inputs.point_in_time_pd,
        macro=inputs.macroeconomic_index,
        average=inputs.long_term_average,
        cyclicality=inputs.cyclicality,
    )


def derive_ttc_pd(
    point_in_time_pd: float,
    assumptions: TtcPdAssumptions | None = None,
) -> float:
    """
    Derive TTC PD from a single PIT PD.

    Convenience wrapper for callers without macro or industry data. Uses
    the assumption defaults: macro index 0.6 (slightly above neutral),
    long-term average 2%, cyclicality 0.5.
    """
    assumptions = assumptions or TtcPdAssumptions()
    return derive_ttc_pd_from_inputs(
        TtcPdInputs(
            point_in_time_pd=point_in_time_pd,
            macroeconomic_index=assumptions.macroeconomic_index,
            long_term_average=assumptions.long_term_average,
            cyclicality=assumptions.cyclicality,
        ),
        assumptions,
    )


def ttc_inputs_for_counterparty(
    counterparty: Counterparty,
    point_in_time_pd: float,
    assumptions: TtcPdAssumptions | None = None,
) -> TtcPdInputs:
    """
    Assemble TTC inputs for a counterparty.

    Values carried on the record win; otherwise cyclicality and long-term
    average come from the industry profile, and the macro index from the
    assumptions.
    """
    assumptions = assumptions or TtcPdAssumptions()

    macro = finite_or_none(counterparty.macroeconomic_index)
    average = finite_or_none(counterparty.long_term_average)
    cyclicality = finite_or_none(counterparty.cyclicality)

    return TtcPdInputs(
        point_in_time_pd=point_in_time_pd,
        macroeconomic_index=(
            macro if macro is not None else assumptions.macroeconomic_index
        ),
        long_term_average=(
            average
            if average is not None
            else get_industry_long_term_average(
                counterparty.industry, assumptions.long_term_average
            )
        ),
        cyclicality=(
            cyclicality
            if cyclicality is not None
            else get_industry_cyclicality(counterparty.industry, assumptions.cyclicality)
        ),
    )
