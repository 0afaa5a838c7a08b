"""
IRB capital engine.

Computes the capital requirement and RWA per counterparty, then applies
the caller's overlays in a fixed order.

Key formulas:
- K = LGD × [N(G(PD)/√(1-R) + √(R/(1-R)) × G(0.999)) - PD] × MA
- Simplified mode: K = LGD × PD
- Risk weight = K × 1250 (percent)
- RWA = EAD × K × 12.5

Overlay order (after RWA is computed):
1. Counterparty-level overlay
2. Portfolio-level overlay
`original_rwa` is captured before either overlay.

Implementation architecture:
- Input resolution in Python: defaults for missing/NaN fields, rating PD,
  option overrides, AVC multiplier, TTC inputs
- Formulas as a single Polars pipeline (apply_capital_formulas) shared by
  the scalar and portfolio entry points
- Overlays applied per row from the caller's AdjustmentBook

References:
- CRE31.4-31.7: IRB risk weight function for corporate exposures
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

import polars as pl

from rwa_engine.contracts.config import (
    CalculationOptions,
    EngineConfig,
    TtcPdAssumptions,
)
from rwa_engine.contracts.errors import (
    ERROR_MISSING_COUNTERPARTY,
    ERROR_MISSING_FIELD,
    CalculationError,
    invalid_value_error,
    missing_field_warning,
)
from rwa_engine.contracts.records import (
    EMPTY_OVERLAYS,
    AdjustmentBook,
    Counterparty,
    OverlayPair,
    RWAResult,
    finite_or_none,
)
from rwa_engine.data.schemas import RWA_RESULT_SCHEMA
from rwa_engine.data.tables.credit_ratings import get_pd_from_rating, is_known_rating
from rwa_engine.domain.enums import (
    ErrorCategory,
    ErrorSeverity,
    MaturityAdjustmentMethod,
)
from rwa_engine.engine.parameters import (
    avc_multiplier,
    correlation_expr,
    maturity_adjustment_expr,
    ttc_inputs_for_counterparty,
    ttc_pd_expr,
)
from rwa_engine.engine.stats import G_999, normal_cdf_expr, normal_ppf_expr

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# RWA = K × 12.5 × EAD (reciprocal of the 8% capital ratio)
RWA_MULTIPLIER = 12.5

# Risk weight in percent = K × 12.5 × 100
RISK_WEIGHT_MULTIPLIER = 1250.0

_INPUT_SCHEMA = {
    "pd": pl.Float64,
    "lgd": pl.Float64,
    "ead": pl.Float64,
    "maturity": pl.Float64,
    "avc_multiplier": pl.Float64,
    "correlation_override": pl.Float64,
    "maturity_adjustment_override": pl.Float64,
    "ttc_pd_given": pl.Float64,
    "macroeconomic_index": pl.Float64,
    "long_term_average": pl.Float64,
    "cyclicality": pl.Float64,
}


# =============================================================================
# VECTORISED FORMULAS
# =============================================================================


def apply_capital_formulas(
    inputs: pl.LazyFrame,
    *,
    simplified: bool = False,
    use_maturity_adjustment: bool = True,
    maturity_method: MaturityAdjustmentMethod = MaturityAdjustmentMethod.PD_DEPENDENT,
    ttc_assumptions: TtcPdAssumptions | None = None,
) -> pl.LazyFrame:
    """
    Apply the IRB capital formulas to resolved inputs.

    Expects columns: pd, lgd, ead, maturity, avc_multiplier,
    correlation_override, maturity_adjustment_override, ttc_pd_given,
    macroeconomic_index, long_term_average, cyclicality
    (override and *_given columns may be null).

    Adds columns: ttc_pd, correlation_r, maturity_adjustment, k,
                  risk_weight, original_rwa

    Args:
        inputs: LazyFrame of resolved inputs
        simplified: Use K = LGD × PD instead of the Basel formula
        use_maturity_adjustment: When False, MA is fixed at 1.0
        maturity_method: Maturity adjustment variant
        ttc_assumptions: Blend weights and bounds for TTC PD derivation

    Returns:
        LazyFrame with capital calculations added
    """
    pd = pl.col("pd")

    # Step 1: Reported TTC PD (given value wins over derivation)
    derived_ttc = ttc_pd_expr(
        pd,
        pl.col("macroeconomic_index"),
        pl.col("long_term_average"),
        pl.col("cyclicality"),
        ttc_assumptions,
    )
    frame = inputs.with_columns(
        pl.coalesce(pl.col("ttc_pd_given"), derived_ttc).alias("ttc_pd"),
        pl.coalesce(
            pl.col("correlation_override"),
            correlation_expr(pd, pl.col("avc_multiplier")),
        ).alias("correlation_r"),
    )

    # Step 2: Maturity adjustment
    if use_maturity_adjustment:
        ma = maturity_adjustment_expr(pd, pl.col("maturity"), maturity_method)
    else:
        ma = pl.lit(1.0)
    frame = frame.with_columns(
        pl.coalesce(pl.col("maturity_adjustment_override"), ma).alias("maturity_adjustment")
    )

    # Step 3: Capital requirement K
    if simplified:
        k = pl.col("lgd") * pd
    else:
        r = pl.col("correlation_r")
        conditional_pd = normal_cdf_expr(
            normal_ppf_expr(pd) / (1.0 - r).sqrt() + (r / (1.0 - r)).sqrt() * G_999
        )
        k = pl.col("lgd") * (conditional_pd - pd) * pl.col("maturity_adjustment")
    frame = frame.with_columns(k.alias("k"))

    # Step 4: Risk weight and pre-overlay RWA
    return frame.with_columns(
        (pl.col("k") * RISK_WEIGHT_MULTIPLIER).alias("risk_weight"),
        (pl.col("ead") * pl.col("k") * RWA_MULTIPLIER).alias("original_rwa"),
    )


# =============================================================================
# INPUT RESOLUTION
# =============================================================================


@dataclass(frozen=True)
class ResolvedInputs:
    """Effective inputs for one counterparty after defaults and overrides."""

    counterparty_id: str
    pd: float
    lgd: float
    ead: float
    maturity: float
    avc_multiplier: float
    correlation_override: float | None
    maturity_adjustment_override: float | None
    ttc_pd_given: float | None
    macroeconomic_index: float
    long_term_average: float
    cyclicality: float
    errors: tuple[CalculationError, ...] = ()


def missing_counterparty_warning() -> CalculationError:
    """Warning attached to the zeroed result for an absent counterparty."""
    return CalculationError(
        code=ERROR_MISSING_COUNTERPARTY,
        message="Counterparty is missing, returning a zeroed result",
        severity=ErrorSeverity.WARNING,
        category=ErrorCategory.DATA_QUALITY,
    )


def unknown_rating_warning(counterparty: Counterparty, default: float) -> CalculationError:
    """Warning for a rating-sourced PD whose symbol is not in the rating table."""
    return CalculationError(
        code=ERROR_MISSING_FIELD,
        message=(
            f"Credit rating '{counterparty.credit_rating}' not recognised, "
            f"using default PD {default}"
        ),
        severity=ErrorSeverity.WARNING,
        category=ErrorCategory.DATA_QUALITY,
        counterparty_reference=counterparty.id,
        field_name="credit_rating",
        expected_value="known rating symbol",
        actual_value=counterparty.credit_rating,
    )


# =============================================================================
# CAPITAL ENGINE
# =============================================================================


class CapitalEngine:
    """
    Compute IRB capital and RWA for counterparties.

    The engine is stateless apart from its configuration: the same inputs
    always give the same outputs, and input records are never modified.

    Usage:
        engine = CapitalEngine(EngineConfig.default())
        result = engine.compute_rwa(counterparty)
        frame = engine.compute_portfolio(counterparties, book=book)
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig.default()

    # -------------------------------------------------------------------------
    # Scalar entry point
    # -------------------------------------------------------------------------

    def compute_rwa(
        self,
        counterparty: Counterparty | None,
        options: CalculationOptions | None = None,
        overlays: OverlayPair | None = None,
    ) -> RWAResult:
        """
        Calculate RWA for one counterparty.

        Args:
            counterparty: Counterparty record; None yields a zeroed result
            options: Parameter overrides and formula switches
            overlays: Counterparty- and portfolio-level overlays to apply

        Returns:
            RWAResult with effective inputs, intermediate parameters,
            pre-overlay and post-overlay RWA
        """
        if counterparty is None:
            logger.warning("Counterparty is undefined in compute_rwa")
            return RWAResult.zero(errors=(missing_counterparty_warning(),))

        pair = overlays or EMPTY_OVERLAYS
        return self._compute([counterparty], options, lambda _: pair)[0]

    # -------------------------------------------------------------------------
    # Portfolio entry points
    # -------------------------------------------------------------------------

    def compute_many(
        self,
        counterparties: Sequence[Counterparty | None],
        options: CalculationOptions | None = None,
        book: AdjustmentBook | None = None,
    ) -> list[RWAResult]:
        """
        Calculate RWA for many counterparties in one vectorised pass.

        Results are aligned with the input; None entries yield zeroed
        results.
        """
        book = book or AdjustmentBook()
        present = [cp for cp in counterparties if cp is not None]
        computed = iter(self._compute(present, options, book.overlays_for))

        results = []
        for cp in counterparties:
            if cp is None:
                logger.warning("Skipping undefined counterparty in portfolio")
                results.append(RWAResult.zero(errors=(missing_counterparty_warning(),)))
            else:
                results.append(next(computed))
        return results

    def compute_portfolio(
        self,
        counterparties: Sequence[Counterparty],
        options: CalculationOptions | None = None,
        book: AdjustmentBook | None = None,
    ) -> pl.DataFrame:
        """
        Calculate RWA for a portfolio and return it as a DataFrame.

        Returns:
            DataFrame with RWA_RESULT_SCHEMA, one row per counterparty in
            input order
        """
        present = [cp for cp in counterparties if cp is not None]
        results = self.compute_many(present, options, book)
        return results_to_frame(present, results)

    def baseline_rwas(
        self,
        counterparties: Sequence[Counterparty],
        book: AdjustmentBook | None = None,
        options: CalculationOptions | None = None,
    ) -> dict[str, float]:
        """
        RWA per counterparty id before any portfolio-level overlay.

        Counterparty-level overlays are kept. This is the base a new
        portfolio adjustment replaces the previous one from.
        """
        book = (book or AdjustmentBook()).without_portfolio_adjustments()
        results = self.compute_many(counterparties, options, book)
        return {cp.id: result.rwa for cp, result in zip(counterparties, results)}

    def baseline_rwa(
        self,
        counterparty: Counterparty,
        book: AdjustmentBook | None = None,
        options: CalculationOptions | None = None,
    ) -> float:
        """Single-counterparty form of baseline_rwas()."""
        return self.baseline_rwas([counterparty], book, options)[counterparty.id]

    def total_rwa(
        self,
        counterparties: Sequence[Counterparty],
        book: AdjustmentBook | None = None,
        options: CalculationOptions | None = None,
    ) -> float:
        """Sum of post-overlay RWA across counterparties."""
        return sum(r.rwa for r in self.compute_many(counterparties, options, book))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def resolve_inputs(
        self,
        counterparty: Counterparty,
        options: CalculationOptions | None = None,
    ) -> ResolvedInputs:
        """
        Resolve effective inputs for a counterparty.

        Precedence per parameter: option override, then (for PD) the
        credit rating PD when enabled, then the record value, then the
        configured default. Each default used is reported as a warning;
        non-finite overrides are ignored and reported as DQ002 errors.
        """
        options = options or CalculationOptions()
        defaults = self.config.defaults
        errors: list[CalculationError] = []

        def checked(field_name: str, override: float | None) -> float | None:
            if override is None:
                return None
            value = finite_or_none(override)
            if value is None:
                errors.append(
                    invalid_value_error(
                        field_name, str(override), "finite number", counterparty.id
                    )
                )
                logger.warning(
                    "Counterparty %s: ignoring non-finite %s override %r",
                    counterparty.id,
                    field_name,
                    override,
                )
            return value

        def pick(field_name: str, override: float | None) -> float:
            override = checked(field_name, override)
            if override is not None:
                return override
            value = finite_or_none(getattr(counterparty, field_name))
            if value is None:
                default = getattr(defaults, field_name)
                errors.append(missing_field_warning(field_name, default, counterparty.id))
                logger.debug(
                    "Counterparty %s: %s missing, using default %s",
                    counterparty.id,
                    field_name,
                    default,
                )
                return default
            return value

        pd_override = checked("pd", options.pd)
        if pd_override is None and counterparty.use_credit_rating_pd and counterparty.credit_rating:
            pd = get_pd_from_rating(counterparty.credit_rating, defaults.pd)
            if not is_known_rating(counterparty.credit_rating):
                errors.append(unknown_rating_warning(counterparty, defaults.pd))
        else:
            pd = pick("pd", pd_override)
        lgd = pick("lgd", options.lgd)
        ead = pick("ead", options.ead)
        maturity = pick("maturity", options.maturity)

        ttc_inputs = ttc_inputs_for_counterparty(counterparty, pd, self.config.ttc)
        ttc_given = checked("ttc_pd", options.ttc_pd)
        if ttc_given is None:
            ttc_given = finite_or_none(counterparty.ttc_pd)

        return ResolvedInputs(
            counterparty_id=counterparty.id,
            pd=pd,
            lgd=lgd,
            ead=ead,
            maturity=maturity,
            avc_multiplier=(
                avc_multiplier(counterparty) if self.config.apply_avc_multiplier else 1.0
            ),
            correlation_override=checked("correlation", options.correlation),
            maturity_adjustment_override=checked(
                "maturity_adjustment", options.maturity_adjustment
            ),
            ttc_pd_given=ttc_given,
            macroeconomic_index=ttc_inputs.macroeconomic_index,
            long_term_average=ttc_inputs.long_term_average,
            cyclicality=ttc_inputs.cyclicality,
            errors=tuple(errors),
        )

    def _compute(
        self,
        counterparties: Sequence[Counterparty],
        options: CalculationOptions | None,
        overlays_for: Callable[[str], OverlayPair],
    ) -> list[RWAResult]:
        if not counterparties:
            return []

        options = options or CalculationOptions()
        resolved = [self.resolve_inputs(cp, options) for cp in counterparties]

        inputs = pl.LazyFrame(
            {name: [getattr(r, name) for r in resolved] for name in _INPUT_SCHEMA},
            schema=_INPUT_SCHEMA,
        )
        calculated = apply_capital_formulas(
            inputs,
            simplified=options.simplified,
            use_maturity_adjustment=options.use_maturity_adjustment,
            maturity_method=options.maturity_method or self.config.maturity_method,
            ttc_assumptions=self.config.ttc,
        ).collect()

        results = []
        for inputs_row, row in zip(resolved, calculated.iter_rows(named=True)):
            original_rwa = row["original_rwa"]
            results.append(
                RWAResult(
                    counterparty_id=inputs_row.counterparty_id,
                    pd=row["pd"],
                    lgd=row["lgd"],
                    ead=row["ead"],
                    maturity=row["maturity"],
                    ttc_pd=row["ttc_pd"],
                    correlation_r=row["correlation_r"],
                    maturity_adjustment=row["maturity_adjustment"],
                    k=row["k"],
                    risk_weight=row["risk_weight"],
                    original_rwa=original_rwa,
                    rwa=overlays_for(inputs_row.counterparty_id).apply(original_rwa),
                    errors=inputs_row.errors,
                )
            )

        logger.debug("Computed RWA for %d counterparties", len(results))
        return results


def results_to_frame(
    counterparties: Sequence[Counterparty],
    results: Sequence[RWAResult],
) -> pl.DataFrame:
    """Combine counterparty identity columns with their RWA results."""
    rows = [
        {
            "counterparty_id": cp.id,
            "name": cp.name,
            "industry": cp.industry,
            "region": cp.region,
            "pd": result.pd,
            "ttc_pd": result.ttc_pd,
            "lgd": result.lgd,
            "ead": result.ead,
            "maturity": result.maturity,
            "correlation_r": result.correlation_r,
            "maturity_adjustment": result.maturity_adjustment,
            "k": result.k,
            "risk_weight": result.risk_weight,
            "original_rwa": result.original_rwa,
            "rwa": result.rwa,
        }
        for cp, result in zip(counterparties, results)
    ]
    return pl.DataFrame(
        {name: [row[name] for row in rows] for name in RWA_RESULT_SCHEMA},
        schema=RWA_RESULT_SCHEMA,
    )


def create_capital_engine(config: EngineConfig | None = None) -> CapitalEngine:
    """Factory function for a CapitalEngine."""
    return CapitalEngine(config)
