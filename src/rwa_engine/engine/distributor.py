"""
Portfolio adjustment distribution.

Spreads one analyst adjustment across a selection of counterparties and
produces the portfolio-level overlay for each of them.

Two request variants with different contracts:
- PercentageAdjustmentRequest: every selected counterparty gets
  baseline × (1 + value/100). The method only changes the reported share.
- AbsoluteAdjustmentRequest: adjusted = baseline + share, so the method
  changes the RWA actually applied.

Share of the total adjustment amount per method:
- proportional:   amount × baseline / total baseline
- equal:          amount / number selected
- risk-weighted:  same as proportional (both weight by baseline RWA)

Baselines exclude any previous portfolio-level overlay, so a new
portfolio adjustment replaces the old one instead of stacking on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import ClassVar, Iterable, Mapping, Sequence, Union

from rwa_engine.contracts.bundles import DistributionResult
from rwa_engine.contracts.errors import (
    ERROR_EMPTY_SELECTION,
    ERROR_UNKNOWN_COUNTERPARTY,
    ERROR_ZERO_BASELINE,
    CalculationError,
    adjustment_warning,
    invalid_value_error,
)
from rwa_engine.contracts.records import (
    Additive,
    Adjustment,
    AdjustmentBook,
    Counterparty,
    CounterpartyAdjustment,
    Multiplicative,
    PortfolioAdjustment,
    finite_or_none,
)
from rwa_engine.domain.enums import DistributionMethod, PortfolioAdjustmentKind
from rwa_engine.engine.capital import CapitalEngine

logger = logging.getLogger(__name__)


# =============================================================================
# REQUESTS
# =============================================================================


@dataclass(frozen=True)
class PercentageAdjustmentRequest:
    """
    Scale every selected counterparty's RWA by (1 + value/100).

    Attributes:
        value: Percentage change, e.g. -10 for a 10% reduction
        reporting_method: How the total amount is reported per counterparty
        reason: Free-text justification
    """

    value: float
    reporting_method: DistributionMethod = DistributionMethod.PROPORTIONAL
    reason: str = ""
    kind: ClassVar[PortfolioAdjustmentKind] = PortfolioAdjustmentKind.PERCENTAGE

    @property
    def method(self) -> DistributionMethod:
        return DistributionMethod(self.reporting_method)


@dataclass(frozen=True)
class AbsoluteAdjustmentRequest:
    """
    Add a currency amount to the selection, split by `distribution_method`.

    Attributes:
        value: Total RWA change in currency
        distribution_method: How the amount is split across counterparties
        reason: Free-text justification
    """

    value: float
    distribution_method: DistributionMethod = DistributionMethod.PROPORTIONAL
    reason: str = ""
    kind: ClassVar[PortfolioAdjustmentKind] = PortfolioAdjustmentKind.ABSOLUTE

    @property
    def method(self) -> DistributionMethod:
        return DistributionMethod(self.distribution_method)


AdjustmentRequest = Union[PercentageAdjustmentRequest, AbsoluteAdjustmentRequest]


def adjustment_request(
    kind: PortfolioAdjustmentKind | str,
    value: float,
    distribution_method: DistributionMethod | str = DistributionMethod.PROPORTIONAL,
    reason: str = "",
) -> AdjustmentRequest:
    """
    Build the request variant matching `kind`.

    Raises:
        ValueError: If kind or distribution_method is not a known value
    """
    kind = PortfolioAdjustmentKind(kind)
    method = DistributionMethod(distribution_method)
    if kind == PortfolioAdjustmentKind.PERCENTAGE:
        return PercentageAdjustmentRequest(value, reporting_method=method, reason=reason)
    return AbsoluteAdjustmentRequest(value, distribution_method=method, reason=reason)


# =============================================================================
# CORE ALGORITHM
# =============================================================================


def _percentage(change: float, base: float) -> float:
    """change / base in percent, 0 when the base is zero or the result not finite."""
    if base == 0:
        return 0.0
    result = finite_or_none(change / base * 100.0)
    return result if result is not None else 0.0


def _shares(
    baselines: Mapping[str, float],
    total_amount: float,
    method: DistributionMethod,
) -> dict[str, float]:
    total_baseline = sum(baselines.values())
    if not baselines or total_baseline == 0:
        return {key: 0.0 for key in baselines}
    if method == DistributionMethod.EQUAL:
        share = total_amount / len(baselines)
        return {key: share for key in baselines}
    # Proportional and risk-weighted both weight by baseline RWA
    return {
        key: total_amount * baseline / total_baseline
        for key, baseline in baselines.items()
    }


def distribute_baselines(
    baselines: Mapping[str, float],
    request: AdjustmentRequest,
    timestamp: datetime | None = None,
) -> DistributionResult:
    """
    Distribute an adjustment over pre-computed baseline RWAs.

    Args:
        baselines: Counterparty id to baseline RWA, in selection order
        request: Percentage or absolute adjustment request
        timestamp: Time recorded on the adjustment (now, UTC, if omitted)

    Returns:
        DistributionResult with the portfolio summary, per-counterparty
        split and any warnings. Zero total baseline or an empty selection
        give zero shares and zero percentages.
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    method = request.method
    errors: list[CalculationError] = []

    value = finite_or_none(request.value)
    if value is None:
        errors.append(invalid_value_error("value", str(request.value), "finite number"))
        value = 0.0

    total_baseline = sum(baselines.values())
    if not baselines:
        errors.append(
            adjustment_warning(ERROR_EMPTY_SELECTION, "No counterparties selected for adjustment")
        )
    elif total_baseline == 0:
        errors.append(
            adjustment_warning(
                ERROR_ZERO_BASELINE,
                "Total baseline RWA of the selection is zero, shares set to zero",
            )
        )

    if request.kind == PortfolioAdjustmentKind.PERCENTAGE:
        total_amount = total_baseline * value / 100.0
    else:
        total_amount = value

    shares = _shares(baselines, total_amount, method)

    adjustments = []
    for counterparty_id, baseline in baselines.items():
        share = shares[counterparty_id]
        overlay: Adjustment
        if request.kind == PortfolioAdjustmentKind.PERCENTAGE:
            overlay = Multiplicative(1.0 + value / 100.0)
        else:
            overlay = Additive(share)
        adjusted = overlay.apply(baseline)
        change = adjusted - baseline
        adjustments.append(
            CounterpartyAdjustment(
                counterparty_id=counterparty_id,
                baseline_rwa=baseline,
                share=share,
                adjusted_rwa=adjusted,
                absolute_change=change,
                percentage_change=_percentage(change, baseline),
                adjustment=overlay,
            )
        )

    total_adjusted = sum(a.adjusted_rwa for a in adjustments)
    total_change = total_adjusted - total_baseline

    logger.debug(
        "Distributed %s adjustment %s (%s) across %d counterparties: %.2f -> %.2f",
        request.kind.value,
        value,
        method.value,
        len(adjustments),
        total_baseline,
        total_adjusted,
    )

    return DistributionResult(
        portfolio_adjustment=PortfolioAdjustment(
            kind=request.kind,
            value=value,
            distribution_method=method,
            reason=request.reason,
            timestamp=timestamp,
            affected_counterparties=len(adjustments),
            total_baseline_rwa=total_baseline,
            total_adjusted_rwa=total_adjusted,
            total_absolute_change=total_change,
            total_percentage_change=_percentage(total_change, total_baseline),
        ),
        counterparty_adjustments=tuple(adjustments),
        errors=errors,
    )


# =============================================================================
# DISTRIBUTOR
# =============================================================================


class AdjustmentDistributor:
    """
    Apply portfolio adjustments to a selection of counterparties.

    Baselines come from the capital engine with counterparty-level
    overlays only. The caller's book is never modified; attach the result
    with DistributionResult.apply_to(book).

    Usage:
        distributor = AdjustmentDistributor(engine)
        result = distributor.distribute(counterparties, ["cp-1", "cp-2"], "percentage", -10)
        book = result.apply_to(book)
    """

    def __init__(self, engine: CapitalEngine | None = None) -> None:
        self.engine = engine or CapitalEngine()

    def distribute(
        self,
        counterparties: Sequence[Counterparty],
        selected_ids: Iterable[str],
        kind: PortfolioAdjustmentKind | str,
        value: float,
        distribution_method: DistributionMethod | str = DistributionMethod.PROPORTIONAL,
        book: AdjustmentBook | None = None,
        reason: str = "",
        timestamp: datetime | None = None,
    ) -> DistributionResult:
        """
        Distribute an adjustment of `kind` and `value` over the selection.

        Args:
            counterparties: Full portfolio
            selected_ids: Ids to adjust; duplicates are ignored
            kind: "percentage" or "absolute"
            value: Percent change or currency amount
            distribution_method: "proportional", "equal" or "risk-weighted"
            book: Existing overlays
            reason: Free-text justification
            timestamp: Time recorded on the adjustment

        Returns:
            DistributionResult; unknown ids are reported as ADJ001 warnings
        """
        request = adjustment_request(kind, value, distribution_method, reason)
        return self.distribute_request(counterparties, selected_ids, request, book, timestamp)

    def distribute_request(
        self,
        counterparties: Sequence[Counterparty],
        selected_ids: Iterable[str],
        request: AdjustmentRequest,
        book: AdjustmentBook | None = None,
        timestamp: datetime | None = None,
    ) -> DistributionResult:
        """Distribute a pre-built request. See distribute()."""
        by_id = {cp.id: cp for cp in counterparties}
        errors: list[CalculationError] = []
        selected: list[Counterparty] = []
        seen: set[str] = set()

        for counterparty_id in selected_ids:
            if counterparty_id in seen:
                continue
            seen.add(counterparty_id)
            counterparty = by_id.get(counterparty_id)
            if counterparty is None:
                logger.warning("Selected counterparty %s not in portfolio", counterparty_id)
                errors.append(
                    adjustment_warning(
                        ERROR_UNKNOWN_COUNTERPARTY,
                        f"Counterparty '{counterparty_id}' not found in portfolio",
                        counterparty_reference=counterparty_id,
                    )
                )
                continue
            selected.append(counterparty)

        baselines = self.engine.baseline_rwas(selected, book)
        result = distribute_baselines(baselines, request, timestamp)
        return replace(result, errors=errors + result.errors)


def create_distributor(engine: CapitalEngine | None = None) -> AdjustmentDistributor:
    """Factory function for an AdjustmentDistributor."""
    return AdjustmentDistributor(engine)
