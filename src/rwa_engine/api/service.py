"""
RWA Engine API Service.

RWAEngineService provides one facade over the engine components:
- calculate: Portfolio RWA with the caller's overlays
- set_counterparty_adjustment / clear_counterparty_adjustment: Analyst overlays
- apply_portfolio_adjustment: Distribute an adjustment over a selection
- optimize_target_rwa: EAD multipliers towards a target RWA
- summary / sensitivity: Grouped totals and scenario grids

The service holds configuration only. Adjustment state lives in the
AdjustmentBook the caller passes in; operations that change overlays
return a new book.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

import polars as pl

from rwa_engine.api.models import AdjustmentResponse, CalculationResponse
from rwa_engine.contracts.bundles import OptimizationResult
from rwa_engine.contracts.config import CalculationOptions, EngineConfig
from rwa_engine.contracts.records import (
    AdjustmentBook,
    Counterparty,
    adjustment_from_input,
)
from rwa_engine.domain.enums import (
    DistributionMethod,
    PortfolioAdjustmentKind,
    PriorityDirection,
)
from rwa_engine.engine.aggregator import summarise_by, summarise_portfolio
from rwa_engine.engine.capital import CapitalEngine, results_to_frame
from rwa_engine.engine.distributor import AdjustmentDistributor
from rwa_engine.engine.optimizer import PriorityKey, TargetRWAOptimizer
from rwa_engine.engine.sensitivity import SensitivityAnalyzer

logger = logging.getLogger(__name__)


# =============================================================================
# RWA Engine Service
# =============================================================================


class RWAEngineService:
    """
    High-level service for RWA calculations and adjustments.

    Usage:
        from rwa_engine.api import RWAEngineService

        service = RWAEngineService()
        book = service.set_counterparty_adjustment(AdjustmentBook(), "cp-1", "percentage", 10)
        response = service.calculate(counterparties, book)
        print(f"Total RWA: {response.total_rwa:,.0f}")
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig.default()
        self.engine = CapitalEngine(self.config)
        self._distributor = AdjustmentDistributor(self.engine)
        self._optimizer = TargetRWAOptimizer(self.engine, self.config.optimizer)
        self._analyzer = SensitivityAnalyzer(self.engine)

    def calculate(
        self,
        counterparties: Sequence[Counterparty],
        book: AdjustmentBook | None = None,
        options: CalculationOptions | None = None,
    ) -> CalculationResponse:
        """
        Calculate RWA for a portfolio.

        Args:
            counterparties: Portfolio records
            book: Caller's overlays
            options: Per-call overrides applied to every counterparty

        Returns:
            CalculationResponse with results, totals and data quality warnings
        """
        results = self.engine.compute_many(counterparties, options, book)
        present = [
            (cp, result) for cp, result in zip(counterparties, results) if cp is not None
        ]
        frame = results_to_frame([cp for cp, _ in present], [r for _, r in present])
        errors = [error for result in results for error in result.errors]

        logger.debug(
            "Calculated %d counterparties with %d data quality issues",
            len(results),
            len(errors),
        )
        return CalculationResponse(
            results=frame,
            summary=summarise_portfolio(frame),
            errors=errors,
        )

    def set_counterparty_adjustment(
        self,
        book: AdjustmentBook,
        counterparty_id: str,
        kind: PortfolioAdjustmentKind | str,
        value: float,
    ) -> AdjustmentBook:
        """
        Attach an analyst overlay to one counterparty.

        A percentage value becomes a multiplicative overlay, an absolute
        value an additive one. Replaces any previous counterparty-level
        overlay for the id.
        """
        return book.with_counterparty_adjustment(
            counterparty_id, adjustment_from_input(kind, value)
        )

    def clear_counterparty_adjustment(
        self, book: AdjustmentBook, counterparty_id: str
    ) -> AdjustmentBook:
        return book.without_counterparty_adjustment(counterparty_id)

    def apply_portfolio_adjustment(
        self,
        counterparties: Sequence[Counterparty],
        selected_ids: Iterable[str],
        kind: PortfolioAdjustmentKind | str,
        value: float,
        distribution_method: DistributionMethod | str = DistributionMethod.PROPORTIONAL,
        book: AdjustmentBook | None = None,
        reason: str = "",
    ) -> AdjustmentResponse:
        """
        Distribute a portfolio adjustment and attach it to the book.

        Returns:
            AdjustmentResponse with the distribution and the new book
        """
        book = book or AdjustmentBook()
        distribution = self._distributor.distribute(
            counterparties,
            selected_ids,
            kind,
            value,
            distribution_method,
            book=book,
            reason=reason,
        )
        return AdjustmentResponse(distribution=distribution, book=distribution.apply_to(book))

    def optimize_target_rwa(
        self,
        counterparties: Sequence[Counterparty],
        target_rwa: float,
        priority_field: PriorityKey | None = None,
        priority_direction: PriorityDirection | str | None = None,
        book: AdjustmentBook | None = None,
        current_total_rwa: float | None = None,
    ) -> OptimizationResult:
        """Compute EAD multipliers reducing portfolio RWA towards a target."""
        return self._optimizer.optimize(
            counterparties,
            current_total_rwa,
            target_rwa,
            priority_field,
            priority_direction,
            book=book,
        )

    def summary(
        self,
        counterparties: Sequence[Counterparty],
        book: AdjustmentBook | None = None,
        by: str = "industry",
    ) -> pl.DataFrame:
        """RWA totals grouped by industry or region."""
        return summarise_by(self.engine.compute_portfolio(counterparties, book=book), by)

    def sensitivity(
        self,
        counterparty: Counterparty,
        book: AdjustmentBook | None = None,
    ) -> pl.DataFrame:
        """All sensitivity scenario grids for one counterparty."""
        return self._analyzer.run_all(counterparty, book)


def create_service(config: EngineConfig | None = None) -> RWAEngineService:
    """
    Factory function to create an RWAEngineService instance.

    Returns:
        Configured RWAEngineService
    """
    return RWAEngineService(config)
