"""
Result bundles returned by the portfolio-level engine operations.

    AdjustmentDistributor -> DistributionResult
                                    |
                            DistributionResult.apply_to(book) -> AdjustmentBook

    TargetRWAOptimizer -> OptimizationResult
                                |
                        apply_ead_multipliers(counterparties, ...) -> new records

Each bundle is immutable and carries the diagnostics raised while it was
produced in `errors`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import polars as pl

from rwa_engine.contracts.errors import CalculationError, ErrorCollector
from rwa_engine.contracts.records import (
    AdjustmentBook,
    CounterpartyAdjustment,
    PortfolioAdjustment,
)
from rwa_engine.data.schemas import COUNTERPARTY_ADJUSTMENT_SCHEMA


@dataclass(frozen=True)
class DistributionResult(ErrorCollector):
    """
    Output of a portfolio adjustment distribution.

    Attributes:
        portfolio_adjustment: Summary of the adjustment across the selection
        counterparty_adjustments: Per-counterparty split, in selection order
        errors: Warnings raised while distributing (unknown ids, empty
            selection, zero baseline)
    """

    portfolio_adjustment: PortfolioAdjustment
    counterparty_adjustments: tuple[CounterpartyAdjustment, ...] = ()
    errors: list[CalculationError] = field(default_factory=list)

    def to_frame(self) -> pl.DataFrame:
        """Per-counterparty split as a DataFrame."""
        rows = [
            {
                "counterparty_id": ca.counterparty_id,
                "baseline_rwa": ca.baseline_rwa,
                "share": ca.share,
                "adjusted_rwa": ca.adjusted_rwa,
                "absolute_change": ca.absolute_change,
                "percentage_change": ca.percentage_change,
                "adjustment_kind": ca.adjustment.kind.value,
            }
            for ca in self.counterparty_adjustments
        ]
        return pl.DataFrame(
            {name: [row[name] for row in rows] for name in COUNTERPARTY_ADJUSTMENT_SCHEMA},
            schema=COUNTERPARTY_ADJUSTMENT_SCHEMA,
        )

    def apply_to(self, book: AdjustmentBook | None = None) -> AdjustmentBook:
        """
        Attach the portfolio-level overlays to a book.

        Returns a new book; each selected counterparty's previous
        portfolio-level overlay is replaced, counterparty-level overlays
        are kept.
        """
        book = book or AdjustmentBook()
        for ca in self.counterparty_adjustments:
            book = book.with_portfolio_adjustment(ca.counterparty_id, ca.adjustment)
        return book

    def to_dict(self) -> dict[str, Any]:
        return {
            "portfolio_adjustment": self.portfolio_adjustment.to_dict(),
            "counterparty_adjustments": [
                ca.to_dict() for ca in self.counterparty_adjustments
            ],
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass(frozen=True)
class OptimizationResult(ErrorCollector):
    """
    Output of the target RWA optimizer.

    `success` means a best-effort set of multipliers was produced, not
    that the target was met. Compare `achieved_rwa` with `target_rwa`
    (or use `target_reached`) for that.

    Attributes:
        success: False only when the request was rejected outright
        message: Human-readable outcome
        target_rwa: Requested portfolio RWA
        achieved_rwa: Portfolio RWA after applying the multipliers
        reduction_achieved: current RWA minus achieved RWA
        ead_multipliers: Counterparty id to EAD multiplier in [0.5, 1.0]
        errors: Optimizer diagnostics
    """

    success: bool
    message: str
    target_rwa: float
    achieved_rwa: float
    reduction_achieved: float = 0.0
    ead_multipliers: Mapping[str, float] = field(default_factory=dict)
    errors: list[CalculationError] = field(default_factory=list)

    @property
    def target_reached(self) -> bool:
        """Check if the achieved RWA is at or below the target."""
        return self.success and self.achieved_rwa <= self.target_rwa + 1e-6

    @property
    def adjusted_counterparties(self) -> list[str]:
        """Ids whose multiplier is below 1.0."""
        return [key for key, value in self.ead_multipliers.items() if value < 1.0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "target_rwa": self.target_rwa,
            "achieved_rwa": self.achieved_rwa,
            "reduction_achieved": self.reduction_achieved,
            "ead_multipliers": dict(self.ead_multipliers),
            "errors": [e.to_dict() for e in self.errors],
        }
