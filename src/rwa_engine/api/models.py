"""
API response models for the RWA engine service.

- CalculationResponse: Portfolio results, totals and data quality issues
- AdjustmentResponse: Distribution outcome plus the updated book

All models are frozen dataclasses following existing project patterns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rwa_engine.contracts.errors import CalculationError, ErrorCollector

if TYPE_CHECKING:
    import polars as pl

    from rwa_engine.contracts.bundles import DistributionResult
    from rwa_engine.contracts.records import AdjustmentBook
    from rwa_engine.engine.aggregator import PortfolioSummary


@dataclass(frozen=True)
class CalculationResponse(ErrorCollector):
    """
    Response model for a portfolio calculation.

    Attributes:
        results: Per-counterparty results (RWA_RESULT_SCHEMA)
        summary: Portfolio totals
        errors: Data quality warnings from every counterparty
    """

    results: pl.DataFrame
    summary: PortfolioSummary
    errors: list[CalculationError] = field(default_factory=list)

    @property
    def total_rwa(self) -> float:
        return self.summary.total_rwa


@dataclass(frozen=True)
class AdjustmentResponse(ErrorCollector):
    """
    Response model for a portfolio adjustment.

    Attributes:
        distribution: Per-counterparty split and portfolio summary
        book: Caller's book with the new portfolio-level overlays attached
    """

    distribution: DistributionResult
    book: AdjustmentBook

    @property
    def errors(self) -> list[CalculationError]:
        return self.distribution.errors
