"""Unit tests for the API models module.

Tests cover:
- CalculationResponse totals and error filters
- AdjustmentResponse error passthrough
"""

from __future__ import annotations

from datetime import datetime, timezone

import polars as pl
import pytest

from rwa_engine.api.models import AdjustmentResponse, CalculationResponse
from rwa_engine.contracts.bundles import DistributionResult
from rwa_engine.contracts.errors import (
    ERROR_EMPTY_SELECTION,
    adjustment_warning,
    invalid_value_error,
)
from rwa_engine.contracts.records import AdjustmentBook, PortfolioAdjustment
from rwa_engine.data.schemas import RWA_RESULT_SCHEMA
from rwa_engine.domain.enums import DistributionMethod, PortfolioAdjustmentKind
from rwa_engine.engine.aggregator import summarise_portfolio


# =============================================================================
# CalculationResponse Tests
# =============================================================================


class TestCalculationResponse:
    """Tests for CalculationResponse dataclass."""

    def test_empty_results(self):
        results = pl.DataFrame(schema=RWA_RESULT_SCHEMA)
        response = CalculationResponse(results=results, summary=summarise_portfolio(results))

        assert response.total_rwa == 0.0
        assert not response.has_errors

    def test_errors(self):
        results = pl.DataFrame(schema=RWA_RESULT_SCHEMA)
        response = CalculationResponse(
            results=results,
            summary=summarise_portfolio(results),
            errors=[invalid_value_error("pd", "-1", "0-1", "A")],
        )

        assert response.has_errors
        assert response.warnings == []

    def test_immutable(self):
        results = pl.DataFrame(schema=RWA_RESULT_SCHEMA)
        response = CalculationResponse(results=results, summary=summarise_portfolio(results))

        with pytest.raises(AttributeError):
            response.errors = []


# =============================================================================
# AdjustmentResponse Tests
# =============================================================================


class TestAdjustmentResponse:
    """Tests for AdjustmentResponse dataclass."""

    def test_errors_come_from_distribution(self):
        warning = adjustment_warning(ERROR_EMPTY_SELECTION, "No counterparties selected")
        distribution = DistributionResult(
            portfolio_adjustment=PortfolioAdjustment(
                kind=PortfolioAdjustmentKind.PERCENTAGE,
                value=5.0,
                distribution_method=DistributionMethod.PROPORTIONAL,
                reason="",
                timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
                affected_counterparties=0,
                total_baseline_rwa=0.0,
                total_adjusted_rwa=0.0,
                total_absolute_change=0.0,
                total_percentage_change=0.0,
            ),
            errors=[warning],
        )
        response = AdjustmentResponse(distribution=distribution, book=AdjustmentBook())

        assert response.errors == [warning]
        assert response.warnings == [warning]
        assert not response.has_errors
