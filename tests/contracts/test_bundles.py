"""Tests for result bundle contracts.

Tests DistributionResult frame conversion and book attachment, and the
OptimizationResult convenience properties.
"""

from datetime import datetime, timezone

import polars as pl
import pytest

from rwa_engine.contracts.bundles import DistributionResult, OptimizationResult
from rwa_engine.contracts.errors import (
    ERROR_TARGET_NOT_REACHED,
    ERROR_ZERO_BASELINE,
    adjustment_warning,
    optimization_error,
)
from rwa_engine.contracts.records import (
    Additive,
    AdjustmentBook,
    CounterpartyAdjustment,
    Multiplicative,
    OverlayPair,
    PortfolioAdjustment,
)
from rwa_engine.data.schemas import COUNTERPARTY_ADJUSTMENT_SCHEMA
from rwa_engine.domain.enums import DistributionMethod, PortfolioAdjustmentKind


def _portfolio_adjustment(affected: int = 2) -> PortfolioAdjustment:
    return PortfolioAdjustment(
        kind=PortfolioAdjustmentKind.ABSOLUTE,
        value=30.0,
        distribution_method=DistributionMethod.EQUAL,
        reason="",
        timestamp=datetime(2026, 2, 1, tzinfo=timezone.utc),
        affected_counterparties=affected,
        total_baseline_rwa=300.0,
        total_adjusted_rwa=330.0,
        total_absolute_change=30.0,
        total_percentage_change=10.0,
    )


@pytest.fixture
def distribution() -> DistributionResult:
    return DistributionResult(
        portfolio_adjustment=_portfolio_adjustment(),
        counterparty_adjustments=(
            CounterpartyAdjustment("A", 100.0, 15.0, 115.0, 15.0, 15.0, Additive(15.0)),
            CounterpartyAdjustment("B", 200.0, 15.0, 215.0, 15.0, 7.5, Additive(15.0)),
        ),
    )


class TestDistributionResult:
    """Tests for DistributionResult."""

    def test_to_frame(self, distribution):
        frame = distribution.to_frame()

        assert frame.schema == pl.Schema(COUNTERPARTY_ADJUSTMENT_SCHEMA)
        assert frame["counterparty_id"].to_list() == ["A", "B"]
        assert frame["adjustment_kind"].to_list() == ["additive", "additive"]

    def test_empty_frame(self):
        result = DistributionResult(portfolio_adjustment=_portfolio_adjustment(0))
        assert result.to_frame().height == 0

    def test_apply_to_new_book(self, distribution):
        book = distribution.apply_to()

        assert book.overlays_for("A") == OverlayPair(portfolio=Additive(15.0))
        assert len(book) == 2

    def test_apply_to_keeps_counterparty_overlays(self, distribution):
        book = (
            AdjustmentBook()
            .with_counterparty_adjustment("A", Multiplicative(1.1))
            .with_portfolio_adjustment("A", Additive(-99.0))
        )
        updated = distribution.apply_to(book)

        assert updated.overlays_for("A") == OverlayPair(Multiplicative(1.1), Additive(15.0))
        assert book.overlays_for("A").portfolio == Additive(-99.0)

    def test_to_dict(self, distribution):
        data = distribution.to_dict()

        assert data["portfolio_adjustment"]["distribution_method"] == "equal"
        assert data["counterparty_adjustments"][1]["adjustment"] == {
            "kind": "additive",
            "amount": 15.0,
        }

    def test_warnings(self):
        result = DistributionResult(
            portfolio_adjustment=_portfolio_adjustment(0),
            errors=[adjustment_warning(ERROR_ZERO_BASELINE, "Zero baseline")],
        )

        assert not result.has_errors
        assert len(result.errors_by_code(ERROR_ZERO_BASELINE)) == 1


class TestOptimizationResult:
    """Tests for OptimizationResult."""

    def test_target_reached(self):
        result = OptimizationResult(
            success=True,
            message="",
            target_rwa=100.0,
            achieved_rwa=100.0,
            reduction_achieved=20.0,
            ead_multipliers={"A": 0.5, "B": 1.0, "C": 0.8},
        )

        assert result.target_reached
        assert result.adjusted_counterparties == ["A", "C"]

    def test_target_missed(self):
        result = OptimizationResult(
            success=True,
            message="",
            target_rwa=100.0,
            achieved_rwa=110.0,
            errors=[optimization_error(ERROR_TARGET_NOT_REACHED, "Short")],
        )

        assert not result.target_reached
        assert not result.has_errors
        assert len(result.warnings) == 1

    def test_rejected_never_reaches_target(self):
        result = OptimizationResult(
            success=False, message="", target_rwa=200.0, achieved_rwa=100.0
        )
        assert not result.target_reached
        assert result.adjusted_counterparties == []

    def test_to_dict(self):
        data = OptimizationResult(
            success=True,
            message="ok",
            target_rwa=1.0,
            achieved_rwa=1.0,
            ead_multipliers={"A": 0.75},
        ).to_dict()

        assert data["ead_multipliers"] == {"A": 0.75}
        assert data["errors"] == []
