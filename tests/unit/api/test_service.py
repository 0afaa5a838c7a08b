"""Unit tests for the API service module.

Tests cover:
- RWAEngineService.calculate with and without overlays
- Counterparty-level overlays set and cleared through the service
- Portfolio adjustments returning a new book
- Target RWA optimization, grouped summaries and sensitivity grids
- create_service factory function
"""

from __future__ import annotations

import polars as pl
import pytest

from rwa_engine.api.models import AdjustmentResponse, CalculationResponse
from rwa_engine.api.service import RWAEngineService, create_service
from rwa_engine.contracts.config import CalculationOptions, EngineConfig
from rwa_engine.contracts.errors import ERROR_MISSING_FIELD, ERROR_TARGET_NOT_BELOW_CURRENT
from rwa_engine.contracts.records import (
    Additive,
    AdjustmentBook,
    Counterparty,
    Multiplicative,
)
from rwa_engine.data.schemas import GROUP_SUMMARY_SCHEMA, RWA_RESULT_SCHEMA


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def service() -> RWAEngineService:
    return RWAEngineService()


@pytest.fixture
def portfolio() -> list[Counterparty]:
    return [
        Counterparty(
            id="A",
            name="Alpha Bank",
            industry="Banking",
            region="Europe",
            pd=0.02,
            lgd=0.45,
            ead=4_000_000.0,
            maturity=3.0,
            is_financial=True,
            is_large_financial=True,
        ),
        Counterparty(
            id="B",
            name="Beta Retail",
            industry="Retail",
            region="Europe",
            pd=0.01,
            lgd=0.40,
            ead=2_000_000.0,
            maturity=2.0,
        ),
        Counterparty(
            id="C",
            name="Gamma Health",
            industry="Healthcare",
            region="Asia",
            pd=0.005,
            lgd=0.35,
            ead=1_000_000.0,
            maturity=1.5,
        ),
    ]


def _rwa_by_id(response: CalculationResponse) -> dict[str, float]:
    return dict(
        zip(response.results["counterparty_id"].to_list(), response.results["rwa"].to_list())
    )


# =============================================================================
# Calculation Tests
# =============================================================================


class TestCalculate:
    """Tests for RWAEngineService.calculate."""

    def test_returns_response(self, service, portfolio):
        response = service.calculate(portfolio)

        assert isinstance(response, CalculationResponse)
        assert response.results.schema == pl.Schema(RWA_RESULT_SCHEMA)
        assert response.results["counterparty_id"].to_list() == ["A", "B", "C"]
        assert response.summary.counterparties == 3
        assert not response.errors

    def test_total_matches_engine(self, service, portfolio):
        response = service.calculate(portfolio)
        assert response.total_rwa == pytest.approx(service.engine.total_rwa(portfolio))

    def test_options_applied(self, service, portfolio):
        plain = service.calculate(portfolio)
        simplified = service.calculate(portfolio, options=CalculationOptions(simplified=True))

        assert simplified.total_rwa < plain.total_rwa

    def test_missing_fields_reported(self, service):
        response = service.calculate([Counterparty(id="X")])

        assert len(response.errors_by_code(ERROR_MISSING_FIELD)) == 4
        assert not response.has_errors

    def test_none_entries_skipped_in_frame(self, service, portfolio):
        response = service.calculate([portfolio[0], None])

        assert response.results.height == 1
        assert len(response.warnings) == 1


# =============================================================================
# Overlay Tests
# =============================================================================


class TestCounterpartyAdjustments:
    """Tests for counterparty-level overlays."""

    def test_percentage_overlay(self, service, portfolio):
        book = service.set_counterparty_adjustment(AdjustmentBook(), "A", "percentage", 10)
        response = service.calculate(portfolio, book)
        row = response.results.filter(pl.col("counterparty_id") == "A").row(0, named=True)

        assert book.overlays_for("A").counterparty == Multiplicative(1.1)
        assert row["rwa"] == pytest.approx(row["original_rwa"] * 1.1)
        assert response.summary.adjusted_counterparties == 1

    def test_absolute_overlay(self, service):
        book = service.set_counterparty_adjustment(AdjustmentBook(), "A", "absolute", -500)
        assert book.overlays_for("A").counterparty == Additive(-500)

    def test_clear(self, service):
        book = service.set_counterparty_adjustment(AdjustmentBook(), "A", "percentage", 10)
        assert len(service.clear_counterparty_adjustment(book, "A")) == 0

    def test_book_not_mutated(self, service):
        book = AdjustmentBook()
        service.set_counterparty_adjustment(book, "A", "percentage", 10)
        assert len(book) == 0


class TestPortfolioAdjustment:
    """Tests for apply_portfolio_adjustment."""

    def test_equal_absolute_split(self, service, portfolio):
        before = _rwa_by_id(service.calculate(portfolio))
        response = service.apply_portfolio_adjustment(
            portfolio, ["A", "B"], "absolute", 100_000, "equal", reason="Model overlay"
        )
        after = _rwa_by_id(service.calculate(portfolio, response.book))

        assert isinstance(response, AdjustmentResponse)
        assert after["A"] == pytest.approx(before["A"] + 50_000)
        assert after["B"] == pytest.approx(before["B"] + 50_000)
        assert after["C"] == pytest.approx(before["C"])
        assert response.distribution.portfolio_adjustment.reason == "Model overlay"

    def test_percentage_replaces_previous(self, service, portfolio):
        first = service.apply_portfolio_adjustment(portfolio, ["A"], "percentage", 20)
        second = service.apply_portfolio_adjustment(
            portfolio, ["A"], "percentage", -10, book=first.book
        )

        assert second.book.overlays_for("A").portfolio == Multiplicative(0.9)

    def test_unknown_ids_reported(self, service, portfolio):
        response = service.apply_portfolio_adjustment(portfolio, ["A", "Z"], "percentage", 5)

        assert len(response.warnings) == 1
        assert "Z" not in response.book


# =============================================================================
# Optimizer, Summary and Sensitivity Tests
# =============================================================================


class TestOptimizeTargetRWA:
    """Tests for optimize_target_rwa."""

    def test_reaches_feasible_target(self, service, portfolio):
        current = service.calculate(portfolio).total_rwa
        result = service.optimize_target_rwa(portfolio, current * 0.8)

        assert result.success
        assert result.target_reached
        assert result.achieved_rwa == pytest.approx(current * 0.8)
        assert all(0.5 <= m <= 1.0 for m in result.ead_multipliers.values())

    def test_target_above_current(self, service, portfolio):
        current = service.calculate(portfolio).total_rwa
        result = service.optimize_target_rwa(portfolio, current * 2)

        assert not result.success
        assert result.errors_by_code(ERROR_TARGET_NOT_BELOW_CURRENT)

    def test_explicit_current_total(self, service, portfolio):
        result = service.optimize_target_rwa(portfolio, 900.0, current_total_rwa=1_000.0)

        assert result.success
        assert result.reduction_achieved == pytest.approx(100.0)


class TestSummaryAndSensitivity:
    def test_summary_by_region(self, service, portfolio):
        summary = service.summary(portfolio, by="region")

        assert summary.schema == pl.Schema(GROUP_SUMMARY_SCHEMA)
        assert set(summary["group"].to_list()) == {"Europe", "Asia"}

    def test_summary_rejects_unknown_column(self, service, portfolio):
        with pytest.raises(ValueError):
            service.summary(portfolio, by="name")

    def test_sensitivity(self, service, portfolio):
        frame = service.sensitivity(portfolio[1])
        assert frame["scenario"].n_unique() == 7


class TestCreateService:
    def test_default(self):
        assert create_service().config == EngineConfig.default()

    def test_custom_config(self):
        service = create_service(EngineConfig.legacy())
        assert service.engine.config.is_legacy_maturity
