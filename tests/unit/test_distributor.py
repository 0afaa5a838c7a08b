"""
Unit tests for portfolio adjustment distribution.

Tests cover:
- Percentage adjustments apply the same change regardless of method
- Absolute adjustments split by proportional, equal and risk-weighted
- Guards for empty selection and zero baseline
- Unknown ids, duplicate ids and replacing a previous portfolio overlay
- DistributionResult frame and book attachment
"""

from datetime import datetime, timezone

import polars as pl
import pytest

from rwa_engine.contracts.errors import (
    ERROR_EMPTY_SELECTION,
    ERROR_INVALID_VALUE,
    ERROR_UNKNOWN_COUNTERPARTY,
    ERROR_ZERO_BASELINE,
)
from rwa_engine.contracts.records import (
    Additive,
    AdjustmentBook,
    Counterparty,
    Multiplicative,
)
from rwa_engine.data.schemas import COUNTERPARTY_ADJUSTMENT_SCHEMA
from rwa_engine.domain.enums import DistributionMethod, PortfolioAdjustmentKind
from rwa_engine.engine.capital import CapitalEngine
from rwa_engine.engine.distributor import (
    AbsoluteAdjustmentRequest,
    AdjustmentDistributor,
    PercentageAdjustmentRequest,
    adjustment_request,
    distribute_baselines,
)

BASELINES = {"A": 100.0, "B": 200.0, "C": 300.0}
ALL_METHODS = list(DistributionMethod)
TIMESTAMP = datetime(2026, 1, 31, 12, 0, tzinfo=timezone.utc)


class TestPercentageRequest:
    """Percentage requests scale every baseline by the same factor."""

    @pytest.mark.parametrize("method", ALL_METHODS)
    def test_same_change_for_every_method(self, method):
        result = distribute_baselines(BASELINES, PercentageAdjustmentRequest(-10, method))

        adjusted = {a.counterparty_id: a.adjusted_rwa for a in result.counterparty_adjustments}
        assert adjusted == pytest.approx({"A": 90.0, "B": 180.0, "C": 270.0})
        assert all(a.percentage_change == pytest.approx(-10.0) for a in result.counterparty_adjustments)

    @pytest.mark.parametrize("method", ALL_METHODS)
    def test_overlay_is_multiplicative(self, method):
        result = distribute_baselines(BASELINES, PercentageAdjustmentRequest(-10, method))
        assert all(
            a.adjustment == Multiplicative(0.9) for a in result.counterparty_adjustments
        )

    def test_method_changes_reported_share_only(self):
        equal = distribute_baselines(
            BASELINES, PercentageAdjustmentRequest(-10, DistributionMethod.EQUAL)
        )
        proportional = distribute_baselines(BASELINES, PercentageAdjustmentRequest(-10))

        assert [a.share for a in equal.counterparty_adjustments] == pytest.approx([-20.0] * 3)
        assert [a.share for a in proportional.counterparty_adjustments] == pytest.approx(
            [-10.0, -20.0, -30.0]
        )

    def test_portfolio_totals(self):
        result = distribute_baselines(BASELINES, PercentageAdjustmentRequest(-10), TIMESTAMP)
        summary = result.portfolio_adjustment

        assert summary.kind == PortfolioAdjustmentKind.PERCENTAGE
        assert summary.affected_counterparties == 3
        assert summary.total_baseline_rwa == pytest.approx(600.0)
        assert summary.total_adjusted_rwa == pytest.approx(540.0)
        assert summary.total_absolute_change == pytest.approx(-60.0)
        assert summary.total_percentage_change == pytest.approx(-10.0)
        assert summary.timestamp == TIMESTAMP


class TestAbsoluteRequest:
    """Absolute requests add each counterparty's share to its baseline."""

    def test_equal(self):
        result = distribute_baselines(
            BASELINES, AbsoluteAdjustmentRequest(-60, DistributionMethod.EQUAL)
        )

        adjusted = [a.adjusted_rwa for a in result.counterparty_adjustments]
        assert adjusted == pytest.approx([80.0, 180.0, 280.0])
        assert all(a.adjustment == Additive(-20.0) for a in result.counterparty_adjustments)

    @pytest.mark.parametrize(
        "method", [DistributionMethod.PROPORTIONAL, DistributionMethod.RISK_WEIGHTED]
    )
    def test_proportional_and_risk_weighted(self, method):
        result = distribute_baselines(BASELINES, AbsoluteAdjustmentRequest(-60, method))

        adjusted = [a.adjusted_rwa for a in result.counterparty_adjustments]
        assert adjusted == pytest.approx([90.0, 180.0, 270.0])

    def test_percentage_change_per_counterparty(self):
        result = distribute_baselines(
            BASELINES, AbsoluteAdjustmentRequest(-60, DistributionMethod.EQUAL)
        )
        changes = [a.percentage_change for a in result.counterparty_adjustments]
        assert changes == pytest.approx([-20.0, -10.0, -100 * 20 / 300])


class TestGuards:
    """Degenerate selections never raise."""

    def test_empty_selection(self):
        result = distribute_baselines({}, AbsoluteAdjustmentRequest(100))

        assert result.counterparty_adjustments == ()
        assert result.portfolio_adjustment.total_percentage_change == 0.0
        assert [e.code for e in result.errors] == [ERROR_EMPTY_SELECTION]
        assert not result.has_errors

    def test_zero_baseline(self):
        result = distribute_baselines(
            {"A": 0.0, "B": 0.0}, AbsoluteAdjustmentRequest(100, DistributionMethod.EQUAL)
        )

        assert [a.share for a in result.counterparty_adjustments] == [0.0, 0.0]
        assert [a.percentage_change for a in result.counterparty_adjustments] == [0.0, 0.0]
        assert result.portfolio_adjustment.total_percentage_change == 0.0
        assert [e.code for e in result.errors] == [ERROR_ZERO_BASELINE]

    def test_non_finite_value(self):
        result = distribute_baselines(BASELINES, PercentageAdjustmentRequest(float("nan")))

        assert result.has_errors
        assert result.errors_by_code(ERROR_INVALID_VALUE)
        assert result.portfolio_adjustment.total_absolute_change == 0.0


class TestAdjustmentRequest:
    def test_builds_matching_variant(self):
        assert isinstance(adjustment_request("percentage", 5), PercentageAdjustmentRequest)
        assert isinstance(
            adjustment_request("absolute", 5, "risk-weighted"), AbsoluteAdjustmentRequest
        )

    def test_rejects_unknown_kind(self):
        with pytest.raises(ValueError):
            adjustment_request("ratio", 5)

    def test_rejects_unknown_method(self):
        with pytest.raises(ValueError):
            adjustment_request("absolute", 5, "random")


# =============================================================================
# AdjustmentDistributor
# =============================================================================


@pytest.fixture
def portfolio() -> list[Counterparty]:
    return [
        Counterparty(id="A", pd=0.02, lgd=0.4, ead=1_000_000.0, maturity=2.5),
        Counterparty(id="B", pd=0.05, lgd=0.45, ead=2_000_000.0, maturity=3.0),
        Counterparty(id="C", pd=0.01, lgd=0.6, ead=500_000.0, maturity=1.0),
    ]


@pytest.fixture
def distributor() -> AdjustmentDistributor:
    return AdjustmentDistributor(CapitalEngine())


class TestAdjustmentDistributor:
    """End-to-end distribution from counterparty records."""

    def test_baselines_from_engine(self, distributor, portfolio):
        result = distributor.distribute(portfolio, ["A", "C"], "absolute", 1000, "equal")
        engine = distributor.engine

        baselines = [a.baseline_rwa for a in result.counterparty_adjustments]
        assert baselines == pytest.approx(
            [engine.compute_rwa(portfolio[0]).rwa, engine.compute_rwa(portfolio[2]).rwa]
        )

    def test_unknown_and_duplicate_ids(self, distributor, portfolio):
        result = distributor.distribute(portfolio, ["A", "X", "A"], "percentage", 5)

        assert [a.counterparty_id for a in result.counterparty_adjustments] == ["A"]
        unknown = result.errors_by_code(ERROR_UNKNOWN_COUNTERPARTY)
        assert [e.counterparty_reference for e in unknown] == ["X"]

    def test_new_adjustment_replaces_previous(self, distributor, portfolio):
        first = distributor.distribute(portfolio, ["A", "B"], "percentage", -10)
        book = first.apply_to(AdjustmentBook())

        second = distributor.distribute(portfolio, ["A", "B"], "percentage", -20, book=book)
        book = second.apply_to(book)

        engine = distributor.engine
        for cp in portfolio[:2]:
            result = engine.compute_rwa(cp, overlays=book.overlays_for(cp.id))
            assert result.rwa == pytest.approx(result.original_rwa * 0.8)

    def test_counterparty_overlay_in_baseline(self, distributor, portfolio):
        book = AdjustmentBook().with_counterparty_adjustment("A", Multiplicative(2.0))
        result = distributor.distribute(portfolio, ["A"], "absolute", 0, book=book)

        original = distributor.engine.compute_rwa(portfolio[0]).original_rwa
        assert result.counterparty_adjustments[0].baseline_rwa == pytest.approx(2 * original)

    def test_book_not_modified(self, distributor, portfolio):
        book = AdjustmentBook().with_counterparty_adjustment("A", Multiplicative(2.0))
        result = distributor.distribute(portfolio, ["A", "B"], "percentage", 10, book=book)
        updated = result.apply_to(book)

        assert book.overlays_for("B").is_empty
        assert updated.overlays_for("A").counterparty == Multiplicative(2.0)
        assert updated.overlays_for("B").portfolio == Multiplicative(1.1)

    def test_to_frame(self, distributor, portfolio):
        result = distributor.distribute(portfolio, ["A", "B", "C"], "absolute", -3000, "equal")
        frame = result.to_frame()

        assert frame.schema == pl.Schema(COUNTERPARTY_ADJUSTMENT_SCHEMA)
        assert frame["share"].to_list() == pytest.approx([-1000.0] * 3)
        assert frame["adjustment_kind"].unique().to_list() == ["additive"]

    def test_reason_and_timestamp(self, distributor, portfolio):
        result = distributor.distribute(
            portfolio, ["A"], "percentage", 5, reason="Model overlay", timestamp=TIMESTAMP
        )
        summary = result.portfolio_adjustment.to_dict()

        assert summary["reason"] == "Model overlay"
        assert summary["timestamp"] == "2026-01-31T12:00:00+00:00"
