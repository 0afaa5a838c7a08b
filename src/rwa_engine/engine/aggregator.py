"""
Portfolio aggregation of RWA results.

Works on the DataFrame returned by CapitalEngine.compute_portfolio()
(RWA_RESULT_SCHEMA). `original_rwa` is the pre-overlay baseline and
`rwa` the post-overlay figure.

Outputs:
- summarise_portfolio: Portfolio totals as a PortfolioSummary
- summarise_by: Totals grouped by industry or region (GROUP_SUMMARY_SCHEMA)

Percentages with a zero denominator are reported as 0.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

import polars as pl

from rwa_engine.data.schemas import GROUP_SUMMARY_SCHEMA

logger = logging.getLogger(__name__)

GROUPABLE_COLUMNS = ("industry", "region")

# Absolute RWA difference above which a counterparty counts as adjusted
ADJUSTMENT_TOLERANCE = 0.01


def _safe_ratio(numerator: pl.Expr, denominator: pl.Expr, scale: float = 100.0) -> pl.Expr:
    """numerator / denominator × scale, 0 when the denominator is zero."""
    return (
        pl.when(denominator != 0)
        .then(numerator / denominator * scale)
        .otherwise(pl.lit(0.0))
        .fill_nan(0.0)
    )


def _is_adjusted() -> pl.Expr:
    return (pl.col("rwa") - pl.col("original_rwa")).abs() > ADJUSTMENT_TOLERANCE


@dataclass(frozen=True)
class PortfolioSummary:
    """
    Portfolio totals.

    Attributes:
        counterparties: Number of result rows
        total_ead: Sum of effective EAD
        total_baseline_rwa: Sum of RWA before overlays
        total_rwa: Sum of RWA after overlays
        total_adjustment: total_rwa - total_baseline_rwa
        adjustment_percentage: total_adjustment / total_baseline_rwa, percent
        rwa_density: total_rwa / total_ead, percent
        average_ttc_pd: Mean TTC PD
        average_lgd: Mean LGD
        adjusted_counterparties: Rows whose RWA differs from the baseline
    """

    counterparties: int
    total_ead: float
    total_baseline_rwa: float
    total_rwa: float
    total_adjustment: float
    adjustment_percentage: float
    rwa_density: float
    average_ttc_pd: float
    average_lgd: float
    adjusted_counterparties: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def summarise_portfolio(results: pl.DataFrame | pl.LazyFrame) -> PortfolioSummary:
    """
    Aggregate portfolio totals from per-counterparty results.

    Args:
        results: Frame with RWA_RESULT_SCHEMA columns

    Returns:
        PortfolioSummary; an empty frame gives all zeros
    """
    totals = (
        results.lazy()
        .select(
            pl.len().alias("counterparties"),
            pl.col("ead").sum().alias("total_ead"),
            pl.col("original_rwa").sum().alias("total_baseline_rwa"),
            pl.col("rwa").sum().alias("total_rwa"),
            pl.col("ttc_pd").mean().fill_null(0.0).alias("average_ttc_pd"),
            pl.col("lgd").mean().fill_null(0.0).alias("average_lgd"),
            _is_adjusted().sum().alias("adjusted_counterparties"),
        )
        .with_columns(
            (pl.col("total_rwa") - pl.col("total_baseline_rwa")).alias("total_adjustment"),
        )
        .with_columns(
            _safe_ratio(pl.col("total_adjustment"), pl.col("total_baseline_rwa")).alias(
                "adjustment_percentage"
            ),
            _safe_ratio(pl.col("total_rwa"), pl.col("total_ead")).alias("rwa_density"),
        )
        .collect()
        .row(0, named=True)
    )

    return PortfolioSummary(
        counterparties=int(totals["counterparties"]),
        total_ead=float(totals["total_ead"]),
        total_baseline_rwa=float(totals["total_baseline_rwa"]),
        total_rwa=float(totals["total_rwa"]),
        total_adjustment=float(totals["total_adjustment"]),
        adjustment_percentage=float(totals["adjustment_percentage"]),
        rwa_density=float(totals["rwa_density"]),
        average_ttc_pd=float(totals["average_ttc_pd"]),
        average_lgd=float(totals["average_lgd"]),
        adjusted_counterparties=int(totals["adjusted_counterparties"]),
    )


def summarise_by(
    results: pl.DataFrame | pl.LazyFrame,
    by: str = "industry",
) -> pl.DataFrame:
    """
    Aggregate results by industry or region.

    Args:
        results: Frame with RWA_RESULT_SCHEMA columns
        by: "industry" or "region"

    Returns:
        DataFrame with GROUP_SUMMARY_SCHEMA, largest RWA first

    Raises:
        ValueError: If `by` is not a groupable column
    """
    if by not in GROUPABLE_COLUMNS:
        raise ValueError(f"Cannot group by '{by}', expected one of {GROUPABLE_COLUMNS}")

    summary = (
        results.lazy()
        .group_by(pl.col(by).alias("group"))
        .agg(
            pl.col("rwa").sum(),
            pl.col("original_rwa").sum().alias("baseline_rwa"),
            pl.col("ead").sum(),
            pl.len().cast(pl.UInt32).alias("counterparties"),
            _is_adjusted().sum().cast(pl.UInt32).alias("adjusted_counterparties"),
        )
        .with_columns(
            (pl.col("rwa") - pl.col("baseline_rwa")).alias("adjustment"),
        )
        .with_columns(
            _safe_ratio(pl.col("rwa"), pl.col("ead")).alias("density"),
            _safe_ratio(pl.col("adjustment"), pl.col("baseline_rwa")).alias(
                "adjustment_percentage"
            ),
            _safe_ratio(
                pl.col("adjusted_counterparties").cast(pl.Float64),
                pl.col("counterparties").cast(pl.Float64),
            ).alias("adjustment_ratio"),
        )
        .select(list(GROUP_SUMMARY_SCHEMA))
        .sort("rwa", descending=True)
        .collect()
    )

    logger.debug("Summarised %d %s groups", summary.height, by)
    return summary.cast(GROUP_SUMMARY_SCHEMA)
