"""
External credit rating to PD mapping.

Approximate one-year PD midpoints for S&P style rating symbols, derived
from historical default rates. Used when a counterparty's PD is taken
from its credit review rating instead of the internal model.

Provides the table as a dict for scalar lookups and as a Polars
DataFrame for joins.
"""

import polars as pl

from rwa_engine.data.schemas import CREDIT_RATING_SCHEMA


# =============================================================================
# RATING PD TABLE
# =============================================================================

CREDIT_RATINGS: tuple[tuple[str, float, str], ...] = (
    ("AAA", 0.0001, "Extremely strong capacity to meet financial commitments"),
    ("AA+", 0.0002, "Very strong capacity to meet financial commitments"),
    ("AA", 0.0003, "Very strong capacity to meet financial commitments"),
    ("AA-", 0.0004, "Very strong capacity to meet financial commitments"),
    ("A+", 0.0005, "Strong capacity to meet financial commitments"),
    ("A", 0.0007, "Strong capacity to meet financial commitments"),
    ("A-", 0.0009, "Strong capacity to meet financial commitments"),
    ("BBB+", 0.0012, "Adequate capacity to meet financial commitments"),
    ("BBB", 0.0022, "Adequate capacity to meet financial commitments"),
    ("BBB-", 0.0035, "Considered lowest investment grade by market participants"),
    ("BB+", 0.0065, "Less vulnerable in the near-term but faces ongoing uncertainties"),
    ("BB", 0.012, "Less vulnerable in the near-term but faces ongoing uncertainties"),
    ("BB-", 0.019, "Less vulnerable in the near-term but faces ongoing uncertainties"),
    ("B+", 0.029, "More vulnerable to adverse business, financial and economic conditions"),
    ("B", 0.045, "More vulnerable to adverse business, financial and economic conditions"),
    ("B-", 0.065, "More vulnerable to adverse business, financial and economic conditions"),
    ("CCC+", 0.095, "Currently vulnerable and dependent on favorable conditions to meet commitments"),
    ("CCC", 0.14, "Currently vulnerable and dependent on favorable conditions to meet commitments"),
    ("CCC-", 0.19, "Currently highly vulnerable"),
    ("CC", 0.25, "Currently highly vulnerable"),
    ("C", 0.35, "A bankruptcy petition has been filed but payments are continued"),
    ("D", 1.0, "Payment default on financial commitments"),
)

CREDIT_RATING_PD: dict[str, float] = {rating: pd for rating, pd, _ in CREDIT_RATINGS}

# PD used when a rating symbol is not in the table
DEFAULT_RATING_PD = 0.01


def create_credit_rating_df() -> pl.DataFrame:
    """Create the rating lookup DataFrame in table order (best to worst)."""
    return pl.DataFrame(
        {
            "rating": [r for r, _, _ in CREDIT_RATINGS],
            "pd": [pd for _, pd, _ in CREDIT_RATINGS],
            "description": [d for _, _, d in CREDIT_RATINGS],
        },
        schema=CREDIT_RATING_SCHEMA,
    )


def get_pd_from_rating(rating: str | None, default: float = DEFAULT_RATING_PD) -> float:
    """
    Look up the PD for a rating symbol.

    Args:
        rating: Rating symbol (e.g. "BBB+"), surrounding whitespace ignored
        default: PD returned for unknown or missing ratings

    Returns:
        PD as a decimal
    """
    if rating is None:
        return default
    return CREDIT_RATING_PD.get(rating.strip().upper(), default)


def is_known_rating(rating: str | None) -> bool:
    """Check if a rating symbol is in the table (whitespace and case ignored)."""
    return rating is not None and rating.strip().upper() in CREDIT_RATING_PD


def get_rating_from_pd(pd: float) -> str:
    """
    Return the rating whose PD is closest to `pd`.

    Ties resolve to the better rating (earlier in the table).
    """
    return min(CREDIT_RATINGS, key=lambda row: abs(row[1] - pd))[0]
