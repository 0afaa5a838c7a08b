"""
Industry profiles for through-the-cycle PD derivation.

Cyclicality (0-1) measures how strongly an industry's default rates move
with the economic cycle. The long-term average is the industry's
long-run annual default rate. Industries not listed fall back to the
TtcPdAssumptions defaults.
"""

import polars as pl

from rwa_engine.data.schemas import INDUSTRY_PROFILE_SCHEMA


# =============================================================================
# CYCLICALITY
# =============================================================================

INDUSTRY_CYCLICALITY: dict[str, float] = {
    # Highly cyclical
    "Banking": 0.8,
    "Real Estate": 0.8,
    "Construction": 0.8,
    "Automotive": 0.8,
    # Moderately cyclical
    "Technology": 0.6,
    "Telecommunications": 0.6,
    # Defensive
    "Healthcare": 0.3,
    "Utilities": 0.3,
    "Consumer Staples": 0.3,
}


# =============================================================================
# LONG-TERM AVERAGE DEFAULT RATES
# =============================================================================

INDUSTRY_LONG_TERM_AVERAGE: dict[str, float] = {
    "Banking": 0.015,
    "Financial Services": 0.015,
    "Insurance": 0.015,
    "Healthcare": 0.01,
    "Utilities": 0.01,
    "Retail": 0.025,
    "Manufacturing": 0.025,
    "Technology": 0.03,
    "Telecommunications": 0.03,
}


def get_industry_cyclicality(industry: str | None, default: float) -> float:
    """Cyclicality for an industry, or `default` when not profiled."""
    if not industry:
        return default
    return INDUSTRY_CYCLICALITY.get(industry, default)


def get_industry_long_term_average(industry: str | None, default: float) -> float:
    """Long-term average default rate for an industry, or `default`."""
    if not industry:
        return default
    return INDUSTRY_LONG_TERM_AVERAGE.get(industry, default)


def create_industry_profile_df(
    default_cyclicality: float = 0.5,
    default_long_term_average: float = 0.02,
) -> pl.DataFrame:
    """
    Create the industry profile DataFrame.

    Industries present in only one of the tables take the default for
    the other attribute.
    """
    industries = sorted(set(INDUSTRY_CYCLICALITY) | set(INDUSTRY_LONG_TERM_AVERAGE))
    return pl.DataFrame(
        {
            "industry": industries,
            "cyclicality": [
                get_industry_cyclicality(i, default_cyclicality) for i in industries
            ],
            "long_term_average": [
                get_industry_long_term_average(i, default_long_term_average)
                for i in industries
            ],
        },
        schema=INDUSTRY_PROFILE_SCHEMA,
    )
