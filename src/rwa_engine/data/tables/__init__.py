"""
Reference lookup tables as Polars DataFrames and dicts.

- credit_ratings: Rating symbol to PD mapping
- industry_profiles: Industry cyclicality and long-term default rates
"""

from rwa_engine.data.tables.credit_ratings import (
    CREDIT_RATING_PD,
    CREDIT_RATINGS,
    create_credit_rating_df,
    get_pd_from_rating,
    get_rating_from_pd,
    is_known_rating,
)
from rwa_engine.data.tables.industry_profiles import (
    INDUSTRY_CYCLICALITY,
    INDUSTRY_LONG_TERM_AVERAGE,
    create_industry_profile_df,
    get_industry_cyclicality,
    get_industry_long_term_average,
)

__all__ = [
    "CREDIT_RATINGS",
    "CREDIT_RATING_PD",
    "create_credit_rating_df",
    "get_pd_from_rating",
    "get_rating_from_pd",
    "is_known_rating",
    "INDUSTRY_CYCLICALITY",
    "INDUSTRY_LONG_TERM_AVERAGE",
    "create_industry_profile_df",
    "get_industry_cyclicality",
    "get_industry_long_term_average",
]
