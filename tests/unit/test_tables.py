"""Tests for the credit rating and industry profile lookup tables."""

import polars as pl
import pytest

from rwa_engine.data.schemas import CREDIT_RATING_SCHEMA, INDUSTRY_PROFILE_SCHEMA
from rwa_engine.data.tables import (
    CREDIT_RATINGS,
    create_credit_rating_df,
    create_industry_profile_df,
    get_industry_cyclicality,
    get_industry_long_term_average,
    get_pd_from_rating,
    get_rating_from_pd,
    is_known_rating,
)


class TestCreditRatings:
    def test_pd_increases_down_the_scale(self):
        pds = [pd for _, pd, _ in CREDIT_RATINGS]
        assert pds == sorted(pds)
        assert CREDIT_RATINGS[0][0] == "AAA"
        assert CREDIT_RATINGS[-1][:2] == ("D", 1.0)

    def test_lookup(self):
        assert get_pd_from_rating("BBB") == 0.0022
        assert get_pd_from_rating(" bb- ") == 0.019

    def test_unknown_rating_uses_default(self):
        assert get_pd_from_rating("ZZZ") == 0.01
        assert get_pd_from_rating(None, default=0.05) == 0.05

    def test_is_known_rating(self):
        assert is_known_rating(" bbb+ ")
        assert not is_known_rating("ZZZ")
        assert not is_known_rating(None)

    @pytest.mark.parametrize(
        "pd, rating",
        [(0.0001, "AAA"), (0.0021, "BBB"), (0.5, "C"), (0.9, "D")],
    )
    def test_closest_rating(self, pd, rating):
        assert get_rating_from_pd(pd) == rating

    def test_frame(self):
        frame = create_credit_rating_df()
        assert frame.schema == pl.Schema(CREDIT_RATING_SCHEMA)
        assert frame.height == len(CREDIT_RATINGS)


class TestIndustryProfiles:
    def test_known_industry(self):
        assert get_industry_cyclicality("Banking", 0.5) == 0.8
        assert get_industry_long_term_average("Healthcare", 0.02) == 0.01

    def test_unknown_or_missing_industry(self):
        assert get_industry_cyclicality("Shipping", 0.5) == 0.5
        assert get_industry_long_term_average(None, 0.02) == 0.02

    def test_frame_fills_defaults(self):
        frame = create_industry_profile_df()

        assert frame.schema == pl.Schema(INDUSTRY_PROFILE_SCHEMA)
        retail = frame.filter(pl.col("industry") == "Retail").row(0, named=True)
        assert retail["cyclicality"] == 0.5
        assert retail["long_term_average"] == 0.025
