"""
Column schemas for the tabular inputs and outputs of the RWA engine.

Key Data Inputs:
- Counterparty              # Identity, risk inputs, classification flags, TTC inputs

Outputs:
- RWA_result                # Per-counterparty capital calculation, pre/post overlay
- Counterparty_adjustment   # Per-counterparty split of a portfolio adjustment
- Group_summary             # RWA totals grouped by industry or region
- Sensitivity               # RWA under a grid of parameter scenarios

Reference/Lookup Data:
- Credit_ratings            # Rating symbol to PD mapping
- Industry_profiles         # Industry cyclicality and long-term default rates
"""

import polars as pl

COUNTERPARTY_SCHEMA = {
    "id": pl.String,
    "name": pl.String,
    "industry": pl.String,
    "region": pl.String,
    "pd": pl.Float64,
    "ttc_pd": pl.Float64,
    "lgd": pl.Float64,
    "ead": pl.Float64,
    "maturity": pl.Float64,
    "is_financial": pl.Boolean,
    "is_large_financial": pl.Boolean,
    "is_regulated": pl.Boolean,
    "credit_rating": pl.String,
    "use_credit_rating_pd": pl.Boolean,
    "macroeconomic_index": pl.Float64,
    "long_term_average": pl.Float64,
    "cyclicality": pl.Float64,
}

RWA_RESULT_SCHEMA = {
    "counterparty_id": pl.String,
    "name": pl.String,
    "industry": pl.String,
    "region": pl.String,
    "pd": pl.Float64,
    "ttc_pd": pl.Float64,
    "lgd": pl.Float64,
    "ead": pl.Float64,
    "maturity": pl.Float64,
    "correlation_r": pl.Float64,
    "maturity_adjustment": pl.Float64,
    "k": pl.Float64,
    "risk_weight": pl.Float64,          # percent, K × 1250
    "original_rwa": pl.Float64,         # before overlays
    "rwa": pl.Float64,                  # after overlays
}

COUNTERPARTY_ADJUSTMENT_SCHEMA = {
    "counterparty_id": pl.String,
    "baseline_rwa": pl.Float64,
    "share": pl.Float64,
    "adjusted_rwa": pl.Float64,
    "absolute_change": pl.Float64,
    "percentage_change": pl.Float64,
    "adjustment_kind": pl.String,
}

GROUP_SUMMARY_SCHEMA = {
    "group": pl.String,
    "rwa": pl.Float64,
    "baseline_rwa": pl.Float64,
    "adjustment": pl.Float64,
    "ead": pl.Float64,
    "density": pl.Float64,               # percent, RWA / EAD
    "adjustment_percentage": pl.Float64,
    "counterparties": pl.UInt32,
    "adjusted_counterparties": pl.UInt32,
    "adjustment_ratio": pl.Float64,
}

SENSITIVITY_SCHEMA = {
    "scenario": pl.String,
    "label": pl.String,
    "value": pl.Float64,
    "pd": pl.Float64,
    "ttc_pd": pl.Float64,
    "lgd": pl.Float64,
    "ead": pl.Float64,
    "maturity": pl.Float64,
    "k": pl.Float64,
    "rwa": pl.Float64,
}

CREDIT_RATING_SCHEMA = {
    "rating": pl.String,
    "pd": pl.Float64,
    "description": pl.String,
}

INDUSTRY_PROFILE_SCHEMA = {
    "industry": pl.String,
    "cyclicality": pl.Float64,
    "long_term_average": pl.Float64,
}
