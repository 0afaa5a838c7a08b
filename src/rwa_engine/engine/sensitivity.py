"""
Single-counterparty sensitivity analysis.

Recomputes a counterparty's RWA over a grid of input scenarios:
- pd / lgd / ead: multipliers 0.5x to 1.5x of the effective value
- maturity: 0.5 to 5.5 years
- macroeconomic_index / cyclicality: 0 to 1, TTC PD re-derived and used
  as the capital PD
- rating: every other rating symbol, PD taken from the rating table

Each scenario grid is computed in one vectorised engine call and
returned as a DataFrame with SENSITIVITY_SCHEMA.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Sequence

import polars as pl

from rwa_engine.contracts.records import AdjustmentBook, Counterparty
from rwa_engine.data.schemas import SENSITIVITY_SCHEMA
from rwa_engine.data.tables.credit_ratings import CREDIT_RATINGS
from rwa_engine.engine.capital import CapitalEngine
from rwa_engine.engine.parameters import derive_ttc_pd_from_inputs, ttc_inputs_for_counterparty

logger = logging.getLogger(__name__)


# =============================================================================
# SCENARIO GRIDS
# =============================================================================

MULTIPLIER_GRID = tuple(round(0.5 + 0.1 * i, 2) for i in range(11))
MATURITY_GRID = tuple(round(0.5 + 0.5 * i, 2) for i in range(11))
UNIT_GRID = tuple(round(0.1 * i, 2) for i in range(11))
RATING_GRID = tuple(rating for rating, _, _ in CREDIT_RATINGS[::2])


class SensitivityAnalyzer:
    """
    Scenario grids for one counterparty.

    Overlays in the book stay attached to every scenario, so `rwa` is the
    post-overlay figure.

    Usage:
        analyzer = SensitivityAnalyzer(engine)
        frame = analyzer.run_all(counterparty)
    """

    def __init__(self, engine: CapitalEngine | None = None) -> None:
        self.engine = engine or CapitalEngine()

    # -------------------------------------------------------------------------
    # Parameter multipliers
    # -------------------------------------------------------------------------

    def pd_sensitivity(
        self, counterparty: Counterparty, book: AdjustmentBook | None = None
    ) -> pl.DataFrame:
        base = self.engine.resolve_inputs(counterparty).pd
        return self._scenarios(
            "pd",
            counterparty,
            MULTIPLIER_GRID,
            lambda m: replace(
                counterparty,
                pd=min(base * m, 1.0),
                use_credit_rating_pd=False,
            ),
            book,
            label=lambda m: f"{m:.1f}x",
        )

    def lgd_sensitivity(
        self, counterparty: Counterparty, book: AdjustmentBook | None = None
    ) -> pl.DataFrame:
        base = self.engine.resolve_inputs(counterparty).lgd
        return self._scenarios(
            "lgd",
            counterparty,
            MULTIPLIER_GRID,
            lambda m: replace(counterparty, lgd=min(base * m, 1.0)),
            book,
            label=lambda m: f"{m:.1f}x",
        )

    def ead_sensitivity(
        self, counterparty: Counterparty, book: AdjustmentBook | None = None
    ) -> pl.DataFrame:
        base = self.engine.resolve_inputs(counterparty).ead
        return self._scenarios(
            "ead",
            counterparty,
            MULTIPLIER_GRID,
            lambda m: counterparty.with_ead(base * m),
            book,
            label=lambda m: f"{m:.1f}x",
        )

    def maturity_sensitivity(
        self, counterparty: Counterparty, book: AdjustmentBook | None = None
    ) -> pl.DataFrame:
        return self._scenarios(
            "maturity",
            counterparty,
            MATURITY_GRID,
            lambda m: replace(counterparty, maturity=m),
            book,
            label=lambda m: f"{m:g}y",
        )

    # -------------------------------------------------------------------------
    # Through-the-cycle inputs
    # -------------------------------------------------------------------------

    def macro_sensitivity(
        self, counterparty: Counterparty, book: AdjustmentBook | None = None
    ) -> pl.DataFrame:
        return self._scenarios(
            "macroeconomic_index",
            counterparty,
            UNIT_GRID,
            lambda v: self._with_ttc_pd(counterparty, macroeconomic_index=v),
            book,
        )

    def cyclicality_sensitivity(
        self, counterparty: Counterparty, book: AdjustmentBook | None = None
    ) -> pl.DataFrame:
        return self._scenarios(
            "cyclicality",
            counterparty,
            UNIT_GRID,
            lambda v: self._with_ttc_pd(counterparty, cyclicality=v),
            book,
        )

    def _with_ttc_pd(self, counterparty: Counterparty, **ttc_inputs: float) -> Counterparty:
        """Re-derive TTC PD with changed inputs and use it as the capital PD."""
        varied = replace(counterparty, **ttc_inputs)
        point_in_time_pd = self.engine.resolve_inputs(counterparty).pd
        ttc_pd = derive_ttc_pd_from_inputs(
            ttc_inputs_for_counterparty(varied, point_in_time_pd, self.engine.config.ttc),
            self.engine.config.ttc,
        )
        return replace(varied, pd=ttc_pd, ttc_pd=ttc_pd, use_credit_rating_pd=False)

    # -------------------------------------------------------------------------
    # Ratings
    # -------------------------------------------------------------------------

    def rating_sensitivity(
        self,
        counterparty: Counterparty,
        book: AdjustmentBook | None = None,
        ratings: Sequence[str] = RATING_GRID,
    ) -> pl.DataFrame:
        variants = [
            replace(counterparty, credit_rating=rating, use_credit_rating_pd=True)
            for rating in ratings
        ]
        results = self.engine.compute_many(variants, book=book)
        return self._frame(
            "rating",
            list(ratings),
            [r.pd for r in results],
            results,
        )

    # -------------------------------------------------------------------------
    # All scenarios
    # -------------------------------------------------------------------------

    def run_all(
        self, counterparty: Counterparty, book: AdjustmentBook | None = None
    ) -> pl.DataFrame:
        """Every scenario grid stacked into one frame."""
        frames = [
            self.pd_sensitivity(counterparty, book),
            self.lgd_sensitivity(counterparty, book),
            self.ead_sensitivity(counterparty, book),
            self.maturity_sensitivity(counterparty, book),
            self.macro_sensitivity(counterparty, book),
            self.cyclicality_sensitivity(counterparty, book),
            self.rating_sensitivity(counterparty, book),
        ]
        logger.debug("Ran %d sensitivity grids for %s", len(frames), counterparty.id)
        return pl.concat(frames, how="vertical")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _scenarios(
        self,
        scenario: str,
        counterparty: Counterparty,
        grid: Sequence[float],
        vary: Callable[[float], Counterparty],
        book: AdjustmentBook | None,
        label: Callable[[float], str] = lambda v: f"{v:g}",
    ) -> pl.DataFrame:
        results = self.engine.compute_many([vary(v) for v in grid], book=book)
        return self._frame(scenario, [label(v) for v in grid], list(grid), results)

    @staticmethod
    def _frame(scenario, labels, values, results) -> pl.DataFrame:
        return pl.DataFrame(
            {
                "scenario": [scenario] * len(results),
                "label": labels,
                "value": values,
                "pd": [r.pd for r in results],
                "ttc_pd": [r.ttc_pd for r in results],
                "lgd": [r.lgd for r in results],
                "ead": [r.ead for r in results],
                "maturity": [r.maturity for r in results],
                "k": [r.k for r in results],
                "rwa": [r.rwa for r in results],
            },
            schema=SENSITIVITY_SCHEMA,
        )
