"""
Target RWA optimizer.

Finds EAD multipliers that bring portfolio RWA down to a target, taking
the highest-priority counterparties first.

Algorithm (greedy, single pass):
1. Reject targets that are invalid or not below current RWA
2. remaining = current - target
3. Rank counterparties by an explicit priority key (default TTC PD, desc)
4. For each, max reduction = (1 - floor) × EAD × RWA density, where
   density is the change in post-overlay RWA per unit of EAD (additive
   overlays do not scale with EAD, multiplicative ones do):
   - fits in remaining: multiplier = floor, remaining -= max reduction
   - otherwise: scale EAD just enough to close remaining, then stop
5. Unvisited counterparties keep multiplier 1.0

Achieved RWA may stay above target when the floor leaves too little
headroom. That is a defined outcome (success with an OPT003 warning),
not a failure.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Mapping, Sequence, Union

from rwa_engine.contracts.bundles import OptimizationResult
from rwa_engine.contracts.config import OptimizerConfig, ParameterDefaults
from rwa_engine.contracts.errors import (
    ERROR_INVALID_TARGET,
    ERROR_TARGET_NOT_BELOW_CURRENT,
    ERROR_TARGET_NOT_REACHED,
    ERROR_ZERO_EXPOSURE,
    CalculationError,
    optimization_error,
)
from rwa_engine.contracts.records import (
    AdjustmentBook,
    Counterparty,
    RWAResult,
    finite_or_none,
)
from rwa_engine.domain.enums import ErrorSeverity, PriorityDirection
from rwa_engine.engine.capital import CapitalEngine

logger = logging.getLogger(__name__)

# Ranked on the effective values the engine used
PRIORITY_FIELDS = ("pd", "ttc_pd", "lgd", "ead", "maturity")

PriorityKey = Union[str, Callable[[Counterparty], "float | None"]]

NOT_BELOW_CURRENT_MESSAGE = "Target RWA is not below current RWA. No reduction needed."


def _priority_value(value: float | None) -> float:
    number = finite_or_none(value)
    return number if number is not None else 0.0


class TargetRWAOptimizer:
    """
    Greedy EAD scaling towards a target portfolio RWA.

    Usage:
        optimizer = TargetRWAOptimizer(engine)
        result = optimizer.optimize(counterparties, None, target_rwa=50_000_000)
        adjusted = apply_ead_multipliers(counterparties, result.ead_multipliers)
    """

    def __init__(
        self,
        engine: CapitalEngine | None = None,
        config: OptimizerConfig | None = None,
    ) -> None:
        self.engine = engine or CapitalEngine()
        self.config = config or self.engine.config.optimizer

    def optimize(
        self,
        counterparties: Sequence[Counterparty],
        current_total_rwa: float | None,
        target_rwa: float,
        priority_field: PriorityKey | None = None,
        priority_direction: PriorityDirection | str | None = None,
        book: AdjustmentBook | None = None,
    ) -> OptimizationResult:
        """
        Compute EAD multipliers reducing portfolio RWA towards a target.

        Args:
            counterparties: Portfolio to scale
            current_total_rwa: Current portfolio RWA; computed when None
            target_rwa: Desired portfolio RWA
            priority_field: One of PRIORITY_FIELDS, or a callable taking a
                Counterparty; missing or NaN keys rank as 0
            priority_direction: "desc" (highest first) or "asc"
            book: Overlays included in current RWA and the RWA densities

        Returns:
            OptimizationResult with a multiplier in [floor, 1.0] per id

        Raises:
            ValueError: If priority_field or priority_direction is unknown
        """
        book = book or AdjustmentBook()
        results = self.engine.compute_many(counterparties, book=book)
        key = self._priority_key(priority_field or self.config.priority_field)
        direction = PriorityDirection(priority_direction or self.config.priority_direction)

        if current_total_rwa is None:
            current_total_rwa = sum(r.rwa for r in results)
        multipliers = {cp.id: 1.0 for cp in counterparties}

        target = finite_or_none(target_rwa)
        if target is None or target <= 0:
            return OptimizationResult(
                success=False,
                message="Target RWA must be a positive number.",
                target_rwa=target_rwa,
                achieved_rwa=current_total_rwa,
                ead_multipliers=multipliers,
                errors=[
                    optimization_error(
                        ERROR_INVALID_TARGET,
                        f"Invalid target RWA: {target_rwa}",
                        severity=ErrorSeverity.ERROR,
                    )
                ],
            )

        if target >= current_total_rwa:
            return OptimizationResult(
                success=False,
                message=NOT_BELOW_CURRENT_MESSAGE,
                target_rwa=target,
                achieved_rwa=current_total_rwa,
                ead_multipliers=multipliers,
                errors=[optimization_error(ERROR_TARGET_NOT_BELOW_CURRENT, NOT_BELOW_CURRENT_MESSAGE)],
            )

        floor = self.config.ead_floor_multiplier
        remaining = current_total_rwa - target
        errors: list[CalculationError] = []

        ranked = sorted(
            zip(counterparties, results),
            key=lambda pair: key(*pair),
            reverse=direction == PriorityDirection.DESC,
        )

        for counterparty, result in ranked:
            if remaining <= 0:
                break

            ead = result.ead
            factor = book.overlays_for(counterparty.id).marginal_factor
            density = result.original_rwa * factor / ead if ead > 0 else 0.0
            max_reduction = (1.0 - floor) * ead * density
            if ead <= 0 or max_reduction <= 0:
                logger.warning(
                    "Skipping counterparty %s: no exposure or RWA to reduce", counterparty.id
                )
                errors.append(
                    optimization_error(
                        ERROR_ZERO_EXPOSURE,
                        "Counterparty has no exposure or RWA to reduce, skipped",
                        counterparty_reference=counterparty.id,
                    )
                )
                continue

            if max_reduction <= remaining:
                multipliers[counterparty.id] = floor
                remaining -= max_reduction
            else:
                needed_ead_reduction = remaining / density
                multipliers[counterparty.id] = max(floor, 1.0 - needed_ead_reduction / ead)
                remaining = 0.0

            logger.debug(
                "Counterparty %s: EAD multiplier %.4f, remaining %.2f",
                counterparty.id,
                multipliers[counterparty.id],
                remaining,
            )

        reduction = (current_total_rwa - target) - remaining
        achieved = current_total_rwa - reduction

        if remaining > 0:
            errors.append(
                optimization_error(
                    ERROR_TARGET_NOT_REACHED,
                    f"EAD floor leaves {remaining:,.0f} of RWA above target",
                )
            )

        return OptimizationResult(
            success=True,
            message=f"Optimized EAD adjustments to reduce RWA by ${reduction:,.0f}",
            target_rwa=target,
            achieved_rwa=achieved,
            reduction_achieved=reduction,
            ead_multipliers=multipliers,
            errors=errors,
        )

    @staticmethod
    def _priority_key(
        priority_field: PriorityKey,
    ) -> Callable[[Counterparty, RWAResult], float]:
        if callable(priority_field):
            return lambda counterparty, _: _priority_value(priority_field(counterparty))
        if priority_field not in PRIORITY_FIELDS:
            raise ValueError(
                f"Unknown priority field '{priority_field}', expected one of {PRIORITY_FIELDS}"
            )
        return lambda _, result: _priority_value(getattr(result, priority_field))


def apply_ead_multipliers(
    counterparties: Sequence[Counterparty],
    multipliers: Mapping[str, float],
    defaults: ParameterDefaults | None = None,
) -> list[Counterparty]:
    """
    Return new records with EAD scaled by each id's multiplier.

    Records without a multiplier (or with 1.0) are returned unchanged.
    A missing EAD is scaled from its default.
    """
    defaults = defaults or ParameterDefaults()
    adjusted = []
    for counterparty in counterparties:
        multiplier = multipliers.get(counterparty.id, 1.0)
        if math.isclose(multiplier, 1.0):
            adjusted.append(counterparty)
            continue
        ead = finite_or_none(counterparty.ead)
        base = ead if ead is not None else defaults.ead
        adjusted.append(counterparty.with_ead(base * multiplier))
    return adjusted


def create_optimizer(
    engine: CapitalEngine | None = None,
    config: OptimizerConfig | None = None,
) -> TargetRWAOptimizer:
    """Factory function for a TargetRWAOptimizer."""
    return TargetRWAOptimizer(engine, config)
