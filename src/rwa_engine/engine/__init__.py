"""
RWA engine components.

    stats -> parameters -> capital -> distributor / optimizer
                                   -> aggregator / sensitivity

Modules:
    stats: Normal CDF and inverse CDF approximations
    parameters: Correlation, maturity adjustment and TTC PD
    capital: CapitalEngine, IRB capital and RWA with overlays
    distributor: Portfolio adjustment distribution
    optimizer: Target RWA optimizer
    aggregator: Portfolio and grouped totals
    sensitivity: Scenario grids for one counterparty
"""

from rwa_engine.engine.capital import CapitalEngine, create_capital_engine
from rwa_engine.engine.distributor import (
    AbsoluteAdjustmentRequest,
    AdjustmentDistributor,
    PercentageAdjustmentRequest,
    distribute_baselines,
)
from rwa_engine.engine.optimizer import TargetRWAOptimizer, apply_ead_multipliers

__all__ = [
    "AbsoluteAdjustmentRequest",
    "AdjustmentDistributor",
    "CapitalEngine",
    "PercentageAdjustmentRequest",
    "TargetRWAOptimizer",
    "apply_ead_multipliers",
    "create_capital_engine",
    "distribute_baselines",
]
