"""
Contracts module for the RWA engine.

Provides the records, configuration and error types exchanged with the
engine components.

Submodules:
- bundles: Result bundles for distribution and optimization
- config: EngineConfig, CalculationOptions and related configuration
- errors: CalculationError and error code constants
- records: Counterparty, overlays, AdjustmentBook and result records
"""

from rwa_engine.contracts.bundles import DistributionResult, OptimizationResult
from rwa_engine.contracts.config import (
    CalculationOptions,
    EngineConfig,
    OptimizerConfig,
    ParameterDefaults,
    TtcPdAssumptions,
)
from rwa_engine.contracts.errors import (
    ERROR_EMPTY_SELECTION,
    ERROR_INVALID_TARGET,
    ERROR_INVALID_VALUE,
    ERROR_MISSING_COUNTERPARTY,
    ERROR_MISSING_FIELD,
    ERROR_TARGET_NOT_BELOW_CURRENT,
    ERROR_TARGET_NOT_REACHED,
    ERROR_UNKNOWN_COUNTERPARTY,
    ERROR_ZERO_BASELINE,
    ERROR_ZERO_EXPOSURE,
    CalculationError,
    ErrorCollector,
)
from rwa_engine.contracts.records import (
    NO_ADJUSTMENT,
    Additive,
    Adjustment,
    AdjustmentBook,
    Counterparty,
    CounterpartyAdjustment,
    Multiplicative,
    NoAdjustment,
    OverlayPair,
    PortfolioAdjustment,
    RWAResult,
)

__all__ = [
    # Bundles
    "DistributionResult",
    "OptimizationResult",
    # Configuration
    "CalculationOptions",
    "EngineConfig",
    "OptimizerConfig",
    "ParameterDefaults",
    "TtcPdAssumptions",
    # Errors
    "CalculationError",
    "ErrorCollector",
    "ERROR_EMPTY_SELECTION",
    "ERROR_INVALID_TARGET",
    "ERROR_INVALID_VALUE",
    "ERROR_MISSING_COUNTERPARTY",
    "ERROR_MISSING_FIELD",
    "ERROR_TARGET_NOT_BELOW_CURRENT",
    "ERROR_TARGET_NOT_REACHED",
    "ERROR_UNKNOWN_COUNTERPARTY",
    "ERROR_ZERO_BASELINE",
    "ERROR_ZERO_EXPOSURE",
    # Records
    "Additive",
    "Adjustment",
    "AdjustmentBook",
    "Counterparty",
    "CounterpartyAdjustment",
    "Multiplicative",
    "NO_ADJUSTMENT",
    "NoAdjustment",
    "OverlayPair",
    "PortfolioAdjustment",
    "RWAResult",
]
