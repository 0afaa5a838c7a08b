"""
Configuration contracts for the RWA engine.

Provides immutable configuration dataclasses:
- ParameterDefaults: Fallbacks for missing counterparty risk inputs
- TtcPdAssumptions: Default macro/industry inputs for TTC PD derivation
- OptimizerConfig: EAD floor and default ranking for the target optimizer
- EngineConfig: Master configuration with factory methods
- CalculationOptions: Per-call parameter overrides and formula switches

Factory methods .default() and .legacy() provide self-documenting
configuration for the canonical and legacy maturity adjustment.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rwa_engine.domain.enums import MaturityAdjustmentMethod, PriorityDirection


@dataclass(frozen=True)
class ParameterDefaults:
    """
    Fallback values used when a counterparty field is absent or NaN.

    All probabilities expressed as decimals (e.g., 0.45 = 45%).
    """

    pd: float = 0.01
    lgd: float = 0.45
    ead: float = 1_000_000.0
    maturity: float = 2.5


@dataclass(frozen=True)
class TtcPdAssumptions:
    """
    Assumptions for converting point-in-time PD to through-the-cycle PD.

    macroeconomic_index: Current conditions, 0 = recession, 1 = strong economy
    long_term_average: Long-run default rate used when no industry profile applies
    cyclicality: Industry sensitivity to the cycle, 0-1
    pit_weight / average_weight: Blend between cycle-adjusted PIT PD and
        the long-term average
    floor / cap: Bounds applied to the derived TTC PD
    """

    macroeconomic_index: float = 0.6
    long_term_average: float = 0.02
    cyclicality: float = 0.5
    pit_weight: float = 0.7
    average_weight: float = 0.3
    floor: float = 0.0001
    cap: float = 1.0


@dataclass(frozen=True)
class OptimizerConfig:
    """
    Target RWA optimizer settings.

    ead_floor_multiplier: Lowest EAD multiplier the optimizer may assign
    priority_field: Counterparty attribute ranked when none is supplied
    priority_direction: Ranking direction when none is supplied
    """

    ead_floor_multiplier: float = 0.5
    priority_field: str = "ttc_pd"
    priority_direction: PriorityDirection = PriorityDirection.DESC


@dataclass(frozen=True)
class EngineConfig:
    """
    Master configuration for the capital engine.

    Attributes:
        defaults: Fallbacks for missing risk inputs
        ttc: TTC PD derivation assumptions
        optimizer: Target optimizer settings
        maturity_method: Maturity adjustment variant
        apply_avc_multiplier: Scale correlation by 1.25 for large or
            unregulated financial counterparties (CRE31.5)
    """

    defaults: ParameterDefaults = field(default_factory=ParameterDefaults)
    ttc: TtcPdAssumptions = field(default_factory=TtcPdAssumptions)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    maturity_method: MaturityAdjustmentMethod = MaturityAdjustmentMethod.PD_DEPENDENT
    apply_avc_multiplier: bool = True

    @property
    def is_legacy_maturity(self) -> bool:
        """Check if the constant-b maturity adjustment is configured."""
        return self.maturity_method == MaturityAdjustmentMethod.LEGACY_CONSTANT

    @classmethod
    def default(cls, **overrides) -> EngineConfig:
        """
        Canonical configuration: PD-dependent maturity adjustment.

        Args:
            **overrides: Replacement values for any EngineConfig field
        """
        values = {"maturity_method": MaturityAdjustmentMethod.PD_DEPENDENT}
        values.update(overrides)
        return cls(**values)

    @classmethod
    def legacy(cls, **overrides) -> EngineConfig:
        """
        Legacy configuration: constant b = 0.05 maturity adjustment.

        Reproduces figures produced by the earlier simplified calculator.
        """
        values = {"maturity_method": MaturityAdjustmentMethod.LEGACY_CONSTANT}
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class CalculationOptions:
    """
    Per-call options for CapitalEngine.compute_rwa.

    Any override left as None falls back to the counterparty value (or
    its default). Correlation and maturity adjustment overrides bypass
    their formulas entirely.

    Attributes:
        pd, lgd, ead, maturity: Effective parameter overrides
        correlation: Asset correlation override
        maturity_adjustment: Maturity adjustment factor override
        ttc_pd: Reported TTC PD override
        simplified: Use K = LGD × PD instead of the Basel formula
        use_maturity_adjustment: When False the factor is fixed at 1.0
        maturity_method: Overrides EngineConfig.maturity_method for this call
    """

    pd: float | None = None
    lgd: float | None = None
    ead: float | None = None
    maturity: float | None = None
    correlation: float | None = None
    maturity_adjustment: float | None = None
    ttc_pd: float | None = None
    simplified: bool = False
    use_maturity_adjustment: bool = True
    maturity_method: MaturityAdjustmentMethod | None = None

    @classmethod
    def legacy(cls, **overrides) -> CalculationOptions:
        """Options selecting the constant-b maturity adjustment."""
        return cls(maturity_method=MaturityAdjustmentMethod.LEGACY_CONSTANT, **overrides)
