"""Tests for configuration contracts.

Tests the EngineConfig factory methods, the parameter defaults and the
per-call CalculationOptions.
"""

import pytest

from rwa_engine.contracts.config import (
    CalculationOptions,
    EngineConfig,
    OptimizerConfig,
    ParameterDefaults,
    TtcPdAssumptions,
)
from rwa_engine.domain.enums import MaturityAdjustmentMethod, PriorityDirection


class TestParameterDefaults:
    def test_documented_defaults(self):
        defaults = ParameterDefaults()

        assert defaults.pd == 0.01
        assert defaults.lgd == 0.45
        assert defaults.ead == 1_000_000.0
        assert defaults.maturity == 2.5


class TestTtcPdAssumptions:
    def test_documented_defaults(self):
        assumptions = TtcPdAssumptions()

        assert assumptions.macroeconomic_index == 0.6
        assert assumptions.long_term_average == 0.02
        assert assumptions.cyclicality == 0.5
        assert assumptions.pit_weight + assumptions.average_weight == pytest.approx(1.0)
        assert (assumptions.floor, assumptions.cap) == (0.0001, 1.0)


class TestOptimizerConfig:
    def test_defaults(self):
        config = OptimizerConfig()

        assert config.ead_floor_multiplier == 0.5
        assert config.priority_field == "ttc_pd"
        assert config.priority_direction == PriorityDirection.DESC


class TestEngineConfig:
    def test_default_is_pd_dependent(self):
        config = EngineConfig.default()

        assert config.maturity_method == MaturityAdjustmentMethod.PD_DEPENDENT
        assert not config.is_legacy_maturity
        assert config.apply_avc_multiplier

    def test_legacy(self):
        config = EngineConfig.legacy()

        assert config.maturity_method == MaturityAdjustmentMethod.LEGACY_CONSTANT
        assert config.is_legacy_maturity

    def test_overrides(self):
        config = EngineConfig.default(
            apply_avc_multiplier=False,
            defaults=ParameterDefaults(lgd=0.4),
        )

        assert not config.apply_avc_multiplier
        assert config.defaults.lgd == 0.4

    def test_immutable(self):
        config = EngineConfig.default()
        with pytest.raises(AttributeError):
            config.apply_avc_multiplier = False


class TestCalculationOptions:
    def test_defaults_override_nothing(self):
        options = CalculationOptions()

        assert options.pd is None
        assert options.maturity_method is None
        assert not options.simplified
        assert options.use_maturity_adjustment

    def test_legacy(self):
        options = CalculationOptions.legacy(simplified=True)

        assert options.maturity_method == MaturityAdjustmentMethod.LEGACY_CONSTANT
        assert options.simplified
