"""Tests for configuration contracts.

Tests the CalculationConfig and related configuration classes,
including the US liquidity factory methods.
"""

from datetime import date
from decimal import Decimal

import pytest

from liquidity_calc.contracts.config import (
    CalculationConfig,
    CashFlowCapConfig,
    CollateralHaircuts,
    HQLACapConfig,
    ToleranceConfig,
    UnclassifiedItemsConfig,
)
from liquidity_calc.domain.enums import HQLALevel, UnclassifiedPolicy


class TestHQLACapConfig:
    """Tests for HQLA composition caps."""

    def test_us_lcr_shares(self):
        """Level 2 capped at 40%, Level 2B at 15% of total HQLA."""
        caps = HQLACapConfig.us_lcr()

        assert caps.level2a_max_share == Decimal("0.40")
        assert caps.level2b_max_share == Decimal("0.15")

    def test_level2a_cap_ratio_is_two_thirds(self):
        """40 / 60 of Level 1."""
        caps = HQLACapConfig.us_lcr()

        assert float(caps.level2a_cap_ratio) == pytest.approx(2 / 3)

    def test_level2b_cap_ratio_is_fifteen_over_eighty_five(self):
        """The closed form of 15% of total HQLA."""
        caps = HQLACapConfig.us_lcr()

        assert float(caps.level2b_cap_ratio) == pytest.approx(15 / 85)

    def test_immutable(self):
        """HQLACapConfig should be immutable (frozen dataclass)."""
        caps = HQLACapConfig()

        with pytest.raises(AttributeError):
            caps.level2a_max_share = Decimal("0.5")


class TestCashFlowCapConfig:
    """Tests for the inflow cap and outflow floor."""

    def test_us_lcr_defaults(self):
        """Inflows capped at 75%, so the floor is 25% of outflows."""
        caps = CashFlowCapConfig.us_lcr()

        assert caps.inflow_cap_ratio == Decimal("0.75")
        assert caps.net_outflow_floor_ratio == Decimal("0.25")


class TestToleranceConfig:
    """Tests for validator tolerances."""

    def test_standard_defaults(self):
        """Standard tolerance: smaller of $1,000 or 0.1%."""
        tol = ToleranceConfig.standard()

        assert tol.absolute_tolerance == Decimal("1000")
        assert tol.relative_tolerance == Decimal("0.001")
        assert tol.ratio_tolerance == Decimal("0.001")
        assert tol.compliance_threshold == Decimal("1.0")

    def test_strict_is_tighter_than_standard(self):
        """Strict tolerances should be tighter on every band."""
        standard = ToleranceConfig.standard()
        strict = ToleranceConfig.strict()

        assert strict.absolute_tolerance < standard.absolute_tolerance
        assert strict.relative_tolerance < standard.relative_tolerance
        assert strict.failure_relative_band < standard.failure_relative_band
        assert strict.ratio_tolerance < standard.ratio_tolerance
        assert strict.compliance_threshold == standard.compliance_threshold


class TestUnclassifiedItemsConfig:
    """Tests for the unclassified item policy."""

    def test_default_is_warn(self):
        """Unclassified items warn by default."""
        assert UnclassifiedItemsConfig().policy == UnclassifiedPolicy.WARN
        assert UnclassifiedItemsConfig.warn().policy == UnclassifiedPolicy.WARN

    def test_reject_with_share(self):
        """Reject policy carries the tolerated share."""
        config = UnclassifiedItemsConfig.reject(Decimal("0.05"))

        assert config.policy == UnclassifiedPolicy.REJECT
        assert config.max_unclassified_share == Decimal("0.05")


class TestCollateralHaircuts:
    """Tests for collateral haircuts by HQLA level."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            (HQLALevel.LEVEL_1, Decimal("0.0")),
            (HQLALevel.LEVEL_2A, Decimal("0.15")),
            (HQLALevel.LEVEL_2B, Decimal("0.50")),
            (None, Decimal("1.0")),
        ],
    )
    def test_get_haircut(self, level, expected):
        """Non-HQLA collateral takes a full haircut."""
        assert CollateralHaircuts().get_haircut(level) == expected

    def test_level_map_uses_numeric_levels(self):
        """Level map is keyed by the hqla_level codes on line items."""
        assert CollateralHaircuts().as_level_map() == {1: 0.0, 2: 0.15, 3: 0.5}


class TestCalculationConfig:
    """Tests for the master configuration."""

    def test_us_liquidity_defaults(self):
        """Factory should wire the regulatory defaults."""
        config = CalculationConfig.us_liquidity(reporting_date=date(2025, 3, 31))

        assert config.reporting_date == date(2025, 3, 31)
        assert config.submission_id is None
        assert config.legal_entity_id is None
        assert config.hqla_caps == HQLACapConfig.us_lcr()
        assert config.cash_flow_caps == CashFlowCapConfig.us_lcr()
        assert config.tolerances == ToleranceConfig.standard()
        assert config.unclassified.policy == UnclassifiedPolicy.WARN
        assert config.collect_engine == "cpu"
        assert config.compliance_threshold == Decimal("1.0")

    def test_us_liquidity_overrides(self):
        """Factory should accept tolerance and unclassified overrides."""
        config = CalculationConfig.us_liquidity(
            reporting_date=date(2025, 3, 31),
            submission_id="SUB-1",
            tolerances=ToleranceConfig.strict(),
            unclassified=UnclassifiedItemsConfig.reject(),
            collect_engine="streaming",
        )

        assert config.submission_id == "SUB-1"
        assert config.tolerances == ToleranceConfig.strict()
        assert config.unclassified.policy == UnclassifiedPolicy.REJECT
        assert config.collect_engine == "streaming"

    def test_immutable(self):
        """CalculationConfig should be immutable."""
        config = CalculationConfig.us_liquidity(reporting_date=date(2025, 3, 31))

        with pytest.raises(AttributeError):
            config.reporting_date = date(2025, 6, 30)
