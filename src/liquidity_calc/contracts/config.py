"""
Configuration contracts for the liquidity calculator.

Provides immutable configuration dataclasses:
- HQLACapConfig: Level 2A / Level 2B composition caps (12 CFR 249.21)
- CashFlowCapConfig: 75% inflow cap and the matching net outflow floor
- ToleranceConfig: Variance tolerances used by the validator
- UnclassifiedItemsConfig: Policy for line items that match no rule
- CollateralHaircuts: Haircut by HQLA level for collateral-adjusted rules
- CalculationConfig: Master configuration with factory methods

Factory methods such as .us_liquidity() and ToleranceConfig.strict()
provide self-documenting configuration with the regulatory defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Literal

from liquidity_calc.domain.enums import HQLALevel, UnclassifiedPolicy

# Type alias for Polars collection engine
PolarsEngine = Literal["cpu", "gpu", "streaming"]


@dataclass(frozen=True)
class HQLACapConfig:
    """
    HQLA composition caps (12 CFR 249.21).

    Level 2 assets may be at most 40% of total HQLA and Level 2B assets
    at most 15%. Expressed against the assets that rank above them:
        - Level 2A <= Level 1 x 40/60 (= 2/3)
        - Level 2B <= (Level 1 + capped Level 2A) x 15/85

    All values expressed as decimals (e.g., 0.15 = 15%)
    """

    level2a_max_share: Decimal = Decimal("0.40")  # 40% of total HQLA
    level2b_max_share: Decimal = Decimal("0.15")  # 15% of total HQLA

    @property
    def level2a_cap_ratio(self) -> Decimal:
        """Multiple of Level 1 that Level 2A may not exceed (2/3)."""
        return self.level2a_max_share / (Decimal("1") - self.level2a_max_share)

    @property
    def level2b_cap_ratio(self) -> Decimal:
        """Multiple of Level 1 + capped Level 2A that Level 2B may not exceed (15/85)."""
        return self.level2b_max_share / (Decimal("1") - self.level2b_max_share)

    @classmethod
    def us_lcr(cls) -> HQLACapConfig:
        """Standard US LCR composition caps."""
        return cls(
            level2a_max_share=Decimal("0.40"),
            level2b_max_share=Decimal("0.15"),
        )


@dataclass(frozen=True)
class CashFlowCapConfig:
    """
    Inflow cap and net cash outflow floor (12 CFR 249.30).

    Inflows count up to 75% of outflows, so net cash outflows never
    fall below 25% of total outflows.
    """

    inflow_cap_ratio: Decimal = Decimal("0.75")
    net_outflow_floor_ratio: Decimal = Decimal("0.25")

    @classmethod
    def us_lcr(cls) -> CashFlowCapConfig:
        """Standard US LCR inflow cap."""
        return cls(
            inflow_cap_ratio=Decimal("0.75"),
            net_outflow_floor_ratio=Decimal("0.25"),
        )


@dataclass(frozen=True)
class ToleranceConfig:
    """
    Tolerances used when comparing calculated and reported figures.

    An amount passes when |variance| <= min(absolute_tolerance,
    relative_tolerance x |reported|). Outside tolerance it fails when the
    variance also exceeds the failure band, otherwise it is a warning.
    Ratios use their own absolute tolerance and fail whenever the
    compliance verdict flips across compliance_threshold.
    """

    absolute_tolerance: Decimal = Decimal("1000")  # $1,000
    relative_tolerance: Decimal = Decimal("0.001")  # 0.1%
    failure_relative_band: Decimal = Decimal("0.05")  # 5%
    ratio_tolerance: Decimal = Decimal("0.001")  # 0.1 percentage points
    ratio_failure_band: Decimal = Decimal("0.05")  # 5 percentage points
    compliance_threshold: Decimal = Decimal("1.0")  # 100%

    @classmethod
    def standard(cls) -> ToleranceConfig:
        """Default tolerance: smaller of $1,000 or 0.1%."""
        return cls()

    @classmethod
    def strict(cls) -> ToleranceConfig:
        """Tight tolerance for reconciliation against the regulatory filing."""
        return cls(
            absolute_tolerance=Decimal("1"),
            relative_tolerance=Decimal("0.00001"),
            failure_relative_band=Decimal("0.01"),
            ratio_tolerance=Decimal("0.0001"),
            ratio_failure_band=Decimal("0.01"),
        )


@dataclass(frozen=True)
class UnclassifiedItemsConfig:
    """
    Policy for line items that match no rule in any family of the run.

    Attributes:
        policy: WARN (exclude and flag) or REJECT (fail above the limit)
        max_unclassified_share: Share of total outstanding balance that may be
            unclassified before a REJECT policy fails the run
    """

    policy: UnclassifiedPolicy = UnclassifiedPolicy.WARN
    max_unclassified_share: Decimal = Decimal("0.0")

    @classmethod
    def warn(cls) -> UnclassifiedItemsConfig:
        """Exclude unclassified items and raise a warning."""
        return cls(policy=UnclassifiedPolicy.WARN)

    @classmethod
    def reject(cls, max_unclassified_share: Decimal = Decimal("0.0")) -> UnclassifiedItemsConfig:
        """Fail the run once unclassified balances exceed the share."""
        return cls(
            policy=UnclassifiedPolicy.REJECT,
            max_unclassified_share=max_unclassified_share,
        )


@dataclass(frozen=True)
class CollateralHaircuts:
    """
    Haircuts applied to collateral by HQLA level (12 CFR 249.21).

    Used by collateral-adjusted rules when a line item gives
    collateral_hqla_level without an explicit collateral_haircut.
    Collateral with no HQLA level is treated as non-HQLA (100% haircut).
    """

    level_1: Decimal = Decimal("0.0")
    level_2a: Decimal = Decimal("0.15")
    level_2b: Decimal = Decimal("0.50")
    non_hqla: Decimal = Decimal("1.0")

    def get_haircut(self, level: HQLALevel | None) -> Decimal:
        """Get the haircut for a collateral HQLA level."""
        mapping = {
            HQLALevel.LEVEL_1: self.level_1,
            HQLALevel.LEVEL_2A: self.level_2a,
            HQLALevel.LEVEL_2B: self.level_2b,
        }
        return mapping.get(level, self.non_hqla)

    def as_level_map(self) -> dict[int, float]:
        """Haircuts keyed by the numeric hqla_level used in line items."""
        return {level.value: float(self.get_haircut(level)) for level in HQLALevel}


@dataclass(frozen=True)
class CalculationConfig:
    """
    Master configuration for liquidity calculations.

    Immutable configuration container bundling all ratio settings.
    Use the .us_liquidity() factory to create a correctly configured
    instance.

    Attributes:
        reporting_date: As-of date for the calculation
        submission_id: Optional submission the run is scoped to
        legal_entity_id: Optional legal entity the run is scoped to
        hqla_caps: Level 2A / 2B cap configuration
        cash_flow_caps: Inflow cap / net outflow floor configuration
        tolerances: Validator tolerance bands
        unclassified: Unclassified line item policy
        collateral_haircuts: Haircuts for collateral-adjusted rules
        collect_engine: Polars engine for .collect() - 'cpu' (default)
            for in-memory processing, 'streaming' for batches
    """

    reporting_date: date
    submission_id: str | None = None
    legal_entity_id: str | None = None
    hqla_caps: HQLACapConfig = field(default_factory=HQLACapConfig.us_lcr)
    cash_flow_caps: CashFlowCapConfig = field(default_factory=CashFlowCapConfig.us_lcr)
    tolerances: ToleranceConfig = field(default_factory=ToleranceConfig.standard)
    unclassified: UnclassifiedItemsConfig = field(default_factory=UnclassifiedItemsConfig.warn)
    collateral_haircuts: CollateralHaircuts = field(default_factory=CollateralHaircuts)
    collect_engine: PolarsEngine = "cpu"

    @property
    def compliance_threshold(self) -> Decimal:
        """Minimum ratio for compliance (100%)."""
        return self.tolerances.compliance_threshold

    @classmethod
    def us_liquidity(
        cls,
        reporting_date: date,
        submission_id: str | None = None,
        tolerances: ToleranceConfig | None = None,
        unclassified: UnclassifiedItemsConfig | None = None,
        collect_engine: PolarsEngine = "cpu",
        legal_entity_id: str | None = None,
    ) -> CalculationConfig:
        """
        Create US LCR / NSFR configuration (12 CFR Part 249).

        Characteristics:
        - Level 2A capped at 40% and Level 2B at 15% of total HQLA
        - Inflows capped at 75% of outflows
        - Net cash outflows floored at 25% of outflows
        - Minimum ratio of 100% for both LCR and NSFR

        Args:
            reporting_date: As-of date for calculation
            submission_id: Submission the line items belong to (optional)
            tolerances: Variance tolerances (defaults to standard)
            unclassified: Unclassified item policy (defaults to warn)
            collect_engine: Polars engine for .collect()
            legal_entity_id: Legal entity to calculate for (optional,
                all entities of the submission when omitted)

        Returns:
            Configured CalculationConfig
        """
        return cls(
            reporting_date=reporting_date,
            submission_id=submission_id,
            legal_entity_id=legal_entity_id,
            hqla_caps=HQLACapConfig.us_lcr(),
            cash_flow_caps=CashFlowCapConfig.us_lcr(),
            tolerances=tolerances or ToleranceConfig.standard(),
            unclassified=unclassified or UnclassifiedItemsConfig.warn(),
            collateral_haircuts=CollateralHaircuts(),
            collect_engine=collect_engine,
        )
