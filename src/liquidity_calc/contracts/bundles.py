"""
Data transfer bundles for the liquidity calculator pipeline.

Defines immutable dataclass containers for passing data between
pipeline components. Each bundle represents the output of one
component and input to the next:

    Loader -> LiquidityInputBundle
                    |
            Categorizer -> CategorizedBundle
                                |
                          Aggregator -> AggregatedBundle
                                            |
                                    FactorApplier -> breakdown
                                                        |
                              Cap Enforcer / Ratio / Validator -> CalculationRun

Frames between stages are LazyFrames to enable deferred execution.
The CalculationRun at the end of the pipeline holds collected
DataFrames so that it is an immutable record of the run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from liquidity_calc.domain.enums import RatioType, ValidationStatus

if TYPE_CHECKING:
    import polars as pl

    from liquidity_calc.contracts.errors import CalculationError


@dataclass(frozen=True)
class LiquidityInputBundle:
    """
    Output from the data loader component.

    Attributes:
        line_items: Line items for one or more submissions
        rules: Calculation rule table (None means the reference rule set)
        expected_values: Previously reported figures for variance checking
    """

    line_items: pl.LazyFrame
    rules: pl.LazyFrame | None = None
    expected_values: pl.LazyFrame | None = None


@dataclass(frozen=True)
class CategorizedBundle:
    """
    Output from the categorizer component.

    Attributes:
        categorized: One row per (line item, family) with the winning rule's
            columns joined on
        unclassified: Line items that matched no rule in any family of the run
        errors: Classification warnings
    """

    categorized: pl.LazyFrame
    unclassified: pl.LazyFrame
    errors: list[CalculationError] = field(default_factory=list)


@dataclass(frozen=True)
class AggregatedBundle:
    """
    Output from the aggregator component.

    Attributes:
        groups: One row per (family, category, subtype, rule, factor) group
            with total_amount, adjusted_amount, record_count and line_references
        excluded: Line items dropped for missing factor or collateral data
        errors: Exclusion warnings
    """

    groups: pl.LazyFrame
    excluded: pl.LazyFrame
    errors: list[CalculationError] = field(default_factory=list)


@dataclass(frozen=True)
class HQLACapResult:
    """
    HQLA composition after the Level 2A and Level 2B caps.

    Cap amounts equal the capped value, which never exceeds the raw value.
    A cap is flagged only when its bound is strictly below the raw amount.
    """

    level1: float
    level2a: float
    level2b: float
    capped_level2a: float
    capped_level2b: float
    level2a_cap_limit: float
    level2b_cap_limit: float
    level2a_cap_applied: bool
    level2b_cap_applied: bool

    @property
    def total_hqla(self) -> float:
        """Level 1 + capped Level 2A + capped Level 2B."""
        return self.level1 + self.capped_level2a + self.capped_level2b


@dataclass(frozen=True)
class CashFlowCapResult:
    """Inflow cap and net cash outflow floor results."""

    total_outflows: float
    total_inflows: float
    capped_inflows: float
    inflow_cap_limit: float
    inflow_cap_applied: bool
    net_cash_outflows: float
    net_outflow_floor: float
    net_outflow_floor_applied: bool


@dataclass(frozen=True)
class RatioResult:
    """
    Final ratio for a run.

    ratio is None when the denominator is zero; such a ratio is
    undefined, never zero and never infinite.
    """

    ratio_type: RatioType
    numerator: float
    denominator: float
    ratio: float | None
    is_compliant: bool

    @property
    def is_defined(self) -> bool:
        return self.ratio is not None


@dataclass(frozen=True)
class MetricValidation:
    """
    Validation outcome for one metric.

    Attributes:
        metric: Category code or stage total name (e.g. "total_hqla")
        calculated: Value produced by this run (None for an undefined ratio)
        expected: Reported value, if any
        variance: calculated - expected
        status: passed, warning or failed
        note: Explanation of the status
    """

    metric: str
    calculated: float | None
    expected: float | None
    variance: float | None
    status: ValidationStatus
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "calculated": self.calculated,
            "expected": self.expected,
            "variance": self.variance,
            "status": self.status.value,
            "note": self.note,
        }


@dataclass(frozen=True)
class ValidationResult:
    """
    Verdict record for one calculation run.

    Carries every stage total, every cap flag and amount, the final
    ratio, the per-metric validation and the overall status. Errors
    raised anywhere in the run are attached here.

    Attributes:
        run_id: Identifier of the run this verdict belongs to
        submission_id: Submission the line items came from
        reporting_date: As-of date of the line items
        ratio_type: LCR or NSFR
        totals: Stage totals keyed by metric name
        cap_flags: Cap applied flags keyed by cap name
        cap_amounts: Cap amounts (capped values) keyed by cap name
        ratio: Final ratio, None when undefined
        is_compliant: Ratio at or above the compliance threshold
        metrics: Per-metric validation outcomes
        overall_status: Overall verdict for the run
        reason_codes: Error codes driving a non-passed verdict
        unclassified_amount: Outstanding balance of unclassified items
        unclassified_count: Number of unclassified items
        excluded_amount: Basis amount of items excluded for missing data
        excluded_count: Number of excluded (item, family) pairs
        errors: All errors and warnings of the run
        created_at: UTC timestamp of the run
    """

    run_id: str
    submission_id: str | None
    reporting_date: date
    ratio_type: RatioType
    totals: dict[str, float]
    cap_flags: dict[str, bool]
    cap_amounts: dict[str, float]
    ratio: float | None
    is_compliant: bool
    metrics: tuple[MetricValidation, ...]
    overall_status: ValidationStatus
    reason_codes: tuple[str, ...] = ()
    unclassified_amount: float = 0.0
    unclassified_count: int = 0
    excluded_amount: float = 0.0
    excluded_count: int = 0
    errors: tuple[CalculationError, ...] = ()
    created_at: datetime | None = None

    @property
    def passed(self) -> bool:
        return self.overall_status == ValidationStatus.PASSED

    def metric(self, name: str) -> MetricValidation | None:
        """Look up the validation outcome for a metric."""
        for m in self.metrics:
            if m.metric == name:
                return m
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        return {
            "run_id": self.run_id,
            "submission_id": self.submission_id,
            "reporting_date": self.reporting_date.isoformat(),
            "ratio_type": self.ratio_type.value,
            "totals": dict(self.totals),
            "cap_flags": dict(self.cap_flags),
            "cap_amounts": dict(self.cap_amounts),
            "ratio": self.ratio,
            "is_compliant": self.is_compliant,
            "metrics": [m.to_dict() for m in self.metrics],
            "overall_status": self.overall_status.value,
            "reason_codes": list(self.reason_codes),
            "unclassified_amount": self.unclassified_amount,
            "unclassified_count": self.unclassified_count,
            "excluded_amount": self.excluded_amount,
            "excluded_count": self.excluded_count,
            "errors": [e.to_dict() for e in self.errors],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class CalculationRun:
    """
    Complete, immutable output of one ratio calculation run.

    Attributes:
        run_id: Unique run identifier (fresh on every run)
        ratio_type: LCR or NSFR
        breakdown: ComponentBreakdown rows (COMPONENT_BREAKDOWN_SCHEMA)
        validation: Verdict record
        unclassified: Unclassified line items
        excluded: Line items excluded for missing factor or collateral
        hqla_caps: HQLA cap results (LCR only)
        cash_flow_caps: Inflow cap / NCO floor results (LCR only)
    """

    run_id: str
    ratio_type: RatioType
    breakdown: pl.DataFrame
    validation: ValidationResult
    unclassified: pl.DataFrame
    excluded: pl.DataFrame
    hqla_caps: HQLACapResult | None = None
    cash_flow_caps: CashFlowCapResult | None = None

    @property
    def ratio(self) -> float | None:
        return self.validation.ratio

    @property
    def created_at(self) -> datetime | None:
        return self.validation.created_at


@dataclass(frozen=True)
class LiquidityRunBundle:
    """
    Output of a pipeline run across both ratios.

    Attributes:
        lcr: LCR run, if requested
        nsfr: NSFR run, if requested
        errors: Errors raised before the ratio runs (loading, data quality)
    """

    lcr: CalculationRun | None = None
    nsfr: CalculationRun | None = None
    errors: list[CalculationError] = field(default_factory=list)

    @property
    def runs(self) -> list[CalculationRun]:
        return [r for r in (self.lcr, self.nsfr) if r is not None]


# =============================================================================
# HELPER FUNCTIONS FOR BUNDLE CREATION
# =============================================================================


def create_empty_input_bundle() -> LiquidityInputBundle:
    """
    Create an empty LiquidityInputBundle for testing.

    Returns a bundle whose line item frame conforms to LINE_ITEM_SCHEMA.
    """
    import polars as pl

    from liquidity_calc.data.schemas import LINE_ITEM_SCHEMA

    return LiquidityInputBundle(line_items=pl.LazyFrame(schema=LINE_ITEM_SCHEMA))
