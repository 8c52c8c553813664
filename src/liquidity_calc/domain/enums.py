"""
Domain enums for the liquidity calculator.

Defines core enumerations used throughout the calculation pipeline:
- RatioType: LCR vs NSFR
- CategoryFamily: Rule families a line item is categorised within
- HQLALevel: Level 1 / 2A / 2B liquid asset tiers
- FactorType: Flat multiply vs collateral-adjusted formula
- AmountBasis: Which line-item amount a rule measures
- MaturityBucket: FR 2052a maturity buckets
- ValidationStatus: Per-metric and overall verdicts
- UnclassifiedPolicy: How unclassified line items affect a run
- ErrorSeverity / ErrorCategory: Error classification

References:
    12 CFR Part 249 (Regulation WW): Liquidity Risk Measurement Standards
    FR 2052a: Complex Institution Liquidity Monitoring Report
"""

from enum import Enum


class RatioType(Enum):
    """
    Liquidity ratio produced by a calculation run.

    LCR: HQLA / total net cash outflows over a 30-day stress horizon
         (12 CFR 249.10)
    NSFR: Available stable funding / required stable funding
          (12 CFR 249.100)
    """

    LCR = "LCR"
    NSFR = "NSFR"

    @property
    def families(self) -> tuple["CategoryFamily", ...]:
        """Category families that feed this ratio."""
        if self == RatioType.LCR:
            return (CategoryFamily.HQLA, CategoryFamily.OUTFLOW, CategoryFamily.INFLOW)
        return (CategoryFamily.ASF, CategoryFamily.RSF)


class CategoryFamily(Enum):
    """
    Family of calculation rules.

    Each line item is assigned at most one rule within each family.
    """

    HQLA = "HQLA"
    OUTFLOW = "OUTFLOW"
    INFLOW = "INFLOW"
    ASF = "ASF"
    RSF = "RSF"

    @property
    def override_column(self) -> str:
        """Line-item column holding a per-item factor override for this family."""
        return _OVERRIDE_COLUMNS[self]


_OVERRIDE_COLUMNS = {
    CategoryFamily.HQLA: "haircut",
    CategoryFamily.OUTFLOW: "runoff_rate",
    CategoryFamily.INFLOW: "inflow_rate",
    CategoryFamily.ASF: "asf_factor",
    CategoryFamily.RSF: "rsf_factor",
}


class HQLALevel(Enum):
    """
    HQLA tiers (12 CFR 249.20).

    Values match the numeric hqla_level carried on line items.
    """

    # Cash, reserves, US Treasuries - no haircut
    LEVEL_1 = 1

    # GSE and qualifying sovereign securities - 15% haircut
    LEVEL_2A = 2

    # Qualifying corporate debt and equities - 50% haircut
    LEVEL_2B = 3

    @property
    def category(self) -> str:
        """Rule category code for this level."""
        return f"HQLA_Level_{self.name.split('_')[1]}"


class FactorType(Enum):
    """
    How a rule turns an aggregate amount into a calculated amount.

    FLAT: calculated = amount x factor
    COLLATERAL_ADJUSTED: per item, max(0, amount - collateral x (1 - collateral haircut))
    """

    FLAT = "flat"
    COLLATERAL_ADJUSTED = "collateral_adjusted"


class AmountBasis(Enum):
    """Line-item amount a rule is applied to."""

    OUTSTANDING_BALANCE = "outstanding_balance"
    PROJECTED_CASH_OUTFLOW = "projected_cash_outflow"
    PROJECTED_CASH_INFLOW = "projected_cash_inflow"


class MaturityBucket(Enum):
    """
    FR 2052a maturity buckets.

    The 30-day LCR horizon covers OVERNIGHT, DAYS_2_7 and DAYS_8_30.
    """

    OVERNIGHT = "overnight"
    DAYS_2_7 = "2-7days"
    DAYS_8_30 = "8-30days"
    DAYS_31_90 = "31-90days"
    DAYS_91_180 = "91-180days"
    DAYS_181_365 = "181-365days"
    GT_1_YEAR = "gt_1year"
    OPEN = "open"


class ValidationStatus(Enum):
    """Outcome of comparing a calculated figure with its reported value."""

    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"


class UnclassifiedPolicy(Enum):
    """
    Treatment of line items that match no rule in the run.

    WARN: Exclude the items and flag the run as a warning
    REJECT: Fail the run once the unclassified share exceeds the configured limit
    """

    WARN = "warn"
    REJECT = "reject"


class ErrorSeverity(Enum):
    """
    Severity levels for calculation errors.

    Used to classify issues encountered during a liquidity run.
    """

    # Informational note - no effect on status
    INFO = "info"

    # Warning - calculation proceeds
    WARNING = "warning"

    # Error that may affect result accuracy
    ERROR = "error"

    # Critical error that invalidates the run
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """
    Categories for calculation errors.

    Enables filtering and analysis of error types.
    """

    # Missing or invalid input data
    DATA_QUALITY = "data_quality"

    # Violation of regulatory business rules
    BUSINESS_RULE = "business_rule"

    # Schema validation failures
    SCHEMA_VALIDATION = "schema_validation"

    # Configuration issues, including the rule table
    CONFIGURATION = "configuration"

    # Internal calculation errors
    CALCULATION = "calculation"

    # Line item categorisation issues
    CLASSIFICATION = "classification"

    # Variance against reported figures
    VALIDATION = "validation"
