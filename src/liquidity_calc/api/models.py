"""
API request and response models for the liquidity calculator.

LiquidityService uses these models for clean interface contracts:
- CalculationRequest: Input parameters for an LCR / NSFR calculation
- ValidationRequest: Input for data path validation
- CalculationResponse: Ratio summaries, breakdowns and verdicts
- ValidationResponse: Data path validation results

All models are frozen dataclasses following existing project patterns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    import polars as pl


# =============================================================================
# Request Models
# =============================================================================


@dataclass(frozen=True)
class CalculationRequest:
    """
    Request model for a liquidity calculation.

    Encapsulates all parameters needed to run a calculation,
    providing a clean API surface for callers.

    Attributes:
        data_path: Path to directory containing input data files
        reporting_date: As-of date for the calculation
        submission_id: Submission the line items are scoped to (optional)
        legal_entity_id: Legal entity the line items are scoped to (optional)
        ratio_types: Ratios to calculate
        data_format: Format of input files ("parquet" or "csv")
        tolerance_profile: "standard" or "strict" variance tolerances
        unclassified_policy: "warn" (default) or "reject"
        max_unclassified_share: Share of balances that may be unclassified
            before a "reject" policy fails the run
    """

    data_path: str | Path
    reporting_date: date
    submission_id: str | None = None
    legal_entity_id: str | None = None
    ratio_types: tuple[Literal["LCR", "NSFR"], ...] = ("LCR", "NSFR")
    data_format: Literal["parquet", "csv"] = "parquet"
    tolerance_profile: Literal["standard", "strict"] = "standard"
    unclassified_policy: Literal["warn", "reject"] = "warn"
    max_unclassified_share: Decimal = field(default_factory=lambda: Decimal("0"))

    @property
    def path(self) -> Path:
        """Get data_path as Path object."""
        return Path(self.data_path)


@dataclass(frozen=True)
class ValidationRequest:
    """
    Request model for data path validation.

    Used to check if a data directory contains the required files
    before running a calculation.

    Attributes:
        data_path: Path to directory to validate
        data_format: Expected format of files ("parquet" or "csv")
    """

    data_path: str | Path
    data_format: Literal["parquet", "csv"] = "parquet"

    @property
    def path(self) -> Path:
        """Get data_path as Path object."""
        return Path(self.data_path)


# =============================================================================
# Response Models - Ratio Summary
# =============================================================================


@dataclass(frozen=True)
class RatioSummary:
    """
    Headline figures for one ratio run.

    Attributes:
        ratio_type: "LCR" or "NSFR"
        run_id: Identifier of the run
        ratio: Final ratio (None when undefined)
        numerator: Total HQLA or total ASF
        denominator: Net cash outflows or total RSF
        is_compliant: Ratio at or above 100%
        overall_status: "passed", "warning" or "failed"
        reason_codes: Error codes behind a non-passed status
        unclassified_amount: Balance of line items matching no rule
        unclassified_count: Number of unclassified line items
        cap_flags: Cap applied flags (LCR only)
    """

    ratio_type: str
    run_id: str
    ratio: Decimal | None
    numerator: Decimal
    denominator: Decimal
    is_compliant: bool
    overall_status: str
    reason_codes: tuple[str, ...] = ()
    unclassified_amount: Decimal = field(default_factory=lambda: Decimal("0"))
    unclassified_count: int = 0
    cap_flags: dict[str, bool] = field(default_factory=dict)

    @property
    def ratio_percent(self) -> Decimal | None:
        """Ratio expressed as a percentage."""
        if self.ratio is None:
            return None
        return self.ratio * 100


# =============================================================================
# Response Models - Errors
# =============================================================================


@dataclass(frozen=True)
class APIError:
    """
    User-friendly error representation for API responses.

    Converts internal CalculationError to a format suitable
    for UI display and logging.

    Attributes:
        code: Error code (e.g., "CLS001")
        message: User-friendly error message
        severity: Error severity ("info", "warning", "error", "critical")
        category: Error category for grouping
        details: Additional context (line_item_reference, rule_code, etc.)
    """

    code: str
    message: str
    severity: Literal["info", "warning", "error", "critical"]
    category: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"[{self.code}] {self.severity.upper()}: {self.message}"


# =============================================================================
# Response Models - Performance
# =============================================================================


@dataclass(frozen=True)
class PerformanceMetrics:
    """
    Performance metrics for the calculation.

    Attributes:
        started_at: Calculation start timestamp
        completed_at: Calculation end timestamp
        duration_seconds: Total calculation time in seconds
        line_item_count: Number of line items loaded
    """

    started_at: datetime
    completed_at: datetime
    duration_seconds: float
    line_item_count: int

    @property
    def line_items_per_second(self) -> float:
        """Calculate processing throughput."""
        if self.duration_seconds > 0:
            return self.line_item_count / self.duration_seconds
        return 0.0


# =============================================================================
# Response Models - Main Responses
# =============================================================================


@dataclass(frozen=True)
class CalculationResponse:
    """
    Response model for liquidity calculation results.

    Attributes:
        success: Whether every requested run completed without critical errors
        reporting_date: As-of date for the calculation
        submission_id: Submission the calculation was scoped to
        summaries: Headline figures keyed by ratio type
        breakdowns: Component breakdown DataFrames keyed by ratio type
        validations: ValidationResult dictionaries keyed by ratio type
        errors: Errors and warnings across the whole calculation
        performance: Performance metrics for the calculation
    """

    success: bool
    reporting_date: date
    submission_id: str | None = None
    summaries: dict[str, RatioSummary] = field(default_factory=dict)
    breakdowns: dict[str, pl.DataFrame] = field(default_factory=dict)
    validations: dict[str, dict[str, Any]] = field(default_factory=dict)
    errors: list[APIError] = field(default_factory=list)
    performance: PerformanceMetrics | None = None

    @property
    def lcr(self) -> RatioSummary | None:
        return self.summaries.get("LCR")

    @property
    def nsfr(self) -> RatioSummary | None:
        return self.summaries.get("NSFR")

    @property
    def has_warnings(self) -> bool:
        """Check if there are any warnings."""
        return any(e.severity == "warning" for e in self.errors)

    @property
    def has_errors(self) -> bool:
        """Check if there are any errors (not warnings)."""
        return any(e.severity in ("error", "critical") for e in self.errors)

    @property
    def warning_count(self) -> int:
        """Count of warnings."""
        return sum(1 for e in self.errors if e.severity == "warning")

    @property
    def error_count(self) -> int:
        """Count of errors (not warnings)."""
        return sum(1 for e in self.errors if e.severity in ("error", "critical"))


@dataclass(frozen=True)
class ValidationResponse:
    """
    Response model for data path validation.

    Reports whether a data directory is valid and contains
    all required files for calculation.

    Attributes:
        valid: Whether the data path is valid for calculation
        data_path: The validated path
        files_found: List of required and optional files that were found
        files_missing: List of required files that are missing
        errors: List of validation errors
    """

    valid: bool
    data_path: str
    files_found: list[str] = field(default_factory=list)
    files_missing: list[str] = field(default_factory=list)
    errors: list[APIError] = field(default_factory=list)

    @property
    def missing_count(self) -> int:
        """Count of missing files."""
        return len(self.files_missing)

    @property
    def found_count(self) -> int:
        """Count of found files."""
        return len(self.files_found)
