"""
Result formatting utilities for the liquidity calculator API.

ResultFormatter: Formats LiquidityRunBundle for API responses
summarize_run: Builds a RatioSummary from a CalculationRun
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from liquidity_calc.api.errors import convert_errors
from liquidity_calc.api.models import (
    APIError,
    CalculationResponse,
    PerformanceMetrics,
    RatioSummary,
)
from liquidity_calc.domain.enums import RatioType

if TYPE_CHECKING:
    from liquidity_calc.contracts.bundles import CalculationRun, LiquidityRunBundle


def _to_decimal(value: float | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


# =============================================================================
# Result Formatter
# =============================================================================


class ResultFormatter:
    """
    Formats pipeline results for API responses.

    Handles:
    - Ratio summaries per run
    - Error conversion to API format (de-duplicated across runs)
    - Performance metrics calculation

    Usage:
        formatter = ResultFormatter()
        response = formatter.format_response(
            bundle=run_bundle,
            reporting_date=date(2025, 3, 31),
            submission_id="SUB-001",
            started_at=datetime.now(),
            line_item_count=1200,
        )
    """

    def format_response(
        self,
        bundle: LiquidityRunBundle,
        reporting_date: date,
        submission_id: str | None,
        started_at: datetime,
        line_item_count: int = 0,
    ) -> CalculationResponse:
        """
        Format a LiquidityRunBundle into a CalculationResponse.

        Args:
            bundle: Result bundle from pipeline
            reporting_date: As-of date
            submission_id: Submission the calculation was scoped to
            started_at: Calculation start time
            line_item_count: Number of line items loaded

        Returns:
            CalculationResponse ready for API return
        """
        completed_at = datetime.now()

        runs = bundle.runs
        all_errors = list(bundle.errors)
        for run in runs:
            all_errors.extend(run.validation.errors)
        errors = convert_errors(all_errors)

        has_critical = any(e.severity == "critical" for e in errors)
        success = not has_critical and len(runs) > 0

        return CalculationResponse(
            success=success,
            reporting_date=reporting_date,
            submission_id=submission_id,
            summaries={run.ratio_type.value: summarize_run(run) for run in runs},
            breakdowns={run.ratio_type.value: run.breakdown for run in runs},
            validations={run.ratio_type.value: run.validation.to_dict() for run in runs},
            errors=errors,
            performance=PerformanceMetrics(
                started_at=started_at,
                completed_at=completed_at,
                duration_seconds=(completed_at - started_at).total_seconds(),
                line_item_count=line_item_count,
            ),
        )

    def format_error_response(
        self,
        errors: list[APIError],
        reporting_date: date,
        submission_id: str | None,
        started_at: datetime,
    ) -> CalculationResponse:
        """
        Format an error response when calculation fails.

        Args:
            errors: List of errors that caused failure
            reporting_date: As-of date
            submission_id: Submission that was requested
            started_at: Calculation start time

        Returns:
            CalculationResponse indicating failure
        """
        completed_at = datetime.now()

        return CalculationResponse(
            success=False,
            reporting_date=reporting_date,
            submission_id=submission_id,
            errors=errors,
            performance=PerformanceMetrics(
                started_at=started_at,
                completed_at=completed_at,
                duration_seconds=(completed_at - started_at).total_seconds(),
                line_item_count=0,
            ),
        )


# =============================================================================
# Convenience Functions
# =============================================================================


def summarize_run(run: CalculationRun) -> RatioSummary:
    """
    Headline figures of a run.

    Numerator and denominator are total HQLA and net cash outflows for
    the LCR, total ASF and total RSF for the NSFR.
    """
    v = run.validation
    if run.ratio_type == RatioType.LCR:
        numerator = v.totals.get("total_hqla", 0.0)
        denominator = v.totals.get("net_cash_outflows", 0.0)
    else:
        numerator = v.totals.get("total_asf", 0.0)
        denominator = v.totals.get("total_rsf", 0.0)

    return RatioSummary(
        ratio_type=run.ratio_type.value,
        run_id=run.run_id,
        ratio=_to_decimal(v.ratio),
        numerator=_to_decimal(numerator),
        denominator=_to_decimal(denominator),
        is_compliant=v.is_compliant,
        overall_status=v.overall_status.value,
        reason_codes=v.reason_codes,
        unclassified_amount=_to_decimal(v.unclassified_amount),
        unclassified_count=v.unclassified_count,
        cap_flags=dict(v.cap_flags),
    )
