"""
Variance validation of calculated liquidity figures.

Compares every calculated metric (category totals, stage totals and the
final ratio) against a previously reported value:

- passed: |variance| <= min(absolute tolerance, relative tolerance x |reported|)
- failed: outside tolerance and beyond the failure band
  (max(failure band x |reported|, absolute tolerance)), or, for the
  ratio, the calculated and reported ratios sit on different sides of
  the compliance threshold
- warning: outside tolerance but within the failure band

A metric without a reported value passes with an informational note.
An undefined ratio always fails.

Overall status: failed if any metric failed or a critical error was raised,
else warning if any metric warned or any warning was raised, else passed.

Classes:
    RatioValidator: Implements ValidatorProtocol
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from liquidity_calc.contracts.bundles import MetricValidation
from liquidity_calc.contracts.errors import (
    ERROR_VARIANCE_FAILED,
    ERROR_VARIANCE_WARNING,
    CalculationError,
    variance_error,
)
from liquidity_calc.domain.enums import ErrorSeverity, ValidationStatus
from liquidity_calc.engine.ratios import undefined_ratio_error

if TYPE_CHECKING:
    from liquidity_calc.contracts.bundles import RatioResult
    from liquidity_calc.contracts.config import ToleranceConfig

NOTE_NO_EXPECTED = "No expected value reported"
NOTE_WITHIN_TOLERANCE = "Within tolerance"
NOTE_UNDEFINED_RATIO = "Ratio undefined: zero denominator"
NOTE_NOT_CALCULATED = "Reported metric was not produced by the calculation"
NOTE_COMPLIANCE_FLIP = "Calculated and reported ratios disagree on compliance"
NOTE_OUTSIDE_BAND = "Variance exceeds the failure band"
NOTE_OUTSIDE_TOLERANCE = "Variance outside tolerance"


class RatioValidator:
    """Compare calculated metrics with reported values."""

    def validate_metrics(
        self,
        calculated: dict[str, float | None],
        expected: dict[str, float],
        ratio_metric: str,
        tolerances: ToleranceConfig,
    ) -> tuple[MetricValidation, ...]:
        """
        Validate every calculated metric, then any reported-only metrics.

        Args:
            calculated: Calculated values in reporting order
            expected: Reported values keyed by metric name
            ratio_metric: Name of the final ratio metric (e.g. "lcr_ratio")
            tolerances: Tolerance bands

        Returns:
            Tuple of MetricValidation in calculated order
        """
        results = []
        for metric, value in calculated.items():
            reported = expected.get(metric)
            if metric == ratio_metric:
                results.append(self._validate_ratio(metric, value, reported, tolerances))
            else:
                results.append(self._validate_amount(metric, value, reported, tolerances))

        for metric in sorted(set(expected) - set(calculated)):
            results.append(
                MetricValidation(
                    metric=metric,
                    calculated=None,
                    expected=expected[metric],
                    variance=None,
                    status=ValidationStatus.WARNING,
                    note=NOTE_NOT_CALCULATED,
                )
            )
        return tuple(results)

    def _validate_amount(
        self,
        metric: str,
        value: float | None,
        reported: float | None,
        tolerances: ToleranceConfig,
    ) -> MetricValidation:
        if reported is None:
            return MetricValidation(metric, value, None, None, ValidationStatus.PASSED, NOTE_NO_EXPECTED)

        calculated = value or 0.0
        variance = calculated - reported
        absolute = float(tolerances.absolute_tolerance)
        tolerance = min(absolute, float(tolerances.relative_tolerance) * abs(reported))
        if abs(variance) <= tolerance:
            status, note = ValidationStatus.PASSED, NOTE_WITHIN_TOLERANCE
        else:
            band = max(float(tolerances.failure_relative_band) * abs(reported), absolute)
            if abs(variance) > band:
                status, note = ValidationStatus.FAILED, NOTE_OUTSIDE_BAND
            else:
                status, note = ValidationStatus.WARNING, NOTE_OUTSIDE_TOLERANCE

        return MetricValidation(metric, calculated, reported, variance, status, note)

    def _validate_ratio(
        self,
        metric: str,
        value: float | None,
        reported: float | None,
        tolerances: ToleranceConfig,
    ) -> MetricValidation:
        if value is None:
            return MetricValidation(
                metric, None, reported, None, ValidationStatus.FAILED, NOTE_UNDEFINED_RATIO
            )
        if reported is None:
            return MetricValidation(metric, value, None, None, ValidationStatus.PASSED, NOTE_NO_EXPECTED)

        variance = value - reported
        if abs(variance) <= float(tolerances.ratio_tolerance):
            status, note = ValidationStatus.PASSED, NOTE_WITHIN_TOLERANCE
        else:
            threshold = float(tolerances.compliance_threshold)
            if (value >= threshold) != (reported >= threshold):
                status, note = ValidationStatus.FAILED, NOTE_COMPLIANCE_FLIP
            elif abs(variance) > float(tolerances.ratio_failure_band):
                status, note = ValidationStatus.FAILED, NOTE_OUTSIDE_BAND
            else:
                status, note = ValidationStatus.WARNING, NOTE_OUTSIDE_TOLERANCE

        return MetricValidation(metric, value, reported, variance, status, note)

    def variance_errors(
        self,
        metrics: tuple[MetricValidation, ...],
    ) -> list[CalculationError]:
        """VAL001 / VAL002 errors for reported metrics outside tolerance."""
        errors = []
        for m in metrics:
            if m.expected is None or m.status == ValidationStatus.PASSED:
                continue
            if m.status == ValidationStatus.FAILED:
                code, severity = ERROR_VARIANCE_FAILED, ErrorSeverity.ERROR
            else:
                code, severity = ERROR_VARIANCE_WARNING, ErrorSeverity.WARNING
            errors.append(variance_error(code, m.metric, m.calculated, m.expected, severity))
        return errors

    def overall_status(
        self,
        metrics: tuple[MetricValidation, ...],
        ratio: RatioResult,
        errors: list[CalculationError],
    ) -> tuple[ValidationStatus, tuple[str, ...]]:
        """
        Derive the overall status and the reason codes behind it.

        Returns:
            (status, reason_codes) with codes de-duplicated in first-seen order
        """
        failed: list[str] = [e.code for e in errors if e.severity == ErrorSeverity.CRITICAL]
        if any(
            m.status == ValidationStatus.FAILED and m.expected is not None and m.calculated is not None
            for m in metrics
        ):
            failed.append(ERROR_VARIANCE_FAILED)
        undefined = undefined_ratio_error(ratio)
        if undefined is not None and undefined.code not in failed:
            failed.append(undefined.code)
        if failed:
            return ValidationStatus.FAILED, tuple(dict.fromkeys(failed))

        warned: list[str] = [
            e.code
            for e in errors
            if e.severity in (ErrorSeverity.WARNING, ErrorSeverity.ERROR)
        ]
        if any(m.status == ValidationStatus.WARNING for m in metrics):
            warned.append(ERROR_VARIANCE_WARNING)
        if warned:
            return ValidationStatus.WARNING, tuple(dict.fromkeys(warned))

        return ValidationStatus.PASSED, ()


def create_validator() -> RatioValidator:
    """Create a RatioValidator instance."""
    return RatioValidator()
