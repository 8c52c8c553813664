"""Unit tests for the API models module.

Tests cover:
- CalculationRequest dataclass
- ValidationRequest dataclass
- RatioSummary dataclass
- APIError dataclass
- PerformanceMetrics dataclass
- CalculationResponse dataclass
- ValidationResponse dataclass
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from liquidity_calc.api.models import (
    APIError,
    CalculationRequest,
    CalculationResponse,
    PerformanceMetrics,
    RatioSummary,
    ValidationRequest,
    ValidationResponse,
)


# =============================================================================
# Request Tests
# =============================================================================


class TestCalculationRequest:
    """Tests for CalculationRequest dataclass."""

    def test_create_with_required_fields(self) -> None:
        """Request should be created with required fields and defaults."""
        request = CalculationRequest(
            data_path="/path/to/data",
            reporting_date=date(2025, 3, 31),
        )

        assert request.data_path == "/path/to/data"
        assert request.submission_id is None
        assert request.ratio_types == ("LCR", "NSFR")
        assert request.data_format == "parquet"
        assert request.tolerance_profile == "standard"
        assert request.unclassified_policy == "warn"
        assert request.max_unclassified_share == Decimal("0")

    def test_path_property(self) -> None:
        """path should return a Path object."""
        request = CalculationRequest(data_path="/path/to/data", reporting_date=date(2025, 3, 31))

        assert request.path == Path("/path/to/data")

    def test_is_frozen(self) -> None:
        """Request should be immutable."""
        request = CalculationRequest(data_path="/data", reporting_date=date(2025, 3, 31))

        with pytest.raises(FrozenInstanceError):
            request.submission_id = "SUB-1"  # type: ignore[misc]


class TestValidationRequest:
    """Tests for ValidationRequest dataclass."""

    def test_defaults(self) -> None:
        """Format should default to parquet."""
        request = ValidationRequest(data_path=Path("/data"))

        assert request.data_format == "parquet"
        assert request.path == Path("/data")


# =============================================================================
# RatioSummary Tests
# =============================================================================


class TestRatioSummary:
    """Tests for RatioSummary dataclass."""

    def test_ratio_percent(self) -> None:
        """ratio_percent should scale the ratio by 100."""
        summary = RatioSummary(
            ratio_type="LCR",
            run_id="run-1",
            ratio=Decimal("1.21"),
            numerator=Decimal("121"),
            denominator=Decimal("100"),
            is_compliant=True,
            overall_status="passed",
        )

        assert summary.ratio_percent == Decimal("121")
        assert summary.unclassified_count == 0
        assert summary.cap_flags == {}

    def test_undefined_ratio_percent(self) -> None:
        """An undefined ratio has no percentage."""
        summary = RatioSummary(
            ratio_type="NSFR",
            run_id="run-1",
            ratio=None,
            numerator=Decimal("10"),
            denominator=Decimal("0"),
            is_compliant=False,
            overall_status="failed",
            reason_codes=("RAT002",),
        )

        assert summary.ratio_percent is None


# =============================================================================
# APIError Tests
# =============================================================================


class TestAPIError:
    """Tests for APIError dataclass."""

    def test_str(self) -> None:
        """String form should show code, severity and message."""
        error = APIError(
            code="CLS001",
            message="Line item matches no calculation rule",
            severity="warning",
            category="Classification",
        )

        assert str(error) == "[CLS001] WARNING: Line item matches no calculation rule"
        assert error.details == {}


# =============================================================================
# PerformanceMetrics Tests
# =============================================================================


class TestPerformanceMetrics:
    """Tests for PerformanceMetrics dataclass."""

    def test_throughput(self) -> None:
        """Throughput should be line items per second."""
        metrics = PerformanceMetrics(
            started_at=datetime(2025, 3, 31, 9, 0, 0),
            completed_at=datetime(2025, 3, 31, 9, 0, 2),
            duration_seconds=2.0,
            line_item_count=1_000,
        )

        assert metrics.line_items_per_second == 500.0

    def test_zero_duration(self) -> None:
        """Zero duration should not divide by zero."""
        now = datetime(2025, 3, 31)
        metrics = PerformanceMetrics(
            started_at=now, completed_at=now, duration_seconds=0.0, line_item_count=10
        )

        assert metrics.line_items_per_second == 0.0


# =============================================================================
# Response Tests
# =============================================================================


def _error(severity: str) -> APIError:
    return APIError(code="X", message="m", severity=severity, category="Test")


def _summary(ratio_type: str) -> RatioSummary:
    return RatioSummary(
        ratio_type=ratio_type,
        run_id=f"{ratio_type}-run",
        ratio=Decimal("1.5"),
        numerator=Decimal("150"),
        denominator=Decimal("100"),
        is_compliant=True,
        overall_status="passed",
    )


class TestCalculationResponse:
    """Tests for CalculationResponse dataclass."""

    def test_ratio_accessors(self) -> None:
        """lcr / nsfr should look up summaries by ratio type."""
        response = CalculationResponse(
            success=True,
            reporting_date=date(2025, 3, 31),
            summaries={"LCR": _summary("LCR")},
        )

        assert response.lcr.run_id == "LCR-run"
        assert response.nsfr is None

    def test_error_counts(self) -> None:
        """Warnings and errors should be counted separately."""
        response = CalculationResponse(
            success=False,
            reporting_date=date(2025, 3, 31),
            errors=[_error("warning"), _error("warning"), _error("error"), _error("critical")],
        )

        assert response.has_warnings
        assert response.has_errors
        assert response.warning_count == 2
        assert response.error_count == 2

    def test_no_errors(self) -> None:
        """An empty response has no warnings or errors."""
        response = CalculationResponse(success=True, reporting_date=date(2025, 3, 31))

        assert not response.has_warnings
        assert not response.has_errors
        assert response.breakdowns == {}
        assert response.validations == {}


class TestValidationResponse:
    """Tests for ValidationResponse dataclass."""

    def test_counts(self) -> None:
        """Counts should reflect found and missing files."""
        response = ValidationResponse(
            valid=False,
            data_path="/data",
            files_found=["expected_values.parquet"],
            files_missing=["line_items.parquet"],
        )

        assert response.found_count == 1
        assert response.missing_count == 1
