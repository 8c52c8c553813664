"""
Liquidity Calculator API Service.

LiquidityService provides a clean facade for LCR / NSFR calculations:
- calculate: Run a calculation for a submission directory
- validate_data_path: Check data directory before calculation
- get_supported_ratios: List available ratios
- get_default_config: Get default configuration values

This is the main entry point for UI and CLI integration.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import polars as pl

from liquidity_calc.api.errors import create_load_error
from liquidity_calc.api.formatters import ResultFormatter
from liquidity_calc.api.models import (
    CalculationRequest,
    CalculationResponse,
    ValidationRequest,
    ValidationResponse,
)
from liquidity_calc.api.validation import DataPathValidator
from liquidity_calc.engine.loader import DataLoadError

if TYPE_CHECKING:
    from liquidity_calc.contracts.config import CalculationConfig
    from liquidity_calc.contracts.protocols import LoaderProtocol, RunStoreProtocol
    from liquidity_calc.engine.pipeline import PipelineOrchestrator

logger = logging.getLogger(__name__)


# =============================================================================
# Liquidity Service
# =============================================================================


class LiquidityService:
    """
    High-level service for liquidity ratio calculations.

    Wraps the PipelineOrchestrator with a clean API surface suitable
    for UI integration. Handles configuration setup, data loading,
    and result formatting. Runs from every call are recorded in the
    service's run history, so reruns accumulate rather than replace.

    Usage:
        from liquidity_calc.api import LiquidityService, CalculationRequest
        from datetime import date

        service = LiquidityService()
        response = service.calculate(
            CalculationRequest(
                data_path="/path/to/submission",
                reporting_date=date(2025, 3, 31),
                submission_id="SUB-001",
            )
        )

        if response.success:
            print(f"LCR: {response.lcr.ratio_percent:.1f}%")
    """

    def __init__(self, history: RunStoreProtocol | None = None) -> None:
        """
        Initialize LiquidityService with default components.

        Args:
            history: Run store shared by every calculation of this service
                (defaults to an in-memory RunHistory)
        """
        from liquidity_calc.engine.history import RunHistory

        self._validator = DataPathValidator()
        self._formatter = ResultFormatter()
        self._history = history if history is not None else RunHistory()

    @property
    def history(self) -> RunStoreProtocol:
        return self._history

    def calculate(self, request: CalculationRequest) -> CalculationResponse:
        """
        Run a liquidity calculation with the specified parameters.

        Args:
            request: CalculationRequest with all parameters

        Returns:
            CalculationResponse with results or errors
        """
        from liquidity_calc.domain.enums import RatioType

        started_at = datetime.now()

        validation = self._validator.validate(
            ValidationRequest(
                data_path=request.data_path,
                data_format=request.data_format,
            )
        )
        if not validation.valid:
            return self._formatter.format_error_response(
                errors=validation.errors,
                reporting_date=request.reporting_date,
                submission_id=request.submission_id,
                started_at=started_at,
            )

        try:
            config = self._create_config(request)
            data = self._create_loader(request).load()
            line_item_count = data.line_items.select(pl.len()).collect().item()
            pipeline = self._create_pipeline()

            bundle = pipeline.run_with_data(
                data,
                config,
                tuple(RatioType(r) for r in request.ratio_types),
            )
        except (DataLoadError, pl.exceptions.PolarsError, ValueError) as e:
            logger.error("Calculation for %s failed: %s", request.data_path, e)
            return self._formatter.format_error_response(
                errors=[create_load_error(str(e), getattr(e, "source", None))],
                reporting_date=request.reporting_date,
                submission_id=request.submission_id,
                started_at=started_at,
            )

        return self._formatter.format_response(
            bundle=bundle,
            reporting_date=request.reporting_date,
            submission_id=request.submission_id,
            started_at=started_at,
            line_item_count=line_item_count,
        )

    def validate_data_path(self, request: ValidationRequest) -> ValidationResponse:
        """
        Validate a data path for calculation readiness.

        Args:
            request: ValidationRequest with path and format

        Returns:
            ValidationResponse with validation results
        """
        return self._validator.validate(request)

    def get_supported_ratios(self) -> list[dict[str, str]]:
        """
        Get list of supported liquidity ratios.

        Returns:
            List of ratio descriptors with id, name, and description
        """
        return [
            {
                "id": "LCR",
                "name": "Liquidity Coverage Ratio",
                "description": "HQLA / net cash outflows over 30 days - 12 CFR 249.10",
            },
            {
                "id": "NSFR",
                "name": "Net Stable Funding Ratio",
                "description": "Available / required stable funding - 12 CFR 249.100",
            },
        ]

    def get_default_config(self, reporting_date: date) -> dict:
        """
        Get default configuration values.

        Args:
            reporting_date: As-of date for calculation

        Returns:
            Dictionary of default configuration values
        """
        from liquidity_calc.contracts.config import CalculationConfig

        config = CalculationConfig.us_liquidity(reporting_date=reporting_date)

        return {
            "reporting_date": config.reporting_date.isoformat(),
            "level2a_max_share": str(config.hqla_caps.level2a_max_share),
            "level2b_max_share": str(config.hqla_caps.level2b_max_share),
            "inflow_cap_ratio": str(config.cash_flow_caps.inflow_cap_ratio),
            "net_outflow_floor_ratio": str(config.cash_flow_caps.net_outflow_floor_ratio),
            "tolerances": {
                "absolute": str(config.tolerances.absolute_tolerance),
                "relative": str(config.tolerances.relative_tolerance),
                "ratio": str(config.tolerances.ratio_tolerance),
            },
            "compliance_threshold": str(config.compliance_threshold),
            "unclassified_policy": config.unclassified.policy.value,
        }

    def _create_config(self, request: CalculationRequest) -> CalculationConfig:
        """
        Create CalculationConfig from request parameters.

        Args:
            request: CalculationRequest with parameters

        Returns:
            Configured CalculationConfig
        """
        from liquidity_calc.contracts.config import (
            CalculationConfig,
            ToleranceConfig,
            UnclassifiedItemsConfig,
        )

        tolerances = (
            ToleranceConfig.strict()
            if request.tolerance_profile == "strict"
            else ToleranceConfig.standard()
        )
        unclassified = (
            UnclassifiedItemsConfig.reject(Decimal(request.max_unclassified_share))
            if request.unclassified_policy == "reject"
            else UnclassifiedItemsConfig.warn()
        )

        return CalculationConfig.us_liquidity(
            reporting_date=request.reporting_date,
            submission_id=request.submission_id,
            tolerances=tolerances,
            unclassified=unclassified,
            legal_entity_id=request.legal_entity_id,
        )

    def _create_loader(self, request: CalculationRequest) -> LoaderProtocol:
        """
        Create data loader based on request format.

        Args:
            request: CalculationRequest with data path and format

        Returns:
            Appropriate loader instance
        """
        from liquidity_calc.engine.loader import create_loader

        return create_loader(request.path, request.data_format)

    def _create_pipeline(self) -> PipelineOrchestrator:
        """Create a pipeline orchestrator recording into the service history."""
        from liquidity_calc.engine.pipeline import PipelineOrchestrator

        return PipelineOrchestrator(history=self._history)


# =============================================================================
# Convenience Functions
# =============================================================================


def create_service(history: RunStoreProtocol | None = None) -> LiquidityService:
    """
    Factory function to create LiquidityService instance.

    Returns:
        Configured LiquidityService
    """
    return LiquidityService(history=history)


def quick_calculate(
    data_path: str | Path,
    reporting_date: date | None = None,
    submission_id: str | None = None,
    data_format: Literal["parquet", "csv"] = "parquet",
) -> CalculationResponse:
    """
    Run a quick LCR and NSFR calculation with minimal configuration.

    Args:
        data_path: Path to data directory
        reporting_date: As-of date (defaults to today)
        submission_id: Submission to scope line items to
        data_format: Format of input files

    Returns:
        CalculationResponse with results

    Example:
        response = quick_calculate("/path/to/submission")
        print(response.lcr.ratio, response.nsfr.ratio)
    """
    service = LiquidityService()
    request = CalculationRequest(
        data_path=data_path,
        reporting_date=reporting_date or date.today(),
        submission_id=submission_id,
        data_format=data_format,
    )
    return service.calculate(request)
