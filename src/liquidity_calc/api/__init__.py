"""
Liquidity Calculator API Module.

Public API for LCR / NSFR calculations providing:
- LiquidityService: Main service facade for calculations
- Request/Response models: Clean interface contracts
- Validation utilities: Data path validation

Usage:
    from liquidity_calc.api import LiquidityService, CalculationRequest
    from datetime import date

    service = LiquidityService()
    response = service.calculate(
        CalculationRequest(
            data_path="/path/to/submission",
            reporting_date=date(2025, 3, 31),
        )
    )

    if response.success:
        print(f"LCR: {response.lcr.ratio}  ({response.lcr.overall_status})")
        print(response.breakdowns["LCR"])
    else:
        for error in response.errors:
            print(f"{error.code}: {error.message}")
"""

from liquidity_calc.api.models import (
    APIError,
    CalculationRequest,
    CalculationResponse,
    PerformanceMetrics,
    RatioSummary,
    ValidationRequest,
    ValidationResponse,
)
from liquidity_calc.api.service import (
    LiquidityService,
    create_service,
    quick_calculate,
)
from liquidity_calc.api.validation import (
    DataPathValidator,
    get_required_files,
    validate_data_path,
)

__all__ = [
    # Service
    "LiquidityService",
    "create_service",
    "quick_calculate",
    # Request models
    "CalculationRequest",
    "ValidationRequest",
    # Response models
    "CalculationResponse",
    "ValidationResponse",
    "RatioSummary",
    "APIError",
    "PerformanceMetrics",
    # Validation
    "DataPathValidator",
    "validate_data_path",
    "get_required_files",
]
