"""
Error conversion utilities for the liquidity calculator API.

convert_to_api_error: Converts internal CalculationError to user-friendly APIError
convert_errors: Batch conversion of error lists
create_api_error: Factory function for creating APIError instances

Provides user-friendly error messages and categorization for UI display.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from liquidity_calc.api.models import APIError

if TYPE_CHECKING:
    from liquidity_calc.contracts.errors import CalculationError


# =============================================================================
# User-Friendly Error Messages
# =============================================================================


ERROR_MESSAGE_OVERRIDES: dict[str, str] = {
    "DQ001": "Required field is missing from the input data",
    "DQ002": "Field contains an invalid value",
    "DQ003": "Field has incorrect data type",
    "DQ004": "Duplicate line item found in data",
    "DQ005": "Amount must not be negative",
    "DQ006": "Encumbered amount exceeds the outstanding balance",
    "DQ007": "Rate or factor override is outside 0% - 100%",
    "DQ008": "Currency is not a supported ISO code",
    "CLS001": "Line item matches no calculation rule and was excluded",
    "CLS002": "Calculation rules conflict for the same line item",
    "CLS003": "Unclassified balances exceed the permitted share",
    "FAC001": "Calculation rule has no factor for this line item",
    "FAC002": "Secured line item is missing collateral data",
    "RAT001": "LCR is undefined because net cash outflows are zero",
    "RAT002": "NSFR is undefined because required stable funding is zero",
    "CFG001": "Invalid configuration parameter",
    "CFG002": "Calculation rule table is invalid",
}


CATEGORY_DISPLAY_NAMES: dict[str, str] = {
    "data_quality": "Data Quality",
    "business_rule": "Business Rule",
    "schema_validation": "Schema Validation",
    "configuration": "Configuration",
    "calculation": "Calculation",
    "classification": "Classification",
    "validation": "Variance Validation",
}


# =============================================================================
# Conversion Functions
# =============================================================================


def convert_to_api_error(error: CalculationError) -> APIError:
    """
    Convert internal CalculationError to user-friendly APIError.

    Args:
        error: Internal CalculationError from calculation pipeline

    Returns:
        APIError with user-friendly message and details
    """
    return APIError(
        code=error.code,
        message=_get_user_friendly_message(error),
        severity=error.severity.value,
        category=CATEGORY_DISPLAY_NAMES.get(error.category.value, error.category.value),
        details=_build_error_details(error),
    )


def convert_errors(errors: list[CalculationError]) -> list[APIError]:
    """
    Convert a list of CalculationErrors to APIErrors.

    Identical errors (e.g. a data quality finding attached to both the
    LCR and the NSFR run) are reported once.
    """
    return [convert_to_api_error(error) for error in dict.fromkeys(errors)]


def create_api_error(
    code: str,
    message: str,
    severity: str = "error",
    category: str = "Calculation",
    **details: str | None,
) -> APIError:
    """
    Factory function to create APIError with optional details.

    Args:
        code: Error code
        message: Error message
        severity: Error severity (info, warning, error, critical)
        category: Error category
        **details: Additional context (line_item_reference, field_name, etc.)

    Returns:
        APIError instance
    """
    filtered_details = {k: v for k, v in details.items() if v is not None}
    return APIError(
        code=code,
        message=message,
        severity=severity,
        category=category,
        details=filtered_details,
    )


# =============================================================================
# Helper Functions
# =============================================================================


def _get_user_friendly_message(error: CalculationError) -> str:
    """
    Get user-friendly message for an error.

    Uses override if available, otherwise falls back to original message.
    """
    base_message = ERROR_MESSAGE_OVERRIDES.get(error.code, error.message)

    context_parts = []
    if error.line_item_reference:
        context_parts.append(f"Line item: {error.line_item_reference}")
    if error.rule_code:
        context_parts.append(f"Rule: {error.rule_code}")
    if error.field_name:
        context_parts.append(f"Field: {error.field_name}")
    if error.actual_value and error.expected_value:
        context_parts.append(f"Expected {error.expected_value}, got {error.actual_value}")

    if context_parts:
        return f"{base_message} ({', '.join(context_parts)})"
    return base_message


def _build_error_details(error: CalculationError) -> dict:
    """
    Build details dictionary from error attributes.

    Only includes non-None values; the original message is always kept.
    """
    details = {"message": error.message}

    if error.line_item_reference:
        details["line_item_reference"] = error.line_item_reference
    if error.rule_code:
        details["rule_code"] = error.rule_code
    if error.regulatory_reference:
        details["regulatory_reference"] = error.regulatory_reference
    if error.field_name:
        details["field_name"] = error.field_name
    if error.expected_value:
        details["expected_value"] = error.expected_value
    if error.actual_value:
        details["actual_value"] = error.actual_value

    return details


def create_path_error(message: str, path: str | None = None) -> APIError:
    """
    Create an error for data path validation failures.

    Args:
        message: Error message
        path: Optional file path

    Returns:
        APIError for validation failure
    """
    details = {"path": path} if path else {}
    return APIError(
        code="PATH001",
        message=message,
        severity="error",
        category="Data Path",
        details=details,
    )


def create_file_not_found_error(file_path: str) -> APIError:
    """
    Create an error for missing required file.

    Args:
        file_path: Path to missing file

    Returns:
        APIError for missing file
    """
    return APIError(
        code="PATH002",
        message=f"Required file not found: {file_path}",
        severity="error",
        category="Data Path",
        details={"path": file_path},
    )


def create_load_error(message: str, source: str | None = None) -> APIError:
    """
    Create an error for data loading failures.

    Args:
        message: Error message
        source: Optional source file

    Returns:
        APIError for load failure
    """
    details = {"source": source} if source else {}
    return APIError(
        code="LOAD001",
        message=f"Failed to load data: {message}",
        severity="critical",
        category="Data Loading",
        details=details,
    )
