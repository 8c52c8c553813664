"""
Error handling contracts for the liquidity calculator.

Provides structured error representation:
- CalculationError: Immutable error details with regulatory references
- AmbiguousClassificationError / RuleRegistryError: Exceptions for
  configuration problems that stop a run

This approach enables:
- Error accumulation without exceptions (process every line item)
- Full audit trail of excluded and unclassified items
- Regulatory reference tracking for compliance reporting
- Severity-based filtering for reporting and alerting
"""

from __future__ import annotations

from dataclasses import dataclass

from liquidity_calc.domain.enums import ErrorCategory, ErrorSeverity


@dataclass(frozen=True)
class CalculationError:
    """
    Immutable representation of a calculation error or warning.

    Attributes:
        code: Unique error code (e.g., "CLS001", "RAT001")
              Format: {COMPONENT}{NUMBER} where COMPONENT is 2-3 chars
        message: Human-readable description of the issue
        severity: Error severity level (INFO, WARNING, ERROR, CRITICAL)
        category: Error category for filtering (DATA_QUALITY, CLASSIFICATION, etc.)
        line_item_reference: Optional product_id of the affected line item
        rule_code: Optional calculation rule involved
        regulatory_reference: Optional regulatory citation (e.g., "12 CFR 249.21")
        field_name: Optional name of the problematic field
        expected_value: Optional description of expected value/format
        actual_value: Optional actual value that caused the error
    """

    code: str
    message: str
    severity: ErrorSeverity
    category: ErrorCategory
    line_item_reference: str | None = None
    rule_code: str | None = None
    regulatory_reference: str | None = None
    field_name: str | None = None
    expected_value: str | None = None
    actual_value: str | None = None

    def __str__(self) -> str:
        """Human-readable error representation."""
        parts = [f"[{self.code}] {self.severity.value.upper()}: {self.message}"]

        if self.line_item_reference:
            parts.append(f"Line item: {self.line_item_reference}")
        if self.rule_code:
            parts.append(f"Rule: {self.rule_code}")
        if self.regulatory_reference:
            parts.append(f"Ref: {self.regulatory_reference}")

        return " | ".join(parts)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "line_item_reference": self.line_item_reference,
            "rule_code": self.rule_code,
            "regulatory_reference": self.regulatory_reference,
            "field_name": self.field_name,
            "expected_value": self.expected_value,
            "actual_value": self.actual_value,
        }


# =============================================================================
# EXCEPTIONS
# =============================================================================


class RuleRegistryError(ValueError):
    """Raised when the rule table is structurally invalid."""

    def __init__(self, message: str, rule_code: str | None = None) -> None:
        self.rule_code = rule_code
        super().__init__(message + (f" (rule: {rule_code})" if rule_code else ""))


class AmbiguousClassificationError(Exception):
    """
    Raised when equally specific rules in one family match the same line item.

    Attributes:
        family: Rule family the conflict occurred in
        rule_codes: Conflicting rule codes, sorted
        line_item_references: Affected line items (truncated for display)
    """

    def __init__(
        self,
        family: str,
        rule_codes: list[str],
        line_item_references: list[str],
    ) -> None:
        self.family = family
        self.rule_codes = sorted(set(rule_codes))
        self.line_item_references = line_item_references
        shown = ", ".join(line_item_references[:5])
        more = len(line_item_references) - 5
        suffix = f" (+{more} more)" if more > 0 else ""
        super().__init__(
            f"Ambiguous {family} classification: rules {', '.join(self.rule_codes)} "
            f"match with equal specificity for line items {shown}{suffix}"
        )


# =============================================================================
# ERROR CODE CONSTANTS
# =============================================================================

# Data quality error codes
ERROR_MISSING_FIELD = "DQ001"
ERROR_INVALID_VALUE = "DQ002"
ERROR_TYPE_MISMATCH = "DQ003"
ERROR_DUPLICATE_KEY = "DQ004"
ERROR_NEGATIVE_AMOUNT = "DQ005"
ERROR_ENCUMBRANCE_EXCEEDS_BALANCE = "DQ006"
ERROR_RATE_OUT_OF_RANGE = "DQ007"
ERROR_INVALID_CURRENCY = "DQ008"

# Classification error codes
ERROR_UNCLASSIFIED_ITEM = "CLS001"
ERROR_AMBIGUOUS_CLASSIFICATION = "CLS002"
ERROR_UNCLASSIFIED_LIMIT = "CLS003"

# Factor application error codes
ERROR_MISSING_FACTOR = "FAC001"
ERROR_MISSING_COLLATERAL = "FAC002"

# Ratio error codes
ERROR_ZERO_NET_CASH_OUTFLOWS = "RAT001"
ERROR_ZERO_REQUIRED_STABLE_FUNDING = "RAT002"

# Validation error codes
ERROR_VARIANCE_FAILED = "VAL001"
ERROR_VARIANCE_WARNING = "VAL002"

# Configuration error codes
ERROR_INVALID_CONFIG = "CFG001"
ERROR_INVALID_RULE = "CFG002"


# =============================================================================
# ERROR FACTORY FUNCTIONS
# =============================================================================


def missing_field_error(
    field_name: str,
    line_item_reference: str | None = None,
) -> CalculationError:
    """Create a missing field error."""
    return CalculationError(
        code=ERROR_MISSING_FIELD,
        message=f"Required field '{field_name}' is missing or null",
        severity=ErrorSeverity.ERROR,
        category=ErrorCategory.DATA_QUALITY,
        line_item_reference=line_item_reference,
        field_name=field_name,
    )


def invalid_value_error(
    field_name: str,
    actual_value: str,
    expected_value: str,
    line_item_reference: str | None = None,
    code: str = ERROR_INVALID_VALUE,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
) -> CalculationError:
    """Create an invalid value error."""
    return CalculationError(
        code=code,
        message=f"Invalid value for '{field_name}': expected {expected_value}, got {actual_value}",
        severity=severity,
        category=ErrorCategory.DATA_QUALITY,
        line_item_reference=line_item_reference,
        field_name=field_name,
        expected_value=expected_value,
        actual_value=actual_value,
    )


def classification_error(
    code: str,
    message: str,
    severity: ErrorSeverity = ErrorSeverity.WARNING,
    line_item_reference: str | None = None,
    rule_code: str | None = None,
) -> CalculationError:
    """Create a categorisation error or warning."""
    return CalculationError(
        code=code,
        message=message,
        severity=severity,
        category=ErrorCategory.CLASSIFICATION,
        line_item_reference=line_item_reference,
        rule_code=rule_code,
    )


def business_rule_error(
    code: str,
    message: str,
    rule_code: str | None = None,
    regulatory_reference: str | None = None,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
) -> CalculationError:
    """Create a business rule violation error."""
    return CalculationError(
        code=code,
        message=message,
        severity=severity,
        category=ErrorCategory.BUSINESS_RULE,
        rule_code=rule_code,
        regulatory_reference=regulatory_reference,
    )


def variance_error(
    code: str,
    metric: str,
    calculated: float | None,
    expected: float,
    severity: ErrorSeverity,
) -> CalculationError:
    """Create a variance error for a metric outside tolerance."""
    shown = "undefined" if calculated is None else f"{calculated:,.4f}"
    return CalculationError(
        code=code,
        message=f"Metric '{metric}' differs from reported value: calculated {shown}, reported {expected:,.4f}",
        severity=severity,
        category=ErrorCategory.VALIDATION,
        field_name=metric,
        expected_value=f"{expected:.6f}",
        actual_value=shown,
    )
