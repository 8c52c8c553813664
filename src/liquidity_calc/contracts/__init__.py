"""
Contracts module for the liquidity calculator.

Provides interfaces, data transfer objects, and validation utilities
for the LCR / NSFR calculation pipeline. This module enables:
- Isolated unit testing of each component
- Clear data flow boundaries between pipeline stages
- Immutable, auditable run records

Submodules:
- bundles: Data transfer dataclasses for pipeline stages
- config: CalculationConfig and related configuration classes
- errors: CalculationError and stage exceptions for error handling
- protocols: Protocol definitions for component interfaces
- validation: Schema validation and line item data quality checks
"""

# Configuration contracts
from liquidity_calc.contracts.config import (
    CalculationConfig,
    CashFlowCapConfig,
    CollateralHaircuts,
    HQLACapConfig,
    ToleranceConfig,
    UnclassifiedItemsConfig,
)

# Error handling contracts
from liquidity_calc.contracts.errors import (
    ERROR_AMBIGUOUS_CLASSIFICATION,
    ERROR_DUPLICATE_KEY,
    ERROR_ENCUMBRANCE_EXCEEDS_BALANCE,
    ERROR_INVALID_CONFIG,
    ERROR_INVALID_CURRENCY,
    ERROR_INVALID_RULE,
    ERROR_INVALID_VALUE,
    ERROR_MISSING_COLLATERAL,
    ERROR_MISSING_FACTOR,
    ERROR_MISSING_FIELD,
    ERROR_NEGATIVE_AMOUNT,
    ERROR_RATE_OUT_OF_RANGE,
    ERROR_TYPE_MISMATCH,
    ERROR_UNCLASSIFIED_ITEM,
    ERROR_UNCLASSIFIED_LIMIT,
    ERROR_VARIANCE_FAILED,
    ERROR_VARIANCE_WARNING,
    ERROR_ZERO_NET_CASH_OUTFLOWS,
    ERROR_ZERO_REQUIRED_STABLE_FUNDING,
    AmbiguousClassificationError,
    CalculationError,
    RuleRegistryError,
    business_rule_error,
    classification_error,
    invalid_value_error,
    missing_field_error,
    variance_error,
)

# Data bundle contracts
from liquidity_calc.contracts.bundles import (
    AggregatedBundle,
    CalculationRun,
    CashFlowCapResult,
    CategorizedBundle,
    HQLACapResult,
    LiquidityInputBundle,
    LiquidityRunBundle,
    MetricValidation,
    RatioResult,
    ValidationResult,
    create_empty_input_bundle,
)

# Protocol definitions
from liquidity_calc.contracts.protocols import (
    AggregatorProtocol,
    CategorizerProtocol,
    DataQualityCheckerProtocol,
    FactorApplierProtocol,
    LoaderProtocol,
    PipelineProtocol,
    RunStoreProtocol,
    ValidatorProtocol,
)

# Validation utilities
from liquidity_calc.contracts.validation import (
    LineItemQualityChecker,
    check_line_item_quality,
    validate_input_bundle,
    validate_non_negative_amounts,
    validate_rate_range,
    validate_schema_to_errors,
)

__all__ = [
    # Configuration
    "CalculationConfig",
    "CashFlowCapConfig",
    "CollateralHaircuts",
    "HQLACapConfig",
    "ToleranceConfig",
    "UnclassifiedItemsConfig",
    # Errors
    "AmbiguousClassificationError",
    "CalculationError",
    "RuleRegistryError",
    "business_rule_error",
    "classification_error",
    "invalid_value_error",
    "missing_field_error",
    "variance_error",
    # Error codes
    "ERROR_AMBIGUOUS_CLASSIFICATION",
    "ERROR_DUPLICATE_KEY",
    "ERROR_ENCUMBRANCE_EXCEEDS_BALANCE",
    "ERROR_INVALID_CONFIG",
    "ERROR_INVALID_CURRENCY",
    "ERROR_INVALID_RULE",
    "ERROR_INVALID_VALUE",
    "ERROR_MISSING_COLLATERAL",
    "ERROR_MISSING_FACTOR",
    "ERROR_MISSING_FIELD",
    "ERROR_NEGATIVE_AMOUNT",
    "ERROR_RATE_OUT_OF_RANGE",
    "ERROR_TYPE_MISMATCH",
    "ERROR_UNCLASSIFIED_ITEM",
    "ERROR_UNCLASSIFIED_LIMIT",
    "ERROR_VARIANCE_FAILED",
    "ERROR_VARIANCE_WARNING",
    "ERROR_ZERO_NET_CASH_OUTFLOWS",
    "ERROR_ZERO_REQUIRED_STABLE_FUNDING",
    # Bundles
    "AggregatedBundle",
    "CalculationRun",
    "CashFlowCapResult",
    "CategorizedBundle",
    "HQLACapResult",
    "LiquidityInputBundle",
    "LiquidityRunBundle",
    "MetricValidation",
    "RatioResult",
    "ValidationResult",
    "create_empty_input_bundle",
    # Protocols
    "AggregatorProtocol",
    "CategorizerProtocol",
    "DataQualityCheckerProtocol",
    "FactorApplierProtocol",
    "LoaderProtocol",
    "PipelineProtocol",
    "RunStoreProtocol",
    "ValidatorProtocol",
    # Validation
    "LineItemQualityChecker",
    "check_line_item_quality",
    "validate_input_bundle",
    "validate_non_negative_amounts",
    "validate_rate_range",
    "validate_schema_to_errors",
]
