"""
Schema and data quality validation for the liquidity calculator.

Provides utilities for validating LazyFrame schemas against
expected definitions without materializing data, and line item
data quality checks that report problems as CalculationErrors.

Key functions:
- validate_schema_to_errors: Check column types against expected types
- validate_required_to_errors: Check for required columns
- validate_input_bundle: Validate all frames in a LiquidityInputBundle
- check_line_item_quality: Run every line item data quality check
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import polars as pl

from liquidity_calc.contracts.errors import (
    ERROR_DUPLICATE_KEY,
    ERROR_ENCUMBRANCE_EXCEEDS_BALANCE,
    ERROR_INVALID_CURRENCY,
    ERROR_INVALID_VALUE,
    ERROR_MISSING_FIELD,
    ERROR_NEGATIVE_AMOUNT,
    ERROR_RATE_OUT_OF_RANGE,
    ERROR_TYPE_MISMATCH,
    CalculationError,
    invalid_value_error,
    missing_field_error,
)
from liquidity_calc.domain.enums import ErrorCategory, ErrorSeverity, MaturityBucket

if TYPE_CHECKING:
    from liquidity_calc.contracts.bundles import LiquidityInputBundle


def _types_compatible(actual: pl.DataType, expected: pl.DataType) -> bool:
    """
    Check if actual type is compatible with expected type.

    Allows some flexibility for compatible types (e.g., Int32 -> Int8 levels,
    lists of compatible inner types).
    """
    if actual == expected:
        return True

    int_types = {pl.Int8, pl.Int16, pl.Int32, pl.Int64}
    if actual in int_types and expected in int_types:
        return True

    float_types = {pl.Float32, pl.Float64}
    if actual in float_types and expected in float_types:
        return True

    # Integer amounts widen to float
    if actual in int_types and expected in float_types:
        return True

    string_types = {pl.Utf8, pl.String}
    if actual in string_types and expected in string_types:
        return True

    if isinstance(actual, pl.List) and isinstance(expected, pl.List):
        return _types_compatible(actual.inner, expected.inner)

    return False


def validate_schema_to_errors(
    lf: pl.LazyFrame,
    expected_schema: dict[str, pl.DataType],
    context: str = "",
) -> list[CalculationError]:
    """
    Validate column types and return CalculationError objects.

    Only columns present in the frame are type-checked; absent optional
    columns are not errors (required columns are checked separately).
    A mismatch is CRITICAL: the calculation cannot do arithmetic on a
    string balance or compare a string reported value.
    """
    errors: list[CalculationError] = []
    actual_schema = lf.collect_schema()

    for col_name, expected_type in expected_schema.items():
        if col_name not in actual_schema:
            continue
        actual_type = actual_schema[col_name]
        if not _types_compatible(actual_type, expected_type):
            errors.append(
                CalculationError(
                    code=ERROR_TYPE_MISMATCH,
                    message=f"Type mismatch for '{col_name}' in {context}",
                    severity=ErrorSeverity.CRITICAL,
                    category=ErrorCategory.SCHEMA_VALIDATION,
                    field_name=col_name,
                    expected_value=str(expected_type),
                    actual_value=str(actual_type),
                )
            )

    return errors


def validate_required_to_errors(
    lf: pl.LazyFrame,
    required_columns: list[str],
    context: str = "",
) -> list[CalculationError]:
    """Validate required column presence and return CRITICAL errors."""
    actual_columns = set(lf.collect_schema().names())
    return [
        CalculationError(
            code=ERROR_MISSING_FIELD,
            message=f"Missing required column '{col}' in {context}",
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.SCHEMA_VALIDATION,
            field_name=col,
        )
        for col in required_columns
        if col not in actual_columns
    ]


def validate_input_bundle(bundle: LiquidityInputBundle) -> list[CalculationError]:
    """
    Validate all LazyFrames in a LiquidityInputBundle against expected schemas.

    Returns:
        List of CalculationError objects for any schema issues
    """
    from liquidity_calc.data.schemas import (
        CALCULATION_RULE_SCHEMA,
        EXPECTED_VALUE_SCHEMA,
        LINE_ITEM_SCHEMA,
        REQUIRED_LINE_ITEM_COLUMNS,
    )

    errors = validate_required_to_errors(
        bundle.line_items, REQUIRED_LINE_ITEM_COLUMNS, context="line_items"
    )
    errors.extend(validate_schema_to_errors(bundle.line_items, LINE_ITEM_SCHEMA, "line_items"))

    if bundle.rules is not None:
        errors.extend(
            validate_required_to_errors(
                bundle.rules, ["rule_code", "family", "category"], context="calculation_rules"
            )
        )
        errors.extend(
            validate_schema_to_errors(bundle.rules, CALCULATION_RULE_SCHEMA, "calculation_rules")
        )
    if bundle.expected_values is not None:
        errors.extend(
            validate_required_to_errors(
                bundle.expected_values, ["ratio_type", "metric", "expected_value"],
                context="expected_values",
            )
        )
        errors.extend(
            validate_schema_to_errors(
                bundle.expected_values, EXPECTED_VALUE_SCHEMA, "expected_values"
            )
        )

    return errors


# =============================================================================
# LINE ITEM DATA QUALITY VALIDATORS
# =============================================================================

# ISO 4217 currencies accepted on line items
VALID_CURRENCIES = {"USD", "EUR", "GBP", "JPY", "CHF", "CAD", "AUD"}

VALID_HQLA_LEVELS = {1, 2, 3}

VALID_MATURITY_BUCKETS = [bucket.value for bucket in MaturityBucket]

AMOUNT_COLUMNS = [
    "outstanding_balance",
    "projected_cash_inflow",
    "projected_cash_outflow",
    "encumbered_amount",
    "collateral_value",
]

RATE_COLUMNS = [
    "haircut",
    "runoff_rate",
    "inflow_rate",
    "asf_factor",
    "rsf_factor",
    "collateral_haircut",
]

# Columns identifying the same economic position in a submission
BUSINESS_KEY_COLUMNS = [
    "legal_entity_id",
    "product_category",
    "sub_product",
    "counterparty_type",
    "maturity_bucket",
    "currency",
    "product_id",
]


def validate_non_negative_amounts(
    lf: pl.LazyFrame,
    amount_columns: list[str],
) -> pl.LazyFrame:
    """
    Add validation expressions for non-negative amount columns.

    Returns a LazyFrame with _valid_{col} columns added.
    Null amounts are valid. Does NOT collect/materialize.
    """
    names = lf.collect_schema().names()
    exprs = [
        (pl.col(col).is_null() | (pl.col(col) >= 0)).alias(f"_valid_{col}")
        for col in amount_columns
        if col in names
    ]
    if exprs:
        return lf.with_columns(exprs)
    return lf


def validate_rate_range(
    lf: pl.LazyFrame,
    rate_columns: list[str],
    min_rate: float = 0.0,
    max_rate: float = 1.0,
) -> pl.LazyFrame:
    """
    Add validation expressions for factor override columns in [0, 1].

    Null values are valid (the overrides are optional).
    """
    names = lf.collect_schema().names()
    exprs = [
        (
            pl.col(col).is_null()
            | ((pl.col(col) >= min_rate) & (pl.col(col) <= max_rate))
        ).alias(f"_valid_{col}")
        for col in rate_columns
        if col in names
    ]
    if exprs:
        return lf.with_columns(exprs)
    return lf


def validate_required_values(
    lf: pl.LazyFrame,
    required_columns: list[str],
) -> pl.LazyFrame:
    """
    Add _present_{col} flags: required columns must hold a value on every row.

    A null balance would otherwise count as zero in every total.
    """
    names = lf.collect_schema().names()
    exprs = [
        pl.col(col).is_not_null().alias(f"_present_{col}")
        for col in required_columns
        if col in names
    ]
    if exprs:
        return lf.with_columns(exprs)
    return lf


def validate_encumbrance(lf: pl.LazyFrame) -> pl.LazyFrame:
    """Add _valid_encumbrance: encumbered amount must not exceed the balance."""
    names = lf.collect_schema().names()
    if "encumbered_amount" not in names or "outstanding_balance" not in names:
        return lf
    return lf.with_columns(
        (
            pl.col("encumbered_amount").is_null()
            | pl.col("outstanding_balance").is_null()
            | (pl.col("encumbered_amount") <= pl.col("outstanding_balance"))
        ).alias("_valid_encumbrance")
    )


def validate_hqla_level(lf: pl.LazyFrame, column: str = "hqla_level") -> pl.LazyFrame:
    """Add _valid_{column}: HQLA level must be 1, 2 (Level 2A) or 3 (Level 2B)."""
    if column not in lf.collect_schema().names():
        return lf
    return lf.with_columns(
        (pl.col(column).is_null() | pl.col(column).is_in(list(VALID_HQLA_LEVELS)))
        .alias(f"_valid_{column}")
    )


def validate_currency(lf: pl.LazyFrame, column: str = "currency") -> pl.LazyFrame:
    """Add _valid_currency: currency must be a supported ISO 4217 code."""
    if column not in lf.collect_schema().names():
        return lf
    return lf.with_columns(
        (
            pl.col(column).is_null()
            | pl.col(column).str.to_uppercase().is_in(list(VALID_CURRENCIES))
        ).alias("_valid_currency")
    )


def validate_maturity_bucket(lf: pl.LazyFrame, column: str = "maturity_bucket") -> pl.LazyFrame:
    """Add _valid_{column}: bucket must be one of the FR 2052a maturity buckets."""
    if column not in lf.collect_schema().names():
        return lf
    return lf.with_columns(
        (pl.col(column).is_null() | pl.col(column).is_in(VALID_MATURITY_BUCKETS))
        .alias(f"_valid_{column}")
    )


def _flag_errors(
    failing: pl.DataFrame,
    flag: str,
    field_name: str,
    code: str,
    expected: str,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
) -> list[CalculationError]:
    """Turn rows whose flag is False into CalculationErrors."""
    if flag not in failing.columns:
        return []
    rows = failing.filter(~pl.col(flag)).select("product_id", field_name)
    return [
        invalid_value_error(
            field_name=field_name,
            actual_value=str(row[field_name]),
            expected_value=expected,
            line_item_reference=row["product_id"],
            code=code,
            severity=severity,
        )
        for row in rows.iter_rows(named=True)
    ]


def check_line_item_quality(lf: pl.LazyFrame) -> list[CalculationError]:
    """
    Run every data quality check on line items.

    Findings are reported, not corrected: the line items still flow
    into the calculation unchanged.

    Checks:
        - Required columns hold a value (DQ001)
        - Amounts are non-negative (DQ005)
        - Encumbered amount does not exceed the balance (DQ006)
        - Factor overrides lie in [0, 1] (DQ007)
        - HQLA level is 1, 2 or 3 (DQ002)
        - Maturity bucket is a known bucket (DQ002)
        - Currency is a supported ISO code (DQ008, warning)
        - product_id is unique (DQ004)
        - Business key is unique (DQ004, warning)

    Args:
        lf: Line items (must contain product_id)

    Returns:
        List of CalculationError, ordered by check
    """
    names = lf.collect_schema().names()
    if "product_id" not in names:
        return []

    from liquidity_calc.data.schemas import REQUIRED_LINE_ITEM_COLUMNS

    checked = validate_required_values(lf, REQUIRED_LINE_ITEM_COLUMNS)
    checked = validate_non_negative_amounts(checked, AMOUNT_COLUMNS)
    checked = validate_encumbrance(checked)
    checked = validate_rate_range(checked, RATE_COLUMNS)
    checked = validate_hqla_level(checked)
    checked = validate_maturity_bucket(checked)
    checked = validate_currency(checked)

    flag_cols = [
        c for c in checked.collect_schema().names()
        if c.startswith(("_valid_", "_present_"))
    ]
    errors: list[CalculationError] = []

    if flag_cols:
        failing = checked.filter(
            ~pl.all_horizontal([pl.col(c) for c in flag_cols])
        ).collect()

        for col in REQUIRED_LINE_ITEM_COLUMNS:
            flag = f"_present_{col}"
            if flag in failing.columns:
                errors.extend(
                    missing_field_error(col, line_item_reference=product_id)
                    for product_id in failing.filter(~pl.col(flag))["product_id"]
                )
        # Reported only: a negative balance still nets into its category total
        for col in AMOUNT_COLUMNS:
            errors.extend(
                _flag_errors(failing, f"_valid_{col}", col, ERROR_NEGATIVE_AMOUNT, ">= 0")
            )
        errors.extend(
            _flag_errors(
                failing, "_valid_encumbrance", "encumbered_amount",
                ERROR_ENCUMBRANCE_EXCEEDS_BALANCE, "<= outstanding_balance",
            )
        )
        for col in RATE_COLUMNS:
            errors.extend(
                _flag_errors(failing, f"_valid_{col}", col, ERROR_RATE_OUT_OF_RANGE, "0.0 to 1.0")
            )
        errors.extend(
            _flag_errors(
                failing, "_valid_hqla_level", "hqla_level", ERROR_INVALID_VALUE, "1, 2 or 3",
            )
        )
        errors.extend(
            _flag_errors(
                failing, "_valid_maturity_bucket", "maturity_bucket", ERROR_INVALID_VALUE,
                ", ".join(VALID_MATURITY_BUCKETS),
            )
        )
        errors.extend(
            _flag_errors(
                failing, "_valid_currency", "currency", ERROR_INVALID_CURRENCY,
                ", ".join(sorted(VALID_CURRENCIES)), severity=ErrorSeverity.WARNING,
            )
        )

    errors.extend(_duplicate_errors(lf, names))
    return errors


def _duplicate_errors(lf: pl.LazyFrame, names: list[str]) -> list[CalculationError]:
    """Duplicate product_id (error) and duplicate business key (warning)."""
    errors: list[CalculationError] = []

    duplicate_ids = (
        lf.group_by("product_id")
        .agg(pl.len().alias("n"))
        .filter(pl.col("n") > 1)
        .sort("product_id")
        .collect()
    )
    for row in duplicate_ids.iter_rows(named=True):
        errors.append(
            CalculationError(
                code=ERROR_DUPLICATE_KEY,
                message=f"product_id '{row['product_id']}' appears {row['n']} times",
                severity=ErrorSeverity.ERROR,
                category=ErrorCategory.DATA_QUALITY,
                line_item_reference=row["product_id"],
                field_name="product_id",
            )
        )

    key_cols = [c for c in BUSINESS_KEY_COLUMNS if c in names and c != "product_id"]
    if key_cols:
        duplicate_keys = (
            lf.group_by(key_cols)
            .agg(
                pl.col("product_id").sort().alias("product_ids"),
                pl.len().alias("n"),
            )
            .filter(pl.col("n") > 1)
            .sort(key_cols, nulls_last=True)
            .collect()
        )
        for row in duplicate_keys.iter_rows(named=True):
            ids = row["product_ids"]
            errors.append(
                CalculationError(
                    code=ERROR_DUPLICATE_KEY,
                    message=(
                        "Line items share the same business key: "
                        + ", ".join(str(i) for i in ids)
                    ),
                    severity=ErrorSeverity.WARNING,
                    category=ErrorCategory.DATA_QUALITY,
                    line_item_reference=ids[0],
                    field_name=",".join(key_cols),
                )
            )

    return errors


class LineItemQualityChecker:
    """
    Data quality checker for line items.

    Implements DataQualityCheckerProtocol by delegating to
    check_line_item_quality.
    """

    def check(self, line_items: pl.LazyFrame) -> list[CalculationError]:
        return check_line_item_quality(line_items)
