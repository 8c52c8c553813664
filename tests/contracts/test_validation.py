"""Tests for schema validation and line item data quality checks.

Tests schema checks that run without materialising data and the
line item checks that report (never correct) data quality findings.
"""

import polars as pl
import pytest

from liquidity_calc.contracts.bundles import LiquidityInputBundle
from liquidity_calc.contracts.errors import (
    ERROR_DUPLICATE_KEY,
    ERROR_ENCUMBRANCE_EXCEEDS_BALANCE,
    ERROR_INVALID_CURRENCY,
    ERROR_INVALID_VALUE,
    ERROR_MISSING_FIELD,
    ERROR_NEGATIVE_AMOUNT,
    ERROR_RATE_OUT_OF_RANGE,
    ERROR_TYPE_MISMATCH,
)
from liquidity_calc.contracts.validation import (
    LineItemQualityChecker,
    check_line_item_quality,
    validate_input_bundle,
    validate_schema_to_errors,
)
from liquidity_calc.data.schemas import LINE_ITEM_SCHEMA
from liquidity_calc.domain.enums import ErrorSeverity, MaturityBucket
from tests.fixtures.line_items import create_line_items, create_sample_line_items, line_item


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clean_items() -> pl.LazyFrame:
    """Sample submission without data quality findings."""
    return create_sample_line_items().lazy()


def _codes(errors) -> list[str]:
    return [e.code for e in errors]


class TestValidateSchema:
    """Tests for column type checks."""

    def test_matching_schema_has_no_errors(self, clean_items: pl.LazyFrame):
        assert validate_schema_to_errors(clean_items, LINE_ITEM_SCHEMA, "line_items") == []

    def test_absent_optional_columns_are_not_checked(self):
        lf = pl.LazyFrame({"product_id": ["LI001"]})

        assert validate_schema_to_errors(lf, LINE_ITEM_SCHEMA, "line_items") == []

    def test_compatible_integer_widths(self):
        """Int32 HQLA levels are compatible with the Int8 schema type."""
        lf = pl.LazyFrame({"hqla_level": pl.Series([1], dtype=pl.Int32)})

        assert validate_schema_to_errors(lf, {"hqla_level": pl.Int8}) == []

    def test_integer_amounts_widen_to_float(self):
        lf = pl.LazyFrame({"outstanding_balance": [1000]})

        assert validate_schema_to_errors(lf, {"outstanding_balance": pl.Float64}) == []

    def test_string_amount_is_critical(self):
        lf = pl.LazyFrame({"outstanding_balance": ["1000", "1000"]})

        errors = validate_schema_to_errors(lf, LINE_ITEM_SCHEMA, "line_items")

        assert _codes(errors) == [ERROR_TYPE_MISMATCH]
        assert errors[0].severity == ErrorSeverity.CRITICAL
        assert errors[0].actual_value == "String"


class TestValidateInputBundle:
    """Tests for input bundle validation."""

    def test_valid_bundle(self, clean_items: pl.LazyFrame):
        assert validate_input_bundle(LiquidityInputBundle(line_items=clean_items)) == []

    def test_missing_required_column_is_critical(self, clean_items: pl.LazyFrame):
        bundle = LiquidityInputBundle(line_items=clean_items.drop("maturity_bucket"))

        errors = validate_input_bundle(bundle)

        assert _codes(errors) == [ERROR_MISSING_FIELD]
        assert errors[0].severity == ErrorSeverity.CRITICAL
        assert errors[0].field_name == "maturity_bucket"

    def test_type_mismatch_is_critical(self, clean_items: pl.LazyFrame):
        bundle = LiquidityInputBundle(
            line_items=clean_items.with_columns(pl.col("outstanding_balance").cast(pl.String))
        )

        errors = validate_input_bundle(bundle)

        assert _codes(errors) == [ERROR_TYPE_MISMATCH]
        assert errors[0].severity == ErrorSeverity.CRITICAL

    def test_rules_and_expected_values_checked(self, clean_items: pl.LazyFrame):
        bundle = LiquidityInputBundle(
            line_items=clean_items,
            rules=pl.LazyFrame({"rule_code": ["R1"]}),
            expected_values=pl.LazyFrame({"metric": ["total_hqla"]}),
        )

        missing = {e.field_name for e in validate_input_bundle(bundle)}

        assert {"family", "category", "ratio_type", "expected_value"} <= missing

    def test_expected_value_type_mismatch(self, clean_items: pl.LazyFrame):
        bundle = LiquidityInputBundle(
            line_items=clean_items,
            expected_values=pl.LazyFrame({
                "ratio_type": ["LCR"],
                "metric": ["total_hqla"],
                "expected_value": ["115500000"],
            }),
        )

        errors = validate_input_bundle(bundle)

        assert _codes(errors) == [ERROR_TYPE_MISMATCH]
        assert errors[0].field_name == "expected_value"
        assert errors[0].severity == ErrorSeverity.CRITICAL


class TestCheckLineItemQuality:
    """Tests for line item data quality checks."""

    def test_clean_submission_has_no_findings(self, clean_items: pl.LazyFrame):
        assert check_line_item_quality(clean_items) == []

    def test_negative_amount(self):
        items = create_line_items([line_item("LI001", "deposits", -5.0, "retail")])

        errors = check_line_item_quality(items)

        assert _codes(errors) == [ERROR_NEGATIVE_AMOUNT]
        assert errors[0].line_item_reference == "LI001"
        assert errors[0].field_name == "outstanding_balance"
        assert errors[0].actual_value == "-5.0"

    def test_encumbrance_above_balance(self):
        items = create_line_items([
            line_item("LI001", "securities", 10.0, "sovereign", encumbered_amount=12.0),
        ])

        assert _codes(check_line_item_quality(items)) == [ERROR_ENCUMBRANCE_EXCEEDS_BALANCE]

    def test_rate_out_of_range(self):
        items = create_line_items([
            line_item("LI001", "deposits", 10.0, "retail", runoff_rate=1.5),
        ])

        errors = check_line_item_quality(items)

        assert _codes(errors) == [ERROR_RATE_OUT_OF_RANGE]
        assert errors[0].field_name == "runoff_rate"

    def test_invalid_hqla_level(self):
        items = create_line_items([
            line_item("LI001", "securities", 10.0, "sovereign", hqla_level=4),
        ])

        assert _codes(check_line_item_quality(items)) == [ERROR_INVALID_VALUE]

    def test_null_balance_is_missing_field(self):
        """A null balance is flagged instead of silently counting as zero."""
        items = create_line_items([
            line_item("LI001", "deposits", 10.0, "retail"),
            line_item("X", "deposits", None, "financial_institution"),
        ])

        errors = check_line_item_quality(items)

        assert _codes(errors) == [ERROR_MISSING_FIELD]
        assert errors[0].line_item_reference == "X"
        assert errors[0].field_name == "outstanding_balance"
        assert errors[0].severity == ErrorSeverity.ERROR

    def test_null_required_values_reported_per_column(self):
        items = create_line_items([
            line_item("LI001", "deposits", 10.0, None, maturity_bucket=None),
        ])

        errors = check_line_item_quality(items)

        assert _codes(errors) == [ERROR_MISSING_FIELD, ERROR_MISSING_FIELD]
        assert [e.field_name for e in errors] == ["counterparty_type", "maturity_bucket"]

    def test_unknown_maturity_bucket(self):
        items = create_line_items([
            line_item("LI001", "deposits", 10.0, "retail", maturity_bucket="30days"),
        ])

        errors = check_line_item_quality(items)

        assert _codes(errors) == [ERROR_INVALID_VALUE]
        assert errors[0].field_name == "maturity_bucket"
        assert errors[0].actual_value == "30days"

    def test_every_maturity_bucket_is_accepted(self):
        items = create_line_items([
            line_item(f"LI{i:03d}", "deposits", 10.0, "retail", maturity_bucket=bucket.value)
            for i, bucket in enumerate(MaturityBucket)
        ])

        assert check_line_item_quality(items) == []

    def test_unknown_currency_is_warning(self):
        items = create_line_items([
            line_item("LI001", "deposits", 10.0, "retail", currency="XYZ"),
        ])

        errors = check_line_item_quality(items)

        assert _codes(errors) == [ERROR_INVALID_CURRENCY]
        assert errors[0].severity == ErrorSeverity.WARNING

    def test_currency_check_is_case_insensitive(self):
        items = create_line_items([
            line_item("LI001", "deposits", 10.0, "retail", currency="usd"),
        ])

        assert check_line_item_quality(items) == []

    def test_duplicate_product_id_is_error(self):
        items = create_line_items([
            line_item("LI001", "deposits", 10.0, "retail"),
            line_item("LI001", "loans", 10.0, "corporate"),
        ])

        errors = check_line_item_quality(items)

        assert _codes(errors) == [ERROR_DUPLICATE_KEY]
        assert errors[0].severity == ErrorSeverity.ERROR
        assert errors[0].field_name == "product_id"

    def test_duplicate_business_key_is_warning(self):
        items = create_line_items([
            line_item("LI002", "deposits", 10.0, "retail", sub_product="stable"),
            line_item("LI001", "deposits", 20.0, "retail", sub_product="stable"),
        ])

        errors = check_line_item_quality(items)

        assert _codes(errors) == [ERROR_DUPLICATE_KEY]
        assert errors[0].severity == ErrorSeverity.WARNING
        assert errors[0].line_item_reference == "LI001"
        assert "LI001, LI002" in errors[0].message

    def test_findings_do_not_alter_line_items(self):
        """Checks report findings; the frame itself is untouched."""
        items = create_line_items([line_item("LI001", "deposits", -5.0, "retail")])

        check_line_item_quality(items)

        assert items.collect()["outstanding_balance"].to_list() == [-5.0]

    def test_without_product_id_nothing_is_checked(self):
        assert check_line_item_quality(pl.LazyFrame({"outstanding_balance": [-1.0]})) == []

    def test_checker_delegates(self):
        items = create_line_items([line_item("LI001", "deposits", -5.0, "retail")])

        assert _codes(LineItemQualityChecker().check(items)) == [ERROR_NEGATIVE_AMOUNT]
