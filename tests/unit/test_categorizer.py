"""Unit tests for the line item categorizer.

Tests cover:
- Predicate matching (empty lists match anything, nulls match nothing)
- Most-specific rule selection within a family
- HQLA level gating and non-HQLA flags
- One rule per family: an item may land in several families
- Unclassified items and CLS001 warnings
- Ambiguous rule tables failing fast
"""

from __future__ import annotations

import polars as pl
import pytest

from liquidity_calc.contracts.errors import (
    ERROR_UNCLASSIFIED_ITEM,
    AmbiguousClassificationError,
)
from liquidity_calc.data.schemas import UNCLASSIFIED_ITEM_SCHEMA
from liquidity_calc.domain.enums import CategoryFamily, ErrorSeverity, RatioType
from liquidity_calc.engine.categorizer import LineItemCategorizer, create_categorizer
from liquidity_calc.engine.rules import CalculationRule, RuleRegistry
from tests.fixtures.line_items import create_line_items, line_item


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def categorizer() -> LineItemCategorizer:
    return create_categorizer()


@pytest.fixture
def reference() -> RuleRegistry:
    return RuleRegistry.reference()


def _assignments(bundle, family: CategoryFamily | None = None) -> dict[str, str]:
    """product_id -> rule_code, optionally for one family."""
    df = bundle.categorized.collect()
    if family is not None:
        df = df.filter(pl.col("family") == family.value)
    return dict(zip(df["product_id"].to_list(), df["rule_code"].to_list()))


class TestMostSpecificRule:
    """The most constrained matching rule wins within a family."""

    def test_stable_retail_beats_generic_retail(self, categorizer, reference):
        items = create_line_items([
            line_item("LI001", "deposits", 100.0, "retail", sub_product="stable"),
            line_item("LI002", "deposits", 100.0, "retail", sub_product="other_retail"),
            line_item("LI003", "deposits", 100.0, "retail"),
        ])

        result = categorizer.categorize(items, reference, RatioType.LCR)

        assert _assignments(result, CategoryFamily.OUTFLOW) == {
            "LI001": "OUTFLOW_RETAIL_STABLE",
            "LI002": "OUTFLOW_RETAIL_OTHER",
            "LI003": "OUTFLOW_RETAIL_OTHER",
        }

    def test_operational_beats_non_operational(self, categorizer, reference):
        items = create_line_items([
            line_item("LI001", "deposits", 100.0, "corporate", sub_product="operational"),
            line_item("LI002", "deposits", 100.0, "corporate", sub_product="non_operational"),
        ])

        result = categorizer.categorize(items, reference, RatioType.LCR)

        assert _assignments(result, CategoryFamily.OUTFLOW) == {
            "LI001": "OUTFLOW_WHOLESALE_OPERATIONAL",
            "LI002": "OUTFLOW_WHOLESALE_NON_OPERATIONAL",
        }

    def test_financial_loans_beat_generic_maturing_loans(self, categorizer, reference):
        items = create_line_items([
            line_item(
                "LI001", "loans", 100.0, "financial_institution", "overnight",
                projected_cash_inflow=100.0,
            ),
            line_item(
                "LI002", "loans", 100.0, "corporate", "2-7days",
                projected_cash_inflow=100.0,
            ),
        ])

        result = categorizer.categorize(items, reference, RatioType.LCR)

        assert _assignments(result, CategoryFamily.INFLOW) == {
            "LI001": "INFLOW_LOANS_FINANCIAL",
            "LI002": "INFLOW_LOANS_MATURING",
        }

    def test_winning_rule_columns_are_joined(self, categorizer, reference):
        items = create_line_items([
            line_item("LI001", "deposits", 100.0, "retail", sub_product="stable"),
        ])

        row = categorizer.categorize(items, reference, RatioType.LCR).categorized.collect().row(
            0, named=True
        )

        assert row["category"] == "Cash_Outflows_Retail"
        assert row["factor_applied"] == pytest.approx(0.03)
        assert row["factor_type"] == "flat"
        assert row["specificity"] == 3
        assert row["regulatory_citation"]


class TestHQLAMatching:
    """HQLA rules only take eligible items at their own level."""

    def test_item_level_selects_category(self, categorizer, reference):
        items = create_line_items([
            line_item("LI001", "securities", 10.0, "sovereign", "gt_1year",
                      sub_product="treasury", hqla_level=1),
            line_item("LI002", "securities", 10.0, "sovereign", "gt_1year",
                      sub_product="foreign_sovereign", hqla_level=2),
            line_item("LI003", "securities", 10.0, "corporate", "gt_1year",
                      sub_product="corporate_bond", hqla_level=3),
        ])

        result = categorizer.categorize(items, reference, RatioType.LCR)

        assert _assignments(result, CategoryFamily.HQLA) == {
            "LI001": "HQLA_L1_TREASURY",
            "LI002": "HQLA_L2A_SOVEREIGN",
            "LI003": "HQLA_L2B_CORPORATE",
        }

    def test_declared_level_must_match_rule_category(self, categorizer, reference):
        """A treasury flagged Level 2A cannot land in a Level 1 rule."""
        items = create_line_items([
            line_item("LI001", "securities", 10.0, "sovereign", "gt_1year",
                      sub_product="treasury", hqla_level=2),
        ])

        result = categorizer.categorize(items, reference, RatioType.LCR)

        assert _assignments(result, CategoryFamily.HQLA) == {"LI001": "HQLA_L2A_SOVEREIGN"}

    def test_non_hqla_flag_excludes_from_hqla(self, categorizer, reference):
        items = create_line_items([
            line_item("LI001", "other_assets", 10.0, "central_bank",
                      sub_product="cash", is_hqla=False),
        ])

        result = categorizer.categorize(items, reference, RatioType.LCR)

        assert _assignments(result, CategoryFamily.HQLA) == {}
        assert result.unclassified.collect()["product_id"].to_list() == ["LI001"]


class TestFamilies:
    """Each item is matched independently in every family of the ratio."""

    def test_security_lands_in_hqla_and_inflows(self, categorizer, reference):
        items = create_line_items([
            line_item("LI001", "securities", 10.0, "sovereign", "8-30days",
                      sub_product="treasury", hqla_level=1, projected_cash_inflow=10.0),
        ])

        result = categorizer.categorize(items, reference, RatioType.LCR)

        assert _assignments(result, CategoryFamily.HQLA) == {"LI001": "HQLA_L1_TREASURY"}
        assert _assignments(result, CategoryFamily.INFLOW) == {"LI001": "INFLOW_SECURITIES_MATURING"}

    def test_nsfr_only_uses_asf_and_rsf(self, categorizer, reference):
        items = create_line_items([
            line_item("LI001", "deposits", 10.0, "retail", sub_product="stable"),
        ])

        families = set(
            categorizer.categorize(items, reference, RatioType.NSFR)
            .categorized.collect()["family"].to_list()
        )

        assert families == {"ASF"}


class TestUnclassified:
    """Items matching no rule in any family are reported, not guessed."""

    def test_unknown_counterparty_is_unclassified(self, categorizer, reference):
        items = create_line_items([
            line_item("LI001", "deposits", 5_000_000.0, "unknown"),
            line_item("LI002", "deposits", 100.0, "retail"),
        ])

        result = categorizer.categorize(items, reference, RatioType.LCR)
        unclassified = result.unclassified.collect()

        assert unclassified["product_id"].to_list() == ["LI001"]
        assert unclassified["outstanding_balance"].to_list() == [5_000_000.0]
        assert unclassified.columns == list(UNCLASSIFIED_ITEM_SCHEMA)
        assert "LI001" not in _assignments(result)

    def test_unclassified_warning(self, categorizer, reference):
        items = create_line_items([line_item("LI001", "deposits", 10.0, "unknown")])

        errors = categorizer.categorize(items, reference, RatioType.LCR).errors

        assert [e.code for e in errors] == [ERROR_UNCLASSIFIED_ITEM]
        assert errors[0].severity == ErrorSeverity.WARNING
        assert errors[0].line_item_reference == "LI001"
        assert "unknown" in errors[0].message

    def test_null_sub_product_does_not_match_constrained_rule(self, categorizer):
        registry = RuleRegistry([
            CalculationRule(
                "CASH_ONLY", CategoryFamily.RSF, "RSF_HQLA",
                product_categories=("other_assets",), sub_products=("cash",), factor=0.0,
            ),
        ])
        items = create_line_items([line_item("LI001", "other_assets", 10.0, "central_bank")])

        result = categorizer.categorize(items, registry, RatioType.NSFR)

        assert result.unclassified.collect().height == 1

    def test_optional_columns_may_be_absent(self, categorizer, reference):
        """Only the required columns need to be supplied."""
        items = pl.LazyFrame({
            "product_id": ["LI001"],
            "product_category": ["capital"],
            "counterparty_type": ["other"],
            "maturity_bucket": ["open"],
            "outstanding_balance": [10.0],
        })

        result = categorizer.categorize(items, reference, RatioType.NSFR)

        assert _assignments(result) == {"LI001": "ASF_CAPITAL"}


class TestAmbiguity:
    """Equally specific winners in one family stop the run."""

    @pytest.fixture
    def ambiguous(self) -> RuleRegistry:
        return RuleRegistry([
            CalculationRule(
                "BY_COUNTERPARTY", CategoryFamily.OUTFLOW, "Cash_Outflows_Retail",
                product_categories=("deposits",), counterparty_types=("retail",), factor=0.1,
            ),
            CalculationRule(
                "BY_MATURITY", CategoryFamily.OUTFLOW, "Cash_Outflows_Other",
                product_categories=("deposits",), maturity_buckets=("open",), factor=1.0,
            ),
        ])

    def test_tie_raises(self, categorizer, ambiguous):
        items = create_line_items([line_item("LI001", "deposits", 10.0, "retail", "open")])

        with pytest.raises(AmbiguousClassificationError) as exc_info:
            categorizer.categorize(items, ambiguous, RatioType.LCR)

        assert exc_info.value.family == "OUTFLOW"
        assert exc_info.value.rule_codes == ["BY_COUNTERPARTY", "BY_MATURITY"]
        assert exc_info.value.line_item_references == ["LI001"]

    def test_no_tie_when_only_one_rule_matches(self, categorizer, ambiguous):
        items = create_line_items([line_item("LI001", "deposits", 10.0, "retail", "overnight")])

        result = categorizer.categorize(items, ambiguous, RatioType.LCR)

        assert _assignments(result) == {"LI001": "BY_COUNTERPARTY"}
