"""
Line item categorisation for the liquidity calculator.

Assigns each line item to at most one rule within each category family
of a ratio:
- Matches product category, sub-product, counterparty type, maturity
  bucket and HQLA level against each rule's predicates
- Empty predicate lists match any value
- The most specific matching rule wins (most constrained dimensions)
- Equally specific winners are a rule table error and stop the run
- Items matching no rule in any family of the ratio are unclassified

Classes:
    LineItemCategorizer: Main categorizer implementing CategorizerProtocol

Usage:
    from liquidity_calc.engine.categorizer import LineItemCategorizer

    categorizer = LineItemCategorizer()
    categorized = categorizer.categorize(line_items, registry, RatioType.LCR)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import polars as pl

import liquidity_calc.engine.liquidity_namespace  # noqa: F401
from liquidity_calc.contracts.bundles import CategorizedBundle
from liquidity_calc.contracts.errors import (
    ERROR_UNCLASSIFIED_ITEM,
    AmbiguousClassificationError,
    CalculationError,
    classification_error,
)
from liquidity_calc.data.schemas import UNCLASSIFIED_ITEM_SCHEMA
from liquidity_calc.domain.enums import CategoryFamily
from liquidity_calc.engine.liquidity_namespace import ITEM_INDEX

if TYPE_CHECKING:
    from liquidity_calc.domain.enums import RatioType
    from liquidity_calc.engine.rules import RuleRegistry

logger = logging.getLogger(__name__)

# Rule columns carried onto categorised line items
RULE_OUTPUT_COLUMNS = [
    "rule_code",
    "rule_name",
    "family",
    "category",
    "factor_type",
    "amount_basis",
    "factor_applied",
    "regulatory_citation",
    "specificity",
]


class LineItemCategorizer:
    """
    Categorise line items against a rule registry.

    Implements CategorizerProtocol. Matching is a pure function of the
    line items and the rule set.
    """

    def categorize(
        self,
        line_items: pl.LazyFrame,
        registry: RuleRegistry,
        ratio_type: RatioType,
    ) -> CategorizedBundle:
        """
        Categorise line items for every family of a ratio.

        Args:
            line_items: Line items (LINE_ITEM_SCHEMA, optional columns may be absent)
            registry: Validated rule registry
            ratio_type: Ratio whose families are categorised

        Returns:
            CategorizedBundle with one row per (line item, family) match

        Raises:
            AmbiguousClassificationError: If equally specific rules in one
                family match the same line item
        """
        items = line_items.liquidity.prepare_line_items()
        rules = self._rules_frame(registry, ratio_type)

        winners = (
            items.liquidity.match_rules(rules.lazy())
            .liquidity.select_most_specific()
            .collect()
        )
        self._check_ambiguity(winners)

        categorized = (
            items.join(
                winners.lazy().select(ITEM_INDEX, "rule_code"),
                on=ITEM_INDEX,
                how="inner",
            )
            .join(rules.lazy().select(RULE_OUTPUT_COLUMNS), on="rule_code", how="left")
        )

        unclassified = (
            items.join(winners.lazy().select(ITEM_INDEX).unique(), on=ITEM_INDEX, how="anti")
            .sort(ITEM_INDEX)
            .select(list(UNCLASSIFIED_ITEM_SCHEMA.keys()))
        )

        errors = self._unclassified_errors(unclassified, ratio_type)
        logger.info(
            "%s categorisation: %d matches, %d unclassified line items",
            ratio_type.value,
            winners.height,
            len(errors),
        )

        return CategorizedBundle(
            categorized=categorized,
            unclassified=unclassified,
            errors=errors,
        )

    def _rules_frame(self, registry: RuleRegistry, ratio_type: RatioType) -> pl.DataFrame:
        """Rule table for the ratio with the HQLA level implied by each HQLA category."""
        rules = registry.for_ratio(ratio_type)
        levels = [
            r.hqla_level.value if r.family == CategoryFamily.HQLA and r.hqla_level else None
            for r in rules
        ]
        return registry.to_frame(ratio_type).with_columns(
            pl.Series("rule_hqla_level", levels, dtype=pl.Int8)
        )

    def _check_ambiguity(self, winners: pl.DataFrame) -> None:
        """Fail fast on the first family with tied winners."""
        ties = winners.filter(pl.col("_winner_count") > 1)
        if ties.is_empty():
            return

        family = ties.sort(["family", ITEM_INDEX]).row(0, named=True)["family"]
        family_ties = ties.filter(pl.col("family") == family)
        rule_codes = family_ties["rule_code"].unique().sort().to_list()
        references = family_ties.sort(ITEM_INDEX)["product_id"].unique(maintain_order=True)
        logger.error(
            "Ambiguous %s classification between rules %s", family, ", ".join(rule_codes)
        )
        raise AmbiguousClassificationError(
            family=family,
            rule_codes=rule_codes,
            line_item_references=[str(r) for r in references.to_list()],
        )

    def _unclassified_errors(
        self,
        unclassified: pl.LazyFrame,
        ratio_type: RatioType,
    ) -> list[CalculationError]:
        """One CLS001 warning per unclassified line item."""
        rows = unclassified.select(
            "product_id", "product_category", "counterparty_type", "maturity_bucket"
        ).collect()
        return [
            classification_error(
                code=ERROR_UNCLASSIFIED_ITEM,
                message=(
                    f"No {ratio_type.value} rule matches product '{row['product_category']}', "
                    f"counterparty '{row['counterparty_type']}', "
                    f"maturity '{row['maturity_bucket']}'; excluded from all totals"
                ),
                line_item_reference=row["product_id"],
            )
            for row in rows.iter_rows(named=True)
        ]


# =============================================================================
# Factory Function
# =============================================================================


def create_categorizer() -> LineItemCategorizer:
    """
    Create a LineItemCategorizer instance.

    Returns:
        LineItemCategorizer ready for use
    """
    return LineItemCategorizer()
