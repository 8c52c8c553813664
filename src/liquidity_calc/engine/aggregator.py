"""
Aggregation of categorised line items.

Groups categorised line items per (family, category, product subtype,
rule, factor) and sums the measured amount, keeping a record count and
the contributing line item references for traceability.

Line items whose rule cannot be applied are excluded with a warning:
- flat rules with no factor and no item override (FAC001)
- collateral-adjusted rules on items without collateral data (FAC002)

Classes:
    LineItemAggregator: Aggregator implementing AggregatorProtocol

Usage:
    from liquidity_calc.engine.aggregator import LineItemAggregator

    aggregated = LineItemAggregator().aggregate(categorized, config)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import polars as pl

import liquidity_calc.engine.liquidity_namespace  # noqa: F401
from liquidity_calc.contracts.bundles import AggregatedBundle
from liquidity_calc.contracts.errors import (
    ERROR_MISSING_COLLATERAL,
    ERROR_MISSING_FACTOR,
    CalculationError,
)
from liquidity_calc.data.schemas import EXCLUDED_ITEM_SCHEMA
from liquidity_calc.domain.enums import ErrorCategory, ErrorSeverity
from liquidity_calc.engine.liquidity_namespace import ITEM_INDEX

if TYPE_CHECKING:
    from liquidity_calc.contracts.bundles import CategorizedBundle
    from liquidity_calc.contracts.config import CalculationConfig

logger = logging.getLogger(__name__)

_EXCLUSION_CODES = {
    "missing_factor": ERROR_MISSING_FACTOR,
    "missing_collateral": ERROR_MISSING_COLLATERAL,
}

_EXCLUSION_MESSAGES = {
    "missing_factor": "Rule has no factor and the line item gives no override",
    "missing_collateral": "Collateral-adjusted rule but the line item has no collateral value",
}


class LineItemAggregator:
    """
    Aggregate categorised line items into groups.

    Implements AggregatorProtocol. Grouping order does not affect totals.
    """

    def aggregate(
        self,
        data: CategorizedBundle,
        config: CalculationConfig,
    ) -> AggregatedBundle:
        """
        Aggregate categorised line items.

        Args:
            data: Output of the categorizer
            config: Calculation configuration (collateral haircuts)

        Returns:
            AggregatedBundle with groups, excluded items and warnings
        """
        measured = data.categorized.liquidity.with_basis_amounts(
            config.collateral_haircuts.as_level_map()
        )

        groups = measured.filter(pl.col("exclusion_reason").is_null()).liquidity.aggregate_groups()

        excluded = (
            measured.filter(pl.col("exclusion_reason").is_not_null())
            .sort([ITEM_INDEX, "family"])
            .select([pl.col(c).cast(t) for c, t in EXCLUDED_ITEM_SCHEMA.items()])
            .collect()
        )

        errors = self._exclusion_errors(excluded)
        if errors:
            logger.warning("%d line item rule applications excluded", len(errors))

        return AggregatedBundle(
            groups=groups,
            excluded=excluded.lazy(),
            errors=errors,
        )

    def _exclusion_errors(self, excluded: pl.DataFrame) -> list[CalculationError]:
        return [
            CalculationError(
                code=_EXCLUSION_CODES[row["exclusion_reason"]],
                message=(
                    f"{_EXCLUSION_MESSAGES[row['exclusion_reason']]}; "
                    f"{row['basis_amount']:,.2f} excluded from {row['family']}"
                ),
                severity=ErrorSeverity.WARNING,
                category=ErrorCategory.CALCULATION,
                line_item_reference=row["product_id"],
                rule_code=row["rule_code"],
            )
            for row in excluded.iter_rows(named=True)
        ]


# =============================================================================
# Factory Function
# =============================================================================


def create_aggregator() -> LineItemAggregator:
    """
    Create a LineItemAggregator instance.

    Returns:
        LineItemAggregator ready for use
    """
    return LineItemAggregator()
