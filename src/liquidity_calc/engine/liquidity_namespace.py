"""
Polars LazyFrame namespace for liquidity line item processing.

Provides a fluent API over line items and categorised line items:
- `lf.liquidity.prepare_line_items()` - Add optional columns and a row index
- `lf.liquidity.match_rules(rules)` - Cross-match items against rule predicates
- `lf.liquidity.select_most_specific()` - Keep the most specific match per family
- `lf.liquidity.with_basis_amounts(haircuts)` - Basis amount, factor and exclusions
- `lf.liquidity.aggregate_groups()` - Sum per (family, category, subtype, rule, factor)
- `lf.liquidity.apply_factors(run_id, ratio_type)` - Calculated amounts

Usage:
    import polars as pl
    import liquidity_calc.engine.liquidity_namespace  # Register namespace

    candidates = (line_items
        .liquidity.prepare_line_items()
        .liquidity.match_rules(rules)
        .liquidity.select_most_specific()
    )

References:
- 12 CFR 249.21: HQLA amount (unencumbered, after haircut)
- 12 CFR 249.32 / 249.33: Outflow and inflow amounts
- 12 CFR 249.104 / 249.106: ASF and RSF amounts
"""

from __future__ import annotations

import polars as pl

from liquidity_calc.data.schemas import (
    COMPONENT_BREAKDOWN_SCHEMA,
    LINE_ITEM_SCHEMA,
    RULE_PREDICATE_COLUMNS,
)
from liquidity_calc.domain.enums import AmountBasis, CategoryFamily, FactorType

ITEM_INDEX = "_item_idx"

# Breakdown ordering: LCR families first, then NSFR
FAMILY_RANK = {family.value: rank for rank, family in enumerate(CategoryFamily)}


def _predicate_match(list_col: str, item_col: str) -> pl.Expr:
    """Empty list matches any value; otherwise the item value must be listed."""
    return (pl.col(list_col).list.len().fill_null(0) == 0) | (
        pl.col(list_col).list.contains(pl.col(item_col)).fill_null(False)
    )


def _hqla_level_match() -> pl.Expr:
    """
    HQLA family rules only accept items not flagged as non-HQLA, and an item
    that declares its level only lands in the rule category for that level.
    """
    return (pl.col("family") != CategoryFamily.HQLA.value) | (
        pl.col("is_hqla").fill_null(True)
        & (
            pl.col("hqla_level").is_null()
            | (pl.col("hqla_level") == pl.col("rule_hqla_level"))
        )
    )


def _override_factor() -> pl.Expr:
    """Per-item factor override for the row's family (HQLA uses 1 - haircut)."""
    expr = pl.when(pl.col("family") == CategoryFamily.HQLA.value).then(
        1.0 - pl.col("haircut")
    )
    for family in CategoryFamily:
        if family == CategoryFamily.HQLA:
            continue
        expr = expr.when(pl.col("family") == family.value).then(
            pl.col(family.override_column)
        )
    return expr.otherwise(pl.lit(None, dtype=pl.Float64))


def _basis_amount() -> pl.Expr:
    """Amount the rule measures; HQLA counts only the unencumbered balance."""
    raw = (
        pl.when(pl.col("amount_basis") == AmountBasis.PROJECTED_CASH_OUTFLOW.value)
        .then(pl.col("projected_cash_outflow"))
        .when(pl.col("amount_basis") == AmountBasis.PROJECTED_CASH_INFLOW.value)
        .then(pl.col("projected_cash_inflow"))
        .otherwise(pl.col("outstanding_balance"))
        .fill_null(0.0)
    )
    return (
        pl.when(pl.col("family") == CategoryFamily.HQLA.value)
        .then((raw - pl.col("encumbered_amount").fill_null(0.0)).clip(lower_bound=0.0))
        .otherwise(raw)
    )


def _collateral_haircut(level_haircuts: dict[int, float]) -> pl.Expr:
    """Explicit collateral haircut, else by collateral HQLA level, else 100%."""
    by_level = pl.lit(None, dtype=pl.Float64)
    for level, haircut in sorted(level_haircuts.items(), reverse=True):
        by_level = (
            pl.when(pl.col("collateral_hqla_level") == level)
            .then(pl.lit(haircut))
            .otherwise(by_level)
        )
    return pl.coalesce(pl.col("collateral_haircut"), by_level, pl.lit(1.0))


# =============================================================================
# LAZYFRAME NAMESPACE
# =============================================================================


@pl.api.register_lazyframe_namespace("liquidity")
class LiquidityLazyFrame:
    """
    Liquidity calculation namespace for Polars LazyFrames.

    Example:
        groups = (categorized
            .liquidity.with_basis_amounts(config.collateral_haircuts.as_level_map())
            .filter(pl.col("exclusion_reason").is_null())
            .liquidity.aggregate_groups()
        )
    """

    def __init__(self, lf: pl.LazyFrame) -> None:
        self._lf = lf

    # =========================================================================
    # CATEGORISATION
    # =========================================================================

    def prepare_line_items(self) -> pl.LazyFrame:
        """
        Add any missing optional line item column as a typed null, cast the
        predicate columns to their schema types and add a row index.

        Returns:
            LazyFrame with every LINE_ITEM_SCHEMA column and _item_idx
        """
        schema = self._lf.collect_schema()
        names = set(schema.names())

        missing = [
            pl.lit(None, dtype=dtype).alias(col)
            for col, dtype in LINE_ITEM_SCHEMA.items()
            if col not in names
        ]
        lf = self._lf.with_columns(missing) if missing else self._lf

        casts = [
            pl.col(col).cast(LINE_ITEM_SCHEMA[col], strict=False)
            for col in [*RULE_PREDICATE_COLUMNS.values(), "is_hqla", "collateral_hqla_level"]
            if col in names and schema[col] != LINE_ITEM_SCHEMA[col]
        ]
        if casts:
            lf = lf.with_columns(casts)

        return lf.with_row_index(ITEM_INDEX)

    def match_rules(self, rules: pl.LazyFrame) -> pl.LazyFrame:
        """
        Cross-match prepared line items against rule predicates.

        Args:
            rules: Rule table with a specificity column and a rule_hqla_level
                column (HQLA level implied by an HQLA rule's category)

        Returns:
            One row per (line item, matching rule): _item_idx, product_id,
            family, rule_code, specificity
        """
        item_cols = [ITEM_INDEX, "product_id", *RULE_PREDICATE_COLUMNS.values(), "is_hqla"]
        rule_cols = [
            "rule_code", "family", "specificity", "rule_hqla_level",
            *RULE_PREDICATE_COLUMNS.keys(),
        ]

        conditions = [
            _predicate_match(list_col, item_col)
            for list_col, item_col in RULE_PREDICATE_COLUMNS.items()
        ]
        conditions.append(_hqla_level_match())

        return (
            self._lf.select(item_cols)
            .join(rules.select(rule_cols), how="cross")
            .filter(pl.all_horizontal(conditions))
            .select(ITEM_INDEX, "product_id", "family", "rule_code", "specificity")
        )

    def select_most_specific(self) -> pl.LazyFrame:
        """
        Keep the most specific matches per (line item, family).

        Adds _winner_count: more than one winner means equally specific
        rules tie for the item.
        """
        keys = [ITEM_INDEX, "family"]
        return (
            self._lf.filter(
                pl.col("specificity") == pl.col("specificity").max().over(keys)
            )
            .with_columns(pl.len().over(keys).alias("_winner_count"))
        )

    # =========================================================================
    # AMOUNTS AND AGGREGATION
    # =========================================================================

    def with_basis_amounts(self, level_haircuts: dict[int, float]) -> pl.LazyFrame:
        """
        Derive amounts for categorised line items.

        Adds:
            basis_amount: Measured amount (HQLA net of encumbrance)
            effective_factor: Item override, else the rule factor
            effective_factor_type: flat when an override is given
            adjusted_amount: Collateral-adjusted amount (collateral rules only)
            exclusion_reason: missing_factor / missing_collateral / null

        Args:
            level_haircuts: Collateral haircut by numeric HQLA level
        """
        override = _override_factor()
        flat = FactorType.FLAT.value
        collateral = FactorType.COLLATERAL_ADJUSTED.value

        lf = self._lf.with_columns(
            _basis_amount().alias("basis_amount"),
            pl.coalesce(override, pl.col("factor_applied")).alias("effective_factor"),
            pl.when(override.is_not_null())
            .then(pl.lit(flat))
            .otherwise(pl.col("factor_type"))
            .alias("effective_factor_type"),
        )

        return lf.with_columns(
            pl.when(pl.col("effective_factor_type") == collateral)
            .then(
                (
                    pl.col("basis_amount")
                    - pl.col("collateral_value")
                    * (1.0 - _collateral_haircut(level_haircuts))
                ).clip(lower_bound=0.0)
            )
            .otherwise(pl.lit(None, dtype=pl.Float64))
            .alias("adjusted_amount"),
            pl.when(
                (pl.col("effective_factor_type") == flat)
                & pl.col("effective_factor").is_null()
            )
            .then(pl.lit("missing_factor"))
            .when(
                (pl.col("effective_factor_type") == collateral)
                & pl.col("collateral_value").is_null()
            )
            .then(pl.lit("missing_collateral"))
            .otherwise(pl.lit(None, dtype=pl.String))
            .alias("exclusion_reason"),
        )

    def aggregate_groups(self) -> pl.LazyFrame:
        """
        Group included line items by (family, category, subtype, rule, factor).

        Subtype is the sub-product, falling back to the product category.
        Collateral-adjusted groups have a null factor until factors are applied.

        Returns:
            One row per group with total_amount, adjusted_amount,
            record_count and sorted line_references
        """
        return (
            self._lf.sort(ITEM_INDEX)
            .with_columns(
                pl.coalesce(pl.col("sub_product"), pl.col("product_category")).alias("subtype"),
                pl.when(pl.col("effective_factor_type") == FactorType.FLAT.value)
                .then(pl.col("effective_factor"))
                .otherwise(pl.lit(None, dtype=pl.Float64))
                .alias("factor"),
            )
            .group_by(
                ["family", "category", "subtype", "rule_code", "effective_factor_type", "factor"],
                maintain_order=True,
            )
            .agg(
                pl.col("basis_amount").sum().alias("total_amount"),
                pl.col("adjusted_amount").sum().alias("adjusted_amount"),
                pl.len().cast(pl.UInt32).alias("record_count"),
                pl.col("product_id").sort().alias("line_references"),
                pl.col("regulatory_citation").first().alias("regulatory_citation"),
            )
            .rename({"effective_factor_type": "factor_type"})
        )

    def apply_factors(self, run_id: str, ratio_type: str) -> pl.LazyFrame:
        """
        Turn aggregated groups into component breakdown rows.

        flat: calculated = total x factor
        collateral_adjusted: calculated = sum of per-item adjusted amounts,
            reported factor = calculated / total (0 when total is 0)

        Returns:
            Rows in COMPONENT_BREAKDOWN_SCHEMA, sorted by family, category,
            subtype, rule and factor
        """
        is_flat = pl.col("factor_type") == FactorType.FLAT.value
        calculated = (
            pl.when(is_flat)
            .then(pl.col("total_amount") * pl.col("factor"))
            .otherwise(pl.col("adjusted_amount"))
        )

        return (
            self._lf.with_columns(calculated.alias("calculated_amount"))
            .with_columns(
                pl.when(is_flat)
                .then(pl.col("factor"))
                .when(pl.col("total_amount") != 0)
                .then(pl.col("calculated_amount") / pl.col("total_amount"))
                .otherwise(pl.lit(0.0))
                .alias("factor"),
                pl.lit(run_id).alias("run_id"),
                pl.lit(ratio_type).alias("ratio_type"),
                pl.col("family")
                .replace_strict(FAMILY_RANK, default=len(FAMILY_RANK), return_dtype=pl.Int32)
                .alias("_family_rank"),
            )
            .sort(
                ["_family_rank", "category", "subtype", "rule_code", "factor"],
                nulls_last=True,
            )
            .select(
                [
                    pl.col(col).cast(dtype)
                    for col, dtype in COMPONENT_BREAKDOWN_SCHEMA.items()
                ]
            )
        )
