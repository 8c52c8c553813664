"""
Calculation rule registry.

Holds the rule table for a run as tagged predicate sets. Rules are data:
new regulatory categories are added as rows, never as code branches.

Classes:
    CalculationRule: One immutable rule row
    RuleRegistry: Validated, queryable rule set

Usage:
    from liquidity_calc.engine.rules import RuleRegistry

    registry = RuleRegistry.reference()
    outflow_rules = registry.for_family(CategoryFamily.OUTFLOW)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import polars as pl

from liquidity_calc.contracts.errors import RuleRegistryError
from liquidity_calc.data.schemas import CALCULATION_RULE_SCHEMA, RULE_PREDICATE_COLUMNS
from liquidity_calc.domain.enums import (
    AmountBasis,
    CategoryFamily,
    FactorType,
    HQLALevel,
    RatioType,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

HQLA_LEVEL_CATEGORIES = {level.category: level for level in HQLALevel}


@dataclass(frozen=True)
class CalculationRule:
    """
    One calculation rule.

    Predicate tuples are match sets; an empty tuple matches any value.

    Attributes:
        rule_code: Unique rule code
        family: Category family the rule belongs to
        category: Category code (e.g. "HQLA_Level_2A", "Cash_Outflows_Retail")
        factor_type: flat (multiply) or collateral_adjusted (formula)
        amount_basis: Line item column the factor applies to
        factor: Fixed factor in [0, 1]; None for collateral-adjusted rules
        regulatory_citation: Citation text
    """

    rule_code: str
    family: CategoryFamily
    category: str
    rule_name: str = ""
    product_categories: tuple[str, ...] = ()
    sub_products: tuple[str, ...] = ()
    counterparty_types: tuple[str, ...] = ()
    maturity_buckets: tuple[str, ...] = ()
    hqla_levels: tuple[int, ...] = ()
    factor_type: FactorType = FactorType.FLAT
    amount_basis: AmountBasis = AmountBasis.OUTSTANDING_BALANCE
    factor: float | None = None
    calculation_formula: str | None = None
    regulatory_citation: str | None = None
    appendix_reference: str | None = None
    rule_description: str | None = None
    examples: str | None = None

    @property
    def specificity(self) -> int:
        """Number of constrained predicate dimensions."""
        return sum(
            1 for predicate in RULE_PREDICATE_COLUMNS if getattr(self, predicate)
        )

    @property
    def hqla_level(self) -> HQLALevel | None:
        """HQLA level implied by the category (HQLA family only)."""
        return HQLA_LEVEL_CATEGORIES.get(self.category)

    def to_row(self) -> dict:
        return {
            "rule_code": self.rule_code,
            "rule_name": self.rule_name,
            "family": self.family.value,
            "category": self.category,
            "product_categories": list(self.product_categories),
            "sub_products": list(self.sub_products),
            "counterparty_types": list(self.counterparty_types),
            "maturity_buckets": list(self.maturity_buckets),
            "hqla_levels": list(self.hqla_levels),
            "factor_type": self.factor_type.value,
            "amount_basis": self.amount_basis.value,
            "factor_applied": self.factor,
            "calculation_formula": self.calculation_formula,
            "regulatory_citation": self.regulatory_citation,
            "appendix_reference": self.appendix_reference,
            "rule_description": self.rule_description,
            "examples": self.examples,
        }

    @classmethod
    def from_row(cls, row: dict) -> CalculationRule:
        """
        Build a rule from a rule-table row.

        Raises:
            RuleRegistryError: If family, factor type or amount basis is unknown
        """
        code = row.get("rule_code")
        if not code:
            raise RuleRegistryError("Rule without rule_code")
        try:
            family = CategoryFamily(str(row["family"]).upper())
            factor_type = FactorType(row.get("factor_type") or FactorType.FLAT.value)
            amount_basis = AmountBasis(
                row.get("amount_basis") or AmountBasis.OUTSTANDING_BALANCE.value
            )
        except ValueError as e:
            raise RuleRegistryError(str(e), rule_code=code) from e

        return cls(
            rule_code=code,
            family=family,
            category=row.get("category") or "",
            rule_name=row.get("rule_name") or "",
            product_categories=tuple(row.get("product_categories") or ()),
            sub_products=tuple(row.get("sub_products") or ()),
            counterparty_types=tuple(row.get("counterparty_types") or ()),
            maturity_buckets=tuple(row.get("maturity_buckets") or ()),
            hqla_levels=tuple(int(v) for v in row.get("hqla_levels") or ()),
            factor_type=factor_type,
            amount_basis=amount_basis,
            factor=row.get("factor_applied"),
            calculation_formula=row.get("calculation_formula"),
            regulatory_citation=row.get("regulatory_citation"),
            appendix_reference=row.get("appendix_reference"),
            rule_description=row.get("rule_description"),
            examples=row.get("examples"),
        )


class RuleRegistry:
    """
    Validated rule set for one run.

    Rules are validated on construction:
    - rule codes are unique
    - flat rules carry a factor in [0, 1]
    - HQLA family rules use an HQLA level category
    - HQLA family rules name no HQLA level other than their category's

    Raises:
        RuleRegistryError: On the first structural problem found
    """

    def __init__(self, rules: Iterable[CalculationRule]) -> None:
        self._rules: dict[str, CalculationRule] = {}
        for rule in rules:
            self._validate(rule)
            if rule.rule_code in self._rules:
                raise RuleRegistryError("Duplicate rule code", rule_code=rule.rule_code)
            self._rules[rule.rule_code] = rule
        logger.debug("Rule registry built with %d rules", len(self._rules))

    @staticmethod
    def _validate(rule: CalculationRule) -> None:
        if rule.factor is not None and not 0.0 <= rule.factor <= 1.0:
            raise RuleRegistryError(
                f"Factor {rule.factor} outside [0, 1]", rule_code=rule.rule_code
            )
        if rule.factor_type == FactorType.FLAT and rule.factor is None:
            raise RuleRegistryError("Flat rule requires a factor", rule_code=rule.rule_code)
        if rule.family == CategoryFamily.HQLA:
            level = rule.hqla_level
            if level is None:
                raise RuleRegistryError(
                    f"HQLA rule category '{rule.category}' is not an HQLA level",
                    rule_code=rule.rule_code,
                )
            if rule.hqla_levels and rule.hqla_levels != (level.value,):
                raise RuleRegistryError(
                    f"HQLA rule levels {list(rule.hqla_levels)} conflict with category "
                    f"'{rule.category}'",
                    rule_code=rule.rule_code,
                )

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def from_frame(cls, frame: pl.DataFrame | pl.LazyFrame) -> RuleRegistry:
        """Build a registry from a rule table (CALCULATION_RULE_SCHEMA)."""
        if isinstance(frame, pl.LazyFrame):
            frame = frame.collect()
        return cls(CalculationRule.from_row(row) for row in frame.iter_rows(named=True))

    @classmethod
    def reference(cls) -> RuleRegistry:
        """The reference US LCR and NSFR rule set."""
        from liquidity_calc.data.tables import get_lcr_rules_table, get_nsfr_rules_table

        return cls.from_frame(pl.concat([get_lcr_rules_table(), get_nsfr_rules_table()]))

    # =========================================================================
    # QUERIES
    # =========================================================================

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_code: object) -> bool:
        return rule_code in self._rules

    def get(self, rule_code: str) -> CalculationRule | None:
        return self._rules.get(rule_code)

    @property
    def rules(self) -> list[CalculationRule]:
        return list(self._rules.values())

    def for_family(self, family: CategoryFamily) -> list[CalculationRule]:
        """Rules of one family, in registry order."""
        return [r for r in self._rules.values() if r.family == family]

    def for_ratio(self, ratio_type: RatioType) -> list[CalculationRule]:
        """Rules of every family that feeds a ratio."""
        families = set(ratio_type.families)
        return [r for r in self._rules.values() if r.family in families]

    def to_frame(self, ratio_type: RatioType | None = None) -> pl.DataFrame:
        """
        Rule table as a DataFrame, with a specificity column.

        Args:
            ratio_type: Restrict to the families of one ratio
        """
        rules = self.rules if ratio_type is None else self.for_ratio(ratio_type)
        return pl.DataFrame(
            [r.to_row() for r in rules], schema=CALCULATION_RULE_SCHEMA
        ).with_columns(
            pl.Series("specificity", [r.specificity for r in rules], dtype=pl.Int32)
        )
