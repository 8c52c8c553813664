"""
Factor application for aggregated liquidity groups.

Turns each aggregated group into a ComponentBreakdown row:
- HQLA: total x (1 - haircut)
- Outflows: total x runoff rate
- Inflows: total x inflow rate
- ASF / RSF: total x ASF / RSF factor
- Collateral-adjusted rules: sum of per item max(0, amount - collateral
  x (1 - collateral haircut)), reported with the effective rate

Factors come from the rule table (or per-item overrides); none are
hard-coded here.

Classes:
    FactorApplier: Implements FactorApplierProtocol
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import liquidity_calc.engine.liquidity_namespace  # noqa: F401

if TYPE_CHECKING:
    import polars as pl

    from liquidity_calc.contracts.bundles import AggregatedBundle
    from liquidity_calc.domain.enums import RatioType


class FactorApplier:
    """Apply rule factors to aggregated groups."""

    def apply(
        self,
        data: AggregatedBundle,
        run_id: str,
        ratio_type: RatioType,
    ) -> pl.LazyFrame:
        """
        Produce the component breakdown of a run.

        Args:
            data: Aggregated groups
            run_id: Run the rows belong to
            ratio_type: LCR or NSFR

        Returns:
            LazyFrame in COMPONENT_BREAKDOWN_SCHEMA
        """
        return data.groups.liquidity.apply_factors(run_id, ratio_type.value)


def create_factor_applier() -> FactorApplier:
    """Create a FactorApplier instance."""
    return FactorApplier()
