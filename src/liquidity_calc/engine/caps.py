"""
Cross-category caps for the LCR.

Caps run as a pure post-processing stage on finalised per-category
totals, in order:

1. Level 2A cap: capped_L2A = min(L2A, L1 x 40/60)
2. Level 2B cap: capped_L2B = min(L2B, (L1 + capped_L2A) x 15/85)
3. Inflow cap: capped_inflows = min(inflows, outflows x 75%)
4. Net cash outflow floor: NCO = max(outflows - capped_inflows, outflows x 25%)

The Level 2B bound is the closed form of "Level 2B <= 15% of total HQLA"
where total HQLA itself includes capped Level 2B:
    L2B <= 0.15 x (L1 + L2A + L2B)  <=>  L2B <= (L1 + L2A) x 0.15 / 0.85

A cap is flagged as applied only when its bound is strictly below the raw
value; caps never increase a total.

References:
    12 CFR 249.21: Calculation of the HQLA amount
    12 CFR 249.30: Total net cash outflow amount
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from liquidity_calc.contracts.bundles import CashFlowCapResult, HQLACapResult

if TYPE_CHECKING:
    from liquidity_calc.contracts.config import CashFlowCapConfig, HQLACapConfig


def apply_hqla_caps(
    level1: float,
    level2a: float,
    level2b: float,
    config: HQLACapConfig,
) -> HQLACapResult:
    """
    Apply the Level 2A and Level 2B composition caps.

    Args:
        level1: Level 1 amount after factors
        level2a: Level 2A amount after haircut
        level2b: Level 2B amount after haircut
        config: Cap shares

    Returns:
        HQLACapResult with capped amounts, bounds and flags
    """
    level2a_limit = level1 * float(config.level2a_cap_ratio)
    capped_level2a = min(level2a, level2a_limit)

    level2b_limit = (level1 + capped_level2a) * float(config.level2b_cap_ratio)
    capped_level2b = min(level2b, level2b_limit)

    return HQLACapResult(
        level1=level1,
        level2a=level2a,
        level2b=level2b,
        capped_level2a=capped_level2a,
        capped_level2b=capped_level2b,
        level2a_cap_limit=level2a_limit,
        level2b_cap_limit=level2b_limit,
        level2a_cap_applied=level2a_limit < level2a,
        level2b_cap_applied=level2b_limit < level2b,
    )


def apply_cash_flow_caps(
    total_outflows: float,
    total_inflows: float,
    config: CashFlowCapConfig,
) -> CashFlowCapResult:
    """
    Apply the inflow cap and the net cash outflow floor.

    Args:
        total_outflows: Sum of outflow categories after runoff rates
        total_inflows: Sum of inflow categories after inflow rates
        config: Cap ratios

    Returns:
        CashFlowCapResult with capped inflows and net cash outflows
    """
    inflow_limit = total_outflows * float(config.inflow_cap_ratio)
    capped_inflows = min(total_inflows, inflow_limit)

    net_before_floor = total_outflows - capped_inflows
    floor = total_outflows * float(config.net_outflow_floor_ratio)
    net_cash_outflows = max(net_before_floor, floor)

    return CashFlowCapResult(
        total_outflows=total_outflows,
        total_inflows=total_inflows,
        capped_inflows=capped_inflows,
        inflow_cap_limit=inflow_limit,
        inflow_cap_applied=inflow_limit < total_inflows,
        net_cash_outflows=net_cash_outflows,
        net_outflow_floor=floor,
        net_outflow_floor_applied=floor > net_before_floor,
    )
