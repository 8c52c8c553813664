"""
Shared fixtures for liquidity acceptance tests.

Provides common configuration and helper utilities for running small
submissions through the production pipeline and checking the results
against hand-calculated figures.
"""

from __future__ import annotations

from typing import Any

import polars as pl
import pytest

from liquidity_calc.contracts.bundles import CalculationRun, LiquidityInputBundle
from liquidity_calc.contracts.config import CalculationConfig
from liquidity_calc.domain.enums import RatioType
from liquidity_calc.engine.pipeline import create_pipeline
from tests.fixtures.line_items import (
    REPORTING_DATE,
    SUBMISSION_ID,
    create_line_items,
    line_item,
)


# Amounts are in dollars; ratios are compared to four decimal places
AMOUNT_TOLERANCE = 1.0
RATIO_TOLERANCE = 0.0001


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def liquidity_config() -> CalculationConfig:
    """US liquidity configuration scoped to the sample submission."""
    return CalculationConfig.us_liquidity(
        reporting_date=REPORTING_DATE, submission_id=SUBMISSION_ID
    )


# =============================================================================
# Line Item Builders
# =============================================================================


def cash(product_id: str, amount: float) -> dict[str, Any]:
    """Reserve balance at the central bank (Level 1)."""
    return line_item(
        product_id, "other_assets", amount,
        counterparty_type="central_bank", sub_product="cash", hqla_level=1,
    )


def agency_security(product_id: str, amount: float) -> dict[str, Any]:
    """GSE security (Level 2A, 15% haircut)."""
    return line_item(
        product_id, "securities", amount,
        counterparty_type="gse", maturity_bucket="gt_1year",
        sub_product="agency", hqla_level=2,
    )


def corporate_bond(product_id: str, amount: float) -> dict[str, Any]:
    """Investment-grade corporate bond (Level 2B, 50% haircut)."""
    return line_item(
        product_id, "securities", amount,
        counterparty_type="corporate", maturity_bucket="gt_1year",
        sub_product="corporate_bond", hqla_level=3,
    )


def financial_deposit(product_id: str, amount: float) -> dict[str, Any]:
    """Non-operational deposit from a financial institution (100% runoff)."""
    return line_item(product_id, "deposits", amount, counterparty_type="financial_institution")


def financial_loan(product_id: str, inflow: float) -> dict[str, Any]:
    """Overnight loan to a financial institution (100% inflow)."""
    return line_item(
        product_id, "loans", inflow,
        counterparty_type="financial_institution", maturity_bucket="overnight",
        projected_cash_inflow=inflow,
    )


# =============================================================================
# Helpers
# =============================================================================


def run_scenario(
    rows: list[dict[str, Any]],
    config: CalculationConfig,
    ratio_type: RatioType = RatioType.LCR,
) -> CalculationRun:
    """Run one ratio over the given line items and return its run."""
    data = LiquidityInputBundle(line_items=create_line_items(rows))
    bundle = create_pipeline().run_with_data(data, config, (ratio_type,))

    run = bundle.lcr if ratio_type == RatioType.LCR else bundle.nsfr
    assert run is not None, f"No {ratio_type.value} run produced: {bundle.errors}"
    return run


def assert_amount_within_tolerance(
    actual: float | None,
    expected: float,
    tolerance: float = AMOUNT_TOLERANCE,
    scenario_id: str = "",
) -> None:
    """Assert a calculated amount is within tolerance of the hand calculation."""
    assert actual is not None, f"{scenario_id}: amount is undefined"
    diff = abs(actual - expected)
    assert diff <= tolerance, (
        f"{scenario_id}: amount mismatch: got {actual:,.2f}, expected {expected:,.2f}, "
        f"diff {diff:,.2f}"
    )


def assert_ratio_match(
    actual: float | None,
    expected: float,
    scenario_id: str = "",
) -> None:
    """Assert a ratio matches to four decimal places."""
    assert actual is not None, f"{scenario_id}: ratio is undefined"
    assert abs(actual - expected) <= RATIO_TOLERANCE, (
        f"{scenario_id}: ratio mismatch: got {actual:.4%}, expected {expected:.4%}"
    )


def breakdown_without_run_id(run: CalculationRun) -> pl.DataFrame:
    """Breakdown rows with the per-run identifier removed."""
    return run.breakdown.drop("run_id")
