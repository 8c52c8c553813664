"""
US NSFR reference calculation rules (12 CFR 249 Subpart K).

Provides available stable funding (ASF) and required stable funding (RSF)
rules as a Polars DataFrame, using the same predicate layout as the LCR
rule table.

Reference:
    12 CFR 249.104: ASF factors
    12 CFR 249.106: RSF factors
"""

from decimal import Decimal

import polars as pl

from liquidity_calc.data.schemas import CALCULATION_RULE_SCHEMA
from liquidity_calc.data.tables.lcr_rules import _rule


# =============================================================================
# MATURITY HORIZONS
# =============================================================================

LESS_THAN_6_MONTHS: list[str] = [
    "overnight", "2-7days", "8-30days", "31-90days", "91-180days", "open",
]
SIX_MONTHS_TO_1_YEAR: list[str] = ["181-365days"]
ONE_YEAR_OR_MORE: list[str] = ["gt_1year"]

WHOLESALE_COUNTERPARTIES: list[str] = ["wholesale", "corporate", "sme", "financial_institution"]
SECURED_FUNDING_SUB_PRODUCTS: list[str] = ["repo", "securities_lending", "collateral_swap"]


# =============================================================================
# REFERENCE FACTORS (12 CFR 249.104, 249.106)
# =============================================================================

ASF_FACTORS: dict[str, Decimal] = {
    "capital": Decimal("1.00"),
    "retail_stable": Decimal("0.95"),
    "retail_less_stable": Decimal("0.90"),
    "wholesale_operational": Decimal("0.50"),
    "wholesale_lt_6m": Decimal("0.00"),
    "wholesale_6m_1y": Decimal("0.50"),
    "wholesale_ge_1y": Decimal("1.00"),
    "other_liabilities": Decimal("0.00"),
}

RSF_FACTORS: dict[str, Decimal] = {
    "cash": Decimal("0.00"),
    "hqla_level_1": Decimal("0.00"),
    "hqla_level_2a": Decimal("0.15"),
    "hqla_level_2b": Decimal("0.50"),
    "secured_lending": Decimal("0.10"),
    "retail_mortgage_gt_1y": Decimal("0.65"),
    "loans": Decimal("0.85"),
    "securities": Decimal("0.85"),
    "facilities": Decimal("0.05"),
    "derivatives": Decimal("1.00"),
    "other_assets": Decimal("1.00"),
}


def _asf_rules() -> list[dict]:
    """Available stable funding rules (12 CFR 249.104)."""
    f = ASF_FACTORS
    return [
        _rule(
            "ASF_CAPITAL", "ASF", "ASF_Capital", "Regulatory Capital",
            f["capital"], "12 CFR 249.104(a)(1)",
            product_categories=["capital"],
            formula="outstanding_balance x 100%",
        ),
        _rule(
            "ASF_RETAIL_STABLE", "ASF", "ASF_Retail_Deposits", "Stable Retail Deposits",
            f["retail_stable"], "12 CFR 249.104(b)",
            product_categories=["deposits"],
            sub_products=["stable"],
            counterparty_types=["retail"],
            formula="outstanding_balance x 95%",
        ),
        _rule(
            "ASF_RETAIL_LESS_STABLE", "ASF", "ASF_Retail_Deposits", "Less Stable Retail Deposits",
            f["retail_less_stable"], "12 CFR 249.104(c)(1)",
            product_categories=["deposits"],
            sub_products=["less_stable"],
            counterparty_types=["retail"],
            formula="outstanding_balance x 90%",
        ),
        _rule(
            "ASF_RETAIL_OTHER", "ASF", "ASF_Retail_Deposits", "Other Retail Deposits",
            f["retail_less_stable"], "12 CFR 249.104(c)(1)",
            product_categories=["deposits"],
            counterparty_types=["retail"],
            formula="outstanding_balance x 90%",
        ),
        _rule(
            "ASF_WHOLESALE_OPERATIONAL", "ASF", "ASF_Wholesale_Funding", "Operational Wholesale Deposits",
            f["wholesale_operational"], "12 CFR 249.104(d)(2)",
            product_categories=["deposits"],
            sub_products=["operational"],
            counterparty_types=WHOLESALE_COUNTERPARTIES,
            formula="outstanding_balance x 50%",
        ),
        _rule(
            "ASF_WHOLESALE_LT_6M", "ASF", "ASF_Wholesale_Funding", "Wholesale Funding Under Six Months",
            f["wholesale_lt_6m"], "12 CFR 249.104(e)",
            product_categories=["deposits"],
            sub_products=["non_operational"],
            counterparty_types=WHOLESALE_COUNTERPARTIES,
            maturity_buckets=LESS_THAN_6_MONTHS,
            formula="outstanding_balance x 0%",
        ),
        _rule(
            "ASF_WHOLESALE_6M_1Y", "ASF", "ASF_Wholesale_Funding", "Wholesale Funding Six Months to One Year",
            f["wholesale_6m_1y"], "12 CFR 249.104(d)(3)",
            product_categories=["deposits"],
            sub_products=["non_operational"],
            counterparty_types=WHOLESALE_COUNTERPARTIES,
            maturity_buckets=SIX_MONTHS_TO_1_YEAR,
            formula="outstanding_balance x 50%",
        ),
        _rule(
            "ASF_WHOLESALE_GE_1Y", "ASF", "ASF_Wholesale_Funding", "Wholesale Funding of One Year or More",
            f["wholesale_ge_1y"], "12 CFR 249.104(a)(2)",
            product_categories=["deposits"],
            sub_products=["non_operational"],
            counterparty_types=WHOLESALE_COUNTERPARTIES,
            maturity_buckets=ONE_YEAR_OR_MORE,
            formula="outstanding_balance x 100%",
        ),
        _rule(
            "ASF_WHOLESALE_OTHER", "ASF", "ASF_Wholesale_Funding", "Other Wholesale Deposits",
            f["wholesale_lt_6m"], "12 CFR 249.104(e)",
            product_categories=["deposits"],
            counterparty_types=WHOLESALE_COUNTERPARTIES,
            formula="outstanding_balance x 0%",
        ),
        _rule(
            "ASF_SECURED_FUNDING_LT_6M", "ASF", "ASF_Secured_Funding", "Secured Funding Under Six Months",
            f["wholesale_lt_6m"], "12 CFR 249.104(e)",
            product_categories=["secured_funding"],
            sub_products=SECURED_FUNDING_SUB_PRODUCTS,
            maturity_buckets=LESS_THAN_6_MONTHS,
            formula="outstanding_balance x 0%",
        ),
        _rule(
            "ASF_SECURED_FUNDING_GE_6M", "ASF", "ASF_Secured_Funding", "Secured Funding of Six Months or More",
            f["wholesale_6m_1y"], "12 CFR 249.104(d)(3)",
            product_categories=["secured_funding"],
            sub_products=SECURED_FUNDING_SUB_PRODUCTS,
            maturity_buckets=SIX_MONTHS_TO_1_YEAR + ONE_YEAR_OR_MORE,
            formula="outstanding_balance x 50%",
        ),
        _rule(
            "ASF_OTHER_LIABILITIES", "ASF", "ASF_Other_Liabilities", "Other Liabilities",
            f["other_liabilities"], "12 CFR 249.104(e)",
            product_categories=["other_liabilities"],
            formula="outstanding_balance x 0%",
        ),
    ]


def _rsf_rules() -> list[dict]:
    """Required stable funding rules (12 CFR 249.106)."""
    f = RSF_FACTORS
    return [
        _rule(
            "RSF_CASH", "RSF", "RSF_HQLA", "Cash and Reserve Balances",
            f["cash"], "12 CFR 249.106(a)(1)",
            product_categories=["other_assets"],
            sub_products=["cash", "central_bank_reserves"],
            formula="outstanding_balance x 0%",
        ),
        _rule(
            "RSF_HQLA_L1", "RSF", "RSF_HQLA", "Level 1 Securities",
            f["hqla_level_1"], "12 CFR 249.106(a)(1)",
            product_categories=["securities"],
            hqla_levels=[1],
            formula="outstanding_balance x 0%",
        ),
        _rule(
            "RSF_HQLA_L2A", "RSF", "RSF_HQLA", "Level 2A Securities",
            f["hqla_level_2a"], "12 CFR 249.106(a)(3)",
            product_categories=["securities"],
            hqla_levels=[2],
            formula="outstanding_balance x 15%",
        ),
        _rule(
            "RSF_HQLA_L2B", "RSF", "RSF_HQLA", "Level 2B Securities",
            f["hqla_level_2b"], "12 CFR 249.106(a)(4)",
            product_categories=["securities"],
            hqla_levels=[3],
            formula="outstanding_balance x 50%",
        ),
        _rule(
            "RSF_SECURED_LENDING", "RSF", "RSF_Secured_Lending", "Reverse Repos and Securities Borrowing",
            f["secured_lending"], "12 CFR 249.106(a)(2)",
            product_categories=["secured_funding"],
            sub_products=["reverse_repo"],
            formula="outstanding_balance x 10%",
        ),
        _rule(
            "RSF_LOANS_RETAIL_GT_1Y", "RSF", "RSF_Loans", "Mortgages and Consumer Loans Over One Year",
            f["retail_mortgage_gt_1y"], "12 CFR 249.106(a)(5)",
            product_categories=["loans"],
            sub_products=["mortgage", "consumer"],
            maturity_buckets=ONE_YEAR_OR_MORE,
            formula="outstanding_balance x 65%",
        ),
        _rule(
            "RSF_LOANS", "RSF", "RSF_Loans", "Other Loans",
            f["loans"], "12 CFR 249.106(a)(6)",
            product_categories=["loans"],
            formula="outstanding_balance x 85%",
        ),
        _rule(
            "RSF_SECURITIES", "RSF", "RSF_Securities", "Non-HQLA Securities",
            f["securities"], "12 CFR 249.106(a)(6)",
            product_categories=["securities"],
            formula="outstanding_balance x 85%",
        ),
        _rule(
            "RSF_OFF_BALANCE_FACILITIES", "RSF", "RSF_Off_Balance_Sheet", "Undrawn Facilities",
            f["facilities"], "12 CFR 249.106(a)(2)(ii)",
            product_categories=["credit_facilities", "liquidity_facilities"],
            formula="undrawn amount x 5%",
        ),
        _rule(
            "RSF_DERIVATIVES", "RSF", "RSF_Derivatives", "Derivative Assets",
            f["derivatives"], "12 CFR 249.107",
            product_categories=["derivatives"],
            formula="outstanding_balance x 100%",
        ),
        _rule(
            "RSF_OTHER_ASSETS", "RSF", "RSF_Other_Assets", "Other Assets",
            f["other_assets"], "12 CFR 249.106(a)(8)",
            product_categories=["other_assets"],
            formula="outstanding_balance x 100%",
        ),
    ]


def _create_nsfr_rules_df() -> pl.DataFrame:
    """Create the reference NSFR rule DataFrame."""
    rows = _asf_rules() + _rsf_rules()
    return pl.DataFrame(rows, schema=CALCULATION_RULE_SCHEMA)


def get_nsfr_rules_table() -> pl.DataFrame:
    """
    Get the reference NSFR rule table.

    Returns:
        DataFrame with ASF and RSF family rules
    """
    return _create_nsfr_rules_df()
