"""
US LCR reference calculation rules (12 CFR 249 Subparts C-D).

Provides the reference rule table as a Polars DataFrame. Each row is a
tagged predicate set: a line item matches a rule when its product
category, sub-product, counterparty type, maturity bucket and HQLA level
are each in the rule's list (an empty list matches any value). The most
specific matching rule wins within a family.

Rules with a zero factor place products that are legitimately outside a
family's 30-day horizon, so they are not reported as unclassified.

Reference:
    12 CFR 249.20: High-quality liquid asset criteria
    12 CFR 249.21: High-quality liquid asset amount
    12 CFR 249.32: Outflow amounts
    12 CFR 249.33: Inflow amounts
    FR 2052a Appendix VI: LCR to FR 2052a mapping
"""

from decimal import Decimal

import polars as pl

from liquidity_calc.data.schemas import CALCULATION_RULE_SCHEMA


# =============================================================================
# MATURITY HORIZONS
# =============================================================================

WITHIN_30_DAYS: list[str] = ["overnight", "2-7days", "8-30days"]
BEYOND_30_DAYS: list[str] = ["31-90days", "91-180days", "181-365days", "gt_1year"]


# =============================================================================
# REFERENCE FACTORS (12 CFR 249.21, 249.32, 249.33)
# =============================================================================

# HQLA factor = 1 - haircut
HQLA_FACTORS: dict[str, Decimal] = {
    "HQLA_Level_1": Decimal("1.00"),
    "HQLA_Level_2A": Decimal("0.85"),
    "HQLA_Level_2B": Decimal("0.50"),
}

OUTFLOW_RUNOFF_RATES: dict[str, Decimal] = {
    "retail_stable": Decimal("0.03"),
    "retail_less_stable": Decimal("0.10"),
    "wholesale_operational": Decimal("0.25"),
    "wholesale_non_operational": Decimal("0.40"),
    "financial_institution": Decimal("1.00"),
    "committed_facilities": Decimal("0.05"),
}

INFLOW_RATES: dict[str, Decimal] = {
    "loans_non_financial": Decimal("0.50"),
    "loans_financial": Decimal("1.00"),
    "securities": Decimal("1.00"),
    "reverse_repo_central_bank": Decimal("1.00"),
}


def _rule(
    rule_code: str,
    family: str,
    category: str,
    rule_name: str,
    factor: Decimal | None,
    citation: str,
    product_categories: list[str] | None = None,
    sub_products: list[str] | None = None,
    counterparty_types: list[str] | None = None,
    maturity_buckets: list[str] | None = None,
    hqla_levels: list[int] | None = None,
    factor_type: str = "flat",
    amount_basis: str = "outstanding_balance",
    formula: str = "",
    appendix_reference: str | None = None,
    description: str | None = None,
    examples: str | None = None,
) -> dict:
    """Build one rule row with every column of the rule schema populated."""
    return {
        "rule_code": rule_code,
        "rule_name": rule_name,
        "family": family,
        "category": category,
        "product_categories": product_categories or [],
        "sub_products": sub_products or [],
        "counterparty_types": counterparty_types or [],
        "maturity_buckets": maturity_buckets or [],
        "hqla_levels": hqla_levels or [],
        "factor_type": factor_type,
        "amount_basis": amount_basis,
        "factor_applied": float(factor) if factor is not None else None,
        "calculation_formula": formula,
        "regulatory_citation": citation,
        "appendix_reference": appendix_reference,
        "rule_description": description,
        "examples": examples,
    }


def _hqla_rules() -> list[dict]:
    """HQLA level assignment rules (12 CFR 249.20)."""
    return [
        _rule(
            "HQLA_L1_CASH", "HQLA", "HQLA_Level_1", "Cash and Reserve Balances",
            HQLA_FACTORS["HQLA_Level_1"], "12 CFR 249.20(a)(1)-(2)",
            product_categories=["other_assets"],
            sub_products=["cash", "central_bank_reserves"],
            formula="(outstanding_balance - encumbered_amount) x 1.00",
            appendix_reference="FR 2052a I.A.1, I.A.2",
            description="Currency, coin and withdrawable reserves held at a Federal Reserve Bank",
            examples="Vault cash; excess reserves at the Federal Reserve",
        ),
        _rule(
            "HQLA_L1_TREASURY", "HQLA", "HQLA_Level_1", "US Treasury and Sovereign Securities",
            HQLA_FACTORS["HQLA_Level_1"], "12 CFR 249.20(a)(3)-(4)",
            product_categories=["securities"],
            sub_products=["treasury"],
            counterparty_types=["sovereign", "government", "central_bank"],
            formula="(outstanding_balance - encumbered_amount) x 1.00",
            appendix_reference="FR 2052a I.A.3",
            description="Securities issued or unconditionally guaranteed by the US Treasury or a 0% risk-weight sovereign",
            examples="US Treasury bills, notes and bonds",
        ),
        _rule(
            "HQLA_L2A_GSE", "HQLA", "HQLA_Level_2A", "GSE Obligations",
            HQLA_FACTORS["HQLA_Level_2A"], "12 CFR 249.20(b)(1)",
            product_categories=["securities"],
            sub_products=["agency"],
            formula="(outstanding_balance - encumbered_amount) x 0.85",
            appendix_reference="FR 2052a I.A.4",
            description="Investment-grade securities issued or guaranteed by a US GSE",
            examples="Fannie Mae / Freddie Mac debentures and MBS",
        ),
        _rule(
            "HQLA_L2A_SOVEREIGN", "HQLA", "HQLA_Level_2A", "Level 2A Sovereign and PSE Securities",
            HQLA_FACTORS["HQLA_Level_2A"], "12 CFR 249.20(b)(2)",
            product_categories=["securities"],
            counterparty_types=["sovereign", "government", "public_sector_entity"],
            hqla_levels=[2],
            formula="(outstanding_balance - encumbered_amount) x 0.85",
            appendix_reference="FR 2052a I.A.4",
            description="Securities of sovereigns or PSEs assigned a 20% risk weight",
            examples="20% risk-weighted foreign sovereign bonds",
        ),
        _rule(
            "HQLA_L2B_CORPORATE", "HQLA", "HQLA_Level_2B", "Level 2B Corporate Debt and Equities",
            HQLA_FACTORS["HQLA_Level_2B"], "12 CFR 249.20(c)",
            product_categories=["securities"],
            sub_products=["corporate_bond", "equity"],
            hqla_levels=[3],
            formula="(outstanding_balance - encumbered_amount) x 0.50",
            appendix_reference="FR 2052a I.A.5",
            description="Investment-grade publicly traded corporate debt and S&P 500 equities",
            examples="Investment-grade non-financial corporate bonds; Russell 1000 common stock",
        ),
    ]


def _outflow_rules() -> list[dict]:
    """Cash outflow rules (12 CFR 249.32)."""
    rates = OUTFLOW_RUNOFF_RATES
    return [
        _rule(
            "OUTFLOW_RETAIL_STABLE", "OUTFLOW", "Cash_Outflows_Retail", "Stable Retail Deposits",
            rates["retail_stable"], "12 CFR 249.32(a)(1)",
            product_categories=["deposits"],
            sub_products=["stable"],
            counterparty_types=["retail"],
            formula="outstanding_balance x 3%",
            appendix_reference="FR 2052a O.D.1",
            description="Fully insured retail deposits in transactional accounts or with an established relationship",
        ),
        _rule(
            "OUTFLOW_RETAIL_LESS_STABLE", "OUTFLOW", "Cash_Outflows_Retail", "Less Stable Retail Deposits",
            rates["retail_less_stable"], "12 CFR 249.32(a)(2)",
            product_categories=["deposits"],
            sub_products=["less_stable"],
            counterparty_types=["retail"],
            formula="outstanding_balance x 10%",
            appendix_reference="FR 2052a O.D.2",
        ),
        _rule(
            "OUTFLOW_RETAIL_OTHER", "OUTFLOW", "Cash_Outflows_Retail", "Other Retail Deposits",
            rates["retail_less_stable"], "12 CFR 249.32(a)(2)",
            product_categories=["deposits"],
            counterparty_types=["retail"],
            formula="outstanding_balance x 10%",
            appendix_reference="FR 2052a O.D.2",
        ),
        _rule(
            "OUTFLOW_WHOLESALE_OPERATIONAL", "OUTFLOW", "Cash_Outflows_Wholesale",
            "Operational Wholesale Deposits",
            rates["wholesale_operational"], "12 CFR 249.32(h)(3)",
            product_categories=["deposits"],
            sub_products=["operational"],
            counterparty_types=["wholesale", "corporate", "sme", "financial_institution"],
            formula="outstanding_balance x 25%",
            appendix_reference="FR 2052a O.D.5",
        ),
        _rule(
            "OUTFLOW_WHOLESALE_NON_OPERATIONAL", "OUTFLOW", "Cash_Outflows_Wholesale",
            "Non-Operational Wholesale Deposits",
            rates["wholesale_non_operational"], "12 CFR 249.32(h)(2)",
            product_categories=["deposits"],
            counterparty_types=["wholesale", "corporate", "sme"],
            formula="outstanding_balance x 40%",
            appendix_reference="FR 2052a O.D.7",
        ),
        _rule(
            "OUTFLOW_WHOLESALE_FINANCIAL", "OUTFLOW", "Cash_Outflows_Wholesale",
            "Financial Institution Deposits",
            rates["financial_institution"], "12 CFR 249.32(h)(2)(ii)",
            product_categories=["deposits"],
            counterparty_types=["financial_institution"],
            formula="outstanding_balance x 100%",
            appendix_reference="FR 2052a O.D.8",
        ),
        _rule(
            "OUTFLOW_SECURED_FUNDING", "OUTFLOW", "Cash_Outflows_Secured_Funding",
            "Secured Funding Within 30 Days",
            None, "12 CFR 249.32(j)",
            product_categories=["secured_funding"],
            sub_products=["repo", "securities_lending", "collateral_swap"],
            maturity_buckets=WITHIN_30_DAYS + ["open"],
            factor_type="collateral_adjusted",
            formula="max(0, outstanding_balance - collateral_value x (1 - collateral haircut))",
            appendix_reference="FR 2052a O.S.1-O.S.7",
            description="Outflow equals the funding not covered by the liquidity value of the collateral",
            examples="Repo of Level 1 collateral has no outflow; repo of non-HQLA has a 100% outflow",
        ),
        _rule(
            "OUTFLOW_SECURED_FUNDING_TERM", "OUTFLOW", "Cash_Outflows_Secured_Funding",
            "Secured Funding Beyond 30 Days",
            Decimal("0.00"), "12 CFR 249.31(a)",
            product_categories=["secured_funding"],
            sub_products=["repo", "securities_lending", "collateral_swap"],
            maturity_buckets=BEYOND_30_DAYS,
            formula="outstanding_balance x 0%",
        ),
        _rule(
            "OUTFLOW_DERIVATIVES", "OUTFLOW", "Cash_Outflows_Derivatives", "Derivative Cash Outflows",
            Decimal("1.00"), "12 CFR 249.32(c)",
            product_categories=["derivatives"],
            amount_basis="projected_cash_outflow",
            formula="net derivative cash outflow x 100%",
            appendix_reference="FR 2052a O.W.1",
        ),
        _rule(
            "OUTFLOW_CREDIT_LIQUIDITY_FACILITIES", "OUTFLOW", "Cash_Outflows_Contingent",
            "Committed Credit and Liquidity Facilities",
            rates["committed_facilities"], "12 CFR 249.32(e)",
            product_categories=["credit_facilities", "liquidity_facilities"],
            formula="undrawn amount x 5%",
            appendix_reference="FR 2052a O.O.4-O.O.5",
        ),
        _rule(
            "OUTFLOW_OTHER_CONTRACTUAL", "OUTFLOW", "Cash_Outflows_Other",
            "Other Contractual Outflows Within 30 Days",
            Decimal("1.00"), "12 CFR 249.32(l)",
            product_categories=["other_liabilities"],
            maturity_buckets=WITHIN_30_DAYS,
            amount_basis="projected_cash_outflow",
            formula="projected_cash_outflow x 100%",
            appendix_reference="FR 2052a O.O.20",
        ),
        _rule(
            "OUTFLOW_OTHER_LIABILITIES_TERM", "OUTFLOW", "Cash_Outflows_Other",
            "Other Liabilities Beyond 30 Days",
            Decimal("0.00"), "12 CFR 249.31(a)",
            product_categories=["other_liabilities"],
            maturity_buckets=BEYOND_30_DAYS + ["open"],
            formula="outstanding_balance x 0%",
        ),
        _rule(
            "OUTFLOW_CAPITAL", "OUTFLOW", "Cash_Outflows_Other", "Regulatory Capital",
            Decimal("0.00"), "12 CFR 249.31(a)",
            product_categories=["capital"],
            formula="outstanding_balance x 0%",
        ),
    ]


def _inflow_rules() -> list[dict]:
    """Cash inflow rules (12 CFR 249.33)."""
    return [
        _rule(
            "INFLOW_LOANS_MATURING", "INFLOW", "Cash_Inflows_Contractual",
            "Maturing Loans to Non-Financial Counterparties",
            INFLOW_RATES["loans_non_financial"], "12 CFR 249.33(d)(1)",
            product_categories=["loans"],
            maturity_buckets=WITHIN_30_DAYS,
            amount_basis="projected_cash_inflow",
            formula="projected_cash_inflow x 50%",
            appendix_reference="FR 2052a I.U.5",
        ),
        _rule(
            "INFLOW_LOANS_FINANCIAL", "INFLOW", "Cash_Inflows_Contractual",
            "Maturing Loans to Financial Institutions",
            INFLOW_RATES["loans_financial"], "12 CFR 249.33(d)(2)",
            product_categories=["loans"],
            counterparty_types=["financial_institution"],
            maturity_buckets=WITHIN_30_DAYS,
            amount_basis="projected_cash_inflow",
            formula="projected_cash_inflow x 100%",
            appendix_reference="FR 2052a I.U.6",
        ),
        _rule(
            "INFLOW_SECURITIES_MATURING", "INFLOW", "Cash_Inflows_Contractual",
            "Maturing Securities",
            INFLOW_RATES["securities"], "12 CFR 249.33(e)",
            product_categories=["securities"],
            maturity_buckets=WITHIN_30_DAYS,
            amount_basis="projected_cash_inflow",
            formula="projected_cash_inflow x 100%",
            appendix_reference="FR 2052a I.O.7",
        ),
        _rule(
            "INFLOW_SECURED_LENDING", "INFLOW", "Cash_Inflows_Secured_Lending",
            "Reverse Repos and Securities Borrowing",
            None, "12 CFR 249.33(f)",
            product_categories=["secured_funding"],
            sub_products=["reverse_repo"],
            maturity_buckets=WITHIN_30_DAYS + ["open"],
            factor_type="collateral_adjusted",
            formula="max(0, outstanding_balance - collateral_value x (1 - collateral haircut))",
            appendix_reference="FR 2052a I.S.1-I.S.7",
            description="Inflow equals the lending not covered by the liquidity value of the collateral received",
        ),
        _rule(
            "INFLOW_REVERSE_REPO_CENTRAL_BANK", "INFLOW", "Cash_Inflows_Secured_Lending",
            "Reverse Repos with Central Banks",
            INFLOW_RATES["reverse_repo_central_bank"], "12 CFR 249.33(f)(1)",
            product_categories=["secured_funding"],
            sub_products=["reverse_repo"],
            counterparty_types=["central_bank"],
            maturity_buckets=WITHIN_30_DAYS + ["open"],
            formula="outstanding_balance x 100%",
            appendix_reference="FR 2052a I.S.1",
        ),
        _rule(
            "INFLOW_BEYOND_30_DAYS", "INFLOW", "Cash_Inflows_Contractual",
            "Inflows Beyond 30 Days",
            Decimal("0.00"), "12 CFR 249.33(a)",
            product_categories=["loans", "securities"],
            maturity_buckets=BEYOND_30_DAYS + ["open"],
            amount_basis="projected_cash_inflow",
            formula="projected_cash_inflow x 0%",
        ),
        _rule(
            "INFLOW_SECURED_LENDING_TERM", "INFLOW", "Cash_Inflows_Secured_Lending",
            "Secured Lending Beyond 30 Days",
            Decimal("0.00"), "12 CFR 249.33(a)",
            product_categories=["secured_funding"],
            sub_products=["reverse_repo"],
            maturity_buckets=BEYOND_30_DAYS,
            formula="outstanding_balance x 0%",
        ),
        _rule(
            "INFLOW_NON_FINANCIAL_ASSETS", "INFLOW", "Cash_Inflows_Contractual",
            "Non-Financial Assets",
            Decimal("0.00"), "12 CFR 249.33(b)",
            product_categories=["other_assets"],
            sub_products=["fixed_assets", "intangibles"],
            formula="outstanding_balance x 0%",
        ),
    ]


def _create_lcr_rules_df() -> pl.DataFrame:
    """Create the reference LCR rule DataFrame."""
    rows = _hqla_rules() + _outflow_rules() + _inflow_rules()
    return pl.DataFrame(rows, schema=CALCULATION_RULE_SCHEMA)


def get_lcr_rules_table() -> pl.DataFrame:
    """
    Get the reference LCR rule table.

    Returns:
        DataFrame with HQLA, OUTFLOW and INFLOW family rules
    """
    return _create_lcr_rules_df()
