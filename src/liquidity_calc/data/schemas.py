"""
This module contains the schemas for all data inputs and outputs of liquidity_calc.

Covers the US LCR (12 CFR 249 Subparts C-D) and NSFR (Subparts K-L) computed
from FR 2052a style line items.

Key Data Inputs:
- Line_items                # One balance-sheet / cash-flow record per product, counterparty and maturity
- Calculation_rules         # Rule table: family, category, predicates, factor or formula, citation
- Expected_values           # Previously reported figures per metric, for variance checking

Predicate columns on Calculation_rules are lists; an empty list matches any value.
In CSV inputs they are pipe-delimited strings (e.g. "retail|wholesale").

Line item codes (FR 2052a style):
- product_category          # deposits, loans, securities, derivatives, secured_funding,
                            # credit_facilities, liquidity_facilities, capital, other_assets, other_liabilities
- counterparty_type         # retail, wholesale, corporate, sme, financial_institution, sovereign,
                            # government, central_bank, gse, ...
- maturity_bucket           # overnight, 2-7days, 8-30days, 31-90days, 91-180days, 181-365days, gt_1year, open
- hqla_level                # 1 = Level 1, 2 = Level 2A, 3 = Level 2B

Output Schemas:
- Component_breakdown       # One row per (family, category, subtype, rule, factor) group of a run
- Unclassified_items        # Line items matching no rule in the run
- Excluded_items            # Line items dropped for missing factor or collateral data
"""

import polars as pl

LINE_ITEM_SCHEMA = {
    "submission_id": pl.String,
    "legal_entity_id": pl.String,
    "report_date": pl.Date,
    "product_id": pl.String,
    "product_category": pl.String,
    "sub_product": pl.String,
    "counterparty_type": pl.String,
    "maturity_bucket": pl.String,
    "currency": pl.String,
    "outstanding_balance": pl.Float64,
    "projected_cash_inflow": pl.Float64,
    "projected_cash_outflow": pl.Float64,
    "is_hqla": pl.Boolean,
    "hqla_level": pl.Int8,  # 1 = Level 1, 2 = Level 2A, 3 = Level 2B
    "haircut": pl.Float64,  # Overrides the HQLA factor as 1 - haircut
    "runoff_rate": pl.Float64,
    "inflow_rate": pl.Float64,
    "asf_factor": pl.Float64,
    "rsf_factor": pl.Float64,
    "encumbered_amount": pl.Float64,
    "collateral_value": pl.Float64,  # Secured funding / lending only
    "collateral_haircut": pl.Float64,
    "collateral_hqla_level": pl.Int8,
}

REQUIRED_LINE_ITEM_COLUMNS = [
    "product_id",
    "product_category",
    "counterparty_type",
    "maturity_bucket",
    "outstanding_balance",
]

# Predicate dimensions: rule list column -> line item column
RULE_PREDICATE_COLUMNS = {
    "product_categories": "product_category",
    "sub_products": "sub_product",
    "counterparty_types": "counterparty_type",
    "maturity_buckets": "maturity_bucket",
    "hqla_levels": "hqla_level",
}

CALCULATION_RULE_SCHEMA = {
    "rule_code": pl.String,
    "rule_name": pl.String,
    "family": pl.String,  # HQLA, OUTFLOW, INFLOW, ASF, RSF
    "category": pl.String,
    "product_categories": pl.List(pl.String),
    "sub_products": pl.List(pl.String),
    "counterparty_types": pl.List(pl.String),
    "maturity_buckets": pl.List(pl.String),
    "hqla_levels": pl.List(pl.Int8),
    "factor_type": pl.String,  # flat, collateral_adjusted
    "amount_basis": pl.String,  # outstanding_balance, projected_cash_outflow, projected_cash_inflow
    "factor_applied": pl.Float64,  # Null for collateral_adjusted rules
    "calculation_formula": pl.String,
    "regulatory_citation": pl.String,
    "appendix_reference": pl.String,
    "rule_description": pl.String,
    "examples": pl.String,
}

EXPECTED_VALUE_SCHEMA = {
    "submission_id": pl.String,
    "report_date": pl.Date,
    "ratio_type": pl.String,  # LCR, NSFR
    "metric": pl.String,  # e.g. total_hqla, Cash_Outflows_Retail, lcr_ratio
    "expected_value": pl.Float64,
}

COMPONENT_BREAKDOWN_SCHEMA = {
    "run_id": pl.String,
    "ratio_type": pl.String,
    "family": pl.String,
    "category": pl.String,
    "subtype": pl.String,  # sub_product, falling back to product_category
    "rule_code": pl.String,
    "factor_type": pl.String,
    "total_amount": pl.Float64,
    "factor": pl.Float64,
    "calculated_amount": pl.Float64,
    "record_count": pl.UInt32,
    "line_references": pl.List(pl.String),
    "regulatory_citation": pl.String,
}

UNCLASSIFIED_ITEM_SCHEMA = {
    "product_id": pl.String,
    "product_category": pl.String,
    "sub_product": pl.String,
    "counterparty_type": pl.String,
    "maturity_bucket": pl.String,
    "outstanding_balance": pl.Float64,
}

EXCLUDED_ITEM_SCHEMA = {
    "product_id": pl.String,
    "family": pl.String,
    "rule_code": pl.String,
    "basis_amount": pl.Float64,
    "exclusion_reason": pl.String,  # missing_factor, missing_collateral
}
