"""
US liquidity reference rule tables.

This module provides the reference calculation rules as Polars DataFrames
for the categorisation join in the calculation pipeline. Tables are defined
per 12 CFR Part 249 (Regulation WW) and the FR 2052a LCR / NSFR mappings.

Modules:
    lcr_rules: HQLA, outflow and inflow rules for the LCR
    nsfr_rules: Available and required stable funding rules for the NSFR
"""

from .lcr_rules import (
    BEYOND_30_DAYS,
    HQLA_FACTORS,
    INFLOW_RATES,
    OUTFLOW_RUNOFF_RATES,
    WITHIN_30_DAYS,
    get_lcr_rules_table,
)
from .nsfr_rules import (
    ASF_FACTORS,
    RSF_FACTORS,
    get_nsfr_rules_table,
)

__all__ = [
    # LCR
    "WITHIN_30_DAYS",
    "BEYOND_30_DAYS",
    "HQLA_FACTORS",
    "OUTFLOW_RUNOFF_RATES",
    "INFLOW_RATES",
    "get_lcr_rules_table",
    # NSFR
    "ASF_FACTORS",
    "RSF_FACTORS",
    "get_nsfr_rules_table",
]
