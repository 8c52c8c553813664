"""
Line item test fixtures module.

This module provides functions to build, create and save FR 2052a style
line items and reported values for the liquidity calculator tests.
"""

from .line_items import (
    LEGAL_ENTITY_ID,
    REPORTING_DATE,
    SUBMISSION_ID,
    create_expected_values,
    create_line_items,
    create_sample_expected_values,
    create_sample_line_items,
    expected_value,
    line_item,
    rules_to_csv_frame,
    save_submission,
)

__all__ = [
    "LEGAL_ENTITY_ID",
    "REPORTING_DATE",
    "SUBMISSION_ID",
    "line_item",
    "create_line_items",
    "expected_value",
    "create_expected_values",
    "create_sample_line_items",
    "create_sample_expected_values",
    "rules_to_csv_frame",
    "save_submission",
]
