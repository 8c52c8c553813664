"""
Domain module for the liquidity calculator.

Contains core enumerations used throughout the calculation pipeline.
"""

from liquidity_calc.domain.enums import (
    AmountBasis,
    CategoryFamily,
    ErrorCategory,
    ErrorSeverity,
    FactorType,
    HQLALevel,
    MaturityBucket,
    RatioType,
    UnclassifiedPolicy,
    ValidationStatus,
)

__all__ = [
    "AmountBasis",
    "CategoryFamily",
    "ErrorCategory",
    "ErrorSeverity",
    "FactorType",
    "HQLALevel",
    "MaturityBucket",
    "RatioType",
    "UnclassifiedPolicy",
    "ValidationStatus",
]
