"""
Liquidity Ratio Calculator.

Computes and validates the Liquidity Coverage Ratio (LCR) and the Net
Stable Funding Ratio (NSFR) from FR 2052a style line-item data.

Basic usage:
    >>> from datetime import date
    >>> from liquidity_calc.engine.pipeline import create_pipeline
    >>> from liquidity_calc.contracts.config import CalculationConfig
    >>>
    >>> config = CalculationConfig.us_liquidity(reporting_date=date(2025, 12, 31))
    >>> pipeline = create_pipeline(data_path="/path/to/data")
    >>> result = pipeline.run(config)
    >>> result.lcr.validation.ratio
"""

__version__ = "0.1.0"
__author__ = "OpenAfterHours"
__license__ = "Apache-2.0"

__all__ = [
    "__version__",
    "__author__",
    "__license__",
]
