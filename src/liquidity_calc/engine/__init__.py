"""
Liquidity calculation engine components.

This package contains the production implementations of the calculator
pipeline stages:

    Loader -> Categorizer -> Aggregator -> FactorApplier
        -> Cap Enforcer -> Ratio Calculator -> Validator -> RunHistory

Each component implements a protocol from liquidity_calc.contracts.protocols.

Modules:
    loader: Data loading from files
    rules: Calculation rules and the validated rule registry
    categorizer: Line item categorisation by rule predicates
    aggregator: Grouping and exclusion of categorised items
    factors: Factor application producing the component breakdown
    caps: Level 2A / 2B caps, inflow cap and net outflow floor
    ratios: LCR and NSFR calculation
    validator: Variance validation and overall status
    history: Append-only run history and on-disk archive
    pipeline: Pipeline orchestration

Polars Namespaces:
    All namespaces are registered when their parent modules are imported.
    - lf.liquidity: Rule matching, aggregation and factor application
"""

# Import namespace modules to register namespaces on module load
import liquidity_calc.engine.liquidity_namespace  # noqa: F401

from .loader import CSVLoader, ParquetLoader, create_loader
from .rules import CalculationRule, RuleRegistry
from .categorizer import LineItemCategorizer, create_categorizer
from .aggregator import LineItemAggregator, create_aggregator
from .factors import FactorApplier, create_factor_applier
from .caps import apply_cash_flow_caps, apply_hqla_caps
from .ratios import calculate_lcr, calculate_nsfr, calculate_ratio
from .validator import RatioValidator, create_validator
from .history import ArchivedRun, RunArchive, RunHistory
from .pipeline import PipelineOrchestrator, create_pipeline
from .liquidity_namespace import LiquidityLazyFrame

__all__ = [
    "ParquetLoader",
    "CSVLoader",
    "create_loader",
    "CalculationRule",
    "RuleRegistry",
    "LineItemCategorizer",
    "create_categorizer",
    "LineItemAggregator",
    "create_aggregator",
    "FactorApplier",
    "create_factor_applier",
    "apply_hqla_caps",
    "apply_cash_flow_caps",
    "calculate_ratio",
    "calculate_lcr",
    "calculate_nsfr",
    "RatioValidator",
    "create_validator",
    "RunHistory",
    "RunArchive",
    "ArchivedRun",
    "PipelineOrchestrator",
    "create_pipeline",
    # Namespace classes
    "LiquidityLazyFrame",
]
