"""
Protocol definitions for liquidity calculator components.

Defines interfaces using Python's Protocol (PEP 544) for structural
typing. Components implementing these protocols can be:
- Easily mocked for unit testing
- Swapped for different implementations

Each protocol represents a distinct pipeline stage:
    LoaderProtocol -> CategorizerProtocol -> AggregatorProtocol
        -> FactorApplierProtocol -> (caps, ratio) -> ValidatorProtocol
        -> RunStoreProtocol

All frame-based protocols use LazyFrames to maintain deferred execution.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import polars as pl

    from liquidity_calc.contracts.bundles import (
        AggregatedBundle,
        CalculationRun,
        CategorizedBundle,
        LiquidityInputBundle,
        LiquidityRunBundle,
        MetricValidation,
        RatioResult,
    )
    from liquidity_calc.contracts.config import CalculationConfig, ToleranceConfig
    from liquidity_calc.contracts.errors import CalculationError
    from liquidity_calc.domain.enums import RatioType, ValidationStatus
    from liquidity_calc.engine.rules import RuleRegistry


@runtime_checkable
class LoaderProtocol(Protocol):
    """
    Protocol for data loading components.

    Responsible for loading line items, the rule table and reported
    figures, and converting them to LazyFrames with expected schemas.
    """

    def load(self) -> LiquidityInputBundle:
        """
        Load all required data and return as a LiquidityInputBundle.

        Raises:
            DataLoadError: If required data cannot be loaded
        """
        ...


@runtime_checkable
class CategorizerProtocol(Protocol):
    """
    Protocol for line item categorisation.

    Assigns each line item to at most one rule per category family
    using most-specific-match selection.

    Input: line items + RuleRegistry
    Output: CategorizedBundle
    """

    def categorize(
        self,
        line_items: pl.LazyFrame,
        registry: RuleRegistry,
        ratio_type: RatioType,
    ) -> CategorizedBundle:
        """
        Categorise line items for every family of a ratio.

        Raises:
            AmbiguousClassificationError: If equally specific rules match
        """
        ...


@runtime_checkable
class AggregatorProtocol(Protocol):
    """
    Protocol for grouping categorised line items.

    Input: CategorizedBundle
    Output: AggregatedBundle with one row per
        (family, category, subtype, rule, factor)
    """

    def aggregate(
        self,
        data: CategorizedBundle,
        config: CalculationConfig,
    ) -> AggregatedBundle:
        ...


@runtime_checkable
class FactorApplierProtocol(Protocol):
    """
    Protocol for applying rule factors to aggregated groups.

    Output rows follow COMPONENT_BREAKDOWN_SCHEMA.
    """

    def apply(
        self,
        data: AggregatedBundle,
        run_id: str,
        ratio_type: RatioType,
    ) -> pl.LazyFrame:
        ...


@runtime_checkable
class ValidatorProtocol(Protocol):
    """
    Protocol for variance checking of calculated figures.

    Compares calculated metrics against reported values and derives
    per-metric and overall statuses.
    """

    def validate_metrics(
        self,
        calculated: dict[str, float | None],
        expected: dict[str, float],
        ratio_metric: str,
        tolerances: ToleranceConfig,
    ) -> tuple[MetricValidation, ...]:
        ...

    def variance_errors(
        self,
        metrics: tuple[MetricValidation, ...],
    ) -> list[CalculationError]:
        ...

    def overall_status(
        self,
        metrics: tuple[MetricValidation, ...],
        ratio: RatioResult,
        errors: list[CalculationError],
    ) -> tuple[ValidationStatus, tuple[str, ...]]:
        ...


@runtime_checkable
class RunStoreProtocol(Protocol):
    """
    Protocol for append-only storage of calculation runs.

    Implementations must never overwrite or mutate an existing run.
    """

    def append(self, run: CalculationRun) -> None:
        """
        Record a run.

        Raises:
            ValueError: If a run with the same run_id already exists
        """
        ...


@runtime_checkable
class PipelineProtocol(Protocol):
    """
    Protocol for the complete calculation pipeline.

    Orchestrates all components from data loading through
    the final verdict.
    """

    def run(self, config: CalculationConfig) -> LiquidityRunBundle:
        """Execute the complete LCR and NSFR pipeline."""
        ...

    def run_with_data(
        self,
        data: LiquidityInputBundle,
        config: CalculationConfig,
    ) -> LiquidityRunBundle:
        """Execute pipeline with pre-loaded data."""
        ...


# =============================================================================
# VALIDATION HELPER PROTOCOLS
# =============================================================================


@runtime_checkable
class DataQualityCheckerProtocol(Protocol):
    """
    Protocol for data quality checking components.

    Performs data quality checks on input line items.
    """

    def check(self, line_items: pl.LazyFrame) -> list[CalculationError]:
        """
        Run data quality checks on line items.

        Returns:
            List of CalculationError for any issues found
        """
        ...
