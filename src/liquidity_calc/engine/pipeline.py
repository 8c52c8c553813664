"""
Pipeline Orchestrator for the liquidity calculator.

Orchestrates the complete LCR / NSFR pipeline, wiring together:
    Loader -> Categorizer -> Aggregator -> FactorApplier
        -> Cap Enforcer -> Ratio Calculator -> Validator -> RunHistory

Pipeline position:
    Entry point for full pipeline execution

Key responsibilities:
- Wire all pipeline components in correct order
- Scope line items and reported values to the configured submission and date
- Accumulate errors from all stages onto each run's ValidationResult
- Turn stage failures into failed, inspectable runs
- Support both full pipeline (with loader) and pre-loaded data execution

Usage:
    from liquidity_calc.engine.pipeline import create_pipeline

    pipeline = create_pipeline(data_path="/path/to/submission")
    result = pipeline.run(config)

    # Or with pre-loaded data:
    result = pipeline.run_with_data(input_bundle, config)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import polars as pl

from liquidity_calc.contracts.bundles import (
    CalculationRun,
    LiquidityInputBundle,
    LiquidityRunBundle,
    ValidationResult,
)
from liquidity_calc.contracts.errors import (
    ERROR_AMBIGUOUS_CLASSIFICATION,
    ERROR_INVALID_RULE,
    ERROR_UNCLASSIFIED_LIMIT,
    AmbiguousClassificationError,
    CalculationError,
    RuleRegistryError,
    classification_error,
)
from liquidity_calc.contracts.validation import validate_input_bundle
from liquidity_calc.data.schemas import (
    COMPONENT_BREAKDOWN_SCHEMA,
    EXCLUDED_ITEM_SCHEMA,
    UNCLASSIFIED_ITEM_SCHEMA,
)
from liquidity_calc.domain.enums import (
    CategoryFamily,
    ErrorCategory,
    ErrorSeverity,
    HQLALevel,
    RatioType,
    UnclassifiedPolicy,
    ValidationStatus,
)
from liquidity_calc.engine.caps import apply_cash_flow_caps, apply_hqla_caps
from liquidity_calc.engine.ratios import calculate_ratio, undefined_ratio_error
from liquidity_calc.engine.rules import RuleRegistry

if TYPE_CHECKING:
    from liquidity_calc.contracts.bundles import (
        CashFlowCapResult,
        HQLACapResult,
        RatioResult,
    )
    from liquidity_calc.contracts.config import CalculationConfig
    from liquidity_calc.contracts.protocols import (
        AggregatorProtocol,
        CategorizerProtocol,
        DataQualityCheckerProtocol,
        FactorApplierProtocol,
        LoaderProtocol,
        RunStoreProtocol,
        ValidatorProtocol,
    )

logger = logging.getLogger(__name__)

# Final ratio metric names
LCR_RATIO_METRIC = "lcr_ratio"
NSFR_RATIO_METRIC = "nsfr_ratio"

RATIO_METRICS = {
    RatioType.LCR: LCR_RATIO_METRIC,
    RatioType.NSFR: NSFR_RATIO_METRIC,
}


# =============================================================================
# Error Types
# =============================================================================


@dataclass
class PipelineError:
    """Error encountered during pipeline execution."""

    stage: str
    error_type: str
    message: str
    context: dict = field(default_factory=dict)


# =============================================================================
# Pipeline Orchestrator Implementation
# =============================================================================


class PipelineOrchestrator:
    """
    Orchestrate the complete liquidity calculation pipeline.

    Implements PipelineProtocol for:
    - Full pipeline execution from data loading to the final verdict
    - Pre-loaded data execution (bypassing loader)
    - Component dependency management
    - Error accumulation across stages

    Pipeline stages:
    1. Loader: Load line items, rules and reported values
    2. Input validation: Schema and data quality checks
    3. Rule registry: Validate the rule table (or use the reference set)
    4. Categorizer: Assign each line item one rule per family
    5. Aggregator: Group and sum categorised items
    6. FactorApplier: Produce the component breakdown
    7. Cap Enforcer: Level 2A / 2B caps, inflow cap, NCO floor (LCR)
    8. Ratio Calculator: LCR or NSFR
    9. Validator: Variance against reported values, overall status

    Every executed ratio yields a CalculationRun, including runs stopped
    by an ambiguous rule table, so a failure is always inspectable.

    Usage:
        orchestrator = PipelineOrchestrator(
            loader=ParquetLoader(base_path),
            categorizer=LineItemCategorizer(),
            aggregator=LineItemAggregator(),
            factor_applier=FactorApplier(),
            validator=RatioValidator(),
        )
        result = orchestrator.run(config)
    """

    def __init__(
        self,
        loader: LoaderProtocol | None = None,
        categorizer: CategorizerProtocol | None = None,
        aggregator: AggregatorProtocol | None = None,
        factor_applier: FactorApplierProtocol | None = None,
        validator: ValidatorProtocol | None = None,
        quality_checker: DataQualityCheckerProtocol | None = None,
        history: RunStoreProtocol | None = None,
    ) -> None:
        """
        Initialize pipeline with components.

        Components can be injected for testing or customization.
        If not provided, defaults will be created on first use.

        Args:
            loader: Data loader (optional - required for run())
            categorizer: Line item categorizer
            aggregator: Line item aggregator
            factor_applier: Factor applier
            validator: Ratio validator
            quality_checker: Line item data quality checker
            history: Append-only store every run is recorded in
        """
        self._loader = loader
        self._categorizer = categorizer
        self._aggregator = aggregator
        self._factor_applier = factor_applier
        self._validator = validator
        self._quality_checker = quality_checker
        self._history = history
        self._errors: list[PipelineError] = []

    @property
    def history(self) -> RunStoreProtocol:
        """Store the pipeline records runs in."""
        self._ensure_components_initialized()
        return self._history

    # =========================================================================
    # Public API
    # =========================================================================

    def run(
        self,
        config: CalculationConfig,
        ratio_types: tuple[RatioType, ...] = (RatioType.LCR, RatioType.NSFR),
    ) -> LiquidityRunBundle:
        """
        Execute the complete liquidity pipeline.

        Requires a loader to be configured.

        Args:
            config: Calculation configuration
            ratio_types: Ratios to calculate

        Returns:
            LiquidityRunBundle with one run per ratio

        Raises:
            ValueError: If no loader is configured
        """
        if self._loader is None:
            raise ValueError(
                "No loader configured. Use run_with_data() or provide a loader."
            )

        # Reset errors for new run
        self._errors = []

        # Stage 1: Load data
        try:
            data = self._loader.load()
        except Exception as e:
            logger.error("Loading failed: %s", e)
            self._errors.append(PipelineError(
                stage="loader",
                error_type="load_error",
                message=str(e),
            ))
            return self._failed_bundle([], config, ratio_types)

        return self.run_with_data(data, config, ratio_types)

    def run_with_data(
        self,
        data: LiquidityInputBundle,
        config: CalculationConfig,
        ratio_types: tuple[RatioType, ...] = (RatioType.LCR, RatioType.NSFR),
    ) -> LiquidityRunBundle:
        """
        Execute pipeline with pre-loaded data.

        Bypasses the loader stage, useful for testing or
        when data is already available.

        Args:
            data: Pre-loaded input bundle
            config: Calculation configuration
            ratio_types: Ratios to calculate

        Returns:
            LiquidityRunBundle with one run per ratio
        """
        # Reset errors for new run
        self._errors = []

        # Ensure components are initialized
        self._ensure_components_initialized()

        # Stage 2: Validate inputs
        input_errors = validate_input_bundle(data)
        if any(e.severity == ErrorSeverity.CRITICAL for e in input_errors):
            logger.error("Input validation failed with %d errors", len(input_errors))
            return self._failed_bundle(input_errors, config, ratio_types)

        line_items = self._scope_line_items(data.line_items, config)
        input_errors.extend(self._run_quality_checks(line_items))

        # Stage 3: Rule registry
        registry = self._build_registry(data.rules)
        if registry is None:
            return self._failed_bundle(input_errors, config, ratio_types)

        expected = self._scope_expected_values(data.expected_values, config)

        # Stages 4-9 per ratio
        runs: dict[RatioType, CalculationRun] = {}
        for ratio_type in ratio_types:
            runs[ratio_type] = self._run_ratio(
                line_items, registry, expected, input_errors, config, ratio_type
            )

        return LiquidityRunBundle(
            lcr=runs.get(RatioType.LCR),
            nsfr=runs.get(RatioType.NSFR),
            errors=input_errors + [self._convert_pipeline_error(e) for e in self._errors],
        )

    def run_lcr(
        self,
        data: LiquidityInputBundle,
        config: CalculationConfig,
    ) -> CalculationRun | None:
        """Run the LCR only."""
        return self.run_with_data(data, config, (RatioType.LCR,)).lcr

    def run_nsfr(
        self,
        data: LiquidityInputBundle,
        config: CalculationConfig,
    ) -> CalculationRun | None:
        """Run the NSFR only."""
        return self.run_with_data(data, config, (RatioType.NSFR,)).nsfr

    # =========================================================================
    # Private Methods - Component Initialization
    # =========================================================================

    def _ensure_components_initialized(self) -> None:
        """Ensure all required components are initialized."""
        from liquidity_calc.contracts.validation import LineItemQualityChecker
        from liquidity_calc.engine.aggregator import LineItemAggregator
        from liquidity_calc.engine.categorizer import LineItemCategorizer
        from liquidity_calc.engine.factors import FactorApplier
        from liquidity_calc.engine.history import RunHistory
        from liquidity_calc.engine.validator import RatioValidator

        if self._categorizer is None:
            self._categorizer = LineItemCategorizer()
        if self._aggregator is None:
            self._aggregator = LineItemAggregator()
        if self._factor_applier is None:
            self._factor_applier = FactorApplier()
        if self._validator is None:
            self._validator = RatioValidator()
        if self._quality_checker is None:
            self._quality_checker = LineItemQualityChecker()
        if self._history is None:
            self._history = RunHistory()

    # =========================================================================
    # Private Methods - Input Preparation
    # =========================================================================

    def _scope_line_items(
        self,
        line_items: pl.LazyFrame,
        config: CalculationConfig,
    ) -> pl.LazyFrame:
        """Keep line items of the configured submission, legal entity and date."""
        names = line_items.collect_schema().names()
        if config.submission_id is not None and "submission_id" in names:
            line_items = line_items.filter(pl.col("submission_id") == config.submission_id)
        if config.legal_entity_id is not None and "legal_entity_id" in names:
            line_items = line_items.filter(pl.col("legal_entity_id") == config.legal_entity_id)
        if "report_date" in names:
            line_items = line_items.filter(
                pl.col("report_date").is_null()
                | (pl.col("report_date") == pl.lit(config.reporting_date))
            )
        return line_items

    def _scope_expected_values(
        self,
        expected_values: pl.LazyFrame | None,
        config: CalculationConfig,
    ) -> pl.DataFrame | None:
        """Reported values of the configured submission and reporting date."""
        if expected_values is None:
            return None
        names = expected_values.collect_schema().names()
        if config.submission_id is not None and "submission_id" in names:
            expected_values = expected_values.filter(
                pl.col("submission_id").is_null()
                | (pl.col("submission_id") == config.submission_id)
            )
        if "report_date" in names:
            expected_values = expected_values.filter(
                pl.col("report_date").is_null()
                | (pl.col("report_date") == pl.lit(config.reporting_date))
            )
        return expected_values.select("ratio_type", "metric", "expected_value").collect()

    def _run_quality_checks(self, line_items: pl.LazyFrame) -> list[CalculationError]:
        """Run data quality checks; findings never stop the run."""
        try:
            errors = self._quality_checker.check(line_items)
        except Exception as e:
            logger.exception("Data quality checks failed")
            self._errors.append(PipelineError(
                stage="quality_checker",
                error_type="quality_check_error",
                message=str(e),
            ))
            return []
        if errors:
            logger.warning("Data quality checks raised %d findings", len(errors))
        return errors

    def _build_registry(self, rules: pl.LazyFrame | None) -> RuleRegistry | None:
        """Validate the supplied rule table, or fall back to the reference rules."""
        try:
            if rules is None:
                return RuleRegistry.reference()
            return RuleRegistry.from_frame(rules)
        except RuleRegistryError as e:
            logger.error("Invalid rule table: %s", e)
            self._errors.append(PipelineError(
                stage="rule_registry",
                error_type="invalid_rule",
                message=str(e),
                context={"rule_code": e.rule_code},
            ))
            return None

    def _expected_for(
        self,
        expected: pl.DataFrame | None,
        ratio_type: RatioType,
    ) -> dict[str, float]:
        if expected is None:
            return {}
        rows = expected.filter(
            (pl.col("ratio_type").str.to_uppercase() == ratio_type.value)
            & pl.col("expected_value").is_not_null()
        )
        return dict(zip(rows["metric"].to_list(), rows["expected_value"].to_list()))

    # =========================================================================
    # Private Methods - Stage Execution
    # =========================================================================

    def _run_ratio(
        self,
        line_items: pl.LazyFrame,
        registry: RuleRegistry,
        expected: pl.DataFrame | None,
        input_errors: list[CalculationError],
        config: CalculationConfig,
        ratio_type: RatioType,
    ) -> CalculationRun:
        """Run stages 4-9 for one ratio and record the run."""
        run_id = str(uuid.uuid4())
        created_at = datetime.now(timezone.utc)
        errors = list(input_errors)
        logger.info("Starting %s run %s", ratio_type.value, run_id)

        # Stage 4: Categorise
        try:
            categorized = self._categorizer.categorize(line_items, registry, ratio_type)
        except AmbiguousClassificationError as e:
            errors.append(classification_error(
                code=ERROR_AMBIGUOUS_CLASSIFICATION,
                message=str(e),
                severity=ErrorSeverity.CRITICAL,
                line_item_reference=e.line_item_references[0] if e.line_item_references else None,
                rule_code=", ".join(e.rule_codes),
            ))
            return self._record(
                self._failed_run(run_id, created_at, ratio_type, errors, config)
            )
        except Exception as e:
            logger.exception("%s run %s failed in categorizer", ratio_type.value, run_id)
            errors.append(self._convert_pipeline_error(PipelineError(
                stage="categorizer",
                error_type="categorization_error",
                message=str(e),
            )))
            return self._record(
                self._failed_run(run_id, created_at, ratio_type, errors, config)
            )
        errors.extend(categorized.errors)

        stage = "aggregator"
        try:
            # Stages 5-6: Aggregate and apply factors
            aggregated = self._aggregator.aggregate(categorized, config)
            errors.extend(aggregated.errors)
            stage = "factor_applier"
            breakdown = self._factor_applier.apply(aggregated, run_id, ratio_type).collect(
                engine=config.collect_engine
            )
            unclassified = categorized.unclassified.collect()
            excluded = aggregated.excluded.collect()

            # Stages 7-8: Caps and ratio
            stage = "cap_enforcer"
            category_totals = self._category_totals(breakdown, registry, ratio_type)
            hqla_caps = None
            cash_flow_caps = None
            if ratio_type == RatioType.LCR:
                hqla_caps, cash_flow_caps, totals, ratio = self._lcr_totals(
                    breakdown, category_totals, config
                )
                cap_flags, cap_amounts = self._cap_records(hqla_caps, cash_flow_caps)
            else:
                totals, ratio = self._nsfr_totals(breakdown, category_totals, config)
                cap_flags, cap_amounts = {}, {}

            undefined = undefined_ratio_error(ratio)
            if undefined is not None:
                logger.warning("%s run %s: %s", ratio_type.value, run_id, undefined.message)
                errors.append(undefined)

            unclassified_amount = float(
                unclassified["outstanding_balance"].fill_null(0.0).sum() or 0.0
            )
            limit_error = self._unclassified_limit_error(
                line_items, unclassified_amount, config
            )
            if limit_error is not None:
                errors.append(limit_error)

            # Stage 9: Validate
            stage = "validator"
            ratio_metric = RATIO_METRICS[ratio_type]
            calculated: dict[str, float | None] = {**totals, ratio_metric: ratio.ratio}
            metrics = self._validator.validate_metrics(
                calculated,
                self._expected_for(expected, ratio_type),
                ratio_metric,
                config.tolerances,
            )
            errors.extend(self._validator.variance_errors(metrics))
            status, reason_codes = self._validator.overall_status(metrics, ratio, errors)
        except Exception as e:
            logger.exception("%s run %s failed in %s", ratio_type.value, run_id, stage)
            errors.append(self._convert_pipeline_error(PipelineError(
                stage=stage,
                error_type=f"{stage}_error",
                message=str(e),
            )))
            return self._record(
                self._failed_run(run_id, created_at, ratio_type, errors, config)
            )

        validation = ValidationResult(
            run_id=run_id,
            submission_id=config.submission_id,
            reporting_date=config.reporting_date,
            ratio_type=ratio_type,
            totals=totals,
            cap_flags=cap_flags,
            cap_amounts=cap_amounts,
            ratio=ratio.ratio,
            is_compliant=ratio.is_compliant,
            metrics=metrics,
            overall_status=status,
            reason_codes=reason_codes,
            unclassified_amount=unclassified_amount,
            unclassified_count=unclassified.height,
            excluded_amount=float(excluded["basis_amount"].fill_null(0.0).sum() or 0.0),
            excluded_count=excluded.height,
            errors=tuple(errors),
            created_at=created_at,
        )

        logger.info(
            "%s run %s finished: ratio=%s status=%s",
            ratio_type.value,
            run_id,
            "undefined" if ratio.ratio is None else f"{ratio.ratio:.4f}",
            status.value,
        )

        return self._record(CalculationRun(
            run_id=run_id,
            ratio_type=ratio_type,
            breakdown=breakdown,
            validation=validation,
            unclassified=unclassified,
            excluded=excluded,
            hqla_caps=hqla_caps,
            cash_flow_caps=cash_flow_caps,
        ))

    def _record(self, run: CalculationRun) -> CalculationRun:
        self._history.append(run)
        return run

    # =========================================================================
    # Private Methods - Totals
    # =========================================================================

    def _category_totals(
        self,
        breakdown: pl.DataFrame,
        registry: RuleRegistry,
        ratio_type: RatioType,
    ) -> dict[str, float]:
        """
        Calculated amount per category.

        Every category of the ratio's rules is present, with zero when no
        line item landed in it.
        """
        sums = dict(
            breakdown.group_by("category")
            .agg(pl.col("calculated_amount").sum())
            .iter_rows()
        )
        totals: dict[str, float] = {}
        for rule in registry.for_ratio(ratio_type):
            totals.setdefault(rule.category, float(sums.get(rule.category, 0.0)))
        for category, amount in sums.items():
            totals.setdefault(category, float(amount))
        return totals

    def _family_total(self, breakdown: pl.DataFrame, family: CategoryFamily) -> float:
        return float(
            breakdown.filter(pl.col("family") == family.value)["calculated_amount"].sum() or 0.0
        )

    def _lcr_totals(
        self,
        breakdown: pl.DataFrame,
        category_totals: dict[str, float],
        config: CalculationConfig,
    ) -> tuple[HQLACapResult, CashFlowCapResult, dict[str, float], RatioResult]:
        hqla_caps = apply_hqla_caps(
            level1=category_totals.get(HQLALevel.LEVEL_1.category, 0.0),
            level2a=category_totals.get(HQLALevel.LEVEL_2A.category, 0.0),
            level2b=category_totals.get(HQLALevel.LEVEL_2B.category, 0.0),
            config=config.hqla_caps,
        )
        cash_flow_caps = apply_cash_flow_caps(
            total_outflows=self._family_total(breakdown, CategoryFamily.OUTFLOW),
            total_inflows=self._family_total(breakdown, CategoryFamily.INFLOW),
            config=config.cash_flow_caps,
        )

        totals = dict(category_totals)
        totals.update({
            "capped_level2a": hqla_caps.capped_level2a,
            "capped_level2b": hqla_caps.capped_level2b,
            "total_hqla": hqla_caps.total_hqla,
            "total_outflows": cash_flow_caps.total_outflows,
            "total_inflows": cash_flow_caps.total_inflows,
            "capped_inflows": cash_flow_caps.capped_inflows,
            "net_cash_outflows": cash_flow_caps.net_cash_outflows,
        })

        ratio = calculate_ratio(
            RatioType.LCR,
            hqla_caps.total_hqla,
            cash_flow_caps.net_cash_outflows,
            config.compliance_threshold,
        )
        return hqla_caps, cash_flow_caps, totals, ratio

    def _nsfr_totals(
        self,
        breakdown: pl.DataFrame,
        category_totals: dict[str, float],
        config: CalculationConfig,
    ) -> tuple[dict[str, float], RatioResult]:
        total_asf = self._family_total(breakdown, CategoryFamily.ASF)
        total_rsf = self._family_total(breakdown, CategoryFamily.RSF)

        totals = dict(category_totals)
        totals.update({"total_asf": total_asf, "total_rsf": total_rsf})

        ratio = calculate_ratio(
            RatioType.NSFR, total_asf, total_rsf, config.compliance_threshold
        )
        return totals, ratio

    def _cap_records(
        self,
        hqla_caps: HQLACapResult,
        cash_flow_caps: CashFlowCapResult,
    ) -> tuple[dict[str, bool], dict[str, float]]:
        """Cap flags and cap amounts for the ValidationResult."""
        flags = {
            "level2a_cap_applied": hqla_caps.level2a_cap_applied,
            "level2b_cap_applied": hqla_caps.level2b_cap_applied,
            "inflow_cap_applied": cash_flow_caps.inflow_cap_applied,
            "net_outflow_floor_applied": cash_flow_caps.net_outflow_floor_applied,
        }
        amounts = {
            "level2a_cap_amount": hqla_caps.capped_level2a,
            "level2a_cap_limit": hqla_caps.level2a_cap_limit,
            "level2b_cap_amount": hqla_caps.capped_level2b,
            "level2b_cap_limit": hqla_caps.level2b_cap_limit,
            "inflow_cap_amount": cash_flow_caps.capped_inflows,
            "inflow_cap_limit": cash_flow_caps.inflow_cap_limit,
            "net_outflow_floor": cash_flow_caps.net_outflow_floor,
        }
        return flags, amounts

    def _unclassified_limit_error(
        self,
        line_items: pl.LazyFrame,
        unclassified_amount: float,
        config: CalculationConfig,
    ) -> CalculationError | None:
        """CLS003 when a reject policy is configured and the limit is exceeded."""
        policy = config.unclassified
        if policy.policy != UnclassifiedPolicy.REJECT or unclassified_amount <= 0:
            return None

        total = float(
            line_items.select(pl.col("outstanding_balance").fill_null(0.0).sum())
            .collect()
            .item()
            or 0.0
        )
        share = unclassified_amount / total if total > 0 else 1.0
        if share <= float(policy.max_unclassified_share):
            return None

        return classification_error(
            code=ERROR_UNCLASSIFIED_LIMIT,
            message=(
                f"Unclassified balances are {share:.2%} of the submission, above the "
                f"{float(policy.max_unclassified_share):.2%} limit"
            ),
            severity=ErrorSeverity.CRITICAL,
        )

    # =========================================================================
    # Private Methods - Error Results
    # =========================================================================

    def _failed_run(
        self,
        run_id: str,
        created_at: datetime,
        ratio_type: RatioType,
        errors: list[CalculationError],
        config: CalculationConfig,
    ) -> CalculationRun:
        """Failed run for a stage that stopped before any totals existed."""
        reason_codes = tuple(dict.fromkeys(
            e.code for e in errors if e.severity == ErrorSeverity.CRITICAL
        ))
        validation = ValidationResult(
            run_id=run_id,
            submission_id=config.submission_id,
            reporting_date=config.reporting_date,
            ratio_type=ratio_type,
            totals={},
            cap_flags={},
            cap_amounts={},
            ratio=None,
            is_compliant=False,
            metrics=(),
            overall_status=ValidationStatus.FAILED,
            reason_codes=reason_codes,
            errors=tuple(errors),
            created_at=created_at,
        )
        logger.error("%s run %s failed: %s", ratio_type.value, run_id, ", ".join(reason_codes))
        return CalculationRun(
            run_id=run_id,
            ratio_type=ratio_type,
            breakdown=pl.DataFrame(schema=COMPONENT_BREAKDOWN_SCHEMA),
            validation=validation,
            unclassified=pl.DataFrame(schema=UNCLASSIFIED_ITEM_SCHEMA),
            excluded=pl.DataFrame(schema=EXCLUDED_ITEM_SCHEMA),
        )

    def _failed_bundle(
        self,
        errors: list[CalculationError],
        config: CalculationConfig,
        ratio_types: tuple[RatioType, ...],
    ) -> LiquidityRunBundle:
        """
        Record a failed run per requested ratio when the pipeline stops
        before any ratio could start (load, input or rule table failure).
        """
        self._ensure_components_initialized()
        errors = list(errors) + [self._convert_pipeline_error(e) for e in self._errors]
        created_at = datetime.now(timezone.utc)
        runs = {
            ratio_type: self._record(self._failed_run(
                str(uuid.uuid4()), created_at, ratio_type, errors, config
            ))
            for ratio_type in ratio_types
        }
        return LiquidityRunBundle(
            lcr=runs.get(RatioType.LCR),
            nsfr=runs.get(RatioType.NSFR),
            errors=errors,
        )

    def _convert_pipeline_error(self, error: PipelineError) -> CalculationError:
        """Convert PipelineError to standard error format."""
        if error.stage == "rule_registry":
            return CalculationError(
                code=ERROR_INVALID_RULE,
                message=f"Invalid rule table: {error.message}",
                severity=ErrorSeverity.CRITICAL,
                category=ErrorCategory.CONFIGURATION,
                rule_code=error.context.get("rule_code"),
            )
        return CalculationError(
            code=f"PIPELINE_{error.stage.upper()}",
            message=f"[{error.stage}] {error.error_type}: {error.message}",
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CALCULATION,
        )


# =============================================================================
# Factory Functions
# =============================================================================


def create_pipeline(
    data_path: str | Path | None = None,
    data_format: str = "parquet",
    loader: LoaderProtocol | None = None,
    history: RunStoreProtocol | None = None,
) -> PipelineOrchestrator:
    """
    Create a pipeline orchestrator with default components.

    Args:
        data_path: Path to data directory (creates a loader for data_format)
        data_format: "parquet" or "csv"
        loader: Pre-configured loader (overrides data_path)
        history: Run store (defaults to a fresh in-memory RunHistory)

    Returns:
        PipelineOrchestrator ready for use

    Usage:
        # With data path (uses ParquetLoader)
        pipeline = create_pipeline(data_path="/path/to/data")

        # With custom loader
        pipeline = create_pipeline(loader=CSVLoader("/path/to/data"))

        # Without loader (use run_with_data)
        pipeline = create_pipeline()
    """
    from liquidity_calc.engine.loader import create_loader

    if loader is None and data_path is not None:
        loader = create_loader(data_path, data_format)

    return PipelineOrchestrator(loader=loader, history=history)
