"""
Data loader implementations for the liquidity calculator.

Provides concrete implementations of LoaderProtocol for loading
line items, calculation rules and reported values from files.

Classes:
    ParquetLoader: Load data from Parquet files
    CSVLoader: Load data from CSV files

Usage:
    from liquidity_calc.engine.loader import ParquetLoader

    loader = ParquetLoader(base_path="/path/to/submission")
    data = loader.load()

The loader returns a LiquidityInputBundle. A missing rule file means the
reference rule set is used; a missing expected values file means no
variance checking.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import polars as pl

from liquidity_calc.contracts.bundles import LiquidityInputBundle
from liquidity_calc.data.schemas import (
    CALCULATION_RULE_SCHEMA,
    EXPECTED_VALUE_SCHEMA,
    LINE_ITEM_SCHEMA,
    RULE_PREDICATE_COLUMNS,
)

logger = logging.getLogger(__name__)

# Separator for list-valued predicate columns in flat files
PREDICATE_SEPARATOR = "|"


def enforce_schema(
    lf: pl.LazyFrame,
    schema: dict[str, pl.DataType],
    strict: bool = False,
) -> pl.LazyFrame:
    """
    Enforce a schema on a LazyFrame by casting columns to expected types.

    Args:
        lf: LazyFrame to enforce schema on
        schema: Dictionary mapping column names to expected Polars types
        strict: If True, raise errors on invalid casts. If False (default),
                invalid values become null.

    Returns:
        LazyFrame with columns cast to expected types
    """
    current_schema = lf.collect_schema()

    cast_exprs = [
        pl.col(col_name).cast(expected_type, strict=strict).alias(col_name)
        for col_name, expected_type in schema.items()
        if col_name in current_schema and current_schema[col_name] != expected_type
    ]

    if not cast_exprs:
        return lf

    return lf.with_columns(cast_exprs)


def normalize_columns(lf: pl.LazyFrame) -> pl.LazyFrame:
    """
    Normalize column names to lowercase with underscores.

    Converts all column names to lowercase and replaces spaces with underscores.
    """
    return lf.rename(lambda col: col.strip().lower().replace(" ", "_"))


def split_predicate_lists(lf: pl.LazyFrame) -> pl.LazyFrame:
    """
    Split pipe-delimited predicate columns (e.g. "retail|wholesale") into lists.

    Blank cells become empty lists, which match any value.
    """
    schema = lf.collect_schema()
    exprs = []
    for list_col in RULE_PREDICATE_COLUMNS:
        if list_col not in schema or isinstance(schema[list_col], pl.List):
            continue
        inner = CALCULATION_RULE_SCHEMA[list_col].inner
        exprs.append(
            pl.col(list_col)
            .cast(pl.String)
            .fill_null("")
            .str.split(PREDICATE_SEPARATOR)
            .list.eval(
                pl.element().str.strip_chars().filter(pl.element().str.strip_chars() != "")
            )
            .list.eval(pl.element().cast(inner, strict=False))
            .alias(list_col)
        )
    if not exprs:
        return lf
    return lf.with_columns(exprs)


@dataclass
class DataSourceConfig:
    """
    Configuration for data source paths.

    Defines the expected file paths relative to a base directory.

    Attributes:
        line_items_file: Path to line item data
        rules_file: Optional path to a calculation rule table
        expected_values_file: Optional path to reported values
    """

    line_items_file: str = "line_items.parquet"
    rules_file: str | None = "calculation_rules.parquet"
    expected_values_file: str | None = "expected_values.parquet"

    @classmethod
    def for_format(cls, extension: str) -> DataSourceConfig:
        """Default file layout for a file extension ("parquet" or "csv")."""
        return cls(
            line_items_file=f"line_items.{extension}",
            rules_file=f"calculation_rules.{extension}",
            expected_values_file=f"expected_values.{extension}",
        )


class DataLoadError(Exception):
    """Exception raised when data cannot be loaded."""

    def __init__(self, message: str, source: str | None = None) -> None:
        """
        Initialize DataLoadError.

        Args:
            message: Error message
            source: Source file that caused the error
        """
        self.source = source
        super().__init__(f"{message}" + (f" (source: {source})" if source else ""))


class _FileLoader(ABC):
    """Shared loading logic; subclasses provide _scan()."""

    _EXTENSION = ""

    def __init__(
        self,
        base_path: str | Path,
        config: DataSourceConfig | None = None,
        enforce_schemas: bool = True,
    ) -> None:
        """
        Args:
            base_path: Base directory containing data files
            config: Optional data source configuration
            enforce_schemas: Whether to enforce type casting based on schemas.
                           Set to False to load raw types from files.
        """
        self.base_path = Path(base_path)
        self.config = config or DataSourceConfig.for_format(self._EXTENSION)
        self.enforce_schemas = enforce_schemas

        if not self.base_path.exists():
            raise DataLoadError(f"Base path does not exist: {self.base_path}")

    @abstractmethod
    def _scan(self, full_path: Path) -> pl.LazyFrame:
        """Lazily scan one file in the loader's format."""

    def _prepare(
        self,
        lf: pl.LazyFrame,
        schema: dict[str, pl.DataType] | None,
    ) -> pl.LazyFrame:
        lf = normalize_columns(lf)
        if schema is CALCULATION_RULE_SCHEMA:
            lf = split_predicate_lists(lf)
        if self.enforce_schemas and schema is not None:
            lf = enforce_schema(lf, schema, strict=False)
        return lf

    def _load(
        self,
        relative_path: str,
        schema: dict[str, pl.DataType] | None = None,
    ) -> pl.LazyFrame:
        """
        Load a required file as LazyFrame with optional schema enforcement.

        Raises:
            DataLoadError: If file cannot be loaded
        """
        full_path = self.base_path / relative_path
        if not full_path.exists():
            raise DataLoadError(f"File not found: {full_path}", source=relative_path)

        try:
            return self._prepare(self._scan(full_path), schema)
        except Exception as e:
            raise DataLoadError(f"Failed to load file: {e}", source=relative_path) from e

    def _load_optional(
        self,
        relative_path: str | None,
        schema: dict[str, pl.DataType] | None = None,
    ) -> pl.LazyFrame | None:
        """
        Load an optional file.

        Returns None if the path is None, the file doesn't exist or the file
        has no rows, so downstream code can rely on a simple `is not None`
        check. A file that exists but cannot be read raises DataLoadError.
        """
        if relative_path is None:
            return None

        full_path = self.base_path / relative_path
        if not full_path.exists():
            return None

        try:
            lf = self._scan(full_path)
            if not self._has_rows(lf):
                logger.info("Optional file %s is empty, skipping", relative_path)
                return None
            return self._prepare(lf, schema)
        except (pl.exceptions.PolarsError, OSError) as e:
            raise DataLoadError(f"Failed to load file: {e}", source=relative_path) from e

    def _has_rows(self, lf: pl.LazyFrame) -> bool:
        """Check if a LazyFrame has any rows."""
        if len(lf.collect_schema()) == 0:
            return False
        return lf.head(1).collect().height > 0

    def load(self) -> LiquidityInputBundle:
        """
        Load all data and return as a LiquidityInputBundle.

        Raises:
            DataLoadError: If the line items cannot be loaded
        """
        line_items = self._load(self.config.line_items_file, LINE_ITEM_SCHEMA)
        rules = self._load_optional(self.config.rules_file, CALCULATION_RULE_SCHEMA)
        expected = self._load_optional(self.config.expected_values_file, EXPECTED_VALUE_SCHEMA)

        logger.info(
            "Loaded line items from %s (rules: %s, expected values: %s)",
            self.base_path / self.config.line_items_file,
            "file" if rules is not None else "reference",
            "file" if expected is not None else "none",
        )

        return LiquidityInputBundle(
            line_items=line_items,
            rules=rules,
            expected_values=expected,
        )


class ParquetLoader(_FileLoader):
    """
    Load data from Parquet files.

    Implements LoaderProtocol using Polars scan_parquet for lazy evaluation.
    """

    _EXTENSION = "parquet"

    def _scan(self, full_path: Path) -> pl.LazyFrame:
        return pl.scan_parquet(full_path)


class CSVLoader(_FileLoader):
    """
    Load data from CSV files.

    Implements LoaderProtocol using Polars scan_csv. Predicate columns of
    the rule table are pipe-delimited.
    """

    _EXTENSION = "csv"

    def _scan(self, full_path: Path) -> pl.LazyFrame:
        return pl.scan_csv(full_path, try_parse_dates=True)


# =============================================================================
# Factory Function
# =============================================================================


def create_loader(base_path: str | Path, data_format: str = "parquet") -> _FileLoader:
    """
    Create a loader for a data directory.

    Args:
        base_path: Directory containing line_items.{format}
        data_format: "parquet" or "csv"

    Raises:
        ValueError: If the format is not supported
    """
    if data_format == "parquet":
        return ParquetLoader(base_path)
    if data_format == "csv":
        return CSVLoader(base_path)
    raise ValueError(f"Unsupported data format: {data_format}")
