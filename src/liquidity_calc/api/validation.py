"""
Data path validation utilities for the liquidity calculator API.

DataPathValidator: Validates directory structure before calculation
validate_data_path: Convenience function for quick validation

A data directory must hold line_items.{ext}; calculation_rules.{ext}
and expected_values.{ext} are optional.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from liquidity_calc.api.errors import create_file_not_found_error, create_path_error
from liquidity_calc.api.models import APIError, ValidationRequest, ValidationResponse


# =============================================================================
# Required Files Configuration
# =============================================================================


@dataclass(frozen=True)
class RequiredFiles:
    """
    Mandatory and optional files for a liquidity calculation.
    """

    mandatory: list[str] = field(default_factory=list)
    optional: list[str] = field(default_factory=list)

    @classmethod
    def for_format(cls, data_format: Literal["parquet", "csv"]) -> RequiredFiles:
        """
        Get required files configuration for a data format.

        Args:
            data_format: Either "parquet" or "csv"

        Returns:
            RequiredFiles with appropriate file extensions
        """
        ext = data_format
        return cls(
            mandatory=[f"line_items.{ext}"],
            optional=[f"calculation_rules.{ext}", f"expected_values.{ext}"],
        )


# =============================================================================
# Data Path Validator
# =============================================================================


class DataPathValidator:
    """
    Validates directory structure for a liquidity calculation.

    Usage:
        validator = DataPathValidator()
        response = validator.validate(ValidationRequest(
            data_path="/path/to/submission",
            data_format="parquet",
        ))
        if response.valid:
            # Proceed with calculation
        else:
            # Handle missing files
    """

    def validate(self, request: ValidationRequest) -> ValidationResponse:
        """
        Validate a data path for calculation readiness.

        Args:
            request: ValidationRequest with path and format

        Returns:
            ValidationResponse with validation results
        """
        path = request.path
        errors: list[APIError] = []

        if not path.exists():
            errors.append(create_path_error(
                f"Data path does not exist: {path}",
                path=str(path),
            ))
            return ValidationResponse(valid=False, data_path=str(path), errors=errors)

        if not path.is_dir():
            errors.append(create_path_error(
                f"Data path is not a directory: {path}",
                path=str(path),
            ))
            return ValidationResponse(valid=False, data_path=str(path), errors=errors)

        required = RequiredFiles.for_format(request.data_format)

        files_found: list[str] = []
        files_missing: list[str] = []

        for file_path in required.mandatory:
            if (path / file_path).exists():
                files_found.append(file_path)
            else:
                files_missing.append(file_path)
                errors.append(create_file_not_found_error(file_path))

        for file_path in required.optional:
            if (path / file_path).exists():
                files_found.append(file_path)

        return ValidationResponse(
            valid=not errors,
            data_path=str(path),
            files_found=sorted(files_found),
            files_missing=sorted(files_missing),
            errors=errors,
        )


# =============================================================================
# Convenience Functions
# =============================================================================


def validate_data_path(
    data_path: str | Path,
    data_format: Literal["parquet", "csv"] = "parquet",
) -> ValidationResponse:
    """
    Validate a data path for calculation readiness.

    Example:
        response = validate_data_path("/path/to/submission")
        if not response.valid:
            for file in response.files_missing:
                print(f"Missing: {file}")
    """
    return DataPathValidator().validate(
        ValidationRequest(data_path=data_path, data_format=data_format)
    )


def get_required_files(
    data_format: Literal["parquet", "csv"] = "parquet",
) -> list[str]:
    """Mandatory and optional file names for a format."""
    required = RequiredFiles.for_format(data_format)
    return required.mandatory + required.optional
