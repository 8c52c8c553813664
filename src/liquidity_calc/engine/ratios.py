"""
Ratio calculation for the LCR and NSFR.

LCR = total HQLA / net cash outflows (12 CFR 249.10)
NSFR = available stable funding / required stable funding (12 CFR 249.100)

A zero denominator makes the ratio undefined: the result carries
ratio=None and is never compliant. It is not coerced to zero or infinity.
"""

from __future__ import annotations

from decimal import Decimal

from liquidity_calc.contracts.bundles import RatioResult
from liquidity_calc.contracts.errors import (
    ERROR_ZERO_NET_CASH_OUTFLOWS,
    ERROR_ZERO_REQUIRED_STABLE_FUNDING,
    CalculationError,
    business_rule_error,
)
from liquidity_calc.domain.enums import ErrorSeverity, RatioType


def calculate_ratio(
    ratio_type: RatioType,
    numerator: float,
    denominator: float,
    compliance_threshold: Decimal = Decimal("1.0"),
) -> RatioResult:
    """
    Divide numerator by denominator.

    Args:
        ratio_type: LCR or NSFR
        numerator: HQLA or ASF
        denominator: Net cash outflows or RSF
        compliance_threshold: Minimum compliant ratio

    Returns:
        RatioResult; ratio is None when the denominator is zero
    """
    if denominator == 0:
        return RatioResult(
            ratio_type=ratio_type,
            numerator=numerator,
            denominator=denominator,
            ratio=None,
            is_compliant=False,
        )

    ratio = numerator / denominator
    return RatioResult(
        ratio_type=ratio_type,
        numerator=numerator,
        denominator=denominator,
        ratio=ratio,
        is_compliant=ratio >= float(compliance_threshold),
    )


def calculate_lcr(
    total_hqla: float,
    net_cash_outflows: float,
    compliance_threshold: Decimal = Decimal("1.0"),
) -> RatioResult:
    """LCR = total HQLA / net cash outflows."""
    return calculate_ratio(RatioType.LCR, total_hqla, net_cash_outflows, compliance_threshold)


def calculate_nsfr(
    total_asf: float,
    total_rsf: float,
    compliance_threshold: Decimal = Decimal("1.0"),
) -> RatioResult:
    """NSFR = ASF / RSF."""
    return calculate_ratio(RatioType.NSFR, total_asf, total_rsf, compliance_threshold)


def undefined_ratio_error(result: RatioResult) -> CalculationError | None:
    """
    Error for an undefined ratio, or None if the ratio is defined.

    RAT001 for zero net cash outflows, RAT002 for zero RSF.
    """
    if result.is_defined:
        return None
    if result.ratio_type == RatioType.LCR:
        return business_rule_error(
            code=ERROR_ZERO_NET_CASH_OUTFLOWS,
            message="LCR undefined: net cash outflows are zero",
            regulatory_reference="12 CFR 249.10(b)",
            severity=ErrorSeverity.CRITICAL,
        )
    return business_rule_error(
        code=ERROR_ZERO_REQUIRED_STABLE_FUNDING,
        message="NSFR undefined: required stable funding is zero",
        regulatory_reference="12 CFR 249.100",
        severity=ErrorSeverity.CRITICAL,
    )
