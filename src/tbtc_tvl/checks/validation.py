"""Business-rule checks over extracted measurements."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from ..constants import MAX_PLAUSIBLE_TVL
from ..domain import ExtractionResult, ValidationIssue, ValidationLevel, ValidationReport
from ..logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Rule:
    level: ValidationLevel
    message: str
    violated: Callable[[int], bool]


RULES: tuple[Rule, ...] = (
    Rule("error", "TVL cannot be negative", lambda amount: amount < 0),
    Rule(
        "error",
        "TVL suspiciously large (> 1B tBTC)",
        lambda amount: amount > MAX_PLAUSIBLE_TVL,
    ),
    Rule("warning", "TVL is zero", lambda amount: amount == 0),
)


def validate(measurements: Iterable[ExtractionResult]) -> ValidationReport:
    """Apply every rule to every measurement.

    Issues are data: nothing here raises. Warnings count as passed checks,
    so ``passed_checks = total_checks - len(errors)``.
    """
    measurements = list(measurements)
    warnings: list[ValidationIssue] = []
    errors: list[ValidationIssue] = []

    for m in measurements:
        for rule in RULES:
            if not rule.violated(m.amount):
                continue
            issue = ValidationIssue(
                level=rule.level,
                message=rule.message,
                protocol=m.protocol,
                chain=m.chain,
                details={"amount": str(m.amount)},
            )
            (errors if rule.level == "error" else warnings).append(issue)

    total_checks = len(measurements) * len(RULES)
    report = ValidationReport(
        passed=not errors,
        warnings=tuple(warnings),
        errors=tuple(errors),
        total_checks=total_checks,
        passed_checks=total_checks - len(errors),
    )

    for issue in errors:
        logger.error("✗ %s on %s: %s", issue.protocol, _chain_name(issue), issue.message)
    for issue in warnings:
        logger.warning("%s on %s: %s", issue.protocol, _chain_name(issue), issue.message)
    logger.info(
        "Validation %s: %d/%d checks passed, %d warnings",
        "passed" if report.passed else "failed",
        report.passed_checks,
        report.total_checks,
        report.warning_count,
    )
    return report


def _chain_name(issue: ValidationIssue) -> str:
    return issue.chain.value if issue.chain is not None else "?"
