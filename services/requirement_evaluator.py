"""
Scores applicant facts against minimum requirements.
Every requirement type is "greater or equal": passed = actual >= minimum.
A required requirement that does not pass is flagged required_not_met; the composite
engine turns that into a blocked assessment rather than a score deduction.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from schemas.configuration import MinimumRequirement
from schemas.risk import RequirementResult
from services.thresholds import as_number


def evaluate(requirement: MinimumRequirement, actual_value: float | None) -> RequirementResult:
    """Evaluate one requirement. A missing (None) value never passes."""
    missing = actual_value is None
    passed = not missing and actual_value >= requirement.minimum_value
    return RequirementResult(
        requirement_id=requirement.id,
        name=requirement.name,
        type=requirement.type,
        minimum_value=requirement.minimum_value,
        actual_value=actual_value,
        passed=passed,
        contribution=requirement.weight if passed else 0.0,
        required_not_met=requirement.is_required and not passed,
        missing=missing,
    )


def lookup_fact(facts: Mapping[str, Any], requirement: MinimumRequirement) -> float | None:
    """Fact for a requirement: keyed by requirement id, falling back to its type."""
    raw = facts.get(requirement.id)
    if raw is None:
        raw = facts.get(requirement.type.value)
    return as_number(raw)


def evaluate_all(
    requirements: Iterable[MinimumRequirement],
    facts: Mapping[str, Any],
) -> list[RequirementResult]:
    return [evaluate(r, lookup_fact(facts, r)) for r in requirements]
