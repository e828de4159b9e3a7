"""Project Classifier for the BuildCost estimator.

Maps a free-text project query onto a discrete project type, scale and
duration bucket. Classification is a pure function of the lower-cased
query and the caller's details, so the same input always yields the same
classification.

Decisions are made by ordered rule lists evaluated first-match-wins:

- Project type: excavation, then concreting, then demolition, else general.
- Scale: a second pass using only the matched type's rules, else small.
  Excavation and demolition rules run from the largest outcome down;
  concreting checks repair work first.
- Duration: long-running keywords, else short.

Ambiguous or empty queries never raise; they fall back to
general / small / short.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, TypeVar, Union

import structlog

from models.recommendation import (
    ProjectClassification,
    ProjectDetails,
    ProjectDuration,
    ProjectScale,
    ProjectType,
)

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class KeywordRule:
    """Maps any of a set of keywords to an outcome."""

    keywords: Tuple[str, ...]
    outcome: Any

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


# =============================================================================
# RULES
# =============================================================================

PROJECT_TYPE_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(("dig", "excavat", "trench"), ProjectType.EXCAVATION),
    KeywordRule(("concrete", "cement", "path"), ProjectType.CONCRETING),
    KeywordRule(("break", "demolish", "remove"), ProjectType.DEMOLITION),
)

SCALE_RULES: Dict[ProjectType, Tuple[KeywordRule, ...]] = {
    ProjectType.EXCAVATION: (
        KeywordRule(("basement", "large"), ProjectScale.LARGE),
        KeywordRule(("foundation", "pool"), ProjectScale.MEDIUM),
        KeywordRule(("garden", "fence"), ProjectScale.SMALL),
    ),
    # Repairs stay small even on a driveway or patio
    ProjectType.CONCRETING: (
        KeywordRule(("repair", "small"), ProjectScale.SMALL),
        KeywordRule(("driveway", "patio"), ProjectScale.MEDIUM),
    ),
    ProjectType.DEMOLITION: (
        KeywordRule(("garage", "outbuilding", "large"), ProjectScale.LARGE),
        KeywordRule(("wall", "patio", "driveway"), ProjectScale.MEDIUM),
    ),
}

DURATION_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(("weeks", "months", "ongoing", "long term", "long-term", "multiple projects"), ProjectDuration.LONG),
)

DEFAULT_LOCATION = "UK"
DEFAULT_BUDGET = "standard"
DEFAULT_EXPERIENCE = "diy"


def first_match(rules: Sequence[KeywordRule], text: str, default: T) -> T:
    """Outcome of the first rule matching the text, or the default."""
    for rule in rules:
        if rule.matches(text):
            return rule.outcome
    return default


def _coerce_details(details: Any) -> ProjectDetails:
    """Detail values as strings; empty, nested or unknown values are dropped."""
    if isinstance(details, ProjectDetails):
        return details
    if not isinstance(details, dict):
        return ProjectDetails()

    values = {
        name: str(value).strip()
        for name, value in details.items()
        if name in ProjectDetails.model_fields
        and isinstance(value, (str, int, float))
        and not isinstance(value, bool)
        and str(value).strip()
    }
    return ProjectDetails(**values)


# =============================================================================
# CLASSIFY
# =============================================================================


def classify(
    query_text: str,
    details: Optional[Union[ProjectDetails, Dict[str, Any]]] = None,
) -> ProjectClassification:
    """Classify a free-text project query.

    Args:
        query_text: The user's description of the project
        details: Optional location, budget and experience context

    Returns:
        ProjectClassification for the query.

    Example:
        >>> classify("need to dig a garden foundation for a pool").scale
        <ProjectScale.MEDIUM: 'medium'>
    """
    text = (query_text or "").lower()
    details = _coerce_details(details)

    project_type = first_match(PROJECT_TYPE_RULES, text, ProjectType.GENERAL)
    scale = first_match(SCALE_RULES.get(project_type, ()), text, ProjectScale.SMALL)
    duration = first_match(DURATION_RULES, text, ProjectDuration.SHORT)

    classification = ProjectClassification(
        query=query_text or "",
        project_type=project_type,
        scale=scale,
        duration=duration,
        location=details.location or DEFAULT_LOCATION,
        budget_tier=details.budget or DEFAULT_BUDGET,
        experience_level=details.experience or DEFAULT_EXPERIENCE,
    )

    logger.debug(
        "project_classified",
        project_type=project_type.value,
        scale=scale.value,
        duration=duration.value,
        location=classification.location,
    )
    return classification
