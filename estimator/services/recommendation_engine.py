"""Recommendation Engine for the BuildCost tool advisor.

Turns a ProjectClassification into tool recommendations and the advice
derived from them:

- recommend: one primary tool for the classified scale plus supporting
  equipment, in insertion order
- price_recommendations: baseline indicative hire rates and a price note
- purchase_advice: buy-vs-rent for tools that have a used purchase price
- safety_notes / pro_tips / alternatives: merged from the tool knowledge base
- supplier_recommendations: national chains, a local independent, and a
  regional specialist where one exists

All functions are pure; `advise` assembles the full AdvisorResponse.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog

from models.recommendation import (
    AdvisorResponse,
    IndicativePricing,
    ManualAlternative,
    ProjectClassification,
    ProjectDetails,
    ProjectDuration,
    ProjectScale,
    ProjectType,
    PurchaseAdvice,
    PurchaseDecision,
    RecommendationPriority,
    SupplierRecommendation,
    ToolAlternative,
    ToolRecommendation,
)
from services.multiplier_resolver import EAST_OF_ENGLAND, MultiplierResolver
from services.project_classifier import classify
from services.tool_knowledge import (
    DEFAULT_INDICATIVE_PRICING,
    INDICATIVE_PRICING,
    PRICE_NOTE,
    TOOL_KNOWLEDGE,
)

logger = structlog.get_logger()


# Purchase low bound used when a price range cannot be parsed
DEFAULT_PURCHASE_LOW_BOUND = 5000

BASELINE_SAFETY_NOTES: Tuple[str, ...] = (
    "Always read equipment manual before use",
    "Wear appropriate PPE",
    "Check for underground services before digging",
)

PROJECT_TYPE_TIPS: Dict[ProjectType, Tuple[str, ...]] = {
    ProjectType.EXCAVATION: (
        "Mark out dig area with spray paint before starting",
        "Use a CAT scanner or utility plans to check for buried services",
        "Have skip or grab lorry arranged for spoil removal",
    ),
    ProjectType.CONCRETING: (
        "Order 10% extra material to avoid running short",
        "Check weather forecast - avoid rain for 24 hours after pour",
        "Have plastic sheeting ready to cover if rain threatens",
    ),
}

MAX_TIPS_PER_TOOL = 2

_PRICE_TOKEN = re.compile(r"\d[\d,]*(?:\.\d+)?")


# =============================================================================
# RECOMMENDATION PLANS
# =============================================================================


@dataclass(frozen=True)
class PlannedTool:
    """A tool slot in a recommendation plan."""

    tool_id: str
    priority: RecommendationPriority
    reasoning: str


def _primary(tool_id: str, reasoning: str) -> PlannedTool:
    return PlannedTool(tool_id, RecommendationPriority.PRIMARY, reasoning)


def _supporting(tool_id: str, reasoning: str) -> PlannedTool:
    return PlannedTool(tool_id, RecommendationPriority.SUPPORTING, reasoning)


_DUMPER = _supporting("dumper_1t", "Essential for moving excavated material")
_POKER = _supporting("vibrating_poker", "Removes air bubbles for stronger concrete")
_BREAKER = _primary("breaker_medium", "Powerful enough for most concrete breaking")
_READY_MIX = _primary("ready_mix", "More economical for volumes over 1m³")
_GENERATOR = _supporting("generator_3kva", "Power for electric tools if no mains available")

# Ordered tool slots per project type and scale; exactly one primary each
RECOMMENDATION_PLANS: Dict[ProjectType, Dict[ProjectScale, Tuple[PlannedTool, ...]]] = {
    ProjectType.EXCAVATION: {
        ProjectScale.SMALL: (
            _primary("mini_excavator_1_5t", "Perfect size for garden projects with good reach and power"),
            _DUMPER,
        ),
        ProjectScale.MEDIUM: (
            _primary("excavator_3t", "More power and reach for deeper excavations"),
            _DUMPER,
        ),
        ProjectScale.LARGE: (
            _primary("excavator_5t", "Capacity for basement and large-volume digs"),
            _DUMPER,
        ),
    },
    ProjectType.CONCRETING: {
        ProjectScale.SMALL: (
            _primary("concrete_mixer_110l", "Ideal capacity for small to medium concrete jobs"),
            _POKER,
        ),
        ProjectScale.MEDIUM: (_READY_MIX, _POKER),
        ProjectScale.LARGE: (_READY_MIX, _POKER),
    },
    ProjectType.DEMOLITION: {
        ProjectScale.SMALL: (_BREAKER,),
        ProjectScale.MEDIUM: (_BREAKER, _GENERATOR),
        ProjectScale.LARGE: (_BREAKER, _GENERATOR),
    },
}


def _build_recommendation(planned: PlannedTool) -> ToolRecommendation:
    knowledge = TOOL_KNOWLEDGE.get(planned.tool_id, {})
    manual = knowledge.get("alternatives", {}).get("manual")
    return ToolRecommendation(
        tool_id=planned.tool_id,
        name=knowledge.get("name", planned.tool_id),
        category=knowledge.get("category", "General"),
        priority=planned.priority,
        reasoning=planned.reasoning,
        description=knowledge.get("description"),
        safety_requirements=list(knowledge.get("safety_requirements", [])),
        pro_tips=list(knowledge.get("pro_tips", [])),
        manual_alternative=ManualAlternative(**manual) if manual else None,
        used_price_range=knowledge.get("used_price_range"),
        buy_vs_rent=knowledge.get("buy_vs_rent", False),
    )


def recommend(classification: ProjectClassification) -> List[ToolRecommendation]:
    """Recommend tools for a classified project.

    General projects have no plan and get no recommendations.
    """
    plan = RECOMMENDATION_PLANS.get(classification.project_type, {}).get(classification.scale, ())
    return [_build_recommendation(planned) for planned in plan]


# =============================================================================
# DERIVED ADVICE
# =============================================================================


def price_recommendations(recommendations: Sequence[ToolRecommendation]) -> List[ToolRecommendation]:
    """Attach baseline indicative pricing and the price note."""
    priced = []
    for rec in recommendations:
        pricing = INDICATIVE_PRICING.get(rec.tool_id, DEFAULT_INDICATIVE_PRICING)
        priced.append(
            rec.model_copy(
                update={
                    "indicative_pricing": IndicativePricing(**pricing),
                    "price_note": PRICE_NOTE,
                }
            )
        )
    return priced


def parse_purchase_low_bound(price_range: Optional[str]) -> float:
    """Low bound of a free-text price range such as "£8,000-£12,000".

    Takes the first numeric token with currency symbols and thousands
    separators removed. Falls back to DEFAULT_PURCHASE_LOW_BOUND when the
    text holds no usable number.
    """
    if not price_range:
        return DEFAULT_PURCHASE_LOW_BOUND
    match = _PRICE_TOKEN.search(price_range)
    if not match:
        return DEFAULT_PURCHASE_LOW_BOUND
    value = float(match.group(0).replace(",", ""))
    return value if value > 0 else DEFAULT_PURCHASE_LOW_BOUND


def should_rent(classification: ProjectClassification) -> bool:
    return classification.duration == ProjectDuration.SHORT or classification.scale == ProjectScale.SMALL


def purchase_advice(
    classification: ProjectClassification,
    recommendations: Sequence[ToolRecommendation],
) -> List[PurchaseAdvice]:
    """Buy-vs-rent advice for recommended tools that can be bought."""
    rent = should_rent(classification)
    advice = []
    for rec in recommendations:
        if not rec.buy_vs_rent:
            continue
        pricing = rec.indicative_pricing or IndicativePricing(**INDICATIVE_PRICING.get(rec.tool_id, DEFAULT_INDICATIVE_PRICING))

        break_even_days = None
        break_even = None
        if pricing.daily > 0:
            break_even_days = math.floor(parse_purchase_low_bound(rec.used_price_range) / pricing.daily)
            break_even = f"{break_even_days} days of rental equals purchase price"

        if rent:
            reasoning = f"One-off project - rental more economical (£{pricing.daily:g}/day)"
        else:
            reasoning = "If you have multiple projects planned, buying might save money long-term"

        advice.append(
            PurchaseAdvice(
                tool=rec.name,
                recommendation=PurchaseDecision.RENT if rent else PurchaseDecision.CONSIDER_BUYING,
                reasoning=reasoning,
                break_even_days=break_even_days,
                break_even=break_even,
            )
        )
    return advice


def safety_notes(recommendations: Sequence[ToolRecommendation]) -> List[str]:
    """Deduplicated safety notes in first-seen order, plus the baseline notes."""
    notes: Dict[str, None] = {}
    for rec in recommendations:
        for note in rec.safety_requirements:
            notes.setdefault(note)
    for note in BASELINE_SAFETY_NOTES:
        notes.setdefault(note)
    return list(notes)


def pro_tips(classification: ProjectClassification, recommendations: Sequence[ToolRecommendation]) -> List[str]:
    """Project-type tips followed by up to two tips per recommended tool."""
    tips = list(PROJECT_TYPE_TIPS.get(classification.project_type, ()))
    for rec in recommendations:
        tips.extend(rec.pro_tips[:MAX_TIPS_PER_TOOL])
    return tips


def alternatives(recommendations: Sequence[ToolRecommendation]) -> List[ToolAlternative]:
    """Manual-tool substitutes for recommended tools that have one."""
    return [
        ToolAlternative(
            original=rec.name,
            alternative=rec.manual_alternative.tool,
            when_to_use=rec.manual_alternative.when,
        )
        for rec in recommendations
        if rec.manual_alternative is not None
    ]


# =============================================================================
# SUPPLIERS
# =============================================================================

NATIONAL_SUPPLIERS: Tuple[Dict[str, Any], ...] = (
    {
        "name": "HSS Hire",
        "type": "National Chain",
        "pros": ["Wide availability", "Consistent pricing", "Good equipment condition"],
        "cons": ["Often more expensive", "Less flexible on rates"],
        "website": "hss.com",
        "indicative_pricing": "Standard rates shown above",
    },
    {
        "name": "Speedy Hire",
        "type": "National Chain",
        "pros": ["Large fleet", "Multiple locations", "Online booking"],
        "cons": ["Premium pricing", "Busy periods may have limited availability"],
        "website": "speedyservices.com",
        "indicative_pricing": "Similar to HSS",
    },
    {
        "name": "Local Independent Hire Shop",
        "type": "Local Supplier",
        "pros": ["Often 20-30% cheaper", "More flexible", "Local knowledge"],
        "cons": ["Variable equipment condition", "Limited fleet size"],
        "tip": 'Search for "tool hire near me" for local options',
        "indicative_pricing": "Typically 20-30% below national chains",
    },
)

REGIONAL_SUPPLIERS: Dict[str, Dict[str, Any]] = {
    EAST_OF_ENGLAND: {
        "name": "Toddy Tool Hire",
        "type": "Regional Specialist",
        "pros": ["Competitive local pricing", "Excellent service", "Expert advice"],
        "cons": ["East of England only"],
        "website": "toddytoolhire.co.uk",
        "indicative_pricing": "Best value in East of England",
    },
}


def supplier_recommendations(
    location: Optional[str],
    resolver: Optional[MultiplierResolver] = None,
) -> List[SupplierRecommendation]:
    """Hire suppliers for a location, regional specialists first."""
    resolver = resolver or MultiplierResolver()
    region = resolver.resolve_region(location)

    suppliers = [SupplierRecommendation(**supplier) for supplier in NATIONAL_SUPPLIERS]
    if region in REGIONAL_SUPPLIERS:
        suppliers.insert(0, SupplierRecommendation(**REGIONAL_SUPPLIERS[region]))
    return suppliers


# =============================================================================
# ADVISOR
# =============================================================================


def advise(
    query_text: str,
    details: Optional[Union[ProjectDetails, Dict[str, Any]]] = None,
) -> AdvisorResponse:
    """Classify a query and build the full tool advisor response."""
    classification = classify(query_text, details)
    recommendations = price_recommendations(recommend(classification))

    response = AdvisorResponse(
        classification=classification,
        recommendations=recommendations,
        purchase_advice=purchase_advice(classification, recommendations),
        safety_notes=safety_notes(recommendations),
        pro_tips=pro_tips(classification, recommendations),
        alternatives=alternatives(recommendations),
        suppliers=supplier_recommendations(classification.location),
    )

    logger.info(
        "tool_advice_complete",
        project_type=classification.project_type.value,
        scale=classification.scale.value,
        recommendations=len(recommendations),
    )
    return response
