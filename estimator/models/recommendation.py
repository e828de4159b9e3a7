"""Tool advisor Pydantic models for the BuildCost estimator.

This module defines the project classification derived from a free-text
query and the tool recommendations, purchase advice and supplier
suggestions built from it. All of these are created per request.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================


class ProjectType(str, Enum):
    """Discrete project type derived from a query."""

    EXCAVATION = "excavation"
    CONCRETING = "concreting"
    DEMOLITION = "demolition"
    GENERAL = "general"


class ProjectScale(str, Enum):
    """Project scale bucket."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class ProjectDuration(str, Enum):
    """Project duration bucket."""

    SHORT = "short"
    LONG = "long"


class RecommendationPriority(str, Enum):
    """Priority of a tool recommendation."""

    PRIMARY = "primary"
    SUPPORTING = "supporting"


class PurchaseDecision(str, Enum):
    """Buy-vs-rent outcome."""

    RENT = "rent"
    CONSIDER_BUYING = "consider_buying"


# =============================================================================
# CLASSIFICATION
# =============================================================================


class ProjectDetails(BaseModel):
    """Optional caller-supplied context for a classification."""

    location: Optional[str] = None
    budget: Optional[str] = None
    experience: Optional[str] = None


class ProjectClassification(BaseModel):
    """Classification of a free-text project query."""

    model_config = ConfigDict(frozen=True)

    query: str
    project_type: ProjectType = ProjectType.GENERAL
    scale: ProjectScale = ProjectScale.SMALL
    duration: ProjectDuration = ProjectDuration.SHORT
    location: str = "UK"
    budget_tier: str = "standard"
    experience_level: str = "diy"


# =============================================================================
# RECOMMENDATIONS
# =============================================================================


class IndicativePricing(BaseModel):
    """Indicative hire rates in GBP."""

    daily: float = Field(..., ge=0)
    weekly: float = Field(..., ge=0)


class ManualAlternative(BaseModel):
    """Manual-tool substitute for a hired tool."""

    tool: str
    when: str


class ToolRecommendation(BaseModel):
    """A recommended tool for a classified project."""

    tool_id: str
    name: str
    category: str
    priority: RecommendationPriority
    reasoning: str
    description: Optional[str] = None
    indicative_pricing: Optional[IndicativePricing] = None
    price_note: Optional[str] = None
    safety_requirements: List[str] = Field(default_factory=list)
    pro_tips: List[str] = Field(default_factory=list)
    manual_alternative: Optional[ManualAlternative] = None
    used_price_range: Optional[str] = None
    buy_vs_rent: bool = False


class PurchaseAdvice(BaseModel):
    """Buy-vs-rent advice for a recommended tool."""

    tool: str
    recommendation: PurchaseDecision
    reasoning: str
    break_even_days: Optional[int] = Field(None, ge=0)
    break_even: Optional[str] = None


class ToolAlternative(BaseModel):
    """A manual alternative to a recommended tool."""

    original: str
    alternative: str
    when_to_use: str
    cost_saving: str = "Significant - no hire cost"


class SupplierRecommendation(BaseModel):
    """A suggested hire supplier."""

    name: str
    type: str
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    website: Optional[str] = None
    tip: Optional[str] = None
    indicative_pricing: str


class AdvisorResponse(BaseModel):
    """Full tool advisor response."""

    classification: ProjectClassification
    recommendations: List[ToolRecommendation]
    purchase_advice: List[PurchaseAdvice]
    safety_notes: List[str]
    pro_tips: List[str]
    alternatives: List[ToolAlternative]
    suppliers: List[SupplierRecommendation] = Field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        """Convert to the outbound response shape."""
        return self.model_dump(mode="json")
