"""
Unit Tests for the Recommendation Engine.

Test Coverage:
- Primary/supporting recommendations per project type and scale
- Indicative pricing
- Purchase price parsing and buy-vs-rent advice
- Safety notes, pro tips and manual alternatives
- Supplier recommendations and the assembled advisor response
"""

import pytest

from models.recommendation import (
    ProjectClassification,
    ProjectDuration,
    ProjectScale,
    ProjectType,
    PurchaseDecision,
    RecommendationPriority,
)
from services.recommendation_engine import (
    BASELINE_SAFETY_NOTES,
    DEFAULT_PURCHASE_LOW_BOUND,
    MAX_TIPS_PER_TOOL,
    PROJECT_TYPE_TIPS,
    advise,
    alternatives,
    parse_purchase_low_bound,
    price_recommendations,
    pro_tips,
    purchase_advice,
    recommend,
    safety_notes,
    supplier_recommendations,
)
from services.tool_knowledge import PRICE_NOTE


def _classification(project_type, scale=ProjectScale.SMALL, duration=ProjectDuration.SHORT):
    return ProjectClassification(query="test", project_type=project_type, scale=scale, duration=duration)


def _ids(recommendations):
    return [rec.tool_id for rec in recommendations]


# =============================================================================
# Recommendations
# =============================================================================


class TestRecommend:
    """Tests for tool selection."""

    @pytest.mark.parametrize("project_type", [ProjectType.EXCAVATION, ProjectType.CONCRETING, ProjectType.DEMOLITION])
    @pytest.mark.parametrize("scale", list(ProjectScale))
    def test_exactly_one_primary(self, project_type, scale):
        recs = recommend(_classification(project_type, scale))
        primaries = [rec for rec in recs if rec.priority == RecommendationPriority.PRIMARY]
        assert len(primaries) == 1
        assert recs[0].priority == RecommendationPriority.PRIMARY

    def test_small_excavation(self):
        recs = recommend(_classification(ProjectType.EXCAVATION, ProjectScale.SMALL))
        assert _ids(recs) == ["mini_excavator_1_5t", "dumper_1t"]
        assert recs[1].priority == RecommendationPriority.SUPPORTING

    def test_medium_excavation(self):
        recs = recommend(_classification(ProjectType.EXCAVATION, ProjectScale.MEDIUM))
        assert _ids(recs) == ["excavator_3t", "dumper_1t"]

    def test_concreting_small_uses_mixer(self):
        recs = recommend(_classification(ProjectType.CONCRETING, ProjectScale.SMALL))
        assert _ids(recs) == ["concrete_mixer_110l", "vibrating_poker"]

    def test_concreting_medium_uses_ready_mix(self):
        recs = recommend(_classification(ProjectType.CONCRETING, ProjectScale.MEDIUM))
        assert _ids(recs) == ["ready_mix", "vibrating_poker"]

    def test_small_demolition_has_no_generator(self):
        recs = recommend(_classification(ProjectType.DEMOLITION, ProjectScale.SMALL))
        assert _ids(recs) == ["breaker_medium"]

    def test_larger_demolition_adds_generator(self):
        recs = recommend(_classification(ProjectType.DEMOLITION, ProjectScale.MEDIUM))
        assert _ids(recs) == ["breaker_medium", "generator_3kva"]

    def test_general_has_no_recommendations(self):
        assert recommend(_classification(ProjectType.GENERAL)) == []

    def test_knowledge_attached(self):
        rec = recommend(_classification(ProjectType.EXCAVATION))[0]
        assert rec.name == "Mini Excavator (1.5T)"
        assert rec.used_price_range == "£8,000-£12,000"
        assert rec.buy_vs_rent is True
        assert rec.safety_requirements


# =============================================================================
# Pricing and Purchase Advice
# =============================================================================


class TestPricing:
    """Tests for indicative pricing."""

    def test_known_tool_pricing(self):
        recs = price_recommendations(recommend(_classification(ProjectType.EXCAVATION)))
        assert recs[0].indicative_pricing.daily == 95
        assert recs[0].indicative_pricing.weekly == 285
        assert recs[0].price_note == PRICE_NOTE

    def test_unknown_tool_uses_default(self):
        recs = price_recommendations(recommend(_classification(ProjectType.CONCRETING, ProjectScale.MEDIUM)))
        ready_mix = recs[0]
        assert (ready_mix.indicative_pricing.daily, ready_mix.indicative_pricing.weekly) == (50, 150)

    def test_original_recommendations_unchanged(self):
        recs = recommend(_classification(ProjectType.EXCAVATION))
        price_recommendations(recs)
        assert recs[0].indicative_pricing is None


class TestParsePurchaseLowBound:
    """Tests for the purchase price parser."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("£8,000-£12,000", 8000),
            ("£150-£300", 150),
            ("around 2500 to 3000", 2500),
            ("£1,250.50", 1250.5),
        ],
    )
    def test_parses_first_number(self, text, expected):
        assert parse_purchase_low_bound(text) == expected

    @pytest.mark.parametrize("text", [None, "", "price on application", "£0"])
    def test_fallback(self, text):
        assert parse_purchase_low_bound(text) == DEFAULT_PURCHASE_LOW_BOUND


class TestPurchaseAdvice:
    """Tests for buy-vs-rent advice."""

    def _advice(self, project_type, scale, duration):
        classification = _classification(project_type, scale, duration)
        return purchase_advice(classification, price_recommendations(recommend(classification)))

    @pytest.mark.parametrize("scale", list(ProjectScale))
    def test_short_duration_always_rents(self, scale):
        advice = self._advice(ProjectType.EXCAVATION, scale, ProjectDuration.SHORT)
        assert advice
        assert all(item.recommendation == PurchaseDecision.RENT for item in advice)

    def test_small_scale_rents_even_when_long(self):
        advice = self._advice(ProjectType.EXCAVATION, ProjectScale.SMALL, ProjectDuration.LONG)
        assert advice[0].recommendation == PurchaseDecision.RENT

    def test_long_medium_considers_buying(self):
        advice = self._advice(ProjectType.EXCAVATION, ProjectScale.MEDIUM, ProjectDuration.LONG)
        assert advice[0].recommendation == PurchaseDecision.CONSIDER_BUYING

    def test_break_even_floors(self):
        advice = self._advice(ProjectType.EXCAVATION, ProjectScale.SMALL, ProjectDuration.SHORT)
        # floor(8000 / 95) = 84
        assert advice[0].tool == "Mini Excavator (1.5T)"
        assert advice[0].break_even_days == 84
        assert advice[0].break_even == "84 days of rental equals purchase price"
        assert "£95/day" in advice[0].reasoning

    def test_only_buyable_tools_get_advice(self):
        advice = self._advice(ProjectType.EXCAVATION, ProjectScale.SMALL, ProjectDuration.SHORT)
        # the dumper has no purchase price
        assert [item.tool for item in advice] == ["Mini Excavator (1.5T)"]


# =============================================================================
# Notes, Tips and Alternatives
# =============================================================================


class TestSafetyNotes:
    """Tests for safety notes."""

    def test_baseline_notes_always_present(self):
        assert safety_notes([]) == list(BASELINE_SAFETY_NOTES)

    def test_deduplicated_in_first_seen_order(self):
        recs = recommend(_classification(ProjectType.EXCAVATION, ProjectScale.MEDIUM))
        notes = safety_notes(recs + recs)
        assert len(notes) == len(set(notes))
        assert notes[0] == recs[0].safety_requirements[0]
        assert notes[-3:] == list(BASELINE_SAFETY_NOTES)


class TestProTips:
    """Tests for pro tips."""

    def test_type_tips_then_tool_tips(self):
        classification = _classification(ProjectType.CONCRETING)
        recs = recommend(classification)
        tips = pro_tips(classification, recs)
        type_tips = list(PROJECT_TYPE_TIPS[ProjectType.CONCRETING])
        assert tips[: len(type_tips)] == type_tips
        # mixer has 3 tips (capped at 2) and the poker has 1
        assert len(tips) == len(type_tips) + MAX_TIPS_PER_TOOL + 1

    def test_demolition_has_only_tool_tips(self):
        classification = _classification(ProjectType.DEMOLITION)
        tips = pro_tips(classification, recommend(classification))
        assert tips == recommend(classification)[0].pro_tips[:MAX_TIPS_PER_TOOL]


class TestAlternatives:
    """Tests for manual alternatives."""

    def test_manual_alternatives(self):
        recs = recommend(_classification(ProjectType.EXCAVATION))
        result = alternatives(recs)
        assert [alt.original for alt in result] == ["Mini Excavator (1.5T)", "1 Tonne Dumper"]
        assert result[0].alternative == "Spade and mattock"
        assert result[0].cost_saving == "Significant - no hire cost"

    def test_no_alternatives_for_medium_excavator(self):
        recs = recommend(_classification(ProjectType.EXCAVATION, ProjectScale.MEDIUM))
        assert [alt.original for alt in alternatives(recs)] == ["1 Tonne Dumper"]


# =============================================================================
# Suppliers and Advisor
# =============================================================================


class TestSuppliers:
    """Tests for supplier recommendations."""

    def test_national_suppliers(self):
        names = [s.name for s in supplier_recommendations("Manchester")]
        assert names == ["HSS Hire", "Speedy Hire", "Local Independent Hire Shop"]

    def test_regional_specialist_first_in_east_of_england(self):
        suppliers = supplier_recommendations("Woodbridge, Suffolk")
        assert suppliers[0].name == "Toddy Tool Hire"
        assert suppliers[0].type == "Regional Specialist"
        assert len(suppliers) == 4

    def test_north_east_has_no_regional_specialist(self):
        assert supplier_recommendations("North East")[0].name == "HSS Hire"


class TestAdvise:
    """Tests for the assembled advisor response."""

    def test_garden_pool_dig(self):
        response = advise("need to dig a garden foundation for a pool", {"location": "Ipswich"})

        assert response.classification.project_type == ProjectType.EXCAVATION
        assert response.classification.scale == ProjectScale.MEDIUM
        assert [rec.tool_id for rec in response.recommendations] == ["excavator_3t", "dumper_1t"]
        assert all(rec.indicative_pricing is not None for rec in response.recommendations)
        assert response.purchase_advice[0].recommendation == PurchaseDecision.RENT
        assert response.suppliers[0].name == "Toddy Tool Hire"
        for note in BASELINE_SAFETY_NOTES:
            assert note in response.safety_notes

    def test_general_query(self):
        response = advise("paint the hallway")
        assert response.recommendations == []
        assert response.purchase_advice == []
        assert response.safety_notes == list(BASELINE_SAFETY_NOTES)

    def test_response_shape(self):
        data = advise("concrete patio").to_response()
        assert set(data) == {
            "classification",
            "recommendations",
            "purchase_advice",
            "safety_notes",
            "pro_tips",
            "alternatives",
            "suppliers",
        }
        assert data["classification"]["scale"] == "medium"
