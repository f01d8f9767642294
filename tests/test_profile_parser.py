"""Tests for quick extraction and profile parsing."""

import pytest

from fitscore.models import CustomerProfile, ScoreBreakdown
from fitscore.parse import (
    PARSE_WARNING_KEY,
    ProfileParser,
    QuickExtractor,
    QuickFacts,
    finalize_profile,
    recover_json,
)


class TestQuickExtractor:
    """Regex extraction from the raw transcript."""

    def test_extract_company_name(self):
        facts = QuickExtractor().extract("Thanks for joining. Our company is Arctic Air Services and we do HVAC.")
        assert facts.customer_name == "Arctic Air Services"

    def test_extract_name_from_introduction(self):
        facts = QuickExtractor().extract("Hi, I'm from Summit Plumbing, and we have a few questions.")
        assert facts.customer_name == "Summit Plumbing"

    def test_no_name(self):
        assert QuickExtractor().extract("we need better scheduling").customer_name is None

    def test_extract_user_counts(self):
        facts = QuickExtractor().extract("We have 45 technicians and 15 office staff, around 60 employees total.")
        assert facts.field_users == 45
        assert facts.back_office_users == 15
        assert facts.total_users == 60

    def test_total_at_least_sum(self):
        facts = QuickExtractor().extract("There are 1,200 field workers and 300 office employees.")
        assert facts.field_users == 1200
        assert facts.total_users == 1500


class TestProfileParser:
    """Mapping recovered objects onto CustomerProfile."""

    def test_parse_full_object(self):
        data = {
            "customerName": "Arctic Air",
            "industry": "HVAC",
            "userCount": {"total": "about 100", "backOffice": 20, "field": 80},
            "services": {"types": ["HVAC repair", "Installation"]},
            "requirements": {
                "keyFeatures": ["Scheduling"],
                "integrations": [{"system": "QuickBooks", "type": "Accounting"}],
                "checklists": {"needed": True},
            },
            "fitScore": 72,
        }
        profile = ProfileParser().parse(data)

        assert profile.customer_name == "Arctic Air"
        assert profile.user_count.total == 100
        assert profile.requirements.integration_names == ["QuickBooks"]
        assert profile.requirements.model_extra["checklists"] == {"needed": True}
        assert profile.fit_score == 72
        assert not profile.parse_warning

    def test_model_breakdown_and_matches_dropped(self):
        data = {"customerName": "X", "scoreBreakdown": {"finalScore": 99}, "similarCustomers": [{"name": "Y"}]}
        profile = ProfileParser().parse(data)
        assert profile.score_breakdown is None
        assert profile.similar_customers == []

    def test_missing_score_defaults(self):
        assert ProfileParser().parse({"fitScore": 0}).fit_score == 50
        assert ProfileParser().parse({}).fit_score == 50

    def test_name_falls_back_to_quick_facts(self):
        quick = QuickFacts(customer_name="Summit Plumbing", total_users=60, field_users=45, back_office_users=15)
        profile = ProfileParser().parse({"industry": "Plumbing"}, quick)

        assert profile.customer_name == "Summit Plumbing"
        assert profile.user_count.total == 60
        assert profile.user_count.field == 45

    def test_default_name(self):
        assert ProfileParser().parse({}).customer_name == "Prospective Customer"

    def test_back_office_derived(self):
        profile = ProfileParser().parse({"userCount": {"total": 100, "field": 70}})
        assert profile.user_count.back_office == 30

    def test_key_features_from_summary(self):
        data = {"summary": {"keyRequirements": ["Dispatch", "Invoicing"]}}
        profile = ProfileParser().parse(data)
        assert profile.requirements.key_features == ["Dispatch", "Invoicing"]

    def test_fallback_object_sets_warning(self):
        data = recover_json('{"customerName": "Arctic Air", "industry": "HV')
        assert data[PARSE_WARNING_KEY]

        profile = ProfileParser().parse(data)
        assert profile.parse_warning
        assert profile.customer_name == "Arctic Air"

    def test_garbage_sections_tolerated(self):
        data = {"userCount": "lots", "services": "HVAC, Plumbing", "requirements": None, "strengths": "Good fit"}
        profile = ProfileParser().parse(data)
        assert profile.user_count.total == 0
        assert profile.services.types == ["HVAC", "Plumbing"]
        assert profile.strengths == ["Good fit"]

    @pytest.mark.parametrize("data", [
        {"requirements": {"keyFeatures": 5}},
        {"requirements": {"keyFeatures": True}},
        {"requirements": {"integrations": 3}},
        {"services": {"types": 7}},
        {"services": 7},
    ])
    def test_scalar_in_place_of_list(self, data):
        profile = ProfileParser().parse({"customerName": "Arctic Air", "fitScore": 70, **data})
        assert profile.customer_name == "Arctic Air"
        assert profile.fit_score == 70

    def test_scalar_list_values_coerced(self):
        data = {"requirements": {"keyFeatures": 5, "integrations": 3}, "services": {"types": True}}
        profile = ProfileParser().parse(data)

        assert profile.requirements.key_features == ["5"]
        assert profile.requirements.integration_names == ["3"]
        assert profile.services.types == []
        assert not profile.parse_warning

    def test_null_name_uses_default(self):
        profile = CustomerProfile.model_validate({"customerName": None, "industry": None})
        assert profile.customer_name == "Prospective Customer"
        assert profile.industry == ""


class TestFinalizeProfile:
    """Structural validation of the finished profile."""

    def test_fills_missing_sections(self):
        profile = ProfileParser().parse({"customerName": "Arctic Air", "industry": "HVAC"})
        final = finalize_profile(profile)

        assert "Arctic Air" in final.summary["overview"]
        assert final.strengths
        assert final.challenges
        assert final.recommendations

    def test_keeps_model_sections(self):
        data = {
            "summary": {"overview": "A growing HVAC company."},
            "strengths": [{"title": "Mobile first"}],
            "challenges": [{"title": "Data migration"}],
            "recommendations": {"implementationApproach": {"strategy": "Big bang"}},
        }
        final = finalize_profile(ProfileParser().parse(data))

        assert final.summary == {"overview": "A growing HVAC company."}
        assert final.strengths == [{"title": "Mobile first"}]

    def test_breakdown_survives(self):
        profile = ProfileParser().parse({"fitScore": 60}).model_copy(update={
            "score_breakdown": ScoreBreakdown(base_score=60, size_adjustment=3, final_score=63, rationale=["x"]),
            "fit_score": 63,
        })
        final = finalize_profile(profile)
        assert final.score_breakdown.final_score == 63
        assert final.fit_score == 63
