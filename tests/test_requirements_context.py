"""
test_requirements_context.py - Requirement summaries and client configuration text.
"""

from genboq.requirements_context import (
    format_client_configuration, installation_constraints, parse_requirements_summary, summarize_requirements,
)


class TestRequirementSummary:

    def test_lists_joined_without_spaces(self):
        summary = summarize_requirements({'roomLength': 24, 'displayBrands': ['Samsung', 'LG']})
        assert summary == "roomLength: 24, displayBrands: Samsung,LG"

    def test_summary_parsed_back(self):
        parsed = parse_requirements_summary("roomLength: 24, displayBrands: Samsung,LG, ceilingConstruction: gypsum")
        assert parsed == {'roomLength': '24', 'displayBrands': ['Samsung', 'LG'], 'ceilingConstruction': 'gypsum'}

    def test_empty_summary(self):
        assert parse_requirements_summary('') == {}


class TestClientConfiguration:

    def test_empty_answers_skipped(self):
        text = format_client_configuration({
            'roomLength': 20, 'displayBrands': ['Samsung', 'LG'], 'speakerBrands': [], 'notes': '',
        })
        assert text == "roomLength: 20; displayBrands: Samsung, LG"

    def test_installation_constraints_labelled(self):
        constraints = installation_constraints({'plenumRequirement': 'plenum_required', 'floorType': '',
                                                'roomLength': 20})
        assert constraints == [('Plenum-rated cabling', 'plenum_required')]
