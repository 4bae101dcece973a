"""
test_boq_validator.py - Deterministic audit, semantic audit merge and degraded mode.

Tests cover:
  - CRITICAL findings: missing mount, missing extender / fiber, feedback risk, brand mismatch
  - Score cap of 59 whenever a deterministic critical finding exists
  - Oracle outage or malformed audit -> score 0, manual review note
"""

import json

import pytest

from conftest import FakeOracle, make_item
from genboq.boq_validator import CRITICAL_SCORE_CAP, BoqValidator, run_deterministic_audit
from genboq.errors import ConfigurationError, OracleCommunicationError
from genboq.prompts import VALIDATION_TEMPERATURE


@pytest.fixture
def complete_boq():
    return [
        make_item('Samsung 65in 4K commercial display', 'Samsung', 'QM65C', category='Display System'),
        make_item('Chief wall mount for 65in display', 'Chief', 'LTM1U', category='Display Support System'),
        make_item('HDBaseT extender pair (TX/RX)', 'Extron', 'DTP HDMI 4K 230', category='Cables & Connectors'),
        make_item('Shure boundary microphone', 'Shure', 'MX395', quantity=3),
        make_item('QSC Core Nano DSP with AEC', 'QSC', 'Core Nano'),
        make_item('JBL ceiling speaker', 'JBL', 'Control 26C', quantity=2),
    ]


def _without(boq, text):
    return [i for i in boq if text not in i.item_description]


def _semantic(score=95, warnings=()):
    return json.dumps({'isValid': True, 'warnings': list(warnings), 'suggestions': [],
                       'missingComponents': [], 'score': score, 'complianceNotes': []})


class TestDeterministicAudit:

    def test_complete_boq_has_no_critical_findings(self, complete_boq):
        result = run_deterministic_audit(complete_boq, {})
        assert result.critical_warnings == []
        assert result.is_valid is True
        assert result.score == 100

    def test_missing_mount_is_critical(self, complete_boq):
        result = run_deterministic_audit(_without(complete_boq, 'mount'), {})
        assert any("Missing mount" in w for w in result.critical_warnings)
        assert result.score == CRITICAL_SCORE_CAP
        assert result.is_valid is False

    def test_long_run_without_extender_is_critical(self, complete_boq):
        result = run_deterministic_audit(_without(complete_boq, 'extender'), {})
        assert any("no extender" in w for w in result.critical_warnings)
        assert "HDBaseT extender pair (TX/RX)" in result.missing_components

    def test_short_run_needs_no_extender(self, complete_boq):
        result = run_deterministic_audit(_without(complete_boq, 'extender'),
                                         {'rackDistance': 5, 'tableLength': 8})
        assert result.critical_warnings == []

    def test_very_long_run_needs_fiber(self, complete_boq):
        result = run_deterministic_audit(complete_boq, {'rackDistance': 140})
        assert any("fiber" in w for w in result.critical_warnings)

    def test_mics_and_speakers_without_aec_is_feedback_risk(self, complete_boq):
        result = run_deterministic_audit(_without(complete_boq, 'DSP'), {})
        assert any("Feedback risk" in w for w in result.critical_warnings)

    def test_brand_mismatch_is_critical(self, complete_boq):
        result = run_deterministic_audit(complete_boq, {'speakerBrands': ['Bose']})
        assert result.critical_warnings[0].startswith("CRITICAL: Brand mismatch")

    def test_too_few_ceiling_speakers_is_a_suggestion(self, complete_boq):
        result = run_deterministic_audit(complete_boq, {'roomLength': 40, 'roomWidth': 30})
        assert any("ceiling speakers" in s for s in result.suggestions)

    def test_installation_notes(self, complete_boq):
        result = run_deterministic_audit(complete_boq, {
            'plenumRequirement': 'plenum_required', 'upsRequirement': 'rack_only', 'wallReinforcement': 'no',
        })
        assert len(result.compliance_notes) == 3
        assert "UPS" in result.missing_components


class TestBoqValidator:

    def test_semantic_result_merged(self, complete_boq):
        oracle = FakeOracle(_semantic(score=92, warnings=["Consider a wireless presentation system"]))
        result = BoqValidator(oracle).validate(complete_boq, {})
        assert result.score == 92
        assert result.warnings == ["Consider a wireless presentation system"]
        assert oracle.last_context.temperature == VALIDATION_TEMPERATURE

    def test_oracle_cannot_lift_score_above_cap(self, complete_boq):
        oracle = FakeOracle(_semantic(score=98))
        result = BoqValidator(oracle).validate(_without(complete_boq, 'mount'), {})
        assert result.score <= CRITICAL_SCORE_CAP
        assert result.is_valid is False
        assert any("Missing mount" in w for w in result.warnings)

    def test_semantic_critical_marks_invalid(self, complete_boq):
        oracle = FakeOracle(_semantic(score=70, warnings=["CRITICAL: No camera for a VC room"]))
        assert BoqValidator(oracle).validate(complete_boq, {}).is_valid is False

    def test_summary_string_is_parsed(self, complete_boq):
        oracle = FakeOracle(_semantic())
        result = BoqValidator(oracle).validate(complete_boq, "roomLength: 20, speakerBrands: Bose")
        assert any("Brand mismatch" in w for w in result.critical_warnings)
        assert "speakerBrands: Bose" in oracle.last_instruction

    def test_oracle_outage_degrades(self, complete_boq):
        oracle = FakeOracle(OracleCommunicationError("timeout"))
        result = BoqValidator(oracle).validate(_without(complete_boq, 'mount'), {})
        assert result.is_valid is False
        assert result.score == 0
        assert any("manual review required" in n for n in result.compliance_notes)
        assert any("Missing mount" in w for w in result.warnings)

    def test_malformed_audit_degrades(self, complete_boq):
        result = BoqValidator(FakeOracle("Looks good to me!")).validate(complete_boq, {})
        assert result.score == 0
        assert result.is_valid is False

    def test_rejected_credentials_degrade(self, complete_boq):
        oracle = FakeOracle(ConfigurationError("Gemini rejected the credentials"))
        result = BoqValidator(oracle).validate(complete_boq, "roomLength: 20")
        assert result.is_valid is False
        assert result.score == 0
        assert any("manual review required" in n for n in result.compliance_notes)

    def test_degraded_audit_reported_to_activity_log(self, complete_boq, activity_logger):
        oracle = FakeOracle(OracleCommunicationError("timeout"))
        BoqValidator(oracle, activity_logger).validate(complete_boq, {})
        [(action, resource_type, details)] = activity_logger.entries
        assert (action, resource_type) == ('GENERATION_FAILED', 'BOQ_VALIDATE')
        assert details['error'] == "timeout"

    def test_successful_audit_not_reported(self, complete_boq, activity_logger):
        BoqValidator(FakeOracle(_semantic()), activity_logger).validate(complete_boq, {})
        assert activity_logger.entries == []
