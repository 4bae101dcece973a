# genboq/boq_validator.py
"""
Two-phase BOQ audit.

The deterministic phase needs no oracle: brand compliance, display/mount
balance, extender/fiber rules for the display run, and the AEC requirement
when microphones and speakers share a room. The semantic phase asks the oracle
for a broader review. Findings are concatenated; the oracle can neither clear a
deterministic critical finding nor lift the score above the cap it implies.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Sequence, Union

from genboq.av_designer import calculate_room_metrics
from genboq.activity_log import log_activity_safely
from genboq.gemini_handler import OracleContext
from genboq.item_classifier import (
    classify_item, is_aec_processor, is_ceiling_microphone, is_ceiling_speaker, is_fiber_extender,
    is_table_microphone, quantity_of, subcategory_of,
)
from genboq.models import BoqItem, ValidationResult
from genboq.prompts import VALIDATION_TEMPERATURE, render_validation_instruction
from genboq.requirements_context import parse_requirements_summary, summarize_requirements
from genboq.response_parser import parse_validation_response
from genboq.room_profiles import EXTENDER_REQUIRED_FT, FIBER_REQUIRED_FT
from genboq.sourcing_policy import extract_brand_preferences

logger = logging.getLogger(__name__)

CRITICAL = "CRITICAL:"
CRITICAL_SCORE_CAP = 59
DEGRADED_SCORE = 0
ACOUSTIC_TREATMENT_VOLUME_CUFT = 3000


def _has_class(items: Sequence[BoqItem], component_class: str) -> bool:
    return any(classify_item(i) == component_class for i in items)


def _brand_findings(items, requirements) -> List[str]:
    warnings = []
    for pref in extract_brand_preferences(requirements):
        if not pref.locked:
            continue
        allowed = {b.lower() for b in pref.brands}
        for item in items:
            if subcategory_of(item) == pref.subcategory and item.brand.strip().lower() not in allowed:
                warnings.append(
                    f"{CRITICAL} Brand mismatch - {pref.label} requested {', '.join(pref.brands)} "
                    f"but '{item.item_description}' is {item.brand}"
                )
    return warnings


def run_deterministic_audit(boq: Sequence[BoqItem], requirements: Mapping[str, Any]) -> ValidationResult:
    """Oracle-free structural checks. Pure; safe to call from tests and the UI."""
    items = list(boq)
    metrics = calculate_room_metrics(requirements)
    warnings: List[str] = []
    suggestions: List[str] = []
    missing: List[str] = []
    notes: List[str] = []

    # brand compliance first: highest-priority finding
    warnings.extend(_brand_findings(items, requirements))

    displays = quantity_of(items, 'display')
    mounts = quantity_of(items, 'mount')
    if displays and mounts != displays:
        if mounts < displays:
            warnings.append(f"{CRITICAL} Missing mount - {displays:g} display(s) but only {mounts:g} mount(s)")
            missing.append("Display mount")
        else:
            warnings.append(f"{CRITICAL} Mount count {mounts:g} does not match display count {displays:g}")

    if displays:
        run = metrics.display_total_run
        if run > EXTENDER_REQUIRED_FT and not _has_class(items, 'extender'):
            warnings.append(f"{CRITICAL} Display run of {run:g}ft exceeds {EXTENDER_REQUIRED_FT}ft "
                            f"but no extender is present")
            missing.append("HDBaseT extender pair (TX/RX)")
        elif run > FIBER_REQUIRED_FT and not any(is_fiber_extender(i) for i in items):
            warnings.append(f"{CRITICAL} Display run of {run:g}ft exceeds {FIBER_REQUIRED_FT}ft "
                            f"but no fiber extender is present")
            missing.append("Fiber optic extender pair")

    has_mics = _has_class(items, 'microphone')
    has_speakers = _has_class(items, 'speaker')
    if has_mics and has_speakers and not any(is_aec_processor(i) for i in items):
        warnings.append(f"{CRITICAL} Feedback risk - microphones and speakers present "
                        f"but no DSP with acoustic echo cancellation (AEC)")
        missing.append("DSP with AEC")

    ceiling_speakers = sum(i.quantity for i in items if is_ceiling_speaker(i))
    if ceiling_speakers and ceiling_speakers < metrics.ceiling_speaker_count:
        suggestions.append(f"Room area {metrics.area:g} sq ft calls for {metrics.ceiling_speaker_count} "
                           f"ceiling speakers; BOQ has {ceiling_speakers:g}")
    ceiling_mics = sum(i.quantity for i in items if is_ceiling_microphone(i))
    if ceiling_mics and ceiling_mics < metrics.ceiling_mic_count:
        suggestions.append(f"Room area {metrics.area:g} sq ft calls for {metrics.ceiling_mic_count} "
                           f"ceiling microphones; BOQ has {ceiling_mics:g}")
    table_mics = sum(i.quantity for i in items if is_table_microphone(i))
    if table_mics and table_mics < metrics.table_mic_count:
        suggestions.append(f"Capacity {metrics.capacity} calls for {metrics.table_mic_count} "
                           f"table microphones; BOQ has {table_mics:g}")

    acoustic_needs = str(requirements.get('acousticNeeds', '')).lower()
    if (metrics.volume > ACOUSTIC_TREATMENT_VOLUME_CUFT and acoustic_needs == 'poor'
            and not _has_class(items, 'acoustics')):
        warnings.append(f"Room volume {metrics.volume:g} cu ft with poor acoustics has no acoustic treatment")
        missing.append("Acoustic treatment")

    if str(requirements.get('plenumRequirement', '')).lower() == 'plenum_required':
        notes.append("Plenum space: all in-ceiling cabling must be CMP rated")
    ups = str(requirements.get('upsRequirement', '')).lower()
    if ups and ups != 'none':
        notes.append("UPS required" + (" for rack and displays" if 'display' in ups else " for rack equipment"))
        if not any(re.search(r'\bups\b', f"{i.item_description} {i.model}", re.IGNORECASE) for i in items):
            missing.append("UPS")
    if str(requirements.get('wallReinforcement', '')).lower() == 'no' and displays:
        notes.append("No wall reinforcement: display mounts need toggle anchors or backing plates")

    critical = [w for w in warnings if w.startswith(CRITICAL)]
    return ValidationResult(
        is_valid=not critical,
        warnings=warnings,
        suggestions=suggestions,
        missing_components=missing,
        score=CRITICAL_SCORE_CAP if critical else 100,
        compliance_notes=notes,
    )


def merge_results(deterministic: ValidationResult, semantic: ValidationResult) -> ValidationResult:
    semantic_critical = any(w.startswith(CRITICAL) for w in semantic.warnings)
    score = semantic.score
    if deterministic.critical_warnings:
        score = min(score, CRITICAL_SCORE_CAP)
    return ValidationResult(
        is_valid=deterministic.is_valid and semantic.is_valid and not semantic_critical,
        warnings=deterministic.warnings + semantic.warnings,
        suggestions=deterministic.suggestions + semantic.suggestions,
        missing_components=deterministic.missing_components + semantic.missing_components,
        score=score,
        compliance_notes=deterministic.compliance_notes + semantic.compliance_notes,
    )


class BoqValidator:
    def __init__(self, oracle, activity_logger=None):
        self.oracle = oracle
        self.activity_logger = activity_logger

    def validate(self, boq: Sequence[BoqItem],
                 requirements_summary: Union[str, Mapping[str, Any]]) -> ValidationResult:
        if isinstance(requirements_summary, str):
            summary = requirements_summary
            requirements: Dict[str, Any] = parse_requirements_summary(requirements_summary)
        else:
            requirements = dict(requirements_summary)
            summary = summarize_requirements(requirements)

        deterministic = run_deterministic_audit(boq, requirements)
        logger.info(f"Deterministic audit: {len(deterministic.critical_warnings)} critical finding(s)")

        try:
            response_text = self.oracle.complete(
                render_validation_instruction(boq, summary),
                OracleContext(temperature=VALIDATION_TEMPERATURE, expect_json=True),
            )
            semantic = parse_validation_response(response_text)
        except Exception as e:
            logger.error(f"Semantic audit failed: {e}", exc_info=True)
            log_activity_safely(self.activity_logger, 'GENERATION_FAILED', 'BOQ_VALIDATE',
                                details={'error': str(e), 'items': len(boq)})
            return ValidationResult(
                is_valid=False,
                warnings=list(deterministic.warnings),
                suggestions=list(deterministic.suggestions),
                missing_components=list(deterministic.missing_components),
                score=DEGRADED_SCORE,
                compliance_notes=deterministic.compliance_notes
                + ["Semantic audit did not run - manual review required"],
            )

        return merge_results(deterministic, semantic)
