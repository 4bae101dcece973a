# genboq/boq_generator.py

import logging
from typing import Any, Iterable, List, Mapping

from genboq.activity_log import log_activity_safely
from genboq.av_designer import calculate_room_metrics
from genboq.category_resolver import resolve_categories
from genboq.errors import BoqGenerationError, DomainInvariantError
from genboq.gemini_handler import OracleContext
from genboq.item_classifier import order_by_system_flow, quantity_of
from genboq.models import BoqItem, BrandPreference, GenerationDirective
from genboq.prompts import (
    CATALOG_ATTACHMENT_PREFIX, GENERATION_TEMPERATURE, cable_solution_text, render_generation_instruction,
)
from genboq.requirements_context import format_client_configuration, installation_constraints
from genboq.response_parser import parse_boq_items
from genboq.room_profiles import FLOW_STAGES
from genboq.sourcing_policy import (
    build_sourcing_directives, enforce_brand_locks, extract_brand_preferences, reconcile_provenance,
)

logger = logging.getLogger(__name__)


def check_mount_ratio(items: Iterable[BoqItem]) -> None:
    """Every display needs exactly one mount (compared by quantity)."""
    items = list(items)
    displays = quantity_of(items, 'display')
    if not displays:
        return
    mounts = quantity_of(items, 'mount')
    if mounts != displays:
        raise DomainInvariantError(f"Display/mount mismatch: {displays:g} display(s) but {mounts:g} mount(s)")


def finalize_boq(response_text: str, catalog, preferences: Iterable[BrandPreference]) -> List[BoqItem]:
    """
    Shared post-processing for generate and refine: strict parse, provenance
    reconciliation against the catalog, brand locks, mount ratio, system-flow order.
    """
    items = parse_boq_items(response_text)
    items = reconcile_provenance(items, catalog)
    enforce_brand_locks(items, preferences)
    check_mount_ratio(items)
    return order_by_system_flow(items)


class BoqGenerator:
    """
    Builds a BOQ for one room: category scope, room metrics, brand/sourcing
    directives and a catalog excerpt go into one instruction; the oracle's item
    array comes back through finalize_boq.
    """

    def __init__(self, catalog, oracle, activity_logger=None):
        self.catalog = catalog
        self.oracle = oracle
        self.activity_logger = activity_logger

    def build_directive(self, requirements: Mapping[str, Any]) -> GenerationDirective:
        categories = resolve_categories(requirements.get('requiredSystems'))
        metrics = calculate_room_metrics(requirements)
        preferences = extract_brand_preferences(requirements)
        sourcing = build_sourcing_directives(preferences, self.catalog)

        return GenerationDirective(
            category_scope=tuple(categories),
            brand_preferences=tuple(preferences),
            sourcing=tuple(sourcing),
            metrics=metrics,
            cable_solution=cable_solution_text(metrics.display_total_run),
            constraints=tuple(installation_constraints(requirements)),
            ordering=tuple(FLOW_STAGES),
            catalog_excerpt=self.catalog.excerpt_json(categories),
        )

    def generate(self, requirements: Mapping[str, Any]) -> List[BoqItem]:
        directive = self.build_directive(requirements)
        instruction = render_generation_instruction(directive, format_client_configuration(requirements))
        context = OracleContext(
            attachments=(CATALOG_ATTACHMENT_PREFIX + directive.catalog_excerpt,),
            temperature=GENERATION_TEMPERATURE,
            expect_json=True,
        )
        logger.info(f"Generating BOQ for {len(directive.category_scope)} categories, "
                    f"{sum(1 for p in directive.brand_preferences if p.locked)} brand lock(s)")

        try:
            response_text = self.oracle.complete(instruction, context)
            boq = finalize_boq(response_text, self.catalog, directive.brand_preferences)
        except BoqGenerationError as e:
            logger.error(f"BOQ generation failed: {e}")
            log_activity_safely(self.activity_logger, 'GENERATION_FAILED', 'BOQ_GENERATE',
                                details={'error': str(e), 'categories': list(directive.category_scope)})
            raise

        logger.info(f"Generated BOQ with {len(boq)} items")
        return boq
