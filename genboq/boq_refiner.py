# genboq/boq_refiner.py

import logging
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from genboq.activity_log import log_activity_safely
from genboq.boq_generator import finalize_boq
from genboq.errors import BoqGenerationError, DomainInvariantError
from genboq.gemini_handler import OracleContext
from genboq.item_classifier import subcategory_of
from genboq.models import BoqItem, BrandPreference, RefinementDirective
from genboq.prompts import CATALOG_ATTACHMENT_PREFIX, REFINEMENT_TEMPERATURE, render_refinement_instruction
from genboq.room_profiles import FLOW_STAGES, GROUP_KEYWORDS, SUBCATEGORIES, SUBCATEGORY_KEYWORDS, TIER1_BRANDS
from genboq.sourcing_policy import build_sourcing_directives, preferences_from_boq

logger = logging.getLogger(__name__)

_TARGET_WORD = re.compile(r'\b(?i:to|with|for|use|using)\s+')
_CAPITALISED_AFTER_TARGET = re.compile(r'\b(?i:to|with|for|use|using)\s+(?:(?i:the|a|an)\s+)?([A-Z][\w&+-]*)')

# Capitalised words that follow "to"/"with" without being a brand ("to Ceiling mics").
_NOT_A_BRAND = {
    word
    for words in SUBCATEGORY_KEYWORDS.values() for keyword in words for word in keyword.split()
} | set(GROUP_KEYWORDS) | {
    'ceiling', 'wall', 'table', 'floor', 'wireless', 'wired', 'new', 'better', 'bigger', 'larger', 'smaller',
    'cheaper', 'premium', 'budget', 'standard', 'one', 'two', 'three', 'four', 'all', 'each', 'every', 'more',
}


def _mentions(text: str, word: str) -> bool:
    return re.search(r'\b' + re.escape(word) + r'\b', text, re.IGNORECASE) is not None


def detect_touched_subcategories(instruction: str) -> List[str]:
    """Sub-categories an instruction talks about, in SUBCATEGORIES order."""
    touched = set()
    for group, members in GROUP_KEYWORDS.items():
        if _mentions(instruction, group):
            touched.update(members)
    for subcategory, keywords in SUBCATEGORY_KEYWORDS.items():
        if any(_mentions(instruction, kw) for kw in keywords):
            touched.add(subcategory)
    return [s for s in SUBCATEGORIES if s in touched]


def _brand_mentions(instruction: str, known_brands: Iterable[str]) -> List[Tuple[int, str]]:
    mentions = []
    for brand in dict.fromkeys(b for b in known_brands if b):
        pattern = r'(?<![\w-])' + re.escape(brand) + r'(?![\w-])'
        mentions.extend((m.start(), brand) for m in re.finditer(pattern, instruction, re.IGNORECASE))
    return sorted(mentions)


def detect_requested_brand(instruction: str, known_brands: Iterable[str],
                           replaced_brands: Iterable[str] = ()) -> Optional[str]:
    """
    The brand an instruction asks for.

    A known brand after a target word wins, so "Replace the Shure mics with
    Sennheiser" asks for Sennheiser. Without one, the last known brand named,
    skipping brands being replaced when another brand is also named. Failing
    that, a capitalised word after a target word that is not an ordinary
    word like 'Ceiling'.
    """
    mentions = _brand_mentions(instruction, known_brands)
    replaced = {b.lower() for b in replaced_brands if b}
    targets = [m.end() for m in _TARGET_WORD.finditer(instruction)]
    if targets:
        after_target = [brand for start, brand in mentions if start >= targets[0]]
        fresh = [brand for brand in after_target if brand.lower() not in replaced]
        if fresh or after_target:
            return (fresh or after_target)[0]

    named = [brand for _, brand in mentions]
    fresh = [brand for brand in named if brand.lower() not in replaced]
    if fresh or named:
        return (fresh or named)[-1]

    for match in _CAPITALISED_AFTER_TARGET.finditer(instruction):
        if match.group(1).lower() not in _NOT_A_BRAND:
            return match.group(1)
    return None


class BoqRefiner:
    """
    Applies a free-text instruction to an existing BOQ. The instruction wins for
    the sub-categories it touches; everything else stays locked to the brands
    already in the BOQ. The oracle must return the full replacement array.
    """

    def __init__(self, catalog, oracle, activity_logger=None):
        self.catalog = catalog
        self.oracle = oracle
        self.activity_logger = activity_logger

    def build_directive(self, current_boq: Sequence[BoqItem], instruction: str) -> RefinementDirective:
        current = tuple(current_boq)
        touched = detect_touched_subcategories(instruction)
        candidates = list(self.catalog.known_brands()) + list(TIER1_BRANDS) + [i.brand for i in current]
        replaced = [i.brand for i in current if subcategory_of(i) in touched]
        requested = detect_requested_brand(instruction, candidates, replaced)

        if requested and not touched:
            # a bare "use <brand>" applies to whatever the brand makes; nothing is locked
            touched = [s for s in SUBCATEGORIES if any(subcategory_of(i) == s for i in current)]
            requested_prefs: List[BrandPreference] = []
        elif requested:
            requested_prefs = [
                BrandPreference(sub, SUBCATEGORIES[sub]['label'], (requested,), True, 'explicit')
                for sub in touched
            ]
        else:
            requested_prefs = []

        preferences = preferences_from_boq(current, skip=touched) + requested_prefs
        categories = list(dict.fromkeys(i.category for i in current))

        return RefinementDirective(
            instruction=instruction.strip(),
            current_boq=current,
            touched_subcategories=tuple(touched),
            requested_brand=requested,
            brand_preferences=tuple(preferences),
            sourcing=tuple(build_sourcing_directives(requested_prefs, self.catalog)),
            category_scope=tuple(categories),
            ordering=tuple(FLOW_STAGES),
            catalog_excerpt=self.catalog.excerpt_json(categories),
        )

    def refine(self, current_boq: Sequence[BoqItem], instruction: str) -> List[BoqItem]:
        if not instruction or not instruction.strip():
            raise DomainInvariantError("Refinement instruction is empty")
        if not current_boq:
            raise DomainInvariantError("There is no BOQ to refine; generate one first")

        directive = self.build_directive(current_boq, instruction)
        context = OracleContext(
            attachments=(CATALOG_ATTACHMENT_PREFIX + directive.catalog_excerpt,),
            temperature=REFINEMENT_TEMPERATURE,
            expect_json=True,
        )
        logger.info(f"Refining BOQ ({len(directive.current_boq)} items): '{directive.instruction}' "
                    f"touches {list(directive.touched_subcategories)}, brand={directive.requested_brand}")

        try:
            response_text = self.oracle.complete(render_refinement_instruction(directive), context)
            refined = finalize_boq(response_text, self.catalog, directive.brand_preferences)
        except BoqGenerationError as e:
            logger.error(f"BOQ refinement failed: {e}")
            log_activity_safely(self.activity_logger, 'GENERATION_FAILED', 'BOQ_REFINE',
                                details={'error': str(e), 'instruction': directive.instruction})
            raise

        before = {subcategory_of(i) for i in directive.current_boq} - set(directive.touched_subcategories)
        after = {subcategory_of(i) for i in refined}
        for subcategory in sorted(s for s in before - after if s):
            logger.warning(f"Refinement dropped all '{subcategory}' items although the instruction did not mention them")

        logger.info(f"Refined BOQ has {len(refined)} items")
        return refined
