# genboq/sourcing_policy.py
"""
Brand preferences, sourcing directives and the post-generation checks that
keep the oracle honest about them.

An explicit brand preference is a lock: it beats catalog availability. When the
catalog has no product of the locked brand in that sub-category, the item is
still produced in that brand from general knowledge and marked web/estimated.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from genboq.errors import BrandLockViolation
from genboq.item_classifier import subcategory_of
from genboq.models import BoqItem, BrandPreference, SourcingDirective
from genboq.room_profiles import AUDIO_FALLBACK_KEY, SUBCATEGORIES

logger = logging.getLogger(__name__)


def _as_brand_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(',')
    brands = [str(b).strip() for b in value if b is not None and str(b).strip()]
    return list(dict.fromkeys(brands))


def extract_brand_preferences(requirements: Mapping[str, Any]) -> List[BrandPreference]:
    """One BrandPreference per sub-category, in SUBCATEGORIES order."""
    audio_brands = _as_brand_list(requirements.get(AUDIO_FALLBACK_KEY))
    preferences = []
    for subcategory, spec in SUBCATEGORIES.items():
        explicit = _as_brand_list(requirements.get(spec['preference_key']))
        if explicit:
            pref = BrandPreference(subcategory, spec['label'], tuple(explicit), True, 'explicit')
        elif spec.get('audio_fallback') and audio_brands:
            # generic audio list is guidance only, never a lock
            pref = BrandPreference(subcategory, spec['label'], tuple(audio_brands), False, 'audio_fallback')
        else:
            pref = BrandPreference(subcategory, spec['label'], tuple(spec['tier1']), False, 'tier1')
        preferences.append(pref)
    return preferences


def locked_brands(preferences: Iterable[BrandPreference]) -> Dict[str, List[str]]:
    return {p.subcategory: list(p.brands) for p in preferences if p.locked}


def build_sourcing_directives(preferences: Iterable[BrandPreference], catalog) -> List[SourcingDirective]:
    """Catalog availability per (sub-category, brand) for every non-default preference."""
    directives = []
    for pref in preferences:
        if pref.origin == 'tier1':
            continue
        catalog_categories = tuple(SUBCATEGORIES[pref.subcategory]['catalog_categories'])
        for brand in pref.brands:
            hits = catalog.search_any(brand, catalog_categories)
            directive = SourcingDirective(
                category=pref.subcategory,
                brand=brand,
                catalog_hits=tuple(hits),
                must_use_brand=pref.locked,
                label=pref.label,
                catalog_categories=catalog_categories,
            )
            if hits:
                logger.info(f"Catalog has {len(hits)} {brand} {pref.label} - database first")
            else:
                logger.info(f"Catalog has NO {brand} {pref.label} - generate from brand knowledge")
            directives.append(directive)
    return directives


def enforce_brand_locks(items: Sequence[BoqItem], preferences: Iterable[BrandPreference]) -> None:
    """Raise BrandLockViolation if any item in a locked sub-category has another brand."""
    locks = {sub: {b.lower() for b in brands} for sub, brands in locked_brands(preferences).items()}
    if not locks:
        return

    offending = []
    for item in items:
        subcategory = subcategory_of(item)
        allowed = locks.get(subcategory)
        if allowed is not None and item.brand.strip().lower() not in allowed:
            offending.append(item)

    if offending:
        details = "; ".join(
            f"{i.item_description} ({i.brand}) in {SUBCATEGORIES[subcategory_of(i)]['label']}"
            for i in offending
        )
        raise BrandLockViolation(f"Brand lock violated: {details}", offending_items=offending)

    present = {subcategory_of(i) for i in items}
    for subcategory in locks:
        if subcategory not in present:
            logger.warning(f"Brand-locked sub-category '{subcategory}' has no items in the BOQ")


def reconcile_provenance(items: Iterable[BoqItem], catalog) -> List[BoqItem]:
    """
    Make source/priceSource agree with the catalog. A 'database' claim with no
    matching record becomes web/estimated; a matched record's price replaces the
    oracle's, or marks the line estimated when the catalog has none.
    """
    reconciled = []
    for item in items:
        record = catalog.find_record(item.brand, item.model)
        if record is None:
            if item.source == 'database' or item.price_source == 'database':
                logger.info(f"No catalog record for {item.brand} {item.model}; marking web/estimated")
            reconciled.append(item.with_changes(source='web', price_source='estimated'))
            continue

        catalog_price = catalog.base_price(record)
        if catalog_price is None:
            reconciled.append(item.with_changes(source='database', price_source='estimated'))
        else:
            reconciled.append(item.with_changes(
                source='database', price_source='database', unit_price=catalog_price,
            ))
    return reconciled


def preferences_from_boq(items: Iterable[BoqItem], skip: Iterable[str] = ()) -> List[BrandPreference]:
    """Lock every sub-category present in a BOQ to the brands it already uses."""
    skip = set(skip)
    seen: Dict[str, List[str]] = {}
    for item in items:
        subcategory = subcategory_of(item)
        if subcategory is None or subcategory in skip or not item.brand:
            continue
        brands = seen.setdefault(subcategory, [])
        if item.brand not in brands:
            brands.append(item.brand)
    return [
        BrandPreference(sub, SUBCATEGORIES[sub]['label'], tuple(brands), True, 'explicit')
        for sub, brands in seen.items()
    ]
