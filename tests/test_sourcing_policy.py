"""
test_sourcing_policy.py - Brand preferences, sourcing directives, lock enforcement
and catalog provenance reconciliation.
"""

import pytest

from conftest import CATALOG_ROWS, make_item
from genboq.data_handler import CatalogIndex
from genboq.errors import BrandLockViolation
from genboq.sourcing_policy import (
    build_sourcing_directives, enforce_brand_locks, extract_brand_preferences, preferences_from_boq,
    reconcile_provenance,
)


def _by_subcategory(preferences):
    return {p.subcategory: p for p in preferences}


class TestExtractBrandPreferences:

    def test_explicit_preference_is_locked(self):
        prefs = _by_subcategory(extract_brand_preferences({'speakerBrands': ['JBL']}))
        assert prefs['speaker'].locked is True
        assert prefs['speaker'].brands == ('JBL',)
        assert prefs['speaker'].origin == 'explicit'

    def test_comma_string_is_split(self):
        prefs = _by_subcategory(extract_brand_preferences({'displayBrands': 'Samsung, LG,Samsung'}))
        assert prefs['display'].brands == ('Samsung', 'LG')

    def test_without_preference_tier1_guidance(self):
        prefs = _by_subcategory(extract_brand_preferences({}))
        assert prefs['display'].locked is False
        assert prefs['display'].brands == ('Samsung', 'LG', 'Sony')
        assert prefs['rack'].origin == 'tier1'

    def test_audio_brands_are_soft_fallback(self):
        prefs = _by_subcategory(extract_brand_preferences({
            'audioBrands': ['Bose'], 'microphoneBrands': ['Shure'],
        }))
        assert prefs['microphone'].locked is True
        assert prefs['speaker'].brands == ('Bose',)
        assert prefs['speaker'].locked is False
        assert prefs['speaker'].origin == 'audio_fallback'
        assert prefs['display'].origin == 'tier1'


class TestSourcingDirectives:

    def test_catalog_hits_mean_database_first(self, catalog):
        prefs = extract_brand_preferences({'speakerBrands': ['JBL']})
        [directive] = build_sourcing_directives(prefs, catalog)
        assert directive.brand == 'JBL'
        assert len(directive.catalog_hits) == 2
        assert directive.expected_source == 'database'
        assert directive.must_use_brand is True

    def test_no_catalog_hits_still_locks_brand(self, catalog):
        prefs = extract_brand_preferences({'microphoneBrands': ['JBL']})
        [directive] = build_sourcing_directives(prefs, catalog)
        assert directive.has_catalog_hits is False
        assert directive.must_use_brand is True
        assert directive.fallback == 'generate_from_brand'
        assert directive.expected_source == 'web'

    def test_tier1_guidance_produces_no_directives(self, catalog):
        assert build_sourcing_directives(extract_brand_preferences({}), catalog) == []


class TestEnforceBrandLocks:

    def test_matching_brand_passes(self):
        prefs = extract_brand_preferences({'speakerBrands': ['JBL']})
        enforce_brand_locks([make_item('JBL ceiling speaker', 'jbl', 'Control 26C')], prefs)

    def test_other_brand_in_locked_subcategory_raises(self):
        prefs = extract_brand_preferences({'speakerBrands': ['JBL']})
        bose = make_item('Bose ceiling speaker', 'Bose', 'DM3C')
        with pytest.raises(BrandLockViolation) as excinfo:
            enforce_brand_locks([bose], prefs)
        assert excinfo.value.offending_items == [bose]

    def test_unlocked_subcategories_are_free(self):
        prefs = extract_brand_preferences({'speakerBrands': ['JBL']})
        enforce_brand_locks([make_item('Sennheiser boundary microphone', 'Sennheiser', 'TCC2')], prefs)

    def test_extender_counts_as_connectivity(self):
        prefs = extract_brand_preferences({'connectivityBrands': ['Extron']})
        with pytest.raises(BrandLockViolation):
            enforce_brand_locks([make_item('HDBaseT extender pair', 'Kramer', 'TP-580')], prefs)

    def test_cables_are_not_locked(self):
        prefs = extract_brand_preferences({'connectivityBrands': ['Extron']})
        enforce_brand_locks([make_item('HDMI cable 3m', 'Generic', 'HD-3M')], prefs)


class TestReconcileProvenance:

    def test_catalog_match_takes_catalog_price_in_inr(self, catalog):
        [item] = reconcile_provenance([make_item('JBL ceiling speaker', 'JBL', 'Control 26C', quantity=2,
                                                 unit_price=1.0)], catalog)
        assert (item.source, item.price_source) == ('database', 'database')
        assert item.unit_price == 16700.0
        assert item.total_price == 33400.0

    def test_inr_catalog_price_is_not_converted(self, catalog):
        [item] = reconcile_provenance([make_item('LG signage display', 'LG', '65UH5F')], catalog)
        assert item.unit_price == 120000.0

    def test_catalog_match_without_price_is_estimated(self, catalog):
        [item] = reconcile_provenance([make_item('Crestron touch panel', 'Crestron', 'TSW-1070',
                                                 unit_price=90000)], catalog)
        assert (item.source, item.price_source) == ('database', 'estimated')
        assert item.unit_price == 90000

    def test_false_database_claim_is_downgraded(self, catalog):
        [item] = reconcile_provenance([make_item('Bose ceiling speaker', 'Bose', 'DM3C',
                                                 source='database', price_source='database')], catalog)
        assert (item.source, item.price_source) == ('web', 'estimated')


class TestPreferencesFromBoq:

    def test_locks_current_brands_except_skipped(self):
        items = [
            make_item('Bose ceiling speaker', 'Bose', 'DM3C'),
            make_item('Shure boundary microphone', 'Shure', 'MX395'),
        ]
        prefs = _by_subcategory(preferences_from_boq(items, skip=['microphone']))
        assert set(prefs) == {'speaker'}
        assert prefs['speaker'].brands == ('Bose',)
        assert prefs['speaker'].locked is True


class TestConfiguredExchangeRate:

    def test_configured_usd_rate_applied(self):
        catalog = CatalogIndex.from_dicts(CATALOG_ROWS, usd_to_inr_rate=90)
        [item] = reconcile_provenance([make_item('Samsung display', 'Samsung', 'QM65C')], catalog)
        assert item.unit_price == 135000.0
