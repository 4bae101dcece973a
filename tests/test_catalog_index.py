"""
test_catalog_index.py - Catalog loading, lookup and excerpt construction.

Tests cover:
  - Field fallbacks (awmdb_id for model; price_inr wins over a USD price)
  - De-duplication (first seen wins) and dropping records without a brand
  - Exact category filtering and case-insensitive brand search
  - Per-group excerpt caps (20 default, 30 for tier-1 brands) in discovery order
"""

import json

from genboq.data_handler import CatalogIndex, load_catalog
from genboq.models import ProductRecord


class TestCatalogLoading:

    def test_duplicates_and_brandless_rows_removed(self, catalog):
        assert len(catalog) == 9

    def test_first_seen_duplicate_wins(self, catalog):
        record = catalog.find_record('Samsung', 'QM65C')
        assert record.price == 1500
        assert record.description == 'Samsung 65in 4K commercial display'

    def test_awmdb_id_used_as_model(self, catalog):
        record = catalog.find_record('LG', '65UH5F')
        assert record is not None
        assert (record.price, record.currency) == (120000, 'INR')

    def test_missing_price_is_none(self, catalog):
        record = catalog.find_record('Crestron', 'TSW-1070')
        assert record.price is None

    def test_load_catalog_from_json_file(self, tmp_path):
        path = tmp_path / "productDatabase.json"
        path.write_text(json.dumps([
            {'brand': 'Shure', 'model': 'MXA920', 'category': 'Audio - Microphones', 'price': 0},
            {'brand': 'Biamp', 'model': 'TesiraFORTE', 'category': 'Audio - DSP & Amplification', 'price': 4000},
        ]))
        index = load_catalog(str(path))
        assert len(index) == 2
        assert index.find_record('Shure', 'MXA920').price is None

    def test_inr_price_wins_when_both_prices_given(self):
        index = CatalogIndex.from_dicts([
            {'brand': 'Sony', 'model': 'FW-65BZ40L', 'category': 'Display System',
             'price': 2000, 'price_inr': 170000},
        ])
        record = index.find_record('Sony', 'FW-65BZ40L')
        assert (record.price, record.currency) == (170000, 'INR')

    def test_load_catalog_uses_configured_rate(self, tmp_path):
        path = tmp_path / "productDatabase.json"
        path.write_text(json.dumps([{'brand': 'Biamp', 'model': 'TesiraFORTE', 'price': 4000}]))
        index = load_catalog(str(path), usd_to_inr_rate=90)
        assert index.base_price(index.find_record('Biamp', 'TesiraFORTE')) == 360000.0

    def test_base_price(self, catalog):
        assert catalog.base_price(catalog.find_record('Samsung', 'QM65C')) == 125250.0
        assert catalog.base_price(catalog.find_record('LG', '65UH5F')) == 120000.0
        assert catalog.base_price(catalog.find_record('Crestron', 'TSW-1070')) is None


class TestCatalogSearch:

    def test_category_filter_is_exact(self, catalog):
        assert len(catalog.filter_by_categories(['Display System'])) == 2
        assert catalog.filter_by_categories(['display system']) == []

    def test_brand_search_is_case_insensitive(self, catalog):
        hits = catalog.search(brand='jbl', category='Audio - Speakers')
        assert [r.model for r in hits] == ['Control 26C', 'Control 24CT']

    def test_search_any_spans_categories(self, catalog):
        hits = catalog.search_any('JBL', ['Audio - Microphones', 'Microphone'])
        assert hits == []

    def test_find_record_requires_model(self, catalog):
        assert catalog.find_record('Samsung', '') is None

    def test_known_brands_in_discovery_order(self, catalog):
        assert catalog.known_brands()[:3] == ['Samsung', 'LG', 'Chief']

    def test_tier1_brands_case_insensitive(self, catalog):
        assert catalog.is_tier1('samsung')
        assert not catalog.is_tier1('Acme')


def _records(brand, category, count):
    return [ProductRecord(brand=brand, model=f"{brand}-{n}", category=category) for n in range(count)]


class TestExcerpt:

    def test_default_cap_per_group(self):
        index = CatalogIndex(_records('Acme', 'Display System', 25))
        excerpt = index.build_excerpt(['Display System'])
        assert len(excerpt) == 20
        assert excerpt[0].model == 'Acme-0'
        assert excerpt[-1].model == 'Acme-19'

    def test_tier1_cap_is_larger(self):
        index = CatalogIndex(_records('Samsung', 'Display System', 35))
        assert len(index.build_excerpt(['Display System'])) == 30

    def test_groups_emitted_in_discovery_order(self):
        records = _records('Acme', 'Display System', 2) + _records('Zeta', 'Audio System', 2)
        records.insert(1, ProductRecord(brand='Zeta', model='first-zeta', category='Audio System'))
        index = CatalogIndex(records)
        brands = [r.brand for r in index.build_excerpt(['Display System', 'Audio System'])]
        assert brands == ['Acme', 'Acme', 'Zeta', 'Zeta', 'Zeta']

    def test_excerpt_outside_labels_is_empty(self, catalog):
        assert catalog.build_excerpt(['Acoustic Treatment']) == []

    def test_excerpt_json_marks_missing_model(self):
        index = CatalogIndex([ProductRecord(brand='Acme', model=None, category='Audio System',
                                            description='Generic amplifier')])
        payload = json.loads(index.excerpt_json(['Audio System']))
        assert payload[0]['model'] == 'N/A'
