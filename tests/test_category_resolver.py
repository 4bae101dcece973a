"""
test_category_resolver.py - Requirement systems -> catalog labels.
"""

from genboq.category_resolver import resolve_categories
from genboq.room_profiles import ALWAYS_INCLUDED_CATEGORIES, CATEGORY_MAP


class TestResolveCategories:

    def test_missing_systems_means_all(self):
        labels = resolve_categories(None)
        for mapped in CATEGORY_MAP.values():
            for label in mapped:
                assert label in labels
        assert labels[-2:] == ALWAYS_INCLUDED_CATEGORIES

    def test_empty_list_gives_only_service_categories(self):
        assert resolve_categories([]) == ALWAYS_INCLUDED_CATEGORIES

    def test_order_follows_request(self):
        labels = resolve_categories(['audio', 'display'])
        assert labels == ["Audio System", "Display System", "Hiperwall System"] + ALWAYS_INCLUDED_CATEGORIES

    def test_unknown_systems_contribute_nothing(self):
        assert resolve_categories(['holograms']) == ALWAYS_INCLUDED_CATEGORIES

    def test_duplicates_removed_first_seen(self):
        labels = resolve_categories(['audio', 'audio'])
        assert labels.count("Audio System") == 1

    def test_single_string_accepted(self):
        assert resolve_categories('acoustics') == ["Acoustic Treatment"] + ALWAYS_INCLUDED_CATEGORIES
