"""
test_boq_editor.py - Manual add / update / delete of BOQ lines.
"""

import pytest

from conftest import make_item
from genboq.boq_editor import add_item, delete_item, update_item
from genboq.errors import DomainInvariantError


@pytest.fixture
def boq():
    return [
        make_item('JBL ceiling speaker', 'JBL', 'Control 26C', quantity=2, unit_price=15000),
        make_item('Shure boundary microphone', 'Shure', 'MX395', quantity=3, unit_price=20000),
    ]


class TestUpdateItem:

    def test_quantity_change_recomputes_total(self, boq):
        updated = update_item(boq, 0, 'quantity', 4)
        assert updated[0].quantity == 4
        assert updated[0].total_price == 60000.0

    def test_unit_price_change_recomputes_total(self, boq):
        updated = update_item(boq, 1, 'unitPrice', '25000')
        assert updated[1].total_price == 75000.0

    def test_original_list_untouched(self, boq):
        update_item(boq, 0, 'brand', 'Bose')
        assert boq[0].brand == 'JBL'

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_non_positive_quantity_rejected(self, boq, quantity):
        with pytest.raises(DomainInvariantError):
            update_item(boq, 0, 'quantity', quantity)

    def test_negative_price_rejected(self, boq):
        with pytest.raises(DomainInvariantError):
            update_item(boq, 0, 'unitPrice', -1)

    def test_negative_margin_clamped_to_zero(self, boq):
        assert update_item(boq, 0, 'margin', -15)[0].margin == 0.0

    def test_blank_margin_clears_override(self, boq):
        with_margin = update_item(boq, 0, 'margin', 12)
        assert update_item(with_margin, 0, 'margin', '')[0].margin is None

    def test_snake_case_field_accepted(self, boq):
        assert update_item(boq, 0, 'item_description', 'JBL pendant speaker')[0].item_description == \
            'JBL pendant speaker'

    def test_total_price_not_editable(self, boq):
        with pytest.raises(DomainInvariantError):
            update_item(boq, 0, 'totalPrice', 1)

    def test_invalid_source_rejected(self, boq):
        with pytest.raises(DomainInvariantError):
            update_item(boq, 0, 'source', 'catalog')

    def test_bad_index_rejected(self, boq):
        with pytest.raises(DomainInvariantError):
            update_item(boq, 5, 'brand', 'Bose')


class TestAddDelete:

    def test_add_item_defaults(self, boq):
        updated = add_item(boq)
        new = updated[-1]
        assert len(updated) == 3
        assert new.item_description == 'New Item'
        assert new.key_remarks == 'Manually added item.'
        assert (new.quantity, new.unit_price, new.total_price) == (1, 0, 0.0)
        assert (new.source, new.price_source) == ('web', 'estimated')

    def test_delete_item(self, boq):
        updated = delete_item(boq, 0)
        assert [i.brand for i in updated] == ['Shure']
        assert len(boq) == 2

    def test_delete_bad_index(self, boq):
        with pytest.raises(DomainInvariantError):
            delete_item(boq, -1)
