# genboq/boq_editor.py
"""Manual BOQ edits. Every edit returns a new list; totals are always recomputed."""

import logging
from typing import Any, List, Sequence

from genboq.errors import DomainInvariantError
from genboq.models import PRICE_SOURCES, SOURCES, BoqItem

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    'category': 'category',
    'itemDescription': 'item_description',
    'keyRemarks': 'key_remarks',
    'brand': 'brand',
    'model': 'model',
    'quantity': 'quantity',
    'unitPrice': 'unit_price',
    'source': 'source',
    'priceSource': 'price_source',
    'margin': 'margin',
}


def _check_index(boq: Sequence[BoqItem], index: int):
    if not 0 <= index < len(boq):
        raise DomainInvariantError(f"No BOQ item at position {index}")


def _coerce_value(field: str, value: Any) -> Any:
    if field == 'quantity':
        value = float(value)
        if value <= 0:
            raise DomainInvariantError(f"Quantity must be greater than 0, got {value:g}")
        return int(value) if value.is_integer() else value
    if field == 'unit_price':
        value = float(value)
        if value < 0:
            raise DomainInvariantError(f"Unit price cannot be negative, got {value:g}")
        return value
    if field == 'margin':
        return None if value is None or value == '' else max(0.0, float(value))
    if field == 'source' and value not in SOURCES:
        raise DomainInvariantError(f"source must be one of {SOURCES}")
    if field == 'price_source' and value not in PRICE_SOURCES:
        raise DomainInvariantError(f"priceSource must be one of {PRICE_SOURCES}")
    return value


def update_item(boq: Sequence[BoqItem], index: int, field: str, value: Any) -> List[BoqItem]:
    """Set one field (camelCase or snake_case name) on the item at index."""
    _check_index(boq, index)
    attribute = _EDITABLE_FIELDS.get(field, field)
    if attribute not in _EDITABLE_FIELDS.values():
        raise DomainInvariantError(f"Field '{field}' cannot be edited")

    updated = list(boq)
    updated[index] = boq[index].with_changes(**{attribute: _coerce_value(attribute, value)})
    return updated


def delete_item(boq: Sequence[BoqItem], index: int) -> List[BoqItem]:
    _check_index(boq, index)
    removed = boq[index]
    logger.info(f"Removed BOQ item '{removed.item_description}'")
    return [item for position, item in enumerate(boq) if position != index]


def new_blank_item() -> BoqItem:
    return BoqItem(
        category='',
        item_description='New Item',
        key_remarks='Manually added item.',
        brand='',
        model='',
        quantity=1,
        unit_price=0,
        source='web',
        price_source='estimated',
    )


def add_item(boq: Sequence[BoqItem]) -> List[BoqItem]:
    """Append a blank line for the user to fill in."""
    return list(boq) + [new_blank_item()]
