# genboq/response_parser.py
# Strict parsing of oracle output. Nothing here guesses a missing value:
# every problem is a ResponseSchemaError that fails the whole operation.

import json
import logging
import math
import re
from typing import Any, Dict, List

from genboq.errors import ResponseSchemaError
from genboq.models import BOQ_ITEM_FIELDS, PRICE_SOURCES, SOURCES, BoqItem, ValidationResult

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r'^```(?:json)?\s*', re.IGNORECASE)
_TRAILING_FENCE = re.compile(r'\s*```$')


def strip_code_fences(text: str) -> str:
    text = (text or '').strip()
    text = _LEADING_FENCE.sub('', text)
    return _TRAILING_FENCE.sub('', text)


def parse_structured_response(text: str) -> Any:
    """Strip ```json fences and parse. Raises ResponseSchemaError on anything but valid JSON."""
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ResponseSchemaError("Empty response from completion oracle", raw_response=text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseSchemaError(f"Response is not valid JSON: {e}", raw_response=text) from e


def _number(item: Dict[str, Any], key: str, index: int) -> float:
    value = item[key]
    if isinstance(value, bool):
        raise ResponseSchemaError(f"Item {index}: '{key}' must be a number, got {value!r}")
    if isinstance(value, str):
        try:
            value = float(value.replace(',', '').strip())
        except ValueError:
            raise ResponseSchemaError(f"Item {index}: '{key}' must be a number, got {item[key]!r}")
    if not isinstance(value, (int, float)) or math.isnan(value) or math.isinf(value):
        raise ResponseSchemaError(f"Item {index}: '{key}' must be a number, got {item[key]!r}")
    return value


def _text(item: Dict[str, Any], key: str, index: int) -> str:
    value = item[key]
    if isinstance(value, (dict, list)):
        raise ResponseSchemaError(f"Item {index}: '{key}' must be text")
    return str(value).strip()


def _enum(item: Dict[str, Any], key: str, allowed, index: int) -> str:
    value = str(item[key]).strip().lower()
    if value not in allowed:
        raise ResponseSchemaError(f"Item {index}: '{key}' must be one of {allowed}, got {item[key]!r}")
    return value


def coerce_boq_item(raw: Any, index: int = 0) -> BoqItem:
    """Validate one oracle item against the BoqItem contract. totalPrice is recomputed."""
    if not isinstance(raw, dict):
        raise ResponseSchemaError(f"Item {index} is not an object")

    missing = [f for f in BOQ_ITEM_FIELDS if raw.get(f) is None]
    if missing:
        raise ResponseSchemaError(f"Item {index} is missing required fields: {', '.join(missing)}")

    quantity = _number(raw, 'quantity', index)
    if quantity <= 0:
        raise ResponseSchemaError(f"Item {index}: quantity must be > 0, got {quantity}")
    unit_price = _number(raw, 'unitPrice', index)
    if unit_price < 0:
        raise ResponseSchemaError(f"Item {index}: unitPrice must be >= 0, got {unit_price}")
    _number(raw, 'totalPrice', index)

    margin = raw.get('margin')
    if margin is not None:
        margin = max(0.0, float(_number(raw, 'margin', index)))

    item = BoqItem(
        category=_text(raw, 'category', index),
        item_description=_text(raw, 'itemDescription', index),
        key_remarks=_text(raw, 'keyRemarks', index),
        brand=_text(raw, 'brand', index),
        model=_text(raw, 'model', index),
        quantity=quantity,
        unit_price=unit_price,
        source=_enum(raw, 'source', SOURCES, index),
        price_source=_enum(raw, 'priceSource', PRICE_SOURCES, index),
        margin=margin,
    )
    if item.total_price != round(float(raw['totalPrice']), 2):
        logger.debug(f"Item {index}: oracle total {raw['totalPrice']} replaced by {item.total_price}")
    return item


def parse_boq_items(text: str) -> List[BoqItem]:
    """Parse a generate/refine response: a JSON array of BoqItem objects."""
    data = parse_structured_response(text)
    if isinstance(data, dict) and isinstance(data.get('items'), list):
        data = data['items']
    if not isinstance(data, list):
        raise ResponseSchemaError("Expected a JSON array of BOQ items", raw_response=text)
    if not data:
        raise ResponseSchemaError("Oracle returned an empty BOQ", raw_response=text)
    return [coerce_boq_item(raw, index) for index, raw in enumerate(data)]


def _string_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ResponseSchemaError(f"Validation '{key}' must be a list")
    return [str(v) for v in value]


def parse_validation_response(text: str) -> ValidationResult:
    """Parse a validate response: a ValidationResult-shaped JSON object."""
    data = parse_structured_response(text)
    if not isinstance(data, dict):
        raise ResponseSchemaError("Expected a JSON object for the validation result", raw_response=text)
    for key in ('isValid', 'score'):
        if data.get(key) is None:
            raise ResponseSchemaError(f"Validation result is missing '{key}'", raw_response=text)
    if not isinstance(data['isValid'], bool):
        raise ResponseSchemaError("Validation 'isValid' must be a boolean", raw_response=text)

    score = _number(data, 'score', 0)
    return ValidationResult(
        is_valid=data['isValid'],
        warnings=_string_list(data, 'warnings'),
        suggestions=_string_list(data, 'suggestions'),
        missing_components=_string_list(data, 'missingComponents'),
        score=int(max(0, min(100, round(score)))),
        compliance_notes=_string_list(data, 'complianceNotes'),
    )
