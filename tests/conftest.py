"""
conftest.py - Shared pytest fixtures for the GenBOQ test suite.

No network or Firebase fixtures are defined here. The completion oracle is
replaced by ``FakeOracle``, which returns scripted responses (or raises
scripted errors) and records every call it receives.
"""

import json

import pytest

from genboq.data_handler import CatalogIndex
from genboq.gemini_handler import CompletionOracle
from genboq.models import BoqItem


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class FakeOracle(CompletionOracle):
    """Returns scripted responses in order; an Exception instance is raised instead."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def complete(self, instruction, context=None):
        self.calls.append((instruction, context))
        if not self.responses:
            raise AssertionError("FakeOracle ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last_instruction(self):
        return self.calls[-1][0]

    @property
    def last_context(self):
        return self.calls[-1][1]


class RecordingActivityLogger:
    def __init__(self):
        self.entries = []

    def log(self, action, resource_type, details=None, user_email=None):
        self.entries.append((action, resource_type, dict(details or {})))


def make_item(description, brand, model, quantity=1, unit_price=1000.0, category='Audio System',
              source='web', price_source='estimated', margin=None):
    return BoqItem(
        category=category,
        item_description=description,
        key_remarks='Selected for coverage',
        brand=brand,
        model=model,
        quantity=quantity,
        unit_price=unit_price,
        source=source,
        price_source=price_source,
        margin=margin,
    )


def wire_item(description, brand, model, quantity=1, unit_price=1000.0, category='Audio System',
              source='web', price_source='estimated'):
    """One item as the oracle sends it (camelCase, totalPrice included)."""
    return {
        'category': category,
        'itemDescription': description,
        'keyRemarks': 'Selected for coverage',
        'brand': brand,
        'model': model,
        'quantity': quantity,
        'unitPrice': unit_price,
        'totalPrice': quantity * unit_price,
        'source': source,
        'priceSource': price_source,
    }


def oracle_json(items):
    return "```json\n" + json.dumps(items) + "\n```"


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------

CATALOG_ROWS = [
    {'brand': 'Samsung', 'model': 'QM65C', 'category': 'Display System',
     'description': 'Samsung 65in 4K commercial display', 'price': 1500},
    {'brand': 'LG', 'awmdb_id': '65UH5F', 'category': 'Display System',
     'description': 'LG 65in UHD signage display', 'price_inr': 120000},
    {'brand': 'Chief', 'model': 'LTM1U', 'category': 'Display Support System',
     'description': 'Chief large tilt wall mount', 'price': 300},
    {'brand': 'JBL', 'model': 'Control 26C', 'category': 'Audio - Speakers',
     'description': 'JBL 6.5in ceiling speaker', 'price': 200},
    {'brand': 'JBL', 'model': 'Control 24CT', 'category': 'Audio - Speakers',
     'description': 'JBL 4in ceiling speaker', 'price': 150},
    {'brand': 'Shure', 'model': 'MXA910', 'category': 'Audio - Microphones',
     'description': 'Shure ceiling array microphone', 'price': 3000},
    {'brand': 'QSC', 'model': 'Core Nano', 'category': 'Audio - DSP & Amplification',
     'description': 'QSC Core Nano DSP with AEC', 'price': 2500},
    {'brand': 'Crestron', 'model': 'TSW-1070', 'category': 'Control System',
     'description': 'Crestron 10in touch panel'},
    {'brand': 'Extron', 'model': 'DTP HDMI 4K 230', 'category': 'Cables & Connectors',
     'description': 'Extron HDBaseT extender pair', 'price': 800},
    # duplicate of the first record; the first one seen wins
    {'brand': 'samsung', 'model': 'qm65c', 'category': 'Display System',
     'description': 'Duplicate Samsung entry', 'price': 9999},
    # no brand: dropped
    {'brand': '', 'model': 'X1', 'category': 'Display System', 'description': 'Unbranded display'},
]


@pytest.fixture
def catalog():
    return CatalogIndex.from_dicts(CATALOG_ROWS)


@pytest.fixture
def activity_logger():
    return RecordingActivityLogger()


@pytest.fixture
def default_requirements():
    """Questionnaire answers that leave every room dimension at its default."""
    return {'requiredSystems': ['display', 'audio', 'connectivity_control', 'infrastructure']}


# ---------------------------------------------------------------------------
# A complete, valid conference-room BOQ (oracle wire format)
# ---------------------------------------------------------------------------

@pytest.fixture
def conference_room_wire_items():
    """Deliberately out of system-flow order."""
    return [
        wire_item('Installation, testing and commissioning', 'AllWave', 'SVC-INSTALL',
                  unit_price=50000, category='Installation & Services'),
        wire_item('JBL ceiling speaker', 'JBL', 'Control 26C', quantity=2, unit_price=15000),
        wire_item('HDBaseT extender pair (TX/RX)', 'Extron', 'DTP HDMI 4K 230',
                  unit_price=60000, category='Cables & Connectors'),
        wire_item('Shure boundary microphone', 'Shure', 'MX395', quantity=3, unit_price=20000),
        wire_item('Samsung 65in 4K commercial display', 'Samsung', 'QM65C', unit_price=110000,
                  category='Display System', source='database', price_source='database'),
        wire_item('QSC Core Nano DSP with AEC', 'QSC', 'Core Nano', unit_price=200000),
        wire_item('Chief wall mount for 65in display', 'Chief', 'LTM1U', unit_price=25000,
                  category='Display Support System'),
    ]
