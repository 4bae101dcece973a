# genboq/requirements_context.py
"""
Requirements summary helpers.

The validation call receives the room requirements as a flat
"key: value, key: value" string (the same text shown to the oracle).
These helpers build that string and read it back for the deterministic audit.
"""

import re
from typing import Any, Dict, Mapping

from genboq.room_profiles import CONSTRAINT_LABELS

_SUMMARY_PAIR = re.compile(r'(?:^|,\s)([A-Za-z_]\w*):\s(.*?)(?=,\s[A-Za-z_]\w*:\s|$)')


def summarize_requirements(requirements: Mapping[str, Any]) -> str:
    """'roomLength: 20, displayBrands: Samsung,LG' - list values are comma-joined without spaces."""
    parts = []
    for key, value in requirements.items():
        if isinstance(value, (list, tuple)):
            value = ','.join(str(v) for v in value)
        parts.append(f"{key}: {value}")
    return ', '.join(parts)


def parse_requirements_summary(summary: str) -> Dict[str, Any]:
    """
    Inverse of summarize_requirements. Values containing a comma but no space
    are read back as lists; everything else stays a string.
    """
    parsed: Dict[str, Any] = {}
    for key, value in _SUMMARY_PAIR.findall(summary or ''):
        value = value.strip()
        if ',' in value and ', ' not in value:
            parsed[key] = [v for v in value.split(',') if v]
        else:
            parsed[key] = value
    return parsed


def format_client_configuration(requirements: Mapping[str, Any]) -> str:
    """Non-empty answers as 'key: value' lines joined by '; ' for the generation prompt."""
    entries = []
    for key, value in requirements.items():
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = ', '.join(str(v) for v in value)
        elif value in (None, '', False):
            continue
        entries.append(f"{key}: {value}")
    return '; '.join(entries)


def installation_constraints(requirements: Mapping[str, Any]):
    """(label, value) pairs for the physical/installation answers that were given."""
    constraints = []
    for key, label in CONSTRAINT_LABELS.items():
        value = requirements.get(key)
        if value in (None, '', []):
            continue
        if isinstance(value, (list, tuple)):
            value = ', '.join(str(v) for v in value)
        constraints.append((label, str(value)))
    return constraints
