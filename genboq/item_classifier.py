# genboq/item_classifier.py
# Pattern-based component classification for BOQ lines. A line is classified
# from its description + model text first; the catalog label is only used when
# the text says nothing recognisable.

import re
from typing import Iterable, List, Optional

from genboq.models import BoqItem
from genboq.room_profiles import CATEGORY_STAGE, CLASS_STAGE, FLOW_STAGES

# component class -> brand sub-category it is locked under
CLASS_SUBCATEGORY = {
    'display': 'display',
    'mount': 'mount',
    'microphone': 'microphone',
    'dsp_amplifier': 'dsp_amplifier',
    'speaker': 'speaker',
    'vc': 'vc',
    'connectivity': 'connectivity',
    'extender': 'connectivity',
    'control': 'control',
    'rack': 'rack',
}

_NOT_BUILT_IN = r'(?<!built-in )(?<!onboard )(?<!integrated )(?<!internal )'

SERVICES_PATTERNS = [
    r'^(installation|programming|training|configuration)\b', r'\bservices\b', r'\bcommissioning\b',
    r'\blabou?r\b', r'project management', r'extended warranty', r'support contract',
]
EXTENDER_PATTERNS = [
    r'extender', r'hdbaset', r'\bhdbt\b', r'\btx\s*/\s*rx\b', r'fib(er|re)\s+optic',
]
CABLE_PATTERNS = [
    r'\bcables?\b', r'patch cord', r'\bconnectors?\b', r'wall ?plate', r'table ?box', r'cubby',
    r'\badapters?\b', r'\bdongle\b', r'cable management', r'raceway',
]
ACOUSTICS_PATTERNS = [
    r'acoustic (panel|treatment|tile|baffle|cloud)', r'bass trap', r'\bdiffuser', r'\babsorber',
    r'sound ?proofing',
]
VC_PATTERNS = [
    r'video ?bar', r'meeting ?bar', r'\brally\b', r'\bcodec\b', r'room kit', r'\bptz\b',
    r'\bcameras?\b', r'conference ?cam', r'teams rooms?', r'zoom rooms?', r'video conferenc',
    r'\bmtr\b',
]
DSP_PATTERNS = [
    _NOT_BUILT_IN + r'\bdsp\b', _NOT_BUILT_IN + r'\bamplifiers?\b',
    r'digital signal processor', r'audio processor', r'\btesira', r'q-sys core', r'\bcore (nano|8|110f)',
    r'\bmixer\b', r'\bp300\b',
]
MICROPHONE_PATTERNS = [
    r'(?<!for )(?<!\d )\bmic(rophone)?s?\b(?!\s*/?\s*(line|inputs?|level|pre|channels?))', r'\bmxa\d', r'ceiling array',
    r'\bboundary\b', r'gooseneck', r'\btcc ?2\b',
]
SPEAKER_PATTERNS = [
    r'\bspeakers?\b', r'loudspeaker', r'subwoofer', r'sound ?bar', r'\bpendant\b',
]
RACK_PATTERNS = [
    r'\bracks?\b', r'\benclosure\b', r'\bpdu\b', r'power distribution', r'\bups\b',
]
MOUNT_PATTERNS = [
    r'\bmount', r'\bbrackets?\b', r'\btrolley\b', r'\bcart\b', r'(floor|display) stand',
]
CONTROL_PATTERNS = [
    r'control processor', r'touch ?panel', r'touch ?screen controller', r'room scheduler',
    r'scheduling panel', r'\bkeypad\b', r'control system', r'\bcontroller\b',
]
CONNECTIVITY_PATTERNS = [
    r'\bswitcher\b', r'matrix', r'\bscaler\b', r'wireless presentation', r'clickshare',
    r'presentation (system|switcher)', r'\bhdmi\b', r'usb-c',
]
DISPLAY_PATTERNS = [
    r'\bdisplays?\b', r'\bmonitor\b', r'\btv\b', r'video ?wall', r'led wall', r'projector',
    r'projection screen', r'\blcd\b', r'\boled\b', r'interactive (panel|flat panel|board)',
]

AEC_PATTERNS = [
    r'\baec\b', r'echo cancel', r'acoustic echo', r'\btesira', r'q-sys core', r'\bcore (nano|8|110f)',
    r'intellimix', r'\bp300\b',
]
CEILING_PATTERNS = [r'ceiling', r'pendant', r'ceiling array', r'\barray microphone\b']
FIBER_PATTERNS = [r'fib(er|re)', r'optical']

# order matters: earlier classes win
_CLASS_ORDER = [
    ('services', SERVICES_PATTERNS),
    ('extender', EXTENDER_PATTERNS),
    ('cable', CABLE_PATTERNS),
    ('acoustics', ACOUSTICS_PATTERNS),
    ('vc', VC_PATTERNS),
    ('microphone', MICROPHONE_PATTERNS),
    ('dsp_amplifier', DSP_PATTERNS),
    ('speaker', SPEAKER_PATTERNS),
    ('rack', RACK_PATTERNS),
    ('mount', MOUNT_PATTERNS),
    ('control', CONTROL_PATTERNS),
    ('connectivity', CONNECTIVITY_PATTERNS),
    ('display', DISPLAY_PATTERNS),
]

_CATEGORY_FALLBACK = [
    ('services', [r'services']),
    ('acoustics', [r'acoustic']),
    ('vc', [r'\bvc\b', r'video conferencing']),
    ('microphone', [r'microphone']),
    ('speaker', [r'speaker']),
    ('dsp_amplifier', [r'dsp', r'amplif']),
    ('rack', [r'rack']),
    ('mount', [r'support', r'mount']),
    ('control', [r'control', r'scheduler']),
    ('cable', [r'cable', r'connector']),
    ('display', [r'display', r'hiperwall']),
]


def _item_text(item: BoqItem) -> str:
    return f"{item.item_description} {item.model}".lower()


def matches_any(patterns: Iterable[str], text: str) -> bool:
    return any(re.search(pattern, text, re.IGNORECASE) for pattern in patterns)


def classify_item(item: BoqItem) -> str:
    """Component class for a BOQ line, or 'other' when nothing matches."""
    text = _item_text(item)
    for component_class, patterns in _CLASS_ORDER:
        if matches_any(patterns, text):
            return component_class

    category = (item.category or '').lower()
    for component_class, patterns in _CATEGORY_FALLBACK:
        if matches_any(patterns, category):
            return component_class
    return 'other'


def subcategory_of(item: BoqItem) -> Optional[str]:
    """Brand sub-category an item is checked against, if any."""
    return CLASS_SUBCATEGORY.get(classify_item(item))


def is_ceiling_microphone(item: BoqItem) -> bool:
    return classify_item(item) == 'microphone' and matches_any(CEILING_PATTERNS, _item_text(item))


def is_table_microphone(item: BoqItem) -> bool:
    return classify_item(item) == 'microphone' and not matches_any(CEILING_PATTERNS, _item_text(item))


def is_ceiling_speaker(item: BoqItem) -> bool:
    return classify_item(item) == 'speaker' and matches_any(CEILING_PATTERNS, _item_text(item))


def is_aec_processor(item: BoqItem) -> bool:
    return classify_item(item) == 'dsp_amplifier' and matches_any(AEC_PATTERNS, _item_text(item))


def is_fiber_extender(item: BoqItem) -> bool:
    return classify_item(item) == 'extender' and matches_any(FIBER_PATTERNS, _item_text(item))


def quantity_of(items: Iterable[BoqItem], component_class: str) -> float:
    return sum(i.quantity for i in items if classify_item(i) == component_class)


def flow_stage(item: BoqItem) -> str:
    component_class = classify_item(item)
    if component_class == 'cable':
        return 'connectivity'
    stage = CLASS_STAGE.get(component_class)
    if stage:
        return stage
    return CATEGORY_STAGE.get(item.category, 'accessories')


def order_by_system_flow(items: Iterable[BoqItem]) -> List[BoqItem]:
    """Stable sort into visual -> conferencing -> audio -> ... -> accessories."""
    rank = {stage: position for position, stage in enumerate(FLOW_STAGES)}
    return sorted(items, key=lambda item: rank[flow_stage(item)])
