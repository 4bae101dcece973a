# genboq/room_profiles.py
# Static lookup tables: requirement systems -> catalog labels, brand sub-categories,
# tier-1 defaults and the system-flow order a BOQ is presented in.

# Abstract requirement system -> concrete catalog labels (as they appear in the data).
CATEGORY_MAP = {
    'display': ["Display System", "Hiperwall System"],
    'video_conferencing': ["VC system", "VC System"],
    'audio': ["Audio System"],
    'connectivity_control': ["Cables & Connectors", "Cables and Connectors", "Control System", "Room Scheduler"],
    'infrastructure': [
        "Display support system", "Display Support System", "Display Supoort System",
        "Display support System", "AV Rack System", "AV Rack system",
    ],
    'acoustics': ["Acoustic Treatment"],
}

ALL_SYSTEMS = list(CATEGORY_MAP.keys())

ALWAYS_INCLUDED_CATEGORIES = ["Accessories & Services", "Installation & Services"]

# Brand sub-categories. 'catalog_categories' are the labels searched when checking
# brand availability: the raw vendor label first, then the cleaned label written
# by process_data.py, then the system-level labels used by the category map.
SUBCATEGORIES = {
    'display': {
        'label': 'Displays',
        'preference_key': 'displayBrands',
        'catalog_categories': ['Display', 'Display System', 'Hiperwall System'],
        'tier1': ['Samsung', 'LG', 'Sony'],
    },
    'mount': {
        'label': 'Mounts',
        'preference_key': 'mountBrands',
        'catalog_categories': ['Mounts & Racks', 'Display support system', 'Display Support System'],
        'tier1': ['Chief', 'Peerless-AV', 'B-Tech'],
    },
    'microphone': {
        'label': 'Microphones',
        'preference_key': 'microphoneBrands',
        'catalog_categories': ['Audio - Microphones', 'Microphone'],
        'tier1': ['Shure', 'Sennheiser', 'Audio-Technica'],
        'audio_fallback': True,
    },
    'dsp_amplifier': {
        'label': 'DSP & Amplifiers',
        'preference_key': 'dspAmplifierBrands',
        'catalog_categories': ['Audio - DSP & Amplification', 'DSP & Amplification'],
        'tier1': ['QSC', 'Biamp', 'BSS'],
        'audio_fallback': True,
    },
    'speaker': {
        'label': 'Speakers',
        'preference_key': 'speakerBrands',
        'catalog_categories': ['Audio - Speakers', 'Speaker'],
        'tier1': ['QSC', 'JBL', 'Biamp'],
        'audio_fallback': True,
    },
    'vc': {
        'label': 'Video Conferencing',
        'preference_key': 'vcBrands',
        'catalog_categories': ['Video Conferencing & Cameras', 'Video Conferencing', 'VC system', 'VC System'],
        'tier1': ['Yealink', 'Poly', 'Logitech'],
    },
    'connectivity': {
        'label': 'Connectivity',
        'preference_key': 'connectivityBrands',
        'catalog_categories': ['Connectivity', 'Cables & Connectors', 'Cables and Connectors'],
        'tier1': ['Crestron', 'Extron', 'Kramer'],
    },
    'control': {
        'label': 'Control',
        'preference_key': 'controlBrands',
        'catalog_categories': ['Control', 'Control System', 'Room Scheduler'],
        'tier1': ['Crestron', 'Extron', 'QSC'],
    },
    'rack': {
        'label': 'Racks',
        'preference_key': 'rackBrands',
        'catalog_categories': ['Mounts & Racks', 'AV Rack System', 'AV Rack system'],
        'tier1': ['Valrack', 'Middle Atlantic', 'Netrack'],
    },
}

AUDIO_FALLBACK_KEY = 'audioBrands'

# Brands granted the larger per-group cap in the catalog excerpt.
TIER1_BRANDS = sorted({brand for spec in SUBCATEGORIES.values() for brand in spec['tier1']})

# System-flow order of a finished BOQ.
FLOW_STAGES = [
    'visual', 'conferencing', 'audio', 'connectivity',
    'infrastructure', 'control', 'acoustics', 'accessories',
]

# Component class (see item_classifier) -> flow stage.
CLASS_STAGE = {
    'display': 'visual',
    'mount': 'visual',
    'vc': 'conferencing',
    'microphone': 'audio',
    'dsp_amplifier': 'audio',
    'speaker': 'audio',
    'connectivity': 'connectivity',
    'extender': 'connectivity',
    'rack': 'infrastructure',
    'control': 'control',
    'acoustics': 'acoustics',
    'services': 'accessories',
}

# Catalog label -> flow stage, used when the description says nothing useful.
CATEGORY_STAGE = {
    'Display System': 'visual', 'Hiperwall System': 'visual', 'Display': 'visual',
    'VC system': 'conferencing', 'VC System': 'conferencing', 'Video Conferencing': 'conferencing',
    'Video Conferencing & Cameras': 'conferencing',
    'Audio System': 'audio', 'Microphone': 'audio', 'Speaker': 'audio', 'DSP & Amplification': 'audio',
    'Cables & Connectors': 'connectivity', 'Cables and Connectors': 'connectivity', 'Connectivity': 'connectivity',
    'Display support system': 'infrastructure', 'Display Support System': 'infrastructure',
    'Display Supoort System': 'infrastructure', 'Display support System': 'infrastructure',
    'AV Rack System': 'infrastructure', 'AV Rack system': 'infrastructure', 'Mounts & Racks': 'infrastructure',
    'Control System': 'control', 'Room Scheduler': 'control', 'Control': 'control',
    'Acoustic Treatment': 'acoustics',
    'Accessories & Services': 'accessories', 'Installation & Services': 'accessories',
}

# Distance-based display cable selection (feet, inclusive upper bounds).
CABLE_RUN_RULES = [
    (25, 'passive', 'Passive HDMI cable'),
    (50, 'active', 'Active/premium HDMI cable'),
    (150, 'extender', 'HDBaseT extender pair (TX/RX) over CAT6A'),
    (None, 'fiber', 'Fiber optic extender pair'),
]

EXTENDER_REQUIRED_FT = 50
FIBER_REQUIRED_FT = 150

# Physical/installation constraints reported back to the oracle as client configuration.
CONSTRAINT_LABELS = {
    'plenumRequirement': 'Plenum-rated cabling',
    'upsRequirement': 'UPS / power conditioning',
    'wallConstruction': 'Wall construction',
    'wallReinforcement': 'Wall reinforcement',
    'ceilingConstruction': 'Ceiling construction',
    'floorType': 'Floor type',
    'acousticNeeds': 'Acoustic condition',
    'acousticTreatmentType': 'Acoustic treatment type',
    'naturalLightLevel': 'Natural light',
    'lightingControl': 'Lighting control',
    'shadeControl': 'Shade control',
}

# Keywords in a refinement instruction that touch each sub-category.
SUBCATEGORY_KEYWORDS = {
    'display': ['display', 'displays', 'screen', 'screens', 'tv', 'monitor', 'video wall', 'projector'],
    'mount': ['mount', 'mounts', 'bracket', 'brackets'],
    'microphone': ['mic', 'mics', 'microphone', 'microphones'],
    'dsp_amplifier': ['dsp', 'amplifier', 'amplifiers', 'amp', 'amps', 'processor'],
    'speaker': ['speaker', 'speakers', 'loudspeaker', 'loudspeakers'],
    'vc': ['vc', 'camera', 'cameras', 'codec', 'video bar', 'video conferencing', 'conferencing'],
    'connectivity': ['cable', 'cables', 'connectivity', 'switcher', 'extender', 'hdmi'],
    'control': ['control', 'controller', 'touch panel', 'scheduler'],
    'rack': ['rack', 'racks'],
}

# Umbrella words that touch several sub-categories at once.
GROUP_KEYWORDS = {
    'audio': ['microphone', 'dsp_amplifier', 'speaker'],
    'video': ['display', 'vc'],
    'infrastructure': ['mount', 'rack'],
}
