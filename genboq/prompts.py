# genboq/prompts.py
# Rendering of generation/refinement/validation directives into oracle instructions.
# Only this module knows the wording; the engines hand it value objects.

import json
from typing import Iterable

from genboq.av_designer import select_cable_solution
from genboq.models import BoqItem, GenerationDirective, RefinementDirective, SourcingDirective
from genboq.room_profiles import CABLE_RUN_RULES, FLOW_STAGES

GENERATION_TEMPERATURE = 0.1
REFINEMENT_TEMPERATURE = 0.2
VALIDATION_TEMPERATURE = 0.1

CATALOG_ATTACHMENT_PREFIX = "Custom Product Database (Filtered for Relevance): "

FLOW_STAGE_DETAIL = {
    'visual': "Visual Systems: Display(s) -> Mount for each display -> Power/Video cables",
    'conferencing': "Conferencing: Codec/Bar -> Camera -> Camera Mount -> VC Licenses",
    'audio': "Audio Systems: Microphones -> DSP -> Amplifiers -> Speakers -> Speaker Cables",
    'connectivity': "Connectivity & Distribution: Switchers -> Extenders (TX/RX) -> Wireless Presentation -> Wall Plates -> Patch Cables",
    'infrastructure': "Infrastructure: Rack -> PDU/Power Conditioner -> UPS -> Network Switch -> Rack Accessories",
    'control': "Control & Environment: Control Processor -> Touch Panel/Keypad -> Lighting/Shade Control",
    'acoustics': "Acoustic Treatment: Wall Panels -> Ceiling Clouds -> Bass Traps",
    'accessories': "Accessories & Services: Labeling, Documentation, Testing/Commissioning, Spares, Training",
}

OUTPUT_FORMAT = """**OUTPUT FORMAT:**
Return ONLY a JSON array of objects with these exact fields:
- category: string (must match one of the allowed categories)
- itemDescription: string (technical description including brand, model, key specs)
- keyRemarks: string (top 3 reasons for selection, AVIXA compliance notes)
- brand: string (MUST match the brand lock table)
- model: string (specific model number)
- quantity: number (> 0, from the formulas above)
- unitPrice: number (realistic MSRP in INR)
- totalPrice: number (quantity x unitPrice, will be recalculated)
- source: 'database' | 'web'
- priceSource: 'database' | 'estimated'"""


def _directive_line(directive: SourcingDirective) -> str:
    if directive.has_catalog_hits:
        return (f"- {directive.brand} {directive.label}: database has {len(directive.catalog_hits)} product(s). "
                f"USE THESE FIRST (source='database'); database price is authoritative; "
                f"if the database price is missing keep the item and set priceSource='estimated'.")
    if directive.must_use_brand:
        return (f"- {directive.brand} {directive.label}: database has NONE. Brand lock overrides catalog "
                f"absence: you MUST still produce a {directive.brand} item from your own knowledge "
                f"(source='web', priceSource='estimated').")
    return (f"- {directive.brand} {directive.label}: database has NONE. Preferred brand; "
            f"generate from your own knowledge (source='web', priceSource='estimated').")


def render_brand_table(preferences) -> str:
    lines = []
    for pref in preferences:
        brands = ', '.join(pref.brands)
        if pref.locked:
            lines.append(f"* **{pref.label}:** {brands} (LOCKED - use ONLY these brands)")
        elif pref.origin == 'audio_fallback':
            lines.append(f"* **{pref.label}:** {brands} (preferred audio brands - guidance)")
        else:
            lines.append(f"* **{pref.label}:** Use Tier 1 defaults: {brands}")
    return '\n'.join(lines)


def render_cable_rules() -> str:
    lines = []
    lower = 0
    for limit, _, description in CABLE_RUN_RULES:
        if limit is None:
            lines.append(f"  * {lower}ft+: {description} required")
        else:
            lines.append(f"  * {lower}-{limit}ft: {description}")
            lower = limit
    return '\n'.join(lines)


def render_ordering(ordering: Iterable[str] = FLOW_STAGES) -> str:
    return '\n'.join(f"{n}. {FLOW_STAGE_DETAIL[stage]}" for n, stage in enumerate(ordering, start=1))


def render_generation_instruction(directive: GenerationDirective, client_configuration: str = '') -> str:
    m = directive.metrics
    sourcing = '\n'.join(_directive_line(d) for d in directive.sourcing) or "- No brand-specific database checks."
    constraints = '\n'.join(f"- {label}: {value}" for label, value in directive.constraints) or "- None specified"
    ptz = "YES - PTZ camera with minimum 12x optical zoom required" if m.ptz_camera_required else "NO"

    return f"""You are a Senior AV Solutions Architect (CTS-D Certified). Generate a production-ready,
AVIXA-compliant Bill of Quantities (BOQ) for one meeting room.

**CLIENT CONFIGURATION:**
{client_configuration or 'Not provided'}

**CALCULATED ROOM METRICS:**
- Room: {m.length}ft x {m.width}ft x {m.height}ft ({m.area} sq ft, {m.volume} cu ft)
- Table length: {m.table_length}ft, capacity: {m.capacity} people, rack distance: {m.rack_distance}ft
- Total cable run estimate: {m.cable_run_estimate:.1f}ft (service loops and vertical runs included)

**DATABASE AVAILABILITY (brand preferences):**
{sourcing}

**MANDATORY BRAND COMPLIANCE (ZERO TOLERANCE):**
{render_brand_table(directive.brand_preferences)}
A LOCKED brand must be used for every item of that sub-category even when the database has strong alternatives.
Never switch brands. If several locked brands are listed, choose the best technical fit among them.

**REQUIRED QUANTITIES (use these exact numbers):**
- Ceiling microphones (if ceiling mics are used): {m.ceiling_mic_count}
- Table microphones (if table mics are used): {m.table_mic_count}
- Ceiling speakers: {m.ceiling_speaker_count} (maximum spacing {m.max_speaker_spacing:g}ft)
- Displays and mounts: 1:1 - every display needs exactly one mount

**SIGNAL CHAIN COMPLETENESS:**
- Display: source -> cable/extender -> display, plus a mount per display
- Audio: when microphones and speakers are both present, microphone -> DSP with AEC -> amplifier -> speakers
- Video conferencing: camera + codec/compute + microphones + speakers
- Camera horizontal field of view must cover {m.camera_fov_width:g}ft; PTZ required: {ptz}

**DISPLAY CABLE DISTANCE RULES:**
{render_cable_rules()}
- Total display run: {m.display_total_run:g}ft -> {directive.cable_solution}

**INSTALLATION CONSTRAINTS:**
{constraints}

**SCOPE LIMIT:**
Generate items ONLY for these categories: {', '.join(directive.category_scope)}.

**STRICT OUTPUT ORDERING (SYSTEM FLOW):**
{render_ordering(directive.ordering)}

{OUTPUT_FORMAT}
"""


def _boq_json(items: Iterable[BoqItem]) -> str:
    return json.dumps([i.to_dict() for i in items], indent=2)


def render_refinement_instruction(directive: RefinementDirective) -> str:
    locks = render_brand_table(directive.locked_preferences) or "* No brand locks apply."
    sourcing = '\n'.join(_directive_line(d) for d in directive.sourcing) or "- No brand-specific database checks."
    if directive.requested_brand:
        requested = f"The user asked for {directive.requested_brand}. Use it for: {', '.join(directive.touched_subcategories) or 'the items named'}."
    else:
        requested = "The user did not name a brand."

    return f"""You are refining an existing AV Bill of Quantities.

**User Request (overrides all previous logic):** "{directive.instruction}"
{requested}

**CURRENT BOQ (JSON):**
{_boq_json(directive.current_boq)}

**BRAND LOCKS STILL IN FORCE:**
{locks}
Sub-categories the user did not mention keep their current brands and items.

**DATABASE AVAILABILITY:**
{sourcing}

**RULES:**
1. Execute the user request exactly, even when it conflicts with earlier brand defaults.
2. Check the Custom Product Database first for any added or swapped item.
3. Keep signal chains complete: every display keeps one mount; microphones + speakers keep a DSP with AEC.
4. Keep display cable solutions valid for the run lengths.
5. Categories must stay within: {', '.join(directive.category_scope)}.
6. Give keyRemarks for every new or modified item.

**STRICT OUTPUT ORDERING (SYSTEM FLOW):**
{render_ordering(directive.ordering)}

Return the COMPLETE updated JSON array: every retained item re-emitted plus additions/modifications.
Items not re-emitted are treated as removed.

{OUTPUT_FORMAT}
"""


def render_validation_instruction(items: Iterable[BoqItem], requirements_summary: str) -> str:
    return f"""You are an expert AV system design auditor (CTS-D, AVIXA Certified). Audit this Bill of Quantities.

User Requirements: "{requirements_summary}"

Current BOQ (JSON):
{_boq_json(items)}

**AUDIT CHECKLIST:**
1. Brand compliance: any item whose brand differs from the requested brand for its category is a CRITICAL warning.
2. Signal flow: display chain (extender if > 50ft), audio chain (DSP with AEC when mics and speakers exist), VC chain, control chain.
3. Mounting: every display needs exactly one mount; mount type must suit the wall construction.
4. Acoustic coverage and viewing distance for the room size.
5. Code compliance: plenum cabling, power/UPS, fire-rated penetrations.
6. Missing infrastructure accessories: cable management, labeling, commissioning.

Prefix critical findings with "CRITICAL:".

Return ONLY a JSON object:
{{"isValid": boolean, "warnings": [string], "suggestions": [string], "missingComponents": [string], "score": number 0-100, "complianceNotes": [string]}}
"""


ASSISTANT_SYSTEM_INSTRUCTION = (
    "You are GenBOQ Assistant, a professional AV product guide. Answer questions about AV "
    "equipment, room design and AVIXA practice concisely. When recommending products, name "
    "brand and model and explain why they suit the room."
)


def render_product_details_prompt(product_name: str) -> str:
    return (
        f"Provide a concise technical description (3-5 sentences) of the AV product "
        f"\"{product_name}\": what it is, key specifications and typical use. "
        f"If you know an official product image URL, add a final line in the form "
        f"IMAGE_URL: <url>. Otherwise omit that line."
    )


def cable_solution_text(run_length_ft: float) -> str:
    _, description = select_cable_solution(run_length_ft)
    return description
