# app.py - GenBOQ: AV bill-of-quantities generation, refinement and validation

import logging
from typing import Any, Dict, List

import pandas as pd
import streamlit as st

from genboq.activity_log import (
    FirestoreActivityLogger, LoggingActivityLogger, initialize_firebase, log_activity_safely,
)
from genboq.assistant import GenBoqAssistant, fetch_product_details
from genboq.boq_editor import add_item, delete_item, update_item
from genboq.boq_generator import BoqGenerator
from genboq.boq_refiner import BoqRefiner
from genboq.boq_validator import BoqValidator
from genboq.config import configure_logging, load_settings
from genboq.data_handler import load_catalog
from genboq.errors import (
    BoqGenerationError, ConfigurationError, DomainInvariantError, OperationInProgressError, StaleResultError,
)
from genboq.gemini_handler import setup_gemini
from genboq.models import BoqItem
from genboq.pricing import summarize_room
from genboq.request_guard import RoomOperationGuard
from genboq.requirements_context import summarize_requirements
from genboq.room_profiles import ALL_SYSTEMS, SUBCATEGORIES
from genboq.utils import currency_rate, default_rates, format_currency

configure_logging()
logger = logging.getLogger(__name__)

# Table column -> BoqItem field name accepted by update_item
EDITABLE_COLUMNS = {
    'Category': 'category',
    'Description': 'itemDescription',
    'Remarks': 'keyRemarks',
    'Brand': 'brand',
    'Model': 'model',
    'Qty': 'quantity',
    'Unit Price (INR)': 'unitPrice',
    'Margin %': 'margin',
}


# --- Cached resources ---

@st.cache_resource
def get_settings():
    try:
        secrets = dict(st.secrets)
    except FileNotFoundError:
        secrets = None
    return load_settings(secrets)


@st.cache_resource
def get_catalog(path: str, usd_to_inr_rate: float):
    return load_catalog(path, usd_to_inr_rate)


@st.cache_resource
def get_oracle(_settings):
    return setup_gemini(_settings)


@st.cache_resource
def get_activity_logger(backend: str):
    if backend == 'firestore':
        try:
            db = initialize_firebase(st.secrets["firebase_credentials"])
            return FirestoreActivityLogger(db)
        except Exception as e:
            logger.error(f"Firebase initialization failed, falling back to log-only activity: {e}")
    return LoggingActivityLogger()


# --- UI helpers ---

def show_success_message(message):
    st.success(f"✅ {message}")


def show_error_message(message):
    st.error(f"❌ {message}")


def init_session_state():
    defaults = {
        'rooms': {'Room 1': {'requirements': {}, 'boq': [], 'validation': None}},
        'active_room': 'Room 1',
        'guard': RoomOperationGuard(),
        'assistant_history': [],
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def active_room() -> Dict[str, Any]:
    return st.session_state.rooms[st.session_state.active_room]


def set_boq(room_name: str, boq: List[BoqItem]):
    """Any change to a room's BOQ invalidates results still in flight for it."""
    st.session_state.rooms[room_name]['boq'] = boq
    st.session_state.rooms[room_name]['validation'] = None
    st.session_state.guard.invalidate(room_name)


def run_guarded(room_name: str, operation: str, call, apply):
    try:
        st.session_state.guard.run(room_name, operation, call, apply)
        return True
    except OperationInProgressError as e:
        st.warning(f"⏳ {e}")
    except StaleResultError:
        st.info("The room changed while the request was running; the result was discarded.")
    except ConfigurationError as e:
        show_error_message(f"Configuration error: {e.message}")
    except BoqGenerationError as e:
        show_error_message(e.message)
    return False


# --- Questionnaire ---

def _brand_choices(catalog, subcategory: str) -> List[str]:
    spec = SUBCATEGORIES[subcategory]
    in_catalog = sorted({r.brand for r in catalog.filter_by_categories(spec['catalog_categories'])})
    return list(dict.fromkeys(spec['tier1'] + in_catalog))


def render_questionnaire(catalog) -> Dict[str, Any]:
    saved = active_room()['requirements']
    requirements: Dict[str, Any] = {}

    st.markdown("#### 📐 Room")
    col1, col2, col3 = st.columns(3)
    requirements['roomLength'] = col1.number_input("Length (ft)", min_value=1.0, value=float(saved.get('roomLength', 20.0)))
    requirements['roomWidth'] = col2.number_input("Width (ft)", min_value=1.0, value=float(saved.get('roomWidth', 15.0)))
    requirements['roomHeight'] = col3.number_input("Ceiling height (ft)", min_value=1.0, value=float(saved.get('roomHeight', 10.0)))
    col1, col2, col3 = st.columns(3)
    requirements['capacity'] = col1.number_input("Capacity (people)", min_value=1, value=int(saved.get('capacity', 10)))
    requirements['tableLength'] = col2.number_input("Table length (ft)", min_value=1.0, value=float(saved.get('tableLength', 12.0)))
    requirements['rackDistance'] = col3.number_input("Rack distance (ft)", min_value=1.0, value=float(saved.get('rackDistance', 30.0)))

    requirements['requiredSystems'] = st.multiselect(
        "Required systems", ALL_SYSTEMS, default=saved.get('requiredSystems', ALL_SYSTEMS))

    st.markdown("#### 🏷️ Brand preferences")
    brand_cols = st.columns(3)
    for position, (subcategory, spec) in enumerate(SUBCATEGORIES.items()):
        chosen = brand_cols[position % 3].multiselect(
            spec['label'], _brand_choices(catalog, subcategory), default=saved.get(spec['preference_key'], []),
            help="Selected brands are enforced. Leave empty for tier-1 recommendations.")
        if chosen:
            requirements[spec['preference_key']] = chosen

    with st.expander("🏗️ Installation constraints"):
        col1, col2 = st.columns(2)
        requirements['plenumRequirement'] = col1.selectbox(
            "Ceiling plenum", ['', 'plenum_required', 'not_required'], key='plenum')
        requirements['upsRequirement'] = col2.selectbox(
            "UPS", ['', 'none', 'rack_only', 'rack_and_displays'], key='ups')
        requirements['wallReinforcement'] = col1.selectbox("Wall reinforcement", ['', 'yes', 'no'], key='wall')
        requirements['acousticNeeds'] = col2.selectbox("Acoustics", ['', 'good', 'average', 'poor'], key='acoustics')
        requirements['ceilingConstruction'] = col1.text_input("Ceiling construction", key='ceiling')
        requirements['wallConstruction'] = col2.text_input("Wall construction", key='wall_construction')

    return {k: v for k, v in requirements.items() if v not in ('', None)}


# --- BOQ table ---

def boq_frame(boq: List[BoqItem], margin: float, rate: float) -> pd.DataFrame:
    summary = summarize_room(boq, margin, rate)
    rows = []
    for item, line in zip(boq, summary.lines):
        rows.append({
            'Category': item.category,
            'Description': item.item_description,
            'Remarks': item.key_remarks,
            'Brand': item.brand,
            'Model': item.model,
            'Qty': item.quantity,
            'Unit Price (INR)': item.unit_price,
            'Margin %': item.margin,
            'Final Unit': line.unit_price_final,
            'Line Total': line.line_total,
            'Source': item.source,
            'Price Source': item.price_source,
        })
    return pd.DataFrame(rows)


def apply_table_edits(room_name: str, original: pd.DataFrame, edited: pd.DataFrame):
    boq = st.session_state.rooms[room_name]['boq']
    changed = False
    for index in range(min(len(original), len(edited))):
        for column, field in EDITABLE_COLUMNS.items():
            before, after = original.at[index, column], edited.at[index, column]
            if pd.isna(before) and pd.isna(after):
                continue
            if before != after:
                value = None if pd.isna(after) else after
                try:
                    boq = update_item(boq, index, field, value)
                    changed = True
                except (DomainInvariantError, ValueError, TypeError) as e:
                    show_error_message(f"Row {index + 1}: {e}")
    if changed:
        set_boq(room_name, boq)
        st.rerun()


def render_boq(room_name: str, margin: float, currency: str, rate: float):
    room = st.session_state.rooms[room_name]
    boq = room['boq']
    if not boq:
        st.info("No BOQ yet. Fill in the questionnaire and generate one.")
        return

    original = boq_frame(boq, margin, rate)
    edited = st.data_editor(
        original, use_container_width=True, hide_index=True, key=f"editor_{room_name}",
        disabled=['Final Unit', 'Line Total', 'Source', 'Price Source'],
    )
    apply_table_edits(room_name, original, edited)

    col_add, col_delete, col_index = st.columns([1, 1, 2])
    if col_add.button("➕ Add item", use_container_width=True):
        set_boq(room_name, add_item(boq))
        st.rerun()
    row_to_delete = col_index.number_input("Row", min_value=1, max_value=len(boq), value=len(boq), step=1)
    if col_delete.button("🗑️ Delete row", use_container_width=True):
        set_boq(room_name, delete_item(boq, int(row_to_delete) - 1))
        st.rerun()

    summary = summarize_room(boq, margin, rate)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Hardware", format_currency(summary.hardware_subtotal, currency))
    col2.metric("Services (30%)", format_currency(summary.services_subtotal, currency))
    col3.metric("GST (18%)", format_currency(summary.total_gst, currency))
    col4.metric("Grand Total", format_currency(summary.grand_total, currency))


def render_validation(result):
    if result is None:
        return
    if result.is_valid:
        show_success_message(f"BOQ passed validation (score {result.score}/100)")
    else:
        show_error_message(f"BOQ needs attention (score {result.score}/100)")
    for warning in result.warnings:
        (st.error if warning.startswith("CRITICAL:") else st.warning)(warning)
    if result.missing_components:
        st.markdown("**Missing components:** " + ", ".join(result.missing_components))
    for suggestion in result.suggestions:
        st.info(suggestion)
    for note in result.compliance_notes:
        st.caption(f"📌 {note}")


def render_assistant(oracle):
    st.markdown("#### 💬 GenBOQ Assistant")
    assistant = GenBoqAssistant(oracle)
    assistant.history = list(st.session_state.assistant_history)

    for role, text in assistant.history:
        with st.chat_message('user' if role == 'user' else 'assistant'):
            st.markdown(text)

    message = st.chat_input("Ask about AV products or room design")
    if message:
        try:
            assistant.ask(message)
            st.session_state.assistant_history = assistant.history
            st.rerun()
        except BoqGenerationError as e:
            show_error_message(e.message)

    with st.expander("🔎 Product details"):
        product_name = st.text_input("Product (brand and model)", key="product_lookup")
        if st.button("Look up", disabled=not product_name):
            try:
                details = fetch_product_details(oracle, product_name)
                st.markdown(details.description)
                if details.image_url:
                    st.image(details.image_url, width=320)
            except BoqGenerationError as e:
                show_error_message(e.message)


def main():
    st.set_page_config(page_title="GenBOQ - AV BOQ Generator", page_icon="🚀", layout="wide")
    init_session_state()
    settings = get_settings()

    try:
        catalog = get_catalog(settings.catalog_path, settings.usd_to_inr_rate)
        oracle = get_oracle(settings)
    except (OSError, ValueError, ConfigurationError) as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        show_error_message(f"Startup failed: {e}")
        st.stop()

    activity_logger = get_activity_logger(settings.activity_log_backend)
    generator = BoqGenerator(catalog, oracle, activity_logger)
    refiner = BoqRefiner(catalog, oracle, activity_logger)
    validator = BoqValidator(oracle, activity_logger)

    # ============= SIDEBAR =============
    with st.sidebar:
        st.markdown("### 🏢 Rooms")
        room_names = list(st.session_state.rooms)
        st.session_state.active_room = st.selectbox(
            "Active room", room_names, index=room_names.index(st.session_state.active_room))
        new_room = st.text_input("New room name")
        if st.button("➕ Add room", disabled=not new_room or new_room in st.session_state.rooms):
            st.session_state.rooms[new_room] = {'requirements': {}, 'boq': [], 'validation': None}
            st.session_state.active_room = new_room
            st.rerun()

        st.markdown("### ⚙️ Financial Config")
        currencies = ['INR', 'USD']
        currency = st.selectbox("Currency", currencies, index=currencies.index(settings.default_currency)
                                if settings.default_currency in currencies else 0)
        margin = st.number_input("Margin (%)", min_value=0.0, value=settings.default_margin, step=1.0)
        st.caption(f"Catalog: {len(catalog)} products")

    room_name = st.session_state.active_room
    room = active_room()

    tab_boq, tab_assistant = st.tabs(["🛠️ Generate BOQ", "💬 Assistant"])

    with tab_boq:
        st.markdown(f"## {room_name}")
        requirements = render_questionnaire(catalog)

        col_generate, col_validate = st.columns(2)
        if col_generate.button("🚀 Generate BOQ", type="primary", use_container_width=True):
            room['requirements'] = requirements
            with st.spinner("Generating BOQ..."):
                if run_guarded(room_name, 'generate', lambda: generator.generate(requirements),
                               lambda boq: set_boq(room_name, boq)):
                    log_activity_safely(activity_logger, 'BOQ_GENERATED', 'BOQ',
                                        details={'room': room_name, 'items': len(room['boq'])})
                    show_success_message(f"Generated {len(room['boq'])} items")

        if col_validate.button("🔍 Validate BOQ", use_container_width=True, disabled=not room['boq']):
            summary = summarize_requirements(room['requirements'] or requirements)
            with st.spinner("Validating BOQ..."):
                run_guarded(room_name, 'validate', lambda: validator.validate(room['boq'], summary),
                            lambda result: room.update(validation=result))

        render_boq(room_name, margin, currency, currency_rate(currency, default_rates(settings.usd_to_inr_rate)))
        render_validation(room['validation'])

        if room['boq']:
            instruction = st.text_area("Refinement instruction",
                                       placeholder="e.g. Change the speakers to Bose", key=f"refine_{room_name}")
            if st.button("✨ Refine BOQ", disabled=not instruction.strip()):
                current = list(room['boq'])
                with st.spinner("Refining BOQ..."):
                    if run_guarded(room_name, 'refine', lambda: refiner.refine(current, instruction),
                                   lambda boq: set_boq(room_name, boq)):
                        show_success_message("BOQ refined")
                        st.rerun()

    with tab_assistant:
        render_assistant(oracle)


if __name__ == "__main__":
    main()
