# process_data.py
# Offline catalog normalizer: canonical brands, conservative category remap,
# price flags and de-duplication. Run once before the app loads the catalog:
#
#     python process_data.py productDatabase.raw.json productDatabase.json

import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from genboq.utils import parse_number

# --- CANONICAL NAMES ---
BRAND_MAP = {
    'samsung electronics': 'Samsung', 'samsung display': 'Samsung', 'samsung inc': 'Samsung', 'samsung': 'Samsung',
    'lg electronics': 'LG', 'lg display': 'LG', 'lg': 'LG',
    'sony professional': 'Sony', 'sony corporation': 'Sony', 'sony': 'Sony',
    'crestron electronics': 'Crestron', 'crestron': 'Crestron',
    'extron electronics': 'Extron', 'extron': 'Extron',
    'qsc audio': 'QSC', 'qsc systems': 'QSC', 'q-sys': 'QSC', 'qsc': 'QSC',
    'shure inc': 'Shure', 'shure': 'Shure',
    'sennheiser electronic': 'Sennheiser', 'sennheiser': 'Sennheiser',
    'biamp systems': 'Biamp', 'biamp': 'Biamp',
    'kramer electronics': 'Kramer', 'kramer': 'Kramer',
    'polycom': 'Poly', 'poly': 'Poly',
    'logitech': 'Logitech', 'logitech business': 'Logitech',
    'yealink network': 'Yealink', 'yealink': 'Yealink',
    'cisco systems': 'Cisco', 'cisco': 'Cisco',
    'barco': 'Barco', 'barco nv': 'Barco',
}

CATEGORY_MAP = {
    'Display': 'Display', 'Displays': 'Display', 'Commercial Display': 'Display',
    'Interactive Display': 'Display', 'Video Wall': 'Display',
    'Audio - Microphones': 'Microphone', 'Microphones': 'Microphone', 'Microphone': 'Microphone',
    'Audio - Speakers': 'Speaker', 'Speakers': 'Speaker', 'Speaker': 'Speaker',
    'Audio - DSP & Amplification': 'DSP & Amplification', 'DSP': 'DSP & Amplification',
    'Amplifier': 'DSP & Amplification', 'Amplifiers': 'DSP & Amplification',
    'Video Conferencing & Cameras': 'Video Conferencing', 'Video Conferencing': 'Video Conferencing',
    'Conferencing': 'Video Conferencing',
    'Mounts & Racks': 'Mounts & Racks', 'Mount': 'Mounts & Racks', 'Rack': 'Mounts & Racks',
    'Control': 'Control', 'Control System': 'Control',
    'Connectivity': 'Connectivity', 'Cables': 'Connectivity',
}

# --- HELPER FUNCTIONS ---

def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and np.isnan(value):
        return ""
    return str(value).strip()


def normalize_brand(raw: Any) -> Optional[str]:
    brand = _text(raw)
    if not brand:
        return None
    mapped = BRAND_MAP.get(brand.lower())
    if mapped:
        return mapped
    # only the first letter: 'audio-technica' -> 'Audio-technica', 'AMX' stays 'AMX'
    return brand[0].upper() + brand[1:]


def normalize_category(raw: Any) -> Tuple[str, Optional[str]]:
    """
    Returns (category, substring_candidate). The alias table is applied on an
    exact match only; a substring hit is reported as a candidate but not applied.
    """
    category = _text(raw)
    if category in CATEGORY_MAP:
        return CATEGORY_MAP[category], None
    lowered = category.lower()
    for alias, canonical in CATEGORY_MAP.items():
        if lowered and alias.lower() in lowered:
            return category, canonical
    return category, None


def has_price(value: Any) -> bool:
    return bool(parse_number(value))


def dedupe_key(brand: str, model: Any, awmdb_id: Any, description: Any) -> str:
    identity = _text(model) or _text(awmdb_id) or _text(description)
    return f"{brand}-{identity}".lower()


def _column(df: pd.DataFrame, name: str) -> pd.Series:
    if name in df.columns:
        return df[name]
    return pd.Series([None] * len(df), index=df.index, dtype=object)


@dataclass
class NormalizationReport:
    records_in: int = 0
    dropped_no_brand: int = 0
    brands_remapped: int = 0
    categories_remapped: int = 0
    price_estimate_required: int = 0
    duplicates_removed: int = 0
    records_out: int = 0
    substring_candidates: List[Tuple[str, str]] = field(default_factory=list)


def normalize_frame(df: pd.DataFrame) -> Tuple[pd.DataFrame, NormalizationReport]:
    report = NormalizationReport(records_in=len(df))
    df = df.copy()

    raw_brands = _column(df, 'brand')
    df['brand'] = raw_brands.map(normalize_brand)
    has_brand = df['brand'].notna()
    report.dropped_no_brand = int((~has_brand).sum())
    report.brands_remapped = int((raw_brands[has_brand].map(_text) != df.loc[has_brand, 'brand']).sum())
    df = df[has_brand].copy()

    if 'category' in df.columns:
        results = df['category'].map(normalize_category)
        mapped = results.map(lambda r: r[0])
        report.categories_remapped = int((df['category'].map(_text) != mapped).sum())
        df['category'] = mapped
        report.substring_candidates = sorted({
            (category, candidate) for category, candidate in results if candidate
        })

    priced = _column(df, 'price').map(has_price) | _column(df, 'price_inr').map(has_price)
    df['price_estimate_required'] = ~priced
    df['price_source'] = np.where(priced, 'database', 'estimated')
    report.price_estimate_required = int((~priced).sum())

    keys = [
        dedupe_key(brand, model, awmdb_id, description)
        for brand, model, awmdb_id, description in zip(
            df['brand'], _column(df, 'model'), _column(df, 'awmdb_id'), _column(df, 'itemDescription'))
    ]
    duplicated = pd.Series(keys, index=df.index).duplicated(keep='first')
    report.duplicates_removed = int(duplicated.sum())
    df = df[~duplicated].reset_index(drop=True)

    report.records_out = len(df)
    return df, report


def normalize_records(records: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], NormalizationReport]:
    """List-of-dicts entry point. Fields a record never had are not added back."""
    frame, report = normalize_frame(pd.DataFrame.from_records(records))
    cleaned = []
    for row in frame.to_dict(orient='records'):
        cleaned.append({k: v for k, v in row.items() if not (isinstance(v, float) and np.isnan(v)) and v is not None})
    return cleaned, report


def print_report(report: NormalizationReport, output_path: str):
    print(f"\n{'='*60}\nNormalization Summary:\n{'='*60}")
    print(f"Records read: {report.records_in}")
    print(f"Dropped (no brand): {report.dropped_no_brand}")
    print(f"Brands remapped: {report.brands_remapped}")
    print(f"Categories remapped (exact match): {report.categories_remapped}")
    print(f"Flagged price_estimate_required: {report.price_estimate_required}")
    print(f"Duplicates removed: {report.duplicates_removed}")
    if report.substring_candidates:
        print(f"\nCategory substring matches (not applied):")
        for category, candidate in report.substring_candidates:
            print(f"  - {category:<35}: would map to {candidate}")
    print(f"\n✅ Created Catalog: '{output_path}' with {report.records_out} products")
    print(f"\n{'='*60}\nCatalog normalization complete!\n{'='*60}\n")


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print("Usage: python process_data.py INPUT_JSON OUTPUT_JSON")
        return 2
    input_path, output_path = args

    try:
        raw = pd.read_json(input_path, orient='records', dtype=False)
    except (OSError, ValueError) as e:
        print(f"Error: could not read '{input_path}': {e}")
        return 1

    print(f"Starting catalog normalization...\nFound {len(raw)} records in '{input_path}'.")
    cleaned, report = normalize_records(raw.to_dict(orient='records'))
    pd.DataFrame.from_records(cleaned).to_json(output_path, orient='records', indent=2, force_ascii=False)
    print_report(report, output_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
