# genboq/data_handler.py

import json
import logging
from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from genboq.models import ProductRecord
from genboq.room_profiles import TIER1_BRANDS
from genboq.utils import USD_TO_INR_FALLBACK, to_base_currency

logger = logging.getLogger(__name__)

DEFAULT_GROUP_LIMIT = 20
TIER1_GROUP_LIMIT = 30

_COLUMNS = ['brand', 'model', 'category', 'description', 'price', 'currency']


def _clean_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, float) and pd.isna(value):
        return ''
    return str(value).strip()


def normalize_catalog_frame(df: pd.DataFrame) -> Tuple[List[ProductRecord], List[str]]:
    """
    Turn a raw catalog frame (vendor field names vary) into ProductRecords.
    Returns the records plus a list of human-readable data issues.
    """
    data_issues = []
    df = df.copy()

    # ========== COLUMN NORMALIZATION ==========
    if 'brand' not in df.columns:
        df['brand'] = ''
        data_issues.append("Created default 'brand' column")
    if 'category' not in df.columns:
        df['category'] = ''
        data_issues.append("Created default 'category' column")
    if 'description' not in df.columns:
        if 'itemDescription' in df.columns:
            df['description'] = df['itemDescription']
        else:
            df['description'] = ''
    if 'model' not in df.columns:
        df['model'] = df['awmdb_id'] if 'awmdb_id' in df.columns else None
    elif 'awmdb_id' in df.columns:
        df['model'] = df['model'].where(df['model'].map(_clean_text) != '', df['awmdb_id'])
    for col in ('price', 'price_inr'):
        if col not in df.columns:
            df[col] = None

    # ========== DATA TYPE COERCION ==========
    price_usd = pd.to_numeric(df['price'], errors='coerce')
    price_inr = pd.to_numeric(df['price_inr'], errors='coerce')
    has_usd = price_usd.notna() & (price_usd > 0)
    has_inr = price_inr.notna() & (price_inr > 0)

    records = []
    missing_brand = 0
    for position, row in enumerate(df.itertuples(index=False)):
        brand = _clean_text(row.brand)
        if not brand:
            missing_brand += 1
            continue
        if has_inr.iloc[position]:
            price, currency = float(price_inr.iloc[position]), 'INR'
        elif has_usd.iloc[position]:
            price, currency = float(price_usd.iloc[position]), 'USD'
        else:
            price, currency = None, 'USD'
        records.append(ProductRecord(
            brand=brand,
            model=_clean_text(row.model) or None,
            category=_clean_text(row.category),
            description=_clean_text(row.description),
            price=price,
            currency=currency,
        ))

    if missing_brand:
        data_issues.append(f"Dropped {missing_brand} records without a brand.")
    unpriced = sum(1 for r in records if r.price is None)
    if unpriced:
        data_issues.append(f"Found {unpriced} products without a price (will be marked estimated).")
    return records, data_issues


def load_catalog(path: str, usd_to_inr_rate: float = USD_TO_INR_FALLBACK) -> 'CatalogIndex':
    """Load the product catalog JSON array and build an index over it."""
    df = pd.read_json(path, orient='records', dtype=False)
    records, data_issues = normalize_catalog_frame(df)
    for issue in data_issues:
        logger.warning(f"Catalog data issue: {issue}")
    index = CatalogIndex(records, usd_to_inr_rate=usd_to_inr_rate)
    logger.info(f"Loaded catalog '{path}': {len(index)} products, {len(index.categories())} categories")
    return index


class CatalogIndex:
    """
    Read-only index over the product catalog.

    Category filtering is exact and case-sensitive (labels are stored as the
    vendor data spells them); brand lookups are case-insensitive. Duplicate
    (brand, model-or-description) keys collapse to the first record seen.
    """

    def __init__(self, records: Iterable[ProductRecord], tier1_brands: Sequence[str] = TIER1_BRANDS,
                 usd_to_inr_rate: float = USD_TO_INR_FALLBACK):
        unique: List[ProductRecord] = []
        seen = set()
        for record in records:
            if not record.brand or record.dedupe_key in seen:
                continue
            seen.add(record.dedupe_key)
            unique.append(record)

        self._records: Tuple[ProductRecord, ...] = tuple(unique)
        self._df = pd.DataFrame([asdict(r) for r in unique], columns=_COLUMNS)
        self._df['brand_key'] = self._df['brand'].astype(str).str.lower()
        self._df['model_key'] = self._df['model'].fillna('').astype(str).str.strip().str.lower()
        self._tier1 = {b.lower() for b in tier1_brands}
        self.usd_to_inr_rate = usd_to_inr_rate

    @classmethod
    def from_dicts(cls, rows: Iterable[Dict[str, Any]],
                   usd_to_inr_rate: float = USD_TO_INR_FALLBACK) -> 'CatalogIndex':
        records, _ = normalize_catalog_frame(pd.DataFrame(list(rows)))
        return cls(records, usd_to_inr_rate=usd_to_inr_rate)

    def __len__(self) -> int:
        return len(self._records)

    def _take(self, mask) -> List[ProductRecord]:
        return [self._records[i] for i in self._df.index[mask.to_numpy(dtype=bool)]]

    def categories(self) -> List[str]:
        return list(dict.fromkeys(self._df['category']))

    def known_brands(self) -> List[str]:
        return list(dict.fromkeys(self._df['brand']))

    def filter_by_categories(self, labels: Iterable[str]) -> List[ProductRecord]:
        return self._take(self._df['category'].isin(list(labels)))

    def search(self, brand: Optional[str] = None, category: Optional[str] = None) -> List[ProductRecord]:
        """Brand matches case-insensitively, category exactly. None matches anything."""
        mask = pd.Series(True, index=self._df.index)
        if brand:
            mask &= self._df['brand_key'] == brand.strip().lower()
        if category:
            mask &= self._df['category'] == category
        return self._take(mask)

    def search_any(self, brand: str, categories: Iterable[str]) -> List[ProductRecord]:
        mask = (self._df['brand_key'] == brand.strip().lower()) & self._df['category'].isin(list(categories))
        return self._take(mask)

    def find_record(self, brand: str, model: str) -> Optional[ProductRecord]:
        """Exact (case-insensitive) brand + model lookup."""
        model_key = (model or '').strip().lower()
        if not brand or not model_key:
            return None
        mask = (self._df['brand_key'] == brand.strip().lower()) & (self._df['model_key'] == model_key)
        hits = self._take(mask)
        return hits[0] if hits else None

    def base_price(self, record: ProductRecord) -> Optional[float]:
        """Catalog price in INR, or None when the record has no price."""
        if record.price is None:
            return None
        return to_base_currency(record.price, record.currency, self.usd_to_inr_rate)

    def is_tier1(self, brand: str) -> bool:
        return brand.lower() in self._tier1

    def build_excerpt(self, labels: Iterable[str], limit_per_group: int = DEFAULT_GROUP_LIMIT,
                      tier1_limit: int = TIER1_GROUP_LIMIT) -> List[ProductRecord]:
        """
        Records for the given labels, grouped by (category, brand) in discovery
        order and capped per group: the first N seen, no ranking.
        """
        subset = self._df[self._df['category'].isin(list(labels))]
        if subset.empty:
            return []

        groups = subset.groupby(['category', 'brand'], sort=False)
        rank = groups.cumcount()
        caps = subset['brand_key'].map(lambda b: tier1_limit if self.is_tier1(b) else limit_per_group)
        group_order = groups.ngroup()

        kept = subset.assign(_rank=rank, _group=group_order)[rank < caps]
        kept = kept.sort_values(['_group', '_rank'], kind='stable')
        return [self._records[i] for i in kept.index]

    def excerpt_json(self, labels: Iterable[str], limit_per_group: int = DEFAULT_GROUP_LIMIT) -> str:
        excerpt = self.build_excerpt(labels, limit_per_group=limit_per_group)
        return json.dumps([r.to_excerpt_dict() for r in excerpt])
