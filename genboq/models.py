# genboq/models.py
"""
Domain types shared by the generation, refinement, validation and pricing engines.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from genboq.utils import round2

SOURCES = ('database', 'web')
PRICE_SOURCES = ('database', 'estimated')

BOQ_ITEM_FIELDS = (
    'category', 'itemDescription', 'keyRemarks', 'brand', 'model',
    'quantity', 'unitPrice', 'totalPrice', 'source', 'priceSource',
)


@dataclass(frozen=True)
class ProductRecord:
    """One catalog entry after normalization."""
    brand: str
    model: Optional[str]
    category: str
    description: str = ""
    price: Optional[float] = None
    currency: str = "USD"

    @property
    def dedupe_key(self) -> str:
        return f"{self.brand}-{self.model or self.description}".lower()

    def to_excerpt_dict(self) -> Dict[str, Any]:
        return {
            'brand': self.brand,
            'model': self.model or 'N/A',
            'description': self.description,
            'category': self.category,
            'price': self.price,
            'currency': self.currency,
        }


@dataclass(frozen=True)
class BoqItem:
    """
    One BOQ line. total_price is derived, never passed in, so every
    construction (including dataclasses.replace) recomputes it.
    """
    category: str
    item_description: str
    key_remarks: str
    brand: str
    model: str
    quantity: float
    unit_price: float
    source: str = 'web'
    price_source: str = 'estimated'
    margin: Optional[float] = None
    total_price: float = field(init=False, default=0.0)

    def __post_init__(self):
        object.__setattr__(self, 'total_price', round2(self.quantity * self.unit_price))

    def with_changes(self, **changes) -> 'BoqItem':
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'category': self.category,
            'itemDescription': self.item_description,
            'keyRemarks': self.key_remarks,
            'brand': self.brand,
            'model': self.model,
            'quantity': self.quantity,
            'unitPrice': self.unit_price,
            'totalPrice': self.total_price,
            'source': self.source,
            'priceSource': self.price_source,
        }
        if self.margin is not None:
            data['margin'] = self.margin
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BoqItem':
        """Build from an already-validated wire dict. totalPrice is ignored."""
        return cls(
            category=data['category'],
            item_description=data['itemDescription'],
            key_remarks=data['keyRemarks'],
            brand=data['brand'],
            model=data['model'],
            quantity=data['quantity'],
            unit_price=data['unitPrice'],
            source=data['source'],
            price_source=data['priceSource'],
            margin=data.get('margin'),
        )


Boq = List[BoqItem]


@dataclass
class ValidationResult:
    is_valid: bool
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    missing_components: List[str] = field(default_factory=list)
    score: int = 0
    compliance_notes: List[str] = field(default_factory=list)

    @property
    def critical_warnings(self) -> List[str]:
        return [w for w in self.warnings if w.startswith("CRITICAL:")]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isValid': self.is_valid,
            'warnings': list(self.warnings),
            'suggestions': list(self.suggestions),
            'missingComponents': list(self.missing_components),
            'score': self.score,
            'complianceNotes': list(self.compliance_notes),
        }


@dataclass(frozen=True)
class BrandPreference:
    """Brand guidance for one sub-category; locked only when the client asked for it."""
    subcategory: str
    label: str
    brands: Tuple[str, ...]
    locked: bool
    origin: str  # explicit | audio_fallback | tier1


@dataclass(frozen=True)
class SourcingDirective:
    """Database-first or generate-from-brand decision for one (sub-category, brand) pair."""
    category: str
    brand: str
    catalog_hits: Tuple[ProductRecord, ...]
    must_use_brand: bool
    label: str = ""
    catalog_categories: Tuple[str, ...] = ()
    fallback: str = 'generate_from_brand'

    @property
    def has_catalog_hits(self) -> bool:
        return bool(self.catalog_hits)

    @property
    def expected_source(self) -> str:
        return 'database' if self.catalog_hits else 'web'


@dataclass(frozen=True)
class GenerationDirective:
    """Everything the generation instruction says, before it is rendered to text."""
    category_scope: Tuple[str, ...]
    brand_preferences: Tuple[BrandPreference, ...]
    sourcing: Tuple[SourcingDirective, ...]
    metrics: Any
    cable_solution: str
    constraints: Tuple[Tuple[str, str], ...]
    ordering: Tuple[str, ...]
    catalog_excerpt: str


@dataclass(frozen=True)
class RefinementDirective:
    instruction: str
    current_boq: Tuple[BoqItem, ...]
    touched_subcategories: Tuple[str, ...]
    requested_brand: Optional[str]
    brand_preferences: Tuple[BrandPreference, ...]
    sourcing: Tuple[SourcingDirective, ...]
    category_scope: Tuple[str, ...]
    ordering: Tuple[str, ...]
    catalog_excerpt: str

    @property
    def locked_preferences(self) -> Tuple[BrandPreference, ...]:
        return tuple(p for p in self.brand_preferences if p.locked)
