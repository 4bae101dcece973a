# genboq/pricing.py
# Pure pricing arithmetic shared by the on-screen table and any export.
# Each value is rounded half-up to 2 decimals exactly once.

from dataclasses import dataclass
from typing import Iterable, List, Optional

from genboq.models import BoqItem
from genboq.utils import round2

GST_RATE = 0.18
SERVICES_RATE = 0.30


@dataclass(frozen=True)
class PricedLine:
    unit_price_final: float
    line_total: float


@dataclass(frozen=True)
class RoomPricingSummary:
    lines: List[PricedLine]
    hardware_subtotal: float
    hardware_gst: float
    services_subtotal: float
    services_gst: float
    total_without_gst: float
    total_gst: float
    grand_total: float


def effective_margin(item: BoqItem, global_margin: Optional[float] = 0.0) -> float:
    margin = item.margin if item.margin is not None else (global_margin or 0.0)
    return max(0.0, margin)


def compute_totals(item: BoqItem, global_margin: Optional[float] = 0.0, currency_rate: float = 1.0) -> PricedLine:
    """Final unit price (rate and margin applied) and line total for one BOQ item."""
    margin = effective_margin(item, global_margin)
    unit_price_final = round2(item.unit_price * currency_rate * (1 + margin / 100))
    return PricedLine(unit_price_final=unit_price_final, line_total=round2(unit_price_final * item.quantity))


def summarize_room(items: Iterable[BoqItem], global_margin: Optional[float] = 0.0,
                   currency_rate: float = 1.0) -> RoomPricingSummary:
    """Hardware subtotal, services at 30% of hardware, 18% GST on both."""
    lines = [compute_totals(item, global_margin, currency_rate) for item in items]

    hardware_subtotal = round2(sum(line.line_total for line in lines))
    hardware_gst = round2(sum(round2(line.line_total * GST_RATE) for line in lines))
    services_subtotal = round2(hardware_subtotal * SERVICES_RATE)
    services_gst = round2(services_subtotal * GST_RATE)
    total_without_gst = round2(hardware_subtotal + services_subtotal)
    total_gst = round2(hardware_gst + services_gst)

    return RoomPricingSummary(
        lines=lines,
        hardware_subtotal=hardware_subtotal,
        hardware_gst=hardware_gst,
        services_subtotal=services_subtotal,
        services_gst=services_gst,
        total_without_gst=total_without_gst,
        total_gst=total_gst,
        grand_total=round2(total_without_gst + total_gst),
    )
