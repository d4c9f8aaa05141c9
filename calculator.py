from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, List, Optional

from schemas import DEFAULT_GST_RATE, DraftLine, Item, LineItem

CENT = Decimal("0.01")


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    balance: Decimal
    paid: bool


def _d(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x or "0"))


def money(x) -> str:
    """Two-decimal display value. Only ever applied at presentation time."""
    return str(_d(x).quantize(CENT, rounding=ROUND_HALF_UP))


def effective_gst_rate(override, catalog_item: Optional[Item]) -> Decimal:
    if override is not None:
        return _d(override)
    if catalog_item is not None and catalog_item.gst_rate is not None:
        return _d(catalog_item.gst_rate)
    return DEFAULT_GST_RATE


def compute_line(row: DraftLine, catalog_item: Optional[Item]) -> Optional[LineItem]:
    """
    Snapshot one draft row into a LineItem.

    Returns None for an incomplete row (no item, or zero/absent quantity or rate); such rows are
    skipped rather than rejected. A row whose item has since been removed from the catalog still
    produces a line, with empty name and HSN snapshots.
    """
    rate = row.rate
    if rate is None and catalog_item is not None:
        rate = catalog_item.rate
    if row.item_id is None or _d(row.qty) <= 0 or _d(rate) <= 0:
        return None

    return LineItem(
        item_id=row.item_id,
        qty=_d(row.qty),
        rate=_d(rate),
        gst_rate=effective_gst_rate(row.gst_rate, catalog_item),
        hsn=(catalog_item.hsn or "") if catalog_item else "",
        name=catalog_item.name if catalog_item else "",
    )


def complete_lines(rows: Iterable[DraftLine], lookup: Callable[[object], Optional[Item]]) -> List[LineItem]:
    lines = []
    for row in rows:
        catalog_item = lookup(row.item_id) if row.item_id is not None else None
        line = compute_line(row, catalog_item)
        if line is not None:
            lines.append(line)
    return lines


def line_tax(line) -> Decimal:
    return _d(line.total) * _d(line.gst_rate) / 100


def compute_invoice_totals(lines, received=0) -> InvoiceTotals:
    # exact sums; rounding happens once, for display
    subtotal = sum((_d(line.qty) * _d(line.rate) for line in lines), Decimal("0"))
    tax = sum((_d(line.qty) * _d(line.rate) * _d(line.gst_rate) / 100 for line in lines), Decimal("0"))
    total = subtotal + tax
    balance = total - _d(received)
    return InvoiceTotals(subtotal=subtotal, tax=tax, total=total, balance=balance, paid=balance <= 0)
