"""Dashboard figures and the three reports, computed from the in-memory state."""

from decimal import Decimal
from typing import Optional

from calculator import money
from schemas import same_id
from state import AppState


def _party_name(state: AppState, party_id) -> str:
    party = next((p for p in state.parties if same_id(p.id, party_id)), None)
    return party.name if party else "Unknown Party"


def party_outstanding(state: AppState, party_id) -> Decimal:
    return sum(
        (inv.balance for inv in state.invoices if same_id(inv.party_id, party_id) and not inv.paid),
        Decimal("0"),
    )


def invoice_summary(state: AppState, invoice) -> dict:
    return {
        "id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "party_name": _party_name(state, invoice.party_id),
        "date": invoice.date.isoformat(),
        "total": money(invoice.total),
        "balance": money(invoice.balance),
        "status": "PAID" if invoice.paid else "PENDING",
    }


def dashboard(state: AppState, recent: Optional[list] = None) -> dict:
    total_sales = sum((inv.total for inv in state.invoices), Decimal("0"))
    total_outstanding = sum((inv.balance for inv in state.invoices if not inv.paid), Decimal("0"))
    return {
        "total_sales": money(total_sales),
        "total_outstanding": money(total_outstanding),
        "total_items": len(state.items),
        "total_parties": len(state.parties),
        "recent_invoices": [invoice_summary(state, inv) for inv in (recent or [])],
        "offline": state.offline,
    }


def sales_report(state: AppState) -> dict:
    total_sales = sum((inv.total for inv in state.invoices), Decimal("0"))
    count = len(state.invoices)
    average = total_sales / count if count else Decimal("0")
    return {
        "total_sales": money(total_sales),
        "total_invoices": count,
        "average_invoice": money(average),
    }


def party_report(state: AppState) -> dict:
    rows = []
    for party in state.parties:
        outstanding = party_outstanding(state, party.id)
        if outstanding > 0:
            rows.append({"party_id": party.id, "name": party.name, "outstanding": money(outstanding)})
    return {"parties": rows, "has_outstanding": bool(rows)}


def item_report(state: AppState) -> dict:
    return {
        "items": [
            {"item_id": item.id, "name": item.name, "stock": item.stock, "unit": item.unit, "rate": money(item.rate)}
            for item in state.items
        ]
    }
