"""
Invoice lifecycle: Draft -> Saved -> Deleted.

Saved invoices are immutable; there is no way back to Draft. The invoice counter follows the last
saved number (auto or hand-typed), so a manual number re-seeds the sequence, backwards included.
Invoice numbers are not checked for uniqueness.
"""

import datetime as dt
import logging
from typing import Callable, List, Optional, Tuple

from calculator import complete_lines, line_tax
from catalog import Catalog
from errors import NotFoundError, RenderError, ValidationError
from gateway import FallbackGateway, GatewayResult
from renderer import invoice_filename, render_invoice_pdf
from schemas import DraftLine, Invoice, InvoiceDraft, InvoiceView, Letterhead, ResolvedLine, same_id
from state import AppState
from stores import invoice_number_value
from words import to_words

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


class InvoiceLifecycle:
    def __init__(
        self,
        state: AppState,
        catalog: Catalog,
        gateway: FallbackGateway,
        letterhead: Optional[Letterhead] = None,
        renderer=render_invoice_pdf,
    ):
        self.state = state
        self.catalog = catalog
        self.gateway = gateway
        self.letterhead = letterhead or Letterhead()
        self.renderer = renderer

    def load(self) -> bool:
        invoices = self.gateway.list("invoices")
        counter = self.gateway.next_invoice_number()
        self.state.invoices = list(invoices.value)
        self.state.next_invoice_number = counter.value
        logger.info("Loaded %d invoices for user %s, next number %s",
                    len(self.state.invoices), self.state.user.id, self.state.next_invoice_number)
        return invoices.degraded or counter.degraded

    # Draft

    def create_draft(self) -> InvoiceDraft:
        return InvoiceDraft(
            number_mode="auto",
            invoice_number=str(self.state.next_invoice_number),
            date=dt.date.today(),
            payment_type="Credit",
            received=0,
            rows=[DraftLine()],
        )

    def set_number_mode(self, draft: InvoiceDraft, mode: str) -> InvoiceDraft:
        update = {"number_mode": mode}
        if mode == "auto":
            update["invoice_number"] = str(self.state.next_invoice_number)
        return draft.model_copy(update=update)

    def _submitted_number(self, draft: InvoiceDraft) -> str:
        if draft.number_mode == "auto":
            return str(self.state.next_invoice_number)
        return (draft.invoice_number or "").strip()

    def save(self, draft: InvoiceDraft) -> GatewayResult[Invoice]:
        number = self._submitted_number(draft)
        if draft.party_id is None or draft.date is None or not number:
            raise ValidationError("Please fill all required fields")
        try:
            next_number = int(number) + 1
        except ValueError:
            raise ValidationError(f"Invoice number must be a whole number, got {number!r}") from None

        lines = complete_lines(draft.rows, self.catalog.find_item)
        if not lines:
            raise ValidationError("Please add at least one item")

        invoice = Invoice(
            invoice_number=number,
            party_id=draft.party_id,
            date=draft.date,
            payment_type=draft.payment_type,
            po_number=draft.po_number,
            po_date=draft.po_date,
            e_way_bill=draft.e_way_bill,
            items=lines,
            received=draft.received,
        )
        result = self.gateway.add("invoices", invoice)
        self.state.next_invoice_number = next_number
        self.state.invoices.append(result.value)
        logger.info("Saved invoice #%s (%s store)", number, result.source)
        return result

    # Saved

    def find(self, invoice_id) -> Optional[Invoice]:
        return next((inv for inv in self.state.invoices if same_id(inv.id, invoice_id)), None)

    def get(self, invoice_id) -> Invoice:
        invoice = self.find(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found!")
        return invoice

    def list_invoices(self) -> List[Invoice]:
        return sorted(self.state.invoices, key=lambda inv: invoice_number_value(inv.invoice_number), reverse=True)

    def recent(self, limit: int = 5) -> List[Invoice]:
        epoch = dt.datetime.min.replace(tzinfo=dt.timezone.utc)
        return sorted(self.state.invoices, key=lambda inv: inv.created_at or epoch, reverse=True)[:limit]

    def delete(self, invoice_id, confirm: Confirm) -> Tuple[Invoice, Optional[GatewayResult[None]]]:
        """
        Remove an invoice after the user confirms. Declining returns (invoice, None) and changes nothing.
        The in-memory copy is dropped only once the gateway call has returned.
        """
        invoice = self.get(invoice_id)
        if not confirm(f"Are you sure you want to delete Invoice #{invoice.invoice_number}?"):
            return invoice, None
        result = self.gateway.delete("invoices", invoice.id)
        self.state.invoices = [inv for inv in self.state.invoices if not same_id(inv.id, invoice.id)]
        logger.info("Deleted invoice #%s (%s store)", invoice.invoice_number, result.source)
        return invoice, result

    # Rendering

    def resolve(self, invoice_id) -> InvoiceView:
        invoice = self.get(invoice_id)
        lines = []
        for line in invoice.items:
            item = self.catalog.find_item(line.item_id)
            tax = line_tax(line)
            lines.append(ResolvedLine(
                name=line.name or (item.name if item else "") or "N/A",
                hsn=line.hsn or (item.hsn if item else "") or "N/A",
                qty=line.qty,
                unit=(item.unit if item else None) or "Nos",
                rate=line.rate,
                gst_rate=line.gst_rate,
                tax=tax,
                amount=line.total + tax,
            ))
        return InvoiceView(
            invoice=invoice,
            party=self.catalog.find_party(invoice.party_id),
            lines=lines,
            amount_in_words=to_words(int(invoice.total)),
        )

    def render(self, invoice_id) -> Tuple[str, bytes]:
        view = self.resolve(invoice_id)
        try:
            content = self.renderer(view, self.letterhead)
        except Exception as e:
            logger.exception("PDF generation failed for invoice #%s", view.invoice.invoice_number)
            raise RenderError("Error generating PDF. Please try again.") from e
        return invoice_filename(view.invoice), content
