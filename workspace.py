"""
Per-user wiring of state, catalog, gateway and invoice lifecycle.

Every public method returns its result together with exactly one Notice for the user. Calls are
serialized per workspace because the API runs handlers on a thread pool.
"""

import logging
import threading
from typing import Dict, Optional, Tuple

from catalog import Catalog
from gateway import FallbackGateway, GatewayResult
from lifecycle import InvoiceLifecycle
from schemas import CurrentUser, Invoice, InvoiceDraft, Item, Letterhead, Notice, Party
from state import AppState
from stores import LocalStore, RemoteStore
import reports

logger = logging.getLogger(__name__)

OFFLINE_SUFFIX = " (offline mode: saved on this device only)"


class Workspace:
    def __init__(self, user: CurrentUser, remote, local, letterhead: Optional[Letterhead] = None):
        self.state = AppState(user=user)
        self.gateway = FallbackGateway(remote, local)
        self.catalog = Catalog(self.state, self.gateway)
        self.invoices = InvoiceLifecycle(self.state, self.catalog, self.gateway, letterhead=letterhead)
        self.lock = threading.RLock()

    @classmethod
    def open(cls, user: CurrentUser, database, local_dir, letterhead: Optional[Letterhead] = None) -> "Workspace":
        ws = cls(user, RemoteStore(database, user.id), LocalStore(local_dir, user.id), letterhead=letterhead)
        ws.load()
        return ws

    def load(self) -> Notice:
        with self.lock:
            degraded = self.catalog.load()
            degraded = self.invoices.load() or degraded
            self.state.offline = degraded
        if degraded:
            return Notice(level="warning", message=f"Welcome back, {self.state.user.name}! Working offline.")
        return Notice(level="success", message=f"Welcome back, {self.state.user.name}!")

    def _notice(self, result: GatewayResult, message: str) -> Notice:
        # caller holds self.lock
        self.state.offline = result.degraded
        if result.degraded:
            return Notice(level="warning", message=message + OFFLINE_SUFFIX)
        return Notice(level="success", message=message)

    # Catalog

    def add_party(self, party: Party) -> Tuple[Party, Notice]:
        with self.lock:
            result = self.catalog.add_party(party)
            return result.value, self._notice(result, "Party added successfully!")

    def add_item(self, item: Item) -> Tuple[Item, Notice]:
        with self.lock:
            result = self.catalog.add_item(item)
            return result.value, self._notice(result, "Item added successfully!")

    # Invoices

    def new_draft(self, mode: str = "auto") -> InvoiceDraft:
        with self.lock:
            return self.invoices.set_number_mode(self.invoices.create_draft(), mode)

    def save_invoice(self, draft: InvoiceDraft) -> Tuple[Invoice, Notice]:
        with self.lock:
            result = self.invoices.save(draft)
            return result.value, self._notice(result, f"Invoice #{result.value.invoice_number} created successfully!")

    def delete_invoice(self, invoice_id, confirmed: bool) -> Tuple[Invoice, Notice]:
        with self.lock:
            invoice, result = self.invoices.delete(invoice_id, confirm=lambda _prompt: confirmed)
            if result is None:
                return invoice, Notice(level="info", message=f"Invoice #{invoice.invoice_number} was not deleted")
            return invoice, self._notice(result, f"Invoice #{invoice.invoice_number} deleted successfully!")

    def render_invoice(self, invoice_id, share: bool = False) -> Tuple[str, bytes, Notice]:
        with self.lock:
            filename, content = self.invoices.render(invoice_id)
        if share:
            return filename, content, Notice(level="info", message="PDF downloaded for sharing!")
        return filename, content, Notice(level="success", message="PDF generated successfully!")

    # Read side

    def dashboard(self) -> dict:
        with self.lock:
            return reports.dashboard(self.state, recent=self.invoices.recent(5))

    def report(self, build) -> dict:
        with self.lock:
            return build(self.state)

    def invoice_list(self) -> list:
        with self.lock:
            return [
                {**reports.invoice_summary(self.state, inv), "invoice": inv}
                for inv in self.invoices.list_invoices()
            ]


class WorkspaceRegistry:
    """Open workspaces keyed by user id; a workspace is loaded on first use."""

    def __init__(self, database, local_dir, letterhead: Optional[Letterhead] = None):
        self.database = database
        self.local_dir = local_dir
        self.letterhead = letterhead
        self._open: Dict[str, Workspace] = {}
        self._lock = threading.Lock()

    def get(self, user: CurrentUser) -> Workspace:
        with self._lock:
            ws = self._open.get(user.id)
            if ws is None:
                logger.info("Opening workspace for user %s", user.id)
                ws = Workspace.open(user, self.database, self.local_dir, letterhead=self.letterhead)
                self._open[user.id] = ws
            return ws
