from dataclasses import dataclass, field
from typing import List

from schemas import CurrentUser, Invoice, Item, Party
from stores import FIRST_INVOICE_NUMBER


@dataclass
class AppState:
    """In-memory collections for one signed-in user. Owned by that user's Workspace."""
    user: CurrentUser
    parties: List[Party] = field(default_factory=list)
    items: List[Item] = field(default_factory=list)
    invoices: List[Invoice] = field(default_factory=list)
    next_invoice_number: int = FIRST_INVOICE_NUMBER
    offline: bool = False
