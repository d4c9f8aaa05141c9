import logging
from typing import List, Optional

from gateway import FallbackGateway, GatewayResult
from schemas import Item, Party, same_id
from state import AppState

logger = logging.getLogger(__name__)


def _find(records, record_id):
    if record_id is None:
        return None
    return next((r for r in records if same_id(r.id, record_id)), None)


def _search(records, term: str):
    term = (term or "").strip().lower()
    return [r for r in records if term in r.name.lower()]


class Catalog:
    """Parties and items. Create and read only; neither has an edit or delete path."""

    def __init__(self, state: AppState, gateway: FallbackGateway):
        self.state = state
        self.gateway = gateway

    def load(self) -> bool:
        parties = self.gateway.list("parties")
        items = self.gateway.list("items")
        self.state.parties = list(parties.value)
        self.state.items = list(items.value)
        logger.info("Catalog loaded for user %s: %d parties, %d items",
                    self.state.user.id, len(self.state.parties), len(self.state.items))
        return parties.degraded or items.degraded

    # Parties

    def add_party(self, party: Party) -> GatewayResult[Party]:
        result = self.gateway.add("parties", party.model_copy(update={"id": None}))
        self.state.parties.append(result.value)
        return result

    def list_parties(self) -> List[Party]:
        return list(self.state.parties)

    def find_party(self, party_id) -> Optional[Party]:
        return _find(self.state.parties, party_id)

    def search_parties(self, term: str) -> List[Party]:
        return _search(self.state.parties, term)

    # Items

    def add_item(self, item: Item) -> GatewayResult[Item]:
        result = self.gateway.add("items", item.model_copy(update={"id": None}))
        self.state.items.append(result.value)
        return result

    def list_items(self) -> List[Item]:
        return list(self.state.items)

    def find_item(self, item_id) -> Optional[Item]:
        return _find(self.state.items, item_id)

    def search_items(self, term: str) -> List[Item]:
        return _search(self.state.items, term)
