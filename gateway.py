import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, TypeVar

from errors import BackendError
from schemas import Entity

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class GatewayResult(Generic[T]):
    value: T
    source: str
    degraded: bool = False
    error: Optional[str] = None


class FallbackGateway:
    """
    Two-tier persistence: every call goes to the primary store first and, on BackendError,
    to the fallback store. The stores are never reconciled; a record written during an outage
    stays local-only. Results say which store answered so callers can report offline mode.
    """

    def __init__(self, primary, fallback):
        self.primary = primary
        self.fallback = fallback

    def _run(self, operation: str, call: Callable) -> GatewayResult:
        try:
            return GatewayResult(value=call(self.primary), source=self.primary.name)
        except BackendError as e:
            logger.warning("%s failed on %s store, using %s store: %s",
                           operation, self.primary.name, self.fallback.name, e)
            value = call(self.fallback)
            return GatewayResult(value=value, source=self.fallback.name, degraded=True, error=str(e))

    def list(self, kind: str) -> GatewayResult[List[Entity]]:
        return self._run(f"list {kind}", lambda store: store.list(kind))

    def add(self, kind: str, record: Entity) -> GatewayResult[Entity]:
        return self._run(f"add {kind}", lambda store: store.add(kind, record))

    def delete(self, kind: str, record_id) -> GatewayResult[None]:
        return self._run(f"delete {kind}", lambda store: store.delete(kind, record_id))

    def next_invoice_number(self) -> GatewayResult[int]:
        return self._run("next invoice number", lambda store: store.next_invoice_number())
