"""
The two persistence backends and the record adapters between them.

RemoteStore  MongoDB, snake_case documents stamped with owner_id, invoice items kept as a JSON string.
LocalStore   one JSON snapshot per user, camelCase records, rewritten in full on every mutation.

Both return canonical schema models, so nothing above this module cares where a record came from.
"""

import datetime as dt
import json
import logging
import os
import time
from decimal import Decimal
from pathlib import Path
from typing import List

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import ValidationError as SchemaError
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from errors import BackendError
from schemas import Entity, Invoice, Item, Party, same_id

logger = logging.getLogger(__name__)

COLLECTIONS = {"parties": Party, "items": Item, "invoices": Invoice}
REMOTE_COLLECTIONS = {"parties": "party", "items": "item", "invoices": "invoice"}

FIRST_INVOICE_NUMBER = 1001
NON_NUMERIC_INVOICE_NUMBER = 1000


# ---------- adapters ----------

def normalize(kind: str, raw: dict) -> Entity:
    """Accept a record in either schema and return the canonical model."""
    data = dict(raw)
    if "_id" in data:
        data["id"] = str(data.pop("_id"))
    return COLLECTIONS[kind].model_validate(data)


def normalize_all(kind: str, raws, source: str) -> List[Entity]:
    out = []
    for raw in raws:
        try:
            out.append(normalize(kind, raw))
        except SchemaError as exc:
            logger.warning("Skipping unreadable %s record from %s store: %s", kind, source, exc)
    return out


def _bson_value(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dt.date) and not isinstance(value, dt.datetime):
        return value.isoformat()
    return value


def to_remote(record: Entity) -> dict:
    doc = {k: _bson_value(v) for k, v in record.model_dump(exclude={"id"}).items()}
    if isinstance(record, Invoice):
        doc["items"] = json.dumps([line.model_dump(mode="json") for line in record.items])
    return doc


def to_local(record: Entity) -> dict:
    return record.model_dump(mode="json", by_alias=True)


def invoice_number_value(number) -> int:
    try:
        return int(str(number).strip())
    except (TypeError, ValueError):
        return NON_NUMERIC_INVOICE_NUMBER


def next_number_after(numbers) -> int:
    values = [invoice_number_value(n) for n in numbers]
    if not values:
        return FIRST_INVOICE_NUMBER
    return max(values) + 1


# ---------- remote ----------

class RemoteStore:
    name = "remote"

    def __init__(self, database, owner_id: str):
        self.db = database
        self.owner_id = str(owner_id)

    def _collection(self, kind: str):
        if self.db is None:
            raise BackendError("Remote store not configured")
        return self.db[REMOTE_COLLECTIONS[kind]]

    def list(self, kind: str) -> List[Entity]:
        coll = self._collection(kind)
        try:
            docs = list(coll.find({"owner_id": self.owner_id}).sort("created_at", DESCENDING))
        except PyMongoError as e:
            raise BackendError(f"Listing {kind} failed: {e}") from e
        return normalize_all(kind, docs, self.name)

    def add(self, kind: str, record: Entity) -> Entity:
        coll = self._collection(kind)
        now = dt.datetime.now(dt.timezone.utc)
        created_at = record.created_at or now
        doc = to_remote(record)
        doc.update({"owner_id": self.owner_id, "created_at": created_at, "updated_at": now})
        try:
            result = coll.insert_one(doc)
        except PyMongoError as e:
            raise BackendError(f"Saving {kind} failed: {e}") from e
        return record.model_copy(update={"id": str(result.inserted_id), "created_at": created_at})

    def delete(self, kind: str, record_id) -> None:
        try:
            _id = ObjectId(str(record_id))
        except InvalidId as e:
            raise BackendError(f"Not a remote id: {record_id}") from e
        coll = self._collection(kind)
        try:
            res = coll.delete_one({"_id": _id, "owner_id": self.owner_id})
        except PyMongoError as e:
            raise BackendError(f"Deleting {kind} failed: {e}") from e
        if res.deleted_count == 0:
            logger.info("Remote %s %s was already gone", kind, record_id)

    def next_invoice_number(self) -> int:
        coll = self._collection("invoices")
        pipeline = [
            {"$match": {"owner_id": self.owner_id}},
            {"$group": {
                "_id": None,
                "max_number": {"$max": {"$convert": {
                    "input": "$invoice_number",
                    "to": "long",
                    "onError": NON_NUMERIC_INVOICE_NUMBER,
                    "onNull": NON_NUMERIC_INVOICE_NUMBER,
                }}},
            }},
        ]
        try:
            res = list(coll.aggregate(pipeline))
        except PyMongoError as e:
            raise BackendError(f"Reading invoice numbers failed: {e}") from e
        if not res or res[0].get("max_number") is None:
            return FIRST_INVOICE_NUMBER
        return int(res[0]["max_number"]) + 1


# ---------- local ----------

class LocalStore:
    name = "local"

    def __init__(self, directory, owner_id):
        self.owner_id = str(owner_id)
        self.path = Path(directory) / f"ivoice_db_{self.owner_id}.json"
        self._snapshot = self._read()
        self._last_id = max(
            (r.get("id") for kind in COLLECTIONS for r in self._snapshot[kind] if isinstance(r.get("id"), int)),
            default=0,
        )

    def _read(self) -> dict:
        snapshot = {}
        if self.path.exists():
            try:
                snapshot = json.loads(self.path.read_text(encoding="utf-8") or "{}")
            except (OSError, ValueError) as e:
                raise BackendError(f"Local store unreadable at {self.path}: {e}") from e
            logger.info("Loaded local snapshot %s", self.path)
        for kind in COLLECTIONS:
            snapshot.setdefault(kind, [])
        # older snapshots call the counter nextInvoiceId
        snapshot.setdefault("nextInvoiceNumber", snapshot.pop("nextInvoiceId", FIRST_INVOICE_NUMBER))
        return snapshot

    def _write(self) -> None:
        self._snapshot["nextInvoiceNumber"] = self.next_invoice_number()
        tmp = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(self._snapshot, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise BackendError(f"Local store write failed at {self.path}: {e}") from e

    def _new_id(self) -> int:
        new_id = int(time.time() * 1000)
        if new_id <= self._last_id:
            new_id = self._last_id + 1
        self._last_id = new_id
        return new_id

    def list(self, kind: str) -> List[Entity]:
        return normalize_all(kind, self._snapshot[kind], self.name)

    def add(self, kind: str, record: Entity) -> Entity:
        stored = record.model_copy(update={
            "id": self._new_id(),
            "created_at": record.created_at or dt.datetime.now(dt.timezone.utc),
        })
        self._snapshot[kind].append(to_local(stored))
        try:
            self._write()
        except BackendError:
            self._snapshot[kind].pop()
            raise
        return stored

    def delete(self, kind: str, record_id) -> None:
        before = self._snapshot[kind]
        self._snapshot[kind] = [r for r in before if not same_id(r.get("id"), record_id)]
        try:
            self._write()
        except BackendError:
            self._snapshot[kind] = before
            raise

    def next_invoice_number(self) -> int:
        return next_number_after(
            r.get("invoiceNumber", r.get("invoice_number")) for r in self._snapshot["invoices"]
        )
