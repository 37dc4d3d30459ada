"""
Fixtures for API tests.

Provides:
- InMemoryGateway: a dict-backed stand-in for MongoGateway
- FakePayments: records payment-intent amounts instead of calling Stripe
- client: TestClient with both collaborators injected
"""

import copy
import re
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app.core.dependencies import get_gateway, get_payment_gateway
from app.core.exceptions import PaymentProviderError, StoreOperationFailed
from app.database.connection import UpdateOutcome
from app.services.payment_service import to_minor_units
from main import app


def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, cond in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in cond):
                return False
            continue
        value = doc.get(key)
        if isinstance(cond, dict) and "$regex" in cond:
            flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
            if not isinstance(value, str) or not re.search(cond["$regex"], value, flags):
                return False
        elif value != cond:
            return False
    return True


def _project(doc: Dict[str, Any], projection: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not projection:
        return doc
    included = [k for k, v in projection.items() if v and k != "_id"]
    out = {k: doc[k] for k in included if k in doc}
    if projection.get("_id", 1) and "_id" in doc:
        out["_id"] = doc["_id"]
    return out


class InMemoryGateway:
    """Implements the MongoGateway surface over plain lists."""

    def __init__(self):
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_with: Optional[str] = None
        self.calls: List[str] = []

    @property
    def is_connected(self) -> bool:
        return True

    async def connect(self):
        return self

    async def close(self):
        pass

    def _docs(self, name: str, op: str) -> List[Dict[str, Any]]:
        self.calls.append(op)
        if self.fail_with:
            raise StoreOperationFailed(self.fail_with)
        return self.collections.setdefault(name, [])

    def seed(self, name: str, *documents: Dict[str, Any]) -> List[ObjectId]:
        ids = []
        for doc in documents:
            doc = copy.deepcopy(doc)
            doc.setdefault("_id", ObjectId())
            self.collections.setdefault(name, []).append(doc)
            ids.append(doc["_id"])
        return ids

    def all(self, name: str) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.collections.get(name, []))

    async def find_many(self, collection, filter=None, sort=None, projection=None):
        docs = [d for d in self._docs(collection, "find_many") if _matches(d, filter or {})]
        for field, direction in reversed(list(sort or [])):
            docs.sort(key=lambda d: d.get(field), reverse=direction < 0)
        return [copy.deepcopy(_project(d, projection)) for d in docs]

    async def find_one(self, collection, filter, projection=None):
        for doc in self._docs(collection, "find_one"):
            if _matches(doc, filter):
                return copy.deepcopy(_project(doc, projection))
        return None

    async def insert_one(self, collection, document):
        docs = self._docs(collection, "insert_one")
        document = copy.deepcopy(document)
        document.setdefault("_id", ObjectId())
        docs.append(document)
        return document["_id"]

    async def update_one(self, collection, filter, update, upsert=False):
        docs = self._docs(collection, "update_one")
        for doc in docs:
            if _matches(doc, filter):
                before = copy.deepcopy(doc)
                doc.update(copy.deepcopy(update.get("$set", {})))
                return UpdateOutcome(matched_count=1, modified_count=int(doc != before))
        if not upsert:
            return UpdateOutcome(matched_count=0, modified_count=0)

        new_doc = {k: v for k, v in filter.items() if not k.startswith("$") and not isinstance(v, dict)}
        new_doc.update(copy.deepcopy(update.get("$setOnInsert", {})))
        new_doc.update(copy.deepcopy(update.get("$set", {})))
        new_doc["_id"] = ObjectId()
        docs.append(new_doc)
        return UpdateOutcome(matched_count=0, modified_count=0, upserted_id=new_doc["_id"])

    async def delete_one(self, collection, filter):
        docs = self._docs(collection, "delete_one")
        for i, doc in enumerate(docs):
            if _matches(doc, filter):
                del docs[i]
                return 1
        return 0


class FakePayments:
    def __init__(self):
        self.requested_amounts: List[int] = []
        self.error: Optional[str] = None

    async def create_payment_intent(self, amount) -> str:
        minor_units = to_minor_units(amount)
        self.requested_amounts.append(minor_units)
        if self.error:
            raise PaymentProviderError(self.error)
        return f"pi_test_{minor_units}_secret"


@pytest.fixture
def store():
    return InMemoryGateway()


@pytest.fixture
def payments():
    return FakePayments()


@pytest.fixture
def client(store, payments):
    app.dependency_overrides[get_gateway] = lambda: store
    app.dependency_overrides[get_payment_gateway] = lambda: payments
    yield TestClient(app)
    app.dependency_overrides.clear()
