import copy
import pytest
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock
from bson import ObjectId

from mongo_queue.config import get_settings
from mongo_queue.message_queue import QueueOptions, RetryQueue


_MISSING = object()


def _lookup(doc: Dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _matches_condition(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
        for op, operand in condition.items():
            if op == "$exists":
                if (value is not _MISSING) != bool(operand):
                    return False
            elif value is _MISSING:
                return False
            elif op == "$eq" and value != operand:
                return False
            elif op == "$ne" and value == operand:
                return False
            elif op == "$in" and value not in operand:
                return False
            elif op == "$lte" and not value <= operand:
                return False
            elif op == "$lt" and not value < operand:
                return False
            elif op == "$gte" and not value >= operand:
                return False
            elif op == "$gt" and not value > operand:
                return False
        return True
    return value is not _MISSING and value == condition


def matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """Evaluate the subset of the MongoDB query language the queue uses."""
    for key, condition in query.items():
        if key == "$and":
            if not all(matches(doc, sub) for sub in condition):
                return False
        elif not _matches_condition(_lookup(doc, key), condition):
            return False
    return True


@dataclass
class FakeInsertResult:
    inserted_id: ObjectId


@dataclass
class FakeUpdateResult:
    matched_count: int


@dataclass
class FakeDeleteResult:
    deleted_count: int


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs
        self._limit: Optional[int] = None

    def limit(self, n: int) -> "FakeCursor":
        self._limit = n
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        docs = self._docs
        for bound in (self._limit, length):
            if bound:
                docs = docs[:bound]
        return [copy.deepcopy(doc) for doc in docs]


class FakeCollection:
    """
    In-memory stand-in for the Motor collection methods the queue issues.
    Documents are kept in insertion order, which is the natural order find() returns.
    """

    def __init__(self, name: str = "queue_test"):
        self.name = name
        self.docs: List[Dict[str, Any]] = []
        self.create_index = AsyncMock()

    async def insert_one(self, document: Dict[str, Any]) -> FakeInsertResult:
        doc = copy.deepcopy(document)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return FakeInsertResult(inserted_id=doc["_id"])

    def find(self, query: Dict[str, Any]) -> FakeCursor:
        return FakeCursor([doc for doc in self.docs if matches(doc, query)])

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for doc in self.docs:
            if matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def update_one(self, query: Dict[str, Any], update: Dict[str, Any]) -> FakeUpdateResult:
        for doc in self.docs:
            if matches(doc, query):
                for key, value in update.get("$set", {}).items():
                    doc[key] = copy.deepcopy(value)
                for key in update.get("$unset", {}):
                    doc.pop(key, None)
                for key, amount in update.get("$inc", {}).items():
                    doc[key] = doc.get(key, 0) + amount
                return FakeUpdateResult(matched_count=1)
        return FakeUpdateResult(matched_count=0)

    async def delete_many(self, query: Dict[str, Any]) -> FakeDeleteResult:
        kept = [doc for doc in self.docs if not matches(doc, query)]
        deleted = len(self.docs) - len(kept)
        self.docs = kept
        return FakeDeleteResult(deleted_count=deleted)

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> FakeCursor:
        # Only the single-stage status grouping used by count_by_status()
        field = pipeline[0]["$group"]["_id"].lstrip("$")
        counts: Dict[Any, int] = {}
        for doc in self.docs:
            key = doc.get(field)
            counts[key] = counts.get(key, 0) + 1
        return FakeCursor([{"_id": key, "count": count} for key, count in counts.items()])

    def get(self, storage_key: str) -> Dict[str, Any]:
        """Raw stored document by storage key."""
        for doc in self.docs:
            if str(doc["_id"]) == storage_key:
                return doc
        raise KeyError(storage_key)


@pytest.fixture
def collection() -> FakeCollection:
    """A fresh, empty queue collection."""
    return FakeCollection()


@pytest.fixture
def on_process() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def on_failure() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def make_queue(collection, on_process, on_failure):
    """Build a RetryQueue over the fake collection; keyword arguments override options."""
    def _make(**overrides: Any) -> RetryQueue:
        values: Dict[str, Any] = {
            "collection_name": collection.name,
            "batch_size": 10,
            "retry_limit": 3,
            "max_record_age_ms": 100,
            "on_process": on_process,
            "on_failure": on_failure,
        }
        values.update(overrides)
        return RetryQueue(QueueOptions(**values), collection=collection)

    return _make


@pytest.fixture(autouse=True)
def fresh_settings():
    """Keep environment overrides from one test out of the next."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
