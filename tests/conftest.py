"""Shared fixtures: an in-memory stand-in for a Motor database.

Only the slice of the Motor collection API the service uses is covered:
``insert_one``, ``find().sort().limit()`` with ``async for``, and
``replace_one``. Collections can be told to fail so the dual-write gap can
be exercised.
"""

from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import InvalidName, ServerSelectionTimeoutError

from ttn_webhook.main import create_app
from ttn_webhook.settings import Settings
from ttn_webhook.store import TelemetryStore


# =============================================================================
# FAKE MOTOR DATABASE
# =============================================================================

class FakeInsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class FakeCursor:
    def __init__(self, collection: "FakeCollection", documents: List[Dict[str, Any]]):
        self._collection = collection
        self._documents = documents

    def sort(self, key_or_list, direction=None):
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction or 1)]
        # stable sorts applied from the last key to the first
        for key, order in reversed(keys):
            self._documents.sort(key=lambda doc: doc[key], reverse=order < 0)
        return self

    def limit(self, n: int):
        if n:
            self._documents = self._documents[:n]
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        self._collection.database.check(self._collection.name)
        for document in self._documents:
            yield dict(document)


class FakeCollection:
    def __init__(self, database: "FakeDatabase", name: str):
        self.database = database
        self.name = name
        self.documents: List[Dict[str, Any]] = []

    async def insert_one(self, document: Dict[str, Any]):
        self.database.check(self.name)
        document.setdefault("_id", ObjectId())
        self.documents.append(dict(document))
        return FakeInsertResult(document["_id"])

    def find(self, query: Optional[Dict[str, Any]] = None):
        query = query or {}
        matching = [
            doc for doc in self.documents
            if all(doc.get(key) == value for key, value in query.items())
        ]
        return FakeCursor(self, matching)

    async def replace_one(self, filter: Dict[str, Any], replacement: Dict[str, Any], upsert: bool = False):
        self.database.check(self.name)
        self.documents = [
            doc for doc in self.documents
            if not all(doc.get(key) == value for key, value in filter.items())
        ]
        if upsert:
            self.documents.append({**filter, **replacement})


class FakeDatabase:
    def __init__(self):
        self.collections: Dict[str, FakeCollection] = {}
        self.failing: set = set()

    def __getitem__(self, name: str) -> FakeCollection:
        # same check pymongo makes when building a Collection
        if "$" in name:
            raise InvalidName(f"collection names must not contain '$': {name!r}")
        if name not in self.collections:
            self.collections[name] = FakeCollection(self, name)
        return self.collections[name]

    def fail(self, name: str):
        """Make every later operation on ``name`` raise like an unreachable server."""
        self.failing.add(name)

    def check(self, name: str):
        if name in self.failing:
            raise ServerSelectionTimeoutError(f"{name}: No servers available")


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def settings() -> Settings:
    return Settings(mongo_db="ttndb-test", log_level="WARNING")


@pytest.fixture
def store(db, settings) -> TelemetryStore:
    return TelemetryStore(db, settings)


@pytest.fixture
def client(db, settings):
    with TestClient(create_app(settings, db)) as test_client:
        yield test_client


@pytest.fixture
def make_envelope():
    """Build a TTN uplink envelope shaped like the network server sends it."""

    def _make(device_id="d1", decoded_payload=None, **overrides):
        envelope = {
            "end_device_ids": {
                "device_id": device_id,
                "application_ids": {"application_id": "smart-waste-management"},
                "dev_eui": "70B3D57ED005B234",
            },
            "received_at": "2025-09-01T10:00:00.000Z",
            "uplink_message": {
                "f_port": 1,
                "decoded_payload": decoded_payload if decoded_payload is not None else {"battery": 84, "distance": 73},
                "rx_metadata": [
                    {
                        "gateway_ids": {"gateway_id": "test-gateway-001"},
                        "rssi": -67,
                        "snr": 8.5,
                    }
                ],
                "settings": {
                    "data_rate": {"lora": {"bandwidth": 125000, "spreading_factor": 7}},
                    "frequency": "902300000",
                },
            },
        }
        envelope.update(overrides)
        return envelope

    return _make
