"""MongoDB persistence for readings.

Every reading is appended twice: once to its device series
(``sensor-data-<deviceId>``) and once to the global series that the roster is
built from. MongoDB creates both collections on first insert.

The two inserts are NOT transactional. If the process dies or the store
errors between them, the device series keeps an entry with no global
counterpart and the roster silently undercounts that device. The failure is
surfaced as a plain StoreError carrying the orphan's id, logged, and counted
in ``orphaned_device_writes_total``; nothing compensates for it. Moving both
inserts into a multi-document transaction would need a replica set and is
not done here.
"""
import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

from pymongo.errors import PyMongoError

from .errors import StoreError
from .metrics import orphaned_device_writes_total, store_write_errors_total
from .models import Reading, WriteResult
from .settings import Settings

logger = logging.getLogger(__name__)

# _id breaks ties between readings stored within the same millisecond
NEWEST_FIRST = [("stored_at", -1), ("_id", -1)]


class TelemetryStore:
    """Handle over the Motor database, shared by the write and read paths."""

    def __init__(self, db, settings: Settings):
        self.db = db
        self.settings = settings

    @property
    def global_collection(self) -> str:
        return self.settings.global_collection

    def device_collection(self, device_id: str) -> str:
        return f"{self.settings.device_collection_prefix}{device_id}"

    async def insert(self, collection_name: str, document: Dict[str, Any]) -> str:
        # insert_one adds _id to the dict it is given
        try:
            result = await self.db[collection_name].insert_one(dict(document))
        except PyMongoError as e:
            raise StoreError(f"Insert into {collection_name} failed: {e}", collection_name=collection_name) from e
        return str(result.inserted_id)

    async def find_newest(
        self, collection_name: str, limit: Optional[int] = None, query: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        # building the collection handle can itself raise, e.g. InvalidName for '$'
        try:
            cursor = self.db[collection_name].find(query or {}).sort(NEWEST_FIRST)
            if limit is not None:
                cursor = cursor.limit(limit)
            return [document async for document in cursor]
        except PyMongoError as e:
            raise StoreError(f"Query on {collection_name} failed: {e}", collection_name=collection_name) from e

    async def scan_newest(self, collection_name: str) -> AsyncIterator[Dict[str, Any]]:
        """Stream a whole collection, newest first, without buffering it."""
        try:
            cursor = self.db[collection_name].find({}).sort(NEWEST_FIRST)
            async for document in cursor:
                yield document
        except PyMongoError as e:
            raise StoreError(f"Scan of {collection_name} failed: {e}", collection_name=collection_name) from e

    async def health_check(self) -> datetime:
        """Round-trip one acknowledged write to the health collection."""
        now = datetime.now(timezone.utc)
        try:
            await self.db[self.settings.health_collection].replace_one(
                {"_id": "test"},
                {"timestamp": now, "status": "healthy"},
                upsert=True,
            )
        except PyMongoError as e:
            raise StoreError(f"Health write failed: {e}", collection_name=self.settings.health_collection) from e
        return now


class DualWriteStore:
    def __init__(self, store: TelemetryStore):
        self.store = store

    async def write(self, reading: Reading) -> WriteResult:
        collection_name = self.store.device_collection(reading.device_id)
        stored = reading.model_copy(update={"stored_at": datetime.now(timezone.utc)})
        document = stored.to_document()

        # step 1: device series
        try:
            device_doc_id = await self.store.insert(collection_name, document)
        except StoreError:
            store_write_errors_total.labels(series="device").inc()
            raise

        # step 2: global series, cross-referencing step 1
        try:
            await self.store.insert(
                self.store.global_collection,
                {**document, "doc_id": device_doc_id, "collection": collection_name},
            )
        except StoreError as e:
            store_write_errors_total.labels(series="global").inc()
            orphaned_device_writes_total.inc()
            e.device_doc_id = device_doc_id
            logger.error(
                f"Global write failed after device write; orphaned {collection_name}/{device_doc_id}: {e}"
            )
            raise

        return WriteResult(
            device_doc_id=device_doc_id,
            collection_name=collection_name,
            stored_at=stored.stored_at,
        )
