import re
from typing import List, Optional

from .models import DeviceRosterEntry, Reading
from .roster import list_devices
from .store import TelemetryStore

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_limit(raw: Optional[str], default: int = 10) -> int:
    """Read ``?limit=`` leniently: "5abc" is 5, anything unusable is the default."""
    if raw is None:
        return default
    match = _LEADING_INT.match(raw)
    if not match:
        return default
    value = int(match.group(1))
    return value if value > 0 else default


class QueryFacade:
    def __init__(self, store: TelemetryStore):
        self.store = store

    async def latest(self, device_id: str, limit: Optional[int] = None) -> List[Reading]:
        """Up to ``limit`` most recent readings for one device, newest first."""
        settings = self.store.settings
        if limit is None:
            limit = settings.default_query_limit
        if settings.max_query_limit is not None:
            limit = min(limit, settings.max_query_limit)
        # Mongo reads limit(0) as "no limit"
        if limit <= 0:
            return []
        documents = await self.store.find_newest(self.store.device_collection(device_id), limit=limit)
        return [Reading.from_document(document) for document in documents]

    async def list_devices(self) -> List[DeviceRosterEntry]:
        return await list_devices(self.store)
