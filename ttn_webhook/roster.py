from typing import Dict, List

from .models import DeviceRosterEntry
from .store import TelemetryStore


async def list_devices(store: TelemetryStore) -> List[DeviceRosterEntry]:
    """Fold the global series into one entry per device.

    The scan runs newest first, so the first document seen for a device is
    its latest reading; later ones only bump the count. Every call reads the
    whole global series, with no pagination, so cost grows with the total
    number of readings stored.
    """
    roster: Dict[str, DeviceRosterEntry] = {}
    async for document in store.scan_newest(store.global_collection):
        device_id = document.get("device_id")
        entry = roster.get(device_id)
        if entry is None:
            roster[device_id] = DeviceRosterEntry(
                device_id=device_id,
                application_id=document.get("application_id"),
                collection=document.get("collection"),
                last_seen=document.get("stored_at"),
                total_messages=1,
                latest_sensor_data=document.get("sensor_data"),
            )
        else:
            entry.total_messages += 1
    return list(roster.values())
