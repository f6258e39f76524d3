from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .models import UNKNOWN_APPLICATION, Reading


def _dig(obj: Any, *keys: str) -> Any:
    """Walk nested mappings, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _first_rx_metadata(uplink: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    rx_metadata = uplink.get("rx_metadata")
    if isinstance(rx_metadata, list) and rx_metadata and isinstance(rx_metadata[0], dict):
        return rx_metadata[0]
    return None


def extract_reading(envelope: Dict[str, Any], now: Optional[datetime] = None) -> Reading:
    """Project a validated uplink envelope into a Reading.

    Radio fields that are missing come out as None, never 0 or "", so an
    unknown RSSI stays distinguishable from one measured as zero. Present
    values pass through untyped. ``stored_at`` is left for the store.
    """
    ids = envelope["end_device_ids"]
    uplink = envelope["uplink_message"]
    gateway = _first_rx_metadata(uplink)

    application_id = _dig(ids, "application_ids", "application_id")
    received_at = envelope.get("received_at")
    if received_at is None:
        received_at = (now or datetime.now(timezone.utc)).isoformat()

    return Reading(
        device_id=str(ids["device_id"]),
        application_id=application_id if application_id is not None else UNKNOWN_APPLICATION,
        received_at=received_at,
        rssi=_dig(gateway, "rssi"),
        snr=_dig(gateway, "snr"),
        gateway_id=_dig(gateway, "gateway_ids", "gateway_id"),
        frequency=_dig(uplink, "settings", "frequency"),
        data_rate=_dig(uplink, "settings", "data_rate"),
        sensor_data=uplink["decoded_payload"],
        raw_envelope=envelope,
    )
