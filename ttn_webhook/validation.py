from typing import Any

from .errors import ValidationError, ValidationReason


def validate_envelope(envelope: Any) -> Any:
    """Reject envelopes without a device id or a decoded payload.

    A body that is not a JSON object has no device id either. Falsy ids
    (missing, null, "", 0, false) count as missing. The decoded payload
    itself is schema-free and is not inspected.
    """
    ids = envelope.get("end_device_ids") if isinstance(envelope, dict) else None
    if not isinstance(ids, dict) or not ids.get("device_id"):
        raise ValidationError(ValidationReason.MISSING_DEVICE_ID)

    uplink = envelope.get("uplink_message")
    if not isinstance(uplink, dict) or uplink.get("decoded_payload") is None:
        raise ValidationError(ValidationReason.MISSING_PAYLOAD)

    return envelope
