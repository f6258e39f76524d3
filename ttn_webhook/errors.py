from enum import Enum
from typing import Optional


class ValidationReason(str, Enum):
    MISSING_DEVICE_ID = "MissingDeviceId"
    MISSING_PAYLOAD = "MissingPayload"


_VALIDATION_MESSAGES = {
    ValidationReason.MISSING_DEVICE_ID: (
        "Missing device_id",
        "end_device_ids.device_id is required",
    ),
    ValidationReason.MISSING_PAYLOAD: (
        "Missing decoded_payload",
        "uplink_message.decoded_payload is required",
    ),
}


class ValidationError(Exception):
    """Inbound envelope lacks a field needed before anything is stored."""

    def __init__(self, reason: ValidationReason):
        self.reason = reason
        self.error, self.message = _VALIDATION_MESSAGES[reason]
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class StoreError(Exception):
    """The document store was unreachable or rejected a read or write.

    When the global-series insert fails after the device-series insert went
    through, ``device_doc_id`` and ``collection_name`` identify the orphaned
    device entry.
    """

    def __init__(
        self,
        message: str,
        collection_name: Optional[str] = None,
        device_doc_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.collection_name = collection_name
        self.device_doc_id = device_doc_id
