from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

UNKNOWN_APPLICATION = "unknown-app"


class _CamelModel(BaseModel):
    # snake_case in Mongo, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Reading(_CamelModel):
    device_id: str
    application_id: Any = UNKNOWN_APPLICATION
    # client supplied and untrusted, kept as received
    received_at: Any = None
    rssi: Any = None
    snr: Any = None
    gateway_id: Any = None
    frequency: Any = None
    data_rate: Any = None
    sensor_data: Any
    stored_at: Optional[datetime] = None
    raw_envelope: Dict[str, Any]
    # device-series document id, only set on readings loaded from the store
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"id"})

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Reading":
        return cls.model_validate({**doc, "id": str(doc["_id"])})


class WriteResult(_CamelModel):
    device_doc_id: str
    collection_name: str
    stored_at: datetime


class DeviceRosterEntry(_CamelModel):
    device_id: str
    application_id: Any = None
    collection: Optional[str] = None
    last_seen: Optional[datetime] = None
    total_messages: int = 1
    latest_sensor_data: Any = None
