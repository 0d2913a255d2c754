from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from litter_core import LocationSource, PendingCapture, Record, format_coordinate, map_url


class DeviceError(str, Enum):
    """Why the client could not report its own position."""

    DENIED = "denied"
    UNAVAILABLE = "unavailable"
    UNSUPPORTED = "unsupported"


class LocationResponse(BaseModel):
    """Resolved location with display fields."""

    latitude: float
    longitude: float
    source: LocationSource
    latitude_display: str
    longitude_display: str
    map_url: str

    @classmethod
    def build(cls, latitude: float, longitude: float, source: LocationSource):
        return cls(
            latitude=latitude,
            longitude=longitude,
            source=source,
            latitude_display=format_coordinate(latitude, True),
            longitude_display=format_coordinate(longitude, False),
            map_url=map_url(latitude, longitude),
        )


class CaptureResponse(BaseModel):
    """A pending capture. Send `session_id` and `generation` to POST /records to save it."""

    session_id: str
    image: str
    generation: int
    location: LocationResponse
    message: str = "Location successfully extracted!"

    @classmethod
    def from_capture(cls, capture: PendingCapture, session_id: str):
        loc = capture.location
        return cls(
            session_id=session_id,
            image=capture.image,
            generation=capture.generation,
            location=LocationResponse.build(loc.latitude, loc.longitude, loc.source),
        )


class RecordCreate(BaseModel):
    """Record creation request: which pending capture to save."""

    session_id: str = Field(min_length=1)
    generation: int


class RecordResponse(BaseModel):
    """Record response model."""

    id: str
    image: str
    latitude: float
    longitude: float
    timestamp: int
    created_at: datetime
    latitude_display: str
    longitude_display: str
    map_url: str

    @classmethod
    def from_record(cls, record: Record):
        return cls(
            id=record.id,
            image=record.image,
            latitude=record.latitude,
            longitude=record.longitude,
            timestamp=record.timestamp,
            created_at=datetime.fromtimestamp(record.timestamp / 1000, tz=timezone.utc),
            latitude_display=format_coordinate(record.latitude, True),
            longitude_display=format_coordinate(record.longitude, False),
            map_url=map_url(record.latitude, record.longitude),
        )


class RecordListResponse(BaseModel):
    """Records, newest first."""

    records: List[RecordResponse]
    count: int

    @classmethod
    def from_records(cls, records: List[Record]):
        return cls(records=[RecordResponse.from_record(r) for r in records], count=len(records))
