import logging
import time
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .capture import PendingCapture
from .errors import KeyNotFound, ParseFailure, StorageFailure
from .resolver import LocationResult
from .store import RecordStore

logger = logging.getLogger(__name__)

RECORD_KEY_PREFIX = "garbage:"


def now_ms() -> int:
    return time.time_ns() // 1_000_000


class Record(BaseModel):
    """A persisted photo/location pairing. Never modified once stored."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(min_length=1)
    image: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    timestamp: int

    @property
    def key(self) -> str:
        return record_key(self.id)

    def serialize(self) -> str:
        return self.model_dump_json()

    @classmethod
    def parse(cls, key: str, payload: str) -> "Record":
        if not isinstance(payload, (str, bytes)):
            raise ParseFailure(key, f"payload is {type(payload).__name__}")
        try:
            return cls.model_validate_json(payload)
        except ValidationError as e:
            raise ParseFailure(key, str(e)) from e


def record_key(record_id: str, prefix: str = RECORD_KEY_PREFIX) -> str:
    return f"{prefix}{record_id}"


class RecordLifecycleManager:
    """Creates, lists and deletes records under one key prefix in a RecordStore."""

    def __init__(
        self,
        store: RecordStore,
        clock: Optional[Callable[[], int]] = None,
        prefix: str = RECORD_KEY_PREFIX,
    ):
        self.store = store
        self.prefix = prefix
        self.clock = clock or now_ms
        self._last_reading = 0
        self._last_created = 0

    async def create_and_persist(self, image: str, location: LocationResult) -> Record:
        """
        Builds a Record from an image payload and a resolved location and stores it.

        Args:
            image: Encoded image payload (data URL).
            location: The resolved location.

        Returns:
            The stored Record.

        Raises:
            StorageFailure: If the store rejects the write.
        """
        # Two saves within one millisecond must not share a key
        reading = self.clock()
        if self._last_reading <= reading <= self._last_created:
            created = self._last_created + 1
        else:
            created = reading
        self._last_reading, self._last_created = reading, created
        record = Record(
            id=str(created),
            image=image,
            latitude=location.latitude,
            longitude=location.longitude,
            timestamp=created,
        )
        key = record_key(record.id, self.prefix)
        try:
            result = await self.store.set(key, record.serialize())
        except StorageFailure:
            logger.error(f"Error saving record {record.id}")
            raise
        if not result:
            raise StorageFailure("Storage operation failed")

        logger.info(f"Saved record {record.id} at {record.latitude}, {record.longitude}")
        return record

    async def save_capture(self, capture: PendingCapture) -> Record:
        return await self.create_and_persist(capture.image, capture.location)

    async def list_all(self) -> List[Record]:
        """
        Loads every stored record, newest first.

        Entries that cannot be read or parsed are logged and skipped. Only a
        failure of the initial key listing fails the whole call.
        """
        result = await self.store.list(self.prefix)
        keys = (result or {}).get("keys") or []

        records: List[Record] = []
        for key in keys:
            # Backends are not trusted to filter
            if not key.startswith(self.prefix):
                continue
            try:
                item = await self.store.get(key)
                records.append(Record.parse(key, (item or {}).get("value")))
            except (ParseFailure, KeyNotFound, StorageFailure) as e:
                logger.error(f"Error loading record: {e}")

        records.sort(key=lambda r: (r.timestamp, r.id), reverse=True)
        return records

    async def delete_by_id(self, record_id: str) -> List[Record]:
        """Deletes a record and returns the refreshed listing."""
        await self.store.delete(record_key(record_id, self.prefix))
        logger.info(f"Deleted record {record_id}")
        return await self.list_all()
