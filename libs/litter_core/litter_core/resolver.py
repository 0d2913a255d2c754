import asyncio
import logging
from enum import Enum
from typing import Optional, Protocol, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .errors import LocationUnavailable
from .exif import extract_gps
from .geo import is_valid_coordinate

logger = logging.getLogger(__name__)


class LocationSource(str, Enum):
    """Where a location came from."""

    EXIF = "exif"
    DEVICE = "device"


class LocationResult(BaseModel):
    """Resolved location, consumed immediately to build a Record."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    source: LocationSource


class DeviceLocator(Protocol):
    """Single-shot device position query.

    ``locate`` returns ``(latitude, longitude)`` in decimal degrees or raises
    ``LocationUnavailable``.
    """

    async def locate(self) -> Tuple[float, float]: ...


class UnsupportedLocator:
    """Used when the device has no location capability."""

    async def locate(self) -> Tuple[float, float]:
        raise LocationUnavailable(LocationUnavailable.UNSUPPORTED)


class FixedLocator:
    """Reports a known position, e.g. one configured for a kiosk."""

    def __init__(self, latitude: float, longitude: float):
        self.latitude = latitude
        self.longitude = longitude

    async def locate(self) -> Tuple[float, float]:
        return self.latitude, self.longitude


class ClientReportedLocator:
    """Position (or failure) the client obtained itself and sent with the upload."""

    def __init__(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        error: Optional[str] = None,
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.error = error

    async def locate(self) -> Tuple[float, float]:
        if self.error:
            raise LocationUnavailable(self.error, "Client reported location failure")
        if self.latitude is None or self.longitude is None:
            raise LocationUnavailable(LocationUnavailable.UNSUPPORTED)
        return self.latitude, self.longitude


class CoordinateResolver:
    """
    Derives a location for an image.

    Embedded EXIF GPS is tried first. Only when one of the four GPS tags is
    missing is the device locator queried, exactly once. Nothing is retried
    or cached.
    """

    def __init__(self, locator: Optional[DeviceLocator] = None):
        self.locator = locator or UnsupportedLocator()

    async def resolve(
        self, image_bytes: bytes, locator: Optional[DeviceLocator] = None
    ) -> LocationResult:
        coords = await asyncio.to_thread(extract_gps, image_bytes)
        if coords is not None:
            lat, lon = coords
            logger.info(f"Location from image GPS data: {lat}, {lon}")
            return self._build(lat, lon, LocationSource.EXIF)

        logger.info("No GPS data in image, requesting device location")
        locator = locator or self.locator
        try:
            lat, lon = await locator.locate()
        except LocationUnavailable as e:
            logger.warning(f"Device location failed ({e.reason}): {e}")
            raise
        return self._build(lat, lon, LocationSource.DEVICE)

    @staticmethod
    def _build(lat: float, lon: float, source: LocationSource) -> LocationResult:
        if not is_valid_coordinate(lat, lon):
            raise LocationUnavailable(
                LocationUnavailable.UNAVAILABLE,
                f"Coordinates out of range: {lat}, {lon}",
            )
        return LocationResult(latitude=lat, longitude=lon, source=source)
