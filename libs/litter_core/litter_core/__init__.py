# libs/litter_core/litter_core/__init__.py

from .capture import CaptureSession, CaptureSessions, PendingCapture, encode_data_url
from .errors import (
    InvalidInput,
    KeyNotFound,
    LitterMapError,
    LocationUnavailable,
    NoPendingCapture,
    ParseFailure,
    StaleCapture,
    StorageFailure,
)
from .exif import detect_image_type, extract_gps, read_gps_tags
from .geo import convert_dms_to_dd, format_coordinate, location_message, map_url
from .records import RECORD_KEY_PREFIX, Record, RecordLifecycleManager, record_key
from .resolver import (
    ClientReportedLocator,
    CoordinateResolver,
    DeviceLocator,
    FixedLocator,
    LocationResult,
    LocationSource,
    UnsupportedLocator,
)
from .store import DelegatingStore, MemoryStore, RecordStore, StorageDelegate, create_store

__all__ = [
    "CaptureSession",
    "CaptureSessions",
    "PendingCapture",
    "encode_data_url",
    "InvalidInput",
    "KeyNotFound",
    "LitterMapError",
    "LocationUnavailable",
    "NoPendingCapture",
    "ParseFailure",
    "StaleCapture",
    "StorageFailure",
    "detect_image_type",
    "extract_gps",
    "read_gps_tags",
    "convert_dms_to_dd",
    "format_coordinate",
    "location_message",
    "map_url",
    "RECORD_KEY_PREFIX",
    "Record",
    "RecordLifecycleManager",
    "record_key",
    "ClientReportedLocator",
    "CoordinateResolver",
    "DeviceLocator",
    "FixedLocator",
    "LocationResult",
    "LocationSource",
    "UnsupportedLocator",
    "DelegatingStore",
    "MemoryStore",
    "RecordStore",
    "StorageDelegate",
    "create_store",
]
