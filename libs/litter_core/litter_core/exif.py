import io
import logging
import struct
from typing import Any, Dict, List, Optional, Tuple

import piexif
from PIL import Image, UnidentifiedImageError

from .errors import InvalidInput
from .geo import dms_triple_to_dd

logger = logging.getLogger(__name__)

GPS_TAGS = {
    "GPSLatitude": piexif.GPSIFD.GPSLatitude,
    "GPSLatitudeRef": piexif.GPSIFD.GPSLatitudeRef,
    "GPSLongitude": piexif.GPSIFD.GPSLongitude,
    "GPSLongitudeRef": piexif.GPSIFD.GPSLongitudeRef,
}


def detect_image_type(image_bytes: bytes) -> str:
    """
    Identifies the image format of raw bytes.

    Args:
        image_bytes: Raw file contents.

    Returns:
        The MIME type Pillow reports for the image, e.g. ``image/jpeg``.

    Raises:
        InvalidInput: If the bytes are not a readable image.
    """
    if not image_bytes:
        raise InvalidInput("Empty file")
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            image_format = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidInput(f"Not an image: {e}") from e

    mime = Image.MIME.get(image_format or "")
    if not mime or not mime.startswith("image/"):
        raise InvalidInput(f"Unsupported image format: {image_format}")
    return mime


def _rational_to_float(value: Any) -> float:
    """EXIF rationals come back from piexif as (numerator, denominator) pairs."""
    if isinstance(value, (tuple, list)):
        return value[0] / value[1]
    return float(value)


def _decode_ref(ref: Any) -> str:
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    return str(ref).strip("\x00 ").upper()


def read_gps_tags(image_bytes: bytes) -> Dict[str, Any]:
    """
    Reads the four GPS position tags from embedded EXIF metadata.

    Returns a mapping of tag name to value for every tag that is present.
    Coordinate tags are ``[degrees, minutes, seconds]`` float lists and
    reference tags single letters. Images without an EXIF block yield ``{}``.
    """
    try:
        exif_dict = piexif.load(image_bytes)
    except (piexif.InvalidImageDataError, ValueError, OSError, struct.error) as e:
        logger.debug(f"No readable EXIF block: {e}")
        return {}

    gps_info = exif_dict.get("GPS") or {}
    tags: Dict[str, Any] = {}
    for name, tag_id in GPS_TAGS.items():
        if tag_id not in gps_info:
            continue
        value = gps_info[tag_id]
        if name.endswith("Ref"):
            ref = _decode_ref(value)
            if ref:
                tags[name] = ref
        else:
            try:
                triple: List[float] = [_rational_to_float(v) for v in value]
            except (ZeroDivisionError, TypeError, IndexError) as e:
                logger.warning(f"Could not parse GPS tag {name}: {e}")
                continue
            if len(triple) != 3:
                logger.warning(f"GPS tag {name} has {len(triple)} components, expected 3")
                continue
            tags[name] = triple
    return tags


def extract_gps(image_bytes: bytes) -> Optional[Tuple[float, float]]:
    """
    Extracts signed decimal-degree coordinates from embedded EXIF GPS data.

    Returns:
        ``(latitude, longitude)`` when all four GPS tags are present, else None.
    """
    tags = read_gps_tags(image_bytes)
    if len(tags) != len(GPS_TAGS):
        missing = sorted(set(GPS_TAGS) - set(tags))
        logger.debug(f"GPS tags missing: {missing}")
        return None

    lat = dms_triple_to_dd(tags["GPSLatitude"], tags["GPSLatitudeRef"])
    lon = dms_triple_to_dd(tags["GPSLongitude"], tags["GPSLongitudeRef"])
    return lat, lon
