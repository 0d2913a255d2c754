from decimal import Decimal
from typing import Sequence

from .errors import LocationUnavailable

MAP_URL_TEMPLATE = "https://maps.google.com/?q={lat},{lon}"

NEGATIVE_REFS = ("S", "W")

LOCATION_MESSAGES = {
    LocationUnavailable.DENIED: "Unable to retrieve location. Please enable location services.",
    LocationUnavailable.UNAVAILABLE: "Unable to retrieve location. Please enable location services.",
    LocationUnavailable.UNSUPPORTED: "Geolocation is not supported by this browser.",
}


def convert_dms_to_dd(
    degrees: float, minutes: float, seconds: float, direction: str
) -> float:
    """Converts a degrees/minutes/seconds angle to signed decimal degrees.

    The result is negated for southern latitudes and western longitudes.
    """
    dd = degrees + minutes / 60 + seconds / (60 * 60)
    if direction in NEGATIVE_REFS:
        dd = -dd
    return dd


def dms_triple_to_dd(triple: Sequence[float], direction: str) -> float:
    """Same as convert_dms_to_dd but takes the [d, m, s] triple EXIF yields."""
    degrees, minutes, seconds = triple
    return convert_dms_to_dd(degrees, minutes, seconds, direction)


def format_coordinate(value: float, is_lat: bool) -> str:
    """Formats a coordinate as e.g. ``40.446111° N``."""
    if is_lat:
        direction = "N" if value >= 0 else "S"
    else:
        direction = "E" if value >= 0 else "W"
    return f"{abs(value):.6f}° {direction}"


def format_number(value: float) -> str:
    """Renders a number the way a browser prints it: ``40``, ``0.00001``, ``1e-7``."""
    if value == 0:
        return "0"
    text = repr(float(value))
    if text.endswith(".0"):
        return text[:-2]
    if "e" not in text:
        return text
    mantissa, exponent = text.split("e")
    exp = int(exponent)
    if -7 < exp < 21:
        return format(Decimal(text), "f")
    return f"{mantissa}e{'+' if exp > 0 else '-'}{abs(exp)}"


def map_url(lat: float, lon: float) -> str:
    return MAP_URL_TEMPLATE.format(lat=format_number(lat), lon=format_number(lon))


def is_valid_coordinate(lat: float, lon: float) -> bool:
    # NaN compares false and is rejected
    return -90 <= lat <= 90 and -180 <= lon <= 180


def location_message(error: LocationUnavailable) -> str:
    """User-facing message for a failed location lookup."""
    return LOCATION_MESSAGES[error.reason]
