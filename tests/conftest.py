import io

import piexif
import pytest
from PIL import Image


def _gps_block(lat_dms, lat_ref, lon_dms, lon_ref):
    gps = {}
    if lat_dms is not None:
        gps[piexif.GPSIFD.GPSLatitude] = tuple((int(v), 1) for v in lat_dms)
    if lat_ref is not None:
        gps[piexif.GPSIFD.GPSLatitudeRef] = lat_ref
    if lon_dms is not None:
        gps[piexif.GPSIFD.GPSLongitude] = tuple((int(v), 1) for v in lon_dms)
    if lon_ref is not None:
        gps[piexif.GPSIFD.GPSLongitudeRef] = lon_ref
    return gps


def build_jpeg(gps=None) -> bytes:
    img = Image.new("RGB", (16, 16), color="green")
    buffer = io.BytesIO()
    if gps:
        exif_bytes = piexif.dump(
            {"0th": {}, "Exif": {}, "GPS": gps, "1st": {}, "thumbnail": None}
        )
        img.save(buffer, "JPEG", exif=exif_bytes)
    else:
        img.save(buffer, "JPEG")
    return buffer.getvalue()


@pytest.fixture
def make_jpeg():
    """Factory for JPEG bytes, optionally carrying GPS tags."""

    def _make(lat_dms=None, lat_ref=None, lon_dms=None, lon_ref=None):
        return build_jpeg(_gps_block(lat_dms, lat_ref, lon_dms, lon_ref))

    return _make


@pytest.fixture
def gps_jpeg(make_jpeg):
    """JPEG taken at 40°26'46" N, 79°58'56" W."""
    return make_jpeg((40, 26, 46), "N", (79, 58, 56), "W")


@pytest.fixture
def plain_jpeg():
    return build_jpeg()


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGBA", (8, 8), color=(0, 0, 255, 128)).save(buffer, "PNG")
    return buffer.getvalue()
