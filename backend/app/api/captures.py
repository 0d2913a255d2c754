import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from litter_core import (
    CaptureSessions,
    ClientReportedLocator,
    InvalidInput,
    LocationUnavailable,
    StaleCapture,
    location_message,
)

from ..core.deps import get_capture_sessions
from ..core.storage import read_upload_file
from ..schemas.record import CaptureResponse, DeviceError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=CaptureResponse)
async def create_capture(
    file: UploadFile = File(...),
    device_latitude: Optional[float] = Form(None),
    device_longitude: Optional[float] = Form(None),
    device_error: Optional[DeviceError] = Form(None),
    session_id: Optional[str] = Form(None),
    sessions: CaptureSessions = Depends(get_capture_sessions),
):
    """
    Upload a photo and resolve where it was taken.

    The image's GPS data is used when present. Otherwise the position the
    client reported in ``device_latitude``/``device_longitude`` is used, or
    ``device_error`` explains why it has none.

    Captures are tracked per ``session_id``. A new id is issued when none is
    sent; reuse it for later uploads and for saving.
    """
    image_bytes = await read_upload_file(file)
    session_id = session_id or uuid.uuid4().hex
    session = sessions.get(session_id)
    locator = ClientReportedLocator(
        latitude=device_latitude,
        longitude=device_longitude,
        error=device_error.value if device_error else None,
    )

    try:
        capture = await session.capture(image_bytes, file.content_type, locator)
    except InvalidInput as e:
        logger.info(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please select a valid image file",
        )
    except LocationUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=location_message(e),
        )
    except StaleCapture as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return CaptureResponse.from_capture(capture, session_id)
