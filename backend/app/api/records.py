import logging

from fastapi import APIRouter, Depends, HTTPException, status

from litter_core import (
    CaptureSessions,
    NoPendingCapture,
    RecordLifecycleManager,
    StaleCapture,
    StorageFailure,
)

from ..core.deps import get_capture_sessions, get_manager
from ..schemas.record import RecordCreate, RecordListResponse, RecordResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
async def create_record(
    body: RecordCreate,
    manager: RecordLifecycleManager = Depends(get_manager),
    sessions: CaptureSessions = Depends(get_capture_sessions),
):
    """
    Save a pending capture as a record.

    The image and location saved are the ones the server resolved for
    ``generation`` in the caller's session, never values sent by the client.
    """
    session = sessions.find(body.session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No pending capture for this session",
        )
    try:
        capture = session.claim(body.generation)
    except StaleCapture:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A newer capture was started; save that one instead",
        )
    except NoPendingCapture:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No pending capture for this session",
        )

    try:
        record = await manager.save_capture(capture)
    except StorageFailure as e:
        logger.error(f"Error saving record: {e}")
        session.release(capture)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to save: {e}",
        )
    return RecordResponse.from_record(record)


@router.get("", response_model=RecordListResponse)
async def list_records(manager: RecordLifecycleManager = Depends(get_manager)):
    """List all records, most recent first."""
    try:
        records = await manager.list_all()
    except StorageFailure as e:
        logger.error(f"Error loading history: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Error loading history",
        )
    return RecordListResponse.from_records(records)


@router.delete("/{record_id}", response_model=RecordListResponse)
async def delete_record(
    record_id: str, manager: RecordLifecycleManager = Depends(get_manager)
):
    """Delete a record and return the remaining ones."""
    try:
        records = await manager.delete_by_id(record_id)
    except StorageFailure as e:
        logger.error(f"Error deleting record: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to delete record",
        )
    return RecordListResponse.from_records(records)
