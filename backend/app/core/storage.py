from fastapi import HTTPException, UploadFile, status

from .config import settings


def validate_file(file: UploadFile) -> None:
    """Validate uploaded file metadata before reading it."""
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="No filename provided"
        )

    content_type = (file.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please select a valid image file",
        )
    if content_type not in settings.ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type {content_type} not allowed. Allowed types: {', '.join(sorted(settings.ALLOWED_CONTENT_TYPES))}",
        )


async def read_upload_file(file: UploadFile) -> bytes:
    """
    Validate and read an uploaded image into memory.

    Returns:
        The raw file bytes.
    """
    validate_file(file)

    # Check file size
    file.file.seek(0, 2)  # Seek to end
    file_size = file.file.tell()
    file.file.seek(0)  # Reset to beginning

    if file_size > settings.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {settings.MAX_FILE_SIZE / (1024*1024):.1f}MB",
        )

    return await file.read()
