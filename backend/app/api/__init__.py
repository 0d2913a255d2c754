from fastapi import APIRouter

from .captures import router as captures_router
from .records import router as records_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(captures_router, prefix="/captures", tags=["captures"])
api_router.include_router(records_router, prefix="/records", tags=["records"])
