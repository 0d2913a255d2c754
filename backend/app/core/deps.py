import logging
from typing import Optional

from fastapi import Depends

from litter_core import (
    CaptureSessions,
    CoordinateResolver,
    RecordLifecycleManager,
    RecordStore,
    StorageDelegate,
    create_store,
)

from .config import settings

logger = logging.getLogger(__name__)


class Services:
    """Core objects shared by the routes for the life of the process."""

    def __init__(
        self,
        delegate: Optional[StorageDelegate] = None,
        resolver: Optional[CoordinateResolver] = None,
    ):
        self.delegate = delegate
        self.store: RecordStore = create_store(delegate)
        self.manager = RecordLifecycleManager(self.store, prefix=settings.RECORD_KEY_PREFIX)
        self.sessions = CaptureSessions(resolver, limit=settings.MAX_CAPTURE_SESSIONS)


_services: Optional[Services] = None


def init_services(delegate: Optional[StorageDelegate] = None) -> Services:
    """Build the shared services; the storage backend is chosen here, once."""
    global _services
    _services = Services(delegate)
    logger.info(f"Record storage backend: {_services.store.backend}")
    return _services


def get_services() -> Services:
    if _services is None:
        return init_services()
    return _services


def get_manager(services: Services = Depends(get_services)) -> RecordLifecycleManager:
    return services.manager


def get_capture_sessions(services: Services = Depends(get_services)) -> CaptureSessions:
    return services.sessions
