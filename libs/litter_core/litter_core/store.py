"""Key-value record storage over a persistent delegate or an in-process dict."""

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .errors import KeyNotFound, StorageFailure

logger = logging.getLogger(__name__)


@runtime_checkable
class StorageDelegate(Protocol):
    """A persistent key-value backend supplied from outside the core.

    Every method returns the same shapes as ``RecordStore``. ``get`` raises
    ``KeyNotFound`` for a missing key.
    """

    async def set(self, key: str, value: str) -> Dict[str, Any]: ...

    async def get(self, key: str) -> Dict[str, Any]: ...

    async def list(self, prefix: str) -> Dict[str, List[str]]: ...

    async def delete(self, key: str) -> Dict[str, Any]: ...


class RecordStore:
    """Uniform async key-value contract used by the record lifecycle."""

    backend = "abstract"

    async def set(self, key: str, value: str) -> Dict[str, Any]:
        raise NotImplementedError

    async def get(self, key: str) -> Dict[str, Any]:
        raise NotImplementedError

    async def list(self, prefix: str) -> Dict[str, List[str]]:
        raise NotImplementedError

    async def delete(self, key: str) -> Dict[str, Any]:
        raise NotImplementedError


class MemoryStore(RecordStore):
    """In-process fallback. Contents do not survive a restart.

    Deleting an absent key reports ``deleted: True``.
    """

    backend = "memory"

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(data or {})

    async def set(self, key: str, value: str) -> Dict[str, Any]:
        self._data[key] = value
        return {"key": key, "value": value}

    async def get(self, key: str) -> Dict[str, Any]:
        if key not in self._data:
            raise KeyNotFound(key)
        return {"key": key, "value": self._data[key]}

    async def list(self, prefix: str) -> Dict[str, List[str]]:
        return {"keys": [k for k in self._data if k.startswith(prefix)]}

    async def delete(self, key: str) -> Dict[str, Any]:
        self._data.pop(key, None)
        return {"key": key, "deleted": True}


class DelegatingStore(RecordStore):
    """Forwards every call to a persistent delegate.

    Delegate errors other than ``KeyNotFound`` surface as ``StorageFailure``.
    What ``deleted`` means for an absent key is up to the delegate.
    """

    def __init__(self, delegate: StorageDelegate):
        self._delegate = delegate
        self.backend = getattr(delegate, "backend", type(delegate).__name__)

    async def _call(self, op: str, *args: str) -> Dict[str, Any]:
        try:
            result = await getattr(self._delegate, op)(*args)
        except (KeyNotFound, StorageFailure):
            raise
        except Exception as e:
            logger.error(f"Storage delegate {op} failed: {e}")
            raise StorageFailure(f"{op} failed: {e}") from e
        if not result:
            raise StorageFailure(f"{op} returned no result")
        return result

    async def set(self, key: str, value: str) -> Dict[str, Any]:
        return await self._call("set", key, value)

    async def get(self, key: str) -> Dict[str, Any]:
        return await self._call("get", key)

    async def list(self, prefix: str) -> Dict[str, List[str]]:
        return await self._call("list", prefix)

    async def delete(self, key: str) -> Dict[str, Any]:
        return await self._call("delete", key)


def create_store(delegate: Optional[StorageDelegate] = None) -> RecordStore:
    """Selects the backend once: the delegate when given, else memory."""
    if delegate is None:
        logger.info("No persistent storage delegate, using in-process store")
        return MemoryStore()
    if not isinstance(delegate, StorageDelegate):
        raise TypeError(f"{type(delegate).__name__} is not a storage delegate")
    logger.info(f"Using persistent storage delegate {type(delegate).__name__}")
    return DelegatingStore(delegate)
