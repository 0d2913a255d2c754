import asyncio
import base64
import logging
from collections import OrderedDict
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .errors import InvalidInput, NoPendingCapture, StaleCapture
from .exif import detect_image_type
from .resolver import CoordinateResolver, DeviceLocator, LocationResult

logger = logging.getLogger(__name__)


class PendingCapture(BaseModel):
    """An image and its resolved location, waiting to be saved.

    Held by the CaptureSession that produced it until claimed, then handed to
    ``RecordLifecycleManager.save_capture``.
    """

    model_config = ConfigDict(frozen=True)

    image: str
    location: LocationResult
    generation: int = 0


def encode_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Encodes raw image bytes as a self-contained ``data:`` URL."""
    payload = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


class CaptureSession:
    """
    Turns uploaded bytes into a PendingCapture for one client.

    Each call to ``capture`` gets a generation number. When a capture finishes
    after a newer one has started, its result is discarded with
    ``StaleCapture`` so only the latest capture can be saved. The latest
    successful capture is held in ``pending`` until it is claimed.
    """

    def __init__(self, resolver: Optional[CoordinateResolver] = None):
        self.resolver = resolver or CoordinateResolver()
        self._generation = 0
        self.pending: Optional[PendingCapture] = None

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, capture: PendingCapture) -> bool:
        return capture.generation == self._generation

    async def capture(
        self,
        image_bytes: bytes,
        content_type: Optional[str] = None,
        locator: Optional[DeviceLocator] = None,
    ) -> PendingCapture:
        """
        Validates an image and resolves its location.

        Args:
            image_bytes: Raw file contents.
            content_type: Declared MIME type, if the caller knows one.
            locator: Device locator to use for this capture only.

        Raises:
            InvalidInput: If the bytes are not an image.
            LocationUnavailable: If no location could be resolved.
            StaleCapture: If a newer capture started meanwhile.
        """
        if content_type and not content_type.startswith("image/"):
            raise InvalidInput(f"Not an image: {content_type}")
        mime_type = await asyncio.to_thread(detect_image_type, image_bytes)

        self._generation += 1
        generation = self._generation
        self.pending = None
        logger.info(f"Processing capture {generation} ({mime_type}, {len(image_bytes)} bytes)")

        location: LocationResult = await self.resolver.resolve(image_bytes, locator)

        if generation != self._generation:
            logger.warning(f"Discarding capture {generation}, capture {self._generation} is newer")
            raise StaleCapture(generation, self._generation)

        self.pending = PendingCapture(
            image=encode_data_url(image_bytes, mime_type),
            location=location,
            generation=generation,
        )
        return self.pending

    def claim(self, generation: int) -> PendingCapture:
        """
        Hands over the pending capture for saving and clears the slot.

        Raises:
            StaleCapture: If ``generation`` is not the latest capture.
            NoPendingCapture: If the latest capture failed or was already claimed.
        """
        if generation != self._generation:
            raise StaleCapture(generation, self._generation)
        if self.pending is None:
            raise NoPendingCapture(f"No capture waiting for generation {generation}")
        capture, self.pending = self.pending, None
        return capture

    def release(self, capture: PendingCapture) -> None:
        """Puts back a claimed capture whose save failed, unless a newer one exists."""
        if self.pending is None and self.is_current(capture):
            self.pending = capture


class CaptureSessions:
    """
    One CaptureSession per client, keyed by a session id.

    Holds at most ``limit`` sessions; the least recently used is dropped
    first, along with any capture it was holding.
    """

    def __init__(self, resolver: Optional[CoordinateResolver] = None, limit: int = 1000):
        self.resolver = resolver or CoordinateResolver()
        self.limit = limit
        self._sessions: "OrderedDict[str, CaptureSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def find(self, session_id: str) -> Optional[CaptureSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def get(self, session_id: str) -> CaptureSession:
        """Returns the client's session, creating it on first use."""
        session = self.find(session_id)
        if session is None:
            session = CaptureSession(self.resolver)
            self._sessions[session_id] = session
            while len(self._sessions) > self.limit:
                dropped, _ = self._sessions.popitem(last=False)
                logger.info(f"Dropped idle capture session {dropped}")
        return session
