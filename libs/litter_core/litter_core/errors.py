class LitterMapError(Exception):
    """Base exception for the core library."""


class InvalidInput(LitterMapError):
    """Raised when an uploaded file is not an image."""


class LocationUnavailable(LitterMapError):
    """Raised when neither embedded GPS nor the device can supply a location.

    ``reason`` is one of ``denied``, ``unavailable`` or ``unsupported``. It only
    selects the message shown to the user; callers treat every reason the same.
    """

    DENIED = "denied"
    UNAVAILABLE = "unavailable"
    UNSUPPORTED = "unsupported"
    REASONS = (DENIED, UNAVAILABLE, UNSUPPORTED)

    def __init__(self, reason: str = UNAVAILABLE, detail: str = ""):
        if reason not in self.REASONS:
            raise ValueError(f"Unknown location failure reason: {reason}")
        self.reason = reason
        self.detail = detail
        super().__init__(detail or f"Location {reason}")


class StorageFailure(LitterMapError):
    """Raised when a store operation rejects."""


class KeyNotFound(LitterMapError):
    """Raised by ``get`` on a missing key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Key not found: {key}")


class ParseFailure(LitterMapError):
    """Raised when a stored payload cannot be decoded into a Record."""

    def __init__(self, key: str, detail: str = ""):
        self.key = key
        super().__init__(f"Could not parse record {key}: {detail}")


class StaleCapture(LitterMapError):
    """Raised when a capture finishes after a newer one was started."""

    def __init__(self, generation: int, latest: int):
        self.generation = generation
        self.latest = latest
        super().__init__(
            f"Capture {generation} superseded by capture {latest}"
        )


class NoPendingCapture(LitterMapError):
    """Raised when a save is requested but no capture is waiting."""
