"""Failures an acquisition can end in.

Each error knows the pipeline stage it came from and the HTTP status the API
answers with. Compression problems never appear here: a failed encode is
reported through ``CompressionOutcome.succeeded``.
"""


class AcquisitionError(Exception):
    status_code = 500
    stage = "unknown"

    def __init__(self, message: str, *, stage: str | None = None):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage


class ValidationError(AcquisitionError):
    status_code = 400
    stage = "validating"


class UpstreamResolutionError(AcquisitionError):
    status_code = 502
    stage = "resolving"

    def __init__(self, code: str, message: str | None = None, *, service: str | None = None):
        super().__init__(message or f"Download failed: {code}")
        self.code = code
        self.service = service


class NoPlayableContentError(UpstreamResolutionError):
    def __init__(self):
        super().__init__("no_playable_content", "No video found in the content")


class FetchError(AcquisitionError):
    status_code = 502
    stage = "fetching"

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class StorageError(AcquisitionError):
    status_code = 502
    stage = "uploading"


class PersistenceError(AcquisitionError):
    status_code = 500
    stage = "persisting"

    def __init__(self, message: str, *, orphaned_key: str):
        super().__init__(message)
        self.orphaned_key = orphaned_key


class AcquisitionTimeoutError(AcquisitionError):
    status_code = 504


class ObjectNotFound(Exception):
    """Raised by storage adapters when a key has no object behind it."""

    def __init__(self, key: str):
        super().__init__(f"Object not found: {key}")
        self.key = key


class InvalidStatusTransition(Exception):
    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move video status from {current} to {target}")
        self.current = current
        self.target = target
