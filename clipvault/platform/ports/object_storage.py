import time
import uuid
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

@dataclass(frozen=True)
class StoredObject:
    data: bytes
    content_type: str

@runtime_checkable
class ObjectStoragePort(Protocol):
    def put_bytes(self, key: str, data: bytes, content_type: str) -> str: ...

    def get_bytes(self, key: str) -> StoredObject: ...

    def delete(self, key: str) -> None: ...

    def presign_download(self, key: str, expires_seconds: int = 3600) -> str: ...

    def presign_upload(self, key: str, content_type: str, expires_seconds: int = 3600) -> dict: ...

    def list_keys(self, prefix: str = "") -> list[str]: ...

    def check_health(self) -> bool: ...

def generate_file_key(file_name: str, prefix: str = "videos/") -> str:
    """Fresh storage key: epoch millis plus a uuid4, keeping the file's extension."""
    stamp = int(time.time() * 1000)
    ext = file_name.rsplit(".", 1)[1].lower() if "." in file_name else "mp4"
    return f"{prefix}{stamp}-{uuid.uuid4().hex}.{ext}"
