import os
from pathlib import Path
from clipvault.core.errors import ObjectNotFound
from clipvault.platform.ports.object_storage import ObjectStoragePort, StoredObject

_SIDECAR = ".content-type"

class LocalFilesystemStorage(ObjectStoragePort):
    def __init__(self, root: str):
        self.root = os.path.realpath(root)
        os.makedirs(self.root, exist_ok=True)

    def _path(self, key: str) -> str:
        path = os.path.realpath(os.path.join(self.root, key.lstrip("/")))
        if path == self.root or os.path.commonpath([self.root, path]) != self.root:
            raise ValueError(f"Storage key escapes the storage root: {key!r}")
        return path

    def put_bytes(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        with open(path + _SIDECAR, "w", encoding="utf-8") as f:
            f.write(content_type)
        return key

    def get_bytes(self, key: str) -> StoredObject:
        path = self._path(key)
        if not os.path.isfile(path):
            raise ObjectNotFound(key)
        with open(path, "rb") as f:
            data = f.read()
        content_type = "application/octet-stream"
        if os.path.exists(path + _SIDECAR):
            with open(path + _SIDECAR, encoding="utf-8") as f:
                content_type = f.read().strip() or content_type
        return StoredObject(data=data, content_type=content_type)

    def delete(self, key: str) -> None:
        path = self._path(key)
        for p in (path, path + _SIDECAR):
            if os.path.exists(p):
                os.remove(p)

    def presign_download(self, key: str, expires_seconds: int = 3600) -> str:
        # unsigned; TTL does not apply to file URLs
        path = self._path(key)
        if not os.path.isfile(path):
            raise ObjectNotFound(key)
        return Path(path).as_uri()

    def presign_upload(self, key: str, content_type: str, expires_seconds: int = 3600) -> dict:
        # the file URL is only reachable from the same host; there is no signing locally
        return {
            "strategy": "local-file",
            "url": Path(self._path(key)).as_uri(),
            "key": key,
            "content_type": content_type,
            "expires_seconds": expires_seconds,
        }

    def list_keys(self, prefix: str = "") -> list[str]:
        keys = []
        for dirpath, _, files in os.walk(self.root):
            for name in files:
                if name.endswith(_SIDECAR):
                    continue
                key = os.path.relpath(os.path.join(dirpath, name), self.root).replace(os.sep, "/")
                if key.startswith(prefix):
                    keys.append(key)
        return sorted(keys)

    def check_health(self) -> bool:
        return os.path.isdir(self.root) and os.access(self.root, os.W_OK)
