"""Local directory bucket — stdlib-only reference binding."""

from __future__ import annotations

import hashlib
import os
import tempfile
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO

from s3_deploy._client import StorageClient
from s3_deploy._errors import ConfigError, StorageError
from s3_deploy._models import RemoteObject
from s3_deploy._path import normalize_prefix

if TYPE_CHECKING:
    from collections.abc import Iterator

    from s3_deploy._config import DeployConfig

_CHUNK_SIZE = 1024 * 1024


class LocalStorageClient(StorageClient):
    """Stores objects as files under a local root directory.

    ETags are the quoted MD5 hex digest of the stored bytes, like a
    single-part S3 upload. Content type and encoding are kept in memory
    for the lifetime of the client.

    :param root: Directory acting as the bucket; created if missing.
    """

    def __init__(self, root: str) -> None:
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._metadata: dict[str, dict[str, str | None]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: DeployConfig) -> LocalStorageClient:
        root = config.backend_options.get("root") or config.bucket
        if not root:
            raise ConfigError("local backend needs backend_options['root'] or a bucket path")
        return cls(root=str(root))

    @property
    def name(self) -> str:
        return "local"

    @property
    def root(self) -> Path:
        return self._root

    # region: path safety
    def _resolve(self, key: str) -> Path:
        """Resolve a key to a path within root.

        :raises StorageError: If the resolved path escapes the root.
        """
        resolved = (self._root / key).resolve()
        try:
            resolved.relative_to(self._root)
        except ValueError:
            raise StorageError(f"Key escapes root directory: {key}", key=key, backend=self.name) from None
        return resolved

    # endregion

    @staticmethod
    def _etag(path: Path) -> str:
        digest = hashlib.md5()  # noqa: S324 -- ETag compatibility, not security
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
        return f'"{digest.hexdigest()}"'

    def list_objects(self, prefix: str = "") -> Iterator[RemoteObject]:
        base = normalize_prefix(prefix)
        start = self._resolve(base) if base else self._root
        if not start.is_dir():
            return
        try:
            for dirpath, _dirnames, filenames in os.walk(start):
                for filename in sorted(filenames):
                    full = Path(dirpath) / filename
                    key = full.relative_to(self._root).as_posix()
                    yield RemoteObject(key=key, etag=self._etag(full), size=full.stat().st_size)
        except OSError as exc:
            raise StorageError(f"Listing failed: {exc}", key=base, backend=self.name) from exc

    def put_object(
        self,
        key: str,
        body: BinaryIO,
        *,
        content_type: str,
        content_encoding: str | None = None,
    ) -> str:
        full = self._resolve(key)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(full.parent))
            try:
                with os.fdopen(fd, "wb") as out:
                    for chunk in iter(lambda: body.read(_CHUNK_SIZE), b""):
                        out.write(chunk)
                os.replace(tmp_path, str(full))
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise StorageError(f"Write failed: {exc}", key=key, backend=self.name) from exc
        with self._lock:
            self._metadata[key] = {"content_type": content_type, "content_encoding": content_encoding}
        return self._etag(full)

    def get_metadata(self, key: str) -> dict[str, Any]:
        """Content type and encoding recorded for ``key`` by this client.

        :raises StorageError: If nothing was written under ``key``.
        """
        with self._lock:
            if key not in self._metadata:
                raise StorageError(f"No metadata for key: {key}", key=key, backend=self.name)
            return dict(self._metadata[key])

    def read_bytes(self, key: str) -> bytes:
        """Read back the stored bytes of ``key``."""
        full = self._resolve(key)
        try:
            return full.read_bytes()
        except FileNotFoundError:
            raise StorageError(f"Object not found: {key}", key=key, backend=self.name) from None
