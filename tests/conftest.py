"""Shared test fixtures and marker registration."""

from __future__ import annotations

import io
import os
import threading
import time
from collections import Counter
from typing import TYPE_CHECKING, Any, BinaryIO

import pytest

from s3_deploy._client import CdnClient
from s3_deploy._config import DeployConfig
from s3_deploy._errors import StorageError
from s3_deploy._events import DeployListener
from s3_deploy.backends._local import LocalStorageClient

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping, Sequence
    from pathlib import Path

    from s3_deploy._models import FileDescriptor, RemoteObject, UploadResult


def pytest_configure(config: object) -> None:
    """Register custom markers."""
    if isinstance(config, pytest.Config):
        config.addinivalue_line("markers", "integration: requires external services")


class RecordingStorageClient(LocalStorageClient):
    """Local bucket that records every write in order.

    :param fail: Maps a key to the 1-based write number that should fail.
    :param fail_listing: Make ``list_objects`` raise.
    :param delay: Seconds to sleep inside each write.
    """

    def __init__(
        self,
        root: str,
        *,
        fail: Mapping[str, int] | None = None,
        fail_listing: bool = False,
        delay: float = 0.0,
    ) -> None:
        super().__init__(root)
        self.writes: list[tuple[str, bytes, str, str | None]] = []
        self.list_calls = 0
        self._fail = dict(fail or {})
        self._fail_listing = fail_listing
        self._delay = delay
        self._attempts: Counter[str] = Counter()
        self._record_lock = threading.Lock()
        self.active = 0
        self.peak_active = 0

    def list_objects(self, prefix: str = "") -> Iterator[RemoteObject]:
        self.list_calls += 1
        if self._fail_listing:
            raise StorageError("listing refused", key=prefix, backend=self.name)
        return super().list_objects(prefix)

    def put_object(
        self,
        key: str,
        body: BinaryIO,
        *,
        content_type: str,
        content_encoding: str | None = None,
    ) -> str:
        data = body.read()
        with self._record_lock:
            self.active += 1
            self.peak_active = max(self.peak_active, self.active)
        try:
            if self._delay:
                time.sleep(self._delay)
        finally:
            with self._record_lock:
                self.active -= 1
        with self._record_lock:
            self._attempts[key] += 1
            if self._fail.get(key) == self._attempts[key]:
                raise StorageError("write refused", key=key, backend=self.name)
            self.writes.append((key, data, content_type, content_encoding))
        return super().put_object(key, io.BytesIO(data), content_type=content_type, content_encoding=content_encoding)

    def keys_written(self) -> list[str]:
        return [w[0] for w in self.writes]


class FakeCdn(CdnClient):
    """CDN binding that records invalidation requests."""

    def __init__(self, *, fail: bool = False, invalidation_id: str = "I2J0I21PCUYOIK") -> None:
        self.calls: list[tuple[str, list[str], str]] = []
        self._fail = fail
        self._invalidation_id = invalidation_id

    @classmethod
    def from_config(cls, config: DeployConfig) -> FakeCdn:
        return cls()

    def create_invalidation(self, distribution_id: str, paths: Sequence[str], caller_reference: str) -> str:
        self.calls.append((distribution_id, list(paths), caller_reference))
        if self._fail:
            raise StorageError("distribution is disabled", key=distribution_id, backend="cloudfront")
        return self._invalidation_id


class RecordingListener(DeployListener):
    """Collects lifecycle events as ``(name, *args)`` tuples."""

    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []

    def on_start(self, config: DeployConfig) -> None:
        self.events.append(("start", config))

    def on_upload(self, file: FileDescriptor, percent: float, result: UploadResult) -> None:
        self.events.append(("upload", file, percent, result))

    def on_error(self, error: Exception) -> None:
        self.events.append(("error", error))

    def on_complete(self, total_uploaded: int) -> None:
        self.events.append(("complete", total_uploaded))

    def named(self, name: str) -> list[tuple[Any, ...]]:
        return [e for e in self.events if e[0] == name]


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[Mapping[str, bytes]], Path]:
    """Create files from a ``{relative/path: content}`` mapping under ``tmp_path/src``."""

    def _make(files: Mapping[str, bytes]) -> Path:
        root = tmp_path / "src"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            target = root.joinpath(*rel.split("/"))
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        return root

    return _make


@pytest.fixture
def bucket_dir(tmp_path: Path) -> Path:
    return tmp_path / "bucket"


@pytest.fixture
def recording_client(bucket_dir: Path) -> Callable[..., RecordingStorageClient]:
    """Factory for :class:`RecordingStorageClient` rooted at ``bucket_dir``."""

    def _make(**kwargs: Any) -> RecordingStorageClient:
        return RecordingStorageClient(str(bucket_dir), **kwargs)

    return _make


@pytest.fixture
def fake_cdn() -> Callable[..., FakeCdn]:
    return FakeCdn


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def restore_environ() -> Iterator[None]:
    """Undo any ``os.environ`` changes made during the test."""
    saved = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture
def local_config(bucket_dir: Path) -> Callable[..., DeployConfig]:
    """Build a config targeting the local backend; keyword overrides apply."""

    def _make(**overrides: Any) -> DeployConfig:
        base = DeployConfig(backend="local", backend_options={"root": str(bucket_dir)})
        return base.merged(**overrides)

    return _make
