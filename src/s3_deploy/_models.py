"""Immutable descriptors and per-run state."""

from __future__ import annotations

import dataclasses
import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from s3_deploy._config import DeployConfig
    from s3_deploy._maintenance import MaintenanceSwap


@dataclasses.dataclass(frozen=True)
class FileDescriptor:
    """Immutable description of one local file ready for upload.

    :param full_path: Absolute or root-joined path on the local filesystem.
    :param relative_key: ``/``-separated path relative to the source root.
    :param extension: Lower-case extension without the dot (``""`` if none).
    :param mime_type: Content type assigned to the uploaded object.
    :param size_bytes: Size of the file at scan time.
    """

    full_path: str
    relative_key: str
    extension: str
    mime_type: str
    size_bytes: int


@dataclasses.dataclass(frozen=True)
class UploadResult:
    """Outcome of one successful object write.

    :param remote_key: Key the object was written under.
    :param content_hash: Provider content hash (ETag) of the written object.
    :param bytes_transferred: Bytes sent, after compression.
    :param content_encoding: ``"gzip"`` when compressed, else ``None``.
    """

    remote_key: str
    content_hash: str
    bytes_transferred: int
    content_encoding: str | None = None


@dataclasses.dataclass(frozen=True)
class RemoteObject:
    """One object listed from the remote bucket.

    :param key: Full remote key.
    :param etag: Provider content hash.
    :param size: Object size in bytes.
    """

    key: str
    etag: str
    size: int = 0


class DeployState(enum.Enum):
    """Phases of a deploy run."""

    IDLE = "idle"
    SCANNING = "scanning"
    SNAPSHOTTING_REMOTE = "snapshotting_remote"
    UPLOADING_MAINTENANCE_STUB = "uploading_maintenance_stub"
    UPLOADING_BULK = "uploading_bulk"
    RESTORING_MAINTENANCE_ORIGINAL = "restoring_maintenance_original"
    INVALIDATING = "invalidating"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DeployState.COMPLETE, DeployState.FAILED)


@dataclasses.dataclass
class DeployRun:
    """Mutable aggregate for a single run, owned by the orchestrator."""

    config: DeployConfig
    files: list[FileDescriptor] = dataclasses.field(default_factory=list)
    attempted: int = 0
    succeeded: int = 0
    results: list[UploadResult] = dataclasses.field(default_factory=list)
    maintenance: MaintenanceSwap | None = None
    state: DeployState = DeployState.IDLE
    history: list[DeployState] = dataclasses.field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.files)

    @property
    def percent_complete(self) -> float:
        if not self.files:
            return 100.0
        return self.succeeded * 100.0 / len(self.files)


@dataclasses.dataclass(frozen=True)
class DeployReport:
    """Summary of a finished run.

    :param state: Terminal state (``COMPLETE`` or ``FAILED``).
    :param uploaded: Number of objects uploaded before the run ended.
    :param total: Number of files found by the catalog.
    :param results: Upload results in completion order.
    :param error: The error that failed the run, if any.
    :param failed_in: The phase that was active when the run failed.
    :param invalidation_id: Provider id of the CDN invalidation, if one was issued.
    """

    state: DeployState
    uploaded: int
    total: int
    results: tuple[UploadResult, ...] = ()
    error: Exception | None = None
    failed_in: DeployState | None = None
    invalidation_id: str | None = None

    @property
    def success(self) -> bool:
        return self.state is DeployState.COMPLETE
