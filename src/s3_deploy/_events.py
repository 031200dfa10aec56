"""Deploy lifecycle listener."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from s3_deploy._config import DeployConfig
    from s3_deploy._models import FileDescriptor, UploadResult


class DeployListener:
    """Receives the lifecycle events of one deploy run.

    Subclass and override what you need; every hook is a no-op by default.
    Hooks are called on the event loop thread, one at a time.
    """

    def on_start(self, config: DeployConfig) -> None:
        """The run entered scanning. Fires exactly once."""

    def on_upload(self, file: FileDescriptor, percent: float, result: UploadResult) -> None:
        """An object was uploaded; ``percent`` counts objects, not bytes."""

    def on_error(self, error: Exception) -> None:
        """The run failed. Terminal; fires at most once."""

    def on_complete(self, total_uploaded: int) -> None:
        """The run finished successfully. Terminal; fires at most once."""
