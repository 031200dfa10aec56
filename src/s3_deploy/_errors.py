"""Normalized error hierarchy for s3_deploy."""

from __future__ import annotations

from typing import Optional


class DeployError(Exception):
    """Base class for all s3_deploy errors.

    :param message: Human-readable error description.
    :param path: The local path involved in the error, if any.
    :param key: The remote key involved in the error, if any.
    """

    def __init__(self, message: str = "", *, path: Optional[str] = None, key: Optional[str] = None) -> None:
        self.path = path
        self.key = key
        super().__init__(message)

    def _details(self) -> list[str]:
        details = []
        if self.path is not None:
            details.append(f"path={self.path!r}")
        if self.key is not None:
            details.append(f"key={self.key!r}")
        return details

    def __str__(self) -> str:
        parts = [super().__str__(), *self._details()]
        return " | ".join(parts) if len(parts) > 1 else parts[0]

    def __repr__(self) -> str:
        cls = type(self).__name__
        args = [repr(super().__str__()), *self._details()]
        return f"{cls}({', '.join(args)})"


class ConfigError(DeployError):
    """Raised when a deploy configuration is incomplete or invalid."""


class ScanError(DeployError):
    """Raised when a source directory cannot be read."""


class UploadError(DeployError):
    """Raised when a single file cannot be transferred.

    The underlying failure is available as ``__cause__``.
    """


class SnapshotError(DeployError):
    """Raised when the remote object listing fails."""


class InvalidationError(DeployError):
    """Raised when the CDN rejects an invalidation request."""


class StorageError(DeployError):
    """Raised by storage and CDN bindings for provider-side failures.

    :param backend: The binding name involved, if any.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        key: Optional[str] = None,
        backend: Optional[str] = None,
    ) -> None:
        self.backend = backend
        super().__init__(message, path=path, key=key)

    def _details(self) -> list[str]:
        details = super()._details()
        if self.backend is not None:
            details.append(f"backend={self.backend!r}")
        return details
