"""Storage and CDN client contracts."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, BinaryIO

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from types import TracebackType

    from s3_deploy._config import DeployConfig
    from s3_deploy._models import RemoteObject


class StorageClient(abc.ABC):
    """Abstract base class for object storage bindings.

    A binding handles multipart chunking, retries and credentials itself,
    and raises :class:`~s3_deploy.StorageError` for any provider failure.
    """

    @classmethod
    @abc.abstractmethod
    def from_config(cls, config: DeployConfig) -> StorageClient:
        """Build a client from a resolved deploy configuration."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Unique identifier for this binding type (e.g. ``'s3'``)."""

    @abc.abstractmethod
    def list_objects(self, prefix: str = "") -> Iterator[RemoteObject]:
        """List every object whose key lies under ``prefix``.

        An empty prefix lists the whole bucket.
        """

    @abc.abstractmethod
    def put_object(
        self,
        key: str,
        body: BinaryIO,
        *,
        content_type: str,
        content_encoding: str | None = None,
    ) -> str:
        """Write ``body`` under ``key``, overwriting any existing object.

        :returns: The content hash (ETag) of the stored object.
        :raises StorageError: If the write fails after the binding's retries.
        """

    def close(self) -> None:  # noqa: B027
        """Release resources. Default is a no-op."""

    def __enter__(self) -> StorageClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class CdnClient(abc.ABC):
    """Abstract base class for CDN cache invalidation bindings."""

    @classmethod
    @abc.abstractmethod
    def from_config(cls, config: DeployConfig) -> CdnClient:
        """Build a client from a resolved deploy configuration."""

    @abc.abstractmethod
    def create_invalidation(self, distribution_id: str, paths: Sequence[str], caller_reference: str) -> str:
        """Request invalidation of ``paths`` and return the provider's id.

        :raises StorageError: If the provider rejects the request.
        """
