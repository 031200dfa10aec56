"""RemoteStateSnapshot — pre-deploy ETags of the remote prefix."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from s3_deploy._errors import SnapshotError
from s3_deploy._path import normalize_prefix

if TYPE_CHECKING:
    from s3_deploy._client import StorageClient
    from s3_deploy._types import RemoteObjectIndex

log = logging.getLogger(__name__)


class RemoteStateSnapshot:
    """Records the content hash of every object under a prefix.

    :param client: Storage binding to list from.
    :param prefix: Remote key prefix (empty for the whole bucket).
    """

    def __init__(self, client: StorageClient, prefix: str = "") -> None:
        self._client = client
        self._prefix = normalize_prefix(prefix)

    def capture(self) -> RemoteObjectIndex:
        """List the prefix and return a key → ETag mapping.

        :raises SnapshotError: If listing fails.
        """
        try:
            index = {obj.key: obj.etag for obj in self._client.list_objects(self._prefix)}
        except Exception as exc:
            raise SnapshotError(f"Listing remote objects failed: {exc}", key=self._prefix or None) from exc
        log.debug("Snapshotted %d remote objects under %r", len(index), self._prefix)
        return index
