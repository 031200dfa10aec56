"""InvalidationPlanner — purge CDN copies of objects whose content changed."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING
from urllib.parse import quote

from s3_deploy._errors import InvalidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from s3_deploy._client import CdnClient
    from s3_deploy._models import UploadResult

log = logging.getLogger(__name__)


def caller_reference() -> str:
    """A reference unique per run: UTC timestamp plus a random suffix."""
    stamp = datetime.now(tz=timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    return f"s3-deploy-{stamp}-{uuid.uuid4().hex[:8]}"


def invalidation_path(key: str) -> str:
    """CDN path for ``key``, percent-encoded as the CDN expects."""
    return "/" + quote(key, safe="/~")


class InvalidationPlanner:
    """Selects changed keys and issues a single invalidation request.

    :param cdn: CDN binding.
    :param distribution_id: Distribution whose cache is purged.
    """

    def __init__(self, cdn: CdnClient, distribution_id: str) -> None:
        self._cdn = cdn
        self._distribution_id = distribution_id

    @staticmethod
    def select_changed(
        index: Mapping[str, str],
        results: Iterable[UploadResult],
        *,
        always: Iterable[str] = (),
    ) -> list[str]:
        """Keys that are new or whose hash differs from the pre-deploy index.

        When a key was written more than once, its last result wins. Keys in
        ``always`` that were written are selected whatever their hash.
        """
        final: dict[str, str] = {}
        for result in results:
            final[result.remote_key] = result.content_hash
        forced = set(always)
        return [key for key, etag in final.items() if key in forced or index.get(key) != etag]

    def invalidate(
        self,
        index: Mapping[str, str],
        results: Iterable[UploadResult],
        *,
        always: Iterable[str] = (),
        reference: str | None = None,
    ) -> str | None:
        """Invalidate changed keys.

        :param always: Written keys to invalidate even when their hash is unchanged.
        :returns: The provider's invalidation id, or ``None`` when nothing changed.
        :raises InvalidationError: If the CDN rejects the request.
        """
        changed = self.select_changed(index, results, always=always)
        if not changed:
            log.info("No changed objects; skipping CDN invalidation")
            return None
        paths = [invalidation_path(key) for key in changed]
        ref = reference or caller_reference()
        try:
            invalidation_id = self._cdn.create_invalidation(self._distribution_id, paths, ref)
        except Exception as exc:
            raise InvalidationError(
                f"Invalidation of {len(paths)} paths on {self._distribution_id} failed: {exc}"
            ) from exc
        log.info("Requested invalidation %s for %d paths", invalidation_id, len(paths))
        return invalidation_id
