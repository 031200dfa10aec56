"""MaintenanceSwap — serve a stub at a file's key while the deploy runs."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from s3_deploy._config import MaintenancePair
    from s3_deploy._models import FileDescriptor

log = logging.getLogger(__name__)


def _as_relative_key(path: str) -> str:
    key = path.replace("\\", "/").lstrip("/")
    while key.startswith("./"):
        key = key[2:]
    return key


@dataclasses.dataclass(frozen=True)
class MaintenanceSwap:
    """A resolved original/stub pair.

    The stub is written under the original's key before the bulk upload,
    the original is held back from the bulk upload and written last.
    """

    original: FileDescriptor
    stub: FileDescriptor

    @classmethod
    def resolve(cls, files: Sequence[FileDescriptor], pair: MaintenancePair | None) -> MaintenanceSwap | None:
        """Find both files of ``pair`` in ``files``.

        Returns ``None`` (and logs a warning) when either file is missing,
        both name the same file, or their extensions differ.
        """
        if pair is None:
            return None
        by_key = {f.relative_key: f for f in files}
        original = by_key.get(_as_relative_key(pair.original))
        stub = by_key.get(_as_relative_key(pair.stub))
        if original is None or stub is None:
            missing = pair.original if original is None else pair.stub
            log.warning("Maintenance swap disabled: %r not found in source directory", missing)
            return None
        if original.relative_key == stub.relative_key:
            log.warning("Maintenance swap disabled: original and stub are the same file %r", pair.original)
            return None
        if original.extension != stub.extension:
            log.warning(
                "Maintenance swap disabled: extensions differ (%r vs %r)",
                original.extension,
                stub.extension,
            )
            return None
        return cls(original=original, stub=stub)

    def bulk_files(self, files: Sequence[FileDescriptor]) -> list[FileDescriptor]:
        """Return ``files`` without the original."""
        return [f for f in files if f.relative_key != self.original.relative_key]
