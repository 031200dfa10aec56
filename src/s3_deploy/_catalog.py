"""FileCatalog — recursive enumeration of a source directory."""

from __future__ import annotations

import logging
import mimetypes
import os
from typing import TYPE_CHECKING

from s3_deploy._config import DEFAULT_CONTENT_TYPE
from s3_deploy._errors import ScanError
from s3_deploy._models import FileDescriptor
from s3_deploy._path import relative_key

if TYPE_CHECKING:
    from s3_deploy._types import PathLike

log = logging.getLogger(__name__)


class FileCatalog:
    """Turns a directory tree into upload-ready file descriptors.

    :param default_content_type: MIME type used when lookup by name fails.
    """

    def __init__(self, default_content_type: str = DEFAULT_CONTENT_TYPE) -> None:
        self._default_content_type = default_content_type

    def scan(self, root: PathLike) -> list[FileDescriptor]:
        """Return one descriptor per regular file below ``root``.

        Parents come before their children; siblings keep listing order.
        Symlinked directories are not descended into.

        :raises ScanError: If ``root`` or any directory below it cannot be read.
        """
        root_path = os.fspath(root)
        files: list[FileDescriptor] = []
        self._walk(root_path, (), files)
        log.debug("Catalogued %d files under %s", len(files), root_path)
        return files

    def describe(self, full_path: str, parts: tuple[str, ...], size: int) -> FileDescriptor:
        """Build the descriptor for one file given its relative path components."""
        name = parts[-1]
        extension = os.path.splitext(name)[1].lstrip(".").lower()
        mime_type, _ = mimetypes.guess_type(name, strict=False)
        return FileDescriptor(
            full_path=full_path,
            relative_key=relative_key(parts),
            extension=extension,
            mime_type=mime_type or self._default_content_type,
            size_bytes=size,
        )

    def _walk(self, directory: str, parts: tuple[str, ...], out: list[FileDescriptor]) -> None:
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as exc:
            raise ScanError(f"Cannot read directory: {exc.strerror or exc}", path=directory) from exc

        for entry in entries:
            child = (*parts, entry.name)
            try:
                if entry.is_dir(follow_symlinks=False):
                    self._walk(entry.path, child, out)
                elif entry.is_file():
                    out.append(self.describe(entry.path, child, entry.stat().st_size))
            except OSError as exc:
                raise ScanError(f"Cannot stat entry: {exc.strerror or exc}", path=entry.path) from exc
