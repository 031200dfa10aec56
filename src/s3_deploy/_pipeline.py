"""UploadPipeline — one file descriptor in, one remote object out."""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import tempfile
from typing import TYPE_CHECKING, BinaryIO

from s3_deploy._errors import UploadError
from s3_deploy._models import UploadResult
from s3_deploy._path import remote_key

if TYPE_CHECKING:
    from s3_deploy._client import StorageClient
    from s3_deploy._config import DeployConfig
    from s3_deploy._models import FileDescriptor

log = logging.getLogger(__name__)

GZIP_ENCODING = "gzip"

# Compressed bodies above this size spill from memory to a temp file.
_SPOOL_MAX_SIZE = 8 * 1024 * 1024
_COPY_CHUNK = 1024 * 1024


class UploadPipeline:
    """Compresses (when eligible) and streams files to a storage client.

    :param config: Resolved deploy configuration.
    :param client: Storage binding performing the transfer.
    """

    def __init__(self, config: DeployConfig, client: StorageClient) -> None:
        self._config = config
        self._client = client

    def is_gzip_eligible(self, file: FileDescriptor) -> bool:
        return file.extension in self._config.gzip_extensions

    def remote_key_for(self, file: FileDescriptor) -> str:
        return remote_key(self._config.remote_dir, file.relative_key)

    def upload(self, file: FileDescriptor, *, remote_key: str | None = None) -> UploadResult:
        """Transfer ``file`` and return the stored object's identity.

        Blocking; the orchestrator runs it on a worker thread.

        :param file: The descriptor to upload.
        :param remote_key: Key to write under instead of the file's own key.
        :raises UploadError: On any read, compression or transport failure.
        """
        key = remote_key or self.remote_key_for(file)
        encoding = GZIP_ENCODING if self.is_gzip_eligible(file) else None
        try:
            with open(file.full_path, "rb") as source:
                if encoding is None:
                    etag = self._put(key, source, file)
                    transferred = os.fstat(source.fileno()).st_size
                else:
                    with self._compress(source) as body:
                        transferred = body.tell()
                        body.seek(0)
                        etag = self._put(key, body, file, encoding)
        except UploadError:
            raise
        except Exception as exc:
            raise UploadError(f"Upload failed: {exc}", path=file.full_path, key=key) from exc

        if not etag:
            raise UploadError("Storage client returned no content hash", path=file.full_path, key=key)
        log.debug("Uploaded %s -> %s (%d bytes, etag=%s)", file.full_path, key, transferred, etag)
        return UploadResult(
            remote_key=key,
            content_hash=etag,
            bytes_transferred=transferred,
            content_encoding=encoding,
        )

    def _put(self, key: str, body: BinaryIO, file: FileDescriptor, encoding: str | None = None) -> str:
        return self._client.put_object(key, body, content_type=file.mime_type, content_encoding=encoding)

    def _compress(self, source: BinaryIO) -> tempfile.SpooledTemporaryFile[bytes]:
        spool: tempfile.SpooledTemporaryFile[bytes] = tempfile.SpooledTemporaryFile(max_size=_SPOOL_MAX_SIZE)
        try:
            # mtime=0 makes the output depend only on the input bytes.
            with gzip.GzipFile(fileobj=spool, mode="wb", compresslevel=self._config.gzip_level, mtime=0) as gz:
                shutil.copyfileobj(source, gz, _COPY_CHUNK)
        except BaseException:
            spool.close()
            raise
        return spool
