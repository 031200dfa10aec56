"""S3-compatible object storage binding using boto3."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, BinaryIO

from s3_deploy._client import StorageClient
from s3_deploy._errors import DeployError, StorageError
from s3_deploy._models import RemoteObject
from s3_deploy._path import normalize_prefix

if TYPE_CHECKING:
    from collections.abc import Iterator

    from s3_deploy._config import DeployConfig

log = logging.getLogger(__name__)

MIB = 1024 * 1024


class S3Client(StorageClient):
    """S3-compatible storage binding using boto3.

    Multipart chunking is delegated to boto3's managed transfer. Each
    write is retried ``retry_count`` times, ``retry_delay`` seconds apart,
    before a :class:`StorageError` is raised.

    :param bucket: S3 bucket name (required, non-empty).
    :param endpoint_url: Custom endpoint URL (e.g. for MinIO).
    :param key: AWS access key ID.
    :param secret: AWS secret access key.
    :param region_name: AWS region name.
    :param retry_count: Retries per request after the first attempt.
    :param retry_delay: Seconds to wait between attempts.
    :param multipart_threshold: Size at which uploads switch to multipart.
    :param multipart_chunksize: Multipart part size.
    :param max_concurrency: Parts uploaded concurrently per object.
    :param client_options: Additional options passed to ``boto3.client``.
    """

    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: str | None = None,
        key: str | None = None,
        secret: str | None = None,
        region_name: str | None = None,
        retry_count: int = 3,
        retry_delay: float = 1.0,
        multipart_threshold: int = 20 * MIB,
        multipart_chunksize: int = 15 * MIB,
        max_concurrency: int = 10,
        client_options: dict[str, Any] | None = None,
    ) -> None:
        if not bucket or not bucket.strip():
            raise ValueError("bucket must be a non-empty string")
        self._bucket = bucket
        self._endpoint_url = endpoint_url
        self._key = key
        self._secret = secret
        self._region_name = region_name
        self._retry_count = retry_count
        self._retry_delay = retry_delay
        self._multipart_threshold = multipart_threshold
        self._multipart_chunksize = multipart_chunksize
        self._max_concurrency = max_concurrency
        self._client_options = client_options or {}
        self._client_instance: Any = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: DeployConfig) -> S3Client:
        return cls(
            bucket=config.bucket,
            endpoint_url=config.endpoint_url,
            key=config.access_key_id,
            secret=config.secret_access_key,
            region_name=config.region,
            retry_count=config.retry_count,
            retry_delay=config.retry_delay,
            multipart_threshold=config.multipart_upload_threshold,
            multipart_chunksize=config.part_size,
            max_concurrency=config.upload_concurrent_parts,
            client_options=dict(config.backend_options),
        )

    @property
    def name(self) -> str:
        return "s3"

    @property
    def bucket(self) -> str:
        return self._bucket

    # region: lazy client

    @property
    def _client(self) -> Any:
        with self._lock:
            if self._client_instance is None:
                self._client_instance = self._create_client()
        return self._client_instance

    def _create_client(self) -> Any:
        import boto3
        from botocore.config import Config

        opts: dict[str, Any] = dict(self._client_options)
        if self._endpoint_url is not None:
            opts["endpoint_url"] = self._endpoint_url
        if self._key is not None:
            opts["aws_access_key_id"] = self._key
        if self._secret is not None:
            opts["aws_secret_access_key"] = self._secret
        if self._region_name is not None:
            opts["region_name"] = self._region_name
        # Retries happen in _retrying(); keep botocore to a single attempt.
        opts.setdefault("config", Config(retries={"total_max_attempts": 1}))
        return boto3.client("s3", **opts)

    @property
    def _transfer_config(self) -> Any:
        from boto3.s3.transfer import TransferConfig

        return TransferConfig(
            multipart_threshold=self._multipart_threshold,
            multipart_chunksize=self._multipart_chunksize,
            max_concurrency=self._max_concurrency,
        )

    # endregion

    # region: error mapping

    @contextmanager
    def _errors(self, key: str = "") -> Iterator[None]:
        """Map boto3/botocore exceptions to s3_deploy errors."""
        try:
            yield
        except DeployError:
            raise
        except Exception as exc:
            raise StorageError(str(exc), key=key or None, backend=self.name) from exc

    def _retrying(self) -> Any:
        from boto3.exceptions import S3UploadFailedError
        from botocore.exceptions import BotoCoreError, ClientError
        from tenacity import (
            Retrying,
            before_sleep_log,
            retry_if_exception_type,
            stop_after_attempt,
            wait_fixed,
        )

        return Retrying(
            retry=retry_if_exception_type((BotoCoreError, ClientError, S3UploadFailedError)),
            stop=stop_after_attempt(self._retry_count + 1),
            wait=wait_fixed(self._retry_delay),
            before_sleep=before_sleep_log(log, logging.WARNING),  # type: ignore[arg-type,unused-ignore]
            reraise=True,
        )

    # endregion

    # region: listing

    def list_objects(self, prefix: str = "") -> Iterator[RemoteObject]:
        base = normalize_prefix(prefix)
        list_prefix = f"{base}/" if base else ""
        with self._errors(base):
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=list_prefix):
                for item in page.get("Contents", []):
                    yield RemoteObject(key=item["Key"], etag=item.get("ETag", ""), size=int(item.get("Size", 0)))

    # endregion

    # region: writes

    def put_object(
        self,
        key: str,
        body: BinaryIO,
        *,
        content_type: str,
        content_encoding: str | None = None,
    ) -> str:
        extra_args = {"ContentType": content_type}
        if content_encoding is not None:
            extra_args["ContentEncoding"] = content_encoding
        start = body.tell()
        with self._errors(key):
            for attempt in self._retrying():
                with attempt:
                    body.seek(start)
                    self._client.upload_fileobj(
                        body,
                        self._bucket,
                        key,
                        ExtraArgs=extra_args,
                        Config=self._transfer_config,
                    )
                    head = self._client.head_object(Bucket=self._bucket, Key=key)
            return str(head["ETag"])

    # endregion

    def close(self) -> None:
        if self._client_instance is not None:
            self._client_instance.close()
            self._client_instance = None
