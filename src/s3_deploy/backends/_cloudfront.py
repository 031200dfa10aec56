"""CloudFront invalidation binding using boto3."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from s3_deploy._client import CdnClient
from s3_deploy._errors import StorageError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from s3_deploy._config import DeployConfig


class CloudFrontClient(CdnClient):
    """Creates CloudFront invalidations.

    :param key: AWS access key ID.
    :param secret: AWS secret access key.
    :param region_name: AWS region name.
    :param client: Pre-built boto3 CloudFront client (takes precedence).
    """

    def __init__(
        self,
        *,
        key: str | None = None,
        secret: str | None = None,
        region_name: str | None = None,
        client: Any = None,
    ) -> None:
        self._key = key
        self._secret = secret
        self._region_name = region_name
        self._client_instance = client

    @classmethod
    def from_config(cls, config: DeployConfig) -> CloudFrontClient:
        return cls(key=config.access_key_id, secret=config.secret_access_key, region_name=config.region)

    @property
    def _client(self) -> Any:
        if self._client_instance is None:
            import boto3

            opts: dict[str, Any] = {}
            if self._key is not None:
                opts["aws_access_key_id"] = self._key
            if self._secret is not None:
                opts["aws_secret_access_key"] = self._secret
            if self._region_name is not None:
                opts["region_name"] = self._region_name
            self._client_instance = boto3.client("cloudfront", **opts)
        return self._client_instance

    def create_invalidation(self, distribution_id: str, paths: Sequence[str], caller_reference: str) -> str:
        try:
            response = self._client.create_invalidation(
                DistributionId=distribution_id,
                InvalidationBatch={
                    "Paths": {"Quantity": len(paths), "Items": list(paths)},
                    "CallerReference": caller_reference,
                },
            )
        except Exception as exc:
            raise StorageError(str(exc), key=distribution_id, backend="cloudfront") from exc
        return str(response["Invalidation"]["Id"])
