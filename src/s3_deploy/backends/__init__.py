"""Storage and CDN bindings."""

from s3_deploy.backends._cloudfront import CloudFrontClient
from s3_deploy.backends._local import LocalStorageClient
from s3_deploy.backends._s3 import S3Client

__all__ = ["CloudFrontClient", "LocalStorageClient", "S3Client"]
