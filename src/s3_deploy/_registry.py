"""Registry — maps binding type names to storage and CDN client classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from s3_deploy._errors import ConfigError

if TYPE_CHECKING:
    from s3_deploy._client import CdnClient, StorageClient
    from s3_deploy._config import DeployConfig

# Global factory registry: maps type strings to storage client classes.
_STORAGE_FACTORIES: dict[str, type[StorageClient]] = {}


def register_storage_client(type_name: str, cls: type[StorageClient]) -> None:
    """Register a storage client class for a given type string.

    :param type_name: The type identifier (e.g. ``"local"``).
    :param cls: The client class; built through its ``from_config``.
    """
    _STORAGE_FACTORIES[type_name] = cls


def _register_builtin_clients() -> None:
    """Register the built-in bindings."""
    from s3_deploy.backends._local import LocalStorageClient
    from s3_deploy.backends._s3 import S3Client

    _STORAGE_FACTORIES.setdefault("local", LocalStorageClient)
    _STORAGE_FACTORIES.setdefault("s3", S3Client)


def registered_types() -> list[str]:
    _register_builtin_clients()
    return sorted(_STORAGE_FACTORIES)


def create_storage_client(config: DeployConfig) -> StorageClient:
    """Instantiate the storage binding named by ``config.backend``.

    :raises ConfigError: If the type is unknown or its options are invalid.
    """
    _register_builtin_clients()
    if config.backend not in _STORAGE_FACTORIES:
        raise ConfigError(
            f"Unknown storage backend '{config.backend}'. Registered types: {sorted(_STORAGE_FACTORIES)}"
        )
    factory = _STORAGE_FACTORIES[config.backend]
    try:
        return factory.from_config(config)
    except (TypeError, KeyError, ValueError) as exc:
        raise ConfigError(
            f"Invalid options for backend '{config.backend}': {exc}. "
            f"Provided options: {sorted(config.backend_options)}"
        ) from exc


def create_cdn_client(config: DeployConfig) -> CdnClient | None:
    """Instantiate the CloudFront binding when a distribution is configured."""
    if not config.cloudfront_distribution:
        return None
    from s3_deploy.backends._cloudfront import CloudFrontClient

    return CloudFrontClient.from_config(config)
