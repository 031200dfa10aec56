"""Configuration model — one immutable value describing a deploy run."""

from __future__ import annotations

import dataclasses
import types
from typing import TYPE_CHECKING, Any

from s3_deploy._errors import ConfigError
from s3_deploy._path import normalize_prefix

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

MIB = 1024 * 1024

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclasses.dataclass(frozen=True)
class MaintenancePair:
    """A file published under its own key only after the rest of the deploy.

    :param original: Relative path of the file kept behind the stub.
    :param stub: Relative path of the placeholder served meanwhile.
    """

    original: str
    stub: str

    @classmethod
    def parse(cls, raw: str) -> MaintenancePair:
        """Parse an ``"original,stub"`` string.

        :raises ConfigError: If the value does not hold exactly two non-empty paths.
        """
        parts = [p.strip() for p in raw.split(",")]
        if len(parts) != 2 or not all(parts):
            raise ConfigError(f"Maintenance pair must be 'original,stub', got {raw!r}")
        return cls(original=parts[0], stub=parts[1])


def parse_extensions(values: Iterable[str] | str) -> frozenset[str]:
    """Normalize a gzip extension list to lower-case names without dots.

    Accepts a comma-separated string or an iterable; empty entries are dropped.
    """
    if isinstance(values, str):
        values = values.split(",")
    return frozenset(v.strip().lstrip(".").lower() for v in values if v.strip().lstrip("."))


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


@dataclasses.dataclass(frozen=True)
class DeployConfig:
    """Resolved settings for one deploy run.

    Construct once per run and pass it to every component; use
    :meth:`merged` to layer overrides on top of defaults.

    :param bucket: Destination bucket.
    :param local_dir: Source root scanned by the catalog.
    :param remote_dir: Key prefix applied to every remote key.
    :param region: Provider region.
    :param access_key_id: Provider access key.
    :param secret_access_key: Provider secret key.
    :param endpoint_url: Custom endpoint (e.g. MinIO).
    :param max_async_streams: Maximum simultaneous uploads.
    :param upload_concurrent_parts: Parts sent concurrently per multipart upload.
    :param upload_max_part_size: Part size override for multipart uploads.
    :param default_content_type: MIME type used when lookup fails.
    :param gzip_level: Compression level, 0-9.
    :param gzip_extensions: Extensions that are uploaded gzip-compressed.
    :param retry_count: Retries performed by the storage client per request.
    :param retry_delay: Seconds between storage client retries.
    :param multipart_upload_threshold: Size above which uploads go multipart.
    :param multipart_upload_size: Default multipart part size.
    :param cloudfront_distribution: CDN distribution to invalidate, if any.
    :param maintenance: Maintenance swap pair, if any.
    :param backend: Storage binding type (``"s3"`` or ``"local"``).
    :param backend_options: Binding-specific options, stored as a read-only copy.
    :param verbose: Emit per-object details on the command line.
    """

    bucket: str = ""
    local_dir: str = "."
    remote_dir: str = ""
    region: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    endpoint_url: str | None = None
    max_async_streams: int = 20
    upload_concurrent_parts: int = 10
    upload_max_part_size: int | None = None
    default_content_type: str = DEFAULT_CONTENT_TYPE
    gzip_level: int = 9
    gzip_extensions: frozenset[str] = frozenset()
    retry_count: int = 3
    retry_delay: float = 1.0
    multipart_upload_threshold: int = 20 * MIB
    multipart_upload_size: int = 15 * MIB
    cloudfront_distribution: str | None = None
    maintenance: MaintenancePair | None = None
    backend: str = "s3"
    backend_options: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    verbose: bool = False

    def __post_init__(self) -> None:
        # Own a read-only copy; copies made by merged() must not share it.
        object.__setattr__(self, "backend_options", types.MappingProxyType(dict(self.backend_options)))

    @property
    def key_prefix(self) -> str:
        """Normalized ``remote_dir``."""
        return normalize_prefix(self.remote_dir)

    @property
    def part_size(self) -> int:
        """Multipart part size handed to the storage client."""
        return self.upload_max_part_size or self.multipart_upload_size

    def merged(self, **overrides: Any) -> DeployConfig:
        """Return a copy with every non-empty override applied.

        ``None``, empty strings and empty collections leave the current
        value in place.

        :raises TypeError: If an override names an unknown field.
        """
        names = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - names)
        if unknown:
            raise TypeError(f"Unknown config fields: {unknown}")
        changes = {k: v for k, v in overrides.items() if not _is_empty(v)}
        if "gzip_extensions" in changes:
            changes["gzip_extensions"] = parse_extensions(changes["gzip_extensions"])
        if isinstance(changes.get("maintenance"), str):
            changes["maintenance"] = MaintenancePair.parse(changes["maintenance"])
        return dataclasses.replace(self, **changes)

    def validate(self) -> None:
        """Check the settings a run depends on.

        :raises ConfigError: On the first invalid setting.
        """
        if self.backend == "s3" and not self.bucket.strip():
            raise ConfigError("bucket must be a non-empty string")
        if self.max_async_streams < 1:
            raise ConfigError(f"max_async_streams must be >= 1, got {self.max_async_streams}")
        if self.upload_concurrent_parts < 1:
            raise ConfigError(f"upload_concurrent_parts must be >= 1, got {self.upload_concurrent_parts}")
        if not 0 <= self.gzip_level <= 9:
            raise ConfigError(f"gzip_level must be between 0 and 9, got {self.gzip_level}")
        if self.retry_count < 0 or self.retry_delay < 0:
            raise ConfigError("retry_count and retry_delay must not be negative")
        if self.multipart_upload_threshold <= 0 or self.part_size <= 0:
            raise ConfigError("multipart sizes must be positive")
        normalize_prefix(self.remote_dir)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DeployConfig:
        """Construct from a plain dict (e.g. parsed TOML/JSON).

        Keys may be snake_case field names or camelCase option names
        (``localDir``, ``gzipExtensions``...). The camelCase ``retryDelay``
        is given in milliseconds.

        :raises ConfigError: If a key is not a known option.
        """
        overrides: dict[str, Any] = {}
        for raw_key, value in data.items():
            name = _CAMEL_ALIASES.get(raw_key, raw_key)
            if name not in _FIELD_NAMES:
                raise ConfigError(f"Unknown config option {raw_key!r}")
            if raw_key == "retryDelay":
                value = float(value) / 1000.0
            overrides[name] = value
        maintenance = overrides.get("maintenance")
        if isinstance(maintenance, (list, tuple)):
            if len(maintenance) != 2:
                raise ConfigError("maintenance must name exactly two paths")
            overrides["maintenance"] = MaintenancePair(str(maintenance[0]), str(maintenance[1]))
        elif isinstance(maintenance, dict):
            overrides["maintenance"] = MaintenancePair(str(maintenance["original"]), str(maintenance["stub"]))
        return cls().merged(**overrides)

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> DeployConfig:
        """Construct from environment variables (``S3_BUCKET``, ``S3_PREFIX``...).

        Unset or empty variables keep the defaults.

        :raises ConfigError: If a numeric variable does not parse.
        """
        overrides: dict[str, Any] = {}
        for var, (name, convert) in _ENV_VARS.items():
            raw = environ.get(var, "").strip()
            if not raw:
                continue
            try:
                overrides[name] = convert(raw)
            except ValueError as exc:
                raise ConfigError(f"Invalid value for {var}: {raw!r}") from exc
        local_root = environ.get("S3_LOCAL_ROOT", "").strip()
        if local_root:
            overrides["backend_options"] = {"root": local_root}
        return cls().merged(**overrides)


def _flag(raw: str) -> bool:
    return raw.lower() in ("1", "true", "yes", "on")


def _millis(raw: str) -> float:
    return int(raw) / 1000.0


_ENV_VARS: dict[str, tuple[str, Any]] = {
    "S3_REGION": ("region", str),
    "S3_ACCESS_KEY_ID": ("access_key_id", str),
    "S3_SECRET_ACCESS_KEY": ("secret_access_key", str),
    "S3_ENDPOINT": ("endpoint_url", str),
    "S3_BUCKET": ("bucket", str),
    "S3_LOCAL_DIR": ("local_dir", str),
    "S3_PREFIX": ("remote_dir", str),
    "S3_MAX_ASYNC_STREAMS": ("max_async_streams", int),
    "S3_UPLOAD_CONCURRENT_PARTS": ("upload_concurrent_parts", int),
    "UPLOAD_MAX_PART_SIZE": ("upload_max_part_size", int),
    "S3_DEFAULT_CONTENT_TYPE": ("default_content_type", str),
    "S3_GZIP_LEVEL": ("gzip_level", int),
    "S3_GZIP_EXTENSIONS": ("gzip_extensions", parse_extensions),
    "S3_RETRY_COUNT": ("retry_count", int),
    "S3_RETRY_DELAY": ("retry_delay", _millis),
    "S3_MULTIPART_UPLOAD_THRESHOLD": ("multipart_upload_threshold", int),
    "S3_MULTIPART_UPLOAD_SIZE": ("multipart_upload_size", int),
    "S3_CLOUDFRONT_DISTRIBUTION": ("cloudfront_distribution", str),
    "S3_REPLACE_UNTIL_MAINTENANCE": ("maintenance", MaintenancePair.parse),
    "S3_BACKEND": ("backend", str),
    "S3_VERBOSE": ("verbose", _flag),
}

_CAMEL_ALIASES = {
    "accessKeyId": "access_key_id",
    "secretAccessKey": "secret_access_key",
    "endpoint": "endpoint_url",
    "localDir": "local_dir",
    "remoteDir": "remote_dir",
    "maxAsyncStreams": "max_async_streams",
    "uploadConcurrentParts": "upload_concurrent_parts",
    "uploadMaxPartSize": "upload_max_part_size",
    "defaultContentType": "default_content_type",
    "gzipLevel": "gzip_level",
    "gzipExtensions": "gzip_extensions",
    "retryCount": "retry_count",
    "retryDelay": "retry_delay",
    "multipartUploadThreshold": "multipart_upload_threshold",
    "multipartUploadSize": "multipart_upload_size",
    "cloudFrontDistribution": "cloudfront_distribution",
    "replaceUntilMaintenance": "maintenance",
}

_FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(DeployConfig))
