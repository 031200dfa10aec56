"""Deploy a local directory tree to an object storage bucket."""

from s3_deploy._catalog import FileCatalog
from s3_deploy._client import CdnClient, StorageClient
from s3_deploy._config import DeployConfig, MaintenancePair
from s3_deploy._errors import (
    ConfigError,
    DeployError,
    InvalidationError,
    ScanError,
    SnapshotError,
    StorageError,
    UploadError,
)
from s3_deploy._events import DeployListener
from s3_deploy._invalidation import InvalidationPlanner
from s3_deploy._limiter import ConcurrencyLimiter
from s3_deploy._maintenance import MaintenanceSwap
from s3_deploy._models import (
    DeployReport,
    DeployRun,
    DeployState,
    FileDescriptor,
    RemoteObject,
    UploadResult,
)
from s3_deploy._orchestrator import DeployOrchestrator, deploy
from s3_deploy._path import remote_key
from s3_deploy._pipeline import UploadPipeline
from s3_deploy._registry import create_cdn_client, create_storage_client, register_storage_client
from s3_deploy._snapshot import RemoteStateSnapshot

__version__ = "0.1.0"

__all__ = [
    # Core
    "deploy",
    "DeployOrchestrator",
    "DeployListener",
    "DeployState",
    "DeployReport",
    "DeployRun",
    # Components
    "FileCatalog",
    "UploadPipeline",
    "ConcurrencyLimiter",
    "MaintenanceSwap",
    "RemoteStateSnapshot",
    "InvalidationPlanner",
    "remote_key",
    # Models
    "FileDescriptor",
    "UploadResult",
    "RemoteObject",
    # Config
    "DeployConfig",
    "MaintenancePair",
    # Clients
    "StorageClient",
    "CdnClient",
    "register_storage_client",
    "create_storage_client",
    "create_cdn_client",
    # Errors
    "DeployError",
    "ConfigError",
    "ScanError",
    "UploadError",
    "SnapshotError",
    "InvalidationError",
    "StorageError",
    # Version
    "__version__",
]
