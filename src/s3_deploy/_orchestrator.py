"""DeployOrchestrator — sequences a whole deploy run."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from s3_deploy._catalog import FileCatalog
from s3_deploy._errors import DeployError
from s3_deploy._events import DeployListener
from s3_deploy._invalidation import InvalidationPlanner
from s3_deploy._limiter import ConcurrencyLimiter
from s3_deploy._maintenance import MaintenanceSwap
from s3_deploy._models import DeployReport, DeployRun, DeployState
from s3_deploy._pipeline import UploadPipeline
from s3_deploy._registry import create_cdn_client, create_storage_client
from s3_deploy._snapshot import RemoteStateSnapshot

if TYPE_CHECKING:
    from s3_deploy._client import CdnClient, StorageClient
    from s3_deploy._config import DeployConfig
    from s3_deploy._models import FileDescriptor, UploadResult
    from s3_deploy._types import RemoteObjectIndex

log = logging.getLogger(__name__)

T = TypeVar("T")


class DeployOrchestrator:
    """Runs scan, snapshot, uploads, maintenance swap and invalidation in order.

    Phases::

        SCANNING + SNAPSHOTTING_REMOTE (concurrent)
          -> UPLOADING_MAINTENANCE_STUB   (only with a maintenance swap)
          -> UPLOADING_BULK
          -> RESTORING_MAINTENANCE_ORIGINAL (only with a maintenance swap)
          -> INVALIDATING                 (only with a CDN and changed keys)
          -> COMPLETE | FAILED

    The first :class:`DeployError` moves the run to ``FAILED``; uploads that
    already completed are not rolled back.

    :param config: Resolved configuration, shared read-only by every phase.
    :param storage: Storage binding.
    :param cdn: CDN binding; invalidation needs it and ``config.cloudfront_distribution``.
    :param listener: Receives lifecycle events.
    :param catalog: Directory scanner (defaults to one using ``config.default_content_type``).
    """

    def __init__(
        self,
        config: DeployConfig,
        storage: StorageClient,
        cdn: CdnClient | None = None,
        listener: DeployListener | None = None,
        *,
        catalog: FileCatalog | None = None,
    ) -> None:
        self._config = config
        self._storage = storage
        self._cdn = cdn
        self._listener = listener or DeployListener()
        self._catalog = catalog or FileCatalog(config.default_content_type)
        self._pipeline = UploadPipeline(config, storage)

    @property
    def invalidates(self) -> bool:
        return self._cdn is not None and bool(self._config.cloudfront_distribution)

    def run(self) -> DeployReport:
        """Run a deploy to completion on a fresh event loop."""
        return asyncio.run(self.run_async())

    async def run_async(self) -> DeployReport:
        """Run a deploy to completion.

        Never raises :class:`DeployError`; failures are reported through
        ``listener.on_error`` and the returned report.
        """
        run = DeployRun(config=self._config)
        invalidation_id: str | None = None
        executor = ThreadPoolExecutor(
            max_workers=self._config.max_async_streams,
            thread_name_prefix="s3-deploy",
        )
        try:
            self._enter(run, DeployState.SCANNING)
            self._notify("on_start", self._config)
            index = await self._scan_and_snapshot(run, executor)

            run.maintenance = MaintenanceSwap.resolve(run.files, self._config.maintenance)
            swap = run.maintenance
            if swap is not None:
                self._enter(run, DeployState.UPLOADING_MAINTENANCE_STUB)
                stub_key = self._pipeline.remote_key_for(swap.original)
                log.info("Publishing maintenance stub %s at %s", swap.stub.relative_key, stub_key)
                await self._call(executor, lambda: self._pipeline.upload(swap.stub, remote_key=stub_key))

            self._enter(run, DeployState.UPLOADING_BULK)
            bulk = swap.bulk_files(run.files) if swap is not None else list(run.files)
            await self._upload_bulk(run, bulk, executor)

            if swap is not None:
                self._enter(run, DeployState.RESTORING_MAINTENANCE_ORIGINAL)
                run.attempted += 1
                result = await self._call(executor, lambda: self._pipeline.upload(swap.original))
                self._record(run, swap.original, result)

            if self.invalidates and index is not None:
                invalidation_id = await self._invalidate(run, index, executor)

            self._enter(run, DeployState.COMPLETE)
            log.info("Deploy complete: %d of %d files uploaded", run.succeeded, run.total)
            self._notify("on_complete", run.succeeded)
            return self._report(run, invalidation_id=invalidation_id)
        except DeployError as exc:
            failed_in = run.state
            self._enter(run, DeployState.FAILED)
            log.error("Deploy failed during %s: %s", failed_in.value, exc)
            self._notify("on_error", exc)
            return self._report(run, error=exc, failed_in=failed_in)
        finally:
            executor.shutdown(wait=True)

    # region: phases

    async def _scan_and_snapshot(self, run: DeployRun, executor: ThreadPoolExecutor) -> RemoteObjectIndex | None:
        """Scan the source tree and, when invalidating, snapshot the remote prefix.

        Both run concurrently; a scan failure takes precedence.
        """
        scan = self._call(executor, lambda: self._catalog.scan(self._config.local_dir))
        if not self.invalidates:
            run.files = await scan
            return None

        self._enter(run, DeployState.SNAPSHOTTING_REMOTE)
        snapshot = RemoteStateSnapshot(self._storage, self._config.remote_dir)
        files, index = await asyncio.gather(scan, self._call(executor, snapshot.capture), return_exceptions=True)
        if isinstance(files, BaseException):
            run.state = DeployState.SCANNING
            raise files
        if isinstance(index, BaseException):
            raise index
        run.files = files
        return index

    async def _upload_bulk(self, run: DeployRun, files: list[FileDescriptor], executor: ThreadPoolExecutor) -> None:
        limiter: ConcurrencyLimiter[FileDescriptor, UploadResult] = ConcurrencyLimiter(
            self._config.max_async_streams
        )

        async def upload(file: FileDescriptor) -> UploadResult:
            run.attempted += 1
            return await self._call(executor, lambda: self._pipeline.upload(file))

        log.info("Uploading %d files with up to %d streams", len(files), limiter.max_concurrency)
        await limiter.run(files, upload, lambda file, result: self._record(run, file, result))

    async def _invalidate(self, run: DeployRun, index: RemoteObjectIndex, executor: ThreadPoolExecutor) -> str | None:
        distribution = self._config.cloudfront_distribution
        if self._cdn is None or not distribution:
            return None
        planner = InvalidationPlanner(self._cdn, distribution)
        # The stub was served under the original's key, so that key is stale
        # even when the restored original matches the pre-deploy hash.
        always = [self._pipeline.remote_key_for(run.maintenance.original)] if run.maintenance else []
        if not planner.select_changed(index, run.results, always=always):
            log.info("No changed objects; skipping CDN invalidation")
            return None
        self._enter(run, DeployState.INVALIDATING)
        return await self._call(executor, lambda: planner.invalidate(index, run.results, always=always))

    # endregion

    # region: helpers

    @staticmethod
    async def _call(executor: ThreadPoolExecutor, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(executor, func)

    @staticmethod
    def _enter(run: DeployRun, state: DeployState) -> None:
        log.debug("Deploy state %s -> %s", run.state.value, state.value)
        run.state = state
        run.history.append(state)

    def _record(self, run: DeployRun, file: FileDescriptor, result: UploadResult) -> None:
        run.succeeded += 1
        run.results.append(result)
        self._notify("on_upload", file, run.percent_complete, result)

    def _notify(self, event: str, *args: Any) -> None:
        """Deliver a listener event; a failing listener is logged, never fatal."""
        try:
            getattr(self._listener, event)(*args)
        except Exception:
            log.exception("Deploy listener %s failed", event)

    @staticmethod
    def _report(run: DeployRun, **kwargs: Any) -> DeployReport:
        return DeployReport(
            state=run.state,
            uploaded=run.succeeded,
            total=run.total,
            results=tuple(run.results),
            **kwargs,
        )

    # endregion


def deploy(
    config: DeployConfig,
    listener: DeployListener | None = None,
    *,
    storage: StorageClient | None = None,
    cdn: CdnClient | None = None,
) -> DeployReport:
    """Validate ``config``, build its clients and run one deploy.

    :raises ConfigError: If the configuration is invalid.
    """
    config.validate()
    owned = storage is None
    client = storage if storage is not None else create_storage_client(config)
    try:
        if cdn is None:
            cdn = create_cdn_client(config)
        return DeployOrchestrator(config, client, cdn, listener).run()
    finally:
        if owned:
            client.close()
