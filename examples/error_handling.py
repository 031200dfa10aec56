"""Error handling — configuration errors raise, run failures are reported.

Demonstrates the error hierarchy and the structured attributes
(``path``, ``key``) carried by each error.
"""

from __future__ import annotations

import pathlib
import tempfile

from s3_deploy import ConfigError, DeployConfig, DeployError, DeployListener, ScanError, deploy


class ErrorListener(DeployListener):
    def on_error(self, error: Exception) -> None:
        print(f"on_error: {type(error).__name__}: {error}")


if __name__ == "__main__":
    # --- ConfigError: raised before anything runs ---
    try:
        deploy(DeployConfig(bucket=""))
    except ConfigError as exc:
        print(f"ConfigError: {exc}")

    try:
        DeployConfig.from_env({"S3_MAX_ASYNC_STREAMS": "lots"})
    except ConfigError as exc:
        print(f"ConfigError: {exc}")

    # --- ScanError: the run fails and reports instead of raising ---
    with tempfile.TemporaryDirectory() as tmp:
        config = DeployConfig(
            backend="local",
            backend_options={"root": str(pathlib.Path(tmp, "bucket"))},
            local_dir=str(pathlib.Path(tmp, "does-not-exist")),
        )
        report = deploy(config, ErrorListener())
        print(f"\nsuccess={report.success}, failed_in={report.failed_in.value if report.failed_in else None}")
        if isinstance(report.error, ScanError):
            print(f"  path={report.error.path}")

    # --- Catch-all ---
    try:
        DeployConfig(remote_dir="../outside").validate()
    except DeployError as exc:
        print(f"\nDeployError ({type(exc).__name__}): {exc}")
