"""Maintenance swap — keep a stub live at index.html while the rest uploads.

The stub is written under the original's key first, everything else is
uploaded, then the real index.html replaces the stub.
"""

from __future__ import annotations

import io
import pathlib
import tempfile
from typing import BinaryIO

from s3_deploy import DeployConfig, DeployOrchestrator, MaintenancePair
from s3_deploy.backends import LocalStorageClient


class TracingClient(LocalStorageClient):
    """Prints each write so the ordering is visible."""

    def put_object(
        self, key: str, body: BinaryIO, *, content_type: str, content_encoding: str | None = None
    ) -> str:
        data = body.read()
        print(f"write {key}: {data[:30]!r}")
        return super().put_object(key, io.BytesIO(data), content_type=content_type, content_encoding=content_encoding)


if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        site = pathlib.Path(tmp, "site")
        site.mkdir()
        (site / "index.html").write_text("<h1>The real site</h1>")
        (site / "maintenance.html").write_text("<h1>Back in a minute</h1>")
        for name in ("app.js", "vendor.js", "site.css"):
            (site / name).write_text(f"/* {name} */")

        config = DeployConfig(
            backend="local",
            local_dir=str(site),
            maintenance=MaintenancePair("index.html", "maintenance.html"),
            max_async_streams=2,
        )
        storage = TracingClient(str(pathlib.Path(tmp, "bucket")))
        report = DeployOrchestrator(config, storage).run()

        print(f"\n{report.uploaded}/{report.total} uploaded")
        print(f"index.html now: {storage.read_bytes('index.html')!r}")
