"""Quickstart — deploy a small site to a local bucket directory.

Demonstrates:
- Building a DeployConfig for the local binding
- Running a deploy with a listener that prints progress
- Inspecting the returned DeployReport
"""

from __future__ import annotations

import pathlib
import tempfile

from s3_deploy import DeployConfig, DeployListener, FileDescriptor, UploadResult, deploy


class PrintListener(DeployListener):
    def on_upload(self, file: FileDescriptor, percent: float, result: UploadResult) -> None:
        print(f"{percent:5.1f}% {file.relative_key} -> {result.remote_key}")

    def on_complete(self, total_uploaded: int) -> None:
        print(f"{total_uploaded} files uploaded")


if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        site = pathlib.Path(tmp, "site")
        (site / "css").mkdir(parents=True)
        (site / "index.html").write_text("<h1>Hello</h1>")
        (site / "css" / "site.css").write_text("body { margin: 0 }")

        config = DeployConfig(
            backend="local",
            backend_options={"root": str(pathlib.Path(tmp, "bucket"))},
            local_dir=str(site),
            remote_dir="static",
            gzip_extensions=frozenset({"css", "html"}),
        )
        report = deploy(config, PrintListener())

        print(f"State: {report.state.value}")
        for result in report.results:
            print(f"  {result.remote_key}: {result.bytes_transferred} bytes, encoding={result.content_encoding}")
