"""Binding test fixtures -- parameterized for conformance testing."""

from __future__ import annotations

import socket
import tempfile
import uuid
from typing import TYPE_CHECKING

import pytest

from s3_deploy.backends._local import LocalStorageClient

if TYPE_CHECKING:
    from collections.abc import Iterator

    from s3_deploy._client import StorageClient

REGION = "us-east-1"


def _s3_available() -> bool:
    try:
        import boto3  # noqa: F401
        import moto  # noqa: F401

        return True
    except ImportError:
        return False


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("", 0))
        return s.getsockname()[1]


@pytest.fixture(scope="session")
def moto_server() -> Iterator[str | None]:
    """Start a moto HTTP server for the test session."""
    if not _s3_available():
        yield None
        return
    from moto.moto_server.threaded_moto_server import ThreadedMotoServer

    port = _free_port()
    server = ThreadedMotoServer(port=port, verbose=False)
    server.start()
    yield f"http://127.0.0.1:{port}"
    server.stop()


@pytest.fixture
def s3_bucket(moto_server: str | None) -> str:
    """Create a fresh bucket on the moto server and return its name."""
    if moto_server is None:
        pytest.skip("moto/boto3 not installed")
    import boto3

    bucket = f"deploy-{uuid.uuid4().hex[:8]}"
    boto3.client(
        "s3",
        endpoint_url=moto_server,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name=REGION,
    ).create_bucket(Bucket=bucket)
    return bucket


_s3_param = pytest.param(
    "s3",
    marks=pytest.mark.skipif(not _s3_available(), reason="moto/boto3 not installed"),
)


@pytest.fixture(params=["local", _s3_param])
def storage(request: pytest.FixtureRequest, moto_server: str | None) -> Iterator[StorageClient]:
    """Parameterized storage binding fixture. Add new bindings here."""
    if request.param == "local":
        with tempfile.TemporaryDirectory() as tmp:
            yield LocalStorageClient(root=tmp)
    elif request.param == "s3":
        import boto3

        from s3_deploy.backends._s3 import S3Client

        assert moto_server is not None
        bucket = f"conformance-{uuid.uuid4().hex[:8]}"
        boto3.client(
            "s3",
            endpoint_url=moto_server,
            aws_access_key_id="testing",
            aws_secret_access_key="testing",
            region_name=REGION,
        ).create_bucket(Bucket=bucket)
        client = S3Client(
            bucket=bucket,
            key="testing",
            secret="testing",
            region_name=REGION,
            endpoint_url=moto_server,
            retry_count=0,
        )
        yield client
        client.close()
    else:
        pytest.skip(f"Unknown binding: {request.param}")
