"""Local bucket binding tests."""

from __future__ import annotations

import hashlib
import io
from typing import TYPE_CHECKING

import pytest

from s3_deploy._config import DeployConfig
from s3_deploy._errors import ConfigError, StorageError
from s3_deploy.backends._local import LocalStorageClient

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def client(tmp_path: Path) -> LocalStorageClient:
    return LocalStorageClient(str(tmp_path / "bucket"))


class TestConstruction:
    def test_creates_root(self, tmp_path: Path) -> None:
        LocalStorageClient(str(tmp_path / "new" / "bucket"))
        assert (tmp_path / "new" / "bucket").is_dir()

    def test_name(self, client: LocalStorageClient) -> None:
        assert client.name == "local"

    def test_from_config_root_option(self, tmp_path: Path) -> None:
        c = LocalStorageClient.from_config(DeployConfig(backend="local", backend_options={"root": str(tmp_path)}))
        assert c.root == tmp_path.resolve()

    def test_from_config_bucket_as_path(self, tmp_path: Path) -> None:
        c = LocalStorageClient.from_config(DeployConfig(backend="local", bucket=str(tmp_path)))
        assert c.root == tmp_path.resolve()

    def test_from_config_without_root(self) -> None:
        with pytest.raises(ConfigError):
            LocalStorageClient.from_config(DeployConfig(backend="local"))


class TestWrites:
    def test_etag_is_quoted_md5(self, client: LocalStorageClient) -> None:
        etag = client.put_object("a.txt", io.BytesIO(b"hello"), content_type="text/plain")
        assert etag == f'"{hashlib.md5(b"hello").hexdigest()}"'

    def test_nested_key(self, client: LocalStorageClient) -> None:
        client.put_object("a/b/c.txt", io.BytesIO(b"x"), content_type="text/plain")
        assert (client.root / "a" / "b" / "c.txt").read_bytes() == b"x"

    def test_metadata(self, client: LocalStorageClient) -> None:
        client.put_object("a.css", io.BytesIO(b"x"), content_type="text/css", content_encoding="gzip")
        assert client.get_metadata("a.css") == {"content_type": "text/css", "content_encoding": "gzip"}

    def test_metadata_missing(self, client: LocalStorageClient) -> None:
        with pytest.raises(StorageError):
            client.get_metadata("never.txt")

    def test_read_missing(self, client: LocalStorageClient) -> None:
        with pytest.raises(StorageError):
            client.read_bytes("never.txt")

    def test_key_escaping_root(self, client: LocalStorageClient) -> None:
        with pytest.raises(StorageError) as exc_info:
            client.put_object("../outside.txt", io.BytesIO(b"x"), content_type="text/plain")
        assert exc_info.value.backend == "local"

    def test_no_temp_files_left(self, client: LocalStorageClient) -> None:
        client.put_object("a.txt", io.BytesIO(b"x"), content_type="text/plain")
        assert [p.name for p in client.root.iterdir()] == ["a.txt"]
