"""Tests for descriptors, run state and reports."""

from __future__ import annotations

import dataclasses

import pytest

from s3_deploy._config import DeployConfig
from s3_deploy._models import (
    DeployReport,
    DeployRun,
    DeployState,
    FileDescriptor,
    UploadResult,
)


def _file(key: str) -> FileDescriptor:
    return FileDescriptor(
        full_path=f"/src/{key}", relative_key=key, extension="txt", mime_type="text/plain", size_bytes=1
    )


class TestFileDescriptor:
    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            _file("a.txt").relative_key = "b.txt"  # type: ignore[misc]

    def test_equality(self) -> None:
        assert _file("a.txt") == _file("a.txt")


class TestUploadResult:
    def test_defaults(self) -> None:
        r = UploadResult(remote_key="a.txt", content_hash='"abc"', bytes_transferred=3)
        assert r.content_encoding is None


class TestDeployState:
    @pytest.mark.parametrize("state", [DeployState.COMPLETE, DeployState.FAILED])
    def test_terminal(self, state: DeployState) -> None:
        assert state.is_terminal

    def test_non_terminal(self) -> None:
        assert not any(s.is_terminal for s in DeployState if s not in (DeployState.COMPLETE, DeployState.FAILED))


class TestDeployRun:
    def test_initial_state(self) -> None:
        run = DeployRun(config=DeployConfig())
        assert run.state is DeployState.IDLE
        assert run.attempted == run.succeeded == 0
        assert run.history == []

    def test_percent_complete(self) -> None:
        run = DeployRun(config=DeployConfig(), files=[_file("a"), _file("b"), _file("c"), _file("d")])
        run.succeeded = 1
        assert run.total == 4
        assert run.percent_complete == 25.0

    def test_percent_with_no_files(self) -> None:
        assert DeployRun(config=DeployConfig()).percent_complete == 100.0


class TestDeployReport:
    def test_success(self) -> None:
        assert DeployReport(state=DeployState.COMPLETE, uploaded=2, total=2).success

    def test_failure(self) -> None:
        report = DeployReport(
            state=DeployState.FAILED,
            uploaded=1,
            total=2,
            error=RuntimeError("x"),
            failed_in=DeployState.UPLOADING_BULK,
        )
        assert not report.success
        assert report.failed_in is DeployState.UPLOADING_BULK
