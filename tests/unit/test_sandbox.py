from __future__ import annotations

from pathlib import Path

import pytest

from judgearena.engine.errors import InfrastructureError
from judgearena.engine.sandbox import acquire_sandbox


def test_each_job_gets_its_own_directory(tmp_path: Path) -> None:
    with acquire_sandbox(tmp_path) as first, acquire_sandbox(tmp_path) as second:
        assert first.workdir != second.workdir
        assert first.workdir.parent == tmp_path
        assert first.workdir.is_dir()


def test_directory_removed_on_success(tmp_path: Path) -> None:
    with acquire_sandbox(tmp_path) as job:
        job.source_path.write_text("int main(){}", encoding="utf-8")
        workdir = job.workdir
    assert not workdir.exists()


def test_directory_removed_on_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        with acquire_sandbox(tmp_path) as job:
            workdir = job.workdir
            raise ValueError("boom")
    assert not workdir.exists()
    assert list(tmp_path.iterdir()) == []


def test_prepare_input_writes_and_removes(tmp_path: Path) -> None:
    with acquire_sandbox(tmp_path) as job:
        assert job.prepare_input("1 2") is True
        assert job.input_path.read_text(encoding="utf-8") == "1 2"

        assert job.prepare_input(None) is False
        assert not job.input_path.exists()

        assert job.prepare_input("") is False
        assert not job.input_path.exists()


def test_unusable_base_dir_is_infrastructure_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(InfrastructureError):
        with acquire_sandbox(blocker / "sandbox"):
            pass
