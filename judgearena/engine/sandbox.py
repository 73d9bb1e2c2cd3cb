"""Scoped working directories for submission evaluation."""

import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .errors import InfrastructureError
from ..utils.logger_config import get_logger

logger = get_logger("sandbox")


@dataclass
class SandboxJob:
    """Files owned by exactly one evaluation."""

    workdir: Path
    source_filename: str = "main.c"
    artifact_filename: str = "main.out"
    input_filename: str = "input.txt"

    @property
    def source_path(self) -> Path:
        return self.workdir / self.source_filename

    @property
    def artifact_path(self) -> Path:
        return self.workdir / self.artifact_filename

    @property
    def input_path(self) -> Path:
        return self.workdir / self.input_filename

    def prepare_input(self, input_data: Optional[str]) -> bool:
        """
        Remove any input file left by a previous run, then write the new one.

        Returns True when the program should be fed an input file.
        """
        self.input_path.unlink(missing_ok=True)
        if not input_data:
            return False
        self.input_path.write_text(input_data, encoding="utf-8")
        return True


@contextmanager
def acquire_sandbox(
    base_dir: Path,
    source_filename: str = "main.c",
    artifact_filename: str = "main.out",
    input_filename: str = "input.txt",
) -> Iterator[SandboxJob]:
    """Create a unique job directory under ``base_dir`` and always delete it."""
    try:
        base_dir.mkdir(parents=True, exist_ok=True)
        workdir = Path(tempfile.mkdtemp(prefix="job-", dir=base_dir))
    except OSError as e:
        raise InfrastructureError(f"Failed to create sandbox directory under {base_dir}: {e}") from e

    logger.debug(f"Acquired sandbox {workdir}")
    try:
        yield SandboxJob(
            workdir=workdir,
            source_filename=source_filename,
            artifact_filename=artifact_filename,
            input_filename=input_filename,
        )
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
        if workdir.exists():
            logger.error(f"Failed to delete sandbox {workdir}")
        else:
            logger.debug(f"Released sandbox {workdir}")
