from pathlib import Path
from typing import Optional

from .errors import CompileError, InfrastructureError
from .isolation import ExecutionLimits, IsolationProvider
from .sandbox import SandboxJob
from ..utils.logger_config import get_logger

logger = get_logger("compiler")


class CompilerStage:
    """
    Turns submitted source into an executable inside the job directory.

    Compilation runs through the isolation provider with networking
    disabled. A timeout is reported as an ordinary ``CompileError``.
    """

    def __init__(
        self,
        provider: IsolationProvider,
        compile_command: str = "gcc main.c -o main.out && chmod +x main.out",
        timeout_s: float = 5,
        max_output_bytes: Optional[int] = 1024 * 1024,
    ):
        self.provider = provider
        self.compile_command = compile_command
        self.timeout_s = timeout_s
        self.max_output_bytes = max_output_bytes

    def compile(self, job: SandboxJob, source_code: str) -> Path:
        try:
            job.source_path.write_text(source_code, encoding="utf-8")
        except OSError as e:
            raise InfrastructureError(f"Failed to write source file: {e}") from e

        limits = ExecutionLimits(timeout_s=self.timeout_s, network=False, max_output_bytes=self.max_output_bytes)
        result = self.provider.execute(job.workdir, ["sh", "-c", self.compile_command], limits)

        if result.timed_out:
            logger.info(f"Compilation timed out after {self.timeout_s}s")
            raise CompileError("compilation timed out", timed_out=True)
        if result.output_exceeded:
            logger.info("Compiler output exceeded the output limit")
            raise CompileError(result.stderr)
        if result.exit_code != 0:
            logger.info(f"Compilation failed: {result.stderr.strip()}")
            raise CompileError(result.stderr)
        if not job.artifact_path.exists():
            raise InfrastructureError(f"Compiler reported success but {job.artifact_filename} is missing")

        return job.artifact_path
