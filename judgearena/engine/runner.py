from dataclasses import dataclass
from typing import List, Optional

from .errors import ExecutionError, InfrastructureError, RuntimeErrorKind
from .isolation import ExecutionLimits, IsolationProvider
from .sandbox import SandboxJob
from ..utils.logger_config import get_logger

logger = get_logger("runner")

# SIGKILL, which is what the kernel OOM killer sends inside a memory cgroup
OOM_KILLED_STATUS = 137


@dataclass
class RunOutcome:
    stdout: str
    exit_status: int


class SandboxRunner:
    """Runs a compiled artifact against one test case under resource limits."""

    def __init__(
        self,
        provider: IsolationProvider,
        timeout_s: float = 2,
        memory_mb: int = 64,
        pids_limit: Optional[int] = 64,
        max_output_bytes: Optional[int] = 1024 * 1024,
    ):
        self.provider = provider
        self.limits = ExecutionLimits(
            timeout_s=timeout_s,
            memory_mb=memory_mb,
            pids_limit=pids_limit,
            read_only=True,
            network=False,
            max_output_bytes=max_output_bytes,
        )

    def build_command(self, job: SandboxJob, has_input: bool) -> List[str]:
        executable = f"./{job.artifact_filename}"
        if has_input:
            return ["sh", "-c", f"{executable} < {job.input_filename}"]
        return [executable]

    def run(self, job: SandboxJob, input_data: Optional[str]) -> RunOutcome:
        try:
            has_input = job.prepare_input(input_data)
        except OSError as e:
            raise InfrastructureError(f"Failed to prepare input file: {e}") from e

        result = self.provider.execute(job.workdir, self.build_command(job, has_input), self.limits)

        if result.timed_out:
            raise ExecutionError(RuntimeErrorKind.TIMEOUT, detail=result.stderr)
        if result.output_exceeded:
            raise ExecutionError(RuntimeErrorKind.RESOURCE_LIMIT, detail="output limit exceeded", exit_status=result.exit_code)
        if result.exit_code == OOM_KILLED_STATUS:
            raise ExecutionError(RuntimeErrorKind.RESOURCE_LIMIT, detail=result.stderr, exit_status=result.exit_code)
        if result.exit_code != 0:
            raise ExecutionError(RuntimeErrorKind.CRASH, detail=result.stderr, exit_status=result.exit_code)

        return RunOutcome(stdout=result.stdout, exit_status=result.exit_code)
