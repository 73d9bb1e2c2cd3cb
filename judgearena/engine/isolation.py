"""
Isolation provider interface and the Docker adapter.

The judge never runs untrusted code directly. It hands a working directory
and a command to an ``IsolationProvider``, which enforces network, memory,
pid, output-size and wall-clock limits and reports what happened.
"""

import subprocess
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, List, Optional

from .errors import InfrastructureError
from ..utils.logger_config import get_logger

logger = get_logger("isolation")

# Exit status docker run uses when the daemon or the run itself failed
DOCKER_RUN_FAILURE = 125

READ_CHUNK_BYTES = 64 * 1024


@dataclass
class ExecutionLimits:
    timeout_s: float
    memory_mb: Optional[int] = None
    pids_limit: Optional[int] = None
    read_only: bool = False
    network: bool = False
    max_output_bytes: Optional[int] = None


@dataclass
class ExecutionResult:
    stdout: str
    stderr: str
    exit_code: Optional[int]
    timed_out: bool = False
    output_exceeded: bool = False


class CappedStreamReader:
    """
    Drains one pipe on a background thread, keeping at most ``limit`` bytes.

    When the limit is crossed ``on_overflow`` is called once and the rest
    of the stream is read and discarded so the writer never blocks.
    """

    def __init__(self, stream: IO[bytes], limit: Optional[int], on_overflow: Callable[[], None]):
        self.stream = stream
        self.limit = limit
        self.on_overflow = on_overflow
        self.exceeded = False
        self._chunks: List[bytes] = []
        self._size = 0
        self._thread = threading.Thread(target=self._drain, daemon=True)

    def start(self) -> "CappedStreamReader":
        self._thread.start()
        return self

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def text(self) -> str:
        return b"".join(self._chunks).decode("utf-8", errors="replace")

    def _drain(self) -> None:
        with self.stream:
            for chunk in iter(lambda: self.stream.read1(READ_CHUNK_BYTES), b""):
                if self.exceeded:
                    continue
                if self.limit is not None and self._size + len(chunk) > self.limit:
                    self._chunks.append(chunk[:self.limit - self._size])
                    self._size = self.limit
                    self.exceeded = True
                    self.on_overflow()
                    continue
                self._chunks.append(chunk)
                self._size += len(chunk)


class IsolationProvider(ABC):
    """Runs one command inside an isolated environment rooted at ``workdir``."""

    @abstractmethod
    def execute(self, workdir: Path, command: List[str], limits: ExecutionLimits) -> ExecutionResult:
        """
        Execute ``command`` with ``workdir`` as the only writable location.

        Returns an ``ExecutionResult`` for anything the command itself did,
        including timeouts and output floods. Raises ``InfrastructureError``
        when the command could not be started at all.
        """

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the provider is able to run commands."""


class DockerIsolationProvider(IsolationProvider):
    """Runs commands in throwaway containers through the docker CLI."""

    def __init__(self, image: str = "c-judge-env", docker_binary: str = "docker", container_workdir: str = "/app"):
        self.image = image
        self.docker_binary = docker_binary
        self.container_workdir = container_workdir
        logger.debug(f"Initialized Docker isolation provider with image {image}")

    def build_command(self, workdir: Path, command: List[str], limits: ExecutionLimits, container_name: str) -> List[str]:
        argv = [
            self.docker_binary, "run",
            "--rm",
            "--name", container_name,
            "-v", f"{Path(workdir).resolve()}:{self.container_workdir}",
            "--workdir", self.container_workdir,
            "--security-opt=no-new-privileges",
        ]
        if not limits.network:
            argv.append("--network=none")
        if limits.read_only:
            argv.append("--read-only")
        if limits.memory_mb:
            argv.extend([f"--memory={limits.memory_mb}m", f"--memory-swap={limits.memory_mb}m"])
        if limits.pids_limit:
            argv.append(f"--pids-limit={limits.pids_limit}")
        argv.append(self.image)
        argv.extend(command)
        return argv

    def execute(self, workdir: Path, command: List[str], limits: ExecutionLimits) -> ExecutionResult:
        container_name = f"judge-{uuid.uuid4().hex[:12]}"
        argv = self.build_command(workdir, command, limits, container_name)
        logger.debug(f"Running container {container_name}: {' '.join(command)}")

        try:
            # stdin is never attached: a program without input must see none
            process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise InfrastructureError(f"Unable to invoke {self.docker_binary}: {e}") from e

        def kill_client() -> None:
            try:
                process.kill()
            except OSError as e:
                logger.debug(f"docker client for {container_name} already gone: {e}")

        stdout = CappedStreamReader(process.stdout, limits.max_output_bytes, kill_client).start()
        stderr = CappedStreamReader(process.stderr, limits.max_output_bytes, kill_client).start()

        try:
            returncode = process.wait(timeout=limits.timeout_s)
        except subprocess.TimeoutExpired:
            # Killing the docker client leaves the container running
            kill_client()
            process.wait()
            self._force_remove(container_name)
            stdout.join(timeout=5)
            stderr.join(timeout=5)
            return ExecutionResult(stdout="", stderr="timed out", exit_code=None, timed_out=True)

        stdout.join()
        stderr.join()

        if stdout.exceeded or stderr.exceeded:
            logger.info(f"Container {container_name} exceeded the {limits.max_output_bytes} byte output limit")
            self._force_remove(container_name)
            return ExecutionResult(
                stdout=stdout.text(),
                stderr=stderr.text(),
                exit_code=returncode,
                output_exceeded=True,
            )

        if returncode == DOCKER_RUN_FAILURE:
            raise InfrastructureError(f"docker run failed: {stderr.text().strip()}")

        return ExecutionResult(
            stdout=stdout.text(),
            stderr=stderr.text(),
            exit_code=returncode,
        )

    def _force_remove(self, container_name: str) -> None:
        try:
            subprocess.run(
                [self.docker_binary, "rm", "-f", container_name],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Failed to remove container {container_name}: {e}")

    def ping(self) -> bool:
        try:
            completed = subprocess.run(
                [self.docker_binary, "image", "inspect", self.image],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired):
            return False
        return completed.returncode == 0
