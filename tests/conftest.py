from __future__ import annotations

import re
import shutil
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import pytest

from judgearena.api.app import create_app
from judgearena.engine.events import Event
from judgearena.engine.isolation import ExecutionLimits, ExecutionResult, IsolationProvider
from judgearena.engine.services import build_services
from judgearena.engine.storage import ContestStorage
from judgearena.models.models import TestCase
from judgearena.utils.config_manager import ConfigManager


@dataclass
class RecordedCall:
    command: List[str]
    limits: ExecutionLimits
    input_present: bool
    input_data: Optional[str] = None


class FakeIsolationProvider(IsolationProvider):
    """
    Interprets submissions instead of running containers.

    The "compiler" copies main.c to main.out. The "program" is the first
    word of the source: ``SUM`` prints the sum of the integers in
    input.txt, ``ECHO`` prints input.txt, ``PRINT <text>`` prints text,
    ``CRASH`` exits 1, ``OOM`` exits 137, ``TIMEOUT`` times out.
    ``COMPILE_ERROR`` and ``COMPILE_TIMEOUT`` fail at compile time.
    """

    def __init__(self) -> None:
        self.compile_calls: List[RecordedCall] = []
        self.run_calls: List[RecordedCall] = []
        self.fail_with: Optional[Exception] = None
        self.available = True
        self._lock = threading.Lock()

    @property
    def total_calls(self) -> int:
        return len(self.compile_calls) + len(self.run_calls)

    def ping(self) -> bool:
        return self.available

    def execute(self, workdir: Path, command: List[str], limits: ExecutionLimits) -> ExecutionResult:
        workdir = Path(workdir)
        input_path = workdir / "input.txt"
        input_data = input_path.read_text(encoding="utf-8") if input_path.exists() else None
        call = RecordedCall(list(command), limits, input_path.exists(), input_data)

        is_compile = "gcc" in " ".join(command)
        with self._lock:
            (self.compile_calls if is_compile else self.run_calls).append(call)

        if self.fail_with is not None:
            raise self.fail_with

        if is_compile:
            return self._compile(workdir)
        return self._run(workdir, input_data)

    def _compile(self, workdir: Path) -> ExecutionResult:
        source = (workdir / "main.c").read_text(encoding="utf-8")
        if source.startswith("COMPILE_TIMEOUT"):
            return ExecutionResult("", "timed out", None, timed_out=True)
        if source.startswith("COMPILE_ERROR"):
            return ExecutionResult("", "main.c:1:1: error: expected ';'", 1)
        shutil.copyfile(workdir / "main.c", workdir / "main.out")
        return ExecutionResult("", "", 0)

    def _run(self, workdir: Path, input_data: Optional[str]) -> ExecutionResult:
        program = (workdir / "main.out").read_text(encoding="utf-8")
        keyword, _, rest = program.partition(" ")
        keyword = keyword.strip()

        if keyword == "CRASH":
            return ExecutionResult("", "Segmentation fault", 1)
        if keyword == "OOM":
            return ExecutionResult("", "Killed", 137)
        if keyword == "TIMEOUT":
            return ExecutionResult("", "timed out", None, timed_out=True)
        if keyword == "SUM":
            numbers = [int(n) for n in re.findall(r"-?\d+", input_data or "")]
            return ExecutionResult(f"{sum(numbers)}\n", "", 0)
        if keyword == "ECHO":
            return ExecutionResult(input_data or "", "", 0)
        if keyword == "PRINT":
            return ExecutionResult(rest, "", 0)
        return ExecutionResult("", "", 0)


class RecordingSink:
    def __init__(self) -> None:
        self.events: List[Event] = []
        self._lock = threading.Lock()

    def __call__(self, event: Event) -> None:
        with self._lock:
            self.events.append(event)

    def names(self) -> List[str]:
        return [event.name for event in self.events]

    def of_type(self, event_type: type) -> List[Event]:
        return [event for event in self.events if isinstance(event, event_type)]


@pytest.fixture
def storage(tmp_path: Path):
    store = ContestStorage(str(tmp_path / "contest.duckdb"))
    yield store
    store.close()


@pytest.fixture
def provider() -> FakeIsolationProvider:
    return FakeIsolationProvider()


@pytest.fixture
def recorder() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def config(tmp_path: Path) -> ConfigManager:
    return ConfigManager(
        config_path=str(tmp_path / "absent.json"),
        overrides={
            "db": {"path": str(tmp_path / "contest.duckdb")},
            "sandbox": {"base_dir": str(tmp_path / "sandbox")},
            "auth": {
                "jwt_secret": "test-secret",
                "admin_user": "admin",
                "admin_password": "admin-pass",
                "participant_password": "contest",
            },
            "scoring": {"points_per_problem": 100},
        },
    )


@pytest.fixture
def services(config, provider, storage, recorder):
    contest_services = build_services(config, provider=provider, storage=storage)
    contest_services.dispatcher.subscribe(recorder)
    return contest_services


@pytest.fixture
def sandbox_dir(config) -> Path:
    return Path(config.get("sandbox.base_dir"))


@pytest.fixture
def app(services):
    flask_app = create_app(services=services)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def socket_client(app):
    sio_client = app.extensions["socketio"].test_client(app)
    yield sio_client
    if sio_client.is_connected():
        sio_client.disconnect()


@pytest.fixture
def sum_problem(services):
    """p1: print the sum of the numbers on the input line"""
    return services.storage.create_problem(
        "A+B",
        "Print the sum of two integers.",
        "Two integers",
        "Their sum",
        test_cases=[
            TestCase(expected_output="3", input_data="1 2"),
            TestCase(expected_output="12", input_data="5 7"),
        ],
    )
