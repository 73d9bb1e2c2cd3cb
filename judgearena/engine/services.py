"""Construction of the engine object graph from configuration."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .admin import ContestAdministration
from .compiler import CompilerStage
from .contest import ContestStateMachine
from .events import EventDispatcher
from .first_blood import FirstBloodTracker
from .isolation import DockerIsolationProvider, IsolationProvider
from .judge import JudgePipeline
from .ledger import ProgressionLedger
from .runner import SandboxRunner
from .sequencer import TestCaseSequencer
from .sessions import SessionManager
from .storage import ContestStorage
from ..utils.config_manager import ConfigManager
from ..utils.logger_config import get_logger

logger = get_logger("services")


@dataclass
class ContestServices:
    config: ConfigManager
    storage: ContestStorage
    dispatcher: EventDispatcher
    provider: IsolationProvider
    contest: ContestStateMachine
    ledger: ProgressionLedger
    first_blood: FirstBloodTracker
    sessions: SessionManager
    judge: JudgePipeline
    admin: ContestAdministration

    def close(self) -> None:
        self.storage.close()


def build_services(
    config: Optional[ConfigManager] = None,
    provider: Optional[IsolationProvider] = None,
    storage: Optional[ContestStorage] = None,
) -> ContestServices:
    """
    Wire up every engine component.

    ``provider`` and ``storage`` default to the Docker adapter and the
    configured DuckDB file; tests pass their own.
    """
    config = config or ConfigManager()
    sandbox = config.get_section("sandbox")
    auth = config.get_section("auth")

    storage = storage or ContestStorage(config.get("db.path"))
    dispatcher = EventDispatcher()
    if provider is None:
        provider = DockerIsolationProvider(
            image=sandbox["docker_image"],
            docker_binary=sandbox["docker_binary"],
            container_workdir=sandbox["container_workdir"],
        )

    contest = ContestStateMachine(storage, dispatcher)
    ledger = ProgressionLedger(storage, dispatcher)
    first_blood = FirstBloodTracker(storage)

    compiler = CompilerStage(
        provider,
        compile_command=sandbox["compile_command"],
        timeout_s=sandbox["compile_timeout_s"],
        max_output_bytes=sandbox.get("max_output_bytes"),
    )
    runner = SandboxRunner(
        provider,
        timeout_s=sandbox["run_timeout_s"],
        memory_mb=sandbox["memory_mb"],
        pids_limit=sandbox.get("pids_limit"),
        max_output_bytes=sandbox.get("max_output_bytes"),
    )
    judge = JudgePipeline(
        storage=storage,
        contest=contest,
        ledger=ledger,
        first_blood=first_blood,
        dispatcher=dispatcher,
        compiler=compiler,
        sequencer=TestCaseSequencer(runner),
        sandbox_base_dir=Path(sandbox["base_dir"]),
        points_per_problem=config.get("scoring.points_per_problem", 100),
        source_filename=sandbox["source_filename"],
        artifact_filename=sandbox["artifact_filename"],
        input_filename=sandbox["input_filename"],
    )

    sessions = SessionManager(
        storage,
        dispatcher,
        jwt_secret=auth["jwt_secret"],
        jwt_algorithm=auth["jwt_algorithm"],
        token_expires_minutes=auth["token_expires_minutes"],
        admin_user=auth["admin_user"],
        admin_password=auth["admin_password"],
        participant_password=auth["participant_password"],
    )
    admin = ContestAdministration(storage, dispatcher, contest, ledger, provider)

    logger.info(f"Services ready (db={storage.db_path}, provider={type(provider).__name__})")
    return ContestServices(
        config=config,
        storage=storage,
        dispatcher=dispatcher,
        provider=provider,
        contest=contest,
        ledger=ledger,
        first_blood=first_blood,
        sessions=sessions,
        judge=judge,
        admin=admin,
    )
