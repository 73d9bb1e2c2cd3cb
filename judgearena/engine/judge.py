from pathlib import Path

from .compiler import CompilerStage
from .contest import ContestStateMachine
from .errors import (
    CompileError, ExecutionError, InfrastructureError, RuntimeErrorKind,
    SequenceViolation, SequenceViolationKind, StateViolation,
    UnknownParticipant, UnknownProblem, WrongAnswer
)
from .events import DashboardRefresh, EventDispatcher, FirstBloodAlert
from .first_blood import FirstBloodTracker
from .ledger import ProgressionLedger
from .sandbox import acquire_sandbox
from .sequencer import TestCaseSequencer
from .storage import ContestStorage
from ..models.models import Participant, Problem, SubmissionStatus, Verdict
from ..utils.logger_config import get_logger

logger = get_logger("judge")

MSG_ACCEPTED = "정답입니다! ({passed}/{total} 통과)"
MSG_COMPILE_ERROR = "컴파일 에러"
MSG_WRONG_ANSWER = "틀렸습니다 (TC {index}/{total} 실패)"
MSG_RUNTIME_TIMEOUT = "런타임 에러 (시간 초과) - TC {index}"
MSG_RUNTIME_MEMORY = "런타임 에러 (메모리 초과) - TC {index}"
MSG_RUNTIME_ERROR = "런타임 에러 - TC {index}"
MSG_ALREADY_SOLVED = "이미 해결한 문제입니다."
MSG_OUT_OF_ORDER = "순서대로 문제를 풀어야 합니다."
MSG_SERVER_ERROR = "채점 중 서버 오류가 발생했습니다."
MSG_NOT_IN_PROGRESS = "대회가 진행 중이 아닙니다."
MSG_NO_TEST_CASES = "채점 기준(테스트 케이스)이 없습니다."

FIRST_BLOOD_ALERT_TYPE = "firstblood"


class JudgePipeline:
    """
    Evaluates one submission end to end and returns a Verdict.

    Admission checks run first and never touch the sandbox. Once judging
    has started, every outcome appends a contest log line and triggers a
    dashboard refresh, and the job directory is removed on every path.
    """

    def __init__(
        self,
        storage: ContestStorage,
        contest: ContestStateMachine,
        ledger: ProgressionLedger,
        first_blood: FirstBloodTracker,
        dispatcher: EventDispatcher,
        compiler: CompilerStage,
        sequencer: TestCaseSequencer,
        sandbox_base_dir: Path,
        points_per_problem: int = 100,
        source_filename: str = "main.c",
        artifact_filename: str = "main.out",
        input_filename: str = "input.txt",
    ):
        self.storage = storage
        self.contest = contest
        self.ledger = ledger
        self.first_blood = first_blood
        self.dispatcher = dispatcher
        self.compiler = compiler
        self.sequencer = sequencer
        self.sandbox_base_dir = Path(sandbox_base_dir)
        self.points_per_problem = points_per_problem
        self.source_filename = source_filename
        self.artifact_filename = artifact_filename
        self.input_filename = input_filename

    def evaluate(self, participant_id: str, problem_id: str, source_code: str) -> Verdict:
        """
        Judge ``source_code`` for ``problem_id`` on behalf of ``participant_id``.

        Raises UnknownParticipant / UnknownProblem for ids that do not
        exist, including a participant removed while being judged. Every
        other outcome, including infrastructure failures, is reported
        through the returned Verdict.
        """
        logger.info(f"Submission received from {participant_id} for problem {problem_id}")

        try:
            self.contest.require_in_progress()
        except StateViolation as e:
            logger.info(f"Rejected submission from {participant_id}: {e}")
            return Verdict(False, MSG_NOT_IN_PROGRESS, SubmissionStatus.NOT_IN_PROGRESS)

        participant = self.ledger.get(participant_id)
        if participant is None:
            raise UnknownParticipant(participant_id)

        problem = self.storage.get_problem(problem_id)
        if problem is None:
            raise UnknownProblem(problem_id)

        try:
            self._check_sequence(participant, problem)
        except SequenceViolation as e:
            logger.info(f"Rejected submission from {participant_id}: {e}")
            if e.kind == SequenceViolationKind.ALREADY_SOLVED:
                return Verdict(False, MSG_ALREADY_SOLVED, SubmissionStatus.ALREADY_SOLVED)
            return Verdict(False, MSG_OUT_OF_ORDER, SubmissionStatus.OUT_OF_ORDER)

        if not problem.test_cases:
            logger.warning(f"Problem {problem.id} has no test cases")
            return Verdict(False, MSG_NO_TEST_CASES, SubmissionStatus.NO_TEST_CASES)

        verdict = self._judge(participant, problem, source_code)
        self.dispatcher.publish(DashboardRefresh())
        return verdict

    def _check_sequence(self, participant: Participant, problem: Problem) -> None:
        if problem.position < participant.unlock_index:
            raise SequenceViolation(SequenceViolationKind.ALREADY_SOLVED, problem.position, participant.unlock_index)
        if problem.position > participant.unlock_index:
            raise SequenceViolation(SequenceViolationKind.OUT_OF_ORDER, problem.position, participant.unlock_index)

    def _judge(self, participant: Participant, problem: Problem, source_code: str) -> Verdict:
        total = len(problem.test_cases)
        try:
            with acquire_sandbox(
                self.sandbox_base_dir,
                source_filename=self.source_filename,
                artifact_filename=self.artifact_filename,
                input_filename=self.input_filename,
            ) as job:
                self.compiler.compile(job, source_code)
                passed = self.sequencer.run_all(job, problem.test_cases)

        except CompileError as e:
            logger.info(f"Compile error for {participant.name} on {problem.id}")
            logger.debug(f"Compiler output: {e.diagnostic}")
            return self._failed(participant, problem, Verdict(False, MSG_COMPILE_ERROR, SubmissionStatus.COMPILATION_ERROR))

        except WrongAnswer as e:
            message = MSG_WRONG_ANSWER.format(index=e.failed_index, total=e.total)
            return self._failed(participant, problem, Verdict(False, message, SubmissionStatus.WRONG_ANSWER))

        except ExecutionError as e:
            if e.kind == RuntimeErrorKind.TIMEOUT:
                template = MSG_RUNTIME_TIMEOUT
            elif e.kind == RuntimeErrorKind.RESOURCE_LIMIT:
                template = MSG_RUNTIME_MEMORY
            else:
                template = MSG_RUNTIME_ERROR
            message = template.format(index=e.test_index)
            return self._failed(participant, problem, Verdict(False, message, SubmissionStatus.RUNTIME_ERROR))

        except Exception as e:  # InfrastructureError and anything unexpected
            return self._server_error(participant, problem, e)

        return self._credit(participant, problem, passed, total)

    def _credit(self, participant: Participant, problem: Problem, passed: int, total: int) -> Verdict:
        try:
            # A finish or reset cannot slip in between the check and the update
            with self.contest.while_in_progress():
                updated = self.ledger.record_solve(participant.name, problem.position, self.points_per_problem)
                removed = updated is None and self.ledger.get(participant.name) is None
        except StateViolation as e:
            logger.info(f"Solve of {problem.id} by {participant.name} not credited: {e}")
            return self._failed(participant, problem, Verdict(False, MSG_NOT_IN_PROGRESS, SubmissionStatus.NOT_IN_PROGRESS))
        except Exception as e:
            return self._server_error(participant, problem, e)

        if updated is None:
            if removed:
                logger.info(f"{participant.name} was removed while {problem.id} was being judged")
                raise UnknownParticipant(participant.name)
            # Another submission for the same problem got there first
            return self._failed(participant, problem, Verdict(False, MSG_ALREADY_SOLVED, SubmissionStatus.ALREADY_SOLVED))

        # The solve is committed from here on; bookkeeping failures do not change the verdict
        try:
            if self.first_blood.try_claim(problem.id, participant.name):
                message = f"[FIRST BLOOD] {participant.name}님이 {problem.id} 문제를 처음으로 풀었습니다!"
                self.storage.append_log(message)
                alert = self.storage.add_alert(message, FIRST_BLOOD_ALERT_TYPE)
                self.dispatcher.publish(FirstBloodAlert(alert.id, problem.id, participant.name, message))
        except Exception as e:
            logger.error(f"Recording first blood for {participant.name} on {problem.id} failed: {e}", exc_info=True)

        self._append_log(
            f"[LOG] {participant.name} solved {problem.id} "
            f"(+{self.points_per_problem} points). Total: {updated.score}"
        )
        logger.info(f"{participant.name} solved {problem.id} ({passed}/{total})")
        return Verdict(True, MSG_ACCEPTED.format(passed=passed, total=total), SubmissionStatus.ACCEPTED)

    def _failed(self, participant: Participant, problem: Problem, verdict: Verdict) -> Verdict:
        self._append_log(f"[LOG] {participant.name} failed {problem.id} ({verdict.message}).")
        logger.info(f"{participant.name} failed {problem.id}: {verdict.status.value}")
        return verdict

    def _server_error(self, participant: Participant, problem: Problem, error: Exception) -> Verdict:
        kind = "Infrastructure failure" if isinstance(error, InfrastructureError) else "Unexpected failure"
        logger.error(f"{kind} while judging {participant.name} on {problem.id}: {error}", exc_info=True)
        self._append_log(f"[ERROR] Judging {participant.name} on {problem.id} failed: {error}")
        return Verdict(False, MSG_SERVER_ERROR, SubmissionStatus.SERVER_ERROR)

    def _append_log(self, message: str) -> None:
        try:
            self.storage.append_log(message)
        except Exception as e:
            logger.error(f"Failed to store contest log line {message!r}: {e}", exc_info=True)
