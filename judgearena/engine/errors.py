"""
Error taxonomy for the judging engine.

Judging failures (``CompileError``, ``ExecutionError``, ``WrongAnswer``) are
expected outcomes of evaluating untrusted code. ``InfrastructureError``
means the judge itself is broken. ``SequenceViolation`` and
``StateViolation`` are admission-control failures raised before any
sandbox work.
"""

from enum import Enum
from typing import Optional


class JudgeArenaError(Exception):
    """Base class for all JudgeArena errors."""


class JudgingFailure(JudgeArenaError):
    """The submitted program was judged and failed."""


class CompileError(JudgingFailure):
    def __init__(self, diagnostic: str, timed_out: bool = False):
        super().__init__("compilation failed")
        self.diagnostic = diagnostic
        self.timed_out = timed_out


class RuntimeErrorKind(str, Enum):
    TIMEOUT = "Timeout"
    CRASH = "Crash"
    RESOURCE_LIMIT = "ResourceLimit"


class ExecutionError(JudgingFailure):
    """The program failed while running one test case."""

    def __init__(self, kind: RuntimeErrorKind, detail: str = "", exit_status: Optional[int] = None):
        super().__init__(f"runtime error ({kind.value})")
        self.kind = kind
        self.detail = detail
        self.exit_status = exit_status
        # Filled in by the sequencer
        self.test_index: Optional[int] = None
        self.total: Optional[int] = None


class WrongAnswer(JudgingFailure):
    def __init__(self, failed_index: int, total: int):
        super().__init__(f"wrong answer on test case {failed_index}/{total}")
        self.failed_index = failed_index
        self.total = total


class SequenceViolationKind(str, Enum):
    ALREADY_SOLVED = "AlreadySolved"
    OUT_OF_ORDER = "OutOfOrder"


class SequenceViolation(JudgeArenaError):
    def __init__(self, kind: SequenceViolationKind, problem_position: int, unlock_index: int):
        super().__init__(f"{kind.value}: problem {problem_position}, unlock index {unlock_index}")
        self.kind = kind
        self.problem_position = problem_position
        self.unlock_index = unlock_index


class StateViolation(JudgeArenaError):
    """The contest state does not allow the requested action."""


class InfrastructureError(JudgeArenaError):
    """The isolation provider or the filesystem failed."""


class UnknownParticipant(JudgeArenaError):
    def __init__(self, name: str):
        super().__init__(f"participant '{name}' not found")
        self.name = name


class UnknownProblem(JudgeArenaError):
    def __init__(self, problem_id: str):
        super().__init__(f"problem '{problem_id}' not found")
        self.problem_id = problem_id


class AuthenticationError(JudgeArenaError):
    """Credentials were missing, wrong or expired."""


class AlreadyLoggedIn(JudgeArenaError):
    def __init__(self, name: str):
        super().__init__(f"participant '{name}' already has an active session")
        self.name = name
