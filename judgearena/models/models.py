from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class ContestState(str, Enum):
    WAITING = "Waiting"
    IN_PROGRESS = "InProgress"
    FINISHED = "Finished"


class SubmissionStatus(str, Enum):
    ACCEPTED = "AC"
    WRONG_ANSWER = "WA"
    RUNTIME_ERROR = "RE"
    COMPILATION_ERROR = "CE"
    ALREADY_SOLVED = "ALREADY_SOLVED"
    OUT_OF_ORDER = "OUT_OF_ORDER"
    NOT_IN_PROGRESS = "NOT_IN_PROGRESS"
    NO_TEST_CASES = "NO_TEST_CASES"
    SERVER_ERROR = "SERVER_ERROR"


class Role(str, Enum):
    ADMIN = "admin"
    PARTICIPANT = "participant"


def problem_id_for(position: int) -> str:
    """Problem ids encode their solving order: ``p1``, ``p2``, ..."""
    return f"p{position}"


class TestCase:
    # Keeps pytest from trying to collect this class
    __test__ = False

    def __init__(self, expected_output: str, input_data: Optional[str] = None, id: Optional[int] = None, ordinal: int = 0):
        self.id = id
        self.input_data = input_data
        self.expected_output = expected_output
        self.ordinal = ordinal

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "input": self.input_data or "",
            "output": self.expected_output,
        }


class Problem:
    def __init__(
        self,
        id: str,
        position: int,
        title: str,
        description: str = "",
        input_spec: str = "",
        output_spec: str = "",
        test_cases: Optional[List[TestCase]] = None,
    ):
        self.id = id
        self.position = position
        self.title = title
        self.description = description
        self.input_spec = input_spec
        self.output_spec = output_spec
        self.test_cases = test_cases or []

    def to_dict(self, include_test_cases: bool = False) -> Dict:
        result = {
            "id": self.id,
            "position": self.position,
            "title": self.title,
            "description": self.description,
            "input": self.input_spec,
            "output": self.output_spec,
        }
        if include_test_cases:
            result["testCases"] = [tc.to_dict() for tc in self.test_cases]
        return result


class Participant:
    def __init__(self, name: str, score: int = 0, unlock_index: int = 1, is_logged_in: bool = False):
        self.name = name
        self.score = score
        # Position of the lowest unsolved problem
        self.unlock_index = unlock_index
        self.is_logged_in = is_logged_in

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "score": self.score,
            "currentProblem": self.unlock_index,
            "isLoggedIn": self.is_logged_in,
        }


@dataclass
class Verdict:
    """Terminal result of one submission evaluation."""

    success: bool
    message: str
    status: SubmissionStatus

    def to_dict(self) -> Dict:
        return {"success": self.success, "message": self.message}


@dataclass
class FirstBlood:
    problem_id: str
    participant: str


@dataclass
class RankingEntry:
    rank: int
    name: str
    score: int

    def to_dict(self) -> Dict:
        return {"rank": self.rank, "name": self.name, "score": self.score}


@dataclass
class LogEntry:
    id: int
    message: str
    created_at: datetime

    def to_dict(self) -> Dict:
        return {"id": self.id, "message": self.message, "timestamp": self.created_at.isoformat()}


@dataclass
class Alert:
    id: int
    message: str
    type: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict:
        return {"id": self.id, "message": self.message, "type": self.type}


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, decoded from a bearer token."""

    name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
