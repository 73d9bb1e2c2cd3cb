from typing import Dict, List, Optional

from .contest import ContestStateMachine
from .errors import UnknownParticipant, UnknownProblem
from .events import EventDispatcher, ProblemListChanged
from .isolation import IsolationProvider
from .ledger import ProgressionLedger
from .storage import ContestStorage
from ..models.models import ContestState, Problem, RankingEntry, TestCase
from ..utils.logger_config import get_logger

logger = get_logger("admin")

DASHBOARD_LOG_LIMIT = 10


class ContestAdministration:
    """Operations reserved for the contest administrator. ``actor`` is the admin's name."""

    def __init__(
        self,
        storage: ContestStorage,
        dispatcher: EventDispatcher,
        contest: ContestStateMachine,
        ledger: ProgressionLedger,
        provider: Optional[IsolationProvider] = None,
    ):
        self.storage = storage
        self.dispatcher = dispatcher
        self.contest = contest
        self.ledger = ledger
        self.provider = provider

    # Problems

    def get_problem(self, problem_id: str) -> Problem:
        problem = self.storage.get_problem(problem_id)
        if problem is None:
            raise UnknownProblem(problem_id)
        return problem

    def create_problem(
        self,
        actor: str,
        title: str,
        description: str = "",
        input_spec: str = "",
        output_spec: str = "",
        test_cases: Optional[List[TestCase]] = None,
    ) -> Problem:
        problem = self.storage.create_problem(title, description, input_spec, output_spec, test_cases)
        self.storage.append_log(f"[LOG] {actor} added problem {problem.id}")
        logger.info(f"{actor} added problem {problem.id} with {len(problem.test_cases)} test case(s)")
        self.dispatcher.publish(ProblemListChanged())
        return problem

    def update_problem(
        self,
        actor: str,
        problem_id: str,
        title: str,
        description: str = "",
        input_spec: str = "",
        output_spec: str = "",
        test_cases: Optional[List[TestCase]] = None,
    ) -> Problem:
        problem = self.storage.update_problem(problem_id, title, description, input_spec, output_spec, test_cases)
        if problem is None:
            raise UnknownProblem(problem_id)
        self.storage.append_log(f"[LOG] {actor} updated problem {problem_id}")
        logger.info(f"{actor} updated problem {problem_id}")
        self.dispatcher.publish(ProblemListChanged())
        return problem

    def delete_problem(self, actor: str, problem_id: str) -> None:
        if not self.storage.delete_problem(problem_id):
            raise UnknownProblem(problem_id)
        self.storage.append_log(f"[LOG] {actor} deleted problem {problem_id}")
        logger.info(f"{actor} deleted problem {problem_id}")
        self.dispatcher.publish(ProblemListChanged())

    # Participants and contest lifecycle

    def kick_participant(self, actor: str, participant_id: str) -> None:
        if not self.ledger.kick(participant_id, actor):
            raise UnknownParticipant(participant_id)

    def set_contest_state(self, actor: str, state: ContestState) -> ContestState:
        new_state = self.contest.transition(state)
        self.storage.append_log(f"[LOG] {actor} changed contest state to {new_state.value}.")
        return new_state

    def reset_contest(self, actor: str) -> ContestState:
        logger.info(f"{actor} requested a contest reset")
        return self.contest.reset()

    def finalize_rankings(self, actor: str) -> List[RankingEntry]:
        self.contest.require_finished()
        rankings = self.storage.finalize_rankings()
        self.storage.append_log(f"[LOG] {actor} finalized and saved the final rankings.")
        logger.info(f"{actor} finalized rankings for {len(rankings)} participant(s)")
        return rankings

    # Views

    def dashboard(self) -> Dict:
        return {
            "users": [p.to_dict() for p in self.storage.list_participants()],
            "logs": [entry.message for entry in self.storage.recent_logs(DASHBOARD_LOG_LIMIT)],
            "totalProblems": self.storage.count_problems(),
            "contestState": self.contest.state.value,
        }

    def sandbox_status(self) -> Dict:
        if self.provider is None:
            return {"available": False, "provider": None}
        return {
            "available": self.provider.ping(),
            "provider": type(self.provider).__name__,
        }
