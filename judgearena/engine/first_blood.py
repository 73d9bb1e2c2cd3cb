from typing import Optional

from .storage import ContestStorage
from ..utils.logger_config import get_logger

logger = get_logger("first_blood")


class FirstBloodTracker:
    """Records the first participant to solve each problem. Never overwritten."""

    def __init__(self, storage: ContestStorage):
        self.storage = storage

    def try_claim(self, problem_id: str, participant_id: str) -> bool:
        """True for exactly one caller per problem, however many race."""
        claimed = self.storage.insert_first_blood(problem_id, participant_id)
        if claimed:
            logger.info(f"First blood on {problem_id}: {participant_id}")
        return claimed

    def holder(self, problem_id: str) -> Optional[str]:
        record = self.storage.get_first_blood(problem_id)
        return record.participant if record else None
