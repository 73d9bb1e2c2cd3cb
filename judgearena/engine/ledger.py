from typing import Optional

from .events import DashboardRefresh, EventDispatcher, ParticipantKicked
from .storage import ContestStorage
from ..models.models import Participant
from ..utils.logger_config import get_logger

logger = get_logger("ledger")


class ProgressionLedger:
    """
    Per-participant score and unlock index.

    The unlock index only ever moves forward by one, through a conditional
    update that succeeds for exactly one of several concurrent solves of
    the same problem. Reset is the only way back.
    """

    def __init__(self, storage: ContestStorage, dispatcher: EventDispatcher):
        self.storage = storage
        self.dispatcher = dispatcher

    def get(self, participant_id: str) -> Optional[Participant]:
        return self.storage.get_participant(participant_id)

    def record_solve(self, participant_id: str, problem_index: int, points: int) -> Optional[Participant]:
        """
        Credit a solve of the problem at ``problem_index``.

        Returns the updated participant, or None if the participant is no
        longer at that index (already advanced, or removed meanwhile).
        """
        updated = self.storage.advance_participant(participant_id, problem_index, points)
        if updated is None:
            logger.info(f"Solve of problem {problem_index} by {participant_id} not applied: index already moved")
        else:
            logger.info(f"{participant_id} advanced to problem {updated.unlock_index} with score {updated.score}")
        return updated

    def kick(self, participant_id: str, actor: str) -> bool:
        """Remove a participant entirely. Their credential stops working immediately."""
        if not self.storage.delete_participant(participant_id):
            return False

        logger.info(f"{actor} kicked participant {participant_id}")
        self.storage.append_log(f"[LOG] {actor} kicked participant '{participant_id}'.")
        self.dispatcher.publish(DashboardRefresh())
        self.dispatcher.publish(ParticipantKicked(participant_id))
        return True
