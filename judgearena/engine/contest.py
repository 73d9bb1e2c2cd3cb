import threading
from contextlib import contextmanager
from typing import Iterator

from .errors import StateViolation
from .events import ContestStateChanged, DashboardRefresh, EventDispatcher, ForceLogout
from .storage import ContestStorage
from ..models.models import ContestState
from ..utils.logger_config import get_logger

logger = get_logger("contest")

# Forward transitions allowed through ``transition``; reset is separate
ALLOWED_TRANSITIONS = {
    ContestState.WAITING: {ContestState.IN_PROGRESS},
    ContestState.IN_PROGRESS: {ContestState.FINISHED},
    ContestState.FINISHED: set(),
}

RESETTABLE_STATES = {ContestState.WAITING, ContestState.FINISHED}


class ContestStateMachine:
    """
    Owns the contest state.

    The state is persisted so a restart resumes where it left off. Every
    change and its broadcast happen under one lock, so observers see state
    changes in the order they were applied.
    """

    def __init__(self, storage: ContestStorage, dispatcher: EventDispatcher):
        self.storage = storage
        self.dispatcher = dispatcher
        self._lock = threading.RLock()
        self._state = storage.get_contest_state()
        logger.info(f"Contest state loaded: {self._state.value}")

    @property
    def state(self) -> ContestState:
        return self._state

    def transition(self, target: ContestState) -> ContestState:
        with self._lock:
            current = self._state
            if target not in ALLOWED_TRANSITIONS[current]:
                raise StateViolation(f"cannot move contest from {current.value} to {target.value}")

            self.storage.set_contest_state(target)
            self._state = target
            logger.info(f"Contest state changed: {current.value} -> {target.value}")
            self.dispatcher.publish(ContestStateChanged(target))
        return target

    def reset(self) -> ContestState:
        """Clear all contest data and return to Waiting. Problems are kept."""
        with self._lock:
            current = self._state
            if current not in RESETTABLE_STATES:
                raise StateViolation(f"cannot reset contest while {current.value}")

            self.storage.reset_contest_data()
            self.storage.append_log("[LOG] Contest data has been reset by admin.")
            self.storage.set_contest_state(ContestState.WAITING)
            self._state = ContestState.WAITING
            logger.info(f"Contest reset from {current.value}")
            self.dispatcher.publish(ContestStateChanged(ContestState.WAITING))
            self.dispatcher.publish(DashboardRefresh())
            self.dispatcher.publish(ForceLogout())
        return ContestState.WAITING

    def require_in_progress(self) -> None:
        if self._state != ContestState.IN_PROGRESS:
            raise StateViolation(f"contest is {self._state.value}, not InProgress")

    @contextmanager
    def while_in_progress(self) -> Iterator[None]:
        """Hold the state lock for the block; raises StateViolation unless InProgress"""
        with self._lock:
            self.require_in_progress()
            yield

    def require_finished(self) -> None:
        if self._state != ContestState.FINISHED:
            raise StateViolation(f"contest is {self._state.value}, not Finished")
