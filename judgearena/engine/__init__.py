"""
Judging engine for JudgeArena.

This module contains the submission evaluation pipeline, contest state,
progression and first-blood tracking, persistence and session handling.
"""

from .admin import ContestAdministration
from .comparator import compare_outputs, normalize_output
from .compiler import CompilerStage
from .contest import ContestStateMachine
from .errors import (
    AlreadyLoggedIn, AuthenticationError, CompileError, ExecutionError,
    InfrastructureError, JudgeArenaError, JudgingFailure, RuntimeErrorKind,
    SequenceViolation, SequenceViolationKind, StateViolation,
    UnknownParticipant, UnknownProblem, WrongAnswer
)
from .events import (
    ContestStateChanged, DashboardRefresh, Event, EventDispatcher,
    FirstBloodAlert, ForceLogout, ParticipantKicked, ProblemListChanged
)
from .first_blood import FirstBloodTracker
from .isolation import (
    DockerIsolationProvider, ExecutionLimits, ExecutionResult, IsolationProvider
)
from .judge import JudgePipeline
from .ledger import ProgressionLedger
from .runner import RunOutcome, SandboxRunner
from .sandbox import SandboxJob, acquire_sandbox
from .sequencer import TestCaseSequencer
from .services import ContestServices, build_services
from .sessions import SessionManager
from .storage import ContestStorage

__all__ = [
    'ContestAdministration', 'compare_outputs', 'normalize_output', 'CompilerStage',
    'ContestStateMachine', 'AlreadyLoggedIn', 'AuthenticationError', 'CompileError',
    'ExecutionError', 'InfrastructureError', 'JudgeArenaError', 'JudgingFailure',
    'RuntimeErrorKind', 'SequenceViolation', 'SequenceViolationKind', 'StateViolation',
    'UnknownParticipant', 'UnknownProblem', 'WrongAnswer', 'ContestStateChanged',
    'DashboardRefresh', 'Event', 'EventDispatcher', 'FirstBloodAlert', 'ForceLogout',
    'ParticipantKicked', 'ProblemListChanged', 'FirstBloodTracker',
    'DockerIsolationProvider', 'ExecutionLimits', 'ExecutionResult', 'IsolationProvider',
    'JudgePipeline', 'ProgressionLedger', 'RunOutcome', 'SandboxRunner', 'SandboxJob',
    'acquire_sandbox', 'TestCaseSequencer', 'ContestServices', 'build_services',
    'SessionManager', 'ContestStorage',
]
