"""
Models package for JudgeArena.

This package contains the data models shared by the engine and the API.
"""

from .models import (
    Alert,
    ContestState,
    FirstBlood,
    Identity,
    LogEntry,
    Participant,
    Problem,
    RankingEntry,
    Role,
    SubmissionStatus,
    TestCase,
    Verdict,
    problem_id_for,
)

__all__ = [
    "Alert",
    "ContestState",
    "FirstBlood",
    "Identity",
    "LogEntry",
    "Participant",
    "Problem",
    "RankingEntry",
    "Role",
    "SubmissionStatus",
    "TestCase",
    "Verdict",
    "problem_id_for",
]
