"""
JudgeArena - a programming contest judge.

Participants submit C programs which are compiled and run against hidden
test cases inside Docker containers; scores, progression and first-blood
alerts are tracked in DuckDB and pushed to clients over Socket.IO.
"""

__version__ = "0.1.0"
