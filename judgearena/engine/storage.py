"""
DuckDB-based persistence for contest data.

All writes are serialized through one write lock and multi-row changes
run inside explicit transactions. Each thread reads through its own
cursor on the shared database instance.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

import duckdb

from ..models.models import (
    Alert, ContestState, FirstBlood, LogEntry, Participant, Problem,
    RankingEntry, TestCase, problem_id_for
)
from ..utils.logger_config import get_logger

logger = get_logger("storage")


class ContestStorage:
    """
    Transactional store for problems, participants, logs, first bloods,
    alerts, final rankings and the contest state.
    """

    def __init__(self, db_path: str = "data/contest.duckdb"):
        logger.info(f"Initializing DuckDB storage at {db_path}")
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self._root = duckdb.connect(db_path)
        self._thread_local = threading.local()
        self._cursor_lock = threading.Lock()
        self._write_lock = threading.RLock()

        self._create_schema()

    def _get_conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create the cursor for the current thread"""
        if not hasattr(self._thread_local, 'conn'):
            with self._cursor_lock:
                self._thread_local.conn = self._root.cursor()
        return self._thread_local.conn

    @contextmanager
    def _transaction(self) -> Iterator[duckdb.DuckDBPyConnection]:
        with self._write_lock:
            conn = self._get_conn()
            conn.begin()
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()

    def _create_schema(self) -> None:
        with self._transaction() as conn:
            conn.execute("CREATE SEQUENCE IF NOT EXISTS seq_test_cases START 1")
            conn.execute("CREATE SEQUENCE IF NOT EXISTS seq_logs START 1")
            conn.execute("CREATE SEQUENCE IF NOT EXISTS seq_alerts START 1")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS problems (
                    id VARCHAR PRIMARY KEY,
                    position INTEGER NOT NULL UNIQUE,
                    title VARCHAR NOT NULL,
                    description TEXT,
                    input_spec TEXT,
                    output_spec TEXT
                )
            """)

            # Owned by problems; removed together with their problem
            conn.execute("""
                CREATE TABLE IF NOT EXISTS test_cases (
                    id INTEGER PRIMARY KEY DEFAULT nextval('seq_test_cases'),
                    problem_id VARCHAR NOT NULL,
                    ordinal INTEGER NOT NULL,
                    input TEXT,
                    output TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS participants (
                    name VARCHAR PRIMARY KEY,
                    score INTEGER NOT NULL DEFAULT 0,
                    unlock_index INTEGER NOT NULL DEFAULT 1,    -- position of the lowest unsolved problem
                    is_logged_in BOOLEAN NOT NULL DEFAULT FALSE
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY DEFAULT nextval('seq_logs'),
                    message TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS first_bloods (
                    problem_id VARCHAR PRIMARY KEY,
                    participant VARCHAR NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS alerts (
                    id INTEGER PRIMARY KEY DEFAULT nextval('seq_alerts'),
                    message TEXT NOT NULL,
                    type VARCHAR NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS final_rankings (
                    rank_no INTEGER NOT NULL,
                    name VARCHAR NOT NULL,
                    score INTEGER NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS contest (
                    id INTEGER PRIMARY KEY,
                    state VARCHAR NOT NULL
                )
            """)
            conn.execute("""
                INSERT INTO contest
                SELECT 1, ? WHERE NOT EXISTS (SELECT 1 FROM contest)
            """, [ContestState.WAITING.value])

    # ------------------------------------------------------------------
    # Problems
    # ------------------------------------------------------------------

    def _insert_test_cases(self, conn: duckdb.DuckDBPyConnection, problem_id: str, test_cases: List[TestCase]) -> None:
        for ordinal, tc in enumerate(test_cases, start=1):
            conn.execute("""
                INSERT INTO test_cases (problem_id, ordinal, input, output)
                VALUES (?, ?, ?, ?)
            """, [problem_id, ordinal, tc.input_data or "", tc.expected_output])

    def create_problem(
        self,
        title: str,
        description: str = "",
        input_spec: str = "",
        output_spec: str = "",
        test_cases: Optional[List[TestCase]] = None,
    ) -> Problem:
        """Create a problem at the next position, together with its test cases"""
        with self._transaction() as conn:
            row = conn.execute("SELECT COALESCE(MAX(position), 0) FROM problems").fetchone()
            position = row[0] + 1
            problem_id = problem_id_for(position)

            conn.execute("""
                INSERT INTO problems (id, position, title, description, input_spec, output_spec)
                VALUES (?, ?, ?, ?, ?, ?)
            """, [problem_id, position, title, description, input_spec, output_spec])
            self._insert_test_cases(conn, problem_id, test_cases or [])

        return self.get_problem(problem_id)

    def update_problem(
        self,
        problem_id: str,
        title: str,
        description: str = "",
        input_spec: str = "",
        output_spec: str = "",
        test_cases: Optional[List[TestCase]] = None,
    ) -> Optional[Problem]:
        """Replace a problem's statement and its whole test case list atomically"""
        with self._transaction() as conn:
            exists = conn.execute("SELECT 1 FROM problems WHERE id = ?", [problem_id]).fetchone()
            if not exists:
                return None

            conn.execute("""
                UPDATE problems
                SET title = ?, description = ?, input_spec = ?, output_spec = ?
                WHERE id = ?
            """, [title, description, input_spec, output_spec, problem_id])
            conn.execute("DELETE FROM test_cases WHERE problem_id = ?", [problem_id])
            self._insert_test_cases(conn, problem_id, test_cases or [])

        return self.get_problem(problem_id)

    def delete_problem(self, problem_id: str) -> bool:
        with self._transaction() as conn:
            conn.execute("DELETE FROM test_cases WHERE problem_id = ?", [problem_id])
            deleted = conn.execute("DELETE FROM problems WHERE id = ?", [problem_id]).fetchone()[0]
        return deleted > 0

    def get_problem(self, problem_id: str, include_test_cases: bool = True) -> Optional[Problem]:
        conn = self._get_conn()
        row = conn.execute("""
            SELECT id, position, title, description, input_spec, output_spec
            FROM problems WHERE id = ?
        """, [problem_id]).fetchone()
        if not row:
            return None

        problem = Problem(
            id=row[0],
            position=row[1],
            title=row[2],
            description=row[3] or "",
            input_spec=row[4] or "",
            output_spec=row[5] or "",
        )
        if include_test_cases:
            problem.test_cases = self.list_test_cases(problem_id)
        return problem

    def list_test_cases(self, problem_id: str) -> List[TestCase]:
        conn = self._get_conn()
        rows = conn.execute("""
            SELECT id, ordinal, input, output FROM test_cases
            WHERE problem_id = ? ORDER BY ordinal, id
        """, [problem_id]).fetchall()
        return [
            TestCase(id=row[0], ordinal=row[1], input_data=row[2] or None, expected_output=row[3])
            for row in rows
        ]

    def list_problems(self) -> List[Problem]:
        conn = self._get_conn()
        rows = conn.execute("""
            SELECT id, position, title, description, input_spec, output_spec
            FROM problems ORDER BY position
        """).fetchall()
        return [
            Problem(
                id=row[0], position=row[1], title=row[2],
                description=row[3] or "", input_spec=row[4] or "", output_spec=row[5] or "",
            )
            for row in rows
        ]

    def count_problems(self) -> int:
        return self._get_conn().execute("SELECT COUNT(*) FROM problems").fetchone()[0]

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def get_participant(self, name: str) -> Optional[Participant]:
        row = self._get_conn().execute("""
            SELECT name, score, unlock_index, is_logged_in FROM participants WHERE name = ?
        """, [name]).fetchone()
        if not row:
            return None
        return Participant(name=row[0], score=row[1], unlock_index=row[2], is_logged_in=row[3])

    def create_participant(self, name: str, is_logged_in: bool = True) -> Participant:
        with self._write_lock:
            self._get_conn().execute("""
                INSERT INTO participants (name, score, unlock_index, is_logged_in)
                VALUES (?, 0, 1, ?)
            """, [name, is_logged_in])
        return Participant(name=name, is_logged_in=is_logged_in)

    def set_logged_in(self, name: str, is_logged_in: bool) -> bool:
        with self._write_lock:
            updated = self._get_conn().execute("""
                UPDATE participants SET is_logged_in = ? WHERE name = ?
            """, [is_logged_in, name]).fetchone()[0]
        return updated > 0

    def delete_participant(self, name: str) -> bool:
        with self._write_lock:
            deleted = self._get_conn().execute(
                "DELETE FROM participants WHERE name = ?", [name]
            ).fetchone()[0]
        return deleted > 0

    def list_participants(self) -> List[Participant]:
        rows = self._get_conn().execute("""
            SELECT name, score, unlock_index, is_logged_in FROM participants
            ORDER BY score DESC, name ASC
        """).fetchall()
        return [Participant(name=r[0], score=r[1], unlock_index=r[2], is_logged_in=r[3]) for r in rows]

    def advance_participant(self, name: str, expected_index: int, points: int) -> Optional[Participant]:
        """
        Add ``points`` and move the unlock index forward by one, but only if
        the participant is still at ``expected_index``. Returns the updated
        participant, or None when the condition did not hold.
        """
        with self._write_lock:
            updated = self._get_conn().execute("""
                UPDATE participants
                SET score = score + ?, unlock_index = unlock_index + 1
                WHERE name = ? AND unlock_index = ?
            """, [points, name, expected_index]).fetchone()[0]
            if updated == 0:
                return None
            return self.get_participant(name)

    # ------------------------------------------------------------------
    # First bloods
    # ------------------------------------------------------------------

    def insert_first_blood(self, problem_id: str, participant: str) -> bool:
        """Insert-if-absent keyed on problem id; False if a record already exists"""
        with self._write_lock:
            try:
                self._get_conn().execute("""
                    INSERT INTO first_bloods (problem_id, participant) VALUES (?, ?)
                """, [problem_id, participant])
            except duckdb.ConstraintException:
                return False
        return True

    def get_first_blood(self, problem_id: str) -> Optional[FirstBlood]:
        row = self._get_conn().execute("""
            SELECT problem_id, participant FROM first_bloods WHERE problem_id = ?
        """, [problem_id]).fetchone()
        return FirstBlood(problem_id=row[0], participant=row[1]) if row else None

    def list_first_bloods(self) -> List[FirstBlood]:
        rows = self._get_conn().execute(
            "SELECT problem_id, participant FROM first_bloods ORDER BY problem_id"
        ).fetchall()
        return [FirstBlood(problem_id=r[0], participant=r[1]) for r in rows]

    # ------------------------------------------------------------------
    # Logs and alerts
    # ------------------------------------------------------------------

    def append_log(self, message: str) -> LogEntry:
        created_at = datetime.now()
        with self._write_lock:
            row = self._get_conn().execute("""
                INSERT INTO logs (message, created_at) VALUES (?, ?) RETURNING id
            """, [message, created_at]).fetchone()
        return LogEntry(id=row[0], message=message, created_at=created_at)

    def recent_logs(self, limit: int = 10) -> List[LogEntry]:
        """Most recent log entries, oldest first"""
        rows = self._get_conn().execute(f"""
            SELECT id, message, created_at FROM logs ORDER BY id DESC LIMIT {int(limit)}
        """).fetchall()
        return [LogEntry(id=r[0], message=r[1], created_at=r[2]) for r in reversed(rows)]

    def add_alert(self, message: str, alert_type: str) -> Alert:
        created_at = datetime.now()
        with self._write_lock:
            row = self._get_conn().execute("""
                INSERT INTO alerts (message, type, created_at) VALUES (?, ?, ?) RETURNING id
            """, [message, alert_type, created_at]).fetchone()
        return Alert(id=row[0], message=message, type=alert_type, created_at=created_at)

    def list_alerts(self) -> List[Alert]:
        rows = self._get_conn().execute(
            "SELECT id, message, type, created_at FROM alerts ORDER BY id"
        ).fetchall()
        return [Alert(id=r[0], message=r[1], type=r[2], created_at=r[3]) for r in rows]

    # ------------------------------------------------------------------
    # Rankings, contest state, reset
    # ------------------------------------------------------------------

    def finalize_rankings(self) -> List[RankingEntry]:
        """Replace the final ranking table with a snapshot of current scores"""
        with self._transaction() as conn:
            conn.execute("DELETE FROM final_rankings")
            conn.execute("""
                INSERT INTO final_rankings (rank_no, name, score)
                SELECT ROW_NUMBER() OVER (ORDER BY score DESC, name ASC), name, score
                FROM participants
            """)
        return self.list_final_rankings()

    def list_final_rankings(self) -> List[RankingEntry]:
        rows = self._get_conn().execute(
            "SELECT rank_no, name, score FROM final_rankings ORDER BY rank_no"
        ).fetchall()
        return [RankingEntry(rank=r[0], name=r[1], score=r[2]) for r in rows]

    def get_contest_state(self) -> ContestState:
        row = self._get_conn().execute("SELECT state FROM contest WHERE id = 1").fetchone()
        return ContestState(row[0]) if row else ContestState.WAITING

    def set_contest_state(self, state: ContestState) -> None:
        with self._write_lock:
            self._get_conn().execute("UPDATE contest SET state = ? WHERE id = 1", [state.value])

    def reset_contest_data(self) -> None:
        """Clear everything a contest run produced; problems are kept"""
        with self._transaction() as conn:
            conn.execute("DELETE FROM final_rankings")
            conn.execute("DELETE FROM participants")
            conn.execute("DELETE FROM logs")
            conn.execute("DELETE FROM first_bloods")
            conn.execute("DELETE FROM alerts")

    def close(self) -> None:
        """Close the database connection"""
        self._root.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
