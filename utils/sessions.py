from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import List, Optional, Tuple

from db.database import write_transaction
from utils.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


class SessionType(str, Enum):
    REVIEW = "review"
    NEW_WORDS = "new_words"
    MIXED = "mixed"
    QUICK_REVIEW = "quick_review"


@dataclass(frozen=True)
class StudySession:
    id: int
    owner_id: str
    session_type: SessionType
    started_at: int
    ended_at: Optional[int]
    words_studied: int
    correct_answers: int
    total_duration_ms: int

    @property
    def is_open(self) -> bool:
        return self.ended_at is None


def parse_session_type(value) -> SessionType:
    if isinstance(value, SessionType):
        return value
    try:
        return SessionType(str(value).strip().lower())
    except ValueError:
        raise InvalidInputError(f"Unknown session type: {value!r}") from None


def _row_to_session(row) -> StudySession:
    return StudySession(
        id=int(row["id"]),
        owner_id=row["owner_id"],
        session_type=SessionType(row["session_type"]),
        started_at=int(row["started_at"]),
        ended_at=row["ended_at"],
        words_studied=int(row["words_studied"]),
        correct_answers=int(row["correct_answers"]),
        total_duration_ms=int(row["total_duration_ms"]),
    )


def day_bounds_ms(day: date) -> Tuple[int, int]:
    """[start, end) of a local calendar day in epoch millis."""
    start = datetime.combine(day, time.min)
    end = datetime.combine(day + timedelta(days=1), time.min)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000)


def get_session(conn, session_id: int) -> StudySession:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM study_sessions WHERE id = ?", (session_id,))
    row = cursor.fetchone()
    if not row:
        raise NotFoundError(f"Study session {session_id} not found")
    return _row_to_session(row)


def start_session(conn, owner_id: str, session_type: SessionType, now_ms: int) -> StudySession:
    """Open a session. Other open sessions are left alone."""
    session_type = parse_session_type(session_type)
    with write_transaction(conn):
        cursor = conn.execute(
            "INSERT INTO study_sessions (owner_id, session_type, started_at) VALUES (?, ?, ?)",
            (owner_id, session_type.value, now_ms),
        )
        session_id = cursor.lastrowid
    logger.info("Started %s session %s for %s", session_type.value, session_id, owner_id)
    return get_session(conn, session_id)


def add_session_answer(conn, session_id: int, owner_id: str, correct: bool) -> None:
    """Count one answer against an open session; part of the caller's transaction."""
    session = get_session(conn, session_id)
    if session.owner_id != owner_id:
        raise NotFoundError(f"Study session {session_id} not found")
    if not session.is_open:
        raise InvalidInputError(f"Study session {session_id} is already closed")
    conn.execute(
        """
        UPDATE study_sessions
        SET words_studied = words_studied + 1,
            correct_answers = correct_answers + ?
        WHERE id = ?
        """,
        (1 if correct else 0, session_id),
    )


def end_session(
    conn,
    session_id: int,
    now_ms: int,
    words_studied: Optional[int] = None,
    correct_answers: Optional[int] = None,
) -> StudySession:
    """Close a session exactly once.

    Final counts default to what was recorded against the session while it was open.
    """
    if words_studied is not None and words_studied < 0:
        raise InvalidInputError("words_studied cannot be negative")
    if correct_answers is not None and correct_answers < 0:
        raise InvalidInputError("correct_answers cannot be negative")
    with write_transaction(conn):
        session = get_session(conn, session_id)
        if not session.is_open:
            raise InvalidInputError(f"Study session {session_id} is already closed")
        final_words = session.words_studied if words_studied is None else words_studied
        final_correct = session.correct_answers if correct_answers is None else correct_answers
        if final_correct > final_words:
            raise InvalidInputError("correct_answers cannot exceed words_studied")
        ended_at = max(now_ms, session.started_at)
        conn.execute(
            """
            UPDATE study_sessions
            SET ended_at = ?, words_studied = ?, correct_answers = ?, total_duration_ms = ?
            WHERE id = ? AND ended_at IS NULL
            """,
            (ended_at, final_words, final_correct, ended_at - session.started_at, session_id),
        )
    logger.info("Closed session %s: %s words, %s correct", session_id, final_words, final_correct)
    return get_session(conn, session_id)


def recent_sessions(conn, owner_id: str, limit: int = 10) -> List[StudySession]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT * FROM study_sessions WHERE owner_id = ? ORDER BY started_at DESC, id DESC LIMIT ?",
        (owner_id, limit),
    )
    return [_row_to_session(row) for row in cursor.fetchall()]


def count_sessions_on(conn, owner_id: str, day: date) -> int:
    start_ms, end_ms = day_bounds_ms(day)
    cursor = conn.cursor()
    cursor.execute(
        "SELECT COUNT(*) FROM study_sessions WHERE owner_id = ? AND started_at >= ? AND started_at < ?",
        (owner_id, start_ms, end_ms),
    )
    return int(cursor.fetchone()[0])


def average_accuracy_since(conn, owner_id: str, since_ms: int) -> float:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT AVG(CAST(correct_answers AS REAL) / CAST(words_studied AS REAL))
        FROM study_sessions
        WHERE owner_id = ? AND started_at >= ? AND words_studied > 0
        """,
        (owner_id, since_ms),
    )
    row = cursor.fetchone()
    if not row or row[0] is None:
        return 0.0
    return float(row[0])
