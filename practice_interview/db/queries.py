import json
from uuid import uuid4

from practice_interview.db.database import get_db
from practice_interview.models import SessionSummary


async def save_practice_session(summary: SessionSummary) -> str:
    """Save a completed practice session. Returns its id."""
    db = await get_db()
    session_id = summary.session_id or uuid4().hex

    await db.execute(
        """INSERT INTO practice_interviews
           (id, student_id, student_name, round_type, total_questions, total_score,
            max_score, percentage, question_results, overall_feedback, tips, duration_seconds)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            session_id,
            summary.student_id,
            summary.student_name,
            summary.round_type.value,
            summary.total_questions,
            summary.total_score,
            summary.max_score,
            summary.percentage,
            json.dumps([r.to_dict() for r in summary.per_question]),
            summary.overall_feedback,
            json.dumps(summary.tips),
            summary.duration_seconds,
        ),
    )
    await db.commit()
    return session_id


async def get_practice_sessions(student_id: str, limit: int | None = None) -> list[dict]:
    """Get a student's practice sessions, newest first."""
    db = await get_db()
    query = """SELECT * FROM practice_interviews
               WHERE student_id = ?
               ORDER BY created_at DESC, rowid DESC"""
    params: tuple = (student_id,)
    if limit is not None:
        query += " LIMIT ?"
        params += (limit,)

    cursor = await db.execute(query, params)
    rows = await cursor.fetchall()
    return [_row_to_record(row) for row in rows]


async def get_practice_session(session_id: str) -> dict | None:
    """Get one practice session by id."""
    db = await get_db()
    cursor = await db.execute(
        "SELECT * FROM practice_interviews WHERE id = ?",
        (session_id,),
    )
    row = await cursor.fetchone()
    return _row_to_record(row) if row else None


def _row_to_record(row) -> dict:
    record = dict(row)
    record["question_results"] = json.loads(record["question_results"] or "[]")
    record["tips"] = json.loads(record["tips"] or "[]")
    return record
