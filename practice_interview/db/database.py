import logging
import os
import aiosqlite

from practice_interview.config import settings

logger = logging.getLogger(__name__)

_db: aiosqlite.Connection | None = None


async def get_db() -> aiosqlite.Connection:
    """Get or create the database connection."""
    global _db
    if _db is None:
        db_dir = os.path.dirname(settings.DATABASE_PATH)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        _db = await aiosqlite.connect(settings.DATABASE_PATH)
        _db.row_factory = aiosqlite.Row
        await _create_tables(_db)
        logger.info(f"Database ready at {settings.DATABASE_PATH}")
    return _db


async def close_db():
    """Close the database connection."""
    global _db
    if _db:
        await _db.close()
        _db = None


async def _create_tables(db: aiosqlite.Connection):
    await db.executescript("""
        CREATE TABLE IF NOT EXISTS practice_interviews (
            id                TEXT PRIMARY KEY,
            student_id        TEXT NOT NULL,
            student_name      TEXT,
            round_type        TEXT NOT NULL,
            total_questions   INTEGER NOT NULL,
            total_score       INTEGER NOT NULL,
            max_score         INTEGER NOT NULL,
            percentage        INTEGER NOT NULL,
            question_results  TEXT NOT NULL,
            overall_feedback  TEXT,
            tips              TEXT NOT NULL,
            duration_seconds  INTEGER NOT NULL,
            created_at        TEXT DEFAULT (datetime('now'))
        );

        CREATE INDEX IF NOT EXISTS idx_practice_interviews_student
            ON practice_interviews (student_id);
    """)
    await db.commit()
