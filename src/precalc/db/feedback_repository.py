"""Repository functions for feedback students leave on videos and examples."""

from __future__ import annotations

import structlog

from precalc.db.database import get_db

logger = structlog.get_logger(__name__)


def insert_media_feedback(student_id: str, media_id: str, comment: str) -> int:
    """Store feedback a student left on a video or example.

    Returns:
        Row id of the stored feedback
    """
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT INTO media_feedback (student_id, media_id, comment) VALUES (?, ?, ?)",
            (student_id, media_id, comment),
        )

    logger.info("media_feedback.inserted", student_id=student_id, media_id=media_id)
    return cursor.lastrowid


def get_media_feedback(media_id: str) -> list[dict]:
    """Get all feedback for a media item, oldest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM media_feedback WHERE media_id = ? ORDER BY id", (media_id,)
        ).fetchall()

    return [dict(row) for row in rows]
