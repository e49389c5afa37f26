from __future__ import annotations
import logging
from typing import Any, Dict, List, Sequence

from sqlalchemy import update
from sqlalchemy.orm import Session

from .errors import LengthMismatch, NotFound
from .models import QuizAttempt, User

logger = logging.getLogger(__name__)


def score(answers: Sequence[Any], correct_answers: Sequence[Any]) -> int:
	if len(answers) != len(correct_answers):
		raise LengthMismatch("Answers and correctAnswers must have the same length")
	return sum(1 for given, correct in zip(answers, correct_answers) if given == correct)


def record_attempt(db: Session, user_id: str, topic: str, course: str, points: int, total: int) -> QuizAttempt:
	"""Append an attempt row and add ``points`` to the user's cumulative score.

	Both writes share one transaction; the increment is a single SQL
	``score = score + :points`` so concurrent submissions never lose updates.
	"""
	attempt = QuizAttempt(user_id=user_id, topic=topic, course=course, score=points, total=total)
	try:
		result = db.execute(
			update(User)
			.where(User.id == user_id)
			.values(score=User.score + points)
			.execution_options(synchronize_session=False)
		)
		if result.rowcount == 0:
			raise NotFound("User not found")
		db.add(attempt)
		db.commit()
	except Exception:
		db.rollback()
		raise
	db.refresh(attempt)
	logger.info("Recorded attempt user_id=%s topic=%s course=%s score=%d/%d", user_id, topic, course, points, total)
	return attempt


def _attempt_payload(row: QuizAttempt) -> Dict[str, Any]:
	return {
		"topic": row.topic,
		"course": row.course,
		"score": row.score,
		"total": row.total,
		"attempted_at": row.attempted_at.isoformat(),
	}


def list_attempts(db: Session, user_id: str) -> List[Dict[str, Any]]:
	rows = (
		db.query(QuizAttempt)
		.filter(QuizAttempt.user_id == user_id)
		.order_by(QuizAttempt.attempted_at.desc(), QuizAttempt.id.desc())
		.all()
	)
	return [_attempt_payload(row) for row in rows]
