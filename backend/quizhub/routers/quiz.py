from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..db import get_db
from ..errors import BadRequest, GenerationUnavailable, NotFound
from ..extraction import extract_string_list
from ..generator import QuizGenerator, difficulty_for_score, get_quiz_generator
from ..models import User
from ..scoring import record_attempt, score
from ..validation import (
	ADAPTIVE_QUESTION_COUNT,
	DEFAULT_QUESTION_COUNT,
	DEFAULT_TOPIC_COUNT,
	build_quiz,
	fallback_topics,
)
from .auth import CurrentUser, get_current_user

router = APIRouter(prefix="/quiz", tags=["quiz"])
logger = logging.getLogger(__name__)

LEADERBOARD_SIZE = 10


class GenerateTopicsRequest(BaseModel):
	grade: Optional[Union[int, str]] = None
	course: Optional[str] = None
	selectedTopic: Optional[str] = None
	# Pick question difficulty from the caller's cumulative score
	adaptive: bool = False


class SubmitRequest(BaseModel):
	answers: List[Any]
	correctAnswers: List[Any]
	topic: Optional[str] = None
	course: Optional[str] = None


def _cumulative_score(db: Session, user_id: str) -> int:
	user = db.get(User, user_id)
	if not user:
		raise NotFound("User not found")
	return user.score


@router.post("/generate-topics")
async def generate_topics(
	req: GenerateTopicsRequest,
	user: CurrentUser = Depends(get_current_user),
	generator: QuizGenerator = Depends(get_quiz_generator),
	db: Session = Depends(get_db),
) -> Dict[str, Any]:
	grade = str(req.grade).strip() if req.grade is not None else ""
	course = (req.course or "").strip()
	if not grade or not course:
		raise BadRequest("Grade and course are required")
	topic = (req.selectedTopic or "").strip()

	# Step 1: offer topics
	if not topic:
		topics: List[str] = []
		try:
			raw = await generator.generate_topics(grade, course)
			topics = (await run_in_threadpool(extract_string_list, raw))[:DEFAULT_TOPIC_COUNT]
		except GenerationUnavailable as err:
			logger.warning("Topic generation failed for user_id=%s: %s", user.id, err)
		if not topics:
			logger.warning("Using fallback topics for user_id=%s", user.id)
			return {"topics": fallback_topics(), "fallback": True}
		return {"topics": topics, "fallback": False}

	# Step 2: questions for the selected topic
	count = DEFAULT_QUESTION_COUNT
	difficulty: Optional[str] = None
	if req.adaptive:
		cumulative = await run_in_threadpool(_cumulative_score, db, user.id)
		difficulty = difficulty_for_score(cumulative)
		count = ADAPTIVE_QUESTION_COUNT
	raw = ""
	try:
		raw = await generator.generate_questions(grade, course, topic, count=count, difficulty=difficulty)
	except GenerationUnavailable as err:
		logger.warning("Question generation failed for user_id=%s: %s", user.id, err)
	questions, used_fallback = await run_in_threadpool(build_quiz, raw, count)
	payload: Dict[str, Any] = {
		"questions": [q.model_dump() for q in questions],
		"selectedTopic": topic,
		"fallback": used_fallback,
	}
	if difficulty:
		payload["difficulty"] = difficulty
	return payload


@router.post("/submit")
def submit(req: SubmitRequest, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
	points = score(req.answers, req.correctAnswers)
	topic = (req.topic or "").strip()
	course = (req.course or "").strip()
	if not topic or not course:
		raise BadRequest("Topic and course are required")
	total = len(req.answers)
	record_attempt(db, user.id, topic, course, points, total)
	return {
		"score": points,
		"total": total,
		"completionMessage": f"Quiz completed! You scored {points} out of {total}. Great job! Ready for another challenge?",
	}


@router.get("/leaderboard")
def leaderboard(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
	rows = (
		db.query(User)
		.order_by(User.score.desc(), User.created_at.asc())
		.limit(LEADERBOARD_SIZE)
		.all()
	)
	return {
		"leaderboard": [
			{"rank": i + 1, "id": row.id, "name": row.name, "score": row.score, "is_me": row.id == user.id}
			for i, row in enumerate(rows)
		]
	}
