from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..db import get_db
from ..errors import BadRequest, GenerationUnavailable, NotFound
from ..generator import QuizGenerator, get_quiz_generator
from ..models import SavedQuiz
from ..validation import DEFAULT_QUESTION_COUNT, QuizQuestion, build_quiz
from .auth import CurrentUser, get_current_user

router = APIRouter(prefix="/platform", tags=["platform"])
logger = logging.getLogger(__name__)


class CreateRequest(BaseModel):
	prompt: Optional[str] = None


class SaveRequest(BaseModel):
	title: str = Field(min_length=1, max_length=200)
	questions: List[QuizQuestion] = Field(min_length=1)


def _saved_payload(row: SavedQuiz) -> Dict[str, Any]:
	return {
		"id": row.id,
		"title": row.title,
		"questions": json.loads(row.questions_json),
		"saved_at": row.saved_at.isoformat(),
	}


@router.post("/create")
async def create(
	req: CreateRequest,
	user: CurrentUser = Depends(get_current_user),
	generator: QuizGenerator = Depends(get_quiz_generator),
) -> Dict[str, Any]:
	prompt = (req.prompt or "").strip()
	if not prompt:
		raise BadRequest("Prompt is required")
	raw = ""
	try:
		raw = await generator.generate_from_prompt(prompt, count=DEFAULT_QUESTION_COUNT)
	except GenerationUnavailable as err:
		logger.warning("Platform generation failed for user_id=%s: %s", user.id, err)
	questions, used_fallback = await run_in_threadpool(build_quiz, raw, DEFAULT_QUESTION_COUNT)
	logger.info("Platform quiz for user_id=%s: %d questions (fallback=%s)", user.id, len(questions), used_fallback)
	return {"platform": [q.model_dump() for q in questions], "fallback": used_fallback}


@router.post("/save", status_code=201)
def save(req: SaveRequest, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
	title = req.title.strip()
	if not title:
		raise BadRequest("Title is required")
	row = SavedQuiz(
		user_id=user.id,
		title=title,
		questions_json=json.dumps([q.model_dump() for q in req.questions]),
	)
	db.add(row)
	db.commit()
	db.refresh(row)
	return _saved_payload(row)


@router.get("/save")
def list_saved(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
	rows = (
		db.query(SavedQuiz)
		.filter(SavedQuiz.user_id == user.id)
		.order_by(SavedQuiz.saved_at.desc())
		.all()
	)
	return {"quizzes": [_saved_payload(row) for row in rows]}


@router.get("/save/{quiz_id}")
def get_saved(quiz_id: str, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
	row = db.get(SavedQuiz, quiz_id)
	# another user's quiz is reported exactly like a missing one
	if not row or row.user_id != user.id:
		raise NotFound("Saved quiz not found")
	return _saved_payload(row)
