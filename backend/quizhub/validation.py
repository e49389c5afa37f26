from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from .errors import NoValidQuestions
from .extraction import iter_question_objects

logger = logging.getLogger(__name__)

DEFAULT_QUESTION_COUNT = 15
ADAPTIVE_QUESTION_COUNT = 5
DEFAULT_TOPIC_COUNT = 15
OPTION_COUNT = 4


class QuizQuestion(BaseModel):
	question: str
	options: List[str]
	answer: str

	@field_validator("question")
	@classmethod
	def question_not_blank(cls, value: str) -> str:
		if not value.strip():
			raise ValueError("question must not be empty")
		return value

	@field_validator("options")
	@classmethod
	def four_distinct_options(cls, value: List[str]) -> List[str]:
		if len(value) != OPTION_COUNT:
			raise ValueError(f"options must contain exactly {OPTION_COUNT} entries")
		if len(set(value)) != OPTION_COUNT:
			raise ValueError("options must be distinct")
		return value

	@model_validator(mode="after")
	def answer_is_an_option(self) -> "QuizQuestion":
		if self.answer not in self.options:
			raise ValueError("answer must be one of the options")
		return self


def _coerce(candidate: Any) -> Optional[QuizQuestion]:
	if not isinstance(candidate, dict):
		return None
	try:
		return QuizQuestion.model_validate(candidate)
	except ValidationError as err:
		logger.debug("Rejected question candidate (%d errors)", err.error_count())
		return None


def validate(candidates: Iterable[Dict[str, Any]], target_count: int = DEFAULT_QUESTION_COUNT) -> List[QuizQuestion]:
	"""Keep structurally valid questions, truncated to ``target_count``.

	Raises ``NoValidQuestions`` when no candidate survives.
	"""
	valid: List[QuizQuestion] = []
	for candidate in candidates:
		if len(valid) >= target_count:
			break
		question = _coerce(candidate)
		if question is not None:
			valid.append(question)
	if not valid:
		raise NoValidQuestions("No valid questions extracted")
	return valid


def fallback_questions(count: int = DEFAULT_QUESTION_COUNT) -> List[QuizQuestion]:
	return [
		QuizQuestion(
			question=f"Sample fallback question {i + 1}?",
			options=["Option A", "Option B", "Option C", "Option D"],
			answer="Option A",
		)
		for i in range(count)
	]


def fallback_topics(count: int = DEFAULT_TOPIC_COUNT) -> List[str]:
	return [f"Topic {i + 1}" for i in range(count)]


def build_quiz(raw: Optional[str], target_count: int = DEFAULT_QUESTION_COUNT) -> Tuple[List[QuizQuestion], bool]:
	"""Extract and validate questions from raw completion text.

	Returns ``(questions, used_fallback)``; the fixed fallback set replaces an
	empty result so callers always have a usable quiz.
	"""
	try:
		return validate(iter_question_objects(raw), target_count), False
	except NoValidQuestions:
		logger.warning("No valid questions in completion; using %d fallback questions", target_count)
		return fallback_questions(target_count), True
