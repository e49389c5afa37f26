from __future__ import annotations
import logging
from typing import Optional

from fastapi import Depends

from .llm_client import CompletionClient, get_completion_client
from .validation import DEFAULT_QUESTION_COUNT, DEFAULT_TOPIC_COUNT

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant that returns clean JSON arrays only."

TEMPERATURE = 0.2
TOPIC_MAX_TOKENS = 500
QUESTION_MAX_TOKENS = 2048

# Cumulative score thresholds for adaptive difficulty: below 50 easy, below 150 medium
DIFFICULTY_LADDER = ((50, "easy"), (150, "medium"))
TOP_DIFFICULTY = "hard"


def difficulty_for_score(cumulative_score: int) -> str:
	for threshold, label in DIFFICULTY_LADDER:
		if cumulative_score < threshold:
			return label
	return TOP_DIFFICULTY


_QUESTION_SHAPE = (
	"Each object must have exactly these keys: "
	'"question" (string), "options" (array of exactly 4 distinct strings), '
	'"answer" (string, copied exactly from one of the 4 options).\n'
)


def _topics_prompt(grade: str, course: str, count: int) -> str:
	return (
		f"Suggest {count} interesting and relevant {course} topics for grade {grade} students.\n"
		f'Return ONLY a JSON array of {count} strings like ["topic1", "topic2"].\n'
		"No markdown, no code fences, no text before or after the array."
	)


def _questions_prompt(grade: str, course: str, topic: str, count: int, difficulty: Optional[str]) -> str:
	level = f"Target difficulty: {difficulty}.\n" if difficulty else ""
	return (
		f"Generate {count} multiple-choice quiz questions for grade {grade} students "
		f'on the {course} topic "{topic}".\n'
		f"{level}"
		"Each question has 4 options and exactly one correct answer.\n"
		f"Return ONLY a JSON array of {count} objects.\n"
		f"{_QUESTION_SHAPE}"
		"No markdown, no code fences, no text before or after the array."
	)


def _platform_prompt(prompt: str, count: int) -> str:
	return (
		f"Return ONLY a JSON array with {count} objects, no other text.\n"
		f"{_QUESTION_SHAPE}"
		"The array must start with [ and end with ]. No backticks or extra text.\n"
		f"Topic: {prompt}"
	)


class QuizGenerator:
	"""Builds quiz prompts and returns the raw completion text.

	Provider failures propagate as ``GenerationUnavailable``; parsing and
	validation of the returned text happen downstream.
	"""

	def __init__(self, client: CompletionClient, *, temperature: float = TEMPERATURE) -> None:
		self.client = client
		self.temperature = temperature

	async def generate_topics(self, grade: str, course: str, *, count: int = DEFAULT_TOPIC_COUNT) -> str:
		prompt = _topics_prompt(grade, course, count)
		logger.info("Generating %d topics for grade=%s course=%s", count, grade, course)
		return await self._complete(prompt, TOPIC_MAX_TOKENS)

	async def generate_questions(
		self,
		grade: str,
		course: str,
		topic: str,
		*,
		count: int = DEFAULT_QUESTION_COUNT,
		difficulty: Optional[str] = None,
	) -> str:
		prompt = _questions_prompt(grade, course, topic, count, difficulty)
		logger.info("Generating %d questions for grade=%s course=%s topic=%s difficulty=%s", count, grade, course, topic, difficulty)
		return await self._complete(prompt, QUESTION_MAX_TOKENS)

	async def generate_from_prompt(self, prompt: str, *, count: int = DEFAULT_QUESTION_COUNT) -> str:
		logger.info("Generating %d platform questions", count)
		return await self._complete(_platform_prompt(prompt, count), QUESTION_MAX_TOKENS)

	async def _complete(self, prompt: str, max_tokens: int) -> str:
		raw = await self.client.complete(
			prompt,
			system=SYSTEM_PROMPT,
			max_tokens=max_tokens,
			temperature=self.temperature,
		)
		logger.debug("Raw completion: %s", raw)
		return raw


def get_quiz_generator(client: CompletionClient = Depends(get_completion_client)) -> QuizGenerator:
	return QuizGenerator(client)
