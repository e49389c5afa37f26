import asyncio

import pytest

from quizhub.errors import GenerationUnavailable
from quizhub.generator import SYSTEM_PROMPT, QuizGenerator, difficulty_for_score


@pytest.mark.parametrize(
    "cumulative, expected",
    [(0, "easy"), (49, "easy"), (50, "medium"), (149, "medium"), (150, "hard"), (10_000, "hard")],
)
def test_difficulty_for_score(cumulative, expected):
    assert difficulty_for_score(cumulative) == expected


def test_topics_prompt_and_settings(fake_llm):
    fake_llm.queue('["Fractions"]')
    raw = asyncio.run(QuizGenerator(fake_llm).generate_topics("6", "Math"))
    assert raw == '["Fractions"]'
    call = fake_llm.calls[0]
    assert "15 interesting and relevant Math topics for grade 6" in call["prompt"]
    assert "JSON array" in call["prompt"]
    assert call["system"] == SYSTEM_PROMPT
    assert call["temperature"] == 0.2
    assert call["max_tokens"] == 500


def test_question_prompt_names_topic_count_and_difficulty(fake_llm):
    fake_llm.queue("[]")
    asyncio.run(QuizGenerator(fake_llm).generate_questions("8", "Science", "Cells", count=5, difficulty="hard"))
    prompt = fake_llm.calls[0]["prompt"]
    assert 'Generate 5 multiple-choice quiz questions for grade 8 students on the Science topic "Cells"' in prompt
    assert "Target difficulty: hard." in prompt
    assert '"answer"' in prompt and '"options"' in prompt
    assert fake_llm.calls[0]["max_tokens"] == 2048


def test_prompts_are_deterministic(fake_llm):
    fake_llm.queue("a", "b")
    generator = QuizGenerator(fake_llm)
    asyncio.run(generator.generate_questions("8", "Science", "Cells"))
    asyncio.run(generator.generate_questions("8", "Science", "Cells"))
    first, second = fake_llm.calls
    assert first == second
    assert "Target difficulty" not in first["prompt"]


def test_platform_prompt_carries_user_topic(fake_llm):
    fake_llm.queue("[]")
    asyncio.run(QuizGenerator(fake_llm).generate_from_prompt("World War II"))
    prompt = fake_llm.calls[0]["prompt"]
    assert prompt.endswith("Topic: World War II")
    assert "15 objects" in prompt


def test_provider_errors_propagate(fake_llm):
    fake_llm.queue(GenerationUnavailable("provider down"))
    with pytest.raises(GenerationUnavailable):
        asyncio.run(QuizGenerator(fake_llm).generate_topics("6", "Math"))
