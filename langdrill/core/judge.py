"""
Optional remote grading judge.

A judge gets first say on an answer. It returns None whenever it cannot
produce a well-formed verdict, and the engine then grades locally.
"""

from __future__ import annotations

import json
import re
from typing import Any, Protocol, runtime_checkable

import httpx
from loguru import logger

from .models import GradeResult, Question, question_to_dict

SYSTEM_PROMPT = (
    "You are a language tutor grading a learner's answer. "
    "You MUST output strict JSON only. No markdown. No prose outside JSON. "
    'Reply with {"correct": boolean, "quality": 0-5, "explanation": "short string", '
    '"expectedAnswer": "string?", "normalizedUserAnswer": "string?"}.'
)

DEFAULT_QUALITY = 3

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


@runtime_checkable
class GradingJudge(Protocol):
    """Anything that can try to grade an answer."""

    async def try_grade(self, question: Question, answer: str) -> GradeResult | None: ...


def clamp_quality(value: Any) -> int:
    """Clamp to 0..5; non-numeric values become 3."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value != value:
        return DEFAULT_QUALITY
    return max(0, min(5, int(round(value))))


def parse_judge_reply(text: str | None) -> GradeResult | None:
    """
    Validate a judge's JSON reply.

    Args:
        text: Raw reply text

    Returns:
        GradeResult, or None if the reply is not JSON or `correct` is not a bool
    """
    if not text:
        return None
    try:
        parsed = json.loads(_CODE_FENCE.sub("", text.strip()))
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(parsed, dict) or not isinstance(parsed.get("correct"), bool):
        return None

    explanation = parsed.get("explanation")
    expected = parsed.get("expectedAnswer")
    normalized = parsed.get("normalizedUserAnswer")
    return GradeResult(
        correct=parsed["correct"],
        quality=clamp_quality(parsed.get("quality")),
        explanation=explanation if isinstance(explanation, str) else "",
        expected_answer=expected if isinstance(expected, str) else None,
        normalized_user_answer=normalized if isinstance(normalized, str) else None,
    )


class HttpGradingJudge:
    """Judge backed by an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        model: str = "llama3.2",
        timeout_seconds: float = 8.0,
    ):
        """
        Initialize the judge.

        Args:
            base_url: API root, e.g. http://localhost:11434/v1
            api_key: Bearer token, if the endpoint needs one
            model: Model name sent with each request
            timeout_seconds: Per-request HTTP timeout
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers=headers,
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    def build_payload(self, question: Question, answer: str) -> dict[str, Any]:
        request = {
            "action": "grade_answer",
            "question": question_to_dict(question),
            "userAnswer": answer,
        }
        return {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps(request, ensure_ascii=False)},
            ],
        }

    async def try_grade(self, question: Question, answer: str) -> GradeResult | None:
        try:
            response = await self.client.post(
                f"{self.base_url}/chat/completions",
                json=self.build_payload(question, answer),
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except Exception as e:
            logger.warning(f"Grading judge unavailable: {e}")
            return None

        result = parse_judge_reply(content)
        if result is None:
            logger.warning("Grading judge returned a malformed reply")
        return result
