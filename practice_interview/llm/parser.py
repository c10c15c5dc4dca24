import json
import logging
import math
import re

from practice_interview.models import (
    MAX_SCORE_PER_QUESTION,
    AnswerEvaluation,
    GeneratedQuestion,
    OverallFeedback,
)

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def extract_json(raw_text: str | None):
    """Decode JSON from LLM output. Returns None on failure.

    Handles replies wrapped in markdown code fences or surrounded by prose.
    """
    if not raw_text:
        return None

    # Try direct JSON parse
    data = _try_parse_json(raw_text.strip())

    # Try extracting from markdown code block
    if data is None:
        match = _FENCE_RE.search(raw_text)
        if match:
            data = _try_parse_json(match.group(1).strip())

    # Try finding an array or object in the text
    if data is None:
        match = re.search(r"(\[\s*\{.+}\s*]|\{.+})", raw_text, re.DOTALL)
        if match:
            data = _try_parse_json(match.group(1))

    if data is None:
        logger.error("Failed to parse LLM response as JSON")
    return data


def parse_questions(raw_text: str | None) -> list[GeneratedQuestion] | None:
    """Parse LLM output into interview questions. Returns None on failure."""
    data = extract_json(raw_text)
    if isinstance(data, dict):
        data = data.get("questions")
    if not isinstance(data, list):
        return None

    questions = []
    for item in data:
        if not isinstance(item, dict) or not _is_text(item.get("question")):
            logger.warning(f"Skipping invalid question: {item}")
            continue
        questions.append(GeneratedQuestion(
            question=item["question"].strip(),
            expected_key_points=_text_list(item.get("expectedKeyPoints")),
        ))

    return questions if questions else None


def parse_evaluation(raw_text: str | None) -> AnswerEvaluation | None:
    """Parse an answer evaluation. Returns None on failure."""
    data = extract_json(raw_text)
    if not isinstance(data, dict):
        return None

    score = _coerce_score(data.get("score"))
    if score is None:
        logger.warning(f"Evaluation without a usable score: {data}")
        return None

    feedback = data.get("feedback")
    return AnswerEvaluation(
        score=score,
        feedback=feedback.strip() if _is_text(feedback) else "",
        strengths=_text_list(data.get("strengths")),
        improvements=_text_list(data.get("improvements")),
    )


def parse_overall_feedback(raw_text: str | None) -> OverallFeedback | None:
    """Parse the session summary feedback. Returns None on failure."""
    data = extract_json(raw_text)
    if not isinstance(data, dict) or not _is_text(data.get("overallFeedback")):
        return None
    return OverallFeedback(
        overall_feedback=data["overallFeedback"].strip(),
        tips=_text_list(data.get("tips")),
    )


def _try_parse_json(text: str):
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


def _is_text(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _text_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


def _coerce_score(value) -> int | None:
    """Scores may come back as floats or strings like "7" or "7/10"."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        match = re.match(r"\s*(\d+(?:\.\d+)?)", value)
        if not match:
            return None
        value = float(match.group(1))
    if not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return max(0, min(MAX_SCORE_PER_QUESTION, int(round(value))))
