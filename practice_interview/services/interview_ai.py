import logging
from dataclasses import replace

from practice_interview.exceptions import GenerationError, LLMError
from practice_interview.llm.client import chat_completion
from practice_interview.llm.parser import parse_evaluation, parse_overall_feedback, parse_questions
from practice_interview.llm.prompts import (
    STRICT_JSON_SUFFIX,
    build_evaluation_prompt,
    build_feedback_prompt,
    build_questions_prompt,
)
from practice_interview.models import (
    AnswerEvaluation,
    GeneratedQuestion,
    InterviewRound,
    OverallFeedback,
    is_no_answer,
)

logger = logging.getLogger(__name__)

DEFAULT_OVERALL_FEEDBACK = "Practice makes perfect! Keep working on your interview skills."
DEFAULT_TIPS = ["Practice more frequently", "Review fundamentals", "Stay calm and confident"]


def fallback_evaluation() -> AnswerEvaluation:
    return AnswerEvaluation(
        score=0,
        feedback="Could not evaluate the answer.",
        strengths=[],
        improvements=["Try to provide a clearer answer"],
    )


def no_answer_evaluation() -> AnswerEvaluation:
    """Used when the microphone could not be used at all for a question."""
    return AnswerEvaluation(
        score=0,
        feedback="No answer was detected.",
        strengths=[],
        improvements=["Make sure to speak clearly into your microphone"],
    )


def fallback_overall_feedback() -> OverallFeedback:
    return OverallFeedback(overall_feedback=DEFAULT_OVERALL_FEEDBACK, tips=list(DEFAULT_TIPS))


async def generate_questions(round_type: InterviewRound, count: int) -> list[GeneratedQuestion]:
    """Generate interview questions for a round. Raises GenerationError on failure."""
    prompt = build_questions_prompt(round_type, count)

    # First attempt
    try:
        questions = parse_questions(await chat_completion(prompt))
    except LLMError as e:
        raise GenerationError(f"Failed to generate interview questions: {e}") from e

    if questions and len(questions) >= count:
        return questions[:count]

    # Retry once with a stricter prompt
    logger.info("First attempt didn't produce enough questions, retrying...")
    try:
        retried = parse_questions(await chat_completion(prompt + STRICT_JSON_SUFFIX))
    except LLMError as e:
        logger.warning(f"Retry failed: {e}")
        retried = None

    # Keep whichever attempt gave more questions
    best = max(questions or [], retried or [], key=len)
    if best:
        return best[:count]

    logger.error("Failed to generate questions after 2 attempts")
    raise GenerationError("Failed to generate interview questions. Please try again.")


async def evaluate_answer(question: str, answer: str, round_type: InterviewRound) -> AnswerEvaluation:
    """Score one answer. Never raises: failures yield the fallback evaluation."""
    prompt = build_evaluation_prompt(question, answer, round_type)
    try:
        evaluation = parse_evaluation(await chat_completion(prompt))
    except LLMError as e:
        logger.error(f"Error evaluating answer: {e}")
        return fallback_evaluation()
    except (ValueError, TypeError, OverflowError) as e:
        logger.error(f"Evaluation response could not be read: {e}")
        return fallback_evaluation()

    if evaluation is None:
        logger.error("Evaluation response could not be parsed")
        return fallback_evaluation()

    if is_no_answer(answer) and evaluation.score > 1:
        logger.warning(f"Capping score {evaluation.score} for an empty answer")
        evaluation = replace(evaluation, score=1)
    return evaluation


async def generate_overall_feedback(round_type: InterviewRound, results: list[dict]) -> OverallFeedback:
    """Summarize the whole session. Never raises: failures yield generic tips."""
    prompt = build_feedback_prompt(round_type, results)
    try:
        feedback = parse_overall_feedback(await chat_completion(prompt))
    except LLMError as e:
        logger.error(f"Error generating overall feedback: {e}")
        return fallback_overall_feedback()
    except (ValueError, TypeError, OverflowError) as e:
        logger.error(f"Overall feedback response could not be read: {e}")
        return fallback_overall_feedback()

    if feedback is None:
        logger.error("Overall feedback response could not be parsed")
        return fallback_overall_feedback()
    return feedback
