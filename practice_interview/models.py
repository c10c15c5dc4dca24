"""Data models for practice interview sessions."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

MAX_SCORE_PER_QUESTION = 10

# Recorded when nothing was heard for a question
NO_ANSWER = "(No answer provided)"


class InterviewRound(str, Enum):
    """Kind of interview being practiced."""
    TECHNICAL = "Technical"
    HR = "HR"
    APTITUDE = "Aptitude"

    @classmethod
    def parse(cls, text: str) -> "InterviewRound":
        """Resolve a round from user input, case-insensitively."""
        for member in cls:
            if member.value.lower() == text.strip().lower():
                return member
        raise ValueError(f"Unknown interview round: {text!r}")


@dataclass
class GeneratedQuestion:
    """Question produced by the AI for one interview slot."""
    question: str
    expected_key_points: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AnswerEvaluation:
    """AI verdict on a single answer."""
    score: int
    feedback: str
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class OverallFeedback:
    """Summary feedback for the whole session."""
    overall_feedback: str
    tips: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class QuestionResult:
    """Question, answer and evaluation stored together."""
    question: str
    answer: str
    score: int
    feedback: str
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "answer": self.answer,
            "score": self.score,
            "feedback": self.feedback,
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
        }


@dataclass(frozen=True)
class SessionSummary:
    """Persisted record of a completed practice session."""
    session_id: str
    student_id: str
    student_name: str
    round_type: InterviewRound
    total_questions: int
    total_score: int
    max_score: int
    percentage: int
    per_question: list[QuestionResult]
    overall_feedback: str
    tips: list[str]
    duration_seconds: int
    created_at: Optional[datetime] = None  # assigned by the store


def is_no_answer(answer: str) -> bool:
    """True for blank transcripts and the no-answer sentinel."""
    return not answer.strip() or answer == NO_ANSWER


def calculate_percentage(total_score: int, total_questions: int) -> int:
    """
    Percentage of the maximum score, rounded half up.

    Args:
        total_score: Sum of per-question scores
        total_questions: Number of questions in the session

    Returns:
        Integer percentage, 0 for an empty session
    """
    max_score = MAX_SCORE_PER_QUESTION * total_questions
    if max_score <= 0:
        return 0
    # floor(100 * total / max + 0.5) in integer arithmetic
    return (200 * total_score + max_score) // (2 * max_score)


def score_band(percentage: int) -> str:
    """Classify a percentage as good / average / poor."""
    if percentage >= 70:
        return "good"
    if percentage >= 40:
        return "average"
    return "poor"


def format_duration(seconds: int) -> str:
    """Format seconds as 'Xm Ys'."""
    minutes, secs = divmod(max(int(seconds), 0), 60)
    return f"{minutes}m {secs}s"
