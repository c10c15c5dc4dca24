"""Tests for scoring helpers, session storage and practice statistics."""
import pytest

from practice_interview.db.queries import (
    get_practice_session,
    get_practice_sessions,
    save_practice_session,
)
from practice_interview.models import (
    InterviewRound,
    QuestionResult,
    SessionSummary,
    calculate_percentage,
    format_duration,
    score_band,
)
from practice_interview.services.progress_tracker import (
    format_history,
    format_stats,
    format_summary,
    get_interview_stats,
)
from practice_interview.states.session_states import (
    SessionState,
    can_transition,
    check_transition,
)
from practice_interview.exceptions import InvalidTransitionError


def _summary(session_id="s1", student_id="student-1", round_type=InterviewRound.TECHNICAL, scores=(8, 6, 7, 5, 6)):
    per_question = [
        QuestionResult(f"Question {i}?", f"Answer {i}", s, "Fine.", ["Clear"], ["Depth"])
        for i, s in enumerate(scores, 1)
    ]
    total = sum(scores)
    return SessionSummary(
        session_id=session_id,
        student_id=student_id,
        student_name="Asha",
        round_type=round_type,
        total_questions=len(scores),
        total_score=total,
        max_score=10 * len(scores),
        percentage=calculate_percentage(total, len(scores)),
        per_question=per_question,
        overall_feedback="Good progress.",
        tips=["Speak slowly", "Use examples"],
        duration_seconds=125,
    )


def _record(percentage, round_type="Technical"):
    return {"percentage": percentage, "round_type": round_type}


class TestScoring:
    """Percentage and display helpers."""

    @pytest.mark.parametrize("total, questions, expected", [
        (32, 5, 64),
        (0, 5, 0),
        (50, 5, 100),
        (5, 5, 10),
        (1, 8, 1),   # 1.25
        (2, 8, 3),   # 2.5 rounds half up
        (6, 8, 8),   # 7.5
        (0, 0, 0),
    ])
    def test_calculate_percentage(self, total, questions, expected):
        assert calculate_percentage(total, questions) == expected

    def test_score_band(self):
        assert score_band(70) == "good"
        assert score_band(69) == "average"
        assert score_band(40) == "average"
        assert score_band(39) == "poor"

    def test_format_duration(self):
        assert format_duration(125) == "2m 5s"
        assert format_duration(0) == "0m 0s"

    def test_round_parse(self):
        assert InterviewRound.parse("hr") == InterviewRound.HR
        assert InterviewRound.parse(" Aptitude ") == InterviewRound.APTITUDE
        with pytest.raises(ValueError):
            InterviewRound.parse("Managerial")


class TestTransitions:
    """Allowed session state changes."""

    def test_forward_path(self):
        path = [
            SessionState.IDLE, SessionState.PREPARING, SessionState.ASKING,
            SessionState.LISTENING, SessionState.EVALUATING, SessionState.FEEDBACK,
            SessionState.COMPLETING, SessionState.COMPLETED,
        ]
        for current, target in zip(path, path[1:]):
            check_transition(current, target)

    def test_feedback_loops_to_next_question(self):
        assert can_transition(SessionState.FEEDBACK, SessionState.ASKING)

    def test_every_state_can_stop(self):
        for state in SessionState:
            assert can_transition(state, SessionState.IDLE)

    @pytest.mark.parametrize("current, target", [
        (SessionState.IDLE, SessionState.ASKING),
        (SessionState.ASKING, SessionState.EVALUATING),
        (SessionState.LISTENING, SessionState.FEEDBACK),
        (SessionState.COMPLETED, SessionState.PREPARING),
    ])
    def test_invalid_transitions(self, current, target):
        with pytest.raises(InvalidTransitionError):
            check_transition(current, target)


class TestSessionStorage:
    """SQLite persistence of completed sessions."""

    async def test_save_and_load(self, temp_db):
        summary = _summary()

        session_id = await save_practice_session(summary)
        record = await get_practice_session(session_id)

        assert session_id == "s1"
        assert record["student_id"] == "student-1"
        assert record["round_type"] == "Technical"
        assert record["total_score"] == 32
        assert record["percentage"] == 64
        assert record["tips"] == ["Speak slowly", "Use examples"]
        assert len(record["question_results"]) == 5
        assert record["question_results"][0] == {
            "question": "Question 1?",
            "answer": "Answer 1",
            "score": 8,
            "feedback": "Fine.",
            "strengths": ["Clear"],
            "improvements": ["Depth"],
        }
        assert record["created_at"]

    async def test_missing_session(self, temp_db):
        assert await get_practice_session("nope") is None

    async def test_sessions_newest_first_per_student(self, temp_db):
        await save_practice_session(_summary("a"))
        await save_practice_session(_summary("b", round_type=InterviewRound.HR))
        await save_practice_session(_summary("other", student_id="student-2"))

        records = await get_practice_sessions("student-1")
        limited = await get_practice_sessions("student-1", limit=1)

        assert [r["id"] for r in records] == ["b", "a"]
        assert [r["id"] for r in limited] == ["b"]


class TestInterviewStats:
    """Aggregate statistics."""

    def test_empty(self):
        stats = get_interview_stats([])
        assert stats["total_practices"] == 0
        assert stats["recent_improvement"] == 0

    def test_counts_and_scores(self):
        records = [_record(80), _record(60, "HR"), _record(40, "Aptitude")]

        stats = get_interview_stats(records)

        assert stats["total_practices"] == 3
        assert stats["average_score"] == 60
        assert stats["best_score"] == 80
        assert (stats["technical_count"], stats["hr_count"], stats["aptitude_count"]) == (1, 1, 1)
        assert stats["recent_improvement"] == 0

    def test_recent_improvement(self):
        """Newest three averaged against the up-to-three before them."""
        records = [_record(p) for p in (90, 80, 70, 50, 40)]

        stats = get_interview_stats(records)

        assert stats["recent_improvement"] == 35  # 80 - 45

    def test_format_history_empty(self):
        assert "No practice sessions yet" in format_history([])

    def test_format_history_and_stats(self):
        records = [{
            "percentage": 64, "round_type": "Technical", "total_score": 32,
            "max_score": 50, "duration_seconds": 125, "created_at": "2026-10-18 09:00:00",
        }]

        history = format_history(records)
        stats = format_stats(get_interview_stats(records))

        assert "Technical: 32/50 (64%), 2m 5s" in history
        assert "Practices completed: 1" in stats
        assert format_stats(get_interview_stats([])) == ""

    def test_format_summary(self):
        text = format_summary(_summary())

        assert "Score: 32/50 (64%)" in text
        assert "Duration: 2m 5s" in text
        assert "Q1: Question 1?" in text
        assert "  • Speak slowly" in text
