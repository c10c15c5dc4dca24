"""Shared fixtures for practice interview tests."""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from practice_interview.config import settings
from practice_interview.db.database import close_db
from practice_interview.models import AnswerEvaluation, GeneratedQuestion, OverallFeedback
from practice_interview.speech.base import SpeechAdapter


class FakeSpeech(SpeechAdapter):
    """Scripted speech adapter: instant speech, canned transcripts."""

    def __init__(self, transcripts=None, input_supported=True, output_supported=True, on_listen=None, on_speak=None):
        self.transcripts = list(transcripts or [])
        self.input_supported = input_supported
        self.output_supported = output_supported
        self.on_listen = on_listen
        self.on_speak = on_speak
        self.spoken = []
        self.listen_calls = 0
        self.stop_listening_calls = 0
        self.stop_speaking_calls = 0

    async def speak(self, text):
        self.spoken.append(text)
        if self.on_speak:
            await self.on_speak(text)

    async def listen(self, silence_timeout_ms, on_interim=None):
        self.listen_calls += 1
        if self.on_listen:
            await self.on_listen(self.listen_calls - 1)
        text = self.transcripts.pop(0) if self.transcripts else ""
        if isinstance(text, Exception):
            raise text
        if on_interim and text:
            on_interim(text)
        return text

    def stop_listening(self):
        self.stop_listening_calls += 1

    def stop_speaking(self):
        self.stop_speaking_calls += 1

    def is_input_supported(self):
        return self.input_supported

    def is_output_supported(self):
        return self.output_supported


def make_ai(questions, scores=None, overall=None):
    """AI service double with AsyncMock methods."""
    scores = list(scores or [5] * len(questions))
    evaluations = [
        AnswerEvaluation(score=s, feedback=f"Feedback {i + 1}", strengths=["Clear"], improvements=["More depth"])
        for i, s in enumerate(scores)
    ]
    return SimpleNamespace(
        generate_questions=AsyncMock(return_value=questions),
        evaluate_answer=AsyncMock(side_effect=evaluations),
        generate_overall_feedback=AsyncMock(
            return_value=overall or OverallFeedback("Solid effort overall.", ["Tip A", "Tip B", "Tip C"])
        ),
    )


def fake_llm_reply(questions_json, evaluation=None, overall=None):
    """Build a chat_completion side effect that answers by prompt type."""
    evaluation = evaluation or {"score": 5, "feedback": "Okay.", "strengths": [], "improvements": []}
    overall = overall or {"overallFeedback": "Keep practicing.", "tips": ["One", "Two", "Three"]}

    async def reply(prompt, *args, **kwargs):
        if "expert interviewer" in prompt:
            return json.dumps(evaluation)
        if "career counselor" in prompt:
            return json.dumps(overall)
        return questions_json

    return reply


@pytest.fixture
def sample_questions():
    """Five generated technical questions."""
    return [
        GeneratedQuestion("What is a linked list?", ["nodes", "pointers"]),
        GeneratedQuestion("Explain normalization in DBMS.", ["redundancy", "normal forms"]),
        GeneratedQuestion("What is a deadlock?", ["resources", "circular wait"]),
        GeneratedQuestion("Difference between TCP and UDP?", ["reliability", "connection"]),
        GeneratedQuestion("What is polymorphism?", ["overloading", "overriding"]),
    ]


@pytest.fixture
def questions_json(sample_questions):
    """The sample questions as the AI would return them."""
    return json.dumps([
        {"question": q.question, "expectedKeyPoints": q.expected_key_points}
        for q in sample_questions
    ])


@pytest.fixture
def sample_answers():
    """Transcripts for the five sample questions."""
    return [
        "A linked list is a chain of nodes connected by pointers",
        "Normalization removes redundancy using normal forms",
        "A deadlock is when processes wait on each other forever",
        "TCP is reliable and connection oriented while UDP is not",
        "Polymorphism lets one interface have many implementations",
    ]


@pytest.fixture
async def temp_db(tmp_path, monkeypatch):
    """Fresh SQLite database in a temporary directory."""
    await close_db()
    monkeypatch.setattr(settings, "DATABASE_PATH", str(tmp_path / "data" / "test.db"))
    yield
    await close_db()
