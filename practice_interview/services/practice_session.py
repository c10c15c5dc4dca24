"""Practice interview session: question loop driven by speech and AI scoring."""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional
from uuid import uuid4

from practice_interview.config import settings
from practice_interview.db.queries import save_practice_session
from practice_interview.exceptions import (
    GenerationError,
    InvalidTransitionError,
    SpeechUnavailableError,
)
from practice_interview.models import (
    MAX_SCORE_PER_QUESTION,
    NO_ANSWER,
    AnswerEvaluation,
    GeneratedQuestion,
    InterviewRound,
    OverallFeedback,
    QuestionResult,
    SessionSummary,
    calculate_percentage,
)
from practice_interview.services import interview_ai
from practice_interview.speech.base import SpeechAdapter
from practice_interview.states.session_states import SessionState, check_transition

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, int], None]
SaveSession = Callable[[SessionSummary], Awaitable[str]]


class _SessionStopped(Exception):
    """Raised inside run() once stop() has been called."""


class PracticeSession:
    """
    Runs one practice interview at a time.

    States:
        idle → preparing → asking → listening → evaluating → feedback
                              ↑__________________________________↓
                                                    (next question)
        feedback → completing → completed → (reset) idle

    Only question generation failures reach the caller. Speech problems,
    evaluation and summary failures fall back to defaults, and a failed
    save is logged.
    """

    def __init__(
        self,
        speech: SpeechAdapter,
        student_id: str,
        student_name: str = "Student",
        *,
        ai=interview_ai,
        save_session: SaveSession = save_practice_session,
        question_count: Optional[int] = None,
        silence_timeout_ms: Optional[int] = None,
        muted_ask_delay: Optional[float] = None,
        feedback_delay: Optional[float] = None,
        muted: bool = False,
        on_state_change: Optional[StateCallback] = None,
        on_interim: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            speech: Speech input/output adapter
            student_id: Owner of the saved session
            student_name: Display name stored with the session
            ai: Provides generate_questions, evaluate_answer, generate_overall_feedback
            save_session: Persists the finished summary, returns its id
            question_count: Questions to request (default from settings)
            silence_timeout_ms: Silence that ends an answer
            muted_ask_delay: Pause before listening when muted, in seconds
            feedback_delay: How long per-answer feedback is shown, in seconds
            muted: Start with speech output muted
            on_state_change: Called with (state, question index) on every change
            on_interim: Called with the live transcript while listening
        """
        self._speech = speech
        self.student_id = student_id
        self.student_name = student_name
        self._ai = ai
        self._save_session = save_session
        self.question_count = question_count or settings.QUESTION_COUNT
        self.silence_timeout_ms = silence_timeout_ms or settings.SILENCE_TIMEOUT_MS
        self.muted_ask_delay = (
            settings.MUTED_ASK_DELAY_SECONDS if muted_ask_delay is None else muted_ask_delay
        )
        self.feedback_delay = (
            settings.FEEDBACK_DISPLAY_SECONDS if feedback_delay is None else feedback_delay
        )
        self.muted = muted
        self.on_state_change = on_state_change
        self.on_interim = on_interim
        self._clock = clock

        self._state = SessionState.IDLE
        self._run_id = 0
        self._clear()

    # =========================================================================
    # READ-ONLY VIEWS
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def round(self) -> Optional[InterviewRound]:
        return self._round

    @property
    def questions(self) -> list[GeneratedQuestion]:
        return list(self._questions)

    @property
    def answers(self) -> list[str]:
        return list(self._answers)

    @property
    def evaluations(self) -> list[AnswerEvaluation]:
        return list(self._evaluations)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def overall_feedback(self) -> Optional[OverallFeedback]:
        return self._overall_feedback

    @property
    def summary(self) -> Optional[SessionSummary]:
        return self._summary

    @property
    def progress(self) -> int:
        """Percent of questions done, for a progress bar."""
        if not self._questions:
            return 0
        done = self._current_index + (1 if self._state == SessionState.COMPLETED else 0)
        return round(100 * done / len(self._questions))

    # =========================================================================
    # CONTROL
    # =========================================================================

    async def run(self, round_type: InterviewRound) -> Optional[SessionSummary]:
        """
        Run a full practice interview.

        Returns:
            The saved summary, or None if the session was stopped

        Raises:
            InvalidTransitionError: a session is already running
            SpeechUnavailableError: speech input is not supported
            GenerationError: questions could not be generated

        Any other error stops the session before it propagates.
        """
        if self._state != SessionState.IDLE:
            raise InvalidTransitionError(f"Session already {self._state.value}")
        if not self._speech.is_input_supported():
            raise SpeechUnavailableError("Speech recognition is not supported on this machine")

        self._run_id += 1
        run_id = self._run_id
        self._clear()
        self._round = round_type
        self._session_id = uuid4().hex
        self._started_at = self._clock()
        self._transition(SessionState.PREPARING)
        logger.info(f"Starting {round_type.value} practice session for {self.student_id}")

        try:
            questions = await self._ai.generate_questions(round_type, self.question_count)
            self._ensure_active(run_id)
            if not questions:
                raise GenerationError("No interview questions were generated")
            self._questions = list(questions)

            for index, question in enumerate(self._questions):
                await self._ask(run_id, index, question)
                answer, heard = await self._listen(run_id)
                evaluation = await self._evaluate(run_id, question, answer, heard)
                await self._show_feedback(run_id, evaluation)

            return await self._complete(run_id)
        except _SessionStopped:
            logger.info("Practice session stopped")
            return None
        except asyncio.CancelledError:
            if self._run_id == run_id:
                self.stop()
            raise
        except Exception as e:
            if self._run_id != run_id:
                logger.info(f"Practice session stopped, discarding error: {e}")
                return None
            logger.error(f"Practice session failed: {e}")
            self.stop()
            raise

    def stop(self) -> None:
        """Abort the session from any state. Idempotent."""
        self._speech.cleanup()
        self._run_id += 1
        self._clear()
        self._transition(SessionState.IDLE)

    def reset(self) -> None:
        """Leave the completed screen ("practice again" / "back to menu")."""
        if self._state not in (SessionState.COMPLETED, SessionState.IDLE):
            raise InvalidTransitionError(f"Cannot reset while {self._state.value}")
        self.stop()

    def set_muted(self, muted: bool) -> None:
        if muted and not self.muted:
            self._speech.stop_speaking()
        self.muted = muted

    # =========================================================================
    # PHASES
    # =========================================================================

    async def _ask(self, run_id: int, index: int, question: GeneratedQuestion) -> None:
        self._current_index = index
        self._transition(SessionState.ASKING)

        if self.muted:
            await asyncio.sleep(self.muted_ask_delay)
        else:
            if index == 0:
                intro = f"Let's begin your {self._round.value} interview. Here's your first question. "
            else:
                intro = f"Question {index + 1}. "
            await self._speech.speak(intro + question.question)
        self._ensure_active(run_id)

    async def _listen(self, run_id: int) -> tuple[str, bool]:
        """Capture an answer. Returns (answer, whether the microphone worked)."""
        self._transition(SessionState.LISTENING)

        heard = True
        try:
            transcript = await self._speech.listen(self.silence_timeout_ms, self._handle_interim)
        except SpeechUnavailableError as e:
            logger.warning(f"Listening failed, recording no answer: {e}")
            transcript, heard = "", False
        self._ensure_active(run_id)

        answer = transcript.strip() or NO_ANSWER
        self._answers.append(answer)
        self._transition(SessionState.EVALUATING)
        return answer, heard

    async def _evaluate(
        self,
        run_id: int,
        question: GeneratedQuestion,
        answer: str,
        heard: bool,
    ) -> AnswerEvaluation:
        if heard:
            evaluation = await self._ai.evaluate_answer(question.question, answer, self._round)
        else:
            evaluation = interview_ai.no_answer_evaluation()
        self._ensure_active(run_id)

        self._evaluations.append(evaluation)
        self._transition(SessionState.FEEDBACK)
        return evaluation

    async def _show_feedback(self, run_id: int, evaluation: AnswerEvaluation) -> None:
        if not self.muted:
            await self._speech.speak(
                f"Score: {evaluation.score} out of {MAX_SCORE_PER_QUESTION}. {evaluation.feedback}"
            )
            self._ensure_active(run_id)
        await asyncio.sleep(self.feedback_delay)
        self._ensure_active(run_id)

    async def _complete(self, run_id: int) -> SessionSummary:
        self._transition(SessionState.COMPLETING)
        if not self.muted:
            await self._speech.speak("The interview is now complete. Let me prepare your feedback.")
            self._ensure_active(run_id)

        results = [
            {"question": q.question, "answer": a, "score": e.score}
            for q, a, e in zip(self._questions, self._answers, self._evaluations)
        ]
        overall = await self._ai.generate_overall_feedback(self._round, results)
        self._ensure_active(run_id)
        self._overall_feedback = overall

        summary = self._build_summary(overall)
        try:
            saved_id = await self._save_session(summary)
            logger.info(f"Practice session saved: {saved_id}")
        except Exception as e:
            # Results are already final for the user
            logger.error(f"Failed to save practice session {summary.session_id}: {e}")
        self._ensure_active(run_id)

        self._summary = summary
        self._transition(SessionState.COMPLETED)
        logger.info(
            f"Practice session finished: {summary.total_score}/{summary.max_score} "
            f"({summary.percentage}%)"
        )
        return summary

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _build_summary(self, overall: OverallFeedback) -> SessionSummary:
        per_question = [
            QuestionResult(
                question=q.question,
                answer=a,
                score=e.score,
                feedback=e.feedback,
                strengths=list(e.strengths),
                improvements=list(e.improvements),
            )
            for q, a, e in zip(self._questions, self._answers, self._evaluations)
        ]
        total_questions = len(self._questions)
        total_score = sum(e.score for e in self._evaluations)
        return SessionSummary(
            session_id=self._session_id,
            student_id=self.student_id,
            student_name=self.student_name,
            round_type=self._round,
            total_questions=total_questions,
            total_score=total_score,
            max_score=MAX_SCORE_PER_QUESTION * total_questions,
            percentage=calculate_percentage(total_score, total_questions),
            per_question=per_question,
            overall_feedback=overall.overall_feedback,
            tips=list(overall.tips),
            duration_seconds=round(self._clock() - self._started_at),
        )

    def _transition(self, target: SessionState) -> None:
        check_transition(self._state, target)
        if target == self._state:
            return
        logger.debug(f"Session state {self._state.value} -> {target.value}")
        self._state = target
        if self.on_state_change:
            self.on_state_change(target, self._current_index)

    def _ensure_active(self, run_id: int) -> None:
        if self._run_id != run_id:
            raise _SessionStopped()

    def _handle_interim(self, text: str) -> None:
        if self.on_interim:
            self.on_interim(text)

    def _clear(self) -> None:
        self._round: Optional[InterviewRound] = None
        self._questions: list[GeneratedQuestion] = []
        self._answers: list[str] = []
        self._evaluations: list[AnswerEvaluation] = []
        self._current_index = 0
        self._overall_feedback: Optional[OverallFeedback] = None
        self._summary: Optional[SessionSummary] = None
        self._session_id = ""
        self._started_at = 0.0
