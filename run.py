"""Console entry point: run one voice practice interview."""
import asyncio
import logging
import sys

from practice_interview.config import settings
from practice_interview.db.database import close_db, get_db
from practice_interview.db.queries import get_practice_sessions
from practice_interview.exceptions import GenerationError, SpeechUnavailableError
from practice_interview.models import InterviewRound
from practice_interview.services.practice_session import PracticeSession
from practice_interview.services.progress_tracker import (
    format_history,
    format_stats,
    format_summary,
    get_interview_stats,
)
from practice_interview.speech.local import LocalSpeechAdapter
from practice_interview.states.session_states import SessionState


handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE, encoding="utf-8"))

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=handlers,
)

logger = logging.getLogger(__name__)

STATE_MESSAGES = {
    SessionState.PREPARING: "Preparing your interview...",
    SessionState.LISTENING: "Listening... (stop talking to finish your answer)",
    SessionState.EVALUATING: "Evaluating your answer...",
    SessionState.COMPLETING: "Preparing your feedback...",
}


async def main():
    round_type = InterviewRound.parse(sys.argv[1]) if len(sys.argv) > 1 else InterviewRound.TECHNICAL
    muted = "--mute" in sys.argv[2:]

    await get_db()
    speech = LocalSpeechAdapter()

    def on_state_change(state: SessionState, index: int) -> None:
        if state == SessionState.ASKING:
            print(f"\nQuestion {index + 1} of {len(session.questions)}:")
            print(session.questions[index].question)
        elif state == SessionState.FEEDBACK:
            evaluation = session.evaluations[index]
            print(f"Score: {evaluation.score}/10 - {evaluation.feedback}")
        elif state in STATE_MESSAGES:
            print(STATE_MESSAGES[state])

    session = PracticeSession(
        speech,
        student_id=settings.STUDENT_ID,
        student_name=settings.STUDENT_NAME,
        muted=muted or not speech.is_output_supported(),
        on_state_change=on_state_change,
        on_interim=lambda text: print(f"  … {text}"),
    )

    try:
        records = await get_practice_sessions(settings.STUDENT_ID)
        print(format_history(records))
        print(format_stats(get_interview_stats(records)))

        summary = await session.run(round_type)
        if summary:
            print()
            print(format_summary(summary))
    except SpeechUnavailableError as e:
        print(f"Not supported: {e}. Install PyAudio to use the microphone.")
    except GenerationError as e:
        print(f"Error: {e}")
    finally:
        session.stop()
        await close_db()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Practice interview stopped by user")
    except ValueError as e:
        print(f"{e}. Choose one of: {', '.join(r.value for r in InterviewRound)}")
        sys.exit(1)
