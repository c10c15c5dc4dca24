"""Speech adapter interface and silence detection shared by implementations."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_GRACE_MS = 5000

# Recognizer error codes
ERROR_ABORTED = "aborted"
ERROR_NO_SPEECH = "no-speech"

InterimCallback = Callable[[str], None]


class SpeechAdapter(ABC):
    """Speech output and input used by a practice session.

    speak() and listen() never raise on device or recognition failures;
    they degrade to "spoken" and to an empty or partial transcript.
    """

    @abstractmethod
    async def speak(self, text: str) -> None:
        """Say text aloud, returning once playback has finished."""

    @abstractmethod
    async def listen(
        self,
        silence_timeout_ms: int,
        on_interim: Optional[InterimCallback] = None,
    ) -> str:
        """Capture one spoken answer and return its trimmed transcript."""

    @abstractmethod
    def stop_listening(self) -> None:
        """Stop capturing speech. Safe to call at any time."""

    @abstractmethod
    def stop_speaking(self) -> None:
        """Cut off current speech output. Safe to call at any time."""

    def cleanup(self) -> None:
        """Release every speech resource."""
        self.stop_speaking()
        self.stop_listening()

    @abstractmethod
    def is_input_supported(self) -> bool:
        """Whether speech input can be offered on this machine."""

    @abstractmethod
    def is_output_supported(self) -> bool:
        """Whether speech output can be offered on this machine."""


class TranscriptCollector:
    """
    Accumulates recognizer results until the speaker goes quiet.

    A single timer slot is used: it starts as the grace timer
    (silence timeout + grace) and every result re-arms it as the
    silence timer. When it fires, wait() resolves with the final
    transcript collected so far.

    Must be created and fed from the event loop thread.
    """

    def __init__(
        self,
        silence_timeout_ms: int,
        on_interim: Optional[InterimCallback] = None,
        grace_ms: int = DEFAULT_GRACE_MS,
    ):
        self._loop = asyncio.get_running_loop()
        self._silence_s = silence_timeout_ms / 1000
        self._on_interim = on_interim
        self._final = ""
        self._heard = False
        self._done: asyncio.Future[str] = self._loop.create_future()
        self._timer: Optional[asyncio.TimerHandle] = self._loop.call_later(
            (silence_timeout_ms + grace_ms) / 1000, self._on_grace_timeout
        )

    @property
    def transcript(self) -> str:
        return self._final.strip()

    @property
    def finished(self) -> bool:
        return self._done.done()

    def add_result(self, text: str, is_final: bool = True) -> None:
        """Record a recognizer result and restart the silence timer."""
        if self.finished:
            return

        interim = ""
        if is_final:
            self._final += text + " "
        else:
            interim = text
        self._heard = True

        self._cancel_timer()
        self._timer = self._loop.call_later(self._silence_s, self._on_silence)

        if self._on_interim:
            try:
                self._on_interim(self._final + interim)
            except Exception as e:
                logger.warning(f"Interim transcript callback failed: {e}")

    def add_error(self, code: str) -> None:
        """Handle a recognizer error: finish with what we have unless aborted."""
        if code == ERROR_ABORTED:
            return
        if code != ERROR_NO_SPEECH:
            logger.error(f"Recognition error: {code}")
        self.close()

    def close(self) -> None:
        """Stop waiting and resolve with the transcript so far. Idempotent."""
        self._cancel_timer()
        if not self._done.done():
            self._done.set_result(self.transcript)

    async def wait(self) -> str:
        return await asyncio.shield(self._done)

    def _on_grace_timeout(self) -> None:
        self._timer = None
        if not self._heard:
            logger.debug("No speech before grace timeout")
        self.close()

    def _on_silence(self) -> None:
        self._timer = None
        self.close()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
