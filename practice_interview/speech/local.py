"""Speech adapter backed by the local microphone and TTS engine."""
import asyncio
import importlib.util
import logging
import shutil
import sys
import threading
from typing import Callable, Optional

import pyttsx3
import speech_recognition as sr

from practice_interview.config import settings
from practice_interview.exceptions import SpeechUnavailableError
from .base import InterimCallback, SpeechAdapter, TranscriptCollector

logger = logging.getLogger(__name__)

# Preferred voice name fragments, best first
PREFERRED_VOICES = ("Google", "Microsoft", "Natural")


class LocalSpeechAdapter(SpeechAdapter):
    """pyttsx3 for output, SpeechRecognition on the default microphone for input."""

    def __init__(
        self,
        language: Optional[str] = None,
        grace_ms: Optional[int] = None,
        recognizer: Optional[sr.Recognizer] = None,
        microphone_factory: Callable[[], sr.Microphone] = sr.Microphone,
        engine_factory: Callable[[], "pyttsx3.engine.Engine"] = pyttsx3.init,
    ):
        """
        Args:
            language: Speech language tag, e.g. en-US
            grace_ms: Extra wait for the first word of an answer
            recognizer: SpeechRecognition recognizer to use
            microphone_factory: Creates the audio source
            engine_factory: Creates the TTS engine
        """
        self.language = language or settings.SPEECH_LANGUAGE
        self.grace_ms = settings.LISTEN_GRACE_MS if grace_ms is None else grace_ms
        self.recognizer = recognizer or sr.Recognizer()
        self._microphone_factory = microphone_factory
        self._engine_factory = engine_factory

        self._engine = None
        self._engine_lock = threading.Lock()
        self._microphone: Optional[sr.Microphone] = None
        self._calibrated = False
        self._stop_background: Optional[Callable[..., None]] = None
        self._pending_stop: Optional[Callable[..., None]] = None
        self._collector: Optional[TranscriptCollector] = None

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    async def speak(self, text: str) -> None:
        self.stop_speaking()
        try:
            await asyncio.to_thread(self._say, text)
        except Exception as e:
            # Treated as spoken so the interview is not blocked
            logger.error(f"Speech error: {e}")

    def _say(self, text: str) -> None:
        with self._engine_lock:
            engine = self._get_engine()
            engine.say(text)
            engine.runAndWait()

    def _get_engine(self):
        if self._engine is None:
            engine = self._engine_factory()
            engine.setProperty("rate", round(engine.getProperty("rate") * settings.SPEECH_RATE))
            engine.setProperty("volume", 1.0)
            voice = self._pick_voice(engine.getProperty("voices") or [])
            if voice is not None:
                engine.setProperty("voice", voice.id)
            self._engine = engine
        return self._engine

    def _pick_voice(self, voices):
        """Pick a good voice for the configured language, if any."""
        prefix = self.language.split("-")[0].lower()
        matching = [v for v in voices if _voice_matches(v, prefix)]
        for fragment in PREFERRED_VOICES:
            for voice in matching:
                if fragment in (voice.name or ""):
                    return voice
        return matching[0] if matching else None

    def stop_speaking(self) -> None:
        if self._engine is None:
            return
        try:
            self._engine.stop()
        except Exception as e:
            logger.debug(f"Stopping speech output failed: {e}")

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    async def listen(
        self,
        silence_timeout_ms: int,
        on_interim: Optional[InterimCallback] = None,
    ) -> str:
        self.stop_listening()
        if not self.is_input_supported():
            raise SpeechUnavailableError("Speech recognition is not supported on this machine")

        # The microphone can only be entered by one recognizer thread at a time
        await self._wait_for_recognizer()

        try:
            microphone = await asyncio.to_thread(self._open_microphone)
        except (OSError, AttributeError) as e:
            logger.error(f"Failed to start recognition: {e}")
            raise SpeechUnavailableError(f"Microphone unavailable: {e}") from e

        loop = asyncio.get_running_loop()
        collector = TranscriptCollector(silence_timeout_ms, on_interim, grace_ms=self.grace_ms)
        self._collector = collector

        def on_phrase(recognizer: sr.Recognizer, audio: sr.AudioData) -> None:
            # Runs on the recognizer's background thread
            try:
                text = recognizer.recognize_google(audio, language=self.language)
            except sr.UnknownValueError:
                return  # noise, keep listening
            except sr.RequestError as e:
                _call_in_loop(loop, collector.add_error, f"network: {e}")
                return
            if text:
                _call_in_loop(loop, collector.add_result, text, True)

        self._stop_background = self.recognizer.listen_in_background(microphone, on_phrase)
        try:
            return await collector.wait()
        finally:
            if self._collector is collector:
                self.stop_listening()

    def _open_microphone(self) -> sr.Microphone:
        if self._microphone is None:
            self._microphone = self._microphone_factory()
        if not self._calibrated:
            with self._microphone as source:
                self.recognizer.adjust_for_ambient_noise(source, duration=0.5)
            self._calibrated = True
        return self._microphone

    def stop_listening(self) -> None:
        collector, self._collector = self._collector, None
        stop_background, self._stop_background = self._stop_background, None
        if stop_background is not None:
            try:
                stop_background(wait_for_stop=False)
            except Exception as e:
                logger.debug(f"Stopping recognizer failed: {e}")
            else:
                self._pending_stop = stop_background
        if collector is not None:
            collector.close()

    async def _wait_for_recognizer(self) -> None:
        """Join the background thread of a recognizer that was told to stop."""
        stop_background, self._pending_stop = self._pending_stop, None
        if stop_background is None:
            return
        try:
            await asyncio.to_thread(stop_background, wait_for_stop=True)
        except Exception as e:
            logger.debug(f"Waiting for recognizer failed: {e}")

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def is_input_supported(self) -> bool:
        return importlib.util.find_spec("pyaudio") is not None

    def is_output_supported(self) -> bool:
        if sys.platform in ("win32", "darwin"):
            return True
        return any(shutil.which(name) for name in ("espeak-ng", "espeak"))


def _voice_matches(voice, prefix: str) -> bool:
    languages = getattr(voice, "languages", None) or []
    for lang in languages:
        if isinstance(lang, bytes):
            lang = lang.decode("utf-8", "ignore")
        if str(lang).lstrip("\x05").lower().startswith(prefix):
            return True
    return prefix == "en" and "english" in (voice.name or "").lower()


def _call_in_loop(loop: asyncio.AbstractEventLoop, callback, *args) -> None:
    if loop.is_closed():
        return
    try:
        loop.call_soon_threadsafe(callback, *args)
    except RuntimeError:
        # Loop shut down between the check and the call
        pass
