"""Custom exceptions for the practice interview."""


class PracticeInterviewError(Exception):
    """Base exception for practice interview errors."""
    pass


class LLMError(PracticeInterviewError):
    """The AI endpoint failed or returned nothing usable."""
    pass


class GenerationError(PracticeInterviewError):
    """Interview questions could not be generated."""
    pass


class SpeechUnavailableError(PracticeInterviewError):
    """Speech input or output is not available on this machine."""
    pass


class InvalidTransitionError(PracticeInterviewError):
    """Session state change not allowed from the current state."""
    pass
