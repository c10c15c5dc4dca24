"""Configuration settings using pydantic-settings."""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # AI endpoint (OpenAI-compatible)
    LLM_API_KEY: str = Field(default="", description="API key for the AI endpoint")
    LLM_BASE_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="OpenAI-compatible base URL"
    )
    LLM_MODEL: str = Field(default="gemini-2.5-flash", description="Model name")
    LLM_TEMPERATURE: float = Field(default=0.7, description="Sampling temperature")
    LLM_MAX_TOKENS: int = Field(default=2048, description="Output token cap")

    # Database
    DATABASE_PATH: str = Field(
        default="data/practice_interviews.db",
        description="Path to SQLite database file"
    )

    # Session
    QUESTION_COUNT: int = Field(default=5, description="Questions per session")
    SILENCE_TIMEOUT_MS: int = Field(
        default=4000,
        description="Silence after speech that ends an answer"
    )
    LISTEN_GRACE_MS: int = Field(
        default=5000,
        description="Extra wait before the first word of an answer"
    )
    MUTED_ASK_DELAY_SECONDS: float = Field(
        default=1.5,
        description="Pause before listening when speech output is muted"
    )
    FEEDBACK_DISPLAY_SECONDS: float = Field(
        default=2.0,
        description="How long per-answer feedback stays on screen"
    )

    # Speech
    SPEECH_LANGUAGE: str = Field(default="en-US", description="Speech language tag")
    SPEECH_RATE: float = Field(
        default=0.95,
        description="Speech output rate relative to the engine default"
    )

    # Student
    STUDENT_ID: str = Field(default="local", description="Student identifier")
    STUDENT_NAME: str = Field(default="Student", description="Student display name")

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    LOG_FILE: str = Field(
        default="",
        description="Path to log file, empty to log to stdout only"
    )

    class Config:
        """Pydantic config."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
