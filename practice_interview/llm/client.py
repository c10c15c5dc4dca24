import logging
from openai import APIError, APIStatusError, AsyncOpenAI

from practice_interview.config import settings
from practice_interview.exceptions import LLMError

logger = logging.getLogger(__name__)

_client: AsyncOpenAI | None = None


def _get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        _client = AsyncOpenAI(base_url=settings.LLM_BASE_URL, api_key=settings.LLM_API_KEY)
    return _client


async def chat_completion(
    prompt: str,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> str:
    """Send a single prompt to the AI endpoint and return the response text.

    Raises LLMError on missing configuration, API errors and empty responses.
    """
    if not settings.LLM_API_KEY:
        raise LLMError("AI API key not configured. Set LLM_API_KEY in .env")

    try:
        response = await _get_client().chat.completions.create(
            model=settings.LLM_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
            max_tokens=settings.LLM_MAX_TOKENS if max_tokens is None else max_tokens,
        )
    except APIStatusError as e:
        logger.error(f"LLM request failed with status {e.status_code}: {e.message}")
        raise LLMError(e.message or f"API error: {e.status_code}") from e
    except APIError as e:
        logger.error(f"LLM request failed: {e}")
        raise LLMError(str(e)) from e

    text = response.choices[0].message.content if response.choices else None
    if not text or not text.strip():
        raise LLMError("No response received from the AI endpoint")
    return text.strip()
