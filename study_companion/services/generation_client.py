"""Thin wrapper around the Gemini text-generation API."""

import logging

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from study_companion.errors import ConfigurationError, GenerationError

logger = logging.getLogger('study_companion.generation')

DEFAULT_MODEL = 'gemini-2.0-flash'


def extract_first_candidate_text(response):
    """Return the first candidate's first text part, or None for any other shape."""
    try:
        candidates = response.candidates or []
        if not candidates:
            return None
        parts = candidates[0].content.parts or []
        if not parts:
            return None
        text = parts[0].text
    except (AttributeError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


class GenerationClient:
    """Sends single-part text prompts to the generation service.

    The credential is checked on every call rather than at construction so a
    missing key surfaces per request instead of at startup.
    """

    def __init__(self, api_key, model=DEFAULT_MODEL, timeout_seconds=90.0, max_attempts=3, retry_wait_seconds=1.0, sdk_client=None):
        self.api_key = (api_key or '').strip()
        self.model = model or DEFAULT_MODEL
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max(1, int(max_attempts or 1))
        self.retry_wait_seconds = retry_wait_seconds
        self._sdk_client = sdk_client

    @property
    def configured(self):
        return bool(self.api_key)

    def _client(self):
        if self._sdk_client is None:
            self._sdk_client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
        return self._sdk_client

    def _retrying(self):
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_wait_seconds, max=8),
            retry=retry_if_exception_type(genai_errors.ServerError),
            reraise=True,
        )

    def generate_text(self, prompt_text, max_output_tokens=None):
        if not self.configured:
            raise ConfigurationError('Gemini API key not set')
        config_kwargs = {}
        if max_output_tokens:
            config_kwargs['max_output_tokens'] = max_output_tokens
        try:
            response = self._retrying()(
                self._client().models.generate_content,
                model=self.model,
                contents=[types.Content(role='user', parts=[types.Part.from_text(text=prompt_text)])],
                config=types.GenerateContentConfig(**config_kwargs),
            )
        except Exception as exc:
            logger.warning(f"Generation request failed ({self.model}): {exc}")
            raise GenerationError('Generation failed') from exc
        text = extract_first_candidate_text(response)
        if text is None:
            logger.info(f"Generation response from {self.model} contained no text")
        return text
