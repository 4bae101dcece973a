# genboq/gemini_handler.py
"""
Completion oracle interface and the Gemini adapter behind it.

The engines only ever call ``oracle.complete(instruction, context)`` and get
text back. Vendor SDK details (configuration, safety settings, response
shapes, exception types) stay in this module.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from genboq.errors import ConfigurationError, OracleCommunicationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-2.0-flash'
DEFAULT_TIMEOUT_SECONDS = 60.0

SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]


@dataclass(frozen=True)
class OracleContext:
    """Everything sent alongside the instruction."""
    attachments: Tuple[str, ...] = ()
    history: Tuple[Tuple[str, str], ...] = ()  # (role, text), role is 'user' or 'model'
    temperature: float = 0.1
    expect_json: bool = False
    system_instruction: Optional[str] = None


class CompletionOracle:
    """Narrow capability: instruction + context in, text out."""

    def complete(self, instruction: str, context: Optional[OracleContext] = None) -> str:
        raise NotImplementedError


def extract_text_from_response(response) -> Optional[str]:
    """Pull text out of a Gemini response; None when there is none."""
    # .text raises ValueError when the candidate has no parts (blocked/empty)
    try:
        text = response.text
        if text:
            return str(text).strip()
    except (AttributeError, ValueError):
        pass

    candidates = getattr(response, 'candidates', None) or []
    if candidates:
        try:
            text = candidates[0].content.parts[0].text
            if text:
                return str(text).strip()
        except (AttributeError, IndexError):
            pass
    return None


class GeminiOracle(CompletionOracle):
    """google-generativeai adapter. A missing API key is a ConfigurationError, not a retry."""

    def __init__(self, api_key: str, model_name: str = DEFAULT_MODEL,
                 timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds

    def _build_contents(self, instruction: str, context: OracleContext):
        contents = [{'role': role, 'parts': [text]} for role, text in context.history]
        contents.append({'role': 'user', 'parts': [instruction, *context.attachments]})
        return contents

    def complete(self, instruction: str, context: Optional[OracleContext] = None) -> str:
        context = context or OracleContext()
        model = genai.GenerativeModel(self.model_name, system_instruction=context.system_instruction)
        generation_config = genai.GenerationConfig(
            temperature=context.temperature,
            response_mime_type='application/json' if context.expect_json else 'text/plain',
        )
        try:
            response = model.generate_content(
                self._build_contents(instruction, context),
                generation_config=generation_config,
                safety_settings=SAFETY_SETTINGS,
                request_options={'timeout': self.timeout_seconds},
            )
        except google_exceptions.DeadlineExceeded as e:
            raise OracleCommunicationError(f"Gemini request timed out after {self.timeout_seconds}s") from e
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            raise ConfigurationError(f"Gemini rejected the credentials: {e}") from e
        except (google_exceptions.GoogleAPIError, ConnectionError, TimeoutError) as e:
            raise OracleCommunicationError(f"Gemini request failed: {e}") from e

        text = extract_text_from_response(response)
        if not text:
            raise OracleCommunicationError("Gemini returned an empty response")
        return text


class RetryingOracle(CompletionOracle):
    """
    Caller-side retry policy: exponential backoff on OracleCommunicationError.
    Schema and configuration errors pass straight through.
    """

    def __init__(self, inner: CompletionOracle, max_retries: int = 3,
                 sleep: Callable[[float], None] = time.sleep):
        self.inner = inner
        self.max_retries = max(1, max_retries)
        self.sleep = sleep

    def complete(self, instruction: str, context: Optional[OracleContext] = None) -> str:
        for attempt in range(self.max_retries):
            try:
                return self.inner.complete(instruction, context)
            except OracleCommunicationError as e:
                if attempt == self.max_retries - 1:
                    logger.error(f"AI generation failed after {self.max_retries} attempts: {e}")
                    raise
                logger.warning(f"Oracle attempt {attempt + 1} failed ({e}); retrying")
                self.sleep(2 ** attempt)
        raise OracleCommunicationError("No oracle attempts were made")


def setup_gemini(settings) -> CompletionOracle:
    """Build the configured oracle (Gemini wrapped in the retry policy)."""
    oracle = GeminiOracle(
        api_key=settings.gemini_api_key,
        model_name=settings.gemini_model,
        timeout_seconds=settings.oracle_timeout_seconds,
    )
    logger.info(f"Gemini oracle configured with model '{settings.gemini_model}'")
    return RetryingOracle(oracle, max_retries=settings.oracle_max_retries)
