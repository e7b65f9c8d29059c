"""
Thin wrapper around the OpenAI client used by every agent.

Provider errors are sorted into transient (retried with backoff) and
permanent (raised immediately) before they reach the agents.
"""
import json
import logging
import re
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import httpx
import openai
from openai import OpenAI

from app.config import get_settings
from app.constants import (
    AVAILABLE_MODELS,
    DEFAULT_TIMEOUT_HTTPX,
    IMAGE_DETAIL,
    LLM_MAX_RETRY_ATTEMPTS,
    LLM_BASE_DELAY,
    TRANSCRIPTION_MAX_RETRY_ATTEMPTS,
)
from app.utils.api_helpers import retry_with_backoff, TransientAPIError, PermanentAPIError
from app.utils.media import Frame

logger = logging.getLogger(__name__)

UserContent = Union[str, List[Dict[str, Any]]]


def get_openai_client() -> OpenAI:
    settings = get_settings()
    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY not configured in environment variables")
    return OpenAI(
        api_key=settings.openai_api_key,
        http_client=httpx.Client(timeout=DEFAULT_TIMEOUT_HTTPX)
    )


def resolve_model(label: Optional[str]) -> str:
    """Maps an upload-time display label to a model id; unknown labels use the smart model."""
    if label and label in AVAILABLE_MODELS:
        return AVAILABLE_MODELS[label]
    return get_settings().openai_smart_model


def image_parts(frames: Sequence[Frame]) -> List[Dict[str, Any]]:
    return [
        {"type": "image_url", "image_url": {"url": frame.data_url, "detail": IMAGE_DETAIL}}
        for frame in frames
    ]


def user_content(text: str, frames: Sequence[Frame] = ()) -> UserContent:
    """Text prompt followed by the frames, or plain text when there are none."""
    if not frames:
        return text
    return [{"type": "text", "text": text}, *image_parts(frames)]


def parse_json_response_text(response_text: str) -> dict:
    """Parse model JSON response safely with markdown/regex fallbacks."""
    text = (response_text or '').strip()
    if not text:
        return {}

    if text.startswith('```'):
        text = re.sub(r'^```[a-zA-Z]*\n?', '', text)
        text = re.sub(r'```$', '', text).strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r'\{[\s\S]*\}', text)
        if not match:
            return {}
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            return {}
    return parsed if isinstance(parsed, dict) else {}


def _categorize_provider_errors(func: Callable) -> Callable:
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError) as e:
            raise TransientAPIError(f"{type(e).__name__}: {e}") from e
        except openai.APIStatusError as e:
            raise PermanentAPIError(f"{type(e).__name__} ({e.status_code}): {e}") from e
    return wrapper


@retry_with_backoff(max_attempts=LLM_MAX_RETRY_ATTEMPTS, base_delay=LLM_BASE_DELAY)
@_categorize_provider_errors
def _complete(model: str, messages: List[Dict[str, Any]], temperature: float, json_mode: bool) -> str:
    client = get_openai_client()
    kwargs: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    response = client.chat.completions.create(**kwargs)
    return response.choices[0].message.content or ""


def chat_json(
    model: str,
    system_prompt: str,
    content: UserContent,
    temperature: float
) -> Dict[str, Any]:
    """
    Sends one chat request in JSON mode and returns the parsed object.

    Raises:
        ValueError: No API key configured
        TransientAPIError: Provider still failing after retries
        PermanentAPIError: Provider rejected the request or returned no JSON object
    """
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": content},
    ]
    text = _complete(model, messages, temperature, json_mode=True)
    result = parse_json_response_text(text)
    if not result:
        raise PermanentAPIError(f"Model {model} returned no JSON object: {text[:200]!r}")
    return result


def chat_text(
    model: str,
    system_prompt: str,
    content: UserContent,
    temperature: float
) -> str:
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": content},
    ]
    return _complete(model, messages, temperature, json_mode=False).strip()


@retry_with_backoff(max_attempts=TRANSCRIPTION_MAX_RETRY_ATTEMPTS, base_delay=LLM_BASE_DELAY)
@_categorize_provider_errors
def transcribe_audio(wav_bytes: bytes, language: Optional[str] = None) -> str:
    """
    Raw speech-to-text of a WAV track.

    Args:
        wav_bytes: Mono WAV
        language: Option language code (e.g. "zh-TW"); only the primary subtag is sent

    Returns:
        Plain transcript text
    """
    settings = get_settings()
    client = get_openai_client()

    kwargs: Dict[str, Any] = {
        "model": settings.openai_transcription_model,
        "file": ("audio.wav", wav_bytes, "audio/wav"),
    }
    if language:
        kwargs["language"] = language.split("-")[0].lower()

    transcription = client.audio.transcriptions.create(**kwargs)
    return (transcription.text or "").strip()
