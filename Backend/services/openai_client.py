"""
Thin wrapper over the OpenAI SDK used by the triage and collection services.
Every failure surfaces as OpenAIError so callers have a single thing to catch.
"""
import json
import logging
import os

import openai

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAIError(Exception):
    """Raised when the completion request fails; carries the error body when there is one."""

    def __init__(self, message, response_data=None, model_error=False):
        super().__init__(message)
        self.response_data = response_data or {}
        self.model_error = model_error

    @property
    def is_model_error(self):
        return self.model_error


def get_api_key():
    return (os.getenv("OPENAI_API_KEY") or os.getenv("DUMMY_OPENAI_KEY") or "").strip()


def get_model():
    return os.getenv("OPENAI_MODEL") or DEFAULT_MODEL


def get_client():
    return openai.OpenAI(
        api_key=get_api_key(),
        timeout=float(os.getenv("OPENAI_TIMEOUT", "30")),
        max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "0")),
    )


def _is_model_error(exc, body):
    if isinstance(exc, openai.NotFoundError):
        return True
    if not isinstance(body, dict):
        return False
    return body.get("code") == "model_not_found" or "model" in str(body.get("message") or "").lower()


def chat_completion(messages, model=None, temperature=0.0, max_tokens=200, json_mode=False):
    """
    Send a chat-completions request and return the first message content ("" when absent).
    """
    if not get_api_key():
        raise OpenAIError("OpenAI API key is not configured")

    kwargs = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        response = get_client().chat.completions.create(
            model=model or get_model(),
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs
        )
    except openai.APIStatusError as e:
        body = e.body if isinstance(e.body, dict) else {}
        raise OpenAIError(
            f"OpenAI request failed with status {e.status_code}",
            body,
            model_error=_is_model_error(e, body),
        )
    except (openai.APIError, ValueError) as e:
        raise OpenAIError(str(e))

    # Non-JSON bodies come back from the SDK as plain text
    choices = getattr(response, "choices", None)
    if choices is None:
        raise OpenAIError("Unexpected response from OpenAI")
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None) or ""


def extract_json(content):
    """
    Parse the JSON object embedded in a model reply.
    Uses the slice between the first '{' and the last '}' when present.
    Raises ValueError when nothing parseable is found.
    """
    start = content.find("{")
    end = content.rfind("}")
    payload = content[start:end + 1] if start >= 0 and end >= start else content
    parsed = json.loads(payload)
    if not isinstance(parsed, dict):
        raise ValueError("AI reply is not a JSON object")
    return parsed
