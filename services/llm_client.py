"""Lightweight client for calling external chat-completion services."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from config import settings

logger = logging.getLogger(__name__)

Message = Dict[str, str]

DEFAULT_MODELS = {
    "openai": "gpt-5",
    "anthropic": "claude-sonnet-4-5",
    "gemini": "gemini-2.5-flash",
}


class LLMError(Exception):
    """Raised when the LLM client is misconfigured or used incorrectly."""


def is_llm_configured() -> bool:
    """Return True if an LLM API key is configured (non-crashing health check)."""
    return bool(settings.LLM_API_KEY)


def _openai_endpoint(base_url: Optional[str]) -> str:
    return f"{(base_url or 'https://api.openai.com/v1').rstrip('/')}/chat/completions"


def _openai_headers(api_key: str) -> Dict[str, str]:
    return {
        "content-type": "application/json",
        "authorization": f"Bearer {api_key}",
    }


def _anthropic_endpoint(base_url: Optional[str]) -> str:
    return f"{(base_url or 'https://api.anthropic.com/v1').rstrip('/')}/messages"


def _anthropic_headers(api_key: str) -> Dict[str, str]:
    return {
        "content-type": "application/json",
        "x-api-key": api_key,
        "anthropic-version": "2023-06-01",
    }


def _gemini_endpoint(base_url: Optional[str], model: str) -> str:
    """Build Gemini API endpoint for the model."""
    root = (base_url or "https://generativelanguage.googleapis.com/v1beta").rstrip("/")
    return f"{root}/models/{model}:generateContent"


def _gemini_headers(api_key: str) -> Dict[str, str]:
    return {
        "content-type": "application/json",
        "x-goog-api-key": api_key,
    }


def _split_system(messages: Sequence[Message]) -> Tuple[str, List[Message]]:
    """Anthropic and Gemini take the system prompt outside the message list."""
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    rest = [m for m in messages if m["role"] != "system"]
    return "\n\n".join(system_parts), rest


def _extract_text_from_openai_response(payload: Dict[str, Any]) -> str:
    choices = payload.get("choices")
    if isinstance(choices, list) and choices:
        message = choices[0].get("message") or {}
        return str(message.get("content") or "")
    return ""


def _extract_text_from_anthropic_response(payload: Dict[str, Any]) -> str:
    content = payload.get("content")
    if isinstance(content, list) and content:
        segment = content[0]
        if isinstance(segment, dict):
            return str(segment.get("text", ""))
    return ""


def _extract_text_from_gemini_response(payload: Dict[str, Any]) -> str:
    """Extract text from Gemini API response format."""
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return ""
    return str(parts[0].get("text", ""))


class CompletionClient:
    """Sends a chat message list to the configured provider and returns the reply text.

    Every request asks for a JSON reply. Transport errors (including non-2xx
    responses) are raised as ``requests.RequestException``; there is no retry.
    """

    def __init__(
        self,
        api_key: str,
        provider: str = "openai",
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        max_tokens: int = 2048,
        timeout: int = 60,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise LLMError("LLM_API_KEY is not configured")
        if provider not in DEFAULT_MODELS:
            raise LLMError(f"Unsupported provider: {provider}")
        self.api_key = api_key
        self.provider = provider
        self.model = model or DEFAULT_MODELS[provider]
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls) -> "CompletionClient":
        return cls(
            api_key=settings.LLM_API_KEY,
            provider=settings.LLM_PROVIDER,
            model=settings.LLM_MODEL,
            base_url=settings.LLM_BASE_URL,
            max_tokens=settings.LLM_MAX_TOKENS,
            timeout=settings.LLM_HTTP_TIMEOUT_SECONDS,
        )

    def complete(self, messages: Sequence[Message]) -> str:
        logger.info("Calling %s model %s with %d messages", self.provider, self.model, len(messages))
        if self.provider == "anthropic":
            text = self._complete_anthropic(messages)
        elif self.provider == "gemini":
            text = self._complete_gemini(messages)
        else:
            text = self._complete_openai(messages)
        logger.debug("Completion returned %d characters", len(text))
        return text

    def _post(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self.session.post(url, headers=headers, json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _complete_openai(self, messages: Sequence[Message]) -> str:
        payload = {
            "model": self.model,
            "messages": list(messages),
            "response_format": {"type": "json_object"},
            "max_completion_tokens": self.max_tokens,
        }
        data = self._post(_openai_endpoint(self.base_url), _openai_headers(self.api_key), payload)
        return _extract_text_from_openai_response(data)

    def _complete_anthropic(self, messages: Sequence[Message]) -> str:
        system, rest = _split_system(messages)
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": rest,
        }
        if system:
            payload["system"] = system
        data = self._post(_anthropic_endpoint(self.base_url), _anthropic_headers(self.api_key), payload)
        return _extract_text_from_anthropic_response(data)

    def _complete_gemini(self, messages: Sequence[Message]) -> str:
        system, rest = _split_system(messages)
        payload: Dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if m["role"] == "assistant" else "user",
                    "parts": [{"text": m["content"]}],
                }
                for m in rest
            ],
            "generationConfig": {
                "maxOutputTokens": self.max_tokens,
                "responseMimeType": "application/json",
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        data = self._post(_gemini_endpoint(self.base_url, self.model), _gemini_headers(self.api_key), payload)
        return _extract_text_from_gemini_response(data)


def _match_balanced_json(text: str, start: int) -> Tuple[str, int]:
    """Return the JSON blob that starts at ``start`` and its end index."""

    opening = text[start]
    pairs = {"[": "]", "{": "}"}
    if opening not in pairs:
        raise ValueError("Invalid JSON start character")

    expected: List[str] = [pairs[opening]]
    i = start + 1
    in_string = False
    escape = False

    while i < len(text):
        char = text[i]

        if in_string:
            if escape:
                escape = False
            elif char == "\\":
                escape = True
            elif char == '"':
                in_string = False
        else:
            if char == '"':
                in_string = True
            elif char in pairs:
                expected.append(pairs[char])
            elif char in (']', '}'):
                if char != expected[-1]:
                    raise ValueError("Mismatched JSON braces")
                expected.pop()
                if not expected:
                    return text[start : i + 1], i

        i += 1

    raise ValueError("Unterminated JSON blob")


def _extract_first_json_object(text: str) -> Optional[str]:
    """Extract the first complete JSON object found in ``text``."""

    i = 0
    while i < len(text):
        if text[i] == "{":
            try:
                blob, _ = _match_balanced_json(text, i)
            except ValueError:
                i += 1
                continue
            return blob
        i += 1
    return None


def parse_completion(text: Optional[str]) -> Tuple[List[Any], Optional[str]]:
    """Split a completion into ``(events, reply)``.

    Never raises: non-JSON or malformed text yields ``([], None)`` so callers
    can fall back to a default reply.
    """
    if not text or not text.strip():
        return [], None

    try:
        result = json.loads(text)
    except json.JSONDecodeError:
        blob = _extract_first_json_object(text)
        if blob is None:
            logger.warning("Completion was not JSON; treating it as empty")
            return [], None
        try:
            result = json.loads(blob)
        except json.JSONDecodeError:
            logger.warning("Completion contained malformed JSON; treating it as empty")
            return [], None

    if not isinstance(result, dict):
        return [], None

    events = result.get("events")
    reply = result.get("reply")
    return (
        events if isinstance(events, list) else [],
        reply if isinstance(reply, str) and reply.strip() else None,
    )
