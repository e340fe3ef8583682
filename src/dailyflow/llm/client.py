# src/dailyflow/llm/client.py

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any

import httpx
import openai
from openai import OpenAI

from ..core.errors import SuggestionError, TaskValidationError
from ..tasks.task_api import normalize_check_in_time
from ..tasks.task_models import TaskSuggestion

logger = logging.getLogger(__name__)

_BAD_MODELS: dict[str, float] = {}  # model -> retry_at (monotonic)

_SUGGESTION_FIELDS = ("name", "description", "checkInTime", "device", "appOrUrl")

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

SUGGESTION_PROMPT = """\
User Input: "{text}"

You are a smart personal productivity assistant. Based on the user's rough input,
suggest the details for a daily task. Fill in the missing details logically.
For example, if the user says "Learn English", you might suggest "Duolingo" as the app
and "Mobile" as the device. If the user says "Read News", suggest a news site or app.

Reply with ONE JSON object and nothing else, with exactly these string keys:
- "name": a concise name for the task
- "description": a short, helpful description or instruction for the task
- "checkInTime": a suggested time in HH:mm format (24h)
- "device": the suggested device type (one of: {devices})
- "appOrUrl": a specific app name or URL related to the task

Write name, description and device in {language}.
"""


def _is_auth_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError))


def _is_rate_limit_error(exc: Exception) -> bool:
    return isinstance(exc, openai.RateLimitError)


def _is_connection_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.APIConnectionError, httpx.TimeoutException))


def _is_not_found_error(exc: Exception) -> bool:
    return isinstance(exc, openai.NotFoundError)


def friendly_suggestion_error_message(err: Exception) -> str:
    msg = str(err).strip() or "AI suggestion failed."
    if "API key is not set" in msg:
        return (
            "AI autofill is not configured (missing API key). "
            "Set DAILYFLOW_OPENROUTER_API_KEY in .env (see .env.example)."
        )
    return f"AI autofill failed, please try again. ({msg})"


def parse_suggestion(content: str) -> TaskSuggestion:
    """
    Turn a model reply into a TaskSuggestion.

    Accepts a bare JSON object or one wrapped in a ```json fence.
    Raises SuggestionError on anything else.
    """
    text = (content or "").strip()
    m = _FENCE_RE.match(text)
    if m:
        text = m.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SuggestionError("Model reply is not valid JSON.") from e

    if not isinstance(data, dict):
        raise SuggestionError("Model reply is not a JSON object.")

    missing = [k for k in _SUGGESTION_FIELDS if not isinstance(data.get(k), str)]
    if missing:
        raise SuggestionError(f"Model reply is missing fields: {', '.join(missing)}")
    if not data["name"].strip():
        raise SuggestionError("Model suggested an empty task name.")

    try:
        check_in_time = normalize_check_in_time(data["checkInTime"])
    except TaskValidationError as e:
        raise SuggestionError(f"Model suggested an invalid time: {data['checkInTime']!r}") from e

    return TaskSuggestion(
        name=data["name"].strip(),
        description=data["description"].strip(),
        check_in_time=check_in_time,
        device=data["device"].strip(),
        app_or_url=data["appOrUrl"].strip(),
    )


class OpenRouterSuggestionClient:
    """
    Task autofill through an OpenAI-compatible chat-completions API (OpenRouter by default).

    Behavior:
    - Tries models in order (settings.llm_models).
    - 404 (model not available) -> mark model bad for an hour, try next.
    - Rate limit / network / malformed reply -> try next.
    - Auth issues -> fail fast.
    - Every failure reaches the caller as SuggestionError.
    """

    def __init__(self, settings: Any, *, client: Any | None = None, devices: Any = None) -> None:
        api_key = getattr(settings, "openrouter_api_key", None)
        base_url = str(getattr(settings, "openrouter_base_url", "") or "")

        self._models: list[str] = [m.strip() for m in (getattr(settings, "llm_models", None) or []) if m.strip()]
        self._headers: dict[str, str] = dict(getattr(settings, "extra_headers", {}) or {})
        self._temperature = float(getattr(settings, "llm_temperature", 0.3))
        self._language = str(getattr(settings, "language", "Chinese (Simplified)"))
        self._devices = devices

        if not self._models:
            raise RuntimeError("LLM model list is empty. Set DAILYFLOW_LLM_MODELS in your .env.")

        if client is not None:
            self._client = client
            return

        if not api_key or not str(api_key).strip():
            raise RuntimeError("LLM API key is not set. Set DAILYFLOW_OPENROUTER_API_KEY in your .env.")
        if not base_url.strip():
            raise RuntimeError("LLM base URL is not set. Set DAILYFLOW_OPENROUTER_BASE_URL in your .env.")

        connect_s = float(getattr(settings, "llm_connect_timeout", 5.0))
        read_s = float(getattr(settings, "llm_read_timeout", 30.0))

        # No SDK retries: we fall back across models instead.
        self._client = OpenAI(
            base_url=base_url,
            api_key=str(api_key),
            timeout=httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s),
            max_retries=0,
        )

    def _device_hint(self) -> str:
        labels = list(self._devices.labels()) if self._devices is not None else []
        return ", ".join(labels) if labels else "phone, computer, tablet"

    def _request(self, model: str, prompt: str) -> str:
        response = self._client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
            temperature=self._temperature,
            extra_headers=self._headers or None,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise SuggestionError(f"Model returned no content: {model}")
        return content

    def suggest(self, text: str) -> TaskSuggestion:
        prompt = SUGGESTION_PROMPT.format(text=text, devices=self._device_hint(), language=self._language)
        last_error: Exception | None = None
        now = time.monotonic()

        for model in self._models:
            retry_at = _BAD_MODELS.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: suggestion with model=%s", model)
            t0 = time.monotonic()
            try:
                suggestion = parse_suggestion(self._request(model, prompt))
            except SuggestionError as e:
                last_error = e
                logger.info("LLM: unusable reply from model=%s (%s), trying next", model, e)
                continue
            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    raise SuggestionError("LLM authentication failed. Check DAILYFLOW_OPENROUTER_API_KEY.") from e

                if _is_not_found_error(e):
                    _BAD_MODELS[model] = time.monotonic() + 3600.0
                    logger.info("LLM: model not available (404): %s", model)
                elif _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                elif _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                else:
                    logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

            logger.info("LLM: suggestion from model=%s (%.2fs)", model, time.monotonic() - t0)
            return suggestion

        if last_error is None:
            raise SuggestionError("No LLM model is currently available.")
        if _is_rate_limit_error(last_error):
            raise SuggestionError("LLM is rate-limited. Try again later.") from last_error
        if _is_connection_error(last_error):
            raise SuggestionError("LLM network/timeout error. Try again later.") from last_error
        raise SuggestionError("All LLM models failed.") from last_error
