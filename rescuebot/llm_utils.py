"""Helper utilities for oracle calls: structured LLM invocation and fault classification."""

from __future__ import annotations

import asyncio
from typing import Any, List, TypeVar

from mirascope import llm
from pydantic import BaseModel, ValidationError

from rescuebot.errors import OracleThrottledError


ModelT = TypeVar("ModelT", bound=BaseModel)
LLM_TIMEOUT_SECONDS = 30.0

# Substrings providers use when they throttle us (HTTP 429, Google RESOURCE_EXHAUSTED, ...).
_THROTTLE_MARKERS = ("429", "quota", "resource_exhausted", "rate limit", "rate_limit", "too many requests")


def is_throttling_error(exc: BaseException) -> bool:
    """Return True when ``exc`` looks like provider rate limiting.

    Checks, in order: our own OracleThrottledError, numeric ``status``/``status_code``/
    ``code`` attributes equal to 429, then well-known markers in the message text.
    """

    if isinstance(exc, OracleThrottledError):
        return True

    for attr in ("status", "status_code", "code", "http_status"):
        value = getattr(exc, attr, None)
        if value == 429 or value == "429":
            return True

    text = str(exc).lower()
    return any(marker in text for marker in _THROTTLE_MARKERS)


def _truncate_preview(value: Any, *, limit: int = 80) -> str:
    """Return a compact preview of the offending input value."""

    if value is None:
        return "null"
    text = repr(value)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def summarize_validation_error(error: ValidationError) -> List[str]:
    """Flatten a pydantic ValidationError into ``field: message`` lines for logs."""

    issues: List[str] = []
    for err in error.errors(include_url=False):
        loc = ".".join(str(part) for part in err.get("loc", [])) or "root"
        details = f"{loc}: {err.get('msg', 'validation error')}"
        if "input" in err:
            details += f" | received={_truncate_preview(err.get('input'))}"
        issues.append(details)

    if not issues:
        issues.append("root: response did not match the expected schema")
    return issues


async def call_structured_llm(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_provider: str,
    llm_model: str,
    response_model: type[ModelT],
    timeout: float = LLM_TIMEOUT_SECONDS,
) -> ModelT:
    """Invoke one structured LLM call bounded by ``timeout``.

    No retries happen here; the decision orchestrator owns the retry budget so the
    worst-case latency of a decision stays predictable. Schema violations surface as
    ``ValidationError`` and timeouts as ``asyncio.TimeoutError``.
    """

    system_prompt = system_prompt.strip()
    user_prompt = user_prompt.strip()
    combined = "\n\n".join(section for section in (system_prompt, user_prompt) if section)

    # The decorator handles provider-specific API calls and parses the response into
    # response_model, raising ValidationError on mismatch.
    @llm.call(provider=llm_provider, model=llm_model, response_model=response_model)
    async def _invoke(prompt: str) -> str:
        return prompt

    return await asyncio.wait_for(_invoke(combined), timeout=timeout)
