"""Structured LLM calls with validation-aware retries."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Sequence, TypeVar

from mirascope import llm
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from .logging_utils import log_error


ModelT = TypeVar("ModelT", bound=BaseModel)
LLM_TIMEOUT_SECONDS = 60.0


@dataclass(slots=True)
class ValidationFeedback:
    """Retry guidance for the model plus the raw issues for the console."""

    llm_text: str
    issues: Sequence[str]


def _preview(value: Any, *, limit: int = 80) -> str:
    if value is None:
        return "null"
    text = repr(value)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def build_validation_feedback(error: ValidationError) -> ValidationFeedback:
    """Turn a pydantic ValidationError into a correction request for the model.

    Each issue names the field path (``agent_updates.0.behavior.action``), the
    error message and type, and a short preview of the rejected value.
    """

    issues: list[str] = []
    for err in error.errors(include_url=False):
        loc = ".".join(str(part) for part in err.get("loc", [])) or "root"
        details = f"{loc}: {err.get('msg', 'validation error')}"
        if err.get("type"):
            details += f" [type={err['type']}]"
        if "input" in err:
            details += f" | received={_preview(err['input'])}"
        issues.append(details)

    if not issues:
        issues.append("root: response did not match the expected schema")

    lines = [
        "Your previous JSON response did not match the required schema.",
        "Return a corrected response that strictly follows the schema.",
        "Return only JSON, without explanations or code fences.",
        "Issues detected:",
    ]
    lines.extend(f"- {issue}" for issue in issues)
    return ValidationFeedback(llm_text="\n".join(lines), issues=issues)


async def call_llm_with_retries(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_provider: str,
    llm_model: str,
    response_model: type[ModelT],
    max_attempts: int = 3,
    timeout: float = LLM_TIMEOUT_SECONDS,
    feedback_builder: Callable[[ValidationError], ValidationFeedback] = build_validation_feedback,
) -> ModelT:
    """Invoke a structured LLM call, retrying only on schema validation errors.

    On a validation failure the feedback is appended to the original user
    prompt, so the model keeps full context while seeing what to fix. Timeouts
    and provider errors propagate immediately. After ``max_attempts`` the last
    ValidationError is re-raised.
    """

    system_prompt = system_prompt.strip()
    base_user_prompt = user_prompt.strip()
    feedback: ValidationFeedback | None = None

    @llm.call(provider=llm_provider, model=llm_model, response_model=response_model)
    async def _invoke(prompt: str) -> str:
        return prompt

    def _compose_prompt() -> str:
        sections = [system_prompt, base_user_prompt]
        if feedback is not None:
            sections.append(feedback.llm_text)
        return "\n\n".join(section for section in sections if section)

    attempt_number = 0
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(ValidationError),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    ):
        with attempt:
            attempt_number += 1
            if attempt_number > 1:
                print(
                    f"LLM retry {attempt_number}/{max_attempts} for {response_model.__name__};"
                    " attempting schema correction."
                )
            try:
                return await asyncio.wait_for(_invoke(_compose_prompt()), timeout=timeout)
            except ValidationError as exc:
                feedback = feedback_builder(exc)
                log_error(
                    f"LLM schema validation failed for {response_model.__name__} "
                    f"(attempt {attempt_number}/{max_attempts})."
                )
                for issue in feedback.issues:
                    print(f"    - {issue}")
                raise
            except asyncio.TimeoutError:
                log_error(f"LLM call timed out after {int(timeout)}s for {response_model.__name__}.")
                raise

    raise RuntimeError("LLM retry mechanism exited unexpectedly")
