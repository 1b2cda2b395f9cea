"""
Chat-completions classifier with its own retry state machine.

One `classify` call is one message: attempt, back off on 429/5xx/transport
failures up to MAX_ATTEMPTS, and stop immediately on quota exhaustion or on
a successful response that cannot be turned into a ClassificationResult.
"""

from __future__ import annotations

import json
import random
import time
from numbers import Real
from typing import Any, Callable, Optional, Set

import openai
from openai import OpenAI

from inbox_classifier.config.logging import get_logger
from inbox_classifier.config.settings import Settings, load_settings
from inbox_classifier.errors import (
    EmptyResponseError,
    InferenceError,
    MalformedResultError,
    QuotaExhaustedError,
)
from inbox_classifier.inference.prompts import build_messages
from inbox_classifier.inference.retry import (
    MAX_ATTEMPTS,
    RATE_LIMIT_BACKOFF_BASE,
    TRANSPORT_BACKOFF_BASE,
    backoff_delay,
    parse_retry_after,
)
from inbox_classifier.models import CATEGORIES, ClassificationResult, Message

log = get_logger(__name__)

QUOTA_ERROR_CODES = frozenset({"insufficient_quota"})


class InferenceClient:
    def __init__(
        self,
        credential: str,
        *,
        settings: Optional[Settings] = None,
        client: Optional[OpenAI] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Callable[[], float] = random.random,
    ):
        if not credential and client is None:
            raise ValueError("An inference credential is required")
        self.settings = settings or load_settings()
        # SDK retries are off: the loop in classify() is the only retry policy.
        self._client = client or OpenAI(
            api_key=credential,
            base_url=self.settings.openai_base_url,
            timeout=self.settings.request_timeout,
            max_retries=0,
        )
        self._sleep = sleep
        self._rng = rng

    def classify(self, message: Message) -> ClassificationResult:
        """Classify one message, using its body or, when empty, its snippet."""
        return self.classify_text(
            sender=message.sender,
            subject=message.subject,
            content=message.content,
        )

    def classify_text(self, *, sender: str, subject: str, content: str) -> ClassificationResult:
        messages = build_messages(sender=sender, subject=subject, content=content)

        attempt = 0
        while True:
            attempt += 1
            try:
                completion = self._client.chat.completions.create(
                    model=self.settings.model,
                    messages=messages,
                    temperature=self.settings.temperature,
                    max_tokens=self.settings.max_tokens,
                )
            except openai.APIStatusError as exc:
                status = exc.status_code
                body = _error_body(exc)

                if _error_classifiers(exc) & QUOTA_ERROR_CODES:
                    log.error("classification_quota_exhausted", status=status)
                    raise QuotaExhaustedError(
                        "Inference quota exhausted", status=status, body=body
                    ) from exc

                retryable = status == 429 or 500 <= status <= 599
                if not retryable or attempt >= MAX_ATTEMPTS:
                    log.error("classification_request_failed", status=status, attempt=attempt)
                    raise InferenceError(
                        f"Inference request failed with status {status}",
                        status=status,
                        body=body,
                    ) from exc

                retry_after = None
                if status == 429:
                    retry_after = parse_retry_after(exc.response.headers)
                wait = backoff_delay(
                    attempt,
                    RATE_LIMIT_BACKOFF_BASE,
                    retry_after=retry_after,
                    rng=self._rng,
                )
                log.warning(
                    "classification_retry",
                    status=status,
                    attempt=attempt,
                    wait_seconds=round(wait, 3),
                )
                self._sleep(wait)
                continue

            except openai.APIConnectionError as exc:
                if attempt >= MAX_ATTEMPTS:
                    log.error("classification_transport_failed", attempt=attempt, error=str(exc))
                    raise
                wait = backoff_delay(attempt, TRANSPORT_BACKOFF_BASE, rng=self._rng)
                log.warning(
                    "classification_retry",
                    status=None,
                    attempt=attempt,
                    wait_seconds=round(wait, 3),
                    error=type(exc).__name__,
                )
                self._sleep(wait)
                continue

            content_text = _completion_text(completion)
            if not content_text:
                raise EmptyResponseError("Inference response contained no generated text")

            result = parse_classification(content_text)
            log.info(
                "classification_success",
                category=result.category,
                confidence=result.confidence,
                attempts=attempt,
            )
            return result


def classify(credential: str, message: Message, **kwargs: Any) -> ClassificationResult:
    """Classify a single message with a throwaway InferenceClient."""
    return InferenceClient(credential, **kwargs).classify(message)


def parse_classification(text: str) -> ClassificationResult:
    """Parse generated text into a ClassificationResult or raise MalformedResultError."""
    cleaned = _strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedResultError(f"Classification is not valid JSON: {exc}", body=text[:500]) from exc

    if not isinstance(data, dict):
        raise MalformedResultError("Classification is not a JSON object", body=text[:500])

    category = data.get("category")
    if category not in CATEGORIES:
        raise MalformedResultError(f"Unknown category: {category!r}", body=text[:500])

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, Real):
        raise MalformedResultError(f"Confidence is not a number: {confidence!r}", body=text[:500])

    reasoning = data.get("reasoning")
    if not isinstance(reasoning, str):
        raise MalformedResultError("Reasoning is missing", body=text[:500])

    return ClassificationResult(
        category=category,
        confidence=float(confidence),
        reasoning=reasoning,
    )


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    # Remove markdown code blocks if present
    if text.startswith("```"):
        lines = text.split("\n")[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines)
    return text


def _completion_text(completion: Any) -> Optional[str]:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)


def _error_classifiers(exc: openai.APIStatusError) -> Set[str]:
    # The SDK unwraps {"error": {...}} into exc.body; tolerate both shapes.
    values = {exc.code, exc.type}
    body = exc.body
    if isinstance(body, dict):
        nested = body.get("error")
        if isinstance(nested, dict):
            body = nested
        values.update({body.get("code"), body.get("type")})
    return {v for v in values if isinstance(v, str)}


def _error_body(exc: openai.APIStatusError) -> str:
    if exc.body is not None:
        try:
            return json.dumps(exc.body)
        except (TypeError, ValueError):
            return str(exc.body)
    return exc.message
