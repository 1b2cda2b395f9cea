from __future__ import annotations

from typing import Any, Dict, List, Tuple

import httpx
import openai
import pytest

from inbox_classifier.errors import (
    EmptyResponseError,
    InferenceError,
    MailboxListError,
    MalformedResultError,
    NoMessagesError,
    QuotaExhaustedError,
)
from inbox_classifier.models import ClassificationResult, Message
from inbox_classifier.pipeline.orchestrator import INTER_MESSAGE_DELAY, classify_batch


def _messages(count: int) -> List[Message]:
    return [
        Message(
            id=f"m{i}",
            subject=f"Subject {i}",
            sender=f"sender{i}@example.com",
            snippet=f"snippet {i}",
            body="",
            date="",
        )
        for i in range(count)
    ]


class FakeClassifier:
    def __init__(self, failures: Dict[int, Exception] | None = None) -> None:
        self.failures = failures or {}
        self.calls: List[str] = []

    def classify(self, message: Message) -> ClassificationResult:
        index = len(self.calls)
        self.calls.append(message.id)
        if index in self.failures:
            raise self.failures[index]
        return ClassificationResult(category="important", confidence=0.9, reasoning=message.id)


def test_results_preserve_order_and_length() -> None:
    messages = _messages(5)
    classifier = FakeClassifier()

    results = classify_batch(
        "mailbox", "inference", 5,
        mailbox=lambda limit: messages, classifier=classifier, sleep=lambda s: None,
    )

    assert len(results) == 5
    assert [r.email for r in results] == messages
    assert [r.classification.reasoning for r in results] == [m.id for m in messages]
    assert classifier.calls == [m.id for m in messages]


@pytest.mark.parametrize(
    "error",
    [
        QuotaExhaustedError("quota", status=429),
        EmptyResponseError("empty"),
        MalformedResultError("bad json"),
        InferenceError("boom", status=500),
        openai.APIConnectionError(request=httpx.Request("POST", "https://example.invalid")),
        RuntimeError("unexpected"),
    ],
)
def test_failed_message_gets_fallback(error) -> None:
    messages = _messages(3)

    results = classify_batch(
        "mailbox", "inference", 3,
        mailbox=lambda limit: messages,
        classifier=FakeClassifier(failures={1: error}),
        sleep=lambda s: None,
    )

    assert len(results) == 3
    fallback = results[1].classification
    assert fallback.category == "general"
    assert fallback.confidence == 0.5
    assert fallback.reasoning
    assert results[1].email == messages[1]
    assert results[0].classification.category == "important"
    assert results[2].classification.category == "important"


def test_empty_mailbox_raises_without_inference_calls() -> None:
    classifier = FakeClassifier()

    with pytest.raises(NoMessagesError):
        classify_batch(
            "mailbox", "inference", 15,
            mailbox=lambda limit: [], classifier=classifier, sleep=lambda s: None,
        )

    assert classifier.calls == []


def test_mailbox_list_error_propagates() -> None:
    def failing_mailbox(limit: int) -> List[Message]:
        raise MailboxListError(403, "forbidden")

    classifier = FakeClassifier()

    with pytest.raises(MailboxListError):
        classify_batch(
            "mailbox", "inference", 15,
            mailbox=failing_mailbox, classifier=classifier, sleep=lambda s: None,
        )

    assert classifier.calls == []


def test_delay_between_messages_but_not_after_last() -> None:
    sleeps: List[float] = []

    classify_batch(
        "mailbox", "inference", 4,
        mailbox=lambda limit: _messages(4),
        classifier=FakeClassifier(failures={0: InferenceError("x")}),
        sleep=sleeps.append,
    )

    assert sleeps == [INTER_MESSAGE_DELAY] * 3


def test_single_message_never_sleeps() -> None:
    sleeps: List[float] = []

    classify_batch(
        "mailbox", "inference", 1,
        mailbox=lambda limit: _messages(1), classifier=FakeClassifier(), sleep=sleeps.append,
    )

    assert sleeps == []


def test_limit_is_passed_to_mailbox() -> None:
    seen: List[int] = []

    def mailbox(limit: int) -> List[Message]:
        seen.append(limit)
        return _messages(1)

    classify_batch("mailbox", "inference", 7, mailbox=mailbox, classifier=FakeClassifier(), sleep=lambda s: None)

    assert seen == [7]


def test_progress_callback_reports_metrics() -> None:
    events: List[Tuple[str, Dict[str, Any]]] = []

    classify_batch(
        "mailbox", "inference", 2,
        mailbox=lambda limit: _messages(2),
        classifier=FakeClassifier(failures={1: InferenceError("x")}),
        sleep=lambda s: None,
        progress_cb=lambda step, payload: events.append((step, payload)),
    )

    steps = [step for step, _ in events]
    assert steps[0] == "fetch_messages"
    assert steps[-1] == "done"
    assert events[-1][1]["metrics"] == {"processed": 2, "fallbacks": 1, "total": 2}


def test_missing_inference_credential_falls_back_for_every_message() -> None:
    messages = _messages(2)

    results = classify_batch("mailbox", "", 2, mailbox=lambda limit: messages, sleep=lambda s: None)

    assert [r.email for r in results] == messages
    assert [r.classification.category for r in results] == ["general", "general"]
    assert [r.classification.confidence for r in results] == [0.5, 0.5]
