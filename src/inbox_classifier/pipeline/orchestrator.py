from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from inbox_classifier.config.logging import get_logger
from inbox_classifier.errors import NoMessagesError
from inbox_classifier.gmail.mailbox import fetch_recent_messages
from inbox_classifier.inference.client import InferenceClient
from inbox_classifier.models import FALLBACK_RESULT, ClassificationResult, ClassifiedEmail, Message

log = get_logger(__name__)

# Pause between two classification requests, on top of any retry backoff.
INTER_MESSAGE_DELAY = 0.5

ProgressCallback = Callable[[str, Dict[str, Any]], None]


class Classifier(Protocol):
    def classify(self, message: Message) -> ClassificationResult: ...


def classify_batch(
    mailbox_credential: Optional[str],
    inference_credential: Optional[str],
    limit: int = 15,
    *,
    mailbox: Optional[Callable[[int], List[Message]]] = None,
    classifier: Optional[Classifier] = None,
    sleep: Callable[[float], None] = time.sleep,
    progress_cb: Optional[ProgressCallback] = None,
) -> List[ClassifiedEmail]:
    """
    Fetch up to `limit` recent messages and classify them one at a time.

    Raises MailboxListError when listing fails and NoMessagesError when no
    message could be loaded. Any per-message classification failure is
    replaced by the general/0.5 fallback, so the result always has one entry
    per fetched message, in mailbox order.

    `mailbox` and `classifier` replace the Gmail and inference clients built
    from the credentials.
    """
    def report(step: str, *, detail: str | None = None, **extra: Any) -> None:
        if not progress_cb:
            return
        payload: Dict[str, Any] = {"detail": detail}
        payload.update(extra)
        progress_cb(step, payload)

    report("fetch_messages", detail="Fetching messages")
    if mailbox is None:
        messages = fetch_recent_messages(mailbox_credential, limit)
    else:
        messages = mailbox(limit)

    if not messages:
        log.warning("no_messages_found", limit=limit)
        raise NoMessagesError()

    total = len(messages)
    log.info("classification_started", total=total)

    results: List[ClassifiedEmail] = []
    fallbacks = 0
    report(
        "processing",
        detail=f"Classifying 0/{total}",
        metrics={"processed": 0, "fallbacks": 0, "total": total},
    )

    for index, message in enumerate(messages):
        try:
            # Built inside the loop so a bad credential becomes a per-message fallback.
            if classifier is None:
                classifier = InferenceClient(inference_credential)
            classification = classifier.classify(message)
        except Exception as exc:
            fallbacks += 1
            log.error(
                "classification_failed",
                message_id=message.id,
                index=index,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            classification = FALLBACK_RESULT
        results.append(ClassifiedEmail(email=message, classification=classification))

        report(
            "processing",
            detail=f"Classifying {index + 1}/{total}",
            metrics={"processed": index + 1, "fallbacks": fallbacks, "total": total},
        )

        if index < total - 1:
            sleep(INTER_MESSAGE_DELAY)

    log.info("classification_finished", total=total, fallbacks=fallbacks)
    report(
        "done",
        detail="Classification completed",
        metrics={"processed": total, "fallbacks": fallbacks, "total": total},
    )
    return results
