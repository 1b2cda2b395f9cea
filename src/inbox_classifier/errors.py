from __future__ import annotations

from typing import Optional


class InboxClassifierError(Exception):
    """Base class for errors raised by the classification pipeline."""


class MailboxListError(InboxClassifierError):
    """Listing recent message ids failed; nothing can be classified."""

    def __init__(self, status: Optional[int], body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(f"Failed to list mailbox messages (status={status}): {body}")


class NoMessagesError(InboxClassifierError):
    """The mailbox listing succeeded but yielded no readable messages."""

    def __init__(self) -> None:
        super().__init__("No emails found in the mailbox")


class InferenceError(InboxClassifierError):
    def __init__(self, message: str, *, status: Optional[int] = None, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(message)


class QuotaExhaustedError(InferenceError):
    """The inference account has run out of quota. Never retried."""


class EmptyResponseError(InferenceError):
    """The endpoint answered successfully but without generated text."""


class MalformedResultError(InferenceError):
    """The generated text is not a valid classification object."""
