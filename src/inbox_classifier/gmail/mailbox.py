from __future__ import annotations

from typing import List, Optional

from googleapiclient.errors import HttpError

from inbox_classifier.config.logging import get_logger
from inbox_classifier.errors import MailboxListError
from inbox_classifier.gmail.client import GmailClient, GmailClientConfig, http_error_details
from inbox_classifier.models import Message
from inbox_classifier.parsing.parser import message_from_resource

log = get_logger(__name__)


def fetch_recent_messages(
    credential: Optional[str] = None,
    limit: int = 15,
    *,
    client: Optional[GmailClient] = None,
) -> List[Message]:
    """
    Fetch up to `limit` recent messages, in the order Gmail lists them.

    Either a bearer credential or an already connected client must be given.
    Messages that fail to load or decode are dropped; only a failed listing
    raises (MailboxListError).
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit!r}")

    if client is None:
        if not credential:
            raise ValueError("A mailbox credential or a GmailClient is required")
        client = GmailClient(GmailClientConfig(access_token=credential))
        client.connect()

    try:
        message_ids = client.list_message_ids(max_results=limit)
    except HttpError as exc:
        status, body = http_error_details(exc)
        log.error("message_list_failed", status=status)
        raise MailboxListError(status, body) from exc

    # Gmail may hand back more than asked for; never exceed the limit.
    message_ids = message_ids[:limit]
    log.info("message_ids_listed", count=len(message_ids))
    if not message_ids:
        return []

    resources = client.get_messages(message_ids, fmt="full")

    messages: List[Message] = []
    for message_id, resource in zip(message_ids, resources):
        if resource is None:
            continue
        try:
            messages.append(message_from_resource(resource))
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            log.warning("message_decode_failed", message_id=message_id, error=type(exc).__name__)

    log.info("messages_fetched", requested=len(message_ids), loaded=len(messages))
    return messages
