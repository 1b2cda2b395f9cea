from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httplib2
from google.auth.exceptions import TransportError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from inbox_classifier.config.logging import get_logger

log = get_logger(__name__)

# Gmail allows up to 100 calls per batch but recommends staying at 50 or below.
GMAIL_BATCH_SIZE = 50


@dataclass(frozen=True)
class GmailClientConfig:
    # OAuth access token issued to the signed-in user by the outer auth layer.
    access_token: str
    # Gmail userId, "me" refers to the authenticated user.
    user_id: str = "me"


def http_error_details(exc: HttpError) -> tuple[Optional[int], str]:
    """Return (status, body text) for a googleapiclient HttpError."""
    status = getattr(exc.resp, "status", None)
    content = exc.content or b""
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    return (int(status) if status is not None else None), content


class GmailClient:
    def __init__(self, cfg: GmailClientConfig):
        self._cfg = cfg
        self._service = None

    def connect(self) -> None:
        """Create a Gmail API service client authorized with the bearer token."""
        # Token only: no refresh token, the outer auth layer owns renewal.
        creds = Credentials(token=self._cfg.access_token)
        self._service = build("gmail", "v1", credentials=creds, cache_discovery=False)

    @property
    def service(self):
        if self._service is None:
            raise RuntimeError("GmailClient is not connected. Call connect() first.")
        return self._service

    def list_message_ids(self, max_results: int = 15) -> List[str]:
        """List the ids of the most recent messages, newest first."""
        resp = (
            self.service.users()
            .messages()
            .list(userId=self._cfg.user_id, maxResults=max_results)
            .execute()
        )
        msgs = resp.get("messages", []) or []
        return [m["id"] for m in msgs]

    def get_message(self, message_id: str, fmt: str = "full") -> Dict[str, Any]:
        """
        Fetch a single message resource.
        fmt: 'full' | 'metadata' | 'minimal' | 'raw'
        """
        return (
            self.service.users()
            .messages()
            .get(userId=self._cfg.user_id, id=message_id, format=fmt)
            .execute()
        )

    def get_messages(self, message_ids: List[str], fmt: str = "full") -> List[Optional[Dict[str, Any]]]:
        """
        Fetch many message resources through Gmail HTTP batch requests.

        The result is indexed like message_ids; a sub-request that failed
        yields None at its position.
        """
        results: List[Optional[Dict[str, Any]]] = [None] * len(message_ids)

        def on_response(request_id: str, response: Any, exception: Optional[Exception]) -> None:
            index = int(request_id)
            if exception is not None:
                if isinstance(exception, HttpError):
                    status, _body = http_error_details(exception)
                else:
                    status = None
                log.warning(
                    "message_fetch_failed",
                    message_id=message_ids[index],
                    status=status,
                    error=type(exception).__name__,
                )
                return
            results[index] = response

        for start in range(0, len(message_ids), GMAIL_BATCH_SIZE):
            batch = self.service.new_batch_http_request(callback=on_response)
            for index in range(start, min(start + GMAIL_BATCH_SIZE, len(message_ids))):
                batch.add(
                    self.service.users()
                    .messages()
                    .get(userId=self._cfg.user_id, id=message_ids[index], format=fmt),
                    request_id=str(index),
                )
            try:
                batch.execute()
            except HttpError as exc:
                # The whole chunk failed; its positions stay None.
                status, _body = http_error_details(exc)
                log.warning("message_batch_failed", start=start, status=status)
            except (httplib2.HttpLib2Error, TransportError, OSError) as exc:
                log.warning("message_batch_failed", start=start, status=None, error=type(exc).__name__)

        return results
