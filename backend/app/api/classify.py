from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Header, HTTPException
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from backend.app.status import run_status_store
from inbox_classifier.config.logging import get_logger
from inbox_classifier.config.settings import load_settings
from inbox_classifier.errors import MailboxListError, NoMessagesError
from inbox_classifier.pipeline.orchestrator import classify_batch

router = APIRouter()
log = get_logger(__name__)


class ClassifyRequest(BaseModel):
    limit: Optional[int] = Field(default=None, ge=1, le=100)


@router.post("/classify")
async def classify_endpoint(
    payload: Optional[ClassifyRequest] = None,
    x_mailbox_token: Optional[str] = Header(default=None),
    x_inference_token: Optional[str] = Header(default=None),
) -> dict:
    settings = load_settings()
    if not x_mailbox_token:
        raise HTTPException(status_code=400, detail="Missing X-Mailbox-Token header.")

    inference_token = x_inference_token or settings.openai_api_key
    if not inference_token:
        raise HTTPException(
            status_code=400,
            detail="Missing X-Inference-Token header and no default inference key is configured.",
        )

    limit = payload.limit if payload and payload.limit is not None else settings.fetch_limit

    run_status_store.reset()
    run_status_store.update(state="running", step="starting", detail="Starting classification")

    def progress_cb(step: str, event: dict[str, Any]) -> None:
        status_update: dict[str, Any] = {"state": "running", "step": step, "detail": event.get("detail")}
        if "metrics" in event:
            status_update["metrics"] = event.get("metrics") or {}
        run_status_store.update(**status_update)

    try:
        # Blocking network calls and sleeps run in a worker thread so FastAPI stays responsive.
        results = await run_in_threadpool(
            classify_batch,
            x_mailbox_token,
            inference_token,
            limit,
            progress_cb=progress_cb,
        )
    except NoMessagesError as exc:
        run_status_store.update(state="error", step="error", detail=str(exc), error="no_messages")
        raise HTTPException(status_code=404, detail=str(exc))
    except MailboxListError as exc:
        run_status_store.update(state="error", step="error", detail=str(exc), error="mailbox_list_failed")
        raise HTTPException(
            status_code=502,
            detail={"code": "mailbox_list_failed", "status": exc.status, "message": str(exc)},
        )
    except Exception as exc:
        log.error("classify_endpoint_failed", error_type=type(exc).__name__, error=str(exc))
        run_status_store.update(state="error", step="error", detail=str(exc), error=type(exc).__name__)
        raise

    run_status_store.update(state="done", step="done", detail="Classification completed")
    return {"ok": True, "data": [item.to_dict() for item in results]}


@router.get("/classify/status")
async def classify_status() -> dict:
    return {"ok": True, "status": run_status_store.snapshot()}
