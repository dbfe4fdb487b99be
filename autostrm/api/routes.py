from dataclasses import asdict
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from autostrm.models.entities import ValidateFilenameReq, WebhookData
from autostrm.services.jellyfin import trigger_library_refresh
from autostrm.services.normalizer import validate_filename
from autostrm.services.organizer import organize_batch
from autostrm.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_webhook(body: bytes) -> WebhookData:
    if not body or not body.strip():
        logger.warning("Empty request body received")
        raise HTTPException(status_code=400, detail={"error": "Empty request body"})

    try:
        payload = WebhookData.model_validate_json(body)
    except ValidationError as exc:
        logger.error("Failed to parse JSON from request body: %s", exc)
        raise HTTPException(
            status_code=400,
            detail={"error": "Invalid JSON format", "details": str(exc)},
        ) from exc

    if payload.code != 0:
        logger.warning("Webhook data contains error code: %s, message: %s", payload.code, payload.msg)
        raise HTTPException(
            status_code=400,
            detail={"error": "Webhook data contains error", "code": payload.code, "message": payload.msg},
        )

    if not payload.data:
        logger.warning("No media items found in webhook data")
        raise HTTPException(status_code=400, detail={"error": "No media items found"})

    return payload


def process_webhook(payload: WebhookData) -> dict:
    # Settings are read once per batch; the core only sees the snapshot.
    config = settings.snapshot()
    out = organize_batch(payload.data, config)

    response = {
        "success": True,
        "message": "STRM files created successfully",
        "processed_count": out["processed"],
        "created": out["created"],
        "overwritten": out["overwritten"],
        "skipped": out["skipped"],
        "failed": out["failed"],
        "items": out["items"],
        "note": "Library scan may be needed to see new files in Jellyfin",
    }

    if settings.jellyfin_refresh_after_webhook and (out["created"] or out["overwritten"]):
        response["jellyfin_refresh"] = trigger_library_refresh()
    return response


@router.post("/webhook")
async def receive_webhook(request: Request):
    body = await request.body()
    logger.info("Received webhook request: %d bytes", len(body))
    payload = parse_webhook(body)
    return await run_in_threadpool(process_webhook, payload)


@router.get("/health")
def health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.post("/filenames/validate")
def validate(payload: ValidateFilenameReq):
    return asdict(validate_filename(payload.filename))


@router.post("/jobs/jellyfin-refresh-now")
def jellyfin_refresh_now():
    return trigger_library_refresh()
