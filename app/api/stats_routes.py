"""Usage Stats — Upload API Routes."""

import html

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel
from sqlmodel import Session

from app.config import settings
from app.database import get_session
from app.models.payload_models import UsagePayload
from app.collector.pipeline import process_upload
from app.core.exceptions import CollectorError
from app.core.logging import get_logger

logger = get_logger("api.stats")

router = APIRouter(tags=["Statistics"])

NO_DATA_MESSAGE = "No statistics to process"
SUCCESS_MESSAGE = "Statistics processed"


# ── Response Models ──


class StatusResponse(BaseModel):
    """Response for POST /stats."""

    message: str


# ── Helpers ──


def render_status(message: str, status_code: int = 200) -> Response:
    """Encode a status message in the configured response format."""
    if settings.response_format == "html":
        return HTMLResponse(f"<p>{html.escape(message)}</p>", status_code=status_code)
    return JSONResponse(
        StatusResponse(message=message).model_dump(), status_code=status_code
    )


def client_address(request: Request) -> str:
    """Submitter IP: the socket peer, or the first X-Forwarded-For hop if trusted."""
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else ""


# ── Endpoints ──


@router.post("/stats", response_model=StatusResponse)
@router.post("/stats.php", response_model=StatusResponse, include_in_schema=False)
async def upload_stats(request: Request, session: Session = Depends(get_session)):
    """Parse an uploaded statistics document and store it.

    The body is read raw: an empty body is reported without touching the
    database, and malformed JSON is stored as an upload with no fields.
    Storage runs in the worker thread pool so the event loop stays free.
    """
    body = await request.body()
    if not body.strip():
        return render_status(NO_DATA_MESSAGE)

    payload = UsagePayload.from_body(body)
    ip_address = client_address(request)
    try:
        await run_in_threadpool(process_upload, session, payload, ip_address=ip_address)
    except CollectorError as e:
        logger.error(
            f"Upload failed: {e.message} {e.detail}".rstrip(),
            extra={"ip_address": ip_address, "status_code": e.status_code},
        )
        return render_status(e.message, status_code=e.status_code)

    return render_status(SUCCESS_MESSAGE)
