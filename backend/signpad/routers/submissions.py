import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from signpad.config import Settings, get_settings
from signpad.database import bootstrap_storage
from signpad.dependencies import get_store
from signpad.errors import ConfigurationError, PersistenceError, StorageError
from signpad.schemas.submission import ApiResponse
from signpad.services.signature_service import max_data_url_length
from signpad.services.submission_service import process_submission
from signpad.services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["submissions"])

GENERIC_ERROR = "An error occurred while processing your submission. Please try again."


def _envelope(success: bool, message: str, data: dict[str, Any] | None = None) -> ApiResponse:
    return ApiResponse(
        success=success,
        message=message,
        data=data,
        timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    )


def _failure(cfg: Settings, message: str, context: dict[str, Any]) -> ApiResponse:
    # Internal detail only leaves the server in debug mode.
    return _envelope(False, message, context if cfg.debug_mode else None)


@router.api_route(
    "/submit-agreement",
    methods=["GET", "HEAD", "OPTIONS", "PUT", "PATCH", "DELETE"],
    response_model=ApiResponse,
    include_in_schema=False,
)
async def reject_method():
    return _envelope(False, "Invalid request method. Only POST requests are allowed.")


@router.post("/submit-agreement", response_model=ApiResponse)
async def submit_agreement(
    request: Request,
    cfg: Settings = Depends(get_settings),
    store: SubmissionStore = Depends(get_store),
):
    """Accept the signature form post. Every outcome is reported with HTTP 200."""
    try:
        bootstrap_storage(cfg)
    except ConfigurationError as exc:
        return _failure(cfg, exc.message, {"error": exc.detail})

    try:
        form = await request.form(max_part_size=max_data_url_length(cfg.max_file_size))
    except (MultiPartException, StarletteHTTPException) as exc:
        detail = getattr(exc, "detail", None) or getattr(exc, "message", None) or str(exc)
        logger.warning("Unreadable form body - Context: %s", {"error": detail})
        return _envelope(False, "The submitted form could not be read.", {"errors": [detail]})

    fields = {key: value for key, value in form.items() if isinstance(value, str)}
    client_ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    context = {"email": fields.get("email", "unknown")}

    try:
        outcome = process_submission(fields, client_ip, user_agent, store, cfg)
    except PersistenceError as exc:
        logger.error("Database error during submission - Context: %s", {"error": str(exc), **context})
        return _failure(cfg, "Database error occurred. Please try again.", {"error": str(exc), **context})
    except StorageError as exc:
        logger.error("Storage error during submission - Context: %s", {"error": str(exc), **context})
        return _failure(cfg, GENERIC_ERROR, {"error": str(exc), **context})
    except Exception as exc:
        logger.exception("General error during submission - Context: %s", context)
        return _failure(cfg, GENERIC_ERROR, {"error": str(exc), **context})

    return _envelope(outcome.success, outcome.message, outcome.data)
