"""Task reminder processing, triggered by an external scheduler."""

from typing import Optional

from fastapi import APIRouter, Header, Query, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.dependencies.rate_limits import get_limiter
from api.dependencies.secrets import secret_matches
from infrastructure.logging import bind_request_context, get_module_logger
from infrastructure.services import ReminderProcessorDep, SettingsDep

logger = get_module_logger()
router = APIRouter(prefix="/tasks/reminders", tags=["Reminders"])
limiter = get_limiter()


@router.post("/process")
@limiter.limit("12/minute")
async def process_reminders(
    request: Request,
    settings: SettingsDep,
    processor: ReminderProcessorDep,
    secret: Optional[str] = Query(default=None),
    x_task_reminder_secret: Optional[str] = Header(default=None),
):
    """Send every due task reminder.

    The secret is accepted from the ``X-Task-Reminder-Secret`` header or the
    ``secret`` query parameter.

    Returns:
        ``{"success": true, "processed": n}``; 403 on a secret mismatch and
        500 when due reminders could not be loaded.
    """
    if not secret_matches(
        settings.notifications.TASK_REMINDER_SECRET, x_task_reminder_secret, secret
    ):
        logger.warning("reminder_processing_forbidden", reason="secret mismatch")
        return JSONResponse(status_code=403, content={"error": "Forbidden"})

    with bind_request_context(
        request_path=request.url.path, request_method=request.method
    ):
        try:
            result = await run_in_threadpool(processor.process_due_reminders)
        except Exception as e:
            logger.error("reminder_processing_crashed", error=str(e), exc_info=True)
            return JSONResponse(
                status_code=500, content={"error": "Internal server error"}
            )
    if not result.is_success:
        return JSONResponse(
            status_code=500, content={"error": "Failed to load reminders"}
        )
    return {"success": True, "processed": result.data}
