"""Telegram Bot API webhook.

Telegram retries any update that does not get a 2xx answer, so once the
secret check passes every business outcome (bad token, unknown username,
directory failure) is acknowledged with 200.
"""

import json
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.dependencies.rate_limits import get_limiter
from api.dependencies.secrets import secret_matches
from infrastructure.logging import bind_request_context, get_module_logger
from infrastructure.services import LinkingHandlerDep, SettingsDep

logger = get_module_logger()
router = APIRouter(prefix="/telegram", tags=["Telegram"])
limiter = get_limiter()


def _forbidden() -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": "Forbidden"})


@router.post("/webhook")
@limiter.limit("300/minute")
async def receive_update(
    request: Request,
    settings: SettingsDep,
    handler: LinkingHandlerDep,
    secret: Optional[str] = Query(default=None),
):
    """Receive one update from the Telegram Bot API.

    Returns:
        403 when the webhook secret does not match; otherwise 200 with
        ``{"ok": true}`` (``"skipped": true`` when no bot token is set, and
        ``{"ok": false}`` if handling crashed).
    """
    if not secret_matches(settings.telegram.TELEGRAM_WEBHOOK_SECRET, secret):
        logger.warning("telegram_webhook_forbidden", reason="secret mismatch")
        return _forbidden()

    if not settings.telegram.is_configured:
        logger.warning(
            "telegram_webhook_skipped", reason="TELEGRAM_BOT_TOKEN is not set"
        )
        return {"ok": True, "skipped": True}

    try:
        payload = json.loads(await request.body())
    except (ValueError, UnicodeDecodeError) as e:
        logger.info("telegram_webhook_unparseable", error=str(e))
        return {"ok": True}
    if not isinstance(payload, dict):
        return {"ok": True}

    update_id = payload.get("update_id")
    with bind_request_context(
        request_path=request.url.path,
        request_method=request.method,
        update_id=update_id,
    ):
        try:
            outcome = await run_in_threadpool(handler.handle, payload)
        except Exception as e:
            logger.error("telegram_webhook_failed", error=str(e), exc_info=True)
            return {"ok": False}
        logger.info("telegram_update_processed", outcome=outcome.value)
    return {"ok": True}


@router.get("/webhook")
@limiter.limit("30/minute")
def verify_webhook(
    request: Request,  # pylint: disable=unused-argument
    settings: SettingsDep,
    secret: Optional[str] = Query(default=None),
):
    """Reachability probe for the webhook URL."""
    if not secret_matches(settings.telegram.TELEGRAM_WEBHOOK_SECRET, secret):
        return _forbidden()
    return {"ok": True}
