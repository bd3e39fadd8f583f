from fastapi import APIRouter, Request

from api.dependencies.rate_limits import get_limiter
from infrastructure.services import ChatChannelDep, EmailChannelDep, SettingsDep

router = APIRouter(tags=["System"])
limiter = get_limiter()


# Load balancer and uptime probes hit these every few seconds, so the
# limits are generous.
@router.get("/version")
@limiter.limit("50/minute")
def get_version(request: Request, settings: SettingsDep):  # pylint: disable=unused-argument
    """Get the version of the application."""
    return {"version": settings.GIT_SHA}


@router.get("/health")
@limiter.limit("50/minute")
def get_health(request: Request):  # pylint: disable=unused-argument
    """Healthcheck endpoint."""
    return {"status": "ok"}


@router.get("/health/channels")
@limiter.limit("10/minute")
def get_channel_health(
    request: Request,  # pylint: disable=unused-argument
    email_channel: EmailChannelDep,
    chat_channel: ChatChannelDep,
):
    """Probe the SMTP relay and the Telegram Bot API.

    Always answers 200; each channel reports its own status.
    """
    channels = {}
    for channel in (email_channel, chat_channel):
        result = channel.health_check()
        channels[channel.channel_name] = {
            "configured": channel.is_configured,
            "status": result.status.value,
            "message": result.message,
        }
    healthy = all(c["status"] == "success" for c in channels.values())
    return {"status": "ok" if healthy else "degraded", "channels": channels}
