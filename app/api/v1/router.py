from fastapi import APIRouter

from api.v1.routes.reminders import router as reminders_router
from api.v1.routes.telegram import router as telegram_router

router = APIRouter()
router.include_router(telegram_router)
router.include_router(reminders_router)
