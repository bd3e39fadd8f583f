from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies.rate_limits import setup_rate_limiter
from api.router import api_router
from infrastructure.configuration import Settings
from infrastructure.services import get_settings
from server.lifespan import lifespan

LOCAL_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]


def allowed_origins(settings: Settings) -> list[str]:
    if settings.server.cors_origins:
        return settings.server.cors_origins
    return ["*"] if settings.is_production else LOCAL_ORIGINS


def create_app(settings: Settings) -> FastAPI:
    app = FastAPI(title="Portal Notify", lifespan=lifespan)
    setup_rate_limiter(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)
    return app


handler = create_app(get_settings())
