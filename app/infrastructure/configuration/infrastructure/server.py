"""HTTP server settings."""

from typing import List

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class ServerSettings(InfrastructureSettings):
    """uvicorn bind address and CORS policy.

    Environment Variables:
        SERVER_HOST: Interface to bind (default: 0.0.0.0)
        SERVER_PORT: Port to bind (default: 8000)
        CORS_ALLOW_ORIGINS: Comma separated list of allowed origins; when
            empty, production allows any origin and local runs allow the
            usual development hosts
    """

    SERVER_HOST: str = Field(default="0.0.0.0", alias="SERVER_HOST")
    SERVER_PORT: int = Field(default=8000, alias="SERVER_PORT")
    CORS_ALLOW_ORIGINS: str = Field(default="", alias="CORS_ALLOW_ORIGINS")

    @property
    def cors_origins(self) -> List[str]:
        return [
            origin.strip()
            for origin in self.CORS_ALLOW_ORIGINS.split(",")
            if origin.strip()
        ]
