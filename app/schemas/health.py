from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ServicesStatus(BaseModel):
    """Status of the services the API depends on."""

    database: str = Field(description="connected or disconnected")
    cache: dict[str, Any] = Field(description="Cache backend health and statistics")


class HealthCheckResponse(BaseModel):
    """Health check response model."""

    model_config = ConfigDict(ser_json_timedelta="iso8601")

    status: str = Field(description="Overall health status")
    timestamp: str = Field(description="Current timestamp")
    uptime: float = Field(description="Seconds since the process started")
    environment: str = Field(description="Deployment environment")
    version: str = Field(description="API version")
    services: ServicesStatus = Field(description="Status of dependent services")
