"""Pydantic models for the forecast payloads."""

import re
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator

# yyyy-MM-ddTHH:mm:ss[.fraction][offset]
DATE_TIME_PATTERN = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>Z|[+-]\d{2}:\d{2})?$"
)


class Forecast(BaseModel):
    """A single weather forecast as exchanged with the upstream service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: datetime = Field(..., description="Date and time of the forecast")
    temperature_celsius: int = Field(
        ...,
        ge=-20,
        le=55,
        strict=True,
        validation_alias=AliasChoices("temperatureCelsius", "temperatureC"),
        serialization_alias="temperatureCelsius",
        description="Temperature in Celsius",
    )
    temperature_fahrenheit: int = Field(
        ...,
        ge=-4,
        le=131,
        strict=True,
        validation_alias=AliasChoices("temperatureFahrenheit", "temperatureF"),
        serialization_alias="temperatureFahrenheit",
        description="Temperature in Fahrenheit",
    )
    summary: str | None = Field(
        default=None,
        min_length=3,
        max_length=15,
        description="Short summary text",
    )

    @field_validator("date", mode="before")
    @classmethod
    def _require_date_time_text(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value
        match = DATE_TIME_PATTERN.match(value) if isinstance(value, str) else None
        if match is None:
            raise ValueError("must be a date-time formatted as yyyy-MM-ddTHH:mm:ss.SSS")
        # datetime holds at most microseconds
        fraction = (match["fraction"] or "0")[:6]
        return f"{match['base']}.{fraction}{match['offset'] or ''}"

    @field_validator("date")
    @classmethod
    def _truncate_to_millis(cls, value: datetime) -> datetime:
        # local date-time, millisecond precision
        return value.replace(microsecond=value.microsecond // 1000 * 1000, tzinfo=None)

    @field_serializer("date")
    def _format_date(self, value: datetime) -> str:
        return value.isoformat(timespec="milliseconds")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    upstream: str | None = Field(None, description="Configured upstream base URL")
