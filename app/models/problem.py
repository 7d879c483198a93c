"""RFC7807 problem details returned for every failed request."""

from pydantic import BaseModel, ConfigDict, Field


class InvalidParam(BaseModel):
    """A field that failed validation and why."""

    field: str = Field(..., description="Name of the offending field")
    reason: str = Field(..., description="Violated constraint")


class ProblemDetail(BaseModel):
    """Error response model (``application/problem+json``)."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(..., description="Path of the request that failed")
    title: str = Field(..., description="Short summary of the failure")
    instance: str = Field(..., description="Unique error id, urn:ERROR:<uuid>")
    detail: str | None = Field(None, description="Longer explanation")
    invalid_params: list[InvalidParam] | None = Field(
        None,
        alias="invalidParams",
        description="Field violations, only for validation failures",
    )
