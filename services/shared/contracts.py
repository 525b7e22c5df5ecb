from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CallableRequest(BaseModel):
    """Callable protocol request envelope: the caller's value travels under ``data``."""

    model_config = ConfigDict(extra="ignore")

    data: Any = Field(..., description="Caller payload, expected to be a JSON object")


class SaveResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    file_path: str = Field(..., serialization_alias="filePath", validation_alias="filePath")

    @field_validator("file_path")
    @classmethod
    def validate_file_path(cls, value: str) -> str:
        if not value.startswith("gs://"):
            raise ValueError("file_path must start with gs://")
        return value


class CallableResponse(BaseModel):
    result: SaveResult


class CallableErrorDetail(BaseModel):
    status: str
    message: str


class CallableErrorBody(BaseModel):
    error: CallableErrorDetail


class HealthResponse(BaseModel):
    status: str
