"""Error payloads shared by the API routers."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    detail: str


class ImportErrorDetail(BaseModel):
    message: str
    invalid_rows: int = 0
    row_numbers: list[int] = Field(default_factory=list)


class ImportErrorResponse(BaseModel):
    detail: ImportErrorDetail
