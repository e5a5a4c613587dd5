"""
schemas/common.py

- Shared schemas used across the project (Pydantic v2)
- Contents:
  1) Standard error response: ErrorDetail, ErrorResponse
  2) CamelModel: request bodies accept camelCase keys from the web app
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Union

from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel


# =========================================================
# 1) Standard error response
# =========================================================

class ErrorDetail(BaseModel):
    """Smallest unit carrying an error code and message"""
    code: Union[int, str] = Field(..., description="HTTP status or symbolic code (e.g. INTERNAL_ERROR)")
    message: str = Field(..., description="Human readable error message")


class ErrorResponse(BaseModel):
    """
    Body returned by the global error handlers
    - middlewares/error_handler.py renders every error through this schema
    """
    success: bool = False
    error: ErrorDetail
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Response creation time (UTC)"
    )

    model_config = ConfigDict(extra="ignore")


# =========================================================
# 2) camelCase request bodies
# =========================================================

class CamelModel(BaseModel):
    """Accepts both `periodId` and `period_id`."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
