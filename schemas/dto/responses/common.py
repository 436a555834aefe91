"""
Common response DTOs shared across multiple endpoints.

MessageResponse  — generic {success, message} shape
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class MessageResponse(BaseModel):
    """Generic success/message response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: Optional[str] = None
