"""Shared response schemas."""

from typing import Optional

from pydantic import BaseModel


class StatusResponse(BaseModel):
    """Status-in-body response used for failures and bare acknowledgements."""

    status: int
    message: Optional[str] = None
