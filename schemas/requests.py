"""Pydantic request body models."""
from typing import Optional

from pydantic import BaseModel, Field


class SourceSelectPayload(BaseModel):
	"""Request body for POST /session/source."""

	source: str = Field(..., description="'webcam' or 'file'")


class TokenRefreshPayload(BaseModel):
	"""Optional body for POST /api/py/refresh-token when the client can't set headers."""

	access_token: Optional[str] = Field(None, description="Token to refresh; Authorization header wins if both are sent")
