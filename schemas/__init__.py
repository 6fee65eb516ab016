"""Pydantic request/response models for API validation and docs."""
from schemas.requests import SourceSelectPayload, TokenRefreshPayload
from schemas.responses import (
	ErrorResponse,
	ModelDownloadResponse,
	SessionStatusResponse,
	TokenResponse,
	VideoDimensions,
)

__all__ = [
	"SourceSelectPayload",
	"TokenRefreshPayload",
	"ErrorResponse",
	"ModelDownloadResponse",
	"SessionStatusResponse",
	"TokenResponse",
	"VideoDimensions",
]
