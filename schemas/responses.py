"""Pydantic response models for API docs (routes may return dicts)."""
from typing import Optional

from pydantic import BaseModel


class ModelDownloadResponse(BaseModel):
	"""Response from GET /api/model-download on success."""

	status: int
	modelURL: str


class ErrorResponse(BaseModel):
	error: str


class TokenResponse(BaseModel):
	"""Response from POST /api/py/token and /api/py/refresh-token."""

	access_token: str
	token_type: str = "bearer"
	expires_in: int


class VideoDimensions(BaseModel):
	width: int
	height: int


class SessionStatusResponse(BaseModel):
	"""Session state plus landmarker/video status."""

	use_webcam: bool
	video_src: Optional[str] = None
	source_selected: bool
	video_dimensions: VideoDimensions
	feedback: str
	landmarker_ready: bool = False
	landmarker_loading: bool = False
	landmarker_error: Optional[str] = None
	landmarker_load_started: bool = False
