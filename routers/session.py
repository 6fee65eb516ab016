"""Source selection routes. Routes: /session/source, /session/upload, /session/status, /session/reset."""
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app_state import AppState
from deps import get_state
from schemas.requests import SourceSelectPayload
from schemas.responses import SessionStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])

_VIDEO_TYPES_FALLBACK = ("application/octet-stream",)
_UPLOAD_CHUNK = 1 << 20


def _status(state: AppState, load_started: bool = False) -> dict:
	out = state.session.snapshot()
	out.update(
		{
			"landmarker_ready": state.loader.ready(),
			"landmarker_loading": state.loader.loading,
			"landmarker_error": state.loader.last_error,
			"landmarker_load_started": bool(load_started),
		}
	)
	return out


def _after_selection(state: AppState, became_selected: bool) -> dict:
	# The landmarker is built once per false -> true transition; source switches
	# afterwards only restart the video.
	if became_selected:
		state.start_landmarker_load()
	state.restart_video()
	return _status(state, load_started=became_selected)


@router.post("/session/source", response_model=SessionStatusResponse)
async def select_source(payload: SourceSelectPayload, state: AppState = Depends(get_state)):
	"""Choose webcam or file as the video source."""
	try:
		became = state.session.select_source(payload.source)
	except ValueError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return _after_selection(state, became)


@router.post("/session/upload", response_model=SessionStatusResponse)
async def upload_video(file: UploadFile = File(...), state: AppState = Depends(get_state)):
	"""Upload a video file; it becomes the active source via an object URL."""
	content_type = (file.content_type or "").lower()
	if not (content_type.startswith("video/") or content_type in _VIDEO_TYPES_FALLBACK):
		raise HTTPException(status_code=415, detail=f"Expected a video upload, got {content_type or 'unknown type'}")
	max_bytes = int(state.cfg.uploads.max_bytes)
	chunks = []
	total = 0
	while True:
		chunk = await file.read(_UPLOAD_CHUNK)
		if not chunk:
			break
		total += len(chunk)
		if total > max_bytes:
			raise HTTPException(status_code=413, detail="Uploaded file is too large")
		chunks.append(chunk)
	if not total:
		raise HTTPException(status_code=400, detail="Uploaded file is empty")
	data = b"".join(chunks)
	file_url = state.objects.create(data, media_type=content_type or "video/mp4", filename=file.filename or "")
	logger.info("[Session] uploaded %s (%d bytes) -> %s", file.filename, len(data), file_url)
	became = state.session.upload_video(file_url)
	return _after_selection(state, became)


@router.get("/session/status", response_model=SessionStatusResponse)
async def session_status(state: AppState = Depends(get_state)):
	return _status(state)


@router.post("/session/reset", response_model=SessionStatusResponse)
async def session_reset(state: AppState = Depends(get_state)):
	"""Leave the session: stop video, release the landmarker, revoke object URLs."""
	state.teardown()
	return _status(state)
