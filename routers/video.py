"""Video overlay routes. Routes: /video/status, /video/mjpeg, /video/snapshot.jpg, /video/pose."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response, StreamingResponse

from app_state import AppState
from deps import get_cfg, get_session, get_state
from posedemo.config import AppConfig
from posedemo.session import SessionState

router = APIRouter(tags=["video"])

_NO_CACHE = {
	"Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
	"Pragma": "no-cache",
}


@router.get("/video/status")
async def video_status(state: AppState = Depends(get_state)):
	return state.video.get_status()


@router.get("/video/mjpeg")
async def video_mjpeg(
	fps: Optional[float] = None,
	state: AppState = Depends(get_state),
	cfg: AppConfig = Depends(get_cfg),
):
	"""Live MJPEG stream of the video with the pose overlay."""
	return StreamingResponse(
		state.video.mjpeg_stream(fps=float(fps or cfg.video.mjpeg_fps)),
		media_type="multipart/x-mixed-replace; boundary=frame",
		headers={**_NO_CACHE, "Connection": "keep-alive"},
	)


@router.get("/video/snapshot.jpg")
async def video_snapshot(state: AppState = Depends(get_state)):
	"""Return the latest overlaid JPEG frame."""
	jpeg = await state.video.snapshot_jpeg()
	if jpeg is None:
		raise HTTPException(status_code=404, detail="No JPEG frame available yet")
	return Response(content=jpeg, media_type="image/jpeg", headers=_NO_CACHE)


@router.get("/video/pose")
async def video_pose(state: AppState = Depends(get_state), session: SessionState = Depends(get_session)):
	"""Landmarks of the latest processed frame (null until the detector is ready)."""
	pose = state.video.get_latest_pose()
	return {"pose": pose.to_dict() if pose else None, "feedback": session.feedback}
