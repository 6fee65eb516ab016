"""Model download proxy and object URL routes. Routes: /api/model-download, /blobs/{blob_id}."""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse, JSONResponse

from app_state import AppState
from deps import get_state
from posedemo.errors import ModelDownloadError
from posedemo.model_proxy import download_model
from schemas.responses import ErrorResponse, ModelDownloadResponse

router = APIRouter(tags=["model"])


@router.get(
	"/api/model-download",
	response_model=ModelDownloadResponse,
	responses={400: {"model": ErrorResponse}},
)
async def model_download(state: AppState = Depends(get_state)):
	"""Fetch the configured model blob and return an object URL for it. Any failure is a 400."""
	try:
		model_url = await download_model(state.cfg, state.objects)
	except ModelDownloadError as e:
		return JSONResponse(status_code=400, content={"error": str(e)})
	return {"status": 200, "modelURL": model_url}


@router.get("/blobs/{blob_id}")
async def get_blob(blob_id: str, state: AppState = Depends(get_state)):
	"""Serve a live object URL. Revoked URLs are gone for good."""
	entry = state.objects.get(blob_id)
	if entry is None or not entry.path.exists():
		raise HTTPException(status_code=404, detail="Object URL not found or revoked")
	return FileResponse(
		entry.path,
		media_type=entry.media_type,
		headers={"Cache-Control": "no-store"},
	)
