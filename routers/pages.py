"""HTML page and health routes. Routes: /, /health."""
import json

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse

from app_state import AppState
from deps import get_state
from posedemo import __version__
from posedemo.landmarker import landmarker_options_summary

router = APIRouter(tags=["pages"])

_STATE_PLACEHOLDER = "<!-- INITIAL_STATE -->"


def _get_html(state: AppState, filename: str) -> str:
	"""Load page HTML lazily. 404 if UI template missing."""
	if state.get_page_html is None:
		raise HTTPException(status_code=503, detail="Server not ready")
	try:
		return state.get_page_html(filename)
	except FileNotFoundError as e:
		raise HTTPException(status_code=404, detail=str(e)) from e


@router.get("/", response_class=HTMLResponse)
async def index(state: AppState = Depends(get_state)):
	"""Selector until a source is chosen, then video + overlay (the page reads /session/status)."""
	html = _get_html(state, "index.html")
	if _STATE_PLACEHOLDER in html:
		script = f"<script>window.__SESSION__ = {json.dumps(state.session.snapshot())};</script>"
		html = html.replace(_STATE_PLACEHOLDER, script, 1)
	return HTMLResponse(content=html, headers={"Cache-Control": "no-store, no-cache, must-revalidate"})


@router.get("/health")
async def health(state: AppState = Depends(get_state)):
	return {
		"status": "healthy",
		"version": __version__,
		"landmarker_ready": state.loader.ready(),
		"runtime_version": state.loader.runtime_version,
		"landmarker_options": landmarker_options_summary("/" + state.cfg.model.asset_path),
	}
