"""Bearer token routes. Routes: /api/py/token, /api/py/refresh-token."""
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from app_state import AppState
from deps import get_state
from posedemo.tokens import IssuedToken, bearer_from_header
from schemas.requests import TokenRefreshPayload
from schemas.responses import TokenResponse

router = APIRouter(tags=["tokens"])


def _token_response(state: AppState, tok: IssuedToken) -> dict:
	return {
		"access_token": tok.access_token,
		"token_type": tok.token_type,
		"expires_in": tok.expires_in(state.tokens.now()),
	}


@router.post("/api/py/token", response_model=TokenResponse)
async def issue_token(state: AppState = Depends(get_state)):
	"""Issue a new bearer token."""
	return _token_response(state, state.tokens.issue())


@router.post("/api/py/refresh-token", response_model=TokenResponse)
async def refresh_token(
	payload: Optional[TokenRefreshPayload] = None,
	authorization: Optional[str] = Header(None),
	state: AppState = Depends(get_state),
):
	"""Swap a live bearer token for a fresh one. 401 if missing, unknown or expired."""
	token = bearer_from_header(authorization) or (payload.access_token if payload else None)
	if not token:
		raise HTTPException(status_code=401, detail="Missing bearer token", headers={"WWW-Authenticate": "Bearer"})
	tok = state.tokens.refresh(token)
	if tok is None:
		raise HTTPException(status_code=401, detail="Invalid or expired token", headers={"WWW-Authenticate": "Bearer"})
	return _token_response(state, tok)
