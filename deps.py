"""
FastAPI dependencies. Use Depends(get_state) in route handlers to receive AppState.
"""
from fastapi import Depends, Request

from app_state import AppState
from posedemo.config import AppConfig
from posedemo.session import SessionState


def get_state(request: Request) -> AppState:
	"""Return the app state instance attached by the app factory."""
	return request.app.state.state


def get_cfg(state: AppState = Depends(get_state)) -> AppConfig:
	return state.cfg


def get_session(state: AppState = Depends(get_state)) -> SessionState:
	return state.session
