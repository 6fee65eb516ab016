import argparse
import asyncio
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app_state import AppState, SourceFactory
from posedemo.config import AppConfig, get_config, set_config_path
from posedemo.landmarker import LandmarkerLoader
from posedemo.pose.base import PoseProvider
from routers import model as model_routes
from routers import pages as pages_routes
from routers import session as session_routes
from routers import tokens as token_routes
from routers import video as video_routes
from routers import ws as ws_routes

logger = logging.getLogger(__name__)


def _ui_dir(cfg: AppConfig) -> Path:
	p = Path(cfg.server.ui_dir).expanduser()
	return p if p.is_absolute() else Path(__file__).parent / p


def make_page_loader(ui_dir: Path):
	"""
	Return get_page_html(filename) that reads a UI file on first request and caches it.

	Raises FileNotFoundError if the file doesn't exist.
	"""

	@lru_cache(maxsize=16)
	def get_page_html(filename: str) -> str:
		file_path = ui_dir / filename
		if not file_path.exists():
			raise FileNotFoundError(f"UI template not found: {file_path}")
		return file_path.read_text(encoding="utf-8")

	return get_page_html


def _default_provider(loader: LandmarkerLoader) -> Optional[PoseProvider]:
	try:
		from posedemo.pose.mediapipe_provider import MediaPipePoseProvider

		return MediaPipePoseProvider(loader)
	except RuntimeError as e:
		# Video still plays without an overlay.
		logger.warning("[Server] pose provider unavailable: %s", e)
		return None


def create_app(
	cfg: Optional[AppConfig] = None,
	*,
	loader: Optional[LandmarkerLoader] = None,
	provider: Optional[PoseProvider] = None,
	source_factory: Optional[SourceFactory] = None,
) -> FastAPI:
	cfg = cfg or get_config()
	loader = loader or LandmarkerLoader(cfg.model_asset_file())
	if provider is None:
		provider = _default_provider(loader)

	state = AppState(cfg, loader=loader, provider=provider, source_factory=source_factory)
	state.feedback_channel = ws_routes.FeedbackChannel()
	state.UI_DIR = _ui_dir(cfg)
	state.get_page_html = make_page_loader(state.UI_DIR)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		state.loop = asyncio.get_running_loop()
		logger.info("[Server] ready (model asset %s, blob URL %s)", cfg.model_asset_file(), cfg.model.blob_url or "<unset>")
		try:
			yield
		finally:
			task = state.load_task
			if task is not None and not task.done():
				task.cancel()
				try:
					await task
				except asyncio.CancelledError:
					pass
			state.close()
			state.loop = None

	app = FastAPI(title="Pose overlay demo", lifespan=lifespan)
	app.state.state = state
	app.add_middleware(
		CORSMiddleware,
		allow_origins=list(cfg.server.cors_origins),
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	app.include_router(pages_routes.router)
	app.include_router(model_routes.router)
	app.include_router(token_routes.router)
	app.include_router(session_routes.router)
	app.include_router(video_routes.router)
	app.include_router(ws_routes.router)

	# Static assets (models/pose_landmarker_heavy.task) under their own paths; mounted last
	# so API routes win.
	models_dir = cfg.static_root() / "models"
	if models_dir.is_dir():
		app.mount("/models", StaticFiles(directory=str(models_dir)), name="models")
	else:
		logger.warning("[Server] %s missing; run scripts/fetch_model.py to download the pose model", models_dir)
	return app


def main(argv: Optional[list[str]] = None) -> None:
	parser = argparse.ArgumentParser(description="Pose overlay demo server")
	parser.add_argument("--config", help="Path to config.json (default: repo root)")
	parser.add_argument("--host", help="Bind host (overrides config)")
	parser.add_argument("--port", type=int, help="Bind port (overrides config)")
	parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
	args = parser.parse_args(argv)

	logging.basicConfig(
		level=logging.DEBUG if args.debug else logging.INFO,
		format="%(levelname)s:%(name)s:%(message)s",
	)
	if args.config:
		set_config_path(args.config)
	cfg = get_config()

	import uvicorn

	uvicorn.run(
		create_app(cfg),
		host=args.host or cfg.server.host,
		port=int(args.port or cfg.server.port),
		log_level="debug" if args.debug else "info",
	)


if __name__ == "__main__":
	main()
