from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ServerConfig:
	host: str = "127.0.0.1"
	port: int = 8000
	# Served as-is under "/": models/pose_landmarker_heavy.task lives here.
	static_dir: str = "public"
	ui_dir: str = "UI"
	cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class ModelConfig:
	# Blob storage URL proxied by GET /api/model-download. Empty -> route always 400s.
	blob_url: str = ""
	# Relative to server.static_dir.
	asset_path: str = "models/pose_landmarker_heavy.task"
	download_timeout_seconds: float = 30.0


@dataclass(frozen=True)
class TokensConfig:
	token_url: str = "http://127.0.0.1:8000/api/py/token"
	refresh_url: str = "http://127.0.0.1:8000/api/py/refresh-token"
	ttl_seconds: float = 900.0
	timeout_seconds: float = 5.0


@dataclass(frozen=True)
class VideoConfig:
	webcam_index: int = 0
	mjpeg_fps: float = 15.0
	jpeg_quality: int = 80


@dataclass(frozen=True)
class UploadsConfig:
	# Private directory backing object URLs; a temp dir is created when empty.
	dir: str = ""
	max_bytes: int = 200 * 1024 * 1024


@dataclass(frozen=True)
class AppConfig:
	server: ServerConfig = field(default_factory=ServerConfig)
	model: ModelConfig = field(default_factory=ModelConfig)
	tokens: TokensConfig = field(default_factory=TokensConfig)
	video: VideoConfig = field(default_factory=VideoConfig)
	uploads: UploadsConfig = field(default_factory=UploadsConfig)

	def static_root(self) -> Path:
		p = Path(self.server.static_dir).expanduser()
		return p if p.is_absolute() else _repo_root() / p

	def model_asset_file(self) -> Path:
		return self.static_root() / self.model.asset_path


_CONFIG_PATH: Optional[Path] = None
_CONFIG_CACHE: Optional[AppConfig] = None


def _repo_root() -> Path:
	# posedemo/config.py -> repo root is one level up.
	return Path(__file__).resolve().parents[1]


def get_default_config_path() -> Path:
	return _repo_root() / "config.json"


def set_config_path(path: str | Path) -> None:
	"""
	Override the config path (must be called before first get_config()).
	"""
	global _CONFIG_PATH
	global _CONFIG_CACHE
	_CONFIG_PATH = Path(path).expanduser().resolve()
	_CONFIG_CACHE = None


def _deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
	cur: Any = d
	for k in keys:
		if not isinstance(cur, dict):
			return default
		cur = cur.get(k)
	return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
	try:
		return int(v)
	except Exception:
		return int(default)


def _as_str(v: Any, default: str = "") -> str:
	return str(v) if v is not None else str(default)


def _as_float(v: Any, default: float) -> float:
	try:
		return float(v)
	except Exception:
		return float(default)


def _as_str_list(v: Any, default: list[str]) -> list[str]:
	if isinstance(v, str):
		return [s.strip() for s in v.split(",") if s.strip()]
	if isinstance(v, list):
		return [str(s) for s in v if str(s).strip()]
	return list(default)


def _positive(v: float, default: float) -> float:
	return float(v) if float(v) > 0.0 else float(default)


def load_config(path: Optional[str | Path] = None) -> AppConfig:
	p = Path(path).expanduser().resolve() if path else (_CONFIG_PATH or get_default_config_path())
	raw: Any = {}
	if p.exists():
		try:
			raw = json.loads(p.read_text(encoding="utf-8"))
		except Exception:
			# Malformed config: fall back to defaults, keep the app running.
			raw = {}
	if not isinstance(raw, dict):
		raw = {}

	d_server = ServerConfig()
	d_model = ModelConfig()
	d_tokens = TokensConfig()
	d_video = VideoConfig()
	d_uploads = UploadsConfig()

	host = _as_str(_deep_get(raw, ["server", "host"], d_server.host), d_server.host)
	port = _as_int(_deep_get(raw, ["server", "port"], d_server.port), d_server.port)
	static_dir = _as_str(_deep_get(raw, ["server", "static_dir"], d_server.static_dir), d_server.static_dir).strip()
	ui_dir = _as_str(_deep_get(raw, ["server", "ui_dir"], d_server.ui_dir), d_server.ui_dir).strip()
	cors = _as_str_list(_deep_get(raw, ["server", "cors_origins"], None), d_server.cors_origins)

	blob_url = _as_str(_deep_get(raw, ["model", "blob_url"], ""), "").strip()
	# Env is read here only; everything downstream receives the AppConfig.
	env_blob = os.environ.get("BLOB_MODEL_PROCESS")
	if env_blob:
		blob_url = env_blob.strip()
	asset_path = _as_str(_deep_get(raw, ["model", "asset_path"], d_model.asset_path), d_model.asset_path).strip().lstrip("/")
	dl_timeout = _as_float(_deep_get(raw, ["model", "download_timeout_seconds"], d_model.download_timeout_seconds), d_model.download_timeout_seconds)

	token_url = _as_str(_deep_get(raw, ["tokens", "token_url"], d_tokens.token_url), d_tokens.token_url).strip()
	refresh_url = _as_str(_deep_get(raw, ["tokens", "refresh_url"], d_tokens.refresh_url), d_tokens.refresh_url).strip()
	ttl = _as_float(_deep_get(raw, ["tokens", "ttl_seconds"], d_tokens.ttl_seconds), d_tokens.ttl_seconds)
	tok_timeout = _as_float(_deep_get(raw, ["tokens", "timeout_seconds"], d_tokens.timeout_seconds), d_tokens.timeout_seconds)

	# NOTE: webcam index 0 is valid; don't use `or`.
	webcam_index = _as_int(_deep_get(raw, ["video", "webcam_index"], d_video.webcam_index), d_video.webcam_index)
	mjpeg_fps = _as_float(_deep_get(raw, ["video", "mjpeg_fps"], d_video.mjpeg_fps), d_video.mjpeg_fps)
	jpeg_quality = _as_int(_deep_get(raw, ["video", "jpeg_quality"], d_video.jpeg_quality), d_video.jpeg_quality)

	uploads_dir = _as_str(_deep_get(raw, ["uploads", "dir"], ""), "").strip()
	max_bytes = _as_int(_deep_get(raw, ["uploads", "max_bytes"], d_uploads.max_bytes), d_uploads.max_bytes)

	return AppConfig(
		server=ServerConfig(
			host=host or d_server.host,
			port=int(port) if int(port) > 0 else d_server.port,
			static_dir=static_dir or d_server.static_dir,
			ui_dir=ui_dir or d_server.ui_dir,
			cors_origins=cors,
		),
		model=ModelConfig(
			blob_url=blob_url,
			asset_path=asset_path or d_model.asset_path,
			download_timeout_seconds=_positive(dl_timeout, d_model.download_timeout_seconds),
		),
		tokens=TokensConfig(
			token_url=token_url or d_tokens.token_url,
			refresh_url=refresh_url or d_tokens.refresh_url,
			ttl_seconds=_positive(ttl, d_tokens.ttl_seconds),
			timeout_seconds=_positive(tok_timeout, d_tokens.timeout_seconds),
		),
		video=VideoConfig(
			webcam_index=max(0, int(webcam_index)),
			mjpeg_fps=_positive(mjpeg_fps, d_video.mjpeg_fps),
			jpeg_quality=min(95, max(10, int(jpeg_quality))),
		),
		uploads=UploadsConfig(
			dir=uploads_dir,
			max_bytes=int(max_bytes) if int(max_bytes) > 0 else d_uploads.max_bytes,
		),
	)


def get_config() -> AppConfig:
	global _CONFIG_CACHE
	if _CONFIG_CACHE is None:
		_CONFIG_CACHE = load_config()
	return _CONFIG_CACHE
