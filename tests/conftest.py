from __future__ import annotations

import io
import json
import urllib.error
import urllib.request
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
import pytest
from fastapi.testclient import TestClient

from posedemo.config import AppConfig, ModelConfig, ServerConfig, UploadsConfig
from posedemo.landmarker import LandmarkerLoader
from posedemo.pose.base import PoseProvider
from posedemo.pose.types import Keypoint, PoseFrame
from posedemo.video_source import VideoSource
from server import create_app


class FakeLandmarker:
	def __init__(self, tag: str = "") -> None:
		self.tag = tag
		self.closed = False
		self.calls: List[int] = []

	def detect_for_video(self, image: Any, timestamp_ms: int) -> Any:
		self.calls.append(timestamp_ms)
		return {"image": image, "ts": timestamp_ms}

	def close(self) -> None:
		self.closed = True


class FakeProvider(PoseProvider):
	def __init__(self, ready: bool = True, with_pose: bool = True) -> None:
		self._ready = ready
		self._with_pose = with_pose
		self.timestamps: List[int] = []

	def name(self) -> str:
		return "fake"

	def ready(self) -> bool:
		return self._ready

	def infer_rgb(self, rgb, timestamp_ms: int) -> Optional[PoseFrame]:
		self.timestamps.append(int(timestamp_ms))
		h, w = int(rgb.shape[0]), int(rgb.shape[1])
		frame = PoseFrame(backend="fake", width=w, height=h, t_video=timestamp_ms / 1000.0)
		if self._with_pose:
			for name, (x, y) in {"left_shoulder": (0.4, 0.3), "right_shoulder": (0.6, 0.3), "left_hip": (0.45, 0.6)}.items():
				frame.keypoints[name] = Keypoint(name=name, x=x, y=y, x_px=x * w, y_px=y * h, score=0.9)
		return frame


class FakeSource(VideoSource):
	def __init__(self, frames: int = 3, size: Tuple[int, int] = (64, 48)) -> None:
		self._remaining = frames
		self._size = size
		self._t = 0.0
		self.opened = False
		self.closed = False

	def name(self) -> str:
		return "fake"

	def open(self) -> None:
		self.opened = True

	def read(self):
		if self._remaining <= 0:
			return None, None
		self._remaining -= 1
		w, h = self._size
		self._t += 33.0
		return np.zeros((h, w, 3), dtype=np.uint8), self._t

	def close(self) -> None:
		self.closed = True


class FakeResponse(io.BytesIO):
	def __init__(self, body: bytes, status: int = 200) -> None:
		super().__init__(body)
		self.status = status

	def __enter__(self) -> "FakeResponse":
		return self

	def __exit__(self, *exc) -> None:
		self.close()


Route = Callable[[urllib.request.Request], Any]


@pytest.fixture
def fake_upstream(monkeypatch):
	"""
	Patch urllib.request.urlopen. Register handlers per URL; a handler returns
	bytes, a dict (sent as JSON) or an int status, or raises.
	"""
	routes: Dict[str, Route] = {}
	seen: List[urllib.request.Request] = []

	def _urlopen(req, timeout=None):
		seen.append(req)
		url = req.full_url if isinstance(req, urllib.request.Request) else str(req)
		handler = routes.get(url)
		if handler is None:
			raise urllib.error.URLError("connection refused")
		out = handler(req)
		if isinstance(out, int):
			raise urllib.error.HTTPError(url, out, "error", hdrs=None, fp=None)
		if isinstance(out, dict):
			out = json.dumps(out).encode("utf-8")
		return FakeResponse(out)

	monkeypatch.setattr(urllib.request, "urlopen", _urlopen)
	return SimpleNamespace(routes=routes, seen=seen)


@pytest.fixture
def cfg(tmp_path: Path) -> AppConfig:
	static = tmp_path / "public"
	(static / "models").mkdir(parents=True)
	(static / "models" / "pose_landmarker_heavy.task").write_bytes(b"model-bytes")
	return AppConfig(
		server=ServerConfig(static_dir=str(static), ui_dir=str(Path(__file__).resolve().parents[1] / "UI")),
		model=ModelConfig(blob_url="http://blob.test/pose.task"),
		uploads=UploadsConfig(dir=str(tmp_path / "blobs")),
	)


@pytest.fixture
def landmarkers() -> List[FakeLandmarker]:
	return []


@pytest.fixture
def fake_loader(cfg: AppConfig, landmarkers: List[FakeLandmarker]) -> LandmarkerLoader:
	def _create(runtime, model):
		lm = FakeLandmarker(tag=f"lm{len(landmarkers)}")
		landmarkers.append(lm)
		return lm

	return LandmarkerLoader(
		cfg.model_asset_file(),
		load_runtime=lambda: type("Runtime", (), {"version": "test"})(),
		create=_create,
	)


@pytest.fixture
def client(cfg: AppConfig, fake_loader: LandmarkerLoader):
	app = create_app(cfg, loader=fake_loader, provider=FakeProvider(), source_factory=lambda state: None)
	with TestClient(app) as c:
		yield c
