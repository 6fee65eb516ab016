"""
Pose landmarker lifecycle.

Loading is a one-shot sequence per source selection: acquire the MediaPipe
vision runtime, read the model asset, construct a PoseLandmarker in VIDEO mode.
The loader owns the single live instance; replacing it or tearing down closes
the previous one. A generation counter drops loads that were superseded while
in flight.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from posedemo.errors import ModelFetchError

logger = logging.getLogger(__name__)

# Fixed detector configuration; not user-configurable.
DELEGATE = "GPU"
RUNNING_MODE = "VIDEO"
NUM_POSES = 1


def landmarker_options_summary(model_asset: str) -> Dict[str, Any]:
	return {
		"baseOptions": {"modelAssetPath": model_asset, "delegate": DELEGATE},
		"runningMode": RUNNING_MODE,
		"numPoses": NUM_POSES,
	}


@dataclass(frozen=True)
class VisionRuntime:
	version: str
	base_options_cls: Any
	landmarker_cls: Any
	options_cls: Any
	running_mode: Any


def load_vision_runtime() -> VisionRuntime:
	try:
		import mediapipe as mp  # type: ignore
		from mediapipe.tasks.python.core.base_options import BaseOptions  # type: ignore
		from mediapipe.tasks.python.vision import PoseLandmarker, PoseLandmarkerOptions, RunningMode  # type: ignore
	except Exception as e:
		raise RuntimeError("MediaPipe Tasks runtime is not available. Install with: pip install mediapipe") from e
	return VisionRuntime(
		version=str(getattr(mp, "__version__", "unknown")),
		base_options_cls=BaseOptions,
		landmarker_cls=PoseLandmarker,
		options_cls=PoseLandmarkerOptions,
		running_mode=RunningMode,
	)


def read_model_asset(path: Path) -> bytes:
	try:
		data = Path(path).read_bytes()
	except OSError as e:
		raise ModelFetchError("Failed to fetch the model file") from e
	if not data:
		raise ModelFetchError("Failed to fetch the model file")
	return data


def create_landmarker(runtime: VisionRuntime, model: bytes) -> Any:
	BaseOptions = runtime.base_options_cls
	options = runtime.options_cls(
		base_options=BaseOptions(model_asset_buffer=model, delegate=getattr(BaseOptions.Delegate, DELEGATE)),
		running_mode=getattr(runtime.running_mode, RUNNING_MODE),
		num_poses=NUM_POSES,
	)
	return runtime.landmarker_cls.create_from_options(options)


class LandmarkerLoader:
	def __init__(
		self,
		model_path: Path,
		*,
		load_runtime: Callable[[], Any] = load_vision_runtime,
		fetch_model: Callable[[Path], bytes] = read_model_asset,
		create: Callable[[Any, bytes], Any] = create_landmarker,
	) -> None:
		self._model_path = Path(model_path)
		self._load_runtime = load_runtime
		self._fetch_model = fetch_model
		self._create = create

		# Guards _current against close() racing detect() on the video thread.
		self._lock = threading.Lock()
		self._current: Any = None
		self._generation = 0
		self._loading = False
		self.last_error: Optional[str] = None
		self.runtime_version: Optional[str] = None

	@property
	def current(self) -> Any:
		with self._lock:
			return self._current

	@property
	def generation(self) -> int:
		return self._generation

	@property
	def loading(self) -> bool:
		return self._loading

	def ready(self) -> bool:
		return self.current is not None

	async def load(self) -> Any:
		"""
		Build a new landmarker and make it current.

		Returns the new instance, or None if loading failed or a newer load/release
		superseded this one. Failures are logged and kept in `last_error`.
		"""
		self._generation += 1
		gen = self._generation
		self._loading = True
		loop = asyncio.get_running_loop()
		logger.info("[Loader] loading pose landmarker (generation %d)", gen)
		try:
			runtime = await loop.run_in_executor(None, self._load_runtime)
			model = await loop.run_in_executor(None, self._fetch_model, self._model_path)
			landmarker = await loop.run_in_executor(None, self._create, runtime, model)
		except Exception as e:
			if gen == self._generation:
				self.last_error = str(e) or repr(e)
				self._loading = False
			logger.exception("[Loader] pose landmarker load failed (generation %d)", gen)
			return None

		if gen != self._generation:
			logger.info("[Loader] discarding stale landmarker (generation %d, current %d)", gen, self._generation)
			_close_quietly(landmarker)
			return None

		self.runtime_version = getattr(runtime, "version", None)
		self.last_error = None
		self._loading = False
		self._swap(landmarker)
		logger.info("[Loader] pose landmarker ready (generation %d)", gen)
		return landmarker

	def release(self) -> None:
		"""Close the live instance and invalidate any load still in flight."""
		self._generation += 1
		self._loading = False
		self._swap(None)

	def detect_for_video(self, image: Any, timestamp_ms: int) -> Any:
		with self._lock:
			if self._current is None:
				return None
			return self._current.detect_for_video(image, int(timestamp_ms))

	def _swap(self, landmarker: Any) -> None:
		with self._lock:
			previous = self._current
			if previous is not None and previous is not landmarker:
				_close_quietly(previous)
			self._current = landmarker


def _close_quietly(landmarker: Any) -> None:
	try:
		landmarker.close()
	except Exception:
		logger.warning("[Loader] landmarker close failed", exc_info=True)
