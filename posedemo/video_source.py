from __future__ import annotations

import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import cv2
import numpy as np


class VideoSource(ABC):
	"""A frame source the pipeline pulls from. Frames are RGB uint8 arrays."""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def open(self) -> None: ...

	@abstractmethod
	def read(self) -> Tuple[Optional[np.ndarray], Optional[float]]:
		"""
		Return (rgb_frame, t_ms). (None, None) means the source is exhausted.
		`t_ms` is source-relative; callers still enforce monotonic order.
		"""
		...

	@abstractmethod
	def close(self) -> None: ...

	def describe(self) -> Dict[str, Any]:
		return {"name": self.name()}

	def __enter__(self) -> "VideoSource":
		self.open()
		return self

	def __exit__(self, exc_type, exc_val, exc_tb) -> None:
		self.close()


class _CaptureSource(VideoSource):
	def __init__(self) -> None:
		self._cap: Optional[cv2.VideoCapture] = None

	@abstractmethod
	def _open_capture(self) -> cv2.VideoCapture: ...

	def open(self) -> None:
		if self._cap is not None:
			self._cap.release()
		cap = self._open_capture()
		if not cap.isOpened():
			cap.release()
			raise ValueError(f"Could not open video source: {self.name()}")
		self._cap = cap

	def close(self) -> None:
		if self._cap is not None:
			self._cap.release()
			self._cap = None

	def _read_bgr(self) -> Optional[np.ndarray]:
		if self._cap is None:
			raise RuntimeError("Video source not opened. Call open() or use context manager.")
		ok, frame = self._cap.read()
		if not ok or frame is None:
			return None
		return frame


class WebcamSource(_CaptureSource):
	def __init__(self, index: int = 0) -> None:
		super().__init__()
		self._index = int(index)
		self._t0: Optional[float] = None

	def name(self) -> str:
		return f"webcam:{self._index}"

	def _open_capture(self) -> cv2.VideoCapture:
		self._t0 = time.monotonic()
		return cv2.VideoCapture(self._index)

	def read(self) -> Tuple[Optional[np.ndarray], Optional[float]]:
		bgr = self._read_bgr()
		if bgr is None:
			return None, None
		t_ms = (time.monotonic() - float(self._t0 or 0.0)) * 1000.0
		return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB), t_ms


class FileSource(_CaptureSource):
	def __init__(self, path: str | Path, url: str = "") -> None:
		super().__init__()
		self.path = Path(path)
		self.url = url
		self._frame_idx = 0
		self._fps = 0.0

	def name(self) -> str:
		return f"file:{self.url or self.path.name}"

	def _open_capture(self) -> cv2.VideoCapture:
		if not self.path.exists():
			raise FileNotFoundError(f"Video file not found: {self.path}")
		cap = cv2.VideoCapture(str(self.path))
		self._frame_idx = 0
		fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
		self._fps = fps if fps > 0.0 else 30.0
		return cap

	@property
	def fps(self) -> float:
		return self._fps

	def read(self) -> Tuple[Optional[np.ndarray], Optional[float]]:
		bgr = self._read_bgr()
		if bgr is None:
			return None, None
		pos = float(self._cap.get(cv2.CAP_PROP_POS_MSEC) or 0.0) if self._cap is not None else 0.0
		t_ms = pos if pos > 0.0 else self._frame_idx * 1000.0 / self._fps
		self._frame_idx += 1
		return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB), t_ms

	def describe(self) -> Dict[str, Any]:
		return {"name": self.name(), "fps": self._fps, "frames_read": self._frame_idx}
