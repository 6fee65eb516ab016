from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, AsyncIterator, Callable, Dict, Optional

from posedemo.pose.base import PoseProvider
from posedemo.pose.overlay import FEEDBACK_LOADING, feedback_for, render_jpeg
from posedemo.pose.types import PoseFrame
from posedemo.session import SessionState
from posedemo.video_source import FileSource, VideoSource

logger = logging.getLogger(__name__)

FEEDBACK_ENDED = "Video ended"
MJPEG_BOUNDARY = b"frame"
_DEFAULT_MJPEG_FPS = 15.0


class VideoPipeline:
	"""
	Reads frames from one source on a background thread, runs pose detection,
	draws the overlay and keeps the latest JPEG for MJPEG/snapshot clients.

	Detector timestamps keep increasing across source switches because the
	same landmarker instance may outlive a source.
	"""

	def __init__(
		self,
		session: SessionState,
		provider: Optional[PoseProvider],
		jpeg_quality: int = 80,
		on_feedback: Optional[Callable[[str], None]] = None,
	) -> None:
		self._session = session
		self._provider = provider
		self._jpeg_quality = int(jpeg_quality)
		self._on_feedback = on_feedback

		self._lock = threading.Lock()
		self._thread: Optional[threading.Thread] = None
		self._stop_event: Optional[threading.Event] = None
		self._source: Optional[VideoSource] = None
		self._running = False
		self._last_error: Optional[str] = None

		self._latest_jpeg: Optional[bytes] = None
		self._latest_t_host: Optional[float] = None
		self._latest_pose: Optional[PoseFrame] = None
		self._frames = 0
		self._last_ts_ms = -1

	def start(self, source: VideoSource) -> None:
		self.stop()
		stop_event = threading.Event()
		with self._lock:
			self._source = source
			self._stop_event = stop_event
			self._running = True
			self._last_error = None
			self._latest_jpeg = None
			self._latest_t_host = None
			self._latest_pose = None
			self._frames = 0
		t = threading.Thread(target=self._run_loop, args=(source, stop_event), name="pose-video", daemon=True)
		self._thread = t
		t.start()
		logger.info("[Video] started %s", source.name())

	def stop(self) -> None:
		with self._lock:
			ev = self._stop_event
			self._stop_event = None
			self._running = False
		if ev is not None:
			ev.set()
		t = self._thread
		if t and t.is_alive() and t is not threading.current_thread():
			t.join(timeout=2.0)
		self._thread = None

	def get_status(self) -> Dict[str, Any]:
		with self._lock:
			return {
				"running": self._running,
				"source": self._source.describe() if self._source else None,
				"frames": self._frames,
				"has_frame": self._latest_jpeg is not None,
				"last_frame_t": self._latest_t_host,
				"detector_ready": bool(self._provider and self._provider.ready()),
				"error": self._last_error,
			}

	def get_latest_jpeg(self) -> tuple[Optional[bytes], Optional[float]]:
		with self._lock:
			return self._latest_jpeg, self._latest_t_host

	def get_latest_pose(self) -> Optional[PoseFrame]:
		with self._lock:
			return self._latest_pose

	async def mjpeg_stream(self, fps: float) -> AsyncIterator[bytes]:
		"""
		Multipart JPEG stream of overlaid frames, at most `fps` per second.

		Each new frame is sent once. The stream ends after the last frame of a
		finished run has gone out, so a played-through file leaves its final
		frame on the page.
		"""
		max_fps = fps if fps and fps > 0 else _DEFAULT_MJPEG_FPS
		min_interval = 1.0 / max_fps
		sent_t: Optional[float] = None
		last_sent_mono = 0.0
		while True:
			with self._lock:
				jpeg, t, running = self._latest_jpeg, self._latest_t_host, self._running
			fresh = jpeg is not None and t != sent_t
			if not fresh:
				if not running:
					return
				await asyncio.sleep(0.02)
				continue
			wait = min_interval - (time.monotonic() - last_sent_mono)
			if wait > 0:
				await asyncio.sleep(wait)
				continue
			sent_t = t
			last_sent_mono = time.monotonic()
			yield mjpeg_part(jpeg)

	async def snapshot_jpeg(self) -> Optional[bytes]:
		jpeg, _t = self.get_latest_jpeg()
		return jpeg

	def process_frame(self, rgb, t_ms: float) -> bytes:
		"""Detect + draw one RGB frame and publish it as the latest JPEG."""
		h, w = int(rgb.shape[0]), int(rgb.shape[1])
		self._session.set_video_dimensions(w, h)

		pose: Optional[PoseFrame] = None
		if self._provider is not None and self._provider.ready():
			ts = self._next_timestamp(t_ms)
			pose = self._provider.infer_rgb(rgb, ts)
		jpeg = render_jpeg(rgb, pose, quality=self._jpeg_quality)
		with self._lock:
			self._latest_jpeg = jpeg
			self._latest_t_host = time.time()
			self._latest_pose = pose
			self._frames += 1
		self._feedback(feedback_for(pose))
		return jpeg

	def _next_timestamp(self, t_ms: float) -> int:
		ts = max(int(t_ms), self._last_ts_ms + 1)
		self._last_ts_ms = ts
		return ts

	def _feedback(self, message: str) -> None:
		if self._session.set_feedback(message) and self._on_feedback is not None:
			try:
				self._on_feedback(message)
			except Exception:
				logger.debug("[Video] feedback callback failed", exc_info=True)

	def _run_loop(self, source: VideoSource, stop_event: threading.Event) -> None:
		try:
			source.open()
		except Exception as e:
			logger.warning("[Video] could not open %s: %s", source.name(), e)
			with self._lock:
				self._last_error = str(e)
				self._running = False
			self._feedback(f"Could not open video source: {e}")
			return

		# Offset so this run's timestamps start after the previous run's.
		offset = self._last_ts_ms + 1
		interval = 1.0 / source.fps if isinstance(source, FileSource) and source.fps > 0 else 0.0
		self._feedback(FEEDBACK_LOADING)
		try:
			while not stop_event.is_set():
				t_start = time.monotonic()
				rgb, t_ms = source.read()
				if rgb is None:
					self._feedback(FEEDBACK_ENDED)
					break
				try:
					self.process_frame(rgb, offset + float(t_ms or 0.0))
				except Exception as e:
					logger.exception("[Video] frame processing failed")
					with self._lock:
						self._last_error = repr(e)
				if interval > 0.0:
					remaining = interval - (time.monotonic() - t_start)
					if remaining > 0.0:
						stop_event.wait(remaining)
		finally:
			source.close()
			with self._lock:
				if self._stop_event is stop_event:
					self._running = False
			logger.info("[Video] stopped %s", source.name())


def mjpeg_part(jpeg: bytes, boundary: bytes = MJPEG_BOUNDARY) -> bytes:
	"""One multipart/x-mixed-replace part carrying a JPEG frame."""
	return (
		b"--" + boundary + b"\r\n"
		+ b"Content-Type: image/jpeg\r\n"
		+ b"Content-Length: " + str(len(jpeg)).encode("ascii") + b"\r\n\r\n"
		+ jpeg + b"\r\n"
	)
