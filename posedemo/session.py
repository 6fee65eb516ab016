"""
Source selection state for the single demo session.

The only gate is `source_selected`: the page shows the selector until it flips,
then the video + overlay. Callers trigger the landmarker load only when a call
reports the false -> true transition.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional, Tuple

from posedemo.object_urls import ObjectUrlStore

logger = logging.getLogger(__name__)

SOURCE_WEBCAM = "webcam"
SOURCE_FILE = "file"
SOURCE_KINDS = (SOURCE_WEBCAM, SOURCE_FILE)

DEFAULT_VIDEO_DIMENSIONS: Tuple[int, int] = (480, 360)


class SessionState:
	def __init__(self, store: ObjectUrlStore) -> None:
		self._store = store
		self._lock = threading.Lock()
		self.use_webcam: bool = False
		self.video_src: Optional[str] = None
		self.source_selected: bool = False
		self.video_dimensions: Tuple[int, int] = DEFAULT_VIDEO_DIMENSIONS
		self.feedback: str = ""

	def select_source(self, kind: str) -> bool:
		"""Pick webcam or file. Returns True if this made the source-selected transition."""
		kind = str(kind or "").strip().lower()
		if kind not in SOURCE_KINDS:
			raise ValueError(f"Unknown source {kind!r}; expected one of {', '.join(SOURCE_KINDS)}")
		with self._lock:
			self._clear_video_src()
			self.use_webcam = kind == SOURCE_WEBCAM
			return self._mark_selected()

	def upload_video(self, file_url: str) -> bool:
		"""Use an uploaded video (object URL). Returns True on the source-selected transition."""
		if not file_url:
			raise ValueError("file_url is required")
		with self._lock:
			if self.video_src and self.video_src != file_url:
				self._store.revoke(self.video_src)
			self.video_src = file_url
			self.use_webcam = False
			return self._mark_selected()

	def set_video_dimensions(self, width: int, height: int) -> None:
		if int(width) <= 0 or int(height) <= 0:
			return
		with self._lock:
			self.video_dimensions = (int(width), int(height))

	def set_feedback(self, message: str) -> bool:
		"""Store a feedback line. Returns True if it changed."""
		with self._lock:
			if message == self.feedback:
				return False
			self.feedback = str(message)
			return True

	def reset(self) -> None:
		"""Teardown: back to the selector, revoking the uploaded video URL."""
		with self._lock:
			self._clear_video_src()
			self.use_webcam = False
			self.source_selected = False
			self.video_dimensions = DEFAULT_VIDEO_DIMENSIONS
			self.feedback = ""
		logger.info("[Session] reset")

	def snapshot(self) -> Dict[str, Any]:
		with self._lock:
			return {
				"use_webcam": self.use_webcam,
				"video_src": self.video_src,
				"source_selected": self.source_selected,
				"video_dimensions": {"width": self.video_dimensions[0], "height": self.video_dimensions[1]},
				"feedback": self.feedback,
			}

	def _clear_video_src(self) -> None:
		if self.video_src:
			self._store.revoke(self.video_src)
		self.video_src = None

	def _mark_selected(self) -> bool:
		became = not self.source_selected
		self.source_selected = True
		if became:
			logger.info("[Session] source selected (webcam=%s, video_src=%s)", self.use_webcam, self.video_src)
		return became
