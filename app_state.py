"""
Explicit app state: single source of truth for the runtime lifecycle.
Created by the app factory, attached to app.state.state; injected into routes via Depends(get_state).
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Set

from posedemo.config import AppConfig
from posedemo.landmarker import LandmarkerLoader
from posedemo.object_urls import ObjectUrlStore
from posedemo.pose.base import PoseProvider
from posedemo.session import SessionState
from posedemo.tokens import TokenIssuer
from posedemo.video_pipeline import VideoPipeline
from posedemo.video_source import FileSource, VideoSource, WebcamSource

logger = logging.getLogger(__name__)

SourceFactory = Callable[["AppState"], Optional[VideoSource]]


def default_source_factory(state: "AppState") -> Optional[VideoSource]:
	session = state.session
	if session.use_webcam:
		return WebcamSource(index=state.cfg.video.webcam_index)
	if session.video_src:
		path = state.objects.path_for(session.video_src)
		if path is None:
			return None
		return FileSource(path, url=session.video_src)
	return None


class AppState:
	"""
	Holds all runtime state for the app. Workers (video thread, load task)
	receive this instance or its members as arguments.
	"""
	# WebSocket and UI (set at app load)
	feedback_channel: Any = None
	get_page_html: Optional[Callable[[str], str]] = None
	UI_DIR: Optional[Path] = None

	# Event loop owning the WebSocket clients (set in lifespan)
	loop: Optional[asyncio.AbstractEventLoop] = None

	# In-flight landmarker load, if any
	load_task: Optional[asyncio.Task] = None

	def __init__(
		self,
		cfg: AppConfig,
		*,
		loader: Optional[LandmarkerLoader] = None,
		provider: Optional[PoseProvider] = None,
		source_factory: Optional[SourceFactory] = None,
	) -> None:
		self.cfg = cfg
		self.objects = ObjectUrlStore(cfg.uploads.dir or None)
		self.session = SessionState(self.objects)
		self.tokens = TokenIssuer(ttl_seconds=cfg.tokens.ttl_seconds)
		self.loader = loader or LandmarkerLoader(cfg.model_asset_file())
		self.provider = provider
		self.source_factory: SourceFactory = source_factory or default_source_factory
		self._publish_tasks: Set[asyncio.Task] = set()
		self.video = VideoPipeline(
			self.session,
			provider,
			jpeg_quality=cfg.video.jpeg_quality,
			on_feedback=self.publish_feedback,
		)

	def start_landmarker_load(self) -> asyncio.Task:
		"""Kick off a load; a newer load or release() makes older ones stale."""
		task = asyncio.get_running_loop().create_task(self.loader.load())
		self.load_task = task
		return task

	def restart_video(self) -> bool:
		source = self.source_factory(self)
		if source is None:
			self.video.stop()
			return False
		self.video.start(source)
		return True

	def publish_feedback(self, message: str) -> None:
		"""Broadcast a feedback line to WebSocket clients. Safe to call from any thread."""
		loop = self.loop
		channel = self.feedback_channel
		if loop is None or channel is None or loop.is_closed():
			return
		try:
			loop.call_soon_threadsafe(self._spawn_publish, channel, message)
		except RuntimeError:
			# Loop already shut down.
			pass

	def _spawn_publish(self, channel: Any, message: str) -> None:
		# Runs on the loop; holds the task until it finishes.
		task = asyncio.get_running_loop().create_task(channel.publish(message))
		self._publish_tasks.add(task)
		task.add_done_callback(self._publish_tasks.discard)

	def teardown(self) -> None:
		"""Leave the session: stop video, release the landmarker, revoke object URLs."""
		self.video.stop()
		self.loader.release()
		self.session.reset()
		revoked = self.objects.revoke_all()
		logger.info("[Session] teardown complete (%d object URL(s) revoked)", revoked)

	def close(self) -> None:
		self.teardown()
		self.objects.close()
