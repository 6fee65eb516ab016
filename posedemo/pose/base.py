from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from posedemo.pose.types import PoseFrame


class PoseProvider(ABC):
	"""
	Model adapter interface used by the video pipeline.

	Implementations take an RGB image (H,W,3 uint8) plus a strictly increasing
	timestamp and return a PoseFrame, or None while no detector is available.
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def ready(self) -> bool: ...

	@abstractmethod
	def infer_rgb(self, rgb, timestamp_ms: int) -> Optional[PoseFrame]: ...
