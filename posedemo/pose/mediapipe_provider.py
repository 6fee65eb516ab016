from __future__ import annotations

from typing import Any, Optional

from posedemo.landmarker import LandmarkerLoader
from posedemo.pose.base import PoseProvider
from posedemo.pose.types import LANDMARK_NAMES, Keypoint, PoseFrame


def pose_frame_from_result(result: Any, width: int, height: int, t_video: Optional[float] = None, backend: str = "mediapipe_tasks") -> PoseFrame:
	"""
	Convert a PoseLandmarkerResult into a PoseFrame.

	Only the first pose is used (the detector runs with num_poses=1).
	"""
	out = PoseFrame(backend=backend, width=int(width), height=int(height), t_video=t_video)
	poses = getattr(result, "pose_landmarks", None) if result is not None else None
	if not poses:
		return out
	for idx, lm in enumerate(poses[0]):
		if idx >= len(LANDMARK_NAMES):
			break
		name = LANDMARK_NAMES[idx]
		x = float(lm.x)
		y = float(lm.y)
		out.keypoints[name] = Keypoint(
			name=name,
			x=x,
			y=y,
			x_px=x * float(width),
			y_px=y * float(height),
			score=float(getattr(lm, "visibility", 0.0) or 0.0),
		)
	return out


class MediaPipePoseProvider(PoseProvider):
	"""
	Runs frames through whatever landmarker the loader currently holds.

	Notes:
	- MediaPipe VIDEO mode needs strictly increasing timestamps per instance;
	  the pipeline guarantees that.
	- Returns None while the loader has no live landmarker.
	"""

	def __init__(self, loader: LandmarkerLoader) -> None:
		try:
			import mediapipe as mp  # type: ignore
		except Exception as e:
			raise RuntimeError("MediaPipe is not installed. Install with: pip install mediapipe") from e
		self._mp = mp
		self._loader = loader

	def name(self) -> str:
		return "mediapipe_tasks"

	def ready(self) -> bool:
		return self._loader.ready()

	def infer_rgb(self, rgb, timestamp_ms: int) -> Optional[PoseFrame]:
		h, w = int(rgb.shape[0]), int(rgb.shape[1])
		image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb)
		result = self._loader.detect_for_video(image, int(timestamp_ms))
		if result is None and not self._loader.ready():
			return None
		return pose_frame_from_result(result, w, h, t_video=float(timestamp_ms) / 1000.0, backend=self.name())
