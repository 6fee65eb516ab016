from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# MediaPipe pose landmark order (33 points).
LANDMARK_NAMES: List[str] = [
	"nose",
	"left_eye_inner",
	"left_eye",
	"left_eye_outer",
	"right_eye_inner",
	"right_eye",
	"right_eye_outer",
	"left_ear",
	"right_ear",
	"mouth_left",
	"mouth_right",
	"left_shoulder",
	"right_shoulder",
	"left_elbow",
	"right_elbow",
	"left_wrist",
	"right_wrist",
	"left_pinky",
	"right_pinky",
	"left_index",
	"right_index",
	"left_thumb",
	"right_thumb",
	"left_hip",
	"right_hip",
	"left_knee",
	"right_knee",
	"left_ankle",
	"right_ankle",
	"left_heel",
	"right_heel",
	"left_foot_index",
	"right_foot_index",
]


@dataclass(frozen=True)
class Keypoint:
	"""
	A single 2D landmark. `x`/`y` are normalized [0..1]; `x_px`/`y_px` are in the
	frame's pixel space.
	"""

	name: str
	x: float
	y: float
	x_px: float
	y_px: float
	score: float  # visibility [0..1] best-effort


@dataclass(frozen=True)
class PoseFrame:
	"""
	Pose output for a single video frame.

	`t_video` is the detector timestamp in seconds (source-relative).
	"""

	backend: str
	width: int
	height: int
	t_video: Optional[float] = None
	keypoints: Dict[str, Keypoint] = field(default_factory=dict)

	def get(self, name: str) -> Optional[Keypoint]:
		if not self.keypoints:
			return None
		return self.keypoints.get(name)

	def has_pose(self) -> bool:
		return bool(self.keypoints)

	def visible(self, min_score: float = 0.5) -> List[Keypoint]:
		return [k for k in self.keypoints.values() if float(k.score) >= float(min_score)]

	def to_dict(self) -> Dict[str, Any]:
		return {
			"backend": self.backend,
			"width": self.width,
			"height": self.height,
			"t_video": self.t_video,
			"keypoints": {
				n: {"x": k.x, "y": k.y, "x_px": k.x_px, "y_px": k.y_px, "score": k.score}
				for n, k in self.keypoints.items()
			},
		}
