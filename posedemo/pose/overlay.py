"""
Skeleton overlay drawn with Pillow, plus the short feedback line shown under
the video.
"""
from __future__ import annotations

from io import BytesIO
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw

from posedemo.pose.types import LANDMARK_NAMES, PoseFrame

# Index pairs into LANDMARK_NAMES.
POSE_CONNECTIONS: List[Tuple[int, int]] = [
	(0, 1), (1, 2), (2, 3), (3, 7), (0, 4), (4, 5), (5, 6), (6, 8), (9, 10),
	(11, 12), (11, 13), (13, 15), (15, 17), (15, 19), (15, 21), (17, 19),
	(12, 14), (14, 16), (16, 18), (16, 20), (16, 22), (18, 20),
	(11, 23), (12, 24), (23, 24), (23, 25), (24, 26), (25, 27), (26, 28),
	(27, 29), (28, 30), (29, 31), (30, 32), (27, 31), (28, 32),
]

LINE_COLOR = (0, 255, 0)
POINT_COLOR = (255, 0, 0)
MIN_VISIBILITY = 0.5

FEEDBACK_NO_POSE = "No pose detected"
FEEDBACK_LOADING = "Loading pose model..."


def draw_pose(img: Image.Image, frame: Optional[PoseFrame], min_score: float = MIN_VISIBILITY) -> Image.Image:
	"""Draw connections and landmarks in place and return the same image."""
	if frame is None or not frame.has_pose():
		return img
	draw = ImageDraw.Draw(img)
	line_w = max(2, img.width // 240)
	radius = max(2, img.width // 160)
	for a, b in POSE_CONNECTIONS:
		ka = frame.get(LANDMARK_NAMES[a])
		kb = frame.get(LANDMARK_NAMES[b])
		if ka is None or kb is None or ka.score < min_score or kb.score < min_score:
			continue
		draw.line([(ka.x_px, ka.y_px), (kb.x_px, kb.y_px)], fill=LINE_COLOR, width=line_w)
	for kp in frame.visible(min_score):
		draw.ellipse(
			[kp.x_px - radius, kp.y_px - radius, kp.x_px + radius, kp.y_px + radius],
			fill=POINT_COLOR,
		)
	return img


def feedback_for(frame: Optional[PoseFrame], min_score: float = MIN_VISIBILITY) -> str:
	if frame is None:
		return FEEDBACK_LOADING
	if not frame.has_pose():
		return FEEDBACK_NO_POSE
	return f"Pose detected ({len(frame.visible(min_score))} landmarks visible)"


def render_jpeg(rgb, frame: Optional[PoseFrame], quality: int = 80) -> bytes:
	img = Image.fromarray(rgb)
	draw_pose(img, frame)
	buf = BytesIO()
	img.save(buf, format="JPEG", quality=int(quality))
	return buf.getvalue()
