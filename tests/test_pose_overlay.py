from types import SimpleNamespace

import numpy as np
import pytest
from PIL import Image

from posedemo.pose.mediapipe_provider import pose_frame_from_result
from posedemo.pose.overlay import FEEDBACK_LOADING, FEEDBACK_NO_POSE, draw_pose, feedback_for, render_jpeg
from posedemo.pose.types import LANDMARK_NAMES, PoseFrame


def _result(visibility=0.9):
	lms = [SimpleNamespace(x=0.3 + i * 0.01, y=0.2 + i * 0.015, visibility=visibility) for i in range(33)]
	return SimpleNamespace(pose_landmarks=[lms])


def test_result_conversion_uses_first_pose():
	frame = pose_frame_from_result(_result(), width=200, height=100, t_video=1.5)

	assert len(frame.keypoints) == len(LANDMARK_NAMES)
	nose = frame.get("nose")
	assert nose.x == 0.3
	assert nose.x_px == pytest.approx(60.0)
	assert nose.y_px == pytest.approx(20.0)
	assert nose.score == 0.9
	assert frame.t_video == 1.5


def test_empty_result_has_no_pose():
	frame = pose_frame_from_result(SimpleNamespace(pose_landmarks=[]), 10, 10)
	assert not frame.has_pose()
	assert pose_frame_from_result(None, 10, 10).keypoints == {}


def test_feedback_messages():
	assert feedback_for(None) == FEEDBACK_LOADING
	assert feedback_for(PoseFrame(backend="x", width=1, height=1)) == FEEDBACK_NO_POSE
	assert feedback_for(pose_frame_from_result(_result(), 10, 10)) == "Pose detected (33 landmarks visible)"
	assert feedback_for(pose_frame_from_result(_result(visibility=0.1), 10, 10)) == "Pose detected (0 landmarks visible)"


def test_draw_pose_marks_pixels():
	img = Image.new("RGB", (200, 200))
	draw_pose(img, pose_frame_from_result(_result(), 200, 200))
	assert img.getbbox() is not None


def test_low_visibility_not_drawn():
	img = Image.new("RGB", (200, 200))
	draw_pose(img, pose_frame_from_result(_result(visibility=0.2), 200, 200))
	assert img.getbbox() is None


def test_render_jpeg_without_pose():
	jpeg = render_jpeg(np.zeros((20, 30, 3), dtype=np.uint8), None)
	assert jpeg[:2] == b"\xff\xd8"
