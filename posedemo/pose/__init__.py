"""
Pose types, the MediaPipe provider and the overlay renderer.

PoseFrame is model-agnostic so the overlay and feedback code never touch
MediaPipe result objects directly.
"""
