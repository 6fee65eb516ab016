import asyncio
import threading
from types import SimpleNamespace

import pytest

from conftest import FakeLandmarker
from posedemo.errors import ModelFetchError
from posedemo.landmarker import LandmarkerLoader, create_landmarker, landmarker_options_summary, read_model_asset


def _loader(tmp_path, create, fetch_model=None, load_runtime=None):
	model = tmp_path / "pose.task"
	model.write_bytes(b"model")
	kwargs = {"create": create, "load_runtime": load_runtime or (lambda: SimpleNamespace(version="0.10.test"))}
	if fetch_model is not None:
		kwargs["fetch_model"] = fetch_model
	return LandmarkerLoader(model, **kwargs)


def test_load_makes_instance_current(tmp_path):
	seen = {}

	def _create(runtime, model):
		seen["runtime"] = runtime
		seen["model"] = model
		return FakeLandmarker()

	loader = _loader(tmp_path, _create)
	lm = asyncio.run(loader.load())

	assert loader.current is lm
	assert loader.ready()
	assert seen["model"] == b"model"
	assert loader.runtime_version == "0.10.test"
	assert loader.loading is False


def test_replacement_closes_previous(tmp_path):
	loader = _loader(tmp_path, lambda runtime, model: FakeLandmarker())

	async def scenario():
		first = await loader.load()
		second = await loader.load()
		return first, second

	first, second = asyncio.run(scenario())

	assert first.closed is True
	assert second.closed is False
	assert loader.current is second


def test_stale_load_is_discarded(tmp_path):
	gate = threading.Event()
	calls = []
	created = []

	def _runtime():
		calls.append(1)
		if len(calls) == 1:
			gate.wait(timeout=5)
		return SimpleNamespace(version="x")

	def _create(runtime, model):
		lm = FakeLandmarker(tag=f"lm{len(created)}")
		created.append(lm)
		return lm

	loader = _loader(tmp_path, _create, load_runtime=_runtime)

	async def scenario():
		slow = asyncio.create_task(loader.load())
		await asyncio.sleep(0.05)
		fast = await loader.load()
		gate.set()
		stale = await slow
		return fast, stale

	fast, stale = asyncio.run(scenario())

	assert stale is None
	assert loader.current is fast
	assert len(created) == 2
	# The fast load finished first; the slow one was built afterwards and closed.
	assert created[0] is fast
	assert created[1].closed is True
	assert fast.closed is False


def test_release_during_load_discards_result(tmp_path):
	gate = threading.Event()
	created = []

	def _runtime():
		gate.wait(timeout=5)
		return SimpleNamespace(version="x")

	def _create(runtime, model):
		lm = FakeLandmarker()
		created.append(lm)
		return lm

	loader = _loader(tmp_path, _create, load_runtime=_runtime)

	async def scenario():
		task = asyncio.create_task(loader.load())
		await asyncio.sleep(0.05)
		loader.release()
		gate.set()
		return await task

	assert asyncio.run(scenario()) is None
	assert loader.current is None
	assert created[0].closed is True


def test_failed_load_is_recorded_not_raised(tmp_path):
	def _fetch(path):
		raise ModelFetchError("Failed to fetch the model file")

	loader = _loader(tmp_path, lambda runtime, model: FakeLandmarker(), fetch_model=_fetch)

	assert asyncio.run(loader.load()) is None
	assert loader.current is None
	assert loader.last_error == "Failed to fetch the model file"
	assert loader.loading is False


def test_detect_without_landmarker(tmp_path):
	loader = _loader(tmp_path, lambda runtime, model: FakeLandmarker())
	assert loader.detect_for_video(object(), 10) is None


def test_detect_passes_timestamp(tmp_path):
	loader = _loader(tmp_path, lambda runtime, model: FakeLandmarker())
	lm = asyncio.run(loader.load())

	loader.detect_for_video("img", 42.9)

	assert lm.calls == [42]


def test_release_closes_current(tmp_path):
	loader = _loader(tmp_path, lambda runtime, model: FakeLandmarker())
	lm = asyncio.run(loader.load())

	loader.release()

	assert lm.closed is True
	assert loader.current is None


def test_read_model_asset(tmp_path):
	p = tmp_path / "m.task"
	with pytest.raises(ModelFetchError, match="Failed to fetch the model file"):
		read_model_asset(p)
	p.write_bytes(b"")
	with pytest.raises(ModelFetchError):
		read_model_asset(p)
	p.write_bytes(b"abc")
	assert read_model_asset(p) == b"abc"


def test_create_landmarker_uses_fixed_options():
	class BaseOptions:
		class Delegate:
			CPU = "cpu"
			GPU = "gpu"

		def __init__(self, **kwargs):
			self.kwargs = kwargs

	class Options:
		def __init__(self, **kwargs):
			self.kwargs = kwargs

	class Landmarker:
		@staticmethod
		def create_from_options(options):
			return options

	runtime = SimpleNamespace(
		version="x",
		base_options_cls=BaseOptions,
		landmarker_cls=Landmarker,
		options_cls=Options,
		running_mode=SimpleNamespace(IMAGE="image", VIDEO="video", LIVE_STREAM="live"),
	)

	options = create_landmarker(runtime, b"model")

	assert options.kwargs["running_mode"] == "video"
	assert options.kwargs["num_poses"] == 1
	base = options.kwargs["base_options"].kwargs
	assert base == {"model_asset_buffer": b"model", "delegate": "gpu"}


def test_options_summary():
	assert landmarker_options_summary("/models/pose_landmarker_heavy.task") == {
		"baseOptions": {"modelAssetPath": "/models/pose_landmarker_heavy.task", "delegate": "GPU"},
		"runningMode": "VIDEO",
		"numPoses": 1,
	}
