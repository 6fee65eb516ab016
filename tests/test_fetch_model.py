import importlib.util
from pathlib import Path

import pytest

from posedemo.errors import UpstreamError

_SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "fetch_model.py"


@pytest.fixture(scope="module")
def fetch_model_mod():
	spec = importlib.util.spec_from_file_location("fetch_model_script", _SCRIPT)
	mod = importlib.util.module_from_spec(spec)
	spec.loader.exec_module(mod)
	return mod


def test_downloads_when_missing(fetch_model_mod, fake_upstream, tmp_path):
	fake_upstream.routes["http://blob.test/pose.task"] = lambda req: b"weights"
	dest = tmp_path / "models" / "pose_landmarker_heavy.task"

	assert fetch_model_mod.fetch_model("http://blob.test/pose.task", dest, timeout=5) is True
	assert dest.read_bytes() == b"weights"


def test_skips_existing_file(fetch_model_mod, fake_upstream, tmp_path):
	dest = tmp_path / "pose.task"
	dest.write_bytes(b"old")

	assert fetch_model_mod.fetch_model("http://blob.test/pose.task", dest, timeout=5) is False
	assert fake_upstream.seen == []


def test_missing_url_raises(fetch_model_mod, tmp_path):
	with pytest.raises(UpstreamError):
		fetch_model_mod.fetch_model("", tmp_path / "pose.task", timeout=5)


def test_main_reports_failure(fetch_model_mod, fake_upstream, tmp_path, monkeypatch):
	monkeypatch.setattr("posedemo.config._CONFIG_PATH", None)
	monkeypatch.setattr("posedemo.config._CONFIG_CACHE", None)
	cfg_path = tmp_path / "config.json"
	cfg_path.write_text('{"server": {"static_dir": "%s"}}' % (tmp_path / "pub").as_posix(), encoding="utf-8")
	fake_upstream.routes["http://blob.test/x"] = lambda req: 404

	assert fetch_model_mod.main(["--config", str(cfg_path), "--url", "http://blob.test/x"]) == 1
	assert not (tmp_path / "pub" / "models" / "pose_landmarker_heavy.task").exists()
