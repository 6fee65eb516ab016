from posedemo.object_urls import ObjectUrlStore


def test_create_get_revoke(tmp_path):
	store = ObjectUrlStore(tmp_path / "blobs")
	url = store.create(b"abc", media_type="video/mp4", filename="clip.mp4")

	entry = store.get(url)
	assert url.startswith("/blobs/")
	assert entry.path.read_bytes() == b"abc"
	assert entry.path.suffix == ".mp4"
	assert store.get(entry.blob_id) == entry

	assert store.revoke(url) is True
	assert store.revoke(url) is False
	assert not entry.path.exists()
	assert store.path_for(url) is None


def test_revoke_all_tracks_every_url(tmp_path):
	store = ObjectUrlStore(tmp_path / "blobs")
	urls = [store.create(b"x") for _ in range(3)]
	assert sorted(store.live_urls()) == sorted(urls)

	assert store.revoke_all() == 3
	assert store.live_urls() == []


def test_temp_root_removed_on_close():
	store = ObjectUrlStore()
	root = store.root
	store.create(b"x")
	store.close()
	assert not root.exists()


def test_revoke_none_is_noop(tmp_path):
	store = ObjectUrlStore(tmp_path / "blobs")
	assert store.revoke(None) is False
