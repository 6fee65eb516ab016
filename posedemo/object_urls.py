"""
Process-local object URLs.

An object URL ("/blobs/<id>") names a blob of bytes handed from one part of the
app to another: a downloaded model, an uploaded video. Blobs are spilled to a
private directory so OpenCV can open uploaded videos by path. Every URL stays
tracked until it is revoked; `revoke_all()` runs at teardown.
"""
from __future__ import annotations

import logging
import shutil
import tempfile
import threading
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

URL_PREFIX = "/blobs/"


@dataclass(frozen=True)
class BlobEntry:
	blob_id: str
	path: Path
	media_type: str
	size: int
	filename: str = ""

	@property
	def url(self) -> str:
		return URL_PREFIX + self.blob_id


class ObjectUrlStore:
	def __init__(self, root: Optional[str | Path] = None) -> None:
		self._lock = threading.Lock()
		self._entries: Dict[str, BlobEntry] = {}
		self._owns_root = not root
		if root:
			self._root = Path(root).expanduser().resolve()
			self._root.mkdir(parents=True, exist_ok=True)
		else:
			self._root = Path(tempfile.mkdtemp(prefix="posedemo-blobs-"))

	@property
	def root(self) -> Path:
		return self._root

	def create(self, data: bytes, media_type: str = "application/octet-stream", filename: str = "") -> str:
		blob_id = uuid.uuid4().hex
		suffix = Path(filename).suffix if filename else ""
		path = self._root / f"{blob_id}{suffix}"
		try:
			path.write_bytes(data)
		except OSError:
			path.unlink(missing_ok=True)
			raise
		entry = BlobEntry(blob_id=blob_id, path=path, media_type=media_type, size=len(data), filename=filename)
		with self._lock:
			self._entries[blob_id] = entry
		logger.debug("[Blobs] created %s (%d bytes, %s)", entry.url, entry.size, media_type)
		return entry.url

	def get(self, url_or_id: str) -> Optional[BlobEntry]:
		with self._lock:
			return self._entries.get(_blob_id(url_or_id))

	def path_for(self, url_or_id: str) -> Optional[Path]:
		entry = self.get(url_or_id)
		return entry.path if entry else None

	def revoke(self, url_or_id: Optional[str]) -> bool:
		if not url_or_id:
			return False
		with self._lock:
			entry = self._entries.pop(_blob_id(url_or_id), None)
		if entry is None:
			return False
		entry.path.unlink(missing_ok=True)
		logger.debug("[Blobs] revoked %s", entry.url)
		return True

	def revoke_all(self) -> int:
		with self._lock:
			entries = list(self._entries.values())
			self._entries.clear()
		for entry in entries:
			entry.path.unlink(missing_ok=True)
		if entries:
			logger.info("[Blobs] revoked %d object URL(s)", len(entries))
		return len(entries)

	def live_urls(self) -> list[str]:
		with self._lock:
			return [e.url for e in self._entries.values()]

	def close(self) -> None:
		self.revoke_all()
		if self._owns_root:
			shutil.rmtree(self._root, ignore_errors=True)


def _blob_id(url_or_id: str) -> str:
	s = str(url_or_id or "")
	return s[len(URL_PREFIX):] if s.startswith(URL_PREFIX) else s
