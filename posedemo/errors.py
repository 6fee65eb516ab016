"""Exceptions raised by the pose demo modules. Routers map them to HTTP responses."""
from __future__ import annotations

from typing import Optional


class PoseDemoError(Exception):
	pass


class UpstreamError(PoseDemoError):
	"""An upstream HTTP call failed (transport error or non-2xx status)."""

	def __init__(self, url: str, status: Optional[int] = None, reason: str = "") -> None:
		self.url = url
		self.status = status
		self.reason = reason
		msg = f"{url} -> HTTP {status}" if status is not None else f"{url} -> {reason or 'request failed'}"
		super().__init__(msg)


class ModelDownloadError(PoseDemoError):
	pass


class ModelFetchError(PoseDemoError):
	pass


class TokenError(PoseDemoError):
	pass
