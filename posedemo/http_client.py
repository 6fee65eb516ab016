"""
Blocking urllib helpers for upstream calls, plus an async wrapper that runs them in
the default executor so route handlers never block the event loop.
"""
from __future__ import annotations

import asyncio
import http.client
import json
import urllib.error
import urllib.request
from typing import Any, Dict, Optional

from posedemo.errors import UpstreamError


def request_bytes(
	url: str,
	method: str = "GET",
	headers: Optional[Dict[str, str]] = None,
	data: Optional[bytes] = None,
	timeout: float = 10.0,
) -> bytes:
	"""
	Perform one HTTP request and return the response body.

	Raises UpstreamError on any transport failure or non-2xx status.
	"""
	if not url:
		raise UpstreamError(url, reason="empty URL")
	if method.upper() == "POST" and data is None:
		data = b""
	req = urllib.request.Request(url, method=method.upper(), headers=dict(headers or {}), data=data)
	try:
		with urllib.request.urlopen(req, timeout=float(timeout)) as resp:
			status = int(getattr(resp, "status", 200) or 200)
			body = resp.read()
	except urllib.error.HTTPError as e:
		raise UpstreamError(url, status=int(e.code)) from e
	except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
		raise UpstreamError(url, reason=repr(e)) from e
	if not 200 <= status < 300:
		raise UpstreamError(url, status=status)
	return body


def request_json(
	url: str,
	method: str = "GET",
	headers: Optional[Dict[str, str]] = None,
	timeout: float = 10.0,
) -> Any:
	body = request_bytes(url, method=method, headers=headers, timeout=timeout)
	try:
		return json.loads(body.decode("utf-8"))
	except (UnicodeDecodeError, json.JSONDecodeError) as e:
		raise UpstreamError(url, reason=f"invalid JSON body: {e}") from e


async def request_bytes_async(url: str, **kwargs: Any) -> bytes:
	loop = asyncio.get_running_loop()
	return await loop.run_in_executor(None, lambda: request_bytes(url, **kwargs))

