"""
Bearer tokens.

`TokenIssuer` backs the /api/py/token and /api/py/refresh-token routes.
`TokenClient` is the caller side: `get_token()` and `refresh_token()`. Neither
retries; callers compose their own policy.
"""
from __future__ import annotations

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from posedemo.config import TokensConfig
from posedemo.errors import TokenError, UpstreamError
from posedemo.http_client import request_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
	access_token: str
	expires_at: float
	token_type: str = "bearer"

	def expires_in(self, now: float) -> int:
		return max(0, int(self.expires_at - now))


class TokenIssuer:
	"""In-memory token registry. Tokens die on expiry or process exit."""

	def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time) -> None:
		self._ttl = float(ttl_seconds)
		self._clock = clock
		self._lock = threading.Lock()
		self._tokens: Dict[str, IssuedToken] = {}

	def now(self) -> float:
		return float(self._clock())

	def issue(self) -> IssuedToken:
		now = self._clock()
		tok = IssuedToken(access_token=secrets.token_urlsafe(32), expires_at=now + self._ttl)
		with self._lock:
			self._purge(now)
			self._tokens[tok.access_token] = tok
		return tok

	def validate(self, access_token: Optional[str]) -> bool:
		if not access_token:
			return False
		now = self._clock()
		with self._lock:
			tok = self._tokens.get(access_token)
			if tok is None:
				return False
			if tok.expires_at <= now:
				self._tokens.pop(access_token, None)
				return False
			return True

	def refresh(self, access_token: Optional[str]) -> Optional[IssuedToken]:
		"""Swap a live token for a new one. Returns None if the token is unknown or expired."""
		if not self.validate(access_token):
			return None
		with self._lock:
			self._tokens.pop(str(access_token), None)
		return self.issue()

	def _purge(self, now: float) -> None:
		for k in [k for k, t in self._tokens.items() if t.expires_at <= now]:
			self._tokens.pop(k, None)


def bearer_from_header(authorization: Optional[str]) -> Optional[str]:
	if not authorization:
		return None
	scheme, _, value = authorization.strip().partition(" ")
	if scheme.lower() != "bearer" or not value.strip():
		return None
	return value.strip()


class TokenClient:
	def __init__(self, cfg: TokensConfig) -> None:
		self._cfg = cfg

	def get_token(self) -> str:
		try:
			data = request_json(self._cfg.token_url, method="POST", timeout=self._cfg.timeout_seconds)
		except UpstreamError as e:
			logger.warning("[Tokens] token request failed: %s", e)
			raise TokenError("Failed to fetch the token") from e
		return _access_token(data, "Failed to fetch the token")

	def refresh_token(self) -> str:
		token = self.get_token()
		try:
			data = request_json(
				self._cfg.refresh_url,
				method="POST",
				headers={"Authorization": f"Bearer {token}"},
				timeout=self._cfg.timeout_seconds,
			)
		except UpstreamError as e:
			logger.warning("[Tokens] refresh request failed: %s", e)
			raise TokenError("Failed to refresh token") from e
		return _access_token(data, "Failed to refresh token")


def _access_token(data: object, message: str) -> str:
	tok = data.get("access_token") if isinstance(data, dict) else None
	if not isinstance(tok, str) or not tok:
		raise TokenError(message)
	return tok
