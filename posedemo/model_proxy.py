from __future__ import annotations

import logging

from posedemo.config import AppConfig
from posedemo.errors import ModelDownloadError, UpstreamError
from posedemo.http_client import request_bytes_async
from posedemo.object_urls import ObjectUrlStore

logger = logging.getLogger(__name__)

DOWNLOAD_ERROR_MESSAGE = "Error al descargar el archivo"


async def download_model(cfg: AppConfig, store: ObjectUrlStore) -> str:
	"""
	Fetch the configured blob URL and return an object URL for its body.

	Any failure (no URL, transport error, non-2xx, storing the body) is reported as a
	single ModelDownloadError; callers answer it with HTTP 400.
	"""
	url = cfg.model.blob_url
	try:
		body = await request_bytes_async(url, method="GET", timeout=cfg.model.download_timeout_seconds)
		model_url = store.create(body, media_type="application/octet-stream", filename="model.task")
	except UpstreamError as e:
		logger.warning("[Model] download failed: %s", e)
		raise ModelDownloadError(DOWNLOAD_ERROR_MESSAGE) from e
	except OSError as e:
		logger.warning("[Model] could not store downloaded model: %r", e)
		raise ModelDownloadError(DOWNLOAD_ERROR_MESSAGE) from e
	logger.info("[Model] downloaded %d bytes -> %s", len(body), model_url)
	return model_url
