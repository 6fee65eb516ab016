#!/usr/bin/env python3
"""
Download the pose landmarker model into the static models directory.

Uses model.blob_url from config.json (or BLOB_MODEL_PROCESS) unless --url is given.
Skips the download when the file already exists, unless --force.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from posedemo.config import get_config, set_config_path
from posedemo.errors import UpstreamError
from posedemo.http_client import request_bytes

logger = logging.getLogger("fetch_model")


def fetch_model(url: str, destination: Path, timeout: float, force: bool = False) -> bool:
	"""Return True if a file was written, False if it already existed."""
	if destination.exists() and destination.stat().st_size > 0 and not force:
		logger.info("Model found: %s", destination)
		return False
	if not url:
		raise UpstreamError(url, reason="no model URL configured (set model.blob_url or pass --url)")
	logger.info("Downloading %s -> %s", url, destination)
	data = request_bytes(url, timeout=timeout)
	destination.parent.mkdir(parents=True, exist_ok=True)
	tmp = destination.with_suffix(destination.suffix + ".part")
	tmp.write_bytes(data)
	tmp.replace(destination)
	logger.info("Saved %d bytes to %s", len(data), destination)
	return True


def main(argv: Optional[list[str]] = None) -> int:
	parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
	parser.add_argument("--config", help="Path to config.json")
	parser.add_argument("--url", help="Download URL (default: model.blob_url)")
	parser.add_argument("--force", action="store_true", help="Download even if the file exists")
	parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
	args = parser.parse_args(argv)

	logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
	if args.config:
		set_config_path(args.config)
	cfg = get_config()
	try:
		fetch_model(args.url or cfg.model.blob_url, cfg.model_asset_file(), cfg.model.download_timeout_seconds, force=args.force)
	except UpstreamError as e:
		logger.error("Download failed: %s", e)
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())
