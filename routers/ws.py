"""WebSocket endpoint and FeedbackChannel. Route: /ws. Pushes feedback lines to the page."""
import asyncio
import json
import logging
from typing import Callable, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ws"])


def feedback_message(msg: str) -> str:
	return json.dumps({"type": "feedback", "msg": msg}, separators=(",", ":"))


class FeedbackChannel:
	"""Set of connected pages; each gets every feedback line the pipeline emits."""

	def __init__(self) -> None:
		self._clients: Set[WebSocket] = set()
		self._lock = asyncio.Lock()

	async def join(self, websocket: WebSocket, current: Callable[[], str]) -> None:
		"""Register the client, then send it the current line.

		Both happen under the lock so a concurrent publish() reaches the client
		after its initial line, never before or instead of it.
		"""
		await websocket.accept()
		async with self._lock:
			self._clients.add(websocket)
			try:
				await websocket.send_text(feedback_message(current()))
			except Exception:
				self._clients.discard(websocket)
				raise

	async def leave(self, websocket: WebSocket) -> None:
		async with self._lock:
			self._clients.discard(websocket)

	def client_count(self) -> int:
		return len(self._clients)

	async def publish(self, msg: str) -> None:
		async with self._lock:
			clients = list(self._clients)
		if not clients:
			return
		payload = feedback_message(msg)
		results = await asyncio.gather(*(ws.send_text(payload) for ws in clients), return_exceptions=True)
		for ws, res in zip(clients, results):
			if isinstance(res, Exception):
				logger.debug("[WS] dropping client after send failure: %r", res)
				await self.leave(ws)


@router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket):
	state = websocket.app.state.state
	channel: FeedbackChannel = state.feedback_channel
	try:
		await channel.join(websocket, lambda: state.session.feedback)
		while True:
			await websocket.receive_text()
	except WebSocketDisconnect:
		pass
	finally:
		await channel.leave(websocket)
