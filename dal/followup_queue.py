"""Async gateway over the shared follow-up list in Redis.

The chat-bot process pushes one JSON object per unanswered question onto a
Redis list. This module reads that list and lets the admin dismiss entries
by position. It never writes new entries.

Usage:
	gateway = FollowupQueueGateway(redis.asyncio.from_url(url, decode_responses=True))
	await gateway.connect()
	entries = await gateway.list_entries()
	await gateway.remove_at(entries[0].index)
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, List

from redis.asyncio import Redis
from redis.exceptions import RedisError, ResponseError

from models.followup_models import FollowupEntry
from utils.errors import NotFound, UpstreamUnavailable

LOGGER = logging.getLogger(__name__)

CONNECTED = "connected"
UNAVAILABLE = "unavailable"


class FollowupQueueGateway:
	"""Count, list and dismiss follow-up entries.

	`state` is `connected` after the last round-trip succeeded and
	`unavailable` after it failed, so callers can branch without catching.
	"""

	def __init__(self, client: Redis, key: str = "followups") -> None:
		self._client = client
		self.key = key
		self.state = UNAVAILABLE
		# Sentinels are unique per process and per removal.
		self._sentinel_prefix = f"__followup_dismissed__:{uuid.uuid4().hex}"

	@property
	def available(self) -> bool:
		return self.state == CONNECTED

	async def connect(self) -> bool:
		"""Ping the store once; log and stay `unavailable` on failure."""
		try:
			await self._client.ping()
		except RedisError as exc:
			self.state = UNAVAILABLE
			LOGGER.warning("Follow-up store unreachable, continuing without it: %s", exc)
			return False
		self.state = CONNECTED
		LOGGER.info("Connected to follow-up store (key=%s)", self.key)
		return True

	async def close(self) -> None:
		"""Close the underlying client, ignoring transport errors on shutdown."""
		try:
			await self._client.aclose()
		except RedisError as exc:
			LOGGER.warning("Error closing follow-up store connection: %s", exc)

	async def count(self) -> int:
		"""Return the current queue length.

		A command error such as WRONGTYPE (the key is not a list) is reported
		as UpstreamUnavailable, like a connection failure.
		"""
		try:
			return int(await self._call("llen", self.key))
		except ResponseError as exc:
			raise UpstreamUnavailable("Follow-up store returned an error", {"details": str(exc)}) from exc

	async def list_entries(self) -> List[FollowupEntry]:
		"""Return a snapshot of the queue, front of the list first."""
		try:
			raw_items = await self._call("lrange", self.key, 0, -1)
		except ResponseError as exc:
			raise UpstreamUnavailable("Follow-up store returned an error", {"details": str(exc)}) from exc
		return [FollowupEntry(index=i, payload=self._decode(raw)) for i, raw in enumerate(raw_items)]

	async def remove_at(self, index: int) -> None:
		"""Dismiss the entry currently at `index`.

		Redis can only remove list elements by value, so the element is first
		overwritten with a unique sentinel and then the sentinel is removed.
		The two steps are not atomic; a concurrent reader may see the sentinel.

		Raises:
			NotFound: `index` is outside the current list bounds.
			UpstreamUnavailable: The store could not be reached.
		"""
		length = await self.count()
		if index < 0 or index >= length:
			raise NotFound("Followup not found")

		sentinel = f"{self._sentinel_prefix}:{uuid.uuid4().hex}"
		try:
			await self._call("lset", self.key, index, sentinel)
		except ResponseError as exc:
			# The list shrank between LLEN and LSET.
			raise NotFound("Followup not found") from exc
		await self._call("lrem", self.key, 1, sentinel)
		LOGGER.info("Dismissed follow-up at index %d", index)

	async def _call(self, command: str, *args: Any) -> Any:
		"""Run one Redis command, tracking connection state.

		ResponseError (a command-level error from a reachable server) is
		re-raised as-is; every other RedisError becomes UpstreamUnavailable.
		"""
		try:
			result = await getattr(self._client, command)(*args)
		except ResponseError:
			self.state = CONNECTED
			raise
		except RedisError as exc:
			if self.state != UNAVAILABLE:
				LOGGER.warning("Follow-up store call %s failed: %s", command.upper(), exc)
			self.state = UNAVAILABLE
			raise UpstreamUnavailable("Follow-up store unavailable", {"details": str(exc)}) from exc
		self.state = CONNECTED
		return result

	@staticmethod
	def _decode(raw: Any) -> dict:
		if isinstance(raw, bytes):
			raw = raw.decode("utf-8", errors="replace")
		try:
			value = json.loads(raw)
		except (TypeError, ValueError):
			return {"raw": raw}
		return value if isinstance(value, dict) else {"raw": value}
