"""Follow-up queue entries produced by the chat-bot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class FollowupEntry:
	"""One queued question, tagged with its position at read time.

	`index` is not a stable identifier: it is only valid until the list is
	modified again.
	"""

	index: int
	payload: Dict[str, Any] = field(default_factory=dict)

	@property
	def sender_id(self) -> Optional[str]:
		return self.payload.get("sender_id")

	@property
	def question(self) -> Optional[str]:
		return self.payload.get("question")

	@property
	def bot_response(self) -> Optional[str]:
		return self.payload.get("bot_response")

	@property
	def timestamp(self) -> Optional[str]:
		return self.payload.get("timestamp")

	def as_dict(self) -> Dict[str, Any]:
		return {**self.payload, "index": self.index}
