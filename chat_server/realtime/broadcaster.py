"""
Chat message fan-out.

A message goes to every active session, the sender included, so the sender's
view is driven by the same server-confirmed frame as everyone else's.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from .config import config
from .effects import Effect, to_all
from .errors import TooLong, Unauthorized
from .events import ChatMessageBroadcast
from .sanitizer import sanitize_text
from .session import Session


class MessageBroadcaster:
    def __init__(self, max_length: Optional[int] = None):
        self.max_length = max_length if max_length is not None else config.CHAT_MESSAGE_MAX_LENGTH

    def submit(
        self,
        session: Session,
        raw_text: str,
        *,
        active_ids: Sequence[str],
        now: datetime,
    ) -> List[Effect]:
        """
        Validate and build the broadcast for one chat message.

        Raises Unauthorized if the session has not joined, TooLong if the trimmed
        text exceeds max_length. The timestamp is shared by every recipient.
        """
        if not session.is_joined or session.name is None:
            raise Unauthorized()

        text = raw_text.strip()
        # Counted in code points; an astral emoji is one character here.
        if len(text) > self.max_length:
            raise TooLong(f"Message too long. Maximum {self.max_length} characters.")

        message = ChatMessageBroadcast(
            name=session.name,
            message=sanitize_text(text),
            timestamp=now.isoformat(),
        )
        return [to_all(active_ids, message)]
