"""
Identity registry: the authoritative session_id -> display name mapping.

Invariant: no two entries ever hold the same name (exact string equality;
"Alice" and "alice" are different names).

The registry is the only mutable state shared between sessions. The coordinator
already feeds it one event at a time, but register/unregister also take a lock
so the check-then-insert stays atomic if it is ever called from worker threads.
"""

from __future__ import annotations

import re
import threading
from typing import Dict, List, Optional

from .config import config
from .errors import DuplicateName, InvalidFormat
from .sanitizer import sanitize_text

_NAME_CHARS = re.compile(r"[A-Za-z0-9_]+")


class IdentityRegistry:
    def __init__(self, *, min_length: Optional[int] = None, max_length: Optional[int] = None):
        self.min_length = min_length if min_length is not None else config.CHAT_NAME_MIN_LENGTH
        self.max_length = max_length if max_length is not None else config.CHAT_NAME_MAX_LENGTH
        # dicts keep insertion order, which is the roster display order.
        self._names: Dict[str, str] = {}
        self._lock = threading.Lock()

    def _invalid(self) -> InvalidFormat:
        return InvalidFormat(
            f"Invalid username. Must be {self.min_length}-{self.max_length} characters "
            "(letters, digits, underscore)."
        )

    def validate(self, proposed_name: object) -> str:
        """Return the trimmed, sanitized name or raise InvalidFormat."""
        if not isinstance(proposed_name, str):
            raise self._invalid()
        name = proposed_name.strip()
        if not (self.min_length <= len(name) <= self.max_length):
            raise self._invalid()
        if not _NAME_CHARS.fullmatch(name):
            raise self._invalid()
        return sanitize_text(name)

    def register(self, session_id: str, proposed_name: object) -> str:
        """
        Claim a name for session_id and return the stored name.

        Raises InvalidFormat or DuplicateName; on failure nothing is changed.
        """
        name = self.validate(proposed_name)
        with self._lock:
            if name in self._names.values():
                raise DuplicateName()
            self._names[session_id] = name
        return name

    def unregister(self, session_id: str) -> Optional[str]:
        """Drop session_id's entry. Returns the released name, or None if there was none."""
        with self._lock:
            return self._names.pop(session_id, None)

    def name_of(self, session_id: str) -> Optional[str]:
        return self._names.get(session_id)

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._names.values())

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._names

    def __len__(self) -> int:
        return len(self._names)
