"""
Client input failures.

Every error here is non-fatal and is reported only to the session that caused
it. The message attribute is the exact text sent in the `error` frame.
"""

from __future__ import annotations


class ChatError(Exception):
    """Base class for validation failures reported back to one session."""

    message = "Request rejected"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidFormat(ChatError):
    message = "Invalid username. Must be 2-20 characters (letters, digits, underscore)."


class DuplicateName(ChatError):
    message = "Username already taken. Please choose another."


class AlreadyJoined(ChatError):
    message = "Already joined"


class Unauthorized(ChatError):
    message = "Not authenticated"


class TooLong(ChatError):
    message = "Message too long. Maximum 500 characters."


class UnknownEventType(ChatError):
    def __init__(self, event_type: object):
        self.event_type = event_type
        super().__init__(f"Unknown event type: {event_type}")
