"""
Django app configuration for the realtime chat app.
"""

import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class RealtimeConfig(AppConfig):
    name = "realtime"
    verbose_name = "Realtime chat"

    def ready(self):
        from .config import config

        logger.info(
            "Chat limits: name %s-%s chars, message <= %s chars, api key %s",
            config.CHAT_NAME_MIN_LENGTH,
            config.CHAT_NAME_MAX_LENGTH,
            config.CHAT_MESSAGE_MAX_LENGTH,
            "required" if config.CHAT_AUTH_API_KEY else "not required",
        )
