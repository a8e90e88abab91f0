"""Owner notifications posted to a JSON webhook."""

from __future__ import annotations

import logging
import os

import requests

NOTIFY_WEBHOOK_URL = os.getenv("NOTIFY_WEBHOOK_URL", "")
REQUEST_TIMEOUT_SECONDS = 15

LOGGER = logging.getLogger(__name__)


def notify(title: str, content: str) -> bool:
    """POST ``{"title", "content"}`` to the configured webhook.

    Returns False without sending when no webhook is configured. Transport
    errors and non-2xx responses raise ``requests.RequestException``.
    """
    if not NOTIFY_WEBHOOK_URL:
        LOGGER.info("Notification skipped (NOTIFY_WEBHOOK_URL not set): %s", title)
        return False

    response = requests.post(
        NOTIFY_WEBHOOK_URL,
        json={"title": title, "content": content},
        timeout=REQUEST_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    LOGGER.info("Notification sent: %s", title)
    return True
