"""Outbound notifications.

There is no mail transport; messages are written to the log so that
invitations and approval notices are visible during development.
"""

import logging
from typing import List

logger = logging.getLogger(__name__)


class Notifier:
    """Records notifications as log lines and keeps the last few in memory."""

    def __init__(self, history_size: int = 100):
        self._history: List[dict] = []
        self._history_size = history_size

    def send_email(self, to: str, subject: str, body: str) -> dict:
        message = {"to": to, "subject": subject, "body": body}
        logger.info(f"[MOCK EMAIL] To: {to} | Subject: {subject} | Body: {body}")
        self._history.append(message)
        if len(self._history) > self._history_size:
            self._history.pop(0)
        return message

    @property
    def sent(self) -> List[dict]:
        return list(self._history)
