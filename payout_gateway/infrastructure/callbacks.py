"""Simulated webhook delivery log"""

import logging
import threading
from datetime import datetime
from typing import Callable, List

from payout_gateway.domain.models import CallbackEntry, Payout, isoformat

logger = logging.getLogger(__name__)

CALLBACK_EVENT = "payout.status_changed"


class CallbackLog:
    """
    Append-only record of callbacks the service would have POSTed.

    Nothing is delivered over the network; the log exists so tests can
    observe which status changes produced a callback.
    """

    def __init__(self, now: Callable[[], datetime]):
        self._now = now
        self._entries: List[CallbackEntry] = []
        self._lock = threading.Lock()

    def send(self, url: str, payout: Payout) -> CallbackEntry:
        sent_at = self._now()
        entry = CallbackEntry(
            url=url,
            payload={
                "event": CALLBACK_EVENT,
                "timestamp": isoformat(sent_at),
                "data": payout.to_dict(),
            },
            sent_at=sent_at,
        )
        with self._lock:
            self._entries.append(entry)
        logger.info(
            "Callback recorded",
            extra={"payout_id": payout.id, "status": payout.status.value, "callback_url": url},
        )
        return entry

    def entries(self) -> List[CallbackEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
