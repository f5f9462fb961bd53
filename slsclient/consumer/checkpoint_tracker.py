"""Tracks and persists the consumption checkpoint of one shard."""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

_DEFAULT_FLUSH_INTERVAL_SEC = 60


class ConsumerCheckPointTracker:
    """Keeps the in-memory checkpoint of a shard and saves it to the server."""

    def __init__(self, shard_id: int, client: Any, logger: Optional[logging.Logger] = None) -> None:
        self.client = client
        self.shard_id = shard_id
        self.logger = logger or logging.getLogger("slsclient.consumer")
        self.default_flush_interval_sec = _DEFAULT_FLUSH_INTERVAL_SEC
        self.temp_check_point = ""
        self.last_persistent_check_point = ""
        self.last_check_time = 0

    def set_memory_check_point(self, cursor: str) -> None:
        self.temp_check_point = cursor

    def set_persistent_check_point(self, cursor: str) -> None:
        self.last_persistent_check_point = cursor

    def flush_check_point(self) -> None:
        """Save the in-memory checkpoint if it differs from the last saved one."""
        if self.temp_check_point and self.temp_check_point != self.last_persistent_check_point:
            self.client.update_check_point(self.shard_id, self.temp_check_point, True)
            self.last_persistent_check_point = self.temp_check_point

    def flush_check(self) -> None:
        """Flush when the flush interval has passed; failures are only logged."""
        current = int(time.time())
        if current > self.last_check_time + self.default_flush_interval_sec:
            try:
                self.flush_check_point()
            except Exception as exc:
                self.logger.warning("update checkpoint get error: %s", exc)
            else:
                self.last_check_time = current

    def get_check_point(self) -> str:
        return self.temp_check_point