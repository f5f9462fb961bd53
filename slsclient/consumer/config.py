"""Configuration of a consumer group worker."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Union


class CursorPosition(str, Enum):
    """Where a shard without a saved checkpoint starts being consumed."""

    BEGIN_CURSOR = "BEGIN_CURSOR"
    END_CURSOR = "END_CURSOR"
    SPECIAL_TIMER_CURSOR = "SPECIAL_TIMER_CURSOR"


class ConsumerStatus(str, Enum):
    """States of a shard consumer."""

    INITIALIZING = "INITIALIZING"
    INITIALIZING_DONE = "INITIALIZING_DONE"
    PULL_PROCESSING = "PULL_PROCESSING"
    PULL_PROCESSING_DONE = "PULL_PROCESSING_DONE"
    CONSUME_PROCESSING = "CONSUME_PROCESSING"
    CONSUME_PROCESSING_DONE = "CONSUME_PROCESSING_DONE"
    SHUTDOWN_COMPLETE = "SHUTDOWN_COMPLETE"


@dataclass
class LogHubConfig:
    """Settings of a consumer.

    ``cursor_position`` applies only until the group has a checkpoint for a
    shard; with ``SPECIAL_TIMER_CURSOR`` the start is ``cursor_start_time``
    (receive time, seconds). The server considers a consumer offline after
    three heartbeat intervals without a report. ``max_fetch_log_group_count``
    is at most 1000. ``in_order`` makes split shards wait for their parent.
    """

    endpoint: str = ""
    access_key_id: str = ""
    access_key_secret: str = ""
    project: str = ""
    logstore: str = ""
    consumer_group_name: str = ""
    consumer_name: str = ""
    cursor_position: Union[CursorPosition, str] = ""
    heartbeat_interval_in_second: int = 0
    data_fetch_interval_in_ms: int = 0
    max_fetch_log_group_count: int = 0
    cursor_start_time: int = 0
    in_order: bool = False
    allow_log_level: str = ""
    log_file_name: str = ""
    is_json_type: bool = False
    log_max_size: int = 0
    log_max_backups: int = 0
    log_compress: bool = False
    http_client: Any = None
    security_token: str = ""

    def with_defaults(self) -> "LogHubConfig":
        """Return a copy with the unset intervals and fetch size filled in."""
        return replace(
            self,
            heartbeat_interval_in_second=self.heartbeat_interval_in_second or 20,
            data_fetch_interval_in_ms=self.data_fetch_interval_in_ms or 200,
            max_fetch_log_group_count=self.max_fetch_log_group_count or 1000,
        )