"""The consumer's view of the log service: group, heartbeat, checkpoints and pulls."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import LogError
from .config import LogHubConfig

_RETRIES = 3


@dataclass
class ConsumerGroup:
    consumer_group_name: str = ""
    timeout: int = 0
    in_order: bool = False


def _shard_and_checkpoint(item: Any):
    if isinstance(item, Mapping):
        return item.get("shard"), item.get("checkpoint", "")
    return getattr(item, "shard_id", None), getattr(item, "checkpoint", "")


class ConsumerClient:
    """Binds a log service client to one project, logstore and consumer group.

    ``client`` provides ``create_consumer_group``, ``heart_beat``,
    ``update_checkpoint``, ``get_checkpoint``, ``get_cursor`` and ``pull_logs``.
    """

    def __init__(self, option: LogHubConfig, client: Any, logger: Optional[logging.Logger] = None) -> None:
        self.option = option.with_defaults()
        self.client = client
        self.logger = logger or logging.getLogger("slsclient.consumer")
        self.consumer_group = ConsumerGroup(
            consumer_group_name=self.option.consumer_group_name,
            timeout=self.option.heartbeat_interval_in_second * 3,
            in_order=self.option.in_order,
        )

    def create_consumer_group(self) -> None:
        """Create the group; joining an existing group is not an error."""
        try:
            self.client.create_consumer_group(self.option.project, self.option.logstore, self.consumer_group)
        except LogError as exc:
            if exc.code == "ConsumerGroupAlreadyExist":
                self.logger.info(
                    "New consumer join the consumer group: consumer name %s, group name %s",
                    self.option.consumer_name,
                    self.option.consumer_group_name,
                )
            else:
                self.logger.error("create consumer group error: %s", exc)
        except Exception as exc:
            self.logger.error("create consumer group error: %s", exc)

    def heart_beat(self, heart: list) -> list:
        return self.client.heart_beat(
            self.option.project,
            self.option.logstore,
            self.option.consumer_group_name,
            self.option.consumer_name,
            heart,
        )

    def update_check_point(self, shard_id: int, checkpoint: str, force_success: bool) -> None:
        self.client.update_checkpoint(
            self.option.project,
            self.option.logstore,
            self.option.consumer_group_name,
            self.option.consumer_name,
            shard_id,
            checkpoint,
            force_success,
        )

    def get_check_point(self, shard_id: int) -> str:
        """Return the saved checkpoint of a shard, or "" when there is none."""
        last_error: Optional[Exception] = None
        for _ in range(_RETRIES):
            try:
                checkpoints = self.client.get_checkpoint(
                    self.option.project, self.option.logstore, self.consumer_group.consumer_group_name
                )
                break
            except Exception as exc:
                self.logger.info("shard %s get checkpoint error, retrying: %s", shard_id, exc)
                last_error = exc
                time.sleep(1)
        else:
            raise last_error  # type: ignore[misc]
        for item in checkpoints or []:
            shard, checkpoint = _shard_and_checkpoint(item)
            if shard == shard_id:
                return checkpoint
        return ""

    def get_cursor(self, shard_id: int, from_: str) -> str:
        return self.client.get_cursor(self.option.project, self.option.logstore, shard_id, from_)

    def pull_logs(self, shard_id: int, cursor: str):
        """Return ``(log group list, next cursor)``, retrying up to three times."""
        last_error: Optional[Exception] = None
        for _ in range(_RETRIES):
            try:
                return self.client.pull_logs(
                    self.option.project,
                    self.option.logstore,
                    shard_id,
                    cursor,
                    "",
                    self.option.max_fetch_log_group_count,
                )
            except LogError as exc:
                last_error = exc
                self.logger.warning("shard %s pull logs error, retrying: %s", shard_id, exc)
                time.sleep(5 if exc.http_code == 403 else 0.2)
            except Exception as exc:
                last_error = exc
                self.logger.warning(
                    "unknown error when pull log: shard %s, cursor %s: %s", shard_id, cursor, exc
                )
        raise last_error  # type: ignore[misc]