"""Periodic heartbeat that tells the server which shards this consumer holds."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from .consumer_client import ConsumerClient
from .util import int_slice_equal, subtract, time_to_sleep_in_second, unique


class ConsumerHeartBeat:
    """Reports held shards and adopts the assignment the server returns."""

    def __init__(self, client: ConsumerClient, logger: Optional[logging.Logger] = None) -> None:
        self.client = client
        self.logger = logger or logging.getLogger("slsclient.consumer")
        self._stop = threading.Event()
        self._lock = threading.RLock()
        self._held_shards: list = []
        self._heart_shards: list = []
        self.last_heart_beat_success_time = int(time.time())

    @property
    def held_shards(self) -> list:
        with self._lock:
            return list(self._held_shards)

    @held_shards.setter
    def held_shards(self, shards: list) -> None:
        with self._lock:
            self._held_shards = list(shards)

    @property
    def heart_shards(self) -> list:
        with self._lock:
            return list(self._heart_shards)

    @heart_shards.setter
    def heart_shards(self, shards: list) -> None:
        with self._lock:
            self._heart_shards = list(shards)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def shut_down(self) -> None:
        self.logger.info("try to stop heart beat")
        self._stop.set()

    def run(self) -> None:
        """Send heartbeats until :meth:`shut_down` is called."""
        interval = self.client.option.heartbeat_interval_in_second
        while not self._stop.is_set():
            last_heart_beat_time = int(time.time())
            with self._lock:
                self._heart_shards = unique(self._heart_shards + self._held_shards)
            heart = self.heart_shards
            try:
                response = self.client.heart_beat(heart)
            except Exception as exc:
                self.logger.warning("send heartbeat error: %s", exc)
                elapsed = int(time.time()) - self.last_heart_beat_success_time
                if elapsed > self.client.consumer_group.timeout + interval:
                    self.held_shards = []
                    self.logger.info("Heart beat timeout, automatic reset consumer held shards")
            else:
                self.last_heart_beat_success_time = int(time.time())
                response = list(response or [])
                self.logger.info("heart beat result %s, get %s", heart, response)
                self.held_shards = response
                if not int_slice_equal(heart, response):
                    current, assigned = unique(heart), unique(response)
                    self.logger.info(
                        "shard reorganize, adding: %s, removing: %s",
                        subtract(current, assigned),
                        subtract(assigned, current),
                    )
            time_to_sleep_in_second(interval, last_heart_beat_time, self._stop.is_set)
        self.logger.info("heart beat exit")

    def remove_heart_shard(self, shard_id: int) -> bool:
        """Stop reporting a shard; return whether it was being reported."""
        with self._lock:
            if shard_id in self._heart_shards:
                self._heart_shards.remove(shard_id)
                return True
            return False