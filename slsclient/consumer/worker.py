"""The consumer worker: drives heartbeats and the consumers of the held shards."""

from __future__ import annotations

import gzip
import json
import logging
import logging.handlers
import os
import shutil
import sys
import threading
import time
from datetime import datetime, timezone
from typing import Any, Optional

from .config import LogHubConfig
from .consumer_client import ConsumerClient
from .heartbeat import ConsumerHeartBeat
from .shard_worker import ProcessFunc, ShardConsumerWorker
from .util import contain, time_to_sleep_in_millisecond

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}
_LEVEL_NAMES = {logging.DEBUG: "debug", logging.INFO: "info", logging.WARNING: "warn", logging.ERROR: "error"}
_MEGABYTE = 1024 * 1024


def _record_fields(record: logging.LogRecord) -> dict:
    stamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z")
    return {
        "time": stamp,
        "caller": f"{record.filename}:{record.lineno}",
        "level": _LEVEL_NAMES.get(record.levelno, record.levelname.lower()),
        "msg": record.getMessage(),
    }


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(_record_fields(record), ensure_ascii=False)


def _logfmt_value(value: str) -> str:
    if value and not any(ch in value for ch in ' ="\n\t'):
        return value
    return json.dumps(value, ensure_ascii=False)


class _LogfmtFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return " ".join(f"{key}={_logfmt_value(value)}" for key, value in _record_fields(record).items())


def _gzip_rotator(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)


def _file_handler(option: LogHubConfig) -> logging.Handler:
    max_size = option.log_max_size or 10
    backups = option.log_max_backups or 10
    handler = logging.handlers.RotatingFileHandler(
        option.log_file_name, maxBytes=max_size * _MEGABYTE, backupCount=backups, encoding="utf-8"
    )
    if option.log_compress:
        handler.namer = lambda name: name + ".gz"
        handler.rotator = _gzip_rotator
    return handler


def configure_logger(option: LogHubConfig) -> logging.Logger:
    """Build the logger a worker writes to, as the option describes."""
    if not option.log_file_name:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        use_json = option.is_json_type
    else:
        handler = _file_handler(option)
        use_json = not option.is_json_type
    handler.setFormatter(_JsonFormatter() if use_json else _LogfmtFormatter())
    logger = logging.Logger(f"slsclient.consumer.{option.consumer_name or 'worker'}")
    logger.setLevel(_LEVELS.get(option.allow_log_level, logging.INFO))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


class ConsumerWorker:
    """Consumes the shards the consumer group assigns to this consumer.

    ``client`` is the log service client handed to :class:`ConsumerClient`.
    """

    def __init__(self, option: LogHubConfig, process: ProcessFunc, client: Any) -> None:
        self.logger = configure_logger(option)
        self.client = ConsumerClient(option, client, self.logger)
        self.heart_beat = ConsumerHeartBeat(self.client, self.logger)
        self.process = process
        self.shard_consumers: dict = {}
        self._shut_down = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.client.create_consumer_group()

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop_and_wait(self) -> None:
        """Stop consuming, flush the checkpoints of all shards and wait for the end."""
        self.logger.info("*** try to exit ***")
        self._shut_down.set()
        self.heart_beat.shut_down()
        if self._thread is not None:
            self._thread.join()
        self.logger.info("consumer worker stopped: consumer name %s", self.client.option.consumer_name)

    def _run(self) -> None:
        self.logger.info("consumer worker start: worker name %s", self.client.option.consumer_name)
        threading.Thread(target=self.heart_beat.run, daemon=True).start()
        while not self._shut_down.is_set():
            held_shards = self.heart_beat.held_shards
            last_fetch_time = time.time_ns() // 1_000_000
            for shard in held_shards:
                if self._shut_down.is_set():
                    break
                consumer = self._get_shard_consumer(shard)
                if consumer.is_current_done:
                    consumer.consume()
            self._clean_shard_consumers(held_shards)
            time_to_sleep_in_millisecond(
                self.client.option.data_fetch_interval_in_ms, last_fetch_time, self._shut_down.is_set
            )
        self.logger.info("consumer worker try to cleanup consumers: %s", self.client.option.consumer_name)
        self._shut_down_and_wait()

    def _shut_down_and_wait(self) -> None:
        while True:
            time.sleep(0.5)
            consumers = list(self.shard_consumers.items())
            for shard, consumer in consumers:
                if not consumer.is_shut_down_complete():
                    consumer.shut_down()
                else:
                    self.shard_consumers.pop(shard, None)
            if not consumers:
                break

    def _get_shard_consumer(self, shard_id: int) -> ShardConsumerWorker:
        consumer = self.shard_consumers.get(shard_id)
        if consumer is None:
            consumer = ShardConsumerWorker(shard_id, self.client, self.process, self.logger)
            self.shard_consumers[shard_id] = consumer
        return consumer

    def _clean_shard_consumers(self, owned_shards: list) -> None:
        for shard, consumer in list(self.shard_consumers.items()):
            if not contain(shard, owned_shards):
                self.logger.info("try to call shut down for unassigned consumer shard %s", shard)
                consumer.shut_down()
                self.logger.info("Complete call shut down for unassigned consumer shard %s", shard)
            if consumer.is_shut_down_complete():
                if self.heart_beat.remove_heart_shard(shard):
                    self.logger.info("Remove an assigned consumer shard %s", shard)
                    self.shard_consumers.pop(shard, None)
                else:
                    self.logger.info("Remove an assigned consumer shard failed %s", shard)