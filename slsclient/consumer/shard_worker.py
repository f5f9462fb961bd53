"""State machine that initializes, pulls and processes the logs of one shard."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

from .checkpoint_tracker import ConsumerCheckPointTracker
from .config import ConsumerStatus, CursorPosition
from .consumer_client import ConsumerClient
from .util import get_log_count, get_log_group_count

ProcessFunc = Callable[[int, Any], str]

_PROCESS_RETRY_DELAY_SEC = 2
_FORCE_FLUSH_AFTER_SEC = 30


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class ShardConsumerWorker:
    """Consumes one shard; each call to :meth:`consume` starts the next step in a thread."""

    def __init__(
        self,
        shard_id: int,
        client: ConsumerClient,
        process: ProcessFunc,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.shard_id = shard_id
        self.client = client
        self.process = process
        self.logger = logger or logging.getLogger("slsclient.consumer")
        self.check_point_tracker = ConsumerCheckPointTracker(shard_id, client, self.logger)
        self.shut_down_flag = False
        self.last_fetch_log_group_list: Any = None
        self.next_fetch_cursor = ""
        self.last_fetch_group_count = 0
        self.last_fetch_time = 0
        self.temp_check_point = ""
        self.last_fetch_time_for_force_flush = 0
        self.roll_back_check_point = ""
        self._status = ConsumerStatus.INITIALIZING
        self._current_done = True
        self._flush_done = True
        self._status_lock = threading.Lock()
        self._task_lock = threading.Lock()
        self._flush_lock = threading.Lock()

    @property
    def status(self) -> ConsumerStatus:
        with self._status_lock:
            return self._status

    @status.setter
    def status(self, value: ConsumerStatus) -> None:
        with self._status_lock:
            self._status = value

    @property
    def is_current_done(self) -> bool:
        with self._task_lock:
            return self._current_done

    @is_current_done.setter
    def is_current_done(self, value: bool) -> None:
        with self._task_lock:
            self._current_done = value

    @property
    def is_flush_check_point_done(self) -> bool:
        with self._flush_lock:
            return self._flush_done

    @is_flush_check_point_done.setter
    def is_flush_check_point_done(self, value: bool) -> None:
        with self._flush_lock:
            self._flush_done = value

    @staticmethod
    def _spawn(target: Callable[[], None]) -> None:
        threading.Thread(target=target, daemon=True).start()

    def consume(self) -> None:
        """Start the step that follows the current status."""
        status = self.status
        if self.shut_down_flag:
            self.is_flush_check_point_done = False
            self._spawn(self._shut_down_task)
        elif status == ConsumerStatus.INITIALIZING:
            self.is_current_done = False
            self._spawn(self._run_initialize)
        elif status in (ConsumerStatus.INITIALIZING_DONE, ConsumerStatus.CONSUME_PROCESSING_DONE):
            self.is_current_done = False
            self.status = ConsumerStatus.PULL_PROCESSING
            self._spawn(self._run_fetch)
        elif status == ConsumerStatus.PULL_PROCESSING_DONE:
            self.is_current_done = False
            self.status = ConsumerStatus.CONSUME_PROCESSING
            self._spawn(self._run_process)

    def shut_down(self) -> None:
        """Ask the shard to stop; the final checkpoint is flushed in the background."""
        self.shut_down_flag = True
        if not self.is_shut_down_complete() and self.is_flush_check_point_done:
            self.consume()

    def is_shut_down_complete(self) -> bool:
        return self.status == ConsumerStatus.SHUTDOWN_COMPLETE

    def _shut_down_task(self) -> None:
        try:
            status = self.status
            if status == ConsumerStatus.PULL_PROCESSING_DONE:
                # Fetched data was never processed: save the cursor it was fetched from.
                self.check_point_tracker.temp_check_point = self.temp_check_point
            elif status == ConsumerStatus.CONSUME_PROCESSING:
                self.logger.info("Consumption is in progress, waiting for consumption to be completed")
                return
            try:
                self.check_point_tracker.flush_check_point()
            except Exception as exc:
                self.logger.warning("Flush checkpoint error, prepare for retry: %s", exc)
            else:
                self.status = ConsumerStatus.SHUTDOWN_COMPLETE
                self.logger.info("shard worker %s shut down complete", self.shard_id)
        finally:
            self.is_flush_check_point_done = True

    def _run_initialize(self) -> None:
        try:
            cursor = self._initialize_task()
        except Exception:
            self.status = ConsumerStatus.INITIALIZING
        else:
            self.next_fetch_cursor = cursor
            self.status = ConsumerStatus.INITIALIZING_DONE
        finally:
            self.is_current_done = True

    def _initialize_task(self) -> str:
        checkpoint = self.client.get_check_point(self.shard_id)
        if checkpoint:
            self.check_point_tracker.set_persistent_check_point(checkpoint)
            return checkpoint
        position = self.client.option.cursor_position
        if position == CursorPosition.BEGIN_CURSOR:
            start, label = "begin", "beginCursor"
        elif position == CursorPosition.END_CURSOR:
            start, label = "end", "endCursor"
        elif position == CursorPosition.SPECIAL_TIMER_CURSOR:
            start, label = str(self.client.option.cursor_start_time), "specialCursor"
        else:
            self.logger.info(
                "CursorPosition setting error, please reset with BEGIN_CURSOR or END_CURSOR or SPECIAL_TIMER_CURSOR"
            )
            raise ValueError("CursorPositionError")
        try:
            return self.client.get_cursor(self.shard_id, start)
        except Exception as exc:
            self.logger.warning("get %s error: shard %s: %s", label, self.shard_id, exc)
            raise

    def _fetch_allowed(self) -> bool:
        elapsed = _now_ms() - self.last_fetch_time
        if self.last_fetch_group_count < 100:
            return elapsed > 500
        if self.last_fetch_group_count < 500:
            return elapsed > 200
        if self.last_fetch_group_count < 1000:
            return elapsed > 50
        return True

    def _run_fetch(self) -> None:
        try:
            if not self._fetch_allowed():
                self.logger.debug("Pull Log Current Limitation and Re-Pull Log")
                self.status = ConsumerStatus.INITIALIZING_DONE
                return
            self.last_fetch_time = _now_ms()
            # The cursor to fall back to if the fetched logs are never processed.
            self.temp_check_point = self.next_fetch_cursor
            try:
                log_group_list, next_cursor = self.client.pull_logs(self.shard_id, self.next_fetch_cursor)
            except Exception:
                self.status = ConsumerStatus.INITIALIZING_DONE
                return
            self.last_fetch_log_group_list = log_group_list
            self.next_fetch_cursor = next_cursor
            self.check_point_tracker.set_memory_check_point(next_cursor)
            self.last_fetch_group_count = 0 if log_group_list is None else get_log_group_count(log_group_list)
            self.logger.debug("shard %s fetch log count %s", self.shard_id, get_log_count(log_group_list))
            if self.last_fetch_group_count == 0:
                self.last_fetch_log_group_list = None
            else:
                self.last_fetch_time_for_force_flush = int(time.time())
            if int(time.time()) - self.last_fetch_time_for_force_flush > _FORCE_FLUSH_AFTER_SEC:
                try:
                    self.check_point_tracker.flush_check_point()
                except Exception as exc:
                    self.logger.warning("Failed to save the final checkpoint: %s", exc)
                else:
                    self.last_fetch_time_for_force_flush = 0
            self.status = ConsumerStatus.PULL_PROCESSING_DONE
        finally:
            self.is_current_done = True

    def _run_process(self) -> None:
        try:
            roll_back = self._process_task()
            if roll_back:
                self.next_fetch_cursor = roll_back
                self.logger.info(
                    "Checkpoints set for users have been reset: shard %s, rollBackCheckpoint %s",
                    self.shard_id,
                    roll_back,
                )
            self.last_fetch_log_group_list = None
            self.status = ConsumerStatus.CONSUME_PROCESSING_DONE
        finally:
            self.is_current_done = True

    def _process_task(self) -> str:
        """Run the user's function; on an exception retry it until it succeeds."""
        if self.last_fetch_log_group_list is not None:
            try:
                self._call_process()
            except Exception:
                self.logger.exception("get panic in your process function")
                while not self._retry_process_task():
                    time.sleep(_PROCESS_RETRY_DELAY_SEC)
        return self.roll_back_check_point

    def _retry_process_task(self) -> bool:
        self.logger.info("Start retrying the process function")
        try:
            self._call_process()
        except Exception:
            self.logger.exception("get panic in your process function")
            return False
        return True

    def _call_process(self) -> None:
        self.roll_back_check_point = self.process(self.shard_id, self.last_fetch_log_group_list)
        self.check_point_tracker.flush_check()