"""Small helpers shared by the consumer components."""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from collections.abc import Set as AbstractSet
from typing import Any, Callable, Iterable, Optional, Union

StopCondition = Union[bool, Callable[[], bool]]


def unique(items: Iterable[Any]) -> list:
    """Return the items without duplicates, keeping first occurrences in order."""
    return list(dict.fromkeys(items))


def subtract(a: Sequence[Any], b: Sequence[Any]) -> list:
    """Return the items of ``b`` that are not in ``a``; all of ``b`` when ``a`` is empty."""
    if not a:
        return list(b)
    members = set(a)
    return [item for item in b if item not in members]


def int_slice_equal(a: Optional[Sequence[int]], b: Optional[Sequence[int]]) -> bool:
    """Compare two lists element by element, treating ``None`` as empty."""
    return list(a or []) == list(b or [])


def contain(obj: Any, target: Any) -> bool:
    """Tell whether ``obj`` is an element of a sequence or a key of a mapping."""
    if isinstance(target, Mapping):
        return obj in target
    if isinstance(target, (str, bytes, bytearray)):
        return False
    if isinstance(target, (Sequence, AbstractSet)):
        return any(item == obj for item in target)
    return False


def get_log_count(log_group_list: Any) -> int:
    """Return the number of logs in all groups of a log group list."""
    if log_group_list is None:
        return 0
    return sum(len(group.logs) for group in log_group_list.log_groups)


def get_log_group_count(log_group_list: Any) -> int:
    """Return the number of log groups in a log group list."""
    return len(log_group_list.log_groups)


def _stopped(stop: StopCondition) -> bool:
    return bool(stop()) if callable(stop) else bool(stop)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def time_to_sleep_in_millisecond(interval_time: int, last_check_time: int, stop: StopCondition = False) -> None:
    """Sleep until ``interval_time`` ms have passed since ``last_check_time`` (in ms)."""
    remaining = interval_time - (_now_ms() - last_check_time)
    while remaining > 0 and not _stopped(stop):
        time.sleep(min(remaining, 100) / 1000)
        remaining = interval_time - (_now_ms() - last_check_time)


def time_to_sleep_in_second(interval_time: int, last_check_time: int, stop: StopCondition = False) -> None:
    """Sleep until ``interval_time`` s have passed since ``last_check_time`` (in s)."""
    remaining = interval_time * 1000 - (int(time.time()) - last_check_time) * 1000
    while remaining > 0 and not _stopped(stop):
        time.sleep(min(remaining, 1000) / 1000)
        remaining = interval_time * 1000 - (int(time.time()) - last_check_time) * 1000