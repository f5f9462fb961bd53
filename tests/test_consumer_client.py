import logging
from types import SimpleNamespace
from unittest import mock

import pytest

from slsclient.consumer.config import LogHubConfig
from slsclient.consumer.consumer_client import ConsumerClient, ConsumerGroup
from slsclient.errors import LogError


def init_option():
    return LogHubConfig(
        endpoint="",
        access_key_id="",
        access_key_secret="",
        project="",
        logstore="",
        consumer_group_name="",
        consumer_name="",
        cursor_position="",
        heartbeat_interval_in_second=5,
    )


class FakeSls:
    def __init__(self):
        self.calls = []
        self.create_error = None
        self.checkpoint_results = []
        self.pull_results = []

    def create_consumer_group(self, project, logstore, group):
        self.calls.append(("create", project, logstore, group))
        if self.create_error:
            raise self.create_error

    def heart_beat(self, project, logstore, group, consumer, shards):
        self.calls.append(("heart", project, logstore, group, consumer, list(shards)))
        return [7]

    def update_checkpoint(self, project, logstore, group, consumer, shard, checkpoint, force):
        self.calls.append(("update", project, logstore, group, consumer, shard, checkpoint, force))

    def get_checkpoint(self, project, logstore, group):
        result = self.checkpoint_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def get_cursor(self, project, logstore, shard, from_):
        self.calls.append(("cursor", project, logstore, shard, from_))
        return "MTIz"

    def pull_logs(self, project, logstore, shard, cursor, end_cursor, count):
        self.calls.append(("pull", shard, cursor, end_cursor, count))
        result = self.pull_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def test_create_consumer_group_already_exists_is_not_an_error(caplog):
    sls = FakeSls()
    sls.create_error = LogError(code="ConsumerGroupAlreadyExist", message="exists")
    consumer = ConsumerClient(init_option(), sls, None)
    with caplog.at_level(logging.INFO):
        consumer.create_consumer_group()
    assert sls.calls == [("create", "", "", ConsumerGroup("", 15, False))]
    assert any(r.levelno == logging.INFO for r in caplog.records)


def test_create_consumer_group_other_error_is_logged(caplog):
    sls = FakeSls()
    sls.create_error = LogError(code="Unauthorized", message="denied")
    consumer = ConsumerClient(init_option(), sls, None)
    with caplog.at_level(logging.INFO):
        consumer.create_consumer_group()
    assert any(r.levelno == logging.ERROR for r in caplog.records)


def test_defaults_applied_and_group_timeout():
    consumer = ConsumerClient(LogHubConfig(consumer_group_name="g"), FakeSls(), None)
    assert consumer.option.max_fetch_log_group_count == 1000
    assert consumer.consumer_group.timeout == 60
    assert consumer.consumer_group.consumer_group_name == "g"


def test_heart_beat_and_update_check_point_pass_identity():
    sls = FakeSls()
    option = LogHubConfig(project="p", logstore="s", consumer_group_name="g", consumer_name="c")
    consumer = ConsumerClient(option, sls, None)
    assert consumer.heart_beat([1, 2]) == [7]
    consumer.update_check_point(1, "cur", True)
    assert sls.calls == [
        ("heart", "p", "s", "g", "c", [1, 2]),
        ("update", "p", "s", "g", "c", 1, "cur", True),
    ]


def test_get_cursor():
    sls = FakeSls()
    consumer = ConsumerClient(LogHubConfig(project="p", logstore="s"), sls, None)
    assert consumer.get_cursor(2, "begin") == "MTIz"
    assert sls.calls == [("cursor", "p", "s", 2, "begin")]


def test_get_check_point_finds_shard():
    sls = FakeSls()
    sls.checkpoint_results = [
        [{"shard": 0, "checkpoint": "a"}, SimpleNamespace(shard_id=1, checkpoint="b")]
    ]
    consumer = ConsumerClient(LogHubConfig(), sls, None)
    assert consumer.get_check_point(1) == "b"


def test_get_check_point_missing_shard_is_empty():
    sls = FakeSls()
    sls.checkpoint_results = [[{"shard": 0, "checkpoint": "a"}]]
    consumer = ConsumerClient(LogHubConfig(), sls, None)
    assert consumer.get_check_point(5) == ""


@mock.patch("time.sleep")
def test_get_check_point_retries_then_succeeds(sleep):
    sls = FakeSls()
    sls.checkpoint_results = [LogError(message="x"), [{"shard": 3, "checkpoint": "c"}]]
    consumer = ConsumerClient(LogHubConfig(), sls, None)
    assert consumer.get_check_point(3) == "c"
    assert sleep.call_count == 1


@mock.patch("time.sleep")
def test_get_check_point_raises_after_three_failures(sleep):
    sls = FakeSls()
    sls.checkpoint_results = [LogError(message="x")] * 3
    consumer = ConsumerClient(LogHubConfig(), sls, None)
    with pytest.raises(LogError):
        consumer.get_check_point(3)
    assert sleep.call_count == 3


def test_pull_logs_returns_result():
    sls = FakeSls()
    sls.pull_results = [("groups", "next")]
    consumer = ConsumerClient(LogHubConfig(max_fetch_log_group_count=10), sls, None)
    assert consumer.pull_logs(1, "cur") == ("groups", "next")
    assert sls.calls == [("pull", 1, "cur", "", 10)]


@mock.patch("time.sleep")
def test_pull_logs_forbidden_waits_longer(sleep):
    sls = FakeSls()
    sls.pull_results = [LogError(message="denied", http_code=403), ("g", "n")]
    consumer = ConsumerClient(LogHubConfig(), sls, None)
    assert consumer.pull_logs(1, "cur") == ("g", "n")
    sleep.assert_called_once_with(5)


@mock.patch("time.sleep")
def test_pull_logs_raises_last_error_after_retries(sleep):
    sls = FakeSls()
    sls.pull_results = [LogError(message="e1", http_code=500), RuntimeError("e2"), LogError(message="e3")]
    consumer = ConsumerClient(LogHubConfig(), sls, None)
    with pytest.raises(LogError, match="e3"):
        consumer.pull_logs(1, "cur")
    assert sleep.call_count == 2