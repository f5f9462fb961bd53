from slsclient.consumer.config import ConsumerStatus, CursorPosition, LogHubConfig


def test_with_defaults_fills_unset_values():
    option = LogHubConfig().with_defaults()
    assert option.heartbeat_interval_in_second == 20
    assert option.data_fetch_interval_in_ms == 200
    assert option.max_fetch_log_group_count == 1000


def test_with_defaults_keeps_set_values():
    option = LogHubConfig(
        heartbeat_interval_in_second=5,
        data_fetch_interval_in_ms=50,
        max_fetch_log_group_count=10,
        project="proj",
    ).with_defaults()
    assert option.heartbeat_interval_in_second == 5
    assert option.data_fetch_interval_in_ms == 50
    assert option.max_fetch_log_group_count == 10
    assert option.project == "proj"


def test_with_defaults_does_not_mutate_original():
    original = LogHubConfig()
    original.with_defaults()
    assert original.heartbeat_interval_in_second == 0


def test_with_defaults_is_idempotent():
    once = LogHubConfig(consumer_name="c").with_defaults()
    assert once.with_defaults() == once


def test_cursor_position_values():
    assert CursorPosition.BEGIN_CURSOR == "BEGIN_CURSOR"
    assert CursorPosition("SPECIAL_TIMER_CURSOR") is CursorPosition.SPECIAL_TIMER_CURSOR


def test_consumer_status_values():
    assert ConsumerStatus.SHUTDOWN_COMPLETE.value == "SHUTDOWN_COMPLETE"
    assert ConsumerStatus("PULL_PROCESSING_DONE") is ConsumerStatus.PULL_PROCESSING_DONE