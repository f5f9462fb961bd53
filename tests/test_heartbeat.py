from slsclient.consumer.config import LogHubConfig
from slsclient.consumer.consumer_client import ConsumerClient
from slsclient.consumer.heartbeat import ConsumerHeartBeat
from slsclient.errors import LogError


class FakeSls:
    def __init__(self, response=None, error=None):
        self.response = response or []
        self.error = error
        self.uploads = []
        self.on_heart_beat = None

    def heart_beat(self, project, logstore, group, consumer, shards):
        self.uploads.append(list(shards))
        if self.on_heart_beat:
            self.on_heart_beat()
        if self.error:
            raise self.error
        return self.response


def make(response=None, error=None):
    sls = FakeSls(response, error)
    client = ConsumerClient(LogHubConfig(project="p", logstore="s"), sls, None)
    heartbeat = ConsumerHeartBeat(client, None)
    sls.on_heart_beat = heartbeat.shut_down
    return sls, heartbeat


def test_run_adopts_server_assignment():
    sls, heartbeat = make(response=[1, 2])
    heartbeat.run()
    assert sls.uploads == [[]]
    assert heartbeat.held_shards == [1, 2]


def test_run_uploads_union_of_heart_and_held():
    sls, heartbeat = make(response=[1])
    heartbeat.held_shards = [3, 1]
    heartbeat.heart_shards = [1]
    heartbeat.run()
    assert sls.uploads == [[1, 3]]
    assert heartbeat.heart_shards == [1, 3]
    assert heartbeat.held_shards == [1]


def test_error_after_timeout_resets_held_shards():
    sls, heartbeat = make(error=LogError(message="down"))
    heartbeat.held_shards = [4]
    heartbeat.last_heart_beat_success_time = 0
    heartbeat.run()
    assert heartbeat.held_shards == []


def test_recent_error_keeps_held_shards():
    sls, heartbeat = make(error=LogError(message="down"))
    heartbeat.held_shards = [4]
    heartbeat.run()
    assert heartbeat.held_shards == [4]


def test_run_after_shut_down_sends_nothing():
    sls, heartbeat = make(response=[1])
    heartbeat.shut_down()
    heartbeat.run()
    assert sls.uploads == []
    assert heartbeat.stopped is True


def test_remove_heart_shard():
    _, heartbeat = make()
    heartbeat.heart_shards = [1, 2, 3]
    assert heartbeat.remove_heart_shard(2) is True
    assert heartbeat.heart_shards == [1, 3]
    assert heartbeat.remove_heart_shard(9) is False
    assert heartbeat.heart_shards == [1, 3]