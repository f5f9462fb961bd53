# slsclient

A client library for a log service. It covers:

- ETL jobs (`slsclient.etl`): `ETLJob`, `ETLJobClient`, `EtlMeta`
- resource tags (`slsclient.tags`): `TagClient`, `new_project_tags`, `new_project_untags`
- resource records (`slsclient.resource_records`): `ResourceRecord`, `ResourceRecordClient`
- scheduled SQL jobs and their instances (`slsclient.scheduled_sql`): `ScheduledSQL`, `ScheduledSQLClient`
- shard operations, cursor times and sub-stores (`slsclient.store`): `StoreClient`
- a consumer-group library (`slsclient.consumer`): `ConsumerWorker`, `LogHubConfig`

Errors raised by the service arrive as `slsclient.errors.LogError`; local
failures such as bad JSON are `ClientError`; replies that cannot be parsed
at all are `BadResponseError`.

## Installation

```
pip install .
```

Install the test extra with `pip install .[test]` and run `pytest`.

## Requests

The clients do not open connections themselves. Each one is given a
*requester*: a callable that sends one HTTP request for a project and
returns a `slsclient.api.Response`. This keeps transport, signing and
retries in one place of your choosing.

```python
from slsclient.etl import ETLJobClient

etl = ETLJobClient(requester)
for name in etl.list_etl_jobs():
    job = etl.get_etl_job(name)
    print(job.job_name, job.function_parameter)
```

`ETLJob.from_json` accepts a function parameter given either as a JSON
object or as a string holding one, and always yields a dict.

## Scheduled SQL

```python
from slsclient.scheduled_sql import ScheduledSQLClient, ScheduledSQLState

client = ScheduledSQLClient(requester)
jobs, total, count = client.list_scheduled_sql("my-project", "", "", 0, 10)
```

`create_scheduled_sql` refuses a configuration whose `from_time` is not
after 1451577600, or whose `to_time` is neither 0 nor later than
`from_time`. Job instances may only be moved to `ScheduledSQLState.RUNNING`.

## Consuming a logstore

```python
from slsclient.consumer.config import CursorPosition, LogHubConfig
from slsclient.consumer.worker import ConsumerWorker

def process(shard_id, log_group_list):
    for group in log_group_list.log_groups:
        ...
    return ""  # or a cursor to roll back to

option = LogHubConfig(
    project="my-project",
    logstore="my-logstore",
    consumer_group_name="group",
    consumer_name="consumer-1",
    cursor_position=CursorPosition.BEGIN_CURSOR,
)
worker = ConsumerWorker(option, process, client)
worker.start()
...
worker.stop_and_wait()
```

The worker sends a heartbeat to claim shards, pulls log groups for each
shard it holds, hands them to `process` and saves checkpoints. A shard's
checkpoint is flushed at most once a minute while running, and again when
the shard is released or the worker stops.