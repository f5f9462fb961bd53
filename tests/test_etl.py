import json

import pytest

from slsclient.api import Response
from slsclient.errors import ClientError
from slsclient.etl import ETLJob, ETLJobClient, SourceConfig

JOB_TEMPLATE = """
{
 "etlJobName": "b8be831fac391d65b709e9a4f663e559eaa31e5a",
 "sourceConfig": {
  "logstoreName": "etl-log"
 },
 "triggerConfig": {
  "maxRetryTime": 3,
  "triggerInterval": 60,
  "roleArn": "acs:ram::12345:role/invoke-all"
 },
 "functionConfig": {
  "functionProvider": "FunctionCompute",
  "endpoint": "https://fc.example.com",
  "accountId": "12345",
  "regionName": "cn-hangzhou",
  "serviceName": "demo",
  "functionName": "helloworld"
 },
 "functionParameter": PARAM,
 "logConfig": {
  "endpoint": "log.example.com",
  "projectName": "ali-fc-test",
  "logstoreName": "test"
 },
 "enable": true,
 "createTime": 1506469441,
 "updateTime": 1506469441
}
"""

JSON_PARAM = JOB_TEMPLATE.replace("PARAM", '{"a": "b"}')
STRING_PARAM = JOB_TEMPLATE.replace("PARAM", '"{\\"a\\": \\"b\\"}"')


def test_unmarshal_json_param():
    job = ETLJob.from_json(JSON_PARAM)
    assert job.function_parameter["a"] == "b"


def test_unmarshal_string_param():
    job = ETLJob.from_json(STRING_PARAM)
    assert job.function_parameter["a"] == "b"


def test_unmarshal_fills_nested_configs():
    job = ETLJob.from_json(JSON_PARAM)
    assert job.job_name == "b8be831fac391d65b709e9a4f663e559eaa31e5a"
    assert job.source_config.logstore_name == "etl-log"
    assert job.trigger_config.max_retry_time == 3
    assert job.trigger_config.trigger_interval == 60
    assert job.function_config.function_name == "helloworld"
    assert job.log_config.project_name == "ali-fc-test"
    assert job.enable is True
    assert job.create_time == 1506469441


def test_string_param_that_is_not_an_object_is_rejected():
    with pytest.raises(ValueError):
        ETLJob.from_json(JOB_TEMPLATE.replace("PARAM", '"[1, 2]"'))


def test_round_trip_through_dict():
    job = ETLJob.from_json(STRING_PARAM)
    again = ETLJob.from_dict(json.loads(json.dumps(job.to_dict())))
    assert again == job
    assert again.to_dict()["sourceConfig"] == {"logstoreName": "etl-log"}


class Recorder:
    def __init__(self, body=b""):
        self.calls = []
        self.body = body

    def __call__(self, project, method, uri, headers, body):
        self.calls.append((method, uri, headers, body))
        return Response(body=self.body)


def test_create_etl_job_posts_json():
    recorder = Recorder()
    job = ETLJob(job_name="job1", source_config=SourceConfig("src"), enable=True)
    ETLJobClient(recorder).create_etl_job(job)
    method, uri, headers, body = recorder.calls[0]
    assert (method, uri) == ("POST", "/etljobs")
    assert headers["Accept-Encoding"] == "deflate"
    assert headers["x-log-bodyrawsize"] == str(len(body))
    assert ETLJob.from_json(body) == job


def test_update_and_delete_use_job_name():
    recorder = Recorder()
    client = ETLJobClient(recorder)
    client.update_etl_job("job1", ETLJob(job_name="job1"))
    client.delete_etl_job("job1")
    assert [(m, u) for m, u, _, _ in recorder.calls] == [("PUT", "/etljobs/job1"), ("DELETE", "/etljobs/job1")]


def test_get_etl_job_parses_response():
    client = ETLJobClient(Recorder(STRING_PARAM.encode()))
    job = client.get_etl_job("b8be831fac391d65b709e9a4f663e559eaa31e5a")
    assert job.function_parameter == {"a": "b"}


def test_get_etl_job_with_bad_body_raises():
    with pytest.raises(ClientError):
        ETLJobClient(Recorder(b"<html>")).get_etl_job("x")


def test_list_etl_jobs_returns_names():
    body = json.dumps({"count": 2, "total": 2, "etlJobNameList": ["a", "b"]}).encode()
    recorder = Recorder(body)
    assert ETLJobClient(recorder).list_etl_jobs() == ["a", "b"]
    assert recorder.calls[0][:2] == ("GET", "/etljobs")