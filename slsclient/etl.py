"""ETL job definitions used by log-service function triggers, and their client."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from .api import ApiClient, _dump, _load, _wire, json_headers

ETL_META_URI = "etlmetas"
ETL_META_NAME_URI = "etlmetanames"
ETL_META_ALL_TAG_MATCH = "__all_etl_meta_tag_match__"


@dataclass
class SourceConfig:
    logstore_name: str = _wire("logstoreName", default="")


@dataclass
class TriggerConfig:
    max_retry_time: int = _wire("maxRetryTime", default=0)
    trigger_interval: int = _wire("triggerInterval", default=0)
    role_arn: str = _wire("roleArn", default="")
    starting_position: str = _wire("startingPosition", default="")
    starting_unixtime: int = _wire("startingUnixtime", default=0)


@dataclass
class FunctionConfig:
    function_provider: str = _wire("functionProvider", default="")
    endpoint: str = _wire("endpoint", default="")
    account_id: str = _wire("accountId", default="")
    region_name: str = _wire("regionName", default="")
    service_name: str = _wire("serviceName", default="")
    function_name: str = _wire("functionName", default="")
    role_arn: str = _wire("roleArn", default="")


@dataclass
class JobLogConfig:
    endpoint: str = _wire("endpoint", default="")
    project_name: str = _wire("projectName", default="")
    logstore_name: str = _wire("logstoreName", default="")


@dataclass
class ETLJob:
    job_name: str = _wire("etlJobName", default="")
    source_config: Optional[SourceConfig] = _wire("sourceConfig", nested=SourceConfig)
    trigger_config: Optional[TriggerConfig] = _wire("triggerConfig", nested=TriggerConfig)
    function_config: Optional[FunctionConfig] = _wire("functionConfig", nested=FunctionConfig)
    function_parameter: Any = _wire("functionParameter")
    log_config: Optional[JobLogConfig] = _wire("logConfig", nested=JobLogConfig)
    enable: bool = _wire("enable", default=False)
    create_time: int = _wire("createTime", default=0)
    update_time: int = _wire("updateTime", default=0)

    @classmethod
    def from_dict(cls, data: Any) -> "ETLJob":
        """Build a job from decoded JSON; a string function parameter is parsed as an object."""
        job = _load(cls, data)
        if isinstance(job.function_parameter, str):
            parsed = json.loads(job.function_parameter)
            if parsed is None:
                parsed = {}
            if not isinstance(parsed, dict):
                raise ValueError("functionParameter must hold a JSON object")
            job.function_parameter = parsed
        return job

    @classmethod
    def from_json(cls, text: str | bytes) -> "ETLJob":
        return cls.from_dict(json.loads(text))

    def to_dict(self) -> dict:
        return _dump(self)


@dataclass
class EtlMeta:
    meta_name: str = _wire("etlMetaName", default="")
    meta_key: str = _wire("etlMetaKey", default="")
    meta_tag: str = _wire("etlMetaTag", default="")
    meta_value: Optional[dict] = _wire("etlMetaValue")


_DEFLATE = {"Accept-Encoding": "deflate"}
_EMPTY = {"x-log-bodyrawsize": "0"}


class ETLJobClient(ApiClient):
    """ETL job operations; the requester is bound to one project."""

    def __init__(self, requester) -> None:
        super().__init__(requester)

    def create_etl_job(self, job: ETLJob) -> None:
        body = self._encode(job.to_dict())
        self._request("", "POST", "/etljobs", {**json_headers(len(body)), **_DEFLATE}, body)

    def get_etl_job(self, name: str) -> ETLJob:
        response = self._request("", "GET", "/etljobs/" + name, _EMPTY)
        return ETLJob.from_dict(self._decode(response))

    def update_etl_job(self, name: str, job: ETLJob) -> None:
        body = self._encode(job.to_dict())
        self._request("", "PUT", "/etljobs/" + name, {**json_headers(len(body)), **_DEFLATE}, body)

    def delete_etl_job(self, name: str) -> None:
        self._request("", "DELETE", "/etljobs/" + name, _EMPTY)

    def list_etl_jobs(self) -> list:
        data = self._decode(self._request("", "GET", "/etljobs", _EMPTY)) or {}
        return data.get("etlJobNameList") or []