"""Scheduled SQL jobs and their run instances."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union
from urllib.parse import urlencode

from .api import ApiClient, _dump, _load, _wire, json_headers
from .errors import ClientError

# Jobs may only start after this moment (2016-01-01, in seconds).
_EARLIEST_FROM_TIME = 1451577600


class SqlType(str, Enum):
    STANDARD = "standard"
    SEARCH_QUERY = "searchQuery"


class ResourcePool(str, Enum):
    DEFAULT = "default"
    ENHANCED = "enhanced"


class DataFormat(str, Enum):
    LOG_TO_LOG = "log2log"
    LOG_TO_METRIC = "log2metric"
    METRIC_TO_METRIC = "metric2metric"


class JobType(str, Enum):
    ALERT = "Alert"
    REPORT = "Report"
    ETL = "ETL"
    INGESTION = "Ingestion"
    REBUILD_INDEX = "RebuildIndex"
    AUDIT_JOB = "AuditJob"
    EXPORT = "Export"
    SCHEDULED_SQL = "ScheduledSQL"


class Status(str, Enum):
    ENABLED = "Enabled"
    DISABLED = "Disabled"


class ScheduledSQLState(str, Enum):
    RUNNING = "RUNNING"
    FAILED = "FAILED"
    SUCCEEDED = "SUCCEEDED"


def _text(value: Union[str, Enum]) -> str:
    return value.value if isinstance(value, Enum) else str(value)


@dataclass
class ScheduledSQLParameters:
    time_key: str = _wire("timeKey", omitempty=True, default="")
    label_keys: str = _wire("labelKeys", omitempty=True, default="")
    metric_keys: str = _wire("metricKeys", omitempty=True, default="")
    metric_name: str = _wire("metricName", omitempty=True, default="")
    hash_labels: str = _wire("hashLabels", omitempty=True, default="")
    add_labels: str = _wire("addLabels", omitempty=True, default="")


@dataclass
class ScheduledSQLConfiguration:
    source_logstore: str = _wire("sourceLogstore", default="")
    dest_project: str = _wire("destProject", default="")
    dest_endpoint: str = _wire("destEndpoint", default="")
    dest_logstore: str = _wire("destLogstore", default="")
    script: str = _wire("script", default="")
    sql_type: Union[SqlType, str] = _wire("sqlType", default=SqlType.STANDARD)
    resource_pool: Union[ResourcePool, str] = _wire("resourcePool", default=ResourcePool.DEFAULT)
    role_arn: str = _wire("roleArn", default="")
    dest_role_arn: str = _wire("destRoleArn", default="")
    from_time_expr: str = _wire("fromTimeExpr", default="")
    to_time_expr: str = _wire("toTimeExpr", default="")
    max_run_time_in_seconds: int = _wire("maxRunTimeInSeconds", default=0)
    max_retries: int = _wire("maxRetries", default=0)
    from_time: int = _wire("fromTime", default=0)
    to_time: int = _wire("toTime", default=0)
    data_format: Union[DataFormat, str] = _wire("dataFormat", default=DataFormat.LOG_TO_LOG)
    parameters: Optional[ScheduledSQLParameters] = _wire(
        "parameters", omitempty=True, nested=ScheduledSQLParameters
    )


@dataclass
class ScheduledSQL:
    name: str = _wire("name", default="")
    display_name: str = _wire("displayName", default="")
    description: str = _wire("description", default="")
    status: Union[Status, str] = _wire("status", default="")
    schedule_id: str = _wire("scheduleId", default="")
    configuration: Optional[ScheduledSQLConfiguration] = _wire(
        "configuration", nested=ScheduledSQLConfiguration
    )
    schedule: Any = _wire("schedule")
    create_time: int = _wire("createTime", omitempty=True, default=0)
    last_modified_time: int = _wire("lastModifiedTime", omitempty=True, default=0)
    type: Union[JobType, str] = _wire("type", default="")

    @classmethod
    def from_dict(cls, data: Any) -> "ScheduledSQL":
        return _load(cls, data)

    def to_dict(self) -> dict:
        return _dump(self)


@dataclass
class ScheduledSQLJobInstance:
    instance_id: str = _wire("instanceId", default="")
    job_name: str = _wire("jobName", omitempty=True, default="")
    display_name: str = _wire("displayName", omitempty=True, default="")
    description: str = _wire("description", omitempty=True, default="")
    job_schedule_id: str = _wire("jobScheduleId", omitempty=True, default="")
    create_time_in_millis: int = _wire("createTimeInMillis", default=0)
    schedule_time_in_millis: int = _wire("scheduleTimeInMillis", default=0)
    update_time_in_millis: int = _wire("updateTimeInMillis", default=0)
    state: Union[ScheduledSQLState, str] = _wire("state", default="")
    error_code: str = _wire("errorCode", default="")
    error_message: str = _wire("errorMessage", default="")
    summary: str = _wire("summary", omitempty=True, default="")

    @classmethod
    def from_dict(cls, data: Any) -> "ScheduledSQLJobInstance":
        return _load(cls, data)


@dataclass
class InstanceStatus:
    """Filter for listing the run instances of a job."""

    from_time: int = 0
    to_time: int = 0
    offset: int = 0
    size: int = 0
    state: Union[ScheduledSQLState, str] = ""


class ScheduledSQLClient(ApiClient):
    """Manage scheduled SQL jobs and their instances."""

    def create_scheduled_sql(self, project: str, scheduled_sql: ScheduledSQL) -> None:
        config = scheduled_sql.configuration or ScheduledSQLConfiguration()
        from_time, to_time = config.from_time, config.to_time
        time_range = from_time > _EARLIEST_FROM_TIME and to_time > from_time
        sustained = from_time > _EARLIEST_FROM_TIME and to_time == 0
        if not time_range and not sustained:
            raise ValueError(
                f"invalid fromTime: {from_time} toTime: {to_time}, "
                f"please ensure fromTime more than {_EARLIEST_FROM_TIME}"
            )
        body = self._encode(scheduled_sql.to_dict())
        self._request(project, "POST", "/jobs", json_headers(len(body)), body)

    def delete_scheduled_sql(self, project: str, name: str) -> None:
        self._request(project, "DELETE", "/jobs/" + name, json_headers(0))

    def update_scheduled_sql(self, project: str, scheduled_sql: ScheduledSQL) -> None:
        body = self._encode(scheduled_sql.to_dict())
        uri = "/jobs/" + scheduled_sql.name
        self._request(project, "PUT", uri, json_headers(len(body)), body)

    def get_scheduled_sql(self, project: str, name: str) -> ScheduledSQL:
        response = self._request(project, "GET", "/jobs/" + name, json_headers(0))
        return ScheduledSQL.from_dict(self._decode(response))

    def list_scheduled_sql(self, project, name, display_name, offset, size):
        """Return ``(jobs, total, count)`` for one page of scheduled SQL jobs."""
        params = {"jobName": name, "jobType": JobType.SCHEDULED_SQL.value}
        if display_name:
            params["displayName"] = display_name
        params["offset"] = str(offset)
        params["size"] = str(size)
        uri = "/jobs?" + urlencode(sorted(params.items()))
        data = self._decode(self._request(project, "GET", uri, json_headers(0))) or {}
        jobs = [ScheduledSQL.from_dict(item) for item in data.get("results") or []]
        return jobs, data.get("total", 0), data.get("count", 0)

    def get_scheduled_sql_job_instance(self, project, job_name, instance_id, result):
        flag = "true" if result else "false"
        uri = f"/jobs/{job_name}/jobinstances/{instance_id}?result={flag}"
        response = self._request(project, "GET", uri, json_headers(0))
        return ScheduledSQLJobInstance.from_dict(self._decode(response))

    def modify_scheduled_sql_job_instance_state(self, project, job_name, instance_id, state):
        """Rerun an instance; the only state that may be requested is RUNNING."""
        if _text(state) != ScheduledSQLState.RUNNING.value:
            raise ClientError(f"Invalid state: {_text(state)}, state must be RUNNING.")
        uri = f"/jobs/{job_name}/jobinstances/{instance_id}?state={_text(state)}"
        self._request(project, "PUT", uri, json_headers(0))

    def list_scheduled_sql_job_instances(self, project, job_name, status: InstanceStatus):
        """Return ``(instances, total, count)`` for the instances matching ``status``."""
        params = {
            "jobType": JobType.SCHEDULED_SQL.value,
            "start": str(status.from_time),
            "end": str(status.to_time),
            "offset": str(status.offset),
            "size": str(status.size),
        }
        if status.state:
            params["state"] = _text(status.state)
        uri = f"/jobs/{job_name}/jobinstances?" + urlencode(sorted(params.items()))
        data = self._decode(self._request(project, "GET", uri, json_headers(0))) or {}
        instances = [ScheduledSQLJobInstance.from_dict(item) for item in data.get("results") or []]
        return instances, data.get("total", 0), data.get("count", 0)