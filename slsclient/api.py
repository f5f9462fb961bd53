"""Service constants, the HTTP response model and shared request plumbing."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from .errors import ClientError

VERSION = "0.6.0"
SIGNATURE_METHOD = "hmac-sha1"

# The log head offset: the offset assigned to the next message of a shard.
OFFSET_NEWEST = "end"
# The oldest offset still available in a shard.
OFFSET_OLDEST = "begin"

PROGRESS_HEADER = "X-Log-Progress"
GET_LOGS_COUNT_HEADER = "X-Log-Count"
REQUEST_ID_HEADER = "x-log-requestid"
GET_LOGS_QUERY_INFO = "X-Log-Query-Info"
HAS_SQL_HEADER = "x-log-has-sql"
ETL_VERSION = 2
ETL_TYPE = "ETL"
ETL_SINKS_TYPE = "AliyunLOG"


@dataclass
class Response:
    """A completed HTTP response from the log service."""

    status_code: int = 200
    headers: dict = field(default_factory=dict)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


# requester(project, method, uri, headers, body) -> Response
# It signs and sends the request and raises LogError for failed calls.
Requester = Callable[[str, str, str, Mapping[str, str], Optional[bytes]], Response]


def json_headers(body_size: int) -> dict:
    """Headers for a request that carries a JSON body of ``body_size`` bytes."""
    return {
        "x-log-bodyrawsize": str(body_size),
        "Content-Type": "application/json",
    }


class ApiClient:
    """Base for the service clients; every call goes through ``requester``."""

    def __init__(self, requester: Requester) -> None:
        self._requester = requester

    def _request(
        self,
        project: str,
        method: str,
        uri: str,
        headers: Mapping[str, str],
        body: Optional[bytes] = None,
    ) -> Response:
        return self._requester(project, method, uri, dict(headers), body)

    @staticmethod
    def _encode(payload: Any) -> bytes:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    @staticmethod
    def _decode(response: Response) -> Any:
        try:
            return json.loads(response.body)
        except (ValueError, UnicodeDecodeError) as exc:
            raise ClientError(f"invalid JSON in response: {exc}") from exc


def _wire(name, *, omitempty=False, nested=None, default=None, default_factory=None):
    """Declare a dataclass field with its JSON key."""
    metadata = {"wire": name, "omitempty": omitempty, "nested": nested}
    if default_factory is not None:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _dump_value(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return _dump(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_dump_value(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump_value(item) for key, item in value.items()}
    return value


def _dump(obj: Any) -> dict:
    out = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.metadata.get("omitempty") and not value:
            continue
        out[f.metadata.get("wire", f.name)] = _dump_value(value)
    return out


def _load_value(nested: Any, value: Any) -> Any:
    if nested is None or value is None:
        return value
    if isinstance(value, list):
        return [_load_value(nested, item) for item in value]
    if isinstance(nested, type) and issubclass(nested, Enum):
        return nested(value)
    return _load(nested, value)


def _load(cls: Any, data: Any) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ClientError(f"cannot decode {cls.__name__} from {type(data).__name__}")
    kwargs = {}
    for f in fields(cls):
        key = f.metadata.get("wire", f.name)
        if key in data:
            kwargs[f.name] = _load_value(f.metadata.get("nested"), data[key])
    return cls(**kwargs)