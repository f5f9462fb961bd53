"""Shard, cursor and sub-store operations on logstores."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from .api import ApiClient, Response, json_headers
from .errors import ClientError, LogError

logger = logging.getLogger(__name__)

_EMPTY = {"x-log-bodyrawsize": "0"}
_DEFLATE = {"Accept-Encoding": "deflate"}
_DECODE_FAILURE = "failed to remove config from machine group"
_INTEGER = re.compile(r"[+-]?\d+")


def _service_error(response: Response, fallback: Optional[str] = None) -> LogError:
    """Build the error a failed response describes."""
    try:
        import json

        data = json.loads(response.body)
    except (ValueError, UnicodeDecodeError):
        data = None
    if not isinstance(data, dict):
        logger.debug("unexpected error response: %s", response.text)
        return LogError(message=fallback or "", http_code=response.status_code)
    return LogError(
        code=str(data.get("errorCode", data.get("code", ""))),
        message=str(data.get("errorMessage", data.get("message", ""))),
        request_id=str(data.get("requestId", "")),
        http_code=response.status_code,
    )


class StoreClient(ApiClient):
    """Logstore shard, cursor and sub-store calls."""

    def _split_or_merge(self, project, logstore, shard_id, params) -> list:
        uri = f"/logstores/{logstore}/shards/{shard_id}?" + urlencode(sorted(params.items()))
        return self._decode(self._request(project, "POST", uri, _EMPTY)) or []

    def split_shard(self, project: str, logstore: str, shard_id: int, split_key: str) -> list:
        """Split a shard at ``split_key`` and return the resulting shards."""
        return self._split_or_merge(project, logstore, shard_id, {"action": "split", "key": split_key})

    def merge_shards(self, project: str, logstore: str, shard_id: int) -> list:
        """Merge a shard with its neighbour and return the resulting shards."""
        return self._split_or_merge(project, logstore, shard_id, {"action": "merge"})

    def get_cursor_time(self, project: str, logstore: str, shard_id: int, cursor: str) -> datetime:
        """Return the server receive time of the data at ``cursor``."""
        params = {"cursor": cursor, "type": "cursor_time"}
        uri = f"/logstores/{logstore}/shards/{shard_id}?" + urlencode(sorted(params.items()))
        data = self._decode(self._request(project, "GET", uri, _EMPTY)) or {}
        return datetime.fromtimestamp(int(data.get("cursor_time", 0)), tz=timezone.utc)

    def get_prev_cursor_time(self, project: str, logstore: str, shard_id: int, cursor: str) -> datetime:
        """Return the receive time of the data just before ``cursor``."""
        try:
            raw = base64.b64decode(cursor, validate=True).decode("ascii")
        except (binascii.Error, ValueError) as exc:
            raise ClientError(f"invalid cursor {cursor!r}: {exc}") from exc
        if not _INTEGER.fullmatch(raw):
            raise ClientError(f"invalid cursor value {raw!r}")
        previous = str(int(raw) - 1).encode("ascii")
        prev_cursor = base64.b64encode(previous).decode("ascii")
        return self.get_cursor_time(project, logstore, shard_id, prev_cursor)

    def _get_checked(self, project: str, uri: str) -> Any:
        response = self._request(project, "GET", uri, _EMPTY)
        if response.status_code != 200:
            raise _service_error(response, _DECODE_FAILURE)
        return self._decode(response)

    def list_sub_store(self, project: str, logstore: str) -> list:
        data = self._get_checked(project, f"/logstores/{logstore}/substores") or {}
        return list(data.get("substores") or [])

    def get_sub_store(self, project: str, logstore: str, name: str) -> dict:
        data = self._get_checked(project, f"/logstores/{logstore}/substores/{name}")
        if not isinstance(data, dict):
            raise ClientError("sub store response is not a JSON object")
        return data

    def _send_checked(self, project, method, uri, headers, body=None) -> None:
        response = self._request(project, method, uri, headers, body)
        if response.status_code != 200:
            raise _service_error(response)

    def create_sub_store(self, project: str, logstore: str, sub_store: Mapping[str, Any]) -> None:
        body = self._encode(dict(sub_store))
        uri = f"/logstores/{logstore}/substores"
        self._send_checked(project, "POST", uri, {**json_headers(len(body)), **_DEFLATE}, body)

    def update_sub_store(self, project: str, logstore: str, sub_store: Mapping[str, Any]) -> None:
        body = self._encode(dict(sub_store))
        uri = f"/logstores/{logstore}/substores/{sub_store.get('name', '')}"
        self._send_checked(project, "PUT", uri, {**json_headers(len(body)), **_DEFLATE}, body)

    def delete_sub_store(self, project: str, logstore: str, name: str) -> None:
        self._send_checked(project, "DELETE", f"/logstores/{logstore}/substores/{name}", _EMPTY)

    def get_sub_store_ttl(self, project: str, logstore: str) -> int:
        data = self._get_checked(project, f"/logstores/{logstore}/substores/storage/ttl") or {}
        return int(data.get("ttl", 0))

    def update_sub_store_ttl(self, project: str, logstore: str, ttl: int) -> None:
        uri = f"/logstores/{logstore}/substores/storage/ttl?ttl={int(ttl)}"
        self._send_checked(project, "PUT", uri, _EMPTY)