"""Records of user-defined resources."""

from __future__ import annotations

from dataclasses import dataclass

from .api import ApiClient, _dump, _load, _wire, json_headers


@dataclass
class ResourceRecord:
    record_id: str = _wire("id", default="")
    tag: str = _wire("tag", default="")
    value: str = _wire("value", default="")
    create_time: int = _wire("createTime", default=0)
    last_modify_time: int = _wire("lastModifyTime", default=0)

    @classmethod
    def from_dict(cls, data) -> "ResourceRecord":
        return _load(cls, data)

    def to_dict(self) -> dict:
        return _dump(self)


class ResourceRecordClient(ApiClient):
    """Create, read, update, delete and list resource records."""

    def _send(self, method: str, uri: str, body: bytes) -> None:
        self._request("", method, uri, json_headers(len(body)), body)

    def create_resource_record(self, resource_name: str, record: ResourceRecord) -> None:
        self._send("POST", f"/resources/{resource_name}/records", self._encode(record.to_dict()))

    def create_resource_record_string(self, resource_name: str, record_str: str) -> None:
        self._send("POST", f"/resources/{resource_name}/records", record_str.encode("utf-8"))

    def update_resource_record(self, resource_name: str, record: ResourceRecord) -> None:
        uri = f"/resources/{resource_name}/records/{record.record_id}"
        self._send("PUT", uri, self._encode(record.to_dict()))

    def update_resource_record_string(self, resource_name: str, record_str: str) -> None:
        self._send("PUT", f"/resources/{resource_name}/records", record_str.encode("utf-8"))

    def delete_resource_record(self, resource_name: str, record_id: str) -> None:
        uri = f"/resources/{resource_name}/records?ids={record_id}"
        self._request("", "DELETE", uri, json_headers(0))

    def get_resource_record(self, resource_name: str, record_id: str) -> ResourceRecord:
        return ResourceRecord.from_dict(self._decode(self._get_record(resource_name, record_id)))

    def get_resource_record_string(self, resource_name: str, record_id: str) -> str:
        return self._get_record(resource_name, record_id).text

    def _get_record(self, resource_name: str, record_id: str):
        uri = f"/resources/{resource_name}/records/{record_id}"
        return self._request("", "GET", uri, json_headers(0))

    def list_resource_record(self, resource_name: str, offset: int, size: int):
        """Return ``(records, count, total)`` for one page of records."""
        uri = f"/resources/{resource_name}/records?offset={offset}&size={size}"
        data = self._decode(self._request("", "GET", uri, json_headers(0))) or {}
        records = [ResourceRecord.from_dict(item) for item in data.get("items") or []]
        return records, data.get("count", 0), data.get("total", 0)