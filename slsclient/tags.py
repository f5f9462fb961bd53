"""Tagging of service resources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from .api import ApiClient, _dump, _load, _wire, json_headers


@dataclass
class ResourceTag:
    key: str = _wire("key", default="")
    value: str = _wire("value", default="")


@dataclass
class ResourceFilterTag:
    key: Optional[str] = _wire("key")
    value: Optional[str] = _wire("value")


@dataclass
class ResourceTags:
    """Tags to attach; only projects can be tagged."""

    resource_type: str = _wire("resourceType", default="")
    resource_id: Optional[list] = _wire("resourceId")
    tags: Optional[list] = _wire("tags", nested=ResourceTag)


@dataclass
class ResourceUnTags:
    """Tag keys to remove from resources."""

    resource_type: str = _wire("resourceType", default="")
    resource_id: Optional[list] = _wire("resourceId")
    tags: Optional[list] = _wire("tags")


@dataclass
class ResourceTagResponse:
    resource_type: str = _wire("resourceType", default="")
    resource_id: str = _wire("resourceId", default="")
    tag_key: str = _wire("tagKey", default="")
    tag_value: str = _wire("tagValue", default="")


def new_project_tags(project: str, tags: list) -> ResourceTags:
    return ResourceTags(resource_type="project", resource_id=[project], tags=tags)


def new_project_untags(project: str, tags: list) -> ResourceUnTags:
    return ResourceUnTags(resource_type="project", resource_id=[project], tags=tags)


class TagClient(ApiClient):
    """Tag, untag and list tagged resources."""

    def _post(self, project: str, uri: str, payload) -> None:
        body = self._encode(_dump(payload))
        self._request(project, "POST", uri, json_headers(len(body)), body)

    def tag_resources(self, project: str, tags: ResourceTags) -> None:
        self._post(project, "/tag", tags)

    def untag_resources(self, project: str, tags: ResourceUnTags) -> None:
        self._post(project, "/untag", tags)

    def list_tag_resources(self, project, resource_type, resource_ids, tags, next_token):
        """Return ``(tag resources, next token)`` for resources matching ``tags``."""
        tags_json = self._encode(None if tags is None else [_dump(tag) for tag in tags])
        params = {
            "tags": tags_json.decode("utf-8"),
            "resourceType": resource_type,
            "resourceId": self._encode(resource_ids).decode("utf-8"),
        }
        if next_token:
            params["nextToken"] = next_token
        uri = "/tags?" + urlencode(sorted(params.items()))
        data = self._decode(self._request(project, "GET", uri, json_headers(0))) or {}
        resources = [_load(ResourceTagResponse, item) for item in data.get("tagResources") or []]
        return resources, data.get("nextToken", "")