"""Exceptions raised by the log service clients."""

from __future__ import annotations

import json
from typing import Optional


class LogError(Exception):
    """An error reported by the log service."""

    def __init__(self, code: str = "", message: str = "", request_id: str = "", http_code: int = 0) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.request_id = request_id
        self.http_code = http_code

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" if self.code else self.message


class ClientError(LogError):
    """An error raised on the client side, such as a payload that cannot be decoded."""

    def __init__(self, message: str) -> None:
        super().__init__(code="ClientError", message=message)


class BadResponseError(Exception):
    """A response from the service whose body is not valid JSON."""

    def __init__(self, resp_body: str, resp_header: Optional[dict], http_code: int) -> None:
        super().__init__(resp_body)
        self.resp_body = resp_body
        self.resp_header = resp_header
        self.http_code = http_code

    def __str__(self) -> str:
        header = None if self.resp_header is None else dict(sorted(self.resp_header.items()))
        return json.dumps(
            {"RespBody": self.resp_body, "RespHeader": header, "HTTPCode": self.http_code},
            indent=4,
            ensure_ascii=False,
        )