# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
# pyright: reportMissingParameterType=false
from __future__ import annotations

from typing import Any, Callable, Mapping

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict


class RecordingAdapter(BaseAdapter):
    """Transport that records every request and replays canned replies."""

    def __init__(
        self,
        *,
        status: int = 200,
        content: bytes = b"",
        headers: Mapping[str, str] | None = None,
        reason: str = "OK",
        error: Exception | None = None,
        fail_when: Callable[[requests.PreparedRequest], bool] | None = None,
    ) -> None:
        super().__init__()
        self.status = status
        self.content = content
        self.headers = dict(headers or {"Content-Type": "application/json"})
        self.reason = reason
        self.error = error
        self.fail_when = fail_when
        self.calls: list[dict[str, Any]] = []

    @property
    def last_request(self) -> requests.PreparedRequest:
        return self.calls[-1]["request"]

    def send(
        self,
        request,
        stream=False,
        timeout=None,
        verify=True,
        cert=None,
        proxies=None,
    ):
        self.calls.append(
            {
                "request": request,
                "timeout": timeout,
                "verify": verify,
                "proxies": proxies,
            }
        )
        if self.error is not None and (
            self.fail_when is None or self.fail_when(request)
        ):
            raise self.error

        response = requests.Response()
        response.status_code = self.status
        response.headers = CaseInsensitiveDict(self.headers)
        response._content = self.content
        response.reason = self.reason
        response.url = request.url
        response.request = request
        return response

    def close(self):
        pass


@pytest.fixture
def transport():
    return RecordingAdapter()
