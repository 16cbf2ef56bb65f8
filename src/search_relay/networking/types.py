"""Value types shared by the signer and the request client."""

from __future__ import annotations

import json as _json
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import IO, Any, Mapping

from requests.structures import CaseInsensitiveDict

# Status code of a response fabricated because no HTTP reply was received.
# Real HTTP statuses start at 100, so 0 can never collide with one.
TRANSPORT_FAILURE_STATUS = 0

Body = bytes | str


def _frozen_headers(headers: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(CaseInsensitiveDict(headers or {}))


def _empty_meta() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Credentials:
    """Key pair used for a single signing operation."""

    key_id: str
    secret_key: str = field(repr=False)
    session_token: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class OutboundRequest:
    """An HTTP request as built by the client, before transmission.

    ``headers`` compare case-insensitively. ``files`` holds multipart parts
    (part name to readable binary stream) and is mutually exclusive with
    ``body``.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Body | None = None
    files: Mapping[str, IO[bytes]] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _frozen_headers(self.headers))
        if self.files is not None:
            if self.body is not None:
                raise ValueError("body and files are mutually exclusive")
            object.__setattr__(self, "files", MappingProxyType(dict(self.files)))

    @property
    def is_multipart(self) -> bool:
        return self.files is not None

    def body_bytes(self) -> bytes:
        """Return the body encoded as bytes (empty when there is none)."""
        if self.body is None:
            return b""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    def with_headers(self, headers: Mapping[str, str]) -> OutboundRequest:
        """Return a copy with ``headers`` set on top of the current ones."""
        merged = CaseInsensitiveDict(self.headers)
        merged.update(headers)
        return replace(self, headers=merged)


@dataclass(frozen=True)
class Response:
    """Uniform outcome of every call made through the client.

    A ``status_code`` of ``TRANSPORT_FAILURE_STATUS`` marks a synthetic
    response: the server was never reached, headers and body are empty, and
    ``meta["final_error"]`` names the transport fault.
    """

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    meta: Mapping[str, Any] = field(default_factory=_empty_meta)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", _frozen_headers(self.headers))
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    @classmethod
    def transport_failure(cls, meta: Mapping[str, Any] | None = None) -> Response:
        return cls(status_code=TRANSPORT_FAILURE_STATUS, meta=meta or {})

    @property
    def is_transport_failure(self) -> bool:
        return self.status_code == TRANSPORT_FAILURE_STATUS

    @property
    def ok(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is empty or not valid JSON.
        """
        return _json.loads(self.body)
