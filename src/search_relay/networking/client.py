"""Synchronous request client for a search-engine endpoint.

Every outbound call to the search backend goes through
``SearchRequestClient``. It attaches API-key authentication, signs requests
when configured to, routes through the outbound proxy and normalizes every
outcome into a ``Response``. Transport faults never escape as exceptions;
they come back as a synthetic response whose status code is
``TRANSPORT_FAILURE_STATUS``.
"""

from __future__ import annotations

import logging
from time import monotonic
from typing import IO, Any

import requests
from requests.adapters import BaseAdapter

from .config import SearchClientConfig
from .errors import TransportFailure
from .proxy import proxies_for
from .signing import SigV4Signer
from .types import Body, OutboundRequest, Response

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
UPLOAD_FIELD_NAME = "upload_file"


class SearchRequestClient:
    """Request client for the search backend (sync).

    Safe for concurrent use: the configuration is frozen and each call
    prepares its own request and passes timeout and proxies explicitly to
    ``Session.send``, so no per-call state lands on the shared session.
    """

    def __init__(
        self,
        config: SearchClientConfig,
        *,
        transport: BaseAdapter | None = None,
        signer: SigV4Signer | None = None,
    ) -> None:
        """Create a new SearchRequestClient.

        Args:
            config: Connection, authentication and proxy settings.
            transport: Optional ``requests`` adapter used for every request
                instead of the default HTTP adapter, e.g. to record requests
                and return canned responses in tests.
            signer: Signer applied when ``config.signing`` is set.
        """
        self._config = config
        self._signer = signer or SigV4Signer()
        self._session = requests.Session()
        # Proxy routing comes from config only, never from the environment.
        self._session.trust_env = False
        if transport is not None:
            self._session.mount("http://", transport)
            self._session.mount("https://", transport)

    @property
    def config(self) -> SearchClientConfig:
        return self._config

    def _get_timeout(self) -> tuple[float, None] | None:
        """Resolve the connect-only timeout passed to the transport."""
        if not self._config.connect_timeout_seconds:
            return None
        return (self._config.connect_timeout_seconds, None)

    def _authorization_headers(self) -> dict[str, str]:
        if self._config.api_key:
            return {"Authorization": f"ApiKey {self._config.api_key}"}
        return {}

    def _build_request(
        self,
        method: str,
        url: str,
        *,
        body: Body | None = None,
        json_body: bool = False,
    ) -> OutboundRequest:
        """Build and, when configured, sign a non-upload request."""
        headers = self._authorization_headers()
        if json_body:
            headers["content-type"] = JSON_CONTENT_TYPE

        request = OutboundRequest(method=method, url=url, headers=headers, body=body)
        if self._config.signing:
            # Raises ConfigurationError before anything is sent.
            credentials = self._config.credentials()
            assert self._config.region is not None
            request = self._signer.sign(request, credentials, self._config.region)
        return request

    def _prepare(self, request: OutboundRequest) -> requests.PreparedRequest:
        headers = dict(request.headers)
        if self._config.user_agent:
            headers.setdefault("User-Agent", self._config.user_agent)
        files = None
        if request.files is not None:
            files = dict(request.files)
        return requests.Request(
            method=request.method,
            url=request.url,
            headers=headers,
            data=None if request.body is None else request.body_bytes(),
            files=files,
        ).prepare()

    def _build_meta(
        self,
        request: OutboundRequest,
        response: requests.Response | None,
        timeout: tuple[float, None] | None,
        started: float,
        final_error: str | None = None,
    ) -> dict[str, Any]:
        """Construct metadata dictionary from request and response."""
        meta: dict[str, Any] = {}
        meta["method"] = request.method
        meta["url"] = request.url
        meta["timeout_s"] = timeout
        meta["elapsed_s"] = monotonic() - started
        if response is not None:
            meta["url"] = response.url or request.url
            meta["reason"] = response.reason
        if final_error is not None:
            meta["final_error"] = final_error
        return meta

    def _handle_request_exception(
        self,
        request: OutboundRequest,
        e: requests.exceptions.RequestException,
        timeout: tuple[float, None] | None,
        started: float,
    ) -> Response:
        """Map a requests exception to a synthetic response."""
        failure = TransportFailure(str(e), cause=e)
        logger.warning(
            "%s %s failed without a response: %s",
            request.method,
            request.url,
            failure.kind,
        )
        meta = self._build_meta(
            request, None, timeout, started, final_error=failure.kind
        )
        meta["error"] = str(failure)
        return Response.transport_failure(meta)

    def _send(self, request: OutboundRequest) -> Response:
        """Transmit once and normalize the outcome.

        HTTP error statuses are returned as they are; interpreting them is
        up to the caller.
        """
        timeout = self._get_timeout()
        started = monotonic()
        signed = (
            "X-Amz-Date" in request.headers and "Authorization" in request.headers
        )
        logger.debug("%s %s (signed=%s)", request.method, request.url, signed)
        try:
            prepared = self._prepare(request)
            response = self._session.send(
                prepared,
                timeout=timeout,
                proxies=proxies_for(request.url, self._config),
                verify=self._config.verify_tls,
                allow_redirects=True,
            )
            # Reading the body here surfaces truncated or undecodable payloads.
            content = response.content
        except requests.exceptions.RequestException as exc:
            return self._handle_request_exception(request, exc, timeout, started)

        meta = self._build_meta(request, response, timeout, started)
        logger.debug(
            "%s %s -> %s in %.3fs",
            request.method,
            request.url,
            response.status_code,
            meta["elapsed_s"],
        )
        return Response(
            status_code=response.status_code,
            headers=response.headers,
            body=content or b"",
            meta=meta,
        )

    def get(self, url: str) -> Response:
        """Perform an HTTP GET request.

        Args:
            url: Absolute URL to request.

        Returns:
            Response with the backend status, or a synthetic transport-failure
            response.

        Raises:
            ConfigurationError: Signing is enabled but incomplete.
        """
        return self._send(self._build_request("GET", url))

    def delete(self, url: str) -> Response:
        """Perform an HTTP DELETE request."""
        return self._send(self._build_request("DELETE", url))

    def put(self, url: str, body: Body | None = None) -> Response:
        """Perform an HTTP PUT request with a JSON content type.

        Args:
            url: Absolute URL to request.
            body: Raw JSON document; sent as is.
        """
        return self._send(self._build_request("PUT", url, body=body, json_body=True))

    def post(self, url: str, body: Body | None) -> Response:
        """Perform an HTTP POST request with a JSON content type.

        Args:
            url: Absolute URL to request.
            body: Raw JSON document; sent as is.
        """
        return self._send(
            self._build_request("POST", url, body=body, json_body=True)
        )

    def post_file(
        self, url: str, stream: IO[bytes], filename: str | None = None
    ) -> Response:
        """POST a file as a multipart body with a single ``upload_file`` part.

        Uploads carry the API key header but are never signed.

        Args:
            url: Absolute URL to post the file to.
            stream: Readable binary stream, read to the end.
            filename: Optional filename for the part; defaults to the
                stream's ``name`` attribute when it has one.
        """
        part: Any = stream if filename is None else (filename, stream)
        request = OutboundRequest(
            method="POST",
            url=url,
            headers=self._authorization_headers(),
            files={UPLOAD_FIELD_NAME: part},
        )
        return self._send(request)

    def close(self) -> None:
        """Close pooled connections."""
        self._session.close()

    def __enter__(self) -> SearchRequestClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

