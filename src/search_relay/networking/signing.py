"""AWS Signature Version 4 request signing.

The signer is a pure transform: it takes an ``OutboundRequest`` and returns a
signed copy. It performs no I/O and keeps no state besides the service name
and the clock used to stamp requests.
"""

from __future__ import annotations

import hmac
import logging
from datetime import datetime, timezone
from hashlib import sha256
from typing import Callable, Mapping
from urllib.parse import SplitResult, parse_qsl, quote, urlsplit

from requests.utils import requote_uri

from .errors import SigningError
from .types import Credentials, OutboundRequest

logger = logging.getLogger(__name__)

SERVICE_NAME = "es"
ALGORITHM = "AWS4-HMAC-SHA256"
SIGV4_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"

HEADERS_EXCLUDED_FROM_SIGNING: tuple[str, ...] = (
    "accept",
    "accept-encoding",
    "authorization",
    "connection",
    "expect",
    "user-agent",
    "x-amzn-trace-id",
)
DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _hmac(key: bytes, value: str) -> bytes:
    return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()


def _remove_dot_segments(path: str) -> str:
    """Remove ``.``/``..`` segments and repeated slashes (RFC 3986 5.2.4)."""

    output: list[str] = []
    for segment in path.split("/"):
        if segment == ".":
            continue
        elif segment != "..":
            output.append(segment)
        elif output:
            output.pop()
    if path.startswith("/") and (not output or output[0]):
        output.insert(0, "")
    if output and path.endswith(("/.", "/..")):
        output.append("")
    return "/".join(output).replace("//", "/")


class SigV4Signer:
    """Sign requests for an AWS-hosted search domain.

    Args:
        service: Signing name of the target service.
        clock: Returns the current time; override it to sign with a fixed
            timestamp.
    """

    def __init__(
        self,
        service: str = SERVICE_NAME,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._service = service
        self._clock = clock

    def sign(
        self,
        request: OutboundRequest,
        credentials: Credentials,
        region: str,
    ) -> OutboundRequest:
        """Return a signed copy of ``request``.

        The copy carries ``Host``, ``X-Amz-Date`` (and ``X-Amz-Security-Token``
        for temporary credentials) plus the ``Authorization`` header, which
        replaces any existing one. ``request`` itself is left untouched.

        Raises:
            SigningError: If the request has no method or URL, targets a URL
                without a host, carries a multipart payload, or the
                credentials/region are empty.
        """
        if not request.method or not request.url:
            raise SigningError("cannot sign a request without method and URL")
        if request.is_multipart:
            raise SigningError("multipart payloads cannot be signed")
        if not (credentials.key_id and credentials.secret_key and region):
            raise SigningError("key id, secret key and region are required")

        uri = urlsplit(requote_uri(request.url))
        if not uri.hostname:
            raise SigningError(f"cannot sign a URL without host: {request.url!r}")

        timestamp = self._clock().astimezone(timezone.utc)
        amz_date = timestamp.strftime(SIGV4_TIMESTAMP_FORMAT)

        required: dict[str, str] = {
            "Host": self._normalize_host(uri),
            "X-Amz-Date": amz_date,
        }
        if credentials.session_token:
            required["X-Amz-Security-Token"] = credentials.session_token
        stamped = request.with_headers(required)

        scope = self._scope(amz_date, region)
        fields = self._normalize_signing_fields(stamped.headers)
        canonical = self.canonical_request(stamped, fields)
        to_sign = self.string_to_sign(canonical, amz_date, scope)
        signature = self._signature(
            to_sign, credentials.secret_key, amz_date, region
        )

        authorization = (
            f"{ALGORITHM} Credential={credentials.key_id}/{scope}, "
            f"SignedHeaders={';'.join(fields)}, Signature={signature}"
        )
        logger.debug(
            "Signed %s %s for scope %s", request.method, request.url, scope
        )
        return stamped.with_headers({"Authorization": authorization})

    def canonical_request(
        self, request: OutboundRequest, fields: Mapping[str, str]
    ) -> str:
        """Build the SigV4 canonical request.

        Layout::

            <HTTPMethod>\\n
            <CanonicalURI>\\n
            <CanonicalQueryString>\\n
            <CanonicalHeaders>\\n
            <SignedHeaders>\\n
            <HashedPayload>
        """
        # Sign the path as it goes on the wire, after requests re-quotes it.
        uri = urlsplit(requote_uri(request.url))
        canonical_fields = "".join(
            f"{name}:{' '.join(value.split())}\n" for name, value in fields.items()
        )
        return (
            f"{request.method.upper()}\n"
            f"{self._format_canonical_path(uri.path)}\n"
            f"{self._format_canonical_query(uri.query)}\n"
            f"{canonical_fields}\n"
            f"{';'.join(fields)}\n"
            f"{sha256(request.body_bytes()).hexdigest()}"
        )

    def string_to_sign(self, canonical_request: str, amz_date: str, scope: str) -> str:
        return (
            f"{ALGORITHM}\n"
            f"{amz_date}\n"
            f"{scope}\n"
            f"{sha256(canonical_request.encode()).hexdigest()}"
        )

    def _signature(
        self, string_to_sign: str, secret_key: str, amz_date: str, region: str
    ) -> str:
        # DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        # DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        # DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        # SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        k_date = _hmac(f"AWS4{secret_key}".encode(), amz_date[0:8])
        k_region = _hmac(k_date, region)
        k_service = _hmac(k_region, self._service)
        k_signing = _hmac(k_service, "aws4_request")
        return _hmac(k_signing, string_to_sign).hex()

    def _scope(self, amz_date: str, region: str) -> str:
        # <YYYYMMDD>/<region>/<service>/aws4_request
        return f"{amz_date[0:8]}/{region}/{self._service}/aws4_request"

    def _normalize_signing_fields(
        self, headers: Mapping[str, str]
    ) -> dict[str, str]:
        normalized = {
            name.lower(): str(value)
            for name, value in headers.items()
            if name.lower() not in HEADERS_EXCLUDED_FROM_SIGNING
        }
        return dict(sorted(normalized.items()))

    @staticmethod
    def _normalize_host(uri: SplitResult) -> str:
        host = uri.hostname or ""
        if ":" in host:
            host = f"[{host}]"
        if uri.port is not None and DEFAULT_PORTS.get(uri.scheme) != uri.port:
            return f"{host}:{uri.port}"
        return host

    @staticmethod
    def _format_canonical_path(path: str) -> str:
        if not path:
            return "/"
        return quote(_remove_dot_segments(path), safe="/~")

    @staticmethod
    def _format_canonical_query(query: str) -> str:
        if not query:
            return ""
        pairs = (
            (quote(key, safe="-_.~"), quote(value, safe="-_.~"))
            for key, value in parse_qsl(query, keep_blank_values=True)
        )
        # Sorted on the encoded forms.
        return "&".join(f"{key}={value}" for key, value in sorted(pairs))
