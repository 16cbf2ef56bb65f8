"""Server readiness check built on the request client."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from requests.adapters import BaseAdapter

from .client import SearchRequestClient
from .config import SearchClientConfig
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class CheckStatus(str, enum.Enum):
    NA = "na"
    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class CheckResult:
    status: CheckStatus
    details: str
    status_code: int | None = None


class ServerReadyCheck:
    """Report whether the configured search server answers with HTTP 200.

    An unset hostname is "not applicable" and makes no network call. Any
    other status, including the synthetic transport-failure status, is an
    error.
    """

    def __init__(
        self,
        config: SearchClientConfig,
        *,
        transport: BaseAdapter | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def get_result(self) -> CheckResult:
        if not self._config.hostname:
            return CheckResult(CheckStatus.NA, "Search server is not configured")

        try:
            url = self._config.base_url()
        except ConfigurationError as exc:
            return CheckResult(CheckStatus.ERROR, str(exc))

        with SearchRequestClient(self._config, transport=self._transport) as client:
            status = client.get(url).status_code

        logger.debug("Readiness of %s: HTTP %s", url, status)
        result_status = CheckStatus.OK if status == 200 else CheckStatus.ERROR
        return CheckResult(
            result_status,
            f"Connection to {url} returned status {status}",
            status_code=status,
        )
