"""Quote API client for the company overview poller.

This module fetches one company overview per symbol from the external
quote API behind the fetch throttle and maps responses onto typed results.
"""

from __future__ import annotations

from typing import Any

import httpx

from core.config import QuoteApiConfig
from core.constants import QUOTE_ERROR_FIELDS
from core.errors import ExternalApiError
from core.logging_config import get_logger
from core.types import QuoteResult
from runtime.throttle import Throttle

_LOGGER = get_logger(__name__)


class QuoteApiClient:
    """Throttled HTTP client for the company overview endpoint."""

    def __init__(
        self,
        config: QuoteApiConfig,
        throttle: Throttle,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._throttle = throttle
        self._http_client = http_client or httpx.Client(
            timeout=httpx.Timeout(config.timeout_seconds),
            follow_redirects=True,
        )

    def fetch_overview(self, symbol: str) -> QuoteResult:
        """Fetch the company overview for one symbol.

        Args:
            symbol: Ticker symbol.

        Returns:
            Result holding the record, an error message, or neither
            when the API returned no data.
        """
        self._throttle.acquire()
        try:
            payload = self._get_payload(symbol)
        except ExternalApiError as error:
            return QuoteResult(symbol=symbol, error=str(error))
        if not payload:
            return QuoteResult(symbol=symbol)
        for error_field in QUOTE_ERROR_FIELDS:
            if error_field in payload:
                return QuoteResult(symbol=symbol, error=str(payload[error_field]))
        return QuoteResult(symbol=symbol, record=payload)

    def close(self) -> None:
        self._http_client.close()

    def _get_payload(self, symbol: str) -> dict[str, Any] | None:
        params = {"function": self._config.function.upper(), "symbol": symbol}
        if self._config.api_key:
            params["apikey"] = self._config.api_key
        _LOGGER.debug("quote_request", symbol=symbol)
        try:
            response = self._http_client.get(self._config.url, params=params)
            response.raise_for_status()
        except httpx.HTTPError as error:
            raise ExternalApiError(f"Quote API request failed for '{symbol}': {error}") from error
        if not response.content.strip():
            return None
        try:
            payload = response.json()
        except ValueError as error:
            raise ExternalApiError(
                f"Quote API returned invalid JSON for '{symbol}': {error}"
            ) from error
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise ExternalApiError(
                f"Quote API returned {type(payload).__name__} for '{symbol}', expected object."
            )
        return payload
