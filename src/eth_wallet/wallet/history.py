"""Transaction history from an Etherscan-compatible explorer API.

Uses the explorer's REST API directly via httpx.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from eth_wallet.exceptions import NetworkError, ProviderError
from eth_wallet.wallet.models import HistoricalTransaction

logger = logging.getLogger("eth_wallet.wallet.history")

ETHERSCAN_API_BASE = "https://api.etherscan.io/api"


class EtherscanHistory:
    """Fetches the ``account/txlist`` records for an address."""

    def __init__(
        self,
        base_url: str = ETHERSCAN_API_BASE,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    def fetch(self, address: str, api_key: str) -> list[HistoricalTransaction]:
        """Return raw (un-normalized) transactions for *address*.

        Raises
        ------
        NetworkError
            If the explorer cannot be reached.
        ProviderError
            On an HTTP error, a non-``"1"`` status, or an unparsable body.
        """
        params = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "sort": "desc",
            "apikey": api_key,
        }
        logger.debug(f"Fetching transaction history for {address}")
        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            resp = client.get(self.base_url, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"failed to fetch transactions: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError("failed to fetch transactions") from exc
        finally:
            if self._client is None:
                client.close()

        try:
            body = resp.json()
        except ValueError as exc:
            raise ProviderError("failed to parse transaction history") from exc
        if not isinstance(body, dict):
            raise ProviderError("failed to parse transaction history")

        if body.get("status") != "1":
            message = body.get("message") or "unknown error"
            raise ProviderError(f"failed to fetch transactions from Etherscan: {message}")

        result = body.get("result")
        if not isinstance(result, list):
            raise ProviderError("failed to parse transaction history")
        try:
            return [HistoricalTransaction.model_validate(item) for item in result]
        except ValidationError as exc:
            raise ProviderError("failed to parse transaction history") from exc
