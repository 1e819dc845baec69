"""Web3 facade over the configured Ethereum JSON-RPC node."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from web3 import Web3

from eth_wallet.exceptions import ChainConnectionError, ConfigError, NetworkError
from eth_wallet.wallet.models import SignedTransaction

logger = logging.getLogger("eth_wallet.wallet.provider")


class Web3Provider:
    """Lazily connects to a single RPC endpoint and reuses the connection.

    The connection is created on first use; a failed attempt is not cached,
    so a later call dials again.  Construct one per process and inject it
    into :class:`~eth_wallet.wallet.manager.WalletManager`.
    """

    def __init__(self, rpc_url: str, timeout: float = 30.0) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._web3: Optional[Web3] = None
        self._lock = threading.Lock()

    def get_web3(self) -> Web3:
        """Return the shared Web3 instance, connecting on first call."""
        if self._web3 is not None:
            return self._web3

        with self._lock:
            if self._web3 is None:
                if not self.rpc_url:
                    raise ConfigError(
                        "Ethereum RPC URL not set. Please set the ETH_RPC_URL environment variable"
                    )
                w3 = Web3(Web3.HTTPProvider(self.rpc_url, request_kwargs={"timeout": self.timeout}))
                if not w3.is_connected():
                    raise ChainConnectionError("failed to connect to Ethereum node")
                logger.debug("Connected to Ethereum node")
                self._web3 = w3
        return self._web3

    def _call(self, what: str, fn):
        w3 = self.get_web3()
        try:
            return fn(w3)
        except Exception as exc:
            raise NetworkError(f"failed to {what}: {exc}") from exc

    def get_balance(self, address: str) -> int:
        """Balance of *address* in wei at the latest block."""
        checksum = Web3.to_checksum_address(address)
        return self._call("retrieve balance", lambda w3: w3.eth.get_balance(checksum))

    def get_nonce(self, address: str) -> int:
        """Pending transaction count for *address*."""
        checksum = Web3.to_checksum_address(address)
        return self._call(
            "retrieve nonce", lambda w3: w3.eth.get_transaction_count(checksum, "pending")
        )

    def suggest_gas_price(self) -> int:
        return self._call("suggest gas price", lambda w3: w3.eth.gas_price)

    def get_chain_id(self) -> int:
        return self._call("retrieve chain id", lambda w3: w3.eth.chain_id)

    def broadcast(self, signed: SignedTransaction) -> None:
        self._call("send transaction", lambda w3: w3.eth.send_raw_transaction(signed.raw))
        logger.info(f"Broadcast transaction {signed.hash}")
