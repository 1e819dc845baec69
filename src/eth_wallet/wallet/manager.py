"""High-level wallet manager used by the CLI."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Context, Decimal, InvalidOperation
from typing import Optional

from web3 import Web3

from eth_wallet.config import WalletSettings
from eth_wallet.exceptions import (
    ConfigError,
    InvalidAddressError,
    InvalidAmountError,
    NoWalletError,
    ProviderError,
    WalletExistsError,
    WalletNotFoundError,
)
from eth_wallet.wallet import crypto
from eth_wallet.wallet.history import EtherscanHistory
from eth_wallet.wallet.keystore import KeyStore
from eth_wallet.wallet.models import HistoricalTransaction, UnsignedTransaction
from eth_wallet.wallet.provider import Web3Provider

logger = logging.getLogger("eth_wallet.wallet.manager")

# Fixed width, so string order equals chronological order.
HISTORY_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Wide enough for any uint256 wei amount at 18 decimals.
_WIDE = Context(prec=100)


# ---------------------------------------------------------------------------
# Unit and record conversion
# ---------------------------------------------------------------------------


def ether_to_wei(amount: str) -> int:
    """Convert a decimal ETH string to wei, truncating toward zero.

    ``"1.5"`` -> ``1500000000000000000``.
    """
    try:
        ether = Decimal(amount.strip())
    except (InvalidOperation, AttributeError) as exc:
        raise InvalidAmountError(f"invalid ETH amount: {amount!r}") from exc
    if not ether.is_finite() or ether < 0:
        raise InvalidAmountError(f"invalid ETH amount: {amount!r}")
    try:
        return Web3.to_wei(ether, "ether")
    except (ValueError, ArithmeticError) as exc:
        raise InvalidAmountError(f"invalid ETH amount: {amount!r}") from exc


def wei_to_ether(wei: int) -> Decimal:
    """Convert wei to ETH without losing any of the 18 decimals."""
    return Decimal(str(Web3.from_wei(wei, "ether")))


def format_ether(value: Decimal) -> str:
    """Render an ETH amount in plain notation (no exponent)."""
    return format(value.normalize(_WIDE), "f") if value else "0"


def format_timestamp(epoch: str) -> str:
    """Render epoch seconds as UTC ``YYYY-MM-DD HH:MM:SS``.

    Values that are not integers are returned unchanged.
    """
    try:
        ts = int(epoch)
        return datetime.fromtimestamp(ts, tz=timezone.utc).strftime(HISTORY_DATE_FORMAT)
    except (ValueError, OverflowError, OSError):
        return epoch


def normalize_history(records: list[HistoricalTransaction]) -> list[HistoricalTransaction]:
    """Convert timestamps and wei values, then sort newest first.

    Raises
    ------
    ProviderError
        If a record's value is not a wei amount.
    """
    normalized = []
    for record in records:
        if not (record.value.isascii() and record.value.isdigit()):
            raise ProviderError(f"unparsable value in transaction {record.hash}: {record.value!r}")
        try:
            value = format_ether(wei_to_ether(int(record.value)))
        except ValueError as exc:
            raise ProviderError(
                f"unparsable value in transaction {record.hash}: {record.value!r}"
            ) from exc
        normalized.append(
            record.model_copy(
                update={"timestamp": format_timestamp(record.timestamp), "value": value}
            )
        )
    return sorted(normalized, key=lambda r: r.timestamp, reverse=True)


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class WalletManager:
    """Orchestrates the key store, Web3 provider, and history provider.

    Parameters
    ----------
    keystore:
        Persistent store of named wallets.
    provider:
        Connection to the Ethereum node.  Shared for the process lifetime.
    history:
        Explorer client used by :meth:`history`.
    private_key:
        Optional externally supplied hex key.  When set it is the active
        wallet and the default wallet in the store is ignored.
    api_key:
        Explorer API key.
    """

    def __init__(
        self,
        keystore: KeyStore,
        provider: Web3Provider,
        history: Optional[EtherscanHistory] = None,
        private_key: str = "",
        api_key: str = "",
    ) -> None:
        self.keystore = keystore
        self.provider = provider
        self.history_provider = history or EtherscanHistory()
        self._private_key = private_key
        self._api_key = api_key

    @classmethod
    def from_settings(cls, settings: WalletSettings) -> WalletManager:
        """Wire up every collaborator from :class:`WalletSettings`."""
        keystore = KeyStore(
            settings.wallets_path,
            settings.default_wallet_path,
            encryption_key=settings.encryption_key_bytes(),
        )
        provider = Web3Provider(settings.rpc_url, timeout=settings.http_timeout)
        history = EtherscanHistory(settings.explorer_api_url, timeout=settings.http_timeout)
        return cls(
            keystore,
            provider,
            history,
            private_key=settings.private_key.get_secret_value(),
            api_key=settings.etherscan_api_key.get_secret_value(),
        )

    # ------------------------------------------------------------------
    # Wallet lifecycle
    # ------------------------------------------------------------------

    def create(self, name: Optional[str] = None) -> tuple[str, str]:
        """Generate and store a new wallet.  Returns ``(name, address)``."""
        private_key, address = crypto.generate_key_pair()
        name = self._add(name, private_key)
        logger.info(f"Wallet '{name}' created: {address}")
        return name, address

    def import_key(self, private_key_hex: str, name: Optional[str] = None) -> tuple[str, str]:
        """Store an existing private key.  Returns ``(name, address)``.

        The key is validated before the store is touched, so an invalid key
        leaves the store unchanged.
        """
        private_key = crypto.parse_private_key(private_key_hex)
        address = crypto.derive_address(private_key)
        name = self._add(name, private_key)
        logger.info(f"Wallet '{name}' imported: {address}")
        return name, address

    def _add(self, name: Optional[str], private_key: bytes) -> str:
        with self.keystore.transaction() as store:
            name = (name or "").strip() or _next_wallet_name(store.wallets)
            if name in store.wallets:
                raise WalletExistsError(f"wallet '{name}' already exists")
            store.wallets[name] = self.keystore.seal(private_key)

        self.keystore.ensure_default(name)
        return name

    def list_wallets(self) -> list[dict]:
        """Return ``{name, address, is_default}`` for every stored wallet."""
        store = self.keystore.load()
        try:
            default = self.keystore.get_default()
        except WalletNotFoundError:
            default = None
        return [
            {
                "name": name,
                "address": crypto.derive_address(self.keystore.unseal(stored)),
                "is_default": name == default,
            }
            for name, stored in sorted(store.wallets.items())
        ]

    def set_default(self, name: str) -> None:
        self.keystore.set_default(name)

    # ------------------------------------------------------------------
    # Active wallet
    # ------------------------------------------------------------------

    def resolve_private_key(self) -> bytes:
        """Return the active wallet's key.

        Raises
        ------
        NoWalletError
            If no key is configured and no default wallet is stored.
        """
        if self._private_key:
            return crypto.parse_private_key(self._private_key)

        try:
            name = self.keystore.get_default()
        except WalletNotFoundError as exc:
            raise NoWalletError("wallet not found. Please create or import one") from exc

        stored = self.keystore.load().wallets.get(name)
        if stored is None:
            raise NoWalletError(f"default wallet '{name}' not found")
        return self.keystore.unseal(stored)

    def address(self) -> str:
        """The active wallet's checksummed address."""
        return crypto.derive_address(self.resolve_private_key())

    # ------------------------------------------------------------------
    # Chain operations
    # ------------------------------------------------------------------

    def get_balance(self) -> Decimal:
        """Active wallet balance in ETH."""
        balance_wei = self.provider.get_balance(self.address())
        return wei_to_ether(balance_wei)

    def send(self, recipient: str, amount: str) -> str:
        """Build, sign, and broadcast an ETH transfer.

        Every step is a single attempt; the first failure propagates and
        nothing is written locally.  Returns the transaction hash.
        """
        private_key = self.resolve_private_key()

        if not Web3.is_address(recipient):
            raise InvalidAddressError(f"invalid recipient address: {recipient!r}")
        to_address = Web3.to_checksum_address(recipient)
        value = ether_to_wei(amount)

        from_address = crypto.derive_address(private_key)
        nonce = self.provider.get_nonce(from_address)
        gas_price = self.provider.suggest_gas_price()
        chain_id = self.provider.get_chain_id()

        tx = UnsignedTransaction(nonce=nonce, to=to_address, value=value, gas_price=gas_price)
        signed = crypto.sign_transaction(tx, private_key, chain_id)
        self.provider.broadcast(signed)

        logger.info(f"Sent {amount} ETH from {from_address} to {to_address}: tx={signed.hash}")
        return signed.hash

    def history(self) -> list[HistoricalTransaction]:
        """Transactions of the active wallet, newest first."""
        address = self.address()
        if not self._api_key:
            raise ConfigError(
                "Etherscan API key not set. Please set ETHERSCAN_API_KEY environment variable"
            )
        records = self.history_provider.fetch(address, self._api_key)
        return normalize_history(records)


def _next_wallet_name(existing: dict[str, str]) -> str:
    n = len(existing) + 1
    while f"wallet{n}" in existing:
        n += 1
    return f"wallet{n}"
