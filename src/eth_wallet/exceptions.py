"""Exception hierarchy for the ETH wallet.

Every component raises one of these so the CLI can turn any failure into
a single readable message and a non-zero exit.
"""

from __future__ import annotations


class EthWalletError(Exception):
    """Base exception for all wallet errors."""


class ConfigError(EthWalletError):
    """Missing or invalid configuration (RPC URL, API key, encryption key)."""


class InvalidKeyFormatError(EthWalletError):
    """A private key is not valid hex or not a valid secp256k1 scalar."""


class InvalidAmountError(EthWalletError):
    """An ETH amount could not be parsed into wei."""


class InvalidAddressError(EthWalletError):
    """A recipient is not a valid Ethereum address."""


class KeyStoreError(EthWalletError):
    """The wallet store could not be read or written."""


class WalletNotFoundError(EthWalletError):
    """A named wallet or the default-wallet pointer does not exist."""


class WalletExistsError(EthWalletError):
    """A wallet with the requested name is already stored."""


class NoWalletError(EthWalletError):
    """No usable private key is available for the operation."""


class DecryptionError(EthWalletError):
    """Ciphertext is too short, corrupt, or was sealed with another key."""


class SigningError(EthWalletError):
    """A transaction could not be signed."""


class NetworkError(EthWalletError):
    """Transport failure talking to the Ethereum node or explorer."""


class ChainConnectionError(NetworkError):
    """The Ethereum node could not be reached when connecting."""


class ProviderError(EthWalletError):
    """The transaction-history provider returned a failure or bad payload."""
