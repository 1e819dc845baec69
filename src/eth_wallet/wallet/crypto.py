"""Key generation, address derivation, signing and the AES stream cipher.

Pure functions only: nothing here touches the filesystem or the network.
"""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from eth_account import Account
from web3 import Web3

from eth_wallet.exceptions import (
    ConfigError,
    DecryptionError,
    InvalidKeyFormatError,
    SigningError,
)
from eth_wallet.wallet.models import SignedTransaction, UnsignedTransaction

AES_KEY_SIZE = 32
AES_IV_SIZE = 16
PRIVATE_KEY_SIZE = 32

# Order of the secp256k1 group; valid private keys are in [1, n).
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# Prefix marking a sealed (encrypted) private key in the wallet store.
SEALED_PREFIX = "aes:"


# ---------------------------------------------------------------------------
# Keys and addresses
# ---------------------------------------------------------------------------


def generate_key_pair() -> tuple[bytes, str]:
    """Generate a new secp256k1 key pair.

    Returns
    -------
    tuple[bytes, str]
        The raw 32-byte private key and its checksummed address.
    """
    acct = Account.create()
    return bytes(acct.key), acct.address


def derive_address(private_key: bytes) -> str:
    """Return the checksummed address for *private_key*."""
    return Account.from_key(private_key).address


def parse_private_key(private_key_hex: str) -> bytes:
    """Parse a hex private key (with or without ``0x``) into raw bytes.

    Raises
    ------
    InvalidKeyFormatError
        If the string is not 32 bytes of hex or is not a valid curve scalar.
    """
    text = private_key_hex.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        key = bytes.fromhex(text)
    except ValueError as exc:
        raise InvalidKeyFormatError("invalid private key format") from exc
    if len(key) != PRIVATE_KEY_SIZE or not 0 < int.from_bytes(key, "big") < SECP256K1_N:
        raise InvalidKeyFormatError("invalid private key format")
    try:
        Account.from_key(key)
    except (ValueError, TypeError) as exc:
        raise InvalidKeyFormatError("invalid private key format") from exc
    return key


def sign_transaction(
    tx: UnsignedTransaction,
    private_key: bytes,
    chain_id: int,
) -> SignedTransaction:
    """Sign *tx* with EIP-155 replay protection bound to *chain_id*."""
    try:
        signed = Account.sign_transaction(tx.to_dict(chain_id), private_key)
    except (ValueError, TypeError) as exc:
        raise SigningError(f"failed to sign transaction: {exc}") from exc
    return SignedTransaction(raw=bytes(signed.raw_transaction), hash=Web3.to_hex(signed.hash))


# ---------------------------------------------------------------------------
# Symmetric encryption (AES-256-CFB, random IV prepended)
# ---------------------------------------------------------------------------


def _check_key(key: bytes) -> None:
    if len(key) != AES_KEY_SIZE:
        raise ConfigError("encryption key must be exactly 32 bytes")


def encrypt(data: bytes, key: bytes) -> bytes:
    """Encrypt *data*; the result is ``iv || ciphertext``."""
    _check_key(key)
    iv = os.urandom(AES_IV_SIZE)
    encryptor = Cipher(algorithms.AES(key), modes.CFB(iv)).encryptor()
    return iv + encryptor.update(data) + encryptor.finalize()


def decrypt(ciphertext: bytes, key: bytes) -> bytes:
    """Reverse :func:`encrypt`.

    CFB carries no authentication tag, so a wrong key yields garbage rather
    than an error; callers validate the plaintext.
    """
    _check_key(key)
    if len(ciphertext) < AES_IV_SIZE:
        raise DecryptionError("ciphertext too short")
    iv, body = ciphertext[:AES_IV_SIZE], ciphertext[AES_IV_SIZE:]
    decryptor = Cipher(algorithms.AES(key), modes.CFB(iv)).decryptor()
    return decryptor.update(body) + decryptor.finalize()


def seal_private_key(private_key_hex: str, key: bytes) -> str:
    """Encrypt a hex private key into the store's ``aes:<base64>`` form."""
    blob = encrypt(private_key_hex.encode("ascii"), key)
    return SEALED_PREFIX + base64.b64encode(blob).decode("ascii")


def is_sealed(stored: str) -> bool:
    return stored.startswith(SEALED_PREFIX)


def unseal_private_key(stored: str, key: bytes) -> str:
    """Decrypt a value produced by :func:`seal_private_key`."""
    try:
        blob = base64.b64decode(stored[len(SEALED_PREFIX):], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionError("sealed private key is not valid base64") from exc
    plaintext = decrypt(blob, key)
    try:
        return plaintext.decode("ascii")
    except UnicodeDecodeError as exc:
        raise DecryptionError("wrong encryption key or corrupt private key") from exc
