"""File-backed wallet store with a separate default-wallet pointer.

Wallets live in ``wallets.json`` as ``{"wallets": {name: key}}`` and the
default wallet name in ``default_wallet.txt``.  Keys are stored as plain hex
unless an encryption key is configured, in which case new entries are
sealed as ``aes:<base64(iv || ciphertext)>``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError

from eth_wallet.exceptions import (
    ConfigError,
    DecryptionError,
    InvalidKeyFormatError,
    KeyStoreError,
    WalletNotFoundError,
)
from eth_wallet.wallet import crypto
from eth_wallet.wallet.models import WalletStore

logger = logging.getLogger("eth_wallet.wallet.keystore")

SECURE_FILE_MODE = 0o600


def _atomic_write(path: Path, data: bytes) -> None:
    """Write *data* to *path* via a temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, SECURE_FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        with suppress(OSError):
            os.unlink(tmp_name)
        raise


class KeyStore:
    """Owns the wallet files and the lock that serializes access to them.

    Parameters
    ----------
    wallets_path:
        JSON document holding every named wallet.
    default_path:
        Plain-text file holding the default wallet name.
    encryption_key:
        Optional 32-byte key.  When set, keys added through :meth:`seal` are
        encrypted before they reach disk.
    """

    def __init__(
        self,
        wallets_path: Path,
        default_path: Path,
        encryption_key: Optional[bytes] = None,
    ) -> None:
        self.wallets_path = Path(wallets_path)
        self.default_path = Path(default_path)
        self._encryption_key = encryption_key
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Wallet document
    # ------------------------------------------------------------------

    def load(self) -> WalletStore:
        """Read the store.  A missing file is an empty store, not an error."""
        with self._lock:
            try:
                raw = self.wallets_path.read_bytes()
            except FileNotFoundError:
                return WalletStore()
            except OSError as exc:
                raise KeyStoreError(f"failed to read {self.wallets_path}: {exc}") from exc

            try:
                return WalletStore.model_validate(json.loads(raw))
            except (ValueError, ValidationError) as exc:
                raise KeyStoreError(f"corrupt wallet store {self.wallets_path}: {exc}") from exc

    def save(self, store: WalletStore) -> None:
        """Persist the full store atomically with owner-only permissions."""
        payload = json.dumps(store.model_dump(), indent=2, sort_keys=True) + "\n"
        with self._lock:
            try:
                _atomic_write(self.wallets_path, payload.encode("utf-8"))
            except OSError as exc:
                raise KeyStoreError(f"failed to save {self.wallets_path}: {exc}") from exc

    @contextmanager
    def transaction(self) -> Iterator[WalletStore]:
        """Hold the lock across a load-modify-save sequence.

        The yielded store is saved when the block exits without an error.
        """
        with self._lock:
            store = self.load()
            yield store
            self.save(store)

    # ------------------------------------------------------------------
    # Default-wallet pointer
    # ------------------------------------------------------------------

    def set_default(self, name: str) -> None:
        with self._lock:
            if name not in self.load().wallets:
                raise WalletNotFoundError(f"wallet '{name}' not found")
            try:
                _atomic_write(self.default_path, name.encode("utf-8"))
            except OSError as exc:
                raise KeyStoreError(f"failed to save {self.default_path}: {exc}") from exc
        logger.info(f"Default wallet set to '{name}'")

    def get_default(self) -> str:
        """Return the default wallet name.

        Raises
        ------
        WalletNotFoundError
            If no default wallet has been set.
        """
        with self._lock:
            try:
                name = self.default_path.read_text(encoding="utf-8").strip()
            except FileNotFoundError:
                raise WalletNotFoundError("no default wallet set") from None
            except OSError as exc:
                raise KeyStoreError(f"failed to read {self.default_path}: {exc}") from exc
        if not name:
            raise WalletNotFoundError("no default wallet set")
        return name

    def has_default(self) -> bool:
        try:
            self.get_default()
        except WalletNotFoundError:
            return False
        return True

    def ensure_default(self, name: str) -> bool:
        """Make *name* the default if no default is set yet.  Returns True if set."""
        with self._lock:
            if self.has_default():
                return False
            self.set_default(name)
            return True

    # ------------------------------------------------------------------
    # At-rest protection
    # ------------------------------------------------------------------

    def seal(self, private_key: bytes) -> str:
        """Return the form in which *private_key* is written to the store."""
        key_hex = private_key.hex()
        if self._encryption_key is None:
            return key_hex
        return crypto.seal_private_key(key_hex, self._encryption_key)

    def unseal(self, stored: str) -> bytes:
        """Turn a stored value back into a raw private key."""
        if crypto.is_sealed(stored):
            if self._encryption_key is None:
                raise ConfigError(
                    "wallet key is encrypted; set WALLET_ENCRYPTION_KEY to use it"
                )
            key_hex = crypto.unseal_private_key(stored, self._encryption_key)
            try:
                return crypto.parse_private_key(key_hex)
            except InvalidKeyFormatError as exc:
                raise DecryptionError("wrong encryption key or corrupt private key") from exc
        return crypto.parse_private_key(stored)
