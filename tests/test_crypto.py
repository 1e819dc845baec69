"""
Crypto primitives: keys, addresses, signing and the AES stream cipher.

Run with: pytest tests/test_crypto.py -v
"""

import pytest
from eth_account import Account
from web3 import Web3

from eth_wallet.exceptions import ConfigError, DecryptionError, InvalidKeyFormatError
from eth_wallet.wallet import crypto
from eth_wallet.wallet.models import TRANSFER_GAS_LIMIT, UnsignedTransaction

from conftest import ENCRYPTION_KEY, TEST_ADDRESS, TEST_PRIVATE_KEY


class TestKeys:
    """Key generation and address derivation."""

    def test_generated_address_matches_derivation(self):
        private_key, address = crypto.generate_key_pair()
        assert len(private_key) == 32
        assert crypto.derive_address(private_key) == address

    def test_generated_keys_differ(self):
        first, _ = crypto.generate_key_pair()
        second, _ = crypto.generate_key_pair()
        assert first != second

    def test_derive_address_is_deterministic(self):
        key = bytes.fromhex(TEST_PRIVATE_KEY)
        assert crypto.derive_address(key) == crypto.derive_address(key) == TEST_ADDRESS

    def test_parse_accepts_0x_prefix(self):
        assert crypto.parse_private_key("0x" + TEST_PRIVATE_KEY) == bytes.fromhex(TEST_PRIVATE_KEY)

    @pytest.mark.parametrize(
        "bad",
        [
            "",
            "not-hex",
            "abcd",
            TEST_PRIVATE_KEY + "00",
            "00" * 32,
            "ff" * 32,
        ],
    )
    def test_parse_rejects_invalid_keys(self, bad):
        with pytest.raises(InvalidKeyFormatError):
            crypto.parse_private_key(bad)


class TestSigning:
    """EIP-155 transaction signing."""

    def _tx(self):
        return UnsignedTransaction(
            nonce=3,
            to=Web3.to_checksum_address("0x" + "11" * 20),
            value=10**18,
            gas_price=20 * 10**9,
        )

    def test_default_gas_limit_is_plain_transfer(self):
        assert self._tx().gas == TRANSFER_GAS_LIMIT == 21000

    def test_signing_is_deterministic(self):
        key = bytes.fromhex(TEST_PRIVATE_KEY)
        first = crypto.sign_transaction(self._tx(), key, 1)
        second = crypto.sign_transaction(self._tx(), key, 1)
        assert first == second

    def test_hash_is_keccak_of_raw(self):
        signed = crypto.sign_transaction(self._tx(), bytes.fromhex(TEST_PRIVATE_KEY), 1)
        assert signed.hash.startswith("0x")
        assert signed.hash == Web3.to_hex(Web3.keccak(signed.raw))

    def test_signature_recovers_sender(self):
        signed = crypto.sign_transaction(self._tx(), bytes.fromhex(TEST_PRIVATE_KEY), 5)
        assert Account.recover_transaction(signed.raw) == TEST_ADDRESS

    def test_chain_id_is_bound_into_signature(self):
        key = bytes.fromhex(TEST_PRIVATE_KEY)
        mainnet = crypto.sign_transaction(self._tx(), key, 1)
        sepolia = crypto.sign_transaction(self._tx(), key, 11155111)
        assert mainnet.hash != sepolia.hash


class TestEncryption:
    """AES-256-CFB with a random IV prefix."""

    @pytest.mark.parametrize("data", [b"", b"x", b"secret key material", bytes(range(256))])
    def test_round_trip(self, data):
        assert crypto.decrypt(crypto.encrypt(data, ENCRYPTION_KEY), ENCRYPTION_KEY) == data

    def test_iv_is_fresh_each_time(self):
        first = crypto.encrypt(b"same input", ENCRYPTION_KEY)
        second = crypto.encrypt(b"same input", ENCRYPTION_KEY)
        assert first != second
        assert len(first) == crypto.AES_IV_SIZE + len(b"same input")

    def test_short_ciphertext_fails(self):
        with pytest.raises(DecryptionError):
            crypto.decrypt(b"\x00" * (crypto.AES_IV_SIZE - 1), ENCRYPTION_KEY)

    @pytest.mark.parametrize("key", [b"", b"short", ENCRYPTION_KEY + b"x"])
    def test_key_must_be_32_bytes(self, key):
        with pytest.raises(ConfigError):
            crypto.encrypt(b"data", key)
        with pytest.raises(ConfigError):
            crypto.decrypt(b"\x00" * 32, key)

    def test_seal_and_unseal_private_key(self):
        sealed = crypto.seal_private_key(TEST_PRIVATE_KEY, ENCRYPTION_KEY)
        assert crypto.is_sealed(sealed)
        assert TEST_PRIVATE_KEY not in sealed
        assert crypto.unseal_private_key(sealed, ENCRYPTION_KEY) == TEST_PRIVATE_KEY

    def test_unseal_rejects_bad_base64(self):
        with pytest.raises(DecryptionError):
            crypto.unseal_private_key(crypto.SEALED_PREFIX + "!!not base64!!", ENCRYPTION_KEY)
