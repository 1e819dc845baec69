"""Data models for stored wallets and transactions."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

# Standard cost of a plain ETH value transfer. Contract calls are not supported.
TRANSFER_GAS_LIMIT = 21000


class WalletStore(BaseModel):
    """Persisted wallets: name -> stored private key (plain hex or sealed)."""

    wallets: dict[str, str] = Field(default_factory=dict)


@dataclass(frozen=True)
class UnsignedTransaction:
    """A legacy ETH transfer ready to be signed for a specific chain."""

    nonce: int
    to: str
    value: int
    gas_price: int
    gas: int = TRANSFER_GAS_LIMIT

    def to_dict(self, chain_id: int) -> dict:
        return {
            "nonce": self.nonce,
            "to": self.to,
            "value": self.value,
            "gas": self.gas,
            "gasPrice": self.gas_price,
            "chainId": chain_id,
        }


@dataclass(frozen=True)
class SignedTransaction:
    """Raw RLP bytes plus the ``0x`` transaction hash. Only this is broadcast."""

    raw: bytes
    hash: str


class HistoricalTransaction(BaseModel):
    """One entry from the explorer ``txlist`` response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    hash: str
    from_address: str = Field(default="", alias="from")
    to: str = ""
    value: str = "0"
    timestamp: str = Field(default="", alias="timeStamp")
