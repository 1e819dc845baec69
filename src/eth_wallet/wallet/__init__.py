"""Ethereum wallet core.

Named wallets in a local key store with optional AES encryption at rest,
a lazily connected Web3 provider, and an Etherscan history client. The
manager ties them together into the create/import/balance/send/history
operations the CLI exposes.
"""
