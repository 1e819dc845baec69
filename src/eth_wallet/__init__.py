"""ETH Wallet - a command-line Ethereum wallet.

Create or import keys, check balances, send ETH through a JSON-RPC node and
read transaction history from an Etherscan-compatible explorer.
"""
