"""Allow ``python -m eth_wallet``."""

from eth_wallet.cli.app import app

app()
