"""CLI for the ETH wallet - create, import, inspect and spend from the terminal."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from eth_wallet.exceptions import EthWalletError

app = typer.Typer(
    name="eth-wallet",
    help="Simple ETH wallet CLI: create a wallet, check balance, send ETH and view history.",
    no_args_is_help=True,
)
console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

_options: dict = {"config": None, "data_dir": None}


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        console.print(f"eth-wallet {version('eth-wallet')}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    root = logging.getLogger("eth_wallet")
    root.setLevel(level)
    if not root.handlers:
        root.addHandler(RichHandler(console=err_console, show_path=False))
    # httpx logs full request URLs, which carry the explorer API key.
    logging.getLogger("httpx").setLevel(logging.WARNING)


@app.callback()
def main(
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to an eth-wallet.yaml config file",
        envvar="ETH_WALLET_CONFIG",
    ),
    data_dir: Path = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Directory holding wallets.json and default_wallet.txt",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Simple ETH wallet CLI: create a wallet, check balance, send ETH and view history."""
    _options["config"] = config
    _options["data_dir"] = data_dir
    _setup_logging(verbose)


def _manager():
    """Build a WalletManager from the config file, environment and CLI options."""
    from eth_wallet.config import CONFIG_FILENAME, load_settings
    from eth_wallet.wallet.manager import WalletManager

    config, data_dir = _options["config"], _options["data_dir"]
    if config is None and data_dir is not None and (data_dir / CONFIG_FILENAME).is_file():
        config = data_dir / CONFIG_FILENAME

    settings = load_settings(config)
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": data_dir})
    return WalletManager.from_settings(settings)


def _fail(action: str, exc: Exception) -> None:
    err_console.print(f"[red]Error {action}:[/red] {escape(str(exc))}")
    raise typer.Exit(1)


# ------------------------------------------------------------------
# Wallet lifecycle
# ------------------------------------------------------------------


@app.command("create")
def create(
    name: str = typer.Option(None, "--name", "-n", help="Wallet name (default: wallet<N>)"),
):
    """Generate a new ETH wallet."""
    try:
        wallet_name, address = _manager().create(name)
    except EthWalletError as e:
        _fail("creating wallet", e)

    console.print(Panel(
        f"[bold green]Wallet created successfully![/bold green]\n\n"
        f"Name: [bold]{escape(wallet_name)}[/bold]\n"
        f"Address: [cyan]{address}[/cyan]",
        title="ETH Wallet",
    ))


@app.command("import")
def import_wallet(
    private_key: str = typer.Argument(help="Hex-encoded private key (with or without 0x)"),
    name: str = typer.Option(None, "--name", "-n", help="Wallet name (default: wallet<N>)"),
):
    """Import an ETH wallet using its private key."""
    try:
        wallet_name, address = _manager().import_key(private_key, name)
    except EthWalletError as e:
        _fail("importing wallet", e)

    console.print("[bold green]Wallet imported successfully![/bold green]")
    console.print(f"Name: {escape(wallet_name)}")
    console.print(f"Address: [cyan]{address}[/cyan]")


@app.command("show")
def show():
    """Show the current wallet's ETH address."""
    try:
        address = _manager().address()
    except EthWalletError as e:
        _fail("fetching wallet address", e)

    console.print(f"Wallet address: [cyan]{address}[/cyan]")


@app.command("list")
def list_wallets():
    """List stored wallets and mark the default one."""
    try:
        wallets = _manager().list_wallets()
    except EthWalletError as e:
        _fail("listing wallets", e)

    if not wallets:
        console.print("[dim]No wallets stored.[/dim] Run 'eth-wallet create' first.")
        return

    table = Table(title="Wallets")
    table.add_column("Name", style="cyan")
    table.add_column("Address")
    table.add_column("Default", justify="center")
    for w in wallets:
        table.add_row(w["name"], w["address"], "*" if w["is_default"] else "")
    console.print(table)


@app.command("use")
def use(name: str = typer.Argument(help="Name of a stored wallet")):
    """Make a stored wallet the default."""
    try:
        _manager().set_default(name)
    except EthWalletError as e:
        _fail("setting default wallet", e)

    console.print(f"Default wallet: [bold]{escape(name)}[/bold]")


# ------------------------------------------------------------------
# Chain operations
# ------------------------------------------------------------------


@app.command("balance")
def balance():
    """Check the ETH balance of the current wallet."""
    from eth_wallet.wallet.manager import format_ether

    try:
        eth = _manager().get_balance()
    except EthWalletError as e:
        _fail("fetching balance", e)

    console.print(f"Wallet Balance: [bold]{format_ether(eth)}[/bold] ETH")


@app.command("send")
def send(
    recipient: str = typer.Argument(help="Recipient address (0x...)"),
    amount: str = typer.Argument(help="Amount of ETH to send (e.g. 0.01)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Send ETH to another Ethereum address."""
    console.print(f"\n[bold]Send {escape(amount)} ETH[/bold]")
    console.print(f"  To: {escape(recipient)}\n")
    if not yes:
        typer.confirm("Confirm this transaction?", abort=True)

    try:
        tx_hash = _manager().send(recipient, amount)
    except EthWalletError as e:
        _fail("sending ETH", e)

    console.print("[bold green]Transaction sent successfully![/bold green]")
    console.print(f"Transaction Hash: [cyan]{tx_hash}[/cyan]")


@app.command("history")
def history(
    limit: int = typer.Option(0, "--limit", "-l", help="Show at most N transactions (0 = all)"),
):
    """Fetch and display the transaction history of the current wallet."""
    try:
        transactions = _manager().history()
    except EthWalletError as e:
        _fail("fetching transaction history", e)

    if limit > 0:
        transactions = transactions[:limit]

    if not transactions:
        console.print("[dim]No transactions found.[/dim]")
        return

    console.print("[bold]Transaction History:[/bold]")
    console.print("-------------------------------------------------")
    for tx in transactions:
        console.print(f"Tx Hash: {tx.hash}")
        console.print(f"From:    {tx.from_address}")
        console.print(f"To:      {tx.to}")
        console.print(f"Value:   {tx.value} ETH")
        console.print(f"Date:    {tx.timestamp}")
        console.print("-------------------------------------------------")
