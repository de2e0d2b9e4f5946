"""CLI for wallet balance tracker."""

import asyncio
import logging
from decimal import Decimal
from enum import StrEnum

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from wallet_balance_tracker.core.models import Account, ClassifiedError, Network, Token
from wallet_balance_tracker.data import get_all_supported_networks, get_network, get_network_config
from wallet_balance_tracker.rpc import BalanceCache, JsonRpcBalanceProvider
from wallet_balance_tracker.subscription import subscribe_token_balance

# Install rich traceback handler
install(show_locals=True)

app = typer.Typer(
    name="wallet-balance",
    help="Fetch token balances for wallet accounts over JSON-RPC",
    add_completion=False,
)

console = Console()


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def _fetch_balance(token: Token, account: Account, *, show_errors: bool) -> str | ClassifiedError:
    cache = BalanceCache()
    async with JsonRpcBalanceProvider() as provider:
        subscription = subscribe_token_balance(cache, provider, token, account, should_return_error=show_errors)
        try:
            return await subscription.result()
        finally:
            subscription.close()
            await cache.aclose()


def _format_units(raw_balance: str, decimals: int | None) -> str:
    if decimals is None:
        return "-"
    value = Decimal(raw_balance) / (Decimal(10) ** decimals)
    return f"{value:,.{min(decimals, 8)}f}"


@app.command()
def balance(
    address: str = typer.Argument(..., help="Wallet address to query"),
    token: str = typer.Argument(..., help="Token contract address"),
    network: str = typer.Option("ethereum", "--network", "-n", help="Network to query"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", help="Override the network's RPC endpoint"),
    decimals: int | None = typer.Option(None, "--decimals", help="Token decimals used to format the balance"),
    format: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--format",
        "-f",
        help="Output format",
    ),
    show_errors: bool = typer.Option(
        False,
        "--show-errors",
        help="Report failures as classified messages instead of raw errors",
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Get the token balance of a wallet address.

    Examples:

        # USDC balance on Ethereum
        wallet-balance balance 0xABC... 0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48

        # On Base, as JSON
        wallet-balance balance 0xABC... 0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913 --network base --format json
    """
    _configure_logging(debug)

    try:
        network_model = get_network(network)
    except KeyError:
        console.print(f"[bold red]Unknown network:[/bold red] {network}")
        raise typer.Exit(code=1)
    if rpc_url:
        network_model = network_model.model_copy(update={"rpc_url": rpc_url})

    account = Account(address=address, network=network_model)
    token_model = Token(address=token, network_id=network_model.id, decimals=decimals)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Fetching balance on {network}...", total=None)
            result = asyncio.run(_fetch_balance(token_model, account, show_errors=show_errors))
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if debug:
            # Rich traceback will automatically handle this
            raise
        raise typer.Exit(1)

    if isinstance(result, ClassifiedError):
        _output_error(result, format)
        raise typer.Exit(1)

    if format == OutputFormat.JSON:
        console.print_json(
            data={
                "network": network_model.id,
                "account": address,
                "token": token,
                "balance": result,
                "formatted": _format_units(result, decimals) if decimals is not None else None,
            }
        )
    else:
        _output_table(network_model, address, token, result, decimals)


@app.command()
def networks() -> None:
    """List all configured networks."""
    table = Table(title="Supported Networks", show_header=True, header_style="bold magenta")
    table.add_column("Network", style="cyan")
    table.add_column("Chain ID", style="blue", justify="right")
    table.add_column("Multicall", style="green")

    for network_id in get_all_supported_networks():
        config = get_network_config(network_id)
        table.add_row(network_id, str(config.get("chain_id", "-")), config.get("multicall_address") or "-")

    console.print(table)


def _output_table(network: Network, address: str, token: str, raw_balance: str, decimals: int | None) -> None:
    """Output balance as rich table."""
    table = Table(
        title=f"Balance for {address[:10]}...{address[-8:]}",
        show_header=True,
        header_style="bold magenta",
    )

    table.add_column("Network", style="blue")
    table.add_column("Token", style="cyan")
    table.add_column("Raw Balance", style="white", justify="right")
    table.add_column("Balance", style="bold green", justify="right")

    table.add_row(network.id, token, raw_balance, _format_units(raw_balance, decimals))
    console.print(table)


def _output_error(error: ClassifiedError, format: OutputFormat) -> None:
    """Output a classified error."""
    if format == OutputFormat.JSON:
        console.print_json(data={"error": error.model_dump(mode="json")})
    else:
        console.print(f"[bold red]{error.message}:[/bold red] {error.description}")


if __name__ == "__main__":
    app()
