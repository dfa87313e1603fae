"""weibopy CLI - Main commands."""
import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="weibopy",
    help="weibo.com scraper CLI",
    add_completion=False
)
accounts_app = typer.Typer(help="Manage logged-in accounts")
app.add_typer(accounts_app, name="accounts")
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", help="Path to config.yaml")
AccountOption = typer.Option(..., "--account", "-a", help="Account to send the request with")


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def make_client(config_path: Optional[str], account_name: Optional[str] = None):
    from weibopy import WeiboClient, WeiboError

    try:
        return WeiboClient(account_name=account_name, config_path=config_path)
    except WeiboError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)


def print_json(data):
    console.print_json(json.dumps(data, ensure_ascii=False))


def run_request(coro_factory, config_path: Optional[str], account_name: str):
    from weibopy import WeiboError

    async def do_request():
        client = make_client(config_path, account_name)
        try:
            print_json(await coro_factory(client))
        except WeiboError as e:
            console.print(f"[red]{type(e).__name__}: {e}[/red]")
            raise typer.Exit(1)

    run_async(do_request())


@accounts_app.command("add")
def accounts_add(
    name: str = typer.Argument(..., help="Name for the new account"),
    config: Optional[str] = ConfigOption,
):
    """Log in a new account by scanning a QR code."""
    from weibopy import WeiboError

    def show_qrcode(url: str):
        console.print("Scan this QR code with the Weibo app, then confirm the login:")
        console.print(f"[bold]{url}[/bold]")

    async def do_add():
        client = make_client(config)
        if name in client.accounts():
            console.print(f"[yellow]Account '{name}' exists and will be replaced[/yellow]")
        try:
            path = await client.add_account(name, show_qrcode)
        except WeiboError as e:
            console.print(f"[red]Login failed: {e}[/red]")
            raise typer.Exit(1)
        uid = await client.my_uid(name)
        console.print(f"[green]Added account '{name}' (uid {uid})[/green]")
        console.print(f"Stored in: {path}")

    run_async(do_add())


@accounts_app.command("list")
def accounts_list(config: Optional[str] = ConfigOption):
    """List configured accounts."""
    async def do_list():
        client = make_client(config)
        names = client.accounts()
        if not names:
            console.print("[yellow]No accounts. Run 'weibopy accounts add <name>' first.[/yellow]")
            return

        table = Table(title="Accounts")
        table.add_column("Name", style="cyan")
        table.add_column("UID")
        for account in names:
            table.add_row(account, str(await client.my_uid(account)))
        console.print(table)

    run_async(do_list())


@accounts_app.command("keep-alive")
def accounts_keep_alive(config: Optional[str] = ConfigOption):
    """Renew every account whose session went stale."""
    from weibopy import WeiboError

    async def do_keep_alive():
        client = make_client(config)
        try:
            renewed = await client.keep_alive()
        except WeiboError as e:
            console.print(f"[red]{type(e).__name__}: {e}[/red]")
            raise typer.Exit(1)
        if renewed:
            console.print(f"[green]Renewed: {', '.join(renewed)}[/green]")
        else:
            console.print("All sessions are active")

    run_async(do_keep_alive())


@app.command()
def profile(
    uid: str = typer.Argument(..., help="User id"),
    account: str = AccountOption,
    config: Optional[str] = ConfigOption,
):
    """Print a user's profile info and detail."""
    run_request(lambda client: client.profile(uid), config, account)


@app.command()
def friends(
    uid: str = typer.Argument(..., help="User id"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    account: str = AccountOption,
    config: Optional[str] = ConfigOption,
):
    """Print one page of the users a user follows."""
    run_request(lambda client: client.friends(uid, page), config, account)


@app.command()
def fans(
    uid: str = typer.Argument(..., help="User id"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    account: str = AccountOption,
    config: Optional[str] = ConfigOption,
):
    """Print one page of a user's fans."""
    run_request(lambda client: client.fans(uid, page), config, account)


@app.command()
def statuses(
    uid: str = typer.Argument(..., help="User id"),
    since_id: Optional[str] = typer.Option(None, "--since-id", "-s", help="Cursor from the previous page"),
    account: str = AccountOption,
    config: Optional[str] = ConfigOption,
):
    """Print one page of a user's statuses."""
    run_request(lambda client: client.statuses(uid, since_id), config, account)


def main():
    app()


if __name__ == "__main__":
    main()
