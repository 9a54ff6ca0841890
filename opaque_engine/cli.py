"""
OPAQUE Engine Interactive CLI

Runs both sides of the protocol in-process against a local record store,
so registration and login can be tried without a network.
"""

import hashlib
import logging
import sys
from pathlib import Path

import click
from prompt_toolkit import prompt as pt_prompt
from prompt_toolkit.validation import ValidationError, Validator
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from . import __version__, login, registration
from .core.ciphersuite import DEFAULT_SUITE, SUITES, get_suite
from .core.errors import LoginFailure, OpaqueError
from .core.ksf import KSF_TYPES, ksf_from_name
from .store import RecordStore

console = Console()
logger = logging.getLogger(__name__)

DEFAULT_STORE = "opaque_store.json"


class UsernameValidator(Validator):
    def validate(self, document):
        text = document.text
        if not text.strip():
            raise ValidationError(message="Username required")
        if len(text.encode("utf-8")) > 0xFFFF:
            raise ValidationError(message="Username too long")


class PasswordValidator(Validator):
    def validate(self, document):
        if not document.text:
            raise ValidationError(message="Password required")


def configure_logging(verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def show_banner():
    panel = Panel(
        "[cyan]Asymmetric Password-Authenticated Key Exchange[/cyan]\n"
        "[dim]OPRF • Envelope • Triple-DH[/dim]",
        title=f"[bold cyan]OPAQUE Engine v{__version__}[/bold cyan]",
        border_style="cyan",
    )
    console.print(panel)


def ask_username(username):
    if username:
        return username
    console.print("\n[cyan]Username[/cyan]")
    return pt_prompt("User: ", validator=UsernameValidator()).strip()


def ask_password(password, confirm=False):
    if password:
        return password
    console.print("\n[cyan]Password[/cyan]")
    password = pt_prompt("Password: ", is_password=True, validator=PasswordValidator())
    if confirm:
        again = pt_prompt("Confirm: ", is_password=True)
        if again != password:
            raise click.ClickException("Passwords do not match")
    return password


def fingerprint(key):
    """Short display form of a key; the key itself is never printed"""
    digest = hashlib.sha256(key).hexdigest()[:16]
    return " ".join(digest[i:i + 4] for i in range(0, len(digest), 4))


def store_option(func):
    return click.option(
        "--store",
        "store_path",
        default=DEFAULT_STORE,
        envvar="OPAQUE_ENGINE_STORE",
        show_default=True,
        help="Record store file",
    )(func)


def verbose_option(func):
    return click.option("-v", "--verbose", is_flag=True, help="Verbose output")(func)


def fail(message, verbose):
    console.print(f"[red]✗ {message}[/red]")
    if verbose:
        console.print_exception()
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.pass_context
@click.option("--version", is_flag=True, help="Show version")
def main(ctx, version):
    """OPAQUE Engine - asymmetric PAKE demonstration"""
    if version:
        console.print(f"OPAQUE Engine v{__version__}")
        return

    if ctx.invoked_subcommand is None:
        show_banner()

        console.print("\n[bold]Mode:[/bold]")
        console.print("  [cyan]1.[/cyan] Register")
        console.print("  [cyan]2.[/cyan] Log in")
        console.print("  [cyan]3.[/cyan] Protocol info")
        console.print("  [cyan]4.[/cyan] Exit")

        choice = Prompt.ask("\nSelect", choices=["1", "2", "3", "4"], default="2")

        if choice == "1":
            ctx.invoke(register)
        elif choice == "2":
            ctx.invoke(login_command)
        elif choice == "3":
            ctx.invoke(info)
        else:
            console.print("Goodbye!")


@main.command()
@store_option
@click.option("--suite", "suite_name", type=click.Choice(sorted(SUITES)),
              default=DEFAULT_SUITE.name, show_default=True, help="Ciphersuite")
@click.option("--ksf", "ksf_name", type=click.Choice(sorted(KSF_TYPES)),
              default="identity", show_default=True, help="Key-stretching function")
@click.option("--ksf-memory", type=int, help="Argon2id memory cost (KiB) or scrypt n")
@click.option("--ksf-time", type=int, help="Argon2id passes or scrypt r")
@click.option("--force", is_flag=True, help="Overwrite an existing store")
@verbose_option
def setup(store_path, suite_name, ksf_name, ksf_memory, ksf_time, force, verbose):
    """Create server secrets and an empty record store"""
    configure_logging(verbose)
    try:
        if ksf_name == "argon2id":
            ksf = ksf_from_name(ksf_name, memory_cost=ksf_memory, time_cost=ksf_time)
        elif ksf_name == "scrypt":
            ksf = ksf_from_name(ksf_name, n=ksf_memory, r=ksf_time)
        else:
            ksf = ksf_from_name(ksf_name)
        suite = get_suite(suite_name, ksf)

        if Path(store_path).exists() and not force:
            fail(f"Store {store_path} already exists (use --force to replace it)", False)

        store = RecordStore.create(store_path, suite)
    except OpaqueError as e:
        fail(f"Error: {e}", verbose)

    console.print(f"[green]✓ Store created:[/green] {store.path}")
    console.print(f"  Suite: [cyan]{suite.name}[/cyan]  KSF: [cyan]{suite.ksf.name}[/cyan]")
    console.print(f"  Server key: [dim]{fingerprint(store.server_setup.public_key)}[/dim]")


@main.command()
@store_option
@click.option("--user", "username", help="Username (credential identifier)")
@click.option("--password", help="Password (prompted if omitted)")
@click.option("--force", is_flag=True, help="Replace an existing registration")
@verbose_option
def register(store_path, username, password, force, verbose):
    """Register a user with a password"""
    try:
        configure_logging(verbose)
        store = RecordStore.load(store_path)
        username = ask_username(username)
        if username in store and not force:
            fail(f"User {username} is already registered", False)
        password = ask_password(password, confirm=True)

        suite = store.suite
        request, state = registration.client_start(password, suite=suite)
        response = registration.server_start(request, username, store.server_setup)
        upload, export_key = registration.client_finish(state, password, response)
        store.put(username, registration.server_finish(upload))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        return
    except OpaqueError as e:
        fail(f"Error: {e}", verbose)

    console.print(f"[green]✓ Registered {username}[/green]")
    console.print(f"  Export key: [dim]{fingerprint(export_key)}[/dim]")


@main.command("login")
@store_option
@click.option("--user", "username", help="Username (credential identifier)")
@click.option("--password", help="Password (prompted if omitted)")
@verbose_option
def login_command(store_path, username, password, verbose):
    """Log in and derive a session key"""
    try:
        configure_logging(verbose)
        store = RecordStore.load(store_path)
        username = ask_username(username)
        password = ask_password(password)

        suite = store.suite
        request, client_state = login.client_start(password, suite=suite)
        response, server_state = login.server_start(
            request, store.get(username), username, store.server_setup
        )
        finalization, client_key, export_key = login.client_finish(client_state, response)
        server_key = login.server_finish(server_state, finalization)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        return
    except LoginFailure as e:
        logger.debug("Login failed: %s", type(e).__name__)
        fail("Login failed", verbose)
    except OpaqueError as e:
        fail(f"Error: {e}", verbose)

    console.print(f"[green]✓ Logged in as {username}[/green]")
    console.print(f"  Session key: [dim]{fingerprint(client_key)}[/dim]")
    console.print(f"  Keys agree:  {'yes' if client_key == server_key else 'no'}")
    console.print(f"  Export key:  [dim]{fingerprint(export_key)}[/dim]")


@main.command()
def info():
    """Show protocol information"""
    show_banner()

    features = Table(title="Protocol", show_header=False, box=None)
    features.add_column(style="cyan")
    features.add_column(style="white")

    features.add_row("OPRF", "Password never leaves the client")
    features.add_row("Envelope", "Client key sealed under the randomized password")
    features.add_row("Key Exchange", "Triple-DH with explicit MAC confirmation")
    features.add_row("Unknown users", "Answered with a derived stand-in record")
    features.add_row("Stretching", "identity, scrypt or argon2id")

    console.print(features)
    console.print()

    suites = Table(title="Ciphersuites")
    suites.add_column("Name", style="cyan")
    suites.add_column("OPRF")
    suites.add_column("Key exchange")
    suites.add_column("Hash")
    suites.add_column("Session key", justify="right")
    for name, suite in sorted(SUITES.items()):
        suites.add_row(
            name,
            suite.oprf_group.name,
            suite.ke_group.name,
            suite.hash_name,
            f"{suite.Nx} bytes",
        )
    console.print(suites)
    console.print(f"Default suite: [cyan]{DEFAULT_SUITE.name}[/cyan]\n")

    panel = Panel(
        "[bold]Server:[/bold]\n"
        "  $ opaque-engine setup\n\n"
        "[bold]Client:[/bold]\n"
        "  $ opaque-engine register --user alice\n"
        "  $ opaque-engine login --user alice",
        title="Quick Start",
        border_style="cyan",
    )
    console.print(panel)


if __name__ == "__main__":
    main()
